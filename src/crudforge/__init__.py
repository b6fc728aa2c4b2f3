"""crudforge: scaffold a CRUD slice for a Laravel or Lumen application."""

__version__ = "0.1.0"
