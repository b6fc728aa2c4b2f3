"""Exception taxonomy raised while configuring and generating a CRUD."""

from __future__ import annotations


class CrudForgeError(Exception):
    """Base class for every error the CLI reports as a single message."""


class ConfigurationError(CrudForgeError):
    """Malformed table/section split or an invalid option combination."""


class InvalidSchemaError(CrudForgeError):
    """A column definition uses an unknown type or is malformed."""

    def __init__(self, token: str, reason: str):
        self.token = token
        super().__init__(f"Invalid schema entry '{token}': {reason}")


class InvalidRelationshipError(CrudForgeError):
    """A relationship definition does not have three non-empty segments."""

    def __init__(self, token: str, reason: str):
        self.token = token
        super().__init__(f"Invalid relationship entry '{token}': {reason}")


class TemplateResolutionError(CrudForgeError):
    """A template source is missing, unreadable, or never settles."""


class GenerationError(CrudForgeError):
    """Wraps the first failure raised while a pipeline step writes files."""

    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"Unable to generate your CRUD ({step}): {cause}")
