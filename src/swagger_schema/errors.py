"""
Exceptions raised by the swagger schema translation engine.

Both concrete errors also subclass the builtin exception a caller would expect
(`ValueError` for an unmapped type, `TypeError` for a wrong node shape), so code
that only knows the builtins still catches them.
"""

from typing import Any


class SwaggerSchemaError(Exception):
    """Base class for all translation errors."""


class UnmappableTypeError(SwaggerSchemaError, ValueError):
    """A leaf type has no registered Swagger mapping."""

    def __init__(self, kind: Any, message: str = None) -> None:
        self.kind = kind
        super().__init__(message or f"No swagger mapping registered for type '{kind}'")


class StructuralMisuseError(SwaggerSchemaError, TypeError):
    """An operation was applied to a schema of the wrong shape."""


class ModelConflictError(SwaggerSchemaError, ValueError):
    """Two different models were collected under the same name."""


class InvalidDefinitionError(SwaggerSchemaError, ValueError):
    """A generated definition is not a valid JSON schema."""
