"""Exception hierarchy shared across the schema generator."""

from __future__ import annotations

from typing import Any, Optional


class MongoSchemaError(Exception):
    """Base class for every error raised by mongoschema."""


class UnclassifiableValueError(MongoSchemaError, TypeError):
    """Raised when a decoded value falls outside the supported data model."""

    def __init__(self, value: Any) -> None:
        super().__init__(
            f"cannot determine type for {value!r} with python type {type(value).__name__}"
        )
        self.value = value


class ConfigError(MongoSchemaError, ValueError):
    """Raised when the configuration file is missing, malformed or invalid."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class SupplyError(MongoSchemaError, RuntimeError):
    """Raised when records cannot be pulled from a record supplier."""

    def __init__(self, message: str, *, collection: Optional[str] = None) -> None:
        super().__init__(message)
        self.collection = collection
