"""Exception hierarchy for embedded_json_db_engine."""

from __future__ import annotations

from typing import Optional


class EngineError(Exception):
    """Base exception for all engine errors."""
    pass


class InvalidCollectionConfig(EngineError, ValueError):
    """Raised when a collection is opened with a bad name, path or schema."""
    pass


class ValidationError(EngineError, ValueError):
    """Raised when a document does not satisfy its schema."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class MissingRequiredField(ValidationError):
    pass


class EmptyRequiredField(ValidationError):
    pass


class InvalidFieldType(ValidationError):
    pass


class InvalidTemporalValue(ValidationError):
    pass


class UnsupportedSchemaType(ValidationError):
    """The schema declares a field kind the engine does not know."""
    pass


class CorruptStoreError(EngineError):
    """Raised when a collection file does not hold a JSON array of objects."""
    pass


class DocumentNotFound(EngineError, LookupError):
    """Raised by single-document operations when nothing matches."""
    pass


class CursorError(EngineError, ValueError):
    """Raised on a bad argument or an invalid state of a cursor pipeline."""
    pass


class InvalidSortDirection(CursorError):
    pass


class InvalidSelectSpecification(CursorError):
    pass
