"""Embedded JSON document store: schema-validated collections in single JSON files."""

from .config import StoreConfig
from .cursor import Cursor
from .database import Database
from .diagnostics import Diagnostics, console_error_printer, console_progress_printer
from .errors import (
    CorruptStoreError,
    CursorError,
    DocumentNotFound,
    EmptyRequiredField,
    EngineError,
    InvalidCollectionConfig,
    InvalidFieldType,
    InvalidSelectSpecification,
    InvalidSortDirection,
    InvalidTemporalValue,
    MissingRequiredField,
    UnsupportedSchemaType,
    ValidationError,
)
from .model import Model
from .query import matches
from .schema import FieldKind, FieldRule, Schema
from .storage import JsonFileStore

__all__ = [
    "StoreConfig",
    "Cursor",
    "Database",
    "Diagnostics",
    "console_error_printer",
    "console_progress_printer",
    "CorruptStoreError",
    "CursorError",
    "DocumentNotFound",
    "EmptyRequiredField",
    "EngineError",
    "InvalidCollectionConfig",
    "InvalidFieldType",
    "InvalidSelectSpecification",
    "InvalidSortDirection",
    "InvalidTemporalValue",
    "MissingRequiredField",
    "UnsupportedSchemaType",
    "ValidationError",
    "Model",
    "matches",
    "FieldKind",
    "FieldRule",
    "Schema",
    "JsonFileStore",
]
