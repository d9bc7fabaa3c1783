"""Configuration for embedded_json_db_engine collections."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StoreConfig:
    """Tunable parameters shared by a collection and its file store.

    Attributes:
        extension: Suffix of collection files (``<storage_path>/<name><extension>``)
        id_field: Name of the system-assigned identifier field
        indent: JSON indent for collection files, None for compact output
        ensure_ascii: Escape non-ASCII characters when writing
        fsync: fsync the temp file and directory on every write
        validate_on_read: Re-validate find() results against the schema
        validate_updates: Validate merged documents before update writes
    """

    extension: str = ".json"
    id_field: str = "id"
    indent: int | None = None
    ensure_ascii: bool = False
    fsync: bool = True
    validate_on_read: bool = False
    validate_updates: bool = False
