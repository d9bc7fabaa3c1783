from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import StoreConfig
from .diagnostics import Diagnostics, ErrorSink, ProgressSink
from .errors import InvalidCollectionConfig
from .model import Model
from .schema import Schema
from .storage import JsonFileStore

logger = logging.getLogger(__name__)


class Database:
    """
    A directory of collections, one <name>.json file each.

    Models opened through the same Database share its config and diagnostics
    and are cached by name.
    """

    def __init__(
        self,
        path: str | os.PathLike,
        *,
        config: Optional[StoreConfig] = None,
        on_progress: Optional[ProgressSink] = None,
        on_error: Optional[ErrorSink] = None,
    ) -> None:
        if not path or not os.fspath(path):
            raise InvalidCollectionConfig("database path must be non-empty")
        self.path = Path(path)
        self.config = config or StoreConfig()
        self._diag = Diagnostics(on_progress=on_progress, on_error=on_error)
        self._models: Dict[str, Model] = {}
        self.path.mkdir(parents=True, exist_ok=True)

    def model(self, name: str, schema: Union[Schema, Mapping[str, Any]]) -> Model:
        """
        Open collection `name`. A plain dict of field rules is wrapped in a Schema.
        Reopening a cached name with different field rules replaces the cached model.
        """
        if not isinstance(schema, Schema) and isinstance(schema, Mapping):
            schema = Schema(schema)
        cached = self._models.get(name)
        if cached is not None and isinstance(schema, Schema) and (
            cached.schema is schema or dict(cached.schema.fields) == dict(schema.fields)
        ):
            return cached
        m = Model(name, self.path, schema, config=self.config, diagnostics=self._diag)
        self._models[name] = m
        return m

    def collection_names(self) -> List[str]:
        ext = self.config.extension
        return sorted(
            p.name[: -len(ext)] for p in self.path.iterdir()
            if p.is_file() and p.name.endswith(ext) and not p.name.startswith(".")
        )

    def drop(self, name: str) -> bool:
        self._models.pop(name, None)
        store = JsonFileStore(self.path / f"{name}{self.config.extension}")
        existed = store.delete()
        if existed:
            logger.info(f"Dropped collection '{name}' from {self.path}")
        return existed

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and (self.path / f"{name}{self.config.extension}").is_file()

    def __repr__(self) -> str:
        return f"Database({str(self.path)!r})"
