from __future__ import annotations
import functools
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Sequence

from .config import StoreConfig
from .cursor import Cursor
from .diagnostics import Diagnostics, ErrorSink, ProgressSink
from .errors import DocumentNotFound, InvalidCollectionConfig, ValidationError
from .query import matches
from .schema import Schema
from .storage import JsonFileStore
from .utils import new_id

logger = logging.getLogger(__name__)


def _operation(op: str):
    """
    Wrap a public Model method: hold the per-path lock, emit <op>.start/<op>.done
    progress events, and report any failure to diagnostics before re-raising.
    """
    def deco(fn):
        @functools.wraps(fn)
        def wrapper(self: "Model", *args: Any, **kwargs: Any):
            self._diag.progress(f"{op}.start", 0, self.name)
            try:
                with self._store.locked():
                    result = fn(self, *args, **kwargs)
            except Exception as e:
                self._diag.error(f"{self.name}.{op}", e)
                raise
            self._diag.progress(f"{op}.done", 100, self.name)
            return result
        return wrapper
    return deco


class Model:
    """
    A named collection persisted as one JSON array at <storage_path>/<name>.json.

    Every operation reads the whole file, computes the result in memory and, for
    mutations, rewrites the whole file. Documents get a uuid4 identifier in the
    `id` field (StoreConfig.id_field) when created.
    """

    def __init__(
        self,
        name: str,
        storage_path: str | os.PathLike,
        schema: Schema,
        *,
        config: Optional[StoreConfig] = None,
        on_progress: Optional[ProgressSink] = None,
        on_error: Optional[ErrorSink] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self._diag = diagnostics or Diagnostics(on_progress=on_progress, on_error=on_error)
        try:
            if not isinstance(name, str) or not name.strip():
                raise InvalidCollectionConfig("collection name must be a non-empty string")
            if os.sep in name or (os.altsep and os.altsep in name):
                raise InvalidCollectionConfig(f"collection name must not contain path separators: {name!r}")
            if not storage_path or not os.fspath(storage_path):
                raise InvalidCollectionConfig("storage path must be non-empty")
            if not isinstance(schema, Schema):
                raise InvalidCollectionConfig(f"schema must be a Schema instance, got {type(schema).__name__}")
        except InvalidCollectionConfig as e:
            self._diag.error("model.open", e)
            raise

        self.name = name
        self.config = config or StoreConfig()
        self._schema = schema
        self.path = Path(storage_path) / f"{name}{self.config.extension}"
        self._store = JsonFileStore(
            self.path,
            indent=self.config.indent,
            ensure_ascii=self.config.ensure_ascii,
            fsync=self.config.fsync,
        )
        try:
            self._store.ensure_exists()
        except Exception as e:
            self._diag.error(f"{name}.open", e)
            raise
        logger.info(f"Opened collection '{name}' at {self.path}")

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def id_field(self) -> str:
        return self.config.id_field

    def __repr__(self) -> str:
        return f"Model(name={self.name!r}, path={str(self.path)!r})"

    # ----- writes -----

    @_operation("create_one")
    def create_one(self, doc: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        self._schema.validate(doc)
        data = self._store.read_all()
        doc[self.id_field] = new_id()
        data.append(doc)
        self._store.write_all(data)
        return doc

    @_operation("insert_many")
    def insert_many(self, docs: Sequence[MutableMapping[str, Any]]) -> List[MutableMapping[str, Any]]:
        docs = list(docs)
        if len({id(doc) for doc in docs}) != len(docs):
            raise ValidationError("insert_many got the same document object more than once")
        for doc in docs:
            self._schema.validate(doc)
        data = self._store.read_all()
        for doc in docs:
            doc[self.id_field] = new_id()
        data.extend(docs)
        self._store.write_all(data)
        return docs

    # ----- reads -----

    @_operation("find")
    def find(self, query: Optional[Dict[str, Any]] = None, *, validate: Optional[bool] = None) -> Cursor:
        data = self._store.read_all()
        found = [doc for doc in data if matches(doc, query)]
        if validate is None:
            validate = self.config.validate_on_read
        if validate:
            for doc in found:
                self._schema.validate(doc)
        return Cursor(found, self._schema, self._diag)

    @_operation("find_one")
    def find_one(self, query: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        for doc in self._store.read_all():
            if matches(doc, query):
                return doc
        return None

    # ----- targeted mutations -----

    @_operation("find_and_delete_one")
    def find_and_delete_one(self, query: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        data = self._store.read_all()
        for i, doc in enumerate(data):
            if matches(doc, query):
                del data[i]
                self._store.write_all(data)
                return doc
        raise DocumentNotFound(f"Document not found in '{self.name}' for query {query!r}")

    @_operation("find_one_and_update")
    def find_one_and_update(self, query: Optional[Dict[str, Any]], update: Mapping[str, Any]) -> Dict[str, Any]:
        self._check_update(update)
        data = self._store.read_all()
        for i, doc in enumerate(data):
            if matches(doc, query):
                merged = self._merge(doc, update)
                data[i] = merged
                self._store.write_all(data)
                return merged
        raise DocumentNotFound(f"Document not found in '{self.name}' for query {query!r}")

    # ----- bulk mutations -----

    @_operation("update_many")
    def update_many(self, query: Optional[Dict[str, Any]], update: Mapping[str, Any]) -> List[Dict[str, Any]]:
        self._check_update(update)
        data = self._store.read_all()
        updated = [self._merge(doc, update) if matches(doc, query) else doc for doc in data]
        self._store.write_all(updated)
        return updated

    @_operation("delete_many")
    def delete_many(self, query: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        data = self._store.read_all()
        remaining = [doc for doc in data if not matches(doc, query)]
        self._store.write_all(remaining)
        logger.debug(f"Deleted {len(data) - len(remaining)} documents from '{self.name}'")
        return remaining

    # ----- helpers -----

    def _check_update(self, update: Mapping[str, Any]) -> None:
        if not isinstance(update, Mapping):
            raise ValidationError(f"update must be a mapping, got {type(update).__name__}")
        if self.id_field in update:
            raise ValidationError(f"identifier field '{self.id_field}' cannot be updated", field=self.id_field)

    def _merge(self, doc: Dict[str, Any], update: Mapping[str, Any]) -> Dict[str, Any]:
        merged = {**doc, **update}
        if self.config.validate_updates:
            self._schema.validate(merged)
        return merged
