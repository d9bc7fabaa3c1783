from __future__ import annotations
import functools
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .diagnostics import Diagnostics
from .errors import CursorError, InvalidSelectSpecification, InvalidSortDirection
from .schema import Schema
from .utils import canonical_json

_DOCS = "docs"
_VALUES = "values"
_COUNT = "count"


def _reported(op: str):
    def deco(fn):
        @functools.wraps(fn)
        def wrapper(self: "Cursor", *args: Any, **kwargs: Any):
            try:
                return fn(self, *args, **kwargs)
            except Exception as e:
                self._diag.error(f"cursor.{op}", e)
                raise
        return wrapper
    return deco


def _sort_key(v: Any) -> Tuple[int, Any]:
    # None first, then numbers/bools, strings, datetimes, everything else as JSON
    if v is None:
        return (0, 0)
    if isinstance(v, (bool, int, float)):
        return (1, v)
    if isinstance(v, str):
        return (2, v)
    if isinstance(v, datetime):
        # naive values are taken as UTC so they compare with aware ones
        return (3, (v if v.tzinfo else v.replace(tzinfo=timezone.utc)).timestamp())
    return (4, canonical_json(v))


def _distinct_key(v: Any) -> Any:
    try:
        hash(v)
    except TypeError:
        return ("json", canonical_json(v))
    return (type(v) is bool, v)


class Cursor:
    """
    In-memory pipeline over the result of Model.find().

    Shaping methods work on a private copy and return the cursor itself:

        model.find({"active": True}).sort({"age": -1}).skip(10).limit(5).exec()

    After distinct() the cursor holds raw values instead of documents; after
    count() it holds a single int. exec() returns whatever is current.
    """

    def __init__(
        self,
        docs: List[Dict[str, Any]],
        schema: Schema,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        if not isinstance(docs, list):
            raise CursorError("Invalid data for operation: expected a list of documents")
        self._data: Union[List[Any], int] = list(docs)
        self._schema = schema
        self._diag = diagnostics or Diagnostics()
        self._shape = _DOCS

    @property
    def schema(self) -> Schema:
        return self._schema

    def _require(self, *shapes: str) -> None:
        if self._shape not in shapes:
            raise CursorError(f"operation not allowed on a cursor holding {self._shape}")

    @staticmethod
    def _check_n(n: Any) -> int:
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise CursorError(f"expected a non-negative integer, got {n!r}")
        return n

    @_reported("validate")
    def validate(self) -> "Cursor":
        """Run every document through the schema (defaults and datetime coercion included)."""
        self._require(_DOCS)
        for doc in self._data:
            self._schema.validate(doc)
        return self

    @_reported("sort")
    def sort(self, spec: Mapping[str, int]) -> "Cursor":
        self._require(_DOCS)
        if not isinstance(spec, Mapping):
            raise InvalidSortDirection(f"sort expects a mapping of field -> 1|-1, got {type(spec).__name__}")
        for key, direction in spec.items():
            if isinstance(direction, bool) or direction not in (1, -1):
                raise InvalidSortDirection(
                    f'Invalid sort direction "{direction}" for key "{key}". Use 1 for ascending, -1 for descending.'
                )
        if not self._data:
            return self
        # stable sorts applied last-key first leave the first key as primary
        for key, direction in reversed(list(spec.items())):
            self._data.sort(key=lambda d: _sort_key(d.get(key)), reverse=(direction == -1))
        return self

    @_reported("limit")
    def limit(self, n: int) -> "Cursor":
        self._require(_DOCS, _VALUES)
        self._data = self._data[: self._check_n(n)]
        return self

    @_reported("skip")
    def skip(self, n: int) -> "Cursor":
        self._require(_DOCS, _VALUES)
        self._data = self._data[self._check_n(n):]
        return self

    @_reported("select")
    def select(self, spec: Mapping[str, int]) -> "Cursor":
        """
        Project fields. With any field set to 1 only those fields are kept and
        0 markers are ignored; otherwise fields set to 0 are dropped.
        """
        self._require(_DOCS)
        if not isinstance(spec, Mapping):
            raise InvalidSelectSpecification(f"select expects a mapping of field -> 1|0, got {type(spec).__name__}")
        for key, flag in spec.items():
            if isinstance(flag, bool) or flag not in (0, 1):
                raise InvalidSelectSpecification(f'Invalid select flag "{flag}" for key "{key}". Use 1 or 0.')
        show = [k for k, flag in spec.items() if flag == 1]
        if show:
            self._data = [{k: doc[k] for k in show if k in doc} for doc in self._data]
        else:
            hide = set(spec)
            self._data = [{k: v for k, v in doc.items() if k not in hide} for doc in self._data]
        return self

    @_reported("distinct")
    def distinct(self, field: str) -> "Cursor":
        """Collapse to the unique truthy values of `field`, first-seen order."""
        self._require(_DOCS)
        seen = set()
        values: List[Any] = []
        for doc in self._data:
            v = doc.get(field)
            if not v:
                continue
            k = _distinct_key(v)
            if k in seen:
                continue
            seen.add(k)
            values.append(v)
        self._data = values
        self._shape = _VALUES
        return self

    @_reported("count")
    def count(self) -> "Cursor":
        self._require(_DOCS, _VALUES)
        self._data = len(self._data)
        self._shape = _COUNT
        return self

    def exec(self) -> Union[List[Any], int]:
        return self._data

    def __iter__(self) -> Iterator[Any]:
        if self._shape == _COUNT:
            return iter((self._data,))
        return iter(list(self._data))

    def __repr__(self) -> str:
        size = self._data if self._shape == _COUNT else len(self._data)
        return f"<Cursor {self._shape} size={size}>"
