from __future__ import annotations
import copy
import enum
from dataclasses import dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional, Tuple, Union

from .errors import (
    EmptyRequiredField,
    InvalidFieldType,
    InvalidTemporalValue,
    MissingRequiredField,
    UnsupportedSchemaType,
    ValidationError,
)
from .utils import parse_temporal

_MISSING = object()


class FieldKind(str, enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRUCT = "struct"
    SEQUENCE = "sequence"
    TEMPORAL = "temporal"

    @classmethod
    def resolve(cls, tag: Any) -> Optional["FieldKind"]:
        """Map a declared type tag to a kind; None if the tag is unknown."""
        if isinstance(tag, cls):
            return tag
        if isinstance(tag, str):
            return _NAME_ALIASES.get(tag.lower())
        if isinstance(tag, type):
            return _TYPE_ALIASES.get(tag)
        return None


_NAME_ALIASES: Dict[str, FieldKind] = {
    "text": FieldKind.TEXT, "str": FieldKind.TEXT, "string": FieldKind.TEXT,
    "number": FieldKind.NUMBER, "int": FieldKind.NUMBER, "float": FieldKind.NUMBER,
    "boolean": FieldKind.BOOLEAN, "bool": FieldKind.BOOLEAN,
    "struct": FieldKind.STRUCT, "object": FieldKind.STRUCT, "dict": FieldKind.STRUCT,
    "sequence": FieldKind.SEQUENCE, "list": FieldKind.SEQUENCE, "array": FieldKind.SEQUENCE,
    "temporal": FieldKind.TEMPORAL, "datetime": FieldKind.TEMPORAL, "date": FieldKind.TEMPORAL,
}

_TYPE_ALIASES: Dict[type, FieldKind] = {
    str: FieldKind.TEXT,
    int: FieldKind.NUMBER,
    float: FieldKind.NUMBER,
    bool: FieldKind.BOOLEAN,
    dict: FieldKind.STRUCT,
    list: FieldKind.SEQUENCE,
    datetime: FieldKind.TEMPORAL,
    date: FieldKind.TEMPORAL,
}


@dataclass(frozen=True)
class FieldRule:
    """
    Rule for a single field.

    `type` keeps the declared tag as given; it is resolved to a FieldKind on
    every validation so that an unknown tag surfaces as UnsupportedSchemaType
    when a document is validated, not when the schema is built.
    """
    type: Any
    required: bool = False
    default: Any = _MISSING

    @property
    def has_default(self) -> bool:
        return self.default is not _MISSING

    @property
    def kind(self) -> Optional[FieldKind]:
        return FieldKind.resolve(self.type)

    @classmethod
    def from_spec(cls, spec: Union["FieldRule", Mapping[str, Any], Any]) -> "FieldRule":
        if isinstance(spec, FieldRule):
            return spec
        if isinstance(spec, Mapping):
            return cls(
                type=spec.get("type"),
                required=bool(spec.get("required", spec.get("mandatory", False))),
                default=spec["default"] if "default" in spec else _MISSING,
            )
        # Bare tag: {"name": str} or {"name": FieldKind.TEXT}
        return cls(type=spec)


class Schema:
    """
    Ordered, immutable set of field rules for one collection.

    Accepts the rule dicts used throughout the engine:
        {"name": {"type": "str", "required": True},
         "age":  {"type": FieldKind.NUMBER, "default": 0},
         "born": {"type": "datetime"}}
    """

    def __init__(self, fields: Mapping[str, Any]) -> None:
        if not isinstance(fields, Mapping):
            raise TypeError("schema fields must be a mapping of field name -> rule")
        rules: Dict[str, FieldRule] = {}
        for name, spec in fields.items():
            if not isinstance(name, str) or not name:
                raise TypeError(f"schema field names must be non-empty strings, got {name!r}")
            rules[name] = FieldRule.from_spec(spec)
        self._fields: Mapping[str, FieldRule] = MappingProxyType(rules)

    @property
    def fields(self) -> Mapping[str, FieldRule]:
        return self._fields

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def items(self) -> Iterator[Tuple[str, FieldRule]]:
        return iter(self._fields.items())

    def __repr__(self) -> str:
        return f"Schema({list(self._fields)!r})"

    def validate(self, doc: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        """
        Validate `doc` in place and return it.

        Injects defaults for missing required fields and replaces temporal values
        with parsed datetimes. Fields not declared in the schema are left alone.
        """
        if not isinstance(doc, MutableMapping):
            raise ValidationError(f"document must be a mapping, got {type(doc).__name__}")

        for key, rule in self._fields.items():
            value = doc.get(key)

            if rule.required and value is None:
                if not rule.has_default:
                    raise MissingRequiredField(f"Required field '{key}' is missing", field=key)
                # each document gets its own copy of the default
                value = copy.deepcopy(rule.default)
                doc[key] = value

            kind = rule.kind
            if isinstance(value, str) and value == "":
                if rule.required and kind is FieldKind.TEXT:
                    raise EmptyRequiredField(f"Required field '{key}' cannot be empty", field=key)
                if not rule.required:
                    value = None

            if kind is None:
                raise UnsupportedSchemaType(f"Unsupported type {rule.type!r} at '{key}'", field=key)

            if value is None:
                continue
            self._check(doc, key, kind, value)
        return doc

    @staticmethod
    def _check(doc: MutableMapping[str, Any], key: str, kind: FieldKind, value: Any) -> None:
        if kind is FieldKind.TEXT:
            ok = isinstance(value, str)
        elif kind is FieldKind.NUMBER:
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif kind is FieldKind.BOOLEAN:
            ok = isinstance(value, bool)
        elif kind is FieldKind.STRUCT:
            ok = isinstance(value, Mapping)
        elif kind is FieldKind.SEQUENCE:
            ok = isinstance(value, (list, tuple))
        elif kind is FieldKind.TEMPORAL:
            try:
                doc[key] = parse_temporal(value)
            except (TypeError, ValueError, OverflowError, OSError) as e:
                raise InvalidTemporalValue(f"Invalid date format at '{key}': {value!r}", field=key) from e
            return
        else:
            raise UnsupportedSchemaType(f"Unsupported type {kind!r} at '{key}'", field=key)
        if not ok:
            raise InvalidFieldType(
                f"Invalid type at '{key}'. Expected {kind.value}, got {type(value).__name__}",
                field=key,
            )
