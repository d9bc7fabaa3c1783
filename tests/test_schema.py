from datetime import datetime, timezone

import pytest
from embedded_json_db_engine import (
    EmptyRequiredField,
    FieldKind,
    FieldRule,
    InvalidFieldType,
    InvalidTemporalValue,
    MissingRequiredField,
    Schema,
    UnsupportedSchemaType,
    ValidationError,
)

def test_required_without_default():
    schema = Schema({"name": {"type": FieldKind.TEXT, "required": True}})
    with pytest.raises(MissingRequiredField) as ei:
        schema.validate({})
    assert ei.value.field == "name"
    with pytest.raises(MissingRequiredField):
        schema.validate({"name": None})

def test_required_default_applied():
    schema = Schema({"name": {"type": "str", "required": True, "default": "x"}})
    doc = {}
    out = schema.validate(doc)
    assert out is doc
    assert doc == {"name": "x"}

def test_default_is_type_checked():
    schema = Schema({"age": {"type": "number", "required": True, "default": "zero"}})
    with pytest.raises(InvalidFieldType):
        schema.validate({})

def test_optional_default_not_injected():
    schema = Schema({"age": {"type": "number", "default": 0}})
    assert schema.validate({}) == {}

def test_empty_strings():
    schema = Schema({
        "name": {"type": "str", "required": True},
        "nick": {"type": "str"},
        "age":  {"type": "number"},
    })
    with pytest.raises(EmptyRequiredField):
        schema.validate({"name": ""})
    # optional empty string counts as absent and is left as is
    doc = schema.validate({"name": "A", "nick": "", "age": ""})
    assert doc == {"name": "A", "nick": "", "age": ""}

@pytest.mark.parametrize("tp,good,bad", [
    ("str", "a", 1),
    ("number", 1.5, "1"),
    ("int", 3, True),
    ("bool", False, 0),
    ("object", {"a": 1}, [1]),
    ("list", [1, 2], {"a": 1}),
    (str, "a", b"a"),
    (dict, {}, "x"),
])
def test_type_checks(tp, good, bad):
    schema = Schema({"f": {"type": tp}})
    assert schema.validate({"f": good}) == {"f": good}
    with pytest.raises(InvalidFieldType):
        schema.validate({"f": bad})

def test_temporal_coercion():
    schema = Schema({"at": {"type": "datetime", "required": True}})
    doc = schema.validate({"at": "2023-01-02T03:04:05Z"})
    assert doc["at"] == datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    doc = schema.validate({"at": 0})
    assert doc["at"] == datetime(1970, 1, 1, tzinfo=timezone.utc)

    now = datetime.now()
    assert schema.validate({"at": now})["at"] is now

    for bad in ("yesterday", True, [2023]):
        with pytest.raises(InvalidTemporalValue):
            schema.validate({"at": bad})

def test_unsupported_type_detected_on_validate():
    schema = Schema({"blob": {"type": "bytes"}})
    with pytest.raises(UnsupportedSchemaType):
        schema.validate({})
    assert FieldKind.resolve("bytes") is None

def test_extra_fields_pass_through():
    schema = Schema({"name": {"type": "str"}})
    assert schema.validate({"name": "a", "other": object}) == {"name": "a", "other": object}

def test_schema_is_immutable():
    spec = {"name": {"type": "str", "required": True}}
    schema = Schema(spec)
    spec["age"] = {"type": "int"}
    assert list(schema) == ["name"]
    with pytest.raises(TypeError):
        schema.fields["age"] = FieldRule(type="int")
    assert schema.fields["name"] == FieldRule(type="str", required=True)

def test_defaults_are_copied_per_document():
    schema = Schema({
        "tags": {"type": "list", "required": True, "default": []},
        "meta": {"type": "object", "required": True, "default": {"n": 0}},
    })
    a = schema.validate({})
    a["tags"].append("x")
    a["meta"]["n"] = 5
    b = schema.validate({})
    assert b == {"tags": [], "meta": {"n": 0}}
    assert schema.fields["tags"].default == []
    assert schema.fields["meta"].default == {"n": 0}

def test_non_mapping_document():
    with pytest.raises(ValidationError):
        Schema({}).validate(["not", "a", "doc"])

def test_bare_type_tags():
    schema = Schema({"name": str, "n": FieldKind.NUMBER})
    assert schema.fields["n"].kind is FieldKind.NUMBER
    assert not schema.fields["name"].required
    assert schema.validate({"name": "a", "n": 2}) == {"name": "a", "n": 2}
