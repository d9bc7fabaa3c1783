import gc
import io
import json
import logging
import os

import pytest
from rich.console import Console
from embedded_json_db_engine import (
    Database,
    Diagnostics,
    DocumentNotFound,
    InvalidCollectionConfig,
    InvalidSortDirection,
    JsonFileStore,
    Model,
    Schema,
    console_error_printer,
    console_progress_printer,
)
from embedded_json_db_engine import storage as storage_mod

def make_schema():
    return {
        "name":   {"type": "str", "required": True},
        "age":    {"type": "int", "default": 0},
        "active": {"type": "bool", "required": True, "default": True},
    }

def test_progress_events(tmp_path):
    events = []

    def collect(evt):
        events.append(evt.get("phase"))

    users = Model("users", str(tmp_path), Schema(make_schema()), on_progress=collect)
    users.create_one({"name": "U0"})
    assert events == ["create_one.start", "create_one.done"]

    events.clear()
    users.update_many({}, {"age": 1})
    assert "update_many.start" in events and "update_many.done" in events

    events.clear()
    with pytest.raises(DocumentNotFound):
        users.find_and_delete_one({"name": "nobody"})
    assert events == ["find_and_delete_one.start"]

def test_errors_reported_then_raised(tmp_path, caplog):
    reported = []
    users = Model("users", str(tmp_path), Schema(make_schema()), on_error=reported.append)

    with caplog.at_level(logging.ERROR, logger="embedded_json_db_engine"):
        with pytest.raises(DocumentNotFound) as ei:
            users.find_one_and_update({"name": "x"}, {"age": 2})
    assert len(reported) == 1
    assert reported[0]["op"] == "users.find_one_and_update"
    assert reported[0]["error"] is ei.value
    assert "find_one_and_update failed" in caplog.text

    # cursor failures go through the same channel
    with pytest.raises(InvalidSortDirection):
        users.find({}).sort({"age": 5})
    assert reported[-1]["op"] == "cursor.sort"

def test_constructor_errors_reported(tmp_path):
    reported = []
    with pytest.raises(InvalidCollectionConfig):
        Model("", str(tmp_path), Schema({}), on_error=reported.append)
    assert reported and reported[0]["op"] == "model.open"

def test_failing_sink_does_not_mask_error(tmp_path):
    def broken(evt):
        raise RuntimeError("sink down")

    users = Model("users", str(tmp_path), Schema(make_schema()), on_error=broken, on_progress=broken)
    with pytest.raises(DocumentNotFound):
        users.find_and_delete_one({"name": "x"})

def test_rich_printers():
    buf = io.StringIO()
    con = Console(file=buf, force_terminal=False, width=200)
    diag = Diagnostics(on_progress=console_progress_printer(con), on_error=console_error_printer(con))
    diag.progress("find.start", 0, "users")
    diag.progress("find.done", 100)
    diag.error("users.find", ValueError("bad [thing]"))
    out = buf.getvalue()
    assert "[progress] find.start 0% - users" in out
    assert "[progress] find.done 100%" in out
    assert "users.find failed: ValueError: bad [thing]" in out

def test_failed_write_keeps_previous_file(tmp_path, monkeypatch):
    users = Model("users", str(tmp_path), Schema(make_schema()))
    users.create_one({"name": "A"})
    before = users.path.read_bytes()

    # unserializable value fails before anything touches the disk
    with pytest.raises(TypeError):
        users.update_many({}, {"blob": object()})
    assert users.path.read_bytes() == before

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(storage_mod.os, "replace", boom)
    with pytest.raises(OSError):
        users.create_one({"name": "B"})
    monkeypatch.undo()
    assert users.path.read_bytes() == before
    assert [p for p in os.listdir(tmp_path) if p.endswith(".tmp")] == []

def test_store_primitives(tmp_path):
    store = JsonFileStore(tmp_path / "sub" / "c.json", fsync=False)
    assert not store.exists()
    store.ensure_exists()
    store.ensure_exists()
    assert store.read_all() == []
    store.write_all([{"a": 1}, {"b": "ü"}])
    assert store.read_all() == [{"a": 1}, {"b": "ü"}]
    assert "ü" in store.path.read_text(encoding="utf-8")
    assert store.delete() is True
    assert store.delete() is False

def test_path_lock_shared_per_path(tmp_path):
    a = storage_mod.path_lock(tmp_path / "x.json")
    b = storage_mod.path_lock(str(tmp_path / "x.json"))
    c = storage_mod.path_lock(tmp_path / "y.json")
    assert a is b
    assert a is not c

def test_path_lock_released_with_last_store(tmp_path):
    store = JsonFileStore(tmp_path / "z.json")
    key = os.path.abspath(str(tmp_path / "z.json"))
    assert key in storage_mod._LOCKS
    del store
    gc.collect()
    assert key not in storage_mod._LOCKS

def test_database_facade(tmp_path):
    db = Database(str(tmp_path / "db"))
    users = db.model("users", make_schema())
    users.create_one({"name": "Alice"})
    db.model("orders", Schema({"total": {"type": "number"}}))

    assert db.collection_names() == ["orders", "users"]
    assert "users" in db
    assert db.model("users", users.schema) is users
    # equal field rules given as a dict reuse the cached model
    assert db.model("users", make_schema()) is users
    assert db.model("users", {"name": {"type": "str"}}) is not users
    users = db.model("users", make_schema())

    # another handle sees the same data
    reopened = Database(str(tmp_path / "db")).model("users", make_schema())
    assert reopened.find_one({"name": "Alice"})["active"] is True

    assert db.drop("orders") is True
    assert db.drop("orders") is False
    assert db.collection_names() == ["users"]
    assert json.loads((tmp_path / "db" / "users.json").read_text(encoding="utf-8"))[0]["name"] == "Alice"
