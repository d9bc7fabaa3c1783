from __future__ import annotations
import json
import uuid
from datetime import date, datetime, timezone
from typing import Any

def new_id() -> str:
    # uuid4 draws from os.urandom
    return str(uuid.uuid4())

def json_default(o: Any) -> Any:
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    if isinstance(o, (set, frozenset, tuple)):
        return list(o)
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")

def canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=json_default)

def parse_temporal(value: Any) -> datetime:
    """
    Parse a datetime, an ISO-8601 string or epoch milliseconds into a datetime.
    Raises ValueError/TypeError/OverflowError on anything else.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a temporal value")
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    if isinstance(value, str):
        s = value.strip()
        if s.endswith("Z") or s.endswith("z"):
            s = s[:-1] + "+00:00"
        return datetime.fromisoformat(s)
    raise TypeError(f"cannot parse {type(value).__name__} as datetime")
