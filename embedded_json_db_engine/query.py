from __future__ import annotations
from typing import Any, Dict, Mapping, Optional

def strict_equal(a: Any, b: Any) -> bool:
    """
    Equality that keeps booleans apart from numbers (True != 1).
    """
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b

def _member(val: Any, arg: Any) -> Optional[bool]:
    if not isinstance(arg, (list, tuple, set, frozenset)):
        return None
    return any(strict_equal(val, item) for item in arg)

def _match_ops(val: Any, ops: Mapping[str, Any]) -> bool:
    for op, arg in ops.items():
        if op == "$in":
            if not _member(val, arg):
                return False
        elif op == "$nin":
            hit = _member(val, arg)
            if hit is None or hit:
                return False
        elif op == "$lte":
            try:
                if not (val <= arg):
                    return False
            except TypeError:
                return False
        elif op == "$gte":
            try:
                if not (val >= arg):
                    return False
            except TypeError:
                return False
        elif op == "$eq":
            if not strict_equal(val, arg):
                return False
        elif op == "$ne":
            if strict_equal(val, arg):
                return False
        else:
            # unknown operator matches nothing
            return False
    return True

def matches(doc: Mapping[str, Any], query: Optional[Dict[str, Any]]) -> bool:
    """
    Проверяет документ против запроса: поля и операторы объединяются через AND.
    Значение-словарь трактуется как набор операторов, иначе строгое равенство.
    """
    if not query:
        return True
    for k, v in query.items():
        val = doc.get(k)
        if isinstance(v, Mapping):
            if not _match_ops(val, v):
                return False
        elif not strict_equal(val, v):
            return False
    return True
