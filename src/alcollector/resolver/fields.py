"""
Typed field access for resolved records.

Script values arrive loosely typed: Lua 5.3+ may hand back 3.0 where 3 was
written, and an empty table converts to []. These helpers coerce what the
scripts legitimately produce and raise FieldError for anything else, carrying
the entity type, id and field name so a diagnostic can point at the record.
"""

from typing import Any, List

from alcollector.runtime.records import RecordError


_REQUIRED = object()


class FieldError(RecordError):
    """A record field is missing or has the wrong shape."""

    def __init__(self, entity_type: str, index: Any, field_name: Any, message: str):
        self.field_name = field_name
        super().__init__(entity_type, index, f"field '{field_name}': {message}")


def _fail(record, key: Any, message: str) -> FieldError:
    return FieldError(record.entity_type, record.index, key, message)


def _missing(record, key: Any, default: Any) -> Any:
    if default is _REQUIRED:
        raise _fail(record, key, "missing")
    return default


def _as_int(record, key: Any, value: Any) -> int:
    if isinstance(value, bool):
        raise _fail(record, key, f"expected integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise _fail(record, key, f"expected integer, got {value!r}")


def read_int(record, key: Any, default: Any = _REQUIRED) -> int:
    value = record.get(key)
    if value is None:
        return _missing(record, key, default)
    return _as_int(record, key, value)


def read_float(record, key: Any, default: Any = _REQUIRED) -> float:
    value = record.get(key)
    if value is None:
        return _missing(record, key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _fail(record, key, f"expected number, got {value!r}")
    return float(value)


def read_str(record, key: Any, default: Any = _REQUIRED) -> str:
    value = record.get(key)
    if value is None:
        return _missing(record, key, default)
    if not isinstance(value, str):
        raise _fail(record, key, f"expected string, got {value!r}")
    return value


def read_bool(record, key: Any, default: Any = _REQUIRED) -> bool:
    """Lua booleans, plus the 0/1 flags (numeric or string) some tables use instead."""
    value = record.get(key)
    if value is None:
        return _missing(record, key, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if value in ("0", "1"):
        return value == "1"
    raise _fail(record, key, f"expected boolean, got {value!r}")


def read_list(record, key: Any, default: Any = _REQUIRED) -> List[Any]:
    """
    A Lua sequence as a list.

    Sparse integer-keyed tables convert to dicts. Positions are kept: the
    holes up to the highest key come back as None, so list[n - 1] is always
    the value Lua holds at index n.
    """
    value = record.get(key)
    if value is None:
        return _missing(record, key, default)
    if isinstance(value, list):
        return value
    if isinstance(value, dict) and all(isinstance(k, int) and not isinstance(k, bool) for k in value):
        if min(value) < 1:
            raise _fail(record, key, f"expected positive indices, got {sorted(value)}")
        return [value.get(i) for i in range(1, max(value) + 1)]
    raise _fail(record, key, f"expected list, got {type(value).__name__}")


def read_int_list(record, key: Any, default: Any = _REQUIRED) -> List[int]:
    """Integer ids in index order; holes are dropped."""
    value = record.get(key)
    if value is None:
        return _missing(record, key, default)
    return [_as_int(record, key, v) for v in read_list(record, key) if v is not None]
