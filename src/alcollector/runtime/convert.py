"""
Lua -> Python value conversion.

Script tables are plain Lua tables. Records are copied out of the runtime once,
when they are first loaded, so later lookups never touch the Lua state again.

    Lua sequence {1, 2, 3}      -> [1, 2, 3]
    Lua map {name = "x"}        -> {"name": "x"}
    Lua empty table {}          -> []
    Lua functions / userdata    -> None
"""

from typing import Any, Dict, List

from lupa import lua_type


# Nested data tables in the game scripts are shallow; anything deeper than this
# is a self-referencing table.
MAX_DEPTH = 32


def is_lua_table(value: Any) -> bool:
    """True if value is a Lua table proxy."""
    return lua_type(value) == "table"


def _is_sequence(keys: List[Any]) -> bool:
    if not all(isinstance(k, int) and not isinstance(k, bool) for k in keys):
        return False
    return sorted(keys) == list(range(1, len(keys) + 1))


def to_python(value: Any, _depth: int = 0) -> Any:
    """
    Convert a Lua value to plain Python data.

    Tables are iterated raw, so metatables attached by the scripts are not
    triggered. Sequences become lists, everything else becomes a dict.
    """
    kind = lua_type(value)
    if kind is None:
        # Already a Python value (str, int, float, bool, None)
        return value
    if kind != "table":
        return None
    if _depth >= MAX_DEPTH:
        raise ValueError("Lua table nesting too deep (self-referencing table?)")

    items = list(value.items())
    if not items:
        return []

    keys = [k for k, _ in items]
    if _is_sequence(keys):
        ordered = sorted(items, key=lambda kv: kv[0])
        return [to_python(v, _depth + 1) for _, v in ordered]

    result: Dict[Any, Any] = {}
    for k, v in items:
        result[k] = to_python(v, _depth + 1)
    return result
