"""
alcollector.runtime - Script Runtime Harness

Runs the decompiled client configuration scripts in an embedded Lua runtime
(one per source root) and exposes their entries as records.

- ScriptSession: runtime lifecycle, loader shims, lazy tables, record cache
- ResolvedRecord: detranslated overrides over raw fields and the base chain
- TextTranslator: <[key]> and {namecode:N} expansion
"""

from alcollector.runtime.convert import to_python, is_lua_table
from alcollector.runtime.text import TextTranslator, CROSS_REF, NAME_CODE_REF, has_tokens
from alcollector.runtime.records import (
    RawRecord,
    ResolvedRecord,
    RecordError,
    CyclicBaseError,
    MissingBaseError,
    walk_base_chain,
)
from alcollector.runtime.session import (
    ScriptSession,
    SourceRootError,
    ScriptLoadError,
    LoadMode,
    DEFAULT_SETUP_MODULES,
    SCRIPT_PATH_ENV,
    resolve_script_path,
)

__all__ = [
    # Conversion
    "to_python",
    "is_lua_table",
    # Text
    "TextTranslator",
    "CROSS_REF",
    "NAME_CODE_REF",
    "has_tokens",
    # Records
    "RawRecord",
    "ResolvedRecord",
    "RecordError",
    "CyclicBaseError",
    "MissingBaseError",
    "walk_base_chain",
    # Session
    "ScriptSession",
    "SourceRootError",
    "ScriptLoadError",
    "LoadMode",
    "DEFAULT_SETUP_MODULES",
    "SCRIPT_PATH_ENV",
    "resolve_script_path",
]
