"""
Script Runtime Session. One embedded Lua runtime per source root.

The game client loads its configuration tables lazily: a table such as
`pg.ship_data_statistics` is an empty shell with a metatable, and the first
lookup of an id pulls the module that actually holds the data. Three shells
are in use:

    confHX   plain       data already in pg.base[name]
    confMT   direct      cs[name][id] set -> require "sharecfgdata.<name>"
    confSP   subfolder   cs[name].indexs[id] -> subList entry -> require
                         "sharecfg.<subFolderName>.<subName>", data in pg.base[subName]

This module reproduces those contracts so the decompiled scripts run
unmodified, but keeps every piece of loader state on the Python side:

- which modules have been loaded (`loaded_modules`)
- which records have been read (`RawRecord` cache)
- resolved records with their detranslated overrides (`ResolvedRecord` cache)

The Lua-side shells delegate to the same loader, so scripts indexing a lazy
table at load time share that state and read the same resolved record
(translated fields, base fallback) that Python code gets.

Usage:
    with ScriptSession(Path("/data/EN")) as session:
        record = session.resolve("ship_data_statistics", 10001)
        if record is not None:
            name = record["name"]

A session is not shared between source roots. Calls are serialized with a
re-entrant lock; the Lua callbacks run on the calling thread.
"""

import logging
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from lupa import LuaError, LuaRuntime, lua_type

from alcollector.errors import CollectorError
from alcollector.runtime.convert import is_lua_table, to_python
from alcollector.runtime.records import RawRecord, RecordError, ResolvedRecord, walk_base_chain
from alcollector.runtime.text import TextTranslator, has_tokens

logger = logging.getLogger(__name__)


# Environment override for the script search path (tests point this at fixtures)
SCRIPT_PATH_ENV = "AL_DATA_PATH"

# Modules the client requires before any data table is touched
DEFAULT_SETUP_MODULES: Tuple[str, ...] = (
    "localconfig",
    "const",
    "config",
    "buffcfg",
    "skillcfg",
)

# Lookup tables used by text detranslation
EQUIP_CODE_TABLE = "equip_data_code"
NAME_CODE_TABLE = "name_code"


class SourceRootError(CollectorError):
    """A source root is missing or lacks its top-level structure."""

    def __init__(self, source_root: Path, message: str):
        self.source_root = source_root
        super().__init__(f"{source_root}: {message}")


class ScriptLoadError(CollectorError):
    """A script module failed to execute. Aborts the whole source root."""

    def __init__(self, source_root: Path, module: str, detail: str):
        self.source_root = source_root
        self.module = module
        self.detail = detail
        super().__init__(f"{source_root}: failed to load module '{module}': {detail}")


class LoadMode(Enum):
    """Lazy table kinds, keyed by the value the Lua shells pass in."""
    PLAIN = 0
    DIRECT = 1
    SUBFOLDER = 2


# Installed before the setup modules run.
_PRELUDE = """
pg = {}
ys = {}
cs = {}

HXSet = {}

function HXSet.hxLan(text)
    return __collector_hxlan(text)
end

local function lazy_index(mode)
    return function(self, index)
        local record = __collector_index(self, index, mode)
        if record ~= nil then
            rawset(self, index, record)
        end
        return record
    end
end

confHX = { __index = lazy_index(0) }
confMT = { __index = lazy_index(1) }
confSP = { __index = lazy_index(2) }

ys.Battle = {
    BattleDataFunction = {
        ConvertBuffTemplate = function() end,
        ConvertSkillTemplate = function() end
    }
}

-- decompiled upvalue references resolve to empty tables
uv0 = setmetatable({}, {
    __index = function() return {} end
})

function __collector_mode(t)
    local mt = getmetatable(t)
    if mt == confSP then return 2 end
    if mt == confMT then return 1 end
    if mt == confHX then return 0 end
    return nil
end

function __collector_get(t, k)
    return t[k]
end

-- translated fields, then the raw entry, then the base record
function __collector_view(overrides, data, parent)
    return setmetatable(overrides, {
        __index = function(self, key)
            local raw = data[key]
            if raw == nil and parent ~= nil then
                return parent[key]
            end
            return raw
        end
    })
end
"""

# Installed after the setup modules, once ShareCfg exists.
_LOADERS = """
setmetatable(pg, {
    __index = function(self, index)
        if ShareCfg ~= nil and ShareCfg["ShareCfg." .. index] then
            __collector_require("sharecfg." .. index)
            return rawget(self, index)
        end
    end
})

function require_buff(id)
    if pg.buffCfg_tag ~= nil and pg.buffCfg_tag["buff_" .. id] then
        return require("gamecfg.buff.buff_" .. id)
    end
end

function require_skill(id)
    if pg.skillCfg_tag ~= nil and pg.skillCfg_tag["skill_" .. id] then
        return require("gamecfg.skill.skill_" .. id)
    end
end
"""


def resolve_script_path(source_root: Path, override: Optional[str] = None) -> Path:
    """
    Directory the Lua module search path is rooted at.

    Explicit override, else $AL_DATA_PATH, else the source root. Relative
    values are taken relative to the source root.
    """
    value = override if override is not None else os.environ.get(SCRIPT_PATH_ENV)
    if not value:
        return source_root
    path = Path(value)
    return path if path.is_absolute() else source_root / path


class ScriptSession:
    """
    An isolated script runtime for one source root.

    Owns its LuaRuntime, its module-loaded map and its record caches. Nothing
    here is visible to any other session.
    """

    def __init__(
        self,
        source_root: Path,
        script_path: Optional[str] = None,
        setup_modules: Sequence[str] = DEFAULT_SETUP_MODULES,
    ):
        self.source_root = Path(source_root)
        self.script_path = resolve_script_path(self.source_root, script_path)
        self.setup_modules = tuple(setup_modules)

        self._lua: Optional[LuaRuntime] = None
        self._lock = threading.RLock()
        self._loaded: Dict[str, bool] = {}
        self._raw_records: Dict[Tuple[str, Any], Optional[RawRecord]] = {}
        self._records: Dict[Tuple[str, Any], ResolvedRecord] = {}
        # Lua-side counterparts of the cached records, for script lookups
        self._lua_data: Dict[Tuple[str, Any], Any] = {}
        self._views: Dict[Tuple[str, Any], Any] = {}
        self.translator = TextTranslator(self._lookup_code, self._lookup_name)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> "ScriptSession":
        """
        Create the runtime, install the shims and run the setup modules.

        Raises:
            SourceRootError: root directory or ShareCfg table missing
            ScriptLoadError: a setup module is missing or fails
        """
        with self._lock:
            if self._lua is not None:
                return self

            if not self.source_root.is_dir():
                raise SourceRootError(self.source_root, "source root directory does not exist")

            lua = LuaRuntime(unpack_returned_tuples=True)
            g = lua.globals()
            g["package"]["path"] = f"{self.script_path.as_posix()}/?.lua;" + g["package"]["path"]
            g["__collector_index"] = self._lua_index
            g["__collector_require"] = self.require_module
            g["__collector_hxlan"] = self.translator.translate_name_codes
            self._lua = lua

            try:
                lua.execute(_PRELUDE)
                for module in self.setup_modules:
                    self.require_module(module)
                lua.execute(_LOADERS)
            except LuaError as e:
                self._lua = None
                raise ScriptLoadError(self.source_root, "<prelude>", str(e)) from e
            except CollectorError:
                self._lua = None
                raise

            if lua_type(g["ShareCfg"]) != "table":
                self._lua = None
                raise SourceRootError(self.source_root, "ShareCfg index table is not defined")

            logger.info(f"Script session started for {self.source_root} "
                        f"(search path {self.script_path})")
            return self

    def close(self) -> None:
        """Drop the runtime and every cached record."""
        with self._lock:
            self._records.clear()
            self._raw_records.clear()
            self._views.clear()
            self._lua_data.clear()
            self._loaded.clear()
            self._lua = None

    def __enter__(self) -> "ScriptSession":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def started(self) -> bool:
        return self._lua is not None

    @property
    def loaded_modules(self) -> Dict[str, bool]:
        """Snapshot of the module-loaded map."""
        return dict(self._loaded)

    def _globals(self):
        if self._lua is None:
            raise RuntimeError("ScriptSession is not started")
        return self._lua.globals()

    # =========================================================================
    # Module loading
    # =========================================================================

    def require_module(self, module: str) -> None:
        """
        Load a script module once per session.

        Raises:
            ScriptLoadError: the module is missing or fails to execute
        """
        with self._lock:
            if self._loaded.get(module):
                return
            logger.debug(f"Loading module {module} from {self.script_path}")
            try:
                self._globals()["require"](module)
            except LuaError as e:
                raise ScriptLoadError(self.source_root, module, str(e)) from e
            self._loaded[module] = True

    # =========================================================================
    # Lua access helpers
    # =========================================================================

    def _rawget(self, table: Any, key: Any) -> Any:
        if not is_lua_table(table) or key is None:
            return None
        return self._globals()["rawget"](table, key)

    def _table(self, entity_type: str) -> Any:
        """pg.<entity_type>, loading its sharecfg module if needed."""
        g = self._globals()
        try:
            table = g["__collector_get"](g["pg"], entity_type)
        except LuaError as e:
            raise ScriptLoadError(self.source_root, f"sharecfg.{entity_type}", str(e)) from e
        return table if is_lua_table(table) else None

    def entity_ids(self, entity_type: str) -> List[Any]:
        """Identifiers listed in pg.<entity_type>.all, sorted."""
        with self._lock:
            table = self._table(entity_type)
            ids = to_python(self._rawget(table, "all")) if table is not None else None
            if not ids:
                return []
            if isinstance(ids, dict):
                ids = list(ids.values())
            try:
                return sorted(ids)
            except TypeError:
                # mixed numeric and string ids
                return sorted(ids, key=str)

    def _locate(self, name: str, index: Any, mode: LoadMode) -> Tuple[str, Any]:
        """
        Find the Lua data table for an entry, loading its module if the
        table kind requires it. Returns (pg.base table name, data or None).
        """
        g = self._globals()
        data_name = name

        if mode is LoadMode.DIRECT:
            index_table = self._rawget(g["cs"], name)
            if self._rawget(index_table, index) is not None:
                self.require_module(f"sharecfgdata.{name}")

        elif mode is LoadMode.SUBFOLDER:
            route = self._rawget(g["cs"], name)
            position = self._rawget(self._rawget(route, "indexs"), index)
            if position is not None:
                sub_name = self._rawget(self._rawget(route, "subList"), position)
                if sub_name is not None:
                    base = self._rawget(g["pg"], "base")
                    if self._rawget(base, sub_name) is None:
                        folder = self._rawget(route, "subFolderName")
                        self.require_module(f"sharecfg.{folder}.{sub_name}")
                    data_name = sub_name

        base = self._rawget(g["pg"], "base")
        data = self._rawget(self._rawget(base, data_name), index)
        return data_name, (data if is_lua_table(data) else None)

    def _lua_index(self, table: Any, index: Any, mode: int) -> Any:
        """
        __index of the lazy shells when scripts read them directly.

        Scripts see the same record as resolve(): translated string fields over
        the raw entry, falling back to the base record. A record that fails to
        resolve reads as nil.
        """
        with self._lock:
            name = self._rawget(table, "__name")
            if name is None:
                return None
            try:
                record = self.resolve(name, index)
            except RecordError as e:
                logger.warning(f"{self.source_root}: script lookup {name}[{index}] failed: {e}")
                return None
            return self._lua_view(record) if record is not None else None

    def _lua_view(self, record: ResolvedRecord) -> Any:
        key = (record.entity_type, record.index)
        view = self._views.get(key)
        if view is None:
            parent = None
            if record.base is not None:
                # the chain was validated when the record was resolved
                parent = self._lua_view(self.resolve(record.entity_type, record.base))
            overrides = self._lua.table_from(record.overrides)
            view = self._globals()["__collector_view"](overrides, self._lua_data[key], parent)
            self._views[key] = view
        return view

    # =========================================================================
    # Records
    # =========================================================================

    def load_raw(self, entity_type: str, index: Any) -> Optional[RawRecord]:
        """Read an entry without translation. Cached, misses included."""
        with self._lock:
            key = (entity_type, index)
            if key in self._raw_records:
                return self._raw_records[key]

            record = None
            table = self._table(entity_type)
            if table is not None:
                mode = self._globals()["__collector_mode"](table)
                name = self._rawget(table, "__name") or entity_type
                if mode is None:
                    # Table defined without a lazy shell: entries live on it directly
                    data_name, data = entity_type, self._rawget(table, index)
                    data = data if is_lua_table(data) else None
                else:
                    data_name, data = self._locate(name, index, LoadMode(mode))
                if data is not None:
                    try:
                        fields = to_python(data)
                    except (UnicodeDecodeError, ValueError) as e:
                        # Not cached: every read of this entry fails the same way
                        raise RecordError(entity_type, index, f"unconvertible data: {e}") from e
                    if not isinstance(fields, dict):
                        fields = {i + 1: v for i, v in enumerate(fields)}
                    record = RawRecord(entity_type=entity_type, index=index,
                                       table=data_name, fields=fields)
                    self._lua_data[key] = data

            self._raw_records[key] = record
            return record

    def _overrides_for(self, raw: RawRecord) -> Dict[str, Any]:
        overrides = {}
        for k, v in raw.fields.items():
            if isinstance(v, str) and has_tokens(v):
                overrides[k] = self.translator.translate(v)
        return overrides

    def resolve(self, entity_type: str, index: Any) -> Optional[ResolvedRecord]:
        """
        Materialize a record of pg.<entity_type>.

        Returns None when the table or the entry does not exist. The record
        is cached, so repeated resolves return the same object.

        Raises:
            CyclicBaseError / MissingBaseError: broken base chain (this record only)
            ScriptLoadError: a module needed for the lookup fails (fatal)
        """
        with self._lock:
            key = (entity_type, index)
            cached = self._records.get(key)
            if cached is not None:
                return cached

            raw = self.load_raw(entity_type, index)
            if raw is None:
                return None

            walk_base_chain(entity_type, raw, lambda i: self.load_raw(entity_type, i))

            record = ResolvedRecord(raw, self._overrides_for(raw), self)
            self._records[key] = record
            return record

    # =========================================================================
    # Detranslation lookups
    # =========================================================================

    def _lookup_code(self, key: str) -> Optional[str]:
        raw = self.load_raw(EQUIP_CODE_TABLE, key)
        text = raw.fields.get("text") if raw is not None else None
        if not isinstance(text, str):
            logger.debug(f"{self.source_root}: no {EQUIP_CODE_TABLE} entry for '{key}'")
            return None
        return text

    def _lookup_name(self, code: int) -> Optional[str]:
        raw = self.load_raw(NAME_CODE_TABLE, code)
        name = raw.fields.get("name") if raw is not None else None
        if not isinstance(name, str):
            logger.debug(f"{self.source_root}: no {NAME_CODE_TABLE} entry for {code}")
            return None
        return name
