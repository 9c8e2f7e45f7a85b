"""
Pytest configuration and shared fixtures.

Source roots are written as small Lua script trees under tmp_path, laid out
the way the game client ships them:

    localconfig.lua const.lua config.lua buffcfg.lua skillcfg.lua
    sharecfg/<table>.lua                 lazy table shells (+ plain data)
    sharecfgdata/<table>.lua             data of direct-loaded tables
    sharecfg/<folder>/<part>.lua         data of subfolder-routed tables
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from alcollector.runtime import ScriptSession
from alcollector.runtime.convert import to_python


# =============================================================================
# LUA SOURCE HELPERS
# =============================================================================

def lua_literal(value: Any) -> str:
    """Python data -> Lua table constructor source."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    if isinstance(value, (list, tuple)):
        return "{" + ", ".join(lua_literal(v) for v in value) + "}"
    if isinstance(value, dict):
        parts = [f"[{lua_literal(k)}] = {lua_literal(v)}" for k, v in value.items()]
        return "{" + ", ".join(parts) + "}"
    raise TypeError(f"cannot express {type(value).__name__} in Lua")


def lua_global(session: ScriptSession, name: str) -> Any:
    """A global of a started session's Lua state, as plain data."""
    return to_python(session._lua.globals()[name])


def _count_load(name: str) -> str:
    return f'LOAD_COUNTS = LOAD_COUNTS or {{}}\nLOAD_COUNTS["{name}"] = (LOAD_COUNTS["{name}"] or 0) + 1\n'


class LuaRoot:
    """Builds a synthetic script source root."""

    def __init__(self, path: Path):
        self.path = path
        self._plain: Dict[str, tuple] = {}
        self._direct: Dict[str, tuple] = {}
        self._subfolder: Dict[str, tuple] = {}
        self._modules: Dict[str, Optional[str]] = {}

    def plain(self, name: str, entries: Dict[Any, Any], all_ids: Optional[List[Any]] = None) -> "LuaRoot":
        """Table whose data is defined together with its shell (confHX)."""
        self._plain[name] = (entries, all_ids)
        return self

    def direct(self, name: str, entries: Dict[Any, Any], all_ids: Optional[List[Any]] = None) -> "LuaRoot":
        """Table whose data lives in sharecfgdata/<name> (confMT)."""
        self._direct[name] = (entries, all_ids)
        return self

    def subfolder(self, name: str, folder: str, parts: Dict[str, Dict[Any, Any]],
                  all_ids: Optional[List[Any]] = None) -> "LuaRoot":
        """Table split over sharecfg/<folder>/<part> (confSP)."""
        self._subfolder[name] = (folder, parts, all_ids)
        return self

    def module(self, dotted: str, source: Optional[str]) -> "LuaRoot":
        """Add or replace a module; None removes it."""
        self._modules[dotted] = source
        return self

    def _table_names(self) -> List[str]:
        return list(self._plain) + list(self._direct) + list(self._subfolder)

    def _shell(self, name: str, entries_ids: List[Any], all_ids: Optional[List[Any]], meta: str) -> str:
        ids = all_ids if all_ids is not None else sorted(entries_ids)
        return (
            f"pg.base = pg.base or {{}}\n"
            f"pg.{name} = setmetatable({{__name = \"{name}\", all = {lua_literal(ids)}}}, {meta})\n"
        )

    def build_modules(self) -> Dict[str, Optional[str]]:
        modules: Dict[str, Optional[str]] = {
            "localconfig": "LOCALCONFIG_LOADED = true\n",
            "const": "CONST_LOADED = true\n",
            "buffcfg": "pg.buffCfg_tag = {}\n",
            "skillcfg": "pg.skillCfg_tag = {}\n",
        }

        config = ["ShareCfg = {}"]
        for name in self._table_names():
            config.append(f'ShareCfg["ShareCfg.{name}"] = true')

        for name, (entries, all_ids) in self._plain.items():
            modules[f"sharecfg.{name}"] = (
                _count_load(f"sharecfg.{name}")
                + self._shell(name, list(entries), all_ids, "confHX")
                + f"pg.base.{name} = {lua_literal(entries)}\n"
            )

        for name, (entries, all_ids) in self._direct.items():
            config.append(f"cs.{name} = {lua_literal({k: True for k in entries})}")
            modules[f"sharecfg.{name}"] = (
                _count_load(f"sharecfg.{name}")
                + self._shell(name, list(entries), all_ids, "confMT")
            )
            modules[f"sharecfgdata.{name}"] = (
                _count_load(f"sharecfgdata.{name}")
                + f"pg.base = pg.base or {{}}\npg.base.{name} = {lua_literal(entries)}\n"
            )

        for name, (folder, parts, all_ids) in self._subfolder.items():
            part_names = list(parts)
            indexs = {}
            for position, part in enumerate(part_names, start=1):
                for key in parts[part]:
                    indexs[key] = position
            config.append(
                f"cs.{name} = {{subFolderName = \"{folder}\", "
                f"subList = {lua_literal(part_names)}, indexs = {lua_literal(indexs)}}}"
            )
            all_keys = [k for part in parts.values() for k in part]
            modules[f"sharecfg.{name}"] = (
                _count_load(f"sharecfg.{name}")
                + self._shell(name, all_keys, all_ids, "confSP")
            )
            for part, entries in parts.items():
                modules[f"sharecfg.{folder}.{part}"] = (
                    _count_load(f"sharecfg.{folder}.{part}")
                    + f"pg.base = pg.base or {{}}\npg.base.{part} = {lua_literal(entries)}\n"
                )

        modules["config"] = "\n".join(config) + "\n"
        modules.update(self._modules)
        return modules

    def write(self, subdir: Optional[str] = None) -> Path:
        """Write the scripts (optionally into a subdirectory) and return the root."""
        target = self.path / subdir if subdir else self.path
        self.path.mkdir(parents=True, exist_ok=True)
        for dotted, source in self.build_modules().items():
            if source is None:
                continue
            file_path = target.joinpath(*dotted.split(".")).with_suffix(".lua")
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(source, encoding="utf-8")
        return self.path


# =============================================================================
# GAME DATA HELPERS
# =============================================================================

def ship_template(ship_id: int, group: int, **fields) -> Dict[str, Any]:
    data = {
        "id": ship_id,
        "group_type": group,
        "strengthen_id": ship_id,
        "star_max": 5,
        "oil_at_end": 10,
        "buff_list": [1001],
        "buff_list_display": [1001],
        "hide_buff_list": [],
        "equip_1": [1],
        "equip_2": [2],
        "equip_3": [6],
        "equip_4": [10],
        "equip_5": [10],
    }
    data.update(fields)
    return data


def ship_statistics(ship_id: int, name: str, skin_id: int, **fields) -> Dict[str, Any]:
    # attrs: hp fp trp aa avi rld - acc eva spd lck asw
    data = {
        "id": ship_id,
        "name": name,
        "rarity": 4,
        "nationality": 1,
        "type": 1,
        "armor_type": 1,
        "attrs": [1000, 50, 200, 100, 0, 60, 0, 80, 70, 40, 0, 90],
        "attrs_growth": [30000, 2000, 8000, 4000, 0, 2500, 0, 3000, 2800, 0, 0, 3500],
        "attrs_growth_extra": [1000, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
        "base_list": [1, 2, 1],
        "parallel_max": [1, 1, 1],
        "preload_count": [0, 0, 0],
        "equipment_proficiency": [1.0, 1.2, 1.0],
        "oxy_max": 0,
        "ammo": 3,
        "skin_id": skin_id,
    }
    data.update(fields)
    return data


def standard_tables(root: LuaRoot, ship_name: str = "{namecode:12}",
                    extra_equips: Optional[Dict[int, Any]] = None) -> LuaRoot:
    """
    A small but complete data revision:

    ships   10101 (destroyer, normal enhance, mlb 101014, retrofit id 101019)
            20202 (submarine, META enhance)
            30303 (battleship, research, main gun fired 3x)
            40404 (no max limit break member)
            505051 listed but missing; 900001 placeholder
    equips  2000 <- 2100 <- 2200 inheritance chain, 3001 <-> 3002 cycle, 3003 -> missing base
    skins   101010, 202020 (part 1), 303030 (part 2); words for 101010
    """
    root.plain("ship_data_template", {
        101011: ship_template(101011, 10101),
        101014: ship_template(101014, 10101, buff_list=[1001, 9999], buff_list_display=[1001]),
        101019: ship_template(101019, 10101),
        202024: ship_template(202024, 20202, oil_at_end=6,
                              buff_list=[1001], buff_list_display=[1001, 1002]),
        303034: ship_template(303034, 30303, hide_buff_list=[2]),
        404049: ship_template(404049, 40404),
    }, all_ids=[101011, 101014, 101019, 202024, 303034, 404049, 505051, 900001])

    root.direct("ship_data_statistics", {
        101014: ship_statistics(101014, ship_name, 101010),
        202024: ship_statistics(202024, "U-81", 202020, type=8, nationality=4, rarity=5,
                                armor_type=1, oxy_max=140),
        303034: ship_statistics(303034, "Monarch", 303030, type=5, nationality=2, rarity=5,
                                armor_type=3, base_list=[2, 1, 1]),
    })

    root.plain("ship_data_strengthen", {101014: {"durability": [10, 20, 30, 40, 50]}})
    root.plain("ship_data_blueprint", {303034: {"strengthen_effect": [], "fate_strengthen": []}})
    root.plain("ship_strengthen_meta", {202024: {"repair_cannon": []}})

    root.plain("skill_data_template", {
        1001: {
            "name": "Skill A",
            "type": 1,
            "desc": "Increases FP by $1 and TRP by $2.",
            "desc_add": [[["5%"], ["15%"]], [["1"], ["3"]]],
        },
        1002: {"name": "Skill B", "desc": "Nothing else."},
    })

    equips = {
        2000: {"name": "<[torp]> Mk1", "type": 5, "nationality": 1, "rarity": 3,
               "weapon_id": [20000], "attribute_1": "torpedo", "value_1": 10,
               "descrip": "Fires torpedoes.", "skill_id": [1002]},
        2100: {"base": 2000, "name": "Improved <[torp]>"},
        2200: {"base": 2100, "rarity": 4},
        3001: {"base": 3002, "name": "Loop A"},
        3002: {"base": 3001, "name": "Loop B"},
        3003: {"base": 9999, "name": "Orphan"},
    }
    equips.update(extra_equips or {})
    root.plain("equip_data_statistics", equips)

    root.subfolder("ship_skin_template", "skins", {
        "ship_skin_template_1": {
            101010: {"name": "{namecode:12}", "desc": "Default outfit", "painting": "Enterprise",
                     "ship_group": 10101, "no_showing": 0},
            202020: {"name": "U-81", "desc": "", "painting": "U81", "ship_group": 20202},
        },
        "ship_skin_template_2": {
            303030: {"name": "Monarch", "desc": "", "painting": "Monarch", "ship_group": 30303,
                     "no_showing": 1},
        },
    })

    root.plain("ship_skin_words", {
        101010: {
            "main": "First line||nil|Second line",
            "login": "Hello, Commander.",
            "profile": "",
            "touch2": "Not there!",
            "feeling3": "Glad to serve.",
            "couple_encourage": [
                [[20202, 30303], 2, "Fleet together!"],
                [[1], 3, "Eagles, with me!", 3],
            ],
        },
    })

    root.plain("name_code", {12: {"name": "Enterprise"}})
    root.plain("equip_data_code", {"torp": {"text": "Torpedo"}})
    return root


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's environment out of the runs."""
    for name in ("AL_DATA_PATH", "AL_SOURCE_ROOTS", "AL_BUNDLE_ROOT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def lua_root(tmp_path):
    """Factory: lua_root("EN") -> empty LuaRoot under tmp_path."""
    def _make(name: str = "root") -> LuaRoot:
        return LuaRoot(tmp_path / name)
    return _make


@pytest.fixture
def standard_root(lua_root) -> Path:
    """Path of a written standard source root."""
    return standard_tables(lua_root("EN")).write()


@pytest.fixture
def session(standard_root):
    """Started session on the standard root."""
    with ScriptSession(standard_root) as s:
        yield s
