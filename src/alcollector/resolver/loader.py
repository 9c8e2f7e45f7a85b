"""
Record Resolver

Turns the records of one script session into typed domain records.

    RecordResolver(session, source, settings).resolve_all() -> RootResult

Per entity type, identifiers are enumerated in ascending order (from the
table's `all` list unless the caller pins them). A record that is missing
produces a NOT_FOUND diagnostic; a record whose fields are broken (bad type,
cyclic or missing base) produces an INVALID diagnostic and is skipped whole.
Neither stops the root. Script load failures propagate: they invalidate the
whole root.

Ships are assembled per group: every template id maps to a group, and the
record emitted for the group is built from its max-limit-break member.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from alcollector.resolver import converters
from alcollector.resolver.converters import CoupleCondition, EnhanceKind, TeamType
from alcollector.resolver.fields import (
    FieldError,
    read_bool,
    read_float,
    read_int,
    read_int_list,
    read_list,
    read_str,
)
from alcollector.resolver.models import (
    DiagnosticKind,
    EntityKey,
    EntityType,
    EquipData,
    EquipSlot,
    EquipStatBonus,
    EquipWeaponMount,
    RootResult,
    ShipData,
    ShipStat,
    ShipStatBlock,
    SkinCoupleLine,
    SkinData,
    SkinWords,
    Skill,
    SourceRoot,
)
from alcollector.runtime.records import RecordError, ResolvedRecord
from alcollector.runtime.session import ScriptSession

logger = logging.getLogger(__name__)


# Placeholder ships used by events; never real ships
DEFAULT_EXCLUDED_SHIP_IDS: Tuple[int, int] = (900000, 900999)

# Index of each stat in attrs / attrs_growth (1-based, as in the scripts)
STAT_INDEX = {
    "hp": 1,
    "fp": 2,
    "trp": 3,
    "aa": 4,
    "avi": 5,
    "rld": 6,
    "acc": 8,
    "eva": 9,
    "spd": 10,
    "lck": 11,
    "asw": 12,
}

# ship_data_strengthen durability order
STRENGTHEN_STATS = ("fp", "trp", "aa", "avi", "rld")

# Hidden buffs that fire the main gun again
MAIN_MOUNT_MULTIPLIERS = ((1, 2), (2, 3))

WEAPON_SLOTS = 3
EQUIP_SLOTS = 5
EQUIP_STAT_BONUSES = 3


@dataclass
class ResolverSettings:
    """Which identifiers to resolve and how."""
    excluded_ship_ids: Tuple[int, int] = DEFAULT_EXCLUDED_SHIP_IDS
    entity_types: FrozenSet[EntityType] = frozenset(EntityType)

    # Explicit identifier lists; None means "everything in the table"
    ship_ids: Optional[List[int]] = None
    equip_ids: Optional[List[int]] = None
    skin_ids: Optional[List[int]] = None

    # Overrides the script search path for every session
    script_path: Optional[str] = None

    def is_excluded_ship(self, ship_id: int) -> bool:
        low, high = self.excluded_ship_ids
        return low <= ship_id <= high


def _element(record: ResolvedRecord, key: str, values: List[Any], position: int,
             default: Optional[float] = None) -> float:
    """values[position] (1-based) as a number. Holes count as missing."""
    value = values[position - 1] if position <= len(values) else None
    if value is not None:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        raise FieldError(record.entity_type, record.index, f"{key}[{position}]",
                         f"expected number, got {value!r}")
    if default is None:
        raise FieldError(record.entity_type, record.index, f"{key}[{position}]", "missing")
    return default


class RecordResolver:
    """Produces the domain records of one source root from its session."""

    def __init__(self, session: ScriptSession, source: SourceRoot,
                 settings: Optional[ResolverSettings] = None):
        self.session = session
        self.source = source
        self.settings = settings or ResolverSettings()

    def resolve_all(self) -> RootResult:
        result = RootResult(source=self.source)
        types = self.settings.entity_types

        if EntityType.SHIP in types:
            self._resolve_ships(result)
        if EntityType.EQUIP in types:
            self._resolve_equips(result)
        if EntityType.SKIN in types:
            self._resolve_skins(result)
        if EntityType.SHIP in types and EntityType.SKIN in types:
            self._link_skins(result)

        result.loaded_modules = sorted(m for m, loaded in self.session.loaded_modules.items() if loaded)
        logger.info(f"{self.source.name}: resolved {result.record_count} records, "
                    f"{len(result.diagnostics)} diagnostics")
        return result

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require(self, entity_type: str, index: Any) -> ResolvedRecord:
        record = self.session.resolve(entity_type, index)
        if record is None:
            raise RecordError(entity_type, index, "record not found")
        return record

    def _skip(self, result: RootResult, key: EntityKey, error: RecordError,
              record_id: Optional[Any] = None) -> None:
        logger.warning(f"{self.source.name}: skipping {key}: {error}")
        result.diagnose(key, DiagnosticKind.INVALID, str(error), record_id)

    def _not_found(self, result: RootResult, key: EntityKey, table: str,
                   record_id: Optional[Any] = None) -> None:
        logger.warning(f"{self.source.name}: {key} not found in {table}")
        result.diagnose(key, DiagnosticKind.NOT_FOUND, f"no entry in {table}", record_id)

    # =========================================================================
    # Ships
    # =========================================================================

    def _resolve_ships(self, result: RootResult) -> None:
        ids = self.settings.ship_ids
        if ids is None:
            ids = self.session.entity_ids("ship_data_template")

        groups: Dict[int, List[int]] = {}
        for ship_id in sorted(ids):
            if self.settings.is_excluded_ship(ship_id):
                continue
            # Reported under the group the template id implies
            key = EntityKey(EntityType.SHIP, ship_id // 10)
            try:
                template = self.session.resolve("ship_data_template", ship_id)
                if template is None:
                    self._not_found(result, key, "ship_data_template", record_id=ship_id)
                    continue
                group_id = read_int(template, "group_type")
            except RecordError as e:
                self._skip(result, key, e, record_id=ship_id)
                continue
            groups.setdefault(group_id, []).append(ship_id)

        for group_id in sorted(groups):
            key = EntityKey(EntityType.SHIP, group_id)
            members = groups[group_id]
            mlb_limit = group_id * 10 + 4
            candidates = [i for i in members if i <= mlb_limit]
            if not candidates:
                result.diagnose(key, DiagnosticKind.INVALID,
                                f"no max limit break member (<= {mlb_limit}) among {members}")
                logger.warning(f"{self.source.name}: no max limit break member for {key}")
                continue

            try:
                ship = self.load_ship(max(candidates), members)
            except RecordError as e:
                self._skip(result, key, e)
                continue
            result.add(ship)

    def load_ship(self, ship_id: int, member_ids: Optional[List[int]] = None) -> ShipData:
        """Build a ship from template + statistics of one template id."""
        template = self._require("ship_data_template", ship_id)
        statistics = self._require("ship_data_statistics", ship_id)

        attrs = read_list(statistics, "attrs")
        growth = read_list(statistics, "attrs_growth")
        growth_extra = read_list(statistics, "attrs_growth_extra", [])

        def stat(name: str) -> ShipStat:
            i = STAT_INDEX[name]
            return ShipStat(
                base=_element(statistics, "attrs", attrs, i),
                growth=_element(statistics, "attrs_growth", growth, i),
                growth_extra=_element(statistics, "attrs_growth_extra", growth_extra, i, 0),
            )

        hull_type = converters.to_hull_type(read_int(statistics, "type"))
        cost = read_int(template, "oil_at_end")
        if hull_type.team_type is TeamType.SUBMARINE:
            # Submarine fleet costs are stored one higher than displayed
            cost -= 1

        stats = ShipStatBlock(
            hp=stat("hp"),
            fp=stat("fp"),
            trp=stat("trp"),
            aa=stat("aa"),
            avi=stat("avi"),
            rld=stat("rld"),
            acc=stat("acc"),
            eva=stat("eva"),
            asw=stat("asw"),
            spd=_element(statistics, "attrs", attrs, STAT_INDEX["spd"]),
            lck=_element(statistics, "attrs", attrs, STAT_INDEX["lck"]),
            armor=converters.to_armor(read_int(statistics, "armor_type")),
            cost=cost,
            oxy=read_int(statistics, "oxy_max"),
            amo=read_int(statistics, "ammo"),
        )

        buff_list = read_int_list(template, "buff_list")
        buff_display = read_int_list(template, "buff_list_display")
        hidden_buffs = read_int_list(template, "hide_buff_list", [])

        ship = ShipData(
            group_id=read_int(template, "group_type"),
            name=read_str(statistics, "name"),
            rarity=converters.to_rarity(read_int(statistics, "rarity")),
            faction=converters.to_faction(read_int(statistics, "nationality")),
            hull_type=hull_type,
            stars=read_int(template, "star_max"),
            enhance_kind=EnhanceKind.NORMAL,
            stats=stats,
            default_skin_id=read_int(statistics, "skin_id"),
            equip_slots=self._load_equip_slots(template, statistics, hidden_buffs),
            member_ids=sorted(member_ids) if member_ids else [ship_id],
        )

        enhance_kind = self._apply_strengthen(ship, read_int(template, "strengthen_id"))
        ship.enhance_kind = enhance_kind
        if enhance_kind is EnhanceKind.META:
            # META skill lists only agree with the display list
            ship.skills = self.load_skills(buff_display)
        else:
            ship.skills = self.load_skills([b for b in buff_list if b in buff_display])
        return ship

    def _load_equip_slots(self, template: ResolvedRecord, statistics: ResolvedRecord,
                          hidden_buffs: List[int]) -> List[EquipSlot]:
        base_list = read_list(statistics, "base_list")
        parallel_max = read_list(statistics, "parallel_max")
        preload_count = read_list(statistics, "preload_count")
        proficiency = read_list(statistics, "equipment_proficiency")

        main_mount_mult = 1
        for buff, mult in MAIN_MOUNT_MULTIPLIERS:
            if buff in hidden_buffs:
                main_mount_mult = mult
                break

        slots = []
        for n in range(1, EQUIP_SLOTS + 1):
            allowed = [converters.to_equip_kind(k) for k in read_int_list(template, f"equip_{n}")]
            mount = None
            if n <= WEAPON_SLOTS:
                mounts = int(_element(statistics, "base_list", base_list, n))
                if n == 1:
                    mounts *= main_mount_mult
                mount = EquipWeaponMount(
                    efficiency=float(_element(statistics, "equipment_proficiency", proficiency, n)),
                    mounts=mounts,
                    parallel=int(_element(statistics, "parallel_max", parallel_max, n)),
                    preload=int(_element(statistics, "preload_count", preload_count, n)),
                )
            slots.append(EquipSlot(allowed=allowed, mount=mount))
        return slots

    def _apply_strengthen(self, ship: ShipData, strengthen_id: int) -> EnhanceKind:
        """Pick the enhancement kind; normal enhancement raises base stats."""
        if self.session.resolve("ship_data_blueprint", strengthen_id) is not None:
            return EnhanceKind.RESEARCH
        if self.session.resolve("ship_strengthen_meta", strengthen_id) is not None:
            return EnhanceKind.META

        strengthen = self.session.resolve("ship_data_strengthen", strengthen_id)
        if strengthen is None:
            raise RecordError("ship_data_strengthen", strengthen_id,
                              f"no enhancement data for ship {ship.group_id}")

        durability = read_list(strengthen, "durability")
        for position, name in enumerate(STRENGTHEN_STATS, start=1):
            getattr(ship.stats, name).base += _element(strengthen, "durability", durability, position)
        return EnhanceKind.NORMAL

    def load_skills(self, skill_ids: List[int]) -> List[Skill]:
        return [self.load_skill(i) for i in skill_ids]

    def load_skill(self, skill_id: int) -> Skill:
        """Name and description, with $n placeholders filled at max level."""
        skill = self._require("skill_data_template", skill_id)
        description = read_str(skill, "desc")

        for slot, levels in enumerate(read_list(skill, "desc_add", []), start=1):
            if not isinstance(levels, list) or not levels:
                continue
            last = levels[-1]
            if isinstance(last, list) and last and isinstance(last[0], str):
                description = description.replace(f"${slot}", last[0])

        return Skill(
            buff_id=skill_id,
            name=read_str(skill, "name"),
            description=description,
            category=converters.to_skill_category(read_int(skill, "type", 0)),
        )

    # =========================================================================
    # Equipment
    # =========================================================================

    def _resolve_equips(self, result: RootResult) -> None:
        ids = self.settings.equip_ids
        if ids is None:
            ids = self.session.entity_ids("equip_data_statistics")

        for equip_id in sorted(ids):
            key = EntityKey(EntityType.EQUIP, equip_id)
            try:
                record = self.session.resolve("equip_data_statistics", equip_id)
                if record is None:
                    self._not_found(result, key, "equip_data_statistics")
                    continue
                result.add(self.load_equip(record))
            except RecordError as e:
                self._skip(result, key, e)

    def load_equip(self, record: ResolvedRecord) -> EquipData:
        bonuses = []
        for n in range(1, EQUIP_STAT_BONUSES + 1):
            attribute = read_str(record, f"attribute_{n}", None)
            if attribute is None:
                continue
            bonuses.append(EquipStatBonus(
                stat_kind=converters.to_stat_kind(attribute),
                amount=read_float(record, f"value_{n}"),
            ))

        return EquipData(
            equip_id=record.index,
            name=read_str(record, "name"),
            description=read_str(record, "descrip", ""),
            kind=converters.to_equip_kind(read_int(record, "type")),
            faction=converters.to_faction(read_int(record, "nationality")),
            rarity=converters.to_equip_rarity(read_int(record, "rarity")),
            weapon_ids=read_int_list(record, "weapon_id", []),
            skills=self.load_skills(read_int_list(record, "skill_id", [])),
            stat_bonuses=bonuses,
        )

    # =========================================================================
    # Skins
    # =========================================================================

    def _resolve_skins(self, result: RootResult) -> None:
        ids = self.settings.skin_ids
        if ids is None:
            ids = self.session.entity_ids("ship_skin_template")

        for skin_id in sorted(ids):
            key = EntityKey(EntityType.SKIN, skin_id)
            try:
                record = self.session.resolve("ship_skin_template", skin_id)
                if record is None:
                    self._not_found(result, key, "ship_skin_template")
                    continue
                result.add(self.load_skin(record))
            except RecordError as e:
                self._skip(result, key, e)

    def _link_skins(self, result: RootResult) -> None:
        """List each ship's skins (same root, by ship group) on the ship."""
        for key, record in result.records.items():
            if key.entity_type is not EntityType.SKIN:
                continue
            ship = result.records.get(EntityKey(EntityType.SHIP, record.ship_group))
            if ship is not None:
                ship.skin_ids.append(record.skin_id)

    def load_skin(self, record: ResolvedRecord) -> SkinData:
        words = self.session.resolve("ship_skin_words", record.index)
        return SkinData(
            skin_id=record.index,
            name=read_str(record, "name"),
            description=read_str(record, "desc", ""),
            image_key=read_str(record, "painting"),
            ship_group=read_int(record, "ship_group", 0),
            hidden=read_bool(record, "no_showing", False),
            words=self.load_words(words) if words is not None else None,
        )

    def load_words(self, record: ResolvedRecord) -> SkinWords:
        def line(key: str) -> Optional[str]:
            return read_str(record, key, "") or None

        couple_lines = read_list(record, "couple_encourage", [])
        return SkinWords(
            description=line("drop_descrip"),
            introduction=line("profile"),
            acquisition=line("unlock"),
            login=line("login"),
            details=line("detail"),
            main_screen=split_main_screen(line("main")),
            touch=line("touch"),
            special_touch=line("touch2"),
            rub=line("headtouch"),
            mission_reminder=line("mission"),
            mission_complete=line("mission_complete"),
            mail_reminder=line("mail"),
            return_to_port=line("home"),
            commission_complete=line("expedition"),
            enhance=line("upgrade"),
            flagship_fight=line("battle"),
            victory=line("win_mvp"),
            defeat=line("lose"),
            skill=line("skill"),
            low_health=line("hp_warning"),
            disappointed=line("feeling1"),
            stranger=line("feeling2"),
            friendly=line("feeling3"),
            crush=line("feeling4"),
            love=line("feeling5"),
            oath=line("propose"),
            couple_encourage=[
                load_couple_line(record, n, entry)
                for n, entry in enumerate(couple_lines, start=1) if entry is not None
            ],
        )


# Filter id conversion per couple condition; ship groups and illustrators stay raw
_COUPLE_FILTERS = {
    CoupleCondition.HULL_TYPE: converters.to_hull_type,
    CoupleCondition.RARITY: converters.to_rarity,
    CoupleCondition.FACTION: converters.to_faction,
}


def load_couple_line(record: ResolvedRecord, position: int, entry: Any) -> SkinCoupleLine:
    """One couple_encourage entry: {filter ids, amount, line, condition mode}."""
    field_name = f"couple_encourage[{position}]"
    if isinstance(entry, dict) and all(isinstance(k, int) for k in entry):
        entry = [entry.get(i) for i in range(1, max(entry, default=0) + 1)]
    if not isinstance(entry, list) or len(entry) < 3:
        raise FieldError(record.entity_type, record.index, field_name,
                         f"expected {{filter, amount, line[, mode]}}, got {entry!r}")

    filter_ids, amount, text = entry[0], entry[1], entry[2]
    mode = entry[3] if len(entry) > 3 else None
    if (not isinstance(filter_ids, list) or isinstance(amount, bool)
            or not isinstance(amount, (int, float)) or not isinstance(text, str)):
        raise FieldError(record.entity_type, record.index, field_name,
                         f"malformed entry {entry!r}")

    condition = converters.to_couple_condition(mode)
    convert = _COUPLE_FILTERS.get(condition)
    return SkinCoupleLine(
        amount=int(amount),
        line=text,
        condition=condition,
        filter=[convert(i) if convert else i for i in filter_ids],
    )


def split_main_screen(raw: Optional[str]) -> List[str]:
    """Main screen lines are '|' separated; empty and "nil" entries are gaps."""
    if not raw:
        return []
    return [text for text in raw.split("|") if text and text != "nil"]
