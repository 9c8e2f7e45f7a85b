"""
Domain Records

Typed records produced by the resolver, one dataclass per entity kind, plus the
per-root result that carries them to the merge engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from alcollector.resolver.converters import (
    CoupleCondition,
    EnhanceKind,
    EquipKind,
    EquipRarity,
    Faction,
    HullType,
    ShipArmor,
    ShipRarity,
    SkillCategory,
    StatKind,
)


# Stats are reported at the level cap
MAX_LEVEL = 125

# Growth past level 100 uses the extra growth values
EXTRA_GROWTH_FROM = 100


class EntityType(Enum):
    SHIP = "ship"
    EQUIP = "equip"
    SKIN = "skin"


@dataclass(frozen=True)
class EntityKey:
    """Unique identity of a record in the merged dataset."""
    entity_type: EntityType
    id: int

    def sort_key(self):
        return (self.entity_type.value, self.id)

    def __str__(self):
        return f"{self.entity_type.value}:{self.id}"


@dataclass(frozen=True)
class SourceRoot:
    """A directory of scripts for one data revision."""
    path: Path
    name: str
    load_order: int  # position in the caller's list, 0 = highest priority


class DiagnosticKind(Enum):
    NOT_FOUND = "not_found"
    INVALID = "invalid"


@dataclass
class RecordDiagnostic:
    """
    A record that could not be produced for one root.

    record_id is the script table id when it differs from key.id (ship
    templates report under their group).
    """
    key: EntityKey
    kind: DiagnosticKind
    message: str
    record_id: Optional[Any] = None

    def __repr__(self):
        source = f" (template {self.record_id})" if self.record_id is not None else ""
        return f"RecordDiagnostic({self.key}{source} {self.kind.value}: {self.message})"


# =============================================================================
# Ships
# =============================================================================

@dataclass
class ShipStat:
    """A growing stat: level 1 base plus per-level growth (in thousandths)."""
    base: float
    growth: float = 0.0
    growth_extra: float = 0.0

    def at_level(self, level: int = MAX_LEVEL) -> float:
        extra_levels = max(level - EXTRA_GROWTH_FROM, 0)
        return self.base + (self.growth * (level - 1) + self.growth_extra * extra_levels) / 1000

    def to_dict(self) -> Dict[str, float]:
        return {"base": self.base, "growth": self.growth, "growth_extra": self.growth_extra}


@dataclass
class ShipStatBlock:
    hp: ShipStat
    fp: ShipStat
    trp: ShipStat
    aa: ShipStat
    avi: ShipStat
    rld: ShipStat
    acc: ShipStat
    eva: ShipStat
    asw: ShipStat
    spd: float
    lck: float
    armor: ShipArmor
    cost: int
    oxy: int
    amo: int

    GROWING = ("hp", "fp", "trp", "aa", "avi", "rld", "acc", "eva", "asw")

    def at_level(self, level: int = MAX_LEVEL) -> Dict[str, float]:
        """Stat values at a level; speed and luck do not grow."""
        values = {name: getattr(self, name).at_level(level) for name in self.GROWING}
        values["spd"] = self.spd
        values["lck"] = self.lck
        return values

    def to_dict(self) -> Dict[str, Any]:
        result = {name: getattr(self, name).to_dict() for name in self.GROWING}
        result.update({
            "spd": self.spd,
            "lck": self.lck,
            "armor": self.armor.value,
            "cost": self.cost,
            "oxy": self.oxy,
            "amo": self.amo,
        })
        return result


@dataclass
class EquipWeaponMount:
    efficiency: float
    mounts: int
    parallel: int
    preload: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "efficiency": self.efficiency,
            "mounts": self.mounts,
            "parallel": self.parallel,
            "preload": self.preload,
        }


@dataclass
class EquipSlot:
    allowed: List[EquipKind]
    mount: Optional[EquipWeaponMount] = None  # weapon slots only

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"allowed": [k.value for k in self.allowed]}
        if self.mount is not None:
            result["mount"] = self.mount.to_dict()
        return result


@dataclass
class Skill:
    buff_id: int
    name: str
    description: str
    category: SkillCategory = SkillCategory.SUPPORT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "buff_id": self.buff_id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
        }


@dataclass
class ShipData:
    group_id: int
    name: str
    rarity: ShipRarity
    faction: Faction
    hull_type: HullType
    stars: int
    enhance_kind: EnhanceKind
    stats: ShipStatBlock
    default_skin_id: int
    equip_slots: List[EquipSlot] = field(default_factory=list)
    skills: List[Skill] = field(default_factory=list)
    member_ids: List[int] = field(default_factory=list)  # template ids of the group
    skin_ids: List[int] = field(default_factory=list)

    @property
    def key(self) -> EntityKey:
        return EntityKey(EntityType.SHIP, self.group_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_id": self.group_id,
            "name": self.name,
            "rarity": self.rarity.value,
            "faction": self.faction.value,
            "hull_type": self.hull_type.value,
            "stars": self.stars,
            "enhance_kind": self.enhance_kind.value,
            "stats": self.stats.to_dict(),
            "default_skin_id": self.default_skin_id,
            "equip_slots": [s.to_dict() for s in self.equip_slots],
            "skills": [s.to_dict() for s in self.skills],
            "member_ids": list(self.member_ids),
            "skin_ids": list(self.skin_ids),
        }


# =============================================================================
# Equipment
# =============================================================================

@dataclass
class EquipStatBonus:
    stat_kind: StatKind
    amount: float

    def to_dict(self) -> Dict[str, Any]:
        return {"stat_kind": self.stat_kind.value, "amount": self.amount}


@dataclass
class EquipData:
    equip_id: int
    name: str
    description: str
    kind: EquipKind
    faction: Faction
    rarity: EquipRarity
    weapon_ids: List[int] = field(default_factory=list)
    skills: List[Skill] = field(default_factory=list)
    stat_bonuses: List[EquipStatBonus] = field(default_factory=list)

    @property
    def key(self) -> EntityKey:
        return EntityKey(EntityType.EQUIP, self.equip_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "equip_id": self.equip_id,
            "name": self.name,
            "description": self.description,
            "kind": self.kind.value,
            "faction": self.faction.value,
            "rarity": self.rarity.value,
            "weapon_ids": list(self.weapon_ids),
            "skills": [s.to_dict() for s in self.skills],
            "stat_bonuses": [b.to_dict() for b in self.stat_bonuses],
        }


# =============================================================================
# Skins
# =============================================================================

@dataclass
class SkinCoupleLine:
    """A line spoken when enough matching ships share the fleet."""
    amount: int
    line: str
    condition: CoupleCondition
    filter: List[Any] = field(default_factory=list)  # group ids, or enums for the condition

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "line": self.line,
            "condition": self.condition.value,
            "filter": [f.value if isinstance(f, Enum) else f for f in self.filter],
        }


@dataclass
class SkinWords:
    """Dialogue lines of a skin. Empty lines are stored as None."""
    description: Optional[str] = None
    introduction: Optional[str] = None
    acquisition: Optional[str] = None
    login: Optional[str] = None
    details: Optional[str] = None
    main_screen: List[str] = field(default_factory=list)
    touch: Optional[str] = None
    special_touch: Optional[str] = None
    rub: Optional[str] = None
    mission_reminder: Optional[str] = None
    mission_complete: Optional[str] = None
    mail_reminder: Optional[str] = None
    return_to_port: Optional[str] = None
    commission_complete: Optional[str] = None
    enhance: Optional[str] = None
    flagship_fight: Optional[str] = None
    victory: Optional[str] = None
    defeat: Optional[str] = None
    skill: Optional[str] = None
    low_health: Optional[str] = None
    disappointed: Optional[str] = None
    stranger: Optional[str] = None
    friendly: Optional[str] = None
    crush: Optional[str] = None
    love: Optional[str] = None
    oath: Optional[str] = None
    couple_encourage: List[SkinCoupleLine] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = {k: v for k, v in self.__dict__.items()
                  if k != "couple_encourage" and v not in (None, [])}
        if self.couple_encourage:
            result["couple_encourage"] = [c.to_dict() for c in self.couple_encourage]
        return result


@dataclass
class SkinData:
    skin_id: int
    name: str
    description: str
    image_key: str  # painting name, also the bundle file name
    ship_group: int
    hidden: bool = False
    words: Optional[SkinWords] = None

    @property
    def key(self) -> EntityKey:
        return EntityKey(EntityType.SKIN, self.skin_id)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "skin_id": self.skin_id,
            "name": self.name,
            "description": self.description,
            "image_key": self.image_key,
            "ship_group": self.ship_group,
            "hidden": self.hidden,
        }
        if self.words is not None:
            result["words"] = self.words.to_dict()
        return result


# =============================================================================
# Per-root result
# =============================================================================

@dataclass
class RootResult:
    """Everything one source root produced, in enumeration order."""
    source: SourceRoot
    records: Dict[EntityKey, Any] = field(default_factory=dict)
    diagnostics: List[RecordDiagnostic] = field(default_factory=list)
    loaded_modules: List[str] = field(default_factory=list)

    def add(self, record: Any) -> None:
        self.records[record.key] = record

    def diagnose(self, key: EntityKey, kind: DiagnosticKind, message: str,
                 record_id: Optional[Any] = None) -> None:
        self.diagnostics.append(RecordDiagnostic(key, kind, message, record_id))

    @property
    def record_count(self) -> int:
        return len(self.records)

    def __repr__(self):
        return (f"RootResult({self.source.name}: {self.record_count} records, "
                f"{len(self.diagnostics)} diagnostics)")
