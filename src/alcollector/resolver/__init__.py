"""
alcollector.resolver - Record Resolver

Turns the records of a script session into typed ship, equipment and skin
records for one source root.

- RecordResolver: enumerate, resolve, build domain records, collect diagnostics
- fields: typed field readers raising FieldError
- converters: game ids -> domain enums
"""

from alcollector.resolver.converters import (
    Faction,
    ShipRarity,
    TeamType,
    HullType,
    ShipArmor,
    EquipKind,
    StatKind,
    EnhanceKind,
    EquipRarity,
    SkillCategory,
    CoupleCondition,
    to_faction,
    to_rarity,
    to_hull_type,
    to_armor,
    to_equip_kind,
    to_stat_kind,
    to_equip_rarity,
    to_skill_category,
    to_couple_condition,
)
from alcollector.resolver.fields import (
    FieldError,
    read_int,
    read_float,
    read_str,
    read_bool,
    read_list,
    read_int_list,
)
from alcollector.resolver.models import (
    EntityType,
    EntityKey,
    SourceRoot,
    DiagnosticKind,
    RecordDiagnostic,
    ShipStat,
    ShipStatBlock,
    EquipWeaponMount,
    EquipSlot,
    Skill,
    ShipData,
    EquipStatBonus,
    EquipData,
    SkinCoupleLine,
    SkinWords,
    SkinData,
    RootResult,
    MAX_LEVEL,
)
from alcollector.resolver.loader import (
    RecordResolver,
    ResolverSettings,
    DEFAULT_EXCLUDED_SHIP_IDS,
    split_main_screen,
)

__all__ = [
    # Enums
    "Faction",
    "ShipRarity",
    "TeamType",
    "HullType",
    "ShipArmor",
    "EquipKind",
    "StatKind",
    "EnhanceKind",
    "EquipRarity",
    "SkillCategory",
    "CoupleCondition",
    "to_faction",
    "to_rarity",
    "to_hull_type",
    "to_armor",
    "to_equip_kind",
    "to_stat_kind",
    "to_equip_rarity",
    "to_skill_category",
    "to_couple_condition",
    # Fields
    "FieldError",
    "read_int",
    "read_float",
    "read_str",
    "read_bool",
    "read_list",
    "read_int_list",
    # Models
    "EntityType",
    "EntityKey",
    "SourceRoot",
    "DiagnosticKind",
    "RecordDiagnostic",
    "ShipStat",
    "ShipStatBlock",
    "EquipWeaponMount",
    "EquipSlot",
    "Skill",
    "ShipData",
    "EquipStatBonus",
    "EquipData",
    "SkinCoupleLine",
    "SkinWords",
    "SkinData",
    "RootResult",
    "MAX_LEVEL",
    # Resolver
    "RecordResolver",
    "ResolverSettings",
    "DEFAULT_EXCLUDED_SHIP_IDS",
    "split_main_screen",
]
