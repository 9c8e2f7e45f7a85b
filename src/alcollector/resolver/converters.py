"""
Game ID -> Domain Enum Conversions

Script tables store factions, rarities, hull types and so on as small integers
(or short strings for stat names). Unknown values never fail; they map to an
UNKNOWN member or to the default the client itself falls back to.
"""

from enum import Enum
from typing import Dict, Optional


class Faction(Enum):
    UNKNOWN = "Unknown"
    UNIVERSAL = "Universal"
    EAGLE_UNION = "Eagle Union"
    ROYAL_NAVY = "Royal Navy"
    SAKURA_EMPIRE = "Sakura Empire"
    IRON_BLOOD = "Iron Blood"
    DRAGON_EMPERY = "Dragon Empery"
    SARDEGNA_EMPIRE = "Sardegna Empire"
    NORTHERN_PARLIAMENT = "Northern Parliament"
    IRIS_LIBRE = "Iris Libre"
    VICHYA_DOMINION = "Vichya Dominion"
    TEMPESTA = "Tempesta"
    META = "META"
    SIREN = "Siren"
    COLLAB_NEPTUNIA = "Neptunia"
    COLLAB_BILIBILI = "Bilibili"
    COLLAB_UTAWARERUMONO = "Utawarerumono"
    COLLAB_KIZUNA_AI = "Kizuna AI"
    COLLAB_HOLOLIVE = "Hololive"
    COLLAB_VENUS_VACATION = "Venus Vacation"
    COLLAB_IDOLMASTER = "Idolm@ster"
    COLLAB_SSSS = "SSSS"
    COLLAB_ATELIER_RYZA = "Atelier Ryza"
    COLLAB_SENRAN_KAGURA = "Senran Kagura"


class ShipRarity(Enum):
    N = "N"
    R = "R"
    E = "E"
    SR = "SR"
    UR = "UR"


class TeamType(Enum):
    VANGUARD = "Vanguard"
    MAIN_FLEET = "Main Fleet"
    SUBMARINE = "Submarine"


class HullType(Enum):
    """Hull types by their short designation."""
    UNKNOWN = "??"
    DESTROYER = "DD"
    LIGHT_CRUISER = "CL"
    HEAVY_CRUISER = "CA"
    BATTLECRUISER = "BC"
    BATTLESHIP = "BB"
    LIGHT_CARRIER = "CVL"
    AIRCRAFT_CARRIER = "CV"
    SUBMARINE = "SS"
    AVIATION_BATTLESHIP = "BBV"
    REPAIR_SHIP = "AR"
    MONITOR = "BM"
    AVIATION_SUBMARINE = "SSV"
    LARGE_CRUISER = "CB"
    MUNITION_SHIP = "AE"
    MISSILE_DESTROYER_V = "DDG v"
    MISSILE_DESTROYER_M = "DDG m"
    FRIGATE_S = "IX s"
    FRIGATE_V = "IX v"
    FRIGATE_M = "IX m"

    @property
    def team_type(self) -> TeamType:
        return HULL_TEAM_TYPES.get(self, TeamType.VANGUARD)


class ShipArmor(Enum):
    LIGHT = "Light"
    MEDIUM = "Medium"
    HEAVY = "Heavy"


class EquipKind(Enum):
    DESTROYER_GUN = "DestroyerGun"
    LIGHT_CRUISER_GUN = "LightCruiserGun"
    HEAVY_CRUISER_GUN = "HeavyCruiserGun"
    LARGE_CRUISER_GUN = "LargeCruiserGun"
    BATTLESHIP_GUN = "BattleshipGun"
    SURFACE_TORPEDO = "SurfaceTorpedo"
    SUBMARINE_TORPEDO = "SubmarineTorpedo"
    ANTI_AIR_GUN = "AntiAirGun"
    FUZE_ANTI_AIR_GUN = "FuzeAntiAirGun"
    FIGHTER = "Fighter"
    DIVE_BOMBER = "DiveBomber"
    TORPEDO_BOMBER = "TorpedoBomber"
    SEA_PLANE = "SeaPlane"
    ANTI_SUB_WEAPON = "AntiSubWeapon"
    ANTI_SUB_AIRCRAFT = "AntiSubAircraft"
    HELICOPTER = "Helicopter"
    MISSILE = "Missile"
    CARGO = "Cargo"
    AUXILIARY = "Auxiliary"


class StatKind(Enum):
    HP = "HP"
    RLD = "RLD"
    FP = "FP"
    TRP = "TRP"
    EVA = "EVA"
    AA = "AA"
    AVI = "AVI"
    ACC = "ACC"
    ASW = "ASW"
    SPD = "SPD"
    LCK = "LCK"


class EnhanceKind(Enum):
    """How a ship is enhanced past its base stats."""

    # Feeding duplicates (ship_data_strengthen)
    NORMAL = "Normal"

    # Research ships with blueprints (ship_data_blueprint)
    RESEARCH = "Research"

    # META ships (ship_strengthen_meta)
    META = "META"


class EquipRarity(Enum):
    """Equipment rarity by star count."""
    N1 = "1* Common"
    N2 = "2* Common"
    R = "3* Rare"
    E = "4* Elite"
    SR = "5* SR"
    UR = "6* UR"


class SkillCategory(Enum):
    OFFENSE = "Offense"
    DEFENSE = "Defense"
    SUPPORT = "Support"


class CoupleCondition(Enum):
    """What the filter of a couple_encourage line matches against."""
    SHIP_GROUP = "Ship Group"
    HULL_TYPE = "Hull Type"
    RARITY = "Rarity"
    FACTION = "Faction"
    ILLUSTRATOR = "Illustrator"


HULL_TEAM_TYPES: Dict[HullType, TeamType] = {
    HullType.BATTLECRUISER: TeamType.MAIN_FLEET,
    HullType.BATTLESHIP: TeamType.MAIN_FLEET,
    HullType.LIGHT_CARRIER: TeamType.MAIN_FLEET,
    HullType.AIRCRAFT_CARRIER: TeamType.MAIN_FLEET,
    HullType.SUBMARINE: TeamType.SUBMARINE,
    HullType.AVIATION_BATTLESHIP: TeamType.MAIN_FLEET,
    HullType.REPAIR_SHIP: TeamType.MAIN_FLEET,
    HullType.MONITOR: TeamType.MAIN_FLEET,
    HullType.AVIATION_SUBMARINE: TeamType.SUBMARINE,
    HullType.MISSILE_DESTROYER_M: TeamType.MAIN_FLEET,
    HullType.FRIGATE_S: TeamType.SUBMARINE,
    HullType.FRIGATE_M: TeamType.MAIN_FLEET,
}


FACTION_IDS: Dict[int, Faction] = {
    0: Faction.UNIVERSAL,
    1: Faction.EAGLE_UNION,
    2: Faction.ROYAL_NAVY,
    3: Faction.SAKURA_EMPIRE,
    4: Faction.IRON_BLOOD,
    5: Faction.DRAGON_EMPERY,
    6: Faction.SARDEGNA_EMPIRE,
    7: Faction.NORTHERN_PARLIAMENT,
    8: Faction.IRIS_LIBRE,
    9: Faction.VICHYA_DOMINION,
    96: Faction.TEMPESTA,
    97: Faction.META,
    98: Faction.UNIVERSAL,  # Bulin
    99: Faction.SIREN,
    101: Faction.COLLAB_NEPTUNIA,
    102: Faction.COLLAB_BILIBILI,
    103: Faction.COLLAB_UTAWARERUMONO,
    104: Faction.COLLAB_KIZUNA_AI,
    105: Faction.COLLAB_HOLOLIVE,
    106: Faction.COLLAB_VENUS_VACATION,
    107: Faction.COLLAB_IDOLMASTER,
    108: Faction.COLLAB_SSSS,
    109: Faction.COLLAB_ATELIER_RYZA,
    110: Faction.COLLAB_SENRAN_KAGURA,
}

RARITY_IDS: Dict[int, ShipRarity] = {
    1: ShipRarity.N,
    2: ShipRarity.N,
    3: ShipRarity.R,
    4: ShipRarity.E,
    5: ShipRarity.SR,
    6: ShipRarity.UR,
}

HULL_TYPE_IDS: Dict[int, HullType] = {
    1: HullType.DESTROYER,
    2: HullType.LIGHT_CRUISER,
    3: HullType.HEAVY_CRUISER,
    4: HullType.BATTLECRUISER,
    5: HullType.BATTLESHIP,
    6: HullType.LIGHT_CARRIER,
    7: HullType.AIRCRAFT_CARRIER,
    8: HullType.SUBMARINE,
    10: HullType.AVIATION_BATTLESHIP,
    12: HullType.REPAIR_SHIP,
    13: HullType.MONITOR,
    17: HullType.AVIATION_SUBMARINE,
    18: HullType.LARGE_CRUISER,
    19: HullType.MUNITION_SHIP,
    20: HullType.MISSILE_DESTROYER_V,
    21: HullType.MISSILE_DESTROYER_M,
    22: HullType.FRIGATE_S,
    23: HullType.FRIGATE_V,
    24: HullType.FRIGATE_M,
}

ARMOR_IDS: Dict[int, ShipArmor] = {
    1: ShipArmor.LIGHT,
    2: ShipArmor.MEDIUM,
    3: ShipArmor.HEAVY,
}

EQUIP_KIND_IDS: Dict[int, EquipKind] = {
    1: EquipKind.DESTROYER_GUN,
    2: EquipKind.LIGHT_CRUISER_GUN,
    3: EquipKind.HEAVY_CRUISER_GUN,
    4: EquipKind.BATTLESHIP_GUN,
    5: EquipKind.SURFACE_TORPEDO,
    6: EquipKind.ANTI_AIR_GUN,
    7: EquipKind.FIGHTER,
    8: EquipKind.TORPEDO_BOMBER,
    9: EquipKind.DIVE_BOMBER,
    10: EquipKind.AUXILIARY,
    11: EquipKind.LARGE_CRUISER_GUN,
    12: EquipKind.SEA_PLANE,
    13: EquipKind.SUBMARINE_TORPEDO,
    14: EquipKind.ANTI_SUB_WEAPON,
    15: EquipKind.ANTI_SUB_AIRCRAFT,
    17: EquipKind.HELICOPTER,
    18: EquipKind.CARGO,
    20: EquipKind.MISSILE,
    21: EquipKind.FUZE_ANTI_AIR_GUN,
}

STAT_NAMES: Dict[str, StatKind] = {
    "durability": StatKind.HP,
    "cannon": StatKind.FP,
    "torpedo": StatKind.TRP,
    "antiaircraft": StatKind.AA,
    "air": StatKind.AVI,
    "reload": StatKind.RLD,
    "hit": StatKind.ACC,
    "dodge": StatKind.EVA,
    "speed": StatKind.SPD,
    "luck": StatKind.LCK,
    "antisub": StatKind.ASW,
}


def to_faction(num: int) -> Faction:
    return FACTION_IDS.get(num, Faction.UNKNOWN)


def to_rarity(num: int) -> ShipRarity:
    return RARITY_IDS.get(num, ShipRarity.N)


def to_hull_type(num: int) -> HullType:
    return HULL_TYPE_IDS.get(num, HullType.UNKNOWN)


def to_armor(num: int) -> ShipArmor:
    return ARMOR_IDS.get(num, ShipArmor.LIGHT)


def to_equip_kind(num: int) -> EquipKind:
    return EQUIP_KIND_IDS.get(num, EquipKind.AUXILIARY)


def to_stat_kind(name: str) -> StatKind:
    # The client treats unrecognized stat names as evasion
    return STAT_NAMES.get(name, StatKind.EVA)


EQUIP_RARITY_IDS: Dict[int, EquipRarity] = {
    1: EquipRarity.N1,
    2: EquipRarity.N2,
    3: EquipRarity.R,
    4: EquipRarity.E,
    5: EquipRarity.SR,
    6: EquipRarity.UR,
}

SKILL_CATEGORY_IDS: Dict[int, SkillCategory] = {
    1: SkillCategory.OFFENSE,
    2: SkillCategory.DEFENSE,
}

COUPLE_CONDITION_IDS: Dict[int, CoupleCondition] = {
    1: CoupleCondition.HULL_TYPE,
    2: CoupleCondition.RARITY,
    3: CoupleCondition.FACTION,
    4: CoupleCondition.ILLUSTRATOR,
}


def to_equip_rarity(num: int) -> EquipRarity:
    return EQUIP_RARITY_IDS.get(num, EquipRarity.N1)


def to_skill_category(num: int) -> SkillCategory:
    return SKILL_CATEGORY_IDS.get(num, SkillCategory.SUPPORT)


def to_couple_condition(num: Optional[int]) -> CoupleCondition:
    # Lines without a mode filter on ship groups
    return COUPLE_CONDITION_IDS.get(num, CoupleCondition.SHIP_GROUP)
