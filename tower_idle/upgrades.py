"""
Tower Idle - Upgrades
=====================
Closed catalogs for the two upgrade shops.

Merchant (gold):
    Cost = floor(base x 1.5^L), then discounted by the price discount upgrade.
    Reset on reincarnation.

Reincarnation (stones):
    Cost = floor(base x 1.2^L), never discounted. Kept across reincarnation.
    Item persistence has fixed costs for its three levels.

Each shop is an Enum of keys plus a fixed-field dataclass of levels, so an
unknown key cannot exist at runtime.
"""

import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from .core.constants import CRIT_RATE_MAX_LEVEL, ActiveSkill, EquipmentRank, EquipmentType
from .core.numbers import floor_int, safe_mul, scaled_pow


# =============================================================================
# KEYS
# =============================================================================

class MerchantUpgrade(Enum):
    """Gold-purchased upgrades, in auto-merchant purchase order."""
    ATTACK_BONUS = "attack_bonus"
    CRIT_DAMAGE = "crit_damage"
    CRIT_RATE = "crit_rate"
    WEAPON_BOOST = "weapon_boost"
    HELM_BOOST = "helm_boost"
    ARMOR_BOOST = "armor_boost"
    SHIELD_BOOST = "shield_boost"
    GIANT_KILLING = "giant_killing"


class ReincarnationUpgrade(Enum):
    """Stone-purchased upgrades."""
    XP_BOOST = "xp_boost"
    GOLD_BOOST = "gold_boost"
    STONE_BOOST = "stone_boost"
    START_FLOOR = "start_floor"
    AUTO_PROMOTE = "auto_promote"
    AUTO_EQUIP = "auto_equip"
    AUTO_MERCHANT = "auto_merchant"
    ITEM_FILTER = "item_filter"
    FARMING = "farming"
    AUTO_ENHANCE = "auto_enhance"
    ITEM_PERSISTENCE = "item_persistence"
    BASE_ATTACK_BOOST = "base_attack_boost"
    ENEMY_HP_DOWN = "enemy_hp_down"
    SKILL_DAMAGE_BOOST = "skill_damage_boost"
    PRICE_DISCOUNT = "price_discount"
    CONCENTRATION = "concentration"
    VITAL_SPOT = "vital_spot"
    HYPER_SPEED = "hyper_speed"
    AWAKENING = "awakening"


SLOT_BOOSTS: Dict[EquipmentType, MerchantUpgrade] = {
    EquipmentType.WEAPON: MerchantUpgrade.WEAPON_BOOST,
    EquipmentType.HELM: MerchantUpgrade.HELM_BOOST,
    EquipmentType.ARMOR: MerchantUpgrade.ARMOR_BOOST,
    EquipmentType.SHIELD: MerchantUpgrade.SHIELD_BOOST,
}

ACTIVE_SKILL_UPGRADES: Dict[ActiveSkill, ReincarnationUpgrade] = {
    ActiveSkill.CONCENTRATION: ReincarnationUpgrade.CONCENTRATION,
    ActiveSkill.VITAL_SPOT: ReincarnationUpgrade.VITAL_SPOT,
    ActiveSkill.HYPER_SPEED: ReincarnationUpgrade.HYPER_SPEED,
    ActiveSkill.AWAKENING: ReincarnationUpgrade.AWAKENING,
}


# =============================================================================
# CATALOGS
# =============================================================================

class UpgradeInfo(NamedTuple):
    name: str
    base_cost: float
    description: str
    max_level: Optional[int] = None


MERCHANT_CATALOG: Dict[MerchantUpgrade, UpgradeInfo] = {
    MerchantUpgrade.ATTACK_BONUS: UpgradeInfo("Attack Bonus", 1e3, "+L(L+1) x 10 attack"),
    MerchantUpgrade.CRIT_DAMAGE: UpgradeInfo("Crit Damage", 1e7, "+L(L+1) x 2% crit damage"),
    MerchantUpgrade.CRIT_RATE: UpgradeInfo("Crit Rate", 1e10, "+1% crit rate per level", CRIT_RATE_MAX_LEVEL),
    MerchantUpgrade.WEAPON_BOOST: UpgradeInfo("Weapon Boost", 1e11, "+L(L+1)% weapon power"),
    MerchantUpgrade.HELM_BOOST: UpgradeInfo("Helm Boost", 1e14, "+L(L+1)% helm power"),
    MerchantUpgrade.ARMOR_BOOST: UpgradeInfo("Armor Boost", 1e17, "+L(L+1)% armor power"),
    MerchantUpgrade.SHIELD_BOOST: UpgradeInfo("Shield Boost", 1e23, "+L(L+1)% shield power"),
    MerchantUpgrade.GIANT_KILLING: UpgradeInfo("Giant Killing", 1e32, "+2% damage to bosses per level"),
}

REINCARNATION_CATALOG: Dict[ReincarnationUpgrade, UpgradeInfo] = {
    ReincarnationUpgrade.XP_BOOST: UpgradeInfo("XP Boost", 100, "+L(L+1)% XP"),
    ReincarnationUpgrade.GOLD_BOOST: UpgradeInfo("Gold Boost", 100, "+L(L+1)% gold"),
    ReincarnationUpgrade.STONE_BOOST: UpgradeInfo("Stone Boost", 500, "+L(L+1)% reincarnation stones"),
    ReincarnationUpgrade.START_FLOOR: UpgradeInfo("Start Floor", 500, "Start 100 floors higher per level"),
    ReincarnationUpgrade.AUTO_PROMOTE: UpgradeInfo("Auto Promote", 5000, "Change job automatically", 1),
    ReincarnationUpgrade.AUTO_EQUIP: UpgradeInfo("Auto Equip", 5000, "Equip stronger drops automatically", 1),
    ReincarnationUpgrade.AUTO_MERCHANT: UpgradeInfo("Auto Merchant", 1e7, "Buy merchant upgrades automatically", 1),
    ReincarnationUpgrade.ITEM_FILTER: UpgradeInfo("Item Filter", 1e6, "Choose which slots can drop", 1),
    ReincarnationUpgrade.FARMING: UpgradeInfo("Farming", 1e8, "Loop a cleared 100-floor range", 1),
    ReincarnationUpgrade.AUTO_ENHANCE: UpgradeInfo("Auto Enhance", 1e7, "Synthesize drops automatically", 1),
    ReincarnationUpgrade.ITEM_PERSISTENCE: UpgradeInfo("Item Persistence", 1e7, "Keep B/A/S items on reincarnation", 3),
    ReincarnationUpgrade.BASE_ATTACK_BOOST: UpgradeInfo("Base Attack Boost", 1000, "+L(L+1) x 50 attack"),
    ReincarnationUpgrade.ENEMY_HP_DOWN: UpgradeInfo("Enemy HP Down", 1000, "-L(L+1)/2% enemy HP (max 99%)"),
    ReincarnationUpgrade.SKILL_DAMAGE_BOOST: UpgradeInfo("Skill Damage Boost", 2000, "+L(L+1) x 5% skill damage"),
    ReincarnationUpgrade.PRICE_DISCOUNT: UpgradeInfo("Price Discount", 1000, "-L(L+1)/2% merchant prices (max 99%)"),
    ReincarnationUpgrade.CONCENTRATION: UpgradeInfo("Concentration", 2e7, "Active: +30% skill trigger"),
    ReincarnationUpgrade.VITAL_SPOT: UpgradeInfo("Vital Spot", 2e7, "Active: +20% crit rate"),
    ReincarnationUpgrade.HYPER_SPEED: UpgradeInfo("Hyper Speed", 5e7, "Active: 10 attacks per second"),
    ReincarnationUpgrade.AWAKENING: UpgradeInfo("Awakening", 1e9, "Active: x2 attack, +25% crit, +15% trigger"),
}

ITEM_PERSISTENCE_COSTS = [1e7, 1e9, 1e11]

MERCHANT_COST_GROWTH = 1.5
REINCARNATION_COST_GROWTH = 1.2
MAX_PERCENT_REDUCTION = 99


# =============================================================================
# LEVEL RECORDS
# =============================================================================

class _LevelRecord:
    """Shared helpers for fixed-field upgrade level records."""

    def level(self, key: Enum) -> int:
        return getattr(self, key.value)

    def with_level(self, key: Enum, level: int):
        return replace(self, **{key.value: max(0, int(level))})

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[dict]):
        """Missing keys default to 0, unknown keys are ignored."""
        data = data or {}
        values = {}
        for f in fields(cls):
            try:
                values[f.name] = max(0, int(data.get(f.name, 0) or 0))
            except (TypeError, ValueError):
                values[f.name] = 0
        return cls(**values)


@dataclass(frozen=True)
class MerchantUpgrades(_LevelRecord):
    attack_bonus: int = 0
    crit_damage: int = 0
    crit_rate: int = 0
    weapon_boost: int = 0
    helm_boost: int = 0
    armor_boost: int = 0
    shield_boost: int = 0
    giant_killing: int = 0


@dataclass(frozen=True)
class ReincarnationUpgrades(_LevelRecord):
    xp_boost: int = 0
    gold_boost: int = 0
    stone_boost: int = 0
    start_floor: int = 0
    auto_promote: int = 0
    auto_equip: int = 0
    auto_merchant: int = 0
    item_filter: int = 0
    farming: int = 0
    auto_enhance: int = 0
    item_persistence: int = 0
    base_attack_boost: int = 0
    enemy_hp_down: int = 0
    skill_damage_boost: int = 0
    price_discount: int = 0
    concentration: int = 0
    vital_spot: int = 0
    hyper_speed: int = 0
    awakening: int = 0


# =============================================================================
# COSTS
# =============================================================================

def get_percent_reduction(level: int) -> float:
    """min(99, L(L+1)/2) percent. Used by price discount and enemy HP down."""
    return min(float(MAX_PERCENT_REDUCTION), level * (level + 1) / 2)


def apply_discount(price: int, discount_level: int) -> int:
    factor = 1 - get_percent_reduction(discount_level) / 100
    return floor_int(safe_mul(price, factor))


def merchant_upgrade_cost(key: MerchantUpgrade, level: int, discount_level: int = 0) -> int:
    """
    Gold cost of the next merchant level.

    Args:
        key: Upgrade
        level: Current level
        discount_level: Price discount upgrade level
    """
    base = MERCHANT_CATALOG[key].base_cost
    price = floor_int(safe_mul(base, scaled_pow(MERCHANT_COST_GROWTH, level)))
    return apply_discount(price, discount_level)


def reincarnation_upgrade_cost(key: ReincarnationUpgrade, level: int) -> float:
    """
    Stone cost of the next reincarnation level.

    Returns math.inf once the upgrade is maxed.
    """
    if key == ReincarnationUpgrade.ITEM_PERSISTENCE:
        if level < len(ITEM_PERSISTENCE_COSTS):
            return int(ITEM_PERSISTENCE_COSTS[level])
        return math.inf
    if is_reincarnation_maxed(key, level):
        return math.inf
    base = REINCARNATION_CATALOG[key].base_cost
    return floor_int(safe_mul(base, scaled_pow(REINCARNATION_COST_GROWTH, level)))


def is_merchant_maxed(key: MerchantUpgrade, level: int) -> bool:
    max_level = MERCHANT_CATALOG[key].max_level
    return max_level is not None and level >= max_level


def is_reincarnation_maxed(key: ReincarnationUpgrade, level: int) -> bool:
    """
    One-time upgrades max at 1, item persistence at 3. Price discount and
    enemy HP down stop once their reduction reaches 99%.
    """
    max_level = REINCARNATION_CATALOG[key].max_level
    if max_level is not None and level >= max_level:
        return True
    if key in (ReincarnationUpgrade.PRICE_DISCOUNT, ReincarnationUpgrade.ENEMY_HP_DOWN):
        return get_percent_reduction(level) >= MAX_PERCENT_REDUCTION
    return False


def get_persistence_ranks(level: int) -> List[EquipmentRank]:
    """Ranks kept through reincarnation: B at level 1, plus A at 2, plus S at 3."""
    return [EquipmentRank.B, EquipmentRank.A, EquipmentRank.S][:max(0, min(3, level))]


def list_one_time_upgrades() -> List[ReincarnationUpgrade]:
    return [key for key, info in REINCARNATION_CATALOG.items() if info.max_level == 1]
