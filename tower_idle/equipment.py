"""
Tower Idle - Equipment System
=============================
Item model, power formula, set bonus and collection bonus.

Power = floor(base_power x rank_multiplier x 2^plus)

Items are immutable. Enhancing or equipping produces a copy that keeps the
same id; the inventory list and the equipped map must hold matching copies.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from .core.constants import EquipmentRank, EquipmentType, EQUIPMENT_NAMES, MAX_PLUS
from .core.numbers import floor_int, safe_mul

logger = logging.getLogger(__name__)

Equipped = Dict[EquipmentType, 'Equipment']


# =============================================================================
# POWER FORMULA
# =============================================================================

def get_enhancement_multiplier(plus: int) -> float:
    """+0 = 1x, +1 = 2x ... +5 = 32x."""
    if plus <= 0:
        return 1.0
    return float(2 ** plus)


def calculate_item_power(base_power: float, rank: EquipmentRank, plus: int) -> int:
    """
    Calculate an item's power.

    Args:
        base_power: Tier-fixed base power (tier^2 x 5 + 10)
        rank: Item rank
        plus: Enhancement level (0-5)

    Returns:
        Power as int
    """
    return floor_int(safe_mul(base_power, rank.multiplier, get_enhancement_multiplier(plus)))


def get_base_power(tier: int) -> int:
    """Base power by tier: tier^2 x 5 + 10."""
    return tier * tier * 5 + 10


def get_item_name(equipment_type: EquipmentType, tier: int) -> str:
    names = EQUIPMENT_NAMES[equipment_type]
    return names[(tier - 1) % len(names)]


def new_item_id() -> str:
    return uuid.uuid4().hex


# =============================================================================
# EQUIPMENT
# =============================================================================

@dataclass(frozen=True)
class Equipment:
    """
    A single piece of equipment.

    power is always derived from base_power, rank and plus. Use
    with_enhancement() to change rank or plus so power stays in sync.
    """
    id: str
    name: str
    type: EquipmentType
    base_power: int
    rank: EquipmentRank
    tier: int
    plus: int = 0
    power: int = 0
    is_equipped: bool = False

    @classmethod
    def create(
        cls,
        equipment_type: EquipmentType,
        tier: int,
        rank: EquipmentRank = EquipmentRank.D,
        plus: int = 0,
        item_id: Optional[str] = None,
    ) -> 'Equipment':
        """Create a fresh item for a tier with power already computed."""
        tier = max(1, tier)
        base_power = get_base_power(tier)
        return cls(
            id=item_id or new_item_id(),
            name=get_item_name(equipment_type, tier),
            type=equipment_type,
            base_power=base_power,
            rank=rank,
            tier=tier,
            plus=plus,
            power=calculate_item_power(base_power, rank, plus),
        )

    @property
    def merge_key(self) -> tuple:
        """Items with equal keys can be synthesized together."""
        return (self.type, self.tier, self.name, self.rank, self.plus)

    @property
    def is_terminal(self) -> bool:
        """S+5 cannot be enhanced further."""
        return self.rank == EquipmentRank.S and self.plus >= MAX_PLUS

    @property
    def label(self) -> str:
        return f"[{self.rank.value}] {self.name} +{self.plus}"

    def with_enhancement(self, rank: EquipmentRank, plus: int) -> 'Equipment':
        """Copy with a new rank/plus and recomputed power."""
        return replace(
            self,
            rank=rank,
            plus=plus,
            power=calculate_item_power(self.base_power, rank, plus),
        )

    def with_equipped(self, is_equipped: bool) -> 'Equipment':
        if self.is_equipped == is_equipped:
            return self
        return replace(self, is_equipped=is_equipped)

    def enhanced(self) -> Optional['Equipment']:
        """
        Result of merging this item with an identical copy.

        +0..+4 -> +1, +5 -> next rank +0, S+5 -> None.
        """
        if self.plus < MAX_PLUS:
            return self.with_enhancement(self.rank, self.plus + 1)
        next_rank = self.rank.next_rank()
        if next_rank is None:
            return None
        return self.with_enhancement(next_rank, 0)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type.value,
            'base_power': self.base_power,
            'rank': self.rank.value,
            'tier': self.tier,
            'plus': self.plus,
            'power': self.power,
            'is_equipped': self.is_equipped,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Equipment':
        """
        Rebuild an item from saved data.

        Missing rank falls back to D. Power is recomputed so a stale saved
        value can never diverge from rank/plus.
        """
        try:
            equipment_type = EquipmentType(data.get('type', 'weapon'))
        except ValueError:
            logger.warning("Unknown equipment type %r on item %s, using weapon", data.get('type'), data.get('id'))
            equipment_type = EquipmentType.WEAPON
        try:
            rank = EquipmentRank(data.get('rank') or 'D')
        except ValueError:
            logger.warning("Unknown equipment rank %r on item %s, using D", data.get('rank'), data.get('id'))
            rank = EquipmentRank.D

        tier = max(1, int(data.get('tier', 1)))
        base_power = int(data.get('base_power', get_base_power(tier)))
        plus = max(0, min(MAX_PLUS, int(data.get('plus', 0))))
        return cls(
            id=str(data.get('id') or new_item_id()),
            name=str(data.get('name') or get_item_name(equipment_type, tier)),
            type=equipment_type,
            base_power=base_power,
            rank=rank,
            tier=tier,
            plus=plus,
            power=calculate_item_power(base_power, rank, plus),
            is_equipped=bool(data.get('is_equipped', False)),
        )


# =============================================================================
# SET BONUS
# =============================================================================

@dataclass(frozen=True)
class SetBonus:
    """Bonus from equipping several items of the same tier."""
    attack_multiplier: float = 1.0
    skill_multiplier: float = 1.0
    crit_add: float = 0.0
    active_tier: int = 0
    count: int = 0


# (pieces, attack mult, skill mult, crit add %)
SET_BONUS_TABLE = [
    (4, 1.5, 1.5, 10.0),
    (3, 1.2, 1.2, 0.0),
    (2, 1.1, 1.0, 0.0),
]


def get_set_bonus(equipped: Equipped) -> SetBonus:
    """
    Set bonus for the tier with the most equipped pieces.

    Ties go to the higher tier. Pieces from different tiers never combine.
    """
    tier_counts: Dict[int, int] = {}
    for item in equipped.values():
        if item is not None:
            tier_counts[item.tier] = tier_counts.get(item.tier, 0) + 1

    best_tier = 0
    best_count = 0
    for tier, count in tier_counts.items():
        if count > best_count or (count == best_count and tier > best_tier):
            best_tier, best_count = tier, count

    for pieces, atk_mult, skill_mult, crit_add in SET_BONUS_TABLE:
        if best_count >= pieces:
            return SetBonus(atk_mult, skill_mult, crit_add, best_tier, best_count)
    return SetBonus(active_tier=best_tier, count=best_count)


# =============================================================================
# COLLECTION BONUS
# =============================================================================

def iter_distinct_items(inventory: Iterable[Equipment], equipped: Equipped) -> List[Equipment]:
    """Inventory and equipped items deduplicated by id (equipped copy wins)."""
    by_id: Dict[str, Equipment] = {}
    for item in inventory:
        by_id[item.id] = item
    for item in equipped.values():
        if item is not None:
            by_id[item.id] = item
    return list(by_id.values())


def calculate_collection_bonus(inventory: Iterable[Equipment], equipped: Equipped) -> int:
    """floor(sum of power of every distinct item / 5)."""
    total = 0
    for item in iter_distinct_items(inventory, equipped):
        total += item.power
    return total // 5


class CollectionBonusCache:
    """
    Memoizes the collection bonus on the identity of the inventory and
    equipped objects.

    State snapshots are replace-only, so a new list/dict object is the
    signal that the contents may have changed.
    """

    def __init__(self):
        self._inventory = None
        self._equipped = None
        self._value = 0
        self.hits = 0
        self.misses = 0

    def get(self, inventory: List[Equipment], equipped: Equipped) -> int:
        if inventory is self._inventory and equipped is self._equipped:
            self.hits += 1
            return self._value
        self.misses += 1
        self._value = calculate_collection_bonus(inventory, equipped)
        self._inventory = inventory
        self._equipped = equipped
        return self._value

    def clear(self):
        self._inventory = None
        self._equipped = None
        self._value = 0


# =============================================================================
# EQUIPMENT BONUS
# =============================================================================

def calculate_equipment_bonus(equipped: Equipped, slot_boosts: Dict[EquipmentType, float]) -> float:
    """
    Sum of equipped power x (1 + slot boost).

    Args:
        equipped: Slot -> item
        slot_boosts: Slot -> boost fraction (0.06 = +6%)
    """
    total = 0.0
    for slot, item in equipped.items():
        if item is not None:
            total += safe_mul(item.power, 1 + slot_boosts.get(slot, 0.0))
    return total


def best_item_per_slot(items: Iterable[Equipment]) -> Equipped:
    """Highest-power item for each slot (first one wins on ties)."""
    best: Equipped = {}
    for item in items:
        current = best.get(item.type)
        if current is None or item.power > current.power:
            best[item.type] = item
    return best
