"""
Tower Idle - Drop Generator
===========================
Procedural equipment drops.

Normal drops are D or C rank at +0..+2. The odds improve linearly across a
500-floor tier:

    Progress 0.0:  D 98 / C 2     +0 90 / +1 9  / +2 1
    Progress 1.0:  D 40 / C 60    +0 50 / +1 40 / +2 10

Super floor bosses (every 500th floor) also roll a 0.1% chance for an A+0
item that skips the weights entirely.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence

from .core.constants import (
    DROP_CHANCE,
    EQUIPMENT_SLOTS,
    RARE_DROP_CHANCE,
    EquipmentRank,
    EquipmentType,
)
from .core.scaling import get_tier, get_tier_progress
from .equipment import Equipment

logger = logging.getLogger(__name__)

RANK_WEIGHTS_START = {EquipmentRank.D: 98.0, EquipmentRank.C: 2.0}
RANK_WEIGHTS_END = {EquipmentRank.D: 40.0, EquipmentRank.C: 60.0}

PLUS_WEIGHTS_START = {0: 90.0, 1: 9.0, 2: 1.0}
PLUS_WEIGHTS_END = {0: 50.0, 1: 40.0, 2: 10.0}


def lerp(start: float, end: float, progress: float) -> float:
    return start + (end - start) * progress


def interpolate_weights(start: Dict, end: Dict, progress: float) -> Dict:
    """Linearly interpolate two weight tables with the same keys."""
    return {key: lerp(start[key], end[key], progress) for key in start}


def pick_weighted(weights: Dict, roll: float):
    """
    Pick a key from a weight table.

    Args:
        weights: Ordered key -> weight
        roll: Uniform value in [0, 1)
    """
    target = roll * sum(weights.values())
    cumulative = 0.0
    last = None
    for key, weight in weights.items():
        cumulative += weight
        last = key
        if target < cumulative:
            return key
    return last


def get_drop_weights(floor: int) -> Dict[str, Dict]:
    """Rank and plus weights for a floor, for display."""
    progress = get_tier_progress(floor)
    return {
        'rank': interpolate_weights(RANK_WEIGHTS_START, RANK_WEIGHTS_END, progress),
        'plus': interpolate_weights(PLUS_WEIGHTS_START, PLUS_WEIGHTS_END, progress),
    }


def get_available_slots(
    item_filter_level: int,
    drop_preferences: Optional[Dict[EquipmentType, bool]],
) -> List[EquipmentType]:
    """
    Slots a drop may land in.

    Preferences only apply once the item filter upgrade is owned. A slot
    missing from the preference map counts as enabled.
    """
    if item_filter_level <= 0 or not drop_preferences:
        return list(EQUIPMENT_SLOTS)
    return [slot for slot in EQUIPMENT_SLOTS if drop_preferences.get(slot, True)]


def generate_drop(
    floor: int,
    item_filter_level: int = 0,
    drop_preferences: Optional[Dict[EquipmentType, bool]] = None,
    is_boss_kill: bool = False,
    force_drop: bool = False,
    allow_rare_rank: bool = False,
    rng=random,
) -> Optional[Equipment]:
    """
    Roll a drop for a kill.

    Args:
        floor: Floor the enemy was on
        item_filter_level: Item filter upgrade level (enables preferences)
        drop_preferences: Slot -> enabled
        is_boss_kill: Kill was a boss (informational)
        force_drop: Skip the 30% drop gate
        allow_rare_rank: Roll the 0.1% A-rank path (super floor bosses)
        rng: Object with random() -> float in [0, 1)

    Returns:
        New Equipment, or None if nothing dropped or every slot is excluded
    """
    if not force_drop and rng.random() > DROP_CHANCE:
        return None

    slots = get_available_slots(item_filter_level, drop_preferences)
    if not slots:
        return None

    equipment_type = slots[min(int(rng.random() * len(slots)), len(slots) - 1)]
    tier = get_tier(floor)

    if allow_rare_rank and rng.random() < RARE_DROP_CHANCE:
        logger.debug("Rare A-rank drop on floor %d", floor)
        return Equipment.create(equipment_type, tier, EquipmentRank.A, 0)

    weights = get_drop_weights(floor)
    rank = pick_weighted(weights['rank'], rng.random())
    plus = pick_weighted(weights['plus'], rng.random())
    return Equipment.create(equipment_type, tier, rank, plus)


def get_boss_drop_plan(floor: int, is_boss: bool) -> Dict[str, object]:
    """
    How many drops a kill rolls and with which flags.

    Boss kills force 10 drops, floor bosses 30, super floor bosses 50 with
    the rare A-rank path enabled.
    """
    if is_boss:
        if floor % 500 == 0:
            return {'count': 50, 'force': True, 'allow_rare': True}
        if floor % 100 == 0:
            return {'count': 30, 'force': True, 'allow_rare': False}
        if floor % 10 == 0:
            return {'count': 10, 'force': True, 'allow_rare': False}
    return {'count': 1, 'force': False, 'allow_rare': False}


def roll_drops(
    floor: int,
    is_boss: bool,
    item_filter_level: int = 0,
    drop_preferences: Optional[Dict[EquipmentType, bool]] = None,
    rng=random,
) -> Sequence[Equipment]:
    """Roll every drop for one kill."""
    plan = get_boss_drop_plan(floor, is_boss)
    drops = []
    for _ in range(plan['count']):
        drop = generate_drop(
            floor,
            item_filter_level,
            drop_preferences,
            is_boss_kill=is_boss,
            force_drop=plan['force'],
            allow_rare_rank=plan['allow_rare'],
            rng=rng,
        )
        if drop is not None:
            drops.append(drop)
    return drops
