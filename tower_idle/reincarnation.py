"""
Tower Idle - Reincarnation
==========================
The prestige reset: trade floor depth for stones and start over.

Kept across a reincarnation:
    - reincarnation stones (plus the ones earned now)
    - reincarnation upgrades
    - auto-merchant toggles and drop preferences
    - max floor reached

Everything else returns to a fresh player. With item persistence, B/A/S
items survive (by level) and are re-equipped best-per-slot when auto-equip
is owned.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional

from .core.damage import percent_boost_multiplier
from .core.scaling import calculate_reincarnation_stones, generate_enemy
from .equipment import Equipment, Equipped, best_item_per_slot, iter_distinct_items
from .settings import EngineConfig
from .state import (
    GameState,
    LogType,
    Player,
    create_log,
    new_active_skills,
    now_ms,
)
from .upgrades import get_persistence_ranks

logger = logging.getLogger(__name__)


@dataclass
class ReincarnationPreview:
    """What confirming a reincarnation right now would do."""
    stones_gained: int
    max_start_floor: int
    kept_items: int


def get_stone_multiplier(player: Player) -> float:
    return percent_boost_multiplier(player.reincarnation_upgrades.stone_boost)


def get_stones_to_gain(player: Player) -> int:
    return calculate_reincarnation_stones(player.floor, get_stone_multiplier(player))


def get_max_start_floor(player: Player) -> int:
    """
    Highest floor a new run may start on.

    The start floor upgrade unlocks 100 floors per level, but never above
    the last 100-floor boundary actually reached.
    """
    unlocked = 1 + player.reincarnation_upgrades.start_floor * 100
    cleared = (max(1, player.max_floor_reached) - 1) // 100 * 100 + 1
    return min(unlocked, cleared)


def get_start_floor_options(player: Player) -> List[int]:
    return list(range(1, get_max_start_floor(player) + 1, 100))


def select_inherited_items(
    inventory: List[Equipment],
    equipped: Equipped,
    persistence_level: int,
    auto_equip: bool,
):
    """
    Items that survive a reincarnation.

    Returns:
        (inventory, equipped) for the new run
    """
    ranks = set(get_persistence_ranks(persistence_level))
    if not ranks:
        return [], {}

    kept = [
        item.with_equipped(False)
        for item in iter_distinct_items(inventory, equipped)
        if item.rank in ranks
    ]
    if not auto_equip:
        return kept, {}

    best = best_item_per_slot(kept)
    best_ids = {item.id for item in best.values()}
    new_inventory = []
    new_equipped: Equipped = {}
    for item in kept:
        if item.id in best_ids:
            item = item.with_equipped(True)
            new_equipped[item.type] = item
        new_inventory.append(item)
    return new_inventory, new_equipped


def preview_reincarnation(state: GameState) -> ReincarnationPreview:
    player = state.player
    kept, _ = select_inherited_items(
        state.inventory,
        state.equipped,
        player.reincarnation_upgrades.item_persistence,
        auto_equip=False,
    )
    return ReincarnationPreview(
        stones_gained=get_stones_to_gain(player),
        max_start_floor=get_max_start_floor(player),
        kept_items=len(kept),
    )


def reincarnate(
    state: GameState,
    start_floor: Optional[int] = None,
    config: Optional[EngineConfig] = None,
    now: Optional[int] = None,
) -> GameState:
    """
    Build the first snapshot of the next run.

    Args:
        state: Current snapshot
        start_floor: Requested start floor, clamped to get_max_start_floor()
        config: Engine config (boss time limit, log capacity)
        now: Epoch milliseconds for log timestamps

    Returns:
        New GameState
    """
    config = config or EngineConfig()
    now = now_ms() if now is None else now
    current = state.player
    upgrades = current.reincarnation_upgrades

    stones = get_stones_to_gain(current)
    max_start = get_max_start_floor(current)
    floor = max_start if start_floor is None else max(1, min(start_floor, max_start))

    inventory, equipped = select_inherited_items(
        state.inventory,
        state.equipped,
        upgrades.item_persistence,
        auto_equip=upgrades.auto_equip > 0,
    )

    player = replace(
        Player(),
        reincarnation_stones=current.reincarnation_stones + stones,
        reincarnation_upgrades=upgrades,
        auto_merchant_keys=current.auto_merchant_keys,
        drop_preferences=current.drop_preferences,
        floor=floor,
        max_floor_reached=current.max_floor_reached,
    )
    enemy = generate_enemy(floor, upgrades.enemy_hp_down)

    logs = [
        create_log(f"Reincarnated! Gained {stones} reincarnation stones.", LogType.INFO, now),
        create_log(f"{enemy.name} appears! (HP: {enemy.max_hp})", LogType.INFO, now),
    ]
    if inventory:
        logs.append(create_log(f"Inherited {len(inventory)} items through Item Persistence",
                               LogType.INFO, now))
    logger.info("Reincarnated from floor %d to %d (+%d stones)", current.floor, floor, stones)

    return GameState(
        player=player,
        enemy=enemy,
        inventory=inventory,
        equipped=equipped,
        logs=logs[-config.log_capacity:],
        boss_timer=config.boss_time_limit if enemy.is_boss else None,
        auto_battle_enabled=state.auto_battle_enabled,
        active_skills=new_active_skills(),
        farming_mode=None,
        rare_drop_item=None,
    )
