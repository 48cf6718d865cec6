"""
Tower Idle - Player Actions
===========================
Every discrete action the UI can send, as a pure (state, input) -> state
function.

An action whose precondition fails (not enough currency, maxed upgrade, no
material, job locked, ...) returns the very same state object, so callers
can detect a no-op with `is`. Actions never raise for in-game reasons.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Union

from .core.constants import ACTIVE_SKILL_COOLDOWN_MS, ActiveSkill, EquipmentType, Job
from .equipment import Equipment
from .game_loop import promote_job
from .reincarnation import reincarnate
from .settings import EngineConfig
from .state import (
    ActiveSkillState,
    FarmingMode,
    GameState,
    LogType,
    create_log,
    find_item,
    now_ms,
    replace_item,
)
from .synthesis import perform_bulk_synthesis, synthesize_pair
from .upgrades import (
    ACTIVE_SKILL_UPGRADES,
    MERCHANT_CATALOG,
    REINCARNATION_CATALOG,
    MerchantUpgrade,
    ReincarnationUpgrade,
    is_merchant_maxed,
    is_reincarnation_maxed,
    merchant_upgrade_cost,
    reincarnation_upgrade_cost,
)

logger = logging.getLogger(__name__)

ItemRef = Union[Equipment, str]


def _item_id(item: ItemRef) -> str:
    return item if isinstance(item, str) else item.id


# =============================================================================
# LOGS / TOGGLES
# =============================================================================

def add_log(state: GameState, message: str, log_type: LogType = LogType.INFO) -> GameState:
    return state.with_logs(create_log(message, log_type))


def toggle_auto_battle(state: GameState) -> GameState:
    enabled = not state.auto_battle_enabled
    return replace(state, auto_battle_enabled=enabled).with_logs(
        create_log(f"Auto battle {'resumed' if enabled else 'paused'}", LogType.INFO)
    )


def dismiss_rare_drop(state: GameState) -> GameState:
    if state.rare_drop_item is None:
        return state
    return replace(state, rare_drop_item=None)


def toggle_auto_merchant(state: GameState, key: MerchantUpgrade) -> GameState:
    player = state.player
    keys = dict(player.auto_merchant_keys)
    keys[key] = not player.is_auto_merchant_enabled(key)
    return replace(state, player=replace(player, auto_merchant_keys=keys))


def toggle_drop_preference(state: GameState, slot: EquipmentType) -> GameState:
    """Flip a slot's drop preference. A missing entry counts as enabled."""
    player = state.player
    preferences = dict(player.drop_preferences)
    preferences[slot] = not player.is_drop_enabled(slot)
    return replace(state, player=replace(player, drop_preferences=preferences))


# =============================================================================
# EQUIPMENT
# =============================================================================

def equip(state: GameState, item: ItemRef) -> GameState:
    """
    Equip an inventory item, unequipping whatever held its slot.

    No-op if the item is not in the inventory or is already equipped.
    """
    target = find_item(state.inventory, _item_id(item))
    if target is None:
        return state
    current = state.equipped.get(target.type)
    if current is not None and current.id == target.id:
        return state

    new_item = target.with_equipped(True)
    inventory = replace_item(state.inventory, new_item)
    if current is not None:
        inventory = replace_item(inventory, current.with_equipped(False))
    equipped = dict(state.equipped)
    equipped[target.type] = new_item

    return replace(state, inventory=inventory, equipped=equipped).with_logs(
        create_log(f"Equipped {new_item.name}", LogType.INFO)
    )


def synthesize(state: GameState, base: ItemRef) -> GameState:
    """
    Merge one item with the first identical copy in the inventory.

    No-op when there is no copy or the item is S+5.
    """
    target = find_item(state.inventory, _item_id(base))
    if target is None:
        return state
    merged = synthesize_pair(state.inventory, state.equipped, target)
    if merged is None:
        return state

    inventory, equipped, upgraded = merged
    if upgraded.rank != target.rank:
        msg = f"{upgraded.name} ranked up to {upgraded.rank.value}!"
    else:
        msg = f"{upgraded.name} enhanced to +{upgraded.plus}!"
    return replace(state, inventory=inventory, equipped=equipped).with_logs(
        create_log(msg, LogType.GAIN)
    )


def bulk_synthesize(state: GameState, config: Optional[EngineConfig] = None) -> GameState:
    """Merge everything possible. Logs a notice when nothing could merge."""
    config = config or EngineConfig()
    result = perform_bulk_synthesis(state.inventory, state.equipped, config.max_synthesis_passes)
    if not result.changed:
        return state.with_logs(create_log("No equipment could be enhanced", LogType.INFO))
    return replace(state, inventory=result.inventory, equipped=result.equipped).with_logs(*result.logs)


# =============================================================================
# JOBS
# =============================================================================

def change_job(state: GameState, new_job: Job) -> GameState:
    """Promote to the next job in the ladder. No-op for any other job or when locked."""
    if state.player.job.next_job() != new_job:
        return state
    promoted = promote_job(state.player)
    if promoted is None:
        return state
    return replace(state, player=promoted).with_logs(
        create_log(f"Promoted to {new_job.display_name}!", LogType.GAIN)
    )


# =============================================================================
# SHOPS
# =============================================================================

def buy_merchant_upgrade(state: GameState, key: MerchantUpgrade) -> GameState:
    player = state.player
    level = player.merchant_upgrades.level(key)
    if is_merchant_maxed(key, level):
        return state
    cost = merchant_upgrade_cost(key, level, player.reincarnation_upgrades.price_discount)
    if player.gold < cost:
        return state

    player = replace(
        player,
        gold=player.gold - cost,
        merchant_upgrades=player.merchant_upgrades.with_level(key, level + 1),
    )
    name = MERCHANT_CATALOG[key].name
    return replace(state, player=player).with_logs(
        create_log(f"{name} upgraded to Lv.{level + 1}", LogType.GAIN)
    )


def buy_max_merchant_upgrade(state: GameState, key: MerchantUpgrade) -> GameState:
    """Buy as many levels as the gold allows."""
    player = state.player
    start = player.merchant_upgrades.level(key)
    discount = player.reincarnation_upgrades.price_discount
    gold = player.gold
    level = start

    while not is_merchant_maxed(key, level):
        cost = merchant_upgrade_cost(key, level, discount)
        if gold < cost:
            break
        gold -= cost
        level += 1

    bought = level - start
    if bought == 0:
        return state

    player = replace(
        player,
        gold=gold,
        merchant_upgrades=player.merchant_upgrades.with_level(key, level),
    )
    name = MERCHANT_CATALOG[key].name
    return replace(state, player=player).with_logs(
        create_log(f"{name} upgraded +{bought} (Lv.{level})", LogType.GAIN)
    )


def buy_reincarnation_upgrade(state: GameState, key: ReincarnationUpgrade) -> GameState:
    """Spend stones on a reincarnation upgrade. Buying Auto Merchant enables every toggle."""
    player = state.player
    level = player.reincarnation_upgrades.level(key)
    if is_reincarnation_maxed(key, level):
        return state
    cost = reincarnation_upgrade_cost(key, level)
    if player.reincarnation_stones < cost:
        return state

    auto_keys = player.auto_merchant_keys
    if key == ReincarnationUpgrade.AUTO_MERCHANT:
        auto_keys = {merchant_key: True for merchant_key in MerchantUpgrade}

    player = replace(
        player,
        reincarnation_stones=player.reincarnation_stones - int(cost),
        reincarnation_upgrades=player.reincarnation_upgrades.with_level(key, level + 1),
        auto_merchant_keys=auto_keys,
    )
    name = REINCARNATION_CATALOG[key].name
    return replace(state, player=player).with_logs(
        create_log(f"{name} upgraded to Lv.{level + 1}", LogType.GAIN)
    )


# =============================================================================
# ACTIVE SKILLS
# =============================================================================

def get_skill_duration_seconds(skill: ActiveSkill, level: int) -> int:
    """Hyper Speed: 10s + 5s per level past 1. Others: 10s + 1s per level."""
    if skill == ActiveSkill.HYPER_SPEED:
        return 10 + (level - 1) * 5
    return 10 + level


SKILL_ACTIVATION_MESSAGES = {
    ActiveSkill.CONCENTRATION: "Concentration activated! Skill trigger +30%",
    ActiveSkill.VITAL_SPOT: "Vital Spot activated! Crit rate +20%",
    ActiveSkill.HYPER_SPEED: "Hyper Speed activated! 10x attack speed for {seconds}s",
    ActiveSkill.AWAKENING: "Awakening activated! Attack x2, crit +25%, skill trigger +15%",
}


def activate_skill(state: GameState, skill: ActiveSkill, now: Optional[int] = None) -> GameState:
    """
    Start an active skill.

    Requires the upgrade level > 0 and now >= cooldown end. Cooldown is 60s
    from activation.
    """
    now = now_ms() if now is None else now
    level = state.player.reincarnation_upgrades.level(ACTIVE_SKILL_UPGRADES[skill])
    if level <= 0:
        return state
    current = state.active_skills.get(skill, ActiveSkillState())
    if now < current.cooldown_end:
        return state

    seconds = get_skill_duration_seconds(skill, level)
    duration = seconds * 1000
    active_skills = dict(state.active_skills)
    active_skills[skill] = ActiveSkillState(
        is_active=True,
        end_time=now + duration,
        cooldown_end=now + ACTIVE_SKILL_COOLDOWN_MS,
        duration=duration,
    )
    message = SKILL_ACTIVATION_MESSAGES[skill].format(seconds=seconds)
    return replace(state, active_skills=active_skills).with_logs(
        create_log(message, LogType.INFO, now)
    )


# =============================================================================
# FARMING / REINCARNATION
# =============================================================================

def farming_ranges(max_floor_reached: int) -> List[FarmingMode]:
    """Every 100-floor band that has been fully reached."""
    return [
        FarmingMode(start, start + 99)
        for start in range(1, max_floor_reached - 98, 100)
    ]


def set_farming_mode(state: GameState, mode: Optional[FarmingMode]) -> GameState:
    """
    Loop a floor range, or pass None to climb normally again.

    Requires the farming upgrade and 1 <= min <= max <= max floor reached.
    """
    if mode is not None:
        player = state.player
        if player.reincarnation_upgrades.farming <= 0:
            return state
        if not 1 <= mode.min_floor <= mode.max_floor <= player.max_floor_reached:
            return state
    label = mode.label if mode else "normal"
    return replace(state, farming_mode=mode).with_logs(
        create_log(f"Farming mode set to {label}", LogType.INFO)
    )


def confirm_reincarnation(
    state: GameState,
    start_floor: Optional[int] = None,
    config: Optional[EngineConfig] = None,
) -> GameState:
    return reincarnate(state, start_floor, config)
