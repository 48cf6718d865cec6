"""
Tower Idle - Tick Engine
========================
One call to GameLoop.tick() advances the game by one game second.

Order within a tick:
    1. Expire active skills
    2. Auto-promote (one job step)
    3. Auto-merchant purchases, in catalog order
    4. Boss timer: on expiry, drop 9 floors, respawn and end the tick
    5. Attacks: 1, or 10 while Hyper Speed is active
         - enemy death: rewards, level-ups, drops, floor advance, next enemy
    6. Batch auto-equip of this tick's drops
    7. Auto-synthesis, once, if anything dropped
    8. Trim the log buffer

Base damage is computed once per tick from the pre-tick equipment, so
items dropped mid-tick only count from the next tick on. The returned
state is always a new object; the input state is never mutated.
"""

import logging
import random
from dataclasses import replace
from typing import Dict, List, Optional, Set

from .core.constants import ActiveSkill, EquipmentRank
from .core.damage import (
    AttackModifiers,
    SkillRoll,
    calculate_base_damage,
    percent_boost_multiplier,
    preview_skill,
    resolve_attack,
    slot_boost,
)
from .core.numbers import floor_int, format_number, safe_mul
from .core.scaling import Enemy, generate_enemy
from .drops import get_boss_drop_plan, roll_drops
from .equipment import (
    CollectionBonusCache,
    Equipment,
    Equipped,
    calculate_collection_bonus,
    calculate_equipment_bonus,
    get_set_bonus,
)
from .settings import EngineConfig
from .state import (
    ActiveSkills,
    GameState,
    LogEntry,
    LogType,
    Player,
    append_logs,
    create_log,
    now_ms,
)
from .synthesis import perform_bulk_synthesis
from .upgrades import (
    SLOT_BOOSTS,
    MerchantUpgrade,
    is_merchant_maxed,
    merchant_upgrade_cost,
)

logger = logging.getLogger(__name__)


# =============================================================================
# STAT ASSEMBLY
# =============================================================================

def get_slot_boosts(player: Player) -> Dict:
    upgrades = player.merchant_upgrades
    return {slot: slot_boost(upgrades.level(key)) for slot, key in SLOT_BOOSTS.items()}


def calculate_player_base_damage(
    player: Player,
    equipped: Equipped,
    collection_bonus: int,
    awakening: bool = False,
) -> int:
    """Base damage for a player and equipment snapshot."""
    set_bonus = get_set_bonus(equipped)
    return calculate_base_damage(
        base_attack=player.base_attack,
        equipment_bonus=calculate_equipment_bonus(equipped, get_slot_boosts(player)),
        collection_bonus=collection_bonus,
        job_multiplier=player.job.multiplier,
        merchant_attack_level=player.merchant_upgrades.attack_bonus,
        reincarnation_attack_level=player.reincarnation_upgrades.base_attack_boost,
        set_attack_multiplier=set_bonus.attack_multiplier,
        awakening=awakening,
    )


def calculate_total_attack(player: Player, equipped: Equipped, inventory: List[Equipment]) -> int:
    """Displayed attack: base damage without active skills."""
    return calculate_player_base_damage(
        player, equipped, calculate_collection_bonus(inventory, equipped)
    )


def is_active(active_skills: ActiveSkills, skill: ActiveSkill) -> bool:
    skill_state = active_skills.get(skill)
    return bool(skill_state and skill_state.is_active)


def build_attack_modifiers(player: Player, equipped: Equipped, active_skills: ActiveSkills) -> AttackModifiers:
    set_bonus = get_set_bonus(equipped)
    merchant = player.merchant_upgrades
    return AttackModifiers(
        skill_power_level=player.reincarnation_upgrades.skill_damage_boost,
        crit_rate_level=merchant.crit_rate,
        crit_damage_level=merchant.crit_damage,
        giant_killing_level=merchant.giant_killing,
        set_skill_multiplier=set_bonus.skill_multiplier,
        set_crit_add=set_bonus.crit_add,
        concentration=is_active(active_skills, ActiveSkill.CONCENTRATION),
        vital_spot=is_active(active_skills, ActiveSkill.VITAL_SPOT),
        awakening=is_active(active_skills, ActiveSkill.AWAKENING),
    )


def preview_skills(state: GameState) -> List[SkillRoll]:
    """Per-skill trigger chance and damage multiplier for the current state."""
    modifiers = build_attack_modifiers(state.player, state.equipped, state.active_skills)
    return [
        preview_skill(skill, state.player.skill_mastery.get(skill.name), modifiers)
        for skill in state.player.job.skills
    ]


# =============================================================================
# IDLE AUTOMATION
# =============================================================================

def expire_active_skills(active_skills: ActiveSkills, now: int, logs: List[LogEntry]) -> ActiveSkills:
    """Deactivate skills whose end time has passed."""
    result = active_skills
    for skill, skill_state in active_skills.items():
        if skill_state.is_active and now >= skill_state.end_time:
            if result is active_skills:
                result = dict(active_skills)
            result[skill] = replace(skill_state, is_active=False)
            logs.append(create_log(f"{skill.display_name} has worn off", LogType.INFO, now))
    return result


def promote_job(player: Player) -> Optional[Player]:
    """
    Promote to the next job if the job level allows it.

    Job levels past the requirement carry over: new job level = 1 + excess.
    """
    next_job = player.job.next_job()
    if next_job is None or player.job_level < next_job.unlock_level:
        return None
    excess = max(0, player.job_level - next_job.unlock_level)
    return replace(player, job=next_job, job_level=1 + excess)


def auto_promote(player: Player, logs: List[LogEntry], now: int) -> Player:
    if player.reincarnation_upgrades.auto_promote <= 0:
        return player
    promoted = promote_job(player)
    if promoted is None:
        return player
    logs.append(create_log(f"[Auto] Promoted to {promoted.job.display_name}!", LogType.GAIN, now))
    return promoted


def auto_merchant(player: Player) -> Player:
    """Buy one level of each enabled merchant upgrade that is affordable."""
    if player.reincarnation_upgrades.auto_merchant <= 0:
        return player

    upgrades = player.merchant_upgrades
    gold = player.gold
    discount = player.reincarnation_upgrades.price_discount
    for key in MerchantUpgrade:
        if not player.is_auto_merchant_enabled(key):
            continue
        level = upgrades.level(key)
        if is_merchant_maxed(key, level):
            continue
        cost = merchant_upgrade_cost(key, level, discount)
        if gold >= cost:
            gold -= cost
            upgrades = upgrades.with_level(key, level + 1)

    if upgrades is player.merchant_upgrades:
        return player
    return replace(player, gold=gold, merchant_upgrades=upgrades)


# =============================================================================
# REWARDS
# =============================================================================

def apply_level_ups(player: Player, logs: List[LogEntry], now: int) -> Player:
    """Level up while XP covers the requirement."""
    while player.current_xp >= player.required_xp:
        player = replace(
            player,
            level=player.level + 1,
            current_xp=player.current_xp - player.required_xp,
            required_xp=max(1, floor_int(safe_mul(player.required_xp, 1.3))),
            base_attack=player.base_attack + 2,
            job_level=player.job_level + 1,
        )
        logs.append(create_log(f"Level up! Now Lv.{player.level}", LogType.GAIN, now))
    return player


def grant_rewards(player: Player, enemy: Enemy, logs: List[LogEntry], now: int) -> Player:
    reinc = player.reincarnation_upgrades
    gold_gain = floor_int(safe_mul(enemy.gold_reward, percent_boost_multiplier(reinc.gold_boost)))
    xp_gain = floor_int(safe_mul(enemy.xp_reward, percent_boost_multiplier(reinc.xp_boost)))
    player = replace(player, gold=player.gold + gold_gain, current_xp=player.current_xp + xp_gain)
    logs.append(create_log(
        f"Defeated {enemy.name}! Gained {format_number(xp_gain)} XP, {format_number(gold_gain)} G",
        LogType.GAIN, now,
    ))
    return apply_level_ups(player, logs, now)


def auto_equip_drops(
    inventory: List[Equipment],
    equipped: Equipped,
    drops: List[Equipment],
    enabled: bool,
) -> None:
    """
    Add drops to the tick's working inventory, equipping strict upgrades.

    Mutates the working copies passed in; they belong to this tick only.
    """
    for drop in drops:
        if enabled:
            current = equipped.get(drop.type)
            if current is None or drop.power > current.power:
                new_item = drop.with_equipped(True)
                equipped[drop.type] = new_item
                if current is not None:
                    unequipped = current.with_equipped(False)
                    for idx, item in enumerate(inventory):
                        if item.id == current.id:
                            inventory[idx] = unequipped
                            break
                    else:
                        inventory.append(unequipped)
                inventory.append(new_item)
                continue
        inventory.append(drop)


# =============================================================================
# GAME LOOP
# =============================================================================

class GameLoop:
    """
    Per-tick state transition.

    Holds only a config, the random source and the collection bonus cache.
    The cache is an optimization keyed on container identity.
    """

    def __init__(self, config: Optional[EngineConfig] = None, rng=random,
                 collection_cache: Optional[CollectionBonusCache] = None):
        self.config = config or EngineConfig()
        self.rng = rng
        self.collection_cache = collection_cache or CollectionBonusCache()

    def spawn_enemy(self, player: Player) -> Enemy:
        return generate_enemy(player.floor, player.reincarnation_upgrades.enemy_hp_down)

    def boss_timer_for(self, enemy: Enemy) -> Optional[int]:
        return self.config.boss_time_limit if enemy.is_boss else None

    def tick(self, state: GameState, now: Optional[int] = None) -> GameState:
        """
        Advance one game second.

        Args:
            state: Current snapshot (never mutated)
            now: Epoch milliseconds, defaults to the wall clock

        Returns:
            New snapshot, or the same object when auto-battle is off
        """
        if not state.auto_battle_enabled:
            return state

        now = now_ms() if now is None else now
        config = self.config
        new_logs: List[LogEntry] = []

        # --- Active skills / automation ---
        active_skills = expire_active_skills(state.active_skills, now, new_logs)
        player = auto_promote(state.player, new_logs, now)
        player = auto_merchant(player)

        # --- Boss timer ---
        boss_timer = state.boss_timer
        if boss_timer is not None:
            boss_timer -= 1
            if boss_timer <= 0:
                target_floor = max(1, player.floor - config.boss_timeout_penalty)
                new_logs.append(create_log(
                    f"Boss time limit reached! Retreating to floor {target_floor}...",
                    LogType.DANGER, now,
                ))
                player = replace(player, floor=target_floor)
                enemy = self.spawn_enemy(player)
                logger.debug("Boss timeout, floor -> %d", target_floor)
                return replace(
                    state,
                    player=player,
                    enemy=enemy,
                    boss_timer=self.boss_timer_for(enemy),
                    active_skills=active_skills,
                    logs=append_logs(state.logs, new_logs, config.log_capacity),
                )

        # --- Combat ---
        awakening = is_active(active_skills, ActiveSkill.AWAKENING)
        hyper_speed = is_active(active_skills, ActiveSkill.HYPER_SPEED)
        attacks = config.hyper_speed_attacks if hyper_speed else 1

        collection_bonus = self.collection_cache.get(state.inventory, state.equipped)
        base_damage = calculate_player_base_damage(player, state.equipped, collection_bonus, awakening)
        modifiers = build_attack_modifiers(player, state.equipped, active_skills)

        enemy = state.enemy
        rare_drop_item = state.rare_drop_item
        drops: List[Equipment] = []
        mastery_logged: Set[str] = set()
        combo_damage = 0

        for attack_index in range(attacks):
            if enemy is None:
                enemy = self.spawn_enemy(player)
                boss_timer = self.boss_timer_for(enemy)
                if attack_index == 0 or enemy.is_boss:
                    new_logs.append(create_log(f"{enemy.name} appears!", LogType.INFO, now))

            result = resolve_attack(
                base_damage,
                player.job.skills,
                player.skill_mastery,
                modifiers,
                is_boss=enemy.is_boss,
                rng=self.rng,
            )
            if result.mastery is not player.skill_mastery:
                player = replace(player, skill_mastery=result.mastery)
            for skill_name, level in result.mastery_level_ups:
                if skill_name not in mastery_logged:
                    mastery_logged.add(skill_name)
                    new_logs.append(create_log(
                        f"Skill [{skill_name}] mastery increased! (Lv.{level})", LogType.GAIN, now,
                    ))

            enemy = replace(enemy, current_hp=max(0, enemy.current_hp - result.damage))
            combo_damage += result.damage

            if attacks == 1:
                if result.triggered_skills:
                    msg = f"{' & '.join(result.triggered_skills)} triggered! {format_number(result.damage)} damage!"
                else:
                    msg = f"Dealt {format_number(result.damage)} damage"
                if result.is_crit:
                    msg += " (Critical!)"
                new_logs.append(create_log(msg, LogType.CRIT if result.is_crit else LogType.DAMAGE, now))
                combo_damage = 0

            if enemy.current_hp > 0:
                continue

            # --- Enemy defeated ---
            if attacks > 1 and combo_damage > 0:
                new_logs.append(create_log(f"Rapid combo! {format_number(combo_damage)} total damage!",
                                           LogType.DAMAGE, now))
                combo_damage = 0

            player = grant_rewards(player, enemy, new_logs, now)

            plan = get_boss_drop_plan(player.floor, enemy.is_boss)
            kill_drops = roll_drops(
                player.floor,
                enemy.is_boss,
                player.reincarnation_upgrades.item_filter,
                player.drop_preferences,
                rng=self.rng,
            )
            if plan['allow_rare']:
                for drop in kill_drops:
                    if drop.rank == EquipmentRank.A:
                        rare_drop_item = drop
            if kill_drops:
                drops.extend(kill_drops)
                if len(kill_drops) == 1:
                    new_logs.append(create_log("Dropped an item!", LogType.GAIN, now))
                else:
                    new_logs.append(create_log(f"Dropped {len(kill_drops)} items!", LogType.GAIN, now))

            if enemy.is_boss:
                new_logs.append(create_log("Boss defeated! Advancing to the next floor", LogType.BOSS, now))

            next_floor = player.floor + 1
            farming = state.farming_mode
            if farming is not None and next_floor > farming.max_floor:
                next_floor = farming.min_floor
                new_logs.append(create_log(f"Farming: returning to floor {farming.min_floor}",
                                           LogType.INFO, now))
            player = replace(
                player,
                floor=next_floor,
                max_floor_reached=max(player.max_floor_reached, next_floor),
            )

            enemy = self.spawn_enemy(player)
            boss_timer = self.boss_timer_for(enemy)
            if enemy.is_boss:
                new_logs.append(create_log(f"Floor {player.floor} boss {enemy.name} appears!",
                                           LogType.DANGER, now))

        # --- Drops, auto-equip, auto-synthesis ---
        inventory = state.inventory
        equipped = state.equipped
        if drops:
            inventory = list(state.inventory)
            equipped = dict(state.equipped)
            auto_equip_drops(inventory, equipped, drops, player.reincarnation_upgrades.auto_equip > 0)

        if attacks > 1 and combo_damage > 0:
            new_logs.append(create_log(f"Rapid combo! {format_number(combo_damage)} total damage!",
                                       LogType.DAMAGE, now))

        if drops and player.reincarnation_upgrades.auto_enhance > 0:
            result = perform_bulk_synthesis(inventory, equipped, config.max_synthesis_passes)
            if result.changed:
                inventory = result.inventory
                equipped = result.equipped
                new_logs.extend(result.logs)

        return replace(
            state,
            player=player,
            enemy=enemy,
            inventory=inventory,
            equipped=equipped,
            boss_timer=boss_timer,
            active_skills=active_skills,
            rare_drop_item=rare_drop_item,
            logs=append_logs(state.logs, new_logs, config.log_capacity),
        )

    def run(self, state: GameState, ticks: int, start: Optional[int] = None) -> GameState:
        """Run several ticks back to back, advancing the clock one interval each."""
        now = now_ms() if start is None else start
        for _ in range(ticks):
            state = self.tick(state, now)
            now += self.config.tick_interval_ms
        return state
