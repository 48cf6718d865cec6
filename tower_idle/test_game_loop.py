"""
Tests for the tick engine.

RNG stubs pin every roll: 0.999 never triggers a skill, crit or drop.
"""
from dataclasses import replace

import pytest

from tower_idle.core.constants import ActiveSkill, EquipmentRank, EquipmentType, Job
from tower_idle.core.scaling import Enemy, generate_enemy
from tower_idle.equipment import CollectionBonusCache, Equipment
from tower_idle.game_loop import (
    GameLoop,
    apply_level_ups,
    auto_equip_drops,
    auto_merchant,
    auto_promote,
    build_attack_modifiers,
    calculate_total_attack,
    expire_active_skills,
    promote_job,
)
from tower_idle.settings import EngineConfig
from tower_idle.state import (
    ActiveSkillState,
    FarmingMode,
    GameState,
    LogType,
    Player,
    new_active_skills,
    new_game_state,
)
from tower_idle.upgrades import MerchantUpgrade, MerchantUpgrades, ReincarnationUpgrades

NOW = 1_000_000


class FixedRandom:

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


def quiet_loop(**config) -> GameLoop:
    return GameLoop(EngineConfig(**config), rng=FixedRandom(0.999))


def weak_enemy(hp=1, is_boss=False) -> Enemy:
    return Enemy("Dummy", hp, hp, 2, 10, is_boss)


class TestFirstTick:
    """Tests for the first tick on floor 1."""

    def test_floor_one_damage(self):
        """Fresh player on floor 1: one hit of floor(10 x 1.0)."""
        state = new_game_state(generate_enemy(1))
        result = quiet_loop().tick(state, NOW)
        assert result.enemy.current_hp == 48 - 10
        assert result.logs[-1].message == "Dealt 10 damage"
        assert result.logs[-1].type == LogType.DAMAGE

    def test_spawns_enemy_when_missing(self):
        result = quiet_loop().tick(new_game_state(), NOW)
        assert result.enemy.name == "Slime"
        assert result.enemy.current_hp == 38
        assert result.logs[0].message == "Slime appears!"

    def test_input_not_mutated(self):
        state = new_game_state(generate_enemy(1))
        quiet_loop().tick(state, NOW)
        assert state.enemy.current_hp == 48
        assert state.logs == []

    def test_paused_returns_same_object(self):
        state = replace(new_game_state(), auto_battle_enabled=False)
        assert quiet_loop().tick(state, NOW) is state


class TestKill:
    """Tests for kill rewards and floor advance."""

    def test_rewards_and_advance(self):
        state = new_game_state(weak_enemy())
        result = quiet_loop().tick(state, NOW)
        player = result.player
        assert player.gold == 2
        assert player.current_xp == 10
        assert player.floor == 2
        assert player.max_floor_reached == 2
        assert result.enemy == generate_enemy(2)
        assert result.inventory == []

    def test_boss_kill_drops_and_logs(self):
        player = Player(floor=10, max_floor_reached=10)
        state = GameState(player=player, enemy=weak_enemy(is_boss=True), boss_timer=20)
        result = quiet_loop().tick(state, NOW)
        assert len(result.inventory) == 10
        assert result.player.floor == 11
        assert result.boss_timer is None
        messages = [entry.message for entry in result.logs]
        assert "Dropped 10 items!" in messages
        assert "Boss defeated! Advancing to the next floor" in messages

    def test_next_floor_boss_starts_timer(self):
        player = Player(floor=9, max_floor_reached=9)
        result = quiet_loop().tick(GameState(player=player, enemy=weak_enemy()), NOW)
        assert result.enemy.is_boss
        assert result.boss_timer == 30
        assert result.logs[-1].type == LogType.DANGER

    def test_farming_wraps(self):
        """Beating the floor 200 boss while farming 101-200 returns to 101."""
        player = Player(floor=200, max_floor_reached=200)
        state = GameState(
            player=player,
            enemy=weak_enemy(is_boss=True),
            boss_timer=10,
            farming_mode=FarmingMode(101, 200),
        )
        result = quiet_loop().tick(state, NOW)
        assert result.player.floor == 101
        assert result.player.max_floor_reached == 200
        assert result.enemy == generate_enemy(101)
        assert "Farming: returning to floor 101" in [entry.message for entry in result.logs]

    def test_auto_equip_strict_upgrade(self):
        player = Player(floor=10, reincarnation_upgrades=ReincarnationUpgrades(auto_equip=1))
        state = GameState(player=player, enemy=weak_enemy(is_boss=True))
        result = quiet_loop().tick(state, NOW)
        equipped = list(result.equipped.values())
        assert len(equipped) == 1
        assert equipped[0].is_equipped
        assert sum(1 for item in result.inventory if item.is_equipped) == 1

    def test_auto_enhance_merges_drops(self):
        player = Player(floor=10, reincarnation_upgrades=ReincarnationUpgrades(auto_enhance=1))
        state = GameState(player=player, enemy=weak_enemy(is_boss=True))
        result = quiet_loop().tick(state, NOW)
        assert len(result.inventory) < 10
        assert any(entry.message.startswith("Bulk enhance complete") for entry in result.logs)


class TestBossTimer:
    """Tests for boss timer."""

    def test_counts_down(self):
        player = Player(floor=10, max_floor_reached=10)
        state = GameState(player=player, enemy=generate_enemy(10), boss_timer=30)
        result = quiet_loop().tick(state, NOW)
        assert result.boss_timer == 29
        assert result.enemy.current_hp == result.enemy.max_hp - 10

    def test_timeout_retreats_nine_floors(self):
        player = Player(floor=20, max_floor_reached=20)
        state = GameState(player=player, enemy=generate_enemy(20), boss_timer=1)
        result = quiet_loop().tick(state, NOW)
        assert result.player.floor == 11
        assert result.player.max_floor_reached == 20
        assert result.enemy == generate_enemy(11)
        assert result.boss_timer is None
        assert result.logs[-1].type == LogType.DANGER

    def test_timeout_floor_minimum_one(self):
        player = Player(floor=5)
        state = GameState(player=player, enemy=weak_enemy(hp=10 ** 9, is_boss=True), boss_timer=1)
        result = quiet_loop().tick(state, NOW)
        assert result.player.floor == 1

    def test_custom_limit(self):
        player = Player(floor=9)
        result = quiet_loop(boss_time_limit=60).tick(GameState(player=player, enemy=weak_enemy()), NOW)
        assert result.boss_timer == 60


class TestHyperSpeed:
    """Tests for hyper speed."""

    def test_ten_attacks_one_summary(self):
        skills = new_active_skills()
        skills[ActiveSkill.HYPER_SPEED] = ActiveSkillState(True, NOW + 5000, NOW + 60000, 10000)
        enemy = weak_enemy(hp=10 ** 6)
        state = GameState(enemy=enemy, active_skills=skills)
        result = quiet_loop().tick(state, NOW)
        assert result.enemy.current_hp == 10 ** 6 - 100
        assert [entry.message for entry in result.logs] == ["Rapid combo! 100 total damage!"]

    def test_kills_several_enemies(self):
        skills = new_active_skills()
        skills[ActiveSkill.HYPER_SPEED] = ActiveSkillState(True, NOW + 5000, NOW + 60000, 10000)
        state = GameState(enemy=weak_enemy(), active_skills=skills)
        result = quiet_loop().tick(state, NOW)
        assert result.player.floor > 2


class TestActiveSkills:
    """Tests for active skills."""

    def test_expire(self):
        skills = new_active_skills()
        skills[ActiveSkill.CONCENTRATION] = ActiveSkillState(True, NOW, NOW + 50000, 11000)
        logs = []
        result = expire_active_skills(skills, NOW, logs)
        assert not result[ActiveSkill.CONCENTRATION].is_active
        assert skills[ActiveSkill.CONCENTRATION].is_active
        assert logs[0].message == "Concentration has worn off"

    def test_nothing_to_expire_same_object(self):
        skills = new_active_skills()
        assert expire_active_skills(skills, NOW, []) is skills

    def test_awakening_doubles_tick_damage(self):
        skills = new_active_skills()
        skills[ActiveSkill.AWAKENING] = ActiveSkillState(True, NOW + 5000, NOW + 60000, 11000)
        state = GameState(enemy=weak_enemy(hp=1000), active_skills=skills)
        result = quiet_loop().tick(state, NOW)
        assert result.enemy.current_hp == 1000 - 20

    def test_modifiers_pick_up_active_skills(self):
        skills = new_active_skills()
        skills[ActiveSkill.VITAL_SPOT] = ActiveSkillState(True, NOW + 5000, NOW + 60000, 11000)
        modifiers = build_attack_modifiers(Player(), {}, skills)
        assert modifiers.vital_spot
        assert modifiers.crit_rate == pytest.approx(0.25)


class TestProgression:
    """Tests for progression."""

    def test_multi_level_up(self):
        player = Player(current_xp=130)
        logs = []
        result = apply_level_ups(player, logs, NOW)
        assert result.level == 3
        assert result.current_xp == 15
        assert result.required_xp == 84
        assert result.base_attack == 14
        assert result.job_level == 3
        assert len(logs) == 2

    def test_promote_carries_excess(self):
        promoted = promote_job(Player(job_level=13))
        assert promoted.job == Job.WARRIOR
        assert promoted.job_level == 4

    def test_promote_locked(self):
        assert promote_job(Player(job_level=9)) is None

    def test_promote_top_job(self):
        assert promote_job(Player(job=Job.LEGENDARY_HERO, job_level=500)) is None

    def test_auto_promote_needs_upgrade(self):
        player = Player(job_level=10)
        assert auto_promote(player, [], NOW) is player
        upgraded = replace(player, reincarnation_upgrades=ReincarnationUpgrades(auto_promote=1))
        assert auto_promote(upgraded, [], NOW).job == Job.WARRIOR

    def test_auto_merchant_buys_enabled(self):
        player = Player(
            gold=1000,
            reincarnation_upgrades=ReincarnationUpgrades(auto_merchant=1),
            auto_merchant_keys={MerchantUpgrade.ATTACK_BONUS: True},
        )
        result = auto_merchant(player)
        assert result.merchant_upgrades.attack_bonus == 1
        assert result.gold == 0

    def test_auto_merchant_skips_disabled(self):
        player = Player(gold=10 ** 12, reincarnation_upgrades=ReincarnationUpgrades(auto_merchant=1))
        assert auto_merchant(player) is player


class TestStats:
    """Tests for total stats and the bonus cache."""

    def test_total_attack_includes_equipment_and_collection(self):
        weapon = Equipment.create(EquipmentType.WEAPON, 1, EquipmentRank.D, 5).with_equipped(True)
        player = Player(merchant_upgrades=MerchantUpgrades(weapon_boost=0))
        attack = calculate_total_attack(player, {EquipmentType.WEAPON: weapon}, [weapon])
        assert attack == 10 + 480 + 96

    def test_auto_equip_drops_keeps_weaker(self):
        worn = Equipment.create(EquipmentType.WEAPON, 1, EquipmentRank.D, 3).with_equipped(True)
        weaker = Equipment.create(EquipmentType.WEAPON, 1, EquipmentRank.D, 0)
        inventory = [worn]
        equipped = {EquipmentType.WEAPON: worn}
        auto_equip_drops(inventory, equipped, [weaker], enabled=True)
        assert equipped[EquipmentType.WEAPON] is worn
        assert len(inventory) == 2

    def test_collection_cache_reused_between_ticks(self):
        cache = CollectionBonusCache()
        loop = GameLoop(rng=FixedRandom(0.999), collection_cache=cache)
        state = new_game_state(weak_enemy(hp=10 ** 6))
        loop.run(state, 3, start=NOW)
        assert cache.misses == 1
        assert cache.hits == 2
