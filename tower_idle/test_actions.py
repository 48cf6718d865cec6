"""
Tests for player actions.

Every action with a failed precondition must return the same state object.
"""
from dataclasses import replace

import pytest

from tower_idle.actions import (
    activate_skill,
    add_log,
    bulk_synthesize,
    buy_max_merchant_upgrade,
    buy_merchant_upgrade,
    buy_reincarnation_upgrade,
    change_job,
    dismiss_rare_drop,
    equip,
    farming_ranges,
    get_skill_duration_seconds,
    set_farming_mode,
    synthesize,
    toggle_auto_battle,
    toggle_auto_merchant,
    toggle_drop_preference,
)
from tower_idle.core.constants import ActiveSkill, EquipmentRank, EquipmentType, Job
from tower_idle.equipment import Equipment
from tower_idle.state import FarmingMode, GameState, LogType, Player, new_game_state
from tower_idle.upgrades import (
    MerchantUpgrade,
    MerchantUpgrades,
    ReincarnationUpgrade,
    ReincarnationUpgrades,
)

NOW = 5_000_000


def state_with(**player_fields) -> GameState:
    return GameState(player=Player(**player_fields))


def weapon(plus=0, item_id=None) -> Equipment:
    return Equipment.create(EquipmentType.WEAPON, 1, EquipmentRank.D, plus, item_id=item_id)


class TestToggles:
    """Tests for toggles."""

    def test_toggle_auto_battle(self):
        state = toggle_auto_battle(new_game_state())
        assert not state.auto_battle_enabled
        assert state.logs[-1].message == "Auto battle paused"
        assert toggle_auto_battle(state).auto_battle_enabled

    def test_dismiss_rare_drop(self):
        state = new_game_state()
        assert dismiss_rare_drop(state) is state
        with_drop = replace(state, rare_drop_item=weapon())
        assert dismiss_rare_drop(with_drop).rare_drop_item is None

    def test_add_log(self):
        state = add_log(new_game_state(), "hello", LogType.BOSS)
        assert state.logs[-1].message == "hello"
        assert state.logs[-1].type == LogType.BOSS

    def test_drop_preference_missing_counts_enabled(self):
        state = toggle_drop_preference(new_game_state(), EquipmentType.HELM)
        assert state.player.drop_preferences[EquipmentType.HELM] is False
        state = toggle_drop_preference(state, EquipmentType.HELM)
        assert state.player.drop_preferences[EquipmentType.HELM] is True

    def test_auto_merchant_toggle(self):
        state = toggle_auto_merchant(new_game_state(), MerchantUpgrade.CRIT_RATE)
        assert state.player.is_auto_merchant_enabled(MerchantUpgrade.CRIT_RATE)


class TestEquip:
    """Tests for equip."""

    def test_equip_from_inventory(self):
        item = weapon(item_id="a")
        state = GameState(inventory=[item])
        result = equip(state, "a")
        assert result.equipped[EquipmentType.WEAPON].id == "a"
        assert result.inventory[0].is_equipped
        assert result.logs[-1].message == f"Equipped {item.name}"

    def test_swaps_previous(self):
        old = weapon(item_id="old").with_equipped(True)
        new = weapon(plus=1, item_id="new")
        state = GameState(inventory=[old, new], equipped={EquipmentType.WEAPON: old})
        result = equip(state, new)
        assert result.equipped[EquipmentType.WEAPON].id == "new"
        flags = {item.id: item.is_equipped for item in result.inventory}
        assert flags == {"old": False, "new": True}

    def test_already_equipped_noop(self):
        item = weapon(item_id="a").with_equipped(True)
        state = GameState(inventory=[item], equipped={EquipmentType.WEAPON: item})
        assert equip(state, "a") is state

    def test_unknown_item_noop(self):
        state = new_game_state()
        assert equip(state, "missing") is state


class TestSynthesize:
    """Tests for synthesize."""

    def test_single_merge(self):
        state = GameState(inventory=[weapon(item_id="a"), weapon(item_id="b")])
        result = synthesize(state, "a")
        assert len(result.inventory) == 1
        assert result.inventory[0].plus == 1
        assert result.logs[-1].message.endswith("enhanced to +1!")

    def test_rank_up_message(self):
        state = GameState(inventory=[weapon(plus=5, item_id="a"), weapon(plus=5, item_id="b")])
        result = synthesize(state, "a")
        assert result.inventory[0].rank == EquipmentRank.C
        assert "ranked up to C" in result.logs[-1].message

    def test_no_material_noop(self):
        state = GameState(inventory=[weapon(item_id="a")])
        assert synthesize(state, "a") is state

    def test_bulk(self):
        state = GameState(inventory=[weapon(item_id=str(i)) for i in range(4)])
        result = bulk_synthesize(state)
        assert len(result.inventory) == 1
        assert result.inventory[0].plus == 2

    def test_bulk_nothing_to_do(self):
        state = GameState(inventory=[weapon()])
        result = bulk_synthesize(state)
        assert result.inventory is state.inventory
        assert result.logs[-1].message == "No equipment could be enhanced"


class TestChangeJob:
    """Tests for change job."""

    def test_promote(self):
        state = change_job(state_with(job_level=12), Job.WARRIOR)
        assert state.player.job == Job.WARRIOR
        assert state.player.job_level == 3

    def test_locked_noop(self):
        state = state_with(job_level=5)
        assert change_job(state, Job.WARRIOR) is state

    def test_skipping_jobs_noop(self):
        state = state_with(job_level=100)
        assert change_job(state, Job.PALADIN) is state


class TestMerchant:
    """Tests for merchant."""

    def test_buy(self):
        state = buy_merchant_upgrade(state_with(gold=1500), MerchantUpgrade.ATTACK_BONUS)
        assert state.player.merchant_upgrades.attack_bonus == 1
        assert state.player.gold == 500

    def test_insufficient_gold_noop(self):
        state = state_with(gold=999)
        assert buy_merchant_upgrade(state, MerchantUpgrade.ATTACK_BONUS) is state

    def test_maxed_noop(self):
        state = state_with(gold=10 ** 30, merchant_upgrades=MerchantUpgrades(crit_rate=50))
        assert buy_merchant_upgrade(state, MerchantUpgrade.CRIT_RATE) is state

    def test_discount_applies(self):
        state = state_with(gold=990, reincarnation_upgrades=ReincarnationUpgrades(price_discount=1))
        result = buy_merchant_upgrade(state, MerchantUpgrade.ATTACK_BONUS)
        assert result.player.gold == 0

    def test_buy_max(self):
        """1000 + 1500 = 2500 buys exactly two levels."""
        state = buy_max_merchant_upgrade(state_with(gold=2600), MerchantUpgrade.ATTACK_BONUS)
        assert state.player.merchant_upgrades.attack_bonus == 2
        assert state.player.gold == 100

    def test_buy_max_nothing_affordable(self):
        state = state_with(gold=10)
        assert buy_max_merchant_upgrade(state, MerchantUpgrade.ATTACK_BONUS) is state


class TestReincarnationShop:
    """Tests for reincarnation shop."""

    def test_buy(self):
        state = buy_reincarnation_upgrade(state_with(reincarnation_stones=150), ReincarnationUpgrade.XP_BOOST)
        assert state.player.reincarnation_upgrades.xp_boost == 1
        assert state.player.reincarnation_stones == 50

    def test_one_time_upgrade_maxes(self):
        state = state_with(
            reincarnation_stones=10 ** 9,
            reincarnation_upgrades=ReincarnationUpgrades(auto_equip=1),
        )
        assert buy_reincarnation_upgrade(state, ReincarnationUpgrade.AUTO_EQUIP) is state

    def test_auto_merchant_enables_every_key(self):
        state = buy_reincarnation_upgrade(state_with(reincarnation_stones=10 ** 7), ReincarnationUpgrade.AUTO_MERCHANT)
        assert all(state.player.is_auto_merchant_enabled(key) for key in MerchantUpgrade)

    def test_item_persistence_fixed_costs(self):
        state = state_with(reincarnation_stones=10 ** 9 + 10 ** 7)
        state = buy_reincarnation_upgrade(state, ReincarnationUpgrade.ITEM_PERSISTENCE)
        state = buy_reincarnation_upgrade(state, ReincarnationUpgrade.ITEM_PERSISTENCE)
        assert state.player.reincarnation_upgrades.item_persistence == 2
        assert state.player.reincarnation_stones == 0


class TestActiveSkills:
    """Tests for active skills."""

    def test_durations(self):
        assert get_skill_duration_seconds(ActiveSkill.HYPER_SPEED, 1) == 10
        assert get_skill_duration_seconds(ActiveSkill.HYPER_SPEED, 3) == 20
        assert get_skill_duration_seconds(ActiveSkill.CONCENTRATION, 1) == 11

    def test_locked_noop(self):
        state = new_game_state()
        assert activate_skill(state, ActiveSkill.AWAKENING, NOW) is state

    def test_activate_and_cooldown(self):
        state = state_with(reincarnation_upgrades=ReincarnationUpgrades(hyper_speed=1))
        state = activate_skill(state, ActiveSkill.HYPER_SPEED, NOW)
        skill = state.active_skills[ActiveSkill.HYPER_SPEED]
        assert skill.is_active
        assert skill.end_time == NOW + 10_000
        assert skill.cooldown_end == NOW + 60_000
        assert state.logs[-1].message == "Hyper Speed activated! 10x attack speed for 10s"

        assert activate_skill(state, ActiveSkill.HYPER_SPEED, NOW + 59_999) is state
        again = activate_skill(state, ActiveSkill.HYPER_SPEED, NOW + 60_000)
        assert again.active_skills[ActiveSkill.HYPER_SPEED].end_time == NOW + 70_000


class TestFarming:
    """Tests for farming."""

    def test_ranges(self):
        assert farming_ranges(99) == []
        assert farming_ranges(100) == [FarmingMode(1, 100)]
        assert farming_ranges(250) == [FarmingMode(1, 100), FarmingMode(101, 200)]

    def test_requires_upgrade(self):
        state = state_with(max_floor_reached=300)
        assert set_farming_mode(state, FarmingMode(101, 200)) is state

    def test_set_and_clear(self):
        state = state_with(max_floor_reached=300, reincarnation_upgrades=ReincarnationUpgrades(farming=1))
        state = set_farming_mode(state, FarmingMode(101, 200))
        assert state.farming_mode == FarmingMode(101, 200)
        assert state.logs[-1].message == "Farming mode set to 101-200F"
        state = set_farming_mode(state, None)
        assert state.farming_mode is None

    @pytest.mark.parametrize("mode", [FarmingMode(0, 100), FarmingMode(200, 101), FarmingMode(201, 400)])
    def test_invalid_range_noop(self, mode):
        state = state_with(max_floor_reached=300, reincarnation_upgrades=ReincarnationUpgrades(farming=1))
        assert set_farming_mode(state, mode) is state
