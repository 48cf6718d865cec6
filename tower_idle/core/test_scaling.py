"""
Tests for floor scaling and enemy generation.
"""
import pytest

from tower_idle.core.scaling import (
    calculate_boss_stats,
    calculate_reincarnation_stones,
    generate_enemy,
    get_difficulty_multiplier,
    get_enemy_hp_reduction,
    get_tier,
    get_tier_progress,
)


class TestTiers:
    """Tests for tiers."""

    def test_tier_boundaries(self):
        assert get_tier(1) == 1
        assert get_tier(500) == 1
        assert get_tier(501) == 2
        assert get_tier(1000) == 2

    def test_tier_progress(self):
        assert get_tier_progress(1) == 0.0
        assert get_tier_progress(500) == 1.0
        assert get_tier_progress(501) == 0.0

    def test_difficulty_multiplier(self):
        assert get_difficulty_multiplier(100) == 0.8
        assert get_difficulty_multiplier(300) == 3.0
        assert get_difficulty_multiplier(500) == 4.0
        assert get_difficulty_multiplier(600) == 0.8
        assert get_difficulty_multiplier(150) == 1.0


class TestGenerateEnemy:
    """Tests for generate enemy."""

    def test_first_floor(self):
        """Floor 1 uses the template directly: Slime, 40 x 1.2 HP."""
        enemy = generate_enemy(1)
        assert enemy.name == "Slime"
        assert enemy.max_hp == 48
        assert enemy.gold_reward == 2
        assert enemy.xp_reward == 10
        assert not enemy.is_boss

    def test_first_boss(self):
        enemy = generate_enemy(10)
        assert enemy.name == "Giant Slime"
        assert enemy.is_boss
        assert enemy.max_hp == 1000
        assert enemy.gold_reward == 100

    def test_floor_after_boss_scales_from_boss(self):
        """First floor after a boss: 50% of its HP, gold/XP also cut to 20%."""
        enemy = generate_enemy(11)
        assert enemy.max_hp == 500
        assert enemy.gold_reward == 10
        assert enemy.xp_reward == 30
        assert enemy.name == "Ghost"

    def test_level_suffix_after_first_cycle(self):
        assert generate_enemy(21).name == "Slime Lv21"

    def test_super_floor_boss_prefix(self):
        enemy = generate_enemy(500)
        assert enemy.name == "True Demon King"
        assert enemy.is_boss

    def test_floor_boss_outweighs_regular_boss(self):
        assert generate_enemy(100).max_hp > generate_enemy(90).max_hp

    @pytest.mark.parametrize("floor", list(range(1, 1201, 7)) + [10, 100, 500, 1000, 5000])
    def test_positive_full_hp(self, floor):
        enemy = generate_enemy(floor)
        assert enemy.max_hp > 0
        assert enemy.current_hp == enemy.max_hp

    def test_boss_iff_multiple_of_ten(self):
        for floor in range(1, 301):
            assert generate_enemy(floor).is_boss == (floor % 10 == 0)

    def test_monotonic_across_tiers(self):
        """Same position in the cycle, one tier deeper, strictly more HP."""
        for floor in [1, 5, 11, 37, 99, 101, 255, 499]:
            assert generate_enemy(floor + 500).max_hp > generate_enemy(floor).max_hp
            assert generate_enemy(floor + 1000).max_hp > generate_enemy(floor + 500).max_hp

    def test_hp_down_reduces_hp(self):
        assert generate_enemy(50, enemy_hp_down_level=5).max_hp < generate_enemy(50).max_hp

    def test_hp_never_below_one(self):
        assert generate_enemy(1, enemy_hp_down_level=1000).max_hp >= 1

    def test_deep_floor_saturates(self):
        """Far past float range HP saturates instead of raising."""
        enemy = generate_enemy(100_000)
        assert enemy.max_hp > 0


class TestBossStats:
    """Tests for boss stats."""

    def test_accumulates_previous_hundred(self):
        """Floor 110 HP includes the floor 100 boss HP."""
        assert calculate_boss_stats(110).hp > calculate_boss_stats(100).hp

    def test_gold_does_not_accumulate(self):
        assert calculate_boss_stats(110).gold < calculate_boss_stats(100).gold


class TestHpReduction:
    """Tests for enemy HP reduction."""

    def test_formula(self):
        assert get_enemy_hp_reduction(0) == 0
        assert get_enemy_hp_reduction(4) == 10

    def test_capped(self):
        assert get_enemy_hp_reduction(100) == 99


class TestReincarnationStones:
    """Tests for reincarnation stone rewards."""

    def test_below_100_earns_nothing(self):
        assert calculate_reincarnation_stones(99) == 0

    def test_formula(self):
        assert calculate_reincarnation_stones(100) == 100
        assert calculate_reincarnation_stones(101) == 110
        assert calculate_reincarnation_stones(102) == 122

    def test_multiplier(self):
        assert calculate_reincarnation_stones(100, 1.5) == 150
