"""
Tests for the damage pipeline: base damage, skill rolls, crits, Giant Killing.
"""
import pytest

from tower_idle.core.constants import SKILL_LADDER, Job
from tower_idle.core.damage import (
    AttackModifiers,
    SkillMastery,
    calculate_base_damage,
    calculate_crit_rate,
    crit_damage_multiplier,
    preview_skill,
    resolve_attack,
)


class FixedRandom:
    """Random stub that always returns the same roll."""

    def __init__(self, value: float):
        self.value = value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value


NEVER = FixedRandom(0.999)
ALWAYS = FixedRandom(0.0)


class TestBaseDamage:
    """Tests for base damage."""

    def test_fresh_player(self):
        assert calculate_base_damage(10, 0, 0, 1.0) == 10

    def test_additive_sources(self):
        """Merchant attack Lv.1 adds 20, reincarnation Lv.1 adds 100."""
        assert calculate_base_damage(10, 0, 0, 1.0, merchant_attack_level=1) == 30
        assert calculate_base_damage(10, 0, 0, 1.0, reincarnation_attack_level=1) == 110

    def test_multipliers(self):
        assert calculate_base_damage(10, 5, 5, 2.5, set_attack_multiplier=1.5) == 75

    def test_awakening_doubles(self):
        assert calculate_base_damage(10, 0, 0, 1.5, awakening=True) == 30


class TestCritRate:
    """Tests for crit rate."""

    def test_base(self):
        assert calculate_crit_rate(0) == pytest.approx(0.05)

    def test_level_capped_at_fifty(self):
        assert calculate_crit_rate(50) == pytest.approx(0.55)
        assert calculate_crit_rate(80) == pytest.approx(0.55)

    def test_never_above_one(self):
        assert calculate_crit_rate(50, set_crit_add=10, vital_spot=True, awakening=True) == 1.0

    def test_crit_damage(self):
        assert crit_damage_multiplier(0) == pytest.approx(1.3)
        assert crit_damage_multiplier(2) == pytest.approx(1.42)


class TestSkillMastery:
    """Tests for skill mastery."""

    def test_counts_up(self):
        assert SkillMastery().after_trigger() == SkillMastery(level=0, count=1)

    def test_levels_every_ten(self):
        assert SkillMastery(level=0, count=9).after_trigger() == SkillMastery(level=1, count=0)


class TestPreviewSkill:
    """Tests for preview skill."""

    def test_plain(self):
        roll = preview_skill(SKILL_LADDER[0], None, AttackModifiers())
        assert roll.roll_chance == pytest.approx(0.2)
        assert roll.damage_multiplier == pytest.approx(1.5)

    def test_mastery_adds_rate(self):
        roll = preview_skill(SKILL_LADDER[0], SkillMastery(level=5), AttackModifiers())
        assert roll.effective_rate == pytest.approx(0.25)

    def test_excess_over_cap_becomes_damage(self):
        """20% + 30% + 15% = 65%: rolls at 50%, damage x1.15."""
        modifiers = AttackModifiers(concentration=True, awakening=True)
        roll = preview_skill(SKILL_LADDER[0], None, modifiers)
        assert roll.roll_chance == 0.5
        assert roll.excess_multiplier == pytest.approx(1.15)
        assert roll.damage_multiplier == pytest.approx(1.5 * 1.15)

    def test_set_skill_multiplier_applies(self):
        roll = preview_skill(SKILL_LADDER[0], None, AttackModifiers(set_skill_multiplier=1.5))
        assert roll.damage_multiplier == pytest.approx(2.25)


class TestResolveAttack:
    """Tests for resolve attack."""

    def test_no_skill_no_crit(self):
        result = resolve_attack(10, Job.WARRIOR.skills, {}, AttackModifiers(), rng=NEVER)
        assert result.damage == 10
        assert result.triggered_skills == []
        assert not result.is_crit

    def test_everything_triggers(self):
        """Warrior: Power Attack then Slash, both multiply, then a crit."""
        mastery = {}
        result = resolve_attack(10, Job.WARRIOR.skills, mastery, AttackModifiers(), rng=ALWAYS)
        assert result.triggered_skills == ["Power Attack", "Slash"]
        assert result.is_crit
        assert result.damage == int(10 * 1.5 * 2.0 * 1.3)
        assert mastery == {}
        assert result.mastery["Slash"] == SkillMastery(level=0, count=1)

    def test_mastery_level_up_reported(self):
        mastery = {"Slash": SkillMastery(level=2, count=9)}
        result = resolve_attack(10, Job.NOVICE.skills, mastery, AttackModifiers(), rng=ALWAYS)
        assert result.mastery_level_ups == [("Slash", 3)]
        assert mastery["Slash"] == SkillMastery(level=2, count=9)

    def test_untouched_mastery_is_same_object(self):
        mastery = {"Slash": SkillMastery(level=1)}
        result = resolve_attack(10, Job.NOVICE.skills, mastery, AttackModifiers(), rng=NEVER)
        assert result.mastery is mastery

    def test_forced_crit_at_capped_rate(self):
        """Crit Rate 50 plus every bonus: the roll uses exactly 1.0."""
        modifiers = AttackModifiers(crit_rate_level=50, set_crit_add=10, vital_spot=True, awakening=True)
        result = resolve_attack(100, [], {}, modifiers, rng=ALWAYS)
        assert result.crit_rate == 1.0
        assert result.is_crit

    def test_crit_rate_at_cap_without_bonuses(self):
        modifiers = AttackModifiers(crit_rate_level=50)
        result = resolve_attack(100, [], {}, modifiers, rng=ALWAYS)
        assert result.crit_rate == pytest.approx(0.55)

    def test_giant_killing_bosses_only(self):
        modifiers = AttackModifiers(giant_killing_level=10)
        assert resolve_attack(100, [], {}, modifiers, is_boss=False, rng=NEVER).damage == 100
        assert resolve_attack(100, [], {}, modifiers, is_boss=True, rng=NEVER).damage == 120

    def test_breakdown_mentions_damage(self):
        result = resolve_attack(1234, [], {}, AttackModifiers(), rng=NEVER)
        assert "1,234" in result.breakdown()
