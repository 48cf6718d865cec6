"""
Tower Idle - Core Damage Calculation
====================================
Single source of truth for the attack pipeline and the upgrade effect formulas
it consumes.

Pipeline per attack:
    1. Base damage (computed once per tick):
         floor((base_atk + merchant_atk + reinc_atk + equipment + collection)
               x job_mult x set_atk_mult)  then x2 while Awakening is active
    2. Skills: every known skill rolls independently, highest first.
         rate = base + mastery x 1% + Concentration 30% + Awakening 15%
         Rolls are capped at 50%; rate above the cap becomes a (1 + excess)
         damage bonus on that skill. Triggered skills multiply together.
    3. Crit: rate = 5% + min(50, lv)% + set crit + Vital Spot 20% + Awakening 25%,
         clamped to 100%. Crit damage = 1.3 + L(L+1) x 2%.
    4. Giant Killing: x(1 + 2% x lv) against bosses only.
    5. Final = floor(base x skills x crit x giant_killing)
"""

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .constants import (
    AWAKENING_ATTACK_MULTIPLIER,
    AWAKENING_CRIT_BONUS,
    AWAKENING_TRIGGER_BONUS,
    BASE_CRIT_MULTIPLIER,
    BASE_CRIT_RATE,
    CONCENTRATION_TRIGGER_BONUS,
    CRIT_RATE_MAX_LEVEL,
    MASTERY_TRIGGERS_PER_LEVEL,
    SKILL_TRIGGER_CAP,
    VITAL_SPOT_CRIT_BONUS,
    Skill,
)
from .numbers import floor_int, safe_mul


# =============================================================================
# UPGRADE EFFECT FORMULAS
# =============================================================================

def quadratic(level: int) -> int:
    """L x (L + 1), the growth curve shared by most upgrades."""
    return level * (level + 1)


def merchant_attack_bonus(level: int) -> int:
    return quadratic(level) * 10


def reincarnation_attack_bonus(level: int) -> int:
    return quadratic(level) * 50


def slot_boost(level: int) -> float:
    """Equipment slot boost as a fraction (L(L+1) percent)."""
    return quadratic(level) * 0.01


def crit_damage_multiplier(level: int) -> float:
    """1.3 + L(L+1) x 2%."""
    return BASE_CRIT_MULTIPLIER + quadratic(level) * 0.02


def percent_boost_multiplier(level: int) -> float:
    """Gold / XP / stone boost: 1 + L(L+1)%."""
    return 1 + quadratic(level) / 100


def skill_power_multiplier(level: int) -> float:
    """Skill damage boost: 1 + L(L+1) x 5%."""
    return 1 + quadratic(level) * 5 / 100


def giant_killing_multiplier(level: int) -> float:
    """+2% per level, bosses only."""
    return 1 + level * 0.02


def calculate_crit_rate(
    crit_rate_level: int,
    set_crit_add: float = 0,
    vital_spot: bool = False,
    awakening: bool = False,
) -> float:
    """
    Crit chance as a fraction, clamped to 1.0.

    Args:
        crit_rate_level: Merchant crit rate level (only the first 50 count)
        set_crit_add: Set bonus crit, in percent
        vital_spot: Vital Spot active
        awakening: Awakening active
    """
    rate = BASE_CRIT_RATE + min(CRIT_RATE_MAX_LEVEL, crit_rate_level) * 0.01
    rate += set_crit_add * 0.01
    if vital_spot:
        rate += VITAL_SPOT_CRIT_BONUS
    if awakening:
        rate += AWAKENING_CRIT_BONUS
    return min(1.0, rate)


# =============================================================================
# BASE DAMAGE
# =============================================================================

def calculate_base_damage(
    base_attack: float,
    equipment_bonus: float,
    collection_bonus: float,
    job_multiplier: float,
    merchant_attack_level: int = 0,
    reincarnation_attack_level: int = 0,
    set_attack_multiplier: float = 1.0,
    awakening: bool = False,
) -> int:
    """
    Per-tick base damage before skills, crits and Giant Killing.

    Args:
        base_attack: Player base attack (grows +2 per level)
        equipment_bonus: Sum of equipped power x (1 + slot boost)
        collection_bonus: floor(total distinct item power / 5)
        job_multiplier: Current job's multiplier
        merchant_attack_level: Merchant attack bonus level
        reincarnation_attack_level: Reincarnation base attack boost level
        set_attack_multiplier: Set bonus attack multiplier
        awakening: Awakening active (x2, floored again)

    Returns:
        Base damage as int
    """
    total_base = (
        base_attack
        + merchant_attack_bonus(merchant_attack_level)
        + reincarnation_attack_bonus(reincarnation_attack_level)
        + equipment_bonus
        + collection_bonus
    )
    damage = floor_int(safe_mul(total_base, job_multiplier, set_attack_multiplier))
    if awakening:
        damage = floor_int(safe_mul(damage, AWAKENING_ATTACK_MULTIPLIER))
    return damage


# =============================================================================
# SKILL MASTERY
# =============================================================================

@dataclass(frozen=True)
class SkillMastery:
    """Per-skill trigger counter. Every 10 triggers add +1% trigger rate."""
    level: int = 0
    count: int = 0

    def after_trigger(self) -> 'SkillMastery':
        count = self.count + 1
        if count >= MASTERY_TRIGGERS_PER_LEVEL:
            return SkillMastery(level=self.level + 1, count=0)
        return SkillMastery(level=self.level, count=count)

    def to_dict(self) -> dict:
        return {'level': self.level, 'count': self.count}

    @classmethod
    def from_dict(cls, data: dict) -> 'SkillMastery':
        return cls(
            level=max(0, int(data.get('level', 0))),
            count=max(0, int(data.get('count', 0))),
        )


# =============================================================================
# ATTACK RESOLUTION
# =============================================================================

@dataclass
class AttackModifiers:
    """Everything besides base damage that shapes a single attack."""
    skill_power_level: int = 0
    crit_rate_level: int = 0
    crit_damage_level: int = 0
    giant_killing_level: int = 0
    set_skill_multiplier: float = 1.0
    set_crit_add: float = 0
    concentration: bool = False
    vital_spot: bool = False
    awakening: bool = False

    @property
    def trigger_bonus(self) -> float:
        bonus = 0.0
        if self.concentration:
            bonus += CONCENTRATION_TRIGGER_BONUS
        if self.awakening:
            bonus += AWAKENING_TRIGGER_BONUS
        return bonus

    @property
    def crit_rate(self) -> float:
        return calculate_crit_rate(
            self.crit_rate_level, self.set_crit_add, self.vital_spot, self.awakening
        )


@dataclass
class SkillRoll:
    """Trigger chance for one skill, before rolling."""
    skill: Skill
    effective_rate: float
    roll_chance: float
    excess_multiplier: float
    damage_multiplier: float


@dataclass
class AttackResult:
    """Outcome of one attack with breakdown."""
    damage: int
    base_damage: int
    skill_multiplier: float
    crit_multiplier: float
    giant_killing_multiplier: float
    crit_rate: float
    is_crit: bool
    triggered_skills: List[str] = field(default_factory=list)
    mastery: Dict[str, SkillMastery] = field(default_factory=dict)
    mastery_level_ups: List[Tuple[str, int]] = field(default_factory=list)

    def breakdown(self) -> str:
        """Return formatted breakdown of the attack."""
        skills = " & ".join(self.triggered_skills) or "-"
        return f"""
Attack Breakdown
================
Base Damage:        {self.base_damage:,}
x Skills:           {self.skill_multiplier:.4f}  ({skills})
x Crit:             {self.crit_multiplier:.4f}  (rate {self.crit_rate:.0%})
x Giant Killing:    {self.giant_killing_multiplier:.4f}
----------------------------
= Damage:           {self.damage:,}
"""


def preview_skill(
    skill: Skill,
    mastery: Optional[SkillMastery],
    modifiers: AttackModifiers,
) -> SkillRoll:
    """
    Compute a skill's trigger chance and damage contribution.

    Rate above the 50% cap converts into a (1 + excess) damage bonus.
    """
    mastery_level = mastery.level if mastery else 0
    effective_rate = skill.trigger_rate + mastery_level * 0.01 + modifiers.trigger_bonus

    excess = 0.0
    roll_chance = effective_rate
    if effective_rate > SKILL_TRIGGER_CAP:
        excess = effective_rate - SKILL_TRIGGER_CAP
        roll_chance = SKILL_TRIGGER_CAP

    excess_multiplier = 1.0 + excess
    damage_multiplier = (
        skill.damage_multiplier
        * skill_power_multiplier(modifiers.skill_power_level)
        * excess_multiplier
        * modifiers.set_skill_multiplier
    )
    return SkillRoll(
        skill=skill,
        effective_rate=effective_rate,
        roll_chance=roll_chance,
        excess_multiplier=excess_multiplier,
        damage_multiplier=damage_multiplier,
    )


def resolve_attack(
    base_damage: int,
    skills: Sequence[Skill],
    mastery: Dict[str, SkillMastery],
    modifiers: AttackModifiers,
    is_boss: bool = False,
    rng=random,
) -> AttackResult:
    """
    Resolve one attack.

    Skills roll from the strongest down; each one triggered multiplies the
    damage and advances its mastery. The mastery dict is never mutated; a
    new one is returned when anything changed.

    Args:
        base_damage: Output of calculate_base_damage()
        skills: Skills known by the current job
        mastery: Skill name -> SkillMastery
        modifiers: Upgrade levels, set bonus and active skill flags
        is_boss: Target is a boss (enables Giant Killing)
        rng: Object with random() -> float in [0, 1)

    Returns:
        AttackResult
    """
    skill_mult = 1.0
    triggered: List[str] = []
    level_ups: List[Tuple[str, int]] = []
    new_mastery = mastery

    for skill in reversed(skills):
        current = new_mastery.get(skill.name)
        roll = preview_skill(skill, current, modifiers)
        if rng.random() < roll.roll_chance:
            skill_mult = safe_mul(skill_mult, roll.damage_multiplier)
            triggered.append(skill.name)

            advanced = (current or SkillMastery()).after_trigger()
            if new_mastery is mastery:
                new_mastery = dict(mastery)
            new_mastery[skill.name] = advanced
            if advanced.count == 0:
                level_ups.append((skill.name, advanced.level))

    crit_rate = modifiers.crit_rate
    is_crit = rng.random() < crit_rate
    crit_mult = crit_damage_multiplier(modifiers.crit_damage_level) if is_crit else 1.0

    gk_mult = 1.0
    if is_boss and modifiers.giant_killing_level > 0:
        gk_mult = giant_killing_multiplier(modifiers.giant_killing_level)

    damage = floor_int(safe_mul(base_damage, skill_mult, crit_mult, gk_mult))

    return AttackResult(
        damage=max(0, damage),
        base_damage=base_damage,
        skill_multiplier=skill_mult,
        crit_multiplier=crit_mult,
        giant_killing_multiplier=gk_mult,
        crit_rate=crit_rate,
        is_crit=is_crit,
        triggered_skills=triggered,
        mastery=new_mastery,
        mastery_level_ups=level_ups,
    )
