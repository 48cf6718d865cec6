"""
Tower Idle - Core Math Module
=============================
Single source of truth for game constants, number handling, floor scaling
and the damage pipeline.

All other modules should import from here rather than implementing their own formulas.
"""

from .constants import (
    # Engine limits
    TICK_INTERVAL_MS,
    BOSS_TIME_LIMIT,
    BOSS_TIMEOUT_PENALTY,
    LOG_CAPACITY,
    HYPER_SPEED_ATTACKS,
    MAX_SYNTHESIS_PASSES,
    ACTIVE_SKILL_COOLDOWN_MS,
    # Equipment
    EquipmentType,
    EquipmentRank,
    EQUIPMENT_SLOTS,
    EQUIPMENT_NAMES,
    RANK_ORDER,
    RANK_MULTIPLIERS,
    # Jobs & skills
    Job,
    JOB_ORDER,
    Skill,
    SKILL_LADDER,
    ActiveSkill,
    # Enemies
    EnemyTemplate,
    ENEMY_TYPES,
    BOSS_TYPES,
)

from .numbers import (
    floor_int,
    format_number,
    safe_mul,
    scaled_pow,
)

from .scaling import (
    BossStats,
    Enemy,
    get_tier,
    get_tier_progress,
    is_boss_floor,
    is_floor_boss,
    is_super_floor_boss,
    calculate_boss_stats,
    generate_enemy,
    get_enemy_hp_reduction,
    calculate_reincarnation_stones,
)

from .damage import (
    # Core calculation
    calculate_base_damage,
    resolve_attack,
    preview_skill,
    AttackModifiers,
    AttackResult,
    SkillMastery,
    SkillRoll,
    # Upgrade effects
    calculate_crit_rate,
    crit_damage_multiplier,
    merchant_attack_bonus,
    reincarnation_attack_bonus,
    slot_boost,
    percent_boost_multiplier,
    skill_power_multiplier,
    giant_killing_multiplier,
)

__all__ = [
    # Constants
    'TICK_INTERVAL_MS',
    'BOSS_TIME_LIMIT',
    'BOSS_TIMEOUT_PENALTY',
    'LOG_CAPACITY',
    'HYPER_SPEED_ATTACKS',
    'MAX_SYNTHESIS_PASSES',
    'ACTIVE_SKILL_COOLDOWN_MS',
    'EquipmentType',
    'EquipmentRank',
    'EQUIPMENT_SLOTS',
    'EQUIPMENT_NAMES',
    'RANK_ORDER',
    'RANK_MULTIPLIERS',
    'Job',
    'JOB_ORDER',
    'Skill',
    'SKILL_LADDER',
    'ActiveSkill',
    'EnemyTemplate',
    'ENEMY_TYPES',
    'BOSS_TYPES',
    # Numbers
    'floor_int',
    'format_number',
    'safe_mul',
    'scaled_pow',
    # Scaling
    'BossStats',
    'Enemy',
    'get_tier',
    'get_tier_progress',
    'is_boss_floor',
    'is_floor_boss',
    'is_super_floor_boss',
    'calculate_boss_stats',
    'generate_enemy',
    'get_enemy_hp_reduction',
    'calculate_reincarnation_stones',
    # Damage calculation
    'calculate_base_damage',
    'resolve_attack',
    'preview_skill',
    'AttackModifiers',
    'AttackResult',
    'SkillMastery',
    'SkillRoll',
    'calculate_crit_rate',
    'crit_damage_multiplier',
    'merchant_attack_bonus',
    'reincarnation_attack_bonus',
    'slot_boost',
    'percent_boost_multiplier',
    'skill_power_multiplier',
    'giant_killing_multiplier',
]
