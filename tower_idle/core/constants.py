"""
Tower Idle - Game Constants
===========================
Static game data: jobs, skills, enemy and boss tables, equipment names,
rank multipliers and the timing constants shared by the engine.

Values here are the single source of truth. Formulas live in scaling.py
and damage.py; nothing in this module computes anything beyond lookups.
"""

from enum import Enum
from typing import Dict, List, NamedTuple, Optional


# =============================================================================
# TIMING / ENGINE LIMITS
# =============================================================================

TICK_INTERVAL_MS = 1000          # One "game second"
BOSS_TIME_LIMIT = 30             # Ticks allowed to kill a boss
BOSS_TIMEOUT_PENALTY = 9         # Floors lost when the boss timer runs out
LOG_CAPACITY = 50                # Most recent log entries kept
HYPER_SPEED_ATTACKS = 10         # Attacks per tick while Hyper Speed is active
MAX_SYNTHESIS_PASSES = 50        # Safety cap for bulk synthesis

SKILL_TRIGGER_CAP = 0.50         # Hard cap on a skill's trigger roll
MASTERY_TRIGGERS_PER_LEVEL = 10
BASE_CRIT_RATE = 0.05
BASE_CRIT_MULTIPLIER = 1.3
CRIT_RATE_MAX_LEVEL = 50         # Merchant crit rate stops at +50%
ACTIVE_SKILL_COOLDOWN_MS = 60_000

DROP_CHANCE = 0.30
RARE_DROP_CHANCE = 0.001
MAX_PLUS = 5
FLOORS_PER_TIER = 500

# Player starting values
INITIAL_LEVEL = 1
INITIAL_REQUIRED_XP = 50
INITIAL_BASE_ATTACK = 10
LEVEL_UP_XP_GROWTH = 1.3
LEVEL_UP_ATTACK_GAIN = 2


# =============================================================================
# EQUIPMENT
# =============================================================================

class EquipmentType(Enum):
    """The four equipment slots."""
    WEAPON = "weapon"
    HELM = "helm"
    ARMOR = "armor"
    SHIELD = "shield"


EQUIPMENT_SLOTS: List[EquipmentType] = list(EquipmentType)


class EquipmentRank(Enum):
    """Item rank, ordered D < C < B < A < S."""
    D = "D"
    C = "C"
    B = "B"
    A = "A"
    S = "S"

    @property
    def multiplier(self) -> float:
        return RANK_MULTIPLIERS[self]

    @property
    def order(self) -> int:
        return RANK_ORDER.index(self)

    def next_rank(self) -> Optional['EquipmentRank']:
        """Get the next rank up, or None at S."""
        idx = RANK_ORDER.index(self)
        if idx < len(RANK_ORDER) - 1:
            return RANK_ORDER[idx + 1]
        return None


RANK_ORDER: List[EquipmentRank] = [
    EquipmentRank.D,
    EquipmentRank.C,
    EquipmentRank.B,
    EquipmentRank.A,
    EquipmentRank.S,
]

# Each rank is worth a full +5 chain of the previous rank and more
RANK_MULTIPLIERS: Dict[EquipmentRank, float] = {
    EquipmentRank.D: 1.0,
    EquipmentRank.C: 128.0,
    EquipmentRank.B: 32768.0,
    EquipmentRank.A: 20971520.0,
    EquipmentRank.S: 67108864000.0,
}

RANK_COLORS: Dict[EquipmentRank, str] = {
    EquipmentRank.D: "#9e9e9e",
    EquipmentRank.C: "#66bb6a",
    EquipmentRank.B: "#42a5f5",
    EquipmentRank.A: "#ab47bc",
    EquipmentRank.S: "#ffca28",
}

# Names indexed by (tier - 1) % 10
EQUIPMENT_NAMES: Dict[EquipmentType, List[str]] = {
    EquipmentType.WEAPON: [
        "Wooden Stick", "Copper Sword", "Iron Sword", "Steel Sword",
        "Mithril Sword", "Orichalcum Sword", "Dragonslayer", "Gram",
        "Excalibur", "Ragnarok",
    ],
    EquipmentType.HELM: [
        "Cloth Hat", "Leather Hat", "Iron Helm", "Steel Helm",
        "Mithril Helm", "Knight Helm", "Dragoon Helm", "Paladin Helm",
        "King's Crown", "God Crown",
    ],
    EquipmentType.ARMOR: [
        "Cloth Armor", "Leather Armor", "Chainmail", "Iron Armor",
        "Steel Armor", "Mithril Armor", "Dragon Mail", "Holy Armor",
        "Hero Armor", "God Armor",
    ],
    EquipmentType.SHIELD: [
        "Pot Lid", "Wooden Shield", "Leather Shield", "Iron Shield",
        "Steel Shield", "Mithril Shield", "Hero's Shield", "Aegis",
        "Prydwen", "Absolute Defense",
    ],
}


# =============================================================================
# JOBS & SKILLS
# =============================================================================

class Skill(NamedTuple):
    """A passive attack skill that may trigger on any attack."""
    name: str
    trigger_rate: float
    damage_multiplier: float


# Skills accumulate: job N knows the first N entries
SKILL_LADDER: List[Skill] = [
    Skill("Slash", 0.20, 1.5),
    Skill("Power Attack", 0.15, 2.0),
    Skill("Holy Strike", 0.10, 3.0),
    Skill("Divine Burst", 0.08, 4.5),
    Skill("Meteor Break", 0.05, 6.0),
    Skill("Galaxy Slash", 0.04, 8.0),
    Skill("Void Cutter", 0.03, 12.0),
    Skill("God Blow", 0.02, 20.0),
    Skill("Infinity Edge", 0.01, 50.0),
    Skill("Legend Cross", 0.01, 100.0),
]


class JobInfo(NamedTuple):
    display_name: str
    multiplier: float
    unlock_level: int


class Job(Enum):
    """Job ladder, in promotion order."""
    NOVICE = "novice"
    WARRIOR = "warrior"
    PALADIN = "paladin"
    PALADIN_KING = "paladin_king"
    MAGIC_SWORDSMAN = "magic_swordsman"
    MAGIC_WARRIOR = "magic_warrior"
    GREAT_MAGIC_WARRIOR = "great_magic_warrior"
    GOD_MAGIC_WARRIOR = "god_magic_warrior"
    ULTIMATE_WARRIOR = "ultimate_warrior"
    LEGENDARY_HERO = "legendary_hero"

    @property
    def info(self) -> JobInfo:
        return JOB_DATA[self]

    @property
    def display_name(self) -> str:
        return JOB_DATA[self].display_name

    @property
    def multiplier(self) -> float:
        return JOB_DATA[self].multiplier

    @property
    def unlock_level(self) -> int:
        return JOB_DATA[self].unlock_level

    @property
    def skills(self) -> List[Skill]:
        return SKILL_LADDER[:JOB_ORDER.index(self) + 1]

    def next_job(self) -> Optional['Job']:
        """Get the next job in the ladder, or None at the top."""
        idx = JOB_ORDER.index(self)
        if idx < len(JOB_ORDER) - 1:
            return JOB_ORDER[idx + 1]
        return None


JOB_ORDER: List[Job] = list(Job)

JOB_DATA: Dict[Job, JobInfo] = {
    Job.NOVICE: JobInfo("Novice", 1.0, 0),
    Job.WARRIOR: JobInfo("Warrior", 1.5, 10),
    Job.PALADIN: JobInfo("Paladin", 2.5, 20),
    Job.PALADIN_KING: JobInfo("Paladin King", 4.0, 30),
    Job.MAGIC_SWORDSMAN: JobInfo("Magic Swordsman", 7.0, 40),
    Job.MAGIC_WARRIOR: JobInfo("Magic Warrior", 12.0, 50),
    Job.GREAT_MAGIC_WARRIOR: JobInfo("Great Magic Warrior", 20.0, 60),
    Job.GOD_MAGIC_WARRIOR: JobInfo("God Magic Warrior", 50.0, 70),
    Job.ULTIMATE_WARRIOR: JobInfo("Ultimate Warrior", 150.0, 80),
    Job.LEGENDARY_HERO: JobInfo("Legendary Hero", 500.0, 100),
}


# =============================================================================
# ACTIVE SKILLS
# =============================================================================

class ActiveSkill(Enum):
    """Manually activated skills unlocked through reincarnation upgrades."""
    CONCENTRATION = "concentration"
    VITAL_SPOT = "vital_spot"
    HYPER_SPEED = "hyper_speed"
    AWAKENING = "awakening"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


CONCENTRATION_TRIGGER_BONUS = 0.30
VITAL_SPOT_CRIT_BONUS = 0.20
AWAKENING_CRIT_BONUS = 0.25
AWAKENING_TRIGGER_BONUS = 0.15
AWAKENING_ATTACK_MULTIPLIER = 2.0


# =============================================================================
# ENEMIES
# =============================================================================

class EnemyTemplate(NamedTuple):
    name: str
    hp: float
    gold: float
    xp: float


# Normal enemies, two floors each, cycling every 20 floors
ENEMY_TYPES: List[EnemyTemplate] = [
    EnemyTemplate("Slime", 40, 2, 10),
    EnemyTemplate("Goblin", 80, 4, 15),
    EnemyTemplate("Wolf", 120, 6, 20),
    EnemyTemplate("Orc", 200, 10, 35),
    EnemyTemplate("Skeleton", 300, 15, 50),
    EnemyTemplate("Ghost", 400, 20, 70),
    EnemyTemplate("Golem", 1000, 50, 150),
    EnemyTemplate("Wyvern", 1600, 100, 300),
    EnemyTemplate("Dragon", 4000, 250, 800),
    EnemyTemplate("Demon", 10000, 500, 2000),
]

# Bosses keyed by ((floor - 1) % 100) + 1
BOSS_TYPES: Dict[int, EnemyTemplate] = {
    10: EnemyTemplate("Giant Slime", 1000, 100, 300),
    20: EnemyTemplate("Goblin King", 2400, 250, 800),
    30: EnemyTemplate("Fenrir", 6000, 500, 1500),
    40: EnemyTemplate("High Orc General", 12000, 1000, 3000),
    50: EnemyTemplate("Lich Lord", 30000, 2500, 8000),
    60: EnemyTemplate("Ancient Dragon", 100000, 10000, 30000),
    70: EnemyTemplate("Arch Demon", 400000, 40000, 100000),
    80: EnemyTemplate("Chaos Knight", 2000000, 150000, 500000),
    90: EnemyTemplate("Demon King's Shadow", 1e7, 5e5, 2e6),
    100: EnemyTemplate("Demon King", 1e8, 5e6, 2e7),
}

SUPER_BOSS_PREFIX = "True "

# Stats used for normal floors before the first boss has been reached
FIRST_CYCLE_BASELINE = EnemyTemplate("", 50, 10, 20)
