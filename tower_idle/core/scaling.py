"""
Tower Idle - Scaling Functions
==============================
Pure functions mapping floor depth to enemy and boss stats.

Floor structure:
    - Every 10th floor is a boss (10 archetypes, cycling every 100 floors)
    - Every 100th floor is a floor boss (x5 HP, x10 gold/XP on top)
    - Every 500th floor is a super floor boss (x100 HP/XP, "True " prefix)
    - Every 500 floors is a new tier (x100 to everything)

Normal floors scale off the previous boss: 50% of its stats on the first
floor after it, +5% per floor, with gold/XP further cut to 20%.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import NamedTuple

from .constants import (
    BOSS_TYPES,
    ENEMY_TYPES,
    FIRST_CYCLE_BASELINE,
    FLOORS_PER_TIER,
    SUPER_BOSS_PREFIX,
)
from .numbers import floor_int, safe_mul, scaled_pow


# =============================================================================
# RESULT TYPES
# =============================================================================

class BossStats(NamedTuple):
    hp: int
    gold: int
    xp: int


@dataclass
class Enemy:
    """A combat target. Replaced whenever it dies or the boss timer runs out."""
    name: str
    max_hp: int
    current_hp: int
    gold_reward: int
    xp_reward: int
    is_boss: bool = False

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'max_hp': self.max_hp,
            'current_hp': self.current_hp,
            'gold_reward': self.gold_reward,
            'xp_reward': self.xp_reward,
            'is_boss': self.is_boss,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Enemy':
        max_hp = max(1, int(data.get('max_hp', 1)))
        current_hp = int(data.get('current_hp', max_hp))
        return cls(
            name=str(data.get('name', '')),
            max_hp=max_hp,
            current_hp=max(0, min(current_hp, max_hp)),
            gold_reward=max(0, int(data.get('gold_reward', 0))),
            xp_reward=max(0, int(data.get('xp_reward', 0))),
            is_boss=bool(data.get('is_boss', False)),
        )


# =============================================================================
# FLOOR CLASSIFICATION
# =============================================================================

def get_tier(floor: int) -> int:
    """Tier = ceil(floor / 500), minimum 1."""
    return max(1, -(-floor // FLOORS_PER_TIER))


def get_tier_progress(floor: int) -> float:
    """Progress through the current tier: 0.0 on its first floor, 1.0 on its last."""
    return ((floor - 1) % FLOORS_PER_TIER) / (FLOORS_PER_TIER - 1)


def is_boss_floor(floor: int) -> bool:
    return floor % 10 == 0


def is_floor_boss(floor: int) -> bool:
    return floor % 100 == 0


def is_super_floor_boss(floor: int) -> bool:
    return floor % 500 == 0


def get_boss_key(floor: int) -> int:
    """Boss table key: ((floor - 1) % 100) + 1."""
    return ((floor - 1) % 100) + 1


def get_difficulty_multiplier(floor: int) -> float:
    """
    Flat difficulty adjustment by position in the 500-floor cycle.

    100th: 0.8x (20% weaker), 200th/300th/400th: 3x, 500th: 4x.
    """
    cycle = floor % FLOORS_PER_TIER
    if cycle == 100:
        return 0.8
    if cycle in (200, 300, 400):
        return 3.0
    if cycle == 0:
        return 4.0
    return 1.0


def get_floor_scaler(floor: int) -> float:
    """
    Combined growth factor for a floor.

    Formula:
        base  = max(1, floor / 20)
        tier  = 100 ^ floor((floor - 1) / 500)
        ultra = 1 + ((floor - 1000) / 200) ^ 4   (floors above 1000 only)
    """
    base_scaler = max(1.0, floor / 20)
    tier_scaler = scaled_pow(100.0, (floor - 1) // FLOORS_PER_TIER)
    ultra_scaler = 1.0
    if floor > 1000:
        ultra_scaler = 1 + scaled_pow((floor - 1000) / 200, 4)
    return safe_mul(base_scaler, tier_scaler, ultra_scaler)


# =============================================================================
# BOSS STATS
# =============================================================================

@lru_cache(maxsize=4096)
def calculate_boss_stats(floor: int) -> BossStats:
    """
    Boss-cycle stats for a floor.

    At a 100-boundary the stats come straight from the boss table, scaled.
    Between boundaries the HP accumulates on top of the previous 100-boundary
    boss; gold and XP do not accumulate.

    Recursion depth is at most one: the previous boundary is itself a
    boundary and never recurses.

    Args:
        floor: Floor number (>= 1)

    Returns:
        BossStats(hp, gold, xp)
    """
    scaler = get_floor_scaler(floor)
    boss = BOSS_TYPES.get(get_boss_key(floor), BOSS_TYPES[100])

    if is_floor_boss(floor):
        super_mult = 100.0 if is_super_floor_boss(floor) else 1.0
        difficulty = get_difficulty_multiplier(floor)
        return BossStats(
            hp=floor_int(safe_mul(boss.hp, scaler, super_mult, difficulty)),
            gold=floor_int(safe_mul(boss.gold, scaler)),
            xp=floor_int(safe_mul(boss.xp, scaler, super_mult, difficulty)),
        )

    prev_hundred = (floor - 1) // 100 * 100
    base_hp = 0
    if prev_hundred > 0:
        base_hp = calculate_boss_stats(prev_hundred).hp

    return BossStats(
        hp=base_hp + floor_int(safe_mul(boss.hp, scaler)),
        gold=floor_int(safe_mul(boss.gold, scaler)),
        xp=floor_int(safe_mul(boss.xp, scaler)),
    )


# =============================================================================
# ENEMY GENERATION
# =============================================================================

def get_enemy_hp_reduction(level: int) -> float:
    """Enemy HP reduction percent: min(99, L(L+1)/2)."""
    return min(99.0, level * (level + 1) / 2)


def generate_enemy(floor: int, enemy_hp_down_level: int = 0) -> Enemy:
    """
    Build the enemy for a floor.

    Args:
        floor: Floor number (>= 1)
        enemy_hp_down_level: Level of the enemy HP reduction upgrade

    Returns:
        Enemy at full HP
    """
    floor = max(1, floor)
    hp_mult = 1 - get_enemy_hp_reduction(enemy_hp_down_level) / 100

    if is_boss_floor(floor):
        stats = calculate_boss_stats(floor)
        boss = BOSS_TYPES.get(get_boss_key(floor), BOSS_TYPES[100])
        name = boss.name
        if is_floor_boss(floor):
            raw_hp = safe_mul(stats.hp, 5)
            raw_gold = safe_mul(stats.gold, 10)
            raw_xp = safe_mul(stats.xp, 10)
        else:
            raw_hp, raw_gold, raw_xp = stats.hp, stats.gold, stats.xp
        if is_super_floor_boss(floor):
            name = SUPER_BOSS_PREFIX + name
        is_boss = True
    else:
        prev_boss_floor = (floor - 1) // 10 * 10
        if prev_boss_floor >= 10:
            base = calculate_boss_stats(prev_boss_floor)
            base_hp, base_gold, base_xp = base.hp, base.gold, base.xp
        else:
            baseline = FIRST_CYCLE_BASELINE
            base_hp, base_gold, base_xp = baseline.hp, baseline.gold, baseline.xp

        ratio = 0.5 + (floor % 10 - 1) * 0.05
        type_index = min(((floor - 1) % 20) // 2, len(ENEMY_TYPES) - 1)
        template = ENEMY_TYPES[type_index]
        loop = (floor - 1) // 20 + 1

        if floor < 10:
            raw_hp = template.hp * loop * 1.2
            raw_gold = template.gold * loop
            raw_xp = template.xp * loop
        else:
            raw_hp = safe_mul(base_hp, ratio)
            raw_gold = safe_mul(base_gold, ratio, 0.2)
            raw_xp = safe_mul(base_xp, ratio, 0.2)

        name = template.name
        if loop > 1:
            name = f"{name} Lv{floor}"
        is_boss = False

    max_hp = max(1, floor_int(safe_mul(raw_hp, hp_mult)))
    return Enemy(
        name=name,
        max_hp=max_hp,
        current_hp=max_hp,
        gold_reward=floor_int(raw_gold),
        xp_reward=floor_int(raw_xp),
        is_boss=is_boss,
    )


# =============================================================================
# REINCARNATION STONES
# =============================================================================

def calculate_reincarnation_stones(floor: int, multiplier: float = 1.0) -> int:
    """
    Stones earned by reincarnating from a floor.

    Formula (floor >= 100):
        d = floor - 100
        stones = floor((100 + 10d + floor(d^3 / 4)) * multiplier)

    Below floor 100 nothing is earned.
    """
    if floor < 100:
        return 0
    diff = floor - 100
    stones = 100 + diff * 10 + diff ** 3 // 4
    return floor_int(safe_mul(stones, multiplier))


if __name__ == "__main__":
    for f in [1, 9, 10, 11, 50, 99, 100, 101, 200, 499, 500, 501, 1000, 1500]:
        e = generate_enemy(f)
        print(f"F{f:>5} {e.name:<28} hp={e.max_hp:>24,} gold={e.gold_reward:,} xp={e.xp_reward:,}")
