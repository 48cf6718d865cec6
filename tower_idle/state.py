"""
Tower Idle - Game State
=======================
The snapshot types the engine reads and returns.

Snapshots are replace-only: every change builds new objects with
dataclasses.replace() and new list/dict containers. Nested containers of a
previous snapshot are never mutated, since the collection bonus cache keys
on their identity.
"""

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional

from .core.constants import (
    INITIAL_BASE_ATTACK,
    INITIAL_LEVEL,
    INITIAL_REQUIRED_XP,
    LOG_CAPACITY,
    ActiveSkill,
    EquipmentType,
    Job,
)
from .core.damage import SkillMastery
from .core.scaling import Enemy
from .equipment import Equipment, Equipped
from .upgrades import MerchantUpgrade, MerchantUpgrades, ReincarnationUpgrades


def now_ms() -> int:
    return int(time.time() * 1000)


# =============================================================================
# LOGS
# =============================================================================

class LogType(Enum):
    DAMAGE = "damage"
    GAIN = "gain"
    INFO = "info"
    BOSS = "boss"
    DANGER = "danger"
    CRIT = "crit"


@dataclass(frozen=True)
class LogEntry:
    id: str
    message: str
    type: LogType
    timestamp: int

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'message': self.message,
            'type': self.type.value,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LogEntry':
        try:
            log_type = LogType(data.get('type', 'info'))
        except ValueError:
            log_type = LogType.INFO
        return cls(
            id=str(data.get('id') or uuid.uuid4().hex),
            message=str(data.get('message', '')),
            type=log_type,
            timestamp=int(data.get('timestamp', 0)),
        )


def create_log(message: str, log_type: LogType = LogType.INFO, timestamp: Optional[int] = None) -> LogEntry:
    return LogEntry(
        id=uuid.uuid4().hex,
        message=message,
        type=log_type,
        timestamp=now_ms() if timestamp is None else timestamp,
    )


def append_logs(
    logs: List[LogEntry],
    new_logs: Iterable[LogEntry],
    capacity: int = LOG_CAPACITY,
) -> List[LogEntry]:
    """New list with the entries appended, keeping only the most recent `capacity`."""
    combined = list(logs) + list(new_logs)
    if len(combined) > capacity:
        return combined[len(combined) - capacity:]
    return combined


# =============================================================================
# ACTIVE SKILLS / FARMING
# =============================================================================

@dataclass(frozen=True)
class ActiveSkillState:
    """Times are epoch milliseconds, duration in milliseconds."""
    is_active: bool = False
    end_time: int = 0
    cooldown_end: int = 0
    duration: int = 0

    def to_dict(self) -> dict:
        return {
            'is_active': self.is_active,
            'end_time': self.end_time,
            'cooldown_end': self.cooldown_end,
            'duration': self.duration,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ActiveSkillState':
        return cls(
            is_active=bool(data.get('is_active', False)),
            end_time=int(data.get('end_time', 0)),
            cooldown_end=int(data.get('cooldown_end', 0)),
            duration=int(data.get('duration', 0)),
        )


ActiveSkills = Dict[ActiveSkill, ActiveSkillState]


def new_active_skills() -> ActiveSkills:
    return {skill: ActiveSkillState() for skill in ActiveSkill}


class FarmingMode(NamedTuple):
    """Inclusive floor range looped while farming."""
    min_floor: int
    max_floor: int

    @property
    def label(self) -> str:
        return f"{self.min_floor}-{self.max_floor}F"


# =============================================================================
# PLAYER
# =============================================================================

@dataclass
class Player:
    """
    Progression record.

    max_floor_reached never decreases. floor may drop below it after a
    boss timeout or when farming.
    """
    level: int = INITIAL_LEVEL
    current_xp: int = 0
    required_xp: int = INITIAL_REQUIRED_XP
    job: Job = Job.NOVICE
    job_level: int = 1
    gold: int = 0
    floor: int = 1
    max_floor_reached: int = 1
    base_attack: int = INITIAL_BASE_ATTACK
    skill_mastery: Dict[str, SkillMastery] = field(default_factory=dict)
    reincarnation_stones: int = 0
    merchant_upgrades: MerchantUpgrades = field(default_factory=MerchantUpgrades)
    reincarnation_upgrades: ReincarnationUpgrades = field(default_factory=ReincarnationUpgrades)
    auto_merchant_keys: Dict[MerchantUpgrade, bool] = field(default_factory=dict)
    drop_preferences: Dict[EquipmentType, bool] = field(default_factory=dict)

    def is_auto_merchant_enabled(self, key: MerchantUpgrade) -> bool:
        return bool(self.auto_merchant_keys.get(key, False))

    def is_drop_enabled(self, slot: EquipmentType) -> bool:
        return bool(self.drop_preferences.get(slot, True))

    def to_dict(self) -> dict:
        return {
            'level': self.level,
            'current_xp': self.current_xp,
            'required_xp': self.required_xp,
            'job': self.job.value,
            'job_level': self.job_level,
            'gold': self.gold,
            'floor': self.floor,
            'max_floor_reached': self.max_floor_reached,
            'base_attack': self.base_attack,
            'skill_mastery': {name: m.to_dict() for name, m in self.skill_mastery.items()},
            'reincarnation_stones': self.reincarnation_stones,
            'merchant_upgrades': self.merchant_upgrades.to_dict(),
            'reincarnation_upgrades': self.reincarnation_upgrades.to_dict(),
            'auto_merchant_keys': {k.value: v for k, v in self.auto_merchant_keys.items()},
            'drop_preferences': {k.value: v for k, v in self.drop_preferences.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Player':
        try:
            job = Job(data.get('job', Job.NOVICE.value))
        except ValueError:
            job = Job.NOVICE

        floor = max(1, int(data.get('floor', 1)))
        auto_keys = {}
        for key, enabled in (data.get('auto_merchant_keys') or {}).items():
            try:
                auto_keys[MerchantUpgrade(key)] = bool(enabled)
            except ValueError:
                continue
        preferences = {}
        for key, enabled in (data.get('drop_preferences') or {}).items():
            try:
                preferences[EquipmentType(key)] = bool(enabled)
            except ValueError:
                continue

        return cls(
            level=max(1, int(data.get('level', INITIAL_LEVEL))),
            current_xp=max(0, int(data.get('current_xp', 0))),
            required_xp=max(1, int(data.get('required_xp', INITIAL_REQUIRED_XP))),
            job=job,
            job_level=max(1, int(data.get('job_level', 1))),
            gold=max(0, int(data.get('gold', 0))),
            floor=floor,
            max_floor_reached=max(floor, int(data.get('max_floor_reached') or floor)),
            base_attack=int(data.get('base_attack', INITIAL_BASE_ATTACK)),
            skill_mastery={
                str(name): SkillMastery.from_dict(m)
                for name, m in (data.get('skill_mastery') or {}).items()
            },
            reincarnation_stones=max(0, int(data.get('reincarnation_stones', 0))),
            merchant_upgrades=MerchantUpgrades.from_dict(data.get('merchant_upgrades')),
            reincarnation_upgrades=ReincarnationUpgrades.from_dict(data.get('reincarnation_upgrades')),
            auto_merchant_keys=auto_keys,
            drop_preferences=preferences,
        )


def new_player() -> Player:
    return Player()


# =============================================================================
# GAME STATE
# =============================================================================

@dataclass
class GameState:
    """Top-level aggregate. inventory also holds the equipped copies."""
    player: Player = field(default_factory=new_player)
    enemy: Optional[Enemy] = None
    inventory: List[Equipment] = field(default_factory=list)
    equipped: Equipped = field(default_factory=dict)
    logs: List[LogEntry] = field(default_factory=list)
    boss_timer: Optional[int] = None
    auto_battle_enabled: bool = True
    active_skills: ActiveSkills = field(default_factory=new_active_skills)
    farming_mode: Optional[FarmingMode] = None
    rare_drop_item: Optional[Equipment] = None

    def is_skill_active(self, skill: ActiveSkill) -> bool:
        skill_state = self.active_skills.get(skill)
        return bool(skill_state and skill_state.is_active)

    def with_logs(self, *entries: LogEntry, capacity: int = LOG_CAPACITY) -> 'GameState':
        return replace(self, logs=append_logs(self.logs, entries, capacity))


def new_game_state(enemy: Optional[Enemy] = None) -> GameState:
    """Fresh game. The first tick spawns the floor 1 enemy when none is given."""
    return GameState(enemy=enemy)


def find_item(inventory: Iterable[Equipment], item_id: str) -> Optional[Equipment]:
    for item in inventory:
        if item.id == item_id:
            return item
    return None


def replace_item(inventory: List[Equipment], item: Equipment) -> List[Equipment]:
    """New list with the item of the same id swapped in, or appended if absent."""
    result = []
    found = False
    for existing in inventory:
        if existing.id == item.id:
            result.append(item)
            found = True
        else:
            result.append(existing)
    if not found:
        result.append(item)
    return result
