"""
Tower Idle - Engine Settings
============================
Timing and engine limits, with environment overrides.

This module centralizes all configurable values used by:
- GameLoop (boss timer, log buffer, attacks per tick, synthesis cap)
- GameSession (tick interval, speed multiplier)
- Streamlit app (save directory)

Environment overrides:
    TOWER_IDLE_TICK_MS           Real milliseconds per game second at 1x
    TOWER_IDLE_BOSS_TIME_LIMIT   Ticks allowed per boss
    TOWER_IDLE_LOG_CAPACITY      Log entries kept
    TOWER_IDLE_DATA_DIR          Save directory for the web app
"""

import logging
import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Mapping, Optional

from .core.constants import (
    BOSS_TIME_LIMIT,
    BOSS_TIMEOUT_PENALTY,
    HYPER_SPEED_ATTACKS,
    LOG_CAPACITY,
    MAX_SYNTHESIS_PASSES,
    TICK_INTERVAL_MS,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "TOWER_IDLE_"
DEFAULT_DATA_DIR = os.path.join(os.path.expanduser("~"), ".tower_idle")


class GameSpeed(Enum):
    """Speed multiplier. Divides the real delay between ticks."""
    NORMAL = 1
    DOUBLE = 2
    TRIPLE = 3
    TURBO = 50

    @property
    def label(self) -> str:
        return f"{self.value}x"


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the tick engine."""
    tick_interval_ms: int = TICK_INTERVAL_MS
    boss_time_limit: int = BOSS_TIME_LIMIT
    boss_timeout_penalty: int = BOSS_TIMEOUT_PENALTY
    log_capacity: int = LOG_CAPACITY
    hyper_speed_attacks: int = HYPER_SPEED_ATTACKS
    max_synthesis_passes: int = MAX_SYNTHESIS_PASSES

    def tick_delay_ms(self, speed: GameSpeed = GameSpeed.NORMAL) -> int:
        """Real delay between ticks: floor(interval / speed), at least 1ms."""
        return max(1, self.tick_interval_ms // speed.value)


# env var suffix -> EngineConfig field
ENV_FIELDS: Dict[str, str] = {
    "TICK_MS": "tick_interval_ms",
    "BOSS_TIME_LIMIT": "boss_time_limit",
    "LOG_CAPACITY": "log_capacity",
}


def load_engine_config(environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """
    Build an EngineConfig from defaults plus environment overrides.

    Malformed or non-positive values are logged and ignored.
    """
    environ = os.environ if environ is None else environ
    config = EngineConfig()
    overrides = {}
    for suffix, field_name in ENV_FIELDS.items():
        raw = environ.get(ENV_PREFIX + suffix)
        if raw is None or raw == "":
            continue
        try:
            value = int(raw)
        except ValueError:
            logger.warning("Ignoring %s%s=%r: not an integer", ENV_PREFIX, suffix, raw)
            continue
        if value <= 0:
            logger.warning("Ignoring %s%s=%r: must be positive", ENV_PREFIX, suffix, raw)
            continue
        overrides[field_name] = value
    if overrides:
        config = replace(config, **overrides)
    return config


def get_data_dir(environ: Optional[Mapping[str, str]] = None) -> str:
    environ = os.environ if environ is None else environ
    return environ.get(ENV_PREFIX + "DATA_DIR") or DEFAULT_DATA_DIR


def get_game_speed_from_value(value: int) -> GameSpeed:
    """Convert an int multiplier to GameSpeed, falling back to 1x."""
    try:
        return GameSpeed(int(value))
    except (TypeError, ValueError):
        return GameSpeed.NORMAL
