"""
Tower Idle
==========
Simulation core of an idle tower-climbing RPG.

The tick engine (GameLoop) and the action functions are the whole public
surface: both take a GameState and return a new one.
"""

from .core import (
    ActiveSkill,
    EquipmentRank,
    EquipmentType,
    Job,
    format_number,
    generate_enemy,
)
from .equipment import Equipment, calculate_item_power, get_set_bonus
from .game_loop import GameLoop, calculate_total_attack
from .session import GameSession
from .settings import EngineConfig, GameSpeed, load_engine_config
from .state import FarmingMode, GameState, LogType, Player, new_game_state
from .upgrades import MerchantUpgrade, ReincarnationUpgrade
from .save_data import load_game, dump_game

__all__ = [
    'ActiveSkill',
    'EquipmentRank',
    'EquipmentType',
    'Job',
    'format_number',
    'generate_enemy',
    'Equipment',
    'calculate_item_power',
    'get_set_bonus',
    'GameLoop',
    'calculate_total_attack',
    'GameSession',
    'EngineConfig',
    'GameSpeed',
    'load_engine_config',
    'FarmingMode',
    'GameState',
    'LogType',
    'Player',
    'new_game_state',
    'MerchantUpgrade',
    'ReincarnationUpgrade',
    'load_game',
    'dump_game',
]

__version__ = "0.1.0"
