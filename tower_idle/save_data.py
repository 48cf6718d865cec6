"""
Tower Idle - Save Data
======================
GameState <-> JSON-compatible dict, with migration of older saves.

Migration is additive: missing fields are filled with their zero values,
missing upgrade keys with 0, missing equipment rank with D, missing max
floor with the current floor. Unknown keys are ignored. A save that cannot
be parsed at all loads as a fresh game.

Version history:
    1: camelCase keys, no skill mastery / upgrades / active skills
    2: current snake_case schema with save_version
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from .core.constants import ActiveSkill, EquipmentType
from .core.scaling import Enemy
from .equipment import Equipment
from .state import (
    ActiveSkillState,
    FarmingMode,
    GameState,
    LogEntry,
    Player,
    new_active_skills,
    new_game_state,
)

logger = logging.getLogger(__name__)

SAVE_VERSION = 2

# Legacy camelCase key -> current key
LEGACY_KEYS = {
    'currentXp': 'current_xp',
    'requiredXp': 'required_xp',
    'jobLevel': 'job_level',
    'maxFloorReached': 'max_floor_reached',
    'baseAttack': 'base_attack',
    'skillMastery': 'skill_mastery',
    'reincarnationStones': 'reincarnation_stones',
    'merchantUpgrades': 'merchant_upgrades',
    'reincarnationUpgrades': 'reincarnation_upgrades',
    'autoMerchantKeys': 'auto_merchant_keys',
    'dropPreferences': 'drop_preferences',
    'maxHp': 'max_hp',
    'currentHp': 'current_hp',
    'goldReward': 'gold_reward',
    'xpReward': 'xp_reward',
    'isBoss': 'is_boss',
    'basePower': 'base_power',
    'isEquipped': 'is_equipped',
    'bossTimer': 'boss_timer',
    'autoBattleEnabled': 'auto_battle_enabled',
    'activeSkills': 'active_skills',
    'farmingMode': 'farming_mode',
    'rareDropItem': 'rare_drop_item',
    'isActive': 'is_active',
    'endTime': 'end_time',
    'cooldownEnd': 'cooldown_end',
    'vitalSpot': 'vital_spot',
    'hyperSpeed': 'hyper_speed',
    'attackBonus': 'attack_bonus',
    'critDamage': 'crit_damage',
    'critRate': 'crit_rate',
    'weaponBoost': 'weapon_boost',
    'helmBoost': 'helm_boost',
    'armorBoost': 'armor_boost',
    'shieldBoost': 'shield_boost',
    'giantKilling': 'giant_killing',
    'xpBoost': 'xp_boost',
    'goldBoost': 'gold_boost',
    'stoneBoost': 'stone_boost',
    'startFloor': 'start_floor',
    'autoPromote': 'auto_promote',
    'autoEquip': 'auto_equip',
    'autoMerchant': 'auto_merchant',
    'itemFilter': 'item_filter',
    'autoEnhance': 'auto_enhance',
    'itemPersistence': 'item_persistence',
    'baseAttackBoost': 'base_attack_boost',
    'enemyHpDown': 'enemy_hp_down',
    'skillDamageBoost': 'skill_damage_boost',
    'priceDiscount': 'price_discount',
}

# Keys whose values are names, not records, and must not be renamed
_OPAQUE_KEYS = {'skill_mastery'}


# =============================================================================
# SERIALIZATION
# =============================================================================

def state_to_dict(state: GameState) -> Dict[str, Any]:
    farming = state.farming_mode
    return {
        'save_version': SAVE_VERSION,
        'player': state.player.to_dict(),
        'enemy': state.enemy.to_dict() if state.enemy else None,
        'inventory': [item.to_dict() for item in state.inventory],
        'equipped': {slot.value: item.to_dict() for slot, item in state.equipped.items() if item},
        'logs': [entry.to_dict() for entry in state.logs],
        'boss_timer': state.boss_timer,
        'auto_battle_enabled': state.auto_battle_enabled,
        'active_skills': {skill.value: s.to_dict() for skill, s in state.active_skills.items()},
        'farming_mode': {'min': farming.min_floor, 'max': farming.max_floor} if farming else None,
        'rare_drop_item': state.rare_drop_item.to_dict() if state.rare_drop_item else None,
    }


def state_from_dict(data: Dict[str, Any]) -> GameState:
    """Rebuild a GameState from migrated data. Raises on malformed values."""
    inventory = [Equipment.from_dict(item) for item in data.get('inventory') or []]
    by_id = {item.id: item for item in inventory}

    equipped = {}
    for slot_key, raw in (data.get('equipped') or {}).items():
        if not raw:
            continue
        try:
            slot = EquipmentType(slot_key)
        except ValueError:
            continue
        item = Equipment.from_dict(raw).with_equipped(True)
        equipped[slot] = item
        # Keep the inventory twin consistent with the equipped copy
        by_id[item.id] = item
    if equipped:
        inventory = [by_id[item.id] for item in inventory]
        known = {item.id for item in inventory}
        inventory.extend(item for item in equipped.values() if item.id not in known)

    active_skills = new_active_skills()
    for skill_key, raw in (data.get('active_skills') or {}).items():
        try:
            active_skills[ActiveSkill(skill_key)] = ActiveSkillState.from_dict(raw or {})
        except ValueError:
            continue

    farming = data.get('farming_mode')
    farming_mode = None
    if farming:
        farming_mode = FarmingMode(int(farming['min']), int(farming['max']))

    enemy_data = data.get('enemy')
    rare = data.get('rare_drop_item')
    boss_timer = data.get('boss_timer')
    return GameState(
        player=Player.from_dict(data.get('player') or {}),
        enemy=Enemy.from_dict(enemy_data) if enemy_data else None,
        inventory=inventory,
        equipped=equipped,
        logs=[LogEntry.from_dict(entry) for entry in data.get('logs') or []],
        boss_timer=int(boss_timer) if boss_timer is not None else None,
        auto_battle_enabled=bool(data.get('auto_battle_enabled', True)),
        active_skills=active_skills,
        farming_mode=farming_mode,
        rare_drop_item=Equipment.from_dict(rare) if rare else None,
    )


# =============================================================================
# MIGRATION
# =============================================================================

def _rename_legacy_keys(value: Any, opaque: bool = False) -> Any:
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            new_key = key if opaque else LEGACY_KEYS.get(key, key)
            result[new_key] = _rename_legacy_keys(item, opaque=new_key in _OPAQUE_KEYS)
        return result
    if isinstance(value, list):
        return [_rename_legacy_keys(item) for item in value]
    return value


def _migrate_farming_mode(farming: Any) -> Optional[dict]:
    if not isinstance(farming, dict):
        return None
    low = farming.get('min', farming.get('min_floor'))
    high = farming.get('max', farming.get('max_floor'))
    if low is None or high is None:
        return None
    return {'min': low, 'max': high}


def migrate_save_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Upgrade a loaded save dict to the current schema.

    Every step only fills what is missing, so applying it to an already
    current save changes nothing.
    """
    version = data.get('save_version', 1)
    if version < SAVE_VERSION:
        data = _rename_legacy_keys(data)
        logger.info("Migrating save from version %s to %s", version, SAVE_VERSION)
    else:
        data = dict(data)

    player = dict(data.get('player') or {})
    player.setdefault('skill_mastery', {})
    player.setdefault('reincarnation_stones', 0)
    player['merchant_upgrades'] = player.get('merchant_upgrades') or {}
    player['reincarnation_upgrades'] = player.get('reincarnation_upgrades') or {}
    player['auto_merchant_keys'] = player.get('auto_merchant_keys') or {}
    player['drop_preferences'] = player.get('drop_preferences') or {}
    if not player.get('max_floor_reached'):
        player['max_floor_reached'] = player.get('floor', 1)
    data['player'] = player

    data['inventory'] = [
        _fill_item_defaults(item) for item in data.get('inventory') or [] if isinstance(item, dict)
    ]
    data['equipped'] = {
        slot: _fill_item_defaults(item)
        for slot, item in (data.get('equipped') or {}).items()
        if isinstance(item, dict)
    }
    data['active_skills'] = data.get('active_skills') or {}
    data['farming_mode'] = _migrate_farming_mode(data.get('farming_mode'))
    data.setdefault('rare_drop_item', None)
    data.setdefault('boss_timer', None)
    data.setdefault('auto_battle_enabled', True)
    data['save_version'] = SAVE_VERSION
    return data


def _fill_item_defaults(item: dict) -> dict:
    item = dict(item)
    if not item.get('rank'):
        item['rank'] = 'D'
    return item


# =============================================================================
# LOAD / SAVE
# =============================================================================

def load_game(raw: Optional[str]) -> GameState:
    """
    Parse a saved JSON string into a GameState.

    Returns a fresh game when raw is empty or cannot be parsed.
    """
    if not raw:
        return new_game_state()
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("save root is not an object")
        return state_from_dict(migrate_save_data(data))
    except (ValueError, TypeError, KeyError, AttributeError, OverflowError) as e:
        logger.warning("Could not load save, starting a new game: %s", e)
        return new_game_state()


def dump_game(state: GameState) -> str:
    return json.dumps(state_to_dict(state))


def load_game_file(path: str) -> GameState:
    """Load a save file, falling back to a fresh game if missing or unreadable."""
    if not os.path.exists(path):
        return new_game_state()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = f.read()
    except OSError as e:
        logger.warning("Could not read save file %s: %s", path, e)
        return new_game_state()
    return load_game(raw)


def save_game_file(path: str, state: GameState) -> bool:
    """
    Write a save file.

    Returns:
        True if saved, False on error (logged)
    """
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = path + ".tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            f.write(dump_game(state))
        os.replace(tmp_path, path)
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.warning("Error saving game to %s: %s", path, e)
        return False
