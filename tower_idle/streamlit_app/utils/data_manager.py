"""
Data manager for loading and saving game sessions to JSON files.
Each save slot is a single JSON file holding the full GameState.
"""
import logging
import os
import re
from typing import List

import streamlit as st

from tower_idle.audio import AudioService
from tower_idle.game_loop import GameLoop
from tower_idle.save_data import load_game_file, save_game_file
from tower_idle.session import GameSession
from tower_idle.settings import get_data_dir, load_engine_config
from tower_idle.state import GameState

logger = logging.getLogger(__name__)

# Path to save directory
DATA_DIR = get_data_dir()
SAVES_DIR = os.path.join(DATA_DIR, "saves")

DEFAULT_SLOT = "default"
AUTOSAVE_EVERY_TICKS = 10

_SLOT_PATTERN = re.compile(r"[^A-Za-z0-9_-]+")


def sanitize_slot(slot: str) -> str:
    """Slot names become file names: keep letters, digits, - and _."""
    cleaned = _SLOT_PATTERN.sub("_", (slot or "").strip())[:40]
    return cleaned or DEFAULT_SLOT


def get_save_path(slot: str) -> str:
    return os.path.join(SAVES_DIR, f"{sanitize_slot(slot)}.json")


def list_save_slots() -> List[str]:
    if not os.path.isdir(SAVES_DIR):
        return []
    return sorted(
        name[:-5] for name in os.listdir(SAVES_DIR) if name.endswith(".json")
    )


def load_state(slot: str) -> GameState:
    """Load a slot, or a fresh game if it does not exist or is unreadable."""
    return load_game_file(get_save_path(slot))


def save_state(slot: str, state: GameState) -> bool:
    return save_game_file(get_save_path(slot), state)


def delete_save_slot(slot: str) -> bool:
    path = get_save_path(slot)
    try:
        if os.path.exists(path):
            os.remove(path)
        return True
    except OSError as e:
        logger.warning("Error deleting save %s: %s", path, e)
        return False


# =============================================================================
# SESSION STATE
# =============================================================================

def get_game_session() -> GameSession:
    """The GameSession for this browser session, created on first use."""
    if 'game_session' not in st.session_state:
        slot = st.session_state.get('save_slot', DEFAULT_SLOT)
        st.session_state.save_slot = slot
        session = GameSession(load_state(slot), GameLoop(load_engine_config()))
        audio = AudioService()
        audio.init()
        session.subscribe(audio.on_state)
        st.session_state.game_session = session
        st.session_state.audio = audio
        st.session_state.last_saved_tick = 0
    return st.session_state.game_session


def get_audio() -> AudioService:
    get_game_session()
    return st.session_state.audio


def switch_slot(slot: str):
    """Save the current slot and load another one."""
    if 'game_session' in st.session_state:
        save_current()
        st.session_state.audio.dispose()
        del st.session_state['game_session']
    st.session_state.save_slot = sanitize_slot(slot)
    get_game_session()


def save_current() -> bool:
    session = get_game_session()
    ok = save_state(st.session_state.save_slot, session.state)
    if ok:
        st.session_state.last_saved_tick = session.ticks_run
    return ok


def autosave():
    session = get_game_session()
    if session.ticks_run - st.session_state.get('last_saved_tick', 0) >= AUTOSAVE_EVERY_TICKS:
        save_current()


def set_battle_visible(visible: bool):
    """
    Suspend or resume ticks and audio.

    The battle view calls this with True on every rerun; the other pages
    call it with False, so the climb stops while the player is elsewhere.
    """
    get_game_session().set_visible(visible)
    get_audio().set_visible(visible)


def apply_action(action, *args) -> bool:
    """Apply an action to the live session and save right away."""
    changed = get_game_session().apply(action, *args)
    if changed:
        save_current()
    return changed
