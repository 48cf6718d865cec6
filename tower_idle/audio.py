"""
Tower Idle - Audio Cues
=======================
Turns game events into sound cues for whatever front end plays them.

The engine never imports this module. A host creates one AudioService,
subscribes it to its GameSession, and reads queued cues / the current BGM
track when it renders.
"""

import logging
from collections import deque
from typing import Deque, Iterable, List, Optional

from .state import GameState, LogEntry, LogType

logger = logging.getLogger(__name__)

BGM_NORMAL = "bgm_normal"
BGM_BOSS = "bgm_boss"
CUE_CRITICAL = "critical"

MAX_QUEUED_CUES = 32


def bgm_track_for_floor(floor: int) -> str:
    """Boss music on the last 100 floors of every 500-floor tier."""
    return BGM_BOSS if (floor - 1) % 500 >= 400 else BGM_NORMAL


def cues_for_logs(logs: Iterable[LogEntry]) -> List[str]:
    return [CUE_CRITICAL for entry in logs if entry.type == LogType.CRIT]


class AudioService:
    """
    Explicit audio state: enabled flag, visibility and a bounded cue queue.

    Nothing plays while uninitialized, muted or hidden.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.visible = True
        self.initialized = False
        self.bgm_track: Optional[str] = None
        self._cues: Deque[str] = deque(maxlen=MAX_QUEUED_CUES)

    def init(self):
        self.initialized = True
        logger.debug("Audio service initialized")

    def dispose(self):
        self.initialized = False
        self.bgm_track = None
        self._cues.clear()

    @property
    def can_play(self) -> bool:
        return self.initialized and self.enabled and self.visible

    def toggle(self) -> bool:
        self.enabled = not self.enabled
        if not self.enabled:
            self._cues.clear()
        return self.enabled

    def set_visible(self, visible: bool):
        self.visible = visible
        if not visible:
            self._cues.clear()

    def current_bgm(self) -> Optional[str]:
        return self.bgm_track if self.can_play else None

    def on_state(self, state: GameState, new_logs: List[LogEntry]):
        """GameSession listener: update BGM and queue cues for new logs."""
        self.bgm_track = bgm_track_for_floor(state.player.floor)
        if not self.can_play:
            return
        self._cues.extend(cues_for_logs(new_logs))

    def drain(self) -> List[str]:
        """Pop every queued cue."""
        cues = list(self._cues)
        self._cues.clear()
        return cues
