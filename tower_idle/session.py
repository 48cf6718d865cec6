"""
Tower Idle - Game Session
=========================
Owns the live GameState and decides when the next tick runs.

The host (web app, headless runner) calls run_pending() whenever it gets
control. A call runs the ticks that came due since the last one, up to
max_ticks; anything past that bound is dropped, so a session that was
hidden or starved for a while resumes at the normal pace instead of
replaying the missed ticks.
"""

import logging
import math
import time
from typing import Callable, List, Optional

from .game_loop import GameLoop
from .settings import EngineConfig, GameSpeed
from .state import GameState, LogEntry, new_game_state

logger = logging.getLogger(__name__)

StateListener = Callable[[GameState, List[LogEntry]], None]


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class GameSession:
    """
    Single-threaded tick scheduler around one GameLoop.

    Actions go through apply() so they serialize with ticks; a tick never
    starts while an action is being applied.
    """

    def __init__(
        self,
        state: Optional[GameState] = None,
        loop: Optional[GameLoop] = None,
        speed: GameSpeed = GameSpeed.NORMAL,
        clock: Callable[[], int] = monotonic_ms,
    ):
        self.state = state or new_game_state()
        self.loop = loop or GameLoop()
        self.speed = speed
        self.clock = clock
        self.visible = True
        self.running = True
        self.ticks_run = 0
        self._last_tick_at = clock()
        self._listeners: List[StateListener] = []

    @property
    def config(self) -> EngineConfig:
        return self.loop.config

    @property
    def delay_ms(self) -> int:
        return self.config.tick_delay_ms(self.speed)

    def subscribe(self, listener: StateListener):
        """Call listener(state, new_logs) after every tick and action."""
        self._listeners.append(listener)

    def set_speed(self, speed: GameSpeed):
        self.speed = speed

    def pause(self):
        """Host reported itself hidden or unfocused."""
        self.visible = False

    def resume(self):
        """Host visible again. Restart the interval from now."""
        if not self.visible:
            self.visible = True
            self._last_tick_at = self.clock()

    def set_visible(self, visible: bool):
        """Forward a host visibility change to pause() / resume()."""
        if visible:
            self.resume()
        else:
            self.pause()

    def ticks_per_poll(self, poll_interval_ms: int, limit: int = 10) -> int:
        """Ticks a host polling every poll_interval_ms needs per poll to keep the set speed."""
        return max(1, min(limit, math.ceil(poll_interval_ms / self.delay_ms)))

    def stop(self):
        self.running = False

    def run_pending(self, wall_ms: Optional[int] = None, max_ticks: int = 1) -> int:
        """
        Run the ticks that came due since the last call.

        Args:
            wall_ms: Epoch milliseconds passed to the tick (skill timers)
            max_ticks: Most ticks to run in this call; older due ticks are dropped

        Returns:
            Number of ticks run
        """
        if not self.running or not self.visible:
            return 0
        now = self.clock()
        delay = self.delay_ms
        due = (now - self._last_tick_at) // delay
        if due <= 0:
            return 0
        count = min(due, max(1, max_ticks))
        if due > count:
            self._last_tick_at = now
        else:
            self._last_tick_at += count * delay
        for _ in range(count):
            self._commit(self.loop.tick(self.state, wall_ms))
            self.ticks_run += 1
        return count

    def apply(self, action: Callable[..., GameState], *args, **kwargs) -> bool:
        """
        Apply an action function (state, *args) -> state.

        Returns:
            False if the action was a no-op
        """
        new_state = action(self.state, *args, **kwargs)
        if new_state is self.state:
            return False
        self._commit(new_state)
        return True

    def _commit(self, new_state: GameState):
        old_ids = {entry.id for entry in self.state.logs}
        new_logs = [entry for entry in new_state.logs if entry.id not in old_ids]
        self.state = new_state
        for listener in self._listeners:
            listener(new_state, new_logs)
