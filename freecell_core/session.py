from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .autocomplete import AutoMove, can_auto_complete, next_auto_complete_move
from .deal import create_auto_complete_fixture, initialize_game
from .moves import Locator, apply_move, legal_destinations, locator_to_json
from .rules import max_movable_sequence_length
from .state import BoardState, state_to_json
from .ticker import Scheduler, StepTicker

logger = logging.getLogger(__name__)

StatsRecorder = Callable[[int, int, bool], Any]  # (moves, elapsed_seconds, won)


class Status(str, Enum):
    IDLE = 'idle'
    PLAYING = 'playing'
    AUTO_COMPLETING = 'auto_completing'
    WON = 'won'


class GameSession:
    """
    Owns the live board for one player and drives it.

    User moves go through apply_move; after every change the board is polled
    for auto-completion, and while it is auto-completing one safe foundation
    move is applied per tick of the step ticker. Finished and abandoned games
    are reported to the stats recorder, and a failing recorder is only logged.
    """

    def __init__(
        self,
        record_session: Optional[StatsRecorder] = None,
        user_present: Optional[Callable[[], bool]] = None,
        auto_delay: float = 0.3,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.time,
        executor: Optional[Executor] = None,
    ) -> None:
        self._record_session = record_session
        self._user_present = user_present or (lambda: record_session is not None)
        self._clock = clock
        self._executor = executor
        self._lock = threading.RLock()
        self._ticker = StepTicker(auto_delay, scheduler)
        self._reported = False
        self._closed = False
        self.generation = 0
        self.state: Optional[BoardState] = None
        self.status = Status.IDLE
        self.selection: Optional[Locator] = None
        self.highlight: Optional[AutoMove] = None

    # ---------- lifecycle ----------

    def new_game(self, seed: Optional[int] = None) -> BoardState:
        return self._start(initialize_game(seed=seed, now=self._clock()))

    def load_fixture(self) -> BoardState:
        """Starts the near-won diagnostic layout instead of a fresh deal."""
        return self._start(create_auto_complete_fixture(now=self._clock()))

    def _start(self, state: BoardState) -> BoardState:
        with self._lock:
            if self._closed:
                raise RuntimeError('session is closed')
            self._ticker.cancel()
            self._report_abandoned()
            self.generation += 1
            self._reported = False
            self.selection = None
            self.highlight = None
            self.state = state
            self.status = Status.PLAYING
            logger.debug('game %d started', self.generation)
            self._after_change()
            return state

    def close(self) -> None:
        """Cancels any pending auto-complete step. The session accepts nothing afterwards."""
        with self._lock:
            self._ticker.cancel()
            self._closed = True

    def __enter__(self) -> 'GameSession':
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ---------- user intent ----------

    def move(self, source: Locator, dest: Locator) -> bool:
        """Applies a user move. Returns False when rejected or while auto-completing."""
        with self._lock:
            if self.status is not Status.PLAYING or self.state is None:
                return False
            nxt = apply_move(self.state, source, dest)
            if nxt is None:
                return False
            self.selection = None
            self._publish(nxt)
            return True

    def select(self, loc: Optional[Locator]) -> bool:
        with self._lock:
            if self.status is not Status.PLAYING:
                return False
            self.selection = loc
            return True

    def legal_destinations(self, source: Locator):
        with self._lock:
            if self.status is not Status.PLAYING or self.state is None:
                return []
            return legal_destinations(self.state, source)

    # ---------- auto-complete ----------

    def step_auto_complete(self) -> Optional[AutoMove]:
        """Applies exactly one safe foundation move, if the session is auto-completing."""
        with self._lock:
            if self.status is not Status.AUTO_COMPLETING or self.state is None:
                return None
            self._ticker.cancel()
            step = next_auto_complete_move(self.state)
            nxt = apply_move(self.state, step.source, step.dest) if step else None
            if step is None or nxt is None:
                logger.warning('auto-complete stalled at move %d', self.state.moves)
                self.status = Status.PLAYING
                self.highlight = None
                return None
            self._publish(nxt)
            return step

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self.generation or self._closed:
                logger.debug('dropping stale auto-complete step for game %d', generation)
                return
            self.step_auto_complete()

    # ---------- internals ----------

    def _publish(self, nxt: BoardState) -> None:
        self.state = nxt
        self._after_change()

    def _after_change(self) -> None:
        state = self.state
        assert state is not None
        if state.is_won:
            self._ticker.cancel()
            self.status = Status.WON
            self.highlight = None
            logger.info('game %d won in %d moves', self.generation, state.moves)
            self._report(won=True)
            return
        if can_auto_complete(state):
            self.status = Status.AUTO_COMPLETING
            self.highlight = next_auto_complete_move(state)
            generation = self.generation
            self._ticker.schedule(lambda: self._tick(generation))
            return
        self.status = Status.PLAYING
        self.highlight = None

    def _report_abandoned(self) -> None:
        state = self.state
        if state is not None and not state.is_won:
            self._report(won=False)

    def _report(self, won: bool) -> None:
        state = self.state
        if state is None or self._reported or state.moves == 0 or self._record_session is None:
            return
        self._reported = True
        try:
            if not self._user_present():
                return
        except Exception:
            logger.exception('identity lookup failed; not recording session')
            return
        elapsed = int(max(0.0, self._clock() - state.start_time))
        args = (state.moves, elapsed, won)
        if self._executor is not None:
            fut = self._executor.submit(self._record_session, *args)
            fut.add_done_callback(_log_failure)
            return
        try:
            self._record_session(*args)
        except Exception:
            logger.exception('failed to record game session')

    # ---------- render view ----------

    def snapshot(self) -> Dict[str, Any]:
        """Read-only view for rendering: board, status and transient hints."""
        with self._lock:
            state = self.state
            highlight = None
            if self.highlight is not None:
                highlight = {
                    'card': self.highlight.card.id,
                    'from': locator_to_json(self.highlight.source),
                    'to': locator_to_json(self.highlight.dest),
                }
            return {
                'status': self.status.value,
                'state': state_to_json(state) if state is not None else None,
                'selection': locator_to_json(self.selection) if self.selection is not None else None,
                'autoComplete': highlight,
                'maxMovable': max_movable_sequence_length(state) if state is not None else None,
            }


def _log_failure(fut) -> None:
    exc = fut.exception()
    if exc is not None:
        logger.error('failed to record game session: %s', exc)
