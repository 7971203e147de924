import math
import threading
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from flask import current_app

from quizarena import db
from quizarena.errors import ConfigurationError, ValidationError
from quizarena.models import GameState, GAME_STATE_ID
from quizarena.services.clock import ensure_utc, parse_instant, utcnow

GameStateUpdate = Dict[str, Any]

DEFAULT_GAME_DURATION_MS = 10 * 60 * 1000
# Fits a 32-bit Integer column and keeps now + duration inside datetime range
MAX_MILLIS = 2 ** 31 - 1

# One effective writer per process
_write_lock = threading.RLock()


def _require_bool(partial: GameStateUpdate, key: str) -> None:
    if key in partial and not isinstance(partial[key], bool):
        raise ValidationError(f'{key} must be a boolean')


def _require_millis(partial: GameStateUpdate, key: str, minimum: int) -> None:
    if key not in partial:
        return
    value = partial[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f'{key} must be a finite number')
    if value < minimum or value > MAX_MILLIS:
        raise ValidationError(f'{key} must be between {minimum} and {MAX_MILLIS}')


class GameStateStore:
    """Durable singleton round record with server-side partial merge.

    ``write`` only touches the fields present in the update. Transitions that
    depend on the prior state (activation stamping ``startTime``, live
    duration edits) are resolved here, under the process write lock, so that
    concurrent admin requests cannot lose each other's fields.
    """

    def __init__(self, default_duration_ms: int = DEFAULT_GAME_DURATION_MS, lock=None):
        self.default_duration_ms = int(default_duration_ms)
        self._lock = lock or _write_lock

    def init_app(self, app) -> None:
        self.default_duration_ms = int(app.config.get('DEFAULT_GAME_DURATION_MS', self.default_duration_ms))
        app.extensions['game_state_store'] = self

    def _load(self) -> GameState:
        state = db.session.get(GameState, GAME_STATE_ID)
        if state is None:
            state = GameState(
                id=GAME_STATE_ID,
                active=False,
                start_time=None,
                end_time=None,
                duration=self.default_duration_ms,
                is_paused=False,
                paused_time_remaining=0,
            )
            db.session.add(state)
            db.session.commit()
        return state

    def read(self) -> GameState:
        with self._lock:
            return self._load()

    def write(self, partial: GameStateUpdate, now=None) -> GameState:
        return self.transact(lambda state, at: partial, now=now)

    def transact(self, build: Callable[[GameState, Any], GameStateUpdate], now=None) -> GameState:
        """Build a partial update from the current row and apply it atomically.

        ``build`` receives the loaded state and the pinned ``now``; it may raise
        to abort without writing.
        """
        now = now or utcnow()
        with self._lock:
            state = self._load()
            partial = build(state, now)
            try:
                self._apply(state, partial, now)
                db.session.add(state)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
            return state

    def _apply(self, state: GameState, partial: GameStateUpdate, now) -> None:
        if not isinstance(partial, dict):
            raise ValidationError('Game state update must be an object')
        _require_bool(partial, 'active')
        _require_bool(partial, 'isPaused')
        _require_millis(partial, 'pausedTimeRemaining', 0)
        _require_millis(partial, 'duration', 1)
        end_time = parse_instant(partial['endTime']) if 'endTime' in partial else None
        if partial.get('isPaused') is True and 'pausedTimeRemaining' not in partial:
            raise ValidationError('pausedTimeRemaining is required when pausing')

        if partial.get('active') is True and not state.active:
            state.start_time = now
            if 'endTime' not in partial:
                state.end_time = None
            state.is_paused = False
            state.paused_time_remaining = 0

        if 'active' in partial:
            state.active = partial['active']

        if 'isPaused' in partial:
            state.is_paused = partial['isPaused']
            if partial['isPaused']:
                state.paused_time_remaining = int(partial['pausedTimeRemaining'])
            else:
                state.paused_time_remaining = 0

        if 'endTime' in partial:
            state.end_time = end_time

        if 'duration' in partial:
            state.duration = int(partial['duration'])
            # Paused rounds keep their frozen remaining time
            if state.active and state.start_time and state.end_time and not state.is_paused:
                state.end_time = ensure_utc(state.start_time) + timedelta(milliseconds=state.duration)


def current_store() -> GameStateStore:
    store: Optional[GameStateStore] = current_app.extensions.get('game_state_store')
    if store is None:
        raise ConfigurationError('GameStateStore has not been initialized for this app')
    return store
