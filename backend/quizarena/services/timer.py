"""Round timer transitions.

Every operation is a pure builder that turns the current row into a partial
update for :class:`GameStateStore`; :class:`TimerController` runs the builder
inside the store's transaction so read-then-write is atomic.
"""

from datetime import timedelta
from typing import Any, Dict, Mapping, Optional

from quizarena.errors import PreconditionError
from quizarena.models import GameState
from quizarena.services.clock import ensure_utc, millis_between, parse_instant, to_iso
from quizarena.services.game_state import DEFAULT_GAME_DURATION_MS, GameStateStore


def effective_duration(duration, default_ms: int = DEFAULT_GAME_DURATION_MS) -> int:
    if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration <= 0:
        return int(default_ms)
    return int(duration)


def remaining_ms(snapshot: Mapping[str, Any], now) -> Optional[int]:
    """Remaining round time in ms, or None when no timer is armed.

    ``snapshot`` is the wire shape (``isPaused``, ``pausedTimeRemaining``,
    ``endTime``). Server and player clients both read time through this.
    """
    if snapshot.get('isPaused'):
        return max(0, int(snapshot.get('pausedTimeRemaining') or 0))
    end_time = parse_instant(snapshot.get('endTime'))
    if end_time is None:
        return None
    return max(0, millis_between(now, end_time))


def start_timer_update(state: GameState, now, default_ms: int = DEFAULT_GAME_DURATION_MS) -> Dict[str, Any]:
    duration = effective_duration(state.duration, default_ms)
    return {
        'endTime': to_iso(now + timedelta(milliseconds=duration)),
        'isPaused': False,
        'pausedTimeRemaining': 0,
    }


def force_start_update(state: GameState, now, default_ms: int = DEFAULT_GAME_DURATION_MS) -> Dict[str, Any]:
    update = start_timer_update(state, now, default_ms)
    update['active'] = True
    return update


def pause_update(state: GameState, now) -> Dict[str, Any]:
    if state.end_time is None:
        raise PreconditionError('Cannot pause: no timer armed')
    if state.is_paused:
        raise PreconditionError('Cannot pause: timer is already paused')
    remaining = max(0, millis_between(now, ensure_utc(state.end_time)))
    return {'isPaused': True, 'pausedTimeRemaining': remaining}


def resume_update(state: GameState, now) -> Dict[str, Any]:
    if not state.is_paused:
        raise PreconditionError('Cannot resume: timer is not paused')
    remaining = int(state.paused_time_remaining or 0)
    return {
        'isPaused': False,
        'pausedTimeRemaining': 0,
        'endTime': to_iso(now + timedelta(milliseconds=remaining)),
    }


def toggle_active_update(state: GameState, now) -> Dict[str, Any]:
    activating = not state.active
    update: Dict[str, Any] = {'active': activating, 'isPaused': bool(state.is_paused)}
    if state.is_paused:
        update['pausedTimeRemaining'] = int(state.paused_time_remaining or 0)
    if not activating:
        # Stopping the round ends the timer
        update['endTime'] = None
    return update


class TimerController:

    def __init__(self, store: GameStateStore):
        self.store = store

    def start_timer(self, now=None) -> GameState:
        return self.store.transact(
            lambda state, at: start_timer_update(state, at, self.store.default_duration_ms), now=now)

    def force_start(self, now=None) -> GameState:
        return self.store.transact(
            lambda state, at: force_start_update(state, at, self.store.default_duration_ms), now=now)

    def pause(self, now=None) -> GameState:
        return self.store.transact(pause_update, now=now)

    def resume(self, now=None) -> GameState:
        return self.store.transact(resume_update, now=now)

    def toggle_active(self, now=None) -> GameState:
        return self.store.transact(toggle_active_update, now=now)
