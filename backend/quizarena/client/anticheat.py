"""Player-side violation tracking.

Visibility and fullscreen signals are reported by the player's runtime and are
advisory only; the server's block endpoint is the authority.
"""

import enum
import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

TAB_HIDDEN = 'tab hidden'
FULLSCREEN_EXITED = 'exited fullscreen'


class MonitorState(enum.Enum):
    UNMONITORED = 'unmonitored'
    MONITORING = 'monitoring'
    WARNED = 'warned'
    BLOCKED = 'blocked'


class AntiCheatMonitor:

    def __init__(
        self,
        team_name: str,
        block_request: Callable[[Dict[str, Any]], Any],
        threshold: int = 2,
        on_identity_cleared: Optional[Callable[[], None]] = None,
        on_state_change: Optional[Callable[[MonitorState], None]] = None,
    ):
        self.team_name: Optional[str] = team_name
        self.block_request = block_request
        self.threshold = max(1, int(threshold))
        self.on_identity_cleared = on_identity_cleared
        self.on_state_change = on_state_change
        self.state = MonitorState.UNMONITORED
        self.violations = 0
        self.block_requests = 0
        self.in_fullscreen = False
        self.fullscreen_warning = False

    def _set_state(self, state: MonitorState) -> None:
        if state is self.state:
            return
        logger.info(f"[anticheat] {self.state.value} -> {state.value}")
        self.state = state
        if self.on_state_change:
            self.on_state_change(state)

    @property
    def watching(self) -> bool:
        return self.state in (MonitorState.MONITORING, MonitorState.WARNED)

    def sync(self, enrolled: bool, game_active: bool) -> MonitorState:
        """Start or stop watching as enrollment and the round change."""
        if self.state is MonitorState.BLOCKED:
            return self.state
        if enrolled and game_active:
            if self.state is MonitorState.UNMONITORED:
                self._set_state(MonitorState.WARNED if self.violations else MonitorState.MONITORING)
        else:
            self._set_state(MonitorState.UNMONITORED)
        return self.state

    def wants_fullscreen(self) -> bool:
        """Whether to attempt fullscreen on the next activation or user gesture."""
        return self.watching and not self.in_fullscreen

    def fullscreen_request_result(self, granted: bool) -> None:
        if granted:
            self.on_fullscreen_change(True)
        else:
            # Refusal is a standing warning, never a violation
            self.fullscreen_warning = True

    def on_fullscreen_change(self, is_fullscreen: bool) -> MonitorState:
        if is_fullscreen:
            self.in_fullscreen = True
            self.fullscreen_warning = False
            return self.state
        if not self.in_fullscreen:
            return self.state
        self.in_fullscreen = False
        return self.record_violation(FULLSCREEN_EXITED)

    def on_visibility_change(self, hidden: bool) -> MonitorState:
        if hidden:
            return self.record_violation(TAB_HIDDEN)
        return self.state

    def record_violation(self, reason: str) -> MonitorState:
        if not self.watching:
            return self.state
        self.violations += 1
        logger.info(f"[anticheat] violation #{self.violations} team={self.team_name} reason={reason}")
        if self.violations >= self.threshold:
            self._block(reason)
        else:
            self._set_state(MonitorState.WARNED)
        return self.state

    def force_block(self) -> None:
        """Apply a block decided elsewhere (admin action); sends no request."""
        if self.state is MonitorState.BLOCKED:
            return
        self._set_state(MonitorState.BLOCKED)
        self._clear_identity()

    def _clear_identity(self) -> Optional[str]:
        team_name, self.team_name = self.team_name, None
        if self.on_identity_cleared:
            self.on_identity_cleared()
        return team_name

    def _block(self, reason: str) -> None:
        # Local state is terminal before the server hears about it
        self._set_state(MonitorState.BLOCKED)
        team_name = self._clear_identity()
        if not team_name:
            return
        self.block_requests += 1
        try:
            self.block_request({'teamName': team_name, 'reason': reason})
        except Exception as exc:
            logger.warning(f"[anticheat] block request for {team_name} failed: {exc}")
