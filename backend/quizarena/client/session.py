import logging
from typing import Any, Callable, Dict, Mapping, MutableMapping, Optional

from quizarena.client.anticheat import AntiCheatMonitor, MonitorState
from quizarena.client.countdown import Countdown
from quizarena.services.clock import utcnow

logger = logging.getLogger(__name__)

Payload = Dict[str, Any]


class PlayerSession:
    """One player's view of the round, wired to any transport.

    Realtime messages are treated as hints: a ``gameStatusChange`` triggers a
    full pull through ``fetch_state`` when one is available, and every
    (re)connect pulls state and re-joins the team channel.

    :param fetch_state: returns the game-state document (``GET /api/game-state``)
    :param emit: sends a realtime message to the server
    :param block_request: reports an anti-cheat block (``block-by-name``)
    :param fetch_team: optional enrollment lookup (``GET /api/enroll?teamName=``)
    :param identity: persistent storage for ``teamName``/``email``
    """

    def __init__(
        self,
        fetch_state: Optional[Callable[[], Payload]],
        emit: Callable[[str, Payload], Any],
        block_request: Callable[[Payload], Any],
        fetch_team: Optional[Callable[[str], Payload]] = None,
        identity: Optional[MutableMapping[str, str]] = None,
        threshold: int = 2,
        clock=utcnow,
        on_expired: Optional[Callable[[], None]] = None,
    ):
        self.fetch_state = fetch_state
        self.emit = emit
        self.block_request = block_request
        self.fetch_team = fetch_team
        self.identity = identity if identity is not None else {}
        self.threshold = threshold
        self.game_state: Payload = {}
        self.blocked = False
        self.blocked_team: Optional[str] = None
        self.countdown = Countdown(on_expired=on_expired, clock=clock)
        self.monitor: Optional[AntiCheatMonitor] = None
        if self.team_name:
            self._build_monitor(self.team_name)

    @classmethod
    def from_config(cls, config: Mapping[str, Any], fetch_state, emit, block_request, **kwargs) -> 'PlayerSession':
        """Build a session whose monitor uses ``VIOLATION_THRESHOLD`` from ``config``."""
        kwargs.setdefault('threshold', int(config.get('VIOLATION_THRESHOLD', 2)))
        return cls(fetch_state, emit, block_request, **kwargs)

    @property
    def team_name(self) -> Optional[str]:
        return self.identity.get('teamName')

    @property
    def enrolled(self) -> bool:
        return bool(self.team_name)

    def _build_monitor(self, team_name: str) -> None:
        self.monitor = AntiCheatMonitor(
            team_name,
            block_request=self.block_request,
            threshold=self.threshold,
            on_identity_cleared=self._clear_identity,
            on_state_change=self._monitor_state_changed,
        )

    def _clear_identity(self) -> None:
        self.identity.pop('teamName', None)
        self.identity.pop('email', None)

    def _monitor_state_changed(self, state: MonitorState) -> None:
        if state is MonitorState.BLOCKED:
            self.blocked = True

    def enroll(self, team_name: str, email: str) -> None:
        self.identity['teamName'] = team_name
        self.identity['email'] = email
        self.blocked = False
        self.blocked_team = None
        self._build_monitor(team_name)
        self.emit('joinTeam', {'teamName': team_name})
        self._sync_monitor()

    def on_connect(self) -> None:
        self.resync()
        if self.team_name and not self.blocked:
            self.emit('joinTeam', {'teamName': self.team_name})

    def resync(self) -> None:
        if self.fetch_state is not None:
            self.apply_state(self.fetch_state())
        if self.fetch_team is not None and self.team_name:
            status = self.fetch_team(self.team_name) or {}
            if not status.get('enrolled', False):
                logger.info(f"[session] team {self.team_name} is no longer enrolled")
                self._clear_identity()
                self.monitor = None
            elif status.get('isBlocked'):
                self.mark_blocked()

    def apply_state(self, snapshot: Payload) -> None:
        self.game_state.update(snapshot or {})
        self.countdown.update(self.game_state)
        self._sync_monitor()

    def _sync_monitor(self) -> None:
        if self.monitor is not None:
            self.monitor.sync(self.enrolled or self.blocked, bool(self.game_state.get('active')))

    def handle_event(self, event: str, payload: Payload) -> None:
        if event == 'gameStatusChange' or event == 'connected':
            if self.fetch_state is not None:
                self.resync()
            else:
                self.apply_state(payload.get('gameState', payload) if event == 'connected' else payload)
        elif event == 'teamStatusChange':
            mine = self.team_name or self.blocked_team
            if not payload or payload.get('teamName') != mine:
                return
            if payload.get('isBlocked'):
                self.mark_blocked()
            elif self.blocked and self.team_name:
                self.blocked = False

    def mark_blocked(self) -> None:
        """Enter the terminal blocked screen for this session."""
        self.blocked_team = self.team_name or self.blocked_team
        self.blocked = True
        if self.monitor is not None:
            self.monitor.force_block()

    def on_visibility_change(self, hidden: bool) -> None:
        if self.monitor is not None:
            self._remember_team()
            self.monitor.on_visibility_change(hidden)

    def on_fullscreen_change(self, is_fullscreen: bool) -> None:
        if self.monitor is not None:
            self._remember_team()
            self.monitor.on_fullscreen_change(is_fullscreen)

    def _remember_team(self) -> None:
        if self.team_name:
            self.blocked_team = self.team_name

    def remaining(self, now=None) -> Optional[int]:
        return self.countdown.tick(now)
