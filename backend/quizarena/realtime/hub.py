import logging
import threading
from typing import Any, Dict, List, Optional

from flask import current_app

from quizarena.errors import DeliveryError

logger = logging.getLogger(__name__)


def team_room(team_name: str) -> str:
    return f"team:{team_name}"


class RealtimeHub:
    """Process-lifetime registry of realtime connections.

    Every registered connection belongs to the global channel and to at most
    one team channel. Broadcasts are fire-and-forget: no acknowledgment, no
    retry and no replay, so clients re-sync by pulling the game state on
    (re)connect. Registrations live only in memory and are lost on restart.
    """

    def __init__(self, namespace: str = '/ws'):
        self._socketio = None
        self.namespace = namespace
        self._lock = threading.RLock()
        self._connections: Dict[str, Optional[str]] = {}

    def init_app(self, app, socketio) -> None:
        self._socketio = socketio
        self.namespace = app.config.get('SOCKETIO_NAMESPACE', self.namespace)
        with self._lock:
            self._connections.clear()
        app.extensions['realtime_hub'] = self
        logger.info(f"[hub] initialized namespace={self.namespace}")

    @property
    def initialized(self) -> bool:
        return self._socketio is not None

    def _transport(self):
        if self._socketio is None:
            raise DeliveryError('Realtime hub is not initialized')
        return self._socketio

    # ---- registry ----

    def register(self, sid: str) -> None:
        with self._lock:
            self._connections.setdefault(sid, None)
        logger.debug(f"[hub] register sid={sid} total={self.connection_count()}")

    def join_team_channel(self, sid: str, team_name: str) -> str:
        """Move ``sid`` into the team's channel, leaving any previous one."""
        transport = self._transport()
        room = team_room(team_name)
        with self._lock:
            previous = self._connections.get(sid)
            self._connections[sid] = team_name
        if previous and previous != team_name:
            transport.server.leave_room(sid, team_room(previous), namespace=self.namespace)
        transport.server.enter_room(sid, room, namespace=self.namespace)
        logger.info(f"[hub] sid={sid} joined {room}")
        return room

    def leave_team_channel(self, sid: str) -> Optional[str]:
        with self._lock:
            previous = self._connections.get(sid)
            if sid in self._connections:
                self._connections[sid] = None
        if previous and self._socketio is not None:
            self._socketio.server.leave_room(sid, team_room(previous), namespace=self.namespace)
        return previous

    def unregister(self, sid: str) -> None:
        with self._lock:
            team_name = self._connections.pop(sid, None)
        logger.debug(f"[hub] unregister sid={sid} team={team_name}")

    def team_of(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._connections.get(sid)

    def team_members(self, team_name: str) -> List[str]:
        with self._lock:
            return [sid for sid, team in self._connections.items() if team == team_name]

    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    # ---- delivery ----

    def broadcast_global(self, event: str, payload: Dict[str, Any]) -> None:
        transport = self._transport()
        try:
            transport.emit(event, payload, namespace=self.namespace)
        except Exception as exc:
            raise DeliveryError(f'Broadcast of {event} failed: {exc}') from exc
        logger.info(f"[hub] broadcast {event} to {self.connection_count()} connection(s)")

    def broadcast_to_team(self, team_name: str, event: str, payload: Dict[str, Any]) -> None:
        """Deliver to the team channel, then again on the global channel."""
        transport = self._transport()
        room = team_room(team_name)
        try:
            transport.emit(event, payload, to=room, namespace=self.namespace)
        except Exception as exc:
            raise DeliveryError(f'Broadcast of {event} to {room} failed: {exc}') from exc
        self.broadcast_global(event, payload)


def current_hub() -> RealtimeHub:
    """Hub bound to the current app; raises DeliveryError before init."""
    hub = current_app.extensions.get('realtime_hub')
    if hub is None or not hub.initialized:
        raise DeliveryError('Realtime hub is not initialized')
    return hub
