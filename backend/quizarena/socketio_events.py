from flask import current_app, request
from flask_socketio import emit
from quizarena import socketio, hub
from quizarena.errors import DeliveryError
from quizarena.services.game_state import current_store
from quizarena.services.notifications import GAME_STATUS_CHANGE


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _status_snapshot():
    return current_store().read().status_payload()


def handle_connect(auth=None):
    hub.register(_get_sid())
    # Missed broadcasts are never replayed; hand the client a fresh snapshot
    emit('connected', {'message': 'Connected to /ws', 'gameState': _status_snapshot()})


def handle_disconnect(reason=None):
    sid = _get_sid()
    team_name = hub.team_of(sid)
    hub.unregister(sid)
    current_app.logger.info(f"[hub] disconnect sid={sid} team={team_name} reason={reason}")


def handle_join_team(data):
    team_name = (data or {}).get('teamName')
    if not isinstance(team_name, str) or not team_name.strip():
        emit('error', {'message': 'teamName is required'})
        return
    try:
        room = hub.join_team_channel(_get_sid(), team_name.strip())
    except DeliveryError as exc:
        emit('error', {'message': exc.message})
        return
    emit('joinedTeam', {'room': room, 'teamName': team_name.strip()})


def handle_leave_team(data=None):
    previous = hub.leave_team_channel(_get_sid())
    emit('leftTeam', {'teamName': previous})


def handle_sync_state(data=None):
    emit(GAME_STATUS_CHANGE, _status_snapshot())


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the game namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('joinTeam', handle_join_team, namespace=namespace)
    socketio.on_event('leaveTeam', handle_leave_team, namespace=namespace)
    socketio.on_event('syncState', handle_sync_state, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
