from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required

from quizarena.errors import ValidationError
from quizarena.services.game_state import current_store
from quizarena.services.notifications import notify_game_status
from quizarena.services.timer import TimerController

game_state = Blueprint('game_state', __name__)


def _timer() -> TimerController:
    return TimerController(current_store())


@game_state.route('', methods=['GET'])
def get_game_state():
    return jsonify(current_store().read().to_dict())


@game_state.route('', methods=['PUT'])
@login_required
def update_game_state():
    """Merge-update the round record; does not broadcast (see /api/admin/notify)."""
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError('Request body must be a JSON object')
    current_app.logger.info(f"[game-state] update {body}")
    state = current_store().write(body)
    return jsonify(state.to_dict())


@game_state.route('/toggle', methods=['POST'])
@login_required
def toggle_game():
    state = _timer().toggle_active()
    current_app.logger.info(f"[game-state] game {'started' if state.active else 'stopped'}")
    notify_game_status(state)
    return jsonify(state.to_dict())


@game_state.route('/timer/start', methods=['POST'])
@login_required
def start_timer():
    state = _timer().start_timer()
    current_app.logger.info(f"[timer] started endTime={state.to_dict()['endTime']}")
    notify_game_status(state)
    return jsonify(state.to_dict())


@game_state.route('/timer/force-start', methods=['POST'])
@login_required
def force_start_timer():
    state = _timer().force_start()
    current_app.logger.info(f"[timer] force-started endTime={state.to_dict()['endTime']}")
    notify_game_status(state)
    return jsonify(state.to_dict())


@game_state.route('/timer/pause', methods=['POST'])
@login_required
def pause_timer():
    state = _timer().pause()
    current_app.logger.info(f"[timer] paused remaining={state.paused_time_remaining}ms")
    notify_game_status(state)
    return jsonify(state.to_dict())


@game_state.route('/timer/resume', methods=['POST'])
@login_required
def resume_timer():
    state = _timer().resume()
    current_app.logger.info(f"[timer] resumed endTime={state.to_dict()['endTime']}")
    notify_game_status(state)
    return jsonify(state.to_dict())
