from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required

from quizarena.errors import ValidationError
from quizarena.models import Team
from quizarena.services import teams as team_service
from quizarena.services.game_state import current_store
from quizarena.services.notifications import (
    GAME_STATUS_CHANGE, TEAM_STATUS_CHANGE, notify_game_status, notify_team_status,
)
from quizarena.services.problems import seed_riddles as svc_seed_riddles

admin = Blueprint('admin', __name__)


def _team_response(team: Team, message: str, **extra):
    payload = team.to_dict()
    payload.update(extra)
    return jsonify({'success': True, 'message': message, 'team': payload})


@admin.route('/notify', methods=['POST'])
@login_required
def notify():
    """Re-broadcast an already committed change.

    The payload is rebuilt from persisted state; client-supplied ``data`` is
    only used to identify the team for ``teamStatusChange``.
    """
    body = request.get_json(silent=True) or {}
    event = body.get('event')
    data = body.get('data') or {}
    if event == GAME_STATUS_CHANGE:
        delivered = notify_game_status(current_store().read())
    elif event == TEAM_STATUS_CHANGE:
        team = team_service.get_team_by_name(data.get('teamName'))
        delivered = notify_team_status(team)
    else:
        raise ValidationError(f'Unsupported event: {event}')
    return jsonify({'success': True, 'event': event, 'delivered': delivered})


@admin.route('/teams', methods=['GET'])
@login_required
def list_teams():
    teams = Team.query.order_by(Team.created_at.asc(), Team.id.asc()).all()
    return jsonify([t.to_dict() for t in teams])


@admin.route('/teams/<int:team_id>', methods=['DELETE'])
@login_required
def delete_team(team_id):
    deleted = team_service.delete_team(team_id)
    return jsonify({'success': True, 'message': 'Team deleted successfully', 'deletedTeam': deleted})


@admin.route('/teams/<int:team_id>/block', methods=['POST'])
@login_required
def block_team(team_id):
    team = team_service.block_team(team_id)
    return _team_response(team, 'Team blocked successfully')


@admin.route('/teams/<int:team_id>/unblock', methods=['POST'])
@login_required
def unblock_team(team_id):
    team = team_service.unblock_team(team_id)
    return _team_response(team, 'Team unblocked successfully')


@admin.route('/teams/<int:team_id>/win', methods=['POST'])
@login_required
def mark_win(team_id):
    team = team_service.set_result(team_id, win=True)
    return _team_response(team, 'Team marked as winner')


@admin.route('/teams/<int:team_id>/lose', methods=['POST'])
@login_required
def mark_lose(team_id):
    team = team_service.set_result(team_id, win=False)
    return _team_response(team, 'Team marked as eliminated')


@admin.route('/teams/block-by-name', methods=['POST'])
def block_team_by_name():
    """Anti-cheat path: players report their own violation by team name."""
    body = request.get_json(silent=True) or {}
    reason = body.get('reason')
    team = team_service.block_team_by_name(body.get('teamName'), reason=reason)
    current_app.logger.info(f"[anticheat] team={team.team_name} blocked reason={reason or 'Not specified'}")
    return _team_response(team, 'Team blocked successfully', reason=reason)


@admin.route('/seed-riddles', methods=['POST'])
@login_required
def seed_riddles():
    count = svc_seed_riddles()
    return jsonify({'success': True, 'message': f'Successfully seeded database with {count} coding riddles'})
