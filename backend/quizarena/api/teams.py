from flask import Blueprint, jsonify, request

from quizarena.errors import PreconditionError
from quizarena.models import Team
from quizarena.services import submissions as submission_service
from quizarena.services import teams as team_service
from quizarena.services.game_state import current_store

teams = Blueprint('teams', __name__)


@teams.route('/enroll', methods=['POST'])
def enroll():
    data = request.get_json(silent=True) or {}
    team = team_service.enroll_team(data.get('teamName'), data.get('email'))
    return jsonify({
        'success': True,
        'teamName': team.team_name,
        'email': team.email,
        'assignedProblem': team.assigned_problem_id is not None,
    }), 201


@teams.route('/enroll', methods=['GET'])
def enrollment_status():
    team_name = request.args.get('teamName')
    if team_name:
        team = Team.query.filter_by(team_name=team_name).first()
        if not team:
            return jsonify({'enrolled': False})
        return jsonify(team.to_dict())
    enrolled = Team.query.filter_by(enrolled=True).order_by(Team.id.asc()).all()
    return jsonify([t.to_dict() for t in enrolled])


@teams.route('/teams/<string:team_name>/problem', methods=['GET'])
def assigned_problem(team_name):
    team = team_service.get_team_by_name(team_name)
    if team.is_blocked:
        raise PreconditionError('Team is blocked')
    if not current_store().read().active:
        raise PreconditionError('Game is not active')
    problem = team.assigned_problem
    return jsonify({'teamName': team.team_name, 'problem': problem.to_dict() if problem else None})


@teams.route('/submissions', methods=['POST'])
def submit():
    data = request.get_json(silent=True) or {}
    result = submission_service.submit_answer(data.get('teamName'), data.get('answer'))
    return jsonify(result), 201


@teams.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    return jsonify({
        'leaderboard': submission_service.leaderboard(),
        'remainingSlots': submission_service.remaining_slots(),
    })
