from flask import Blueprint, jsonify, request
from flask_login import login_required

from quizarena.models import Problem
from quizarena.services import problems as problem_service

problems = Blueprint('problems', __name__)


@problems.route('', methods=['GET'])
@login_required
def list_problems():
    items = Problem.query.order_by(Problem.id.asc()).all()
    return jsonify([p.to_dict(include_answer=True) for p in items])


@problems.route('', methods=['POST'])
@login_required
def create_problem():
    problem = problem_service.create_problem(request.get_json(silent=True))
    return jsonify(problem.to_dict(include_answer=True)), 201


@problems.route('/<int:problem_id>', methods=['DELETE'])
@login_required
def delete_problem(problem_id):
    problem_service.delete_problem(problem_id)
    return jsonify({'success': True, 'message': 'Problem deleted successfully'})


@problems.route('/<int:problem_id>/activate', methods=['PUT'])
@login_required
def activate_problem(problem_id):
    problem = problem_service.set_active(problem_id, True)
    return jsonify({'success': True, 'message': 'Problem activated successfully', 'problem': problem.to_dict(include_answer=True)})


@problems.route('/<int:problem_id>/deactivate', methods=['PUT'])
@login_required
def deactivate_problem(problem_id):
    problem = problem_service.set_active(problem_id, False)
    return jsonify({'success': True, 'message': 'Problem deactivated successfully', 'problem': problem.to_dict(include_answer=True)})
