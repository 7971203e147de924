import random
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from quizarena import db
from quizarena.errors import NotFoundError, ValidationError
from quizarena.models import Problem, Team
from quizarena.services.notifications import notify_team_status


def _pick_problem() -> Optional[Problem]:
    candidates = Problem.query.filter_by(active=True).all() or Problem.query.all()
    if not candidates:
        return None
    return random.choice(candidates)


def _name_taken(team_name: str) -> bool:
    return Team.query.filter_by(team_name=team_name).first() is not None


def enroll_team(team_name, email) -> Team:
    team_name = (team_name or '').strip() if isinstance(team_name, str) else ''
    email = (email or '').strip() if isinstance(email, str) else ''
    if not team_name or not email:
        raise ValidationError('Team name and email are required')
    if _name_taken(team_name):
        raise ValidationError('Team name already taken')

    problem = _pick_problem()
    team = Team(
        team_name=team_name,
        email=email,
        enrolled=True,
        assigned_problem_id=problem.id if problem else None,
    )
    db.session.add(team)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent enrollment took the name after the check above
        db.session.rollback()
        raise ValidationError('Team name already taken')
    current_app.logger.info(
        f"[enroll] team={team.team_name} problem={team.assigned_problem_id}"
    )
    return team


def get_team(team_id: int) -> Team:
    team = db.session.get(Team, team_id)
    if team is None:
        raise NotFoundError('Team not found')
    return team


def get_team_by_name(team_name) -> Team:
    if not team_name:
        raise ValidationError('Team name is required')
    team = Team.query.filter_by(team_name=team_name).first()
    if team is None:
        raise NotFoundError('Team not found')
    return team


def set_blocked(team: Team, blocked: bool, reason: Optional[str] = None) -> Team:
    """Persist the block flag, then broadcast it to the team channel.

    Re-applying the current value is a successful no-op write; the call still
    emits exactly one notification.
    """
    already = bool(team.is_blocked) == blocked
    team.is_blocked = blocked
    db.session.add(team)
    db.session.commit()
    current_app.logger.info(
        f"[team-block] team={team.team_name} id={team.id} blocked={blocked} "
        f"reason={reason or 'Not specified'} unchanged={already}"
    )
    notify_team_status(team)
    return team


def block_team(team_id: int) -> Team:
    return set_blocked(get_team(team_id), True)


def unblock_team(team_id: int) -> Team:
    return set_blocked(get_team(team_id), False)


def block_team_by_name(team_name, reason=None) -> Team:
    return set_blocked(get_team_by_name(team_name), True, reason=reason or 'client violation')


def set_result(team_id: int, win: bool) -> Team:
    team = get_team(team_id)
    team.win = win
    team.lose = not win
    db.session.add(team)
    db.session.commit()
    current_app.logger.info(f"[team-result] team={team.team_name} win={team.win} lose={team.lose}")
    return team


def delete_team(team_id: int) -> dict:
    team = get_team(team_id)
    deleted = {'id': team.id, 'teamName': team.team_name}
    # Submissions go with the team (delete-orphan cascade)
    db.session.delete(team)
    db.session.commit()
    current_app.logger.info(f"[team-delete] team={deleted['teamName']} id={deleted['id']}")
    return deleted
