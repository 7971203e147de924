from typing import List

from flask import current_app

from quizarena import db
from quizarena.errors import PreconditionError, ValidationError
from quizarena.models import Submission, Team
from quizarena.services.clock import to_iso, utcnow
from quizarena.services.game_state import current_store
from quizarena.services.notifications import notify_leaderboard
from quizarena.services.teams import get_team_by_name
from quizarena.services.timer import remaining_ms


def normalize_answer(answer: str) -> str:
    return ' '.join(answer.split()).casefold()


def ensure_round_open(now=None) -> None:
    """Raise PreconditionError unless submissions are currently permitted."""
    now = now or utcnow()
    snapshot = current_store().read().to_dict()
    if not snapshot['active']:
        raise PreconditionError('Game is not active')
    if snapshot['isPaused']:
        raise PreconditionError('Game is paused')
    remaining = remaining_ms(snapshot, now)
    if remaining is not None and remaining <= 0:
        raise PreconditionError('Time is up')


def leaderboard() -> List[dict]:
    teams = (Team.query.filter_by(qualified=True)
             .order_by(Team.submission_time.asc(), Team.id.asc())
             .all())
    return [
        {'teamName': t.team_name, 'score': t.score, 'submissionTime': to_iso(t.submission_time)}
        for t in teams
    ]


def remaining_slots() -> int:
    slots = int(current_app.config.get('QUALIFIER_SLOTS', 5))
    return max(0, slots - Team.query.filter_by(qualified=True).count())


def submit_answer(team_name, answer, now=None) -> dict:
    if not isinstance(answer, str) or not answer.strip():
        raise ValidationError('Answer is required')
    now = now or utcnow()
    team = get_team_by_name(team_name)
    if team.is_blocked:
        raise PreconditionError('Team is blocked')
    ensure_round_open(now)

    problem = team.assigned_problem
    correct = bool(problem) and normalize_answer(answer) == normalize_answer(problem.expected_answer)
    submission = Submission(
        team_id=team.id,
        problem_id=problem.id if problem else None,
        answer=answer.strip(),
        is_correct=correct,
        created_at=now,
    )
    db.session.add(submission)

    newly_qualified = False
    if correct and not team.qualified and remaining_slots() > 0:
        team.qualified = True
        team.score = (team.score or 0) + 1
        team.submission_time = now
        db.session.add(team)
        newly_qualified = True
    db.session.commit()

    current_app.logger.info(
        f"[submit] team={team.team_name} correct={correct} qualified={team.qualified}"
    )
    slots_left = remaining_slots()
    if newly_qualified:
        notify_leaderboard(leaderboard(), slots_left)
    return {
        'correct': correct,
        'qualified': bool(team.qualified),
        'remainingSlots': slots_left,
        'submission': submission.to_dict(),
    }
