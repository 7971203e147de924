from flask import current_app

from quizarena import db
from quizarena.errors import NotFoundError, ValidationError
from quizarena.models import Problem

DIFFICULTIES = ('easy', 'medium', 'hard')

CODING_RIDDLES = [
    ('Memory Manager',
     'I work tirelessly in the background, cleaning up after messy programmers. Without me, your '
     'program would hoard memory like a squirrel collecting nuts. Guess who am I?',
     '"Memory is the mother of all wisdom." - Anonymous', 'Garbage Collector', 'medium'),
    ('Cloud Storage',
     "I exist in the cloud but I'm not a raindrop. I store your data but don't expect me to bring you "
     'coffee in the morning. Guess who am I?',
     '"The cloud is just someone else\'s computer." - Anonymous', 'Database', 'easy'),
    ('Endless Meeting',
     'I go round and round, and if you forget to control me, I will never stop, like a never-ending '
     'office meeting. Guess who am I?',
     '"Time is a flat circle." - Anonymous', 'Infinite Loop', 'easy'),
    ('Function Traveler',
     "I allow you to pass me around, but I don't charge for services. I don't need a passport, yet I "
     'travel between functions. Guess who am I?',
     '"Not all who wander are lost." - J.R.R. Tolkien', 'Parameter', 'medium'),
    ('Identity Crisis',
     'I allow many things to exist under the same name, but they behave differently. You could say I '
     'have identity issues. Guess who am I?',
     '"Be yourself; everyone else is already taken." - Oscar Wilde', 'Polymorphism', 'hard'),
    ('Secretive Helper',
     "You can call me, but I don't have a phone. You can define me, but I won't tell you my secrets. "
     'Guess who am I?',
     '"Action speaks louder than words." - Anonymous', 'Function', 'easy'),
    ('Unappreciated Commander',
     'I tell computers what to do, but I never get credit. Without me, your code would be as lifeless '
     'as a rock. Guess who am I?',
     '"Behind every great program is a great compiler." - Anonymous', 'Compiler', 'medium'),
    ('Code Exterminator',
     'I help you find bugs, but I am not an exterminator. If you ignore me, your program will go rogue. '
     'Guess who am I?',
     '"It\'s not a bug, it\'s an undocumented feature." - Anonymous', 'Debugger', 'easy'),
    ('Key Keeper',
     'I store key-value pairs, but I am not a storage locker. If you lose my keys, you are in big '
     'trouble. Guess who am I?',
     '"The key to success is finding the right pair." - Anonymous', 'HashMap', 'medium'),
    ('Code Superhero',
     'I handle the unexpected, like a superhero for crashing programs. But if I fail, the entire system '
     'comes down with me. Guess who am I?',
     '"With great power comes great responsibility." - Uncle Ben', 'Exception Handler', 'hard'),
    ('Persistent Haunter',
     "I am like an annoying friend who keeps showing up even when you thought they were gone. Forget to "
     "remove me, and I'll haunt your program forever. Guess who am I?",
     '"What we don\'t free will come back to haunt us." - Anonymous', 'Memory Leak', 'hard'),
]

TIME_LIMITS = {'easy': 120, 'medium': 180, 'hard': 240}


def get_problem(problem_id: int) -> Problem:
    problem = db.session.get(Problem, problem_id)
    if problem is None:
        raise NotFoundError('Problem not found')
    return problem


def create_problem(data) -> Problem:
    data = data or {}
    title = data.get('title')
    description = data.get('description')
    expected_answer = data.get('expectedAnswer')
    if not all([title, description, expected_answer]):
        raise ValidationError('Title, description and expected answer are required')
    difficulty = data.get('difficulty') or 'medium'
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f"Difficulty must be one of {', '.join(DIFFICULTIES)}")
    try:
        time_limit = int(data.get('timeLimit') or TIME_LIMITS[difficulty])
    except (TypeError, ValueError):
        raise ValidationError('timeLimit must be an integer')
    problem = Problem(
        title=title,
        description=description,
        quote=data.get('quote'),
        expected_answer=expected_answer,
        difficulty=difficulty,
        time_limit=time_limit,
        active=bool(data.get('active', False)),
    )
    db.session.add(problem)
    db.session.commit()
    return problem


def set_active(problem_id: int, active: bool) -> Problem:
    problem = get_problem(problem_id)
    problem.active = active
    db.session.add(problem)
    db.session.commit()
    current_app.logger.info(f"[problem] id={problem.id} active={active}")
    return problem


def delete_problem(problem_id: int) -> None:
    problem = get_problem(problem_id)
    was_active = problem.active
    db.session.delete(problem)
    db.session.flush()
    # Keep at least one problem assignable when the last active one goes
    if was_active and not Problem.query.filter_by(active=True).first():
        replacement = Problem.query.order_by(Problem.id.asc()).first()
        if replacement:
            replacement.active = True
            db.session.add(replacement)
    db.session.commit()


def seed_riddles() -> int:
    """Replace every problem with the built-in coding riddles."""
    removed = Problem.query.count()
    Problem.query.delete()
    for title, description, quote, answer, difficulty in CODING_RIDDLES:
        db.session.add(Problem(
            title=title,
            description=description,
            quote=quote,
            expected_answer=answer,
            difficulty=difficulty,
            time_limit=TIME_LIMITS[difficulty],
            active=False,
        ))
    db.session.commit()
    current_app.logger.info(f"[seed] removed {removed} problem(s), added {len(CODING_RIDDLES)}")
    return len(CODING_RIDDLES)
