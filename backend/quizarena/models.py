from quizarena import db, bcrypt
from flask_login import UserMixin
from quizarena.services.clock import ensure_utc, to_iso, utcnow

GAME_STATE_ID = 1


class Admin(UserMixin, db.Model):
    __tablename__ = 'admin'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class GameState(db.Model):
    """The single authoritative round record (row id 1)."""
    __tablename__ = 'game_state'
    id = db.Column(db.Integer, primary_key=True)
    active = db.Column(db.Boolean, default=False, nullable=False)
    start_time = db.Column(db.DateTime(timezone=True), nullable=True)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)
    duration = db.Column(db.Integer, default=10 * 60 * 1000, nullable=False)  # ms
    is_paused = db.Column(db.Boolean, default=False, nullable=False)
    paused_time_remaining = db.Column(db.Integer, default=0, nullable=False)  # ms

    def to_dict(self):
        return {
            'active': bool(self.active),
            'startTime': to_iso(self.start_time),
            'endTime': to_iso(self.end_time),
            'duration': int(self.duration or 0),
            'isPaused': bool(self.is_paused),
            'pausedTimeRemaining': int(self.paused_time_remaining or 0),
        }

    def status_payload(self):
        """Payload of the ``gameStatusChange`` broadcast."""
        return {
            'active': bool(self.active),
            'endTime': to_iso(self.end_time),
            'isPaused': bool(self.is_paused),
            'pausedTimeRemaining': int(self.paused_time_remaining or 0),
        }


class Problem(db.Model):
    __tablename__ = 'problem'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=False)
    quote = db.Column(db.Text, nullable=True)
    expected_answer = db.Column(db.String(256), nullable=False)
    difficulty = db.Column(db.String(16), default='medium', nullable=False)  # easy, medium, hard
    time_limit = db.Column(db.Integer, default=180, nullable=False)  # seconds
    active = db.Column(db.Boolean, default=False, nullable=False)

    def to_dict(self, include_answer=False):
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'quote': self.quote,
            'difficulty': self.difficulty,
            'timeLimit': self.time_limit,
            'active': bool(self.active),
        }
        if include_answer:
            data['expectedAnswer'] = self.expected_answer
        return data


class Team(db.Model):
    __tablename__ = 'team'
    id = db.Column(db.Integer, primary_key=True)
    team_name = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(256), nullable=False)
    enrolled = db.Column(db.Boolean, default=False, nullable=False)
    is_blocked = db.Column(db.Boolean, default=False, nullable=False)
    # Chosen once at enrollment
    assigned_problem_id = db.Column(db.Integer, db.ForeignKey('problem.id', ondelete='SET NULL'), nullable=True)
    qualified = db.Column(db.Boolean, default=False, nullable=False)
    win = db.Column(db.Boolean, default=False, nullable=False)
    lose = db.Column(db.Boolean, default=False, nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)
    submission_time = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    assigned_problem = db.relationship('Problem')
    submissions = db.relationship('Submission', back_populates='team', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'teamName': self.team_name,
            'email': self.email,
            'enrolled': bool(self.enrolled),
            'isBlocked': bool(self.is_blocked),
            'qualified': bool(self.qualified),
            'win': bool(self.win),
            'lose': bool(self.lose),
            'score': int(self.score or 0),
            'submissionTime': to_iso(self.submission_time),
            'hasAssignedProblem': self.assigned_problem_id is not None,
        }

    def status_payload(self):
        """Payload of the ``teamStatusChange`` broadcast."""
        return {'teamName': self.team_name, 'isBlocked': bool(self.is_blocked)}


class Submission(db.Model):
    __tablename__ = 'submission'
    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    problem_id = db.Column(db.Integer, db.ForeignKey('problem.id', ondelete='SET NULL'), nullable=True)
    answer = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    team = db.relationship('Team', back_populates='submissions')

    def to_dict(self):
        return {
            'id': self.id,
            'teamId': self.team_id,
            'problemId': self.problem_id,
            'answer': self.answer,
            'correct': bool(self.is_correct),
            'createdAt': to_iso(ensure_utc(self.created_at)),
        }
