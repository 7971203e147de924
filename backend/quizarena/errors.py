"""Error taxonomy shared by the HTTP routes, socket handlers and services."""

from flask import jsonify


class QuizArenaError(Exception):
    status_code = 500

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def to_dict(self):
        return {'error': self.message}


class NotFoundError(QuizArenaError):
    """A team, problem or submission id/name did not resolve."""
    status_code = 404


class ValidationError(QuizArenaError):
    """Malformed input: bad timestamp, missing required field, duplicate name."""
    status_code = 400


class PreconditionError(QuizArenaError):
    """The requested transition is not allowed in the current state."""
    status_code = 409


class ConfigurationError(QuizArenaError):
    """A service was used before its ``init_app`` ran."""
    status_code = 500


class DeliveryError(QuizArenaError):
    """A realtime broadcast could not be handed to the transport."""
    status_code = 503


def register_error_handlers(flask_app) -> None:
    @flask_app.errorhandler(QuizArenaError)
    def handle_quizarena_error(exc):
        flask_app.logger.info(f"[error] {exc.__class__.__name__}: {exc.message}")
        return jsonify(exc.to_dict()), exc.status_code
