import logging

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click

from quizarena.config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

from quizarena.realtime.hub import RealtimeHub  # noqa: E402
from quizarena.services.game_state import GameStateStore  # noqa: E402

hub = RealtimeHub()
game_state_store = GameStateStore()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Socket.IO first, then the hub that wraps it
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)
    hub.init_app(flask_app, socketio)
    game_state_store.init_app(flask_app)

    from quizarena.errors import register_error_handlers
    register_error_handlers(flask_app)

    from quizarena.main import main
    flask_app.register_blueprint(main)

    from quizarena.api.game_state import game_state
    flask_app.register_blueprint(game_state, url_prefix='/api/game-state')

    from quizarena.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    from quizarena.api.teams import teams
    flask_app.register_blueprint(teams, url_prefix='/api')

    from quizarena.api.problems import problems
    flask_app.register_blueprint(problems, url_prefix='/api/problems')

    from quizarena.socketio_events import register_socketio_handlers
    register_socketio_handlers(flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'))

    from quizarena.models import Admin

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(Admin, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Admin login required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from quizarena.services.problems import seed_riddles
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            ensure_admin(flask_app)
            count = seed_riddles()
            game_state_store.read()
            print(f'Database has been reset and seeded with {count} riddles!')

    @click.command('seed-riddles')
    def seed_riddles_command():
        """Replaces the problem set with the built-in coding riddles."""
        from quizarena.services.problems import seed_riddles
        with flask_app.app_context():
            print(f'Seeded {seed_riddles()} riddles')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_riddles_command)

    return flask_app


def ensure_admin(flask_app):
    """Create the configured admin account if it does not exist yet."""
    from quizarena.models import Admin
    username = flask_app.config.get('ADMIN_USERNAME', 'admin')
    admin = Admin.query.filter_by(username=username).first()
    if admin is None:
        admin = Admin(username=username)
        admin.set_password(flask_app.config.get('ADMIN_PASSWORD', 'admin123'))
        db.session.add(admin)
        db.session.commit()
        flask_app.logger.info(f"[admin] created admin account '{username}'")
    return admin
