import os

from flask import Flask, current_app, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import BASE_DIR, Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def allowed_origins(value):
    """'*' or a comma separated list of origins."""
    if not value or value.strip() == '*':
        return '*'
    return [o.strip() for o in value.split(',') if o.strip()]


def get_broadcaster():
    return current_app.extensions['scoreboard']['broadcaster']


def get_fixture_storage():
    return current_app.extensions['scoreboard']['storage']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = allowed_origins(flask_app.config.get('CLIENT_URL'))
    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db, directory=os.path.join(BASE_DIR, 'migrations'))
    # Admin calls carry bearer tokens, not cookies
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from scoreboard.services.broadcast import Broadcaster
    from scoreboard.services.scheduler import LiveTicker, RetentionSweeper
    from scoreboard.services.uploads import FixtureStorage

    broadcaster = Broadcaster(socketio)
    storage = FixtureStorage(flask_app.config['UPLOAD_FOLDER'])
    flask_app.extensions['scoreboard'] = {
        'broadcaster': broadcaster,
        'storage': storage,
        'ticker': LiveTicker(flask_app, broadcaster),
        'sweeper': RetentionSweeper(flask_app, storage, broadcaster),
    }

    # Import and register blueprints here
    from scoreboard.main import main
    flask_app.register_blueprint(main)

    from scoreboard.api.snapshots import api
    flask_app.register_blueprint(api, url_prefix='/api')

    from scoreboard.errors import ScoreboardError

    @flask_app.errorhandler(ScoreboardError)
    def handle_scoreboard_error(exc):
        return jsonify({'success': False, 'error': exc.message}), exc.status_code

    @flask_app.errorhandler(404)
    def handle_not_found(exc):
        return jsonify({'success': False, 'error': 'Route not found', 'path': request.path}), 404

    @flask_app.errorhandler(413)
    def handle_too_large(exc):
        return jsonify({'success': False, 'error': 'File too large'}), 413

    @flask_app.errorhandler(500)
    def handle_internal_error(exc):
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    # Register Socket.IO event handlers on the initialized socketio instance
    from scoreboard.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Flask-Login: sessions are never used, every admin request carries a bearer token
    from scoreboard.auth import bearer_token, verify_token
    from scoreboard.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.request_loader
    def load_user_from_request(req):
        return verify_token(bearer_token(req.headers.get('Authorization')))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    def _upsert_admin(username, password):
        user = User.query.filter_by(username=username).first()
        if user is None:
            user = User(username=username)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with the configured admin."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            _upsert_admin(flask_app.config['ADMIN_USERNAME'], flask_app.config['ADMIN_PASSWORD'])
            print('Database has been reset and seeded!')

    @click.command('create-admin')
    @click.option('--username', default=None, help='Defaults to ADMIN_USERNAME.')
    @click.option('--password', default=None, help='Defaults to ADMIN_PASSWORD.')
    def create_admin_command(username, password):
        """Creates an admin account or resets its password."""
        with flask_app.app_context():
            db.create_all()
            user = _upsert_admin(
                username or flask_app.config['ADMIN_USERNAME'],
                password or flask_app.config['ADMIN_PASSWORD'],
            )
            print(f'Admin {user.username!r} is ready.')

    @click.command('purge-old')
    def purge_old_command():
        """Deletes comments and fixtures older than the retention window."""
        with flask_app.app_context():
            removed = flask_app.extensions['scoreboard']['sweeper'].job()
            print(f"Removed {removed['comments']} comments and {removed['fixtures']} fixtures.")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(create_admin_command)
    flask_app.cli.add_command(purge_old_command)

    return flask_app
