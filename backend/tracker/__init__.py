from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from tracker.main import main
    flask_app.register_blueprint(main)

    from tracker.api.territories import territories
    flask_app.register_blueprint(territories, url_prefix='/api/territories')

    from tracker.api.tracks import tracks
    flask_app.register_blueprint(tracks, url_prefix='/api/tracks')

    from tracker.api.players import players
    flask_app.register_blueprint(players, url_prefix='/api/players')

    from tracker.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Upstream client and the territory pipeline live on the app for the
    # lifetime of the process
    from tracker.services.wynn import build_wynn_api
    from tracker.services.territories import build_territory_tracker
    wynn_api = build_wynn_api(flask_app)
    flask_app.extensions['wynn_api'] = wynn_api
    flask_app.extensions['territory_tracker'] = build_territory_tracker(flask_app, wynn_api)

    @click.command('init-db')
    def init_db_command():
        """Creates all tables that do not exist yet."""
        import tracker.models  # noqa: F401
        with flask_app.app_context():
            db.create_all()
            print('Database tables created.')

    @click.command('track-once')
    def track_once_command():
        """Runs a single territory tracking cycle."""
        with flask_app.app_context():
            result = flask_app.extensions['territory_tracker'].run_cycle()
            print(f"status={result.status} range=({result.old_id}, {result.new_id}] "
                  f"transitions={result.transitions} notified={result.notified}")

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(track_once_command)

    return flask_app


def start_background_tasks(flask_app) -> None:
    """Start the territory tracker loop and the player cache sweeper.

    No-ops in TESTING mode unless ENABLE_TRACKER_IN_TESTS is set.
    """
    if flask_app.config.get('TESTING') and not flask_app.config.get('ENABLE_TRACKER_IN_TESTS'):
        return
    from tracker.services.wynn import start_cache_sweeper
    start_cache_sweeper(flask_app, flask_app.extensions['wynn_api'].player_cache)
    if flask_app.config.get('TRACKER_ENABLED', True):
        flask_app.extensions['territory_tracker'].start()
