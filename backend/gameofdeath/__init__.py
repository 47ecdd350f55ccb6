from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def get_scheduler():
    return current_app.extensions['scheduler']


def _build_scheduler(flask_app):
    from gameofdeath.services.ledger import TransactionPipeline, create_ledger
    from gameofdeath.services.game.records import RecordStore, url_thumbnail_renderer
    from gameofdeath.services.game.scheduler import PhaseScheduler, SchedulerSettings, make_spawner
    from gameofdeath.services.game.state import StateStore

    cfg = flask_app.config
    ledger = create_ledger(cfg)
    pipeline = TransactionPipeline(ledger, confirm_timeout=float(cfg.get('LEDGER_CONFIRM_TIMEOUT_SEC', 30)))
    template = cfg.get('THUMBNAIL_URL_TEMPLATE')
    records = RecordStore(ledger, thumbnail_renderer=url_thumbnail_renderer(template) if template else None)

    def emit(event, payload):
        socketio.emit(event, payload, namespace='/ws')

    return PhaseScheduler(
        ledger,
        pipeline,
        records,
        StateStore(cfg['STATE_FILE']),
        emit=emit,
        settings=SchedulerSettings.from_config(cfg),
        spawn=make_spawner(flask_app, socketio),
        sleep=socketio.sleep,
    )


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from gameofdeath.main import main
    flask_app.register_blueprint(main)

    from gameofdeath.api.game import game
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(game, url_prefix='/api')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from gameofdeath.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    with flask_app.app_context():
        # A missing record store is just an empty one
        import gameofdeath.models  # noqa: F401
        db.create_all()
        scheduler = _build_scheduler(flask_app)
    flask_app.extensions['scheduler'] = scheduler

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the game record tables."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Game records have been reset!')

    @click.command('state-reset')
    def state_reset_command():
        """Deletes the crash-recovery snapshot so the next start is a fresh game."""
        scheduler.state_store.delete()
        print(f"Removed {scheduler.state_store.path}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(state_reset_command)

    return flask_app
