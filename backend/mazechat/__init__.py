from flask import Flask, request, session
from flask_cors import CORS
from flask_socketio import SocketIO
import secrets
import click
from config import Config

# Events from one connection are handled in order on that connection's
# thread; different connections still run concurrently.
socketio = SocketIO(async_mode=None, async_handlers=False)


def assign_identity() -> str:
    """Give the browser session an opaque identity nonce if it lacks one."""
    identity = session.get('id')
    if not identity:
        identity = secrets.token_urlsafe(16)
        session['id'] = identity
    return identity


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(
        flask_app,
        cors_allowed_origins=origins,
        ping_interval=flask_app.config.get('PING_INTERVAL_SEC', 60),
    )

    from mazechat.services.chat import GameServer
    game_server = GameServer(
        logger=flask_app.logger,
        history_size=flask_app.config.get('HISTORY_SIZE', 100),
    )
    flask_app.extensions['game_server'] = game_server

    @flask_app.before_request
    def ensure_session():
        assign_identity()

    @flask_app.after_request
    def log_call(response):
        flask_app.logger.info(f"[http] {request.method} {request.path} status={response.status_code}")
        return response

    from mazechat.main import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers bound to this app's game server
    from mazechat.socketio_events import register_socketio_handlers
    register_socketio_handlers(
        game_server,
        namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'),
    )

    @click.command('parse-line')
    @click.argument('line')
    def parse_line_command(line):
        """Print how the server parses one inbound chat line."""
        from mazechat.services.chat import parse
        click.echo(repr(parse(line)))

    flask_app.cli.add_command(parse_line_command)

    return flask_app
