from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from relay.config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS', '*')
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from relay.main import main
    flask_app.register_blueprint(main)

    # One registry and manager per app; handlers close over them
    from relay.services.sessions import ConnectionRegistry, SessionManager
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    registry = ConnectionRegistry(socketio, namespace=namespace)
    manager = SessionManager(
        registry,
        min_players=flask_app.config.get('MIN_PLAYERS', 2),
        logger=flask_app.logger,
    )
    flask_app.extensions['relay'] = manager

    from relay.socketio_events import register_socketio_handlers
    register_socketio_handlers(manager, namespace=namespace)

    return flask_app
