from flask import current_app, request
from flask_socketio import emit
from relay import socketio
from relay.services.sessions import SessionError, SessionManager


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(args):
    return args[0] if args else None


def _room_request(data):
    """Return (name, room_code) from a createRoom/joinRoom payload, or None."""
    if not isinstance(data, dict):
        return None
    code = data.get('roomCode')
    if not isinstance(code, str) or not code:
        return None
    return data.get('name'), code


def _first(args):
    # Verbatim relays forward the first argument only, or nothing at all
    return args[:1]


def register_socketio_handlers(manager: SessionManager, namespace: str = '/') -> None:
    """Register Socket.IO event handlers bound to `manager`.

    Handlers close over the manager instead of reaching for module state,
    so every app built by create_app gets its own rooms.
    """

    def handle_connect(auth=None):
        current_app.logger.info(f"[conn] sid={_get_sid()}")

    def handle_disconnect(reason=None):
        current_app.logger.info(f"[disconn] sid={_get_sid()} reason={reason}")
        manager.disconnect(_get_sid())

    def handle_create_room(*args):
        req = _room_request(_payload(args))
        if req is None:
            current_app.logger.debug(f"[drop] malformed createRoom sid={_get_sid()}")
            return
        name, code = req
        try:
            manager.create_room(_get_sid(), name, code)
        except SessionError as exc:
            emit('error', exc.to_dict())

    def handle_join_room(*args):
        req = _room_request(_payload(args))
        if req is None:
            current_app.logger.debug(f"[drop] malformed joinRoom sid={_get_sid()}")
            return
        name, code = req
        try:
            manager.join_room(_get_sid(), name, code)
        except SessionError as exc:
            emit('error', exc.to_dict())

    def handle_start_match(*args):
        manager.start_match(_get_sid())

    def handle_power(*args):
        data = _payload(args)
        if isinstance(data, dict):
            manager.relay_power(_get_sid(), data)

    def handle_sync(*args):
        data = _payload(args)
        if isinstance(data, dict):
            manager.relay_sync(_get_sid(), data)

    def handle_sync_all(*args):
        manager.relay_sync_all(_get_sid(), *_first(args))

    def handle_game_over(*args):
        manager.relay_game_over(_get_sid(), *_first(args))

    def handle_time_up(*args):
        manager.relay_time_up(_get_sid(), *_first(args))

    def handle_restart(*args):
        manager.relay_restart(_get_sid())

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('createRoom', handle_create_room, namespace=namespace)
    socketio.on_event('joinRoom', handle_join_room, namespace=namespace)
    socketio.on_event('startMatch', handle_start_match, namespace=namespace)
    socketio.on_event('mpPower', handle_power, namespace=namespace)
    socketio.on_event('mpSync', handle_sync, namespace=namespace)
    socketio.on_event('mpSyncAll', handle_sync_all, namespace=namespace)
    socketio.on_event('gameOver', handle_game_over, namespace=namespace)
    socketio.on_event('mpTimeUp', handle_time_up, namespace=namespace)
    socketio.on_event('mpRestart', handle_restart, namespace=namespace)
