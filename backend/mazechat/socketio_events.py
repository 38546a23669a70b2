from flask import current_app, request, session
from flask_socketio import ConnectionRefusedError
from mazechat import socketio
from typing import Dict, Any
import threading


class SocketTransport:
    """One live Socket.IO connection, addressed by its sid."""

    def __init__(self, sid: str, namespace: str):
        self.sid = sid
        self.namespace = namespace

    def send(self, text: str) -> None:
        socketio.emit('message', text, to=self.sid, namespace=self.namespace)

    def close(self, reason: str) -> None:
        try:
            socketio.emit('closing', {'reason': reason}, to=self.sid, namespace=self.namespace)
        finally:
            socketio.server.disconnect(self.sid, namespace=self.namespace)

    def __repr__(self):
        return f"SocketTransport(sid={self.sid!r})"


# ---- Connection context ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_ctx_lock = threading.Lock()


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _pop_ctx(sid: str):
    with _ctx_lock:
        return _sid_to_ctx.pop(sid, None)


def register_socketio_handlers(game_server, namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers for ``game_server`` on ``namespace``."""

    def handle_connect(auth=None):
        identity = session.get('id')
        if not identity:
            # Policy violation: the core has no behavior for anonymous connections
            raise ConnectionRefusedError('No session')
        sid = _get_sid()
        transport = SocketTransport(sid, namespace)
        with _ctx_lock:
            _sid_to_ctx[sid] = {'identity': identity, 'transport': transport}
        game_server.member_join(identity, transport)

    def handle_disconnect(*args):
        ctx = _pop_ctx(_get_sid())
        if not ctx:
            return
        game_server.member_left(ctx['identity'], ctx['transport'])

    def handle_message(data):
        with _ctx_lock:
            ctx = _sid_to_ctx.get(_get_sid())
        if not ctx or not isinstance(data, str):
            return
        try:
            game_server.handle(ctx['identity'], data)
        except Exception:
            # Keep the connection alive whatever went wrong in one command
            current_app.logger.exception(f"[handle-failed] identity={ctx['identity']}")

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('message', handle_message, namespace=namespace)
