import threading
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Binding:
    room_code: str
    slot: int


class ConnectionRegistry:
    """Side table of connection id -> (room code, slot), plus send primitives.

    `socketio` is the Flask-SocketIO extension (or anything with the same
    `emit` and `server.enter_room` / `server.leave_room` surface). Transport
    rooms are named after the room code so multicast is delegated to
    Socket.IO; the registry only remembers who is bound where.
    """

    def __init__(self, socketio, namespace: str = '/'):
        self._socketio = socketio
        self._namespace = namespace
        self._bindings: Dict[str, Binding] = {}
        self._lock = threading.Lock()

    # ---- side table ----

    def lookup(self, sid: str) -> Optional[Binding]:
        with self._lock:
            return self._bindings.get(sid)

    def bind(self, sid: str, room_code: str, slot: int) -> bool:
        """Bind `sid` unless it is already bound or the transport has dropped it.

        Check and insert happen under one lock, and a disconnect handler
        reads the table under the same lock, so a connection can never end
        up bound after its disconnect has been processed.
        """
        with self._lock:
            if sid in self._bindings or not self._connected(sid):
                return False
            self._bindings[sid] = Binding(room_code, slot)
            self._socketio.server.enter_room(sid, room_code, namespace=self._namespace)
        return True

    def rebind_slot(self, sid: str, slot: int) -> None:
        with self._lock:
            current = self._bindings.get(sid)
            if current is not None:
                self._bindings[sid] = Binding(current.room_code, slot)

    def unbind(self, sid: str) -> Optional[Binding]:
        with self._lock:
            binding = self._bindings.pop(sid, None)
        if binding is not None:
            self._leave(sid, binding.room_code)
        return binding

    def release_room(self, room_code: str) -> List[str]:
        """Unbind every connection bound to `room_code`; returns their ids."""
        with self._lock:
            sids = [sid for sid, b in self._bindings.items() if b.room_code == room_code]
            for sid in sids:
                del self._bindings[sid]
        for sid in sids:
            self._leave(sid, room_code)
        return sids

    def bound_to(self, room_code: str) -> List[str]:
        with self._lock:
            return [sid for sid, b in self._bindings.items() if b.room_code == room_code]

    # ---- sends (fire-and-forget) ----

    def send_to(self, sid: str, event: str, *args) -> None:
        self._socketio.emit(event, *args, to=sid, namespace=self._namespace)

    def send_room(self, room_code: str, event: str, *args) -> None:
        self._socketio.emit(event, *args, to=room_code, namespace=self._namespace)

    def send_others(self, room_code: str, sender_sid: str, event: str, *args) -> None:
        self._socketio.emit(event, *args, to=room_code, skip_sid=sender_sid, namespace=self._namespace)

    def _connected(self, sid: str) -> bool:
        # False once python-socketio has started tearing the connection down
        return self._socketio.server.manager.is_connected(sid, self._namespace)

    def _leave(self, sid: str, room_code: str) -> None:
        self._socketio.server.leave_room(sid, room_code, namespace=self._namespace)
