import logging
import random
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .errors import ErrorKind, SessionError
from .registry import ConnectionRegistry

LOBBY = 'lobby'
IN_PROGRESS = 'in_progress'

MAX_PLAYERS = 3
# Seeds are drawn from [0, SEED_RANGE)
SEED_RANGE = 2147483647

_NO_PAYLOAD = object()


@dataclass
class Player:
    sid: str
    name: Any
    slot: int


@dataclass
class Session:
    code: str
    host_sid: str
    members: List[Player]
    phase: str = LOBBY
    seed: Optional[int] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def names(self) -> list:
        return [p.name for p in self.members]

    def find(self, sid: str) -> Optional[Player]:
        for p in self.members:
            if p.sid == sid:
                return p
        return None

    def roster(self) -> dict:
        return {'players': self.names, 'playerCount': len(self.members)}


class SessionManager:
    """Owns every live room and applies the lobby/match lifecycle rules.

    One instance per application. All effects go through the
    ConnectionRegistry; the manager never touches the transport directly.
    Operations on one room code run under that session's lock, so events
    for the same room are applied one at a time while other rooms proceed.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        min_players: int = 2,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.min_players = max(2, min_players)
        self._rng = rng or random.SystemRandom()
        self._log = logger or logging.getLogger(__name__)
        self._sessions: Dict[str, Session] = {}
        self._guard = threading.Lock()

    # ---- queries ----

    def get(self, code: str) -> Optional[Session]:
        with self._guard:
            return self._sessions.get(code)

    def room_count(self) -> int:
        with self._guard:
            return len(self._sessions)

    # ---- lifecycle ----

    def create_room(self, sid: str, name, code: str) -> Optional[Session]:
        if self.registry.lookup(sid) is not None:
            self._log.debug(f"[drop] createRoom from bound sid={sid}")
            return None
        with self._guard:
            if code in self._sessions:
                raise SessionError(ErrorKind.ROOM_EXISTS, code)
            # Bind before publishing: a second create from this sid, or one
            # whose connection already dropped, leaves no room behind
            if not self.registry.bind(sid, code, 0):
                self._log.debug(f"[drop] createRoom from bound or closed sid={sid}")
                return None
            session = Session(code=code, host_sid=sid, members=[Player(sid, name, 0)])
            # Held before publishing so nobody is told about a join before roomCreated
            session.lock.acquire()
            self._sessions[code] = session
        try:
            self._log.info(f"[room-create] room={code} sid={sid} name={name}")
            self.registry.send_to(sid, 'roomCreated', {'roomCode': code})
        finally:
            session.lock.release()
        return session

    def join_room(self, sid: str, name, code: str) -> Optional[Player]:
        if self.registry.lookup(sid) is not None:
            self._log.debug(f"[drop] joinRoom from bound sid={sid}")
            return None
        with self._locked(code) as session:
            if session is None:
                raise SessionError(ErrorKind.ROOM_NOT_FOUND, code)
            if len(session.members) >= MAX_PLAYERS:
                raise SessionError(ErrorKind.ROOM_FULL, code)
            if session.phase != LOBBY:
                raise SessionError(ErrorKind.ALREADY_STARTED, code)

            player = Player(sid, name, len(session.members))
            if not self.registry.bind(sid, code, player.slot):
                self._log.debug(f"[drop] joinRoom from bound or closed sid={sid}")
                return None
            session.members.append(player)
            self._log.info(f"[room-join] room={code} sid={sid} name={name} slot={player.slot}")

            self.registry.send_to(sid, 'joined', {
                'playerIndex': player.slot,
                'hostName': session.members[0].name,
                'players': session.names,
            })
            self.registry.send_room(code, 'playerJoined', session.roster())
            return player

    def start_match(self, sid: str) -> bool:
        binding = self.registry.lookup(sid)
        if binding is None:
            self._log.debug(f"[drop] startMatch from unbound sid={sid}")
            return False
        with self._locked(binding.room_code) as session:
            if session is None or session.host_sid != sid:
                self._log.debug(f"[drop] startMatch from non-host sid={sid}")
                return False
            if session.phase != LOBBY or len(session.members) < self.min_players:
                return False

            session.phase = IN_PROGRESS
            session.seed = self._rng.randrange(SEED_RANGE)
            self._log.info(
                f"[match-start] room={session.code} players={len(session.members)} seed={session.seed}"
            )
            self.registry.send_room(session.code, 'matchStart', {
                'names': session.names,
                'playerCount': len(session.members),
                'seed': session.seed,
            })
            return True

    def disconnect(self, sid: str) -> None:
        binding = self.registry.lookup(sid)
        if binding is None:
            return
        with self._locked(binding.room_code) as session:
            player = session.find(sid) if session is not None else None
            if player is None:
                # Stale binding left behind by a destroyed room
                self.registry.unbind(sid)
                return
            if sid == session.host_sid:
                self._close(session)
            else:
                self._remove_guest(session, player)

    # ---- relay ----

    def relay_power(self, sid: str, data: dict) -> bool:
        def send(session, binding):
            self._log.info(f"[power] room={session.code} slot={binding.slot} type={data.get('type')}")
            self.registry.send_others(session.code, sid, 'mpPower', {
                'playerIndex': binding.slot,
                'type': data.get('type'),
            })
        return self._relay(sid, 'mpPower', send)

    def relay_sync(self, sid: str, data: dict) -> bool:
        def send(session, binding):
            self.registry.send_others(session.code, sid, 'mpSync', {
                'playerIndex': binding.slot,
                'score': data.get('score'),
                'lives': data.get('lives'),
                'dead': data.get('dead'),
            })
        return self._relay(sid, 'mpSync', send)

    def relay_sync_all(self, sid: str, payload=_NO_PAYLOAD) -> bool:
        def send(session, binding):
            self.registry.send_others(session.code, sid, 'mpSyncAll', *_args(payload))
        return self._relay(sid, 'mpSyncAll', send)

    def relay_game_over(self, sid: str, payload=_NO_PAYLOAD) -> bool:
        return self._relay_to_all(sid, 'gameOver', payload)

    def relay_time_up(self, sid: str, payload=_NO_PAYLOAD) -> bool:
        return self._relay_to_all(sid, 'mpTimeUp', payload)

    def relay_restart(self, sid: str) -> bool:
        return self._relay_to_all(sid, 'mpRestart', _NO_PAYLOAD)

    # ---- internals ----

    @contextmanager
    def _locked(self, code: str) -> Iterator[Optional[Session]]:
        """Yield the live session for `code` with its lock held, or None."""
        session = self.get(code)
        if session is None:
            yield None
            return
        with session.lock:
            # It may have been torn down while we waited for the lock
            yield session if self.get(code) is session else None

    def _relay(self, sid: str, event: str, send) -> bool:
        binding = self.registry.lookup(sid)
        if binding is None:
            self._log.debug(f"[drop] {event} from unbound sid={sid}")
            return False
        with self._locked(binding.room_code) as session:
            if session is None:
                self._log.debug(f"[drop] {event} for closed room={binding.room_code}")
                return False
            # Re-read under the lock: a lobby departure may have renumbered us
            binding = self.registry.lookup(sid)
            if binding is None:
                return False
            send(session, binding)
            return True

    def _relay_to_all(self, sid: str, event: str, payload) -> bool:
        def send(session, binding):
            self.registry.send_room(session.code, event, *_args(payload))
        return self._relay(sid, event, send)

    def _close(self, session: Session) -> None:
        self._log.info(f"[host-left] room={session.code} closing room")
        self.registry.send_room(session.code, 'hostDisconnected')
        self.registry.release_room(session.code)
        with self._guard:
            self._sessions.pop(session.code, None)

    def _remove_guest(self, session: Session, player: Player) -> None:
        code = session.code
        self._log.info(f"[guest-left] room={code} slot={player.slot} phase={session.phase}")
        self.registry.send_room(code, 'playerDisconnected', {'playerIndex': player.slot})
        self.registry.unbind(player.sid)
        if session.phase != LOBBY:
            # Slots stay frozen for the rest of the match
            return
        session.members.remove(player)
        for idx, p in enumerate(session.members):
            p.slot = idx
            self.registry.rebind_slot(p.sid, idx)
        self.registry.send_room(code, 'playerJoined', session.roster())


def _args(payload) -> tuple:
    return () if payload is _NO_PAYLOAD else (payload,)
