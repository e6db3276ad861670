from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Rejections a caller can receive. The value is the text shown to players."""

    ROOM_EXISTS = 'Room already exists. Try again.'
    ROOM_NOT_FOUND = 'Room not found. Check the code.'
    ROOM_FULL = 'Room is full (3/3 players).'
    ALREADY_STARTED = 'Game already started.'


class SessionError(Exception):
    """Raised by the session manager when a create or join is rejected."""

    def __init__(self, kind: ErrorKind, code: Optional[str] = None):
        super().__init__(kind.value)
        self.kind = kind
        self.code = code

    @property
    def message(self) -> str:
        return self.kind.value

    def to_dict(self):
        return {'message': self.message, 'kind': self.kind.name}
