"""Session domain services: room lifecycle and event relay.

This package holds the room bookkeeping that socket handlers call into,
keeping Socket.IO request plumbing separate from membership rules.
"""

from .errors import ErrorKind, SessionError
from .manager import IN_PROGRESS, LOBBY, Player, Session, SessionManager
from .registry import Binding, ConnectionRegistry

__all__ = [
    'Binding',
    'ConnectionRegistry',
    'ErrorKind',
    'IN_PROGRESS',
    'LOBBY',
    'Player',
    'Session',
    'SessionError',
    'SessionManager',
]
