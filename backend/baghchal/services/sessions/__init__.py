"""Room session services: store, lifecycle, relay, presence and expiry.

Everything in this package is transport-agnostic. The REST blueprint and
the Socket.IO handlers both go through :class:`SessionManager`, which is
built once per app and kept in ``app.extensions``.
"""

from .errors import (
    SessionError,
    InvalidInput,
    RoomExists,
    RoomFull,
    RoomNotFound,
    InternalError,
)
from .manager import SessionManager
from .models import Participant, Room

__all__ = [
    'SessionError',
    'InvalidInput',
    'RoomExists',
    'RoomFull',
    'RoomNotFound',
    'InternalError',
    'SessionManager',
    'Participant',
    'Room',
]
