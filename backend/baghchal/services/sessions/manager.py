"""Session manager: the one interface transports talk to.

Both the REST blueprint (pull) and the Socket.IO handlers (push) call
these methods. Only :class:`SessionError` subclasses leave this class;
anything else is logged and reported as :class:`InternalError`.
"""
import logging
import time
from functools import wraps

from .errors import InternalError, InvalidInput, SessionError
from .lifecycle import LifecycleManager
from .models import HOST_SLOT
from .presence import PresenceTracker
from .relay import Notifier, StateRelay
from .store import RoomStore
from .sweeper import ExpirySweeper

logger = logging.getLogger(__name__)


def _check_code(code, message="Room code required"):
    if not isinstance(code, str) or not code:
        raise InvalidInput(message)


def boundary(func):
    """Let session errors through; turn anything else into ``InternalError``."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SessionError:
            raise
        except Exception as e:
            logger.error(f"[internal] {func.__name__} failed: {e}", exc_info=True)
            raise InternalError() from e
    return wrapper


class SessionManager:
    def __init__(self, store=None, notifier=None, ttl=2 * 60 * 60, sweep_interval=30 * 60,
                 clock=time.time, heartbeat=0):
        self.store = store if store is not None else RoomStore()
        self.relay = StateRelay(self.store, notifier or Notifier(), clock=clock)
        self.lifecycle = LifecycleManager(self.store, self.relay, clock=clock)
        self.presence = PresenceTracker(self.lifecycle)
        self.sweeper = ExpirySweeper(
            self.store,
            ttl=ttl,
            interval=sweep_interval,
            clock=clock,
            on_expired=self.presence.forget_room,
            heartbeat=heartbeat,
        )

    @classmethod
    def from_config(cls, config, notifier=None):
        return cls(
            store=RoomStore(shards=int(config.get('STORE_SHARDS', 16))),
            notifier=notifier,
            ttl=int(config.get('ROOM_TTL_SEC', 2 * 60 * 60)),
            sweep_interval=int(config.get('SWEEP_INTERVAL_SEC', 30 * 60)),
            heartbeat=int(config.get('SWEEP_HEARTBEAT_SEC', 0)),
        )

    @boundary
    def create_room(self, code, host_name, connection_id=None):
        code = self.lifecycle.create_room(code, host_name, connection_id=connection_id)
        if connection_id is not None:
            self.presence.bind(connection_id, code, HOST_SLOT)
        return code

    @boundary
    def room_exists(self, code):
        return self.lifecycle.room_exists(code)

    @boundary
    def join_room(self, code, guest_name, connection_id=None):
        """Seat a guest and return the slot index they took."""
        slot = self.lifecycle.join_room(code, guest_name, connection_id=connection_id)
        if connection_id is not None:
            self.presence.bind(connection_id, code, slot)
        return slot

    @boundary
    def get_state(self, code):
        _check_code(code)
        return self.relay.get_state(code)

    @boundary
    def get_room(self, code):
        _check_code(code)
        return self.store.get(code)

    @boundary
    def update_state(self, code, game_state, sender_name=None, connection_id=None):
        """Overwrite the room's game state.

        The sender is identified by ``connection_id`` under push transport
        and by ``sender_name`` under pull; it never gets its own move back.
        """
        _check_code(code, "Room code and game state required")
        if game_state is None:
            raise InvalidInput("Room code and game state required")
        sender_slot = None
        if connection_id is None and sender_name:
            sender_slot = self.store.get(code).slot_of(name=sender_name)
        self.relay.update_state(code, game_state, sender_slot=sender_slot,
                                sender_connection_id=connection_id)

    @boundary
    def leave_room(self, code, name=None, connection_id=None):
        _check_code(code, "Room code and player name required")
        if connection_id is not None:
            binding = self.presence.lookup(connection_id)
            if binding is not None and binding[0] == code:
                return self.presence.on_disconnect(connection_id)
            return self.lifecycle.leave(code, connection_id=connection_id)
        if not name:
            raise InvalidInput('Room code and player name required')
        return self.lifecycle.leave(code, name=name)

    @boundary
    def disconnect(self, connection_id):
        return self.presence.on_disconnect(connection_id)

    @boundary
    def sweep(self, now=None):
        return self.sweeper.sweep(now=now)

    def start_sweeper(self, start_background_task, sleep=time.sleep):
        self.sweeper.start(start_background_task, sleep)

    def stop_sweeper(self):
        self.sweeper.stop()
