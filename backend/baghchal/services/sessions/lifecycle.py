import logging
import time

from .errors import InvalidInput, RoomFull, RoomNotFound
from .models import Participant, Room

logger = logging.getLogger(__name__)

LEFT = 'left'
DELETED = 'deleted'


def _require(*values):
    for value in values:
        if not isinstance(value, str) or not value:
            raise InvalidInput('Room code and player name required')


class LifecycleManager:
    """Create, join and leave rooms held in a :class:`RoomStore`."""

    def __init__(self, store, relay, clock=time.time):
        self.store = store
        self.relay = relay
        self.clock = clock

    def create_room(self, code, host_name, connection_id=None):
        _require(code, host_name)
        room = Room(code, Participant(host_name, connection_id), now=self.clock())
        self.store.create(code, room)
        logger.info(f"[room-created] code={code} host={host_name}")
        return code

    def join_room(self, code, guest_name, connection_id=None):
        """Seat ``guest_name`` in the first free slot and return its index."""
        _require(code, guest_name)

        def _seat(room):
            if room.is_full():
                raise RoomFull(code)
            if connection_id is not None and room.slot_of(connection_id=connection_id) is not None:
                raise InvalidInput('Already in this room')
            room.slots.append(Participant(guest_name, connection_id))
            room.touch(self.clock())
            if room.is_full():
                room.was_full = True
            return len(room.slots) - 1, room.snapshot()

        slot, snapshot = self.store.update(code, _seat)
        logger.info(f"[room-joined] code={code} player={guest_name} slot={slot}")
        if snapshot.is_full():
            self.relay.players_ready(snapshot)
        return slot

    def room_exists(self, code):
        return isinstance(code, str) and bool(code) and self.store.contains(code)

    def leave(self, code, slot=None, connection_id=None, name=None):
        """Remove one participant from ``code``.

        The participant is matched by ``slot`` if given, else by
        ``connection_id``, else by ``name``. Returns ``LEFT`` when the room
        survives, ``DELETED`` when it was emptied, and None when nothing
        matched (including a room that is already gone).
        """

        def _evict(room):
            idx = slot
            if idx is None:
                idx = room.slot_of(connection_id=connection_id, name=name)
            if idx is None or not 0 <= idx < len(room.slots):
                return None, None
            leaving = room.slots.pop(idx)
            if room.is_empty():
                return DELETED, leaving
            room.touch(self.clock())
            return LEFT, (leaving, room.snapshot())

        try:
            outcome, detail = self.store.update(code, _evict)
        except RoomNotFound:
            return None

        if outcome == DELETED:
            logger.info(f"[room-deleted] code={code} last={detail.name}")
        elif outcome == LEFT:
            leaving, snapshot = detail
            logger.info(f"[player-left] code={code} player={leaving.name} remaining={snapshot.player_names()}")
            self.relay.opponent_left(snapshot)
        return outcome
