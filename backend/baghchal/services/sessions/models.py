import copy
import time

MAX_SLOTS = 2

HOST_SLOT = 0


class Participant:
    def __init__(self, name, connection_id=None):
        self.name = name
        self.connection_id = connection_id

    def to_dict(self, slot=None):
        data = {
            'name': self.name,
            'connected': self.connection_id is not None,
        }
        if slot is not None:
            data['slot'] = slot
        return data

    def __repr__(self):
        return f"Participant(name={self.name!r}, connection_id={self.connection_id!r})"


class Room:
    """A two-seat matchmaking room.

    ``slots`` is an ordered list: index 0 is the host, index 1 the guest.
    When the host leaves, the guest moves up to index 0. ``game_state`` is
    whatever the last writer sent and is never inspected here.
    """

    def __init__(self, code, host, now=None):
        now = time.time() if now is None else now
        self.code = code
        self.slots = [host]
        self.game_state = None
        self.created_at = now
        self.last_activity = now
        # Set once the room has had two participants; drives 'closing'
        self.was_full = False

    @property
    def status(self):
        if len(self.slots) >= MAX_SLOTS:
            return 'active'
        if self.was_full:
            return 'closing'
        return 'waiting'

    def is_full(self):
        return len(self.slots) >= MAX_SLOTS

    def is_empty(self):
        return not self.slots

    def touch(self, now=None):
        self.last_activity = time.time() if now is None else now

    def slot_of(self, connection_id=None, name=None):
        """Index of the first participant matching the given identity, or None."""
        for idx, participant in enumerate(self.slots):
            if connection_id is not None and participant.connection_id == connection_id:
                return idx
            if connection_id is None and name is not None and participant.name == name:
                return idx
        return None

    def player_names(self):
        return [p.name for p in self.slots]

    def connection_ids(self, exclude_slot=None):
        return [
            p.connection_id for idx, p in enumerate(self.slots)
            if p.connection_id is not None and idx != exclude_slot
        ]

    def snapshot(self):
        return copy.deepcopy(self)

    def to_dict(self):
        return {
            'roomCode': self.code,
            'status': self.status,
            'players': self.player_names(),
            'slots': [p.to_dict(slot=idx) for idx, p in enumerate(self.slots)],
            'gameState': self.game_state,
            'createdAt': self.created_at,
            'lastActivity': self.last_activity,
        }

    def __repr__(self):
        return f"Room(code={self.code!r}, players={self.player_names()!r}, status={self.status!r})"
