"""State relay: overwrite a room's game state and tell the other seat."""
import copy
import logging
import time

from .errors import InvalidInput

logger = logging.getLogger(__name__)

PLAYERS_READY = 'players_ready'
OPPONENT_MOVE = 'opponent_move'
OPPONENT_LEFT = 'opponent_left'


class Notifier:
    """Delivers an event to a single connection.

    The base class drops everything, which is what a pull transport wants:
    clients there learn about changes by polling ``get_state``.
    """

    def notify(self, connection_id, event, payload):
        pass


class StateRelay:
    def __init__(self, store, notifier=None, clock=time.time):
        self.store = store
        self.notifier = notifier or Notifier()
        self.clock = clock

    def update_state(self, code, new_state, sender_slot=None, sender_connection_id=None):
        """Replace the room's game state and forward it to everyone but the sender.

        Returns the number of connections the move was pushed to.
        """
        if new_state is None:
            raise InvalidInput('Room code and game state required')
        payload = copy.deepcopy(new_state)

        def _apply(room):
            room.game_state = payload
            room.touch(self.clock())
            return [
                p.connection_id for idx, p in enumerate(room.slots)
                if p.connection_id is not None
                and idx != sender_slot
                and p.connection_id != sender_connection_id
            ]

        targets = self.store.update(code, _apply)
        logger.info(f"[state-updated] code={code} forwarded_to={len(targets)}")
        self._deliver(targets, OPPONENT_MOVE, {'roomCode': code, 'gameState': payload})
        return len(targets)

    def get_state(self, code):
        room = self.store.get(code)
        return room.game_state, room.slots

    def players_ready(self, room):
        payload = {'roomCode': room.code, 'players': room.player_names()}
        self._deliver(room.connection_ids(), PLAYERS_READY, payload)

    def opponent_left(self, room):
        payload = {'roomCode': room.code, 'players': room.player_names()}
        self._deliver(room.connection_ids(), OPPONENT_LEFT, payload)

    def _deliver(self, connection_ids, event, payload):
        # Called with no store lock held; a failed push does not undo the write
        for cid in connection_ids:
            try:
                self.notifier.notify(cid, event, payload)
            except Exception:
                logger.error(f"[notify-failed] event={event} sid={cid}", exc_info=True)
