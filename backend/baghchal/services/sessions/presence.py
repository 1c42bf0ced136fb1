"""Connection presence for push transports.

Maps a live connection id to the (room code, slot) it occupies so a
dropped socket can be evicted from its room.
"""
import logging
import threading

logger = logging.getLogger(__name__)


class PresenceTracker:
    def __init__(self, lifecycle):
        self.lifecycle = lifecycle
        self._lock = threading.Lock()
        self._bindings = {}

    def bind(self, connection_id, code, slot):
        """Record that ``connection_id`` sits in ``slot`` of ``code``.

        A connection is in at most one room; a binding to a different room
        is released first.
        """
        with self._lock:
            previous = self._bindings.get(connection_id)
            self._bindings[connection_id] = (code, slot)
        if previous and previous[0] != code:
            logger.info(f"[presence-rebind] sid={connection_id} from={previous[0]} to={code}")
            self.lifecycle.leave(previous[0], connection_id=connection_id)

    def unbind(self, connection_id):
        with self._lock:
            return self._bindings.pop(connection_id, None)

    def lookup(self, connection_id):
        with self._lock:
            return self._bindings.get(connection_id)

    def forget_room(self, code):
        """Drop every binding pointing at ``code`` (used after expiry)."""
        with self._lock:
            stale = [cid for cid, (bound, _) in self._bindings.items() if bound == code]
            for cid in stale:
                del self._bindings[cid]
        return len(stale)

    def on_disconnect(self, connection_id):
        binding = self.unbind(connection_id)
        if binding is None:
            return None
        code, slot = binding
        outcome = self.lifecycle.leave(code, connection_id=connection_id)
        logger.info(f"[disconnect] sid={connection_id} code={code} slot={slot} outcome={outcome}")
        return outcome

    def __len__(self):
        with self._lock:
            return len(self._bindings)
