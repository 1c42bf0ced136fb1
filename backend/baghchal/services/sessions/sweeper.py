import logging
import time

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Deletes rooms whose last activity is older than ``ttl`` seconds.

    ``sweep`` picks candidates from the store's ``(code, last_activity)``
    listing and re-checks each one under its own lock before deleting, so a
    room touched between the listing and the delete survives.
    """

    def __init__(self, store, ttl, interval, clock=time.time, on_expired=None, heartbeat=0):
        self.store = store
        self.ttl = ttl
        self.interval = interval
        self.clock = clock
        self.on_expired = on_expired
        self.heartbeat = heartbeat
        self._running = False
        # Bumped on every start/stop; a loop from an older start exits on wake
        self._generation = 0

    def _expired(self, now):
        return lambda room: now - room.last_activity > self.ttl

    def sweep(self, now=None):
        now = self.clock() if now is None else now
        is_expired = self._expired(now)
        candidates = [code for code, last_activity in self.store.activity() if now - last_activity > self.ttl]
        removed = 0
        for code in candidates:
            if self.store.delete_if(code, is_expired):
                removed += 1
                if self.on_expired:
                    self.on_expired(code)
        if removed:
            logger.info(f"[sweep] cleaned up {removed} old rooms")
        return removed

    @property
    def running(self):
        return self._running

    def start(self, start_background_task, sleep=time.sleep):
        """Run the sweep loop via ``start_background_task`` (e.g. ``socketio.start_background_task``)."""
        if self._running:
            return
        if self.interval <= 0:
            logger.info("[sweep-disabled] interval <= 0")
            return
        self._running = True
        self._generation += 1
        logger.info(f"[sweep-start] interval={self.interval}s ttl={self.ttl}s")
        start_background_task(self._loop, sleep, self._generation)

    def stop(self):
        self._running = False
        self._generation += 1

    def _current(self, generation):
        return self._running and self._generation == generation

    def _loop(self, sleep, generation=None):
        generation = self._generation if generation is None else generation
        while self._current(generation):
            slept = 0
            while self._current(generation) and slept < self.interval:
                step = min(self.heartbeat, self.interval - slept) if self.heartbeat > 0 else self.interval - slept
                sleep(step)
                slept += step
                if self.heartbeat > 0:
                    logger.debug(f"[sweep-heartbeat] rooms={len(self.store)} next_in={max(0, self.interval - slept)}s")
            if not self._current(generation):
                logger.debug(f"[sweep-stop] generation={generation}")
                return
            try:
                self.sweep()
            except Exception:
                logger.error("[sweep-failed]", exc_info=True)
