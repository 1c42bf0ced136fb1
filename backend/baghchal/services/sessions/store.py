"""In-memory room registry with per-shard locking.

Rooms are spread over a fixed number of shards, each a plain dict guarded
by its own lock, so a sweep or a burst of traffic on one code never holds
up unrelated rooms. Every read-modify-write on a room runs inside its
shard's lock; callers get deep copies and never touch the stored object.
"""
import threading
import zlib
from typing import Callable, Dict, List, Tuple, TypeVar

from .errors import RoomExists, RoomNotFound
from .models import Room

T = TypeVar('T')


class _Shard:
    __slots__ = ('lock', 'rooms')

    def __init__(self):
        self.lock = threading.Lock()
        self.rooms: Dict[str, Room] = {}


class RoomStore:
    def __init__(self, shards: int = 16):
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._shards = [_Shard() for _ in range(shards)]

    def _shard(self, code: str) -> _Shard:
        # crc32 is stable across processes, unlike hash() on str
        return self._shards[zlib.crc32(code.encode('utf-8')) % len(self._shards)]

    def create(self, code: str, room: Room) -> None:
        """Insert ``room`` under ``code``; check and insert are one critical section."""
        shard = self._shard(code)
        with shard.lock:
            if code in shard.rooms:
                raise RoomExists(code)
            shard.rooms[code] = room

    def get(self, code: str) -> Room:
        shard = self._shard(code)
        with shard.lock:
            room = shard.rooms.get(code)
            if room is None:
                raise RoomNotFound(code)
            return room.snapshot()

    def contains(self, code: str) -> bool:
        shard = self._shard(code)
        with shard.lock:
            return code in shard.rooms

    def update(self, code: str, fn: Callable[[Room], T]) -> T:
        """Run ``fn`` against the stored room while holding its lock.

        ``fn`` must not block or do I/O. If it leaves the room with no
        participants, the room is removed before the lock is released.
        """
        shard = self._shard(code)
        with shard.lock:
            room = shard.rooms.get(code)
            if room is None:
                raise RoomNotFound(code)
            result = fn(room)
            if room.is_empty():
                del shard.rooms[code]
            return result

    def delete(self, code: str) -> bool:
        shard = self._shard(code)
        with shard.lock:
            return shard.rooms.pop(code, None) is not None

    def delete_if(self, code: str, predicate: Callable[[Room], bool]) -> bool:
        """Delete ``code`` only if ``predicate`` still holds under the lock."""
        shard = self._shard(code)
        with shard.lock:
            room = shard.rooms.get(code)
            if room is None or not predicate(room):
                return False
            del shard.rooms[code]
            return True

    def snapshot(self) -> List[Room]:
        """Copies of every room, taken one shard at a time."""
        out: List[Room] = []
        for shard in self._shards:
            with shard.lock:
                out.extend(room.snapshot() for room in shard.rooms.values())
        return out

    def activity(self) -> List[Tuple[str, float]]:
        """``(code, last_activity)`` for every room, one shard at a time.

        Cheaper than ``snapshot`` for scans that only need the timestamp.
        """
        out: List[Tuple[str, float]] = []
        for shard in self._shards:
            with shard.lock:
                out.extend((code, room.last_activity) for code, room in shard.rooms.items())
        return out

    def for_each(self, fn: Callable[[Room], None]) -> None:
        # fn runs outside any lock on a copy
        for room in self.snapshot():
            fn(room)

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.rooms)
        return total

