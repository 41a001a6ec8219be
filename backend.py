import asyncio
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Tuple

from constants import ROOM_CAPACITY
from logging_config import get_logger

logger = get_logger(__name__)


class Room:
    """A named group of joined sessions, in join order."""

    def __init__(self, key: str, capacity: int):
        self.key = key
        self.capacity = capacity
        self.members: List = []

    def __len__(self):
        return len(self.members)

    def __contains__(self, session):
        return session in self.members

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.capacity

    def summary(self) -> dict:
        return {"room_id": self.key, "members": len(self), "capacity": self.capacity, "is_full": self.is_full}


class _RoomLock:
    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class RoomRegistry:
    """In-memory mapping from room key to its current members.

    Each room key has its own asyncio.Lock, taken with `room_lock(key)`, so a
    slow member only ever holds up its own room. Methods without the `async`
    keyword expect the caller to hold the lock of the key they touch; the async
    ones take it themselves. A room never exists with zero members: it is
    created when its first member is added and deleted together with its last one.
    """

    def __init__(self, capacity: int = ROOM_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._rooms: Dict[str, Room] = {}
        self._locks: Dict[str, _RoomLock] = {}
        logger.info(f"Initializing RoomRegistry with capacity {capacity}")

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_key: str):
        return room_key in self._rooms

    @asynccontextmanager
    async def room_lock(self, room_key: str):
        # the entry lives as long as someone holds or waits for it
        entry = self._locks.get(room_key)
        if entry is None:
            entry = self._locks[room_key] = _RoomLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[room_key]

    def get_or_create(self, room_key: str) -> Room:
        """Return the room for `room_key`, creating it if needed.

        Only called through `add_member`, which appends straight away, so an
        empty room is never left behind.
        """
        room = self._rooms.get(room_key)
        if room is None:
            room = Room(room_key, self.capacity)
            self._rooms[room_key] = room
            logger.info(f"Created room {room_key}")
        return room

    def members(self, room_key: str) -> Tuple:
        room = self._rooms.get(room_key)
        if room is None:
            return ()
        return tuple(room.members)

    def add_member(self, room_key: str, session) -> Room:
        room = self._rooms.get(room_key)
        if room is not None and room.is_full:
            raise ValueError(f"Room {room_key} is full")
        room = self.get_or_create(room_key)
        room.members.append(session)
        logger.debug(f"Added {session!r} to room {room_key} ({len(room)}/{room.capacity})")
        return room

    def discard_member(self, room_key: str, session) -> bool:
        """Remove `session` from its room. Missing rooms and members are a no-op."""
        room = self._rooms.get(room_key)
        if room is None or session not in room:
            logger.debug(f"Nothing to remove for {session!r} in room {room_key}")
            return False
        room.members.remove(session)
        if not room.members:
            del self._rooms[room_key]
            logger.info(f"Room {room_key} is empty, deleted it")
        return True

    async def remove_member(self, room_key: str, session) -> bool:
        async with self.room_lock(room_key):
            return self.discard_member(room_key, session)

    async def snapshot(self, room_key: str) -> Tuple:
        async with self.room_lock(room_key):
            return self.members(room_key)

    async def describe(self, room_key: str) -> Optional[dict]:
        async with self.room_lock(room_key):
            room = self._rooms.get(room_key)
            return room.summary() if room is not None else None

    async def list_rooms(self) -> List[dict]:
        # no await between reads, so this is one consistent view of every room
        return [room.summary() for room in self._rooms.values()]
