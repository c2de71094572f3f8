import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from connection import ConnectionHandle
from logging_config import get_logger

logger = get_logger(__name__)

Membership = Tuple[str, str]  # (room_id, participant_id)


@dataclass
class Departure:
    """A membership that was removed, with the room's remaining members at removal time."""
    room_id: str
    participant_id: str
    remaining: List[ConnectionHandle] = field(default_factory=list)


class RoomRegistry:
    """In-memory room membership store.

    Format: {room_id: {participant_id: handle}} plus a reverse index
    {handle: {(room_id, participant_id)}} kept in step with it. Every
    operation runs under one lock, and rooms are dropped as soon as
    they become empty.
    """

    def __init__(self):
        self._rooms: Dict[str, Dict[str, ConnectionHandle]] = {}
        self._memberships: Dict[ConnectionHandle, Set[Membership]] = {}
        self._lock = asyncio.Lock()

    async def join(self, room_id: str, participant_id: str, handle: ConnectionHandle) -> List[ConnectionHandle]:
        """Add or replace a participant; returns the other members to notify."""
        async with self._lock:
            if room_id not in self._rooms:
                self._rooms[room_id] = {}
                logger.debug(f"Created room {room_id}")
            room = self._rooms[room_id]

            previous = room.get(participant_id)
            if previous is not None and previous is not handle:
                # Last writer wins: the earlier connection loses this membership
                self._unindex(previous, (room_id, participant_id))
                logger.info(f"Participant {participant_id} in room {room_id} replaced by a new connection")

            room[participant_id] = handle
            self._memberships.setdefault(handle, set()).add((room_id, participant_id))
            logger.debug(f"Room {room_id} now has {len(room)} participants")
            return [other for pid, other in room.items() if pid != participant_id]

    async def leave(self, room_id: str, participant_id: str) -> Optional[Departure]:
        """Remove a participant. Returns None when there was nothing to remove."""
        async with self._lock:
            return self._remove(room_id, participant_id)

    async def lookup(self, room_id: str, participant_id: str) -> Optional[ConnectionHandle]:
        async with self._lock:
            room = self._rooms.get(room_id)
            if not room:
                return None
            return room.get(participant_id)

    async def list_participants(self, room_id: str) -> List[str]:
        async with self._lock:
            return list(self._rooms.get(room_id, {}))

    async def remove_all_for_handle(self, handle: ConnectionHandle) -> List[Departure]:
        """Remove every membership registered for this handle."""
        async with self._lock:
            memberships = self._memberships.pop(handle, set())
            departures = []
            for room_id, participant_id in sorted(memberships):
                room = self._rooms.get(room_id)
                if room is None or room.get(participant_id) is not handle:
                    continue
                departure = self._remove(room_id, participant_id)
                if departure:
                    departures.append(departure)
            return departures

    async def rooms(self) -> Dict[str, List[str]]:
        """Snapshot of every room and its participant ids."""
        async with self._lock:
            return {room_id: list(room) for room_id, room in self._rooms.items()}

    async def memberships(self, handle: ConnectionHandle) -> Set[Membership]:
        async with self._lock:
            return set(self._memberships.get(handle, set()))

    def _remove(self, room_id: str, participant_id: str) -> Optional[Departure]:
        # Caller holds the lock
        room = self._rooms.get(room_id)
        if not room or participant_id not in room:
            return None

        handle = room.pop(participant_id)
        self._unindex(handle, (room_id, participant_id))

        if not room:
            del self._rooms[room_id]
            logger.debug(f"Room {room_id} is empty, removed")

        return Departure(room_id=room_id, participant_id=participant_id, remaining=list(room.values()))

    def _unindex(self, handle: ConnectionHandle, membership: Membership):
        memberships = self._memberships.get(handle)
        if memberships is None:
            return
        memberships.discard(membership)
        if not memberships:
            del self._memberships[handle]


room_registry = RoomRegistry()
