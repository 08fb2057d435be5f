"""Room graph discovered during exploration.

Rooms are created once, the first time their identifier is seen, and are never
removed during a run. Connections are plain references into the same graph, so
cycles are allowed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from .schemas import Writing


# eq=False keeps identity semantics; connection lists may be cyclic.
@dataclass(eq=False)
class Room:
    """A node in the labyrinth, possibly carrying a message fragment."""

    id: str
    visited: bool = False
    writing: Optional[Writing] = None
    # Set once the room's connections were enumerated, even if there were none
    explored: bool = False
    connections: List["Room"] = field(default_factory=list, repr=False)

    def neighbor_ids(self) -> List[str]:
        return [room.id for room in self.connections]


@dataclass
class RoomGraph:
    """Owns every discovered room, keyed by room id."""

    rooms: Dict[str, Room] = field(default_factory=dict)
    visited: Dict[str, Room] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(self.rooms.values())

    def __contains__(self, room_id: object) -> bool:
        return room_id in self.rooms

    @property
    def visited_count(self) -> int:
        return len(self.visited)

    def get_or_create(self, room_id: str) -> Room:
        """Return the room for ``room_id``, registering it on first sight."""
        room = self.rooms.get(room_id)
        if room is None:
            room = Room(id=room_id)
            self.rooms[room_id] = room
        return room

    def add_connection(self, from_id: str, to_id: str) -> bool:
        """Append an edge from ``from_id`` to ``to_id``.

        Returns True if ``to_id`` was seen for the first time, so the caller
        can schedule its discovery.
        """
        is_new = to_id not in self.rooms
        source = self.get_or_create(from_id)
        source.connections.append(self.get_or_create(to_id))
        return is_new

    def record_connections(self, room_id: str, connection_ids: Iterable[str]) -> List[str]:
        """Register every edge reported for a room and mark it explored.

        Returns the ids that were discovered by this call, in report order.
        """
        discovered: List[str] = []
        for to_id in connection_ids:
            if self.add_connection(room_id, to_id):
                discovered.append(to_id)
        self.get_or_create(room_id).explored = True
        return discovered

    def record_writing(self, room_id: str, writing: Writing) -> Room:
        room = self.get_or_create(room_id)
        room.writing = writing
        return room

    def mark_visited(self, room_id: str) -> bool:
        """Mark a room visited once it is both explored and read.

        Returns True if the room is visited after the call.
        """
        room = self.get_or_create(room_id)
        if room.visited:
            return True
        if room.explored and room.writing is not None:
            room.visited = True
            self.visited[room_id] = room
        return room.visited

    def is_fully_enumerated(self) -> bool:
        """True iff every known room has been visited."""
        return len(self.visited) == len(self.rooms)
