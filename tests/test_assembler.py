"""Tests for message reassembly."""

from labyrinth.assembler import assemble
from labyrinth.graph import Room
from labyrinth.schemas import Writing


def _room(room_id: str, text: str, order: int) -> Room:
    return Room(id=room_id, writing=Writing(text=text, order=order))


def test_assemble_orders_fragments_and_skips_sentinel():
    rooms = [
        _room("r1", "B", 1),
        _room("r2", "A", 0),
        _room("r3", "X", -1),
        _room("r4", "C", 2),
    ]

    assert assemble(rooms) == "ABC"


def test_assemble_follows_order_not_letters():
    rooms = [
        _room("r1", "B", 2),
        _room("r2", "A", 0),
        _room("r3", "X", -1),
        _room("r4", "C", 1),
    ]

    assert assemble(rooms) == "ACB"


def test_assemble_ignores_rooms_without_writing():
    rooms = [Room(id="empty"), _room("r1", "hi", 0)]

    assert assemble(rooms) == "hi"


def test_assemble_keeps_duplicate_orders():
    rooms = [_room("r1", "a", 0), _room("r2", "b", 0)]

    assert assemble(rooms) == "ab"
