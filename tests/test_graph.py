"""Tests for the room graph and visited bookkeeping."""

from labyrinth.graph import RoomGraph
from labyrinth.schemas import Writing


def test_get_or_create_is_idempotent():
    graph = RoomGraph()

    first = graph.get_or_create("r1")
    second = graph.get_or_create("r1")

    assert first is second
    assert len(graph) == 1


def test_add_connection_reports_first_sighting_only():
    graph = RoomGraph()
    graph.get_or_create("a")

    assert graph.add_connection("a", "b") is True
    assert graph.add_connection("a", "b") is False
    assert graph.add_connection("b", "a") is False

    assert len(graph) == 2
    assert graph.get_or_create("a").neighbor_ids() == ["b", "b"]
    assert graph.get_or_create("b").connections[0] is graph.get_or_create("a")


def test_record_connections_returns_new_ids_and_marks_explored():
    graph = RoomGraph()
    graph.get_or_create("a")
    graph.get_or_create("c")

    discovered = graph.record_connections("a", ["b", "c", "d"])

    assert discovered == ["b", "d"]
    assert graph.get_or_create("a").explored is True
    assert graph.get_or_create("b").explored is False


def test_room_needs_connections_and_writing_before_visited():
    graph = RoomGraph()
    graph.get_or_create("a")

    assert graph.mark_visited("a") is False

    graph.record_writing("a", Writing(text="x", order=0))
    assert graph.mark_visited("a") is False

    # A dead end (zero connections) still counts as enumerated
    graph.record_connections("a", [])
    assert graph.mark_visited("a") is True
    assert graph.visited_count == 1


def test_fully_enumerated_tracks_every_known_room():
    graph = RoomGraph()
    graph.get_or_create("a")
    graph.record_connections("a", ["b"])
    graph.record_writing("a", Writing(text="", order=-1))
    graph.mark_visited("a")

    assert graph.is_fully_enumerated() is False

    graph.record_connections("b", ["a"])
    graph.record_writing("b", Writing(text="y", order=1))
    graph.mark_visited("b")

    assert graph.is_fully_enumerated() is True


def test_cyclic_rooms_have_safe_repr():
    graph = RoomGraph()
    graph.add_connection("a", "b")
    graph.add_connection("b", "a")

    assert "a" in repr(graph.get_or_create("a"))
