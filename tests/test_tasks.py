"""Tests for the task queue and the flat batch wire encoding."""

from collections import Counter

from labyrinth.gateway import decode_batch, encode_batch
from labyrinth.tasks import Task, TaskKind, TaskQueue


def test_enqueue_discovery_creates_one_task_of_each_kind():
    notifications = []
    queue = TaskQueue(on_task=lambda: notifications.append("task"))

    queue.enqueue_discovery("r1")

    assert queue.pending() == [Task.explore("r1"), Task.read("r1")]
    assert len(notifications) == 2


def test_take_batch_truncates_to_max_size():
    queue = TaskQueue()
    for room_id in ("a", "b", "c"):
        queue.enqueue_discovery(room_id)
    queue.requeue(Task.explore("d"))
    assert len(queue) == 7

    batch = queue.take_batch(5)

    assert len(batch) == 5
    assert len(queue) == 2


def test_take_batch_on_empty_queue_returns_nothing():
    queue = TaskQueue()
    queue.enqueue_discovery("a")

    assert len(queue.take_batch(5)) == 2
    assert queue.take_batch(5) == []
    assert not queue


def test_return_batch_restores_withdrawn_tasks():
    notifications = []
    queue = TaskQueue()
    queue.enqueue_discovery("a")
    queue.enqueue_discovery("b")
    before = Counter(queue.pending())

    queue.on_task = lambda: notifications.append("task")
    queue.return_batch(queue.take_batch(3))

    assert Counter(queue.pending()) == before
    assert len(notifications) == 3


def test_tasks_compare_by_value():
    assert Task.read("a") == Task(room_id="a", kind=TaskKind.READ)
    assert Task.read("a") != Task.explore("a")
    assert len({Task.read("a"), Task.read("a"), Task.explore("a")}) == 2


def test_wire_encoding_keeps_both_kinds_for_one_room():
    batch = [Task.explore("r1"), Task.read("r1"), Task.read("r2")]

    payload = encode_batch(batch)

    assert payload == {
        "r1": {"explore": "r1"},
        "__READ__r1": {"read": "r1"},
        "__READ__r2": {"read": "r2"},
    }
    assert decode_batch(payload) == batch
