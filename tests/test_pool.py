"""Tests for drone checkout and return."""

import pytest

from labyrinth.errors import PoolError, PoolExhausted
from labyrinth.pool import Drone, WorkerPool


def test_acquire_and_release_conserve_drone_count():
    pool = WorkerPool(["d1", "d2"])

    first = pool.acquire()
    second = pool.acquire()

    assert first is not None and second is not None
    assert first.busy and second.busy
    assert pool.idle_count == 0
    assert pool.checked_out_count == 2
    assert pool.size == 2

    pool.release(first)

    assert first.busy is False
    assert pool.idle_count + pool.checked_out_count == 2


def test_acquire_on_empty_pool_returns_none():
    pool = WorkerPool(["d1"])
    pool.acquire()

    assert pool.acquire() is None
    with pytest.raises(PoolExhausted):
        pool.require()


def test_release_notifies_listener():
    released = []
    pool = WorkerPool(["d1"], on_release=lambda: released.append(True))

    pool.release(pool.require())

    assert released == [True]


def test_release_rejects_foreign_drone():
    pool = WorkerPool(["d1"])

    with pytest.raises(PoolError):
        pool.release(Drone(id="d1"))

    assert pool.size == 1


def test_add_registers_idle_drone_without_notification():
    released = []
    pool = WorkerPool(on_release=lambda: released.append(True))

    pool.add("d1")

    assert pool.idle_count == 1
    assert released == []
