"""Pending work for the exploration engine.

Every room id gets exactly two tasks the first time it is seen: one to explore
its connections and one to read its writing. Tasks leave the queue in batches
and come back (individually or as a whole batch) when a dispatch fails.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Iterable, List, Optional


class TaskKind(str, Enum):
    EXPLORE = "explore"
    READ = "read"


@dataclass(frozen=True)
class Task:
    """A unit of pending work; identity is the (room_id, kind) pair."""

    room_id: str
    kind: TaskKind

    @classmethod
    def explore(cls, room_id: str) -> "Task":
        return cls(room_id=room_id, kind=TaskKind.EXPLORE)

    @classmethod
    def read(cls, room_id: str) -> "Task":
        return cls(room_id=room_id, kind=TaskKind.READ)


class TaskQueue:
    """FIFO multiset of tasks with batched withdrawal.

    ``on_task`` is called once for every task that enters the queue, so the
    engine can re-evaluate whether a dispatch can start.
    """

    def __init__(self, on_task: Optional[Callable[[], None]] = None):
        self._tasks: Deque[Task] = deque()
        self.on_task = on_task

    def __len__(self) -> int:
        return len(self._tasks)

    def __bool__(self) -> bool:
        return bool(self._tasks)

    def pending(self) -> List[Task]:
        """Snapshot of queued tasks in withdrawal order."""
        return list(self._tasks)

    def _push(self, task: Task) -> None:
        self._tasks.append(task)
        if self.on_task is not None:
            self.on_task()

    def enqueue_discovery(self, room_id: str) -> None:
        """Queue the explore and read tasks for a newly seen room."""
        self._push(Task.explore(room_id))
        self._push(Task.read(room_id))

    def requeue(self, task: Task) -> None:
        self._push(task)

    def take_batch(self, max_size: int) -> List[Task]:
        """Withdraw up to ``max_size`` tasks (fewer if the queue holds less)."""
        batch: List[Task] = []
        while self._tasks and len(batch) < max_size:
            batch.append(self._tasks.popleft())
        return batch

    def return_batch(self, tasks: Iterable[Task]) -> None:
        """Put a withdrawn batch back after a failure that must not lose work."""
        for task in tasks:
            self._push(task)
