"""Fixed pool of drones available for dispatch."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterable, Optional

from .errors import PoolError, PoolExhausted


@dataclass(eq=False)
class Drone:
    """Remote worker handle.

    ``busy`` mirrors checkout state for display only; the pool is
    authoritative for availability.
    """

    id: str
    busy: bool = False


class WorkerPool:
    """Idle drones plus the ones currently checked out.

    The number of drones never changes after construction: every drone is
    either idle or checked out, never both.
    """

    def __init__(
        self,
        drone_ids: Iterable[str] = (),
        on_release: Optional[Callable[[], None]] = None,
    ):
        self._idle: Deque[Drone] = deque(Drone(id=drone_id) for drone_id in drone_ids)
        self._checked_out: Dict[int, Drone] = {}
        self.on_release = on_release

    def add(self, drone_id: str) -> Drone:
        """Register a drone during seeding. Does not emit a release notification."""
        drone = Drone(id=drone_id)
        self._idle.append(drone)
        return drone

    @property
    def size(self) -> int:
        return len(self._idle) + len(self._checked_out)

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    @property
    def checked_out_count(self) -> int:
        return len(self._checked_out)

    def has_idle(self) -> bool:
        return bool(self._idle)

    def acquire(self) -> Optional[Drone]:
        """Check out an idle drone, or return None if every drone is out."""
        if not self._idle:
            return None
        drone = self._idle.popleft()
        drone.busy = True
        self._checked_out[id(drone)] = drone
        return drone

    def require(self) -> Drone:
        """Like acquire(), but raise PoolExhausted when no drone is idle."""
        drone = self.acquire()
        if drone is None:
            raise PoolExhausted(size=self.size)
        return drone

    def release(self, drone: Drone) -> None:
        """Return a checked-out drone to the idle set."""
        if self._checked_out.pop(id(drone), None) is None:
            raise PoolError(f"Drone {drone.id} is not checked out from this pool")
        drone.busy = False
        self._idle.append(drone)
        if self.on_release is not None:
            self.on_release()
