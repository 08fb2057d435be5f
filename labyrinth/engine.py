"""
Exploration engine.

Fully decoupled from transport and config: the gateway, graph, queue and pool
are injected (or built fresh per engine), so several runs can coexist.

Coordinates the exploration loop:
1. Seed the graph, queue and pool from the discovery call
2. Whenever a drone is idle and tasks are pending, launch a dispatch cycle
3. Apply each cycle's results to the graph and queue, then return the drone
4. Close once every known room is visited and no task is pending
5. Assemble the message and report it exactly once

All mutations happen on the event loop between awaits. Queue and pool
notifications, and finished cycles, are posted onto an internal event channel;
the loop re-evaluates "can I dispatch" after each event.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union
from uuid import UUID, uuid4

from .assembler import assemble
from .config import Config
from .errors import ExplorationStalled, ParseError, RemoteRejection, TransportError
from .gateway import RemoteGateway, Results
from .graph import RoomGraph
from .logging_utils import log_error, log_local, log_remote, log_success
from .pool import Drone, WorkerPool
from .schemas import CommandResult, ExplorationResult
from .tasks import Task, TaskKind, TaskQueue


class EngineState(str, Enum):
    SEEDING = "seeding"
    RUNNING = "running"
    CLOSED = "closed"


class EngineEvent(Enum):
    WORK_AVAILABLE = "work_available"
    DRONE_AVAILABLE = "drone_available"
    CYCLE_FINISHED = "cycle_finished"


class CycleOutcome(str, Enum):
    COMPLETED = "completed"
    EMPTY = "empty"
    TRANSPORT_FAILED = "transport_failed"
    REJECTED = "rejected"


@dataclass
class _Event:
    kind: EngineEvent
    outcome: Optional[CycleOutcome] = None
    error: Optional[BaseException] = None


class ExplorationEngine:
    """
    Drives a single labyrinth run.

    Each dispatch cycle holds one drone and one batch; at most one batch is
    outstanding per drone. Dispatch failures never abort the run: tasks are
    requeued and the drone is returned (or withheld after a busy/invalid
    rejection unless ``recycle_rejected_drones`` is set).
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        *,
        max_commands: Optional[int] = None,
        graph: Optional[RoomGraph] = None,
        queue: Optional[TaskQueue] = None,
        pool: Optional[WorkerPool] = None,
        recycle_rejected_drones: Optional[bool] = None,
        verbose: Optional[bool] = None,
    ):
        """Initialize the engine with its collaborators.

        Args:
            gateway: Remote service implementation
            max_commands: Maximum tasks per dispatched batch (defaults to Config)
            graph: Optional pre-built RoomGraph (defaults to a fresh one)
            queue: Optional TaskQueue (defaults to a fresh one)
            pool: Optional WorkerPool (defaults to an empty one filled by seed())
            recycle_rejected_drones: Return drones rejected as busy/invalid to
                the pool instead of withholding them
            verbose: Log pool/queue/graph stats after every successful cycle
        """
        self.gateway = gateway
        self.max_commands = max_commands if max_commands is not None else Config.MAX_COMMANDS
        if self.max_commands < 1:
            raise ValueError(f"max_commands must be at least 1 (got {self.max_commands})")
        self.recycle_rejected_drones = (
            recycle_rejected_drones
            if recycle_rejected_drones is not None
            else Config.RECYCLE_REJECTED_DRONES
        )
        self.verbose = verbose if verbose is not None else Config.VERBOSE

        self.graph = graph if graph is not None else RoomGraph()
        self.queue = queue if queue is not None else TaskQueue()
        self.pool = pool if pool is not None else WorkerPool()
        self.queue.on_task = self._on_work_available
        self.pool.on_release = self._on_drone_available

        self.state = EngineState.SEEDING
        self.run_id: UUID = uuid4()
        self.message: Optional[str] = None
        self.drones_lost = 0

        self._events: "asyncio.Queue[_Event]" = asyncio.Queue()
        self._in_flight = 0
        # Strong references so running cycles are not garbage collected
        self._cycles: "set[asyncio.Task]" = set()
        self._report: Optional[Dict[str, Any]] = None

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _post(self, event: _Event) -> None:
        self._events.put_nowait(event)

    def _on_work_available(self) -> None:
        self._post(_Event(EngineEvent.WORK_AVAILABLE))

    def _on_drone_available(self) -> None:
        self._post(_Event(EngineEvent.DRONE_AVAILABLE))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self) -> ExplorationResult:
        """Discover, explore until closed, then report.

        Returns:
            ExplorationResult with the assembled message and report body

        Raises:
            ParseError, DiscoveryValidationError, RemoteRejection, TransportError:
                if discovery or report fail
            ExplorationStalled: if no further progress is possible
        """
        print(f"Starting labyrinth run {self.run_id}")
        await self.seed()
        await self.explore()
        report = await self.report()

        return ExplorationResult(
            run_id=self.run_id,
            message=self.message or "",
            report=report,
            rooms_known=len(self.graph),
            rooms_visited=self.graph.visited_count,
            drones_lost=self.drones_lost,
        )

    async def seed(self) -> None:
        """Register the start room and drones returned by discovery."""
        if self.state is not EngineState.SEEDING:
            raise RuntimeError(f"Engine already seeded (state: {self.state.value})")

        log_remote("[Discover] Requesting start room and drones...")
        discovery = await self.gateway.discover()

        self.graph.get_or_create(discovery.room_id)
        self.queue.enqueue_discovery(discovery.room_id)
        for drone_id in discovery.drones:
            self.pool.add(drone_id)

        self.state = EngineState.RUNNING
        log_success(
            f"[Discover] Start room {discovery.room_id}, {len(discovery.drones)} drone(s)"
        )

    async def explore(self) -> str:
        """Dispatch until the graph is closed and return the assembled message."""
        if self.state is EngineState.SEEDING:
            raise RuntimeError("seed() must complete before explore()")

        while self.state is EngineState.RUNNING:
            self._try_dispatch()

            if self._in_flight == 0 and self._events.empty():
                # Nothing running and nothing left to react to
                if self._is_complete():
                    self._close()
                    break
                stats = self.stats()
                log_error("[Engine] Exploration stalled")
                raise ExplorationStalled(stats=stats)

            event = await self._events.get()
            if event.error is not None:
                # Let sibling cycles finish so their drones and tasks are returned
                if self._cycles:
                    await asyncio.gather(*list(self._cycles), return_exceptions=True)
                raise event.error
            if (
                event.kind is EngineEvent.CYCLE_FINISHED
                and event.outcome is CycleOutcome.COMPLETED
                and self._is_complete()
            ):
                self._close()

        if self._cycles:
            await asyncio.gather(*list(self._cycles))
        return self.message or ""

    async def report(self) -> Dict[str, Any]:
        """Submit the assembled message once; later calls return the same body."""
        if self.state is not EngineState.CLOSED:
            raise RuntimeError("Cannot report before every room is visited")
        if self._report is None:
            log_remote(f"[Report] Submitting message ({len(self.message or '')} chars)")
            self._report = await self.gateway.report(self.message or "")
            log_success(f"[Report] {self._report}")
        return self._report

    def _is_complete(self) -> bool:
        return self.graph.is_fully_enumerated() and not self.queue

    def _close(self) -> None:
        self.state = EngineState.CLOSED
        self.message = assemble(self.graph)
        log_success(
            f"[Engine] Closed: {self.graph.visited_count} room(s) visited, "
            f"message assembled"
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _try_dispatch(self) -> int:
        """Launch a cycle for every idle drone while tasks are pending."""
        launched = 0
        while self.state is EngineState.RUNNING and self.queue and self.pool.has_idle():
            drone = self.pool.acquire()
            batch = self.queue.take_batch(self.max_commands)
            self._in_flight += 1
            cycle = asyncio.create_task(self._run_cycle(drone, batch))
            self._cycles.add(cycle)
            cycle.add_done_callback(self._cycles.discard)
            launched += 1
        return launched

    async def _run_cycle(self, drone: Drone, batch: List[Task]) -> None:
        event = _Event(EngineEvent.CYCLE_FINISHED)
        try:
            event.outcome = await self.dispatch_cycle(drone, batch)
        except Exception as exc:
            # Surfaced by explore(); never dropped
            event.error = exc
        finally:
            self._in_flight -= 1
            self._post(event)

    async def dispatch_cycle(self, drone: Drone, batch: Sequence[Task]) -> CycleOutcome:
        """Send one batch through a checked-out drone and apply the outcome.

        The drone must have been acquired from this engine's pool and the batch
        withdrawn from its queue.
        """
        if not batch:
            self.pool.release(drone)
            return CycleOutcome.EMPTY

        try:
            results = await self.gateway.dispatch(drone.id, batch)
        except (TransportError, ParseError) as exc:
            # Processed and unprocessed tasks are indistinguishable: retry all
            log_error(f"[Drone {drone.id}] Dispatch failed, requeueing {len(batch)} task(s): {exc}")
            self.pool.release(drone)
            self.queue.return_batch(batch)
            return CycleOutcome.TRANSPORT_FAILED
        except RemoteRejection as exc:
            self.queue.return_batch(batch)
            if exc.drone_unusable and not self.recycle_rejected_drones:
                self.drones_lost += 1
                log_error(f"[Drone {drone.id}] {exc} Withheld from pool; requeued {len(batch)} task(s)")
            else:
                log_error(f"[Drone {drone.id}] {exc} Requeued {len(batch)} task(s)")
                self.pool.release(drone)
            return CycleOutcome.REJECTED

        self._apply_results(batch, results)
        self.pool.release(drone)
        if self.verbose:
            self._print_stats()
        return CycleOutcome.COMPLETED

    def _apply_results(self, batch: Sequence[Task], results: Results) -> None:
        for task in batch:
            result = results.get(task)
            if task.kind is TaskKind.READ:
                self._apply_read(task, result)
            else:
                self._apply_explore(task, result)
            self.graph.mark_visited(task.room_id)

    def _apply_read(self, task: Task, result: Optional[CommandResult]) -> None:
        fragment = result.fragment() if result is not None else None
        if fragment is not None:
            self.graph.record_writing(task.room_id, fragment)
        if fragment is None or result.has_error:
            self.queue.requeue(task)

    def _apply_explore(self, task: Task, result: Optional[CommandResult]) -> None:
        connections = result.connections if result is not None else None
        room = self.graph.get_or_create(task.room_id)
        if connections is not None and not room.explored:
            for room_id in self.graph.record_connections(task.room_id, connections):
                self.queue.enqueue_discovery(room_id)
        if connections is None or result.has_error:
            self.queue.requeue(task)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def stats(self) -> Dict[str, Union[int, str]]:
        return {
            "state": self.state.value,
            "drones_idle": self.pool.idle_count,
            "drones_checked_out": self.pool.checked_out_count,
            "drones_lost": self.drones_lost,
            "tasks_pending": len(self.queue),
            "rooms_visited": self.graph.visited_count,
            "rooms_known": len(self.graph),
            "cycles_in_flight": self._in_flight,
        }

    def _print_stats(self) -> None:
        stats = self.stats()
        line = (
            f"Drones: {stats['drones_idle']} idle / {stats['drones_checked_out']} out"
        )
        if stats["drones_lost"]:
            line += f" ({stats['drones_lost']} withheld)"
        log_local(
            f"{line} | Tasks: {stats['tasks_pending']} | "
            f"Rooms: {stats['rooms_visited']}/{stats['rooms_known']} visited"
        )
