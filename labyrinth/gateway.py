"""
RemoteGateway interface for the labyrinth service.

The engine needs exactly three remote operations:
1. discover() - start room and drone identifiers for the commander
2. dispatch() - send one batch of explore/read commands through a drone
3. report()   - submit the assembled message

Two implementations are included:
1. HttpGateway - talks to the real service over HTTP (blocking urllib calls run
   in worker threads so the event loop keeps dispatching)
2. InMemoryLabyrinth - a simulated service built from a topology dict (testing,
   offline runs)

Wire format:
    The service expects a batch as one flat JSON object. Explore commands are
    keyed by the room id, read commands by the room id prefixed with
    ``__READ__`` so both kinds for the same room can share one request. The
    encoding lives here only; the engine works with Task values.
"""

from __future__ import annotations

import asyncio
import http.client
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from urllib import error, request

from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from .config import Config
from .errors import (
    DiscoveryValidationError,
    ParseError,
    RejectionReason,
    RemoteRejection,
    TransportError,
)
from .logging_utils import log_error
from .schemas import NO_FRAGMENT_ORDER, CommandResult, DiscoveryResponse
from .tasks import Task, TaskKind


READ_KEY_PREFIX = "__READ__"

Command = Dict[str, str]
Results = Dict[Task, CommandResult]


# ============================================================================
# Batch Wire Encoding
# ============================================================================


def encode_key(task: Task) -> str:
    if task.kind is TaskKind.READ:
        return f"{READ_KEY_PREFIX}{task.room_id}"
    return task.room_id


def decode_key(key: str) -> Task:
    if key.startswith(READ_KEY_PREFIX):
        return Task.read(key[len(READ_KEY_PREFIX):])
    return Task.explore(key)


def encode_batch(tasks: Iterable[Task]) -> Dict[str, Command]:
    """Flatten tasks into the service's keyed command object."""
    return {encode_key(task): {task.kind.value: task.room_id} for task in tasks}


def decode_batch(payload: Mapping[str, Any]) -> List[Task]:
    """Inverse of encode_batch; only the keys are needed."""
    return [decode_key(key) for key in payload]


# ============================================================================
# Response Parsing
# ============================================================================


def _parse_json(raw: str, operation: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(operation=operation, detail=str(exc)) from exc


def parse_discovery(raw: str) -> DiscoveryResponse:
    """Parse and validate the discovery body."""
    data = _parse_json(raw, "discover")
    if not isinstance(data, dict):
        raise DiscoveryValidationError([f"root: expected an object, got {type(data).__name__}"])
    try:
        return DiscoveryResponse.model_validate(data)
    except ValidationError as exc:
        issues = [
            f"{'.'.join(str(part) for part in err.get('loc', [])) or 'root'}: {err.get('msg')}"
            for err in exc.errors(include_url=False)
        ]
        raise DiscoveryValidationError(issues) from exc


def parse_dispatch(raw: str, tasks: Sequence[Task]) -> Results:
    """Decode a dispatch body into per-task results.

    Tasks whose key is absent or whose result is malformed are left out of the
    returned mapping; the engine requeues them.
    """
    data = _parse_json(raw, "dispatch")
    if not isinstance(data, dict):
        raise ParseError(operation="dispatch", detail="expected a JSON object")

    results: Results = {}
    for task in tasks:
        entry = data.get(encode_key(task))
        if not isinstance(entry, dict):
            continue
        try:
            results[task] = CommandResult.model_validate(entry)
        except ValidationError as exc:
            log_error(f"Malformed result for {task.kind.value} {task.room_id}: {exc.error_count()} issue(s)")
    return results


# ============================================================================
# Gateway Interface
# ============================================================================


class RemoteGateway(ABC):
    """Abstract base class for the remote labyrinth service.

    The engine depends on this interface only. Implementations raise the
    errors from ``labyrinth.errors``:
    - TransportError when the call could not complete
    - RemoteRejection when the service refused it
    - ParseError / DiscoveryValidationError for unusable bodies
    """

    @abstractmethod
    async def discover(self) -> DiscoveryResponse:
        """Return the start room and the commander's drones."""
        pass

    @abstractmethod
    async def dispatch(self, drone_id: str, tasks: Sequence[Task]) -> Results:
        """Send one batch through ``drone_id`` and return results per task."""
        pass

    @abstractmethod
    async def report(self, message: str) -> Dict[str, Any]:
        """Submit the assembled message and return the service's verdict."""
        pass


class HttpGateway(RemoteGateway):
    """Gateway for the real service over HTTP.

    Discovery and report retry transport failures (tenacity); dispatch never
    retries here because the engine requeues the batch instead.
    """

    def __init__(
        self,
        commander: str,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
    ):
        self.commander = commander
        self.base_url = (base_url or Config.BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else Config.REQUEST_TIMEOUT_SECONDS
        self.retry_attempts = retry_attempts if retry_attempts is not None else Config.RETRY_ATTEMPTS

    def _perform_request(
        self,
        method: str,
        path: str,
        payload: Optional[dict],
        operation: str,
    ) -> Tuple[int, str]:
        """Execute the blocking HTTP request and return (status, body)."""

        url = f"{self.base_url}{path}"
        headers = {"x-commander-email": self.commander}
        data = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = request.Request(url, data=data, headers=headers, method=method)

        try:
            with request.urlopen(req, timeout=self.timeout) as resp:
                status, raw = resp.status, resp.read()
        except error.HTTPError as exc:
            # Non-2xx statuses still carry a meaningful body (e.g. report 400)
            body = exc.read().decode("utf-8", errors="ignore") if exc.fp else ""
            return exc.code, body
        except error.URLError as exc:
            raise TransportError(operation=operation, url=url, reason=str(exc.reason)) from exc
        except (OSError, http.client.HTTPException) as exc:
            raise TransportError(operation=operation, url=url, reason=str(exc) or type(exc).__name__) from exc

        try:
            return status, raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(operation=operation, detail=f"body is not UTF-8 ({exc.reason})") from exc

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[dict],
        operation: str,
    ) -> Tuple[int, str]:
        return await asyncio.to_thread(self._perform_request, method, path, payload, operation)

    async def _request_with_retries(
        self,
        method: str,
        path: str,
        payload: Optional[dict],
        operation: str,
    ) -> Tuple[int, str]:
        attempt_number = 0
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(TransportError),
            stop=stop_after_attempt(self.retry_attempts),
            reraise=True,
        ):
            with attempt:
                attempt_number += 1
                if attempt_number > 1:
                    log_error(f"Retrying {operation} ({attempt_number}/{self.retry_attempts})")
                return await self._request(method, path, payload, operation)

        raise RuntimeError("Retry mechanism exited unexpectedly")

    async def discover(self) -> DiscoveryResponse:
        status, raw = await self._request_with_retries("GET", "/start", None, "discover")
        if status == 200:
            return parse_discovery(raw)
        if status == 401:
            raise RemoteRejection(RejectionReason.UNKNOWN_COMMANDER, status=status, body=raw)
        raise RemoteRejection(RejectionReason.FAILURE, status=status, body=raw)

    async def dispatch(self, drone_id: str, tasks: Sequence[Task]) -> Results:
        status, raw = await self._request(
            "POST", f"/drone/{drone_id}/commands", encode_batch(tasks), "dispatch"
        )
        if status == 200:
            return parse_dispatch(raw, tasks)
        if status == 404:
            raise RemoteRejection(RejectionReason.DRONE_NOT_FOUND, status=status, body=raw)
        if status == 400:
            raise RemoteRejection(RejectionReason.DRONE_BUSY, status=status, body=raw)
        raise RemoteRejection(RejectionReason.FAILURE, status=status, body=raw)

    async def report(self, message: str) -> Dict[str, Any]:
        status, raw = await self._request_with_retries(
            "POST", "/report", {"message": message}, "report"
        )
        # Both accepted (200) and rejected (400) answers carry a verdict body
        if status not in (200, 400):
            raise RemoteRejection(RejectionReason.FAILURE, status=status, body=raw)
        data = _parse_json(raw, "report")
        if not isinstance(data, dict):
            return {"result": data}
        return data


class InMemoryLabyrinth(RemoteGateway):
    """Simulated labyrinth service.

    Rooms are the keys of ``topology`` plus every room they connect to. Rooms
    without an entry in ``writings`` answer reads with an empty, ``-1``-ordered
    writing, like the real service does for rooms without a fragment.
    """

    def __init__(
        self,
        *,
        start_room: str,
        topology: Dict[str, List[str]],
        writings: Optional[Dict[str, Tuple[str, int]]] = None,
        drones: Sequence[str] = ("drone-1",),
        latency: float = 0.0,
    ):
        self.start_room = start_room
        self.topology = {room: list(links) for room, links in topology.items()}
        self.writings = dict(writings or {})
        self.drones = list(drones)
        self.latency = latency

        self.dispatches: List[Tuple[str, List[Task]]] = []
        self.reports: List[str] = []
        self._busy: set[str] = set()

    @property
    def rooms(self) -> set[str]:
        known = {self.start_room, *self.topology, *self.writings}
        for links in self.topology.values():
            known.update(links)
        return known

    @property
    def expected_message(self) -> str:
        fragments = sorted(
            (order, text)
            for text, order in self.writings.values()
            if order != NO_FRAGMENT_ORDER
        )
        return "".join(text for _, text in fragments)

    async def discover(self) -> DiscoveryResponse:
        await asyncio.sleep(0)
        return DiscoveryResponse(room_id=self.start_room, drones=self.drones)

    def _run_command(self, task: Task) -> CommandResult:
        if task.room_id not in self.rooms:
            return CommandResult(error=f"Room {task.room_id} not found")
        if task.kind is TaskKind.EXPLORE:
            return CommandResult(connections=list(self.topology.get(task.room_id, [])))
        text, order = self.writings.get(task.room_id, ("", NO_FRAGMENT_ORDER))
        return CommandResult(writing=text, order=order)

    async def dispatch(self, drone_id: str, tasks: Sequence[Task]) -> Results:
        if drone_id not in self.drones:
            raise RemoteRejection(RejectionReason.DRONE_NOT_FOUND, status=404)
        if drone_id in self._busy:
            raise RemoteRejection(RejectionReason.DRONE_BUSY, status=400)

        self._busy.add(drone_id)
        try:
            await asyncio.sleep(self.latency)
            self.dispatches.append((drone_id, list(tasks)))
            return {task: self._run_command(task) for task in tasks}
        finally:
            self._busy.discard(drone_id)

    async def report(self, message: str) -> Dict[str, Any]:
        await asyncio.sleep(0)
        self.reports.append(message)
        return {"message": message, "correct": message == self.expected_message}
