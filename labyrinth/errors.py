"""Exception taxonomy for labyrinth runs.

Discovery-time errors (ParseError, DiscoveryValidationError, rejections of the
commander) abort a run. Inside the dispatch loop, TransportError and
RemoteRejection are recovered locally by the engine.
"""

from __future__ import annotations

from enum import Enum


class LabyrinthError(Exception):
    """Base class for all labyrinth errors."""

    def as_payload(self) -> dict:
        """Return a structured error body suitable for a caller-facing response."""
        return {"err": str(self)}


class ParseError(LabyrinthError):
    """Raised when a response body is not well-formed JSON."""

    def __init__(self, *, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Could not parse {operation} response: {detail}")


class DiscoveryValidationError(LabyrinthError):
    """Raised when the discovery response is missing roomId or drones."""

    def __init__(self, issues: list[str]) -> None:
        self.issues = issues
        message_lines = ["Missing roomId or drones!"]
        message_lines.extend(f"  - {issue}" for issue in issues)
        super().__init__("\n".join(message_lines))


class TransportError(LabyrinthError):
    """Raised when a remote call could not complete (connection, timeout)."""

    def __init__(self, *, operation: str, url: str, reason: str) -> None:
        self.operation = operation
        self.url = url
        self.reason = reason
        message = (
            f"{operation} request to {url} failed: {reason}\n\n"
            "Remediation tips:\n"
            "  - Check LABYRINTH_BASE_URL points at a reachable service\n"
            "  - Increase LABYRINTH_REQUEST_TIMEOUT for slow networks"
        )
        super().__init__(message)


class RejectionReason(str, Enum):
    """Logical refusals reported by the remote service."""

    UNKNOWN_COMMANDER = "unknown_commander"
    DRONE_NOT_FOUND = "drone_not_found"
    DRONE_BUSY = "drone_busy"
    FAILURE = "failure"


_REJECTION_MESSAGES = {
    RejectionReason.UNKNOWN_COMMANDER: "Commander not set!",
    RejectionReason.DRONE_NOT_FOUND: "Drone is invalid!",
    RejectionReason.DRONE_BUSY: "Drone is busy!",
    RejectionReason.FAILURE: "Something went wrong!",
}


class RemoteRejection(LabyrinthError):
    """Raised when a call completed but the service refused it."""

    def __init__(
        self,
        reason: RejectionReason,
        *,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        self.reason = reason
        self.status = status
        self.body = body
        message = _REJECTION_MESSAGES[reason]
        if status is not None:
            message = f"{message} (status {status})"
        super().__init__(message)

    @property
    def drone_unusable(self) -> bool:
        """True when the rejection is about the drone rather than the batch."""
        return self.reason in (RejectionReason.DRONE_NOT_FOUND, RejectionReason.DRONE_BUSY)


class PoolExhausted(LabyrinthError):
    """Raised by WorkerPool.require() when no drone is idle."""

    def __init__(self, *, size: int) -> None:
        self.size = size
        super().__init__(f"No idle drone available (pool size {size})")


class PoolError(LabyrinthError):
    """Raised when a drone is returned to a pool that did not lend it."""


class ExplorationStalled(LabyrinthError):
    """Raised when exploration can make no further progress.

    Happens when nothing is in flight, no dispatch can start, and the graph is
    not yet closed (typically every drone was lost to rejections).
    """

    def __init__(self, *, stats: dict) -> None:
        self.stats = stats
        message_lines = [
            "Exploration stalled before every room was visited.",
            f"  Idle drones: {stats.get('drones_idle')}",
            f"  Pending tasks: {stats.get('tasks_pending')}",
            f"  Visited rooms: {stats.get('rooms_visited')}/{stats.get('rooms_known')}",
            "\nRemediation tips:",
            "  - Set LABYRINTH_RECYCLE_REJECTED_DRONES=true to reuse drones the",
            "    service reported as busy",
            "  - Reduce LABYRINTH_MAX_COMMANDS if the service rejects large batches",
        ]
        super().__init__("\n".join(message_lines))
