"""
Labyrinth - drone-driven exploration of an unknown room graph.

Discover every room reachable from the start room through a fixed pool of
remote drones, read every message fragment, and report the reassembled message.

No global state: graph, queue, pool and gateway are owned by each engine.
"""

__version__ = "0.1.0"

# Main components
from .engine import CycleOutcome, EngineState, ExplorationEngine
from .runner import run_crawl

# Core structures
from .graph import Room, RoomGraph
from .tasks import Task, TaskKind, TaskQueue
from .pool import Drone, WorkerPool
from .assembler import assemble

# Remote service
from .gateway import (
    RemoteGateway,
    HttpGateway,
    InMemoryLabyrinth,
    encode_batch,
    decode_batch,
)

# Schemas
from .schemas import (
    NO_FRAGMENT_ORDER,
    CommandResult,
    CrawlReport,
    DiscoveryResponse,
    ExplorationResult,
    Writing,
)

# Errors
from .errors import (
    LabyrinthError,
    ParseError,
    DiscoveryValidationError,
    TransportError,
    RemoteRejection,
    RejectionReason,
    PoolExhausted,
    PoolError,
    ExplorationStalled,
)

__all__ = [
    # Main components
    "ExplorationEngine",
    "EngineState",
    "CycleOutcome",
    "run_crawl",
    # Core structures
    "Room",
    "RoomGraph",
    "Task",
    "TaskKind",
    "TaskQueue",
    "Drone",
    "WorkerPool",
    "assemble",
    # Remote service
    "RemoteGateway",
    "HttpGateway",
    "InMemoryLabyrinth",
    "encode_batch",
    "decode_batch",
    # Schemas
    "NO_FRAGMENT_ORDER",
    "CommandResult",
    "CrawlReport",
    "DiscoveryResponse",
    "ExplorationResult",
    "Writing",
    # Errors
    "LabyrinthError",
    "ParseError",
    "DiscoveryValidationError",
    "TransportError",
    "RemoteRejection",
    "RejectionReason",
    "PoolExhausted",
    "PoolError",
    "ExplorationStalled",
]
