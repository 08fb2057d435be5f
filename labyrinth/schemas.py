"""
Pydantic schemas for the labyrinth service payloads and run results.

Design Philosophy:
- Remote payloads are validated at the gateway boundary, never inside the engine
- Room and drone identifiers are normalized to strings (the service may send numbers)
- Command results keep unknown fields (extra="allow") so new service fields don't break runs
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Sentinel order value the service uses for rooms without a real fragment.
NO_FRAGMENT_ORDER = -1


def _coerce_id(value: Any) -> Any:
    # bool is a subclass of int but is never a valid identifier
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


# ============================================================================
# Service Payloads
# ============================================================================


class Writing(BaseModel):
    """Message fragment found in a room."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Fragment text")
    order: int = Field(..., description="Position in the final message; -1 means no fragment")

    @property
    def is_fragment(self) -> bool:
        return self.order != NO_FRAGMENT_ORDER


class DiscoveryResponse(BaseModel):
    """Body of the discovery call: the start room and the drones we may command."""

    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(..., alias="roomId", min_length=1, description="Start room")
    drones: List[str] = Field(..., min_length=1, description="Drone identifiers")

    @field_validator("room_id", mode="before")
    @classmethod
    def _normalize_room_id(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("drones", mode="before")
    @classmethod
    def _normalize_drones(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_coerce_id(item) for item in value]
        return value


class CommandResult(BaseModel):
    """Result of a single explore or read command.

    The service answers one of ``{connections}``, ``{writing, order}`` or
    ``{error}``. Field presence (not truthiness) decides which one we got, so an
    empty connection list or an empty writing are still valid answers.
    """

    model_config = ConfigDict(extra="allow")

    connections: Optional[List[str]] = None
    writing: Optional[str] = None
    order: Optional[int] = None
    error: Optional[Any] = None

    @field_validator("connections", mode="before")
    @classmethod
    def _normalize_connections(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_coerce_id(item) for item in value]
        return value

    @property
    def has_error(self) -> bool:
        return "error" in self.model_fields_set

    def fragment(self) -> Optional[Writing]:
        """Return the Writing carried by a read result, or None."""
        if self.writing is None or self.order is None:
            return None
        return Writing(text=self.writing, order=self.order)


# ============================================================================
# Run Results
# ============================================================================


class ExplorationResult(BaseModel):
    """Outcome of a completed exploration run."""

    run_id: UUID
    message: str = Field(..., description="Assembled message sent to the report call")
    report: Dict[str, Any] = Field(default_factory=dict, description="Body returned by report")
    rooms_known: int
    rooms_visited: int
    drones_lost: int = Field(0, description="Drones withheld from the pool after rejections")


class CrawlReport(BaseModel):
    """Caller-facing result: report body plus elapsed wall-clock time."""

    run_id: UUID
    report: Dict[str, Any]
    message: str
    rooms: int
    elapsed_seconds: float
