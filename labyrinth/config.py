"""
Labyrinth Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_optional_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


class Config:
    """Application configuration loaded from environment variables."""

    # Remote service
    BASE_URL: str = os.getenv("LABYRINTH_BASE_URL", "http://challenge2.airtime.com:10001")
    COMMANDER: str = os.getenv("LABYRINTH_COMMANDER", "test@test.com")
    REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("LABYRINTH_REQUEST_TIMEOUT", "30"))

    # Retries for discovery and report calls (dispatch failures are requeued instead)
    RETRY_ATTEMPTS: int = int(os.getenv("LABYRINTH_RETRY_ATTEMPTS", "3"))

    # Exploration
    MAX_COMMANDS: int = int(os.getenv("LABYRINTH_MAX_COMMANDS", "5"))
    RUN_TIMEOUT_SECONDS: float | None = _env_optional_float("LABYRINTH_RUN_TIMEOUT")
    # Drones rejected as busy/invalid stay checked out unless this is enabled
    RECYCLE_REJECTED_DRONES: bool = _env_flag("LABYRINTH_RECYCLE_REJECTED_DRONES")

    # Logging
    VERBOSE: bool = _env_flag("LABYRINTH_VERBOSE")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if values are unusable."""
        if not cls.BASE_URL:
            raise ValueError(
                "LABYRINTH_BASE_URL is required. "
                "Set it to the labyrinth service endpoint (e.g., http://localhost:10001)"
            )

        if cls.MAX_COMMANDS < 1:
            raise ValueError(
                f"LABYRINTH_MAX_COMMANDS must be at least 1 (got {cls.MAX_COMMANDS})"
            )

        if cls.RETRY_ATTEMPTS < 1:
            raise ValueError(
                f"LABYRINTH_RETRY_ATTEMPTS must be at least 1 (got {cls.RETRY_ATTEMPTS})"
            )

        if cls.REQUEST_TIMEOUT_SECONDS <= 0:
            raise ValueError("LABYRINTH_REQUEST_TIMEOUT must be positive")

        if cls.RUN_TIMEOUT_SECONDS is not None and cls.RUN_TIMEOUT_SECONDS <= 0:
            raise ValueError("LABYRINTH_RUN_TIMEOUT must be positive when set")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        run_timeout = (
            f"{cls.RUN_TIMEOUT_SECONDS}s" if cls.RUN_TIMEOUT_SECONDS is not None else "none"
        )
        lines = [
            "Labyrinth Configuration:",
            f"  Service: {cls.BASE_URL}",
            f"  Commander: {cls.COMMANDER}",
            f"  Max Commands per Batch: {cls.MAX_COMMANDS}",
            f"  Request Timeout: {cls.REQUEST_TIMEOUT_SECONDS}s",
            f"  Run Timeout: {run_timeout}",
            f"  Retry Attempts: {cls.RETRY_ATTEMPTS}",
            f"  Recycle Rejected Drones: {cls.RECYCLE_REJECTED_DRONES}",
        ]
        return "\n".join(lines)
