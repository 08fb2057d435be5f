"""Caller-facing entry point: discover, explore, report, and time the run."""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from .config import Config
from .engine import ExplorationEngine
from .gateway import HttpGateway, RemoteGateway
from .schemas import CrawlReport


async def run_crawl(
    commander: Optional[str] = None,
    max_commands: Optional[int] = None,
    *,
    gateway: Optional[RemoteGateway] = None,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    recycle_rejected_drones: Optional[bool] = None,
    verbose: Optional[bool] = None,
) -> CrawlReport:
    """Run one full crawl for ``commander``.

    Args:
        commander: Caller identity sent to the service (defaults to Config)
        max_commands: Batch size override (defaults to Config)
        gateway: Optional gateway; defaults to HttpGateway for the commander
        base_url: Service URL for the default HttpGateway (defaults to Config)
        timeout: Optional overall deadline in seconds (defaults to Config)
        recycle_rejected_drones: See ExplorationEngine
        verbose: See ExplorationEngine

    Returns:
        CrawlReport with the report body and elapsed seconds

    Raises:
        LabyrinthError: discovery, report, or stall failures
        asyncio.TimeoutError: if the deadline passes first
    """
    if gateway is None:
        gateway = HttpGateway(commander or Config.COMMANDER, base_url=base_url)
    deadline = timeout if timeout is not None else Config.RUN_TIMEOUT_SECONDS

    engine = ExplorationEngine(
        gateway,
        max_commands=max_commands,
        recycle_rejected_drones=recycle_rejected_drones,
        verbose=verbose,
    )

    started = time.perf_counter()
    if deadline is None:
        result = await engine.run()
    else:
        result = await asyncio.wait_for(engine.run(), timeout=deadline)
    elapsed = time.perf_counter() - started

    return CrawlReport(
        run_id=result.run_id,
        report=result.report,
        message=result.message,
        rooms=result.rooms_known,
        elapsed_seconds=elapsed,
    )
