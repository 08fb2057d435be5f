"""
Example: Offline crawl against a simulated labyrinth
====================================================

WHAT THIS SHOWS:
- Building an InMemoryLabyrinth from a topology dict
- Running the full discover -> explore -> report loop with three drones
- Injected failures: one drone gets reported busy and is withheld

RUN:
    python examples/offline_run.py
"""

import asyncio

from labyrinth import InMemoryLabyrinth, RejectionReason, RemoteRejection, run_crawl


class OneBusyDrone(InMemoryLabyrinth):
    """Reports drone-3 as busy on its first batch."""

    async def dispatch(self, drone_id, tasks):
        if drone_id == "drone-3" and not any(d == "drone-3" for d, _ in self.dispatches):
            self.dispatches.append((drone_id, []))
            raise RemoteRejection(RejectionReason.DRONE_BUSY, status=400)
        return await super().dispatch(drone_id, tasks)


async def main() -> None:
    labyrinth = OneBusyDrone(
        start_room="entrance",
        topology={
            "entrance": ["hall", "garden"],
            "hall": ["entrance", "tower", "crypt"],
            "garden": ["entrance", "well"],
            "tower": ["hall"],
            "crypt": ["hall", "well"],
            "well": ["garden", "crypt"],
        },
        writings={
            "entrance": ("Every ", 0),
            "hall": ("room ", 1),
            "garden": ("", -1),
            "tower": ("was ", 2),
            "crypt": ("read", 3),
            "well": (".", 4),
        },
        drones=["drone-1", "drone-2", "drone-3"],
        latency=0.05,
    )

    report = await run_crawl(max_commands=3, gateway=labyrinth, verbose=True)

    print(f"\nMessage: {report.message!r}")
    print(f"Correct: {report.report['correct']}")
    print(f"Elapsed: {report.elapsed_seconds:.2f}s over {report.rooms} rooms")


if __name__ == "__main__":
    asyncio.run(main())
