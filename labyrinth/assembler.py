"""Reassemble the hidden message from visited rooms."""

from __future__ import annotations

from typing import Iterable

from .graph import Room


def assemble(rooms: Iterable[Room]) -> str:
    """Concatenate room fragments in ascending ``order``.

    Rooms without a writing, or whose writing carries the ``-1`` sentinel, are
    skipped. Duplicate orders are kept as-is (stable sort), no deduplication.
    """
    fragments = [
        room.writing
        for room in rooms
        if room.writing is not None and room.writing.is_fragment
    ]
    fragments.sort(key=lambda writing: writing.order)
    return "".join(writing.text for writing in fragments)
