# packing/greedy.py
from __future__ import annotations

import time
from typing import List, Optional, Sequence, Tuple

from models import DemandItem, PackResult, PlacementRecord, RollInstance, order_by_item
from packing.exhaustive import check_instance
from packing.grid import OccupancyGrid


def greedy_order(pieces: Sequence[DemandItem]) -> List[DemandItem]:
    """Longer side descending, then shorter side descending (stable)."""
    return sorted(
        pieces,
        key=lambda p: (max(p.width, p.height), min(p.width, p.height)),
        reverse=True,
    )


def _fit_in_rows(grid: OccupancyGrid, rows: int, w: int, h: int) -> Optional[Tuple[int, int, bool]]:
    W = grid.width
    for y in range(rows):
        for x in range(W):
            if x + w <= W and y + h <= rows and grid.can_place(x, y, w, h):
                return x, y, False
            if w != h and x + h <= W and y + w <= rows and grid.can_place(x, y, h, w):
                return x, y, True
    return None


def pack_in_order(pieces: Sequence[DemandItem], W: int) -> Tuple[int, List[PlacementRecord]]:
    """Place ``pieces`` in the given order without backtracking.

    Each piece goes to the first free cell (row-major) inside the rows already
    in use, unrotated if it fits there, otherwise rotated.  When nothing fits
    the roll is extended at ``x = 0``.  Returns (length, placements in
    placement order).
    """
    grid = OccupancyGrid(W)
    length = 0
    placements: List[PlacementRecord] = []

    for piece in pieces:
        hit = _fit_in_rows(grid, length, piece.width, piece.height)
        if hit is not None:
            x, y, rotated = hit
            w, h = (piece.height, piece.width) if rotated else (piece.width, piece.height)
        else:
            w, h, rotated = piece.width, piece.height, False
            # thin strips are laid flat across the roll
            if w == 1 and h <= W:
                w, h, rotated = h, w, True
            if w > W:
                w, h, rotated = h, w, not rotated
            x, y = 0, length
        grid.occupy(x, y, w, h)
        placements.append(PlacementRecord.at(x, y, w, h, piece.index, rotated))
        length = max(length, y + h)

    return length, placements


def solve_greedy(instance: RollInstance) -> PackResult:
    check_instance(instance)
    t0 = time.time()
    pieces = greedy_order(instance.expand())
    length, placements = pack_in_order(pieces, instance.width)
    elapsed = time.time() - t0
    return PackResult(
        engine="greedy",
        width=instance.width,
        length=length,
        placements=order_by_item(placements),
        elapsed=elapsed,
        optimal=False,
        stats={"pieces": len(pieces)},
    )


__all__ = ["greedy_order", "pack_in_order", "solve_greedy"]
