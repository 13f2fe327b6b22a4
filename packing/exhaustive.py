# Exact branch-and-bound search over first-fit placements
from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from config import CFG
from errors import InfeasibleItemError, InputError
from models import DemandItem, PackResult, PlacementRecord, RollInstance
from packing.bounds import is_promising, lower_bound_additional_length
from packing.grid import OccupancyGrid
from packing.recorder import ImprovementHook, SearchContext

log = logging.getLogger(__name__)


def check_instance(instance: RollInstance) -> None:
    """Fail fast on inputs the search must never see."""
    if instance.width <= 0:
        raise InputError(f"roll width must be positive, got {instance.width}")
    for it in instance.items:
        if it.width <= 0 or it.height <= 0:
            raise InputError(f"item {it.index}: invalid size {it.width}x{it.height}")
        if it.quantity < 0:
            raise InputError(f"item {it.index}: negative quantity {it.quantity}")
        if it.quantity and not it.fits_width(instance.width):
            raise InfeasibleItemError(
                f"item {it.index} ({it.width}x{it.height}) is wider than the roll "
                f"(W={instance.width}) in both orientations",
                item=it,
            )


class BranchAndBound:
    """Depth-first search over (item type, orientation, first-fit cell).

    Every node tries each item type with copies left, in input order, in each
    distinct orientation (unrotated first), at the first free cell in
    row-major order.  A node is abandoned when the area bound shows it cannot
    beat the best complete layout.  ``all_positions`` widens the branching to
    every free cell instead of the first one.
    """

    def __init__(
        self,
        instance: RollInstance,
        ctx: Optional[SearchContext] = None,
        *,
        prune: bool = True,
        all_positions: Optional[bool] = None,
        check_invariants: Optional[bool] = None,
    ):
        check_instance(instance)
        self.W = instance.width
        self.items: List[DemandItem] = instance.fresh_items()
        self.total = sum(it.quantity for it in self.items)
        self.grid = OccupancyGrid(self.W)
        self.placements: List[PlacementRecord] = []
        self.ctx = ctx if ctx is not None else SearchContext()
        self.prune = prune
        self.all_positions = CFG.EXHAUSTIVE_ALL_POSITIONS if all_positions is None else bool(all_positions)
        self.check_invariants = CFG.CHECK_INVARIANTS if check_invariants is None else bool(check_invariants)

    # ---------- placement primitive ----------

    def _state(self) -> Tuple[Tuple[bytes, ...], Tuple[int, ...], int]:
        return (
            self.grid.snapshot(),
            tuple(it.remaining for it in self.items),
            len(self.placements),
        )

    @contextmanager
    def place(self, item: DemandItem, x: int, y: int, w: int, h: int, rotated: bool = False) -> Iterator[PlacementRecord]:
        """Commit one rectangle for the duration of the ``with`` block."""
        before = self._state() if self.check_invariants else None
        if self.check_invariants:
            assert item.remaining > 0, f"no copies left of item {item.index}"
            assert self.grid.can_place(x, y, w, h), f"cell ({x},{y}) is not free for {w}x{h}"

        rec = PlacementRecord.at(x, y, w, h, item.index, rotated)
        self.grid.occupy(x, y, w, h)
        self.placements.append(rec)
        item.remaining -= 1
        try:
            yield rec
        finally:
            item.remaining += 1
            popped = self.placements.pop()
            self.grid.release(x, y, w, h)
            if before is not None:
                assert popped is rec, "placement stack out of order"
                assert self._state() == before, "place/undo left the grid or demand changed"

    # ---------- search ----------

    def _positions(self, w: int, h: int) -> Iterator[Tuple[int, int]]:
        if self.all_positions:
            yield from self.grid.iter_fits(w, h)
            return
        pos = self.grid.first_fit(w, h)
        if pos is not None:
            yield pos

    def _search(self, placed_count: int, current_length: int) -> None:
        ctx = self.ctx
        ctx.nodes += 1

        if placed_count == self.total:
            ctx.leaves += 1
            if ctx.improves(current_length):
                ctx.record(current_length, self.placements)
            return

        if ctx.out_of_budget():
            return

        if self.prune and not is_promising(current_length, self.items, self.W, ctx.best_length):
            ctx.pruned += 1
            return

        for item in self.items:
            if item.remaining <= 0:
                continue
            self.grid.ensure_height(current_length + max(item.width, item.height))
            for w, h, rotated in item.orientations():
                if w > self.W:
                    continue
                for x, y in self._positions(w, h):
                    with self.place(item, x, y, w, h, rotated):
                        self._search(placed_count + 1, max(current_length, y + h))
                    if ctx.stopped is not None:
                        return

    def run(self) -> SearchContext:
        needed = self.total + int(CFG.RECURSION_MARGIN)
        saved_limit = sys.getrecursionlimit()
        if saved_limit < needed:
            sys.setrecursionlimit(needed)
        log.info(
            "exhaustive search: W=%d, %d item type(s), %d rectangle(s), area bound %d",
            self.W, len(self.items), self.total,
            lower_bound_additional_length(self.items, self.W),
        )
        try:
            self._search(0, 0)
        finally:
            sys.setrecursionlimit(saved_limit)
        log.info(
            "exhaustive search done: best=%s nodes=%d pruned=%d leaves=%d%s",
            int(self.ctx.best_length) if self.ctx.has_solution else "none",
            self.ctx.nodes, self.ctx.pruned, self.ctx.leaves,
            f" (stopped: {self.ctx.stopped})" if self.ctx.stopped else "",
        )
        return self.ctx


def solve_exhaustive(
    instance: RollInstance,
    *,
    node_limit: Optional[int] = None,
    time_limit: Optional[float] = None,
    prune: bool = True,
    all_positions: Optional[bool] = None,
    on_improvement: Optional[ImprovementHook] = None,
) -> PackResult:
    """Run the exact search and package the best layout it found.

    When a budget stops the search the result carries ``optimal=False``.  If
    the budget runs out before the first complete layout, the greedy layout
    is returned instead, reported through ``on_improvement``, and
    ``stats["fallback"]`` says so.
    """
    ctx = SearchContext.with_budget(
        node_limit=node_limit, time_limit=time_limit, on_improvement=on_improvement
    )
    bnb = BranchAndBound(instance, ctx, prune=prune, all_positions=all_positions)

    t0 = time.time()
    bnb.run()
    elapsed = time.time() - t0

    stats = ctx.stats()
    stats["history"] = list(ctx.history)
    stats["all_positions"] = bnb.all_positions

    if not ctx.has_solution:
        from packing.greedy import solve_greedy

        log.warning("no complete layout within budget; falling back to greedy")
        fallback = solve_greedy(instance)
        stats["fallback"] = "greedy"
        if on_improvement is not None:
            on_improvement(fallback.length, list(fallback.placements))
        return PackResult(
            engine="exhaustive",
            width=instance.width,
            length=fallback.length,
            placements=fallback.placements,
            elapsed=elapsed + fallback.elapsed,
            optimal=False,
            stats=stats,
        )

    return PackResult(
        engine="exhaustive",
        width=instance.width,
        length=int(ctx.best_length),
        placements=list(ctx.best_placements),
        elapsed=elapsed,
        optimal=ctx.stopped is None,
        stats=stats,
    )


__all__ = ["BranchAndBound", "check_instance", "solve_exhaustive"]
