# packing/cp_sat.py  (reference optimum over all positions)
from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

from ortools.sat.python import cp_model as _cp

from config import CFG
from errors import SolverUnavailableError
from models import DemandItem, PackResult, PlacementRecord, RollInstance, order_by_item
from packing.bounds import lower_bound_additional_length
from packing.exhaustive import check_instance
from packing.greedy import solve_greedy

log = logging.getLogger(__name__)


def _min_height(piece: DemandItem, W: int) -> int:
    if max(piece.width, piece.height) <= W:
        return min(piece.width, piece.height)
    return max(piece.width, piece.height)


def length_bounds(instance: RollInstance) -> Tuple[int, int]:
    """(lower, upper) bounds on the optimal length used to size the model."""
    W = instance.width
    lb = lower_bound_additional_length(instance.fresh_items(), W)
    for it in instance.items:
        if it.quantity:
            lb = max(lb, _min_height(it, W))
    ub = solve_greedy(instance).length
    return lb, max(lb, ub)


def solve_cp_sat(
    instance: RollInstance,
    *,
    time_limit: Optional[float] = None,
    workers: Optional[int] = None,
) -> PackResult:
    """Minimise the roll length with one optional interval pair per orientation."""
    check_instance(instance)
    W = instance.width
    pieces = instance.expand()
    t0 = time.time()

    if not pieces:
        return PackResult(engine="cpsat", width=W, length=0, elapsed=time.time() - t0, optimal=True)

    lb, ub = length_bounds(instance)

    m = _cp.CpModel()
    L = m.NewIntVar(lb, ub, "L")

    xs: List[_cp.IntVar] = []
    ys: List[_cp.IntVar] = []
    x_intervals = []
    y_intervals = []
    choices: List[List[Tuple[_cp.IntVar, int, int, bool]]] = []

    for i, piece in enumerate(pieces):
        x = m.NewIntVar(0, W - 1, f"x_{i}")
        y = m.NewIntVar(0, ub - 1, f"y_{i}")
        opts: List[Tuple[_cp.IntVar, int, int, bool]] = []
        for w, h, rotated in piece.orientations():
            if w > W or h > ub:
                continue
            p = m.NewBoolVar(f"p_{i}_{int(rotated)}")
            x_intervals.append(m.NewOptionalIntervalVar(x, w, x + w, p, f"xi_{i}_{int(rotated)}"))
            y_intervals.append(m.NewOptionalIntervalVar(y, h, y + h, p, f"yi_{i}_{int(rotated)}"))
            m.Add(x + w <= W).OnlyEnforceIf(p)
            m.Add(y + h <= L).OnlyEnforceIf(p)
            opts.append((p, w, h, rotated))
        m.AddExactlyOne([o[0] for o in opts])
        xs.append(x)
        ys.append(y)
        choices.append(opts)

    m.AddNoOverlap2D(x_intervals, y_intervals)

    # identical pieces are interchangeable: order them by top edge
    for a in range(len(pieces) - 1):
        if pieces[a].index == pieces[a + 1].index:
            m.Add(ys[a] <= ys[a + 1])

    m.Minimize(L)

    solver = _cp.CpSolver()
    limit = CFG.CPSAT_TIME_LIMIT if time_limit is None else time_limit
    if limit and limit > 0:
        solver.parameters.max_time_in_seconds = float(limit)
    solver.parameters.max_memory_in_mb = int(getattr(CFG, "MAX_MEMORY_MB", 2048))
    solver.parameters.num_workers = int(workers if workers is not None else getattr(CFG, "WORKERS", 1))
    solver.parameters.log_search_progress = False

    status = solver.Solve(m)
    elapsed = time.time() - t0
    status_name = solver.StatusName(status)

    if status not in (_cp.OPTIMAL, _cp.FEASIBLE):
        raise SolverUnavailableError(f"CP-SAT finished without a layout (status {status_name})")

    placements: List[PlacementRecord] = []
    for i, piece in enumerate(pieces):
        xv = solver.Value(xs[i])
        yv = solver.Value(ys[i])
        for p, w, h, rotated in choices[i]:
            if solver.BooleanValue(p):
                placements.append(PlacementRecord.at(xv, yv, w, h, piece.index, rotated))
                break

    length = max(pl.bottom_y for pl in placements)
    log.info("cp-sat: status=%s length=%d bounds=[%d,%d] in %.2fs", status_name, length, lb, ub, elapsed)
    return PackResult(
        engine="cpsat",
        width=W,
        length=length,
        placements=order_by_item(placements),
        elapsed=elapsed,
        optimal=status == _cp.OPTIMAL,
        stats={
            "status": status_name,
            "lower_bound": lb,
            "upper_bound": ub,
            "objective_bound": solver.BestObjectiveBound(),
        },
    )


__all__ = ["length_bounds", "solve_cp_sat"]
