# Orchestrator: engine dispatch with progress reporting and layout validation
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from config import CFG
from models import PackResult, PlacementRecord, RollInstance
from packing.annealing import AnnealingParams, solve_annealing
from packing.bounds import lower_bound_additional_length
from packing.exhaustive import check_instance, solve_exhaustive
from packing.greedy import solve_greedy
from progress import (
    set_best_length, set_engine, set_instance, set_lower_bound, set_nodes,
    set_placed_count, set_elapsed, set_status,
)
from validate import raise_on_errors, validate_result

log = logging.getLogger(__name__)

ImprovementHook = Callable[[int, List[PlacementRecord]], None]


def _resolve_engine(engine: Optional[str]) -> str:
    name = (engine or CFG.ENGINE or "exhaustive").strip().lower()
    if name not in CFG.ENGINES:
        raise ValueError(f"unknown engine {name!r}; expected one of {', '.join(CFG.ENGINES)}")
    return name


def _progress_hook(user_hook: Optional[ImprovementHook]) -> ImprovementHook:
    def _hook(length: int, placements: List[PlacementRecord]) -> None:
        set_best_length(length)
        if user_hook is not None:
            user_hook(length, placements)
    return _hook


def solve(
    instance: RollInstance,
    engine: Optional[str] = None,
    *,
    node_limit: Optional[int] = None,
    time_limit: Optional[float] = None,
    seed: Optional[int] = None,
    all_positions: Optional[bool] = None,
    validate: bool = True,
    on_improvement: Optional[ImprovementHook] = None,
) -> PackResult:
    """Run one engine on ``instance`` and return a validated :class:`PackResult`.

    ``node_limit``/``time_limit`` default to ``CFG.NODE_LIMIT``/``CFG.TIME_LIMIT``
    (zero means unlimited).  ``seed`` only affects the annealing engine.
    """
    name = _resolve_engine(engine)
    check_instance(instance)

    node_limit = CFG.NODE_LIMIT if node_limit is None else node_limit
    time_limit = CFG.TIME_LIMIT if time_limit is None else time_limit
    hook = _progress_hook(on_improvement)

    set_status("Solving")
    set_instance(instance.width, instance.total_quantity)
    set_lower_bound(lower_bound_additional_length(instance.fresh_items(), instance.width))
    set_engine(name)
    log.info("solving with %s: W=%d, %d rectangle(s)", name, instance.width, instance.total_quantity)

    if name == "exhaustive":
        result = solve_exhaustive(
            instance,
            node_limit=node_limit or None,
            time_limit=time_limit or None,
            all_positions=all_positions,
            on_improvement=hook,
        )
    elif name == "greedy":
        result = solve_greedy(instance)
        hook(result.length, result.placements)
    elif name == "annealing":
        params = AnnealingParams.from_cfg(seed=seed, time_limit=(time_limit or None))
        result = solve_annealing(instance, params, on_improvement=hook)
    else:
        from packing.cp_sat import solve_cp_sat

        result = solve_cp_sat(instance, time_limit=(time_limit or None))
        hook(result.length, result.placements)

    set_nodes(result.stats.get("nodes", 0))
    set_placed_count(result.placed_count)
    set_elapsed(result.elapsed)

    if validate:
        raise_on_errors(validate_result(instance, result))

    log.info(
        "%s finished: length=%d optimal=%s elapsed=%.3fs",
        name, result.length, result.optimal, result.elapsed,
    )
    return result


__all__ = ["solve"]
