# Simulated annealing over greedy placement orders
from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from config import CFG
from models import DemandItem, PackResult, PlacementRecord, RollInstance, order_by_item
from packing.exhaustive import check_instance
from packing.greedy import pack_in_order

log = logging.getLogger(__name__)

Layout = Tuple[int, List[DemandItem], List[PlacementRecord]]


@dataclass
class AnnealingParams:
    t0: float = 1000.0
    alpha: float = 0.99
    max_iterations: int = 50000
    time_limit: Optional[float] = None
    seed: Optional[int] = None

    @classmethod
    def from_cfg(cls, **overrides) -> "AnnealingParams":
        params = cls(
            t0=float(CFG.SA_T0),
            alpha=float(CFG.SA_ALPHA),
            max_iterations=int(CFG.SA_MAX_ITERATIONS),
            time_limit=(float(CFG.TIME_LIMIT) or None),
            seed=CFG.RANDOM_SEED,
        )
        for k, v in overrides.items():
            if v is not None:
                setattr(params, k, v)
        return params


def acceptance_probability(delta: float, temperature: float) -> float:
    """Boltzmann acceptance for a move that lengthens the roll by ``delta``."""
    if delta <= 0:
        return 1.0
    if temperature <= 0:
        return 0.0
    return math.exp(-delta / temperature)


def random_neighbor(order: Sequence[DemandItem], W: int, rng: random.Random) -> Layout:
    """Swap two distinct pieces and repack the whole order."""
    neighbor = list(order)
    i = rng.randrange(len(neighbor))
    j = rng.randrange(len(neighbor))
    while i == j:
        j = rng.randrange(len(neighbor))
    neighbor[i], neighbor[j] = neighbor[j], neighbor[i]
    length, placements = pack_in_order(neighbor, W)
    return length, neighbor, placements


def solve_annealing(
    instance: RollInstance,
    params: Optional[AnnealingParams] = None,
    *,
    on_improvement: Optional[Callable[[int, List[PlacementRecord]], None]] = None,
) -> PackResult:
    check_instance(instance)
    params = params or AnnealingParams.from_cfg()
    rng = random.Random(params.seed)
    W = instance.width

    t0 = time.time()
    deadline = (t0 + params.time_limit) if params.time_limit else None

    order = instance.expand()
    rng.shuffle(order)
    cur_len, cur_placements = pack_in_order(order, W)
    cur_order = order

    best_len, best_placements = cur_len, cur_placements
    history = [best_len]
    if on_improvement is not None:
        on_improvement(best_len, order_by_item(best_placements))

    T = float(params.t0)
    accepted = uphill = 0
    k = 0
    stopped = None
    if len(order) >= 2:
        while k <= params.max_iterations:
            if deadline is not None and time.time() >= deadline:
                stopped = "time_limit"
                break
            nb_len, nb_order, nb_placements = random_neighbor(cur_order, W, rng)
            if nb_len < cur_len:
                cur_len, cur_order, cur_placements = nb_len, nb_order, nb_placements
                accepted += 1
                if cur_len < best_len:
                    best_len, best_placements = cur_len, cur_placements
                    history.append(best_len)
                    log.debug("annealing: new best %d at iteration %d (T=%.4g)", best_len, k, T)
                    if on_improvement is not None:
                        on_improvement(best_len, order_by_item(best_placements))
            elif rng.random() < acceptance_probability(nb_len - cur_len, T):
                cur_len, cur_order, cur_placements = nb_len, nb_order, nb_placements
                accepted += 1
                uphill += 1
            T *= params.alpha
            k += 1

    elapsed = time.time() - t0
    log.info("annealing done: best=%d iterations=%d accepted=%d", best_len, k, accepted)
    return PackResult(
        engine="annealing",
        width=W,
        length=best_len,
        placements=order_by_item(best_placements),
        elapsed=elapsed,
        optimal=False,
        stats={
            "iterations": k,
            "accepted": accepted,
            "uphill": uphill,
            "final_temperature": T,
            "history": history,
            "seed": params.seed,
            "stopped": stopped,
        },
    )


__all__ = ["AnnealingParams", "acceptance_probability", "random_neighbor", "solve_annealing"]
