# packing/recorder.py
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from models import PlacementRecord, order_by_item

log = logging.getLogger(__name__)

ImprovementHook = Callable[[int, List[PlacementRecord]], None]


@dataclass
class SearchContext:
    """Mutable state threaded through one exact search.

    Holds the best complete layout seen so far together with the search
    budgets and counters.  Nothing here is shared between runs, so several
    searches can run side by side in one process.
    """
    best_length: float = math.inf
    best_placements: List[PlacementRecord] = field(default_factory=list)
    history: List[int] = field(default_factory=list)

    node_limit: Optional[int] = None
    deadline: Optional[float] = None
    on_improvement: Optional[ImprovementHook] = None

    nodes: int = 0
    pruned: int = 0
    leaves: int = 0
    stopped: Optional[str] = None

    @classmethod
    def with_budget(
        cls,
        *,
        node_limit: Optional[int] = None,
        time_limit: Optional[float] = None,
        on_improvement: Optional[ImprovementHook] = None,
    ) -> "SearchContext":
        limit = int(node_limit) if node_limit else None
        deadline = (time.time() + float(time_limit)) if time_limit and time_limit > 0 else None
        return cls(node_limit=limit, deadline=deadline, on_improvement=on_improvement)

    @property
    def has_solution(self) -> bool:
        return self.best_length != math.inf

    def improves(self, length: int) -> bool:
        return length < self.best_length

    def record(self, length: int, placements: Sequence[PlacementRecord]) -> None:
        """Overwrite the best layout; callers have checked strict improvement."""
        self.best_length = length
        self.best_placements = order_by_item(placements)
        self.history.append(int(length))
        log.debug("new best length %d after %d nodes", length, self.nodes)
        if self.on_improvement is not None:
            self.on_improvement(int(length), list(self.best_placements))

    def out_of_budget(self) -> bool:
        if self.stopped is not None:
            return True
        if self.node_limit is not None and self.nodes >= self.node_limit:
            self.stopped = "node_limit"
        elif self.deadline is not None and time.time() >= self.deadline:
            self.stopped = "time_limit"
        if self.stopped is not None:
            log.warning(
                "search stopped (%s) after %d nodes; best length %s",
                self.stopped, self.nodes,
                "none" if not self.has_solution else int(self.best_length),
            )
            return True
        return False

    def stats(self) -> dict:
        return {
            "nodes": self.nodes,
            "pruned": self.pruned,
            "leaves": self.leaves,
            "improvements": len(self.history),
            "stopped": self.stopped,
        }


__all__ = ["SearchContext", "ImprovementHook"]
