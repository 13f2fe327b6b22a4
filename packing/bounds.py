from __future__ import annotations

from typing import Iterable

from models import DemandItem


def remaining_area(remaining: Iterable[DemandItem]) -> int:
    return sum(it.remaining * it.width * it.height for it in remaining)


def lower_bound_additional_length(remaining: Iterable[DemandItem], W: int) -> int:
    """Length that the unplaced area needs even with zero packing loss.

    ``ceil(area / W)``; never larger than what any completion actually adds.
    """
    if W <= 0:
        raise ValueError(f"roll width must be positive, got {W}")
    area = remaining_area(remaining)
    return (area + W - 1) // W


def is_promising(current_length: int, remaining: Iterable[DemandItem], W: int, best_length: float) -> bool:
    return current_length + lower_bound_additional_length(remaining, W) < best_length


__all__ = ["remaining_area", "lower_bound_additional_length", "is_promising"]
