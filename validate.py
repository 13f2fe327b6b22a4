# validate.py
# Validation utilities for a finished roll layout:
# - placements lie inside the roll width
# - no two placements overlap
# - the layout uses exactly the requested rectangles
# - the reported length matches the placements

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence

from models import PackResult, PlacementRecord, RollInstance


@dataclass(frozen=True)
class ValidationIssue:
    level: str   # "ERROR" or "WARN"
    message: str
    placement: Optional[PlacementRecord] = None


def validate_bounds(W: int, placements: Sequence[PlacementRecord]) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for pl in placements:
        if pl.width <= 0 or pl.height <= 0:
            issues.append(ValidationIssue("ERROR", f"non-positive size {pl.width}x{pl.height}", pl))
        if pl.left_x < 0 or pl.top_y < 0 or pl.right_x > W:
            issues.append(ValidationIssue("ERROR", f"placement {pl.to_line()} outside roll width {W}", pl))
    return issues


def validate_no_overlap(placements: Sequence[PlacementRecord]) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    # sweep on top edge so only vertically overlapping pairs are compared
    ordered = sorted(placements, key=lambda p: p.top_y)
    for i, a in enumerate(ordered):
        for b in ordered[i + 1:]:
            if b.top_y >= a.bottom_y:
                break
            if a.overlaps(b):
                issues.append(ValidationIssue("ERROR", f"overlap: {a.to_line()} with {b.to_line()}", b))
    return issues


def validate_demand(instance: RollInstance, placements: Sequence[PlacementRecord]) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if len(placements) != instance.total_quantity:
        issues.append(ValidationIssue(
            "ERROR",
            f"{len(placements)} placement(s) for {instance.total_quantity} requested rectangle(s)",
        ))

    wanted: Counter = Counter()
    for it in instance.items:
        wanted[(min(it.width, it.height), max(it.width, it.height))] += it.quantity
    got: Counter = Counter(
        (min(p.width, p.height), max(p.width, p.height)) for p in placements
    )
    for shape, n in got.items():
        if n > wanted.get(shape, 0):
            issues.append(ValidationIssue(
                "ERROR",
                f"{n} placement(s) of shape {shape[0]}x{shape[1]}, requested {wanted.get(shape, 0)}",
            ))
    return issues


def validate_result(instance: RollInstance, result: PackResult) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    issues.extend(validate_bounds(instance.width, result.placements))
    issues.extend(validate_no_overlap(result.placements))
    issues.extend(validate_demand(instance, result.placements))

    actual = max((p.bottom_y for p in result.placements), default=0)
    if actual != result.length:
        issues.append(ValidationIssue(
            "ERROR", f"reported length {result.length} but placements end at {actual}"
        ))

    if result.length and result.width:
        area = sum(p.width * p.height for p in result.placements)
        if area > result.width * result.length:
            issues.append(ValidationIssue("ERROR", "placed area exceeds the roll area"))

    if not result.placements and instance.total_quantity:
        issues.append(ValidationIssue("WARN", "layout has no placements"))

    return issues


def raise_on_errors(issues: List[ValidationIssue]) -> None:
    errs = [i for i in issues if i.level.upper() == "ERROR"]
    if errs:
        msg = "\n".join(f"[{e.level}] {e.message}" for e in errs)
        raise ValueError("Validation failed:\n" + msg)


__all__ = [
    "ValidationIssue",
    "validate_bounds",
    "validate_no_overlap",
    "validate_demand",
    "validate_result",
    "raise_on_errors",
]
