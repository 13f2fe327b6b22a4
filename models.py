
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple


@dataclass
class DemandItem:
    """One rectangle type still available for placement.

    ``remaining`` is decremented and restored by the search; ``quantity`` is
    the original request and never changes.
    """
    width: int
    height: int
    quantity: int
    index: int = 0
    remaining: int = -1

    def __post_init__(self):
        if self.remaining < 0:
            self.remaining = self.quantity

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def is_square(self) -> bool:
        return self.width == self.height

    def orientations(self) -> List[Tuple[int, int, bool]]:
        """(w, h, rotated) pairs, unrotated first; squares yield one entry."""
        if self.is_square:
            return [(self.width, self.height, False)]
        return [(self.width, self.height, False), (self.height, self.width, True)]

    def fits_width(self, roll_width: int) -> bool:
        return min(self.width, self.height) <= roll_width


@dataclass(frozen=True)
class PlacementRecord:
    left_x: int
    top_y: int
    right_x: int
    bottom_y: int
    item_index: int = 0
    rotated: bool = False

    @classmethod
    def at(cls, x: int, y: int, w: int, h: int, item_index: int = 0, rotated: bool = False) -> "PlacementRecord":
        return cls(x, y, x + w, y + h, item_index, rotated)

    @property
    def width(self) -> int:
        return self.right_x - self.left_x

    @property
    def height(self) -> int:
        return self.bottom_y - self.top_y

    def overlaps(self, other: "PlacementRecord") -> bool:
        return (
            self.left_x < other.right_x
            and other.left_x < self.right_x
            and self.top_y < other.bottom_y
            and other.top_y < self.bottom_y
        )

    def to_line(self) -> str:
        return f"{self.left_x} {self.top_y} {self.right_x} {self.bottom_y}"


@dataclass
class RollInstance:
    width: int
    items: List[DemandItem] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        return sum(it.quantity for it in self.items)

    @property
    def total_area(self) -> int:
        return sum(it.quantity * it.area for it in self.items)

    def fresh_items(self) -> List[DemandItem]:
        """Copies with ``remaining`` reset to the full request."""
        return [DemandItem(it.width, it.height, it.quantity, it.index) for it in self.items]

    def expand(self) -> List[DemandItem]:
        """One single-quantity entry per requested rectangle, in input order."""
        out: List[DemandItem] = []
        for it in self.items:
            for _ in range(it.quantity):
                out.append(DemandItem(it.width, it.height, 1, it.index))
        return out

    def __iter__(self) -> Iterator[DemandItem]:
        return iter(self.items)


def order_by_item(placements: Sequence[PlacementRecord]) -> List[PlacementRecord]:
    """Stable sort by input item index."""
    return sorted(placements, key=lambda p: p.item_index)


def layout_length(placements: Sequence[PlacementRecord]) -> int:
    return max((p.bottom_y for p in placements), default=0)


@dataclass
class PackResult:
    engine: str
    width: int
    length: int
    placements: List[PlacementRecord] = field(default_factory=list)
    elapsed: float = 0.0
    optimal: bool = False
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def placed_count(self) -> int:
        return len(self.placements)

    def utilisation(self) -> Optional[float]:
        if self.length <= 0 or self.width <= 0:
            return None
        used = sum(p.width * p.height for p in self.placements)
        return used / float(self.width * self.length)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": self.engine,
            "width": self.width,
            "length": self.length,
            "elapsed": round(self.elapsed, 6),
            "optimal": self.optimal,
            "placed_count": self.placed_count,
            "utilisation": self.utilisation(),
            "placements": [
                [p.left_x, p.top_y, p.right_x, p.bottom_y] for p in self.placements
            ],
            "stats": dict(self.stats),
        }
