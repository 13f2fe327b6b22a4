# packing/grid.py
from __future__ import annotations

from typing import FrozenSet, List, Optional, Tuple


class OccupancyGrid:
    """Dense boolean field, one ``bytearray`` per roll row.

    Row 0 is the top of the roll.  Rows are only ever appended; rows that a
    branch no longer uses stay allocated but hold no occupied cells once that
    branch has been undone.  Cells in rows that were never allocated are
    treated as free.
    """

    __slots__ = ("width", "rows")

    def __init__(self, width: int, height: int = 0):
        if width <= 0:
            raise ValueError(f"grid width must be positive, got {width}")
        self.width = int(width)
        self.rows: List[bytearray] = []
        self.ensure_height(height)

    @property
    def height(self) -> int:
        return len(self.rows)

    def ensure_height(self, h: int) -> None:
        W = self.width
        while len(self.rows) < h:
            self.rows.append(bytearray(W))

    def is_occupied(self, x: int, y: int) -> bool:
        if y >= len(self.rows):
            return False
        return bool(self.rows[y][x])

    def can_place(self, x: int, y: int, w: int, h: int) -> bool:
        if x < 0 or y < 0 or x + w > self.width:
            return False
        rows = self.rows
        for j in range(y, min(y + h, len(rows))):
            if rows[j].find(1, x, x + w) != -1:
                return False
        return True

    def occupy(self, x: int, y: int, w: int, h: int) -> None:
        self.ensure_height(y + h)
        fill = b"\x01" * w
        for j in range(y, y + h):
            self.rows[j][x:x + w] = fill

    def release(self, x: int, y: int, w: int, h: int) -> None:
        clear = bytes(w)
        for j in range(y, y + h):
            self.rows[j][x:x + w] = clear

    def first_fit(self, w: int, h: int, max_rows: Optional[int] = None) -> Optional[Tuple[int, int]]:
        """First free top-left cell for a ``w``×``h`` block in row-major order."""
        if w > self.width:
            return None
        limit = self.height if max_rows is None else max_rows
        for y in range(limit):
            for x in range(self.width - w + 1):
                if self.can_place(x, y, w, h):
                    return x, y
        return None

    def iter_fits(self, w: int, h: int, max_rows: Optional[int] = None):
        """Every free top-left cell for a ``w``×``h`` block, row-major."""
        if w > self.width:
            return
        limit = self.height if max_rows is None else max_rows
        for y in range(limit):
            for x in range(self.width - w + 1):
                if self.can_place(x, y, w, h):
                    yield x, y

    def used_height(self) -> int:
        """One past the last row holding an occupied cell."""
        for y in range(len(self.rows) - 1, -1, -1):
            if self.rows[y].find(1) != -1:
                return y + 1
        return 0

    def occupied_cells(self) -> FrozenSet[Tuple[int, int]]:
        return frozenset(
            (x, y)
            for y, row in enumerate(self.rows)
            for x, v in enumerate(row)
            if v
        )

    def snapshot(self) -> Tuple[bytes, ...]:
        """Rows up to the last occupied one; trailing padding is ignored."""
        return tuple(bytes(r) for r in self.rows[: self.used_height()])

    def render(self) -> str:
        return "\n".join(
            "".join("#" if v else "." for v in row) for row in self.rows
        )


__all__ = ["OccupancyGrid"]
