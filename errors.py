"""Exceptions raised by the parsers and packing engines."""

from __future__ import annotations

from typing import Any, Optional


class PackingError(Exception):
    """Base class for every user-facing failure of the packer."""


class InputError(PackingError, ValueError):
    """Malformed roll description (bad width, counts, sizes or truncated input)."""


class InfeasibleItemError(PackingError):
    """A demand item fits the roll in neither orientation."""

    def __init__(self, message: str, item: Optional[Any] = None) -> None:
        super().__init__(message)
        self.item = item


# The exact search reports an infeasible instance under this name as well.
ExhaustionError = InfeasibleItemError


class SolverUnavailableError(PackingError):
    """The CP-SAT model finished without producing a layout."""


__all__ = [
    "PackingError",
    "InputError",
    "InfeasibleItemError",
    "ExhaustionError",
    "SolverUnavailableError",
]
