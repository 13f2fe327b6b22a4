"""Helpers for writing solver outputs to disk."""

from __future__ import annotations

import os
from typing import Iterable, List, Optional, Sequence, TextIO

from config import CFG
from models import PackResult, PlacementRecord


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def solution_lines(elapsed: float, length: int, placements: Iterable[PlacementRecord]) -> List[str]:
    """Elapsed seconds, roll length, then ``left top right bottom`` per rectangle."""

    lines = [f"{float(elapsed):.1f}", str(int(length))]
    lines.extend(p.to_line() for p in placements)
    return lines


def format_solution(result: PackResult) -> str:
    return "\n".join(solution_lines(result.elapsed, result.length, result.placements)) + "\n"


def write_solution_stream(result: PackResult, fh: TextIO) -> None:
    fh.write(format_solution(result))


def write_solution_file(path: str, elapsed: float, length: int, placements: Sequence[PlacementRecord]) -> str:
    """Overwrite ``path`` with one solution (creating parent folders)."""

    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(solution_lines(elapsed, length, placements)) + "\n")
    return path


def write_solution(result: PackResult, base_dir: str) -> str:
    """Write the solution to the configured text file under ``base_dir``."""

    path = _resolve_output_path(base_dir, CFG.SOLUTION_OUT, "solution.txt")
    return write_solution_file(path, result.elapsed, result.length, result.placements)


def write_layout_view_html(
    svg: str, legend_html: str, base_dir: str, *, title: str = "Roll layout", path: Optional[str] = None
) -> str:
    """Write the rendered SVG/legend preview to the configured HTML file."""

    if not path:
        path = _resolve_output_path(base_dir, CFG.LAYOUT_HTML, "layout_view.html")
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

    with open(path, "w", encoding="utf-8") as vf:
        vf.write(
            f"""<!doctype html>
<html><head><meta charset='utf-8'><title>{title}</title></head>
<body>
<h1>{title}</h1>
<section><div class='rollwrap'>{svg}</div></section>
<section><h3>Legend</h3><ul>{legend_html}</ul></section>
</body></html>"""
        )
    return path


__all__ = [
    "solution_lines",
    "format_solution",
    "write_solution_stream",
    "write_solution_file",
    "write_solution",
    "write_layout_view_html",
]
