# cli.py
# Command line front end.
#
# Run:
#   roll-packer input.txt output.txt --engine exhaustive --time-limit 60
#   roll-packer - --engine greedy < input.txt
#
# Input format: "W N" then "count width height" groups (N = total rectangles).
# Output format: elapsed seconds, roll length, then "left top right bottom"
# per rectangle.

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from typing import List, Optional

from config import CFG
from errors import PackingError
from io_files import write_layout_view_html, write_solution_file, write_solution_stream
from models import PlacementRecord
from packing.orchestrator import solve
from progress import reset as progress_reset, set_done, start_timer
from render import render_result
from roll_input import read_roll_file

log = logging.getLogger("roll_packer")


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Strip packing on a fixed-width roll")
    p.add_argument("input", help="Roll description file ('-' for stdin)")
    p.add_argument("output", nargs="?", default="", help="Solution file (stdout when omitted)")
    p.add_argument("--engine", choices=CFG.ENGINES, default=CFG.ENGINE, help="Packing engine")
    p.add_argument("--time-limit", type=float, default=None, help="Time budget in seconds (0 = none)")
    p.add_argument("--node-limit", type=int, default=None, help="Exhaustive node budget (0 = none)")
    p.add_argument("--seed", type=int, default=None, help="Random seed for annealing")
    p.add_argument("--all-positions", action="store_true",
                   help="Exhaustive: branch on every free cell instead of the first fit")
    p.add_argument("--html", type=str, default="", help="Also write an HTML layout view here")
    p.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return p


def _configure_logging(quiet: bool) -> None:
    logging.basicConfig(
        level=logging.WARNING if quiet else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_argparser().parse_args(argv)
    _configure_logging(args.quiet)

    progress_reset()
    start_timer()

    try:
        instance = read_roll_file(args.input)
    except PackingError as e:
        log.error("bad input: %s", e)
        set_done(False, message=str(e))
        return 2

    out_path = args.output.strip()
    t0 = time.time()

    def _write_improvement(length: int, placements: List[PlacementRecord]) -> None:
        # the file always holds the best layout found so far
        write_solution_file(out_path, time.time() - t0, length, placements)

    hook = _write_improvement if (out_path and args.engine == "annealing") else None

    try:
        result = solve(
            instance,
            args.engine,
            node_limit=args.node_limit,
            time_limit=args.time_limit,
            seed=args.seed,
            all_positions=True if args.all_positions else None,
            on_improvement=hook,
        )
    except PackingError as e:
        log.error("%s", e)
        set_done(False, message=str(e))
        return 2

    if out_path:
        write_solution_file(out_path, result.elapsed, result.length, result.placements)
        log.info("wrote %s", out_path)
    else:
        write_solution_stream(result, sys.stdout)

    if args.html:
        svg, legend = render_result(result.placements, result.width, result.length)
        html_path = write_layout_view_html(
            svg, legend, os.getcwd(),
            title=f"Roll W={result.width}, L={result.length}", path=args.html,
        )
        log.info("wrote %s", html_path)

    note = "optimal" if result.optimal else (result.stats.get("stopped") or "heuristic")
    set_done(True, message=f"{result.engine}: L={result.length} ({note})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
