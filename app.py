# app.py: JSON front end; progress is never cached
from __future__ import annotations
import os
from typing import Any, Dict, Tuple

from flask import Flask, request, send_from_directory, jsonify, url_for

from config import CFG
from errors import PackingError
from io_files import write_solution, write_layout_view_html
from packing.orchestrator import solve
from render import render_result
from roll_input import parse_demand

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    start_timer as progress_start,
    set_status, set_done, set_result_url,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


_SOLUTION_FULL_PATH, SOLUTION_DIR, SOLUTION_FILENAME = _resolve_output_paths(
    CFG.SOLUTION_OUT, "solution.txt"
)
_LAYOUT_FULL_PATH, LAYOUT_DIR, LAYOUT_FILENAME = _resolve_output_paths(
    CFG.LAYOUT_HTML, "layout_view.html"
)

LAST_RESULT: Dict[str, Any] = {
    "ok": False,
    "message": "No run yet.",
    "engine": "",
    "width": 0,
    "length": 0,
    "optimal": False,
    "placed_count": 0,
    "demand_count": 0,
    "utilisation": None,
    "elapsed": 0.0,
    "placements": [],
    "demand_items": [],
    "svg": "",
    "solution_filename": SOLUTION_FILENAME,
    "layout_filename": LAYOUT_FILENAME,
}

app = Flask(__name__)


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress3":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


def _merge_like_mapping() -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        merged.update(payload)

    form_dict = request.form.to_dict(flat=False)
    for k, v in form_dict.items():
        merged.setdefault(k, v if isinstance(v, list) else [v])

    args_dict = request.args.to_dict(flat=False)
    for k, v in args_dict.items():
        merged.setdefault(k, v if isinstance(v, list) else [v])

    return merged


def _option(like: Dict[str, Any], key: str, cast, default=None):
    val = like.get(key)
    if isinstance(val, list):
        val = val[0] if val else None
    if val in (None, ""):
        return default
    try:
        return cast(val)
    except (TypeError, ValueError):
        return default


def _fail(reason: str, status: int, decoded=None):
    set_status("error")
    set_done(False, message=reason)
    LAST_RESULT.update({
        "ok": False,
        "message": reason,
        "engine": "",
        "width": 0,
        "length": 0,
        "optimal": False,
        "placed_count": 0,
        "elapsed": 0.0,
        "utilisation": None,
        "placements": [],
        "demand_items": list(decoded or []),
        "svg": "",
    })
    set_result_url(url_for("result_latest"))
    return jsonify(LAST_RESULT), status


@app.route("/solve", methods=["POST"])
def solve_route():
    progress_reset()
    progress_start()
    set_status("Solving")

    like = _merge_like_mapping()
    instance, decoded, err = parse_demand(like)
    if err or instance is None:
        seen_keys = ", ".join(list(like.keys())[:8]) or "none"
        return _fail(f"Bad demand: {err or 'nothing parsed from request'} (saw keys: {seen_keys})", 400, decoded)

    engine = _option(like, "engine", str, None)
    try:
        result = solve(
            instance,
            engine,
            node_limit=_option(like, "node_limit", int),
            time_limit=_option(like, "time_limit", float),
            seed=_option(like, "seed", int),
        )
    except (PackingError, ValueError) as e:
        return _fail(f"{type(e).__name__}: {e}", 400, decoded)

    svg, legend = render_result(result.placements, result.width, result.length)
    solution_path = write_solution(result, BASE_DIR)
    layout_path = write_layout_view_html(
        svg, legend, BASE_DIR, title=f"Roll W={result.width}, L={result.length}"
    )

    note = "optimal" if result.optimal else (result.stats.get("stopped") or "best found")
    set_done(True, message=f"{result.engine}: L={result.length} ({note})")

    payload = result.to_dict()
    payload.pop("stats", None)
    LAST_RESULT.update(payload)
    LAST_RESULT.update({
        "ok": True,
        "message": note,
        "demand_count": instance.total_quantity,
        "demand_items": list(decoded),
        "svg": svg,
        "solution_filename": os.path.basename(solution_path) or SOLUTION_FILENAME,
        "layout_filename": os.path.basename(layout_path) or LAYOUT_FILENAME,
    })
    set_result_url(url_for("result_latest"))
    return jsonify(LAST_RESULT)


@app.route("/result/latest")
def result_latest():
    return jsonify(LAST_RESULT)


@app.route("/download/solution")
def download_solution():
    return send_from_directory(SOLUTION_DIR, SOLUTION_FILENAME, as_attachment=True)


@app.route("/download/html")
def download_html():
    return send_from_directory(LAYOUT_DIR, LAYOUT_FILENAME, as_attachment=True)


@app.route("/progress3")
def progress3():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)
