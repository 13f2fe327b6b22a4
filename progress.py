"""Run status shared by the CLI, the Flask front end and the engines.

One dict (``PROGRESS``) describes the current run.  Every setter updates it
under a lock and mirrors it to a small JSON file, so a status endpoint served
by another process (or a restarted one) sees the same numbers.  Lifecycle
events also go to ``logs/solver_runs.log``.
"""
from __future__ import annotations

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

PROGRESS_LOCK = threading.Lock()

_HERE = Path(__file__).resolve().parent


def _fresh_progress(run_id: int = 0) -> Dict[str, Any]:
    return {
        "status": "Idle",          # Idle | Solving | Solved | Error
        "engine": "",              # exhaustive | greedy | annealing | cpsat
        "instance": "",            # e.g. "W=10, 12 rectangles"
        "percent": 0.0,
        "best_length": None,       # best roll length so far
        "lower_bound": None,       # area bound for the whole instance
        "nodes": 0,                # search nodes expanded
        "placed_count": 0,
        "demand_count": 0,
        "elapsed_start": None,
        "elapsed": 0.0,
        "message": "",
        "done": False,
        "ok": None,
        "result_url": "",
        "run_id": run_id,
    }


PROGRESS: Dict[str, Any] = _fresh_progress()


# ------------------------------
# State file
# ------------------------------

class _StateFile:
    """JSON mirror of ``PROGRESS``; written atomically through a temp file."""

    def __init__(self, path: Path):
        self.path = path
        self.tmp = path.with_name(path.name + ".tmp")
        self.mtime = 0.0

    @classmethod
    def from_env(cls) -> "_StateFile":
        configured = os.environ.get("RP_PROGRESS_STATE_FILE")
        return cls(Path(configured) if configured else _HERE / "logs" / "progress_state.json")

    def save(self, state: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.tmp.write_text(json.dumps(state, ensure_ascii=False, separators=(",", ":")), encoding="utf-8")
            self.tmp.replace(self.path)
            self.mtime = self.path.stat().st_mtime
        except (OSError, TypeError, ValueError):
            # status updates keep working without a writable state file
            pass

    def load_into(self, state: Dict[str, Any], force: bool = False) -> None:
        """Copy known keys from disk when the file changed since our last write."""
        try:
            mtime = self.path.stat().st_mtime
            if not force and mtime <= self.mtime:
                return
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return
        if isinstance(data, dict):
            state.update({k: data[k] for k in state if k in data})
            self.mtime = mtime


STATE = _StateFile.from_env()


# ------------------------------
# Run log
# ------------------------------

def _init_run_logger() -> logging.Logger:
    logger = logging.getLogger("packing.run_log")
    if logger.handlers:
        return logger
    log_path = _HERE / "logs" / "solver_runs.log"
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        return logger
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


RUN_LOGGER = _init_run_logger()

# engine timing for the run log; not part of the published state
LOG_STATE: Dict[str, Any] = {"run_start": None, "engine": "", "engine_start": None}


def _seconds(value: Optional[float]) -> Optional[str]:
    return None if value is None else f"{max(0.0, value):.2f}s"


def _emit_log(event: str, **fields: Any) -> None:
    if not RUN_LOGGER.handlers:
        return
    extras = " ".join(f"{k}={v}" for k, v in fields.items() if v not in (None, ""))
    if extras:
        RUN_LOGGER.info("%s | %s", event, extras)
    else:
        RUN_LOGGER.info("%s", event)


def _switch_engine_locked(new_engine: str) -> None:
    prev = LOG_STATE["engine"]
    if new_engine == prev:
        return
    now = time.time()
    if prev and LOG_STATE["engine_start"] is not None:
        _emit_log("Engine finished", engine=prev, duration=_seconds(now - LOG_STATE["engine_start"]))
    LOG_STATE["engine"] = new_engine
    LOG_STATE["engine_start"] = now if new_engine else None
    if new_engine:
        _emit_log("Engine started", engine=new_engine, instance=PROGRESS.get("instance"))


# ------------------------------
# Internal helpers
# ------------------------------

def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = time.time() - float(t0)


def _commit_locked() -> None:
    STATE.save(PROGRESS)


def _update(**fields: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS.update(fields)
        _commit_locked()


def _fmt_elapsed(seconds: float) -> str:
    seconds = int(max(0.0, float(seconds)))
    if seconds < 60:
        return f"{seconds}s"
    m, s = divmod(seconds, 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"


# ------------------------------
# Lifecycle
# ------------------------------

def reset() -> None:
    """Start a new run: clear every field and bump ``run_id``."""
    with PROGRESS_LOCK:
        _switch_engine_locked("")
        run_id = _as_int(PROGRESS.get("run_id")) + 1
        PROGRESS.clear()
        PROGRESS.update(_fresh_progress(run_id))
        LOG_STATE.update({"run_start": None, "engine": "", "engine_start": None})
        _emit_log("Progress reset", run_id=PROGRESS["run_id"])
        _commit_locked()


def start_timer() -> None:
    with PROGRESS_LOCK:
        now = time.time()
        PROGRESS["elapsed_start"] = now
        PROGRESS["elapsed"] = 0.0
        LOG_STATE["run_start"] = now
        _emit_log("Run timer started")
        _commit_locked()


def set_done(ok: Any = None, *, message: Any = None) -> None:
    """Mark the run complete.

    ``ok`` picks the final status (``Solved`` / ``Error``); when omitted a run
    that was still idle or solving is reported as solved.
    """
    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        if ok is None:
            ok_flag = PROGRESS.get("status") in ("", "Idle", "Solving", "Solved", None)
        else:
            ok_flag = bool(ok)
        PROGRESS.update({
            "status": "Solved" if ok_flag else "Error",
            "percent": 100.0,
            "done": True,
            "ok": ok_flag,
        })
        if message is not None:
            PROGRESS["message"] = str(message)
        _switch_engine_locked("")
        run_start = LOG_STATE["run_start"]
        LOG_STATE["run_start"] = None
        _emit_log(
            "Run finished",
            status=PROGRESS["status"],
            duration=_seconds(time.time() - run_start) if run_start is not None else None,
            length=PROGRESS.get("best_length"),
            nodes=PROGRESS.get("nodes"),
            message=PROGRESS.get("message"),
        )
        _commit_locked()


# ------------------------------
# Setters
# ------------------------------

def set_status(v: Any) -> None:
    _update(status=str(v))


def set_engine(v: Any) -> None:
    engine = "" if v is None else str(v)
    with PROGRESS_LOCK:
        PROGRESS["engine"] = engine
        _switch_engine_locked(engine)
        _commit_locked()


def set_instance(width: int, count: int) -> None:
    _update(instance=f"W={int(width)}, {int(count)} rectangles", demand_count=max(0, int(count)))


def set_best_length(n: Any, *, nodes: Any = None) -> None:
    with PROGRESS_LOCK:
        PROGRESS["best_length"] = None if n is None else int(n)
        if nodes is not None:
            PROGRESS["nodes"] = max(0, _as_int(nodes))
        _touch_elapsed_locked()
        _emit_log("Improvement", engine=PROGRESS.get("engine"), length=PROGRESS["best_length"])
        _commit_locked()


def set_lower_bound(n: Any) -> None:
    _update(lower_bound=None if n is None else int(n))


def set_nodes(n: Any) -> None:
    _update(nodes=max(0, _as_int(n)))


def set_placed_count(n: Any) -> None:
    _update(placed_count=max(0, _as_int(n)))


def set_elapsed(seconds: Any) -> None:
    _update(elapsed=max(0.0, _as_float(seconds)))


def set_result_url(url: Any) -> None:
    _update(result_url="" if url is None else str(url))


# ------------------------------
# Snapshots for the UI
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        STATE.load_into(PROGRESS)
        _touch_elapsed_locked()
        out = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
        out["elapsed_str"] = _fmt_elapsed(PROGRESS["elapsed"])
        return out


def as_json() -> Dict[str, Any]:
    # served by /progress3
    return snapshot()


with PROGRESS_LOCK:
    STATE.load_into(PROGRESS, force=True)
