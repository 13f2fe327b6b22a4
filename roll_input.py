# roll_input.py
from __future__ import annotations

import logging
import re
import sys
from typing import Any, Iterator, List, Optional, Tuple

from errors import InputError
from models import DemandItem, RollInstance

log = logging.getLogger(__name__)

Decoded = Tuple[str, int]  # ("WxH", count)

_INT_RE = re.compile(r"^[+-]?\d+$")
_ANY_KEY_SIZE_RE = re.compile(r"(?P<w>\d+)\s*[xX×]\s*(?P<h>\d+)")


def _tokens(text: str) -> Iterator[Tuple[int, str]]:
    for pos, tok in enumerate(text.split()):
        yield pos, tok


def _to_int_token(pos: int, tok: str, what: str) -> int:
    if not _INT_RE.match(tok):
        raise InputError(f"token #{pos + 1} ({what}) is not an integer: {tok!r}")
    return int(tok)


def parse_roll_text(text: str) -> RollInstance:
    """Parse ``W N`` followed by ``count width height`` groups.

    ``N`` counts rectangles, not groups: every group consumes ``count``
    rectangles from the budget, exactly like the legacy tools read it.
    """
    toks = _tokens(text or "")

    def _next(what: str) -> int:
        try:
            pos, tok = next(toks)
        except StopIteration:
            raise InputError(f"unexpected end of input while reading {what}") from None
        return _to_int_token(pos, tok, what)

    W = _next("roll width")
    N = _next("rectangle count")
    if W <= 0:
        raise InputError(f"roll width must be positive, got {W}")
    if N < 0:
        raise InputError(f"rectangle count must be non-negative, got {N}")

    items: List[DemandItem] = []
    i = 0
    while i < N:
        count = _next(f"count of group {len(items) + 1}")
        w = _next(f"width of group {len(items) + 1}")
        h = _next(f"height of group {len(items) + 1}")
        if count <= 0:
            raise InputError(f"group {len(items) + 1}: count must be positive, got {count}")
        if w <= 0 or h <= 0:
            raise InputError(f"group {len(items) + 1}: invalid size {w}x{h}")
        items.append(DemandItem(w, h, count, index=len(items)))
        i += count

    if i > N:
        log.warning("groups describe %d rectangles but header announced %d", i, N)

    leftover = [tok for _, tok in toks]
    if leftover:
        for tok in leftover:
            if not _INT_RE.match(tok):
                raise InputError(f"trailing token is not an integer: {tok!r}")
        log.warning("ignoring %d trailing token(s) after the last group", len(leftover))

    return RollInstance(width=W, items=items)


def read_roll_file(path: str) -> RollInstance:
    """Read a roll description from ``path`` (``-`` for stdin)."""
    if path == "-":
        return parse_roll_text(sys.stdin.read())
    try:
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except OSError as e:
        raise InputError(f"cannot read {path}: {e}") from e
    return parse_roll_text(text)


def format_roll_text(instance: RollInstance) -> str:
    lines = [f"{instance.width} {instance.total_quantity}"]
    for it in instance.items:
        lines.append(f"{it.quantity} {it.width} {it.height}")
    return "\n".join(lines) + "\n"


# ---------------- form / JSON payloads ----------------

def _to_int(x: Any) -> Optional[int]:
    try:
        return int(float(x))
    except Exception:
        return None


def _as_listish(val: Any) -> List[Any]:
    if val is None:
        return []
    if isinstance(val, (list, tuple)):
        return list(val)
    return [val]


def _first(val: Any) -> Any:
    lst = _as_listish(val)
    return lst[0] if lst else None


def _getlist(container: Any, key: str) -> List[Any]:
    if container is None:
        return []
    if isinstance(container, dict) and key in container:
        return _as_listish(container[key])
    if hasattr(container, "getlist"):
        try:
            return list(container.getlist(key))
        except Exception:
            return []
    return []


def _append(items: List[DemandItem], decoded: List[Decoded], w: int, h: int, n: int) -> None:
    items.append(DemandItem(w, h, n, index=len(items)))
    decoded.append((f"{w}x{h}", n))


def _roll_width(form_like: Any) -> Optional[int]:
    for key in ("width", "W", "roll_width"):
        if isinstance(form_like, dict) and key in form_like:
            return _to_int(_first(form_like[key]))
    return None


def parse_demand(form_like: Any) -> Tuple[Optional[RollInstance], List[Decoded], Optional[str]]:
    """
    Return (instance_or_None, decoded_items, error_message_or_None).
    Accepts a raw ``text`` field, a JSON ``items`` list, parallel arrays or
    per-size keys such as ``qty_3x2``.
    """
    if not form_like:
        return None, [], "nothing parsed from request"

    # --- Shape 0: raw text in the file format ------------------------------
    text = _first(form_like.get("text")) if isinstance(form_like, dict) else None
    if isinstance(text, str) and text.strip():
        try:
            inst = parse_roll_text(text)
        except InputError as e:
            return None, [], str(e)
        return inst, [(f"{it.width}x{it.height}", it.quantity) for it in inst.items], None

    W = _roll_width(form_like)
    if W is None or W <= 0:
        return None, [], "roll width missing or not positive"

    items: List[DemandItem] = []
    decoded: List[Decoded] = []

    # --- Shape 1: explicit JSON items list ---------------------------------
    if isinstance(form_like, dict) and isinstance(form_like.get("items"), list):
        for t in form_like["items"]:
            if not isinstance(t, dict):
                continue
            w = _to_int(t.get("w"))
            h = _to_int(t.get("h"))
            n = _to_int(t.get("count", 1))
            if w and h and n and w > 0 and h > 0 and n > 0:
                _append(items, decoded, w, h, n)
        if items:
            return RollInstance(W, items), decoded, None

    # --- Shape 2: parallel arrays ------------------------------------------
    for wK, hK, nK in (("w[]", "h[]", "count[]"), ("w", "h", "count")):
        wL, hL, nL = _getlist(form_like, wK), _getlist(form_like, hK), _getlist(form_like, nK)
        if not (wL and hL and nL):
            continue
        for w, h, n in zip(wL, hL, nL):
            wi, hi, ni = _to_int(w), _to_int(h), _to_int(n)
            if wi and hi and ni and wi > 0 and hi > 0 and ni > 0:
                _append(items, decoded, wi, hi, ni)
        if items:
            return RollInstance(W, items), decoded, None

    # --- Shape 3: per-size keys anywhere in the key name -------------------
    if isinstance(form_like, dict):
        for k, v in form_like.items():
            m = _ANY_KEY_SIZE_RE.search(str(k))
            if not m:
                continue
            ni = _to_int(_first(v))
            if ni and ni > 0:
                _append(items, decoded, int(m.group("w")), int(m.group("h")), ni)

    if items:
        return RollInstance(W, items), decoded, None

    return None, [], "nothing parsed from request"


__all__ = ["parse_roll_text", "read_roll_file", "format_roll_text", "parse_demand"]
