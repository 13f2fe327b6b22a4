import random
from typing import Dict, List, Tuple

from config import CFG
from models import PlacementRecord


def _color(item_index: int) -> str:
    rng = random.Random(item_index * 7919 + 17)
    r = rng.randint(40, 200)
    g = rng.randint(40, 200)
    b = rng.randint(40, 200)
    return f"rgb({r},{g},{b})"


def _label(p: PlacementRecord) -> str:
    return f"#{p.item_index} {p.width}×{p.height}"


def render_result(placed: List[PlacementRecord], W: int, L: int, scale: int = 0) -> Tuple[str, str]:
    """SVG of the roll (top at y=0) plus a legend ``<li>`` list, one entry per item type."""
    scale = int(scale or CFG.CELL_PX)
    palette: Dict[int, str] = {}
    sizes: Dict[int, Tuple[int, int]] = {}
    for p in placed:
        palette.setdefault(p.item_index, _color(p.item_index))
        sizes.setdefault(p.item_index, (min(p.width, p.height), max(p.width, p.height)))

    svg_w = W * scale + 2
    svg_h = max(L, 1) * scale + 2

    rects = []
    for p in placed:
        x = p.left_x * scale + 1
        y = p.top_y * scale + 1
        w = p.width * scale
        h = p.height * scale
        rects.append(
            f'<rect x="{x}" y="{y}" width="{w}" height="{h}" fill="{palette[p.item_index]}" stroke="black" stroke-width="1"/>'
            f'<text x="{x+4}" y="{y+14}" font-size="12" fill="black">{_label(p)}</text>'
        )
    frame = f'<rect x="1" y="1" width="{svg_w-2}" height="{svg_h-2}" fill="none" stroke="black" stroke-width="2"/>'
    svg = (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{svg_w}" height="{svg_h}" '
        f'viewBox="0 0 {svg_w} {svg_h}" preserveAspectRatio="xMinYMin meet">'
        f'{frame}{"".join(rects)}</svg>'
    )

    legend = "".join(
        f"<li><span class='swatch' style='background:{c}'></span>item {i}: {sizes[i][0]}×{sizes[i][1]}</li>"
        for i, c in sorted(palette.items())
    )
    return svg, legend
