import random
from typing import Dict, List, Tuple

from config import CFG
from models import Placed


def _color(key: int) -> str:
    rng = random.Random(key * 7919 + 17)
    r = rng.randint(40, 200)
    g = rng.randint(40, 200)
    b = rng.randint(40, 200)
    return f"rgb({r},{g},{b})"


def render_placement(placed: List[Placed], Wc: int, Hc: int) -> Tuple[str, str]:
    """SVG of a witness placement plus an HTML legend keyed by shape index."""
    palette: Dict[int, str] = {}
    for p in placed:
        palette.setdefault(p.shape, _color(p.shape))

    scale = max(1, int(CFG.RENDER_SCALE))
    svg_w = Wc * scale + 2
    svg_h = Hc * scale + 2

    cells = []
    for p in placed:
        fill = palette[p.shape]
        for r, c in p.absolute_cells():
            x = c * scale + 1
            y = r * scale + 1
            cells.append(
                f'<rect x="{x}" y="{y}" width="{scale}" height="{scale}" fill="{fill}" '
                f'stroke="black" stroke-width="0.5"><title>#{p.instance} shape {p.shape}</title></rect>'
            )
        label_r, label_c = p.absolute_cells()[0]
        cells.append(
            f'<text x="{label_c * scale + 4}" y="{label_r * scale + 14}" font-size="11" '
            f'fill="black">{p.instance}</text>'
        )
    frame = f'<rect x="1" y="1" width="{svg_w-2}" height="{svg_h-2}" fill="none" stroke="black" stroke-width="2"/>'
    svg = (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{svg_w}" height="{svg_h}" '
        f'viewBox="0 0 {svg_w} {svg_h}" preserveAspectRatio="xMinYMin meet">'
        f'{frame}{"".join(cells)}</svg>'
    )

    legend = "".join(
        f"<li><span class='swatch' style='background:{c}'></span>shape {n}</li>"
        for n, c in sorted(palette.items())
    )
    return svg, legend
