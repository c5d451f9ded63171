"""Helpers for reading puzzles and writing solver outputs to disk."""

from __future__ import annotations

import os
from typing import List, Optional, Sequence

from config import CFG
from models import Placed, RegionOutcome


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def find_input(explicit: Optional[str] = None, base_dir: Optional[str] = None) -> str:
    """Locate the puzzle file: the explicit path, else the configured name, else ``day12/``."""

    if explicit:
        return explicit
    base = base_dir or os.getcwd()
    candidates = [
        _resolve_output_path(base, CFG.INPUT_FILE, "input.txt"),
        os.path.join(base, "day12", os.path.basename(CFG.INPUT_FILE or "input.txt")),
    ]
    for path in candidates:
        if os.path.exists(path):
            return path
    raise FileNotFoundError(f"Could not find puzzle input (tried {', '.join(candidates)})")


def read_puzzle(path: str) -> str:
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


def write_report(outcomes: Sequence[RegionOutcome], base_dir: str) -> str:
    """Write one line per region and the total fitting count."""

    path = _resolve_output_path(base_dir, CFG.REPORT_OUT, "report.txt")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    fit = sum(1 for o in outcomes if o.ok)
    with open(path, "w", encoding="utf-8") as f:
        for o in outcomes:
            line = o.summary_line()
            if o.notes:
                line += " [" + "; ".join(o.notes) + "]"
            f.write(line + "\n")
        f.write(f"Part 1: {fit}\n")
    return path


def write_coords(placed: List[Placed], base_dir: str) -> str:
    """Write the anchor and orientation of every placed instance."""

    path = _resolve_output_path(base_dir, CFG.COORDS_OUT, "coords.txt")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        if not placed:
            f.write("No solution\n")
        else:
            for p in placed:
                cells = " ".join(f"({r},{c})" for r, c in p.absolute_cells())
                f.write(
                    f"#{p.instance} shape {p.shape} orientation {p.orientation} "
                    f"@ ({p.row},{p.col}) cells {cells}\n"
                )
    return path


def write_layout_view_html(svg: str, legend_html: str, base_dir: str, title: str = "Layout View") -> str:
    """Write the rendered SVG/legend preview to the configured HTML file."""

    path = _resolve_output_path(base_dir, CFG.LAYOUT_HTML, "layout_view.html")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as vf:
        vf.write(
            f"""<!doctype html>
<html><head><meta charset='utf-8'><title>{title}</title>
<style>.swatch{{display:inline-block;width:12px;height:12px;margin-right:6px}}</style></head>
<body>
<h1>{title}</h1>
<section>{svg}</section>
<section><h3>Legend</h3><ul>{legend_html}</ul></section>
</body></html>"""
        )
    return path


__all__ = [
    "find_input",
    "read_puzzle",
    "write_report",
    "write_coords",
    "write_layout_view_html",
]
