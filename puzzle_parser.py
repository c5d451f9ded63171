# puzzle_parser.py: shape blocks and region lines from puzzle text
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from models import Cell, Region
from shapes import shape_from_rows

_SHAPE_HEADER_RE = re.compile(r"^\s*(?P<idx>\d+)\s*:\s*$")
_REGION_RE = re.compile(r"^\s*(?P<w>-?\d+)\s*[xX]\s*(?P<h>-?\d+)\s*:(?P<counts>.*)$")
_SHAPE_ROW_RE = re.compile(r"^[#.]+$")


class PuzzleParseError(ValueError):
    """Raised when puzzle text cannot be turned into shapes and regions."""

    def __init__(self, message: str, line_no: Optional[int] = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


class InvalidShapeSpec(PuzzleParseError):
    pass


class InvalidRegionSpec(PuzzleParseError):
    pass


@dataclass
class Puzzle:
    shapes: List[List[Cell]] = field(default_factory=list)
    regions: List[Region] = field(default_factory=list)


def _to_int(tok: str) -> Optional[int]:
    try:
        return int(tok)
    except (TypeError, ValueError):
        return None


def validate_region(region: Region, n_shapes: int, line_no: Optional[int] = None) -> Region:
    """Check dimensions, shape indices and counts; return the region unchanged."""
    if region.width <= 0 or region.height <= 0:
        raise InvalidRegionSpec(
            f"region {region.display_label()} must have positive dimensions", line_no
        )
    for idx, count in region.counts:
        if idx < 0 or idx >= n_shapes:
            raise InvalidRegionSpec(
                f"region {region.display_label()} references unknown shape {idx} "
                f"({n_shapes} defined)",
                line_no,
            )
        if count < 0:
            raise InvalidRegionSpec(
                f"region {region.display_label()} has negative count {count} for shape {idx}",
                line_no,
            )
    return region


def parse_region_line(line: str, n_shapes: int, line_no: Optional[int] = None) -> Region:
    """Parse ``WxH: c0 c1 ...``; missing trailing counts are zero."""
    m = _REGION_RE.match(line)
    if not m:
        raise InvalidRegionSpec(f"not a region line: {line.strip()!r}", line_no)
    w = _to_int(m.group("w"))
    h = _to_int(m.group("h"))
    if w is None or h is None:
        raise InvalidRegionSpec(f"bad region size in {line.strip()!r}", line_no)

    counts: List[Tuple[int, int]] = []
    for idx, tok in enumerate(m.group("counts").split()):
        n = _to_int(tok)
        if n is None:
            raise InvalidRegionSpec(f"count {tok!r} is not an integer", line_no)
        counts.append((idx, n))

    label = f"{w}x{h}"
    region = Region(width=w, height=h, counts=tuple(counts), label=label)
    return validate_region(region, n_shapes, line_no)


def _finish_shape(
    shapes: Dict[int, List[Cell]], idx: int, rows: Sequence[str], line_no: int
) -> None:
    cells = shape_from_rows(rows)
    if not cells:
        raise InvalidShapeSpec(f"shape {idx} has no '#' cells", line_no)
    if idx in shapes:
        raise InvalidShapeSpec(f"shape {idx} defined twice", line_no)
    shapes[idx] = cells


def parse_puzzle(text: str) -> Puzzle:
    """Parse puzzle text into raw shapes (in index order) and validated regions.

    Shape blocks start with an ``N:`` header followed by ``#``/``.`` rows and
    end at a blank line or the next header. Region lines may appear anywhere
    after the shapes they reference.
    """
    if text is None or not str(text).strip():
        raise PuzzleParseError("puzzle text is empty")

    shapes: Dict[int, List[Cell]] = {}
    region_lines: List[Tuple[int, str]] = []

    current_idx: Optional[int] = None
    current_rows: List[str] = []
    header_line = 0

    for line_no, raw in enumerate(str(text).splitlines(), start=1):
        line = raw.strip()

        if _REGION_RE.match(line):
            if current_idx is not None:
                _finish_shape(shapes, current_idx, current_rows, header_line)
                current_idx, current_rows = None, []
            region_lines.append((line_no, line))
            continue

        m = _SHAPE_HEADER_RE.match(line)
        if m:
            if current_idx is not None:
                _finish_shape(shapes, current_idx, current_rows, header_line)
            current_idx = int(m.group("idx"))
            current_rows = []
            header_line = line_no
            continue

        if not line:
            if current_idx is not None:
                _finish_shape(shapes, current_idx, current_rows, header_line)
                current_idx, current_rows = None, []
            continue

        if current_idx is None:
            raise PuzzleParseError(f"unexpected line {line!r}", line_no)
        if not _SHAPE_ROW_RE.match(line):
            raise InvalidShapeSpec(
                f"shape {current_idx} row {line!r} may only contain '#' and '.'", line_no
            )
        current_rows.append(line)

    if current_idx is not None:
        _finish_shape(shapes, current_idx, current_rows, header_line)

    expected = list(range(len(shapes)))
    if sorted(shapes) != expected:
        raise InvalidShapeSpec(
            f"shape indices must run 0..{len(shapes) - 1}, got {sorted(shapes)}"
        )

    ordered = [shapes[i] for i in expected]
    regions = [parse_region_line(line, len(ordered), line_no) for line_no, line in region_lines]
    return Puzzle(shapes=ordered, regions=regions)


__all__ = [
    "PuzzleParseError",
    "InvalidShapeSpec",
    "InvalidRegionSpec",
    "Puzzle",
    "parse_puzzle",
    "parse_region_line",
    "validate_region",
]
