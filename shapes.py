# shapes.py: canonical forms and orientations of polyominoes
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

from models import Cell, CanonicalShape, OrientationSet, OrientationTable


def normalize(shape: Iterable[Cell]) -> CanonicalShape:
    """Translate ``shape`` so its minimum row and column are zero, then sort.

    The result is ordered by (row, col) and is therefore usable as a dict key
    or for equality checks between shapes. Applying it twice is a no-op.
    """
    cells = [(int(r), int(c)) for r, c in shape]
    if not cells:
        raise ValueError("cannot normalize an empty shape")
    min_row = min(r for r, _ in cells)
    min_col = min(c for _, c in cells)
    return tuple(sorted((r - min_row, c - min_col) for r, c in cells))


def rotate90(shape: Iterable[Cell]) -> Tuple[Cell, ...]:
    return tuple((c, -r) for r, c in shape)


def reflect(shape: Iterable[Cell]) -> Tuple[Cell, ...]:
    return tuple((r, -c) for r, c in shape)


def rotations(shape: Iterable[Cell]) -> Iterator[Tuple[Cell, ...]]:
    """Yield the shape followed by its three successive quarter turns."""
    current = tuple(shape)
    for i in range(4):
        if i > 0:
            current = rotate90(current)
        yield current


def all_orientations(shape: Iterable[Cell]) -> OrientationSet:
    """Distinct canonical orientations of ``shape``, in first-seen order.

    The four rotations of the shape come first, then the four rotations of its
    mirror image. Symmetric shapes collapse to fewer than eight entries.
    """
    base = tuple(shape)
    seen: Dict[CanonicalShape, None] = {}
    for source in (base, reflect(base)):
        for rotated in rotations(source):
            seen.setdefault(normalize(rotated), None)
    return tuple(seen)


def build_orientation_table(shapes: Sequence[Iterable[Cell]]) -> OrientationTable:
    return tuple(all_orientations(s) for s in shapes)


def cell_count(shape: Sequence[Cell]) -> int:
    return len(shape)


def extents(orientation: Sequence[Cell]) -> Tuple[int, int]:
    """(max row offset, max col offset) of a canonical orientation."""
    return (
        max((r for r, _ in orientation), default=0),
        max((c for _, c in orientation), default=0),
    )


def shape_from_rows(rows: Sequence[str], filled: str = "#") -> List[Cell]:
    """Cells of a text picture such as ``["##.", ".##"]``."""
    return [
        (r, c)
        for r, line in enumerate(rows)
        for c, ch in enumerate(line)
        if ch == filled
    ]


def shape_to_rows(shape: Iterable[Cell]) -> List[str]:
    canon = normalize(shape)
    max_r, max_c = extents(canon)
    grid = [["."] * (max_c + 1) for _ in range(max_r + 1)]
    for r, c in canon:
        grid[r][c] = "#"
    return ["".join(row) for row in grid]


__all__ = [
    "normalize",
    "rotate90",
    "reflect",
    "rotations",
    "all_orientations",
    "build_orientation_table",
    "cell_count",
    "extents",
    "shape_from_rows",
    "shape_to_rows",
]
