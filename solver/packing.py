# solver/packing.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from models import CanonicalShape, OrientationTable, Placed, Region
from shapes import cell_count, extents

TraceFn = Callable[[int, int, int, int], None]


@dataclass
class SearchFrame:
    """Per-depth cursor: the last (orientation, row, col) tried for one instance.

    ``col == -1`` means nothing has been tried yet at this depth. ``placed`` is
    set while the cells of the last accepted candidate are marked on the grid.
    """

    shape: int
    orientation: int = 0
    row: int = 0
    col: int = -1
    placed: bool = False


def expand_instances(region: Region) -> List[int]:
    """Flatten region counts into one shape-type index per instance."""
    out: List[int] = []
    for idx, count in region.counts:
        out.extend([idx] * int(count))
    return out


def required_cells(region: Region, table: OrientationTable) -> int:
    return sum(int(count) * cell_count(table[idx][0]) for idx, count in region.counts)


def _can_place(grid: List[bytearray], orientation: CanonicalShape, row: int, col: int, W: int, H: int) -> bool:
    for dr, dc in orientation:
        r = row + dr
        c = col + dc
        if r < 0 or r >= H or c < 0 or c >= W or grid[r][c]:
            return False
    return True


def _place(grid: List[bytearray], orientation: CanonicalShape, row: int, col: int) -> None:
    for dr, dc in orientation:
        grid[row + dr][col + dc] = 1


def _remove(grid: List[bytearray], orientation: CanonicalShape, row: int, col: int) -> None:
    for dr, dc in orientation:
        grid[row + dr][col + dc] = 0


def pack_instances(
    W: int,
    H: int,
    shapes: Sequence[int],
    table: OrientationTable,
    *,
    deadline: Optional[float] = None,
    node_limit: Optional[int] = None,
    stats: Optional[Dict[str, object]] = None,
    trace: Optional[TraceFn] = None,
) -> Optional[List[Placed]]:
    """Place every instance in ``shapes`` (shape-type indices) on a W×H grid.

    Returns one ``Placed`` per instance on success and ``None`` when the
    search is exhausted or stopped by ``deadline`` / ``node_limit``. No area
    pre-check happens here; see :func:`find_placement`.

    The search walks a stack of :class:`SearchFrame` records instead of
    recursing. A frame resumes at the candidate right after its last attempt
    (next column, then next row, then next orientation), so each
    (orientation, anchor) pair at a depth is evaluated exactly once for the
    lifetime of that frame. ``trace`` receives ``(depth, orientation, row,
    col)`` for every evaluated candidate.
    """

    if stats is None:
        stats = {}
    stats.update({
        "steps": 0,
        "placements": 0,
        "backtracks": 0,
        "max_depth": 0,
        "timed_out": False,
        "node_limit_hit": False,
    })

    n = len(shapes)
    if n == 0:
        stats["reason"] = "solved"
        return []

    grid = [bytearray(W) for _ in range(H)]
    bounds: Dict[int, Tuple[Tuple[int, int], ...]] = {
        idx: tuple(extents(o) for o in table[idx]) for idx in set(shapes)
    }
    limit = max(0, int(node_limit or 0))

    steps = 0
    aborted: Optional[str] = None

    def _budget_exceeded() -> bool:
        nonlocal aborted
        if limit and steps > limit:
            aborted = "node_limit"
            return True
        if deadline is not None and time.time() >= deadline:
            aborted = "time_limit"
            return True
        return False

    def _scan(depth: int, frame: SearchFrame) -> Optional[Tuple[int, int, int]]:
        nonlocal steps
        orientations = table[frame.shape]
        extent_list = bounds[frame.shape]
        oi, r, c = frame.orientation, frame.row, frame.col + 1
        while oi < len(orientations):
            orientation = orientations[oi]
            max_row, max_col = extent_list[oi]
            last_r = H - 1 - max_row
            last_c = W - 1 - max_col
            while r <= last_r:
                while c <= last_c:
                    steps += 1
                    if _budget_exceeded():
                        return None
                    if trace is not None:
                        trace(depth, oi, r, c)
                    if _can_place(grid, orientation, r, c, W, H):
                        return oi, r, c
                    c += 1
                r += 1
                c = 0
            oi += 1
            r = 0
            c = 0
        return None

    frames: List[SearchFrame] = [SearchFrame(shapes[0])]
    solved = False
    while frames:
        depth = len(frames) - 1
        frame = frames[-1]
        orientations = table[frame.shape]

        # grid must not hold this depth's old placement while scanning on
        if frame.placed:
            _remove(grid, orientations[frame.orientation], frame.row, frame.col)
            frame.placed = False

        hit = _scan(depth, frame)
        if aborted:
            break
        if hit is None:
            frames.pop()
            stats["backtracks"] = int(stats["backtracks"]) + 1
            continue

        frame.orientation, frame.row, frame.col = hit
        _place(grid, orientations[frame.orientation], frame.row, frame.col)
        frame.placed = True
        stats["placements"] = int(stats["placements"]) + 1
        if depth + 1 > int(stats["max_depth"]):
            stats["max_depth"] = depth + 1

        if depth == n - 1:
            solved = True
            break
        frames.append(SearchFrame(shapes[depth + 1]))

    stats["steps"] = steps
    if solved:
        stats["reason"] = "solved"
        return [
            Placed(i, f.shape, f.orientation, f.row, f.col, table[f.shape][f.orientation])
            for i, f in enumerate(frames)
        ]
    if aborted == "time_limit":
        stats["timed_out"] = True
    elif aborted == "node_limit":
        stats["node_limit_hit"] = True
    stats["reason"] = aborted or "no_placement"
    return None


def find_placement(
    region: Region,
    table: OrientationTable,
    *,
    deadline: Optional[float] = None,
    node_limit: Optional[int] = None,
    stats: Optional[Dict[str, object]] = None,
    trace: Optional[TraceFn] = None,
) -> Optional[List[Placed]]:
    """Witness placement for ``region`` or ``None`` if none was found.

    Regions whose required cell total exceeds their area are rejected before
    any grid or frame is created. The most recent statistics are kept on
    ``find_placement.last_stats``.
    """

    local: Dict[str, object] = {
        "board": (region.width, region.height),
        "instances": region.instance_count,
        "steps": 0,
        "placements": 0,
        "backtracks": 0,
        "max_depth": 0,
        "timed_out": False,
        "node_limit_hit": False,
    }

    needed = required_cells(region, table)
    local["required_cells"] = needed
    if needed > region.area:
        local["reason"] = "area_exceeded"
        result = None
    else:
        result = pack_instances(
            region.width,
            region.height,
            expand_instances(region),
            table,
            deadline=deadline,
            node_limit=node_limit,
            stats=local,
            trace=trace,
        )

    local["result"] = "solved" if result is not None else "failed"
    setattr(find_placement, "last_stats", dict(local))
    if stats is not None:
        stats.update(local)
    return result


def can_fit_all(
    region: Region,
    table: OrientationTable,
    *,
    deadline: Optional[float] = None,
    node_limit: Optional[int] = None,
    stats: Optional[Dict[str, object]] = None,
) -> bool:
    return find_placement(
        region, table, deadline=deadline, node_limit=node_limit, stats=stats
    ) is not None


__all__ = [
    "SearchFrame",
    "expand_instances",
    "required_cells",
    "pack_instances",
    "find_placement",
    "can_fit_all",
]
