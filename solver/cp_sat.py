import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from ortools.sat.python import cp_model as _cp

from config import CFG
from models import Cell, OrientationTable, Region
from shapes import cell_count, extents

log = logging.getLogger(__name__)

# ---------------- helpers ----------------

def _placement_options(
    W: int, H: int, table: OrientationTable, shape_idx: int
) -> List[Tuple[int, int, int, Tuple[Cell, ...]]]:
    """Every in-bounds (orientation, row, col, absolute cells) for one shape type."""
    out: List[Tuple[int, int, int, Tuple[Cell, ...]]] = []
    for oi, orientation in enumerate(table[shape_idx]):
        max_row, max_col = extents(orientation)
        for r in range(H - max_row):
            for c in range(W - max_col):
                cells = tuple((r + dr, c + dc) for dr, dc in orientation)
                out.append((oi, r, c, cells))
    return out


def try_pack_cp_sat(
    region: Region,
    table: OrientationTable,
    max_seconds: Optional[float] = None,
) -> Tuple[Optional[bool], str]:
    """Decide ``region`` with CP-SAT, independently of the backtracking packer.

    One Boolean per (shape type, orientation, anchor); the chosen placements
    of each type must add up to its count and every cell is covered at most
    once. Instances of one type are interchangeable, so counting placements
    per type is enough.

    Returns ``(True, reason)`` / ``(False, reason)`` when proven and
    ``(None, reason)`` when the time box runs out first.
    """

    W, H = int(region.width), int(region.height)
    seconds = float(max_seconds if max_seconds is not None else CFG.CP_SAT_SECONDS)

    needed = sum(int(n) * cell_count(table[idx][0]) for idx, n in region.counts)
    if needed > W * H:
        return False, "area exceeded"
    if region.instance_count == 0:
        return True, "nothing to place"

    m = _cp.CpModel()
    cell_vars: Dict[Cell, List[_cp.IntVar]] = defaultdict(list)

    for idx, count in region.counts:
        count = int(count)
        if count <= 0:
            continue
        options = _placement_options(W, H, table, idx)
        if not options:
            return False, f"shape {idx} fits nowhere"
        type_vars = []
        for oi, r, c, cells in options:
            v = m.NewBoolVar(f"s{idx}_o{oi}_r{r}_c{c}")
            type_vars.append(v)
            for cell in cells:
                cell_vars[cell].append(v)
        m.Add(sum(type_vars) == count)

    for cell, vars_list in cell_vars.items():
        if len(vars_list) > 1:
            m.AddAtMostOne(vars_list)

    solver = _cp.CpSolver()
    solver.parameters.max_time_in_seconds = seconds
    solver.parameters.max_memory_in_mb = int(getattr(CFG, "MAX_MEMORY_MB", 2048))
    solver.parameters.num_search_workers = max(1, int(getattr(CFG, "CP_SAT_WORKERS", 1)))
    solver.parameters.log_search_progress = False

    res = solver.Solve(m)
    if res in (_cp.OPTIMAL, _cp.FEASIBLE):
        return True, "feasible"
    if res == _cp.INFEASIBLE:
        return False, "proven infeasible"
    if res == _cp.MODEL_INVALID:
        log.error("CP-SAT rejected model for region %s", region.display_label())
        return None, "model invalid"
    log.warning(
        "CP-SAT undecided for region %s after %.1fs", region.display_label(), seconds
    )
    return None, "time limit"


__all__ = ["try_pack_cp_sat"]
