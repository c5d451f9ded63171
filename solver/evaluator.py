# Region evaluator: one independent packing search per region
from __future__ import annotations

import logging
import time
import multiprocessing as mp
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Iterable, List, Optional, Sequence, Union

from config import CFG
from models import Cell, OrientationTable, Region, RegionOutcome
from progress import (
    record_region,
    set_done,
    set_message,
    set_region,
    set_status,
    start_run,
)
from shapes import build_orientation_table
from solver.packing import find_placement

log = logging.getLogger(__name__)

# Worker-process copy of the orientation table, installed once per worker.
_WORKER_TABLE: Optional[OrientationTable] = None


def _init_worker(table: OrientationTable) -> None:
    global _WORKER_TABLE
    _WORKER_TABLE = table


def _resolve_limit(value: Optional[float], default: float) -> Optional[float]:
    v = default if value is None else value
    try:
        v = float(v)
    except (TypeError, ValueError):
        return None
    return v if v > 0 else None


def _resolve_node_limit(value: Optional[int], default: int) -> Optional[int]:
    v = default if value is None else value
    try:
        v = int(v)
    except (TypeError, ValueError):
        return None
    return v if v > 0 else None


def solve_region(
    index: int,
    region: Region,
    table: OrientationTable,
    *,
    time_limit: Optional[float] = None,
    node_limit: Optional[int] = None,
    keep_placements: bool = False,
) -> RegionOutcome:
    """Search one region on a fresh grid and wrap the verdict."""
    t0 = time.time()
    deadline = (t0 + time_limit) if time_limit else None
    stats: dict = {}
    placements = find_placement(
        region, table, deadline=deadline, node_limit=node_limit, stats=stats
    )
    elapsed = time.time() - t0
    reason = str(stats.get("reason") or ("solved" if placements is not None else "no_placement"))
    if reason in ("time_limit", "node_limit"):
        log.warning(
            "Region %s stopped early (%s) after %s steps",
            region.display_label(), reason, stats.get("steps"),
        )
    return RegionOutcome(
        index=index,
        region=region,
        ok=placements is not None,
        reason=reason,
        steps=int(stats.get("steps") or 0),
        elapsed_sec=elapsed,
        placements=placements if keep_placements else None,
    )


def _solve_in_worker(index: int, region: Region, time_limit, node_limit, keep_placements) -> RegionOutcome:
    if _WORKER_TABLE is None:
        raise RuntimeError("worker started without an orientation table")
    return solve_region(
        index,
        region,
        _WORKER_TABLE,
        time_limit=time_limit,
        node_limit=node_limit,
        keep_placements=keep_placements,
    )


def _cross_check(outcome: RegionOutcome, table: OrientationTable, seconds: Optional[float]) -> None:
    if outcome.reason in ("time_limit", "node_limit"):
        return
    from solver.cp_sat import try_pack_cp_sat

    verdict, cp_reason = try_pack_cp_sat(outcome.region, table, seconds)
    outcome.cross_check = verdict
    if verdict is None:
        outcome.notes.append(f"cp-sat undecided: {cp_reason}")
    elif verdict != outcome.ok:
        log.error(
            "Solver disagreement on region %s: backtracking=%s cp-sat=%s (%s)",
            outcome.region.display_label(), outcome.ok, verdict, cp_reason,
        )
        outcome.notes.append(f"cp-sat disagrees: {cp_reason}")


def evaluate_regions_detailed(
    shapes: Sequence[Sequence[Cell]],
    regions: Sequence[Region],
    *,
    workers: Optional[int] = None,
    time_limit: Optional[float] = None,
    node_limit: Optional[int] = None,
    keep_placements: bool = False,
    cross_check: bool = False,
    cross_check_seconds: Optional[float] = None,
    table: Optional[OrientationTable] = None,
) -> List[RegionOutcome]:
    """Evaluate every region and return outcomes in input order.

    The orientation table is built once (or taken from ``table``) and shared
    read-only. With ``workers > 1`` regions are farmed out to a spawn-context
    process pool; each worker receives the table once through its initializer.
    """

    if table is None:
        table = build_orientation_table(shapes)
    n_workers = max(1, int(workers if workers is not None else CFG.WORKERS))
    tl = _resolve_limit(time_limit, CFG.TIME_LIMIT)
    nl = _resolve_node_limit(node_limit, CFG.NODE_LIMIT)

    start_run(len(regions))
    log.info(
        "Evaluating %d regions with %d shape types (workers=%d)",
        len(regions), len(table), n_workers,
    )

    outcomes: List[Optional[RegionOutcome]] = [None] * len(regions)

    if n_workers == 1 or len(regions) <= 1:
        for i, region in enumerate(regions):
            set_region(region.display_label())
            outcome = solve_region(
                i, region, table,
                time_limit=tl, node_limit=nl, keep_placements=keep_placements,
            )
            outcomes[i] = outcome
            record_region(
                region.display_label(), outcome.ok,
                reason=outcome.reason, steps=outcome.steps, elapsed=outcome.elapsed_sec,
            )
    else:
        ctx = mp.get_context("spawn")
        with ProcessPoolExecutor(
            max_workers=n_workers,
            mp_context=ctx,
            initializer=_init_worker,
            initargs=(table,),
        ) as pool:
            futures = {
                pool.submit(_solve_in_worker, i, region, tl, nl, keep_placements): i
                for i, region in enumerate(regions)
            }
            # The lowest unfinished index stands in as the current region.
            pending = sorted(futures.values())
            current = pending[0]
            set_region(regions[current].display_label())
            for fut in as_completed(futures):
                outcome = fut.result()
                outcomes[outcome.index] = outcome
                record_region(
                    outcome.region.display_label(), outcome.ok,
                    reason=outcome.reason, steps=outcome.steps, elapsed=outcome.elapsed_sec,
                )
                pending.remove(outcome.index)
                if pending and pending[0] != current:
                    current = pending[0]
                    set_region(regions[current].display_label())

    results = [o for o in outcomes if o is not None]
    if cross_check:
        set_status("Cross-checking")
        for outcome in results:
            set_message(f"cp-sat on region {outcome.region.display_label()}")
            _cross_check(outcome, table, cross_check_seconds)

    fit = count_fitting(results)
    set_done(True, message=f"{fit} of {len(results)} regions fit")
    return results


def evaluate_regions(
    shapes: Sequence[Sequence[Cell]],
    regions: Sequence[Region],
    **kwargs,
) -> List[bool]:
    return [o.ok for o in evaluate_regions_detailed(shapes, regions, **kwargs)]


def count_fitting(results: Iterable[Union[bool, RegionOutcome]]) -> int:
    total = 0
    for r in results:
        ok = r.ok if isinstance(r, RegionOutcome) else bool(r)
        if ok:
            total += 1
    return total


__all__ = [
    "solve_region",
    "evaluate_regions",
    "evaluate_regions_detailed",
    "count_fitting",
]
