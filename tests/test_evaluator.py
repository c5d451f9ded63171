import pytest

import progress
from models import Region, RegionOutcome
from shapes import build_orientation_table
from solver import evaluator
from solver.evaluator import (
    count_fitting,
    evaluate_regions,
    evaluate_regions_detailed,
    solve_region,
)

MONOMINO = [(0, 0)]
L_TROMINO = [(0, 0), (1, 0), (1, 1)]
O_TETROMINO = [(0, 0), (0, 1), (1, 0), (1, 1)]
SHAPES = [MONOMINO, L_TROMINO, O_TETROMINO]

REGIONS = [
    Region(2, 2, ((0, 4),), "2x2"),                 # exact monomino tiling
    Region(3, 2, ((1, 2),), "3x2"),                 # interlocking L pair
    Region(4, 4, ((2, 5),), "4x4"),                 # area exceeded
    Region(3, 3, ((2, 2),), "3x3"),                 # squares always overlap
    Region(5, 5, ((0, 1), (1, 2), (2, 2)), "5x5"),
]
EXPECTED = [True, True, False, False, True]


def test_evaluate_regions_returns_bools_in_order():
    assert evaluate_regions(SHAPES, REGIONS, workers=1) == EXPECTED


def test_detailed_outcomes_carry_reasons():
    outcomes = evaluate_regions_detailed(SHAPES, REGIONS, workers=1, keep_placements=True)
    assert [o.index for o in outcomes] == list(range(len(REGIONS)))
    assert [o.reason for o in outcomes] == [
        "solved", "solved", "area_exceeded", "no_placement", "solved",
    ]
    assert outcomes[2].steps == 0
    assert outcomes[3].steps == 20
    assert len(outcomes[4].placements) == 5
    assert outcomes[3].placements is None


def test_count_fitting_accepts_bools_and_outcomes():
    outcomes = evaluate_regions_detailed(SHAPES, REGIONS, workers=1)
    assert count_fitting(outcomes) == 3
    assert count_fitting(EXPECTED) == 3


def test_parallel_workers_match_serial():
    assert evaluate_regions(SHAPES, REGIONS, workers=2) == EXPECTED


def test_node_limit_marks_region_as_not_fitting():
    outcomes = evaluate_regions_detailed(SHAPES, [REGIONS[3]], workers=1, node_limit=3)
    assert outcomes[0].ok is False
    assert outcomes[0].reason == "node_limit"


def test_config_supplies_default_limits(monkeypatch):
    monkeypatch.setattr(evaluator.CFG, "NODE_LIMIT", 3, raising=False)
    outcomes = evaluate_regions_detailed(SHAPES, [REGIONS[3]], workers=1)
    assert outcomes[0].reason == "node_limit"


def test_prebuilt_table_is_used_read_only():
    table = build_orientation_table(SHAPES)
    snapshot = repr(table)
    evaluate_regions_detailed(SHAPES, REGIONS, workers=1, table=table)
    assert repr(table) == snapshot


def test_solve_region_uses_a_fresh_grid_each_time():
    table = build_orientation_table(SHAPES)
    first = solve_region(0, REGIONS[1], table, keep_placements=True)
    second = solve_region(0, REGIONS[1], table, keep_placements=True)
    assert isinstance(first, RegionOutcome)
    assert first.ok and second.ok
    assert first.placements == second.placements


def test_progress_tracks_region_results():
    progress.reset()
    evaluate_regions_detailed(SHAPES, REGIONS, workers=1)
    snap = progress.snapshot()
    assert snap["regions_total"] == len(REGIONS)
    assert snap["regions_done"] == len(REGIONS)
    assert snap["fit_count"] == 3
    assert snap["done"] is True
    assert snap["status"] == "Solved"


def test_cross_check_agrees_with_cp_sat():
    pytest.importorskip("ortools")
    outcomes = evaluate_regions_detailed(
        SHAPES, REGIONS, workers=1, cross_check=True, cross_check_seconds=10.0
    )
    assert [o.cross_check for o in outcomes] == EXPECTED
    assert all(not o.notes for o in outcomes)


@pytest.mark.parametrize("limit", [-1, 0])
def test_non_positive_node_limit_means_unlimited(limit):
    outcomes = evaluate_regions_detailed(
        [MONOMINO], [Region(2, 2, ((0, 1),), "2x2")], workers=1, node_limit=limit
    )
    assert outcomes[0].ok is True
    assert outcomes[0].reason == "solved"


def test_negative_node_limit_from_config(monkeypatch):
    monkeypatch.setattr(evaluator.CFG, "NODE_LIMIT", -1, raising=False)
    assert evaluate_regions(SHAPES, REGIONS, workers=1) == EXPECTED


def test_parallel_run_reports_current_region(monkeypatch):
    seen = []
    monkeypatch.setattr(evaluator, "set_region", seen.append)
    assert evaluate_regions(SHAPES, REGIONS, workers=2) == EXPECTED
    assert seen[0] == REGIONS[0].display_label()
    assert set(seen) <= {r.display_label() for r in REGIONS}


def test_cross_check_updates_status_and_message(monkeypatch):
    pytest.importorskip("ortools")
    statuses, messages = [], []
    monkeypatch.setattr(evaluator, "set_status", statuses.append)
    monkeypatch.setattr(evaluator, "set_message", messages.append)
    evaluate_regions_detailed(SHAPES, REGIONS[:2], workers=1, cross_check=True)
    assert statuses == ["Cross-checking"]
    assert messages == ["cp-sat on region 2x2", "cp-sat on region 3x2"]
