import pytest

pytest.importorskip("ortools")
cp_sat = pytest.importorskip("solver.cp_sat")

from models import Region
from shapes import build_orientation_table
from solver.packing import can_fit_all

try_pack_cp_sat = cp_sat.try_pack_cp_sat

MONOMINO = [(0, 0)]
DOMINO = [(0, 0), (0, 1)]
L_TROMINO = [(0, 0), (1, 0), (1, 1)]
O_TETROMINO = [(0, 0), (0, 1), (1, 0), (1, 1)]
T_TETROMINO = [(0, 0), (0, 1), (0, 2), (1, 1)]
SQUARE_3 = [(r, c) for r in range(3) for c in range(3)]


@pytest.mark.parametrize(
    "shapes,region,expected",
    [
        ([MONOMINO], Region(2, 2, ((0, 4),)), True),
        ([L_TROMINO], Region(3, 2, ((0, 2),)), True),
        ([O_TETROMINO], Region(3, 3, ((0, 2),)), False),
        ([T_TETROMINO], Region(4, 2, ((0, 2),)), False),
        ([T_TETROMINO], Region(4, 4, ((0, 4),)), True),
        ([DOMINO, O_TETROMINO], Region(3, 2, ((0, 1), (1, 1))), True),
    ],
)
def test_cp_sat_agrees_with_backtracking(shapes, region, expected):
    table = build_orientation_table(shapes)
    verdict, reason = try_pack_cp_sat(region, table, max_seconds=10.0)
    assert verdict is expected, reason
    assert can_fit_all(region, table) is expected


def test_cp_sat_short_circuits_on_area():
    table = build_orientation_table([SQUARE_3])
    verdict, reason = try_pack_cp_sat(Region(4, 4, ((0, 2),)), table, max_seconds=1.0)
    assert verdict is False
    assert reason == "area exceeded"


def test_cp_sat_shape_that_fits_nowhere():
    table = build_orientation_table([SQUARE_3])
    verdict, reason = try_pack_cp_sat(Region(2, 8, ((0, 1),)), table, max_seconds=1.0)
    assert verdict is False
    assert "fits nowhere" in reason


def test_cp_sat_empty_region_is_trivially_feasible():
    table = build_orientation_table([MONOMINO])
    verdict, _ = try_pack_cp_sat(Region(1, 1, ((0, 0),)), table)
    assert verdict is True
