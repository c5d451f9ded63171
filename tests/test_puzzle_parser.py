import pytest

from models import Region
from puzzle_parser import (
    InvalidRegionSpec,
    InvalidShapeSpec,
    PuzzleParseError,
    parse_puzzle,
    parse_region_line,
    validate_region,
)
from shapes import build_orientation_table, normalize
from solver.evaluator import count_fitting, evaluate_regions
from solver.packing import can_fit_all

SAMPLE = """\
0:
###
##.
##.

1:
###
##.
.##

2:
.##
###
##.

3:
##.
###
##.

4:
###
#..
###

5:
###
.#.
###

4x4: 0 0 0 0 2 0
12x5: 1 0 1 0 2 2
12x5: 1 0 1 0 3 2
"""


def test_parse_sample_structure():
    puzzle = parse_puzzle(SAMPLE)
    assert len(puzzle.shapes) == 6
    assert all(len(s) == 7 for s in puzzle.shapes)
    assert normalize(puzzle.shapes[4]) == (
        (0, 0), (0, 1), (0, 2), (1, 0), (2, 0), (2, 1), (2, 2),
    )
    assert [r.display_label() for r in puzzle.regions] == ["4x4", "12x5", "12x5"]
    assert puzzle.regions[1].counts == ((0, 1), (1, 0), (2, 1), (3, 0), (4, 2), (5, 2))
    assert puzzle.regions[2].instance_count == 7


def test_sample_first_region_fits():
    puzzle = parse_puzzle(SAMPLE)
    table = build_orientation_table(puzzle.shapes)
    assert can_fit_all(puzzle.regions[0], table)


def test_sample_second_region_fits():
    puzzle = parse_puzzle(SAMPLE)
    table = build_orientation_table(puzzle.shapes)
    stats = {}
    assert can_fit_all(puzzle.regions[1], table, stats=stats)
    assert stats["reason"] == "solved"


def test_sample_third_region_is_infeasible_for_cp_sat():
    pytest.importorskip("ortools")
    from solver.cp_sat import try_pack_cp_sat

    puzzle = parse_puzzle(SAMPLE)
    table = build_orientation_table(puzzle.shapes)
    verdict, reason = try_pack_cp_sat(puzzle.regions[2], table, max_seconds=60.0)
    assert verdict is False, reason


@pytest.mark.slow
def test_sample_two_of_three_regions_fit():
    puzzle = parse_puzzle(SAMPLE)
    results = evaluate_regions(puzzle.shapes, puzzle.regions, workers=1)
    assert results == [True, True, False]
    assert count_fitting(results) == 2


def test_windows_line_endings_and_missing_trailing_counts():
    text = "0:\r\n#\r\n\r\n1:\r\n##\r\n\r\n3x1: 1\r\n"
    puzzle = parse_puzzle(text)
    assert len(puzzle.shapes) == 2
    assert puzzle.regions == [Region(3, 1, ((0, 1),), "3x1")]


def test_region_line_without_blank_separator_closes_shape():
    puzzle = parse_puzzle("0:\n##\n2x2: 2")
    assert puzzle.shapes == [[(0, 0), (0, 1)]]
    assert puzzle.regions[0].counts == ((0, 2),)


@pytest.mark.parametrize(
    "line",
    [
        "0x3: 1",
        "3x-2: 1",
        "3x3: 1 -1",
        "3x3: 1 1 1",
        "3x3: one",
    ],
)
def test_invalid_region_lines(line):
    with pytest.raises(InvalidRegionSpec):
        parse_region_line(line, n_shapes=2)


def test_invalid_region_reports_line_number():
    with pytest.raises(InvalidRegionSpec) as exc:
        parse_puzzle("0:\n#\n\n2x2: 1\n2x2: 1 4\n")
    assert exc.value.line_no == 5
    assert "line 5" in str(exc.value)


def test_validate_region_for_programmatic_input():
    assert validate_region(Region(2, 2, ((0, 3),)), n_shapes=1).width == 2
    with pytest.raises(InvalidRegionSpec):
        validate_region(Region(2, 2, ((1, 1),)), n_shapes=1)


@pytest.mark.parametrize(
    "text",
    [
        "0:\n...\n\n1x1: 0",
        "0:\n#x#\n",
        "0:\n#\n0:\n#\n",
        "1:\n#\n",
    ],
)
def test_invalid_shapes(text):
    with pytest.raises(InvalidShapeSpec):
        parse_puzzle(text)


def test_stray_text_and_empty_input():
    with pytest.raises(PuzzleParseError):
        parse_puzzle("")
    with pytest.raises(PuzzleParseError):
        parse_puzzle("hello\n")
    assert issubclass(InvalidRegionSpec, ValueError)
