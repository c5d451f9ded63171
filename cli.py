# cli.py: count the regions of a puzzle file that can hold their presents
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from config import CFG
from io_files import find_input, read_puzzle, write_report
from puzzle_parser import PuzzleParseError, parse_puzzle
from solver.evaluator import count_fitting, evaluate_regions_detailed

log = logging.getLogger("polyfit")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Decide which regions can hold all of their polyomino shapes."
    )
    ap.add_argument("input", nargs="?", default=None,
                    help=f"Puzzle file (default: {CFG.INPUT_FILE}, then day12/{CFG.INPUT_FILE})")
    ap.add_argument("--workers", type=int, default=None,
                    help=f"Region evaluation processes (default: {CFG.WORKERS})")
    ap.add_argument("--time-limit", type=float, default=None,
                    help="Per-region time limit in seconds (default: none)")
    ap.add_argument("--node-limit", type=int, default=None,
                    help="Per-region candidate budget (default: none)")
    ap.add_argument("--cross-check", action="store_true",
                    help="Confirm every verdict with the OR-Tools CP-SAT model")
    ap.add_argument("--report", metavar="DIR", default=None,
                    help="Also write the per-region report into DIR")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, CFG.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
    )

    try:
        path = find_input(args.input)
        puzzle = parse_puzzle(read_puzzle(path))
    except (OSError, PuzzleParseError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    log.debug("Loaded %d shapes and %d regions from %s",
              len(puzzle.shapes), len(puzzle.regions), path)

    outcomes = evaluate_regions_detailed(
        puzzle.shapes,
        puzzle.regions,
        workers=args.workers,
        time_limit=args.time_limit,
        node_limit=args.node_limit,
        cross_check=args.cross_check,
    )

    if args.report:
        report_path = write_report(outcomes, os.path.abspath(args.report))
        log.info("Report written to %s", report_path)

    print(f"Part 1: {count_fitting(outcomes)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
