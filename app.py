# app.py: HTTP front end for the region fitter
from __future__ import annotations
import os
import time
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, request, send_from_directory, jsonify

from config import CFG
from io_files import write_coords, write_layout_view_html, write_report
from models import RegionOutcome
from puzzle_parser import PuzzleParseError, parse_puzzle
from render import render_placement
from solver.evaluator import count_fitting, evaluate_regions_detailed

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    set_done,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

LAST_RESULT: Dict[str, Any] = {
    "ok": False,
    "fit_count": 0,
    "region_count": 0,
    "regions": [],
    "elapsed_str": "0s",
    "report_filename": "",
    "layout_filename": "",
    "coords_filename": "",
}

app = Flask(__name__)
app.config.setdefault("OUTPUT_DIR", BASE_DIR)

_INDEX_HTML = """<!doctype html>
<html><head><meta charset='utf-8'><title>Region fitter</title></head>
<body>
<h1>Region fitter</h1>
<form method='post' action='/solve' enctype='multipart/form-data'>
<p><textarea name='puzzle' rows='20' cols='60' placeholder='0:&#10;###&#10;##.&#10;&#10;4x4: 2'></textarea></p>
<p>or upload: <input type='file' name='puzzle_file'></p>
<p><button type='submit'>Solve</button></p>
</form>
<p>Progress: <a href='/progress'>/progress</a></p>
</body></html>"""


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return "0s"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _output_dir() -> str:
    return str(app.config.get("OUTPUT_DIR") or BASE_DIR)


def _puzzle_text_from_request() -> Optional[str]:
    payload = request.get_json(silent=True)
    if isinstance(payload, dict) and isinstance(payload.get("puzzle"), str):
        return payload["puzzle"]
    upload = request.files.get("puzzle_file") or request.files.get("puzzle")
    if upload is not None:
        return upload.read().decode("utf-8", errors="replace")
    text = request.form.get("puzzle")
    if text:
        return text
    if request.data:
        return request.get_data(as_text=True)
    return None


def _numeric_option(name: str, cast):
    payload = request.get_json(silent=True)
    raw = None
    if isinstance(payload, dict):
        raw = payload.get(name)
    if raw is None:
        raw = request.form.get(name) or request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise PuzzleParseError(f"option {name!r} must be numeric, got {raw!r}")


def _outcome_payload(o: RegionOutcome) -> Dict[str, Any]:
    return {
        "index": o.index,
        "label": o.region.display_label(),
        "width": o.region.width,
        "height": o.region.height,
        "ok": o.ok,
        "reason": o.reason,
        "steps": o.steps,
        "elapsed_sec": round(o.elapsed_sec, 4),
        "cross_check": o.cross_check,
        "notes": list(o.notes),
    }


def _write_artifacts(outcomes: List[RegionOutcome]) -> Tuple[str, str, str]:
    out_dir = _output_dir()
    report_path = write_report(outcomes, out_dir)
    first = next((o for o in outcomes if o.ok and o.placements), None)
    if first is None:
        return os.path.basename(report_path), "", ""
    svg, legend = render_placement(first.placements, first.region.width, first.region.height)
    layout_path = write_layout_view_html(
        svg, legend, out_dir, title=f"Region {first.region.display_label()}"
    )
    coords_path = write_coords(first.placements, out_dir)
    return (
        os.path.basename(report_path),
        os.path.basename(layout_path),
        os.path.basename(coords_path),
    )


@app.route("/")
def index():
    return _INDEX_HTML


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    t0 = time.time()

    try:
        text = _puzzle_text_from_request()
        if not text:
            raise PuzzleParseError("no puzzle text in request (use field 'puzzle')")
        puzzle = parse_puzzle(text)
        workers = _numeric_option("workers", int)
        time_limit = _numeric_option("time_limit", float)
    except PuzzleParseError as e:
        set_done(False, reason=f"Bad puzzle: {e}")
        return jsonify({"ok": False, "error": str(e)}), 400

    outcomes = evaluate_regions_detailed(
        puzzle.shapes,
        puzzle.regions,
        workers=workers,
        time_limit=time_limit,
        keep_placements=True,
    )
    fit = count_fitting(outcomes)
    report_name, layout_name, coords_name = _write_artifacts(outcomes)

    LAST_RESULT.update({
        "ok": True,
        "fit_count": fit,
        "region_count": len(outcomes),
        "regions": [_outcome_payload(o) for o in outcomes],
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "report_filename": report_name,
        "layout_filename": layout_name,
        "coords_filename": coords_name,
    })
    return jsonify(LAST_RESULT)


@app.route("/result/latest")
def result_latest():
    return jsonify(LAST_RESULT)


@app.route("/download/report")
def download_report():
    return send_from_directory(_output_dir(), CFG.REPORT_OUT, as_attachment=True)


@app.route("/download/coords")
def download_coords():
    return send_from_directory(_output_dir(), CFG.COORDS_OUT, as_attachment=True)


@app.route("/download/html")
def download_html():
    return send_from_directory(_output_dir(), CFG.LAYOUT_HTML, as_attachment=True)


@app.route("/progress")
def progress():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)
