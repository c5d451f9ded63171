from __future__ import annotations

import json
import logging
import os
import time
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from config import CFG

# ------------------------------
# Thread-safe global progress state
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _log_dir() -> Path:
    configured = Path(CFG.LOG_DIR)
    if configured.is_absolute():
        return configured
    return Path(__file__).resolve().parent / configured


def _state_file_path() -> Path:
    configured = os.environ.get("PROGRESS_STATE_FILE")
    if configured:
        return Path(configured)
    return _log_dir() / "progress_state.json"


STATE_FILE = _state_file_path()
STATE_FILE_TMP = STATE_FILE.with_name(STATE_FILE.name + ".tmp")
_LAST_STATE_MTIME: float = 0.0


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("polyfit.attempt_log")
    if logger.handlers:
        return logger

    log_path = _log_dir() / "solver_attempts.log"
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    except OSError:
        # An unwritable log directory leaves attempt logging disabled.
        logger.handlers.clear()
    return logger


ATTEMPT_LOGGER = _init_logger()


def _log_enabled() -> bool:
    return bool(ATTEMPT_LOGGER.handlers)


def _fmt_seconds(seconds: Optional[float]) -> Optional[str]:
    if seconds is None:
        return None
    try:
        return f"{float(seconds):.2f}s"
    except (TypeError, ValueError):
        return None


def _emit_log(event: str, **fields: Any) -> None:
    if not _log_enabled():
        return
    extras = [
        f"{key}={value}"
        for key, value in fields.items()
        if value is not None and value != ""
    ]
    if extras:
        ATTEMPT_LOGGER.info("%s | %s", event, " ".join(extras))
    else:
        ATTEMPT_LOGGER.info("%s", event)


LOG_STATE: Dict[str, Any] = {
    "run_start": None,
    "region": "",
    "region_start": None,
}

# Single source of truth for progress consumers
PROGRESS: Dict[str, Any] = {
    "status": "Idle",          # Idle | Solving | Solved | Error
    "region": "",              # label of the region being searched, e.g. "12x5"
    "regions_done": 0,
    "regions_total": 0,
    "fit_count": 0,
    "percent": 0.0,            # 0..100 float
    "elapsed_start": None,     # t0 (float) when solving started
    "elapsed": 0.0,            # seconds snapshot
    "message": "",
    "done": False,
    "ok": None,
    "run_id": 0,               # monotonically increasing identifier
}


def _persist_locked() -> None:
    global _LAST_STATE_MTIME
    try:
        STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
        with STATE_FILE_TMP.open("w", encoding="utf-8") as fh:
            json.dump(PROGRESS, fh, ensure_ascii=False, separators=(",", ":"))
        STATE_FILE_TMP.replace(STATE_FILE)
        try:
            _LAST_STATE_MTIME = STATE_FILE.stat().st_mtime
        except OSError:
            _LAST_STATE_MTIME = time.time()
    except OSError:
        # Persistence is best effort; in-memory progress stays authoritative.
        pass


def _load_persisted_locked(force: bool = False) -> None:
    global _LAST_STATE_MTIME
    try:
        stat = STATE_FILE.stat()
    except OSError:
        return
    if not force and stat.st_mtime <= _LAST_STATE_MTIME:
        return
    try:
        with STATE_FILE.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        return
    if not isinstance(data, dict):
        return
    for key in PROGRESS.keys():
        if key in data:
            PROGRESS[key] = data[key]
    _LAST_STATE_MTIME = stat.st_mtime


def _finalize_region_locked(now: float, *, reason: Optional[str] = None) -> None:
    region = LOG_STATE.get("region")
    if not region:
        return
    start = LOG_STATE.get("region_start")
    duration = None
    if isinstance(start, (int, float)):
        duration = max(0.0, float(now) - float(start))
    _emit_log(
        "Region finished",
        region=region,
        duration=_fmt_seconds(duration),
        reason=reason,
    )
    LOG_STATE["region"] = ""
    LOG_STATE["region_start"] = None


# ------------------------------
# Helpers
# ------------------------------

def _now() -> float:
    return time.time()


def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return f"{int(seconds)}s"
    m, s = divmod(int(seconds), 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"


def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = _now() - float(t0)


def _recompute_percent_locked() -> None:
    total = int(PROGRESS.get("regions_total") or 0)
    done = int(PROGRESS.get("regions_done") or 0)
    PROGRESS["percent"] = (100.0 * done / total) if total > 0 else 0.0


def reset() -> None:
    with PROGRESS_LOCK:
        _finalize_region_locked(_now(), reason="reset")
        try:
            current_run_id = int(PROGRESS.get("run_id", 0))
        except (TypeError, ValueError):
            current_run_id = 0
        PROGRESS.update({
            "status": "Idle",
            "region": "",
            "regions_done": 0,
            "regions_total": 0,
            "fit_count": 0,
            "percent": 0.0,
            "elapsed_start": None,
            "elapsed": 0.0,
            "message": "",
            "done": False,
            "ok": None,
            "run_id": current_run_id + 1,
        })
        LOG_STATE.update({"run_start": None, "region": "", "region_start": None})
        _emit_log("Progress reset")
        _persist_locked()


def start_run(regions_total: Any) -> None:
    try:
        total = max(0, int(regions_total))
    except (TypeError, ValueError):
        total = 0
    with PROGRESS_LOCK:
        now = _now()
        PROGRESS.update({
            "status": "Solving",
            "regions_total": total,
            "regions_done": 0,
            "fit_count": 0,
            "percent": 0.0,
            "elapsed_start": now,
            "elapsed": 0.0,
            "done": False,
            "ok": None,
        })
        LOG_STATE["run_start"] = now
        _emit_log("Run started", regions=total)
        _persist_locked()


# ------------------------------
# Setters (tolerant)
# ------------------------------

def set_status(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["status"] = str(v)
        _persist_locked()


def set_message(msg: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["message"] = "" if msg is None else str(msg)
        _persist_locked()


def set_region(label: Any) -> None:
    with PROGRESS_LOCK:
        now = _now()
        label_str = "" if label is None else str(label)
        if LOG_STATE.get("region") and LOG_STATE["region"] != label_str:
            _finalize_region_locked(now, reason="switch")
        PROGRESS["region"] = label_str
        if label_str:
            LOG_STATE["region"] = label_str
            LOG_STATE["region_start"] = now
            _emit_log("Region started", region=label_str)
        _touch_elapsed_locked()
        _persist_locked()


def record_region(label: Any, ok: Any, *, reason: Any = None, steps: Any = None,
                  elapsed: Any = None) -> None:
    """Count one finished region and log its verdict."""
    ok_flag = bool(ok)
    with PROGRESS_LOCK:
        PROGRESS["regions_done"] = int(PROGRESS.get("regions_done") or 0) + 1
        if ok_flag:
            PROGRESS["fit_count"] = int(PROGRESS.get("fit_count") or 0) + 1
        _recompute_percent_locked()
        _touch_elapsed_locked()
        _emit_log(
            "Region result",
            region=str(label),
            fits=ok_flag,
            reason=reason,
            steps=steps,
            duration=_fmt_seconds(elapsed),
        )
        if LOG_STATE.get("region") == str(label):
            _finalize_region_locked(_now(), reason=reason)
        _persist_locked()


def set_done(ok: Any = None, *, reason: Any = None, message: Any = None) -> None:
    """Mark the run complete.

    ``ok`` picks the final status (``"Solved"``/``"Error"``); when omitted a
    run that never left ``Idle`` or ``Solving`` is reported as solved. Either
    ``message`` or ``reason`` ends up in the ``message`` field.
    """

    final_status: Optional[str] = None
    ok_flag: Optional[bool] = None
    if ok is not None:
        ok_flag = bool(ok)
        final_status = "Solved" if ok_flag else "Error"

    final_message = message if message is not None else reason

    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        now = _now()
        if final_status is not None:
            PROGRESS["status"] = final_status
        elif PROGRESS.get("status") in ("", "Idle", "Solving", None):
            PROGRESS["status"] = "Solved"
            ok_flag = True
        PROGRESS["percent"] = 100.0
        if final_message is not None:
            PROGRESS["message"] = str(final_message)
        PROGRESS["done"] = True
        if ok_flag is not None:
            PROGRESS["ok"] = ok_flag
        _finalize_region_locked(now, reason="run_complete")
        run_start = LOG_STATE.get("run_start")
        total = max(0.0, now - float(run_start)) if isinstance(run_start, (int, float)) else None
        LOG_STATE["run_start"] = None
        _emit_log(
            "Run finished",
            status=PROGRESS.get("status"),
            ok=PROGRESS.get("ok"),
            duration=_fmt_seconds(total),
            fit=PROGRESS.get("fit_count"),
            regions=PROGRESS.get("regions_total"),
            message=PROGRESS.get("message"),
        )
        _persist_locked()


# ------------------------------
# Snapshots for the UI
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _load_persisted_locked()
        _touch_elapsed_locked()
        snap = dict(PROGRESS)
        snap.pop("elapsed_start", None)
        snap["elapsed_str"] = _fmt_elapsed(PROGRESS["elapsed"])
        return snap


def as_json() -> Dict[str, Any]:
    # Alias used by /progress
    return snapshot()


with PROGRESS_LOCK:
    _load_persisted_locked(force=True)
