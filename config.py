# config.py
import os

# ======= Worker / search caps =======
WORKERS     = int(os.getenv("PF_WORKERS", "1"))
# Per-region deadline in seconds; 0 keeps the search exhaustive.
TIME_LIMIT  = float(os.getenv("PF_TIME_LIMIT", "0"))
# Per-region budget of candidate-anchor evaluations; 0 means unlimited.
NODE_LIMIT  = int(os.getenv("PF_NODE_LIMIT", "0"))

# ======= CP-SAT cross-check =======
CP_SAT_SECONDS = float(os.getenv("PF_CP_SAT_SECONDS", "10"))
CP_SAT_WORKERS = int(os.getenv("PF_CP_SAT_WORKERS", "1"))
MAX_MEMORY_MB  = int(os.getenv("PF_MAX_MEMORY_MB", "2048"))

# ======= Input / output names =======
INPUT_FILE  = os.getenv("PF_INPUT", "input.txt")
REPORT_OUT  = os.getenv("PF_REPORT_OUT", "report.txt")
COORDS_OUT  = os.getenv("PF_COORDS_OUT", "coords.txt")
LAYOUT_HTML = os.getenv("PF_LAYOUT_HTML", "layout_view.html")

# ======= Rendering =======
RENDER_SCALE = int(os.getenv("PF_RENDER_SCALE", "24"))   # pixels per cell

# ======= Logging =======
LOG_DIR   = os.getenv("PF_LOG_DIR", "logs")
LOG_LEVEL = os.getenv("PF_LOG_LEVEL", "INFO").upper()


class CFG:
    WORKERS    = WORKERS
    TIME_LIMIT = TIME_LIMIT
    NODE_LIMIT = NODE_LIMIT

    CP_SAT_SECONDS = CP_SAT_SECONDS
    CP_SAT_WORKERS = CP_SAT_WORKERS
    MAX_MEMORY_MB  = MAX_MEMORY_MB

    INPUT_FILE  = INPUT_FILE
    REPORT_OUT  = REPORT_OUT
    COORDS_OUT  = COORDS_OUT
    LAYOUT_HTML = LAYOUT_HTML

    RENDER_SCALE = RENDER_SCALE

    LOG_DIR   = LOG_DIR
    LOG_LEVEL = LOG_LEVEL


__all__ = ["CFG"]
