import os
import shutil
import tempfile

import pytest

_SCRATCH_DIR = None


def pytest_addoption(parser):
    parser.addoption(
        "--runslow", action="store_true", default=False,
        help="run exhaustive searches marked slow",
    )


def pytest_configure(config):
    # progress reads these at import time, so they must be set before collection
    global _SCRATCH_DIR
    _SCRATCH_DIR = tempfile.mkdtemp(prefix="polyfit-tests-")
    os.environ["PF_LOG_DIR"] = _SCRATCH_DIR
    os.environ["PROGRESS_STATE_FILE"] = os.path.join(_SCRATCH_DIR, "progress_state.json")


def pytest_unconfigure(config):
    if _SCRATCH_DIR:
        shutil.rmtree(_SCRATCH_DIR, ignore_errors=True)


def pytest_collection_modifyitems(config, items):
    if config.getoption("--runslow"):
        return
    skip_slow = pytest.mark.skip(reason="needs --runslow")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)
