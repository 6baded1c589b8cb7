import shutil
import sys
import tempfile
from pathlib import Path

import pytest

def pytest_sessionstart(session):
    # Ensure src is on sys.path without needing plugins
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


@pytest.fixture
def sock_dir():
    # Unix socket paths are limited to ~104 bytes, pytest's tmp_path can exceed that
    d = Path(tempfile.mkdtemp(prefix="wn-", dir="/tmp"))
    try:
        yield d
    finally:
        shutil.rmtree(d, ignore_errors=True)
