import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ensure project root is on sys.path for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture
def fixed_clock():
    """A clock pinned to FIXED_NOW, so "NULL"/blank dates are deterministic."""
    return lambda: FIXED_NOW
