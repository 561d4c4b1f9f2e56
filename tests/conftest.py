import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import


def pytest_configure(config: pytest.Config) -> None:
    """Ensure custom marks remain registered even when pytest.ini isn't picked up."""
    config.addinivalue_line("markers", "slow: tests that fill a table to its maximum size")
