import logging
import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from boss_health.config import BossHealthConfig  # noqa: E402


@pytest.fixture(autouse=True)
def _configure_logging():
    logging.basicConfig(level=logging.DEBUG)


@pytest.fixture()
def config() -> BossHealthConfig:
    return BossHealthConfig.from_dict(
        {
            "boss-team-names": ["Boss", "  The Titans "],
            "interval": 1000,
            "health-bar-size": 20,
            "middle-print": False,
            "announce-timeout": 60,
            "announce-health-change": 0.1,
            "announce-require-time-and-health-change": False,
        }
    )
