from pathlib import Path

import pytest

from skyward_scraper.config import ScraperConfig, Timeouts
from skyward_scraper.snapshot import PageSnapshot, snapshot_from_html

from .fakes import FakeClock

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixture_snapshot():
    def _load(name: str) -> PageSnapshot:
        return snapshot_from_html((FIXTURES / name).read_text(encoding="utf-8"))

    return _load


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> ScraperConfig:
    # the popup race runs on the real event loop, so keep it short
    return ScraperConfig(timeouts=Timeouts(popup_race_s=0.05, launch_cooldown_s=5.0))
