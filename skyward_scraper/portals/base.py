# skyward_scraper/portals/base.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional
from playwright.async_api import Page

from ..config import ScraperConfig
from ..debug import DebugRecorder
from ..extraction import Extraction
from ..models import CourseDetails
from ..snapshot import PageSnapshot, collect_snapshot
from ..waits import Clock, SYSTEM_CLOCK


class PortalEngine(ABC):
    """Interface every portal scraper must implement. One instance per request."""

    def __init__(
        self,
        page: Page,
        username: str,
        password: str,
        config: Optional[ScraperConfig] = None,
        clock: Optional[Clock] = None,
        recorder: Optional[DebugRecorder] = None,
    ) -> None:
        self.page, self.username, self.password = page, username, password
        self.config = config or ScraperConfig()
        self.clock = clock or SYSTEM_CLOCK
        self.recorder = recorder or DebugRecorder(self.config)

    @abstractmethod
    async def login(self) -> None: ...

    @abstractmethod
    async def fetch_grades(self) -> Extraction: ...

    @abstractmethod
    async def fetch_course_details(self, course_name: str) -> CourseDetails: ...

    # optional shared helpers ↓
    async def snapshot(self) -> PageSnapshot:
        return await collect_snapshot(self.page)
