# skyward_scraper/portals/skyward.py
from __future__ import annotations

import logging
from urllib.parse import unquote

from playwright.async_api import Error as PlaywrightError

from ..errors import LoginError, PageLostError
from ..extraction import Extraction, empty_extraction, extract, extract_course_details
from ..login import login
from ..models import CourseDetails
from ..navigation import go_to_grades, recover_page, simulate_activity, wait_for_grades
from ..page_tools import is_usable, page_url
from ..snapshot import PageSnapshot
from ..utils.captcha_guard import report_bot_check
from . import register_portal
from .base import PortalEngine

logger = logging.getLogger(__name__)


@register_portal("skyward")
class SkywardPortal(PortalEngine):
    """Skyward Family/Student Access (the legacy ``wsisa.dll`` portal)."""

    # ---------------------- LOGIN ----------------------
    async def login(self) -> None:
        outcome = await login(self.page, self.username, self.password, self.config, self.clock)
        if outcome.page is not None:
            self.page = outcome.page
        if not outcome.success:
            await self.recorder.screenshot(self.page, "login-failed")
            raise LoginError(outcome.message or "Login failed.")
        await self.recorder.screenshot(self.page, "logged-in")

    # ---------------------- GRADEBOOK ----------------------
    async def _recover(self) -> None:
        self.page = await recover_page(self.page.context, self.config.portal_settings)

    async def open_gradebook(self) -> None:
        """Land on the gradebook and wait for it to render. Raises PageLostError."""
        target = await go_to_grades(self.page, self.config, self.clock)
        if target is None:
            await self._recover()
        else:
            self.page = target
        await simulate_activity(self.page)
        await wait_for_grades(self.page, self.config, self.clock)
        if not is_usable(self.page):
            logger.warning("Gradebook window closed while loading")
            await self._recover()
        await self.recorder.screenshot(self.page, "gradebook")

    async def _snapshot(self) -> PageSnapshot:
        try:
            return await self.snapshot()
        except PlaywrightError:
            if is_usable(self.page):
                raise
            logger.warning("Gradebook window closed before it could be read")
            await self._recover()
            return await self.snapshot()

    async def _report_empty_page(self) -> None:
        try:
            html = await self.page.content()
        except PlaywrightError as exc:
            logger.debug("Could not read page for bot-check markers: %s", exc)
            return
        report_bot_check(html, page_url(self.page))

    # ---------------------- FETCH ----------------------
    async def fetch_grades(self) -> Extraction:
        try:
            await self.open_gradebook()
            await self.recorder.dump_dom(self.page)
            snap = await self._snapshot()
        except PageLostError as exc:
            logger.warning("%s; returning an empty extraction", exc)
            return empty_extraction()

        result = extract(snap, self.config)
        if not result.grades_found:
            await self._report_empty_page()
        return result

    async def fetch_course_details(self, course_name: str) -> CourseDetails:
        # course names arrive URL-encoded from the dashboard routes
        name = unquote(course_name)
        await self.open_gradebook()
        await self.recorder.screenshot(self.page, "course-details")
        snap = await self._snapshot()
        return extract_course_details(snap, name, self.config)
