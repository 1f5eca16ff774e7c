# skyward_scraper/navigation.py
"""
Navigation & Load-Wait Controller: reach the gradebook and wait for its
AJAX-rendered tables.
"""
from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError

from .config import PortalSettings, ScraperConfig
from .errors import PageLostError
from .page_tools import CLICK_LINK_JS, SCROLL_JS, body_text, contains_any, is_usable, page_url, pages_newest_first
from .waits import Clock, SYSTEM_CLOCK, wait_until

logger = logging.getLogger(__name__)


def find_gradebook_page(context: BrowserContext, settings: PortalSettings) -> Optional[Page]:
    for candidate in pages_newest_first(context):
        if contains_any(page_url(candidate), settings.gradebook_url_patterns):
            return candidate
    return None


async def go_to_grades(
    page: Page,
    config: Optional[ScraperConfig] = None,
    clock: Optional[Clock] = None,
) -> Optional[Page]:
    """
    Click the gradebook link from inside the page and return the window the
    gradebook ended up in. Returns ``page`` itself when no gradebook window
    shows up but it is still open, and None when it has gone away.
    """
    config = config or ScraperConfig()
    clock = clock or SYSTEM_CLOCK
    settings = config.portal_settings

    try:
        clicked = await page.evaluate(CLICK_LINK_JS, settings.gradebook_link_text.lower())
    except PlaywrightError as exc:
        logger.warning("Gradebook link click failed: %s", exc)
        clicked = False
    if clicked:
        logger.info("Clicked gradebook link")
        await clock.sleep(config.timeouts.settle_s)
    else:
        logger.warning("No gradebook link on %s", page_url(page))

    target = find_gradebook_page(page.context, settings)
    if target is not None:
        if target is not page:
            logger.info("Switching to gradebook window %s", page_url(target))
        return target
    return page if is_usable(page) else None


async def simulate_activity(page: Page) -> None:
    """A couple of mouse moves and a scroll, the way a person would land on the page."""
    try:
        await page.mouse.move(400, 300)
        await page.mouse.move(600, 400)
        await page.evaluate(SCROLL_JS, 200)
    except PlaywrightError as exc:
        logger.debug("Activity simulation skipped: %s", exc)


async def wait_for_grades(
    page: Page,
    config: Optional[ScraperConfig] = None,
    clock: Optional[Clock] = None,
) -> bool:
    """
    Wait until the loading sentinel is gone and the quarter headers are in
    the page. If the load wait runs out with the sentinel still showing, wait
    once more for the grace period. Returns whether the page looked ready;
    callers carry on either way.
    """
    config = config or ScraperConfig()
    settings, timeouts = config.portal_settings, config.timeouts
    sentinel = settings.loading_sentinel
    required = settings.required_quarter_markers

    async def grades_rendered() -> bool:
        text = await body_text(page)
        return sentinel not in text and all(m in text for m in required)

    async def sentinel_gone() -> bool:
        return sentinel not in await body_text(page)

    ready = await wait_until(
        grades_rendered, timeouts.grades_load_s, timeouts.poll_interval_s, clock, label="grades rendered"
    )
    if ready:
        logger.info("Gradebook content loaded")
        return True

    if sentinel in await body_text(page):
        logger.warning("Still loading after %.0fs; allowing %.0fs more", timeouts.grades_load_s, timeouts.grades_grace_s)
        ready = await wait_until(
            sentinel_gone, timeouts.grades_grace_s, timeouts.poll_interval_s, clock, label="loading finished"
        )
    else:
        logger.warning("Quarter headers never appeared; extracting whatever is there")
    return ready


async def recover_page(context: BrowserContext, settings: PortalSettings) -> Page:
    """Find a window to continue in after the active one went away."""
    gradebook = find_gradebook_page(context, settings)
    if gradebook is not None:
        logger.info("Recovered gradebook window %s", page_url(gradebook))
        return gradebook
    for candidate in pages_newest_first(context):
        url = page_url(candidate)
        if settings.authenticated_url_hint.lower() in url.lower() and not contains_any(url, settings.login_url_markers):
            logger.info("Recovered signed-in window %s", url)
            return candidate
    raise PageLostError("The portal window closed and no replacement window was found")
