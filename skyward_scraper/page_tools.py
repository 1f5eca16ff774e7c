# skyward_scraper/page_tools.py
"""Small in-page probes shared by the login and navigation steps."""
from __future__ import annotations

import logging
from typing import List, Optional

from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

BODY_TEXT_JS = "() => (document.body && document.body.innerText) || ''"

# Clicks from inside the page so Skyward's window.open() counts as user-initiated
# and is not eaten by the popup blocker.
CLICK_LINK_JS = """
(needle) => {
  for (const link of Array.from(document.querySelectorAll('a'))) {
    const text = (link.textContent || '').toLowerCase();
    const href = (link.href || '').toLowerCase();
    if (text.includes(needle) || href.includes(needle)) {
      link.click();
      return true;
    }
  }
  return false;
}
"""

SCROLL_JS = "(dy) => window.scrollBy(0, dy)"


async def body_text(page: Page) -> str:
    """``document.body.innerText``, or '' when the page cannot be read."""
    try:
        return await page.evaluate(BODY_TEXT_JS) or ""
    except PlaywrightError as exc:
        logger.debug("Could not read body text from %s: %s", _safe_url(page), exc)
        return ""


def _safe_url(page: Page) -> str:
    try:
        return page.url
    except PlaywrightError:
        return "<detached>"


def page_url(page: Page) -> str:
    return _safe_url(page)


def is_usable(page: Optional[Page]) -> bool:
    if page is None:
        return False
    try:
        return not page.is_closed()
    except PlaywrightError:
        return False


def pages_newest_first(context: BrowserContext) -> List[Page]:
    """Open windows of a context, most recently created first."""
    return [p for p in reversed(context.pages) if is_usable(p)]


def contains_any(text: str, markers: List[str]) -> bool:
    lowered = (text or "").lower()
    return any(m.lower() in lowered for m in markers)
