# skyward_scraper/utils/captcha_guard.py
import logging
from typing import List

logger = logging.getLogger(__name__)

BOT_CHECK_MARKERS = [
    "please verify you are a human",
    "are you a robot",
    "captcha",
    "recaptcha",
    "cloudflare",
    "access denied",
    "unusual traffic",
]


def bot_check_markers(html: str) -> List[str]:
    """Markers of a CAPTCHA or bot-check page present in ``html``."""
    lowered = (html or "").lower()
    return [token for token in BOT_CHECK_MARKERS if token in lowered]


def report_bot_check(html: str, url: str = "") -> List[str]:
    """Log a warning when an empty page looks like a bot wall. Never raises."""
    found = bot_check_markers(html)
    if found:
        logger.warning("Page %s looks like a bot check (%s)", url or "?", ", ".join(found))
    else:
        logger.info("No bot-check markers on %s; the gradebook may simply be empty", url or "?")
    return found
