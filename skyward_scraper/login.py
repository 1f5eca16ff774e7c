# skyward_scraper/login.py
"""
Login Flow Controller.

Skyward's sign-in either replaces the login window or opens the portal in
a brand-new window (sometimes both, sometimes with a delay). After the
submit click we race a "new window" event against a short bound, let the
windows settle, adopt the newest window that looks signed-in, and then
decide the outcome from a handful of observable signals.

The decision is an ordered list of pure rules over :class:`LoginSignals`;
the first rule that returns a verdict wins.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from playwright.async_api import BrowserContext, ElementHandle, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import PortalSettings, ScraperConfig
from .errors import FormNotFound
from .page_tools import body_text, contains_any, page_url, pages_newest_first
from .waits import Clock, SYSTEM_CLOCK

logger = logging.getLogger(__name__)

BAD_CREDENTIALS_MESSAGE = "Login failed. Please double-check your username and password."
ERROR_TEXT_FALLBACK_MESSAGE = "Login failed. Please check your credentials."
AMBIGUOUS_LOGIN_MESSAGE = "Login may have failed. Please verify your credentials."


@dataclass
class LoginSignals:
    """What the browser looked like once the post-submit dust settled."""

    window_count: int
    has_authenticated_markers: bool
    login_form_visible: bool
    has_error_markers: bool
    error_text: str
    url: str
    url_looks_like_login: bool


@dataclass
class LoginOutcome:
    success: bool
    reason: str
    message: Optional[str] = None
    page: Optional[Page] = None

    @property
    def kind(self) -> Optional[str]:
        return None if self.success else "authentication"


# ---------------------- DECISION RULES ----------------------


def several_windows(s: LoginSignals) -> Optional[LoginOutcome]:
    if s.window_count > 1:
        return LoginOutcome(True, "portal opened a new window")
    return None


def authenticated_content(s: LoginSignals) -> Optional[LoginOutcome]:
    if s.has_authenticated_markers:
        return LoginOutcome(True, "signed-in content visible")
    return None


def login_form_still_shown(s: LoginSignals) -> Optional[LoginOutcome]:
    if s.login_form_visible and not s.has_authenticated_markers:
        return LoginOutcome(False, "login form still visible", BAD_CREDENTIALS_MESSAGE)
    return None


def error_text_shown(s: LoginSignals) -> Optional[LoginOutcome]:
    if s.has_error_markers:
        return LoginOutcome(False, "error text on page", s.error_text or ERROR_TEXT_FALLBACK_MESSAGE)
    return None


def left_login_url(s: LoginSignals) -> Optional[LoginOutcome]:
    if s.url and not s.url_looks_like_login:
        return LoginOutcome(True, "navigated away from login URL")
    return None


def ambiguous(s: LoginSignals) -> Optional[LoginOutcome]:
    return LoginOutcome(False, "no sign-in evidence", AMBIGUOUS_LOGIN_MESSAGE)


Rule = Callable[[LoginSignals], Optional[LoginOutcome]]

LOGIN_RULES: List[Rule] = [
    several_windows,
    authenticated_content,
    login_form_still_shown,
    error_text_shown,
    left_login_url,
    ambiguous,
]


def decide(signals: LoginSignals, rules: Optional[List[Rule]] = None) -> LoginOutcome:
    for rule in rules or LOGIN_RULES:
        outcome = rule(signals)
        if outcome is not None:
            logger.info("Login decision: %s (%s)", "success" if outcome.success else "failure", outcome.reason)
            return outcome
    return ambiguous(signals)


# ---------------------- BROWSER STEPS ----------------------


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(PlaywrightTimeoutError),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def open_login_page(page: Page, url: str, timeout_s: float) -> None:
    logger.info("Opening login page %s", url)
    await page.goto(url, wait_until="networkidle", timeout=timeout_s * 1000)


async def resolve_selector(page: Page, candidates: List[str], field: str) -> ElementHandle:
    """First candidate selector that matches an element on ``page``."""
    for selector in candidates:
        try:
            handle = await page.query_selector(selector)
        except PlaywrightError as exc:
            logger.debug("Selector %r failed for %s: %s", selector, field, exc)
            continue
        if handle is not None:
            logger.debug("%s field matched %r", field, selector)
            return handle
    logger.error("No %s control matched any of %d selectors", field, len(candidates))
    raise FormNotFound(field, candidates)


async def click_and_race_popup(context: BrowserContext, submit: ElementHandle, timeout_s: float) -> Optional[Page]:
    """Click ``submit``; return the window it opened, or None if none opened in time."""
    waiter = asyncio.ensure_future(context.wait_for_event("page", timeout=timeout_s * 1000))
    # let the listener attach before the click can open anything
    await asyncio.sleep(0)
    try:
        await submit.click()
    except BaseException:
        waiter.cancel()
        raise
    try:
        popup = await waiter
    except PlaywrightTimeoutError:
        logger.info("No new window within %.0fs of submitting", timeout_s)
        return None
    logger.info("Login opened a new window")
    return popup


def _looks_signed_in_url(url: str, settings: PortalSettings) -> bool:
    lowered = url.lower()
    return settings.authenticated_url_hint.lower() in lowered and not contains_any(url, settings.login_url_markers)


async def pick_active_page(context: BrowserContext, fallback: Page, settings: PortalSettings) -> Page:
    """Newest window with signed-in content (or a signed-in URL), else the newest window."""
    pages = pages_newest_first(context)
    for candidate in pages:
        if contains_any(await body_text(candidate), settings.authenticated_markers):
            return candidate
        if _looks_signed_in_url(page_url(candidate), settings):
            return candidate
    return pages[0] if pages else fallback


async def _error_text(page: Page, selector: str) -> str:
    try:
        handle = await page.query_selector(selector)
        if handle is None:
            return ""
        return ((await handle.text_content()) or "").strip()
    except PlaywrightError as exc:
        logger.debug("Could not read login error text: %s", exc)
        return ""


async def _form_visible(page: Page, selector: str) -> bool:
    try:
        handle = await page.query_selector(selector)
        return handle is not None and await handle.is_visible()
    except PlaywrightError:
        return False


async def collect_signals(context: BrowserContext, page: Page, settings: PortalSettings) -> LoginSignals:
    text = await body_text(page)
    url = page_url(page)
    has_errors = contains_any(text, settings.error_markers)
    return LoginSignals(
        window_count=len(pages_newest_first(context)),
        has_authenticated_markers=contains_any(text, settings.authenticated_markers),
        login_form_visible=await _form_visible(page, settings.login_form_marker),
        has_error_markers=has_errors,
        error_text=await _error_text(page, settings.error_text_selector) if has_errors else "",
        url=url,
        url_looks_like_login=contains_any(url, settings.login_url_markers),
    )


async def login(
    page: Page,
    username: str,
    password: str,
    config: Optional[ScraperConfig] = None,
    clock: Optional[Clock] = None,
) -> LoginOutcome:
    """
    Sign in on ``page`` and return the outcome together with the window to
    keep working in. Raises :class:`FormNotFound` if the form can't be found;
    every other failure mode comes back as an unsuccessful outcome.
    """
    config = config or ScraperConfig()
    clock = clock or SYSTEM_CLOCK
    settings, timeouts = config.portal_settings, config.timeouts
    context = page.context

    await open_login_page(page, settings.login_url, timeouts.navigation_s)

    user_field = await resolve_selector(page, settings.username_selectors, "username")
    pass_field = await resolve_selector(page, settings.password_selectors, "password")
    await user_field.fill(username)
    await pass_field.fill(password)
    submit = await resolve_selector(page, settings.submit_selectors, "submit")

    popup = await click_and_race_popup(context, submit, timeouts.popup_race_s)
    if popup is not None:
        try:
            await popup.wait_for_load_state("domcontentloaded", timeout=timeouts.navigation_s * 1000)
        except PlaywrightError as exc:
            logger.debug("New window did not finish loading: %s", exc)
    await clock.sleep(timeouts.settle_s)

    active = await pick_active_page(context, page, settings)
    signals = await collect_signals(context, active, settings)
    logger.debug("Login signals: %s", signals)
    return dataclasses.replace(decide(signals), page=active)
