# skyward_scraper/errors.py
from __future__ import annotations


class ScraperError(Exception):
    """Base class for failures raised inside the scraping pipeline."""

    kind = "unexpected"


class BrowserLaunchError(ScraperError):
    """The browser process could not be started. Not retried."""

    kind = "launch"


class FormNotFound(ScraperError):
    """None of the selector candidates matched a login field or the submit control."""

    kind = "form_not_found"

    def __init__(self, field: str, tried: list | None = None) -> None:
        self.field = field
        self.tried = list(tried or [])
        super().__init__(
            "Could not find login form. The Skyward page structure may have changed."
        )


class LoginError(ScraperError):
    """The portal rejected the credentials (or looked like it did)."""

    kind = "authentication"


class PageLostError(ScraperError):
    """The active window went away and no replacement window could be found."""

    kind = "page_lost"
