# skyward_scraper/normalizer.py
"""
Result Normalizer: turns extractions and exceptions into the public result
shapes, and makes sure no credential survives into any of them.
"""
from __future__ import annotations

import logging
from dataclasses import fields, is_dataclass
from typing import Any, Iterable, List, Tuple

from .errors import ScraperError
from .extraction import Extraction
from .models import ConnectionResult, CourseDetails, CourseDetailsResult, ScrapeResult

logger = logging.getLogger(__name__)

NO_GRADES_MESSAGE = "No grades found. Skyward may be blocking automated access. Try accessing Skyward directly."
CONNECTED_MESSAGE = "Connected successfully!"
REDACTED = "***"

# prefixes for failures that are not one of our own ScraperErrors
SCRAPE_FAILED = "Failed to scrape grades"
DETAILS_FAILED = "Failed to scrape course details"
CONNECTION_FAILED = "Connection failed"

# string fields that only ever hold quarter labels or grade letters
_UNSCRUBBED_FIELDS = {"quarter", "letter"}


def describe_exception(exc: BaseException, prefix: str) -> Tuple[str, str]:
    """(message, error_kind) for ``exc``; our own errors keep their message."""
    if isinstance(exc, ScraperError):
        return str(exc), exc.kind
    return f"{prefix}: {exc}", "unexpected"


def build_scrape_result(extraction: Extraction) -> ScrapeResult:
    if not extraction.courses:
        return ScrapeResult(success=False, error=NO_GRADES_MESSAGE, error_kind="no_data")
    return ScrapeResult(
        success=True,
        courses=extraction.courses,
        missing_assignments=extraction.missing_assignments,
        student_name=extraction.student_name,
        school=extraction.school,
    )


def scrape_failure(exc: BaseException) -> ScrapeResult:
    message, kind = describe_exception(exc, SCRAPE_FAILED)
    return ScrapeResult(success=False, error=message, error_kind=kind)


def details_success(details: CourseDetails) -> CourseDetailsResult:
    return CourseDetailsResult(success=True, course_details=details)


def details_failure(exc: BaseException) -> CourseDetailsResult:
    message, kind = describe_exception(exc, DETAILS_FAILED)
    return CourseDetailsResult(success=False, error=message, error_kind=kind)


def connection_success() -> ConnectionResult:
    return ConnectionResult(success=True, message=CONNECTED_MESSAGE)


def connection_failure(exc: BaseException) -> ConnectionResult:
    message, kind = describe_exception(exc, CONNECTION_FAILED)
    return ConnectionResult(success=False, error=message, error_kind=kind)


# ---------------------- CREDENTIAL SCRUBBING ----------------------


def scrub_text(text: str, secrets: List[str]) -> str:
    for secret in secrets:
        if secret and secret in text:
            text = text.replace(secret, REDACTED)
    return text


def _scrub(obj: Any, secrets: List[str]) -> None:
    if is_dataclass(obj) and not isinstance(obj, type):
        for f in fields(obj):
            if f.name in _UNSCRUBBED_FIELDS:
                continue
            value = getattr(obj, f.name)
            if isinstance(value, str):
                setattr(obj, f.name, scrub_text(value, secrets))
            else:
                _scrub(value, secrets)
    elif isinstance(obj, list):
        for item in obj:
            _scrub(item, secrets)


def scrub_credentials(result: Any, secrets: Iterable[str]) -> Any:
    """Replace every occurrence of a secret in the result's string fields, in place."""
    # longest first so a password containing the username is fully masked
    ordered = sorted({s for s in secrets if s}, key=len, reverse=True)
    if ordered:
        _scrub(result, ordered)
    return result
