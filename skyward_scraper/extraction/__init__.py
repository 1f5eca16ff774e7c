# skyward_scraper/extraction/__init__.py
"""
Table Extraction Engine.

``extract(snapshot)`` tries each strategy in ``EXTRACTION_STRATEGIES`` in
order and keeps the first non-empty result. A strategy that blows up is
logged and skipped. If none yields courses, the bare name/period/teacher
blocks are returned with every quarter null so the caller still has the
course list.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ..config import ScraperConfig
from ..models import CourseRecord, MissingAssignment
from ..snapshot import PageSnapshot
from .academic_history import academic_history
from .details import extract_course_details
from .fallback import course_blocks_only
from .identity import school, student_name
from .labeled_table import labeled_table
from .missing import missing_assignments
from .positional import positional

logger = logging.getLogger(__name__)

Strategy = Callable[[PageSnapshot, ScraperConfig], Optional[List[CourseRecord]]]

EXTRACTION_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("labeled_table", labeled_table),
    ("academic_history", academic_history),
    ("positional", positional),
]

FALLBACK_STRATEGY = "course_blocks_only"


@dataclass
class Extraction:
    courses: List[CourseRecord] = field(default_factory=list)
    missing_assignments: List[MissingAssignment] = field(default_factory=list)
    student_name: str = ""
    school: str = ""
    strategy: Optional[str] = None

    @property
    def grades_found(self) -> bool:
        return any(c.has_any_grade() for c in self.courses)


def empty_extraction() -> Extraction:
    return Extraction()


def extract(
    snapshot: PageSnapshot,
    config: Optional[ScraperConfig] = None,
    strategies: Optional[List[Tuple[str, Strategy]]] = None,
) -> Extraction:
    config = config or ScraperConfig()
    strategies = EXTRACTION_STRATEGIES if strategies is None else strategies
    body = snapshot.body_text or ""
    result = Extraction(
        missing_assignments=missing_assignments(snapshot),
        student_name=student_name(body),
        school=school(body, config.portal_settings.school_keywords),
    )

    for name, strategy in strategies:
        try:
            courses = strategy(snapshot, config)
        except Exception:
            logger.exception("Extraction strategy %s failed; trying the next one", name)
            continue
        if courses:
            logger.info("Strategy %s found %d courses", name, len(courses))
            result.courses, result.strategy = courses, name
            return result

    blocks = course_blocks_only(snapshot, config)
    if blocks:
        logger.warning("No grades matched; returning %d courses without grades", len(blocks))
        result.courses, result.strategy = blocks, FALLBACK_STRATEGY
    else:
        logger.warning("No courses found on %s", snapshot.url or "page")
    return result


__all__ = [
    "EXTRACTION_STRATEGIES",
    "Extraction",
    "empty_extraction",
    "extract",
    "extract_course_details",
]
