# skyward_scraper/extraction/fallback.py
"""Last resort: course identity without grades, so the user sees *something*."""
from __future__ import annotations

from typing import List, Optional

from ..config import ScraperConfig
from ..models import CourseRecord, empty_grades
from ..snapshot import PageSnapshot
from .common import course_blocks


def course_blocks_only(snapshot: PageSnapshot, config: ScraperConfig) -> Optional[List[CourseRecord]]:
    courses = [
        CourseRecord(b.name, b.period, b.teacher, empty_grades(config.default_current_quarter))
        for b in course_blocks(snapshot)
    ]
    return courses or None
