# skyward_scraper/extraction/academic_history.py
"""Strategy 2: "Course | ... | Grade" rows as on the Academic History page."""
from __future__ import annotations

import re
from typing import List, Optional

from ..config import QUARTERS, ScraperConfig
from ..models import CourseRecord, QuarterGrade
from ..snapshot import PageSnapshot
from .common import GRADE_CELL_RE, normalize_space

COURSE_NAME_RE = re.compile(r"^[A-Z][A-Za-z\s\d]+$")


def academic_history(snapshot: PageSnapshot, config: ScraperConfig) -> Optional[List[CourseRecord]]:
    current = config.default_current_quarter
    courses = []
    for row in snapshot.unique_rows():
        tds = row.tds()
        if len(tds) < 2:
            continue
        first = tds[0].text.strip()
        if len(first) <= 5 or not COURSE_NAME_RE.match(first):
            continue
        for cell in tds[1:]:
            text = cell.text.strip()
            if GRADE_CELL_RE.match(text):
                grades = [QuarterGrade(q, text if q == current else None, q == current) for q in QUARTERS]
                courses.append(CourseRecord(name=normalize_space(first), grades=grades))
                break
    return courses or None
