# skyward_scraper/extraction/details.py
"""
Per-course detail read off the gradebook page.

Skyward has no stable per-course page to navigate to, so details come from
the same gradebook snapshot: the course's name/period/teacher block, its
current letter grade, and any assignment or category-weight tables that
happen to be rendered (they are when a class row has been expanded).
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple

from ..config import ScraperConfig
from ..models import AssignmentDetail, CategoryDetail, CourseDetails
from ..snapshot import PageSnapshot, TableSnap
from .common import GRADE_CELL_RE, CourseBlock, course_blocks, is_highlight, normalize_space

logger = logging.getLogger(__name__)

_FRACTION_RE = re.compile(r"(\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)")
_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)")
_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")
CURRENT_GRADE_RE = re.compile(r"(?i:(?:current|overall)\s+)?(?i:grade)\s*:?\s*([A-F][+-]?)(?![A-Za-z])")
CURRENT_SCORE_RE = re.compile(r"(?i:(?:current|overall)\s+)?(?i:grade|score)\s*:?\s*(\d+(?:\.\d+)?)\s*%")


def _matches_course(text: str, target: str) -> bool:
    a, b = text.strip().lower(), target.strip().lower()
    if not a or not b:
        return False
    return b[:10] in a or a[:10] in b


def find_block(snapshot: PageSnapshot, course_name: str) -> Optional[CourseBlock]:
    for block in course_blocks(snapshot):
        if _matches_course(block.name, course_name):
            return block
    # looser: any 3-row table whose first row names the course
    for table in snapshot.tables:
        if len(table.rows) == 3 and _matches_course(table.rows[0].text, course_name):
            name, period, teacher = (normalize_space(r.text) for r in table.rows)
            return CourseBlock(name, period, teacher, table.box)
    return None


def current_grade(
    snapshot: PageSnapshot,
    course_name: str,
    block: Optional[CourseBlock],
    config: ScraperConfig,
) -> Optional[str]:
    """Highlighted grade on the course's line, else the first grade found there."""
    prefix = course_name.strip().lower()[:8]
    row_y = block.box.y if block is not None and block.box is not None else None
    first: Optional[str] = None
    for cell, row in snapshot.cells_with_rows():
        if cell.tag != "td" or not GRADE_CELL_RE.match(cell.compact):
            continue
        same_line = prefix and prefix in row.text.lower()
        if not same_line and row_y is not None and cell.box is not None:
            same_line = abs(cell.box.y - row_y) < config.tolerances.row_y_px
        if not same_line:
            continue
        if is_highlight(cell.background):
            return cell.compact
        if first is None:
            first = cell.compact
    if first is not None:
        return first
    m = CURRENT_GRADE_RE.search(snapshot.body_text)
    return m.group(1) if m else None


def current_score(body_text: str) -> Optional[float]:
    m = CURRENT_SCORE_RE.search(body_text or "")
    return float(m.group(1)) if m else None


# ---------------------- TABLE PARSERS ----------------------


def _header_text(table: TableSnap) -> str:
    return table.header.text.lower() if table.header else ""


def is_category_table(table: TableSnap) -> bool:
    h = _header_text(table)
    return "category" in h and ("weight" in h or "%" in h)


def is_assignment_table(table: TableSnap) -> bool:
    h = _header_text(table)
    return "assignment" in h or "score" in h or "points" in h


def assignment_columns(table: TableSnap) -> Dict[str, int]:
    cols: Dict[str, int] = {}
    for idx, cell in enumerate(table.header.cells):
        text = cell.text.lower().strip()
        if "assignment" in text or "name" in text:
            cols["name"] = idx
        if "category" in text:
            cols["category"] = idx
        if "score" in text or "grade" in text:
            cols["score"] = idx
        if "points" in text and "earned" not in text:
            cols["points"] = idx
        if "due" in text:
            cols["due"] = idx
    cols.setdefault("name", 0)
    return cols


def _text_at(cells, idx: Optional[int]) -> str:
    if idx is None or idx >= len(cells):
        return ""
    return cells[idx].text.strip()


def _score(text: str) -> Tuple[Optional[float], Optional[float]]:
    m = _FRACTION_RE.search(text)
    if m:
        return float(m.group(1)), float(m.group(2))
    m = _NUMBER_RE.search(text)
    return (float(m.group(1)) if m else None), None


def parse_assignments(table: TableSnap) -> List[AssignmentDetail]:
    cols = assignment_columns(table)
    out = []
    for row in table.rows[1:]:
        cells = row.tds()
        if len(cells) < 2:
            continue
        name = normalize_space(_text_at(cells, cols["name"]))
        if len(name) < 2:
            continue
        score, possible = _score(_text_at(cells, cols.get("score")))
        if possible is None and "points" in cols:
            m = _NUMBER_RE.search(_text_at(cells, cols["points"]))
            possible = float(m.group(1)) if m else None
        row_text = row.text.lower()
        out.append(
            AssignmentDetail(
                name=name,
                category=_text_at(cells, cols.get("category")) or "Uncategorized",
                score=score,
                points_possible=possible,
                missing="missing" in row_text or "not submitted" in row_text,
                late="late" in row_text,
                due_date=_text_at(cells, cols.get("due")) or None,
            )
        )
    return out


def parse_categories(table: TableSnap) -> List[CategoryDetail]:
    out = []
    for row in table.rows[1:]:
        cells = row.tds()
        if len(cells) < 2:
            continue
        name = cells[0].text.strip()
        if not name:
            continue
        weight, earned, possible = 0.0, 0.0, 0.0
        for cell in cells[1:]:
            text = cell.text.strip()
            pct = _PERCENT_RE.search(text)
            if pct and weight == 0:
                weight = float(pct.group(1))
            frac = _FRACTION_RE.search(text)
            if frac:
                earned, possible = float(frac.group(1)), float(frac.group(2))
        if weight > 0 or earned > 0:
            out.append(CategoryDetail(name, weight, earned, possible))
    return out


def extract_course_details(snapshot: PageSnapshot, course_name: str, config: ScraperConfig) -> CourseDetails:
    details = CourseDetails(course_name=course_name)
    block = find_block(snapshot, course_name)
    if block is not None:
        details.course_name, details.period, details.teacher = block.name, block.period, block.teacher

    details.current_grade = current_grade(snapshot, course_name, block, config)
    details.current_score = current_score(snapshot.body_text)

    for table in snapshot.tables:
        if not table.header:
            continue
        if is_category_table(table):
            details.categories.extend(parse_categories(table))
        elif is_assignment_table(table):
            details.assignments.extend(parse_assignments(table))

    logger.info(
        "Course details for %r: grade=%s, %d assignments, %d categories",
        details.course_name, details.current_grade, len(details.assignments), len(details.categories),
    )
    return details
