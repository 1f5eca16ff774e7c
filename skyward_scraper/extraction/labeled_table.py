# skyward_scraper/extraction/labeled_table.py
"""Strategy 1: a real table whose header row names the quarter columns."""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from ..config import QUARTERS, ScraperConfig
from ..models import CourseRecord, QuarterGrade
from ..snapshot import CellSnap, PageSnapshot, RowSnap, TableSnap
from .common import grade_letter, header_has_quarters, is_highlight, normalize_space

logger = logging.getLogger(__name__)

NON_COURSE_LABEL_RE = re.compile(r"^(Q[1-4]|Grade|Period|Teacher|Total|Average)$", re.I)
COURSE_HEADER_LABELS = ("course", "class")


def quarter_columns(header: RowSnap) -> Dict[str, int]:
    cols: Dict[str, int] = {}
    for idx, cell in enumerate(header.cells):
        text = cell.text.strip()
        for q in QUARTERS:
            if q in text:
                cols.setdefault(q, idx)
    return cols


def course_column(header: RowSnap) -> int:
    for idx, cell in enumerate(header.cells):
        if any(label in cell.text.lower() for label in COURSE_HEADER_LABELS):
            return idx
    return 0


def _cell(cells: List[CellSnap], idx: Optional[int]) -> Optional[CellSnap]:
    if idx is None or idx >= len(cells):
        return None
    return cells[idx]


def _table_courses(table: TableSnap, default_current: str) -> List[CourseRecord]:
    header = table.header
    qcols = quarter_columns(header)
    name_col = course_column(header)
    body = table.rows[1:]
    # Only trust highlight colours when the table uses them at all;
    # otherwise every row gets the configured default quarter.
    highlighted = any(is_highlight(c.background) for row in body for c in row.cells)

    courses = []
    for row in body:
        cells = row.cells
        if len(cells) < 2:
            continue
        name_cell = _cell(cells, name_col)
        name = normalize_space(name_cell.text) if name_cell else ""
        if len(name) < 3 or NON_COURSE_LABEL_RE.match(name):
            continue

        grades = []
        for q in QUARTERS:
            cell = _cell(cells, qcols.get(q))
            letter = grade_letter(cell.text) if cell else None
            if highlighted:
                current = cell is not None and is_highlight(cell.background)
            else:
                current = q == default_current
            grades.append(QuarterGrade(q, letter, current))

        if any(g.letter for g in grades):
            courses.append(CourseRecord(name=name, grades=grades))
    return courses


def labeled_table(snapshot: PageSnapshot, config: ScraperConfig) -> Optional[List[CourseRecord]]:
    courses: List[CourseRecord] = []
    for table in snapshot.tables:
        if not header_has_quarters(table):
            continue
        found = _table_courses(table, config.default_current_quarter)
        logger.debug("Labeled table with %d rows yielded %d courses", len(table.rows), len(found))
        courses.extend(found)
    return courses or None
