# skyward_scraper/extraction/positional.py
"""
Strategy 3: rebuild course rows from screen positions.

On the live gradebook the course name/period/teacher blocks and the grade
letters sit in unrelated tables. The only thing tying a letter to a course
is that it is drawn on the same line, and the only thing tying it to a
quarter is that it is drawn under that quarter's header. So:

* a grade cell belongs to a course block when their tops are within
  ``Tolerances.row_y_px`` of each other;
* it belongs to a quarter when its horizontal centre is within
  ``Tolerances.column_x_px`` of the quarter header's centre.

If no quarter headers have positions, the four rightmost grade cells on the
line are read as Q1..Q4, left to right.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config import QUARTERS, ScraperConfig, Tolerances
from ..models import CourseRecord, QuarterGrade, merge_by_name
from ..snapshot import PageSnapshot
from .common import GRADE_CELL_RE, course_blocks, header_has_quarters, is_highlight

logger = logging.getLogger(__name__)


@dataclass
class GradeCell:
    letter: str
    x: float
    y: float
    center_x: float
    highlighted: bool = False


def quarter_positions(snapshot: PageSnapshot) -> Dict[str, float]:
    """Horizontal centre of each quarter header in the first Q1/Q2 header row."""
    positions: Dict[str, float] = {}
    for table in snapshot.tables:
        if not header_has_quarters(table):
            continue
        for cell in table.header.cells:
            if cell.box is None:
                continue
            for q in QUARTERS:
                if q in cell.text:
                    positions.setdefault(q, cell.box.center_x)
        break
    return positions


def grade_cells(snapshot: PageSnapshot) -> List[GradeCell]:
    found = []
    for cell, _row in snapshot.cells_with_rows():
        if cell.tag != "td" or cell.box is None:
            continue
        text = cell.compact
        if GRADE_CELL_RE.match(text):
            found.append(
                GradeCell(
                    letter=text.upper(),
                    x=cell.box.x,
                    y=cell.box.y,
                    center_x=cell.box.center_x,
                    highlighted=is_highlight(cell.background),
                )
            )
    return found


def cells_on_row(cells: List[GradeCell], y: float, row_tolerance: float) -> List[GradeCell]:
    return [c for c in cells if abs(c.y - y) < row_tolerance]


def cell_in_column(cells: List[GradeCell], x: float, column_tolerance: float) -> Optional[GradeCell]:
    for c in cells:
        if abs(c.center_x - x) < column_tolerance:
            return c
    return None


def join_row(
    row_cells: List[GradeCell],
    positions: Dict[str, float],
    tolerances: Tolerances,
    default_current: str,
) -> List[QuarterGrade]:
    """Assign the grade cells of one visual row to quarters."""
    matched: Dict[str, Optional[GradeCell]] = {q: None for q in QUARTERS}
    if positions:
        for q in QUARTERS:
            x = positions.get(q)
            if x is not None:
                matched[q] = cell_in_column(row_cells, x, tolerances.column_x_px)
    else:
        rightmost = sorted(row_cells, key=lambda c: c.x)[-4:]
        for q, cell in zip(QUARTERS, rightmost):
            matched[q] = cell

    current = None
    for q in QUARTERS:
        cell = matched[q]
        if cell is not None and cell.highlighted:
            current = q
    if current is None:
        current = default_current

    return [
        QuarterGrade(q, matched[q].letter if matched[q] else None, q == current)
        for q in QUARTERS
    ]


def positional(snapshot: PageSnapshot, config: ScraperConfig) -> Optional[List[CourseRecord]]:
    positions = quarter_positions(snapshot)
    cells = grade_cells(snapshot)
    blocks = [b for b in course_blocks(snapshot) if b.box is not None]
    logger.debug(
        "Positional join: %d quarter headers, %d grade cells, %d course blocks",
        len(positions), len(cells), len(blocks),
    )
    if not blocks or not cells:
        return None

    rows = []
    for block in blocks:
        row_cells = cells_on_row(cells, block.box.y, config.tolerances.row_y_px)
        grades = join_row(row_cells, positions, config.tolerances, config.default_current_quarter)
        rows.append(CourseRecord(block.name, block.period, block.teacher, grades))

    courses = merge_by_name(rows)
    if not any(c.has_any_grade() for c in courses):
        return None
    return courses
