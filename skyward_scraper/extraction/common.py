# skyward_scraper/extraction/common.py
"""Patterns and helpers shared by the extraction strategies."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..snapshot import Box, PageSnapshot, TableSnap

# A cell that holds nothing but a letter grade.
GRADE_CELL_RE = re.compile(r"^[A-F][+-]?$")
# Leading letter grade in a (whitespace-stripped) cell, e.g. "B+" or "A(94%)";
# the lookahead keeps "N/A" or "Absent" from reading as grades.
GRADE_PREFIX_RE = re.compile(r"^([A-F][+-]?)(?![A-Za-z])")

COURSE_BLOCK_NAME_RE = re.compile(r"^[A-Z][A-Z\s\d]+$")
COURSE_BLOCK_PERIOD_RE = re.compile(r"Period\s*\d+", re.I)
COURSE_BLOCK_TEACHER_RE = re.compile(r"^[A-Z][A-Z\s.,'\-]+$")

_RGB_RE = re.compile(r"rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+)\s*)?\)", re.I)
_HEX_RE = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6})$", re.I)
_NAMED_COLORS = {
    "white": (255, 255, 255),
    "yellow": (255, 255, 0),
    "lightyellow": (255, 255, 224),
    "gold": (255, 215, 0),
    "orange": (255, 165, 0),
    "cyan": (0, 255, 255),
    "aqua": (0, 255, 255),
    "lime": (0, 255, 0),
    "black": (0, 0, 0),
    "silver": (192, 192, 192),
    "gray": (128, 128, 128),
}


def parse_color(value: str) -> Optional[Tuple[int, int, int, float]]:
    """``rgb()``/``rgba()``/hex/a few names → (r, g, b, alpha); None if unreadable."""
    v = (value or "").strip().lower()
    if not v or v in ("transparent", "initial", "inherit", "none"):
        return None
    m = _RGB_RE.search(v)
    if m:
        r, g, b = (int(float(m.group(i))) for i in (1, 2, 3))
        alpha = float(m.group(4)) if m.group(4) is not None else 1.0
        return r, g, b, alpha
    m = _HEX_RE.match(v)
    if m:
        digits = m.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16), 1.0
    if v in _NAMED_COLORS:
        return (*_NAMED_COLORS[v], 1.0)
    return None


def is_highlight(background: str) -> bool:
    """
    Skyward paints the current-quarter cell with a saturated fill. Anything
    visible with a fully-on channel that is not plain white counts.
    """
    rgba = parse_color(background)
    if rgba is None:
        return False
    r, g, b, alpha = rgba
    if alpha <= 0:
        return False
    if (r, g, b) == (255, 255, 255):
        return False
    return 255 in (r, g, b)


def normalize_space(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def grade_letter(text: str) -> Optional[str]:
    m = GRADE_PREFIX_RE.match(re.sub(r"\s+", "", text or ""))
    return m.group(1) if m else None


def header_has_quarters(table: TableSnap, required: Tuple[str, ...] = ("Q1", "Q2")) -> bool:
    header = table.header
    return header is not None and all(q in header.text for q in required)


@dataclass
class CourseBlock:
    """The 3-row name / period / teacher table Skyward draws left of each grade row."""

    name: str
    period: str
    teacher: str
    box: Optional[Box] = None


def course_blocks(snapshot: PageSnapshot) -> List[CourseBlock]:
    blocks = []
    for table in snapshot.tables:
        if len(table.rows) != 3:
            continue
        name, period, teacher = (r.text.strip() for r in table.rows)
        if (
            COURSE_BLOCK_NAME_RE.match(name)
            and COURSE_BLOCK_PERIOD_RE.search(period)
            and COURSE_BLOCK_TEACHER_RE.match(teacher)
        ):
            blocks.append(CourseBlock(normalize_space(name), normalize_space(period), normalize_space(teacher), table.box))
    return blocks
