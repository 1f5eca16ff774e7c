import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

import pandas as pd

from .config import QUARTERS

logger = logging.getLogger(__name__)

COLUMNS = ["Course", "Period", "Teacher", *QUARTERS, "Current"]


def courses_to_frame(courses: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """One row per course (wire-shape dicts), one column per quarter."""
    rows: List[List[Any]] = []
    for course in courses:
        by_quarter = {g["quarter"]: g for g in course.get("grades", [])}
        current = next((q for q in QUARTERS if by_quarter.get(q, {}).get("isCurrent")), "")
        rows.append(
            [
                course.get("name", ""),
                course.get("period", ""),
                course.get("teacher", ""),
                *[by_quarter.get(q, {}).get("letter") or "" for q in QUARTERS],
                current,
            ]
        )
    return pd.DataFrame(rows, columns=COLUMNS)


def write_courses_excel(courses: Iterable[Dict[str, Any]], output_path: Path, sheet_name: str = "Grades") -> Path:
    df = courses_to_frame(courses)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_excel(output_path, index=False, sheet_name=sheet_name)
    logger.info("Wrote %d courses to %s", len(df), output_path)
    return output_path


def convert_to_excel(input_path: Path, output_path: Path, sheet_name: str = "Grades") -> bool:
    """
    Reads a grades JSONL file written by the runner and exports the courses
    of its most recent successful grade scrape.

    Args:
        input_path (Path): The path to the input grades.jsonl file.
        output_path (Path): The path to write the output Excel file.
        sheet_name (str): The name of the sheet in the Excel workbook.
    """
    if not input_path.exists():
        logger.error("Input file not found: %s", input_path)
        return False

    latest = None
    with open(input_path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            record = json.loads(line)
            if record.get("success") and record.get("courses"):
                latest = record

    if latest is None:
        logger.warning("No successful grade scrape in %s", input_path)
        return False
    write_courses_excel(latest["courses"], output_path, sheet_name)
    return True
