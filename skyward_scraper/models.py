# skyward_scraper/models.py
"""
Result types returned by the scraper and their wire shapes.

The dataclasses use snake_case attributes; ``to_dict()`` produces the
camelCase JSON contract consumed by the dashboard
(``{"name", "period", "teacher", "grades": [{"quarter", "letter", "isCurrent"}]}``).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import QUARTERS


@dataclass
class QuarterGrade:
    quarter: str
    letter: Optional[str] = None
    is_current: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"quarter": self.quarter, "letter": self.letter, "isCurrent": self.is_current}


def empty_grades(current: Optional[str] = None) -> List[QuarterGrade]:
    """Four null quarters, with ``current`` (if given) flagged."""
    return [QuarterGrade(q, None, q == current) for q in QUARTERS]


@dataclass
class CourseRecord:
    name: str
    period: str = ""
    teacher: str = ""
    grades: List[QuarterGrade] = field(default_factory=empty_grades)

    def grade(self, quarter: str) -> QuarterGrade:
        for g in self.grades:
            if g.quarter == quarter:
                return g
        raise KeyError(quarter)

    def letters(self) -> List[Optional[str]]:
        return [g.letter for g in self.grades]

    def has_any_grade(self) -> bool:
        return any(g.letter is not None for g in self.grades)

    def merge(self, other: "CourseRecord") -> "CourseRecord":
        """
        Fold another instance of the same course into this one.

        Null letters are filled from ``other``; letters already present win.
        A current-quarter flag on either side survives. Period and teacher
        are taken from ``other`` only when missing here.
        """
        by_quarter = {g.quarter: g for g in other.grades}
        merged: List[QuarterGrade] = []
        for mine in self.grades:
            theirs = by_quarter.get(mine.quarter)
            if theirs is None:
                merged.append(QuarterGrade(mine.quarter, mine.letter, mine.is_current))
                continue
            merged.append(
                QuarterGrade(
                    mine.quarter,
                    mine.letter if mine.letter is not None else theirs.letter,
                    mine.is_current or theirs.is_current,
                )
            )
        return CourseRecord(
            name=self.name,
            period=self.period or other.period,
            teacher=self.teacher or other.teacher,
            grades=merged,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "period": self.period,
            "teacher": self.teacher,
            "grades": [g.to_dict() for g in self.grades],
        }


def merge_by_name(courses: List[CourseRecord]) -> List[CourseRecord]:
    """Merge same-named records, keeping first-seen order."""
    merged: Dict[str, CourseRecord] = {}
    for course in courses:
        if course.name in merged:
            merged[course.name] = merged[course.name].merge(course)
        else:
            merged[course.name] = course
    return list(merged.values())


@dataclass
class MissingAssignment:
    name: str
    course: str
    teacher: str
    due_date: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "course": self.course,
            "teacher": self.teacher,
            "dueDate": self.due_date,
        }


@dataclass
class ScrapeResult:
    success: bool
    courses: Optional[List[CourseRecord]] = None
    missing_assignments: Optional[List[MissingAssignment]] = None
    student_name: Optional[str] = None
    school: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.courses is not None:
            out["courses"] = [c.to_dict() for c in self.courses]
        if self.missing_assignments is not None:
            out["missingAssignments"] = [m.to_dict() for m in self.missing_assignments]
        if self.student_name is not None:
            out["studentName"] = self.student_name
        if self.school is not None:
            out["school"] = self.school
        if self.error is not None:
            out["error"] = self.error
        if self.error_kind is not None:
            out["errorKind"] = self.error_kind
        return out


# ---------------------- COURSE DETAILS ----------------------


@dataclass
class AssignmentDetail:
    name: str
    category: str = "Uncategorized"
    score: Optional[float] = None
    points_possible: Optional[float] = None
    missing: bool = False
    late: bool = False
    due_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "score": self.score,
            "pointsPossible": self.points_possible,
            "missing": self.missing,
            "late": self.late,
            "dueDate": self.due_date,
        }


@dataclass
class CategoryDetail:
    name: str
    weight: float = 0.0
    earned_points: float = 0.0
    possible_points: float = 0.0

    @property
    def current_score(self) -> Optional[float]:
        if self.possible_points > 0:
            return self.earned_points / self.possible_points * 100
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "weight": self.weight,
            "earnedPoints": self.earned_points,
            "possiblePoints": self.possible_points,
            "currentScore": self.current_score,
        }


@dataclass
class CourseDetails:
    course_name: str
    teacher: str = ""
    period: str = ""
    current_grade: Optional[str] = None
    current_score: Optional[float] = None
    assignments: List[AssignmentDetail] = field(default_factory=list)
    categories: List[CategoryDetail] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "courseName": self.course_name,
            "teacher": self.teacher,
            "period": self.period,
            "currentGrade": self.current_grade,
            "currentScore": self.current_score,
            "assignments": [a.to_dict() for a in self.assignments],
            "categories": [c.to_dict() for c in self.categories],
        }


@dataclass
class CourseDetailsResult:
    success: bool
    course_details: Optional[CourseDetails] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.course_details is not None:
            out["courseDetails"] = self.course_details.to_dict()
        if self.error is not None:
            out["error"] = self.error
        if self.error_kind is not None:
            out["errorKind"] = self.error_kind
        return out


@dataclass
class ConnectionResult:
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        for key, value in (("message", self.message), ("error", self.error), ("errorKind", self.error_kind)):
            if value is not None:
                out[key] = value
        return out
