# skyward_scraper/extraction/missing.py
from __future__ import annotations

from typing import List

from ..models import MissingAssignment
from ..snapshot import PageSnapshot

MISSING_DETECTION_DISABLED = (
    "Missing-assignment detection is turned off: matching due dates in the "
    "page text flagged ordinary assignments as missing. It needs Skyward's "
    "own 'Missing' marker or its missing-work view before it can come back."
)


def missing_assignments(snapshot: PageSnapshot) -> List[MissingAssignment]:
    """Always empty; see ``MISSING_DETECTION_DISABLED``."""
    return []
