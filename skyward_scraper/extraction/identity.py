# skyward_scraper/extraction/identity.py
"""Best-effort student name and school from the visible page text."""
from __future__ import annotations

import re
from typing import List

# "DOE J. JOHN" / "JANE Q PUBLIC" as printed in the Skyward header
STUDENT_NAME_RE = re.compile(r"\b([A-Z]{2,}\s+[A-Z]\.?\s+[A-Z]{2,})\b")


def student_name(body_text: str) -> str:
    m = STUDENT_NAME_RE.search(body_text or "")
    return m.group(1) if m else ""


def school(body_text: str, keywords: List[str]) -> str:
    """First parenthesised string mentioning one of ``keywords``, e.g. "(CANYON HIGH)"."""
    if not keywords:
        return ""
    alternatives = "|".join(re.escape(k) for k in keywords)
    m = re.search(r"\(([^)]*(?:%s)[^)]*)\)" % alternatives, body_text or "", re.I)
    return m.group(1).strip() if m else ""
