# skyward_scraper/snapshot.py
"""
A frozen, browser-free view of the gradebook page.

Skyward renders course names and grade letters in separate tables that only
line up on screen, so extraction needs geometry and computed colours as
well as text. :func:`collect_snapshot` grabs all of that in one
``page.evaluate`` call; the extraction strategies then run as plain Python
over the resulting :class:`PageSnapshot`.

:func:`snapshot_from_html` builds the same structure from saved HTML with
BeautifulSoup (no boxes; backgrounds from inline ``style``/``bgcolor``),
which is what offline parsing of debug dumps and the test fixtures use.

Row and cell lists follow ``querySelectorAll`` semantics, so a nested
table's rows also appear in the enclosing table. Every row and cell carries
its document-order ``index`` to let callers de-duplicate.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup  # type: ignore
from playwright.async_api import Page

logger = logging.getLogger(__name__)

COLLECT_SNAPSHOT_JS = """
() => {
  const box = (el) => {
    const r = el.getBoundingClientRect();
    return { x: r.left, y: r.top, width: r.width, height: r.height };
  };
  const rowIndex = new Map();
  document.querySelectorAll('tr').forEach((tr, i) => rowIndex.set(tr, i));
  const cellIndex = new Map();
  document.querySelectorAll('th, td').forEach((c, i) => cellIndex.set(c, i));
  const cell = (c) => ({
    index: cellIndex.get(c),
    tag: c.tagName.toLowerCase(),
    text: (c.textContent || '').trim(),
    box: box(c),
    background: window.getComputedStyle(c).backgroundColor || '',
  });
  const tables = Array.from(document.querySelectorAll('table')).map((t) => ({
    box: box(t),
    rows: Array.from(t.querySelectorAll('tr')).map((tr) => ({
      index: rowIndex.get(tr),
      text: (tr.textContent || '').trim(),
      cells: Array.from(tr.querySelectorAll('th, td')).map(cell),
    })),
  }));
  return {
    url: location.href,
    title: document.title || '',
    bodyText: (document.body && document.body.innerText) || '',
    tables,
  };
}
"""


@dataclass
class Box:
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2


@dataclass
class CellSnap:
    index: int
    tag: str
    text: str
    box: Optional[Box] = None
    background: str = ""

    @property
    def compact(self) -> str:
        """Text with all whitespace removed."""
        return re.sub(r"\s+", "", self.text)


@dataclass
class RowSnap:
    index: int
    text: str
    cells: List[CellSnap] = field(default_factory=list)

    def tds(self) -> List[CellSnap]:
        return [c for c in self.cells if c.tag == "td"]


@dataclass
class TableSnap:
    rows: List[RowSnap] = field(default_factory=list)
    box: Optional[Box] = None

    @property
    def header(self) -> Optional[RowSnap]:
        return self.rows[0] if self.rows else None


@dataclass
class PageSnapshot:
    url: str = ""
    title: str = ""
    body_text: str = ""
    tables: List[TableSnap] = field(default_factory=list)

    def unique_rows(self) -> Iterator[RowSnap]:
        """Each ``<tr>`` once, in document order."""
        seen: Dict[int, RowSnap] = {}
        for table in self.tables:
            for row in table.rows:
                seen.setdefault(row.index, row)
        for idx in sorted(seen):
            yield seen[idx]

    def cells_with_rows(self) -> List[Tuple[CellSnap, RowSnap]]:
        """Each cell once, paired with its innermost enclosing row."""
        owner: Dict[int, Tuple[CellSnap, RowSnap]] = {}
        # inner tables come after their parents in document order, so later wins
        for table in self.tables:
            for row in table.rows:
                for cell in row.cells:
                    owner[cell.index] = (cell, row)
        return [owner[i] for i in sorted(owner)]

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "PageSnapshot":
        def _box(raw: Optional[dict]) -> Optional[Box]:
            if not raw:
                return None
            return Box(
                float(raw.get("x", 0)),
                float(raw.get("y", 0)),
                float(raw.get("width", 0)),
                float(raw.get("height", 0)),
            )

        tables = []
        for t in payload.get("tables") or []:
            rows = []
            for r in t.get("rows") or []:
                cells = [
                    CellSnap(
                        index=int(c.get("index", -1)),
                        tag=c.get("tag", "td"),
                        text=c.get("text", ""),
                        box=_box(c.get("box")),
                        background=c.get("background", ""),
                    )
                    for c in r.get("cells") or []
                ]
                rows.append(RowSnap(int(r.get("index", -1)), r.get("text", ""), cells))
            tables.append(TableSnap(rows, _box(t.get("box"))))
        return cls(
            url=payload.get("url", ""),
            title=payload.get("title", ""),
            body_text=payload.get("bodyText", ""),
            tables=tables,
        )


async def collect_snapshot(page: Page) -> PageSnapshot:
    payload = await page.evaluate(COLLECT_SNAPSHOT_JS)
    snap = PageSnapshot.from_payload(payload or {})
    logger.debug("Snapshot of %s: %d tables", snap.url, len(snap.tables))
    return snap


# ---------------------- STATIC HTML ----------------------

_BG_RE = re.compile(r"background(?:-color)?\s*:\s*([^;]+)", re.I)


def _inline_background(tag: Any) -> str:
    style = tag.get("style") or ""
    m = _BG_RE.search(style)
    if m:
        return m.group(1).strip()
    return (tag.get("bgcolor") or "").strip()


def snapshot_from_html(html: str, url: str = "") -> PageSnapshot:
    """Build a geometry-less snapshot from saved page HTML."""
    soup = BeautifulSoup(html or "", "html.parser")
    row_index = {id(tr): i for i, tr in enumerate(soup.find_all("tr"))}
    cell_index = {id(c): i for i, c in enumerate(soup.find_all(["th", "td"]))}

    tables = []
    for table in soup.find_all("table"):
        rows = []
        for tr in table.find_all("tr"):
            cells = [
                CellSnap(
                    index=cell_index[id(c)],
                    tag=c.name,
                    text=c.get_text().strip(),
                    background=_inline_background(c),
                )
                for c in tr.find_all(["th", "td"])
            ]
            rows.append(RowSnap(row_index[id(tr)], tr.get_text().strip(), cells))
        tables.append(TableSnap(rows))

    body = soup.body or soup
    title = soup.title.get_text(strip=True) if soup.title else ""
    return PageSnapshot(url=url, title=title, body_text=body.get_text("\n", strip=True), tables=tables)
