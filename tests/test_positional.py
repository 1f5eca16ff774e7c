from skyward_scraper.config import ScraperConfig, Tolerances
from skyward_scraper.extraction import extract
from skyward_scraper.extraction.positional import GradeCell, cells_on_row, join_row, positional
from skyward_scraper.snapshot import Box, CellSnap, PageSnapshot, RowSnap, TableSnap

TOL = Tolerances()


def _cell(letter: str, center_x: float, y: float = 500, highlighted: bool = False) -> GradeCell:
    return GradeCell(letter=letter, x=center_x - 15, y=y, center_x=center_x, highlighted=highlighted)


def test_column_join_within_tolerance() -> None:
    grades = join_row([_cell("A", 305)], {"Q1": 310, "Q2": 420}, TOL, "Q3")
    assert grades[0].letter == "A"


def test_column_join_outside_tolerance() -> None:
    grades = join_row([_cell("A", 350)], {"Q1": 310, "Q2": 420}, TOL, "Q3")
    assert [g.letter for g in grades] == [None, None, None, None]


def test_row_grouping_tolerance() -> None:
    cells = [_cell("A", 310, y=535), _cell("B", 360, y=545)]
    on_row = cells_on_row(cells, 500, TOL.row_y_px)
    assert [c.letter for c in on_row] == ["A"]


def test_rightmost_four_fallback_without_header_positions() -> None:
    cells = [_cell(l, x) for l, x in (("C", 100), ("A", 300), ("B", 400), ("B+", 500), ("A-", 600))]

    grades = join_row(cells, {}, TOL, "Q3")

    assert [g.letter for g in grades] == ["A", "B", "B+", "A-"]


def test_highlight_sets_current_quarter() -> None:
    cells = [_cell("A", 310), _cell("B", 360, highlighted=True)]

    grades = join_row(cells, {"Q1": 310, "Q2": 360}, TOL, "Q3")

    assert [g.quarter for g in grades if g.is_current] == ["Q2"]


def test_tolerances_are_injectable() -> None:
    tight = Tolerances(row_y_px=40, column_x_px=3)
    grades = join_row([_cell("A", 305)], {"Q1": 310}, tight, "Q3")
    assert grades[0].letter is None


# ---------------------- whole-page join ----------------------

_index = iter(range(10_000))


def _td(text: str, x: float, y: float, width: float = 30, background: str = "", tag: str = "td") -> CellSnap:
    return CellSnap(next(_index), tag, text, Box(x, y, width, 20), background)


def _row(*cells: CellSnap) -> RowSnap:
    return RowSnap(next(_index), " ".join(c.text for c in cells), list(cells))


def _block(name: str, period: str, teacher: str, y: float) -> TableSnap:
    rows = [_row(_td(t, 10, y + i * 12, width=150)) for i, t in enumerate((name, period, teacher))]
    return TableSnap(rows, Box(10, y, 150, 36))


def _gradebook() -> PageSnapshot:
    header = TableSnap(
        [_row(*[_td(q, x - 15, 450, tag="th") for q, x in (("Q1", 310), ("Q2", 360), ("Q3", 410), ("Q4", 460))])],
        Box(280, 450, 200, 20),
    )
    grades = TableSnap(
        [
            _row(_td("A", 295, 502), _td("B", 345, 501), _td("B+", 395, 503, background="rgb(255, 255, 0)")),
            _row(_td("C", 295, 560)),
        ],
        Box(280, 500, 200, 80),
    )
    return PageSnapshot(
        url="https://x/sfgradebook001.w",
        body_text="Q1 Q2 Q3 Q4",
        tables=[
            header,
            _block("ENGLISH 10", "Period 1", "SMITH, JOHN", 500),
            _block("US HISTORY", "Period 2", "O'BRIEN, KATE", 560),
            grades,
        ],
    )


def test_positional_joins_blocks_to_grade_cells() -> None:
    courses = positional(_gradebook(), ScraperConfig())

    by_name = {c.name: c for c in courses}
    assert by_name["ENGLISH 10"].letters() == ["A", "B", "B+", None]
    assert by_name["ENGLISH 10"].teacher == "SMITH, JOHN"
    assert [g.quarter for g in by_name["ENGLISH 10"].grades if g.is_current] == ["Q3"]
    assert by_name["US HISTORY"].letters() == ["C", None, None, None]


def test_positional_is_used_when_tables_are_unlabeled() -> None:
    snap = _gradebook()
    # header row text no longer mentions the quarters
    snap.tables[0].rows[0].text = ""

    result = extract(snap)

    assert result.strategy == "positional"
    assert {c.name for c in result.courses} == {"ENGLISH 10", "US HISTORY"}


def test_ungraded_course_block_is_kept() -> None:
    snap = _gradebook()
    snap.tables.insert(3, _block("ART HISTORY", "Period 3", "NGUYEN, ANH", 700))

    courses = positional(snap, ScraperConfig())

    by_name = {c.name: c for c in courses}
    assert list(by_name) == ["ENGLISH 10", "US HISTORY", "ART HISTORY"]
    assert by_name["ART HISTORY"].letters() == [None, None, None, None]
    assert by_name["ART HISTORY"].teacher == "NGUYEN, ANH"


def test_no_graded_block_falls_through() -> None:
    snap = _gradebook()
    snap.tables = [t for t in snap.tables if t.rows[0].cells[0].text not in ("A", "C")]
    snap.tables.append(TableSnap([_row(_td("B", 345, 900))], Box(280, 900, 200, 20)))

    assert positional(snap, ScraperConfig()) is None
