import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pandas as pd
import pytest

from skyward_scraper.models import ConnectionResult, CourseRecord, QuarterGrade, ScrapeResult
from skyward_scraper.runner import parse_args, run, write_record
from skyward_scraper.to_excel import convert_to_excel, courses_to_frame


def _fake_client() -> Mock:
    client = Mock()
    course = CourseRecord("BIOLOGY", "Period 1", "SMITH, JOHN", [
        QuarterGrade("Q1", "A"), QuarterGrade("Q2", "B"), QuarterGrade("Q3", None, True), QuarterGrade("Q4"),
    ])
    client.scrape_grades = AsyncMock(return_value=ScrapeResult(success=True, courses=[course], missing_assignments=[]))
    client.test_connection = AsyncMock(return_value=ConnectionResult(success=True, message="Connected successfully!"))
    client.scrape_course_details = AsyncMock()
    client.close = AsyncMock()
    return client


def test_parse_args_reads_credentials_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SKYWARD_USERNAME", "jdoe")
    monkeypatch.setenv("SKYWARD_PASSWORD", "hunter2")

    args = parse_args(["--dotenv", str(tmp_path / "missing.env"), "--test"])

    assert (args.username, args.password) == ("jdoe", "hunter2")
    assert args.test and args.course is None


def test_parse_args_requires_credentials(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("SKYWARD_USERNAME", raising=False)
    monkeypatch.delenv("SKYWARD_PASSWORD", raising=False)

    with pytest.raises(SystemExit):
        parse_args(["--dotenv", str(tmp_path / "missing.env")])


def test_run_grades_builds_a_record(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SKYWARD_USERNAME", "jdoe")
    monkeypatch.setenv("SKYWARD_PASSWORD", "hunter2")
    args = parse_args(["--dotenv", str(tmp_path / "missing.env")])
    client = _fake_client()

    record = asyncio.run(run(args, client))

    client.scrape_grades.assert_awaited_once_with("jdoe", "hunter2")
    client.close.assert_awaited_once()
    assert record["operation"] == "grades"
    assert record["success"] is True
    assert record["courses"][0]["name"] == "BIOLOGY"
    assert "hunter2" not in json.dumps(record)


def test_run_connection_test(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    args = parse_args(["-u", "jdoe", "-p", "hunter2", "--test", "--dotenv", str(tmp_path / "missing.env")])
    client = _fake_client()

    record = asyncio.run(run(args, client))

    assert record["operation"] == "test_connection"
    assert client.scrape_grades.await_count == 0


def test_jsonl_to_excel(tmp_path: Path) -> None:
    out = tmp_path / "grades.jsonl"
    write_record({"operation": "grades", "success": False, "error": "x"}, out)
    write_record(
        {
            "operation": "grades",
            "success": True,
            "courses": [
                {
                    "name": "ALGEBRA II",
                    "period": "Period 3",
                    "teacher": "JONES, MARY",
                    "grades": [
                        {"quarter": "Q1", "letter": None, "isCurrent": False},
                        {"quarter": "Q2", "letter": None, "isCurrent": False},
                        {"quarter": "Q3", "letter": "B+", "isCurrent": True},
                        {"quarter": "Q4", "letter": None, "isCurrent": False},
                    ],
                }
            ],
        },
        out,
    )
    xlsx = tmp_path / "report" / "grades.xlsx"

    assert convert_to_excel(out, xlsx) is True

    df = pd.read_excel(xlsx, sheet_name="Grades").fillna("")
    assert list(df.columns) == ["Course", "Period", "Teacher", "Q1", "Q2", "Q3", "Q4", "Current"]
    assert df.iloc[0]["Course"] == "ALGEBRA II"
    assert df.iloc[0]["Q3"] == "B+"
    assert df.iloc[0]["Current"] == "Q3"


def test_convert_without_successful_runs(tmp_path: Path) -> None:
    out = tmp_path / "grades.jsonl"
    write_record({"operation": "grades", "success": False, "error": "x"}, out)

    assert convert_to_excel(out, tmp_path / "g.xlsx") is False
    assert convert_to_excel(tmp_path / "nope.jsonl", tmp_path / "g.xlsx") is False


def test_courses_to_frame_handles_missing_quarters() -> None:
    df = courses_to_frame([{"name": "ART", "grades": [{"quarter": "Q1", "letter": "A", "isCurrent": False}]}])
    assert df.iloc[0].tolist() == ["ART", "", "", "A", "", "", "", ""]
