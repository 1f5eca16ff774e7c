import asyncio
from pathlib import Path

from skyward_scraper.config import ScraperConfig
from skyward_scraper.debug import DebugRecorder
from skyward_scraper.utils.captcha_guard import bot_check_markers, report_bot_check

from .fakes import GRADEBOOK_URL, FakeContext


def test_recorder_is_silent_when_debug_is_off(tmp_path: Path) -> None:
    recorder = DebugRecorder(ScraperConfig(debug=False, debug_dir=tmp_path))
    page = FakeContext().open_page(GRADEBOOK_URL, "Q1 Q2")

    async def scenario():
        return await recorder.screenshot(page, "gradebook"), await recorder.dump_dom(page)

    shot, dump = asyncio.run(scenario())

    assert shot is None and dump == (None, [])
    assert page.screenshots == []
    assert list(tmp_path.iterdir()) == []


def test_recorder_writes_screenshots_and_dom(tmp_path: Path) -> None:
    recorder = DebugRecorder(ScraperConfig(debug=True, debug_dir=tmp_path / "debug"), run_id="run1")
    page = FakeContext().open_page(GRADEBOOK_URL, "Q1 Q2")

    async def scenario():
        return await recorder.screenshot(page, "gradebook"), await recorder.dump_dom(page)

    shot, (main_path, frames) = asyncio.run(scenario())

    assert shot == tmp_path / "debug" / "run1-gradebook.png"
    assert page.screenshots == [str(shot)]
    assert main_path.read_text(encoding="utf-8") == page.html
    assert frames == []
    assert recorder.written == [shot, main_path]


def test_recorder_survives_a_closed_page(tmp_path: Path) -> None:
    recorder = DebugRecorder(ScraperConfig(debug=True, debug_dir=tmp_path))
    page = FakeContext().open_page(GRADEBOOK_URL)
    page.closed = True

    assert asyncio.run(recorder.dump_dom(page)) == (None, [])


def test_bot_check_markers() -> None:
    html = "<html><body><h1>Please verify you are a human</h1><div class='g-recaptcha'></div></body></html>"
    assert bot_check_markers(html) == ["please verify you are a human", "captcha", "recaptcha"]
    assert bot_check_markers("<p>Q1 Q2</p>") == []
    assert report_bot_check("Access Denied", GRADEBOOK_URL) == ["access denied"]


def test_recorder_logs_instead_of_raising_when_dir_is_unusable(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    recorder = DebugRecorder(ScraperConfig(debug=True, debug_dir=blocker / "sub"))
    page = FakeContext().open_page(GRADEBOOK_URL, "Q1 Q2")

    async def scenario():
        return await recorder.screenshot(page, "gradebook"), await recorder.dump_dom(page)

    shot, dump = asyncio.run(scenario())

    assert shot is None and dump == (None, [])
    assert recorder.written == []
