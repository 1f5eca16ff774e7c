import asyncio
import json

import pytest

from skyward_scraper.errors import BrowserLaunchError
from skyward_scraper.session import BrowserSession, TurnQueue, stealth_script
from skyward_scraper.utils.ratelimiter import TokenBucket

from .fakes import FakeLauncher


def test_stealth_script_masks_webdriver_and_sets_languages() -> None:
    script = stealth_script(["en-US", "en"])
    assert "navigator, 'webdriver'" in script
    assert json.dumps(["en-US", "en"]) in script
    assert script.startswith("(") and script.endswith("();")


def test_browser_is_reused_while_connected(config, clock) -> None:
    launcher = FakeLauncher()
    session = BrowserSession(config, launcher=launcher, clock=clock)

    async def scenario():
        first = await session.acquire()
        second = await session.acquire()
        return first, second

    first, second = asyncio.run(scenario())

    assert first is second
    assert len(launcher.browsers) == 1


def test_dead_browser_is_replaced(config, clock) -> None:
    launcher = FakeLauncher()
    session = BrowserSession(config, launcher=launcher, clock=clock)

    async def scenario():
        first = await session.acquire()
        first.connected = False
        return first, await session.acquire()

    first, second = asyncio.run(scenario())

    assert second is not first
    assert first.closed
    assert len(launcher.browsers) == 2
    # second launch waited out the cooldown on the fake clock
    assert clock.now == pytest.approx(config.timeouts.launch_cooldown_s)


def test_launch_failure_is_wrapped(config, clock) -> None:
    session = BrowserSession(config, launcher=FakeLauncher(error=RuntimeError("no display")), clock=clock)

    with pytest.raises(BrowserLaunchError) as exc_info:
        asyncio.run(session.acquire())

    assert "no display" in str(exc_info.value)
    assert session.browser is None


def test_new_page_gets_stealth_context(config, clock) -> None:
    launcher = FakeLauncher()
    session = BrowserSession(config, launcher=launcher, clock=clock)

    page = asyncio.run(session.new_page())

    browser = launcher.browsers[0]
    options = browser.context_options[0]
    assert options["viewport"] == {"width": 1366, "height": 768}
    assert options["user_agent"] == config.stealth.user_agent
    assert page.context.init_scripts and "webdriver" in page.context.init_scripts[0]
    assert page.context.navigation_timeout == config.timeouts.navigation_s * 1000


def test_release_is_idempotent(config, clock) -> None:
    launcher = FakeLauncher()
    session = BrowserSession(config, launcher=launcher, clock=clock)

    async def scenario():
        await session.acquire()
        await session.release()
        await session.release()

    asyncio.run(scenario())

    assert launcher.browsers[0].closed
    assert session.browser is None


def test_turn_queue_is_fifo() -> None:
    order = []

    async def scenario():
        turns = TurnQueue()

        async def worker(name: str) -> None:
            await turns.wait_for_turn()
            try:
                order.append(f"{name} start")
                await asyncio.sleep(0)
                await asyncio.sleep(0)
                order.append(f"{name} end")
            finally:
                turns.release_turn()

        await asyncio.gather(worker("a"), worker("b"), worker("c"))
        return turns

    turns = asyncio.run(scenario())

    assert order == ["a start", "a end", "b start", "b end", "c start", "c end"]
    assert not turns.busy


def test_cancelled_waiter_does_not_block_the_queue() -> None:
    async def scenario():
        turns = TurnQueue()
        await turns.wait_for_turn()
        blocked = asyncio.ensure_future(turns.wait_for_turn())
        later = asyncio.ensure_future(turns.wait_for_turn())
        await asyncio.sleep(0)
        blocked.cancel()
        await asyncio.sleep(0)
        turns.release_turn()
        await asyncio.wait_for(later, 1)
        return turns

    turns = asyncio.run(scenario())
    assert turns.busy and turns.waiting == 0


def test_with_exclusive_turn_releases_after_errors(config, clock) -> None:
    session = BrowserSession(config, launcher=FakeLauncher(), clock=clock)

    async def boom():
        raise ValueError("bad")

    async def fine():
        return "ok"

    async def scenario():
        with pytest.raises(ValueError):
            await session.with_exclusive_turn(boom)
        return await session.with_exclusive_turn(fine)

    assert asyncio.run(scenario()) == "ok"
    assert not session.turns.busy


def test_token_bucket_holds_back_the_second_launch(clock) -> None:
    bucket = TokenBucket(rate=1, per=5, clock=clock)

    async def scenario():
        return await bucket.acquire(), await bucket.acquire()

    first, second = asyncio.run(scenario())

    assert first == 0
    assert second == pytest.approx(5)
