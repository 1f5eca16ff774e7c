import asyncio

import pytest

from skyward_scraper.errors import PageLostError
from skyward_scraper.navigation import go_to_grades, recover_page, simulate_activity, wait_for_grades
from skyward_scraper.waits import wait_until

from .fakes import GRADEBOOK_URL, HOME_BODY, HOME_URL, LOGIN_URL, FakeClock, FakeContext


def _home(ctx: FakeContext):
    home = ctx.open_page(HOME_URL, HOME_BODY)

    def click(needle: str) -> bool:
        ctx.open_page(GRADEBOOK_URL, "Loading...")
        return True

    home.on_link = click
    return home


# ---------------------- wait_until ----------------------


def test_wait_until_times_out_on_the_injected_clock(clock) -> None:
    calls = []

    def never() -> bool:
        calls.append(clock.now)
        return False

    met = asyncio.run(wait_until(never, timeout=45, interval=0.5, clock=clock))

    assert met is False
    assert clock.now == pytest.approx(45)
    assert len(calls) == 91


def test_wait_until_treats_errors_as_not_ready(clock) -> None:
    attempts = iter([RuntimeError("navigating"), False, True])

    async def flaky() -> bool:
        result = next(attempts)
        if isinstance(result, Exception):
            raise result
        return result

    assert asyncio.run(wait_until(flaky, timeout=10, interval=1, clock=clock)) is True
    assert clock.now == 2


def test_wait_until_checks_once_even_with_zero_timeout(clock) -> None:
    assert asyncio.run(wait_until(lambda: True, timeout=0, clock=clock)) is True


# ---------------------- navigation ----------------------


def test_go_to_grades_adopts_gradebook_window(config, clock) -> None:
    async def scenario():
        ctx = FakeContext()
        home = _home(ctx)
        return ctx, home, await go_to_grades(home, config, clock)

    ctx, home, target = asyncio.run(scenario())

    assert target is ctx.pages[-1]
    assert target.url == GRADEBOOK_URL
    assert ("click_link", "gradebook") in ctx.log


def test_go_to_grades_without_link_stays_put(config, clock) -> None:
    async def scenario():
        ctx = FakeContext()
        home = ctx.open_page(HOME_URL, HOME_BODY)
        return home, await go_to_grades(home, config, clock)

    home, target = asyncio.run(scenario())
    assert target is home


def test_go_to_grades_returns_none_when_window_is_gone(config, clock) -> None:
    async def scenario():
        ctx = FakeContext()
        home = ctx.open_page(HOME_URL, HOME_BODY)

        def close_self(needle: str) -> bool:
            home.closed = True
            return True

        home.on_link = close_self
        return await go_to_grades(home, config, clock)

    assert asyncio.run(scenario()) is None


def test_simulate_activity_moves_and_scrolls() -> None:
    async def scenario():
        ctx = FakeContext()
        page = ctx.open_page(HOME_URL, HOME_BODY)
        await simulate_activity(page)
        return page

    page = asyncio.run(scenario())
    assert page.mouse.moves == [(400, 300), (600, 400)]
    assert page.scrolls == [200]


def test_wait_for_grades_returns_once_quarters_render(config, clock) -> None:
    async def scenario():
        ctx = FakeContext()
        page = ctx.open_page(GRADEBOOK_URL, "Loading...")
        original_sleep = clock.sleep

        async def render_after_a_while(seconds: float) -> None:
            await original_sleep(seconds)
            if clock.now >= 5:
                page.body = "Class Q1 Q2 Q3 Q4\nBIOLOGY A B"

        clock.sleep = render_after_a_while
        return await wait_for_grades(page, config, clock)

    assert asyncio.run(scenario()) is True
    assert 5 <= clock.now < 6


def test_wait_for_grades_grace_period_when_still_loading(config, clock) -> None:
    async def scenario():
        ctx = FakeContext()
        page = ctx.open_page(GRADEBOOK_URL, "Loading...")
        return await wait_for_grades(page, config, clock)

    assert asyncio.run(scenario()) is False
    assert clock.now == pytest.approx(config.timeouts.grades_load_s + config.timeouts.grades_grace_s)


def test_wait_for_grades_skips_grace_when_not_loading(config) -> None:
    clock = FakeClock()

    async def scenario():
        ctx = FakeContext()
        page = ctx.open_page(GRADEBOOK_URL, "Session expired")
        return await wait_for_grades(page, config, clock)

    assert asyncio.run(scenario()) is False
    assert clock.now == pytest.approx(config.timeouts.grades_load_s)


# ---------------------- recovery ----------------------


def test_recover_page_prefers_gradebook_window(config) -> None:
    ctx = FakeContext()
    ctx.open_page(LOGIN_URL)
    grades = ctx.open_page(GRADEBOOK_URL)
    ctx.open_page(HOME_URL)

    assert asyncio.run(recover_page(ctx, config.portal_settings)) is grades


def test_recover_page_falls_back_to_signed_in_window(config) -> None:
    ctx = FakeContext()
    ctx.open_page(LOGIN_URL)
    home = ctx.open_page(HOME_URL)

    assert asyncio.run(recover_page(ctx, config.portal_settings)) is home


def test_recover_page_raises_when_only_login_is_left(config) -> None:
    ctx = FakeContext()
    ctx.open_page(LOGIN_URL)

    with pytest.raises(PageLostError):
        asyncio.run(recover_page(ctx, config.portal_settings))
