import asyncio
from typing import List

import pytest

from fakes import FAST_SETTINGS, FakeDriver
from scout_engine.core.errors import ScoutError
from scout_engine.detection import ChangeKind
from scout_engine.engine import (
    ChangeDetected,
    EngineEvent,
    Executed,
    Failed,
    InstructionStatus,
    NavigationEngine,
    Resolved,
)

DOCS_LINK = {"selector": "#docs", "text": "Docs", "tag": "a", "is_navigation": True, "resolved_url": "https://example.test/docs"}
SIGN_IN = {"selector": "#login", "text": "Sign in", "tag": "button", "is_button": True}
EMAIL = {"selector": "#email", "text": "Email", "tag": "input", "input_type": "email"}


def _driver() -> FakeDriver:
    driver = FakeDriver(url="https://example.test/", html="<html><body>home</body></html>", elements=[DOCS_LINK, SIGN_IN, EMAIL])
    driver.effects["https://example.test/docs"] = lambda d: d.load(
        "https://example.test/docs",
        title="Docs",
        html="<html><body>docs</body></html>",
        elements=[{"selector": "#search", "text": "Search docs", "tag": "button", "is_button": True}],
    )
    return driver


@pytest.mark.asyncio
async def test_navigation_refreshes_the_catalog_before_returning() -> None:
    async with NavigationEngine(_driver(), settings=FAST_SETTINGS) as engine:
        assert engine.catalog.generation == 1

        result = await engine.submit_instruction("docs")

        assert result.status is InstructionStatus.COMPLETED
        assert result.report is not None and result.report.kind is ChangeKind.NAVIGATED
        assert engine.catalog.generation == 2
        assert engine.catalog.labels() == ["Search docs"]
        assert not engine.busy


@pytest.mark.asyncio
async def test_second_instruction_is_rejected_while_busy() -> None:
    async with NavigationEngine(_driver(), settings=FAST_SETTINGS) as engine:
        first = asyncio.create_task(engine.submit_instruction("sign in"))
        await asyncio.sleep(0)

        rejected = await engine.submit_instruction("docs")
        completed = await first

        assert rejected.status is InstructionStatus.BUSY
        assert completed.status is InstructionStatus.COMPLETED
        assert completed.report.kind is ChangeKind.UNCHANGED


@pytest.mark.asyncio
async def test_unknown_instruction_is_ambiguous() -> None:
    driver = FakeDriver(elements=[])
    async with NavigationEngine(driver, settings=FAST_SETTINGS) as engine:
        result = await engine.submit_instruction("xyzzy plugh")

        assert result.status is InstructionStatus.AMBIGUOUS
        assert result.message.startswith("instruction_ambiguous")
        assert not any(name == "click" for name, _ in driver.calls)


@pytest.mark.asyncio
async def test_empty_instruction_only_suggests() -> None:
    driver = _driver()
    async with NavigationEngine(driver, settings=FAST_SETTINGS) as engine:
        result = await engine.submit_instruction("")

        assert result.status is InstructionStatus.SUGGESTED
        assert result.suggestions
        assert driver.calls == []


@pytest.mark.asyncio
async def test_lost_driver_fails_the_instruction_and_releases_the_lock() -> None:
    driver = _driver()
    async with NavigationEngine(driver, settings=FAST_SETTINGS) as engine:
        driver.connected = False

        result = await engine.submit_instruction("sign in")

        assert result.status is InstructionStatus.FAILED
        assert result.message.startswith("driver_unavailable")
        assert not engine.busy


@pytest.mark.asyncio
async def test_exhausted_cascade_is_reported_as_failure() -> None:
    driver = _driver()
    driver.present = set()
    driver.script_result = False
    async with NavigationEngine(driver, settings=FAST_SETTINGS) as engine:
        result = await engine.submit_instruction("sign in")

        assert result.status is InstructionStatus.FAILED
        assert result.outcome is not None and not result.outcome.succeeded
        assert result.message.startswith("execution_failed")


@pytest.mark.asyncio
async def test_typed_value_reaches_the_field() -> None:
    driver = _driver()
    async with NavigationEngine(driver, settings=FAST_SETTINGS) as engine:
        result = await engine.submit_instruction('type "ada@example.test" into email')

        assert result.status is InstructionStatus.COMPLETED
        assert driver.typed == {"#email": "ada@example.test"}


@pytest.mark.asyncio
async def test_listeners_see_events_in_order() -> None:
    seen: List[EngineEvent] = []

    async def _async_listener(event: EngineEvent) -> None:
        seen.append(event)

    def _broken_listener(event: EngineEvent) -> None:
        raise RuntimeError("listener bug")

    driver = _driver()
    driver.effects["#login"] = lambda d: setattr(d, "html", d.html + "<p>" + "x" * 400 + "</p>")
    async with NavigationEngine(driver, settings=FAST_SETTINGS) as engine:
        engine.add_listener(_broken_listener)
        engine.add_listener(_async_listener)

        result = await engine.submit_instruction("sign in")

        flow = [type(event) for event in seen if not type(event).__name__ == "BatchDiscovered"]
        assert flow == [Resolved, Executed, ChangeDetected]
        assert result.report.kind is ChangeKind.DOM_GREW
        assert engine.catalog.generation == 2
        assert [turn.role for turn in engine.context.turns()] == ["user", "assistant"]


@pytest.mark.asyncio
async def test_busy_rejection_emits_failure_event() -> None:
    failures: List[Failed] = []
    async with NavigationEngine(_driver(), settings=FAST_SETTINGS) as engine:
        engine.add_listener(lambda event: failures.append(event) if isinstance(event, Failed) else None)
        first = asyncio.create_task(engine.submit_instruction("sign in"))
        await asyncio.sleep(0)

        await engine.submit_instruction("docs")
        await first

    assert [event.classification for event in failures] == ["busy"]


@pytest.mark.asyncio
async def test_supersede_cancels_change_detection() -> None:
    settings = {**FAST_SETTINGS, "change_detection": {"poll_interval_seconds": 0.01, "action_max_wait_seconds": 5.0}}
    async with NavigationEngine(_driver(), settings=settings) as engine:
        task = asyncio.create_task(engine.submit_instruction("sign in"))
        await asyncio.sleep(0.05)

        engine.supersede()
        result = await asyncio.wait_for(task, 1.0)

        assert result.report.cancelled


@pytest.mark.asyncio
async def test_subscribers_receive_discovery_batches() -> None:
    engine = NavigationEngine(_driver(), settings=FAST_SETTINGS)
    subscription = engine.subscribe()
    await engine.start()

    batch = await asyncio.wait_for(subscription.__anext__(), 1.0)
    await engine.close()

    assert batch.is_initial
    assert {item.selector for item in batch.actions} == {"#docs", "#login", "#email"}
    assert [item async for item in subscription] == []
    assert engine.stats.discovered_actions == 3


class _SettlingDriver(FakeDriver):
    """Page whose title lookup breaks while a previous navigation is still settling."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.settling = False

    async def get_page_info(self):
        if self.settling:
            raise ScoutError("title: Execution context was destroyed")
        return await super().get_page_info()


@pytest.mark.asyncio
async def test_page_errors_fail_the_instruction_without_raising() -> None:
    driver = _SettlingDriver(url="https://example.test/", html="<html><body>home</body></html>", elements=[SIGN_IN])
    failures: List[Failed] = []
    async with NavigationEngine(driver, settings=FAST_SETTINGS) as engine:
        engine.add_listener(lambda event: failures.append(event) if isinstance(event, Failed) else None)
        driver.settling = True

        result = await engine.submit_instruction("sign in")

        assert result.status is InstructionStatus.FAILED
        assert result.message == "error: title: Execution context was destroyed"
        assert [event.classification for event in failures] == ["error"]
        assert not engine.busy
