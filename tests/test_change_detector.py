import asyncio

import pytest

from fakes import FAST_SETTINGS, FakeDriver
from scout_engine.core.errors import DriverUnavailable
from scout_engine.detection import ChangeDetector, ChangeKind, SignalKind, Snapshot
from scout_engine.detection.rules import DEFAULT_RULES, RuleMode, SignalRule, first_signal

LOGIN_PAGE = "<html><body><form><input name='email'><button>Send link</button></form></body></html>"


@pytest.mark.asyncio
async def test_url_change_is_navigation_even_with_identical_markup() -> None:
    driver = FakeDriver(url="https://example.test/login", html=LOGIN_PAGE)
    detector = ChangeDetector(driver, FAST_SETTINGS)
    before = await detector.capture_snapshot()

    driver.url = "https://example.test/dashboard"
    driver.title = "Dashboard"
    report = await detector.wait_for_change(before)

    assert report.kind is ChangeKind.NAVIGATED
    assert report.classification == "navigated"
    assert report.url_after == "https://example.test/dashboard"
    assert "Dashboard" in report.summary


@pytest.mark.asyncio
async def test_magic_link_phrase_is_a_semantic_signal() -> None:
    driver = FakeDriver(url="https://example.test/login", html=LOGIN_PAGE)
    detector = ChangeDetector(driver, FAST_SETTINGS)
    before = await detector.capture_snapshot()

    driver.html = LOGIN_PAGE.replace("<form>", "<p>Magic link sent! Check your email.</p><form>")
    report = await detector.wait_for_change(before, max_wait=0.2)

    assert report.kind is ChangeKind.SEMANTIC_SIGNAL
    assert report.signal is SignalKind.MAGIC_LINK_SENT
    assert report.url_after == before.url
    assert report.classification == "semantic_signal:magic_link_sent"


def test_url_change_outranks_signals() -> None:
    detector = ChangeDetector(FakeDriver(), FAST_SETTINGS)
    before = Snapshot("https://a.test/", "A", "<p>hello</p>")

    report = detector.classify(before, "https://a.test/next", "B", "<p>hello</p><p>Error: invalid</p>")

    assert report is not None and report.kind is ChangeKind.NAVIGATED


def test_length_thresholds() -> None:
    detector = ChangeDetector(FakeDriver(), FAST_SETTINGS)
    short = Snapshot("https://a.test/", "A", "x" * 500)
    long = Snapshot("https://a.test/", "A", "x" * 5000)

    assert detector.classify(short, short.url, "A", "x" * 650) is None
    assert detector.classify(short, short.url, "A", "x" * 750).kind is ChangeKind.DOM_GREW
    assert detector.classify(long, long.url, "A", "x" * 4400).kind is ChangeKind.DOM_SHRANK
    assert detector.classify(long, long.url, "A", "x" * 5400) is None


@pytest.mark.asyncio
async def test_no_change_reports_unchanged_after_the_window() -> None:
    driver = FakeDriver(html=LOGIN_PAGE)
    detector = ChangeDetector(driver, FAST_SETTINGS)
    before = await detector.capture_snapshot()

    report = await detector.wait_for_change(before, max_wait=0.05)

    assert report.kind is ChangeKind.UNCHANGED
    assert not report.page_changed
    assert report.summary.startswith("No visible change")


@pytest.mark.asyncio
async def test_cancellation_stops_polling() -> None:
    driver = FakeDriver(html=LOGIN_PAGE)
    detector = ChangeDetector(driver, FAST_SETTINGS)
    before = await detector.capture_snapshot()
    cancel = asyncio.Event()
    cancel.set()

    report = await detector.wait_for_change(before, max_wait=5.0, cancel=cancel)

    assert report.cancelled
    assert report.kind is ChangeKind.UNCHANGED
    assert report.elapsed < 1.0


@pytest.mark.asyncio
async def test_lost_driver_propagates() -> None:
    driver = FakeDriver(html=LOGIN_PAGE)
    detector = ChangeDetector(driver, FAST_SETTINGS)
    before = await detector.capture_snapshot()
    driver.connected = False

    with pytest.raises(DriverUnavailable):
        await detector.wait_for_change(before)


def test_rule_order_decides_precedence() -> None:
    after = "<p>Welcome back! Saved successfully.</p>"

    assert first_signal("", after) is SignalKind.AUTH_SUCCESS
    assert first_signal("<div role=\"dialog\">x</div>", "<div>x</div>") is SignalKind.MODAL_CLOSED
    assert first_signal("<p>Loading...</p>", "<p>Done</p>") is SignalKind.LOADING_FINISHED


def test_custom_rule_table() -> None:
    rules = (SignalRule(SignalKind.ERROR, ("out of stock",)),) + DEFAULT_RULES
    detector = ChangeDetector(FakeDriver(), FAST_SETTINGS, rules=rules)
    before = Snapshot("https://a.test/", "A", "<p>cart</p>")

    report = detector.classify(before, before.url, "A", "<p>cart</p><p>Saved. Out of stock</p>")

    assert report.signal is SignalKind.ERROR


def test_disappeared_rule_needs_phrase_before() -> None:
    rule = SignalRule(SignalKind.LOADING_FINISHED, ("spinner",), RuleMode.DISAPPEARED)

    assert rule.matches("<div class=spinner>", "<div>")
    assert not rule.matches("<div>", "<div>")


def test_submit_actions_get_the_longer_window() -> None:
    detector = ChangeDetector(FakeDriver(), FAST_SETTINGS)

    assert detector.max_wait_for(True) == 0.2
    assert detector.max_wait_for(False) == 0.1
