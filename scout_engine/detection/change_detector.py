"""Bounded polling that classifies what an interaction did to the page."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Sequence

from scout_engine.browser.driver import BrowserDriver
from scout_engine.config_loader import section
from scout_engine.core.errors import DriverUnavailable

from .rules import DEFAULT_RULES, SIGNAL_SUMMARIES, SignalRule, first_signal
from .types import ChangeKind, ChangeReport, SignalKind, Snapshot

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Polls URL, title and markup after an action; first matching condition wins.

    Precedence is fixed: URL change, then the ordered phrase rules, then a markup length
    delta. When the window closes with nothing detected the report says ``unchanged``.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        settings: Mapping[str, Any] | None = None,
        rules: Sequence[SignalRule] = DEFAULT_RULES,
    ) -> None:
        options = section(settings, "change_detection")
        self.driver = driver
        self.rules = tuple(rules)
        self.poll_interval = float(options.get("poll_interval_seconds", 0.1))
        self.action_max_wait = float(options.get("action_max_wait_seconds", 2.0))
        self.submit_max_wait = float(options.get("submit_max_wait_seconds", 5.0))
        self.relative_threshold = float(options.get("relative_threshold", 0.1))
        self.absolute_threshold = int(options.get("absolute_threshold", 200))
        self.short_page_chars = int(options.get("short_page_chars", 1000))

    async def capture_snapshot(self) -> Snapshot:
        info = await self.driver.get_page_info()
        markup = await self.driver.get_page_html()
        return Snapshot(url=info.url, title=info.title, markup=markup)

    async def wait_for_change(
        self,
        before: Snapshot,
        max_wait: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> ChangeReport:
        loop = asyncio.get_running_loop()
        budget = self.action_max_wait if max_wait is None else max(0.0, max_wait)
        started = loop.time()
        deadline = started + budget
        last_url, last_title, last_length = before.url, before.title, before.markup_length

        while True:
            if cancel is not None and cancel.is_set():
                return self._unchanged(before, last_url, last_title, last_length, loop.time() - started, cancelled=True)
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.poll_interval, remaining))
            if cancel is not None and cancel.is_set():
                return self._unchanged(before, last_url, last_title, last_length, loop.time() - started, cancelled=True)
            try:
                info = await self.driver.get_page_info()
                if info.url != before.url:
                    return self._report(before, info.url, info.title, ChangeKind.NAVIGATED, None, last_length, loop.time() - started)
                markup = await self.driver.get_page_html()
            except DriverUnavailable:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.debug("Skipping change poll: %s", exc)
                continue
            last_url, last_title, last_length = info.url, info.title, len(markup)
            report = self.classify(before, info.url, info.title, markup, loop.time() - started)
            if report is not None:
                return report

        return self._unchanged(before, last_url, last_title, last_length, loop.time() - started)

    def classify(
        self,
        before: Snapshot,
        url: str,
        title: str,
        markup: str,
        elapsed: float = 0.0,
    ) -> Optional[ChangeReport]:
        """Classify one observation against ``before``; None means keep polling."""

        if url != before.url:
            return self._report(before, url, title, ChangeKind.NAVIGATED, None, len(markup), elapsed)
        signal = first_signal(before.markup, markup, self.rules)
        if signal is not None:
            return self._report(before, url, title, ChangeKind.SEMANTIC_SIGNAL, signal, len(markup), elapsed)
        delta = len(markup) - before.markup_length
        if abs(delta) > self.length_threshold(before.markup_length):
            kind = ChangeKind.DOM_GREW if delta > 0 else ChangeKind.DOM_SHRANK
            return self._report(before, url, title, kind, None, len(markup), elapsed)
        return None

    def length_threshold(self, before_length: int) -> float:
        if before_length < self.short_page_chars:
            return float(self.absolute_threshold)
        return before_length * self.relative_threshold

    def max_wait_for(self, submits_form: bool) -> float:
        return self.submit_max_wait if submits_form else self.action_max_wait

    def _unchanged(
        self,
        before: Snapshot,
        url: str,
        title: str,
        length: int,
        elapsed: float,
        cancelled: bool = False,
    ) -> ChangeReport:
        return self._report(before, url, title, ChangeKind.UNCHANGED, None, length, elapsed, cancelled=cancelled)

    def _report(
        self,
        before: Snapshot,
        url: str,
        title: str,
        kind: ChangeKind,
        signal: Optional[SignalKind],
        length_after: int,
        elapsed: float,
        cancelled: bool = False,
    ) -> ChangeReport:
        report = ChangeReport(
            url_before=before.url,
            url_after=url,
            title_after=title,
            kind=kind,
            signal=signal,
            summary=summarize(kind, signal, before, url, title, length_after, elapsed, cancelled),
            length_before=before.markup_length,
            length_after=length_after,
            elapsed=elapsed,
            cancelled=cancelled,
        )
        logger.debug("Change classified", extra={"classification": report.classification, "elapsed": round(elapsed, 3)})
        return report


def summarize(
    kind: ChangeKind,
    signal: Optional[SignalKind],
    before: Snapshot,
    url: str,
    title: str,
    length_after: int,
    elapsed: float,
    cancelled: bool = False,
) -> str:
    if kind is ChangeKind.NAVIGATED:
        suffix = f' ("{title}")' if title else ""
        return f"Navigated from {before.url} to {url}{suffix}"
    if kind is ChangeKind.SEMANTIC_SIGNAL and signal is not None:
        return f"{SIGNAL_SUMMARIES[signal]} on {url}"
    if kind is ChangeKind.DOM_GREW:
        return f"Page content grew by {length_after - before.markup_length} characters ({before.markup_length} -> {length_after})"
    if kind is ChangeKind.DOM_SHRANK:
        return f"Page content shrank by {before.markup_length - length_after} characters ({before.markup_length} -> {length_after})"
    if cancelled:
        return f"Change detection cancelled after {elapsed:.1f}s"
    return f"No visible change after {elapsed:.1f}s"


__all__ = ["ChangeDetector", "summarize"]
