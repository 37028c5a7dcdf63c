from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from scout_engine.ai.models import CommandInterpretation, DiscoveredAction, RankedElement, RankingCandidate
from scout_engine.browser.driver import InteractiveElement, PageInfo
from scout_engine.catalog.types import ElementKind, InteractionMethod, NavigableElement
from scout_engine.core.errors import DriverUnavailable, ElementNotFound

FAST_SETTINGS: Dict[str, Any] = {
    "executor": {"max_rounds": 3, "attempts_per_round": 5, "variant_wait_ms": 10, "retry_delay_seconds": 0},
    "change_detection": {
        "poll_interval_seconds": 0.01,
        "action_max_wait_seconds": 0.1,
        "submit_max_wait_seconds": 0.2,
    },
    "discovery": {"poll_interval_seconds": 0.01, "duration_seconds": 0.15, "analysis_timeout_seconds": 0.5},
    "resolver": {"remote_timeout_seconds": 0.2},
    "engine": {"min_confidence": 0.3},
}

Effect = Callable[["FakeDriver"], None]


class FakeDriver:
    """In-memory page whose state tests rewrite directly or through click effects."""

    def __init__(
        self,
        *,
        url: str = "https://example.test/",
        title: str = "Example",
        html: str = "<html><body></body></html>",
        elements: Sequence[InteractiveElement] = (),
    ) -> None:
        self.url = url
        self.title = title
        self.html = html
        self.elements: List[InteractiveElement] = list(elements)
        self.connected = True
        self.missing: Set[str] = set()
        self.present: Optional[Set[str]] = None
        self.script_result: Any = True
        self.html_sequence: List[str] = []
        self.effects: Dict[str, Effect] = {}
        self.typed: Dict[str, str] = {}
        self.calls: List[Tuple[str, str]] = []

    def load(self, url: str, *, title: str = "", html: str = "", elements: Sequence[InteractiveElement] = ()) -> None:
        self.url = url
        self.title = title
        self.html = html
        self.elements = list(elements)

    def _check(self) -> None:
        if not self.connected:
            raise DriverUnavailable("page closed")

    def _exists(self, selector: str) -> bool:
        if selector in self.missing:
            return False
        return self.present is None or selector in self.present

    def attempts(self) -> List[Tuple[str, str]]:
        return [call for call in self.calls if call[0] in {"click", "send_keys", "wait_for_element", "execute_script", "navigate"}]

    async def navigate(self, url: str) -> None:
        self._check()
        self.calls.append(("navigate", url))
        self.url = url
        effect = self.effects.get(url)
        if effect is not None:
            effect(self)

    async def click(self, selector: str) -> None:
        self._check()
        self.calls.append(("click", selector))
        if not self._exists(selector):
            raise ElementNotFound(f"No element for {selector}")
        effect = self.effects.get(selector)
        if effect is not None:
            effect(self)

    async def send_keys(self, selector: str, text: str) -> None:
        self._check()
        self.calls.append(("send_keys", selector))
        if not self._exists(selector):
            raise ElementNotFound(f"No element for {selector}")
        self.typed[selector] = text

    async def execute_script(self, script: str) -> Any:
        self._check()
        self.calls.append(("execute_script", script))
        if callable(self.script_result):
            return self.script_result(script)
        return self.script_result

    async def wait_for_element(self, selector: str, timeout_ms: int) -> None:
        self._check()
        self.calls.append(("wait_for_element", selector))
        if not self._exists(selector):
            raise ElementNotFound(f"Timed out waiting for {selector}")

    async def get_page_info(self) -> PageInfo:
        self._check()
        return PageInfo(url=self.url, title=self.title)

    async def get_page_html(self) -> str:
        self._check()
        if self.html_sequence:
            self.html = self.html_sequence.pop(0)
        return self.html

    async def extract_interactive_elements(self) -> List[InteractiveElement]:
        self._check()
        return list(self.elements)


class FakeAssistant:
    """Scripted collaborator; ``incremental`` items are returned (or raised) in order."""

    def __init__(
        self,
        *,
        ranked: Sequence[RankedElement] = (),
        interpretation: CommandInterpretation | None = None,
        initial: Sequence[DiscoveredAction] = (),
        incremental: Sequence[Any] = (),
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.ranked = list(ranked)
        self.interpretation = interpretation or CommandInterpretation()
        self.initial = list(initial)
        self.incremental = list(incremental)
        self.delay = delay
        self.error = error
        self.calls: List[str] = []
        self.deltas: List[str] = []
        self.closed = False

    async def _pause(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

    async def interpret_command(self, text: str, known_actions: Sequence[str], context: Any = None) -> CommandInterpretation:
        self.calls.append("interpret")
        await self._pause()
        return self.interpretation

    async def rank_navigation_elements(self, text: str, candidates: Sequence[RankingCandidate]) -> List[RankedElement]:
        self.calls.append("rank")
        await self._pause()
        return list(self.ranked)

    async def analyze_initial_markup(self, html: str) -> List[DiscoveredAction]:
        self.calls.append("initial")
        await self._pause()
        return list(self.initial)

    async def analyze_incremental_markup(self, delta: str, known: Sequence[DiscoveredAction]) -> List[DiscoveredAction]:
        self.calls.append("incremental")
        self.deltas.append(delta)
        if not self.incremental:
            return []
        item = self.incremental.pop(0)
        if isinstance(item, BaseException):
            raise item
        return list(item)

    async def aclose(self) -> None:
        self.closed = True


def link(label: str, selector: str, url: str, position: int = 0) -> NavigableElement:
    return NavigableElement(ElementKind.LINK, label, selector, InteractionMethod.NAVIGATE, target_url=url, tag="a", position=position)


def button(label: str, selector: str, position: int = 0) -> NavigableElement:
    return NavigableElement(ElementKind.BUTTON, label, selector, InteractionMethod.CLICK, tag="button", position=position)


def form_field(label: str, selector: str, position: int = 0) -> NavigableElement:
    return NavigableElement(ElementKind.FORM_FIELD, label, selector, InteractionMethod.TYPE_TEXT, tag="input", position=position)


def action(selector: str, verb: str = "click", description: str = "", priority: str = "medium") -> DiscoveredAction:
    return DiscoveredAction(description=description or f"Click {selector}", selector=selector, interaction_verb=verb, priority=priority)
