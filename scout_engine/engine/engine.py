"""Session-level orchestration: resolve, execute, detect, discover."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from scout_engine.ai.base import AIAssistant
from scout_engine.ai.conversation import ConversationContext
from scout_engine.browser.driver import BrowserDriver
from scout_engine.catalog.catalog import ElementCatalog
from scout_engine.catalog.types import ElementKind, InteractionMethod, NavigableElement
from scout_engine.config_loader import section
from scout_engine.core.errors import DriverUnavailable, InstructionAmbiguous, ScoutError
from scout_engine.detection.change_detector import ChangeDetector
from scout_engine.detection.types import ChangeReport
from scout_engine.discovery.loop import DiscoveryLoop
from scout_engine.execution.executor import Executor
from scout_engine.execution.types import ExecutionOutcome
from scout_engine.resolver.commands import TypedInput, parse_typed_input
from scout_engine.resolver.resolver import Resolver, local_strategy
from scout_engine.resolver.scoring import match_score
from scout_engine.resolver.types import CommandVerb, Suggestion

from .events import BatchDiscovered, ChangeDetected, EngineEvent, Executed, Failed, Resolved, describe_event
from .feed import DiscoveryFeed, DiscoverySubscription

logger = logging.getLogger(__name__)

Listener = Callable[[EngineEvent], Any]


class InstructionStatus(str, Enum):
    COMPLETED = "completed"
    SUGGESTED = "suggested"
    AMBIGUOUS = "ambiguous"
    FAILED = "failed"
    BUSY = "busy"


@dataclass(frozen=True)
class InstructionResult:
    instruction: str
    status: InstructionStatus
    message: str
    suggestions: Tuple[Suggestion, ...] = ()
    chosen: Optional[Suggestion] = None
    outcome: Optional[ExecutionOutcome] = None
    report: Optional[ChangeReport] = None

    @property
    def succeeded(self) -> bool:
        return self.status is InstructionStatus.COMPLETED

    def as_payload(self) -> Dict[str, Any]:
        return {
            "instruction": self.instruction,
            "status": self.status.value,
            "message": self.message,
            "suggestions": [suggestion.as_payload() for suggestion in self.suggestions],
            "outcome": self.outcome.as_payload() if self.outcome else None,
            "report": self.report.as_payload() if self.report else None,
        }


@dataclass
class EngineStats:
    instructions: int = 0
    executions: int = 0
    failures: int = 0
    navigations: int = 0
    discovered_actions: int = 0
    history: List[str] = field(default_factory=list)


class NavigationEngine:
    """Owns one page session: catalog, busy lock, conversation and discovery task.

    The driver's lifecycle stays with the caller. At most one instruction runs at a time;
    a second one is answered with ``busy`` instead of waiting.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        assistant: AIAssistant | None = None,
        settings: Mapping[str, Any] | None = None,
        *,
        resolver: Resolver | None = None,
        executor: Executor | None = None,
        detector: ChangeDetector | None = None,
        context: ConversationContext | None = None,
    ) -> None:
        self.driver = driver
        self.assistant = assistant
        self.settings = dict(settings or {})
        self.resolver = resolver or Resolver(assistant, self.settings)
        self.executor = executor or Executor(driver, self.settings)
        self.detector = detector or ChangeDetector(driver, self.settings)
        self.context = context or ConversationContext.from_settings(self.settings)
        self.min_confidence = float(section(self.settings, "engine").get("min_confidence", 0.3))
        self.catalog = ElementCatalog()
        self.feed = DiscoveryFeed()
        self.stats = EngineStats()
        self._lock = asyncio.Lock()
        self._listeners: List[Listener] = []
        self._discovery: Optional[DiscoveryLoop] = None
        self._discovery_task: Optional[asyncio.Task[None]] = None
        self._discovery_cancel: Optional[asyncio.Event] = None
        self._change_cancel: Optional[asyncio.Event] = None

    async def __aenter__(self) -> "NavigationEngine":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def discovered(self) -> List[Any]:
        return self._discovery.known.ordered() if self._discovery else []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def subscribe(self) -> DiscoverySubscription:
        return self.feed.subscribe()

    async def start(self, url: Optional[str] = None) -> ElementCatalog:
        """Optionally load ``url``, then build the catalog and start discovery."""

        async with self._lock:
            if url:
                await self.driver.navigate(url)
            await self._page_loaded()
        return self.catalog

    async def close(self) -> None:
        self.supersede()
        await self._stop_discovery()
        self.feed.close()

    def supersede(self) -> None:
        """Cancel in-flight change detection and discovery polling at their next tick."""

        for event in (self._change_cancel, self._discovery_cancel):
            if event is not None:
                event.set()

    async def submit_instruction(self, text: str) -> InstructionResult:
        if self._lock.locked():
            result = InstructionResult(text, InstructionStatus.BUSY, "busy: another instruction is still running")
            await self._emit(Failed(text, "busy", result.message))
            return result
        async with self._lock:
            self.stats.instructions += 1
            try:
                return await self._handle(text)
            except ScoutError as exc:
                message = exc.describe()
                logger.warning("Instruction %r aborted: %s", text, exc)
                await self._emit(Failed(text, exc.kind, message))
                return InstructionResult(text, InstructionStatus.FAILED, message)

    async def _handle(self, text: str) -> InstructionResult:
        suggestions = await self.resolver.resolve(text, self.catalog, self.context)
        await self._emit(Resolved(text, tuple(suggestions)))
        if not text.strip():
            return InstructionResult(text, InstructionStatus.SUGGESTED, f"{len(suggestions)} suggestions", tuple(suggestions))
        self.context.add("user", text)

        chosen = suggestions[0] if suggestions else None
        if chosen is None or chosen.confidence < self.min_confidence:
            error = InstructionAmbiguous(f"no confident match for {text!r}", suggestions)
            await self._emit(Failed(text, error.kind, error.describe()))
            return InstructionResult(text, InstructionStatus.AMBIGUOUS, error.describe(), tuple(error.suggestions))

        typed = parse_typed_input(text)
        before = await self.detector.capture_snapshot()
        outcome = await self._execute(chosen, typed)
        await self._emit(Executed(text, chosen, outcome))
        if not outcome.succeeded:
            message = f"execution_failed: could not {chosen.label!r} ({outcome.error})"
            self.context.add("assistant", message)
            await self._emit(Failed(text, "execution_failed", message))
            return InstructionResult(text, InstructionStatus.FAILED, message, tuple(suggestions), chosen, outcome)

        cancel = asyncio.Event()
        self._change_cancel = cancel
        try:
            report = await self.detector.wait_for_change(before, self.detector.max_wait_for(_submits(chosen)), cancel)
        finally:
            self._change_cancel = None
        await self._emit(ChangeDetected(text, report))

        if report.navigated:
            await self._page_loaded()
        elif report.page_changed:
            await self._refresh_catalog()
        if chosen.element is not None and self._discovery is not None:
            self._discovery.known.mark_tested(chosen.element.selector)
        self.context.add("assistant", report.summary)
        return InstructionResult(text, InstructionStatus.COMPLETED, report.summary, tuple(suggestions), chosen, outcome, report)

    async def _execute(self, chosen: Suggestion, typed: Optional[TypedInput]) -> ExecutionOutcome:
        command = chosen.command
        if command is not None:
            if command.verb in {CommandVerb.CLICK_TARGET, CommandVerb.NAVIGATE_TO} and command.target:
                element = self._best_element(command.target, prefer_links=command.verb is CommandVerb.NAVIGATE_TO)
                if element is not None:
                    return await self.executor.execute(element, local_strategy(element))
            return await self.executor.run_command(command)
        element = chosen.element
        if element is None:
            raise ScoutError(f"suggestion {chosen.label!r} has neither an element nor a command")
        value = typed.value if typed is not None and element.method is InteractionMethod.TYPE_TEXT else None
        return await self.executor.execute(element, chosen.strategy, value)

    def _best_element(self, target: str, prefer_links: bool = False) -> Optional[NavigableElement]:
        best: Optional[NavigableElement] = None
        best_score = 0.0
        for element in self.catalog:
            score = match_score(target, element.label)
            if prefer_links and element.kind is ElementKind.LINK:
                score += 0.01
            if score > best_score:
                best, best_score = element, score
        return best if best_score >= self.resolver.confident_match else None

    async def _page_loaded(self) -> None:
        await self._stop_discovery()
        await self._refresh_catalog()
        try:
            markup = await self.driver.get_page_html()
        except DriverUnavailable:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not read markup for discovery: %s", exc)
            return
        self._start_discovery(markup)

    async def _refresh_catalog(self) -> None:
        try:
            self.catalog = await self.catalog.refresh(self.driver)
        except DriverUnavailable:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("Catalog refresh failed, clearing catalog: %s", exc)
            self.catalog = ElementCatalog(generation=self.catalog.generation + 1)

    def _start_discovery(self, markup: str) -> None:
        cancel = asyncio.Event()
        loop = DiscoveryLoop(self.driver, self.assistant, self.settings)
        self._discovery = loop
        self._discovery_cancel = cancel
        self._discovery_task = asyncio.create_task(self._pump(loop, markup, cancel))

    async def _pump(self, loop: DiscoveryLoop, markup: str, cancel: asyncio.Event) -> None:
        try:
            async for batch in loop.run(markup, cancel):
                self.feed.publish(batch)
                await self._emit(BatchDiscovered(batch))
        except DriverUnavailable as exc:
            logger.info("Discovery stopped: %s", exc)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Discovery loop failed: %s", exc)

    async def _stop_discovery(self) -> None:
        if self._discovery_cancel is not None:
            self._discovery_cancel.set()
        task = self._discovery_task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._discovery_task = None
        self._discovery_cancel = None

    async def _emit(self, event: EngineEvent) -> None:
        self._apply(event)
        logger.debug(describe_event(event))
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:  # noqa: BLE001
                logger.warning("Engine listener failed: %s", exc)

    def _apply(self, event: EngineEvent) -> None:
        if isinstance(event, Resolved):
            self.stats.history.append(event.instruction)
        elif isinstance(event, Executed):
            self.stats.executions += 1
        elif isinstance(event, ChangeDetected):
            if event.report.navigated:
                self.stats.navigations += 1
        elif isinstance(event, BatchDiscovered):
            self.stats.discovered_actions += len(event.batch)
        elif isinstance(event, Failed):
            self.stats.failures += 1
        else:
            raise TypeError(f"Unknown engine event {type(event).__name__}")


def _submits(chosen: Suggestion) -> bool:
    element = chosen.element
    if element is None:
        return False
    return element.kind is ElementKind.FORM_SUBMIT or element.method is InteractionMethod.SUBMIT


__all__ = ["EngineStats", "InstructionResult", "InstructionStatus", "NavigationEngine"]
