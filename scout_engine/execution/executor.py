"""Fallback cascade that turns a resolved element into a browser action."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Mapping, Optional
from urllib.parse import urlsplit, urlunsplit

from scout_engine.browser import scripts
from scout_engine.browser.driver import BrowserDriver
from scout_engine.browser.markup import css_string
from scout_engine.catalog.types import ElementKind, InteractionMethod, NavigableElement
from scout_engine.config_loader import section
from scout_engine.core.errors import DriverUnavailable, ElementNotFound, ScoutError
from scout_engine.resolver.types import BuiltinCommand, ClickStrategy, CommandVerb

from .selector_variants import selector_variants
from .types import CascadeStage, ExecutionOutcome

logger = logging.getLogger(__name__)

RESERVED_SLOTS = 2


class Executor:
    """Runs direct execution, selector variants and a text search, for a bounded number of rounds.

    Every round spends at most ``attempts_per_round`` primitive attempts: one direct attempt,
    one text search and the remaining slots on selector variants. Individual failures are
    absorbed; only an exhausted cascade is reported, and a disconnected driver aborts at once.
    """

    def __init__(self, driver: BrowserDriver, settings: Mapping[str, Any] | None = None) -> None:
        options = section(settings, "executor")
        self.driver = driver
        self.max_rounds = max(1, int(options.get("max_rounds", 3)))
        self.attempts_per_round = max(RESERVED_SLOTS, int(options.get("attempts_per_round", 5)))
        self.variant_wait_ms = int(options.get("variant_wait_ms", 750))
        self.retry_delay = float(options.get("retry_delay_seconds", 0.25))

    @property
    def attempt_budget(self) -> int:
        return self.max_rounds * self.attempts_per_round

    async def execute(
        self,
        element: NavigableElement,
        strategy: ClickStrategy | str = ClickStrategy.STANDARD,
        text: Optional[str] = None,
    ) -> ExecutionOutcome:
        self._require_connection()
        strategy = ClickStrategy.parse(strategy)
        variants = selector_variants(element)
        slots = self.attempts_per_round - RESERVED_SLOTS
        search_text = "" if element.kind is ElementKind.FORM_FIELD else element.label.strip()
        attempts = 0
        last_error: Optional[BaseException] = None

        for round_index in range(1, self.max_rounds + 1):
            attempts += 1
            try:
                await self._direct(element, strategy, text)
                return self._succeeded(element, strategy, CascadeStage.DIRECT, attempts, element.selector or element.target_url)
            except DriverUnavailable:
                raise
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                self._trace(element, CascadeStage.DIRECT, exc)

            for variant in _window(variants, round_index, slots):
                attempts += 1
                try:
                    await self.driver.wait_for_element(variant, self.variant_wait_ms)
                    await self._interact(variant, element, text)
                    return self._succeeded(element, ClickStrategy.STANDARD, CascadeStage.SELECTOR_VARIANT, attempts, variant)
                except DriverUnavailable:
                    raise
                except Exception as exc:  # noqa: BLE001
                    last_error = exc
                    self._trace(element, CascadeStage.SELECTOR_VARIANT, exc, selector=variant)

            if search_text and strategy is not ClickStrategy.TEXT_SEARCH:
                attempts += 1
                try:
                    await self._text_search(search_text)
                    return self._succeeded(element, ClickStrategy.TEXT_SEARCH, CascadeStage.TEXT_SEARCH, attempts, None)
                except DriverUnavailable:
                    raise
                except Exception as exc:  # noqa: BLE001
                    last_error = exc
                    self._trace(element, CascadeStage.TEXT_SEARCH, exc)

            if round_index < self.max_rounds:
                await asyncio.sleep(self.retry_delay * round_index)

        logger.warning("Cascade exhausted for %r after %s attempts: %s", element.label, attempts, last_error)
        return ExecutionOutcome(
            succeeded=False,
            strategy_used=strategy,
            attempts_made=attempts,
            error=_describe(last_error) or "cascade exhausted",
        )

    async def run_command(self, command: BuiltinCommand) -> ExecutionOutcome:
        """Execute a built-in verb. Targets that need the catalog go through ``execute``."""

        self._require_connection()
        if command.verb in {CommandVerb.CLICK_TARGET, CommandVerb.NAVIGATE_TO}:
            return await self.execute(text_target(command.target or command.label), ClickStrategy.STANDARD)
        attempts = 0
        last_error: Optional[BaseException] = None
        for round_index in range(1, self.max_rounds + 1):
            attempts += 1
            try:
                await self._run_verb(command)
                return ExecutionOutcome(
                    succeeded=True,
                    strategy_used=ClickStrategy.STANDARD,
                    attempts_made=attempts,
                    stage=CascadeStage.DIRECT,
                )
            except DriverUnavailable:
                raise
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                logger.debug("Command %s failed (round %s): %s", command.verb.value, round_index, exc)
            if round_index < self.max_rounds:
                await asyncio.sleep(self.retry_delay * round_index)
        return ExecutionOutcome(
            succeeded=False,
            strategy_used=ClickStrategy.STANDARD,
            attempts_made=attempts,
            error=_describe(last_error),
        )

    async def _run_verb(self, command: BuiltinCommand) -> None:
        if command.verb is CommandVerb.GO_BACK:
            await self.driver.execute_script(scripts.HISTORY_BACK)
        elif command.verb is CommandVerb.REFRESH:
            await self.driver.execute_script(scripts.RELOAD)
        elif command.verb is CommandVerb.GO_HOME:
            info = await self.driver.get_page_info()
            await self.driver.navigate(site_root(info.url))
        elif command.verb is CommandVerb.OPEN_URL:
            if not command.target:
                raise ScoutError("open command without a URL")
            await self.driver.navigate(command.target)
        else:
            raise ScoutError(f"Unsupported command {command.verb.value}")

    async def _direct(self, element: NavigableElement, strategy: ClickStrategy, text: Optional[str]) -> None:
        if element.target_url and (element.method is InteractionMethod.NAVIGATE or not element.selector):
            await self.driver.navigate(element.target_url)
            return
        if strategy is ClickStrategy.TEXT_SEARCH:
            await self._text_search(element.label)
            return
        selector = element.selector
        if element.method is InteractionMethod.TYPE_TEXT:
            if text is None:
                await self._click(selector, ClickStrategy.STANDARD)
                return
            await self.driver.send_keys(selector, text)
            if strategy is ClickStrategy.FOCUS_ENTER:
                await self._script(scripts.selector_script(scripts.FOCUS_ENTER, selector), selector)
            return
        if element.method is InteractionMethod.SUBMIT and strategy is not ClickStrategy.STANDARD:
            await self._script(scripts.selector_script(scripts.SUBMIT_FORM, selector), selector)
            return
        await self._click(selector, strategy)

    async def _click(self, selector: str, strategy: ClickStrategy) -> None:
        if strategy is ClickStrategy.SCRIPT_CLICK:
            await self._script(scripts.selector_script(scripts.SCRIPT_CLICK, selector), selector)
        elif strategy is ClickStrategy.DISPATCH_EVENT:
            await self._script(scripts.selector_script(scripts.DISPATCH_CLICK, selector), selector)
        elif strategy is ClickStrategy.FOCUS_ENTER:
            await self._script(scripts.selector_script(scripts.FOCUS_ENTER, selector), selector)
        else:
            await self.driver.click(selector)

    async def _interact(self, selector: str, element: NavigableElement, text: Optional[str]) -> None:
        if element.method is InteractionMethod.TYPE_TEXT and text is not None:
            await self.driver.send_keys(selector, text)
        else:
            await self.driver.click(selector)

    async def _script(self, script: str, selector: str) -> None:
        if not await self.driver.execute_script(script):
            raise ElementNotFound(f"No element for {selector}")

    async def _text_search(self, target: str) -> None:
        if not await self.driver.execute_script(scripts.text_search_click(target)):
            raise ElementNotFound(f"No clickable element containing {target!r}")

    def _require_connection(self) -> None:
        if not self.driver.connected:
            raise DriverUnavailable("Browser driver is not connected")

    def _succeeded(
        self,
        element: NavigableElement,
        strategy: ClickStrategy,
        stage: CascadeStage,
        attempts: int,
        selector: Optional[str],
    ) -> ExecutionOutcome:
        logger.debug(
            "Execution succeeded",
            extra={"label": element.label, "stage": stage.value, "attempts": attempts, "selector": selector},
        )
        return ExecutionOutcome(
            succeeded=True,
            strategy_used=strategy,
            attempts_made=attempts,
            stage=stage,
            selector_used=selector,
        )

    @staticmethod
    def _trace(element: NavigableElement, stage: CascadeStage, exc: BaseException, selector: str | None = None) -> None:
        logger.debug(
            "Attempt failed: %s",
            exc,
            extra={"label": element.label, "stage": stage.value, "selector": selector or element.selector},
        )


def _window(variants: List[str], round_index: int, slots: int) -> List[str]:
    """Each round tries the next slice of variants, wrapping once the list runs out."""

    if not variants or slots <= 0:
        return []
    start = ((round_index - 1) * slots) % len(variants)
    window = variants[start : start + slots]
    return window


def text_target(target: str) -> NavigableElement:
    label = " ".join(target.split())
    return NavigableElement(
        kind=ElementKind.GENERIC_ACTION,
        label=label,
        selector=f'text="{css_string(label)}"',
        method=InteractionMethod.CLICK,
    )


def site_root(url: str) -> str:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise ScoutError(f"Cannot derive a home page from {url!r}")
    return urlunsplit((parts.scheme, parts.netloc, "/", "", ""))


def _describe(exc: Optional[BaseException]) -> Optional[str]:
    if exc is None:
        return None
    if isinstance(exc, ScoutError):
        return exc.describe()
    return f"{exc.__class__.__name__}: {exc}"


__all__ = ["Executor", "site_root", "text_target"]
