"""Playwright-backed implementation of the browser driver contract."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Mapping

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from scout_engine.config_loader import section
from scout_engine.core.errors import DriverUnavailable, ElementNotFound, PollTimeout, ScoutError

from .driver import InteractiveElement, PageInfo
from .scripts import EXTRACT_INTERACTIVE

logger = logging.getLogger(__name__)

PAGE_TARGETS = {"script", "title", "content"}
LAUNCH_ARGS = [
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
]


@dataclass
class BrowserSession:
    """Holds Playwright session objects for the lifetime of one page."""

    playwright: Any
    browser: Any
    context: Any
    page: Page

    async def close(self) -> None:
        try:
            await self.page.close()
        finally:
            try:
                await self.context.close()
            finally:
                try:
                    await self.browser.close()
                finally:
                    await self.playwright.stop()


class PlaywrightDriver:
    """Adapts a Playwright page to the primitive operations the engine consumes."""

    def __init__(self, page: Page, settings: Mapping[str, Any] | None = None) -> None:
        options = section(settings, "browser")
        self.page = page
        self.navigation_timeout_ms = int(options.get("navigation_timeout_ms", 15000))
        self.action_timeout_ms = int(options.get("action_timeout_ms", 3000))

    @property
    def connected(self) -> bool:
        if self.page.is_closed():
            return False
        browser = self.page.context.browser
        return browser is None or browser.is_connected()

    def _ensure_connected(self) -> None:
        if not self.connected:
            raise DriverUnavailable("Browser page is closed")

    async def navigate(self, url: str) -> None:
        self._ensure_connected()
        try:
            await self.page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise PollTimeout(f"Navigation to {url} timed out") from exc
        except PlaywrightError as exc:
            raise self._translate(exc, url) from exc

    async def click(self, selector: str) -> None:
        self._ensure_connected()
        try:
            await self.page.click(selector, timeout=self.action_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise ElementNotFound(f"No clickable element for {selector}") from exc
        except PlaywrightError as exc:
            raise self._translate(exc, selector) from exc

    async def send_keys(self, selector: str, text: str) -> None:
        self._ensure_connected()
        try:
            await self.page.fill(selector, text, timeout=self.action_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise ElementNotFound(f"No editable element for {selector}") from exc
        except PlaywrightError as exc:
            raise self._translate(exc, selector) from exc

    async def execute_script(self, script: str) -> Any:
        self._ensure_connected()
        try:
            return await self.page.evaluate(script)
        except PlaywrightError as exc:
            raise self._translate(exc, "script") from exc

    async def wait_for_element(self, selector: str, timeout_ms: int) -> None:
        self._ensure_connected()
        try:
            await self.page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise PollTimeout(f"Timed out waiting for {selector}") from exc
        except PlaywrightError as exc:
            raise self._translate(exc, selector) from exc

    async def get_page_info(self) -> PageInfo:
        self._ensure_connected()
        try:
            title = await self.page.title()
        except PlaywrightError as exc:
            raise self._translate(exc, "title") from exc
        return PageInfo(url=self.page.url, title=title)

    async def get_page_html(self) -> str:
        self._ensure_connected()
        try:
            return await self.page.content()
        except PlaywrightError as exc:
            raise self._translate(exc, "content") from exc

    async def extract_interactive_elements(self) -> List[InteractiveElement]:
        raw = await self.execute_script(EXTRACT_INTERACTIVE)
        elements: List[InteractiveElement] = []
        for item in raw or []:
            if isinstance(item, dict):
                elements.append(InteractiveElement(**_known_fields(item)))
        return elements

    def _translate(self, exc: Exception, target: str) -> ScoutError:
        message = str(exc).splitlines()[0] if str(exc) else exc.__class__.__name__
        lowered = message.lower()
        if not self.connected or "has been closed" in lowered or "target closed" in lowered:
            return DriverUnavailable(message)
        if target in PAGE_TARGETS:
            return ScoutError(f"{target}: {message}")
        return ElementNotFound(f"{target}: {message}")


def _known_fields(item: Dict[str, Any]) -> Dict[str, Any]:
    keys = InteractiveElement.__annotations__.keys()
    return {key: item[key] for key in keys if key in item}


@asynccontextmanager
async def open_browser_session(settings: Mapping[str, Any] | None = None) -> AsyncIterator[BrowserSession]:
    """Launch Chromium, yield the session and always tear it down."""

    options = section(settings, "browser")
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(
            headless=bool(options.get("headless", True)),
            slow_mo=int(options.get("slow_mo_ms", 0) or 0),
            args=LAUNCH_ARGS,
        )
        context = await browser.new_context()
        page = await context.new_page()
    except Exception:
        await playwright.stop()
        raise
    session = BrowserSession(playwright=playwright, browser=browser, context=context, page=page)
    logger.info("Browser session opened", extra={"headless": bool(options.get("headless", True))})
    try:
        yield session
    finally:
        await session.close()
        logger.info("Browser session closed")


__all__ = ["BrowserSession", "PlaywrightDriver", "open_browser_session"]
