"""Background discovery of actionable elements for one page load."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, List, Mapping, Optional

from scout_engine.ai.base import AIAssistant
from scout_engine.ai.models import DiscoveredAction
from scout_engine.browser.driver import BrowserDriver
from scout_engine.config_loader import section
from scout_engine.core.errors import DriverUnavailable

from .delta import is_meaningful, markup_delta
from .extraction import actions_from_elements
from .merge import ActionSet
from .types import DiscoveryBatch

logger = logging.getLogger(__name__)


class _ItemKind(Enum):
    BATCH = "batch"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass
class _Item:
    kind: _ItemKind
    actions: List[DiscoveredAction] = field(default_factory=list)
    is_initial: bool = False


class DiscoveryLoop:
    """Streams newly discovered actions for the page the driver is showing.

    The initial analysis and the delta poller run as two tasks feeding one queue; the
    generator merges everything into ``known`` so no identity is yielded twice. Incremental
    results that arrive before the initial batch are held back until it has been yielded.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        assistant: AIAssistant | None = None,
        settings: Mapping[str, Any] | None = None,
    ) -> None:
        options = section(settings, "discovery")
        self.driver = driver
        self.assistant = assistant
        self.poll_interval = float(options.get("poll_interval_seconds", 0.5))
        self.duration = float(options.get("duration_seconds", 3.0))
        self.analysis_timeout = float(options.get("analysis_timeout_seconds", 10.0))
        self.known = ActionSet()

    async def run(
        self,
        initial_markup: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[DiscoveryBatch]:
        markup = initial_markup if initial_markup is not None else await self.driver.get_page_html()
        page_url = await self._page_url()
        queue: asyncio.Queue[_Item] = asyncio.Queue()
        tasks = [
            asyncio.create_task(self._initial(markup, queue)),
            asyncio.create_task(self._poll(markup, queue, cancel)),
        ]
        held: List[List[DiscoveredAction]] = []
        initial_seen = False
        finished = 0
        try:
            while finished < len(tasks):
                item = await _next_item(queue, cancel)
                if item.kind is _ItemKind.CANCELLED:
                    logger.debug("Discovery cancelled", extra={"page_url": page_url})
                    return
                if item.kind is _ItemKind.DONE:
                    finished += 1
                    continue
                if item.is_initial:
                    initial_seen = True
                    yield DiscoveryBatch(tuple(self.known.merge(item.actions)), is_initial=True, page_url=page_url)
                    pending, held = held, []
                    for actions in pending:
                        added = self.known.merge(actions)
                        if added:
                            yield DiscoveryBatch(tuple(added), is_initial=False, page_url=page_url)
                    continue
                if not initial_seen:
                    held.append(item.actions)
                    continue
                added = self.known.merge(item.actions)
                if added:
                    yield DiscoveryBatch(tuple(added), is_initial=False, page_url=page_url)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _initial(self, markup: str, queue: asyncio.Queue[_Item]) -> None:
        try:
            actions: Optional[List[DiscoveredAction]] = None
            if self.assistant is not None:
                try:
                    actions = await asyncio.wait_for(self.assistant.analyze_initial_markup(markup), self.analysis_timeout)
                except asyncio.TimeoutError:
                    logger.warning("Initial page analysis timed out; using element extraction")
                except Exception as exc:  # noqa: BLE001
                    logger.warning("Initial page analysis failed: %s", exc)
            if actions is None:
                actions = await self._extract()
            await queue.put(_Item(_ItemKind.BATCH, list(actions), is_initial=True))
        finally:
            queue.put_nowait(_Item(_ItemKind.DONE))

    async def _extract(self) -> List[DiscoveredAction]:
        try:
            elements = await asyncio.wait_for(self.driver.extract_interactive_elements(), self.analysis_timeout)
        except asyncio.TimeoutError:
            logger.warning("Element extraction timed out")
            return []
        except Exception as exc:  # noqa: BLE001
            logger.warning("Element extraction failed: %s", exc)
            return []
        return actions_from_elements(elements)

    async def _poll(self, markup: str, queue: asyncio.Queue[_Item], cancel: Optional[asyncio.Event]) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.duration
        previous = markup
        try:
            while True:
                if cancel is not None and cancel.is_set():
                    await queue.put(_Item(_ItemKind.CANCELLED))
                    return
                remaining = deadline - loop.time()
                if remaining <= 0:
                    return
                await asyncio.sleep(min(self.poll_interval, remaining))
                if cancel is not None and cancel.is_set():
                    await queue.put(_Item(_ItemKind.CANCELLED))
                    return
                try:
                    current = await self.driver.get_page_html()
                except DriverUnavailable as exc:
                    logger.info("Stopping discovery polling: %s", exc)
                    return
                except Exception as exc:  # noqa: BLE001
                    logger.debug("Skipping discovery poll: %s", exc)
                    continue
                delta = markup_delta(previous, current)
                previous = current
                if self.assistant is None or not is_meaningful(delta):
                    continue
                actions = await self._analyze_delta(delta)
                if actions:
                    await queue.put(_Item(_ItemKind.BATCH, actions))
        finally:
            queue.put_nowait(_Item(_ItemKind.DONE))

    async def _analyze_delta(self, delta: str) -> List[DiscoveredAction]:
        if self.assistant is None:
            return []
        try:
            return list(
                await asyncio.wait_for(
                    self.assistant.analyze_incremental_markup(delta, self.known.snapshot()),
                    self.analysis_timeout,
                )
            )
        except asyncio.TimeoutError:
            logger.warning("Incremental analysis timed out; delta dropped")
        except Exception as exc:  # noqa: BLE001
            logger.warning("Incremental analysis failed; delta dropped: %s", exc)
        return []

    async def _page_url(self) -> str:
        try:
            info = await self.driver.get_page_info()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Page info unavailable for discovery: %s", exc)
            return ""
        return info.url


async def _next_item(queue: asyncio.Queue[_Item], cancel: Optional[asyncio.Event]) -> _Item:
    """Next queued item, or CANCELLED as soon as ``cancel`` is set, whichever comes first."""

    if cancel is None:
        return await queue.get()
    if cancel.is_set():
        return _Item(_ItemKind.CANCELLED)
    getter = asyncio.ensure_future(queue.get())
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({getter, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for future in (getter, waiter):
            if not future.done():
                future.cancel()
    if cancel.is_set():
        return _Item(_ItemKind.CANCELLED)
    return getter.result()


__all__ = ["DiscoveryLoop"]
