"""Browser driver contract consumed by the engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, TypedDict


class InteractiveElement(TypedDict, total=False):
    """Raw element record returned by ``extract_interactive_elements``."""

    selector: str
    text: str
    tag: str
    is_navigation: bool
    is_button: bool
    resolved_url: Optional[str]
    input_type: Optional[str]


@dataclass(frozen=True)
class PageInfo:
    url: str
    title: str


class BrowserDriver(Protocol):
    """Primitive page operations. Lifecycle belongs to the caller."""

    @property
    def connected(self) -> bool:
        """Return False once the page or browser is gone."""

    async def navigate(self, url: str) -> None:
        """Load ``url`` in the active page."""

    async def click(self, selector: str) -> None:
        """Click the element behind ``selector``; raise ElementNotFound when missing."""

    async def send_keys(self, selector: str, text: str) -> None:
        """Replace the value of the field behind ``selector`` with ``text``."""

    async def execute_script(self, script: str) -> Any:
        """Evaluate ``script`` in the page and return its JSON-able result."""

    async def wait_for_element(self, selector: str, timeout_ms: int) -> None:
        """Wait until ``selector`` is attached; raise PollTimeout otherwise."""

    async def get_page_info(self) -> PageInfo:
        """Return the current URL and title."""

    async def get_page_html(self) -> str:
        """Return the serialized markup of the page."""

    async def extract_interactive_elements(self) -> List[InteractiveElement]:
        """Return the visible actionable elements of the page in document order."""


__all__ = ["BrowserDriver", "InteractiveElement", "PageInfo"]
