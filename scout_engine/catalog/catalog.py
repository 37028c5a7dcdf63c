"""Snapshot of the actionable elements of the current page."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from scout_engine.browser.driver import BrowserDriver, InteractiveElement

from .types import ElementKind, InteractionMethod, NavigableElement

logger = logging.getLogger(__name__)

FIELD_TAGS = {"input", "textarea", "select"}
SUBMIT_TYPES = {"submit", "image"}
BUTTON_INPUT_TYPES = {"button", "reset"}


def classify(raw: InteractiveElement) -> Tuple[ElementKind, InteractionMethod]:
    tag = str(raw.get("tag") or "").lower()
    input_type = str(raw.get("input_type") or "").lower()
    if raw.get("is_navigation") and raw.get("resolved_url"):
        return ElementKind.LINK, InteractionMethod.NAVIGATE
    if tag in FIELD_TAGS:
        if input_type in SUBMIT_TYPES:
            return ElementKind.FORM_SUBMIT, InteractionMethod.SUBMIT
        if input_type in BUTTON_INPUT_TYPES:
            return ElementKind.BUTTON, InteractionMethod.CLICK
        return ElementKind.FORM_FIELD, InteractionMethod.TYPE_TEXT
    if tag == "button" and input_type == "submit":
        return ElementKind.FORM_SUBMIT, InteractionMethod.SUBMIT
    if raw.get("is_button") or tag == "button":
        return ElementKind.BUTTON, InteractionMethod.CLICK
    if tag == "a":
        return ElementKind.LINK, InteractionMethod.CLICK
    return ElementKind.GENERIC_ACTION, InteractionMethod.CLICK


def to_element(raw: InteractiveElement, position: int) -> Optional[NavigableElement]:
    selector = str(raw.get("selector") or "").strip()
    kind, method = classify(raw)
    target_url = str(raw.get("resolved_url") or "").strip() if kind is ElementKind.LINK else ""
    if not selector and not target_url:
        return None
    label = " ".join(str(raw.get("text") or "").split())
    return NavigableElement(
        kind=kind,
        label=label or selector or target_url,
        selector=selector,
        method=method,
        target_url=target_url or None,
        tag=str(raw.get("tag") or "").lower(),
        input_type=(str(raw.get("input_type")) if raw.get("input_type") else None),
        position=position,
    )


@dataclass(frozen=True)
class ElementCatalog:
    """Immutable list of navigable elements; refreshing produces a new catalog."""

    elements: Tuple[NavigableElement, ...] = ()
    url: str = ""
    generation: int = 0
    _index: Dict[str, NavigableElement] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        for element in self.elements:
            if element.selector:
                self._index.setdefault(element.selector, element)

    @classmethod
    def from_interactive(
        cls,
        raw_elements: Iterable[InteractiveElement],
        *,
        url: str = "",
        generation: int = 0,
    ) -> "ElementCatalog":
        elements: List[NavigableElement] = []
        seen: set[Tuple[str, str]] = set()
        for raw in raw_elements:
            element = to_element(raw, len(elements))
            if element is None:
                logger.debug("Skipping element without selector or URL", extra={"raw": dict(raw)})
                continue
            if element.identity in seen:
                continue
            seen.add(element.identity)
            elements.append(element)
        return cls(elements=tuple(elements), url=url, generation=generation)

    @classmethod
    async def build(cls, driver: BrowserDriver, *, generation: int = 0) -> "ElementCatalog":
        started = perf_counter()
        raw_elements = await driver.extract_interactive_elements()
        info = await driver.get_page_info()
        catalog = cls.from_interactive(raw_elements, url=info.url, generation=generation)
        logger.debug(
            "Catalog built",
            extra={"url": info.url, "elements": len(catalog), "duration_ms": round((perf_counter() - started) * 1000, 2)},
        )
        return catalog

    async def refresh(self, driver: BrowserDriver) -> "ElementCatalog":
        return await ElementCatalog.build(driver, generation=self.generation + 1)

    def __iter__(self) -> Iterator[NavigableElement]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def __bool__(self) -> bool:
        return bool(self.elements)

    def find(self, selector: str) -> Optional[NavigableElement]:
        return self._index.get(selector)

    def of_kind(self, *kinds: ElementKind) -> List[NavigableElement]:
        return [element for element in self.elements if element.kind in kinds]

    def labels(self, limit: int | None = None) -> List[str]:
        labels = [element.label for element in self.elements if element.label]
        return labels[:limit] if limit is not None else labels


def as_catalog(elements: Sequence[NavigableElement] | ElementCatalog) -> ElementCatalog:
    if isinstance(elements, ElementCatalog):
        return elements
    return ElementCatalog(elements=tuple(elements))


__all__ = ["ElementCatalog", "as_catalog", "classify", "to_element"]
