from __future__ import annotations

import logging
from html import escape
from html.parser import HTMLParser
from typing import Dict, List, Optional
from urllib.parse import urljoin

from .driver import InteractiveElement

logger = logging.getLogger(__name__)

DROPPED_TAGS = {"script", "style", "noscript", "svg", "template", "iframe", "canvas"}
VOID_TAGS = {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
KEPT_ATTRIBUTES = (
    "id",
    "name",
    "type",
    "href",
    "role",
    "aria-label",
    "placeholder",
    "data-testid",
    "value",
    "title",
    "for",
    "action",
)


class _Simplifier(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.parts: List[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag: str, attrs: List[tuple[str, Optional[str]]]) -> None:  # type: ignore[override]
        lowered = tag.lower()
        if lowered in DROPPED_TAGS:
            self._skip_depth += 1
            return
        if self._skip_depth:
            return
        kept = [(key, value) for key, value in attrs if key in KEPT_ATTRIBUTES and value]
        rendered = "".join(f' {key}="{escape(value or "", quote=True)}"' for key, value in kept)
        self.parts.append(f"<{lowered}{rendered}>")

    def handle_endtag(self, tag: str) -> None:  # type: ignore[override]
        lowered = tag.lower()
        if lowered in DROPPED_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
            return
        if self._skip_depth or lowered in VOID_TAGS:
            return
        self.parts.append(f"</{lowered}>")

    def handle_data(self, data: str) -> None:  # type: ignore[override]
        if self._skip_depth:
            return
        text = " ".join(data.split())
        if text:
            self.parts.append(escape(text, quote=False))


def simplify_markup(html: str, limit: int | None = None) -> str:
    """Strip scripts, styles and presentational attributes before sending markup to a model."""

    parser = _Simplifier()
    try:
        parser.feed(html or "")
        parser.close()
    except Exception as exc:  # noqa: BLE001
        logger.debug("Markup simplification stopped early: %s", exc)
    simplified = "".join(parser.parts)
    if limit is not None and len(simplified) > limit:
        return simplified[:limit]
    return simplified


class _ElementCollector(HTMLParser):
    """Collects actionable elements from a static markup fragment."""

    def __init__(self, base_url: str = "") -> None:
        super().__init__(convert_charrefs=True)
        self.base_url = base_url
        self.elements: List[InteractiveElement] = []
        self._open: List[Dict[str, str]] = []
        self._skip_depth = 0

    def handle_starttag(self, tag: str, attrs: List[tuple[str, Optional[str]]]) -> None:  # type: ignore[override]
        lowered = tag.lower()
        if lowered in DROPPED_TAGS:
            self._skip_depth += 1
            return
        if self._skip_depth:
            return
        attr_dict = {key: (value or "") for key, value in attrs}
        role = attr_dict.get("role", "").lower()
        if lowered in {"input", "select", "textarea"}:
            input_type = attr_dict.get("type", "").lower()
            if input_type == "hidden":
                return
            text = attr_dict.get("value") if input_type in {"submit", "button"} else ""
            text = text or attr_dict.get("aria-label") or attr_dict.get("placeholder") or attr_dict.get("name") or ""
            self._emit(lowered, attr_dict, text)
            return
        if lowered in {"a", "button"} or role in {"button", "link"} or "onclick" in attr_dict:
            self._open.append({**attr_dict, "tag": lowered, "text": ""})

    def handle_data(self, data: str) -> None:  # type: ignore[override]
        if self._open and not self._skip_depth:
            self._open[-1]["text"] += data

    def handle_endtag(self, tag: str) -> None:  # type: ignore[override]
        lowered = tag.lower()
        if lowered in DROPPED_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
            return
        if self._open and self._open[-1].get("tag") == lowered:
            entry = self._open.pop()
            tag_name = entry.pop("tag")
            text = " ".join(entry.pop("text", "").split()) or entry.get("aria-label") or entry.get("title") or ""
            if self._open:
                self._open[-1]["text"] += f" {text}"
            self._emit(tag_name, entry, text)

    def _emit(self, tag: str, attrs: Dict[str, str], text: str) -> None:
        selector = selector_from_attrs(attrs, tag)
        input_type = attrs.get("type", "").lower() or None
        href = attrs.get("href", "").strip()
        is_navigation = tag == "a" and bool(href) and not href.startswith(("#", "javascript:"))
        is_button = tag == "button" or attrs.get("role", "").lower() == "button" or input_type in {"submit", "button", "reset"}
        self.elements.append(
            InteractiveElement(
                selector=selector,
                text=text.strip(),
                tag=tag,
                is_navigation=is_navigation,
                is_button=is_button,
                resolved_url=urljoin(self.base_url, href) if is_navigation else None,
                input_type=input_type,
            )
        )


def selector_from_attrs(attrs: Dict[str, str], tag: str) -> str:
    element_id = attrs.get("id", "").strip()
    if element_id:
        return f"#{element_id}"
    for attr in ("data-testid", "name", "aria-label", "placeholder"):
        value = attrs.get(attr, "").strip()
        if value:
            return f'{tag}[{attr}="{css_string(value)}"]'
    href = attrs.get("href", "").strip()
    if tag == "a" and href:
        return f'a[href="{css_string(href)}"]'
    classes = attrs.get("class", "").split()
    if classes:
        return f"{tag}.{classes[0]}"
    input_type = attrs.get("type", "").strip()
    if input_type:
        return f'{tag}[type="{css_string(input_type)}"]'
    return tag


def css_string(value: str) -> str:
    """Escape ``value`` for use inside a double-quoted CSS attribute selector."""

    return value.replace("\\", "\\\\").replace('"', '\\"')


def extract_interactive_elements(html: str, base_url: str = "") -> List[InteractiveElement]:
    """Parse actionable elements out of static markup, in document order."""

    collector = _ElementCollector(base_url=base_url)
    try:
        collector.feed(html or "")
        collector.close()
    except Exception as exc:  # noqa: BLE001
        logger.debug("Element extraction stopped early: %s", exc)
    seen: set[str] = set()
    unique: List[InteractiveElement] = []
    for element in collector.elements:
        key = element.get("selector", "")
        if key in seen:
            continue
        seen.add(key)
        unique.append(element)
    return unique


__all__ = ["css_string", "extract_interactive_elements", "selector_from_attrs", "simplify_markup"]
