from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple


class ElementKind(str, Enum):
    """Kinds of actionable things the catalog tracks."""

    LINK = "link"
    BUTTON = "button"
    FORM_FIELD = "form_field"
    FORM_SUBMIT = "form_submit"
    GENERIC_ACTION = "generic_action"


class InteractionMethod(str, Enum):
    NAVIGATE = "navigate"
    CLICK = "click"
    TYPE_TEXT = "type_text"
    SUBMIT = "submit"


ALLOWED_METHODS: Mapping[ElementKind, FrozenSet[InteractionMethod]] = {
    ElementKind.LINK: frozenset({InteractionMethod.NAVIGATE, InteractionMethod.CLICK}),
    ElementKind.BUTTON: frozenset({InteractionMethod.CLICK}),
    ElementKind.FORM_FIELD: frozenset({InteractionMethod.TYPE_TEXT}),
    ElementKind.FORM_SUBMIT: frozenset({InteractionMethod.SUBMIT, InteractionMethod.CLICK}),
    ElementKind.GENERIC_ACTION: frozenset({InteractionMethod.CLICK}),
}

# Ordering used for an empty instruction: lower sorts first.
KIND_PRIORITY: Mapping[ElementKind, int] = {
    ElementKind.FORM_FIELD: 0,
    ElementKind.FORM_SUBMIT: 1,
    ElementKind.BUTTON: 2,
    ElementKind.LINK: 3,
    ElementKind.GENERIC_ACTION: 4,
}


@dataclass(frozen=True)
class NavigableElement:
    """One actionable element of the page as seen at catalog build time."""

    kind: ElementKind
    label: str
    selector: str
    method: InteractionMethod
    target_url: Optional[str] = None
    tag: str = ""
    input_type: Optional[str] = None
    position: int = 0

    def __post_init__(self) -> None:
        if not (self.selector or "").strip() and not (self.target_url or "").strip():
            raise ValueError("NavigableElement requires a selector or a target URL")
        if self.method not in ALLOWED_METHODS[self.kind]:
            raise ValueError(f"Method {self.method.value} is not valid for {self.kind.value} elements")
        if self.target_url and self.kind is not ElementKind.LINK:
            raise ValueError("Only link elements carry a target URL")

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.selector, self.target_url or "")

    def as_payload(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "label": self.label,
            "selector": self.selector,
            "method": self.method.value,
            "target_url": self.target_url,
        }


__all__ = ["ALLOWED_METHODS", "ElementKind", "InteractionMethod", "KIND_PRIORITY", "NavigableElement"]
