"""Driver-only action extraction used when page analysis is unavailable."""

from __future__ import annotations

from typing import Iterable, List

from scout_engine.ai.models import DiscoveredAction
from scout_engine.browser.driver import InteractiveElement
from scout_engine.browser.scripts import SCRIPT_CLICK, selector_script

AUTH_TERMS = ("sign in", "log in", "login", "signin", "sign up", "signup", "register", "password", "logout", "sign out")
SIGN_IN_TERMS = ("sign in", "signin", "login", "log in")
SUBMIT_TERMS = ("submit", "save", "send")
HOME_TERMS = ("home", "dashboard")
INPUT_TAGS = {"input", "textarea", "select"}
DESCRIPTION_LIMIT = 60

BASE_PRIORITY = 50
HIGH_PRIORITY_SCORE = 70


def category(element: InteractiveElement) -> str:
    """Authentication, Navigation, Form or Interactive."""

    text = str(element.get("text") or "").lower()
    tag = str(element.get("tag") or "").lower()
    input_type = str(element.get("input_type") or "").lower()
    if any(term in text for term in AUTH_TERMS) or input_type == "password":
        return "Authentication"
    if element.get("is_navigation"):
        return "Navigation"
    if tag in INPUT_TAGS:
        return "Form"
    return "Interactive"


def priority_score(element: InteractiveElement) -> int:
    text = str(element.get("text") or "").lower()
    score = BASE_PRIORITY
    if category(element) == "Authentication":
        score += 30
    if any(term in text for term in SIGN_IN_TERMS):
        score += 25
    if any(term in text for term in SUBMIT_TERMS):
        score += 15
    if "search" in text:
        score += 10
    if any(term in text for term in HOME_TERMS):
        score += 10
    if str(element.get("tag") or "").lower() in INPUT_TAGS:
        score += 5
    return score


def priority_label(score: int) -> str:
    if score >= HIGH_PRIORITY_SCORE:
        return "high"
    if score >= BASE_PRIORITY:
        return "medium"
    return "low"


def truncate(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def interaction_verb(element: InteractiveElement) -> str:
    tag = str(element.get("tag") or "").lower()
    input_type = str(element.get("input_type") or "").lower()
    if tag == "select":
        return "select"
    if tag in INPUT_TAGS and input_type not in {"submit", "button", "reset", "checkbox", "radio", "image"}:
        return "type"
    if element.get("is_navigation"):
        return "navigate"
    return "click"


def describe(element: InteractiveElement) -> str:
    text = " ".join(str(element.get("text") or "").split()) or str(element.get("selector") or "element")
    verb = interaction_verb(element)
    if verb == "type":
        return truncate(f"Fill in '{text}' field")
    if verb == "select":
        return truncate(f"Choose an option in '{text}'")
    if verb == "navigate":
        return truncate(f"Navigate to '{text}'")
    kind = "button" if element.get("is_button") else "element"
    return truncate(f"Click '{text}' {kind}")


def action_from_element(element: InteractiveElement) -> DiscoveredAction | None:
    selector = str(element.get("selector") or "").strip()
    if not selector:
        return None
    verb = interaction_verb(element)
    return DiscoveredAction(
        description=describe(element),
        selector=selector,
        interaction_verb=verb,
        priority=priority_label(priority_score(element)),
        generated_script=selector_script(SCRIPT_CLICK, selector) if verb in {"click", "navigate"} else None,
    )


def actions_from_elements(elements: Iterable[InteractiveElement]) -> List[DiscoveredAction]:
    actions: List[DiscoveredAction] = []
    for element in elements:
        action = action_from_element(element)
        if action is not None:
            actions.append(action)
    return actions


__all__ = [
    "action_from_element",
    "actions_from_elements",
    "category",
    "describe",
    "interaction_verb",
    "priority_label",
    "priority_score",
    "truncate",
]
