"""Alternate locators for an element whose primary selector stopped working."""

from __future__ import annotations

import re
from typing import Dict, List, Tuple

from scout_engine.browser.markup import css_string
from scout_engine.catalog.types import ElementKind, NavigableElement

INTENT_SELECTORS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (
        ("sign in", "signin", "log in", "login"),
        ('button[type="submit"]', 'a[href*="login"]', 'a[href*="signin"]', 'a[href*="sign-in"]'),
    ),
    (
        ("sign up", "signup", "register", "create account"),
        ('a[href*="signup"]', 'a[href*="register"]', 'a[href*="sign-up"]'),
    ),
    (
        ("submit", "send", "save", "continue"),
        ('button[type="submit"]', 'input[type="submit"]'),
    ),
    (
        ("search",),
        ('input[type="search"]', 'button[aria-label*="search" i]', '[role="search"] button'),
    ),
    (
        ("start", "get started", "begin"),
        ('a[href*="start"]', 'button[class*="start"]'),
    ),
    (
        ("next",),
        ('button[aria-label*="next" i]', 'a[rel="next"]'),
    ),
)

_ID_RE = re.compile(r"^#([A-Za-z_][\w-]*)$")
_CLASS_RE = re.compile(r"^(?P<tag>[a-z]*)\.(?P<cls>[\w-]+)$")
_ATTR_RE = re.compile(r'^(?P<tag>[a-z]*)\[(?P<attr>[\w-]+)="(?P<value>[^"]*)"\]$')


def structural_variants(selector: str) -> List[str]:
    """Rewrite the selector itself: ids as attributes, classes on common tags."""

    raw = selector.strip()
    if not raw:
        return []
    variants: List[str] = []
    id_match = _ID_RE.match(raw)
    class_match = _CLASS_RE.match(raw)
    attr_match = _ATTR_RE.match(raw)
    if id_match:
        token = id_match.group(1)
        variants.extend([f'[id="{token}"]', f'[name="{token}"]', f'[data-testid="{token}"]'])
    elif class_match:
        cls = class_match.group("cls")
        tag = class_match.group("tag")
        variants.extend([f'[class*="{cls}"]'] if tag else [f"button.{cls}", f"a.{cls}", f'[class*="{cls}"]'])
    elif attr_match:
        attr = attr_match.group("attr")
        value = attr_match.group("value")
        if attr_match.group("tag"):
            variants.append(f'[{attr}="{value}"]')
        variants.append(f'[{attr}*="{value}"]')
    return variants


def text_variants(element: NavigableElement) -> List[str]:
    """ARIA, role and partial-text locators built from the element label."""

    label = " ".join(element.label.split())
    if not label or label == element.selector:
        return []
    quoted = css_string(label)
    variants = [f'[aria-label="{quoted}"]']
    if element.kind is ElementKind.FORM_FIELD:
        variants.extend([f'[placeholder="{quoted}"]', f'[aria-label*="{quoted}" i]'])
        return variants
    role = "link" if element.kind is ElementKind.LINK else "button"
    variants.append(f'role={role}[name="{quoted}"]')
    tag = "a" if element.kind is ElementKind.LINK else "button"
    variants.append(f'{tag}:has-text("{quoted}")')
    variants.append(f'text="{quoted}"')
    return variants


def intent_variants(element: NavigableElement) -> List[str]:
    label = element.label.lower()
    variants: List[str] = []
    for keywords, selectors in INTENT_SELECTORS:
        if any(keyword in label for keyword in keywords):
            variants.extend(selectors)
    return variants


def selector_variants(element: NavigableElement, limit: int | None = None) -> List[str]:
    """Ordered, de-duplicated alternates; never includes the original selector."""

    ordered = structural_variants(element.selector) + text_variants(element) + intent_variants(element)
    seen: Dict[str, None] = {}
    for candidate in ordered:
        if candidate and candidate != element.selector and candidate not in seen:
            seen[candidate] = None
    variants = list(seen)
    return variants[:limit] if limit is not None else variants


__all__ = ["intent_variants", "selector_variants", "structural_variants", "text_variants"]
