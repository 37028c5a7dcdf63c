"""Parameterized page scripts.

Every script is a ``string.Template`` whose placeholders are filled with JSON literals, so
quotes, backslashes and line separators in the target text can never break out of the
string they are embedded in.
"""

from __future__ import annotations

import json
from string import Template
from typing import Any

CLICKABLE_QUERY = 'a, button, [role="button"], [onclick], input[type="submit"], input[type="button"]'

TEXT_SEARCH_CLICK = Template(
    """(() => {
  const needle = String($target).trim().toLowerCase();
  if (!needle) { return false; }
  const nodes = Array.from(document.querySelectorAll($query));
  for (const node of nodes) {
    const text = (node.innerText || node.textContent || node.value || node.getAttribute('aria-label') || '').trim().toLowerCase();
    if (text && text.includes(needle)) {
      node.scrollIntoView({block: 'center'});
      node.click();
      return true;
    }
  }
  return false;
})()"""
)

SCRIPT_CLICK = Template(
    """(() => {
  const node = document.querySelector($selector);
  if (!node) { return false; }
  node.click();
  return true;
})()"""
)

DISPATCH_CLICK = Template(
    """(() => {
  const node = document.querySelector($selector);
  if (!node) { return false; }
  for (const type of ['pointerdown', 'mousedown', 'pointerup', 'mouseup', 'click']) {
    node.dispatchEvent(new MouseEvent(type, {bubbles: true, cancelable: true, view: window}));
  }
  return true;
})()"""
)

FOCUS_ENTER = Template(
    """(() => {
  const node = document.querySelector($selector);
  if (!node) { return false; }
  node.focus();
  const init = {key: 'Enter', code: 'Enter', keyCode: 13, which: 13, bubbles: true};
  node.dispatchEvent(new KeyboardEvent('keydown', init));
  node.dispatchEvent(new KeyboardEvent('keypress', init));
  node.dispatchEvent(new KeyboardEvent('keyup', init));
  if (node.form && typeof node.form.requestSubmit === 'function') {
    node.form.requestSubmit();
  } else if (typeof node.click === 'function' && node.tagName !== 'INPUT') {
    node.click();
  }
  return true;
})()"""
)

SUBMIT_FORM = Template(
    """(() => {
  const node = document.querySelector($selector);
  if (!node) { return false; }
  const form = node.form || node.closest('form');
  if (form && typeof form.requestSubmit === 'function') {
    form.requestSubmit(node.type === 'submit' ? node : undefined);
    return true;
  }
  node.click();
  return true;
})()"""
)

HISTORY_BACK = "(() => { window.history.back(); return true; })()"
RELOAD = "(() => { window.location.reload(); return true; })()"

EXTRACT_INTERACTIVE = """(() => {
  const visible = (el) => {
    const style = window.getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden') { return false; }
    const rect = el.getBoundingClientRect();
    return rect.width > 0 && rect.height > 0;
  };
  const cssEscape = (value) => (window.CSS && CSS.escape) ? CSS.escape(value) : value.replace(/[^a-zA-Z0-9_-]/g, '\\\\$&');
  const selectorFor = (el) => {
    if (el.id) { return '#' + cssEscape(el.id); }
    const tag = el.tagName.toLowerCase();
    for (const attr of ['data-testid', 'name', 'aria-label']) {
      const value = el.getAttribute(attr);
      if (value) { return tag + '[' + attr + '="' + value.replace(/"/g, '\\\\"') + '"]'; }
    }
    const parts = [];
    let node = el;
    while (node && node.nodeType === 1 && node !== document.body) {
      let part = node.tagName.toLowerCase();
      const parent = node.parentElement;
      if (parent) {
        const siblings = Array.from(parent.children).filter((child) => child.tagName === node.tagName);
        if (siblings.length > 1) { part += ':nth-of-type(' + (siblings.indexOf(node) + 1) + ')'; }
      }
      parts.unshift(part);
      node = parent;
    }
    return parts.join(' > ');
  };
  const query = 'a[href], button, input, select, textarea, [role="button"], [role="link"], [onclick]';
  const seen = new Set();
  const results = [];
  for (const el of document.querySelectorAll(query)) {
    if (!visible(el)) { continue; }
    const tag = el.tagName.toLowerCase();
    const type = (el.getAttribute('type') || '').toLowerCase();
    if (tag === 'input' && type === 'hidden') { continue; }
    const selector = selectorFor(el);
    if (seen.has(selector)) { continue; }
    seen.add(selector);
    const text = (el.innerText || el.value || el.getAttribute('aria-label') || el.getAttribute('placeholder') || el.getAttribute('title') || el.getAttribute('name') || '').trim().slice(0, 120);
    const href = tag === 'a' ? el.href : null;
    const isNavigation = Boolean(href) && !href.startsWith('javascript:') && !href.endsWith('#');
    const isButton = tag === 'button' || el.getAttribute('role') === 'button' || ['submit', 'button', 'reset'].includes(type);
    results.push({selector, text, tag, is_navigation: isNavigation, is_button: isButton, resolved_url: isNavigation ? href : null, input_type: type || null});
  }
  return results;
})()"""


def js_literal(value: Any) -> str:
    """Encode ``value`` as a JavaScript literal."""

    return json.dumps(value, ensure_ascii=True)


def render(template: Template, **values: Any) -> str:
    """Substitute every placeholder with a JSON-encoded literal."""

    return template.substitute({key: js_literal(value) for key, value in values.items()})


def text_search_click(target: str) -> str:
    return render(TEXT_SEARCH_CLICK, target=target, query=CLICKABLE_QUERY)


def selector_script(template: Template, selector: str) -> str:
    return render(template, selector=selector)


__all__ = [
    "CLICKABLE_QUERY",
    "DISPATCH_CLICK",
    "EXTRACT_INTERACTIVE",
    "FOCUS_ENTER",
    "HISTORY_BACK",
    "RELOAD",
    "SCRIPT_CLICK",
    "SUBMIT_FORM",
    "TEXT_SEARCH_CLICK",
    "js_literal",
    "render",
    "selector_script",
    "text_search_click",
]
