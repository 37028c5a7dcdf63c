"""Prompt builders for chat-completion backends."""

from __future__ import annotations

import json
from typing import List, Optional, Sequence

from scout_engine.browser.markup import extract_interactive_elements, simplify_markup

from .conversation import ConversationContext
from .models import DiscoveredAction, RankingCandidate

SYSTEM_PROMPT = "You are a web navigation expert. Return only valid JSON."

INITIAL_ELEMENT_LIMIT = 20
INITIAL_MARKUP_LIMIT = 3000
INITIAL_ACTION_LIMIT = 5
INCREMENTAL_KNOWN_LIMIT = 10
INCREMENTAL_MARKUP_LIMIT = 1500
INCREMENTAL_ACTION_LIMIT = 5
KNOWN_ACTION_LABEL_LIMIT = 20

ACTION_SCHEMA = (
    '[{"description": "short imperative description", "selector": "CSS selector", '
    '"verb": "click|type|select|navigate|submit", "priority": "high|medium|low"}]'
)


def ranking_prompt(text: str, candidates: Sequence[RankingCandidate]) -> str:
    listing = json.dumps([candidate.model_dump() for candidate in candidates], ensure_ascii=False)
    return (
        f'The user wants to: "{text}"\n\n'
        f"Candidate elements on the page:\n{listing}\n\n"
        "Rank the candidates that match the request. For each match return its text, selector, "
        "a confidence between 0 and 1, a short reasoning and the click strategy most likely to "
        "work: standard, javascript (framework-rendered buttons), event (synthetic mouse "
        "events), focus (focus then Enter) or text (search by visible text).\n"
        'Respond with a JSON array: [{"text": "...", "selector": "...", "confidence": 0.9, '
        '"strategy": "standard", "reasoning": "..."}]'
    )


def interpretation_prompt(
    text: str,
    known_actions: Sequence[str],
    context: Optional[ConversationContext] = None,
) -> str:
    lines: List[str] = [f'Interpret the browser command: "{text}"']
    if known_actions:
        lines.append("Actions available on the page: " + ", ".join(list(known_actions)[:KNOWN_ACTION_LABEL_LIMIT]))
    if context is not None and len(context):
        lines.append("Recent conversation:")
        lines.extend(f"- {turn.role}: {turn.text}" for turn in context.turns())
    lines.append(
        "Classify the command as navigation, authentication, interaction, form_input or unknown. "
        'Respond with a JSON object: {"command_type": "...", "parameters": {"page": "...", '
        '"target": "..."}, "confidence": 0.0, "suggestions": ["..."]}'
    )
    return "\n".join(lines)


def initial_analysis_prompt(html: str) -> str:
    elements = extract_interactive_elements(html)[:INITIAL_ELEMENT_LIMIT]
    element_lines = [
        f"- {element.get('tag', '')} \"{element.get('text', '')}\" -> {element.get('selector', '')}"
        for element in elements
    ]
    return (
        "Analyze this web page and list the most important user actions a tester should try.\n\n"
        "Key interactive elements:\n"
        + ("\n".join(element_lines) or "- none detected")
        + f"\n\nPage markup (truncated):\n{simplify_markup(html, INITIAL_MARKUP_LIMIT)}\n\n"
        f"Return at most {INITIAL_ACTION_LIMIT} actions as a JSON array: {ACTION_SCHEMA}"
    )


def incremental_analysis_prompt(delta: str, known: Sequence[DiscoveredAction]) -> str:
    known_lines = [
        f"- {action.description} ({action.interaction_verb} {action.selector})"
        for action in list(known)[:INCREMENTAL_KNOWN_LIMIT]
    ]
    return (
        "New content appeared on a page that was already analyzed.\n\n"
        "Actions already known:\n"
        + ("\n".join(known_lines) or "- none")
        + f"\n\nNew content:\n{simplify_markup(delta, INCREMENTAL_MARKUP_LIMIT)}\n\n"
        f"List only NEW actions made possible by this content, at most {INCREMENTAL_ACTION_LIMIT}, "
        f"as a JSON array: {ACTION_SCHEMA}. Return [] when there are none."
    )


__all__ = [
    "SYSTEM_PROMPT",
    "incremental_analysis_prompt",
    "initial_analysis_prompt",
    "interpretation_prompt",
    "ranking_prompt",
]
