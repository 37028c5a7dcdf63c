import pytest
from pydantic import ValidationError

from scout_engine.ai.conversation import ConversationContext
from scout_engine.ai.models import DiscoveredAction, RankedElement, UsageStats
from scout_engine.ai.parsing import extract_json, parse_actions, parse_interpretation, parse_ranked
from scout_engine.core.errors import RemoteAnalysisFailed


def test_discovered_action_normalizes_fields() -> None:
    action = DiscoveredAction.model_validate(
        {"description": "  Sign   in ", "selector": " #login ", "verb": "Press", "priority": "urgent"}
    )

    assert action.description == "Sign in"
    assert action.identity == ("#login", "click")
    assert action.priority == "medium"


def test_blank_selector_is_rejected() -> None:
    with pytest.raises(ValidationError):
        DiscoveredAction(selector="   ")


def test_ranked_confidence_is_clamped() -> None:
    assert RankedElement(confidence=3).confidence == 1.0
    assert RankedElement(confidence="n/a").confidence == 0.0


def test_extract_json_tolerates_fences_and_chatter() -> None:
    assert extract_json('```json\n[{"a": 1}]\n```') == [{"a": 1}]
    assert extract_json('Sure! Here you go: {"command_type": "navigation"} Hope it helps') == {"command_type": "navigation"}
    with pytest.raises(RemoteAnalysisFailed):
        extract_json("no json at all")


def test_parse_ranked_unwraps_objects() -> None:
    ranked = parse_ranked('{"elements": [{"text": "Docs", "selector": "#docs", "confidence": 0.8}, "junk"]}')

    assert [(item.selector, item.confidence) for item in ranked] == [("#docs", 0.8)]


def test_parse_interpretation_requires_an_object() -> None:
    interpretation = parse_interpretation('{"command_type": "navigation", "parameters": {"page": "home", "n": 2}}')

    assert interpretation.parameters == {"page": "home", "n": "2"}
    with pytest.raises(RemoteAnalysisFailed):
        parse_interpretation("[1, 2]")


def test_parse_actions_from_json_and_lines() -> None:
    from_json = parse_actions('[{"description": "Open menu", "selector": "#menu"}, {"description": "x", "selector": ""}]')
    from_lines = parse_actions(
        "1. Sign in | #login | click | high\n2. Search | input[name=\"q\"] | type\n- Vague idea | low",
        originating_instruction="explore",
    )

    assert [action.selector for action in from_json] == ["#menu"]
    assert [(action.selector, action.interaction_verb, action.priority) for action in from_lines] == [
        ("#login", "click", "high"),
        ('input[name="q"]', "type", "medium"),
    ]
    assert all(action.originating_instruction == "explore" for action in from_lines)
    assert parse_actions("[]") == []


def test_usage_stats_accumulate() -> None:
    stats = UsageStats()
    stats.record({"prompt_tokens": 10, "completion_tokens": 5})
    stats.record(None)

    assert stats.as_payload() == {"calls": 2, "failures": 0, "prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}


def test_conversation_window_is_bounded() -> None:
    context = ConversationContext(max_turns=3, max_tokens=10)
    for index in range(5):
        context.add("user", f"Turn {index}")
    context.add("assistant", "x" * 200)

    assert len(context) == 3
    assert context.turns() == []
    context.clear()
    context.add("user", "Open Pricing")
    context.add("assistant", "Navigated")
    assert context.user_text() == "open pricing"
    assert context.as_messages() == [{"role": "user", "content": "Open Pricing"}, {"role": "assistant", "content": "Navigated"}]


def test_conversation_rejects_empty_window() -> None:
    with pytest.raises(ValueError):
        ConversationContext(max_turns=0)
