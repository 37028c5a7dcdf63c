import asyncio

import pytest

from fakes import FakeAssistant, button, form_field, link
from scout_engine.ai.conversation import ConversationContext
from scout_engine.ai.models import CommandInterpretation, RankedElement
from scout_engine.catalog import ElementCatalog, ElementKind
from scout_engine.core.errors import RemoteAnalysisFailed
from scout_engine.resolver import ClickStrategy, CommandVerb, Resolver, SuggestionSource

SETTINGS = {"resolver": {"remote_timeout_seconds": 0.1}}


def _catalog() -> ElementCatalog:
    return ElementCatalog(
        elements=(
            link("Pricing", "#pricing", "https://example.test/pricing", position=0),
            button("Sign In", "#sign-in", position=1),
            form_field("Email", "#email", position=2),
            button("Submit order", "#submit", position=3),
        )
    )


@pytest.mark.asyncio
async def test_exact_label_wins() -> None:
    catalog = ElementCatalog(elements=(button("Sign In", "#sign-in"),))

    suggestions = await Resolver().resolve("sign in", catalog)

    top = suggestions[0]
    assert top.element is not None
    assert top.element.kind is ElementKind.BUTTON
    assert top.confidence >= 0.9


@pytest.mark.asyncio
async def test_empty_instruction_lists_commands_then_elements_by_kind() -> None:
    suggestions = await Resolver().resolve("   ", _catalog())

    commands = [item.command.verb for item in suggestions if item.command]
    elements = [item.element.selector for item in suggestions if item.element]
    assert commands == [CommandVerb.GO_BACK, CommandVerb.GO_HOME, CommandVerb.REFRESH]
    assert elements == ["#email", "#sign-in", "#submit", "#pricing"]
    assert {item.confidence for item in suggestions} == {0.8}


@pytest.mark.asyncio
async def test_builtin_commands_come_first() -> None:
    suggestions = await Resolver().resolve("go back", _catalog())

    assert suggestions[0].command is not None
    assert suggestions[0].command.verb is CommandVerb.GO_BACK
    assert suggestions[0].source is SuggestionSource.BUILTIN


@pytest.mark.asyncio
async def test_url_like_instruction_adds_direct_navigation() -> None:
    suggestions = await Resolver().resolve("docs.example.org", _catalog())

    direct = [item for item in suggestions if item.source is SuggestionSource.DIRECT]
    assert len(direct) == 1
    assert direct[0].command.target == "https://docs.example.org"
    assert direct[0].confidence == 0.5


@pytest.mark.asyncio
async def test_resolution_is_deterministic() -> None:
    resolver = Resolver()
    catalog = _catalog()

    first = await resolver.resolve("submit", catalog)
    second = await resolver.resolve("submit", catalog)

    assert [item.as_payload() for item in first] == [item.as_payload() for item in second]


@pytest.mark.asyncio
async def test_empty_catalog_yields_nothing_for_plain_text() -> None:
    assert await Resolver().resolve("sign in", ElementCatalog()) == []


@pytest.mark.asyncio
async def test_remote_ranking_replaces_local_scores() -> None:
    assistant = FakeAssistant(
        ranked=[
            RankedElement(text="Pricing", selector="#pricing", confidence=0.92, strategy="javascript", reasoning="plans"),
            RankedElement(text="Sign In", selector="#sign-in", confidence=0.2),
        ]
    )

    suggestions = await Resolver(assistant, SETTINGS).resolve("see the plans", _catalog())

    top = suggestions[0]
    assert top.element.selector == "#pricing"
    assert top.source is SuggestionSource.REMOTE
    assert top.strategy is ClickStrategy.SCRIPT_CLICK
    assert all(item.source is not SuggestionSource.REMOTE for item in suggestions[1:])
    assert assistant.calls.count("rank") == 1


@pytest.mark.asyncio
async def test_remote_match_falls_back_to_label() -> None:
    assistant = FakeAssistant(ranked=[RankedElement(text="email", selector="input#mail", confidence=0.7)])

    suggestions = await Resolver(assistant, SETTINGS).resolve("address", _catalog())

    assert suggestions[0].element.selector == "#email"


@pytest.mark.asyncio
async def test_remote_failure_keeps_local_ranking() -> None:
    local = await Resolver().resolve("sign", _catalog())
    failing = FakeAssistant(error=RemoteAnalysisFailed("HTTP 500"))

    suggestions = await Resolver(failing, SETTINGS).resolve("sign", _catalog())

    assert [item.as_payload() for item in suggestions] == [item.as_payload() for item in local]


@pytest.mark.asyncio
async def test_remote_timeout_keeps_local_ranking() -> None:
    slow = FakeAssistant(ranked=[RankedElement(text="Pricing", selector="#pricing", confidence=0.99)], delay=1.0)

    started = asyncio.get_running_loop().time()
    suggestions = await Resolver(slow, SETTINGS).resolve("sign", _catalog())

    assert asyncio.get_running_loop().time() - started < 0.9
    assert suggestions[0].element.selector == "#sign-in"
    assert suggestions[0].source is SuggestionSource.LOCAL


@pytest.mark.asyncio
async def test_interpretation_can_add_navigation_command() -> None:
    assistant = FakeAssistant(
        interpretation=CommandInterpretation(command_type="navigation", parameters={"page": "careers"}, confidence=0.9)
    )

    suggestions = await Resolver(assistant, SETTINGS).resolve("show me jobs", _catalog())

    commands = [item.command for item in suggestions if item.command]
    assert commands and commands[0].verb is CommandVerb.NAVIGATE_TO
    assert commands[0].target == "careers"


@pytest.mark.asyncio
async def test_typed_input_targets_form_fields_only() -> None:
    suggestions = await Resolver().resolve('type "a@b.test" into email', _catalog())

    assert suggestions
    assert all(item.element.kind is ElementKind.FORM_FIELD for item in suggestions if item.element)


@pytest.mark.asyncio
async def test_conversation_context_boosts_related_elements() -> None:
    catalog = ElementCatalog(elements=(button("Order history", "#orders"), button("Order support", "#support")))
    context = ConversationContext()
    context.add("user", "I need help with support")

    plain = await Resolver().resolve("order status", catalog)
    boosted = await Resolver().resolve("order status", catalog, context)

    assert plain[0].confidence == plain[1].confidence
    assert boosted[0].element.selector == "#support"
    assert boosted[0].confidence <= 0.95


@pytest.mark.asyncio
async def test_submit_buttons_default_to_event_dispatch() -> None:
    suggestions = await Resolver().resolve("submit order", _catalog())

    assert suggestions[0].element.selector == "#submit"
    assert suggestions[0].strategy is ClickStrategy.DISPATCH_EVENT


class _SlowInterpreter(FakeAssistant):
    async def interpret_command(self, text, known_actions, context=None):
        self.calls.append("interpret")
        await asyncio.sleep(1.0)
        return self.interpretation


@pytest.mark.asyncio
async def test_slow_interpretation_keeps_finished_ranking() -> None:
    assistant = _SlowInterpreter(ranked=[RankedElement(text="Pricing", selector="#pricing", confidence=0.99)])

    started = asyncio.get_running_loop().time()
    suggestions = await Resolver(assistant, SETTINGS).resolve("sign", _catalog())

    assert asyncio.get_running_loop().time() - started < 0.9
    assert suggestions[0].element.selector == "#pricing"
    assert suggestions[0].source is SuggestionSource.REMOTE
