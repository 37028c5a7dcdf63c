from scout_engine.resolver.commands import (
    looks_like_url,
    match_builtin_commands,
    normalize_url,
    parse_parametric_command,
    parse_typed_input,
)
from scout_engine.resolver.types import CommandVerb


def test_static_command_matches_exactly() -> None:
    matches = match_builtin_commands("go back")

    command, score = matches[0]
    assert command.verb is CommandVerb.GO_BACK
    assert score == 1.0


def test_strong_static_match_suppresses_parametric_commands() -> None:
    matches = match_builtin_commands("home")

    assert [command.verb for command, _ in matches] == [CommandVerb.GO_HOME]


def test_go_to_page_becomes_navigation_command() -> None:
    matches = match_builtin_commands("go to pricing")

    assert len(matches) == 1
    command, score = matches[0]
    assert command.verb is CommandVerb.NAVIGATE_TO
    assert command.target == "pricing"
    assert score == 0.85


def test_open_url_keeps_original_case() -> None:
    command = parse_parametric_command("open example.com/Docs")

    assert command is not None
    assert command.verb is CommandVerb.OPEN_URL
    assert command.target == "https://example.com/Docs"


def test_click_command_strips_role_words() -> None:
    command = parse_parametric_command("click the Sign Up button")

    assert command is not None
    assert command.verb is CommandVerb.CLICK_TARGET
    assert command.target == "Sign Up"


def test_short_queries_never_match_commands() -> None:
    assert match_builtin_commands("go") == []


def test_url_detection() -> None:
    assert looks_like_url("example.com")
    assert looks_like_url("http://localhost:8000")
    assert not looks_like_url("sign in")
    assert not looks_like_url("pricing")
    assert normalize_url("example.com") == "https://example.com"
    assert normalize_url("http://a.test/x") == "http://a.test/x"


def test_typed_input_patterns() -> None:
    quoted = parse_typed_input('type "alice@example.com" into the email')
    filled = parse_typed_input("fill password with hunter2")

    assert quoted is not None and (quoted.target, quoted.value) == ("email", "alice@example.com")
    assert filled is not None and (filled.target, filled.value) == ("password", "hunter2")
    assert parse_typed_input("click login") is None
