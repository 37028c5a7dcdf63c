from .commands import TypedInput, looks_like_url, match_builtin_commands, parse_typed_input
from .resolver import Resolver, local_strategy
from .scoring import match_score
from .types import BuiltinCommand, ClickStrategy, CommandVerb, Suggestion, SuggestionSource

__all__ = [
    "BuiltinCommand",
    "ClickStrategy",
    "CommandVerb",
    "Resolver",
    "Suggestion",
    "SuggestionSource",
    "TypedInput",
    "local_strategy",
    "looks_like_url",
    "match_builtin_commands",
    "match_score",
    "parse_typed_input",
]
