"""Ordered phrase rules for semantic change signals.

The table is evaluated top to bottom and the first rule that fires wins. Callers may pass
their own table to ``ChangeDetector``; order is the only precedence mechanism.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .types import SignalKind


class RuleMode(str, Enum):
    APPEARED = "appeared"
    DISAPPEARED = "disappeared"


@dataclass(frozen=True)
class SignalRule:
    signal: SignalKind
    phrases: Tuple[str, ...]
    mode: RuleMode = RuleMode.APPEARED

    def matches(self, before: str, after: str) -> bool:
        """Both inputs are expected lower-cased."""

        if self.mode is RuleMode.APPEARED:
            return any(phrase in after and phrase not in before for phrase in self.phrases)
        return any(phrase in before for phrase in self.phrases) and not any(phrase in after for phrase in self.phrases)


MAGIC_LINK_PHRASES = (
    "magic link",
    "check your email",
    "check your inbox",
    "sent you a link",
    "we sent you an email",
    "we've sent you",
    "email has been sent",
    "login link",
)
AUTH_SUCCESS_PHRASES = (
    "successfully signed in",
    "successfully logged in",
    "you are logged in",
    "you are signed in",
    "logged in as",
    "signed in as",
    "welcome back",
    "sign out",
    "log out",
    "logout",
)
SUCCESS_PHRASES = ("success", "successfully", "thank you", "has been saved", "saved", "completed", "confirmed")
MODAL_PHRASES = ('role="dialog"', 'aria-modal="true"', 'class="modal', " modal-open", "modal show")
ERROR_PHRASES = (
    "error",
    "invalid",
    "incorrect",
    "failed",
    "something went wrong",
    "try again",
    "is required",
    "not found",
)
LOADING_PHRASES = ("loading", "please wait", 'aria-busy="true"', "spinner")

DEFAULT_RULES: Tuple[SignalRule, ...] = (
    SignalRule(SignalKind.MAGIC_LINK_SENT, MAGIC_LINK_PHRASES),
    SignalRule(SignalKind.AUTH_SUCCESS, AUTH_SUCCESS_PHRASES),
    SignalRule(SignalKind.SUCCESS, SUCCESS_PHRASES),
    SignalRule(SignalKind.MODAL_OPENED, MODAL_PHRASES),
    SignalRule(SignalKind.MODAL_CLOSED, MODAL_PHRASES, RuleMode.DISAPPEARED),
    SignalRule(SignalKind.ERROR, ERROR_PHRASES),
    SignalRule(SignalKind.LOADING_STARTED, LOADING_PHRASES),
    SignalRule(SignalKind.LOADING_FINISHED, LOADING_PHRASES, RuleMode.DISAPPEARED),
)

SIGNAL_SUMMARIES = {
    SignalKind.MAGIC_LINK_SENT: "Magic link sent",
    SignalKind.AUTH_SUCCESS: "Signed in",
    SignalKind.SUCCESS: "Success message shown",
    SignalKind.MODAL_OPENED: "Dialog opened",
    SignalKind.MODAL_CLOSED: "Dialog closed",
    SignalKind.ERROR: "Error message shown",
    SignalKind.LOADING_STARTED: "Page started loading",
    SignalKind.LOADING_FINISHED: "Page finished loading",
}


def first_signal(before: str, after: str, rules: Sequence[SignalRule] = DEFAULT_RULES) -> Optional[SignalKind]:
    before_lower = (before or "").lower()
    after_lower = (after or "").lower()
    for rule in rules:
        if rule.matches(before_lower, after_lower):
            return rule.signal
    return None


__all__ = ["DEFAULT_RULES", "RuleMode", "SIGNAL_SUMMARIES", "SignalRule", "first_signal"]
