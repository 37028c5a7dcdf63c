from .change_detector import ChangeDetector
from .rules import DEFAULT_RULES, RuleMode, SignalRule, first_signal
from .types import ChangeKind, ChangeReport, SignalKind, Snapshot

__all__ = [
    "ChangeDetector",
    "ChangeKind",
    "ChangeReport",
    "DEFAULT_RULES",
    "RuleMode",
    "SignalKind",
    "SignalRule",
    "Snapshot",
    "first_signal",
]
