import logging
from pathlib import Path

import pytest

from fakes import button
from scout_engine.config_loader import DEFAULT_SETTINGS_PATH, load_settings, section
from scout_engine.core.errors import InstructionAmbiguous, PollTimeout
from scout_engine.detection import ChangeKind, ChangeReport
from scout_engine.discovery import DiscoveryBatch
from scout_engine.engine import BatchDiscovered, ChangeDetected, Failed, Resolved, describe_event
from scout_engine.engine.engine import InstructionResult, InstructionStatus
from scout_engine.resolver import Suggestion
from scout_engine.utils import logging_utils


def test_bundled_settings_load() -> None:
    settings = load_settings()

    assert DEFAULT_SETTINGS_PATH.name == "settings.yaml"
    assert section(settings, "executor")["max_rounds"] == 3
    assert section(settings, "resolver")["context_boost"] == pytest.approx(0.15)
    assert section(settings, "missing") == {}
    assert section(None, "executor") == {}


def test_settings_errors(tmp_path: Path) -> None:
    bad = tmp_path / "settings.yaml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(bad)
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "absent.yaml")


def test_logger_configuration_is_idempotent(tmp_path: Path) -> None:
    logger = logging.getLogger(logging_utils.LOGGER_NAME)
    saved = list(logger.handlers)
    logger.handlers.clear()
    try:
        configured = logging_utils.configure_from_settings({"logging": {"level": "debug", "log_dir": str(tmp_path)}})
        again = logging_utils.configure_logger("ERROR")

        assert configured is again
        assert configured.level == logging.DEBUG
        assert len(configured.handlers) == 2
        assert (tmp_path / "scout.log").exists()
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers[:] = saved


def test_error_descriptions() -> None:
    suggestion = Suggestion(confidence=0.2, element=button("Go", "#go"))
    error = InstructionAmbiguous("no confident match", [suggestion])

    assert error.describe() == "instruction_ambiguous: no confident match"
    assert error.suggestions == [suggestion]
    assert PollTimeout().describe() == "timeout: PollTimeout"


def test_events_render_to_one_line() -> None:
    suggestion = Suggestion(confidence=0.9, element=button("Go", "#go"))
    report = ChangeReport("https://a.test/", "https://a.test/", "A", ChangeKind.UNCHANGED, "No visible change after 2.0s")

    assert describe_event(Resolved("go", (suggestion,))) == "resolved 'go' -> Go (1 suggestions)"
    assert describe_event(ChangeDetected("go", report)) == "No visible change after 2.0s"
    assert describe_event(BatchDiscovered(DiscoveryBatch((), is_initial=True))) == "initial discovery batch with 0 actions"
    assert describe_event(Failed("go", "busy", "busy: wait")) == "busy: busy: wait"
    with pytest.raises(TypeError):
        describe_event("not an event")  # type: ignore[arg-type]


def test_suggestion_and_report_invariants() -> None:
    with pytest.raises(ValueError):
        Suggestion(confidence=0.5)
    with pytest.raises(ValueError):
        Suggestion(confidence=1.5, element=button("Go", "#go"))
    with pytest.raises(ValueError):
        ChangeReport("u", "u", "", ChangeKind.SEMANTIC_SIGNAL, "signal without a kind")


def test_instruction_result_payload() -> None:
    result = InstructionResult("go", InstructionStatus.BUSY, "busy")

    assert result.as_payload()["status"] == "busy"
    assert not result.succeeded
