import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from domino.logic.enums import BlockReason
from domino.logic.types import BlockedAction
from domino.tests.conftest import create_player
from shared.logging import configure_structlog, plain_domain_values, setup_logging


@pytest.fixture(autouse=True)
def _cleanup_root_logger():
    """Close and remove all handlers from the root logger after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    configure_structlog()


@pytest.fixture(autouse=True)
def _default_log_env(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)


class TestSetupLogging:
    def test_stdout_only_by_default(self):
        result = setup_logging()
        root = logging.getLogger()

        assert result is None
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_repeated_calls_replace_handlers(self, tmp_path):
        setup_logging(log_dir=tmp_path)
        setup_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_explicit_level_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        setup_logging(level=logging.WARNING)

        assert logging.getLogger().level == logging.WARNING

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        setup_logging()

        assert logging.getLogger().level == logging.DEBUG

    @pytest.mark.parametrize(
        ("var", "message"),
        [("LOG_LEVEL", "Invalid LOG_LEVEL"), ("LOG_FORMAT", "Invalid LOG_FORMAT")],
    )
    def test_invalid_env_raises(self, monkeypatch, var, message):
        monkeypatch.setenv(var, "bogus")

        with pytest.raises(ValueError, match=message):
            setup_logging()

    def test_log_file_named_by_timestamp(self, tmp_path):
        fixed_time = datetime(2025, 3, 15, 10, 30, 45, tzinfo=UTC)
        with patch("shared.logging.datetime") as mock_dt:
            mock_dt.now.return_value = fixed_time
            log_path = setup_logging(log_dir=tmp_path / "nested" / "logs")

        assert log_path.name == "scoreboard_2025-03-15_10-30-45.log"
        assert log_path.parent == tmp_path / "nested" / "logs"
        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        assert [Path(h.baseFilename) for h in file_handlers] == [log_path]

    def test_json_file_output_carries_game_context(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        log_path = setup_logging(log_dir=str(tmp_path))

        with structlog.contextvars.bound_contextvars(game_id="game-1"):
            structlog.get_logger("test.json").info("penalty blocked", reason=BlockReason.WOULD_BUST, round_number=3)

        parsed = json.loads(log_path.read_text().strip().splitlines()[0])
        assert parsed["event"] == "penalty blocked"
        assert parsed["game_id"] == "game-1"
        assert parsed["reason"] == "would_bust"
        assert parsed["round_number"] == 3

    def test_console_file_output(self, tmp_path):
        log_path = setup_logging(log_dir=tmp_path)

        structlog.get_logger("test.console").info("player busted", player_id="p1")

        text = log_path.read_text()
        assert "player busted" in text
        assert "p1" in text


class TestPlainDomainValues:
    def test_enums_become_values(self):
        event_dict = {"reason": BlockReason.PLAYER_BUSTED, "by_player": {"a": BlockReason.GAME_COMPLETED}}

        result = plain_domain_values(None, "", event_dict)

        assert result == {"reason": "player_busted", "by_player": {"a": "game_completed"}}

    def test_blocked_action_keeps_field_names(self):
        blocked = BlockedAction(reason=BlockReason.WOULD_BUST, message="too close")

        result = plain_domain_values(None, "", {"blocked": blocked})

        assert result == {"blocked": {"reason": "would_bust", "message": "too close"}}

    def test_models_become_records(self):
        player = create_player("a", "Alice", current_score=12, round_scores=(5, 7))

        result = plain_domain_values(None, "", {"player": player, "seats": ("a", "b")})

        assert result["player"]["current_score"] == 12
        assert result["player"]["round_scores"] == [5, 7]
        assert result["seats"] == ["a", "b"]

    def test_leaves_other_values(self):
        assert plain_domain_values(None, "", {"event": "round submitted", "count": 42}) == {
            "event": "round submitted",
            "count": 42,
        }
