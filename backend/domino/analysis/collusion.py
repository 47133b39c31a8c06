"""Boundary for the external collusion-analysis flow.

The engine only exports per-round score rows; the detector implementation
(an AI flow, a statistical test) lives elsewhere and its verdict is passed
back to the caller untouched.
"""

from collections.abc import Iterable
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from domino.logic.state import AIGameRecord, GameState


class CollusionReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    collusion_detected: bool
    rationale: str


class CollusionDetector(Protocol):
    """Analyzes score rows (aligned to seating order) for coordinated play."""

    def detect(self, game_records: tuple[AIGameRecord, ...]) -> CollusionReport: ...


def export_game_records(game_state: GameState) -> tuple[AIGameRecord, ...]:
    """Read-only snapshot of a game's analysis rows."""
    return game_state.ai_game_records


def analyzable_games(games: Iterable[GameState]) -> list[GameState]:
    """Completed games that have at least one analysis row."""
    return [game for game in games if not game.is_active and game.ai_game_records]
