"""Centralized rule settings for French Domino scoring."""

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_TARGET_SCORE = 100
MIN_PLAYERS = 2
MAX_PLAYERS = 4
PENALTY_POINTS = 10
NEARING_BUST_MARGIN = 10

STANDARD_PENALTY_REASON = "Standard Penalty"

# Tournament ranking K-factors applied when a record does not carry its own.
DEFAULT_WIN_BONUS_K = 0.20
DEFAULT_BUST_PENALTY_K = 0.40
DEFAULT_PG_KICKER_K = 0.05
DEFAULT_MIN_GAMES_PCT = 0.0


class GameSettings(BaseModel):
    """
    Configurable rule constants for a single game.

    Defaults match the standard house rules: 2-4 players, 100 point target,
    10 point penalties, and a "nearing bust" highlight 10 points below target.
    """

    model_config = ConfigDict(frozen=True)

    min_players: int = Field(default=MIN_PLAYERS, ge=2)
    max_players: int = Field(default=MAX_PLAYERS, ge=2)
    default_target_score: int = Field(default=DEFAULT_TARGET_SCORE, gt=0)
    penalty_points: int = Field(default=PENALTY_POINTS, gt=0)
    nearing_bust_margin: int = Field(default=NEARING_BUST_MARGIN, ge=0)

    @model_validator(mode="after")
    def _check_player_bounds(self) -> Self:
        if self.min_players > self.max_players:
            raise ValueError(f"min_players ({self.min_players}) exceeds max_players ({self.max_players})")
        return self
