"""Request bodies accepted by the scoreboard HTTP API.

Shape checks only; score and name rules are enforced by the engine so the
API and library callers get the same ValidationError messages.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from domino.logic.enums import ParticipationMode
from domino.logic.settings import STANDARD_PENALTY_REASON


class StartGameRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    player_names: list[str] | None = None
    target_score: int | None = None
    tournament_id: str | None = Field(default=None, min_length=1)


class SubmitRoundRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # values stay untyped so non-integer scores reach the engine's validation
    scores: dict[str, Any]


class PenaltyRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    player_id: str = Field(min_length=1)
    reason: str = Field(default=STANDARD_PENALTY_REASON, min_length=1, max_length=200)


class EditScoreRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    score: Any


class CreateTournamentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    player_names: list[str]
    target_score: int | None = None
    participation_mode: ParticipationMode = ParticipationMode.ROTATE_ON_BUST
    win_bonus_k: float | None = None
    bust_penalty_k: float | None = None
    pg_kicker_k: float | None = None
    min_games_pct: float | None = None

    def ranking_overrides(self) -> dict[str, float]:
        """K-factors and eligibility fraction the client actually sent."""
        fields = ("win_bonus_k", "bust_penalty_k", "pg_kicker_k", "min_games_pct")
        return {name: getattr(self, name) for name in fields if getattr(self, name) is not None}
