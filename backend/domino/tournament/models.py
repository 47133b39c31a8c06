"""Tournament records: roster statistics and ranking parameters."""

from datetime import UTC, datetime

from pydantic import AliasChoices, Field

from domino.logic.enums import ParticipationMode
from domino.logic.settings import (
    DEFAULT_BUST_PENALTY_K,
    DEFAULT_MIN_GAMES_PCT,
    DEFAULT_PG_KICKER_K,
    DEFAULT_TARGET_SCORE,
    DEFAULT_WIN_BONUS_K,
)
from domino.logic.state import RecordModel


class TournamentPlayerStats(RecordModel):
    """Accumulated results of one tournament player, updated once per completed game."""

    id: str
    name: str
    games_played: int = Field(default=0, ge=0)
    wins: int = Field(default=0, ge=0)
    busts: int = Field(default=0, ge=0)
    perfect_games: int = Field(default=0, ge=0)
    # early records stored the plain sum of positions under a different key
    sum_weighted_places: float = Field(
        default=0.0,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("sumWeightedPlaces", "sum_weighted_places", "sumOfPositions"),
    )


class Tournament(RecordModel):
    """
    A sequence of linked games ranked together.

    K-factors and the eligibility threshold are fixed at creation and reused
    every time the leaderboard is computed.
    """

    id: str
    name: str
    players: tuple[TournamentPlayerStats, ...]
    target_score: int = Field(default=DEFAULT_TARGET_SCORE, gt=0)
    player_participation_mode: ParticipationMode = ParticipationMode.ROTATE_ON_BUST
    game_ids: tuple[str, ...] = ()
    # games whose outcome has already been folded into player stats
    completed_game_ids: tuple[str, ...] = ()
    win_bonus_k: float = Field(
        default=DEFAULT_WIN_BONUS_K,
        allow_inf_nan=False,
        validation_alias=AliasChoices("winBonusK", "win_bonus_k"),
    )
    bust_penalty_k: float = Field(
        default=DEFAULT_BUST_PENALTY_K,
        allow_inf_nan=False,
        validation_alias=AliasChoices("bustPenaltyK", "bust_penalty_k"),
    )
    pg_kicker_k: float = Field(
        default=DEFAULT_PG_KICKER_K,
        allow_inf_nan=False,
        validation_alias=AliasChoices("pgKickerK", "pg_kicker_k"),
    )
    min_games_pct: float = Field(
        default=DEFAULT_MIN_GAMES_PCT,
        ge=0,
        le=1,
        validation_alias=AliasChoices("minGamesPct", "min_games_pct"),
    )
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    winner_id: str | None = None

    def get_player_by_name(self, name: str) -> TournamentPlayerStats | None:
        lowered = name.strip().lower()
        return next((p for p in self.players if p.name.lower() == lowered), None)
