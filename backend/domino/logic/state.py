"""
Game state models for French Domino.

All models are frozen; operations return new instances built with
model_copy. Field names are snake_case in Python and camelCase in the
persisted JSON (``currentScore``, ``penaltyLog``), and every optional field
carries its default here so loading applies it once.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from domino.logic.settings import DEFAULT_TARGET_SCORE, STANDARD_PENALTY_REASON


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class RecordModel(BaseModel):
    """Base for persisted records: frozen, camelCase on the wire, accepts either name on input."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        """Dump as JSON-compatible data with camelCase keys, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PlayerInGame(RecordModel):
    """A seated player and their running score."""

    id: str
    name: str
    current_score: int = Field(default=0, ge=0)
    is_busted: bool = False
    # score added in each round the player took part in; penalties are not listed here
    round_scores: tuple[int, ...] = ()


class GameRound(RecordModel):
    """One round submission. Only players still in at submission time have an entry."""

    round_number: int = Field(ge=1)
    scores: dict[str, int] = Field(default_factory=dict)


class PenaltyLogEntry(RecordModel):
    """Out-of-band score addition, logged against the round in progress when applied."""

    player_id: str
    round_number: int = Field(ge=1)
    points: int = Field(gt=0)
    reason: str = STANDARD_PENALTY_REASON


class AIGameRecord(RecordModel):
    """Per-round score row aligned to the game's seating order, for external analysis."""

    round_number: int = Field(ge=1)
    player_scores: tuple[int, ...]


class GameState(RecordModel):
    """
    Full state of one game.

    ``rounds`` and ``penalty_log`` only grow. ``is_active`` flips to False
    exactly once, when at most one player is left standing.
    """

    id: str
    players: tuple[PlayerInGame, ...]
    target_score: int = Field(default=DEFAULT_TARGET_SCORE, gt=0)
    rounds: tuple[GameRound, ...] = ()
    penalty_log: tuple[PenaltyLogEntry, ...] = ()
    current_round_number: int = Field(default=1, ge=1)
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utc_now)
    winner_id: str | None = None
    ai_game_records: tuple[AIGameRecord, ...] = ()
    # seating order fixed at creation; ai_game_records rows follow it
    player_order: tuple[str, ...] = ()
    tournament_id: str | None = None
    game_number_in_tournament: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _default_player_order(cls, data: Any) -> Any:  # noqa: ANN401
        """Older records carry no seating order; derive it from the players list."""
        if not isinstance(data, dict) or data.get("playerOrder") or data.get("player_order"):
            return data
        players = data.get("players")
        if not isinstance(players, list | tuple):
            return data
        # malformed entries are skipped here and rejected by field validation
        order = [
            p.id if isinstance(p, PlayerInGame) else p["id"]
            for p in players
            if isinstance(p, PlayerInGame) or (isinstance(p, dict) and isinstance(p.get("id"), str))
        ]
        return {**data, "player_order": order}

    def get_player(self, player_id: str) -> PlayerInGame | None:
        return next((p for p in self.players if p.id == player_id), None)

    @property
    def active_players(self) -> tuple[PlayerInGame, ...]:
        """Players that have not busted."""
        return tuple(p for p in self.players if not p.is_busted)

    @property
    def is_tournament_game(self) -> bool:
        return self.tournament_id is not None
