"""
Tournament leaderboard: turns accumulated player stats into a ranked list.

Per player with at least one game::

    base        = sum_weighted_places / games_played
    win_bonus   = -win_bonus_k    * wins / games_played
    bust_penalty = bust_penalty_k * busts / games_played
    pg_bonus    = -pg_kicker_k    * perfect_games / games_played
    final       = base + win_bonus + bust_penalty + pg_bonus

Every reported term is rounded to 3 decimals, half away from zero
(1.1875 -> 1.188). Lower final is better. Players with no games have no
score and always rank last.
"""

import math
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from domino.logic.settings import DEFAULT_BUST_PENALTY_K, DEFAULT_PG_KICKER_K, DEFAULT_WIN_BONUS_K
from domino.tournament.models import Tournament, TournamentPlayerStats

_THOUSANDTH = Decimal("0.001")


class RankingWeights(BaseModel):
    """K-factors applied on top of the average weighted place."""

    model_config = ConfigDict(frozen=True)

    win_bonus_k: float = Field(default=DEFAULT_WIN_BONUS_K, allow_inf_nan=False)
    bust_penalty_k: float = Field(default=DEFAULT_BUST_PENALTY_K, allow_inf_nan=False)
    pg_kicker_k: float = Field(default=DEFAULT_PG_KICKER_K, allow_inf_nan=False)

    @classmethod
    def from_tournament(cls, tournament: Tournament) -> Self:
        return cls(
            win_bonus_k=tournament.win_bonus_k,
            bust_penalty_k=tournament.bust_penalty_k,
            pg_kicker_k=tournament.pg_kicker_k,
        )


class RankedPlayer(BaseModel):
    """Leaderboard row. Score terms are None for a player without games."""

    model_config = ConfigDict(frozen=True)

    rank: int = Field(ge=1)
    player_id: str
    name: str
    games_played: int
    wins: int
    busts: int
    perfect_games: int
    base: float | None
    win_bonus: float | None
    bust_penalty: float | None
    pg_bonus: float | None
    final: float | None


def round3(value: float) -> float:
    """Round to 3 decimals, half away from zero, on the decimal representation."""
    rounded = Decimal(repr(value)).quantize(_THOUSANDTH, rounding=ROUND_HALF_UP)
    return float(rounded) + 0.0  # drop negative zero


def _score_player(player: TournamentPlayerStats, weights: RankingWeights) -> dict[str, float | None]:
    if player.games_played == 0:
        return dict.fromkeys(("base", "win_bonus", "bust_penalty", "pg_bonus", "final"))
    games = player.games_played
    base = player.sum_weighted_places / games
    win_bonus = -weights.win_bonus_k * (player.wins / games)
    bust_penalty = weights.bust_penalty_k * (player.busts / games)
    pg_bonus = -weights.pg_kicker_k * (player.perfect_games / games)
    final = base + win_bonus + bust_penalty + pg_bonus
    return {
        "base": round3(base),
        "win_bonus": round3(win_bonus),
        "bust_penalty": round3(bust_penalty),
        "pg_bonus": round3(pg_bonus),
        "final": round3(final),
    }


def rank_players(
    players: Iterable[TournamentPlayerStats],
    weights: RankingWeights | None = None,
) -> list[RankedPlayer]:
    """
    Score and sort tournament players.

    Ordered by rounded final score ascending (players without games last),
    then fewer busts, then more wins. Remaining ties keep input order.
    """
    ranking_weights = weights or RankingWeights()
    scored = [(player, _score_player(player, ranking_weights)) for player in players]

    def _sort_key(item: tuple[TournamentPlayerStats, dict[str, float | None]]) -> tuple[bool, float, int, int]:
        player, terms = item
        final = terms["final"]
        return (final is None, final if final is not None else math.inf, player.busts, -player.wins)

    scored.sort(key=_sort_key)
    return [
        RankedPlayer(
            rank=position,
            player_id=player.id,
            name=player.name,
            games_played=player.games_played,
            wins=player.wins,
            busts=player.busts,
            perfect_games=player.perfect_games,
            **terms,
        )
        for position, (player, terms) in enumerate(scored, start=1)
    ]


def eligible_players(
    players: Sequence[TournamentPlayerStats],
    total_games: int,
    min_games_pct: float,
) -> list[TournamentPlayerStats]:
    """
    Keep players who played at least ``min_games_pct`` of the tournament's games.

    Applied by callers before rank_players; the ranker itself never filters.
    """
    required = math.ceil(Decimal(repr(min_games_pct)) * total_games)
    return [p for p in players if p.games_played >= required]
