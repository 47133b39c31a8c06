"""All-time player statistics aggregated across every stored game."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from domino.logic.state import GameState


class PlayerLifetimeStats(BaseModel):
    """Career totals for one player name. Rates are None until the player has played."""

    model_config = ConfigDict(frozen=True)

    name: str
    games_played: int
    wins: int
    busts: int
    perfect_games: int
    highest_score: int
    points_from_rounds: int
    rounds_played: int
    win_rate: float | None
    bust_rate: float | None
    average_score_per_game: float | None
    average_score_per_round: float | None


def _ratio(numerator: int, denominator: int) -> float | None:
    return numerator / denominator if denominator else None


def aggregate_player_stats(games: Iterable[GameState]) -> list[PlayerLifetimeStats]:
    """
    Fold every game into per-name totals.

    Players are keyed by name because player ids are minted per game.
    Points count only round scores (penalties excluded); the highest score
    is the largest final total seen. Result is sorted by wins (desc),
    busts (asc), then games played (desc).
    """
    totals: dict[str, dict[str, int]] = {}
    for game in games:
        for player in game.players:
            entry = totals.setdefault(
                player.name,
                {
                    "games_played": 0,
                    "wins": 0,
                    "busts": 0,
                    "perfect_games": 0,
                    "highest_score": 0,
                    "points_from_rounds": 0,
                    "rounds_played": 0,
                },
            )
            entry["games_played"] += 1
            entry["highest_score"] = max(entry["highest_score"], player.current_score)
            if game.winner_id == player.id:
                entry["wins"] += 1
                if player.current_score == 0:
                    entry["perfect_games"] += 1
            if player.is_busted:
                entry["busts"] += 1
            entry["points_from_rounds"] += sum(player.round_scores)
            entry["rounds_played"] += len(player.round_scores)

    stats = [
        PlayerLifetimeStats(
            name=name,
            **entry,
            win_rate=_ratio(entry["wins"], entry["games_played"]),
            bust_rate=_ratio(entry["busts"], entry["games_played"]),
            average_score_per_game=_ratio(entry["points_from_rounds"], entry["games_played"]),
            average_score_per_round=_ratio(entry["points_from_rounds"], entry["rounds_played"]),
        )
        for name, entry in totals.items()
    ]
    stats.sort(key=lambda s: (-s.wins, s.busts, -s.games_played))
    return stats
