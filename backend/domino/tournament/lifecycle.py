"""
Tournament setup, game linkage and outcome folding.

Tournaments and games reference each other by id only: a game carries its
``tournament_id``, the tournament lists ``game_ids``. Stats change once per
completed linked game, recorded in ``completed_game_ids``.
"""

import math
from collections.abc import Sequence
from uuid import uuid4

import structlog

from domino.logic.enums import ParticipationMode
from domino.logic.exceptions import ValidationError
from domino.logic.game import new_player_id
from domino.logic.settings import (
    DEFAULT_BUST_PENALTY_K,
    DEFAULT_MIN_GAMES_PCT,
    DEFAULT_PG_KICKER_K,
    DEFAULT_TARGET_SCORE,
    DEFAULT_WIN_BONUS_K,
    MAX_PLAYERS,
    MIN_PLAYERS,
)
from domino.logic.state import GameState
from domino.tournament.models import Tournament, TournamentPlayerStats
from domino.tournament.placement import compute_placements

logger = structlog.get_logger()


def new_tournament_id() -> str:
    return f"tournament-{uuid4().hex}"


def create_tournament(  # noqa: PLR0913
    name: str,
    player_names: Sequence[str],
    *,
    target_score: int = DEFAULT_TARGET_SCORE,
    participation_mode: ParticipationMode = ParticipationMode.ROTATE_ON_BUST,
    win_bonus_k: float = DEFAULT_WIN_BONUS_K,
    bust_penalty_k: float = DEFAULT_BUST_PENALTY_K,
    pg_kicker_k: float = DEFAULT_PG_KICKER_K,
    min_games_pct: float = DEFAULT_MIN_GAMES_PCT,
    tournament_id: str | None = None,
) -> Tournament:
    """
    Create a tournament with zeroed stats for every player.

    A tournament may hold more players than fit at one table; the
    participation mode decides who sits in each game.

    Raises:
        ValidationError: On an empty tournament name, fewer than two players,
            an empty or duplicate (case-insensitive) player name, a
            non-positive target, or an eligibility fraction outside [0, 1]

    """
    clean_name = name.strip() if isinstance(name, str) else ""
    if not clean_name:
        raise ValidationError("Tournament name cannot be empty")
    if len(player_names) < MIN_PLAYERS:
        raise ValidationError(f"A tournament needs at least {MIN_PLAYERS} players, got {len(player_names)}")

    names = [n.strip() if isinstance(n, str) else "" for n in player_names]
    if any(not n for n in names):
        raise ValidationError("All players must have a name")
    lowered = [n.lower() for n in names]
    duplicates = sorted({n for n in names if lowered.count(n.lower()) > 1})
    if duplicates:
        raise ValidationError(f"Player names must be unique: {', '.join(duplicates)}")

    if isinstance(target_score, bool) or not isinstance(target_score, int) or target_score <= 0:
        raise ValidationError(f"Target score must be a positive integer, got {target_score!r}")
    if not 0 <= min_games_pct <= 1:
        raise ValidationError(f"Minimum games fraction must be within [0, 1], got {min_games_pct}")
    weights = {"win_bonus_k": win_bonus_k, "bust_penalty_k": bust_penalty_k, "pg_kicker_k": pg_kicker_k}
    non_finite = [key for key, value in weights.items() if not math.isfinite(value)]
    if non_finite:
        raise ValidationError(f"Ranking weights must be finite numbers: {', '.join(non_finite)}")

    tournament = Tournament(
        id=tournament_id or new_tournament_id(),
        name=clean_name,
        players=tuple(TournamentPlayerStats(id=new_player_id(), name=n) for n in names),
        target_score=target_score,
        player_participation_mode=participation_mode,
        win_bonus_k=win_bonus_k,
        bust_penalty_k=bust_penalty_k,
        pg_kicker_k=pg_kicker_k,
        min_games_pct=min_games_pct,
    )
    logger.info("tournament created", tournament_id=tournament.id, players=names, mode=participation_mode)
    return tournament


def next_game_roster(
    tournament: Tournament,
    previous_game: GameState | None = None,
    max_players: int = MAX_PLAYERS,
) -> list[str]:
    """
    Names of the players seated in the tournament's next game.

    ``fixed_roster`` always seats the first ``max_players`` players.
    ``rotate_on_bust`` keeps the players who did not bust in the previous
    game, sends busted players to the back of the queue, and fills the free
    seats from the waiting players in roster order.
    """
    roster = [p.name for p in tournament.players]
    seats = min(len(roster), max_players)
    if tournament.player_participation_mode == ParticipationMode.FIXED_ROSTER or previous_game is None:
        return roster[:seats]

    played = {p.name.lower(): p for p in previous_game.players}
    survivors = [n for n in roster if n.lower() in played and not played[n.lower()].is_busted]
    waiting = [n for n in roster if n.lower() not in played]
    busted = [n for n in roster if n.lower() in played and played[n.lower()].is_busted]
    return (survivors + waiting + busted)[:seats]


def link_game(tournament: Tournament, game_id: str) -> Tournament:
    """Register a newly started game with the tournament."""
    if game_id in tournament.game_ids:
        return tournament
    return tournament.model_copy(update={"game_ids": (*tournament.game_ids, game_id)})


def record_game_outcome(tournament: Tournament, game_state: GameState) -> Tournament:
    """
    Fold a completed game's results into the tournament players' stats.

    Game players are matched to tournament players by name. Each matched
    player gets one more game played, the game's weighted place added to
    their running sum, and win / bust / perfect-game counters as earned.
    Active games, games from another tournament and games already folded
    leave the tournament unchanged.
    """
    if game_state.is_active or game_state.tournament_id != tournament.id:
        return tournament
    if game_state.id in tournament.completed_game_ids:
        logger.warning("game outcome already recorded", tournament_id=tournament.id, game_id=game_state.id)
        return tournament

    placements = {p.player_name.lower(): p for p in compute_placements(game_state)}
    players = []
    for stats in tournament.players:
        placement = placements.get(stats.name.lower())
        if placement is None:
            players.append(stats)
            continue
        players.append(
            stats.model_copy(
                update={
                    "games_played": stats.games_played + 1,
                    "wins": stats.wins + int(placement.is_winner),
                    "busts": stats.busts + int(placement.is_busted),
                    "perfect_games": stats.perfect_games + int(placement.is_perfect_game),
                    "sum_weighted_places": stats.sum_weighted_places + placement.weighted_place,
                },
            ),
        )

    unmatched = set(placements) - {p.name.lower() for p in tournament.players}
    if unmatched:
        logger.warning("game players missing from tournament roster", game_id=game_state.id, names=sorted(unmatched))

    logger.info("tournament game recorded", tournament_id=tournament.id, game_id=game_state.id)
    return link_game(tournament, game_state.id).model_copy(
        update={
            "players": tuple(players),
            "completed_game_ids": (*tournament.completed_game_ids, game_state.id),
        },
    )
