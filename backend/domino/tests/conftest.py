from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

import pytest

from domino.logic.state import GameRound, GameState, PenaltyLogEntry, PlayerInGame
from domino.persistence.key_value import KeyValueGameRepository, KeyValueTournamentRepository
from domino.service.scoreboard import ScoreboardService
from domino.tournament.models import Tournament, TournamentPlayerStats
from shared.storage import InMemoryKeyValueStore

# ============================================================================
# Test State Builder Helpers
# ============================================================================


def create_player(
    player_id: str = "p0",
    name: str | None = None,
    *,
    current_score: int = 0,
    is_busted: bool = False,
    round_scores: Sequence[int] = (),
) -> PlayerInGame:
    """Create a PlayerInGame with sensible defaults for testing."""
    return PlayerInGame(
        id=player_id,
        name=name if name is not None else f"Player {player_id}",
        current_score=current_score,
        is_busted=is_busted,
        round_scores=tuple(round_scores),
    )


def create_game_state(
    players: Sequence[PlayerInGame] | None = None,
    *,
    game_id: str = "game-test",
    target_score: int = 100,
    rounds: Sequence[GameRound] = (),
    penalty_log: Sequence[PenaltyLogEntry] = (),
    current_round_number: int | None = None,
    is_active: bool = True,
    winner_id: str | None = None,
    tournament_id: str | None = None,
) -> GameState:
    """Create a GameState; defaults to two fresh players "a" and "b"."""
    if players is None:
        players = (create_player("a", "Alice"), create_player("b", "Bob"))
    return GameState(
        id=game_id,
        players=tuple(players),
        target_score=target_score,
        rounds=tuple(rounds),
        penalty_log=tuple(penalty_log),
        current_round_number=current_round_number or len(rounds) + 1,
        is_active=is_active,
        created_at=datetime(2025, 1, 1, tzinfo=UTC),
        winner_id=winner_id,
        tournament_id=tournament_id,
    )


def create_round(round_number: int, scores: Mapping[str, int]) -> GameRound:
    return GameRound(round_number=round_number, scores=dict(scores))


def create_stats(
    player_id: str = "t0",
    name: str | None = None,
    *,
    games_played: int = 0,
    wins: int = 0,
    busts: int = 0,
    perfect_games: int = 0,
    sum_weighted_places: float = 0.0,
) -> TournamentPlayerStats:
    return TournamentPlayerStats(
        id=player_id,
        name=name if name is not None else f"Player {player_id}",
        games_played=games_played,
        wins=wins,
        busts=busts,
        perfect_games=perfect_games,
        sum_weighted_places=sum_weighted_places,
    )


def create_tournament(
    names: Sequence[str] = ("Alice", "Bob", "Carol"),
    *,
    tournament_id: str = "tournament-test",
    **overrides: object,
) -> Tournament:
    players = tuple(create_stats(f"t{i}", name) for i, name in enumerate(names))
    return Tournament(id=tournament_id, name="Friday Night", players=players, **overrides)


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def service(store):
    return ScoreboardService(
        games=KeyValueGameRepository(store),
        tournaments=KeyValueTournamentRepository(store),
    )
