"""
Final placements of a completed game, as consumed by tournament scoring.
"""

from pydantic import BaseModel, ConfigDict

from domino.logic.settings import MAX_PLAYERS
from domino.logic.state import GameState, PlayerInGame


class GamePlacement(BaseModel):
    """Where one player finished and what that means for tournament stats."""

    model_config = ConfigDict(frozen=True)

    player_id: str
    player_name: str
    place: float  # 1 = winner; tied players share the average of their places
    weighted_place: float
    is_winner: bool
    is_busted: bool
    is_perfect_game: bool


def weight_place(place: float, num_players: int, scale: int = MAX_PLAYERS) -> float:
    """
    Rescale a place onto the 1..scale range so games of any size compare.

    First place is always 1.0 and last place is always ``scale``.
    """
    if num_players <= 1:
        return 1.0
    return 1 + (place - 1) * (scale - 1) / (num_players - 1)


def _standing_key(game_state: GameState, player: PlayerInGame) -> tuple[int, int, int, int]:
    # winner first, then survivors, then later busts, then lower totals
    is_winner = player.id == game_state.winner_id
    return (
        0 if is_winner else 1,
        1 if player.is_busted else 0,
        -len(player.round_scores),
        player.current_score,
    )


def compute_placements(game_state: GameState) -> tuple[GamePlacement, ...]:
    """
    Order the players of a game by final standing.

    The winner places first. Everyone else is ordered by how long they
    lasted (players busting in a later round rank higher), then by lower
    final score. Players tied on both share the average of their places.
    """
    ordered = sorted(game_state.players, key=lambda p: _standing_key(game_state, p))
    num_players = len(ordered)

    places: dict[str, float] = {}
    start = 0
    while start < num_players:
        end = start
        key = _standing_key(game_state, ordered[start])
        while end + 1 < num_players and _standing_key(game_state, ordered[end + 1]) == key:
            end += 1
        shared_place = (start + 1 + end + 1) / 2
        for player in ordered[start : end + 1]:
            places[player.id] = shared_place
        start = end + 1

    return tuple(
        GamePlacement(
            player_id=player.id,
            player_name=player.name,
            place=places[player.id],
            weighted_place=weight_place(places[player.id], num_players),
            is_winner=player.id == game_state.winner_id,
            is_busted=player.is_busted,
            is_perfect_game=player.id == game_state.winner_id and player.current_score == 0,
        )
        for player in ordered
    )
