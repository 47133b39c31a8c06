"""
Immutable state update utilities using Pydantic model_copy.

These helpers never mutate their input; they return new frozen models
with the requested changes applied.
"""

from domino.logic.state import AIGameRecord, GameState, PlayerInGame

_PLAYER_FIELDS = set(PlayerInGame.model_fields)


def update_player(
    game_state: GameState,
    player_id: str,
    **updates: object,
) -> GameState:
    """
    Return new game state with the given player's fields updated.

    Raises:
        ValueError: If the player is not seated in the game or update fields are invalid

    """
    invalid_fields = set(updates) - _PLAYER_FIELDS
    if invalid_fields:
        raise ValueError(f"Invalid player fields: {invalid_fields}")
    index = next((i for i, p in enumerate(game_state.players) if p.id == player_id), None)
    if index is None:
        raise ValueError(f"Player '{player_id}' is not part of game '{game_state.id}'")
    players = list(game_state.players)
    players[index] = game_state.players[index].model_copy(update=updates)
    return game_state.model_copy(update={"players": tuple(players)})


def build_ai_record(game_state: GameState, round_number: int, scores: dict[str, int]) -> AIGameRecord:
    """Align a round's scores to the seating order. Players without an entry score 0."""
    return AIGameRecord(
        round_number=round_number,
        player_scores=tuple(scores.get(player_id, 0) for player_id in game_state.player_order),
    )


def resolve_game_end(game_state: GameState) -> GameState:
    """
    Close the game when at most one player is left standing.

    The sole survivor becomes the winner; a simultaneous bust of everyone
    leaves ``winner_id`` unset. A single-seat game never closes here.
    """
    if not game_state.is_active or len(game_state.players) <= 1:
        return game_state
    survivors = game_state.active_players
    if len(survivors) > 1:
        return game_state
    winner_id = survivors[0].id if survivors else None
    return game_state.model_copy(update={"is_active": False, "winner_id": winner_id})
