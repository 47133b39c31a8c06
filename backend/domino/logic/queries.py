"""
Derived, read-only views over a game: highlights and rule checks for display.
"""

from domino.logic.settings import GameSettings
from domino.logic.state import GameState, PlayerInGame

_DEFAULT_SETTINGS = GameSettings()


def get_shuffle_player(game_state: GameState) -> PlayerInGame | None:
    """Player holding the strictly highest score in an active game, or None when the top score is shared."""
    if not game_state.is_active or not game_state.players:
        return None
    top = max(p.current_score for p in game_state.players)
    leaders = [p for p in game_state.players if p.current_score == top]
    return leaders[0] if len(leaders) == 1 else None


def get_nearing_bust_players(
    game_state: GameState,
    settings: GameSettings | None = None,
) -> tuple[PlayerInGame, ...]:
    """Players still in whose score is within the margin below the target."""
    margin = (settings or _DEFAULT_SETTINGS).nearing_bust_margin
    threshold = game_state.target_score - margin
    return tuple(p for p in game_state.active_players if threshold <= p.current_score < game_state.target_score)


def get_winner(game_state: GameState) -> PlayerInGame | None:
    if game_state.winner_id is None:
        return None
    return game_state.get_player(game_state.winner_id)


def get_perfect_game_candidates(game_state: GameState) -> tuple[PlayerInGame, ...]:
    """Players still at zero once at least one round is in. Only meaningful while the game runs."""
    if not game_state.is_active or not game_state.rounds:
        return ()
    return tuple(p for p in game_state.active_players if p.current_score == 0)


def is_perfect_game(game_state: GameState) -> bool:
    """A completed game won with a final score of exactly zero."""
    winner = get_winner(game_state)
    return not game_state.is_active and winner is not None and winner.current_score == 0


def can_apply_penalty(
    game_state: GameState,
    player_id: str,
    settings: GameSettings | None = None,
) -> bool:
    """Whether apply_penalty would currently be accepted for this player."""
    player = game_state.get_player(player_id)
    if player is None or player.is_busted or not game_state.is_active:
        return False
    points = (settings or _DEFAULT_SETTINGS).penalty_points
    return player.current_score + points < game_state.target_score
