"""
String enum definitions for scoreboard concepts.
"""

from enum import StrEnum


class BlockReason(StrEnum):
    """Policy rules that can block a structurally valid action."""

    GAME_COMPLETED = "game_completed"
    PLAYER_BUSTED = "player_busted"
    WOULD_BUST = "would_bust"
    HISTORY_CONFLICT = "history_conflict"


class ParticipationMode(StrEnum):
    """How a tournament seats its players from one game to the next."""

    FIXED_ROSTER = "fixed_roster"
    ROTATE_ON_BUST = "rotate_on_bust"


class GameListFilter(StrEnum):
    """Which stored games a listing should return."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
