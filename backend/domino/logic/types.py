"""
Result types shared by the game operations and the service layer.
"""

from typing import NamedTuple

from domino.logic.enums import BlockReason
from domino.logic.state import GameState


class BlockedAction(NamedTuple):
    """A valid request that a game rule refuses right now. State stays unchanged."""

    reason: BlockReason
    message: str


class ActionResult(NamedTuple):
    """
    Result of a mutating game operation.

    When ``blocked`` is set, ``game_state`` is the unchanged input state.
    Otherwise it is the new state the caller should store.
    """

    game_state: GameState
    blocked: BlockedAction | None = None

    @property
    def applied(self) -> bool:
        return self.blocked is None


def blocked(game_state: GameState, reason: BlockReason, message: str) -> ActionResult:
    return ActionResult(game_state=game_state, blocked=BlockedAction(reason=reason, message=message))
