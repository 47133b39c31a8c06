"""Typed domain exceptions for the scoreboard engine.

Malformed input raises ValidationError before any new state is built.
Policy refusals (a penalty that would bust, scores for a finished game)
are not exceptions: they come back as a BlockedAction inside ActionResult.
"""


class ScoreboardError(Exception):
    """Base exception for scoreboard failures. Always recoverable by the caller."""


class ValidationError(ScoreboardError):
    """Input to a mutating operation is malformed (bad score, bad name, bad player count)."""


class NotFoundError(ScoreboardError):
    """A referenced game or tournament has no readable record in storage.

    Attributes:
        kind: Record kind ("game" or "tournament").
        record_id: The id that could not be resolved.

    """

    def __init__(self, *, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}' not found")
