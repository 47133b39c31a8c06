"""Persistence layer: repository interfaces and key-value backed implementations."""

from domino.persistence.key_value import KeyValueGameRepository, KeyValueTournamentRepository
from domino.persistence.repository import GameRepository, TournamentRepository

__all__ = [
    "GameRepository",
    "KeyValueGameRepository",
    "KeyValueTournamentRepository",
    "TournamentRepository",
]
