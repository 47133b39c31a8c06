"""Abstract interfaces for game and tournament persistence."""

from abc import ABC, abstractmethod

from domino.logic.state import GameState
from domino.tournament.models import Tournament


class GameRepository(ABC):
    """Abstract interface for game record persistence."""

    @abstractmethod
    def save_game(self, game: GameState) -> None: ...

    @abstractmethod
    def get_game(self, game_id: str) -> GameState | None: ...

    @abstractmethod
    def delete_game(self, game_id: str) -> None: ...

    @abstractmethod
    def list_game_ids(self) -> list[str]: ...


class TournamentRepository(ABC):
    """Abstract interface for tournament record persistence."""

    @abstractmethod
    def save_tournament(self, tournament: Tournament) -> None: ...

    @abstractmethod
    def get_tournament(self, tournament_id: str) -> Tournament | None: ...

    @abstractmethod
    def delete_tournament(self, tournament_id: str) -> None: ...

    @abstractmethod
    def list_tournament_ids(self) -> list[str]: ...
