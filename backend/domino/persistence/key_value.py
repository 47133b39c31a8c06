"""Key-value backed repositories for games and tournaments.

Each record is one JSON document under ``<prefix><id>``; a separate index
key holds the ordered list of ids so listing never scans the whole store.
Missing, unreadable or invalid records are treated as absent.
"""

import json
from typing import cast

import structlog
from pydantic import BaseModel

from domino.logic.state import GameState
from domino.persistence.repository import GameRepository, TournamentRepository
from domino.tournament.models import Tournament
from shared.storage import KeyValueStore

logger = structlog.get_logger()

GAME_STATE_PREFIX = "frenchDomino_gameState_"
ACTIVE_GAMES_LIST = "frenchDomino_activeGamesList"
TOURNAMENT_STATE_PREFIX = "frenchDomino_tournamentState_"
ACTIVE_TOURNAMENTS_LIST = "frenchDomino_activeTournamentsList"


class _RecordCollection:
    """Records of one model type stored under a key prefix, plus their id index."""

    def __init__(self, store: KeyValueStore, *, model: type[BaseModel], prefix: str, index_key: str) -> None:
        self._store = store
        self._model = model
        self._prefix = prefix
        self._index_key = index_key

    def load(self, record_id: str) -> BaseModel | None:
        raw = self._store.get(f"{self._prefix}{record_id}")
        if raw is None:
            return None
        try:
            return self._model.model_validate_json(raw)
        except ValueError as exc:
            logger.warning(
                "unreadable record treated as absent",
                record_type=self._model.__name__,
                record_id=record_id,
                error=str(exc),
            )
            return None

    def save(self, record_id: str, record: BaseModel) -> None:
        payload = record.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        self._store.set(f"{self._prefix}{record_id}", payload)
        ids = self.ids()
        if record_id not in ids:
            self._write_index([*ids, record_id])

    def delete(self, record_id: str) -> None:
        self._store.delete(f"{self._prefix}{record_id}")
        ids = self.ids()
        if record_id in ids:
            self._write_index([i for i in ids if i != record_id])

    def ids(self) -> list[str]:
        """Ordered ids from the index; rebuilt from a prefix scan when the index is damaged."""
        raw = self._store.get(self._index_key)
        if raw is None:
            return []
        try:
            ids = json.loads(raw)
        except ValueError:
            ids = None
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            logger.warning("unreadable index rebuilt from store", index_key=self._index_key)
            return [key.removeprefix(self._prefix) for key in self._store.list(self._prefix)]
        return ids

    def _write_index(self, ids: list[str]) -> None:
        self._store.set(self._index_key, json.dumps(ids).encode("utf-8"))


class KeyValueGameRepository(GameRepository):
    def __init__(self, store: KeyValueStore) -> None:
        self._records = _RecordCollection(
            store,
            model=GameState,
            prefix=GAME_STATE_PREFIX,
            index_key=ACTIVE_GAMES_LIST,
        )

    def save_game(self, game: GameState) -> None:
        self._records.save(game.id, game)

    def get_game(self, game_id: str) -> GameState | None:
        return cast("GameState | None", self._records.load(game_id))

    def delete_game(self, game_id: str) -> None:
        self._records.delete(game_id)

    def list_game_ids(self) -> list[str]:
        return self._records.ids()


class KeyValueTournamentRepository(TournamentRepository):
    def __init__(self, store: KeyValueStore) -> None:
        self._records = _RecordCollection(
            store,
            model=Tournament,
            prefix=TOURNAMENT_STATE_PREFIX,
            index_key=ACTIVE_TOURNAMENTS_LIST,
        )

    def save_tournament(self, tournament: Tournament) -> None:
        self._records.save(tournament.id, tournament)

    def get_tournament(self, tournament_id: str) -> Tournament | None:
        return cast("Tournament | None", self._records.load(tournament_id))

    def delete_tournament(self, tournament_id: str) -> None:
        self._records.delete(tournament_id)

    def list_tournament_ids(self) -> list[str]:
        return self._records.ids()
