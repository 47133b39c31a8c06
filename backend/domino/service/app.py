"""Service factory: settings -> logging -> storage -> ScoreboardService."""

import structlog

from domino.persistence.key_value import KeyValueGameRepository, KeyValueTournamentRepository
from domino.service.scoreboard import ScoreboardService
from domino.service.settings import ScoreboardSettings
from shared.logging import setup_logging
from shared.storage import InMemoryKeyValueStore, KeyValueStore, LocalKeyValueStore

logger = structlog.get_logger()


def create_service(
    settings: ScoreboardSettings | None = None,
    store: KeyValueStore | None = None,
    *,
    configure_logging: bool = True,
) -> ScoreboardService:
    """
    Build a ScoreboardService from settings.

    An explicit ``store`` wins over ``settings.storage_dir``; with neither,
    records are kept in memory.
    """
    settings = settings or ScoreboardSettings()
    if configure_logging:
        setup_logging(log_dir=settings.log_dir)

    if store is None:
        store = LocalKeyValueStore(settings.storage_dir) if settings.storage_dir else InMemoryKeyValueStore()

    service = ScoreboardService(
        games=KeyValueGameRepository(store),
        tournaments=KeyValueTournamentRepository(store),
        settings=settings.game_settings(),
    )
    logger.info("scoreboard service ready", storage_dir=settings.storage_dir or None)
    return service
