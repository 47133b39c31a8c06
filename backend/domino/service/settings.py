"""Scoreboard configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings

from domino.logic.settings import DEFAULT_TARGET_SCORE, PENALTY_POINTS, GameSettings


class ScoreboardSettings(BaseSettings):
    model_config = {"env_prefix": "DOMINO_"}

    # directory for file-backed records; empty keeps everything in memory
    storage_dir: str = ""
    log_dir: str | None = None
    cors_origins: list[str] = []
    default_target_score: int = Field(default=DEFAULT_TARGET_SCORE, gt=0)
    penalty_points: int = Field(default=PENALTY_POINTS, gt=0)

    def game_settings(self) -> GameSettings:
        return GameSettings(default_target_score=self.default_target_score, penalty_points=self.penalty_points)
