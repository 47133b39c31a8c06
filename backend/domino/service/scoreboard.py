"""
Scoreboard service: the entry point a UI layer calls.

Each operation follows read -> compute -> write: load the record, run the
pure engine function, store the whole new record. There is one logical
writer at a time; concurrent writers to the same record are last-write-wins.
"""

from collections.abc import Mapping, Sequence

import structlog

from domino.analysis.collusion import CollusionDetector, CollusionReport, analyzable_games, export_game_records
from domino.logic.enums import GameListFilter, ParticipationMode
from domino.logic.exceptions import NotFoundError, ValidationError
from domino.logic.game import apply_penalty, edit_round_score, start_game, submit_round_scores
from domino.logic.ledger import RoundLedger, build_round_ledger
from domino.logic.settings import (
    DEFAULT_BUST_PENALTY_K,
    DEFAULT_MIN_GAMES_PCT,
    DEFAULT_PG_KICKER_K,
    DEFAULT_WIN_BONUS_K,
    STANDARD_PENALTY_REASON,
    GameSettings,
)
from domino.logic.state import AIGameRecord, GameState
from domino.logic.stats import PlayerLifetimeStats, aggregate_player_stats
from domino.logic.types import ActionResult
from domino.persistence.repository import GameRepository, TournamentRepository
from domino.tournament.lifecycle import create_tournament, link_game, next_game_roster, record_game_outcome
from domino.tournament.models import Tournament
from domino.tournament.ranking import RankedPlayer, RankingWeights, eligible_players, rank_players

logger = structlog.get_logger()


class ScoreboardService:
    """
    Game and tournament operations over injected repositories.

    Read operations return None for absent records; mutating operations on
    an absent record raise NotFoundError.
    """

    def __init__(
        self,
        games: GameRepository,
        tournaments: TournamentRepository,
        settings: GameSettings | None = None,
    ) -> None:
        self._games = games
        self._tournaments = tournaments
        self._settings = settings or GameSettings()

    @property
    def settings(self) -> GameSettings:
        return self._settings

    # --- games ---

    def _require_game(self, game_id: str) -> GameState:
        game = self._games.get_game(game_id)
        if game is None:
            raise NotFoundError(kind="game", record_id=game_id)
        return game

    def _require_tournament(self, tournament_id: str) -> Tournament:
        tournament = self._tournaments.get_tournament(tournament_id)
        if tournament is None:
            raise NotFoundError(kind="tournament", record_id=tournament_id)
        return tournament

    def start_game(
        self,
        player_names: Sequence[str] | None = None,
        target_score: int | None = None,
        *,
        tournament_id: str | None = None,
    ) -> GameState:
        """
        Start and store a new game.

        For a tournament game the roster and target come from the tournament
        (explicit names and target are ignored) and the game is linked to it.
        """
        if tournament_id is None:
            if player_names is None:
                raise ValidationError("Player names are required for a standalone game")
            game = start_game(player_names, target_score, settings=self._settings)
            self._games.save_game(game)
            return game

        tournament = self._require_tournament(tournament_id)
        if not tournament.is_active:
            raise ValidationError(f"Tournament '{tournament.name}' is no longer active")
        previous = self._latest_tournament_game(tournament)
        roster = next_game_roster(tournament, previous, self._settings.max_players)
        game = start_game(
            roster,
            tournament.target_score,
            settings=self._settings,
            tournament_id=tournament.id,
            game_number_in_tournament=len(tournament.game_ids) + 1,
        )
        self._games.save_game(game)
        self._tournaments.save_tournament(link_game(tournament, game.id))
        return game

    def _latest_tournament_game(self, tournament: Tournament) -> GameState | None:
        for game_id in reversed(tournament.game_ids):
            game = self._games.get_game(game_id)
            if game is not None:
                return game
        return None

    def _store_result(self, result: ActionResult) -> ActionResult:
        if not result.applied:
            return result
        game = result.game_state
        self._games.save_game(game)
        if not game.is_active and game.tournament_id is not None:
            self._fold_into_tournament(game)
        return result

    def _fold_into_tournament(self, game: GameState) -> None:
        tournament = self._tournaments.get_tournament(game.tournament_id or "")
        if tournament is None:
            logger.warning("completed game references missing tournament", tournament_id=game.tournament_id)
            return
        self._tournaments.save_tournament(record_game_outcome(tournament, game))

    def submit_round_scores(self, game_id: str, scores: Mapping[str, object]) -> ActionResult:
        with structlog.contextvars.bound_contextvars(game_id=game_id):
            return self._store_result(submit_round_scores(self._require_game(game_id), scores))

    def apply_penalty(
        self,
        game_id: str,
        player_id: str,
        reason: str = STANDARD_PENALTY_REASON,
    ) -> ActionResult:
        with structlog.contextvars.bound_contextvars(game_id=game_id):
            game = self._require_game(game_id)
            return self._store_result(apply_penalty(game, player_id, reason=reason, settings=self._settings))

    def edit_round_score(self, game_id: str, round_number: int, player_id: str, new_score: object) -> ActionResult:
        with structlog.contextvars.bound_contextvars(game_id=game_id):
            game = self._require_game(game_id)
            return self._store_result(edit_round_score(game, round_number, player_id, new_score))

    def get_game(self, game_id: str) -> GameState | None:
        return self._games.get_game(game_id)

    def list_games(self, which: GameListFilter = GameListFilter.ALL) -> list[GameState]:
        """Stored games in index order; completed games come newest first."""
        games = [g for g in (self._games.get_game(i) for i in self._games.list_game_ids()) if g is not None]
        if which == GameListFilter.ACTIVE:
            return [g for g in games if g.is_active]
        if which == GameListFilter.COMPLETED:
            return sorted((g for g in games if not g.is_active), key=lambda g: g.created_at, reverse=True)
        return games

    def remove_game(self, game_id: str) -> None:
        self._games.delete_game(game_id)
        logger.info("game removed", game_id=game_id)

    def get_round_ledger(self, game_id: str) -> RoundLedger | None:
        game = self._games.get_game(game_id)
        return build_round_ledger(game) if game is not None else None

    def all_time_stats(self) -> list[PlayerLifetimeStats]:
        return aggregate_player_stats(self.list_games())

    # --- tournaments ---

    def create_tournament(  # noqa: PLR0913
        self,
        name: str,
        player_names: Sequence[str],
        *,
        target_score: int | None = None,
        participation_mode: ParticipationMode = ParticipationMode.ROTATE_ON_BUST,
        win_bonus_k: float = DEFAULT_WIN_BONUS_K,
        bust_penalty_k: float = DEFAULT_BUST_PENALTY_K,
        pg_kicker_k: float = DEFAULT_PG_KICKER_K,
        min_games_pct: float = DEFAULT_MIN_GAMES_PCT,
    ) -> Tournament:
        tournament = create_tournament(
            name,
            player_names,
            target_score=self._settings.default_target_score if target_score is None else target_score,
            participation_mode=participation_mode,
            win_bonus_k=win_bonus_k,
            bust_penalty_k=bust_penalty_k,
            pg_kicker_k=pg_kicker_k,
            min_games_pct=min_games_pct,
        )
        self._tournaments.save_tournament(tournament)
        return tournament

    def get_tournament(self, tournament_id: str) -> Tournament | None:
        return self._tournaments.get_tournament(tournament_id)

    def list_tournaments(self) -> list[Tournament]:
        ids = self._tournaments.list_tournament_ids()
        return [t for t in (self._tournaments.get_tournament(i) for i in ids) if t is not None]

    def remove_tournament(self, tournament_id: str) -> None:
        self._tournaments.delete_tournament(tournament_id)
        logger.info("tournament removed", tournament_id=tournament_id)

    def get_leaderboard(self, tournament_id: str) -> list[RankedPlayer] | None:
        """Ranked eligible players of a tournament, or None if it does not exist."""
        tournament = self._tournaments.get_tournament(tournament_id)
        if tournament is None:
            return None
        players = eligible_players(tournament.players, len(tournament.completed_game_ids), tournament.min_games_pct)
        return rank_players(players, RankingWeights.from_tournament(tournament))

    def finish_tournament(self, tournament_id: str) -> Tournament:
        """Close the tournament; the leaderboard leader becomes its winner."""
        tournament = self._require_tournament(tournament_id)
        if not tournament.is_active:
            return tournament
        leaderboard = self.get_leaderboard(tournament_id) or []
        leader = leaderboard[0] if leaderboard and leaderboard[0].final is not None else None
        finished = tournament.model_copy(
            update={"is_active": False, "winner_id": leader.player_id if leader is not None else None},
        )
        self._tournaments.save_tournament(finished)
        logger.info("tournament finished", tournament_id=tournament_id, winner_id=finished.winner_id)
        return finished

    # --- analysis ---

    def get_ai_game_records(self, game_id: str) -> tuple[AIGameRecord, ...] | None:
        game = self._games.get_game(game_id)
        return export_game_records(game) if game is not None else None

    def list_analyzable_games(self) -> list[GameState]:
        """Completed games with score rows, ready to hand to a detector."""
        return analyzable_games(self.list_games())

    def analyze_game(self, game_id: str, detector: CollusionDetector) -> CollusionReport:
        """Hand a game's score rows to an external detector and return its verdict as-is."""
        game = self._require_game(game_id)
        report = detector.detect(export_game_records(game))
        logger.info("collusion analysis finished", game_id=game_id, collusion_detected=report.collusion_detected)
        return report
