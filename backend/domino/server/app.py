"""JSON HTTP API over ScoreboardService for the scoreboard UI.

Game and tournament bodies are returned in their persisted camelCase record
shape; derived views (ledger, highlights, leaderboard) use snake_case keys.
Blocked actions answer 409 with the unchanged game, malformed input 422,
absent records 404.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pydantic
import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from domino.logic.enums import GameListFilter
from domino.logic.exceptions import NotFoundError, ValidationError
from domino.logic.queries import (
    can_apply_penalty,
    get_nearing_bust_players,
    get_perfect_game_candidates,
    get_shuffle_player,
    get_winner,
    is_perfect_game,
)
from domino.server.types import (
    CreateTournamentRequest,
    EditScoreRequest,
    PenaltyRequest,
    StartGameRequest,
    SubmitRoundRequest,
)
from domino.service.app import create_service
from domino.service.settings import ScoreboardSettings
from shared.logging import setup_logging

if TYPE_CHECKING:
    from starlette.requests import Request

    from domino.logic.types import ActionResult
    from domino.service.scoreboard import ScoreboardService

logger = structlog.get_logger()

_MAX_REQUEST_BODY_SIZE = 16384


def _service(request: Request) -> ScoreboardService:
    return request.app.state.service


def _not_found(kind: str, record_id: str) -> JSONResponse:
    return JSONResponse({"error": f"{kind} '{record_id}' not found"}, status_code=404)


async def _parse_body(request: Request, model: type[pydantic.BaseModel]) -> Any:  # noqa: ANN401
    """Validated request model, or the error response to send instead."""
    raw_body = await request.body()
    if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
        return JSONResponse({"error": "Request body too large"}, status_code=413)
    try:
        body = json.loads(raw_body) if raw_body.strip() else {}
        return model(**body)
    except (ValueError, TypeError, UnicodeDecodeError, pydantic.ValidationError):  # fmt: skip
        return JSONResponse({"error": "Invalid request body"}, status_code=400)


def _action_response(result: ActionResult) -> JSONResponse:
    if result.blocked is not None:
        return JSONResponse(
            {
                "error": result.blocked.message,
                "reason": result.blocked.reason.value,
                "game": result.game_state.to_record(),
            },
            status_code=409,
        )
    return JSONResponse({"game": result.game_state.to_record()})


async def _validation_error_handler(_request: Request, exc: Exception) -> Response:
    return JSONResponse({"error": str(exc)}, status_code=422)


async def _not_found_handler(_request: Request, exc: Exception) -> Response:
    return JSONResponse({"error": str(exc)}, status_code=404)


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def list_games(request: Request) -> JSONResponse:
    raw_filter = request.query_params.get("filter", GameListFilter.ALL.value)
    try:
        which = GameListFilter(raw_filter)
    except ValueError:
        return JSONResponse({"error": f"Unknown game filter '{raw_filter}'"}, status_code=422)
    games = _service(request).list_games(which)
    return JSONResponse({"games": [game.to_record() for game in games]})


async def start_game(request: Request) -> JSONResponse:
    body = await _parse_body(request, StartGameRequest)
    if isinstance(body, JSONResponse):
        return body
    game = _service(request).start_game(body.player_names, body.target_score, tournament_id=body.tournament_id)
    return JSONResponse({"game": game.to_record()}, status_code=201)


async def get_game(request: Request) -> JSONResponse:
    game_id = request.path_params["game_id"]
    game = _service(request).get_game(game_id)
    if game is None:
        return _not_found("game", game_id)
    return JSONResponse({"game": game.to_record()})


async def remove_game(request: Request) -> Response:
    _service(request).remove_game(request.path_params["game_id"])
    return Response(status_code=204)


async def submit_round(request: Request) -> JSONResponse:
    body = await _parse_body(request, SubmitRoundRequest)
    if isinstance(body, JSONResponse):
        return body
    return _action_response(_service(request).submit_round_scores(request.path_params["game_id"], body.scores))


async def apply_penalty(request: Request) -> JSONResponse:
    body = await _parse_body(request, PenaltyRequest)
    if isinstance(body, JSONResponse):
        return body
    result = _service(request).apply_penalty(request.path_params["game_id"], body.player_id, body.reason)
    return _action_response(result)


async def edit_round_score(request: Request) -> JSONResponse:
    body = await _parse_body(request, EditScoreRequest)
    if isinstance(body, JSONResponse):
        return body
    result = _service(request).edit_round_score(
        request.path_params["game_id"],
        request.path_params["round_number"],
        request.path_params["player_id"],
        body.score,
    )
    return _action_response(result)


async def game_ledger(request: Request) -> JSONResponse:
    game_id = request.path_params["game_id"]
    ledger = _service(request).get_round_ledger(game_id)
    if ledger is None:
        return _not_found("game", game_id)
    return JSONResponse(ledger.model_dump(mode="json"))


async def game_highlights(request: Request) -> JSONResponse:
    service = _service(request)
    game_id = request.path_params["game_id"]
    game = service.get_game(game_id)
    if game is None:
        return _not_found("game", game_id)
    shuffle_player = get_shuffle_player(game)
    winner = get_winner(game)
    return JSONResponse(
        {
            "shuffle_player_id": shuffle_player.id if shuffle_player is not None else None,
            "nearing_bust_player_ids": [p.id for p in get_nearing_bust_players(game, service.settings)],
            "perfect_game_candidate_ids": [p.id for p in get_perfect_game_candidates(game)],
            "winner_id": winner.id if winner is not None else None,
            "is_perfect_game": is_perfect_game(game),
            "penalty_allowed": {p.id: can_apply_penalty(game, p.id, service.settings) for p in game.players},
        },
    )


async def game_ai_records(request: Request) -> JSONResponse:
    game_id = request.path_params["game_id"]
    records = _service(request).get_ai_game_records(game_id)
    if records is None:
        return _not_found("game", game_id)
    return JSONResponse({"aiGameRecords": [record.to_record() for record in records]})


async def analyzable_games(request: Request) -> JSONResponse:
    games = _service(request).list_analyzable_games()
    return JSONResponse(
        {"games": [{"id": game.id, "aiGameRecords": [r.to_record() for r in game.ai_game_records]} for game in games]},
    )


async def all_time_stats(request: Request) -> JSONResponse:
    stats = _service(request).all_time_stats()
    return JSONResponse({"players": [entry.model_dump(mode="json") for entry in stats]})


async def list_tournaments(request: Request) -> JSONResponse:
    tournaments = _service(request).list_tournaments()
    return JSONResponse({"tournaments": [t.to_record() for t in tournaments]})


async def create_tournament(request: Request) -> JSONResponse:
    body = await _parse_body(request, CreateTournamentRequest)
    if isinstance(body, JSONResponse):
        return body
    tournament = _service(request).create_tournament(
        body.name,
        body.player_names,
        target_score=body.target_score,
        participation_mode=body.participation_mode,
        **body.ranking_overrides(),
    )
    return JSONResponse({"tournament": tournament.to_record()}, status_code=201)


async def get_tournament(request: Request) -> JSONResponse:
    tournament_id = request.path_params["tournament_id"]
    tournament = _service(request).get_tournament(tournament_id)
    if tournament is None:
        return _not_found("tournament", tournament_id)
    return JSONResponse({"tournament": tournament.to_record()})


async def remove_tournament(request: Request) -> Response:
    _service(request).remove_tournament(request.path_params["tournament_id"])
    return Response(status_code=204)


async def tournament_leaderboard(request: Request) -> JSONResponse:
    tournament_id = request.path_params["tournament_id"]
    leaderboard = _service(request).get_leaderboard(tournament_id)
    if leaderboard is None:
        return _not_found("tournament", tournament_id)
    return JSONResponse({"leaderboard": [row.model_dump(mode="json") for row in leaderboard]})


async def finish_tournament(request: Request) -> JSONResponse:
    tournament = _service(request).finish_tournament(request.path_params["tournament_id"])
    return JSONResponse({"tournament": tournament.to_record()})


def create_app(
    settings: ScoreboardSettings | None = None,
    service: ScoreboardService | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ScoreboardSettings()
    if service is None:
        service = create_service(settings, configure_logging=False)

    routes = [
        Route("/health", health, methods=["GET"], name="health"),
        Route("/games", list_games, methods=["GET"], name="list_games"),
        Route("/games", start_game, methods=["POST"], name="start_game"),
        Route("/games/{game_id}", get_game, methods=["GET"], name="get_game"),
        Route("/games/{game_id}", remove_game, methods=["DELETE"], name="remove_game"),
        Route("/games/{game_id}/rounds", submit_round, methods=["POST"], name="submit_round"),
        Route(
            "/games/{game_id}/rounds/{round_number:int}/scores/{player_id}",
            edit_round_score,
            methods=["PUT"],
            name="edit_round_score",
        ),
        Route("/games/{game_id}/penalties", apply_penalty, methods=["POST"], name="apply_penalty"),
        Route("/games/{game_id}/ledger", game_ledger, methods=["GET"], name="game_ledger"),
        Route("/games/{game_id}/highlights", game_highlights, methods=["GET"], name="game_highlights"),
        Route("/games/{game_id}/ai-records", game_ai_records, methods=["GET"], name="game_ai_records"),
        Route("/analysis/games", analyzable_games, methods=["GET"], name="analyzable_games"),
        Route("/stats", all_time_stats, methods=["GET"], name="all_time_stats"),
        Route("/tournaments", list_tournaments, methods=["GET"], name="list_tournaments"),
        Route("/tournaments", create_tournament, methods=["POST"], name="create_tournament"),
        Route("/tournaments/{tournament_id}", get_tournament, methods=["GET"], name="get_tournament"),
        Route("/tournaments/{tournament_id}", remove_tournament, methods=["DELETE"], name="remove_tournament"),
        Route(
            "/tournaments/{tournament_id}/leaderboard",
            tournament_leaderboard,
            methods=["GET"],
            name="tournament_leaderboard",
        ),
        Route(
            "/tournaments/{tournament_id}/finish",
            finish_tournament,
            methods=["POST"],
            name="finish_tournament",
        ),
    ]

    app = Starlette(
        routes=routes,
        exception_handlers={
            ValidationError: _validation_error_handler,
            NotFoundError: _not_found_handler,
        },
    )
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.service = service

    logger.info("scoreboard api ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory domino.server.app:get_app."""
    settings = ScoreboardSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings, service=create_service(settings, configure_logging=False))
