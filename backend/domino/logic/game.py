"""
Game lifecycle for French Domino: start, round submission, penalties, score edits.

Every operation takes a GameState and returns a new one (wrapped in an
ActionResult for mutations), so the caller decides when to persist.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime
from uuid import uuid4

import structlog

from domino.logic.enums import BlockReason
from domino.logic.exceptions import ValidationError
from domino.logic.settings import STANDARD_PENALTY_REASON, GameSettings
from domino.logic.state import GameRound, GameState, PenaltyLogEntry, PlayerInGame
from domino.logic.state_utils import build_ai_record, resolve_game_end, update_player
from domino.logic.types import ActionResult, blocked

logger = structlog.get_logger()

_DEFAULT_SETTINGS = GameSettings()


def new_game_id() -> str:
    return f"game-{uuid4().hex}"


def new_player_id() -> str:
    return f"player-{uuid4().hex}"


def _is_valid_score(value: object) -> bool:
    # bool is an int subclass but never a score
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _clean_player_names(player_names: Sequence[str], settings: GameSettings) -> list[str]:
    if not (settings.min_players <= len(player_names) <= settings.max_players):
        raise ValidationError(
            f"A game needs {settings.min_players}-{settings.max_players} players, got {len(player_names)}",
        )
    names = [name.strip() if isinstance(name, str) else "" for name in player_names]
    if any(not name for name in names):
        raise ValidationError("All players must have a name")
    return names


def start_game(
    player_names: Sequence[str],
    target_score: int | None = None,
    *,
    settings: GameSettings | None = None,
    game_id: str | None = None,
    tournament_id: str | None = None,
    game_number_in_tournament: int | None = None,
    created_at: datetime | None = None,
) -> GameState:
    """
    Create a new active game with every player at zero.

    Names are trimmed; seating order follows ``player_names``. The target
    falls back to the settings default when not given.

    Raises:
        ValidationError: On an empty name, a player count outside the allowed
            range, or a non-positive target score

    """
    game_settings = settings or _DEFAULT_SETTINGS
    names = _clean_player_names(player_names, game_settings)

    target = game_settings.default_target_score if target_score is None else target_score
    if not _is_valid_score(target) or target == 0:
        raise ValidationError(f"Target score must be a positive integer, got {target_score!r}")

    players = tuple(PlayerInGame(id=new_player_id(), name=name) for name in names)
    optional: dict[str, object] = {}
    if created_at is not None:
        optional["created_at"] = created_at
    game_state = GameState(
        id=game_id or new_game_id(),
        players=players,
        target_score=target,
        player_order=tuple(p.id for p in players),
        tournament_id=tournament_id,
        game_number_in_tournament=game_number_in_tournament,
        **optional,
    )
    logger.info(
        "game started",
        game_id=game_state.id,
        players=[p.name for p in players],
        target_score=target,
        tournament_id=tournament_id,
    )
    return game_state


def _validate_round_scores(game_state: GameState, scores: Mapping[str, object]) -> dict[str, int]:
    known = {p.id: p for p in game_state.players}
    unknown = [player_id for player_id in scores if player_id not in known]
    if unknown:
        raise ValidationError(f"Unknown player ids: {', '.join(sorted(unknown))}")

    busted = [known[player_id].name for player_id in scores if known[player_id].is_busted]
    if busted:
        raise ValidationError(f"Busted players take no further scores: {', '.join(busted)}")

    missing = [p.name for p in game_state.active_players if p.id not in scores]
    if missing:
        raise ValidationError(f"Missing scores for: {', '.join(missing)}")

    invalid = [known[player_id].name for player_id, value in scores.items() if not _is_valid_score(value)]
    if invalid:
        raise ValidationError(f"Scores must be non-negative integers: {', '.join(invalid)}")

    return {player_id: int(value) for player_id, value in scores.items()}  # type: ignore[call-overload]


def submit_round_scores(game_state: GameState, scores: Mapping[str, object]) -> ActionResult:
    """
    Add one round of scores for every player still in the game.

    Each active player's score is added to their total and appended to their
    round history; reaching the target busts them. The round and its
    seating-aligned analysis row are recorded, the round counter advances,
    and the game closes when at most one player remains.

    Raises:
        ValidationError: If a required score is missing, negative or not an integer,
            or scores are given for unknown or busted players

    """
    if not game_state.is_active:
        return blocked(game_state, BlockReason.GAME_COMPLETED, "Game is already completed")

    round_scores = _validate_round_scores(game_state, scores)
    round_number = game_state.current_round_number

    players = []
    newly_busted = []
    for player in game_state.players:
        if player.is_busted:
            players.append(player)
            continue
        score = round_scores[player.id]
        total = player.current_score + score
        is_busted = total >= game_state.target_score
        if is_busted:
            newly_busted.append(player.id)
        players.append(
            player.model_copy(
                update={
                    "current_score": total,
                    "is_busted": is_busted,
                    "round_scores": (*player.round_scores, score),
                },
            ),
        )

    new_state = game_state.model_copy(
        update={
            "players": tuple(players),
            "rounds": (*game_state.rounds, GameRound(round_number=round_number, scores=round_scores)),
            "ai_game_records": (
                *game_state.ai_game_records,
                build_ai_record(game_state, round_number, round_scores),
            ),
            "current_round_number": round_number + 1,
        },
    )
    new_state = resolve_game_end(new_state)

    logger.info("round submitted", game_id=game_state.id, round_number=round_number, scores=round_scores)
    for player_id in newly_busted:
        logger.info("player busted", game_id=game_state.id, player_id=player_id, round_number=round_number)
    if not new_state.is_active:
        logger.info("game completed", game_id=game_state.id, winner_id=new_state.winner_id)
    return ActionResult(game_state=new_state)


def apply_penalty(
    game_state: GameState,
    player_id: str,
    *,
    reason: str = STANDARD_PENALTY_REASON,
    settings: GameSettings | None = None,
) -> ActionResult:
    """
    Add the fixed penalty to one player's score.

    Blocked when the game is over, the player is busted, or the penalty
    would take the player to the target: a penalty never busts anyone.
    The entry is logged against the current round number, which does not
    advance, and the player's round history is untouched.

    Raises:
        ValidationError: If the player is not seated in this game

    """
    points = (settings or _DEFAULT_SETTINGS).penalty_points
    player = game_state.get_player(player_id)
    if player is None:
        raise ValidationError(f"Player '{player_id}' is not part of game '{game_state.id}'")

    if not game_state.is_active:
        return blocked(game_state, BlockReason.GAME_COMPLETED, "Game is already completed")
    if player.is_busted:
        return blocked(game_state, BlockReason.PLAYER_BUSTED, f"{player.name} is already busted")
    if player.current_score + points >= game_state.target_score:
        logger.info("penalty blocked", game_id=game_state.id, player_id=player_id, reason=BlockReason.WOULD_BUST)
        return blocked(
            game_state,
            BlockReason.WOULD_BUST,
            f"A {points} point penalty would bust {player.name}",
        )

    new_state = update_player(game_state, player_id, current_score=player.current_score + points)
    entry = PenaltyLogEntry(
        player_id=player_id,
        round_number=game_state.current_round_number,
        points=points,
        reason=reason,
    )
    new_state = new_state.model_copy(update={"penalty_log": (*game_state.penalty_log, entry)})
    logger.info(
        "penalty applied",
        game_id=game_state.id,
        player_id=player_id,
        points=points,
        round_number=entry.round_number,
    )
    return ActionResult(game_state=new_state)


def _replay_player(game_state: GameState, player_id: str) -> tuple[PlayerInGame, bool]:
    """
    Re-derive one player's totals from ``rounds`` and ``penalty_log``.

    Returns the rebuilt player and whether their history is consistent:
    no bust before their last recorded round, no bust through a penalty,
    and a player who is still in must have a score in every round.
    Penalties keyed to round N happened before round N was submitted.
    """
    player = game_state.get_player(player_id)
    if player is None:
        raise ValueError(f"Player '{player_id}' is not part of game '{game_state.id}'")

    target = game_state.target_score
    own_rounds = [r for r in game_state.rounds if player_id in r.scores]
    last_round_number = own_rounds[-1].round_number if own_rounds else None
    penalties: dict[int, int] = {}
    for entry in game_state.penalty_log:
        if entry.player_id == player_id:
            penalties[entry.round_number] = penalties.get(entry.round_number, 0) + entry.points

    periods = sorted({r.round_number for r in own_rounds} | set(penalties))
    scores_by_round = {r.round_number: r.scores[player_id] for r in own_rounds}
    total = 0
    consistent = True
    for period in periods:
        if period in penalties:
            total += penalties[period]
            if total >= target:
                consistent = False
        if period in scores_by_round:
            total += scores_by_round[period]
            if total >= target and period != last_round_number:
                consistent = False

    is_busted = total >= target
    if not is_busted and len(own_rounds) != len(game_state.rounds):
        consistent = False

    rebuilt = player.model_copy(
        update={
            "current_score": total,
            "is_busted": is_busted,
            "round_scores": tuple(scores_by_round[r.round_number] for r in own_rounds),
        },
    )
    return rebuilt, consistent


def edit_round_score(
    game_state: GameState,
    round_number: int,
    player_id: str,
    new_score: object,
) -> ActionResult:
    """
    Replace one player's score in an already submitted round.

    The player's totals are rebuilt from the full history. The edit is
    blocked when the game is over, or when the new history would have
    busted the player earlier than their last round (or through a penalty),
    or would revive a busted player who sat out later rounds. An edit of the
    player's latest round may bust them and close the game.

    Raises:
        ValidationError: If the score is invalid, the round does not exist,
            or the player has no score in that round

    """
    if not game_state.is_active:
        return blocked(game_state, BlockReason.GAME_COMPLETED, "Game is already completed")
    if not _is_valid_score(new_score):
        raise ValidationError(f"Scores must be non-negative integers, got {new_score!r}")

    round_index = next((i for i, r in enumerate(game_state.rounds) if r.round_number == round_number), None)
    if round_index is None:
        raise ValidationError(f"Round {round_number} has not been played")
    target_round = game_state.rounds[round_index]
    if player_id not in target_round.scores:
        raise ValidationError(f"Player '{player_id}' has no score in round {round_number}")

    score = int(new_score)  # type: ignore[call-overload]
    rounds = list(game_state.rounds)
    rounds[round_index] = target_round.model_copy(update={"scores": {**target_round.scores, player_id: score}})
    candidate = game_state.model_copy(update={"rounds": tuple(rounds)})

    rebuilt, consistent = _replay_player(candidate, player_id)
    if not consistent:
        return blocked(
            game_state,
            BlockReason.HISTORY_CONFLICT,
            f"Changing round {round_number} to {score} conflicts with later rounds or penalties",
        )

    records = tuple(
        build_ai_record(candidate, record.round_number, rounds[round_index].scores)
        if record.round_number == round_number
        else record
        for record in game_state.ai_game_records
    )
    new_state = update_player(
        candidate.model_copy(update={"ai_game_records": records}),
        player_id,
        current_score=rebuilt.current_score,
        is_busted=rebuilt.is_busted,
        round_scores=rebuilt.round_scores,
    )
    new_state = resolve_game_end(new_state)
    logger.info(
        "round score edited",
        game_id=game_state.id,
        player_id=player_id,
        round_number=round_number,
        old_score=target_round.scores[player_id],
        new_score=score,
    )
    if not new_state.is_active:
        logger.info("game completed", game_id=game_state.id, winner_id=new_state.winner_id)
    return ActionResult(game_state=new_state)
