"""
Chronological round ledger: cumulative scores per player per period.

A period is any round number referenced by a submitted round or a penalty.
The ledger is rebuilt from ``rounds`` and ``penalty_log`` alone, so it can be
recomputed at any time and always folds back to the live scores.
"""

from pydantic import BaseModel, ConfigDict

from domino.logic.state import GameState


class LedgerCell(BaseModel):
    """One player's line in one period."""

    model_config = ConfigDict(frozen=True)

    player_id: str
    player_name: str
    score_in_round: int | None  # None when the period had no round or the player sat it out
    penalties: int
    cumulative_score: int
    display_score: int  # cumulative score capped at the target for busted players


class LedgerPeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    round_number: int
    cells: tuple[LedgerCell, ...]

    def cell_for(self, player_id: str) -> LedgerCell | None:
        return next((c for c in self.cells if c.player_id == player_id), None)


class RoundLedger(BaseModel):
    model_config = ConfigDict(frozen=True)

    game_id: str
    target_score: int
    periods: tuple[LedgerPeriod, ...]

    def final_totals(self) -> dict[str, int]:
        """Raw cumulative score per player after the last period (0 when there are no periods)."""
        if not self.periods:
            return {}
        return {cell.player_id: cell.cumulative_score for cell in self.periods[-1].cells}


def build_round_ledger(game_state: GameState) -> RoundLedger:
    """
    Rebuild the period-by-period score table for a game.

    For each period in ascending order, a player's round score (if any) and
    the sum of their penalties logged for that period are added to a running
    total starting at zero. Players whose full history reaches the target
    are displayed capped at the target.
    """
    rounds_by_number = {r.round_number: r for r in game_state.rounds}
    penalties: dict[tuple[int, str], int] = {}
    for entry in game_state.penalty_log:
        key = (entry.round_number, entry.player_id)
        penalties[key] = penalties.get(key, 0) + entry.points

    history_totals = {p.id: 0 for p in game_state.players}
    for game_round in game_state.rounds:
        for player_id, score in game_round.scores.items():
            if player_id in history_totals:
                history_totals[player_id] += score
    for (_, player_id), points in penalties.items():
        if player_id in history_totals:
            history_totals[player_id] += points
    busted_in_history = {pid for pid, total in history_totals.items() if total >= game_state.target_score}

    period_numbers = sorted(set(rounds_by_number) | {round_number for round_number, _ in penalties})
    running = dict.fromkeys(history_totals, 0)
    periods = []
    for period in period_numbers:
        game_round = rounds_by_number.get(period)
        cells = []
        for player in game_state.players:
            score = game_round.scores.get(player.id) if game_round is not None else None
            penalty_points = penalties.get((period, player.id), 0)
            running[player.id] += (score or 0) + penalty_points
            cumulative = running[player.id]
            display = min(cumulative, game_state.target_score) if player.id in busted_in_history else cumulative
            cells.append(
                LedgerCell(
                    player_id=player.id,
                    player_name=player.name,
                    score_in_round=score,
                    penalties=penalty_points,
                    cumulative_score=cumulative,
                    display_score=display,
                ),
            )
        periods.append(LedgerPeriod(round_number=period, cells=tuple(cells)))

    return RoundLedger(game_id=game_state.id, target_score=game_state.target_score, periods=tuple(periods))
