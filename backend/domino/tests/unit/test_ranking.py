"""
Tournament leaderboard scoring, rounding, tie-breaks and eligibility.
"""

import pytest

from domino.tournament.ranking import RankingWeights, eligible_players, rank_players, round3
from domino.tests.conftest import create_stats, create_tournament

_FLAT = RankingWeights(win_bonus_k=0.0, bust_penalty_k=0.0, pg_kicker_k=0.0)


class TestRound3:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1.1875, 1.188),
            (-0.0625, -0.063),
            (2.0, 2.0),
            (0.0004, 0.0),
            (-0.0004, 0.0),
            (1 / 3, 0.333),
        ],
    )
    def test_half_away_from_zero(self, value, expected):
        assert round3(value) == expected

    def test_no_negative_zero(self):
        assert str(round3(-0.0001)) == "0.0"


class TestRankPlayers:
    def test_score_breakdown(self):
        player = create_stats("t1", "Alice", games_played=4, wins=2, busts=0, perfect_games=1, sum_weighted_places=6.0)
        weights = RankingWeights(win_bonus_k=0.5, bust_penalty_k=0.5, pg_kicker_k=0.25)

        [row] = rank_players([player], weights)

        assert row.rank == 1
        assert row.base == 1.5
        assert row.win_bonus == -0.25
        assert row.bust_penalty == 0.0
        assert row.pg_bonus == -0.063
        assert row.final == 1.188

    def test_bust_penalty_raises_score(self):
        player = create_stats("t1", "Alice", games_played=2, busts=1, sum_weighted_places=5.0)

        [row] = rank_players([player], RankingWeights(bust_penalty_k=0.4))

        assert row.bust_penalty == 0.2
        assert row.final == 2.7

    def test_lower_final_ranks_first(self):
        players = [
            create_stats("t1", "Alice", games_played=2, sum_weighted_places=7.0),
            create_stats("t2", "Bob", games_played=2, sum_weighted_places=3.0),
        ]

        ranked = rank_players(players, _FLAT)

        assert [(r.rank, r.name) for r in ranked] == [(1, "Bob"), (2, "Alice")]

    def test_tie_broken_by_fewer_busts_then_more_wins(self):
        players = [
            create_stats("t1", "Alice", games_played=2, busts=1, wins=1, sum_weighted_places=4.0),
            create_stats("t2", "Bob", games_played=2, busts=0, wins=0, sum_weighted_places=4.0),
            create_stats("t3", "Carol", games_played=2, busts=1, wins=0, sum_weighted_places=4.0),
        ]

        ranked = rank_players(players, _FLAT)

        assert [r.name for r in ranked] == ["Bob", "Alice", "Carol"]

    def test_full_ties_keep_input_order(self):
        players = [create_stats(f"t{i}", name, games_played=1, sum_weighted_places=2.0) for i, name in enumerate("ABC")]

        assert [r.name for r in rank_players(players, _FLAT)] == ["A", "B", "C"]

    def test_player_without_games_ranks_last(self):
        players = [
            create_stats("t1", "Idle"),
            create_stats("t2", "Busy", games_played=3, busts=3, sum_weighted_places=12.0),
        ]

        ranked = rank_players(players)

        assert [r.name for r in ranked] == ["Busy", "Idle"]
        idle = ranked[-1]
        assert idle.final is None
        assert idle.base is None

    def test_default_weights(self):
        player = create_stats("t1", "Alice", games_played=1, wins=1, sum_weighted_places=1.0)

        [row] = rank_players([player])

        assert row.win_bonus == -0.2
        assert row.final == 0.8

    def test_weights_from_tournament(self):
        tournament = create_tournament(win_bonus_k=0.5, bust_penalty_k=0.1, pg_kicker_k=0.0)

        weights = RankingWeights.from_tournament(tournament)

        assert (weights.win_bonus_k, weights.bust_penalty_k, weights.pg_kicker_k) == (0.5, 0.1, 0.0)


class TestEligiblePlayers:
    def _players(self):
        return [
            create_stats("t1", "Alice", games_played=10),
            create_stats("t2", "Bob", games_played=7),
            create_stats("t3", "Carol", games_played=2),
        ]

    def test_zero_fraction_keeps_everyone(self):
        assert len(eligible_players(self._players(), 10, 0.0)) == 3

    def test_threshold_rounds_up(self):
        names = [p.name for p in eligible_players(self._players(), 10, 0.65)]

        assert names == ["Alice", "Bob"]

    def test_exact_threshold_is_eligible(self):
        names = [p.name for p in eligible_players(self._players(), 10, 0.7)]

        assert names == ["Alice", "Bob"]

    def test_full_attendance_required(self):
        names = [p.name for p in eligible_players(self._players(), 10, 1.0)]

        assert names == ["Alice"]
