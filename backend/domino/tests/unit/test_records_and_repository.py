"""
Persisted record format and the key-value repositories built on it.
"""

import json

from domino.logic.state import GameState
from domino.persistence import KeyValueGameRepository, KeyValueTournamentRepository
from domino.persistence.key_value import (
    ACTIVE_GAMES_LIST,
    ACTIVE_TOURNAMENTS_LIST,
    GAME_STATE_PREFIX,
    TOURNAMENT_STATE_PREFIX,
)
from domino.tests.conftest import create_game_state, create_player, create_round, create_tournament
from domino.tournament.models import Tournament, TournamentPlayerStats


class TestRecordFormat:
    def test_game_record_uses_camel_case(self):
        game = create_game_state(rounds=(create_round(1, {"a": 5, "b": 7}),))

        record = game.to_record()

        assert record["currentRoundNumber"] == 2
        assert record["players"][0]["currentScore"] == 0
        assert record["playerOrder"] == ["a", "b"]
        assert "winnerId" not in record
        assert GameState.model_validate(record) == game

    def test_minimal_game_record_gets_defaults(self):
        game = GameState.model_validate(
            {"id": "game-old", "players": [{"id": "a", "name": "Alice"}, {"id": "b", "name": "Bob"}]},
        )

        assert game.target_score == 100
        assert game.is_active
        assert game.current_round_number == 1
        assert game.penalty_log == ()
        assert game.ai_game_records == ()
        assert game.player_order == ("a", "b")
        assert game.players[0].round_scores == ()

    def test_stored_seating_order_is_kept(self):
        game = GameState.model_validate(
            {
                "id": "game-old",
                "players": [{"id": "a", "name": "Alice"}, {"id": "b", "name": "Bob"}],
                "playerOrder": ["b", "a"],
            },
        )

        assert game.player_order == ("b", "a")

    def test_legacy_sum_of_positions(self):
        stats = TournamentPlayerStats.model_validate({"id": "t1", "name": "Alice", "sumOfPositions": 7.5})

        assert stats.sum_weighted_places == 7.5
        assert stats.to_record()["sumWeightedPlaces"] == 7.5

    def test_tournament_defaults(self):
        tournament = Tournament.model_validate({"id": "t", "name": "Cup", "players": []})

        assert tournament.win_bonus_k == 0.2
        assert tournament.bust_penalty_k == 0.4
        assert tournament.pg_kicker_k == 0.05
        assert tournament.min_games_pct == 0.0
        assert tournament.completed_game_ids == ()


class TestKeyValueGameRepository:
    def test_save_and_load(self, store):
        repo = KeyValueGameRepository(store)
        game = create_game_state()

        repo.save_game(game)

        assert repo.get_game("game-test") == game
        assert store.get(f"{GAME_STATE_PREFIX}game-test") is not None
        assert json.loads(store.get(ACTIVE_GAMES_LIST)) == ["game-test"]

    def test_resave_keeps_single_index_entry(self, store):
        repo = KeyValueGameRepository(store)
        repo.save_game(create_game_state(game_id="g1"))
        repo.save_game(create_game_state(game_id="g2"))
        repo.save_game(create_game_state(game_id="g1", is_active=False))

        assert repo.list_game_ids() == ["g1", "g2"]
        assert not repo.get_game("g1").is_active

    def test_delete(self, store):
        repo = KeyValueGameRepository(store)
        repo.save_game(create_game_state(game_id="g1"))

        repo.delete_game("g1")
        repo.delete_game("g1")

        assert repo.get_game("g1") is None
        assert repo.list_game_ids() == []

    def test_missing_game(self, store):
        assert KeyValueGameRepository(store).get_game("nope") is None

    def test_corrupt_record_is_absent(self, store):
        store.set(f"{GAME_STATE_PREFIX}broken", b"{not json")
        store.set(f"{GAME_STATE_PREFIX}invalid", json.dumps({"id": "invalid"}).encode())
        store.set(f"{GAME_STATE_PREFIX}no-ids", json.dumps({"id": "no-ids", "players": [{"name": "A"}]}).encode())
        store.set(f"{GAME_STATE_PREFIX}scalars", json.dumps({"id": "scalars", "players": [1, 2]}).encode())
        store.set(f"{GAME_STATE_PREFIX}not-a-list", json.dumps({"id": "not-a-list", "players": "A,B"}).encode())

        repo = KeyValueGameRepository(store)

        assert repo.get_game("broken") is None
        assert repo.get_game("invalid") is None
        assert repo.get_game("no-ids") is None
        assert repo.get_game("scalars") is None
        assert repo.get_game("not-a-list") is None

    def test_corrupt_players_do_not_break_listing(self, service, store):
        game = service.start_game(["Alice", "Bob"])
        store.set(f"{GAME_STATE_PREFIX}g-bad", json.dumps({"id": "g-bad", "players": [{"name": "A"}]}).encode())
        store.set(ACTIVE_GAMES_LIST, json.dumps([game.id, "g-bad"]).encode())

        assert [g.id for g in service.list_games()] == [game.id]
        assert service.get_game("g-bad") is None

    def test_corrupt_index_is_rebuilt_from_records(self, store):
        repo = KeyValueGameRepository(store)
        repo.save_game(create_game_state(game_id="g1"))
        repo.save_game(create_game_state(game_id="g2"))
        store.set(ACTIVE_GAMES_LIST, b'{"oops": 1}')

        assert sorted(repo.list_game_ids()) == ["g1", "g2"]

    def test_games_and_tournaments_share_a_store(self, store):
        games = KeyValueGameRepository(store)
        tournaments = KeyValueTournamentRepository(store)
        games.save_game(create_game_state(game_id="g1"))
        tournaments.save_tournament(create_tournament())

        assert games.list_game_ids() == ["g1"]
        assert tournaments.list_tournament_ids() == ["tournament-test"]


class TestKeyValueTournamentRepository:
    def test_round_trip(self, store):
        repo = KeyValueTournamentRepository(store)
        tournament = create_tournament(win_bonus_k=0.3)

        repo.save_tournament(tournament)

        assert repo.get_tournament("tournament-test") == tournament
        raw = json.loads(store.get(f"{TOURNAMENT_STATE_PREFIX}tournament-test"))
        assert raw["winBonusK"] == 0.3
        assert raw["playerParticipationMode"] == "rotate_on_bust"
        assert json.loads(store.get(ACTIVE_TOURNAMENTS_LIST)) == ["tournament-test"]

    def test_delete(self, store):
        repo = KeyValueTournamentRepository(store)
        repo.save_tournament(create_tournament())

        repo.delete_tournament("tournament-test")

        assert repo.get_tournament("tournament-test") is None
        assert repo.list_tournament_ids() == []

    def test_player_stats_survive_reload(self, store):
        repo = KeyValueTournamentRepository(store)
        tournament = create_tournament()
        players = (tournament.players[0].model_copy(update={"games_played": 2, "sum_weighted_places": 3.5}),)
        repo.save_tournament(tournament.model_copy(update={"players": players}))

        [alice] = repo.get_tournament("tournament-test").players

        assert (alice.games_played, alice.sum_weighted_places) == (2, 3.5)

    def test_non_finite_weights_are_absent(self, store):
        record = {"id": "t-inf", "name": "Cup", "players": [], "winBonusK": "Infinity"}
        store.set(f"{TOURNAMENT_STATE_PREFIX}t-inf", json.dumps(record).encode())
        stats = {"id": "t-nan", "name": "Cup", "players": [{"id": "p", "name": "A", "sumWeightedPlaces": "NaN"}]}
        store.set(f"{TOURNAMENT_STATE_PREFIX}t-nan", json.dumps(stats).encode())

        repo = KeyValueTournamentRepository(store)

        assert repo.get_tournament("t-inf") is None
        assert repo.get_tournament("t-nan") is None
