# tests/unit/aggregation/test_unit_player_stats.py — v2
"""Tests for aggregation/player_stats.py — single-pass player profiles."""

from __future__ import annotations

import pytest

from chessindex.aggregation.dimensions import COLOR, YEAR
from chessindex.aggregation.player_stats import (
    PlayerStatsAggregator,
    build_player_profile,
    outcome_for,
)
from chessindex.core.models import GameRecord
from chessindex.indexing.decorate import decorate
from chessindex.normalize.name_normalizer import NameNormalizer

FISCHER = "Fischer, Robert James"


@pytest.fixture
def normalizer() -> NameNormalizer:
    return NameNormalizer()


@pytest.fixture
def game(normalizer):
    """Factory: game(white, black, result, **tags) -> DecoratedGame."""
    counter = {"offset": 0}

    def _make(white=FISCHER, black="Spassky, Boris", result="1-0", moves="1. e4 e5", **tags):
        all_tags = {"White": white, "Black": black, "Result": result, "Event": "Match"}
        all_tags.update({key: str(value) for key, value in tags.items()})
        counter["offset"] += 100
        record = GameRecord.from_tags(
            all_tags, moves=f"{moves} {result}", source="t.pgn", offset=counter["offset"],
        )
        return decorate(record, normalizer)

    return _make


class TestOutcomeFor:
    @pytest.mark.parametrize(
        ("result", "color", "expected"),
        [
            ("1-0", "white", "win"),
            ("1-0", "black", "loss"),
            ("0-1", "black", "win"),
            ("0-1", "white", "loss"),
            ("1/2-1/2", "white", "draw"),
            ("*", "white", None),
            (None, "black", None),
        ],
    )
    def test_outcome(self, result, color, expected):
        assert outcome_for(result, color) == expected


class TestProfileScenarios:
    def test_two_wins_under_different_spellings(self, game, normalizer):
        games = [
            game(white="Fischer, Robert J.", black="Spassky, Boris V.", result="1-0", Date="1972.07.11"),
            game(white="Spassky, Boris", black="Bobby Fischer", result="0-1", Date="1972.07.13"),
        ]
        profile = build_player_profile("Bobby Fischer", games, normalizer)
        assert profile.player == FISCHER
        assert profile.overview.games == 2
        assert profile.overview.wins == 2
        assert profile.overview.performance == 100.0
        assert profile.by_color["white"].wins == 1
        assert profile.by_color["black"].wins == 1
        assert profile.aliases == {"Fischer, Robert J.": 1, "Bobby Fischer": 1}

    def test_performance_formula(self, game, normalizer):
        games = [
            game(result="1-0", Date="2000.01.01"),
            game(result="1/2-1/2", Date="2000.01.02"),
            game(result="0-1", Date="2000.01.03"),
        ]
        overview = build_player_profile(FISCHER, games, normalizer).overview
        assert overview.points == 1.5
        assert overview.performance == 50.0
        assert overview.win_rate == 33.3

    def test_unfinished_games_excluded(self, game, normalizer):
        games = [game(result="1-0", Date="2000.01.01"), game(result="*", Date="2000.01.02")]
        profile = build_player_profile(FISCHER, games, normalizer)
        assert profile.overview.games == 1
        assert profile.unfinished_games == 1
        assert profile.last_game is not None
        assert profile.last_game.result == "*"
        assert profile.streaks.current_win == 1

    def test_unrelated_games_ignored(self, game, normalizer):
        games = [game(white="Tal, Mikhail", black="Botvinnik, Mikhail")]
        profile = build_player_profile(FISCHER, games, normalizer)
        assert profile.overview.games == 0
        assert profile.overview.performance is None
        assert profile.first_game is None


class TestStreaks:
    def test_chronological_order(self, game, normalizer):
        # W W D L W, fed out of order
        games = [
            game(result="1-0", Date="2001.05.01"),
            game(result="0-1", Date="2001.04.01"),
            game(result="1-0", Date="2001.01.01"),
            game(result="1/2-1/2", Date="2001.03.01"),
            game(result="1-0", Date="2001.02.01"),
        ]
        streaks = build_player_profile(FISCHER, games, normalizer).streaks
        assert streaks.longest_win == 2
        assert streaks.longest_unbeaten == 3
        assert streaks.current_win == 1
        assert streaks.current_unbeaten == 1

    def test_undated_games_last(self, game, normalizer):
        games = [game(result="0-1"), game(result="1-0", Date="1990.01.01")]
        profile = build_player_profile(FISCHER, games, normalizer)
        assert profile.first_game.date == "1990.01.01"
        assert profile.last_game.date is None
        assert profile.streaks.current_win == 0


class TestRatingsAndVictories:
    def test_notable_victories(self, game, normalizer):
        games = [
            game(result="1-0", BlackElo=2750, Date="1990.02.01"),
            game(result="1-0", BlackElo=2650, Date="1990.01.01"),
            game(result="0-1", BlackElo=2800, Date="1990.03.01"),
            game(white="Kasparov, Garry", black=FISCHER, result="0-1", WhiteElo=2700, Date="1989.01.01"),
        ]
        profile = build_player_profile(FISCHER, games, normalizer)
        assert [v.date for v in profile.notable_victories] == ["1989.01.01", "1990.02.01"]
        assert profile.notable_victories[0].opponent == "Kasparov, Garry"

    def test_notable_threshold_configurable(self, game, normalizer):
        games = [game(result="1-0", BlackElo=2650)]
        profile = build_player_profile(FISCHER, games, normalizer, notable_rating=2600)
        assert len(profile.notable_victories) == 1

    def test_peak_and_yearly_rating(self, game, normalizer):
        games = [
            game(WhiteElo=2760, Date="1971.01.01", Event="Candidates"),
            game(WhiteElo=2785, Date="1972.07.11", Event="World Championship"),
            game(WhiteElo=2780, Date="1972.08.01"),
        ]
        profile = build_player_profile(FISCHER, games, normalizer)
        assert profile.peak_rating.rating == 2785
        assert profile.peak_rating.event == "World Championship"
        assert profile.rating_by_year == {"1971": 2760, "1972": 2785}

    def test_average_opponent_rating(self, game, normalizer):
        games = [game(BlackElo=2600), game(BlackElo=2700), game()]
        profile = build_player_profile(FISCHER, games, normalizer)
        assert profile.average_opponent_rating == 2650


class TestBreakdowns:
    def test_default_dimensions(self, game, normalizer):
        games = [
            game(result="1-0", BlackElo=2720, ECO="B33", Opening="Sicilian", Date="1990.01.01"),
            game(white="Tal, Mikhail", black=FISCHER, result="1/2-1/2", ECO="E97", WhiteElo=2350),
        ]
        breakdowns = build_player_profile(FISCHER, games, normalizer).breakdowns
        assert breakdowns["rating_bracket"]["2700-2799"].wins == 1
        assert breakdowns["rating_bracket"]["Under 2400"].draws == 1
        assert breakdowns["opening_family"]["Sicilian Defence"].games == 1
        assert list(breakdowns["openings_as_white"]) == ["B33: Sicilian"]
        assert list(breakdowns["openings_as_black"]) == ["E97"]
        assert breakdowns["opponent"]["Tal, Mikhail"].draws == 1
        assert list(breakdowns["year"]) == ["1990"]
        assert breakdowns["time_control"]["classical"].games == 2

    def test_custom_dimensions(self, game, normalizer):
        profile = build_player_profile(FISCHER, [game()], normalizer, dimensions=(COLOR, YEAR))
        assert set(profile.breakdowns) == {"color"}

    def test_breakdown_keys_sorted(self, game, normalizer):
        games = [game(Date="1999.01.01"), game(Date="1970.01.01"), game(Date="1985.01.01")]
        profile = build_player_profile(FISCHER, games, normalizer)
        assert list(profile.by_year) == ["1970", "1985", "1999"]


class TestGameLengths:
    def test_shortest_longest_average(self, game, normalizer):
        games = [game(PlyCount=40), game(PlyCount=80), game(PlyCount=61)]
        profile = build_player_profile(FISCHER, games, normalizer)
        assert profile.shortest_game.moves == 20
        assert profile.longest_game.moves == 40
        assert profile.average_game_length == 30.0

    def test_extremes_compare_plies(self, game, normalizer):
        games = [game(PlyCount=41), game(PlyCount=40), game(PlyCount=1)]
        profile = build_player_profile(FISCHER, games, normalizer)
        assert profile.shortest_game.plies == 1
        assert profile.longest_game.plies == 41
        assert profile.average_game_length == round(40 / 3, 1)

    def test_zero_ply_game_is_measured(self, game, normalizer):
        games = [game(PlyCount=0), game(PlyCount=30)]
        profile = build_player_profile(FISCHER, games, normalizer)
        assert profile.shortest_game.plies == 0
        assert profile.average_game_length == 7.5


class TestAggregatorDirect:
    def test_color_via_observed_alias(self, game, normalizer):
        normalizer.record_alias(FISCHER, "RJF")
        aggregator = PlayerStatsAggregator(FISCHER, normalizer=normalizer)
        decorated = game(white="Spassky, Boris", black="RJF", result="0-1")
        assert aggregator.color_of(decorated) == "black"
        state = aggregator.process(decorated)
        assert state.overview.wins == 1
        assert state.games_seen == 1
