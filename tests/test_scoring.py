"""
Tests for deriving the live scoreline from a ball-by-ball log.

Run with: pytest tests/test_scoring.py -v
"""
import random
from dataclasses import dataclass
from typing import Optional

import pytest

from cricbook.engine.scoring import (
    BallEvent, MatchScores, InningsTally, batting_order, compute_scores, describe_result,
)

HOME, AWAY = 10, 20


@dataclass
class Fixture:
    home_team_id: int = HOME
    away_team_id: int = AWAY
    toss_winner_id: Optional[int] = None
    toss_decision: Optional[str] = None


def full_innings(innings: int, overs: int, wickets: int = 0):
    """`overs` complete overs of singles, with wickets on the first `wickets` balls"""
    events = []
    for over in range(overs):
        for ball in range(1, 7):
            events.append(BallEvent(innings, over, ball, runs=1, is_wicket=len(events) < wickets))
    return events


class TestBattingOrder:
    def test_toss_winner_chooses_to_bat(self):
        assert batting_order(Fixture(toss_winner_id=AWAY, toss_decision="bat")) == (AWAY, HOME)

    def test_toss_winner_chooses_to_bowl(self):
        assert batting_order(Fixture(toss_winner_id=HOME, toss_decision="bowl")) == (AWAY, HOME)

    def test_no_toss_home_bats_first(self):
        assert batting_order(Fixture()) == (HOME, AWAY)

    def test_decision_without_winner_falls_back(self):
        assert batting_order(Fixture(toss_decision="bat")) == (HOME, AWAY)


class TestComputeScores:
    def test_empty_log_is_all_none(self):
        assert compute_scores(Fixture(), []) == MatchScores()
        assert compute_scores(None, []) == MatchScores()

    def test_scenario_home_wins_toss_and_bats(self):
        """120/3 after 19.6 overs, first innings still in progress"""
        events = full_innings(1, 20, wickets=3)
        scores = compute_scores(Fixture(toss_winner_id=HOME, toss_decision="bat"), events)

        assert scores.home_score == "120/3"
        assert scores.away_score == "0/0"
        assert scores.current_innings == 1
        assert scores.current_over == 19.6

    def test_scenario_second_innings_under_way(self):
        events = full_innings(1, 20, wickets=3)
        # 42 singles over seven overs, three more, then dot balls up to 8.2
        chase = full_innings(2, 7, wickets=1) + [
            BallEvent(2, 7, 1, runs=1),
            BallEvent(2, 7, 2, runs=1),
            BallEvent(2, 7, 3, runs=1),
            BallEvent(2, 7, 4, runs=0),
            BallEvent(2, 7, 5, runs=0),
            BallEvent(2, 7, 6, runs=0),
            BallEvent(2, 8, 1, runs=0),
            BallEvent(2, 8, 2, runs=0),
        ]
        scores = compute_scores(Fixture(toss_winner_id=HOME, toss_decision="bat"), events + chase)

        assert scores.home_score == "120/3"
        assert scores.away_score == "45/1"
        assert scores.current_innings == 2
        assert scores.current_over == 8.2

    def test_scenario_away_wins_toss_and_bowls(self):
        """Home side bats first even though the away side won the toss"""
        events = [BallEvent(1, 0, 1, runs=4), BallEvent(1, 0, 2, runs=6)]
        scores = compute_scores(Fixture(toss_winner_id=AWAY, toss_decision="bowl"), events)

        assert scores.home_score == "10/0"
        assert scores.away_score == "0/0"

    def test_scenario_no_toss_data(self):
        events = [BallEvent(1, 0, 1, runs=2, is_wicket=True)]
        scores = compute_scores(Fixture(), events)

        assert scores.home_score == "2/1"
        assert scores.current_innings == 1
        assert scores.current_over == 0.1

    def test_toss_winner_batting_owns_first_innings_either_side(self):
        events = [BallEvent(1, 0, 1, runs=3)]
        assert compute_scores(Fixture(toss_winner_id=HOME, toss_decision="bat"), events).home_score == "3/0"
        assert compute_scores(Fixture(toss_winner_id=AWAY, toss_decision="bat"), events).away_score == "3/0"

    def test_missing_match_record_home_bats_first(self):
        scores = compute_scores(None, [BallEvent(1, 2, 3, runs=7), BallEvent(2, 0, 1, runs=1)])
        assert scores.home_score == "7/0"
        assert scores.away_score == "1/0"
        assert scores.current_innings == 2

    def test_order_independent(self):
        events = full_innings(1, 5, wickets=2) + full_innings(2, 3, wickets=1)
        shuffled = list(events)
        random.Random(7).shuffle(shuffled)
        fixture = Fixture(toss_winner_id=AWAY, toss_decision="bat")

        assert compute_scores(fixture, shuffled) == compute_scores(fixture, events)

    def test_idempotent(self):
        events = full_innings(1, 2)
        fixture = Fixture()
        assert compute_scores(fixture, events) == compute_scores(fixture, events)

    def test_progress_is_highest_over_then_ball(self):
        """A later over with a lower ball number is still further on"""
        events = [BallEvent(1, 3, 6), BallEvent(1, 4, 1), BallEvent(1, 2, 5)]
        assert compute_scores(Fixture(), events).current_over == 4.1

    def test_over_and_ball_not_maximised_separately(self):
        events = [BallEvent(1, 0, 6), BallEvent(1, 1, 2)]
        assert compute_scores(Fixture(), events).current_over == 1.2

    def test_wickets_count_once_each_and_extras_already_in_runs(self):
        events = [
            BallEvent(1, 0, 1, runs=5),  # wide that went for four: 5 recorded
            BallEvent(1, 0, 2, runs=0, is_wicket=True),
            BallEvent(1, 0, 3, runs=1, is_wicket=True),  # run out going for a second
        ]
        assert compute_scores(Fixture(), events).home_score == "6/2"

    def test_unknown_innings_ignored(self):
        events = [BallEvent(3, 0, 1, runs=50), BallEvent(1, 0, 1, runs=1)]
        scores = compute_scores(Fixture(), events)
        assert scores.home_score == "1/0"
        assert scores.current_innings == 1

    def test_only_unknown_innings_is_empty(self):
        assert compute_scores(Fixture(), [BallEvent(4, 0, 1, runs=1)]) == MatchScores()

    def test_as_dict(self):
        scores = compute_scores(Fixture(), [BallEvent(1, 45, 4, runs=1)])
        assert scores.as_dict() == {
            "home_score": "1/0",
            "away_score": "0/0",
            "current_innings": 1,
            "current_over": 45.4,
        }


class TestInningsTally:
    @pytest.mark.parametrize("over,ball,expected", [(0, 1, 0.1), (19, 6, 19.6), (45, 4, 45.4)])
    def test_overs_display(self, over, ball, expected):
        tally = InningsTally(batting_team_id=HOME)
        tally.add(BallEvent(1, over, ball))
        assert tally.overs_display == expected

    def test_empty_tally_has_no_balls(self):
        tally = InningsTally(batting_team_id=HOME)
        assert not tally.has_balls
        assert tally.score == "0/0"


class TestDescribeResult:
    def test_home_win(self):
        assert describe_result("India", "Australia", "180/5", "170/9") == "India won by 10 runs"

    def test_away_win(self):
        assert describe_result("India", "Australia", "150/10", "151/3") == "Australia won by 1 runs"

    def test_tie(self):
        assert describe_result("India", "Australia", "150/10", "150/8") == "Match tied"

    def test_incomplete(self):
        assert describe_result("India", "Australia", "150/10", None) is None
