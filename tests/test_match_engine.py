"""
Tests for fixtures, admin match management, winner predictions and summaries.
"""
from datetime import datetime

import pytest

from cricbook.engine.commentary_engine import CommentaryEngine
from cricbook.engine.errors import DomainValidationError, NotFoundError, PermissionDenied
from cricbook.engine.match_engine import MatchEngine
from cricbook.models import MatchFormat, MatchStatus, MatchType


def fixture_data(home_id, away_id, **overrides):
    data = {
        "match_type": "odi",
        "format": "international",
        "venue": "Melbourne Cricket Ground",
        "city": "Melbourne",
        "start_date": datetime(2024, 12, 26, 10, 0),
        "home_team_id": home_id,
        "away_team_id": away_id,
    }
    data.update(overrides)
    return data


class TestCreateMatch:
    def test_create(self, test_db, admin, teams):
        home, away = teams
        match = MatchEngine(test_db).create_match(admin, fixture_data(home.id, away.id))

        assert match.status == MatchStatus.UPCOMING
        assert match.match_type == MatchType.ODI
        assert match.format == MatchFormat.INTERNATIONAL
        assert match.home_score is None

    def test_admin_only(self, test_db, fan, teams):
        home, away = teams
        with pytest.raises(PermissionDenied):
            MatchEngine(test_db).create_match(fan, fixture_data(home.id, away.id))

    def test_team_cannot_play_itself(self, test_db, admin, teams):
        home, _ = teams
        with pytest.raises(DomainValidationError, match="must be different"):
            MatchEngine(test_db).create_match(admin, fixture_data(home.id, home.id))

    def test_unknown_team(self, test_db, admin, teams):
        home, _ = teams
        with pytest.raises(NotFoundError, match="Away team"):
            MatchEngine(test_db).create_match(admin, fixture_data(home.id, 999))

    def test_end_before_start(self, test_db, admin, teams):
        home, away = teams
        data = fixture_data(home.id, away.id, end_date=datetime(2024, 12, 25))
        with pytest.raises(DomainValidationError, match="End date"):
            MatchEngine(test_db).create_match(admin, data)

    def test_invalid_enum(self, test_db, admin, teams):
        home, away = teams
        with pytest.raises(DomainValidationError, match="Invalid match type"):
            MatchEngine(test_db).create_match(admin, fixture_data(home.id, away.id, match_type="hundred"))


class TestListMatches:
    def test_upcoming_soonest_first(self, test_db, admin, teams):
        home, away = teams
        engine = MatchEngine(test_db)
        later = engine.create_match(admin, fixture_data(home.id, away.id, start_date=datetime(2030, 1, 2)))
        sooner = engine.create_match(admin, fixture_data(away.id, home.id, start_date=datetime(2030, 1, 1)))

        page = engine.list_matches(status="upcoming")

        assert [m.id for m in page.items] == [sooner.id, later.id]

    def test_filters(self, test_db, admin, teams, match):
        home, away = teams
        engine = MatchEngine(test_db)
        engine.create_match(admin, fixture_data(home.id, away.id))

        assert engine.list_matches(status="live").total == 1
        assert engine.list_matches(match_type="t20").total == 1
        assert engine.list_matches(team_id=away.id).total == 2
        assert engine.list_matches().items[0].id != match.id  # 2024-12-26 is newer

    def test_bad_status_filter(self, test_db):
        with pytest.raises(DomainValidationError, match="Invalid status"):
            MatchEngine(test_db).list_matches(status="paused")


class TestUpdateMatch:
    def test_partial_update(self, test_db, admin, match):
        updated = MatchEngine(test_db).update_match(admin, match.id, {"weather": "Overcast", "home_score": "1/0"})

        assert updated.weather == "Overcast"
        # Derived fields cannot be written directly
        assert updated.home_score is None

    def test_toss_must_be_playing_team(self, test_db, admin, match):
        with pytest.raises(DomainValidationError, match="toss_winner_id"):
            MatchEngine(test_db).update_match(admin, match.id, {"toss_winner_id": 999, "toss_decision": "bat"})

    def test_bad_toss_decision(self, test_db, admin, match, teams):
        with pytest.raises(DomainValidationError, match="toss_decision"):
            MatchEngine(test_db).update_match(admin, match.id, {"toss_decision": "field"})

    def test_completion_fills_result(self, test_db, admin, match, ball):
        commentary = CommentaryEngine(test_db)
        commentary.add_ball(admin, match.id, ball(0, 1, runs=6))
        commentary.add_ball(admin, match.id, ball(0, 1, runs=2, innings=2))

        updated = MatchEngine(test_db).update_match(admin, match.id, {"status": "completed"})

        assert updated.status == MatchStatus.COMPLETED
        assert updated.result == "India won by 4 runs"

    def test_explicit_result_kept(self, test_db, admin, match):
        updated = MatchEngine(test_db).update_match(
            admin, match.id, {"status": "abandoned", "result": "No result (rain)"}
        )
        assert updated.result == "No result (rain)"

    def test_fans_cannot_update(self, test_db, fan, match):
        with pytest.raises(PermissionDenied):
            MatchEngine(test_db).update_match(fan, match.id, {"status": "completed"})


class TestPredictions:
    def test_vote_and_change_vote(self, test_db, fan, other_fan, match, teams):
        home, away = teams
        engine = MatchEngine(test_db)
        engine.vote_for_team(fan, match.id, home.id)
        engine.vote_for_team(other_fan, match.id, home.id)
        engine.vote_for_team(fan, match.id, away.id)

        assert engine.prediction_breakdown(match.id) == [
            {"team_id": home.id, "count": 1, "percentage": 50},
            {"team_id": away.id, "count": 1, "percentage": 50},
        ]

    def test_team_must_be_playing(self, test_db, fan, match):
        with pytest.raises(DomainValidationError):
            MatchEngine(test_db).vote_for_team(fan, match.id, 999)

    def test_no_votes(self, test_db, match):
        assert MatchEngine(test_db).prediction_breakdown(match.id) == []


class TestSummary:
    def test_summary_upsert(self, test_db, admin, match):
        engine = MatchEngine(test_db)
        first = engine.update_match_summary(admin, match.id, "Day 1", "Rain")
        second = engine.update_match_summary(admin, match.id, "Day 2", "Sunshine")

        assert first.id == second.id
        assert engine.get_match_summary(match.id).title == "Day 2"

    def test_requires_admin(self, test_db, fan, match):
        with pytest.raises(PermissionDenied, match="Only admins"):
            MatchEngine(test_db).update_match_summary(fan, match.id, "t", "c")

    def test_missing_summary(self, test_db, match):
        assert MatchEngine(test_db).get_match_summary(match.id) is None
