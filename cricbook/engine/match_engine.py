"""
Match Engine - fixtures, admin match management, winner predictions and summaries
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session, selectinload

from cricbook.auth.principal import Principal
from cricbook.engine.commentary_engine import CommentaryEngine
from cricbook.engine.errors import NotFoundError, PermissionDenied, DomainValidationError
from cricbook.engine.pagination import Page, paginate
from cricbook.engine.scoring import describe_result, TOSS_BAT, TOSS_BOWL
from cricbook.engine.unit_of_work import unit_of_work
from cricbook.models.match import (
    Match, MatchStatus, MatchType, MatchFormat, MatchPrediction, MatchSummary,
)
from cricbook.models.team import Team, Series
from cricbook.repository import upsert_by_composite_key

logger = logging.getLogger(__name__)

# Fields an admin may change after creation
UPDATABLE_FIELDS = (
    "status",
    "venue",
    "city",
    "country",
    "weather",
    "pitch",
    "toss_winner_id",
    "toss_decision",
    "winner_id",
    "result",
    "end_date",
)

# Changing these changes the batting order, so the scoreline must be re-derived
TOSS_FIELDS = ("toss_winner_id", "toss_decision")


def _enum_value(enum_cls, value, label: str):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(e.value for e in enum_cls)
        raise DomainValidationError(f"Invalid {label}. Must be one of: {valid}")


class MatchEngine:
    """
    Match lifecycle: upcoming -> live -> completed/abandoned.
    """

    def __init__(self, session: Session):
        self.session = session

    # ==================== QUERIES ====================

    def list_matches(
        self,
        status: Optional[str] = None,
        format: Optional[str] = None,
        match_type: Optional[str] = None,
        team_id: Optional[int] = None,
        series_id: Optional[int] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        """
        Filtered, paginated fixtures. Upcoming matches are listed soonest
        first, everything else most recent first.
        """
        stmt = select(Match).options(
            selectinload(Match.home_team),
            selectinload(Match.away_team),
            selectinload(Match.winner),
            selectinload(Match.series),
        )

        status_enum = _enum_value(MatchStatus, status, "status")
        if status_enum:
            stmt = stmt.where(Match.status == status_enum)
        format_enum = _enum_value(MatchFormat, format, "format")
        if format_enum:
            stmt = stmt.where(Match.format == format_enum)
        type_enum = _enum_value(MatchType, match_type, "match type")
        if type_enum:
            stmt = stmt.where(Match.match_type == type_enum)
        if team_id:
            stmt = stmt.where(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
        if series_id:
            stmt = stmt.where(Match.series_id == series_id)

        if status_enum == MatchStatus.UPCOMING:
            stmt = stmt.order_by(Match.start_date.asc(), Match.id.asc())
        else:
            stmt = stmt.order_by(Match.start_date.desc(), Match.id.desc())

        return paginate(self.session, stmt, page, limit)

    def get_match(self, match_id: int) -> Match:
        match = self.session.scalars(
            select(Match)
            .where(Match.id == match_id)
            .options(
                selectinload(Match.home_team),
                selectinload(Match.away_team),
                selectinload(Match.winner),
                selectinload(Match.series),
            )
        ).first()
        if match is None:
            raise NotFoundError("Match not found")
        return match

    def list_teams(self) -> List[Team]:
        return list(self.session.scalars(select(Team).order_by(Team.name)).all())

    def list_series(self) -> List[Series]:
        return list(self.session.scalars(select(Series).order_by(Series.name)).all())

    # ==================== ADMIN MANAGEMENT ====================

    def create_match(self, principal: Principal, data: dict) -> Match:
        """
        Create a fixture. Referenced teams and series must exist and a team
        cannot play itself. New matches start as upcoming.
        """
        if not principal.is_admin:
            raise PermissionDenied("Admin access required")

        home_id = data.get("home_team_id")
        away_id = data.get("away_team_id")
        if home_id == away_id:
            raise DomainValidationError("Home and away teams must be different")
        if not (data.get("venue") or "").strip():
            raise DomainValidationError("Venue is required")

        if self.session.get(Team, home_id) is None:
            raise NotFoundError(f"Home team with ID {home_id} not found")
        if self.session.get(Team, away_id) is None:
            raise NotFoundError(f"Away team with ID {away_id} not found")
        series_id = data.get("series_id")
        if series_id and self.session.get(Series, series_id) is None:
            raise NotFoundError(f"Series with ID {series_id} not found")

        end_date = data.get("end_date")
        start_date = data["start_date"]
        if end_date and end_date < start_date:
            raise DomainValidationError("End date cannot be before start date")

        with unit_of_work(self.session, "create match"):
            match = Match(
                match_type=_enum_value(MatchType, data["match_type"], "match type"),
                format=_enum_value(MatchFormat, data["format"], "format"),
                venue=data["venue"].strip(),
                city=data.get("city") or None,
                country=data.get("country") or None,
                start_date=start_date,
                end_date=end_date,
                status=MatchStatus.UPCOMING,
                home_team_id=home_id,
                away_team_id=away_id,
                series_id=series_id or None,
                weather=data.get("weather") or None,
                pitch=data.get("pitch") or None,
            )
            self.session.add(match)

        logger.info("Match %s created by %s at %s", match.id, principal.username, match.venue)
        return match

    def update_match(self, principal: Principal, match_id: int, data: dict) -> Match:
        """
        Partial update of the admin-editable fields. Toss changes re-derive
        the scoreline; completing a match without a result fills one in from
        the derived scores.
        """
        if not principal.is_admin:
            raise PermissionDenied("Admin access required")

        changes = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}
        if "status" in changes:
            changes["status"] = _enum_value(MatchStatus, changes["status"], "status")
            if changes["status"] is None:
                raise DomainValidationError("status cannot be cleared")
        if changes.get("toss_decision") not in (None, TOSS_BAT, TOSS_BOWL):
            raise DomainValidationError("toss_decision must be 'bat' or 'bowl'")

        with unit_of_work(self.session, "update match"):
            match = self.get_match(match_id)
            playing = (match.home_team_id, match.away_team_id)
            for field in ("toss_winner_id", "winner_id"):
                if changes.get(field) is not None and changes[field] not in playing:
                    raise DomainValidationError(f"{field} must be one of the teams playing")

            for field, value in changes.items():
                setattr(match, field, value)

            if any(field in changes for field in TOSS_FIELDS):
                CommentaryEngine(self.session).recompute_match_scores(match_id)

            if match.status == MatchStatus.COMPLETED and not match.result:
                match.result = describe_result(
                    match.home_team.name, match.away_team.name,
                    match.home_score, match.away_score,
                )

        logger.info("Match %s updated by %s: %s", match_id, principal.username, sorted(changes))
        return match

    # ==================== WINNER PREDICTIONS ====================

    def vote_for_team(self, principal: Principal, match_id: int, team_id: int) -> MatchPrediction:
        """Record or change the caller's predicted winner"""
        match = self.session.get(Match, match_id)
        if match is None:
            raise NotFoundError("Match not found")
        if team_id not in (match.home_team_id, match.away_team_id):
            raise DomainValidationError("Predicted team is not playing in this match")

        with unit_of_work(self.session, "submit vote"):
            prediction = upsert_by_composite_key(
                self.session,
                MatchPrediction,
                key={"user_id": principal.user_id, "match_id": match_id},
                values={"predicted_team_id": team_id},
            )
        return prediction

    def prediction_breakdown(self, match_id: int) -> List[dict]:
        """Vote count and rounded percentage per predicted team"""
        rows = self.session.execute(
            select(MatchPrediction.predicted_team_id, func.count(MatchPrediction.id))
            .where(MatchPrediction.match_id == match_id)
            .group_by(MatchPrediction.predicted_team_id)
            .order_by(MatchPrediction.predicted_team_id)
        ).all()

        total = sum(count for _, count in rows)
        return [
            {
                "team_id": team_id,
                "count": count,
                "percentage": round(count / total * 100) if total else 0,
            }
            for team_id, count in rows
        ]

    # ==================== MATCH SUMMARY ====================

    def update_match_summary(self, principal: Principal, match_id: int, title: str, content: str) -> MatchSummary:
        if not principal.is_admin:
            raise PermissionDenied("Only admins can update match summary")
        if not (title or "").strip() or not (content or "").strip():
            raise DomainValidationError("Title and content are required")
        if self.session.get(Match, match_id) is None:
            raise NotFoundError("Match not found")

        with unit_of_work(self.session, "update match summary"):
            summary = upsert_by_composite_key(
                self.session,
                MatchSummary,
                key={"match_id": match_id},
                values={"title": title.strip(), "content": content.strip(), "updated_at": datetime.utcnow()},
                create_only={"author_id": principal.user_id},
            )
        return summary

    def get_match_summary(self, match_id: int) -> Optional[MatchSummary]:
        return self.session.scalars(
            select(MatchSummary).where(MatchSummary.match_id == match_id)
        ).first()
