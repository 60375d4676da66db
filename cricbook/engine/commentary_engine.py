"""
Commentary Engine - ball-by-ball log, reactions, over summaries and predictions.

Every change to the log is committed together with the recomputed match
scoreline so readers never see one without the other.
"""
import json
import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from cricbook.auth.principal import Principal
from cricbook.engine.errors import NotFoundError, PermissionDenied, DomainValidationError
from cricbook.engine.scoring import compute_scores, MatchScores, INNINGS_PER_MATCH
from cricbook.engine.unit_of_work import unit_of_work
from cricbook.models.match import Match, OverSummary, OverPrediction
from cricbook.models.commentary import (
    Commentary, CommentaryReaction, CommentaryComment, CommentaryCommentReaction, ReactionType,
)
from cricbook.repository import upsert_by_composite_key

logger = logging.getLogger(__name__)

# Columns an admin may set on a delivery
BALL_FIELDS = (
    "innings_number",
    "over_number",
    "ball_number",
    "runs",
    "is_wicket",
    "wicket_type",
    "is_extra",
    "extra_type",
    "is_boundary",
    "is_six",
    "description",
    "batsman_name",
    "bowler_name",
)

MAX_BALLS_PER_OVER = 6
MAX_OVER_RUNS = 36
COMMENT_MAX_LENGTH = 500


def _require_admin(principal: Principal, message: str):
    if principal is None or not principal.is_admin:
        raise PermissionDenied(message)


def _validate_ball(data: dict):
    """Range checks for a delivery; raises DomainValidationError"""
    errors = []

    innings = data.get("innings_number")
    if innings not in INNINGS_PER_MATCH:
        errors.append("innings_number must be 1 or 2")

    over = data.get("over_number")
    if over is None or over < 0:
        errors.append("over_number must be 0 or greater")

    ball = data.get("ball_number")
    if ball is None or not 1 <= ball <= MAX_BALLS_PER_OVER:
        errors.append(f"ball_number must be between 1 and {MAX_BALLS_PER_OVER}")

    if data.get("runs", 0) is None or data.get("runs", 0) < 0:
        errors.append("runs cannot be negative")

    if not (data.get("description") or "").strip():
        errors.append("description is required")

    if errors:
        raise DomainValidationError("; ".join(errors))


def _normalise_ball(data: dict) -> dict:
    clean = {k: data[k] for k in BALL_FIELDS if k in data}
    # Wicket/extra detail only makes sense alongside its flag
    if not clean.get("is_wicket"):
        clean["wicket_type"] = None
    if not clean.get("is_extra"):
        clean["extra_type"] = None
    clean["batsman_name"] = clean.get("batsman_name") or None
    clean["bowler_name"] = clean.get("bowler_name") or None
    return clean


def _parse_reaction(reaction_type) -> ReactionType:
    if isinstance(reaction_type, ReactionType):
        return reaction_type
    try:
        return ReactionType(reaction_type)
    except ValueError:
        valid = ", ".join(r.value for r in ReactionType)
        raise DomainValidationError(f"Invalid reaction. Must be one of: {valid}")


class CommentaryEngine:
    """
    Admin-side commentary management plus the fan interactions around it.
    """

    def __init__(self, session: Session):
        self.session = session

    # ==================== SCORE DERIVATION ====================

    def _lock_match(self, match_id: int) -> Match:
        """Load the match row, locking it for the rest of the transaction"""
        stmt = (
            select(Match)
            .where(Match.id == match_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        match = self.session.scalars(stmt).first()
        if match is None:
            raise NotFoundError("Match not found")
        return match

    def recompute_match_scores(self, match_id: int) -> MatchScores:
        """
        Re-derive and store the match's scoreline from its full commentary log.

        Does not commit: callers run this inside the transaction that changed
        the log.
        """
        # Pending edits (new ball, toss change) must be visible to the reads below
        self.session.flush()
        match = self._lock_match(match_id)
        events = self.session.scalars(
            select(Commentary).where(Commentary.match_id == match_id)
        ).all()

        scores = compute_scores(match, events)
        match.home_score = scores.home_score
        match.away_score = scores.away_score
        match.current_innings = scores.current_innings
        match.current_over = scores.current_over
        self.session.flush()

        logger.debug(
            "Match %s rescored from %d balls: %s / %s (innings %s, over %s)",
            match_id, len(events), scores.home_score, scores.away_score,
            scores.current_innings, scores.current_over,
        )
        return scores

    # ==================== BALL-BY-BALL LOG (ADMIN) ====================

    def add_ball(self, principal: Principal, match_id: int, data: dict) -> Commentary:
        """Record a delivery and refresh the match scoreline"""
        _require_admin(principal, "Only admins can add commentary")
        data = {**data, "innings_number": data.get("innings_number", 1)}
        _validate_ball(data)

        with unit_of_work(self.session, "add commentary"):
            self._lock_match(match_id)
            commentary = Commentary(
                match_id=match_id,
                author_id=principal.user_id,
                **_normalise_ball(data),
            )
            self.session.add(commentary)
            self.recompute_match_scores(match_id)

        logger.info(
            "Ball %s.%s (innings %s) added to match %s by %s",
            commentary.over_number, commentary.ball_number,
            commentary.innings_number, match_id, principal.username,
        )
        return commentary

    def update_ball(self, principal: Principal, match_id: int, commentary_id: int, data: dict) -> Commentary:
        """Edit a recorded delivery and refresh the match scoreline"""
        _require_admin(principal, "Admin access required")

        with unit_of_work(self.session, "update commentary"):
            self._lock_match(match_id)
            commentary = self._get_ball(match_id, commentary_id)

            merged = {field: getattr(commentary, field) for field in BALL_FIELDS}
            merged.update({k: v for k, v in data.items() if k in BALL_FIELDS})
            _validate_ball(merged)

            for field, value in _normalise_ball(merged).items():
                setattr(commentary, field, value)
            self.recompute_match_scores(match_id)

        logger.info("Commentary %s on match %s updated by %s", commentary_id, match_id, principal.username)
        return commentary

    def delete_ball(self, principal: Principal, match_id: int, commentary_id: int) -> MatchScores:
        """Remove a delivery; returns the refreshed scoreline"""
        _require_admin(principal, "Admin access required")

        with unit_of_work(self.session, "delete commentary"):
            self._lock_match(match_id)
            commentary = self._get_ball(match_id, commentary_id)
            self.session.delete(commentary)
            scores = self.recompute_match_scores(match_id)

        logger.info("Commentary %s on match %s deleted by %s", commentary_id, match_id, principal.username)
        return scores

    def _get_ball(self, match_id: int, commentary_id: int) -> Commentary:
        commentary = self.session.get(Commentary, commentary_id)
        if commentary is None or commentary.match_id != match_id:
            raise NotFoundError("Commentary not found")
        return commentary

    def list_commentary(self, match_id: int, innings_number: Optional[int] = None) -> List[Commentary]:
        """Deliveries newest first, with reactions and comments loaded"""
        stmt = (
            select(Commentary)
            .where(Commentary.match_id == match_id)
            .options(
                selectinload(Commentary.reactions),
                selectinload(Commentary.comments).selectinload(CommentaryComment.user),
                selectinload(Commentary.comments).selectinload(CommentaryComment.reactions),
            )
            .order_by(
                Commentary.innings_number.desc(),
                Commentary.over_number.desc(),
                Commentary.ball_number.desc(),
                Commentary.created_at.desc(),
                Commentary.id.desc(),
            )
        )
        if innings_number:
            stmt = stmt.where(Commentary.innings_number == innings_number)
        return list(self.session.scalars(stmt).all())

    # ==================== REACTIONS & COMMENTS ====================

    def toggle_commentary_reaction(self, principal: Principal, commentary_id: int, reaction_type) -> bool:
        """Add the reaction, or remove it if already present. Returns True when added."""
        reaction = _parse_reaction(reaction_type)
        if self.session.get(Commentary, commentary_id) is None:
            raise NotFoundError("Commentary not found")

        with unit_of_work(self.session, "toggle reaction"):
            existing = self.session.scalars(
                select(CommentaryReaction).filter_by(
                    user_id=principal.user_id,
                    commentary_id=commentary_id,
                    reaction_type=reaction,
                )
            ).first()
            if existing:
                self.session.delete(existing)
                added = False
            else:
                self.session.add(CommentaryReaction(
                    user_id=principal.user_id,
                    commentary_id=commentary_id,
                    reaction_type=reaction,
                ))
                added = True
        return added

    def add_commentary_comment(self, principal: Principal, commentary_id: int, content: str) -> CommentaryComment:
        content = (content or "").strip()
        if not content or len(content) > COMMENT_MAX_LENGTH:
            raise DomainValidationError(f"Comment must be 1-{COMMENT_MAX_LENGTH} characters")
        if self.session.get(Commentary, commentary_id) is None:
            raise NotFoundError("Commentary not found")

        with unit_of_work(self.session, "add comment"):
            comment = CommentaryComment(
                user_id=principal.user_id,
                commentary_id=commentary_id,
                content=content,
            )
            self.session.add(comment)
        return comment

    def toggle_comment_reaction(self, principal: Principal, comment_id: int, reaction_type) -> bool:
        reaction = _parse_reaction(reaction_type)
        if self.session.get(CommentaryComment, comment_id) is None:
            raise NotFoundError("Comment not found")

        with unit_of_work(self.session, "toggle reaction"):
            existing = self.session.scalars(
                select(CommentaryCommentReaction).filter_by(
                    user_id=principal.user_id,
                    comment_id=comment_id,
                    reaction_type=reaction,
                )
            ).first()
            if existing:
                self.session.delete(existing)
                added = False
            else:
                self.session.add(CommentaryCommentReaction(
                    user_id=principal.user_id,
                    comment_id=comment_id,
                    reaction_type=reaction,
                ))
                added = True
        return added

    # ==================== OVER SUMMARIES & PREDICTIONS ====================

    def add_over_summary(self, principal: Principal, match_id: int, data: dict) -> OverSummary:
        """Create or replace the summary of one over (admin)"""
        _require_admin(principal, "Only admins can add over summaries")
        if data.get("innings_number") not in INNINGS_PER_MATCH:
            raise DomainValidationError("innings_number must be 1 or 2")
        if data.get("over_number", -1) < 0:
            raise DomainValidationError("over_number must be 0 or greater")
        for field in ("total_runs", "wickets", "extras"):
            if data.get(field, 0) < 0:
                raise DomainValidationError(f"{field} cannot be negative")
        if self.session.get(Match, match_id) is None:
            raise NotFoundError("Match not found")

        with unit_of_work(self.session, "add over summary"):
            summary = upsert_by_composite_key(
                self.session,
                OverSummary,
                key={
                    "match_id": match_id,
                    "innings_number": data["innings_number"],
                    "over_number": data["over_number"],
                },
                values={
                    "balls": json.dumps(list(data.get("balls", []))),
                    "total_runs": data.get("total_runs", 0),
                    "wickets": data.get("wickets", 0),
                    "extras": data.get("extras", 0),
                    "bowler_name": data.get("bowler_name"),
                },
            )
        return summary

    def list_over_summaries(self, match_id: int, innings_number: int = 1) -> List[OverSummary]:
        stmt = (
            select(OverSummary)
            .where(OverSummary.match_id == match_id, OverSummary.innings_number == innings_number)
            .options(selectinload(OverSummary.predictions).selectinload(OverPrediction.user))
            .order_by(OverSummary.over_number.desc())
        )
        return list(self.session.scalars(stmt).all())

    def submit_over_prediction(
        self, principal: Principal, over_summary_id: int, predicted_runs: int, predicted_wicket: bool
    ) -> OverPrediction:
        """Create or change the caller's prediction for an over"""
        if not 0 <= predicted_runs <= MAX_OVER_RUNS:
            raise DomainValidationError(f"predicted_runs must be between 0 and {MAX_OVER_RUNS}")
        if self.session.get(OverSummary, over_summary_id) is None:
            raise NotFoundError("Over summary not found")

        with unit_of_work(self.session, "submit prediction"):
            prediction = upsert_by_composite_key(
                self.session,
                OverPrediction,
                key={"user_id": principal.user_id, "over_summary_id": over_summary_id},
                values={"predicted_runs": predicted_runs, "predicted_wicket": bool(predicted_wicket)},
            )
        return prediction

    def reaction_counts(self, commentary_ids: List[int]) -> dict:
        """{commentary_id: {reaction_type: count}} for the given deliveries"""
        if not commentary_ids:
            return {}
        rows = self.session.execute(
            select(
                CommentaryReaction.commentary_id,
                CommentaryReaction.reaction_type,
                func.count(CommentaryReaction.id),
            )
            .where(CommentaryReaction.commentary_id.in_(commentary_ids))
            .group_by(CommentaryReaction.commentary_id, CommentaryReaction.reaction_type)
        ).all()
        counts = {}
        for commentary_id, reaction, count in rows:
            counts.setdefault(commentary_id, {})[reaction.value] = count
        return counts
