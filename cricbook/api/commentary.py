"""
Ball-by-ball commentary API routes, plus reactions, comments and over predictions
"""
import json
from collections import Counter
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cricbook.database import get_db
from cricbook.auth.principal import Principal
from cricbook.auth.utils import get_current_principal, require_admin
from cricbook.engine.commentary_engine import CommentaryEngine
from cricbook.engine.match_engine import MatchEngine
from cricbook.engine.scoring import MatchScores
from cricbook.models.commentary import Commentary, CommentaryComment
from cricbook.models.match import OverSummary
from cricbook.api.schemas import (
    UserBrief, BallCreate, BallUpdate, BallResultResponse, ScoresResponse, CommentaryResponse,
    CommentaryCommentResponse, CommentaryCommentCreate, ReactionRequest, OverSummaryCreate,
    OverSummaryResponse, OverPredictionRequest, OverPredictionResponse,
)

router = APIRouter(tags=["commentary"])


def _reaction_tally(reactions) -> dict:
    return dict(Counter(r.reaction_type.value for r in reactions))


def _comment_response(comment: CommentaryComment) -> CommentaryCommentResponse:
    return CommentaryCommentResponse(
        id=comment.id,
        content=comment.content,
        user=UserBrief.model_validate(comment.user),
        created_at=comment.created_at,
        reactions=_reaction_tally(comment.reactions),
    )


def _commentary_response(commentary: Commentary, with_comments: bool = True) -> CommentaryResponse:
    return CommentaryResponse(
        id=commentary.id,
        match_id=commentary.match_id,
        innings_number=commentary.innings_number,
        over_number=commentary.over_number,
        ball_number=commentary.ball_number,
        runs=commentary.runs,
        is_wicket=commentary.is_wicket,
        wicket_type=commentary.wicket_type,
        is_extra=commentary.is_extra,
        extra_type=commentary.extra_type,
        is_boundary=commentary.is_boundary,
        is_six=commentary.is_six,
        description=commentary.description,
        batsman_name=commentary.batsman_name,
        bowler_name=commentary.bowler_name,
        created_at=commentary.created_at,
        reactions=_reaction_tally(commentary.reactions),
        comments=[_comment_response(c) for c in commentary.comments] if with_comments else [],
    )


def _scores_response(scores: MatchScores) -> ScoresResponse:
    return ScoresResponse(**scores.as_dict())


def _stored_scores(match) -> ScoresResponse:
    return ScoresResponse(
        home_score=match.home_score,
        away_score=match.away_score,
        current_innings=match.current_innings,
        current_over=match.current_over,
    )


def _over_response(summary: OverSummary) -> OverSummaryResponse:
    return OverSummaryResponse(
        id=summary.id,
        match_id=summary.match_id,
        innings_number=summary.innings_number,
        over_number=summary.over_number,
        balls=json.loads(summary.balls) if summary.balls else [],
        total_runs=summary.total_runs,
        wickets=summary.wickets,
        extras=summary.extras,
        bowler_name=summary.bowler_name,
        predictions=[OverPredictionResponse.model_validate(p) for p in summary.predictions],
    )


# ==================== BALL-BY-BALL LOG ====================

@router.get("/matches/{match_id}/commentary", response_model=List[CommentaryResponse])
def list_commentary(
    match_id: int,
    innings: Optional[int] = Query(None, ge=1, le=2),
    db: Session = Depends(get_db),
):
    """Deliveries newest first"""
    MatchEngine(db).get_match(match_id)
    balls = CommentaryEngine(db).list_commentary(match_id, innings)
    return [_commentary_response(c) for c in balls]


@router.post(
    "/matches/{match_id}/commentary",
    response_model=BallResultResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_ball(
    match_id: int,
    request: BallCreate,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Record a delivery. The response carries the match scoreline re-derived
    from the whole log, including this ball.
    """
    commentary = CommentaryEngine(db).add_ball(principal, match_id, request.model_dump())
    match = MatchEngine(db).get_match(match_id)
    return BallResultResponse(
        commentary=_commentary_response(commentary, with_comments=False),
        scores=_stored_scores(match),
    )


@router.patch("/matches/{match_id}/commentary/{commentary_id}", response_model=BallResultResponse)
def update_ball(
    match_id: int,
    commentary_id: int,
    request: BallUpdate,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    engine = CommentaryEngine(db)
    commentary = engine.update_ball(principal, match_id, commentary_id, request.model_dump(exclude_unset=True))
    match = MatchEngine(db).get_match(match_id)
    return BallResultResponse(
        commentary=_commentary_response(commentary, with_comments=False),
        scores=_stored_scores(match),
    )


@router.delete("/matches/{match_id}/commentary/{commentary_id}", response_model=BallResultResponse)
def delete_ball(
    match_id: int,
    commentary_id: int,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    scores = CommentaryEngine(db).delete_ball(principal, match_id, commentary_id)
    return BallResultResponse(scores=_scores_response(scores))


# ==================== REACTIONS & COMMENTS ====================

@router.post("/commentary/{commentary_id}/reactions")
def toggle_commentary_reaction(
    commentary_id: int,
    request: ReactionRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    engine = CommentaryEngine(db)
    added = engine.toggle_commentary_reaction(principal, commentary_id, request.reaction_type)
    return {
        "added": added,
        "reactions": engine.reaction_counts([commentary_id]).get(commentary_id, {}),
    }


@router.post(
    "/commentary/{commentary_id}/comments",
    response_model=CommentaryCommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_commentary_comment(
    commentary_id: int,
    request: CommentaryCommentCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    comment = CommentaryEngine(db).add_commentary_comment(principal, commentary_id, request.content)
    return _comment_response(comment)


@router.post("/commentary/comments/{comment_id}/reactions")
def toggle_comment_reaction(
    comment_id: int,
    request: ReactionRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    added = CommentaryEngine(db).toggle_comment_reaction(principal, comment_id, request.reaction_type)
    return {"added": added}


# ==================== OVER SUMMARIES & PREDICTIONS ====================

@router.get("/matches/{match_id}/overs", response_model=List[OverSummaryResponse])
def list_over_summaries(
    match_id: int,
    innings: int = Query(1, ge=1, le=2),
    db: Session = Depends(get_db),
):
    return [_over_response(s) for s in CommentaryEngine(db).list_over_summaries(match_id, innings)]


@router.put("/matches/{match_id}/overs", response_model=OverSummaryResponse)
def add_over_summary(
    match_id: int,
    request: OverSummaryCreate,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create or replace the summary for one over"""
    summary = CommentaryEngine(db).add_over_summary(principal, match_id, request.model_dump())
    return _over_response(summary)


@router.post("/overs/{over_summary_id}/predictions", response_model=OverPredictionResponse)
def submit_over_prediction(
    over_summary_id: int,
    request: OverPredictionRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    prediction = CommentaryEngine(db).submit_over_prediction(
        principal, over_summary_id, request.predicted_runs, request.predicted_wicket
    )
    return OverPredictionResponse.model_validate(prediction)
