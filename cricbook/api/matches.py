"""
Match API routes - fixtures, admin management, winner predictions and summaries
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cricbook.database import get_db
from cricbook.auth.principal import Principal
from cricbook.auth.utils import get_current_principal, require_admin
from cricbook.engine.match_engine import MatchEngine
from cricbook.api.schemas import (
    Pagination, TeamResponse, SeriesResponse, MatchCreate, MatchUpdate, MatchResponse,
    MatchListResponse, PredictionRequest, PredictionShare, MatchSummaryRequest,
    MatchSummaryResponse,
)

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("", response_model=MatchListResponse)
def list_matches(
    status: Optional[str] = None,
    format: Optional[str] = None,
    match_type: Optional[str] = None,
    team_id: Optional[int] = None,
    series_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """
    Fixtures filtered by status, format, type, team or series.
    Upcoming matches come soonest first; everything else most recent first.
    """
    result = MatchEngine(db).list_matches(status, format, match_type, team_id, series_id, page, limit)
    return MatchListResponse(
        data=[MatchResponse.model_validate(m) for m in result.items],
        pagination=Pagination.from_page(result),
    )


@router.get("/teams", response_model=List[TeamResponse])
def list_teams(db: Session = Depends(get_db)):
    return [TeamResponse.model_validate(t) for t in MatchEngine(db).list_teams()]


@router.get("/series", response_model=List[SeriesResponse])
def list_series(db: Session = Depends(get_db)):
    return [SeriesResponse.model_validate(s) for s in MatchEngine(db).list_series()]


@router.post("", response_model=MatchResponse, status_code=status.HTTP_201_CREATED)
def create_match(
    request: MatchCreate,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    engine = MatchEngine(db)
    match = engine.create_match(principal, request.model_dump())
    return MatchResponse.model_validate(engine.get_match(match.id))


@router.get("/{match_id}", response_model=MatchResponse)
def get_match(match_id: int, db: Session = Depends(get_db)):
    return MatchResponse.model_validate(MatchEngine(db).get_match(match_id))


@router.patch("/{match_id}", response_model=MatchResponse)
def update_match(
    match_id: int,
    request: MatchUpdate,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Partial update. Changing the toss re-derives the scoreline from the commentary.
    """
    engine = MatchEngine(db)
    engine.update_match(principal, match_id, request.model_dump(exclude_unset=True))
    return MatchResponse.model_validate(engine.get_match(match_id))


@router.post("/{match_id}/predictions", response_model=List[PredictionShare])
def vote_for_team(
    match_id: int,
    request: PredictionRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Record the caller's predicted winner and return the updated breakdown"""
    engine = MatchEngine(db)
    engine.vote_for_team(principal, match_id, request.team_id)
    return [PredictionShare(**row) for row in engine.prediction_breakdown(match_id)]


@router.get("/{match_id}/predictions", response_model=List[PredictionShare])
def prediction_breakdown(match_id: int, db: Session = Depends(get_db)):
    engine = MatchEngine(db)
    engine.get_match(match_id)
    return [PredictionShare(**row) for row in engine.prediction_breakdown(match_id)]


@router.get("/{match_id}/summary", response_model=Optional[MatchSummaryResponse])
def get_match_summary(match_id: int, db: Session = Depends(get_db)):
    summary = MatchEngine(db).get_match_summary(match_id)
    return MatchSummaryResponse.model_validate(summary) if summary else None


@router.put("/{match_id}/summary", response_model=MatchSummaryResponse)
def update_match_summary(
    match_id: int,
    request: MatchSummaryRequest,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    summary = MatchEngine(db).update_match_summary(principal, match_id, request.title, request.content)
    return MatchSummaryResponse.model_validate(summary)
