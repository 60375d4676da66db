"""
Pydantic schemas for API request/response models
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from cricbook.models.user import UserRole, NotificationType
from cricbook.models.team import TeamType
from cricbook.models.match import MatchStatus, MatchType, MatchFormat
from cricbook.models.commentary import ReactionType


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_page(cls, page) -> "Pagination":
        return cls(
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
            has_next=page.has_next,
            has_prev=page.has_prev,
        )


# User Schemas
class UserBrief(BaseModel):
    id: int
    username: str
    name: str
    avatar: Optional[str] = None
    is_verified: bool = False

    class Config:
        from_attributes = True


class UserResponse(UserBrief):
    role: UserRole
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    favorite_team: Optional[str] = None
    favorite_player: Optional[str] = None
    created_at: datetime


class ProfileResponse(UserResponse):
    followers_count: int
    following_count: int
    posts_count: int
    is_following: bool = False


class UserListResponse(BaseModel):
    data: List[UserBrief]
    pagination: Pagination


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    bio: Optional[str] = Field(None, max_length=160)
    location: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = None
    avatar: Optional[str] = None
    favorite_team: Optional[str] = None
    favorite_player: Optional[str] = None


# Auth Schemas
class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    username: str = Field(..., min_length=3, max_length=20, pattern=r"^[a-zA-Z0-9_]+$")
    password: str = Field(..., min_length=6, max_length=100)
    confirm_password: str


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UsernameAvailability(BaseModel):
    username: str
    available: bool


# Notification Schemas
class NotificationResponse(BaseModel):
    id: int
    type: NotificationType
    sender: Optional[UserBrief] = None
    post_id: Optional[int] = None
    match_id: Optional[int] = None
    message: Optional[str] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    data: List[NotificationResponse]
    pagination: Pagination
    unread: int


class MarkReadRequest(BaseModel):
    notification_ids: Optional[List[int]] = None  # None marks everything read


# Post Schemas
class PollCreate(BaseModel):
    options: List[str] = Field(..., min_length=2, max_length=4)
    expires_in: int = Field(..., ge=1, le=7)  # days


class PostCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=500)
    images: Optional[List[str]] = Field(None, max_length=4)
    match_id: Optional[int] = None
    poll: Optional[PollCreate] = None


class PollOptionResponse(BaseModel):
    id: int
    text: str
    votes: int = 0


class PollResponse(BaseModel):
    id: int
    expires_at: datetime
    is_expired: bool
    total_votes: int
    options: List[PollOptionResponse]


class OriginalPostBrief(BaseModel):
    id: int
    content: str
    author: UserBrief
    created_at: datetime

    class Config:
        from_attributes = True


class PostResponse(BaseModel):
    id: int
    content: str
    images: List[str] = []
    author: UserBrief
    match_id: Optional[int] = None
    is_repost: bool
    original_post: Optional[OriginalPostBrief] = None
    hashtags: List[str] = []
    created_at: datetime
    like_count: int = 0
    comment_count: int = 0
    repost_count: int = 0
    is_liked: bool = False
    is_bookmarked: bool = False
    is_reposted: bool = False
    poll: Optional[PollResponse] = None


class PostListResponse(BaseModel):
    data: List[PostResponse]
    pagination: Pagination


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=300)
    parent_id: Optional[int] = None


class CommentResponse(BaseModel):
    id: int
    content: str
    post_id: int
    parent_id: Optional[int] = None
    author: UserBrief
    created_at: datetime

    class Config:
        from_attributes = True


class HashtagTrend(BaseModel):
    name: str
    posts: int


# Team Schemas
class TeamResponse(BaseModel):
    id: int
    name: str
    short_name: str
    logo: Optional[str] = None
    country: Optional[str] = None
    team_type: TeamType

    class Config:
        from_attributes = True


class SeriesResponse(BaseModel):
    id: int
    name: str
    start_date: datetime
    end_date: datetime
    format: str

    class Config:
        from_attributes = True


# Match Schemas
class MatchCreate(BaseModel):
    match_type: MatchType
    format: MatchFormat
    venue: str = Field(..., min_length=1)
    city: Optional[str] = None
    country: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    home_team_id: int
    away_team_id: int
    series_id: Optional[int] = None
    weather: Optional[str] = None
    pitch: Optional[str] = None


class MatchUpdate(BaseModel):
    status: Optional[MatchStatus] = None
    venue: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    weather: Optional[str] = None
    pitch: Optional[str] = None
    toss_winner_id: Optional[int] = None
    toss_decision: Optional[str] = Field(None, pattern=r"^(bat|bowl)$")
    winner_id: Optional[int] = None
    result: Optional[str] = None
    end_date: Optional[datetime] = None


class MatchResponse(BaseModel):
    id: int
    match_type: MatchType
    format: MatchFormat
    venue: str
    city: Optional[str] = None
    country: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    status: MatchStatus
    home_team: TeamResponse
    away_team: TeamResponse
    winner: Optional[TeamResponse] = None
    toss_winner_id: Optional[int] = None
    toss_decision: Optional[str] = None
    home_score: Optional[str] = None
    away_score: Optional[str] = None
    current_innings: Optional[int] = None
    current_over: Optional[float] = None
    result: Optional[str] = None
    series: Optional[SeriesResponse] = None
    weather: Optional[str] = None
    pitch: Optional[str] = None

    class Config:
        from_attributes = True


class MatchListResponse(BaseModel):
    data: List[MatchResponse]
    pagination: Pagination


class PredictionRequest(BaseModel):
    team_id: int


class PredictionShare(BaseModel):
    team_id: int
    count: int
    percentage: int


class MatchSummaryRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)


class MatchSummaryResponse(BaseModel):
    id: int
    match_id: int
    title: str
    content: str
    author_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Commentary Schemas
class BallCreate(BaseModel):
    innings_number: int = Field(1, ge=1, le=2)
    over_number: int = Field(..., ge=0)
    ball_number: int = Field(..., ge=1, le=6)
    runs: int = Field(0, ge=0)
    is_wicket: bool = False
    wicket_type: Optional[str] = None
    is_extra: bool = False
    extra_type: Optional[str] = None
    is_boundary: bool = False
    is_six: bool = False
    description: str = Field(..., min_length=1)
    batsman_name: Optional[str] = None
    bowler_name: Optional[str] = None


class BallUpdate(BaseModel):
    innings_number: Optional[int] = Field(None, ge=1, le=2)
    over_number: Optional[int] = Field(None, ge=0)
    ball_number: Optional[int] = Field(None, ge=1, le=6)
    runs: Optional[int] = Field(None, ge=0)
    is_wicket: Optional[bool] = None
    wicket_type: Optional[str] = None
    is_extra: Optional[bool] = None
    extra_type: Optional[str] = None
    is_boundary: Optional[bool] = None
    is_six: Optional[bool] = None
    description: Optional[str] = Field(None, min_length=1)
    batsman_name: Optional[str] = None
    bowler_name: Optional[str] = None


class ScoresResponse(BaseModel):
    home_score: Optional[str] = None
    away_score: Optional[str] = None
    current_innings: Optional[int] = None
    current_over: Optional[float] = None


class CommentaryCommentResponse(BaseModel):
    id: int
    content: str
    user: UserBrief
    created_at: datetime
    reactions: Dict[str, int] = {}


class CommentaryResponse(BaseModel):
    id: int
    match_id: int
    innings_number: int
    over_number: int
    ball_number: int
    runs: int
    is_wicket: bool
    wicket_type: Optional[str] = None
    is_extra: bool
    extra_type: Optional[str] = None
    is_boundary: bool
    is_six: bool
    description: str
    batsman_name: Optional[str] = None
    bowler_name: Optional[str] = None
    created_at: datetime
    reactions: Dict[str, int] = {}
    comments: List[CommentaryCommentResponse] = []


class BallResultResponse(BaseModel):
    """A changed delivery together with the match scoreline it produced"""
    commentary: Optional[CommentaryResponse] = None
    scores: ScoresResponse


class ReactionRequest(BaseModel):
    reaction_type: ReactionType


class CommentaryCommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=500)


class OverSummaryCreate(BaseModel):
    innings_number: int = Field(..., ge=1, le=2)
    over_number: int = Field(..., ge=0)
    balls: List[str] = []
    total_runs: int = Field(0, ge=0)
    wickets: int = Field(0, ge=0)
    extras: int = Field(0, ge=0)
    bowler_name: Optional[str] = None


class OverPredictionRequest(BaseModel):
    predicted_runs: int = Field(..., ge=0, le=36)
    predicted_wicket: bool = False


class OverPredictionResponse(BaseModel):
    id: int
    over_summary_id: int
    user_id: int
    predicted_runs: int
    predicted_wicket: bool
    is_correct_runs: Optional[bool] = None
    is_correct_wicket: Optional[bool] = None

    class Config:
        from_attributes = True


class OverSummaryResponse(BaseModel):
    id: int
    match_id: int
    innings_number: int
    over_number: int
    balls: List[str]
    total_runs: int
    wickets: int
    extras: int
    bowler_name: Optional[str] = None
    predictions: List[OverPredictionResponse] = []
