"""
User profile, follow and notification API routes
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cricbook.database import get_db
from cricbook.auth.principal import Principal
from cricbook.auth.utils import get_current_principal, get_optional_principal
from cricbook.engine.social_engine import SocialEngine, ProfileView
from cricbook.api.schemas import (
    Pagination, UserBrief, UserResponse, ProfileResponse, ProfileUpdate, UserListResponse,
    NotificationResponse, NotificationListResponse, MarkReadRequest,
)

router = APIRouter(prefix="/users", tags=["users"])


def _profile_response(view: ProfileView) -> ProfileResponse:
    return ProfileResponse(
        **UserResponse.model_validate(view.user).model_dump(),
        followers_count=view.followers_count,
        following_count=view.following_count,
        posts_count=view.posts_count,
        is_following=view.is_following,
    )


def _user_list(page) -> UserListResponse:
    return UserListResponse(
        data=[UserBrief.model_validate(u) for u in page.items],
        pagination=Pagination.from_page(page),
    )


@router.get("", response_model=UserListResponse)
def search_users(
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """Search users by username or display name"""
    return _user_list(SocialEngine(db).search_users(q, page, limit))


@router.put("/me", response_model=UserResponse)
def update_profile(
    request: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    user = SocialEngine(db).update_profile(principal, request.model_dump(exclude_unset=True))
    return UserResponse.model_validate(user)


@router.get("/me/notifications", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    result = SocialEngine(db).notifications(principal, unread_only, page, limit)
    return NotificationListResponse(
        data=[NotificationResponse.model_validate(n) for n in result.items],
        pagination=Pagination.from_page(result),
        unread=result.extra["unread"],
    )


@router.post("/me/notifications/read")
def mark_notifications_read(
    request: MarkReadRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    updated = SocialEngine(db).mark_notifications_read(principal, request.notification_ids)
    return {"updated": updated}


@router.get("/{username}", response_model=ProfileResponse)
def get_profile(
    username: str,
    viewer: Optional[Principal] = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    return _profile_response(SocialEngine(db).get_profile(username, viewer))


@router.post("/{user_id}/follow")
def toggle_follow(
    user_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Follow the user, or unfollow if already following"""
    following = SocialEngine(db).toggle_follow(principal, user_id)
    return {"following": following}


@router.get("/{user_id}/followers", response_model=UserListResponse)
def list_followers(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
):
    engine = SocialEngine(db)
    engine.get_user(user_id)
    return _user_list(engine.followers(user_id, page, limit))


@router.get("/{user_id}/following", response_model=UserListResponse)
def list_following(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
):
    engine = SocialEngine(db)
    engine.get_user(user_id)
    return _user_list(engine.following(user_id, page, limit))
