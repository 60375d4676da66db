"""
Feed API routes - posts, interactions, comments, polls and hashtags
"""
import json
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cricbook.database import get_db
from cricbook.auth.principal import Principal
from cricbook.auth.utils import get_current_principal, get_optional_principal
from cricbook.engine.feed_engine import FeedEngine, PostView, PollView
from cricbook.api.schemas import (
    Pagination, UserBrief, PostCreate, PostResponse, PostListResponse, OriginalPostBrief,
    PollResponse, PollOptionResponse, CommentCreate, CommentResponse, HashtagTrend,
)

router = APIRouter(prefix="/posts", tags=["posts"])


def _poll_response(view: PollView) -> PollResponse:
    return PollResponse(
        id=view.poll.id,
        expires_at=view.poll.expires_at,
        is_expired=view.poll.is_expired,
        total_votes=view.total_votes,
        options=[
            PollOptionResponse(id=opt.id, text=opt.text, votes=view.votes.get(opt.id, 0))
            for opt in view.poll.options
        ],
    )


def _post_response(view: PostView) -> PostResponse:
    post = view.post
    original = None
    if post.original_post is not None:
        original = OriginalPostBrief.model_validate(post.original_post)
    return PostResponse(
        id=post.id,
        content=post.content,
        images=json.loads(post.images) if post.images else [],
        author=UserBrief.model_validate(post.author),
        match_id=post.match_id,
        is_repost=post.is_repost,
        original_post=original,
        hashtags=view.hashtags,
        created_at=post.created_at,
        like_count=view.like_count,
        comment_count=view.comment_count,
        repost_count=view.repost_count,
        is_liked=view.is_liked,
        is_bookmarked=view.is_bookmarked,
        is_reposted=view.is_reposted,
        poll=_poll_response(view.poll) if view.poll else None,
    )


def _post_list(page) -> PostListResponse:
    return PostListResponse(
        data=[_post_response(v) for v in page.items],
        pagination=Pagination.from_page(page),
    )


@router.get("", response_model=PostListResponse)
def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    author_id: Optional[int] = None,
    match_id: Optional[int] = None,
    hashtag: Optional[str] = None,
    viewer: Optional[Principal] = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    """
    The feed, newest first. Optionally filtered to one author, one match or one hashtag.
    """
    result = FeedEngine(db).list_posts(viewer, page, limit, author_id, match_id, hashtag)
    return _post_list(result)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    request: PostCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    engine = FeedEngine(db)
    post = engine.create_post(
        principal,
        content=request.content,
        images=request.images,
        match_id=request.match_id,
        poll=request.poll.model_dump() if request.poll else None,
    )
    return _post_response(engine.build_views([post], principal)[0])


@router.get("/bookmarks", response_model=PostListResponse)
def list_bookmarks(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return _post_list(FeedEngine(db).bookmarks(principal, page, limit))


@router.get("/trending", response_model=List[HashtagTrend])
def trending_hashtags(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    return [HashtagTrend(**row) for row in FeedEngine(db).trending_hashtags(limit)]


@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    FeedEngine(db).delete_post(principal, post_id)
    return {"message": "Post deleted"}


@router.post("/{post_id}/like")
def toggle_like(
    post_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return {"liked": FeedEngine(db).toggle_like(principal, post_id)}


@router.post("/{post_id}/bookmark")
def toggle_bookmark(
    post_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return {"bookmarked": FeedEngine(db).toggle_bookmark(principal, post_id)}


@router.post("/{post_id}/repost")
def toggle_repost(
    post_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Repost, or undo the caller's earlier repost"""
    repost = FeedEngine(db).toggle_repost(principal, post_id)
    return {"reposted": repost is not None, "repost_id": repost.id if repost else None}


@router.get("/{post_id}/comments", response_model=List[CommentResponse])
def list_comments(post_id: int, db: Session = Depends(get_db)):
    return [CommentResponse.model_validate(c) for c in FeedEngine(db).list_comments(post_id)]


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_comment(
    post_id: int,
    request: CommentCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    comment = FeedEngine(db).add_comment(principal, post_id, request.content, request.parent_id)
    return CommentResponse.model_validate(comment)


@router.post("/polls/options/{option_id}/vote")
def vote_poll(
    option_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    vote = FeedEngine(db).vote_poll(principal, option_id)
    return {"poll_id": vote.poll_id, "option_id": vote.option_id}
