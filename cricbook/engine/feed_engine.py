"""
Feed Engine - posts, hashtags, likes, bookmarks, reposts, comments and polls
"""
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from cricbook.auth.principal import Principal
from cricbook.engine.errors import NotFoundError, PermissionDenied, ConflictError, DomainValidationError
from cricbook.engine.pagination import Page, paginate
from cricbook.engine.social_engine import create_notification
from cricbook.engine.unit_of_work import unit_of_work
from cricbook.models.match import Match
from cricbook.models.post import (
    Post, Comment, Like, Bookmark, Hashtag, PostHashtag, Poll, PollOption, PollVote,
)
from cricbook.models.user import NotificationType
from cricbook.repository import find_or_create_by_name

logger = logging.getLogger(__name__)

HASHTAG_PATTERN = re.compile(r"#(\w+)")

POST_MAX_LENGTH = 500
COMMENT_MAX_LENGTH = 300
MAX_IMAGES = 4
POLL_MIN_OPTIONS = 2
POLL_MAX_OPTIONS = 4
POLL_OPTION_MAX_LENGTH = 50
POLL_MAX_DAYS = 7


def extract_hashtags(text: str) -> List[str]:
    """Lower-cased hashtags in order of first appearance, without duplicates"""
    seen = []
    for tag in HASHTAG_PATTERN.findall(text or ""):
        tag = tag.lower()
        if tag not in seen:
            seen.append(tag)
    return seen


@dataclass
class PollView:
    poll: Poll
    votes: Dict[int, int]  # option_id -> votes

    @property
    def total_votes(self) -> int:
        return sum(self.votes.values())


@dataclass
class PostView:
    """A post with its engagement numbers and the viewer's own interactions"""
    post: Post
    like_count: int = 0
    comment_count: int = 0
    repost_count: int = 0
    is_liked: bool = False
    is_bookmarked: bool = False
    is_reposted: bool = False
    poll: Optional[PollView] = None
    hashtags: List[str] = field(default_factory=list)


class FeedEngine:
    def __init__(self, session: Session):
        self.session = session

    def _get_post(self, post_id: int) -> Post:
        post = self.session.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    # ==================== POSTS ====================

    def create_post(
        self,
        principal: Principal,
        content: str,
        images: Optional[List[str]] = None,
        match_id: Optional[int] = None,
        poll: Optional[dict] = None,
    ) -> Post:
        """
        Publish a post. Hashtags in the text are linked (and created on first
        use); an optional poll takes 2-4 options and expires after 1-7 days.
        """
        content = (content or "").strip()
        if not content:
            raise DomainValidationError("Post content cannot be empty")
        if len(content) > POST_MAX_LENGTH:
            raise DomainValidationError(f"Post content must be at most {POST_MAX_LENGTH} characters")
        if images and len(images) > MAX_IMAGES:
            raise DomainValidationError(f"Maximum {MAX_IMAGES} images allowed")
        if poll is not None:
            self._validate_poll(poll)
        if match_id is not None and self.session.get(Match, match_id) is None:
            raise NotFoundError("Match not found")

        with unit_of_work(self.session, "create post"):
            post = Post(
                content=content,
                images=json.dumps(images) if images else None,
                match_id=match_id,
                author_id=principal.user_id,
            )
            self.session.add(post)
            self.session.flush()

            for name in extract_hashtags(content):
                hashtag = find_or_create_by_name(self.session, Hashtag, name)
                self.session.add(PostHashtag(post_id=post.id, hashtag_id=hashtag.id))

            if poll is not None:
                self.session.add(Poll(
                    post_id=post.id,
                    expires_at=datetime.utcnow() + timedelta(days=poll["expires_in"]),
                    options=[PollOption(text=text.strip()) for text in poll["options"]],
                ))

        logger.info("Post %s created by %s", post.id, principal.username)
        return post

    def _validate_poll(self, poll: dict):
        options = poll.get("options") or []
        if not POLL_MIN_OPTIONS <= len(options) <= POLL_MAX_OPTIONS:
            raise DomainValidationError(
                f"Poll must have between {POLL_MIN_OPTIONS} and {POLL_MAX_OPTIONS} options"
            )
        for text in options:
            if not 1 <= len((text or "").strip()) <= POLL_OPTION_MAX_LENGTH:
                raise DomainValidationError(f"Poll options must be 1-{POLL_OPTION_MAX_LENGTH} characters")
        expires_in = poll.get("expires_in")
        if not isinstance(expires_in, int) or not 1 <= expires_in <= POLL_MAX_DAYS:
            raise DomainValidationError(f"Poll must expire in 1-{POLL_MAX_DAYS} days")

    def delete_post(self, principal: Principal, post_id: int):
        post = self._get_post(post_id)
        if post.author_id != principal.user_id:
            raise PermissionDenied("Unauthorized")

        with unit_of_work(self.session, "delete post"):
            self.session.delete(post)
        logger.info("Post %s deleted by %s", post_id, principal.username)

    # ==================== INTERACTIONS ====================

    def toggle_like(self, principal: Principal, post_id: int) -> bool:
        """Like, or unlike if already liked. The author is notified of new likes."""
        post = self._get_post(post_id)

        with unit_of_work(self.session, "like post"):
            existing = self.session.scalars(
                select(Like).filter_by(user_id=principal.user_id, post_id=post_id)
            ).first()
            if existing:
                self.session.delete(existing)
                liked = False
            else:
                self.session.add(Like(user_id=principal.user_id, post_id=post_id))
                create_notification(
                    self.session, NotificationType.LIKE,
                    recipient_id=post.author_id, sender_id=principal.user_id, post_id=post_id,
                )
                liked = True
        return liked

    def toggle_bookmark(self, principal: Principal, post_id: int) -> bool:
        self._get_post(post_id)

        with unit_of_work(self.session, "bookmark post"):
            existing = self.session.scalars(
                select(Bookmark).filter_by(user_id=principal.user_id, post_id=post_id)
            ).first()
            if existing:
                self.session.delete(existing)
                bookmarked = False
            else:
                self.session.add(Bookmark(user_id=principal.user_id, post_id=post_id))
                bookmarked = True
        return bookmarked

    def toggle_repost(self, principal: Principal, post_id: int) -> Optional[Post]:
        """
        Repost, or undo an earlier repost. Returns the new repost, or None
        when the repost was removed.
        """
        original = self._get_post(post_id)
        if original.is_repost and original.original_post_id:
            # Reposting a repost reposts the original
            original = self._get_post(original.original_post_id)

        with unit_of_work(self.session, "repost"):
            existing = self.session.scalars(
                select(Post).filter_by(
                    author_id=principal.user_id,
                    original_post_id=original.id,
                    is_repost=True,
                )
            ).first()
            if existing:
                self.session.delete(existing)
                repost = None
            else:
                repost = Post(
                    content=original.content,
                    author_id=principal.user_id,
                    is_repost=True,
                    original_post_id=original.id,
                )
                self.session.add(repost)
                create_notification(
                    self.session, NotificationType.REPOST,
                    recipient_id=original.author_id, sender_id=principal.user_id, post_id=original.id,
                )
        return repost

    def add_comment(self, principal: Principal, post_id: int, content: str, parent_id: Optional[int] = None) -> Comment:
        content = (content or "").strip()
        if not content:
            raise DomainValidationError("Comment cannot be empty")
        if len(content) > COMMENT_MAX_LENGTH:
            raise DomainValidationError(f"Comment must be at most {COMMENT_MAX_LENGTH} characters")
        post = self._get_post(post_id)
        if parent_id is not None:
            parent = self.session.get(Comment, parent_id)
            if parent is None or parent.post_id != post_id:
                raise NotFoundError("Parent comment not found")

        with unit_of_work(self.session, "create comment"):
            comment = Comment(
                content=content,
                post_id=post_id,
                parent_id=parent_id,
                author_id=principal.user_id,
            )
            self.session.add(comment)
            create_notification(
                self.session, NotificationType.COMMENT,
                recipient_id=post.author_id, sender_id=principal.user_id, post_id=post_id,
            )
        return comment

    def list_comments(self, post_id: int) -> List[Comment]:
        self._get_post(post_id)
        return list(self.session.scalars(
            select(Comment)
            .where(Comment.post_id == post_id)
            .options(selectinload(Comment.author))
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        ).all())

    # ==================== POLLS ====================

    def vote_poll(self, principal: Principal, option_id: int) -> PollVote:
        option = self.session.get(PollOption, option_id)
        if option is None:
            raise NotFoundError("Poll option not found")
        if option.poll.is_expired:
            raise DomainValidationError("Poll has expired")

        already_voted = self.session.scalars(
            select(PollVote).filter_by(user_id=principal.user_id, poll_id=option.poll_id)
        ).first()
        if already_voted:
            raise ConflictError("You have already voted on this poll")

        with unit_of_work(self.session, "vote"):
            vote = PollVote(user_id=principal.user_id, poll_id=option.poll_id, option_id=option_id)
            self.session.add(vote)
        return vote

    def _poll_tallies(self, poll_ids: List[int]) -> Dict[int, int]:
        if not poll_ids:
            return {}
        rows = self.session.execute(
            select(PollVote.option_id, func.count(PollVote.id))
            .where(PollVote.poll_id.in_(poll_ids))
            .group_by(PollVote.option_id)
        ).all()
        return dict(rows)

    # ==================== FEED ====================

    def list_posts(
        self,
        viewer: Optional[Principal] = None,
        page: int = 1,
        limit: int = 20,
        author_id: Optional[int] = None,
        match_id: Optional[int] = None,
        hashtag: Optional[str] = None,
    ) -> Page:
        """Newest-first feed with engagement counts and the viewer's flags"""
        stmt = select(Post).order_by(Post.created_at.desc(), Post.id.desc())
        if author_id:
            stmt = stmt.where(Post.author_id == author_id)
        if match_id:
            stmt = stmt.where(Post.match_id == match_id)
        if hashtag:
            stmt = stmt.where(
                Post.hashtags.any(PostHashtag.hashtag.has(Hashtag.name == hashtag.lstrip("#").lower()))
            )
        stmt = self._with_feed_options(stmt)

        result = paginate(self.session, stmt, page, limit)
        result.items = self.build_views(result.items, viewer)
        return result

    def bookmarks(self, principal: Principal, page: int = 1, limit: int = 20) -> Page:
        stmt = (
            select(Post)
            .join(Bookmark, Bookmark.post_id == Post.id)
            .where(Bookmark.user_id == principal.user_id)
            .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        )
        result = paginate(self.session, self._with_feed_options(stmt), page, limit)
        result.items = self.build_views(result.items, principal)
        return result

    def _with_feed_options(self, stmt):
        return stmt.options(
            selectinload(Post.author),
            selectinload(Post.original_post).selectinload(Post.author),
            selectinload(Post.hashtags).selectinload(PostHashtag.hashtag),
            selectinload(Post.poll).selectinload(Poll.options),
        )

    def build_views(self, posts: List[Post], viewer: Optional[Principal] = None) -> List[PostView]:
        """Attach counts and viewer flags to a batch of posts with a fixed number of queries"""
        if not posts:
            return []
        ids = [p.id for p in posts]

        likes = self._counts(Like.post_id, ids)
        comments = self._counts(Comment.post_id, ids)
        reposts = self._counts(Post.original_post_id, ids, Post.is_repost.is_(True))

        liked, bookmarked, reposted = set(), set(), set()
        if viewer is not None:
            liked = self._viewer_ids(Like.post_id, Like.user_id == viewer.user_id, ids)
            bookmarked = self._viewer_ids(Bookmark.post_id, Bookmark.user_id == viewer.user_id, ids)
            reposted = self._viewer_ids(
                Post.original_post_id,
                (Post.author_id == viewer.user_id) & Post.is_repost.is_(True),
                ids,
            )

        tallies = self._poll_tallies([p.poll.id for p in posts if p.poll is not None])

        views = []
        for post in posts:
            poll_view = None
            if post.poll is not None:
                poll_view = PollView(
                    poll=post.poll,
                    votes={opt.id: tallies.get(opt.id, 0) for opt in post.poll.options},
                )
            views.append(PostView(
                post=post,
                like_count=likes.get(post.id, 0),
                comment_count=comments.get(post.id, 0),
                repost_count=reposts.get(post.id, 0),
                is_liked=post.id in liked,
                is_bookmarked=post.id in bookmarked,
                is_reposted=post.id in reposted,
                poll=poll_view,
                hashtags=[ph.hashtag.name for ph in post.hashtags],
            ))
        return views

    def _counts(self, column, ids: List[int], *criteria) -> Dict[int, int]:
        rows = self.session.execute(
            select(column, func.count()).where(column.in_(ids), *criteria).group_by(column)
        ).all()
        return dict(rows)

    def _viewer_ids(self, column, criterion, ids: List[int]) -> set:
        return set(self.session.scalars(select(column).where(criterion, column.in_(ids))).all())

    def trending_hashtags(self, limit: int = 10) -> List[dict]:
        """Hashtags ordered by how many posts use them"""
        rows = self.session.execute(
            select(Hashtag.name, func.count(PostHashtag.id).label("posts"))
            .join(PostHashtag, PostHashtag.hashtag_id == Hashtag.id)
            .group_by(Hashtag.id, Hashtag.name)
            .order_by(func.count(PostHashtag.id).desc(), Hashtag.name.asc())
            .limit(limit)
        ).all()
        return [{"name": name, "posts": posts} for name, posts in rows]
