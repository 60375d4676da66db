"""
Social Engine - accounts, profiles, follows and notifications
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select, func, or_, update
from sqlalchemy.orm import Session

from cricbook.auth.principal import Principal
from cricbook.auth.utils import hash_password, verify_password
from cricbook.engine.errors import (
    NotFoundError, PermissionDenied, ConflictError, DomainValidationError,
)
from cricbook.engine.pagination import Page, paginate
from cricbook.engine.unit_of_work import unit_of_work
from cricbook.models.post import Post
from cricbook.models.user import User, UserRole, Follow, Notification, NotificationType

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


@dataclass
class ProfileView:
    """A user's public profile as seen by a particular viewer"""
    user: User
    followers_count: int
    following_count: int
    posts_count: int
    is_following: bool = False


def create_notification(
    session: Session,
    type: NotificationType,
    recipient_id: int,
    sender_id: Optional[int] = None,
    post_id: Optional[int] = None,
    match_id: Optional[int] = None,
    message: Optional[str] = None,
) -> Optional[Notification]:
    """Queue a notification in the current transaction. Nobody is notified of their own actions."""
    if sender_id is not None and sender_id == recipient_id:
        return None
    notification = Notification(
        type=type,
        recipient_id=recipient_id,
        sender_id=sender_id,
        post_id=post_id,
        match_id=match_id,
        message=message,
    )
    session.add(notification)
    return notification


def validate_registration(name: str, username: str, password: str, confirm_password: str) -> List[str]:
    errors = []
    if len((name or "").strip()) < 2:
        errors.append("Name must be at least 2 characters")
    if not USERNAME_PATTERN.match(username or ""):
        errors.append("Username must be 3-20 characters: letters, numbers and underscores only")
    if not 6 <= len(password or "") <= 100:
        errors.append("Password must be between 6 and 100 characters")
    if password != confirm_password:
        errors.append("Passwords do not match")
    return errors


class SocialEngine:
    def __init__(self, session: Session):
        self.session = session

    # ==================== ACCOUNTS ====================

    def username_available(self, username: str) -> bool:
        return self._find_by_username(username) is None

    def _find_by_username(self, username: str) -> Optional[User]:
        return self.session.scalars(select(User).where(User.username == username)).first()

    def register(self, name: str, username: str, password: str, confirm_password: str) -> User:
        errors = validate_registration(name, username, password, confirm_password)
        if errors:
            raise DomainValidationError("; ".join(errors))
        return self._create_user(username, password, name.strip(), UserRole.USER)

    def create_admin(self, username: str, password: str, name: str) -> User:
        errors = validate_registration(name, username, password, password)
        if errors:
            raise DomainValidationError("; ".join(errors))
        return self._create_user(username, password, name.strip(), UserRole.ADMIN, is_verified=True)

    def _create_user(self, username: str, password: str, name: str, role: UserRole, is_verified: bool = False) -> User:
        if not self.username_available(username):
            raise ConflictError("Username already taken")

        with unit_of_work(self.session, "create account"):
            user = User(
                username=username,
                name=name,
                password_hash=hash_password(password),
                role=role,
                is_verified=is_verified,
            )
            self.session.add(user)

        logger.info("Registered %s account '%s'", role.value, username)
        return user

    def authenticate(self, username: str, password: str, admin: bool = False) -> User:
        """
        Check credentials for the user or the admin login.

        Admins must use the admin login and regular users the user login.
        """
        if not username or not password:
            raise DomainValidationError("Please enter username and password")

        user = self._find_by_username(username)
        invalid = "Invalid credentials" if admin else "Invalid username or password"
        if user is None or not user.password_hash:
            raise PermissionDenied(invalid)

        if admin and not user.is_admin:
            raise PermissionDenied("Access denied. Admin credentials required.")
        if not admin and user.is_admin:
            raise PermissionDenied("Please use the admin login page")

        if not verify_password(password, user.password_hash):
            logger.info("Failed login for '%s'", username)
            raise PermissionDenied(invalid)
        return user

    # ==================== PROFILES ====================

    def get_user(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def get_profile(self, username: str, viewer: Optional[Principal] = None) -> ProfileView:
        user = self._find_by_username(username)
        if user is None:
            raise NotFoundError("User not found")

        is_following = False
        if viewer is not None and viewer.user_id != user.id:
            is_following = self._find_follow(viewer.user_id, user.id) is not None

        return ProfileView(
            user=user,
            followers_count=self._count(Follow, Follow.following_id == user.id),
            following_count=self._count(Follow, Follow.follower_id == user.id),
            posts_count=self._count(Post, Post.author_id == user.id),
            is_following=is_following,
        )

    def _count(self, model, *criteria) -> int:
        return self.session.scalar(select(func.count(model.id)).where(*criteria)) or 0

    def update_profile(self, principal: Principal, data: dict) -> User:
        errors = []
        if "name" in data and data["name"] is not None and len(data["name"].strip()) < 2:
            errors.append("Name must be at least 2 characters")
        if len(data.get("bio") or "") > 160:
            errors.append("Bio must be at most 160 characters")
        if len(data.get("location") or "") > 100:
            errors.append("Location must be at most 100 characters")
        website = data.get("website")
        if website and not URL_PATTERN.match(website):
            errors.append("Please enter a valid URL")
        if errors:
            raise DomainValidationError("; ".join(errors))

        with unit_of_work(self.session, "update profile"):
            user = self.get_user(principal.user_id)
            for field in ("name", "bio", "location", "favorite_team", "favorite_player", "avatar"):
                if field in data and data[field] is not None:
                    setattr(user, field, data[field].strip() if field == "name" else data[field])
            if "website" in data:
                # Empty string clears the website
                user.website = website or None
        return user

    def search_users(self, query: Optional[str] = None, page: int = 1, limit: int = 20) -> Page:
        stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
        if query:
            pattern = f"%{query}%"
            stmt = stmt.where(or_(User.username.ilike(pattern), User.name.ilike(pattern)))
        return paginate(self.session, stmt, page, limit)

    # ==================== FOLLOWS ====================

    def _find_follow(self, follower_id: int, following_id: int) -> Optional[Follow]:
        return self.session.scalars(
            select(Follow).filter_by(follower_id=follower_id, following_id=following_id)
        ).first()

    def toggle_follow(self, principal: Principal, user_id: int) -> bool:
        """Follow, or unfollow if already following. Returns the new following state."""
        if principal.user_id == user_id:
            raise DomainValidationError("Cannot follow yourself")
        self.get_user(user_id)

        with unit_of_work(self.session, "follow user"):
            existing = self._find_follow(principal.user_id, user_id)
            if existing:
                self.session.delete(existing)
                following = False
            else:
                self.session.add(Follow(follower_id=principal.user_id, following_id=user_id))
                create_notification(
                    self.session, NotificationType.FOLLOW,
                    recipient_id=user_id, sender_id=principal.user_id,
                )
                following = True

        logger.debug("%s %s user %s", principal.username, "followed" if following else "unfollowed", user_id)
        return following

    def followers(self, user_id: int, page: int = 1, limit: int = 20) -> Page:
        stmt = (
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(Follow.following_id == user_id)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
        )
        return paginate(self.session, stmt, page, limit)

    def following(self, user_id: int, page: int = 1, limit: int = 20) -> Page:
        stmt = (
            select(User)
            .join(Follow, Follow.following_id == User.id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
        )
        return paginate(self.session, stmt, page, limit)

    # ==================== NOTIFICATIONS ====================

    def notifications(self, principal: Principal, unread_only: bool = False, page: int = 1, limit: int = 20) -> Page:
        stmt = (
            select(Notification)
            .where(Notification.recipient_id == principal.user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        result = paginate(self.session, stmt, page, limit)
        result.extra["unread"] = self._count(
            Notification,
            Notification.recipient_id == principal.user_id,
            Notification.is_read.is_(False),
        )
        return result

    def mark_notifications_read(self, principal: Principal, notification_ids: Optional[List[int]] = None) -> int:
        """Mark the given notifications (or all of them) read. Only the caller's own are touched."""
        stmt = (
            update(Notification)
            .where(Notification.recipient_id == principal.user_id)
            .values(is_read=True)
        )
        if notification_ids:
            stmt = stmt.where(Notification.id.in_(notification_ids))

        with unit_of_work(self.session, "update notifications"):
            result = self.session.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount
