from typing import Optional, List
from sqlalchemy import String, Integer, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from cricbook.database import Base


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(primary_key=True)
    content: Mapped[str] = mapped_column(String(500))
    images: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON list of URLs
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    author: Mapped["User"] = relationship("User", back_populates="posts", foreign_keys=[author_id])
    match_id: Mapped[Optional[int]] = mapped_column(ForeignKey("matches.id", ondelete="SET NULL"), nullable=True)
    match: Mapped[Optional["Match"]] = relationship("Match")

    # Reposts copy the content and point at the original
    is_repost: Mapped[bool] = mapped_column(default=False)
    original_post_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=True, index=True
    )
    original_post: Mapped[Optional["Post"]] = relationship("Post", remote_side=[id], back_populates="reposts")
    reposts: Mapped[List["Post"]] = relationship("Post", back_populates="original_post", cascade="all, delete-orphan")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    comments: Mapped[List["Comment"]] = relationship("Comment", back_populates="post", cascade="all, delete-orphan")
    likes: Mapped[List["Like"]] = relationship("Like", cascade="all, delete-orphan")
    bookmarks: Mapped[List["Bookmark"]] = relationship("Bookmark", back_populates="post", cascade="all, delete-orphan")
    hashtags: Mapped[List["PostHashtag"]] = relationship("PostHashtag", cascade="all, delete-orphan")
    poll: Mapped[Optional["Poll"]] = relationship("Poll", back_populates="post", uselist=False, cascade="all, delete-orphan")

    # One repost per user per original; NULL original_post_id never collides
    __table_args__ = (
        UniqueConstraint('author_id', 'original_post_id', name='unique_repost'),
    )

    def __repr__(self):
        return f"<Post {self.id} by {self.author_id}>"


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    content: Mapped[str] = mapped_column(String(300))
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"), index=True)
    post: Mapped["Post"] = relationship("Post", back_populates="comments")
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    author: Mapped["User"] = relationship("User")
    parent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Like(Base):
    __tablename__ = "likes"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'post_id', name='unique_like'),
    )


class Bookmark(Base):
    __tablename__ = "bookmarks"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"))
    post: Mapped["Post"] = relationship("Post", back_populates="bookmarks")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'post_id', name='unique_bookmark'),
    )


class Hashtag(Base):
    __tablename__ = "hashtags"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Hashtag #{self.name}>"


class PostHashtag(Base):
    __tablename__ = "post_hashtags"

    id: Mapped[int] = mapped_column(primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"))
    hashtag_id: Mapped[int] = mapped_column(ForeignKey("hashtags.id", ondelete="CASCADE"))
    hashtag: Mapped["Hashtag"] = relationship("Hashtag")

    __table_args__ = (
        UniqueConstraint('post_id', 'hashtag_id', name='unique_post_hashtag'),
    )


class Poll(Base):
    __tablename__ = "polls"

    id: Mapped[int] = mapped_column(primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"), unique=True)
    post: Mapped["Post"] = relationship("Post", back_populates="poll")
    expires_at: Mapped[datetime] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    options: Mapped[List["PollOption"]] = relationship(
        "PollOption", back_populates="poll", cascade="all, delete-orphan", order_by="PollOption.id"
    )

    @property
    def is_expired(self) -> bool:
        return datetime.utcnow() > self.expires_at


class PollOption(Base):
    __tablename__ = "poll_options"

    id: Mapped[int] = mapped_column(primary_key=True)
    poll_id: Mapped[int] = mapped_column(ForeignKey("polls.id", ondelete="CASCADE"))
    poll: Mapped["Poll"] = relationship("Poll", back_populates="options")
    text: Mapped[str] = mapped_column(String(50))

    votes: Mapped[List["PollVote"]] = relationship("PollVote", back_populates="option", cascade="all, delete-orphan")


class PollVote(Base):
    __tablename__ = "poll_votes"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    poll_id: Mapped[int] = mapped_column(ForeignKey("polls.id", ondelete="CASCADE"))
    option_id: Mapped[int] = mapped_column(ForeignKey("poll_options.id", ondelete="CASCADE"))
    option: Mapped["PollOption"] = relationship("PollOption", back_populates="votes")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # One vote per user per poll
    __table_args__ = (
        UniqueConstraint('user_id', 'poll_id', name='unique_poll_vote'),
    )
