"""
Ball-by-ball commentary and the reactions/comments hanging off it.

A Commentary row is one delivery: the append-only log the match scores are
derived from.
"""
from typing import Optional, List
from sqlalchemy import String, Integer, ForeignKey, Enum, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
import enum
from cricbook.database import Base


class ReactionType(enum.Enum):
    BAT = "bat"
    BALL = "ball"
    WOW = "wow"
    CLAP = "clap"
    MINDBLOWN = "mindblown"
    FIRE = "fire"


class Commentary(Base):
    __tablename__ = "commentaries"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id", ondelete="CASCADE"), index=True)
    match: Mapped["Match"] = relationship("Match", back_populates="commentaries")

    innings_number: Mapped[int] = mapped_column(Integer)  # 1 or 2
    over_number: Mapped[int] = mapped_column(Integer)  # 0-based
    ball_number: Mapped[int] = mapped_column(Integer)  # 1-6, legal deliveries only

    # Outcome; extras are already included in runs
    runs: Mapped[int] = mapped_column(Integer, default=0)
    is_wicket: Mapped[bool] = mapped_column(default=False)
    wicket_type: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    is_extra: Mapped[bool] = mapped_column(default=False)
    extra_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_boundary: Mapped[bool] = mapped_column(default=False)
    is_six: Mapped[bool] = mapped_column(default=False)

    description: Mapped[str] = mapped_column(Text)
    batsman_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bowler_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    reactions: Mapped[List["CommentaryReaction"]] = relationship(
        "CommentaryReaction", back_populates="commentary", cascade="all, delete-orphan"
    )
    comments: Mapped[List["CommentaryComment"]] = relationship(
        "CommentaryComment", back_populates="commentary", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Ball {self.innings_number}:{self.over_number}.{self.ball_number}: {self.runs} runs>"


class CommentaryReaction(Base):
    __tablename__ = "commentary_reactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    commentary_id: Mapped[int] = mapped_column(ForeignKey("commentaries.id", ondelete="CASCADE"))
    commentary: Mapped["Commentary"] = relationship("Commentary", back_populates="reactions")
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    reaction_type: Mapped[ReactionType] = mapped_column(Enum(ReactionType))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'commentary_id', 'reaction_type', name='unique_commentary_reaction'),
    )


class CommentaryComment(Base):
    __tablename__ = "commentary_comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    commentary_id: Mapped[int] = mapped_column(ForeignKey("commentaries.id", ondelete="CASCADE"))
    commentary: Mapped["Commentary"] = relationship("Commentary", back_populates="comments")
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    user: Mapped["User"] = relationship("User")
    content: Mapped[str] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    reactions: Mapped[List["CommentaryCommentReaction"]] = relationship(
        "CommentaryCommentReaction", back_populates="comment", cascade="all, delete-orphan"
    )


class CommentaryCommentReaction(Base):
    __tablename__ = "commentary_comment_reactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    comment_id: Mapped[int] = mapped_column(ForeignKey("commentary_comments.id", ondelete="CASCADE"))
    comment: Mapped["CommentaryComment"] = relationship("CommentaryComment", back_populates="reactions")
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    reaction_type: Mapped[ReactionType] = mapped_column(Enum(ReactionType))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'comment_id', 'reaction_type', name='unique_comment_reaction'),
    )
