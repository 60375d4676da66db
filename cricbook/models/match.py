from typing import Optional, List
from sqlalchemy import String, Integer, ForeignKey, Enum, DateTime, Text, Float, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
import enum
from cricbook.database import Base


class MatchStatus(enum.Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class MatchType(enum.Enum):
    TEST = "test"
    ODI = "odi"
    T20 = "t20"
    T10 = "t10"


class MatchFormat(enum.Enum):
    INTERNATIONAL = "international"
    DOMESTIC = "domestic"
    LEAGUE = "league"


class Match(Base):
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True)

    match_type: Mapped[MatchType] = mapped_column(Enum(MatchType))
    format: Mapped[MatchFormat] = mapped_column(Enum(MatchFormat))

    # Venue
    venue: Mapped[str] = mapped_column(String(100))
    city: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    weather: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    pitch: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    start_date: Mapped[datetime] = mapped_column(DateTime)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status: Mapped[MatchStatus] = mapped_column(Enum(MatchStatus), default=MatchStatus.UPCOMING, index=True)

    # Teams
    home_team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"))
    away_team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"))
    home_team: Mapped["Team"] = relationship("Team", foreign_keys=[home_team_id])
    away_team: Mapped["Team"] = relationship("Team", foreign_keys=[away_team_id])

    # Toss
    toss_winner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)
    toss_decision: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)  # "bat" or "bowl"

    # Derived from the commentary log, never edited directly
    home_score: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # "runs/wickets"
    away_score: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    current_innings: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    current_over: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # 45.4 = over 45, ball 4

    # Result
    winner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)
    winner: Mapped[Optional["Team"]] = relationship("Team", foreign_keys=[winner_id])
    result: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    series_id: Mapped[Optional[int]] = mapped_column(ForeignKey("series.id"), nullable=True)
    series: Mapped[Optional["Series"]] = relationship("Series")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    commentaries: Mapped[List["Commentary"]] = relationship(
        "Commentary", back_populates="match", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Match {self.home_team_id} vs {self.away_team_id} ({self.status.value})>"


class MatchPrediction(Base):
    """A user's pick for the match winner"""
    __tablename__ = "match_predictions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id", ondelete="CASCADE"))
    predicted_team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'match_id', name='unique_match_prediction'),
    )


class MatchSummary(Base):
    __tablename__ = "match_summaries"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id", ondelete="CASCADE"), unique=True)
    title: Mapped[str] = mapped_column(String(200))
    content: Mapped[str] = mapped_column(Text)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class OverSummary(Base):
    __tablename__ = "over_summaries"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id", ondelete="CASCADE"))
    innings_number: Mapped[int] = mapped_column(Integer)
    over_number: Mapped[int] = mapped_column(Integer)
    balls: Mapped[str] = mapped_column(Text)  # JSON list, e.g. ["1", "4", "W", "0", "1wd", "6"]
    total_runs: Mapped[int] = mapped_column(Integer, default=0)
    wickets: Mapped[int] = mapped_column(Integer, default=0)
    extras: Mapped[int] = mapped_column(Integer, default=0)
    bowler_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    predictions: Mapped[List["OverPrediction"]] = relationship(
        "OverPrediction", back_populates="over_summary", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint('match_id', 'innings_number', 'over_number', name='unique_over_summary'),
    )

    def __repr__(self):
        return f"<Over {self.innings_number}/{self.over_number}: {self.total_runs}-{self.wickets}>"


class OverPrediction(Base):
    __tablename__ = "over_predictions"

    id: Mapped[int] = mapped_column(primary_key=True)
    over_summary_id: Mapped[int] = mapped_column(ForeignKey("over_summaries.id", ondelete="CASCADE"))
    over_summary: Mapped["OverSummary"] = relationship("OverSummary", back_populates="predictions")
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    user: Mapped["User"] = relationship("User")
    predicted_runs: Mapped[int] = mapped_column(Integer)
    predicted_wicket: Mapped[bool] = mapped_column(default=False)
    is_correct_runs: Mapped[Optional[bool]] = mapped_column(nullable=True)
    is_correct_wicket: Mapped[Optional[bool]] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'over_summary_id', name='unique_over_prediction'),
    )
