from sqlalchemy import String, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
from datetime import datetime
import enum
from cricbook.database import Base


class TeamType(enum.Enum):
    NATIONAL = "national"
    FRANCHISE = "franchise"
    CLUB = "club"


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True)
    short_name: Mapped[str] = mapped_column(String(5))  # e.g., "IND", "CSK"
    logo: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    team_type: Mapped[TeamType] = mapped_column(Enum(TeamType), default=TeamType.NATIONAL)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Team {self.name} ({self.short_name})>"


class Series(Base):
    __tablename__ = "series"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(150), unique=True)
    start_date: Mapped[datetime] = mapped_column(DateTime)
    end_date: Mapped[datetime] = mapped_column(DateTime)
    format: Mapped[str] = mapped_column(String(20))  # "test", "odi", "t20"
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Series {self.name}>"
