"""
Shared fixtures: an in-memory database with two teams, an admin and two fans.
"""
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cricbook.config import settings
from cricbook.database import Base, init_db
from cricbook.auth.principal import Principal
from cricbook.auth.utils import hash_password
from cricbook.models import User, UserRole, Team, TeamType, Match, MatchStatus, MatchType, MatchFormat

# Keep password hashing fast in tests
settings.BCRYPT_ROUNDS = 4


@pytest.fixture
def db_engine():
    """In-memory SQLite shared across threads (TestClient runs requests off-thread)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def test_db(db_engine):
    """Create an in-memory test database session."""
    session = Session(db_engine)
    yield session
    session.close()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine)


def _make_user(session: Session, username: str, role: UserRole = UserRole.USER) -> User:
    user = User(
        username=username,
        name=username.title(),
        password_hash=hash_password("secret123"),
        role=role,
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def admin(test_db) -> Principal:
    return Principal.from_user(_make_user(test_db, "admin", UserRole.ADMIN))


@pytest.fixture
def fan(test_db) -> Principal:
    return Principal.from_user(_make_user(test_db, "fan"))


@pytest.fixture
def other_fan(test_db) -> Principal:
    return Principal.from_user(_make_user(test_db, "other_fan"))


@pytest.fixture
def teams(test_db):
    """Create test teams (home, away)."""
    home = Team(name="India", short_name="IND", country="India", team_type=TeamType.NATIONAL)
    away = Team(name="Australia", short_name="AUS", country="Australia", team_type=TeamType.NATIONAL)
    test_db.add_all([home, away])
    test_db.commit()
    return home, away


@pytest.fixture
def match(test_db, teams) -> Match:
    """A live T20 between the two test teams, no toss recorded."""
    home, away = teams
    m = Match(
        match_type=MatchType.T20,
        format=MatchFormat.INTERNATIONAL,
        venue="Wankhede Stadium",
        city="Mumbai",
        start_date=datetime(2024, 3, 1, 14, 0),
        status=MatchStatus.LIVE,
        home_team_id=home.id,
        away_team_id=away.id,
    )
    test_db.add(m)
    test_db.commit()
    return m


def _ball(over: int, number: int, runs: int = 0, innings: int = 1, wicket: bool = False, **extra) -> dict:
    """Payload for CommentaryEngine.add_ball"""
    return {
        "innings_number": innings,
        "over_number": over,
        "ball_number": number,
        "runs": runs,
        "is_wicket": wicket,
        "description": extra.pop("description", f"{over}.{number}: {runs} run(s)"),
        **extra,
    }


@pytest.fixture
def ball():
    """Factory for delivery payloads: ball(over, number, runs=0, innings=1, wicket=False)"""
    return _ball
