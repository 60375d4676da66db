"""
Team Generator - seeds the catalogue of teams and series matches are played between
"""
from datetime import datetime
from sqlalchemy.orm import Session

from cricbook.models.team import Team, TeamType, Series
from cricbook.repository import find_or_create_by_name


CATALOGUE_TEAMS = [
    {"name": "India", "short_name": "IND", "country": "India", "team_type": TeamType.NATIONAL},
    {"name": "Australia", "short_name": "AUS", "country": "Australia", "team_type": TeamType.NATIONAL},
    {"name": "England", "short_name": "ENG", "country": "England", "team_type": TeamType.NATIONAL},
    {"name": "Pakistan", "short_name": "PAK", "country": "Pakistan", "team_type": TeamType.NATIONAL},
    {"name": "South Africa", "short_name": "SA", "country": "South Africa", "team_type": TeamType.NATIONAL},
    {"name": "New Zealand", "short_name": "NZ", "country": "New Zealand", "team_type": TeamType.NATIONAL},
    {"name": "Mumbai Indians", "short_name": "MI", "country": "India", "team_type": TeamType.FRANCHISE},
    {"name": "Chennai Super Kings", "short_name": "CSK", "country": "India", "team_type": TeamType.FRANCHISE},
]

CATALOGUE_SERIES = [
    {
        "name": "Border-Gavaskar Trophy 2023",
        "start_date": datetime(2023, 11, 9),
        "end_date": datetime(2023, 12, 19),
        "format": "test",
    },
    {
        "name": "IPL 2024",
        "start_date": datetime(2024, 3, 22),
        "end_date": datetime(2024, 5, 26),
        "format": "t20",
    },
    {
        "name": "World Cup 2023",
        "start_date": datetime(2023, 10, 5),
        "end_date": datetime(2023, 11, 19),
        "format": "odi",
    },
]


class TeamGenerator:
    """Seeds teams and series; safe to run repeatedly"""

    @classmethod
    def seed_teams(cls, session: Session) -> list[Team]:
        """
        Ensure every catalogue team exists.

        Args:
            session: Open session; the caller commits

        Returns:
            The Team rows, existing or newly created
        """
        teams = []
        for team_data in CATALOGUE_TEAMS:
            data = dict(team_data)
            name = data.pop("name")
            teams.append(find_or_create_by_name(session, Team, name, **data))
        return teams

    @classmethod
    def seed_series(cls, session: Session) -> list[Series]:
        series = []
        for series_data in CATALOGUE_SERIES:
            data = dict(series_data)
            name = data.pop("name")
            series.append(find_or_create_by_name(session, Series, name, **data))
        return series
