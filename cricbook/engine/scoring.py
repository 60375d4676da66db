"""
Score derivation - rebuilds a match's live scoreline from its ball-by-ball log.

The match row carries denormalised `home_score`, `away_score`,
`current_innings` and `current_over` fields. They are never edited directly:
after every change to the commentary log they are recomputed here from the
full set of deliveries.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Tuple

INNINGS_PER_MATCH = (1, 2)

TOSS_BAT = "bat"
TOSS_BOWL = "bowl"


class TossInfo(Protocol):
    home_team_id: int
    away_team_id: int
    toss_winner_id: Optional[int]
    toss_decision: Optional[str]


class Delivery(Protocol):
    innings_number: int
    over_number: int
    ball_number: int
    runs: int
    is_wicket: bool


@dataclass(frozen=True)
class BallEvent:
    """Plain delivery record, interchangeable with a Commentary row"""
    innings_number: int
    over_number: int
    ball_number: int
    runs: int = 0
    is_wicket: bool = False


@dataclass
class InningsTally:
    """Running aggregate for one innings"""
    batting_team_id: Optional[int]
    runs: int = 0
    wickets: int = 0
    last_over: int = 0
    last_ball: int = 0

    @property
    def has_balls(self) -> bool:
        return self.last_ball > 0

    @property
    def score(self) -> str:
        return f"{self.runs}/{self.wickets}"

    @property
    def overs_display(self) -> float:
        # 45.4 = over 45, ball 4. Display encoding, not a true over count.
        return round(self.last_over + self.last_ball / 10, 1)

    def add(self, event: Delivery):
        # Extras are already folded into runs when the ball is recorded
        self.runs += event.runs or 0
        if event.is_wicket:
            self.wickets += 1
        position = (event.over_number or 0, event.ball_number or 0)
        if position > (self.last_over, self.last_ball):
            self.last_over, self.last_ball = position


@dataclass(frozen=True)
class MatchScores:
    home_score: Optional[str] = None
    away_score: Optional[str] = None
    current_innings: Optional[int] = None
    current_over: Optional[float] = None

    def as_dict(self) -> dict:
        return {
            "home_score": self.home_score,
            "away_score": self.away_score,
            "current_innings": self.current_innings,
            "current_over": self.current_over,
        }


def batting_order(match: Optional[TossInfo]) -> Tuple[Optional[int], Optional[int]]:
    """
    Resolve which team bats in innings 1 and 2.

    The toss winner bats first when they chose to bat and second when they
    chose to bowl. Without a toss result the home team is assumed to bat
    first.
    """
    if match is None:
        return None, None

    home_id, away_id = match.home_team_id, match.away_team_id
    winner_id, decision = match.toss_winner_id, match.toss_decision

    if winner_id is not None and decision:
        other_id = away_id if winner_id == home_id else home_id
        if decision == TOSS_BAT:
            return winner_id, other_id
        return other_id, winner_id

    return home_id, away_id


def compute_scores(match: Optional[TossInfo], events: Iterable[Delivery]) -> MatchScores:
    """
    Fold the full delivery log of a match into its live scoreline.

    Events may arrive in any order; progress within an innings is the
    highest (over, ball) pair recorded, not the last one inserted. Over and
    ball are compared as a pair rather than maximised separately, so balls
    (0, 6) and (1, 2) put the innings at 1.2, never 1.6. Deliveries
    with an innings number other than 1 or 2 are ignored; a missing innings
    number counts as the first innings.

    Returns all-None scores when nothing has been bowled.
    """
    first_id, second_id = batting_order(match)
    tallies = {
        1: InningsTally(batting_team_id=first_id),
        2: InningsTally(batting_team_id=second_id),
    }

    seen_any = False
    for event in events:
        tally = tallies.get(event.innings_number or 1)
        if tally is None:
            continue
        tally.add(event)
        seen_any = True

    if not seen_any:
        return MatchScores()

    home_score = None
    away_score = None
    for number in INNINGS_PER_MATCH:
        tally = tallies[number]
        if match is None:
            # No fixture record: home bats first
            bats_at_home = number == 1
        else:
            bats_at_home = tally.batting_team_id == match.home_team_id
        if bats_at_home:
            home_score = tally.score
        else:
            away_score = tally.score

    current_innings = None
    current_over = None
    for number in reversed(INNINGS_PER_MATCH):
        if tallies[number].has_balls:
            current_innings = number
            current_over = tallies[number].overs_display
            break

    return MatchScores(
        home_score=home_score,
        away_score=away_score,
        current_innings=current_innings,
        current_over=current_over,
    )


def describe_result(home_name: str, away_name: str, home_score: Optional[str], away_score: Optional[str]) -> Optional[str]:
    """Simple runs-margin result line, None until both sides have a score"""
    if not home_score or not away_score:
        return None

    home_runs = int(home_score.split("/")[0])
    away_runs = int(away_score.split("/")[0])

    if home_runs > away_runs:
        return f"{home_name} won by {home_runs - away_runs} runs"
    if away_runs > home_runs:
        return f"{away_name} won by {away_runs - home_runs} runs"
    return "Match tied"
