from cricbook.engine.scoring import compute_scores, MatchScores, BallEvent
from cricbook.engine.commentary_engine import CommentaryEngine
from cricbook.engine.match_engine import MatchEngine
from cricbook.engine.social_engine import SocialEngine
from cricbook.engine.feed_engine import FeedEngine

__all__ = [
    "compute_scores",
    "MatchScores",
    "BallEvent",
    "CommentaryEngine",
    "MatchEngine",
    "SocialEngine",
    "FeedEngine",
]
