from cricbook.models.user import User, UserRole, Follow, Notification, NotificationType
from cricbook.models.team import Team, TeamType, Series
from cricbook.models.match import (
    Match, MatchStatus, MatchType, MatchFormat,
    MatchPrediction, MatchSummary, OverSummary, OverPrediction,
)
from cricbook.models.commentary import (
    Commentary, CommentaryReaction, CommentaryComment, CommentaryCommentReaction, ReactionType,
)
from cricbook.models.post import (
    Post, Comment, Like, Bookmark, Hashtag, PostHashtag, Poll, PollOption, PollVote,
)

__all__ = [
    "User",
    "UserRole",
    "Follow",
    "Notification",
    "NotificationType",
    "Team",
    "TeamType",
    "Series",
    "Match",
    "MatchStatus",
    "MatchType",
    "MatchFormat",
    "MatchPrediction",
    "MatchSummary",
    "OverSummary",
    "OverPrediction",
    "Commentary",
    "CommentaryReaction",
    "CommentaryComment",
    "CommentaryCommentReaction",
    "ReactionType",
    "Post",
    "Comment",
    "Like",
    "Bookmark",
    "Hashtag",
    "PostHashtag",
    "Poll",
    "PollOption",
    "PollVote",
]
