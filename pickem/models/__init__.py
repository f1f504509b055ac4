from pickem import db  # noqa: F401 - imported for model imports

from .admin_action import AdminAction
from .game import Game
from .league import League
from .league_member import LeagueMember
from .leaderboard_entry import SeasonLeaderboardEntry
from .user_pick import UserPick
from .week import Week
from .week_score import WeekScore

__all__ = [
    "League",
    "LeagueMember",
    "Week",
    "Game",
    "UserPick",
    "WeekScore",
    "SeasonLeaderboardEntry",
    "AdminAction",
]
