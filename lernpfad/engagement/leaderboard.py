"""
Leaderboard ranking over stored engagement states.

Ranking is done in Python over already-decoded states so that the stale
weekly window rule applies: weekly XP from a week that is over counts as 0.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from lernpfad.engagement.tracker import EngagementState

PERIODS = ("weekly", "total")


@dataclass(frozen=True)
class LeaderboardRow:
    user_id: int
    display_name: str
    state: EngagementState


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    user_id: int
    display_name: str
    xp: int
    level: int
    level_title: str

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "userId": self.user_id,
            "displayName": self.display_name,
            "xp": self.xp,
            "level": self.level,
            "levelTitle": self.level_title,
        }


def xp_for_period(state: EngagementState, period: str, current_week: str) -> int:
    if period == "weekly":
        return state.weekly_xp if state.week_start_date == current_week else 0
    return state.total_xp


def build_leaderboard(
    rows: Iterable[LeaderboardRow], period: str, limit: int, current_week: str
) -> list[LeaderboardEntry]:
    """Top *limit* users by XP for *period*; ties ordered by user id."""
    if period not in PERIODS:
        raise ValueError(f"unknown leaderboard period: {period}")
    scored = sorted(
        ((xp_for_period(r.state, period, current_week), r) for r in rows),
        key=lambda pair: (-pair[0], pair[1].user_id),
    )
    return [
        LeaderboardEntry(
            rank=i + 1,
            user_id=row.user_id,
            display_name=row.display_name,
            xp=xp,
            level=row.state.level,
            level_title=row.state.level_title,
        )
        for i, (xp, row) in enumerate(scored[:max(limit, 0)])
    ]


def user_rank(
    rows: Iterable[LeaderboardRow], user_id: int, period: str, current_week: str
) -> Optional[int]:
    """1 + number of users with strictly more XP. None if the user has no state."""
    rows = list(rows)
    mine = next((r for r in rows if r.user_id == user_id), None)
    if mine is None:
        return None
    my_xp = xp_for_period(mine.state, period, current_week)
    return 1 + sum(1 for r in rows if xp_for_period(r.state, period, current_week) > my_xp)
