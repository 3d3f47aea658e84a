"""
Engagement tracker: XP, levels, daily streaks and the weekly XP window.

Core rules:
  - award_xp is a pure function of (state, action, today, config)
  - streak: same day -> untouched, next day -> +1, exactly one missed day
    with a freeze -> +1 and the freeze is spent, otherwise halve and restart
  - a streak of 7+ grants one freeze token
  - weekly XP resets whenever the Monday-anchored week changes
  - first action of a day pays the daily bonus once
  - level/title are always re-derived from total XP
"""
from dataclasses import dataclass, replace
from typing import Optional, Union

from lernpfad.core.clock import days_between, week_start
from lernpfad.engagement.levels import DEFAULT_CONFIG, GamificationConfig, XPAction

FREEZE_STREAK = 7  # streak length that earns a freeze token
FREEZE_GAP = 2     # the only gap a freeze can bridge (one missed day)


@dataclass(frozen=True)
class EngagementState:
    total_xp: int = 0
    weekly_xp: int = 0
    week_start_date: str = ""
    current_streak: int = 0
    longest_streak: int = 0
    last_active_date: str = ""
    streak_freeze_available: bool = False
    level: int = 1
    level_title: str = DEFAULT_CONFIG.levels[0].title

    def to_dict(self) -> dict:
        return {
            "totalXP": self.total_xp,
            "weeklyXP": self.weekly_xp,
            "weekStartDate": self.week_start_date,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "lastActiveDate": self.last_active_date,
            "streakFreezeAvailable": self.streak_freeze_available,
            "level": self.level,
            "levelTitle": self.level_title,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict], config: GamificationConfig = DEFAULT_CONFIG) -> "EngagementState":
        """
        Decode a persisted blob. Missing keys fall back to the fresh value and
        level/title are re-derived, so stale or hand-edited blobs self-correct.
        """
        data = data or {}
        total_xp = max(0, int(data.get("totalXP") or 0))
        current = max(0, int(data.get("currentStreak") or 0))
        level, title = compute_level(total_xp, config)
        return cls(
            total_xp=total_xp,
            weekly_xp=max(0, int(data.get("weeklyXP") or 0)),
            week_start_date=str(data.get("weekStartDate") or ""),
            current_streak=current,
            longest_streak=max(current, int(data.get("longestStreak") or 0)),
            last_active_date=str(data.get("lastActiveDate") or ""),
            streak_freeze_available=bool(data.get("streakFreezeAvailable", False)),
            level=level,
            level_title=title,
        )


@dataclass(frozen=True)
class XPProgress:
    current: int
    next: int
    progress: float

    def to_dict(self) -> dict:
        return {"current": self.current, "next": self.next, "progress": self.progress}


def create_initial_engagement(config: GamificationConfig = DEFAULT_CONFIG) -> EngagementState:
    first = config.levels[0]
    return EngagementState(level=first.level, level_title=first.title)


# ---------------------------------------------------------------------------
# LEVELS
# ---------------------------------------------------------------------------

def compute_level(total_xp: int, config: GamificationConfig = DEFAULT_CONFIG) -> tuple[int, str]:
    """Level with the greatest threshold <= total_xp."""
    result = config.levels[0]
    for definition in config.levels:
        if total_xp >= definition.xp_required:
            result = definition
    return result.level, result.title


def get_xp_for_next_level(total_xp: int, config: GamificationConfig = DEFAULT_CONFIG) -> XPProgress:
    """
    Thresholds around total_xp and the 0..1 progress between them.
    At the max level next == current and progress is exactly 1.
    """
    level, _ = compute_level(total_xp, config)
    index = next(i for i, d in enumerate(config.levels) if d.level == level)
    current = config.levels[index].xp_required
    if index + 1 >= len(config.levels):
        return XPProgress(current=current, next=current, progress=1.0)

    nxt = config.levels[index + 1].xp_required
    span = nxt - current
    progress = (total_xp - current) / span if span > 0 else 1.0
    return XPProgress(current=current, next=nxt, progress=min(max(progress, 0.0), 1.0))


# ---------------------------------------------------------------------------
# STREAK
# ---------------------------------------------------------------------------

def _advance(state: EngagementState, today: str, freeze: bool) -> EngagementState:
    streak = state.current_streak + 1
    return replace(
        state,
        current_streak=streak,
        longest_streak=max(state.longest_streak, streak),
        last_active_date=today,
        streak_freeze_available=freeze,
    )


def update_streak(state: EngagementState, today: str) -> EngagementState:
    gap = days_between(state.last_active_date, today)

    if gap == 0:
        return state

    if gap == 1:
        streak = state.current_streak + 1
        freeze = state.streak_freeze_available or streak >= FREEZE_STREAK
        return _advance(state, today, freeze)

    if gap is not None and gap > 1:
        if gap == FREEZE_GAP and state.streak_freeze_available:
            return _advance(state, today, False)
        # Missed day(s): halve instead of zeroing, +1 for today
        halved = state.current_streak // 2
        return replace(
            state,
            current_streak=halved + 1 if halved > 0 else 1,
            last_active_date=today,
            streak_freeze_available=False,
        )

    # First ever activity (no previous date) or a date in the future
    return replace(
        state,
        current_streak=1,
        longest_streak=max(state.longest_streak, 1),
        last_active_date=today,
    )


def reset_weekly_if_needed(state: EngagementState, today: str) -> EngagementState:
    monday = week_start(today)
    if state.week_start_date != monday:
        return replace(state, weekly_xp=0, week_start_date=monday)
    return state


# ---------------------------------------------------------------------------
# AWARD
# ---------------------------------------------------------------------------

def award_xp(
    state: EngagementState,
    action: Union[XPAction, str],
    today: str,
    config: GamificationConfig = DEFAULT_CONFIG,
) -> EngagementState:
    """
    Apply one XP action performed on *today* (YYYY-MM-DD) and return the
    complete next state. The input state is never modified.
    """
    action = XPAction(action)
    is_first_today = state.last_active_date != today

    updated = update_streak(state, today)
    updated = reset_weekly_if_needed(updated, today)

    gained = config.action_reward(action)
    if is_first_today:
        gained += config.daily_bonus

    total_xp = updated.total_xp + gained
    level, title = compute_level(total_xp, config)
    return replace(
        updated,
        total_xp=total_xp,
        weekly_xp=updated.weekly_xp + gained,
        level=level,
        level_title=title,
    )
