"""
Glue between the engagement tracker and the persistence gateway.
Load -> pure transform -> save. The only place engagement state is written.
"""
from sqlalchemy.orm import Session

from lernpfad.core.config import ENGAGEMENT_KEY
from lernpfad.engagement.leaderboard import LeaderboardRow
from lernpfad.engagement.levels import GamificationConfig, XPAction
from lernpfad.engagement.tracker import (
    EngagementState,
    award_xp,
    create_initial_engagement,
)
from lernpfad.state.store import SqlStateStore, iter_states


def load_engagement(store: SqlStateStore, config: GamificationConfig) -> EngagementState:
    data = store.load(ENGAGEMENT_KEY)
    if data is None:
        return create_initial_engagement(config)
    return EngagementState.from_dict(data, config)


def save_engagement(store: SqlStateStore, state: EngagementState, commit: bool = True) -> None:
    store.save(ENGAGEMENT_KEY, state.to_dict(), commit=commit)


def record_action(
    store: SqlStateStore,
    action: XPAction,
    today: str,
    config: GamificationConfig,
    commit: bool = True,
) -> EngagementState:
    """Award *action*. Pass commit=False to commit together with other staged writes."""
    before = load_engagement(store, config)
    after = award_xp(before, action, today, config)
    save_engagement(store, after, commit=commit)

    print(f"[ENGAGEMENT] user={store.user_id} action={action.value} "
          f"xp +{after.total_xp - before.total_xp} total={after.total_xp} "
          f"streak={after.current_streak} freeze={after.streak_freeze_available}", flush=True)
    if after.level != before.level:
        print(f"[LEVEL-UP] user={store.user_id} {before.level} -> {after.level} "
              f"'{after.level_title}'", flush=True)
    return after


def leaderboard_rows(db: Session, config: GamificationConfig) -> list[LeaderboardRow]:
    return [
        LeaderboardRow(
            user_id=user.id,
            display_name=user.display_name or f"user-{user.id}",
            state=EngagementState.from_dict(data, config),
        )
        for user, data in iter_states(db, ENGAGEMENT_KEY)
    ]
