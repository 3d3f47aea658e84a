"""
API routes for XP, streaks, levels and the leaderboard.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from lernpfad.auth.models import User
from lernpfad.core.clock import Clock
from lernpfad.core.deps import get_clock, get_current_user, get_gamification_config, get_state_store
from lernpfad.db.session import get_db
from lernpfad.engagement.leaderboard import PERIODS, build_leaderboard, user_rank
from lernpfad.engagement.levels import GamificationConfig, XPAction
from lernpfad.engagement.service import leaderboard_rows, load_engagement, record_action
from lernpfad.engagement.tracker import EngagementState, get_xp_for_next_level
from lernpfad.state.store import SqlStateStore

router = APIRouter(prefix="/api/engagement", tags=["engagement"])


class AwardRequest(BaseModel):
    action: str


def engagement_payload(state: EngagementState, config: GamificationConfig) -> dict:
    return {
        **state.to_dict(),
        "nextLevel": get_xp_for_next_level(state.total_xp, config).to_dict(),
    }


@router.get("")
def get_engagement(
    store: SqlStateStore = Depends(get_state_store),
    config: GamificationConfig = Depends(get_gamification_config),
):
    """Current engagement state plus progress towards the next level."""
    return engagement_payload(load_engagement(store, config), config)


@router.post("/award")
def award(
    body: AwardRequest,
    store: SqlStateStore = Depends(get_state_store),
    clock: Clock = Depends(get_clock),
    config: GamificationConfig = Depends(get_gamification_config),
):
    try:
        action = XPAction(body.action)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown XP action: {body.action}")

    state = record_action(store, action, clock.today(), config)
    return engagement_payload(state, config)


@router.get("/leaderboard")
def leaderboard(
    period: str = Query("weekly"),
    limit: int = Query(20, ge=0, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    config: GamificationConfig = Depends(get_gamification_config),
):
    if period not in PERIODS:
        raise HTTPException(status_code=400, detail=f"period must be one of {', '.join(PERIODS)}")

    rows = leaderboard_rows(db, config)
    current_week = clock.week_start()
    entries = build_leaderboard(rows, period, limit, current_week)
    return {
        "period": period,
        "rankings": [e.to_dict() for e in entries],
        "userRank": user_rank(rows, user.id, period, current_week),
    }
