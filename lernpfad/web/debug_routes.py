"""
Operator-only inspection routes. Mounted only when ENABLE_DEBUG_ROUTES=1.
"""
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from lernpfad.auth.models import User
from lernpfad.core.clock import Clock
from lernpfad.core.deps import get_clock, get_gamification_config
from lernpfad.db.base import engine
from lernpfad.db.session import get_db
from lernpfad.engagement.levels import GamificationConfig
from lernpfad.state.models import UserState
from lernpfad.state.store import SqlStateStore

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/users")
def debug_users(db: Session = Depends(get_db)):
    keys_by_user: dict[int, list[str]] = {}
    for user_id, key in db.query(UserState.user_id, UserState.key):
        keys_by_user.setdefault(user_id, []).append(key)

    return [
        {
            "id": u.id,
            "external_id": u.external_id,
            "display_name": u.display_name,
            "state_keys": sorted(keys_by_user.get(u.id, [])),
            "created_at": str(u.created_at or ""),
        }
        for u in db.query(User).order_by(User.id.asc())
    ]


@router.get("/users/{user_id}/state/{key}")
def debug_user_state(user_id: int, key: str, db: Session = Depends(get_db)):
    """Raw stored blob, exactly as the client would receive it."""
    if db.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    data = SqlStateStore(db, user_id).load(key)
    if data is None:
        raise HTTPException(status_code=404, detail=f"No '{key}' state for user {user_id}")
    return data


@router.get("/gamification")
def debug_gamification(
    clock: Clock = Depends(get_clock),
    config: GamificationConfig = Depends(get_gamification_config),
):
    return {
        "today": clock.today(),
        "weekStart": clock.week_start(),
        "levels": [
            {"level": d.level, "title": d.title, "xpRequired": d.xp_required}
            for d in config.levels
        ],
        "rewards": {action.value: xp for action, xp in config.rewards.items()},
    }


@router.get("/diagnostics/db")
def db_diagnostics(db: Session = Depends(get_db)):
    """Backend, location and row counts. The password never leaves the URL object."""
    url = engine.url
    info = {
        "backend": url.get_backend_name(),
        "url": url.render_as_string(hide_password=True),
        "users": db.query(func.count(User.id)).scalar(),
        "states": dict(db.query(UserState.key, func.count(UserState.id)).group_by(UserState.key).all()),
    }

    if info["backend"] != "sqlite":
        info.update(database=url.database, host=url.host, port=url.port, drivername=url.drivername)
        return info

    if not url.database or url.database == ":memory:":
        info.update(sqlite_path=":memory:", sqlite_exists=False, sqlite_size_bytes=0)
        return info

    path = Path(url.database).resolve()
    exists = path.exists()
    info.update(
        sqlite_path=str(path),
        sqlite_exists=exists,
        sqlite_size_bytes=path.stat().st_size if exists else 0,
    )
    return info
