from datetime import datetime, timezone
from functools import lru_cache

from fastapi import Request, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lernpfad.auth.models import User
from lernpfad.core.clock import Clock
from lernpfad.core.config import APP_TIMEZONE, GAMIFICATION_CONFIG_FILE
from lernpfad.core.security import decode_access_token
from lernpfad.db.session import get_db
from lernpfad.engagement.levels import GamificationConfig, load_config
from lernpfad.state.store import SqlStateStore


def _extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()

    token = request.cookies.get("access_token")
    # Support both "Bearer <token>" and raw token values in the cookie.
    if isinstance(token, str) and token.lower().startswith("bearer "):
        token = token[7:].strip()
    return token


def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User:
    token = _extract_token(request)
    if not token:
        print(f"[AUTH] reject reason=missing_token path={request.url.path}", flush=True)
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = decode_access_token(token)
    if not payload:
        print(f"[AUTH] reject reason=invalid_token path={request.url.path}", flush=True)
        raise HTTPException(status_code=401, detail="Invalid token")

    subject = payload.get("sub")
    if not subject:
        print(f"[AUTH] reject reason=no_subject_in_token path={request.url.path}", flush=True)
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = db.query(User).filter(User.external_id == str(subject)).first()
    if not user:
        user = User(external_id=str(subject), display_name=str(payload.get("name") or ""))
        db.add(user)
        db.commit()
        db.refresh(user)
        print(f"[AUTH] first sight of subject, created user id={user.id}", flush=True)

    # Update last_active timestamp
    try:
        user.last_active = datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError:
        db.rollback()

    return user


def get_state_store(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> SqlStateStore:
    return SqlStateStore(db, user.id)


@lru_cache(maxsize=1)
def get_clock() -> Clock:
    return Clock(APP_TIMEZONE)


@lru_cache(maxsize=1)
def get_gamification_config() -> GamificationConfig:
    config = load_config(GAMIFICATION_CONFIG_FILE)
    source = GAMIFICATION_CONFIG_FILE or "built-in tables"
    print(f"[CONFIG] gamification tables from {source}: levels={len(config.levels)}", flush=True)
    return config
