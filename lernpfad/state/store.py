"""
Persistence gateway for per-user state blobs.

    store = SqlStateStore(db, user_id)
    data = store.load("engagement", default)
    store.save("engagement", data)

Values are plain JSON-compatible dicts; decoding into domain values is the
caller's job. The trackers never see this module.
"""
import json
from typing import Any, Iterator

from sqlalchemy.orm import Session

from lernpfad.auth.models import User
from lernpfad.state.models import UserState


class SqlStateStore:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def _row(self, key: str):
        return self.db.query(UserState).filter(
            UserState.user_id == self.user_id,
            UserState.key == key,
        ).first()

    def load(self, key: str, default: Any = None) -> Any:
        """Stored value for *key*, or *default* when absent or unreadable."""
        row = self._row(key)
        if row is None:
            return default
        try:
            return json.loads(row.payload)
        except (TypeError, ValueError):
            print(f"[STATE] unreadable payload user={self.user_id} key='{key}', using default", flush=True)
            return default

    def save(self, key: str, value: Any, commit: bool = True) -> None:
        """Upsert *value*. With commit=False the write is only staged on the session."""
        payload = json.dumps(value, ensure_ascii=False)
        row = self._row(key)
        if row is None:
            row = UserState(user_id=self.user_id, key=key, payload=payload)
            self.db.add(row)
        else:
            row.payload = payload
        if commit:
            self.db.commit()
        else:
            self.db.flush()

    def delete(self, key: str) -> bool:
        row = self._row(key)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True


def iter_states(db: Session, key: str) -> Iterator[tuple[User, Any]]:
    """All users' values for *key* (unreadable payloads skipped)."""
    rows = (
        db.query(User, UserState)
        .join(UserState, UserState.user_id == User.id)
        .filter(UserState.key == key)
        .order_by(User.id.asc())
        .all()
    )
    for user, row in rows:
        try:
            yield user, json.loads(row.payload)
        except (TypeError, ValueError):
            print(f"[STATE] skipping unreadable payload user={user.id} key='{key}'", flush=True)
