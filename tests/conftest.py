import os

# Must be set before the app (and security/db modules) are imported.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_DEBUG_ROUTES"] = "1"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from lernpfad.core.clock import week_start  # noqa: E402
from lernpfad.core.deps import get_clock  # noqa: E402
from lernpfad.core.security import create_access_token  # noqa: E402
from lernpfad.db.base import Base, SessionLocal  # noqa: E402
from lernpfad.main import app  # noqa: E402
from lernpfad.vuca.curriculum import VucaDimension, VucaModule  # noqa: E402


class FixedClock:
    """Clock stand-in; tests move time by assigning .day."""

    def __init__(self, day: str):
        self.day = day

    def today(self) -> str:
        return self.day

    def week_start(self) -> str:
        return week_start(self.day)


@pytest.fixture
def clock():
    fixed = FixedClock("2026-02-19")
    app.dependency_overrides[get_clock] = lambda: fixed
    yield fixed
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture(autouse=True)
def clean_db():
    yield
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(subject: str = "learner-1", name: str = "Mia") -> dict:
    token = create_access_token({"sub": subject, "name": name})
    return {"Authorization": f"Bearer {token}"}


def make_modules() -> list[VucaModule]:
    """Two modules per dimension: v1 v2 u1 u2 c1 c2 a1 a2."""
    modules = []
    order = 0
    for dim in VucaDimension:
        for n in (1, 2):
            order += 1
            modules.append(VucaModule(
                id=f"{dim.value.lower()}{n}",
                category=dim,
                title=f"{dim.value} module {n}",
                order=order,
            ))
    return modules
