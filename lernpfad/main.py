from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from lernpfad.core.config import APP_TIMEZONE, debug_routes_enabled
from lernpfad.core.deps import get_gamification_config
from lernpfad.db.base import Base, engine, log_db_diagnostics
from lernpfad.auth.models import User  # noqa: F401  (create_all picks it up)
from lernpfad.state.models import UserState  # noqa: F401

from lernpfad.engagement.routes import router as engagement_router
from lernpfad.vuca.routes import router as vuca_router
from lernpfad.web.debug_routes import router as debug_router


app = FastAPI(title="Lernpfad", version="0.1.0")

log_db_diagnostics()

# Create database tables (still useful in dev; in production prefer Alembic)
Base.metadata.create_all(bind=engine)

# Fail at startup on a broken level/reward table, not on the first request
get_gamification_config()
print(f"[CLOCK] today is evaluated in timezone={APP_TIMEZONE}", flush=True)

# Only expose debug routes (including diagnostics) when explicitly enabled.
if debug_routes_enabled():
    app.include_router(debug_router)

# Include routers
app.include_router(engagement_router)
app.include_router(vuca_router)


@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/docs")


@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok"}
