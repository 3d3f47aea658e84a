"""
API routes for the VUCA station.

The curriculum and course content come from the external generator; these
routes only move the persisted station state through its views.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from lernpfad.core.clock import Clock
from lernpfad.core.config import VUCA_STATE_KEY
from lernpfad.core.deps import get_clock, get_gamification_config, get_state_store
from lernpfad.engagement.levels import GamificationConfig, XPAction
from lernpfad.engagement.service import record_action
from lernpfad.state.store import SqlStateStore
from lernpfad.vuca.curriculum import (
    CourseContent,
    VucaCurriculum,
    VucaStationState,
    VucaView,
    attach_course,
    begin_curriculum,
    close_module,
    complete_module,
    create_initial_vuca_state,
    get_gegensatz_suggestion,
    get_module_by_id,
    open_module,
    receive_curriculum,
)

router = APIRouter(prefix="/api/vuca", tags=["vuca"])


class GoalRequest(BaseModel):
    goal: str


class CurriculumRequest(BaseModel):
    goal: str = ""
    modules: list[dict[str, Any]]


def load_vuca(store: SqlStateStore) -> VucaStationState:
    data = store.load(VUCA_STATE_KEY)
    if data is None:
        return create_initial_vuca_state()
    return VucaStationState.from_dict(data)


def save_vuca(store: SqlStateStore, state: VucaStationState, commit: bool = True) -> None:
    store.save(VUCA_STATE_KEY, state.to_dict(), commit=commit)


def _transition(store: SqlStateStore, before: VucaStationState, after: VucaStationState, event: str) -> dict:
    if after != before:
        save_vuca(store, after)
        print(f"[VUCA] user={store.user_id} {event}: {before.view.value} -> {after.view.value}", flush=True)
    else:
        print(f"[VUCA] user={store.user_id} {event}: ignored in view={before.view.value}", flush=True)
    return after.to_dict()


@router.get("")
def get_vuca_state(store: SqlStateStore = Depends(get_state_store)):
    return load_vuca(store).to_dict()


@router.delete("")
def reset_vuca_state(store: SqlStateStore = Depends(get_state_store)):
    """Discard the current curriculum (e.g. after archiving a completed one)."""
    store.delete(VUCA_STATE_KEY)
    print(f"[VUCA] user={store.user_id} state reset", flush=True)
    return create_initial_vuca_state().to_dict()


@router.post("/goal")
def set_goal(body: GoalRequest, store: SqlStateStore = Depends(get_state_store)):
    goal = body.goal.strip()
    if not goal:
        raise HTTPException(status_code=400, detail="Goal must not be empty")
    state = load_vuca(store)
    return _transition(store, state, begin_curriculum(state, goal), "goal")


@router.put("/curriculum")
def put_curriculum(body: CurriculumRequest, store: SqlStateStore = Depends(get_state_store)):
    try:
        curriculum = VucaCurriculum.from_dict(body.model_dump())
    except (KeyError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid curriculum: {exc}")
    state = load_vuca(store)
    return _transition(store, state, receive_curriculum(state, curriculum), "curriculum")


@router.get("/modules/{module_id}")
def get_module(module_id: str, store: SqlStateStore = Depends(get_state_store)):
    module = get_module_by_id(load_vuca(store), module_id)
    if module is None:
        raise HTTPException(status_code=404, detail="Module not found")
    return module.to_dict()


@router.post("/modules/{module_id}/open")
def open_vuca_module(module_id: str, store: SqlStateStore = Depends(get_state_store)):
    state = load_vuca(store)
    if get_module_by_id(state, module_id) is None:
        raise HTTPException(status_code=404, detail="Module not found")
    return _transition(store, state, open_module(state, module_id), f"open {module_id}")


@router.post("/course")
def put_course(body: dict[str, Any], store: SqlStateStore = Depends(get_state_store)):
    try:
        course = CourseContent.from_dict(body)
    except (KeyError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid course content: {exc}")
    state = load_vuca(store)
    return _transition(store, state, attach_course(state, course), f"course {course.module_id}")


@router.post("/close")
def close_vuca_module(store: SqlStateStore = Depends(get_state_store)):
    state = load_vuca(store)
    return _transition(store, state, close_module(state), "close")


@router.post("/modules/{module_id}/complete")
def complete_vuca_module(
    module_id: str,
    store: SqlStateStore = Depends(get_state_store),
    clock: Clock = Depends(get_clock),
    config: GamificationConfig = Depends(get_gamification_config),
):
    """
    Complete a module, award XP for it and suggest the contrast module from
    the opposite dimension.
    """
    state = load_vuca(store)
    module = get_module_by_id(state, module_id)
    if module is None:
        raise HTTPException(status_code=404, detail="Module not found")

    already_done = module.completed
    updated = complete_module(state, module_id)

    # Module state and XP are committed together or not at all
    engagement = None
    try:
        if updated != state:
            save_vuca(store, updated, commit=False)
        if not already_done:
            engagement = record_action(
                store, XPAction.VUCA_MODULE_COMPLETE, clock.today(), config, commit=False
            ).to_dict()
        store.db.commit()
    except Exception as e:
        store.db.rollback()
        print(f"[VUCA] user={store.user_id} complete {module_id} rolled back: {e}", flush=True)
        raise
    print(f"[VUCA] user={store.user_id} complete {module_id}: "
          f"{state.view.value} -> {updated.view.value}", flush=True)

    suggestion: Optional[dict] = None
    if updated.view is not VucaView.COMPLETE:
        found = get_gegensatz_suggestion(updated.curriculum.modules, module_id)
        suggestion = found.to_dict() if found else None

    return {"state": updated.to_dict(), "suggestion": suggestion, "engagement": engagement}
