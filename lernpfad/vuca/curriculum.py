"""
VUCA curriculum progress tracker.

Tracks completion of externally generated learning modules across the four
VUCA dimensions (Volatility, Uncertainty, Complexity, Ambiguity) and drives
the station view:

    onboarding -> loading-curriculum -> dashboard <-> course -> dashboard | complete

All functions take a VucaStationState and return a new one. Operations that
do not apply to the current state return it unchanged.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Union

VUCA_THRESHOLD = 25


class VucaDimension(str, Enum):
    V = "V"
    U = "U"
    C = "C"
    A = "A"


VUCA_LABELS = {
    VucaDimension.V: "Volatility",
    VucaDimension.U: "Uncertainty",
    VucaDimension.C: "Complexity",
    VucaDimension.A: "Ambiguity",
}

_OPPOSITES = {
    VucaDimension.V: VucaDimension.A,
    VucaDimension.A: VucaDimension.V,
    VucaDimension.U: VucaDimension.C,
    VucaDimension.C: VucaDimension.U,
}


class VucaView(str, Enum):
    ONBOARDING = "onboarding"
    LOADING_CURRICULUM = "loading-curriculum"
    DASHBOARD = "dashboard"
    COURSE = "course"
    COMPLETE = "complete"


# ---------------------------------------------------------------------------
# VALUES
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VucaModule:
    id: str
    category: VucaDimension
    title: str = ""
    description: str = ""
    order: int = 0
    completed: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", VucaDimension(self.category))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "order": self.order,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VucaModule":
        return cls(
            id=str(data["id"]),
            category=VucaDimension(data["category"]),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            order=int(data.get("order") or 0),
            completed=bool(data.get("completed", False)),
        )


@dataclass(frozen=True)
class VucaCurriculum:
    goal: str
    modules: tuple[VucaModule, ...] = ()

    def to_dict(self) -> dict:
        return {"goal": self.goal, "modules": [m.to_dict() for m in self.modules]}

    @classmethod
    def from_dict(cls, data: dict) -> "VucaCurriculum":
        return cls(
            goal=str(data.get("goal") or ""),
            modules=tuple(VucaModule.from_dict(m) for m in data.get("modules") or []),
        )


@dataclass(frozen=True)
class VucaProgress:
    V: int = 0
    U: int = 0
    C: int = 0
    A: int = 0

    def get(self, dimension: VucaDimension) -> int:
        return getattr(self, VucaDimension(dimension).value)

    def to_dict(self) -> dict:
        return {"V": self.V, "U": self.U, "C": self.C, "A": self.A}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "VucaProgress":
        data = data or {}
        return cls(**{d.value: int(data.get(d.value) or 0) for d in VucaDimension})


@dataclass(frozen=True)
class CourseSection:
    heading: str
    content: str


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: tuple[str, ...]
    correct_index: int
    explanation: str = ""


@dataclass(frozen=True)
class CourseContent:
    """Generated lesson for one module. Produced elsewhere, only carried here."""
    module_id: str
    title: str
    sections: tuple[CourseSection, ...] = ()
    quiz: tuple[QuizQuestion, ...] = ()

    def to_dict(self) -> dict:
        return {
            "moduleId": self.module_id,
            "title": self.title,
            "sections": [{"heading": s.heading, "content": s.content} for s in self.sections],
            "quiz": [
                {
                    "question": q.question,
                    "options": list(q.options),
                    "correctIndex": q.correct_index,
                    "explanation": q.explanation,
                }
                for q in self.quiz
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CourseContent":
        return cls(
            module_id=str(data["moduleId"]),
            title=str(data.get("title") or ""),
            sections=tuple(
                CourseSection(heading=str(s.get("heading") or ""), content=str(s.get("content") or ""))
                for s in data.get("sections") or []
            ),
            quiz=tuple(
                QuizQuestion(
                    question=str(q.get("question") or ""),
                    options=tuple(str(o) for o in q.get("options") or []),
                    correct_index=int(q.get("correctIndex") or 0),
                    explanation=str(q.get("explanation") or ""),
                )
                for q in data.get("quiz") or []
            ),
        )


@dataclass(frozen=True)
class VucaStationState:
    view: VucaView = VucaView.ONBOARDING
    goal: Optional[str] = None
    curriculum: Optional[VucaCurriculum] = None
    progress: VucaProgress = VucaProgress()
    active_module_id: Optional[str] = None
    active_course: Optional[CourseContent] = None

    def to_dict(self) -> dict:
        return {
            "view": self.view.value,
            "goal": self.goal,
            "curriculum": self.curriculum.to_dict() if self.curriculum else None,
            "progress": self.progress.to_dict(),
            "activeModuleId": self.active_module_id,
            "activeCourse": self.active_course.to_dict() if self.active_course else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "VucaStationState":
        """
        Decode a persisted blob. With a curriculum present, progress is
        re-derived from its modules and the stored numbers are ignored.
        """
        data = data or {}
        raw_curriculum = data.get("curriculum")
        curriculum = VucaCurriculum.from_dict(raw_curriculum) if raw_curriculum else None
        course = data.get("activeCourse")
        return cls(
            view=VucaView(data.get("view") or VucaView.ONBOARDING.value),
            goal=data.get("goal"),
            curriculum=curriculum,
            progress=(
                calculate_progress(curriculum.modules) if curriculum
                else VucaProgress.from_dict(data.get("progress"))
            ),
            active_module_id=data.get("activeModuleId"),
            active_course=CourseContent.from_dict(course) if course else None,
        )


def create_initial_vuca_state() -> VucaStationState:
    return VucaStationState()


# ---------------------------------------------------------------------------
# PROGRESS
# ---------------------------------------------------------------------------

def _percent(completed: int, total: int) -> int:
    # round half up, same as the client's Math.round
    total = total or 1
    return (200 * completed + total) // (2 * total)


def calculate_progress(modules: Iterable[VucaModule]) -> VucaProgress:
    modules = list(modules)
    values = {}
    for dim in VucaDimension:
        in_dim = [m for m in modules if m.category == dim]
        done = sum(1 for m in in_dim if m.completed)
        values[dim.value] = _percent(done, len(in_dim))
    return VucaProgress(**values)


def is_vuca_complete(progress: VucaProgress) -> bool:
    return all(progress.get(d) >= VUCA_THRESHOLD for d in VucaDimension)


def complete_module(state: VucaStationState, module_id: str) -> VucaStationState:
    """Mark *module_id* done, recompute progress, return to dashboard or finish."""
    if state.curriculum is None:
        return state

    modules = tuple(
        replace(m, completed=True) if m.id == module_id else m
        for m in state.curriculum.modules
    )
    progress = calculate_progress(modules)
    return replace(
        state,
        curriculum=replace(state.curriculum, modules=modules),
        progress=progress,
        active_module_id=None,
        active_course=None,
        view=VucaView.COMPLETE if is_vuca_complete(progress) else VucaView.DASHBOARD,
    )


def get_module_by_id(state: VucaStationState, module_id: str) -> Optional[VucaModule]:
    if state.curriculum is None:
        return None
    return next((m for m in state.curriculum.modules if m.id == module_id), None)


# ---------------------------------------------------------------------------
# GEGENSATZ (contrast) SUGGESTION
# ---------------------------------------------------------------------------

def get_opposite_dimension(category: Union[VucaDimension, str, None]) -> Optional[VucaDimension]:
    """V <-> A, U <-> C. Anything else has no opposite."""
    try:
        return _OPPOSITES[VucaDimension(category)]
    except ValueError:
        return None


def get_gegensatz_suggestion(
    modules: Iterable[VucaModule], last_completed_module_id: Optional[str]
) -> Optional[VucaModule]:
    """
    After finishing a module in one dimension, point the learner at the first
    open module of the opposite dimension.
    """
    if last_completed_module_id is None:
        return None
    modules = list(modules)
    last = next((m for m in modules if m.id == last_completed_module_id), None)
    if last is None:
        return None
    opposite = get_opposite_dimension(last.category)
    if opposite is None:
        return None
    return next((m for m in modules if m.category == opposite and not m.completed), None)


# ---------------------------------------------------------------------------
# VIEW TRANSITIONS
# ---------------------------------------------------------------------------

def begin_curriculum(state: VucaStationState, goal: str) -> VucaStationState:
    """Learner stated a goal; the curriculum is now being generated."""
    if state.view is not VucaView.ONBOARDING:
        return state
    return replace(state, view=VucaView.LOADING_CURRICULUM, goal=goal)


def receive_curriculum(state: VucaStationState, curriculum: VucaCurriculum) -> VucaStationState:
    if state.view is not VucaView.LOADING_CURRICULUM:
        return state
    progress = calculate_progress(curriculum.modules)
    return replace(
        state,
        goal=state.goal or curriculum.goal,
        curriculum=curriculum,
        progress=progress,
        active_module_id=None,
        active_course=None,
        view=VucaView.COMPLETE if is_vuca_complete(progress) else VucaView.DASHBOARD,
    )


def open_module(state: VucaStationState, module_id: str) -> VucaStationState:
    if state.view not in (VucaView.DASHBOARD, VucaView.COURSE):
        return state
    module = get_module_by_id(state, module_id)
    if module is None or module.completed:
        return state
    return replace(state, view=VucaView.COURSE, active_module_id=module_id, active_course=None)


def attach_course(state: VucaStationState, course: CourseContent) -> VucaStationState:
    if state.view is not VucaView.COURSE or course.module_id != state.active_module_id:
        return state
    return replace(state, active_course=course)


def close_module(state: VucaStationState) -> VucaStationState:
    if state.view is not VucaView.COURSE:
        return state
    return replace(state, view=VucaView.DASHBOARD, active_module_id=None, active_course=None)
