"""View state for a presentation layer consuming run events."""

from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel

from feedback_automator.config import parse_rating
from feedback_automator.domain.events import (
    STEPS,
    DoneEvent,
    ErrorEvent,
    LogEvent,
    NeedRatingsEvent,
    PendingFaculty,
    StatusEvent,
)
from feedback_automator.domain.ratings import FALLBACK_RATING


class Phase(StrEnum):
    """Where the client is in the run lifecycle."""

    IDLE = "idle"
    RUNNING = "running"
    AWAITING_RATINGS = "awaiting_ratings"
    DONE = "done"
    FAILED = "failed"


@dataclass
class StepView:
    """Progress row shown for one pipeline step."""

    key: str
    progress: int = 0
    detail: str = ""
    total: int | None = None
    completed: int | None = None


@dataclass
class RunViewState:
    """Explicit state machine driven solely by received events."""

    phase: Phase = Phase.IDLE
    steps: dict[str, StepView] = field(
        default_factory=lambda: {key: StepView(key) for key in STEPS}
    )
    logs: list[str] = field(default_factory=list)
    pending_faculties: list[PendingFaculty] = field(default_factory=list)
    ratings: dict[int, int] = field(default_factory=dict)
    error: str | None = None

    def start(self) -> None:
        """Reset for a fresh run and enter the running phase."""
        self.steps = {key: StepView(key) for key in STEPS}
        self.logs = []
        self.pending_faculties = []
        self.ratings = {}
        self.error = None
        self.phase = Phase.RUNNING

    def resume(self) -> None:
        """Enter the running phase for the ratings follow-up run."""
        self.error = None
        self.phase = Phase.RUNNING

    def apply(self, event: BaseModel) -> None:
        """Fold one event into the view state."""
        if isinstance(event, StatusEvent):
            self._apply_status(event)
            if event.message:
                self.logs.append(event.message)
            return
        if isinstance(event, LogEvent):
            self.logs.append(event.message)
            return
        if isinstance(event, NeedRatingsEvent):
            self.pending_faculties = list(event.faculties)
            self.ratings = {faculty.id: FALLBACK_RATING for faculty in event.faculties}
            self.phase = Phase.AWAITING_RATINGS
            return
        if isinstance(event, ErrorEvent):
            self.error = event.message or "Unknown error"
            self.phase = Phase.FAILED
            return
        if isinstance(event, DoneEvent):
            self.logs = list(event.logs)
            self.phase = Phase.DONE

    def set_rating(self, faculty_id: int, rating: int) -> None:
        if self.phase is not Phase.AWAITING_RATINGS:
            raise RuntimeError("Ratings can only be chosen after need_ratings")
        self.ratings[faculty_id] = parse_rating(rating)

    def _apply_status(self, event: StatusEvent) -> None:
        step = self.steps[event.step]
        if event.progress is not None:
            step.progress = event.progress
        if event.total is not None:
            step.total = event.total
        if event.completed is not None:
            step.completed = event.completed
        counted = event.total is not None and event.completed is not None
        if event.step == "submit" and counted:
            step.detail = f"{event.completed}/{event.total}"
        elif event.message is not None:
            step.detail = event.message
