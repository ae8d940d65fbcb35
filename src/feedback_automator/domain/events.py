"""Pydantic models for the NDJSON run event stream."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

Step = Literal["login", "batch", "semester", "config", "pending", "submit"]

STEPS: tuple[str, ...] = ("login", "batch", "semester", "config", "pending", "submit")


class StatusEvent(BaseModel):
    """Progress update for one pipeline step."""

    type: Literal["status"] = "status"
    step: Step
    progress: int | None = Field(default=None, ge=0, le=100)
    message: str | None = None
    total: int | None = None
    completed: int | None = None


class LogEvent(BaseModel):
    """Human-readable log line."""

    type: Literal["log"] = "log"
    message: str


class PendingFaculty(BaseModel):
    """Minimal identity of a pending record offered for rating."""

    id: int
    name: str
    course: str


class NeedRatingsEvent(BaseModel):
    """Request for per-record ratings; terminal for the exchange."""

    type: Literal["need_ratings"] = "need_ratings"
    faculties: list[PendingFaculty]


class DoneEvent(BaseModel):
    """Successful end of a run."""

    type: Literal["done"] = "done"
    logs: list[str]
    total: int | None = None
    completed: int | None = None
    failed: int | None = None


class ErrorEvent(BaseModel):
    """Fatal end of a run."""

    type: Literal["error"] = "error"
    message: str
    logs: list[str]


PipelineEvent = Annotated[
    StatusEvent | LogEvent | NeedRatingsEvent | DoneEvent | ErrorEvent,
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[PipelineEvent] = TypeAdapter(PipelineEvent)

TERMINAL_TYPES = frozenset({"need_ratings", "done", "error"})


def encode_event(event: BaseModel) -> str:
    """Serialize an event as a single NDJSON line."""
    return event.model_dump_json(exclude_none=True) + "\n"


def decode_event(line: str) -> PipelineEvent:
    """Parse one NDJSON line into its event model."""
    return _EVENT_ADAPTER.validate_json(line)


def is_terminal(event: BaseModel) -> bool:
    """Return true when the event ends the stream."""
    return getattr(event, "type", None) in TERMINAL_TYPES
