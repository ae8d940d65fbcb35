"""Domain models for a single automation run."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SessionCredential:
    """Portal session captured at login; never persisted."""

    token: str = field(repr=False)
    session_id: str
    user_id: int


@dataclass(frozen=True)
class OperatingContext:
    """Batch, semester and feedback configuration the run operates in."""

    batch_id: int
    batch_name: str
    semester_id: int
    semester_name: str
    config_id: int
    config_name: str


@dataclass(frozen=True)
class FeedbackRecord:
    """A pending feedback form for one faculty member."""

    id: int
    subject_name: str
    course_label: str
    state: str = "draft"


@dataclass(frozen=True)
class SubmissionCounts:
    """Outcome of a submission loop."""

    total: int
    completed: int
    failed: int
    cancelled: bool = False
