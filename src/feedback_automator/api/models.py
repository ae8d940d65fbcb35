"""Pydantic models for the automation request body."""

from pydantic import BaseModel, ConfigDict, Field

from feedback_automator.services.ratings import FeedbackMode


class AutomateRequest(BaseModel):
    """Body of POST /api/automate."""

    model_config = ConfigDict(populate_by_name=True)

    username: str
    password: str
    feedback_mode: FeedbackMode = Field(
        default=FeedbackMode.SET_ALL, alias="feedbackMode"
    )
    rating: int | None = None
    faculty_ratings: dict[str, int] | None = Field(
        default=None, alias="facultyRatings"
    )
