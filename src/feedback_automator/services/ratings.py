"""Turn a run request into a rating policy."""

from collections.abc import Mapping
from enum import StrEnum

from feedback_automator.config import parse_rating
from feedback_automator.domain.ratings import (
    PerRecordRating,
    RatingPolicy,
    UniformRating,
)


class FeedbackMode(StrEnum):
    """How the caller wants ratings applied."""

    SET_ALL = "set-all"
    CUSTOM = "custom"


def build_policy(
    mode: FeedbackMode,
    rating: int | None = None,
    faculty_ratings: Mapping[str | int, int] | None = None,
) -> RatingPolicy:
    """Validate the request's rating fields and build the matching policy."""
    if mode is FeedbackMode.SET_ALL:
        if rating is None:
            raise ValueError("Rating is required when feedbackMode is set-all.")
        return UniformRating(parse_rating(rating))
    if not faculty_ratings:
        return PerRecordRating()
    ratings: dict[int, int] = {}
    for raw_id, raw_value in faculty_ratings.items():
        try:
            record_id = int(raw_id)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid feedback record id: {raw_id!r}") from exc
        ratings[record_id] = parse_rating(raw_value)
    return PerRecordRating(ratings)
