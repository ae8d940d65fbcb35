"""Tests for rating policy construction."""

import pytest

from feedback_automator.config import parse_rating
from feedback_automator.domain.ratings import PerRecordRating, UniformRating
from feedback_automator.services.ratings import FeedbackMode, build_policy


def test_set_all_uses_requested_rating() -> None:
    policy = build_policy(FeedbackMode.SET_ALL, rating=3)

    assert policy == UniformRating(3)
    assert policy.rating_for(999) == 3


def test_set_all_without_rating_is_rejected() -> None:
    with pytest.raises(ValueError, match="Rating is required"):
        build_policy(FeedbackMode.SET_ALL)


@pytest.mark.parametrize("bad", [0, 6, True, "3", 2.5])
def test_invalid_ratings_are_rejected(bad: object) -> None:
    with pytest.raises(ValueError):
        parse_rating(bad)


def test_custom_without_mapping_needs_input() -> None:
    policy = build_policy(FeedbackMode.CUSTOM)

    assert isinstance(policy, PerRecordRating)
    assert policy.needs_input
    assert build_policy(FeedbackMode.CUSTOM, faculty_ratings={}).needs_input


def test_custom_mapping_keys_are_record_ids() -> None:
    policy = build_policy(FeedbackMode.CUSTOM, faculty_ratings={"101": 4, "102": 2})

    assert not policy.needs_input
    assert policy.rating_for(101) == 4
    assert policy.rating_for(102) == 2


def test_custom_mapping_misses_fall_back_to_one() -> None:
    policy = build_policy(FeedbackMode.CUSTOM, faculty_ratings={"101": 4})

    assert policy.rating_for(555) == 1


def test_custom_mapping_rejects_bad_ids_and_values() -> None:
    with pytest.raises(ValueError, match="record id"):
        build_policy(FeedbackMode.CUSTOM, faculty_ratings={"abc": 2})
    with pytest.raises(ValueError, match="between 1 and 5"):
        build_policy(FeedbackMode.CUSTOM, faculty_ratings={"101": 9})
