"""Tests for the per-record submission loop."""

import asyncio

import pytest

from feedback_automator.domain.errors import RecordFault, RemoteFault
from feedback_automator.domain.models import (
    FeedbackRecord,
    SessionCredential,
    SubmissionCounts,
)
from feedback_automator.domain.ratings import PerRecordRating, UniformRating
from feedback_automator.services.events import EventChannel, RunReporter
from feedback_automator.services.feedback_rpc import FeedbackRpc
from feedback_automator.services.submission import SubmissionEngine
from tests.conftest import FakeErpClient

RECORDS = [
    FeedbackRecord(id=101, subject_name="Dr. Rao", course_label="Compilers"),
    FeedbackRecord(id=102, subject_name="Ms. Iyer", course_label="Networks"),
    FeedbackRecord(id=103, subject_name="Mr. Nair", course_label="Maths"),
]


def _submit(  # type: ignore[no-untyped-def]
    client: FakeErpClient, policy, records=RECORDS, channel=None
):
    credential = SessionCredential(token="t", session_id="s", user_id=42)
    rpc = FeedbackRpc(client=client, credential=credential, model="feedback.model")

    async def _run():  # type: ignore[no-untyped-def]
        event_channel = channel or EventChannel()
        reporter = RunReporter(event_channel)
        counts = await SubmissionEngine().submit(records, rpc, policy, reporter)
        await event_channel.finish()
        events = [event.model_dump(exclude_none=True) async for event in event_channel]
        return counts, events, reporter

    return asyncio.run(_run())


def _client() -> FakeErpClient:
    return FakeErpClient(question_lines={101: [1, 2, 3], 102: [4, 5], 103: [6]})


def test_uniform_rating_written_to_every_question_line() -> None:
    client = _client()

    counts, _, _ = _submit(client, UniformRating(4))

    assert counts == SubmissionCounts(total=3, completed=3, failed=0)
    writes = client.calls_for("write")
    assert len(writes) == 3
    for params in writes:
        record_ids, values = params["args"]
        assert len(record_ids) == 1
        assert values["questions_line"]
        assert all(answer[0] == 1 for answer in values["questions_line"])
        assert all(
            answer[2] == {"mark_state": 4} for answer in values["questions_line"]
        )
    assert writes[0]["args"][1]["questions_line"] == [
        [1, 1, {"mark_state": 4}],
        [1, 2, {"mark_state": 4}],
        [1, 3, {"mark_state": 4}],
    ]
    buttons = client.calls_for("button_submit")
    assert [params["args"][0] for params in buttons] == [[101], [102], [103]]


def test_per_record_ratings_with_fallback() -> None:
    client = _client()

    _submit(client, PerRecordRating({101: 5, 102: 3}))

    marks = {
        params["args"][0][0]: params["args"][1]["questions_line"][0][2]["mark_state"]
        for params in client.calls_for("write")
    }
    assert marks == {101: 5, 102: 3, 103: 1}


def test_record_without_questions_skips_write_but_submits() -> None:
    client = FakeErpClient(question_lines={101: []})

    counts, _, _ = _submit(client, UniformRating(1), records=RECORDS[:1])

    assert client.calls_for("write") == []
    assert len(client.calls_for("button_submit")) == 1
    assert counts.completed == 1


def test_one_failing_record_does_not_stop_the_loop() -> None:
    client = _client()
    client.failing_reads = {102}

    counts, events, reporter = _submit(client, UniformRating(2))

    assert counts == SubmissionCounts(total=3, completed=2, failed=1)
    assert [p["args"][0] for p in client.calls_for("button_submit")] == [[101], [103]]
    failures = [line for line in reporter.logs if "Error submitting" in line]
    assert failures == ["   -> Error submitting for Ms. Iyer: Record is locked"]
    failure_status = [
        event
        for event in events
        if event["type"] == "status" and "Error with" in event.get("message", "")
    ]
    assert failure_status == [
        {
            "type": "status",
            "step": "submit",
            "message": "Error with Ms. Iyer: Record is locked",
        }
    ]
    final = [e for e in events if e["type"] == "status" and "completed" in e][-1]
    assert final["completed"] == 2
    assert final["total"] == 3


def test_submit_progress_is_monotonic_and_reaches_100() -> None:
    counts, events, reporter = _submit(_client(), UniformRating(1))

    progress = [
        event["progress"]
        for event in events
        if event["type"] == "status" and "progress" in event
    ]
    assert progress == [1, 33, 67, 100]
    assert progress == sorted(progress)
    assert counts.completed == 3
    assert reporter.logs[1] == "   -> Submitting for Dr. Rao (Compilers)... Done."


def test_cancelled_channel_stops_before_next_record() -> None:
    client = _client()
    channel = EventChannel()
    channel.close()

    counts, events, _ = _submit(client, UniformRating(1), channel=channel)

    assert counts.cancelled
    assert counts.completed == 0
    assert client.calls == []
    assert events == []


def test_submit_record_wraps_failures_with_the_record() -> None:
    client = _client()
    client.failing_reads = {102}
    credential = SessionCredential(token="t", session_id="s", user_id=42)
    rpc = FeedbackRpc(client=client, credential=credential, model="feedback.model")

    with pytest.raises(RecordFault) as excinfo:
        asyncio.run(SubmissionEngine().submit_record(RECORDS[1], rpc, 3))

    assert excinfo.value.record == RECORDS[1]
    assert isinstance(excinfo.value.cause, RemoteFault)
    assert str(excinfo.value) == "Ms. Iyer: Record is locked"
    assert client.calls_for("button_submit") == []
