"""Per-record feedback submission."""

import logging
from dataclasses import dataclass

from feedback_automator.domain.errors import RecordFault
from feedback_automator.domain.models import FeedbackRecord, SubmissionCounts
from feedback_automator.domain.ratings import RatingPolicy
from feedback_automator.services.events import RunReporter
from feedback_automator.services.feedback_rpc import FeedbackRpc

_logger = logging.getLogger(__name__)

SUBMIT_BUTTON = "button_submit"


@dataclass
class SubmissionEngine:
    """Reads, answers and finalizes each pending record in turn."""

    submit_button: str = SUBMIT_BUTTON

    async def submit(
        self,
        records: list[FeedbackRecord],
        rpc: FeedbackRpc,
        policy: RatingPolicy,
        reporter: RunReporter,
    ) -> SubmissionCounts:
        """Submit every record sequentially; one failure never stops the loop."""
        total = len(records)
        completed = 0
        failed = 0
        reporter.log("5) Submitting feedback for each teacher...")
        await reporter.status(
            "submit",
            f"Submitting {total} forms...",
            1,
            total=total,
            completed=0,
        )
        for record in records:
            if reporter.channel.cancelled:
                _logger.info(
                    "Run cancelled by client after %s of %s records", completed, total
                )
                return SubmissionCounts(
                    total=total, completed=completed, failed=failed, cancelled=True
                )
            reporter.log(
                f"   -> Submitting for {record.subject_name} ({record.course_label})..."
            )
            try:
                await self.submit_record(record, rpc, policy.rating_for(record.id))
            except RecordFault as fault:
                failed += 1
                _logger.warning(
                    "Feedback record %s failed: %s",
                    fault.record.id,
                    fault,
                    exc_info=fault.cause,
                )
                name = fault.record.subject_name
                message = f"Error with {name}: {fault.cause}"
                reporter.log(f"   -> Error submitting for {name}: {fault.cause}")
                await reporter.status("submit", message)
                continue
            completed += 1
            reporter.amend_last(" Done.")
            await reporter.status(
                "submit",
                f"Submitted {record.subject_name} ({record.course_label})",
                round(completed / total * 100),
                total=total,
                completed=completed,
            )
        return SubmissionCounts(total=total, completed=completed, failed=failed)

    async def submit_record(
        self, record: FeedbackRecord, rpc: FeedbackRpc, rating: int
    ) -> None:
        """Read question lines, write the rating to all of them, then finalize.

        Any failure is wrapped in a RecordFault naming the record.
        """
        try:
            question_ids = await rpc.read_question_lines(record.id)
            if question_ids:
                await rpc.write_marks(record.id, question_ids, rating)
            await rpc.call_button(self.submit_button, record.id)
        except Exception as exc:
            raise RecordFault(record, exc) from exc
