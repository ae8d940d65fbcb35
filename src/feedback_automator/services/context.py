"""Resolve the batch, semester and configuration a run works against."""

import logging
from dataclasses import dataclass

from feedback_automator.domain.errors import ContextFault
from feedback_automator.domain.models import FeedbackRecord, OperatingContext
from feedback_automator.services.events import RunReporter
from feedback_automator.services.feedback_rpc import FeedbackRpc

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Group:
    """One distinct value returned by a grouping query."""

    id: int
    name: str


@dataclass
class ContextResolver:
    """Runs the dependent batch, semester and configuration lookups."""

    page_size: int = 80
    strict: bool = False

    async def resolve(
        self, rpc: FeedbackRpc, reporter: RunReporter
    ) -> OperatingContext:
        """Resolve the operating context, emitting progress for each step."""
        uid = rpc.credential.user_id

        reporter.log("1) Fetching dynamic batch ID...")
        await reporter.status("batch", "Fetching dynamic batch ID...", 5)
        batch_rows = await rpc.read_group("gt_batch_id", [["login_id", "=", uid]])
        batch = self.select_batch(to_groups(batch_rows, "gt_batch_id"))
        reporter.log(f"    Found Batch: {batch.name} (ID: {batch.id})")
        await reporter.status("batch", f"Found {batch.name}", 100)

        reporter.log("2) Fetching available semesters...")
        await reporter.status("semester", "Fetching semesters...", 5)
        semester_rows = await rpc.read_group(
            "semester",
            [["gt_batch_id", "=", batch.id], ["login_id", "=", uid]],
        )
        semester = select_latest_semester(to_groups(semester_rows, "semester"))
        reporter.log(f"    Found latest semester: {semester.name}")
        await reporter.status("semester", f"Found {semester.name}", 100)

        reporter.log("3) Fetching feedback configuration...")
        await reporter.status("config", "Fetching config...", 5)
        config_rows = await rpc.read_group(
            "config_id",
            [
                ["semester", "=", semester.id],
                ["gt_batch_id", "=", batch.id],
                ["login_id", "=", uid],
            ],
        )
        config = select_latest_config(to_groups(config_rows, "config_id"))
        reporter.log(f"    Found latest config: {config.name} (ID: {config.id})")
        await reporter.status("config", f"Found: {config.name}", 100)

        return OperatingContext(
            batch_id=batch.id,
            batch_name=batch.name,
            semester_id=semester.id,
            semester_name=semester.name,
            config_id=config.id,
            config_name=config.name,
        )

    async def pending_records(
        self, rpc: FeedbackRpc, context: OperatingContext
    ) -> list[FeedbackRecord]:
        """List draft feedback forms for the resolved configuration."""
        rows = await rpc.search_read(
            ["id", "employeename", "course", "state"],
            [
                ["config_id", "=", context.config_id],
                ["state", "=", "draft"],
                ["login_id", "=", rpc.credential.user_id],
            ],
            self.page_size,
        )
        return [_to_record(row) for row in rows]

    def select_batch(self, groups: list[Group]) -> Group:
        """Take the first batch, or refuse ambiguity in strict mode."""
        if not groups:
            raise ContextFault("No batch found for this account.")
        if len(groups) > 1:
            names = ", ".join(group.name for group in groups)
            if self.strict:
                raise ContextFault(f"Account belongs to several batches: {names}.")
            _logger.warning("Several batches returned (%s); using the first", names)
        return groups[0]


def select_latest_semester(groups: list[Group]) -> Group:
    """Take the last group; the portal returns semesters in ascending order."""
    if not groups:
        raise ContextFault("No semester found for this batch.")
    return groups[-1]


def select_latest_config(groups: list[Group]) -> Group:
    """Pick the configuration with the highest id regardless of order."""
    if not groups:
        raise ContextFault("No feedback configurations found for the latest semester.")
    return max(groups, key=lambda group: group.id)


def to_groups(rows: list[dict[str, object]], field: str) -> list[Group]:
    """Convert read_group rows into groups, skipping rows without a value."""
    groups: list[Group] = []
    for row in rows:
        value = row.get(field)
        if isinstance(value, list | tuple) and len(value) >= 2:  # noqa: PLR2004
            groups.append(Group(id=int(value[0]), name=str(value[1])))
    return groups


def _to_record(row: dict[str, object]) -> FeedbackRecord:
    course = row.get("course")
    course_label = (
        str(course[1]) if isinstance(course, list | tuple) and len(course) > 1 else ""
    )
    return FeedbackRecord(
        id=int(row["id"]),
        subject_name=str(row.get("employeename") or ""),
        course_label=course_label,
        state=str(row.get("state") or "draft"),
    )
