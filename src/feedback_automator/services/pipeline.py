"""End-to-end feedback automation run."""

import logging
from dataclasses import dataclass, field

from feedback_automator.adapters.erp_client import ErpClient
from feedback_automator.domain.errors import AutomationError
from feedback_automator.domain.models import SubmissionCounts
from feedback_automator.domain.ratings import PerRecordRating, RatingPolicy
from feedback_automator.services.auth import AuthService
from feedback_automator.services.context import ContextResolver
from feedback_automator.services.events import EventChannel, RunReporter
from feedback_automator.services.feedback_rpc import FeedbackRpc
from feedback_automator.services.submission import SubmissionEngine

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunRequest:
    """Everything the client supplies for one run."""

    username: str
    password: str = field(repr=False)
    policy: RatingPolicy


@dataclass
class AutomationPipeline:
    """Login, context resolution, rating branch and submission for one run.

    Nothing is cached between runs: a custom-mode follow-up repeats login and
    context resolution before submitting.
    """

    client: ErpClient
    auth_service: AuthService
    context_resolver: ContextResolver
    submission_engine: SubmissionEngine
    feedback_model: str
    lang: str = "en_GB"
    timezone: str = "Asia/Kolkata"

    async def run(self, request: RunRequest, channel: EventChannel) -> None:
        """Execute a run, always finishing the channel."""
        reporter = RunReporter(channel)
        try:
            await self._run(request, reporter)
        except AutomationError as exc:
            _logger.warning("Run for %s failed: %s", request.username.upper(), exc)
            await reporter.error(str(exc))
        except Exception as exc:
            _logger.exception("Unexpected failure during run")
            await reporter.error(str(exc) or type(exc).__name__)
        finally:
            await channel.finish()

    async def _run(self, request: RunRequest, reporter: RunReporter) -> None:
        await reporter.status("login", "Logging in...", 5, echo=False)
        credential = await self.auth_service.login(request.username, request.password)
        reporter.log("Login Successful.")
        await reporter.status("login", "Login successful", 100, echo=False)

        rpc = FeedbackRpc(
            client=self.client,
            credential=credential,
            model=self.feedback_model,
            lang=self.lang,
            timezone=self.timezone,
        )
        context = await self.context_resolver.resolve(rpc, reporter)

        reporter.log("4) Fetching all pending feedback forms...")
        await reporter.status("pending", "Finding pending forms...", 5)
        records = await self.context_resolver.pending_records(rpc, context)
        if not records:
            reporter.log("No pending feedback forms found. You are all done!")
            await reporter.status("pending", "No pending forms", 100)
            await reporter.status(
                "submit", "Nothing to submit", 100, total=0, completed=0
            )
            await reporter.done()
            return
        reporter.log(f"    Found {len(records)} feedback forms to submit.")
        await reporter.status("pending", f"Found {len(records)} forms", 100)

        if isinstance(request.policy, PerRecordRating) and request.policy.needs_input:
            reporter.log("    Waiting for a rating for each faculty.")
            await reporter.need_ratings(records)
            return

        counts = await self.submission_engine.submit(
            records, rpc, request.policy, reporter
        )
        reporter.log(_summary_line(counts))
        await reporter.done(counts)


def _summary_line(counts: SubmissionCounts) -> str:
    if counts.cancelled:
        return f"Run stopped after {counts.completed} of {counts.total} forms."
    if counts.failed:
        return (
            f"Submitted {counts.completed} of {counts.total} forms; "
            f"{counts.failed} failed."
        )
    return "All feedback submitted successfully!"
