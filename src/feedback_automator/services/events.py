"""Event channel between a running pipeline and the response stream."""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from pydantic import BaseModel

from feedback_automator.domain.events import (
    DoneEvent,
    ErrorEvent,
    LogEvent,
    NeedRatingsEvent,
    PendingFaculty,
    StatusEvent,
    is_terminal,
)
from feedback_automator.domain.models import FeedbackRecord, SubmissionCounts

_logger = logging.getLogger(__name__)

_END = object()


class EventChannel:
    """Single-producer queue of run events.

    The consumer closing the channel is the cancellation signal: later emits
    are dropped and ``cancelled`` turns true so the producer can stop before
    starting new work.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._cancelled = False
        self._finished = False
        self._drained = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def emit(self, event: BaseModel) -> None:
        if self._cancelled or self._finished:
            return
        await self._queue.put(event)

    async def finish(self) -> None:
        """Signal that the producer will not emit anything else."""
        if self._finished:
            return
        self._finished = True
        await self._queue.put(_END)

    def close(self) -> None:
        """Consumer-side cancellation; a no-op once the stream was drained."""
        if self._drained:
            return
        if not self._cancelled:
            _logger.info("Event consumer went away; suppressing further events")
        self._cancelled = True

    async def __aiter__(self) -> AsyncIterator[BaseModel]:
        while True:
            item = await self._queue.get()
            if item is _END:
                self._drained = True
                return
            yield item  # type: ignore[misc]
            if is_terminal(item):  # type: ignore[arg-type]
                self._drained = True
                return


@dataclass
class RunReporter:
    """Emits step progress and keeps the run's log history."""

    channel: EventChannel
    logs: list[str] = field(default_factory=list)

    async def status(  # noqa: PLR0913
        self,
        step: str,
        message: str,
        progress: int | None = None,
        *,
        total: int | None = None,
        completed: int | None = None,
        echo: bool = True,
    ) -> None:
        """Emit a status event, preceded by a log event when ``echo`` is set."""
        if echo:
            await self.channel.emit(LogEvent(message=message))
        await self.channel.emit(
            StatusEvent(
                step=step,
                progress=progress,
                message=message,
                total=total,
                completed=completed,
            )
        )

    def log(self, message: str) -> None:
        """Record a line in the run history."""
        self.logs.append(message)

    def amend_last(self, suffix: str) -> None:
        """Append text to the most recent history line."""
        if self.logs:
            self.logs[-1] += suffix
        else:
            self.logs.append(suffix.strip())

    async def need_ratings(self, records: list[FeedbackRecord]) -> None:
        await self.channel.emit(
            NeedRatingsEvent(
                faculties=[
                    PendingFaculty(
                        id=record.id,
                        name=record.subject_name,
                        course=record.course_label,
                    )
                    for record in records
                ]
            )
        )

    async def done(self, counts: SubmissionCounts | None = None) -> None:
        if counts is None:
            event = DoneEvent(logs=list(self.logs))
        else:
            event = DoneEvent(
                logs=list(self.logs),
                total=counts.total,
                completed=counts.completed,
                failed=counts.failed,
            )
        await self.channel.emit(event)

    async def error(self, message: str) -> None:
        self.logs.append(f"An error occurred: {message}")
        await self.channel.emit(ErrorEvent(message=message, logs=list(self.logs)))
