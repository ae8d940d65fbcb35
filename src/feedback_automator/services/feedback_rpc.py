"""Feedback-model RPC operations bound to one portal session."""

from dataclasses import dataclass

from feedback_automator.adapters.erp_client import ErpClient
from feedback_automator.domain.errors import RemoteFault
from feedback_automator.domain.models import SessionCredential


@dataclass(frozen=True)
class CallContext:
    """Context dictionaries attached to every feedback-model call."""

    top_level: dict[str, object]
    kwargs: dict[str, object]


@dataclass
class FeedbackRpc:
    """Thin wrapper shaping call_kw, search_read and call_button params."""

    client: ErpClient
    credential: SessionCredential
    model: str
    lang: str = "en_GB"
    timezone: str = "Asia/Kolkata"

    @property
    def context(self) -> CallContext:
        top_level: dict[str, object] = {
            "lang": self.lang,
            "tz": self.timezone,
            "uid": self.credential.user_id,
        }
        return CallContext(
            top_level=top_level,
            kwargs={
                **top_level,
                "search_default_group_feedback_id": 1,
                "search_default_group_batch": 1,
                "search_default_group_semester": 1,
            },
        )

    async def call_kw(
        self, method: str, args: list[object], kwargs: dict[str, object] | None = None
    ) -> object:
        context = self.context
        return await self.client.call(
            "/dataset/call_kw",
            {
                "model": self.model,
                "method": method,
                "args": args,
                "kwargs": {**(kwargs or {}), "context": context.kwargs},
                "session_id": self.credential.session_id,
                "context": context.top_level,
            },
            self.credential,
        )

    async def read_group(
        self, field: str, domain: list[list[object]]
    ) -> list[dict[str, object]]:
        """Return distinct values of ``field`` among matching records."""
        result = await self.call_kw(
            "read_group",
            [],
            {"domain": domain, "fields": [field], "groupby": [field]},
        )
        if not isinstance(result, list):
            raise RemoteFault(f"Unexpected {field} grouping result")
        return result

    async def search_read(
        self, fields: list[str], domain: list[list[object]], limit: int
    ) -> list[dict[str, object]]:
        result = await self.client.call(
            "/dataset/search_read",
            {
                "model": self.model,
                "fields": fields,
                "domain": domain,
                "context": self.context.kwargs,
                "session_id": self.credential.session_id,
                "limit": limit,
            },
            self.credential,
        )
        records = result.get("records") if isinstance(result, dict) else None
        if not isinstance(records, list):
            raise RemoteFault("Unexpected pending feedback listing")
        return records

    async def read_question_lines(self, record_id: int) -> list[int]:
        """Fetch the answerable question-line ids of one feedback form."""
        result = await self.call_kw("read", [[record_id], ["questions_line"]])
        if not isinstance(result, list) or not result:
            return []
        first = result[0]
        lines = first.get("questions_line") if isinstance(first, dict) else None
        if not isinstance(lines, list):
            return []
        return [int(line_id) for line_id in lines]

    async def write_marks(
        self, record_id: int, question_ids: list[int], mark: int
    ) -> object:
        """Set ``mark_state`` on every question line in one write."""
        answers = [
            [1, question_id, {"mark_state": mark}] for question_id in question_ids
        ]
        return await self.call_kw("write", [[record_id], {"questions_line": answers}])

    async def call_button(self, method: str, record_id: int) -> object:
        context = self.context
        return await self.client.call(
            "/dataset/call_button",
            {
                "model": self.model,
                "method": method,
                "args": [[record_id], context.kwargs],
                "session_id": self.credential.session_id,
                "context": context.top_level,
            },
            self.credential,
        )
