"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from feedback_automator.adapters.erp_client import AuthResponse, ErpClient
from feedback_automator.config import Settings
from feedback_automator.containers import AppContainer, build_pipeline
from feedback_automator.domain.errors import RemoteFault
from feedback_automator.domain.models import SessionCredential
from feedback_automator.services.events import EventChannel


def group(value_id: int, name: str) -> list[object]:
    """Shape of a many2one value in read_group rows."""
    return [value_id, name]


@dataclass
class FakeErpClient(ErpClient):
    """Scripted ERP portal that records every call."""

    uid: int | None = 42
    session_id: str = "session-abc"
    set_cookie: str | None = "sid=token-123; Expires=Wed; Path=/"
    batches: list[dict[str, object]] = field(
        default_factory=lambda: [{"gt_batch_id": group(7, "CSE 2022")}]
    )
    semesters: list[dict[str, object]] = field(
        default_factory=lambda: [
            {"semester": group(1, "S1")},
            {"semester": group(2, "S2")},
        ]
    )
    configs: list[dict[str, object]] = field(
        default_factory=lambda: [
            {"config_id": group(10, "Mid-term")},
            {"config_id": group(12, "End-term")},
            {"config_id": group(11, "Interim")},
        ]
    )
    records: list[dict[str, object]] = field(
        default_factory=lambda: [
            {
                "id": 101,
                "employeename": "Dr. Rao",
                "course": group(5, "Compilers"),
                "state": "draft",
            },
            {
                "id": 102,
                "employeename": "Ms. Iyer",
                "course": group(6, "Networks"),
                "state": "draft",
            },
        ]
    )
    question_lines: dict[int, list[int]] = field(
        default_factory=lambda: {101: [1, 2, 3], 102: [4, 5]}
    )
    failing_reads: set[int] = field(default_factory=set)
    auth_calls: list[tuple[str, str, str]] = field(default_factory=list)
    calls: list[tuple[str, dict[str, object]]] = field(default_factory=list)

    async def authenticate(
        self, database: str, login: str, password: str
    ) -> AuthResponse:
        self.auth_calls.append((database, login, password))
        result: dict[str, object] = {"session_id": self.session_id}
        if self.uid is not None:
            result["uid"] = self.uid
        return AuthResponse(body={"result": result}, set_cookie=self.set_cookie)

    async def call(
        self, path: str, params: dict[str, object], credential: SessionCredential
    ) -> object:
        self.calls.append((path, params))
        if path == "/dataset/search_read":
            return {"length": len(self.records), "records": self.records}
        if path == "/dataset/call_button":
            return True
        method = params["method"]
        if method == "read_group":
            field_name = params["kwargs"]["groupby"][0]
            return {
                "gt_batch_id": self.batches,
                "semester": self.semesters,
                "config_id": self.configs,
            }[field_name]
        if method == "read":
            record_id = params["args"][0][0]
            if record_id in self.failing_reads:
                raise RemoteFault("Record is locked")
            return [
                {"id": record_id, "questions_line": self.question_lines[record_id]}
            ]
        if method == "write":
            return True
        raise AssertionError(f"unexpected call {path} {method}")

    def calls_for(self, method: str) -> list[dict[str, object]]:
        """Return params of every call_kw/call_button with the given method."""
        return [params for _, params in self.calls if params.get("method") == method]


def collect_events(run) -> list[dict[str, object]]:  # type: ignore[no-untyped-def]
    """Drive a pipeline coroutine factory and gather its events as dicts."""

    async def _collect() -> list[dict[str, object]]:
        channel = EventChannel()
        await run(channel)
        return [
            event.model_dump(exclude_none=True) async for event in channel
        ]

    return asyncio.run(_collect())


@pytest.fixture
def settings() -> Settings:
    return Settings(
        erp_base_url="https://erp.test",
        erp_database="testdb",
        environment="test",
    )


@pytest.fixture
def erp_client() -> FakeErpClient:
    return FakeErpClient()


@pytest.fixture
def credential() -> SessionCredential:
    return SessionCredential(token="token-123", session_id="session-abc", user_id=42)


@pytest.fixture
def container(settings: Settings, erp_client: FakeErpClient) -> AppContainer:
    pipeline = build_pipeline(settings, erp_client)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        erp_client=erp_client,
        auth_service=pipeline.auth_service,
        pipeline=pipeline,
        close_resources=close_resources,
    )
