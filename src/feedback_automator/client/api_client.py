"""HTTP client for the automation endpoint."""

import logging
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass

import httpx
from pydantic import BaseModel, ValidationError

from feedback_automator.domain.events import decode_event

_logger = logging.getLogger(__name__)


class AutomateRequestError(Exception):
    """The server rejected the request before streaming started."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class AutomateApiClient:
    """Streams run events from POST /api/automate."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "AutomateApiClient":
        """Create a client with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def start_run(
        self,
        username: str,
        password: str,
        *,
        feedback_mode: str = "set-all",
        rating: int | None = 1,
    ) -> AsyncIterator[BaseModel]:
        """Start a run and yield its events as they arrive."""
        payload: dict[str, object] = {
            "username": username,
            "password": password,
            "feedbackMode": feedback_mode,
            "rating": rating if feedback_mode == "set-all" else None,
        }
        async for event in self._stream(payload):
            yield event

    async def submit_ratings(
        self, username: str, password: str, ratings: Mapping[int, int]
    ) -> AsyncIterator[BaseModel]:
        """Issue the custom-mode follow-up run carrying per-record ratings."""
        payload: dict[str, object] = {
            "username": username,
            "password": password,
            "feedbackMode": "custom",
            "facultyRatings": {str(key): value for key, value in ratings.items()},
        }
        async for event in self._stream(payload):
            yield event

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _stream(self, payload: dict[str, object]) -> AsyncIterator[BaseModel]:
        url = f"{self.base_url}/api/automate"
        async with self.http_client.stream(
            "POST", url, json=payload, timeout=None
        ) as response:
            if response.status_code >= 400:  # noqa: PLR2004
                await response.aread()
                raise AutomateRequestError(
                    response.status_code, _error_message(response)
                )
            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                try:
                    yield decode_event(line)
                except ValidationError:
                    _logger.warning("Skipping undecodable event line: %s", line[:200])


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return f"HTTP {response.status_code}"
