"""JSON-RPC client for the ERP portal."""

import json
import logging
from dataclasses import dataclass
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Protocol

import httpx

from feedback_automator.domain.errors import RemoteFault, TransportFault
from feedback_automator.domain.models import SessionCredential

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResponse:
    """Raw authentication result with the session cookie header."""

    body: dict[str, object]
    set_cookie: str | None


class ErpClient(Protocol):
    """Interface for ERP portal RPC calls."""

    async def authenticate(
        self, database: str, login: str, password: str
    ) -> AuthResponse:
        """Post credentials to the authentication endpoint."""

    async def call(
        self, path: str, params: dict[str, object], credential: SessionCredential
    ) -> object:
        """Invoke an RPC endpoint and return its unwrapped result."""


@dataclass
class HttpxErpClient:
    """ERP client implemented with httpx."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 30.0

    @classmethod
    def create(cls, base_url: str, timeout: float = 30.0) -> "HttpxErpClient":
        """Create an ERP client whose session keeps no cookies between calls."""
        stateless_jar = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(cookies=stateless_jar),
            timeout=timeout,
        )

    async def authenticate(
        self, database: str, login: str, password: str
    ) -> AuthResponse:
        """Call session/authenticate; transport problems surface as faults."""
        payload = _envelope(
            {
                "db": database,
                "login": login,
                "password": password,
                "base_location": self.base_url,
                "context": {},
            }
        )
        response = await self._post("/session/authenticate", payload, headers=None)
        body = _decode(response)
        cookies = response.headers.get_list("set-cookie")
        return AuthResponse(body=body, set_cookie=cookies[0] if cookies else None)

    async def call(
        self, path: str, params: dict[str, object], credential: SessionCredential
    ) -> object:
        """Send one envelope call with the session cookie attached."""
        response = await self._post(
            path,
            _envelope(params),
            headers={"Cookie": f"sid={credential.token}"},
        )
        body = _decode(response)
        error = body.get("error")
        if error:
            _logger.error(
                "ERP call %s failed: %s", path, json.dumps(error, default=str)
            )
            raise RemoteFault(_fault_message(error), detail=error)
        return body.get("result")

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _post(
        self,
        path: str,
        payload: dict[str, object],
        headers: dict[str, str] | None,
    ) -> httpx.Response:
        url = f"{self.base_url}/web{path}"
        try:
            response = await self.http_client.post(
                url, json=payload, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            _logger.error("ERP transport failure on %s: %s", path, exc)
            raise TransportFault(f"Could not reach the ERP portal: {exc}") from exc
        return response


def _envelope(params: dict[str, object]) -> dict[str, object]:
    return {"jsonrpc": "2.0", "method": "call", "params": params}


def _decode(response: httpx.Response) -> dict[str, object]:
    try:
        body = response.json()
    except ValueError as exc:
        raise TransportFault("ERP portal returned a malformed response") from exc
    if not isinstance(body, dict):
        raise TransportFault("ERP portal returned a malformed response")
    return body


def _fault_message(error: object) -> str:
    """Pull the human-readable message out of a JSON-RPC error object."""
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
        data = error.get("data")
        if isinstance(data, dict):
            data_message = data.get("message")
            if isinstance(data_message, str) and data_message:
                return data_message
    return "Remote call failed"
