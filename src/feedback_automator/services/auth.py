"""Portal login."""

import logging
from dataclasses import dataclass

from feedback_automator.adapters.erp_client import ErpClient
from feedback_automator.domain.errors import AuthFault
from feedback_automator.domain.models import SessionCredential

_logger = logging.getLogger(__name__)


@dataclass
class AuthService:
    """Exchanges portal credentials for a session credential."""

    client: ErpClient
    database: str

    async def login(self, username: str, password: str) -> SessionCredential:
        """Authenticate, collapsing every failure into a single AuthFault."""
        try:
            response = await self.client.authenticate(
                self.database, username.strip().upper(), password
            )
            result = response.body.get("result")
            if not isinstance(result, dict) or not result.get("uid"):
                raise ValueError("authentication result has no uid")
            token = _session_token(response.set_cookie)
            return SessionCredential(
                token=token,
                session_id=str(result.get("session_id") or ""),
                user_id=int(result["uid"]),
            )
        except Exception as exc:
            _logger.info("Login rejected: %s", type(exc).__name__)
            raise AuthFault() from exc


def _session_token(set_cookie: str | None) -> str:
    """Extract the cookie value from a ``sid=<token>; Path=/`` header."""
    if not set_cookie:
        raise ValueError("authentication response set no session cookie")
    pair = set_cookie.split(";", maxsplit=1)[0]
    _, sep, value = pair.partition("=")
    if not sep or not value:
        raise ValueError("malformed session cookie")
    return value
