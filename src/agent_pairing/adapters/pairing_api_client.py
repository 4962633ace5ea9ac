"""HTTP client for the pairing API."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import httpx


class PairingApiError(Exception):
    """Raised when the pairing API answers with an error envelope."""

    def __init__(
        self, message: str, code: str | None = None, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


@dataclass(frozen=True)
class PairingTicket:
    """Session details returned by a pairing init call."""

    session_id: str
    qr_code: str
    expires_at: datetime


class PairingApiClient(Protocol):
    """Interface for the server calls the client orchestrator makes."""

    async def init_pairing(self, agent_name: str | None = None) -> PairingTicket:
        """Start a pairing session."""

    async def complete_pairing(
        self, session_id: str, pairing_code: str | None = None
    ) -> dict[str, object]:
        """Complete a pairing session and return the agent descriptor."""

    async def get_status(self, session_id: str) -> str:
        """Return the server-side status of a pairing session."""


@dataclass
class HttpxPairingApiClient:
    """Pairing API client implemented with httpx."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 10.0

    @classmethod
    def create(cls, base_url: str, timeout: float = 10.0) -> "HttpxPairingApiClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def init_pairing(self, agent_name: str | None = None) -> PairingTicket:
        """Call ``POST /api/agents/pair/init``."""
        payload: dict[str, object] = {}
        if agent_name is not None:
            payload["agentName"] = agent_name
        response = await self.http_client.post(
            f"{self.base_url}/api/agents/pair/init",
            json=payload,
            timeout=self.timeout,
        )
        fallback = "Failed to initialize pairing session"
        data = _unwrap(response, fallback)
        try:
            return PairingTicket(
                session_id=str(data["sessionId"]),
                qr_code=str(data["qrCode"]),
                expires_at=datetime.fromisoformat(data["expiresAt"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise _malformed(response, fallback) from exc

    async def complete_pairing(
        self, session_id: str, pairing_code: str | None = None
    ) -> dict[str, object]:
        """Call ``POST /api/agents/pair``."""
        payload: dict[str, object] = {"sessionId": session_id}
        if pairing_code is not None:
            payload["pairingCode"] = pairing_code
        response = await self.http_client.post(
            f"{self.base_url}/api/agents/pair",
            json=payload,
            timeout=self.timeout,
        )
        agent = _unwrap(response, "Pairing failed").get("agent")
        if not isinstance(agent, dict) or "id" not in agent:
            raise _malformed(response, "Pairing failed")
        return agent

    async def get_status(self, session_id: str) -> str:
        """Call ``GET /api/agents/pair/status/{sessionId}``."""
        response = await self.http_client.get(
            f"{self.base_url}/api/agents/pair/status/{session_id}",
            timeout=self.timeout,
        )
        status = _unwrap(response, "Failed to fetch pairing status").get("status")
        if not isinstance(status, str):
            raise _malformed(response, "Failed to fetch pairing status")
        return status

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()


def _unwrap(response: httpx.Response, fallback_message: str) -> dict:
    """Return the ``data`` member of a success envelope or raise.

    Success responses that are not a ``{"data": {...}}`` JSON envelope,
    such as a proxy's HTML page, raise ``PairingApiError`` as well.
    """
    if response.is_success:
        try:
            data = response.json()["data"]
        except (KeyError, TypeError, ValueError) as exc:
            raise _malformed(response, fallback_message) from exc
        if not isinstance(data, dict):
            raise _malformed(response, fallback_message)
        return data
    try:
        error = response.json().get("error") or {}
    except (AttributeError, ValueError):
        error = {}
    if not isinstance(error, dict):
        error = {}
    raise PairingApiError(
        error.get("message") or fallback_message,
        code=error.get("code"),
        status_code=response.status_code,
    )


def _malformed(response: httpx.Response, message: str) -> PairingApiError:
    return PairingApiError(message, status_code=response.status_code)
