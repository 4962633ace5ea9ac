"""Supabase-backed pairing session repository."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from agent_pairing.domain.errors import (
    SessionAlreadyExistsError,
    StorageUnavailableError,
)
from agent_pairing.domain.pairing import PairingSession, PairingStatus
from agent_pairing.services.pairing import PairingSessionRepository

_TABLE = "pairing_sessions"
_COLUMNS = "session_id, qr_code, agent_name, status, created_at, expires_at"
_UNIQUE_VIOLATION = "23505"

_T = TypeVar("_T")


@dataclass
class SupabasePairingSessionRepository(PairingSessionRepository):
    """Supabase implementation for pairing sessions.

    Expects a unique constraint on ``session_id`` so concurrent inserts of
    the same code fail instead of both succeeding.
    """

    client: Client

    def create_session(self, session: PairingSession) -> None:
        """Insert a session row."""
        try:
            response = (
                self.client.table(_TABLE)
                .insert(
                    {
                        "session_id": session.session_id,
                        "qr_code": session.qr_code,
                        "agent_name": session.agent_name,
                        "status": session.status.value,
                        "created_at": session.created_at.isoformat(),
                        "expires_at": session.expires_at.isoformat(),
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise SessionAlreadyExistsError() from exc
            raise StorageUnavailableError(
                f"Failed to create pairing session: {exc.message}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageUnavailableError("Failed to create pairing session") from exc
        if not response.data:
            raise StorageUnavailableError("Failed to create pairing session")

    def get_session(self, session_id: str) -> PairingSession | None:
        """Return a session by id, if present."""
        response = _call(
            lambda: self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("session_id", session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_session(response.data[0])

    def transition_status(
        self,
        session_id: str,
        from_status: PairingStatus,
        to_status: PairingStatus,
    ) -> bool:
        """Conditionally update status; the row filter carries the guard."""
        response = _call(
            lambda: self.client.table(_TABLE)
            .update(
                {
                    "status": to_status.value,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("session_id", session_id)
            .eq("status", from_status.value)
            .execute()
        )
        return bool(response.data)

    def delete_session(self, session_id: str) -> bool:
        """Delete a session row."""
        response = _call(
            lambda: self.client.table(_TABLE)
            .delete()
            .eq("session_id", session_id)
            .execute()
        )
        return bool(response.data)


def _call(query: Callable[[], _T]) -> _T:
    try:
        return query()
    except (APIError, httpx.HTTPError) as exc:
        raise StorageUnavailableError(f"Pairing storage request failed: {exc}") from exc


def _row_to_session(row: dict[str, object]) -> PairingSession:
    return PairingSession(
        session_id=str(row["session_id"]),
        qr_code=str(row["qr_code"]),
        agent_name=row.get("agent_name"),  # type: ignore[arg-type]
        status=PairingStatus(row["status"]),
        created_at=_parse_timestamp(row["created_at"]),
        expires_at=_parse_timestamp(row["expires_at"]),
    )


def _parse_timestamp(value: object) -> datetime:
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed
