"""Domain models for pairing sessions."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from agent_pairing.domain.errors import InvalidTransitionError


class PairingStatus(str, Enum):
    """Server-side lifecycle of a pairing session."""

    PENDING = "pending"
    CONNECTED = "connected"
    EXPIRED = "expired"

    def can_transition_to(self, target: "PairingStatus") -> bool:
        """Return whether moving to ``target`` is a legal forward step."""
        return target in _STATUS_TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not _STATUS_TRANSITIONS[self]


_STATUS_TRANSITIONS: dict[PairingStatus, frozenset[PairingStatus]] = {
    PairingStatus.PENDING: frozenset(
        {PairingStatus.CONNECTED, PairingStatus.EXPIRED}
    ),
    PairingStatus.CONNECTED: frozenset(),
    PairingStatus.EXPIRED: frozenset(),
}


@dataclass(frozen=True)
class PairingSession:
    """Represents a persisted pairing session."""

    session_id: str
    qr_code: str
    agent_name: str | None
    status: PairingStatus
    created_at: datetime
    expires_at: datetime

    def is_past_ttl(self, now: datetime) -> bool:
        """Return True once ``now`` is strictly after the expiry instant."""
        return now > self.expires_at

    def with_status(self, status: PairingStatus) -> "PairingSession":
        """Return a copy moved to ``status``, rejecting illegal transitions."""
        if not self.status.can_transition_to(status):
            raise InvalidTransitionError(
                f"Cannot move session {self.session_id} "
                f"from {self.status.value} to {status.value}"
            )
        return replace(self, status=status)


@dataclass(frozen=True)
class PairedAgent:
    """Agent descriptor handed back by a successful completion."""

    id: str
    name: str
    type: str
    pairing_code: str
    status: str

    def to_payload(self) -> dict[str, str]:
        """Serialize using the wire field names."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "pairingCode": self.pairing_code,
            "status": self.status,
        }
