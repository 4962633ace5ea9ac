"""In-memory pairing session repository."""

import threading
from dataclasses import dataclass, field, replace

from agent_pairing.domain.errors import SessionAlreadyExistsError
from agent_pairing.domain.pairing import PairingSession, PairingStatus
from agent_pairing.services.pairing import PairingSessionRepository


@dataclass
class InMemoryPairingSessionRepository(PairingSessionRepository):
    """Lock-guarded dict of sessions for single-process deployments."""

    sessions: dict[str, PairingSession] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def create_session(self, session: PairingSession) -> None:
        """Insert a session unless the id is already stored."""
        with self._lock:
            if session.session_id in self.sessions:
                raise SessionAlreadyExistsError()
            self.sessions[session.session_id] = session

    def get_session(self, session_id: str) -> PairingSession | None:
        """Return a session by id, if present."""
        with self._lock:
            return self.sessions.get(session_id)

    def transition_status(
        self,
        session_id: str,
        from_status: PairingStatus,
        to_status: PairingStatus,
    ) -> bool:
        """Compare-and-set the status of a stored session."""
        with self._lock:
            current = self.sessions.get(session_id)
            if current is None or current.status is not from_status:
                return False
            self.sessions[session_id] = replace(current, status=to_status)
            return True

    def delete_session(self, session_id: str) -> bool:
        """Remove a session and report whether it was present."""
        with self._lock:
            return self.sessions.pop(session_id, None) is not None
