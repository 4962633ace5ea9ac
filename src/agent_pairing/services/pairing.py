"""Pairing handshake: session allocation, lazy expiry and completion."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from agent_pairing.domain.errors import (
    SessionAlreadyExistsError,
    SessionExpiredError,
    SessionNotFoundError,
    StorageUnavailableError,
)
from agent_pairing.domain.pairing import PairedAgent, PairingSession, PairingStatus
from agent_pairing.services.agents import AgentRegistry, EchoAgentRegistry
from agent_pairing.services.codes import CodeGenerator, CodeSource

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=10)
DEFAULT_MAX_CODE_ATTEMPTS = 20
DEFAULT_AGENT_NAME = "Local Agent"


class PairingSessionRepository(Protocol):
    """Persistence interface for pairing sessions."""

    def create_session(self, session: PairingSession) -> None:
        """Store a new session, raising SessionAlreadyExistsError on conflict."""

    def get_session(self, session_id: str) -> PairingSession | None:
        """Return a session by id, if present."""

    def transition_status(
        self,
        session_id: str,
        from_status: PairingStatus,
        to_status: PairingStatus,
    ) -> bool:
        """Set ``to_status`` only if the stored status is ``from_status``."""

    def delete_session(self, session_id: str) -> bool:
        """Delete a session and return whether it existed."""


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


@dataclass
class PairingService:
    """Implements init, status and complete over a session repository.

    The service keeps no state of its own. Every decision that must be
    atomic per session id is pushed into ``transition_status`` so the
    repository serializes concurrent callers.
    """

    repository: PairingSessionRepository
    code_source: CodeSource = field(default_factory=CodeGenerator)
    agent_registry: AgentRegistry = field(default_factory=EchoAgentRegistry)
    clock: Callable[[], datetime] = utc_now
    ttl: timedelta = DEFAULT_TTL
    max_code_attempts: int = DEFAULT_MAX_CODE_ATTEMPTS

    def init_session(self, agent_name: str | None = None) -> PairingSession:
        """Allocate an unused code and persist a pending session."""
        for attempt in range(1, self.max_code_attempts + 1):
            code = self.code_source.generate()
            if self.repository.get_session(code) is not None:
                logger.info("Pairing code collision on attempt %d", attempt)
                continue
            created_at = self.clock()
            session = PairingSession(
                session_id=code,
                qr_code=code,
                agent_name=agent_name or None,
                status=PairingStatus.PENDING,
                created_at=created_at,
                expires_at=created_at + self.ttl,
            )
            try:
                self.repository.create_session(session)
            except SessionAlreadyExistsError:
                logger.info("Lost race creating pairing code on attempt %d", attempt)
                continue
            logger.info(
                "Created pairing session %s expiring at %s",
                session.session_id,
                session.expires_at.isoformat(),
            )
            return session
        raise StorageUnavailableError(
            f"Could not allocate a pairing code after {self.max_code_attempts} attempts"
        )

    def get_status(self, session_id: str) -> PairingStatus:
        """Return the session status, persisting expiry when it is due."""
        session = self._require_session(session_id)
        if session.status is PairingStatus.PENDING and session.is_past_ttl(
            self.clock()
        ):
            if self._expire(session):
                return PairingStatus.EXPIRED
            # Someone else moved it first; report what they left behind.
            return self._require_session(session_id).status
        return session.status

    def complete_session(
        self, session_id: str, pairing_code: str | None = None
    ) -> PairedAgent:
        """Claim a pending session exactly once and return the paired agent."""
        session = self._require_session(session_id)
        if session.status is PairingStatus.CONNECTED:
            raise SessionNotFoundError()
        if session.status is PairingStatus.EXPIRED:
            raise SessionExpiredError()
        if session.is_past_ttl(self.clock()):
            self._expire(session)
            raise SessionExpiredError()

        claimed = session.with_status(PairingStatus.CONNECTED)
        if not self.repository.transition_status(
            session_id, PairingStatus.PENDING, claimed.status
        ):
            latest = self.repository.get_session(session_id)
            if latest is not None and latest.status is PairingStatus.EXPIRED:
                raise SessionExpiredError()
            logger.info("Lost completion race for pairing session %s", session_id)
            raise SessionNotFoundError()

        # The claimed record is deleted whether or not registration succeeds.
        try:
            agent = self.agent_registry.register(_build_agent(claimed, pairing_code))
        finally:
            self.repository.delete_session(session_id)
        logger.info("Completed pairing session %s as %s", session_id, agent.id)
        return agent

    def _require_session(self, session_id: str) -> PairingSession:
        session = self.repository.get_session(session_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    def _expire(self, session: PairingSession) -> bool:
        expired = session.with_status(PairingStatus.EXPIRED)
        changed = self.repository.transition_status(
            session.session_id, PairingStatus.PENDING, expired.status
        )
        if changed:
            logger.info("Pairing session %s expired", session.session_id)
        return changed


def _build_agent(session: PairingSession, pairing_code: str | None) -> PairedAgent:
    return PairedAgent(
        id=f"agent-{session.session_id}",
        name=session.agent_name or DEFAULT_AGENT_NAME,
        type="local",
        pairing_code=pairing_code or session.session_id,
        status=PairingStatus.CONNECTED.value,
    )
