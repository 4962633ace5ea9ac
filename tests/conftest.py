"""Shared test fixtures."""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from agent_pairing.adapters.memory_pairing_repository import (
    InMemoryPairingSessionRepository,
)
from agent_pairing.adapters.pairing_api_client import (
    PairingApiClient,
    PairingApiError,
    PairingTicket,
)
from agent_pairing.config import Settings
from agent_pairing.containers import AppContainer
from agent_pairing.domain.pairing import PairedAgent
from agent_pairing.services.agents import AgentRegistry
from agent_pairing.services.codes import CodeSource
from agent_pairing.services.pairing import PairingService, PairingSessionRepository

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = T0

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@dataclass
class SequenceCodeSource(CodeSource):
    """Code source that replays a fixed list of codes."""

    codes: list[str]
    calls: int = 0

    def generate(self) -> str:
        code = self.codes[min(self.calls, len(self.codes) - 1)]
        self.calls += 1
        return code


@dataclass
class RecordingAgentRegistry(AgentRegistry):
    """Agent registry that remembers every registration."""

    agents: list[PairedAgent] = field(default_factory=list)

    def register(self, agent: PairedAgent) -> PairedAgent:
        self.agents.append(agent)
        return agent


@dataclass
class RecordingNavigator:
    """Navigator that records requested routes."""

    routes: list[str] = field(default_factory=list)

    def navigate(self, route: str) -> None:
        self.routes.append(route)


@dataclass
class FakePairingApiClient(PairingApiClient):
    """Scriptable stand-in for the pairing HTTP API."""

    ticket: PairingTicket = field(
        default_factory=lambda: PairingTicket(
            session_id="AB12C3",
            qr_code="AB12C3",
            expires_at=T0 + timedelta(minutes=10),
        )
    )
    agent: dict[str, object] = field(
        default_factory=lambda: {
            "id": "agent-AB12C3",
            "name": "Local Computer",
            "type": "local",
            "pairingCode": "AB12C3",
            "status": "connected",
        }
    )
    status: str = "pending"
    init_error: Exception | None = None
    complete_error: Exception | None = None
    complete_gate: asyncio.Event | None = None
    init_calls: list[str | None] = field(default_factory=list)
    complete_calls: list[tuple[str, str | None]] = field(default_factory=list)
    status_calls: list[str] = field(default_factory=list)

    async def init_pairing(self, agent_name: str | None = None) -> PairingTicket:
        self.init_calls.append(agent_name)
        if self.init_error is not None:
            raise self.init_error
        return self.ticket

    async def complete_pairing(
        self, session_id: str, pairing_code: str | None = None
    ) -> dict[str, object]:
        self.complete_calls.append((session_id, pairing_code))
        if self.complete_gate is not None:
            await self.complete_gate.wait()
        if self.complete_error is not None:
            raise self.complete_error
        return self.agent

    async def get_status(self, session_id: str) -> str:
        self.status_calls.append(session_id)
        return self.status


def not_found_error() -> PairingApiError:
    return PairingApiError(
        "Pairing session not found", code="SESSION_NOT_FOUND", status_code=404
    )


def expired_error() -> PairingApiError:
    return PairingApiError(
        "Pairing session has expired", code="SESSION_EXPIRED", status_code=400
    )


def build_service(
    repository: PairingSessionRepository | None = None,
    clock: FakeClock | None = None,
    codes: Iterable[str] | None = None,
    registry: AgentRegistry | None = None,
    max_code_attempts: int = 20,
) -> PairingService:
    service = PairingService(
        repository=repository or InMemoryPairingSessionRepository(),
        clock=clock or FakeClock(),
        max_code_attempts=max_code_attempts,
    )
    if codes is not None:
        service.code_source = SequenceCodeSource(list(codes))
    if registry is not None:
        service.agent_registry = registry
    return service


@pytest.fixture
def settings() -> Settings:
    return Settings(
        session_store="memory",
        supabase_url=None,
        supabase_service_key=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository() -> InMemoryPairingSessionRepository:
    return InMemoryPairingSessionRepository()


@pytest.fixture
def pairing_service(
    repository: InMemoryPairingSessionRepository, clock: FakeClock
) -> PairingService:
    return build_service(repository=repository, clock=clock)


@pytest.fixture
def container(settings: Settings, pairing_service: PairingService) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        pairing_service=pairing_service,
        close_resources=close_resources,
    )
