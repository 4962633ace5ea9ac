"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import ClientOptions, create_client

from agent_pairing.adapters.memory_pairing_repository import (
    InMemoryPairingSessionRepository,
)
from agent_pairing.adapters.pairing_api_client import HttpxPairingApiClient
from agent_pairing.adapters.supabase_pairing_repository import (
    SupabasePairingSessionRepository,
)
from agent_pairing.client.orchestrator import Navigator, PairingOrchestrator
from agent_pairing.client.store import AgentStore
from agent_pairing.config import Settings, require_supabase_credentials
from agent_pairing.services.agents import EchoAgentRegistry
from agent_pairing.services.codes import CodeGenerator
from agent_pairing.services.pairing import PairingService, PairingSessionRepository


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    pairing_service: PairingService
    close_resources: Callable[[], Awaitable[None]]


def build_session_repository(settings: Settings) -> PairingSessionRepository:
    """Create the session store selected by ``settings.session_store``."""
    if settings.session_store == "memory":
        return InMemoryPairingSessionRepository()
    supabase_url, supabase_key = require_supabase_credentials(settings)
    supabase_client = create_client(
        supabase_url,
        supabase_key,
        options=ClientOptions(
            postgrest_client_timeout=settings.supabase_timeout_seconds
        ),
    )
    return SupabasePairingSessionRepository(supabase_client)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    pairing_service = PairingService(
        repository=build_session_repository(resolved_settings),
        code_source=CodeGenerator(),
        agent_registry=EchoAgentRegistry(),
        ttl=timedelta(seconds=resolved_settings.pairing_ttl_seconds),
        max_code_attempts=resolved_settings.pairing_max_code_attempts,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=resolved_settings,
        pairing_service=pairing_service,
        close_resources=close_resources,
    )


def build_client_orchestrator(
    settings: Settings,
    agent_store: AgentStore,
    navigator: Navigator,
) -> tuple[PairingOrchestrator, Callable[[], Awaitable[None]]]:
    """Create a pairing orchestrator and the coroutine that releases it."""
    api_client = HttpxPairingApiClient.create(
        settings.client_backend_url,
        timeout=settings.client_request_timeout_seconds,
    )
    orchestrator = PairingOrchestrator(
        api_client=api_client,
        agent_store=agent_store,
        navigator=navigator,
        countdown_seconds=settings.client_countdown_seconds,
    )

    async def close_resources() -> None:
        orchestrator.close()
        await api_client.close()

    return orchestrator, close_resources
