"""Client-side pairing flow mirroring the server state machine.

The orchestrator owns a local UI state, a countdown that bounds how long the
user has to present or scan a code, and the completion call. It never
touches global state: the agent store and navigator are injected.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

import httpx

from agent_pairing.adapters.pairing_api_client import (
    PairingApiClient,
    PairingApiError,
    PairingTicket,
)
from agent_pairing.client.store import AgentStore, LocalAgent, build_local_agent
from agent_pairing.domain.errors import InvalidTransitionError, SessionExpiredError
from agent_pairing.services.codes import is_valid_code

logger = logging.getLogger(__name__)

HOME_ROUTE = "/(app)/(tabs)"
INVALID_CODE_MESSAGE = "Please enter a valid 6-character pairing code"
INVALID_SCAN_MESSAGE = "Scanned code is not a valid pairing code"


class ClientState(str, Enum):
    """States of the pairing screen."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    SCANNING = "scanning"
    PROCESSING = "processing"
    CONNECTED = "connected"
    ERROR = "error"
    TIMEOUT = "timeout"

    def can_transition_to(self, target: "ClientState") -> bool:
        return target in _CLIENT_TRANSITIONS[self]


_CLIENT_TRANSITIONS: dict[ClientState, frozenset[ClientState]] = {
    ClientState.IDLE: frozenset({ClientState.INITIALIZING}),
    ClientState.INITIALIZING: frozenset({ClientState.SCANNING, ClientState.ERROR}),
    ClientState.SCANNING: frozenset({ClientState.PROCESSING, ClientState.TIMEOUT}),
    ClientState.PROCESSING: frozenset(
        {ClientState.CONNECTED, ClientState.ERROR, ClientState.TIMEOUT}
    ),
    ClientState.CONNECTED: frozenset(),
    ClientState.ERROR: frozenset({ClientState.IDLE}),
    ClientState.TIMEOUT: frozenset({ClientState.IDLE}),
}


class Navigator(Protocol):
    """Moves the app to another screen."""

    def navigate(self, route: str) -> None:
        """Replace the current screen with ``route``."""


@dataclass
class PairingOrchestrator:
    """Drives one pairing attempt from code display to a registered agent."""

    api_client: PairingApiClient
    agent_store: AgentStore
    navigator: Navigator
    agent_name: str | None = "Local Computer"
    countdown_seconds: int = 30
    tick_seconds: float = 1.0
    navigation_delay_seconds: float = 0.5
    home_route: str = HOME_ROUTE
    state: ClientState = ClientState.IDLE
    ticket: PairingTicket | None = None
    seconds_remaining: int = field(default=0, init=False)
    error_message: str | None = None
    manual_code: str = ""
    scanner_open: bool = False
    agent: LocalAgent | None = None
    _alive: bool = field(default=True, init=False, repr=False)
    _countdown_task: asyncio.Task | None = field(default=None, init=False, repr=False)
    _navigation: asyncio.TimerHandle | None = field(
        default=None, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.seconds_remaining = self.countdown_seconds

    @property
    def is_busy(self) -> bool:
        return self.state in {ClientState.INITIALIZING, ClientState.PROCESSING}

    async def start(self) -> None:
        """Request a new session and begin the scan countdown."""
        if not self._alive:
            return
        self._transition(ClientState.INITIALIZING)
        self.error_message = None
        try:
            ticket = await self.api_client.init_pairing(self.agent_name)
        except (PairingApiError, httpx.HTTPError) as exc:
            if self._alive:
                self._fail(_describe(exc, "Failed to start pairing"))
            return
        except Exception:
            logger.exception("Unexpected failure starting pairing")
            if self._alive:
                self._fail("Failed to start pairing")
            return
        if not self._alive:
            return
        self.ticket = ticket
        self._transition(ClientState.SCANNING)
        self.seconds_remaining = self.countdown_seconds
        self.scanner_open = True
        self._countdown_task = asyncio.create_task(self._run_countdown())

    async def on_code_scanned(self, code: str) -> None:
        """Complete pairing with a code read by the camera."""
        normalized = code.strip().upper()
        if not is_valid_code(normalized):
            if self._alive and self.state is ClientState.SCANNING:
                self.error_message = INVALID_SCAN_MESSAGE
            return
        await self._complete(normalized, normalized)

    async def submit_manual_code(self, code: str) -> None:
        """Complete pairing with a code typed by the user."""
        normalized = code.strip().upper()
        if not is_valid_code(normalized):
            self.manual_code = ""
            self.error_message = INVALID_CODE_MESSAGE
            return
        self.manual_code = normalized
        await self._complete(normalized, normalized)

    async def check_status(self) -> str | None:
        """Poll the server for the current session; expiry ends the scan."""
        if not self._alive or self.ticket is None:
            return None
        try:
            status = await self.api_client.get_status(self.ticket.session_id)
        except (PairingApiError, httpx.HTTPError) as exc:
            logger.warning("Pairing status poll failed: %s", exc)
            return None
        if not self._alive:
            return None
        if status == "expired" and self.state is ClientState.SCANNING:
            self._stop_countdown()
            self.scanner_open = False
            self.error_message = SessionExpiredError.default_message
            self._transition(ClientState.TIMEOUT)
        return status

    def retry(self) -> None:
        """Reset to idle, discarding the previous session."""
        self._transition(ClientState.IDLE)
        self.ticket = None
        self.agent = None
        self.manual_code = ""
        self.error_message = None
        self.scanner_open = False
        self.seconds_remaining = self.countdown_seconds

    def close(self) -> None:
        """Tear down timers and the scanner; later results are dropped."""
        self._alive = False
        self._stop_countdown()
        self.scanner_open = False
        if self._navigation is not None:
            self._navigation.cancel()
            self._navigation = None

    async def _complete(self, session_id: str, pairing_code: str) -> None:
        if not self._alive or self.state is not ClientState.SCANNING:
            logger.debug("Ignoring pairing code while %s", self.state.value)
            return
        self._stop_countdown()
        self._transition(ClientState.PROCESSING)
        self.error_message = None
        try:
            descriptor = await self.api_client.complete_pairing(
                session_id, pairing_code
            )
            agent = build_local_agent(descriptor)
        except PairingApiError as exc:
            if not self._alive:
                return
            self.scanner_open = False
            if exc.code == SessionExpiredError.code:
                self.error_message = exc.message
                self._transition(ClientState.TIMEOUT)
            else:
                self._fail(exc.message)
            return
        except httpx.HTTPError as exc:
            if self._alive:
                self.scanner_open = False
                self._fail(_describe(exc, "Failed to complete pairing"))
            return
        except Exception:
            logger.exception("Unexpected failure completing pairing %s", session_id)
            if self._alive:
                self.scanner_open = False
                self._fail("Failed to complete pairing")
            return
        if not self._alive:
            return

        self.agent_store.set_onboarded(True)
        self.agent_store.set_authenticated(True)
        self.agent_store.add_agent(agent)
        self.agent_store.select_agent(agent.id)
        self.agent = agent
        self.scanner_open = False
        self._transition(ClientState.CONNECTED)
        self._navigation = asyncio.get_running_loop().call_later(
            self.navigation_delay_seconds, self._navigate_home
        )

    async def _run_countdown(self) -> None:
        while self.seconds_remaining > 0:
            await asyncio.sleep(self.tick_seconds)
            if not self._alive or self.state is not ClientState.SCANNING:
                return
            self.seconds_remaining -= 1
        self._countdown_task = None
        self.scanner_open = False
        self._transition(ClientState.TIMEOUT)

    def _stop_countdown(self) -> None:
        task = self._countdown_task
        self._countdown_task = None
        if task is not None and not task.done():
            task.cancel()

    def _navigate_home(self) -> None:
        self._navigation = None
        if self._alive:
            self.navigator.navigate(self.home_route)

    def _fail(self, message: str) -> None:
        self.error_message = message
        self._transition(ClientState.ERROR)

    def _transition(self, target: ClientState) -> None:
        if not self.state.can_transition_to(target):
            raise InvalidTransitionError(
                f"Cannot move pairing screen from {self.state.value} to {target.value}"
            )
        logger.info("Pairing screen %s -> %s", self.state.value, target.value)
        self.state = target


def _describe(exc: Exception, fallback: str) -> str:
    if isinstance(exc, PairingApiError):
        return exc.message
    return str(exc) or fallback
