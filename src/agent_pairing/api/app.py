"""FastAPI application factory."""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agent_pairing.api.models import CompletePairingRequest, InitPairingRequest
from agent_pairing.app_logging import configure_logging
from agent_pairing.containers import AppContainer
from agent_pairing.domain.errors import PairingError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=container.settings.cors_allow_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    @app.exception_handler(PairingError)
    async def pairing_error_handler(
        request: Request, exc: PairingError
    ) -> JSONResponse:
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(
                "Pairing request failed: %s",
                exc.message,
                extra={"path": request.url.path},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"message": exc.message, "code": exc.code}},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    # Sync handlers run in the threadpool, so slow storage calls for one
    # session never block requests for another.
    @app.post("/api/agents/pair/init", status_code=status.HTTP_201_CREATED)
    def init_pairing(
        request: Request, body: InitPairingRequest | None = None
    ) -> dict[str, object]:
        """Start a pairing session and return its code."""
        state_container: AppContainer = request.app.state.container
        agent_name = body.agent_name if body else None
        session = state_container.pairing_service.init_session(agent_name)
        return {
            "data": {
                "sessionId": session.session_id,
                "qrCode": session.qr_code,
                "expiresAt": _isoformat(session.expires_at),
            }
        }

    @app.post("/api/agents/pair")
    def complete_pairing(
        body: CompletePairingRequest, request: Request
    ) -> dict[str, object]:
        """Complete a pairing session and return the agent descriptor."""
        state_container: AppContainer = request.app.state.container
        agent = state_container.pairing_service.complete_session(
            body.session_id, body.pairing_code
        )
        return {"data": {"agent": agent.to_payload()}}

    @app.get("/api/agents/pair/status/{session_id}")
    def pairing_status(session_id: str, request: Request) -> dict[str, object]:
        """Return the current status of a pairing session."""
        state_container: AppContainer = request.app.state.container
        current = state_container.pairing_service.get_status(session_id)
        return {"data": {"status": current.value}}

    return app


def _isoformat(value: datetime) -> str:
    """Render a datetime in UTC the way JavaScript's toISOString does."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )
