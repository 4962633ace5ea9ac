"""ASGI entrypoint for the agent pairing API."""

from agent_pairing.api.app import create_app
from agent_pairing.containers import build_container

app = create_app(build_container())
