"""Agent registry collaborator used after a successful pairing."""

import logging
from dataclasses import dataclass
from typing import Protocol

from agent_pairing.domain.pairing import PairedAgent

logger = logging.getLogger(__name__)


class AgentRegistry(Protocol):
    """Interface for recording newly paired agents."""

    def register(self, agent: PairedAgent) -> PairedAgent:
        """Record the agent and return the descriptor to hand back."""


@dataclass
class EchoAgentRegistry(AgentRegistry):
    """Registry that records nothing and returns the agent unchanged."""

    def register(self, agent: PairedAgent) -> PairedAgent:
        """Return the agent as-is."""
        logger.info("Registered paired agent %s", agent.id)
        return agent
