"""Client-side agent store and local agent profiles."""

import random
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

AVATAR_COUNT = 14
DEFAULT_TONE = 30
LOCAL_AGENT_PERSONA = "Local system agent connected to your computer"
LOCAL_AGENT_GOALS = ("Execute local tasks", "Manage files", "Run scripts")


@dataclass(frozen=True)
class LocalAgent:
    """Agent profile kept by the client after pairing."""

    id: str
    name: str
    type: str
    pairing_code: str
    username: str
    avatar_id: int
    status: str
    tone: int
    persona: str
    goals: tuple[str, ...]
    created_at: datetime
    total_tasks: int = 0
    total_approvals: int = 0


class AgentStore(Protocol):
    """Mutable client state touched by a successful pairing."""

    def add_agent(self, agent: LocalAgent) -> None:
        """Add a paired agent."""

    def select_agent(self, agent_id: str) -> None:
        """Make an agent the active one."""

    def set_onboarded(self, onboarded: bool) -> None:
        """Mark onboarding as finished or not."""

    def set_authenticated(self, authenticated: bool) -> None:
        """Mark the user as signed in or not."""


@dataclass
class LocalAgentStore(AgentStore):
    """In-process agent store injected into the orchestrator."""

    agents: list[LocalAgent] = field(default_factory=list)
    selected_agent_id: str | None = None
    onboarded: bool = False
    authenticated: bool = False

    def add_agent(self, agent: LocalAgent) -> None:
        """Add or replace an agent by id."""
        self.agents = [existing for existing in self.agents if existing.id != agent.id]
        self.agents.append(agent)

    def select_agent(self, agent_id: str) -> None:
        """Select an agent that is already in the store."""
        if not any(agent.id == agent_id for agent in self.agents):
            raise KeyError(agent_id)
        self.selected_agent_id = agent_id

    def set_onboarded(self, onboarded: bool) -> None:
        self.onboarded = onboarded

    def set_authenticated(self, authenticated: bool) -> None:
        self.authenticated = authenticated

    @property
    def selected_agent(self) -> LocalAgent | None:
        for agent in self.agents:
            if agent.id == self.selected_agent_id:
                return agent
        return None


def build_local_agent(
    descriptor: dict[str, object],
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> LocalAgent:
    """Expand a server agent descriptor into a full local profile."""
    chooser = rng or random.Random()
    agent_id = str(descriptor["id"])
    return LocalAgent(
        id=agent_id,
        name=str(descriptor.get("name") or "Local Agent"),
        type=str(descriptor.get("type") or "local"),
        pairing_code=str(descriptor.get("pairingCode") or ""),
        username=f"@local_{agent_id[-4:]}",
        avatar_id=chooser.randint(1, AVATAR_COUNT),
        status="idle",
        tone=DEFAULT_TONE,
        persona=LOCAL_AGENT_PERSONA,
        goals=LOCAL_AGENT_GOALS,
        created_at=now or datetime.now(tz=UTC),
    )
