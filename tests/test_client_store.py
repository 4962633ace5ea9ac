"""Tests for the client agent store."""

import random

import pytest

from agent_pairing.client.store import (
    LOCAL_AGENT_GOALS,
    LocalAgentStore,
    build_local_agent,
)
from tests.conftest import T0


def _descriptor(agent_id: str = "agent-AB12C3") -> dict[str, object]:
    return {
        "id": agent_id,
        "name": "Local Computer",
        "type": "local",
        "pairingCode": "AB12C3",
        "status": "connected",
    }


def test_build_local_agent_fills_profile() -> None:
    agent = build_local_agent(_descriptor(), rng=random.Random(7), now=T0)

    assert agent.username == "@local_12C3"
    assert 1 <= agent.avatar_id <= 14
    assert agent.status == "idle"
    assert agent.tone == 30
    assert agent.goals == LOCAL_AGENT_GOALS
    assert agent.created_at == T0
    assert agent.total_tasks == 0
    assert agent.total_approvals == 0


def test_add_agent_replaces_same_id() -> None:
    store = LocalAgentStore()
    first = build_local_agent(_descriptor(), now=T0)
    second = build_local_agent({**_descriptor(), "name": "Renamed"}, now=T0)

    store.add_agent(first)
    store.add_agent(second)

    assert [agent.name for agent in store.agents] == ["Renamed"]


def test_select_unknown_agent_raises() -> None:
    store = LocalAgentStore()

    with pytest.raises(KeyError):
        store.select_agent("agent-missing")
    assert store.selected_agent is None
