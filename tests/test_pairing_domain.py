"""Tests for pairing domain models and code generation."""

from datetime import timedelta

import pytest

from agent_pairing.domain.errors import InvalidTransitionError
from agent_pairing.domain.pairing import PairedAgent, PairingSession, PairingStatus
from agent_pairing.services.codes import (
    PAIRING_CODE_ALPHABET,
    CodeGenerator,
    is_valid_code,
)
from tests.conftest import T0


def _session(status: PairingStatus = PairingStatus.PENDING) -> PairingSession:
    return PairingSession(
        session_id="AB12C3",
        qr_code="AB12C3",
        agent_name=None,
        status=status,
        created_at=T0,
        expires_at=T0 + timedelta(minutes=10),
    )


def test_generated_codes_use_alphabet_and_length() -> None:
    generator = CodeGenerator()

    codes = {generator.generate() for _ in range(500)}

    assert all(len(code) == 6 for code in codes)
    assert all(set(code) <= set(PAIRING_CODE_ALPHABET) for code in codes)
    assert len(codes) > 490


def test_is_valid_code() -> None:
    assert is_valid_code("AB12C3")
    assert not is_valid_code("ab12c3")
    assert not is_valid_code("AB12C")
    assert not is_valid_code("AB12C3X")
    assert not is_valid_code("AB-2C3")


def test_pending_moves_forward_only() -> None:
    session = _session()

    assert session.with_status(PairingStatus.CONNECTED).status is (
        PairingStatus.CONNECTED
    )
    assert session.with_status(PairingStatus.EXPIRED).status is PairingStatus.EXPIRED
    assert not PairingStatus.PENDING.is_terminal


@pytest.mark.parametrize("terminal", [PairingStatus.CONNECTED, PairingStatus.EXPIRED])
def test_terminal_states_reject_transitions(terminal: PairingStatus) -> None:
    session = _session(terminal)

    assert terminal.is_terminal
    with pytest.raises(InvalidTransitionError):
        session.with_status(PairingStatus.PENDING)


def test_ttl_boundary_is_exclusive() -> None:
    session = _session()

    assert not session.is_past_ttl(session.expires_at)
    assert session.is_past_ttl(session.expires_at + timedelta(microseconds=1))


def test_paired_agent_payload_uses_wire_names() -> None:
    agent = PairedAgent(
        id="agent-AB12C3",
        name="Local Agent",
        type="local",
        pairing_code="AB12C3",
        status="connected",
    )

    assert agent.to_payload() == {
        "id": "agent-AB12C3",
        "name": "Local Agent",
        "type": "local",
        "pairingCode": "AB12C3",
        "status": "connected",
    }
