"""Pydantic models for pairing request payloads."""

from pydantic import BaseModel, ConfigDict, Field


class InitPairingRequest(BaseModel):
    """Body of a pairing init call."""

    model_config = ConfigDict(populate_by_name=True)

    agent_name: str | None = Field(default=None, alias="agentName")


class CompletePairingRequest(BaseModel):
    """Body of a pairing completion call."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=6, max_length=6)
    pairing_code: str | None = Field(default=None, alias="pairingCode")
