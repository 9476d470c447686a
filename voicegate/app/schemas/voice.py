"""API schemas for voice token endpoints."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..voice import VoiceTokenDecision


class VoiceTokenRequest(BaseModel):
    agent_id: str = Field(alias="agentId", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class VoiceTokenResponse(BaseModel):
    allowed: bool
    token: Optional[str] = None
    agent_id: Optional[str] = Field(alias="agentId", default=None)
    free_trials_remaining: Optional[int] = Field(alias="freeTrialsRemaining", default=None, ge=0)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_decision(cls, decision: VoiceTokenDecision) -> "VoiceTokenResponse":
        return cls(
            allowed=decision.allowed,
            token=decision.token,
            agent_id=decision.agent_id,
            free_trials_remaining=decision.free_trials_remaining,
        )


class VoiceTokenErrorResponse(BaseModel):
    allowed: bool = False
    error: str
    code: Optional[str] = None
