"""Value objects produced while gating voice token requests."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EntitlementStatus(str, Enum):
    """Outcome of a subscription lookup with the entitlement provider."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    UNAVAILABLE = "unavailable"

    @property
    def is_entitled(self) -> bool:
        return self is EntitlementStatus.ACTIVE


class AccessPath(str, Enum):
    """Reason a request was allowed through the gate."""

    FREE_TRIAL = "free_trial"
    SUBSCRIPTION = "subscription"
    ENFORCEMENT_DISABLED = "enforcement_disabled"


@dataclass(frozen=True)
class FreeTrialEvaluation:
    """Represents the free-trial standing of an account."""

    count: int
    limit: int

    @property
    def has_free_trial(self) -> bool:
        return self.count < self.limit

    @property
    def remaining_after_use(self) -> Optional[int]:
        """Trials left once the current request is counted, or ``None`` without a trial."""

        if not self.has_free_trial:
            return None
        return self.limit - self.count - 1


@dataclass(frozen=True)
class VoiceTokenDecision:
    """Result of a gate evaluation that did not end in an error."""

    allowed: bool
    agent_id: str
    token: Optional[str] = None
    free_trials_remaining: Optional[int] = None
    access_path: Optional[AccessPath] = None

    @classmethod
    def denied(cls, agent_id: str) -> "VoiceTokenDecision":
        return cls(allowed=False, agent_id=agent_id)
