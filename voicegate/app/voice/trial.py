"""Free-trial evaluation for voice conversations."""
from __future__ import annotations

from typing import Optional

from .models import FreeTrialEvaluation


def evaluate_free_trial(
    *,
    count: Optional[int],
    default_limit: int,
    limit_override: Optional[int] = None,
) -> FreeTrialEvaluation:
    """Determine whether an account may start a conversation without a subscription."""

    limit = limit_override if limit_override is not None else default_limit
    return FreeTrialEvaluation(count=count or 0, limit=limit)
