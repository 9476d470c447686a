"""Domain models for account voice usage state."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Account(BaseModel):
    """Voice feature usage recorded against a registered account."""

    id: str = Field(min_length=1)
    voice_conversation_count: int = Field(default=0, ge=0)
    voice_conversation_free_limit_override: Optional[int] = Field(default=None, ge=0)

    model_config = ConfigDict(frozen=True)
