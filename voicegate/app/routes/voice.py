"""API routes exposing voice conversation tokens."""
from __future__ import annotations

import os
from typing import Any, Optional

from fastapi import APIRouter, Cookie, Depends, Header, status

from ...app_context import get_current_user as _resolve_current_user
from ..schemas.voice import VoiceTokenErrorResponse, VoiceTokenRequest, VoiceTokenResponse
from ..services.voice import get_voice_gate

_SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")


def _get_current_user(
    authorization: Optional[str] = Header(None),
    session_token: Optional[str] = Cookie(None, alias=_SESSION_COOKIE_NAME),
) -> Any:
    return _resolve_current_user(authorization=authorization, session_token=session_token)


router = APIRouter(prefix="/v1/voice", tags=["voice"])


@router.post(
    "/token",
    response_model=VoiceTokenResponse,
    response_model_exclude_none=True,
    responses={status.HTTP_400_BAD_REQUEST: {"model": VoiceTokenErrorResponse}},
)
def request_voice_token(
    payload: VoiceTokenRequest,
    *,
    current_user=Depends(_get_current_user),
) -> VoiceTokenResponse:
    gate = get_voice_gate()
    decision = gate.request_token(str(current_user.id), payload.agent_id)
    return VoiceTokenResponse.from_decision(decision)
