"""Errors surfaced to callers of the voice token gate."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping

from fastapi import status
from fastapi.responses import JSONResponse


class VoiceGateErrorCode(str, Enum):
    """Stable identifiers for gate errors."""

    USER_NOT_FOUND = "user_not_found"
    ENTITLEMENT_PROVIDER_NOT_CONFIGURED = "entitlement_provider_not_configured"
    ISSUER_NOT_CONFIGURED = "issuer_not_configured"
    ISSUANCE_FAILED = "issuance_failed"


@dataclass
class VoiceGateError(Exception):
    """A request-scoped failure that is reported to the caller as an error.

    Denials are not errors; they are returned as regular decisions.
    """

    code: VoiceGateErrorCode
    message: str
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        body: Dict[str, Any] = {"allowed": False, "error": self.message, "code": self.code.value}
        return body

    def to_response(self) -> JSONResponse:
        """Convert the domain error into a FastAPI JSON response."""

        return JSONResponse(status_code=self.status_code, content=dict(self.payload))

    @classmethod
    def user_not_found(cls) -> "VoiceGateError":
        return cls(code=VoiceGateErrorCode.USER_NOT_FOUND, message="User not found")

    @classmethod
    def entitlement_provider_not_configured(cls) -> "VoiceGateError":
        return cls(
            code=VoiceGateErrorCode.ENTITLEMENT_PROVIDER_NOT_CONFIGURED,
            message="RevenueCat not configured",
        )

    @classmethod
    def issuer_not_configured(cls) -> "VoiceGateError":
        return cls(
            code=VoiceGateErrorCode.ISSUER_NOT_CONFIGURED,
            message="Missing 11Labs API key on the server",
        )

    @classmethod
    def issuance_failed(cls, user_id: str) -> "VoiceGateError":
        return cls(
            code=VoiceGateErrorCode.ISSUANCE_FAILED,
            message=f"Failed to get 11Labs token for user {user_id}",
        )


class TokenIssuanceError(RuntimeError):
    """Raised by token issuers when a conversation token cannot be minted."""
