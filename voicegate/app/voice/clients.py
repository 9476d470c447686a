"""HTTP adapters for the subscription provider and the conversation token issuer."""
from __future__ import annotations

import http.client as http_client
import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional
from urllib import error as urllib_error, parse as urllib_parse, request as urllib_request

from .config import ELEVENLABS_API_BASE_URL, REVENUECAT_API_BASE_URL, VoiceGateConfig
from .exceptions import TokenIssuanceError
from .models import EntitlementStatus

logger = logging.getLogger("voice")

Opener = Callable[..., Any]

# HTTPError is a URLError; timeouts and dropped connections surface as OSError.
# Malformed bodies surface as ValueError (JSONDecodeError, UnicodeDecodeError).
_TRANSPORT_ERRORS = (urllib_error.URLError, http_client.HTTPException, OSError)


class ProviderResponseError(Exception):
    """Raised when a provider answers with a non-success status."""

    def __init__(self, status: int, body: str = "") -> None:
        super().__init__(f"provider responded with status {status}")
        self.status = status
        self.body = body


def _get_json(
    url: str,
    *,
    headers: Mapping[str, str],
    timeout: float,
    urlopen: Opener,
) -> Dict[str, Any]:
    request = urllib_request.Request(url, headers=dict(headers), method="GET")
    try:
        with urlopen(request, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            body = response.read().decode("utf-8")
    except urllib_error.HTTPError as exc:
        raise ProviderResponseError(exc.code) from exc

    if not 200 <= status < 300:
        raise ProviderResponseError(status, body)

    payload = json.loads(body) if body else {}
    if not isinstance(payload, dict):
        raise ValueError("Expected a JSON object from provider")
    return payload


class RevenueCatEntitlementChecker:
    """Checks RevenueCat v2 customer subscriptions for an active item."""

    def __init__(
        self,
        *,
        api_key: Optional[str],
        project_id: Optional[str],
        base_url: str = REVENUECAT_API_BASE_URL,
        timeout: float = 10.0,
        urlopen: Optional[Opener] = None,
    ) -> None:
        self._api_key = api_key
        self._project_id = project_id
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._urlopen = urlopen or urllib_request.urlopen

    @classmethod
    def from_config(cls, config: VoiceGateConfig, **kwargs: Any) -> "RevenueCatEntitlementChecker":
        return cls(
            api_key=config.revenuecat_api_key,
            project_id=config.revenuecat_project_id,
            base_url=config.revenuecat_base_url,
            timeout=config.http_timeout_seconds,
            **kwargs,
        )

    def is_configured(self) -> bool:
        return bool(self._api_key and self._project_id)

    def subscriptions_url(self, user_id: str) -> str:
        project = urllib_parse.quote(str(self._project_id), safe="")
        customer = urllib_parse.quote(user_id, safe="")
        return f"{self._base_url}/projects/{project}/customers/{customer}/subscriptions"

    def check(self, user_id: str) -> EntitlementStatus:
        url = self.subscriptions_url(user_id)
        logger.info("Checking RevenueCat subscription: %s", url)
        try:
            payload = _get_json(
                url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
                urlopen=self._urlopen,
            )
        except ProviderResponseError as exc:
            logger.warning(
                "RevenueCat check failed for user %s: %s",
                user_id,
                exc.status,
                extra={"provider": "revenuecat", "provider_status": exc.status},
            )
            return EntitlementStatus.UNAVAILABLE
        except (*_TRANSPORT_ERRORS, ValueError) as exc:
            logger.warning(
                "RevenueCat check failed for user %s: %s",
                user_id,
                exc,
                extra={"provider": "revenuecat"},
            )
            return EntitlementStatus.UNAVAILABLE

        items = payload.get("items")
        if items is None:
            items = []
        elif not isinstance(items, list):
            logger.warning(
                "RevenueCat check failed for user %s: unexpected items type %s",
                user_id,
                type(items).__name__,
                extra={"provider": "revenuecat"},
            )
            return EntitlementStatus.UNAVAILABLE
        if any(isinstance(item, dict) and item.get("status") == "active" for item in items):
            return EntitlementStatus.ACTIVE
        return EntitlementStatus.INACTIVE


class ElevenLabsTokenIssuer:
    """Requests conversation tokens from the ElevenLabs Conversational AI API."""

    def __init__(
        self,
        *,
        api_key: Optional[str],
        base_url: str = ELEVENLABS_API_BASE_URL,
        timeout: float = 10.0,
        urlopen: Optional[Opener] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._urlopen = urlopen or urllib_request.urlopen

    @classmethod
    def from_config(cls, config: VoiceGateConfig, **kwargs: Any) -> "ElevenLabsTokenIssuer":
        return cls(
            api_key=config.elevenlabs_api_key,
            base_url=config.elevenlabs_base_url,
            timeout=config.http_timeout_seconds,
            **kwargs,
        )

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def token_url(self, agent_id: str) -> str:
        query_string = urllib_parse.urlencode({"agent_id": agent_id})
        return f"{self._base_url}/convai/conversation/token?{query_string}"

    def issue_token(self, agent_id: str) -> str:
        try:
            payload = _get_json(
                self.token_url(agent_id),
                headers={"xi-api-key": str(self._api_key), "Accept": "application/json"},
                timeout=self._timeout,
                urlopen=self._urlopen,
            )
        except ProviderResponseError as exc:
            raise TokenIssuanceError(f"ElevenLabs responded with status {exc.status}") from exc
        except (*_TRANSPORT_ERRORS, ValueError) as exc:
            raise TokenIssuanceError(f"ElevenLabs request failed: {exc}") from exc

        token = payload.get("token")
        if not isinstance(token, str) or not token:
            raise TokenIssuanceError("ElevenLabs response did not include a token")
        return token


__all__ = [
    "ElevenLabsTokenIssuer",
    "ProviderResponseError",
    "RevenueCatEntitlementChecker",
]
