"""Voice gate configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
import os

DEFAULT_FREE_TRIAL_LIMIT = 3
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
REVENUECAT_API_BASE_URL = "https://api.revenuecat.com/v2"
ELEVENLABS_API_BASE_URL = "https://api.elevenlabs.io/v1"


@dataclass(frozen=True)
class VoiceGateConfig:
    """Deployment level settings for voice token gating."""

    free_trial_limit: int = DEFAULT_FREE_TRIAL_LIMIT
    require_subscription: bool = True
    revenuecat_api_key: Optional[str] = None
    revenuecat_project_id: Optional[str] = None
    revenuecat_base_url: str = REVENUECAT_API_BASE_URL
    elevenlabs_api_key: Optional[str] = None
    elevenlabs_base_url: str = ELEVENLABS_API_BASE_URL
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.free_trial_limit < 0:
            raise ValueError("free_trial_limit must be >= 0")
        if self.http_timeout_seconds <= 0:
            raise ValueError("http_timeout_seconds must be > 0")

    @property
    def revenuecat_configured(self) -> bool:
        return bool(self.revenuecat_api_key and self.revenuecat_project_id)

    @property
    def elevenlabs_configured(self) -> bool:
        return bool(self.elevenlabs_api_key)


def _to_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def _to_float(value: Optional[str], *, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected float value, got {value!r}") from exc


def load_voice_config(env: Optional[Mapping[str, str]] = None) -> VoiceGateConfig:
    """Load :class:`VoiceGateConfig` from environment variables.

    Subscription enforcement stays on unless ``VOICE_REQUIRE_SUBSCRIPTION``
    is explicitly set to a false value.
    """

    env_mapping = os.environ if env is None else env

    return VoiceGateConfig(
        free_trial_limit=_to_int(
            env_mapping.get("VOICE_FREE_TRIAL_LIMIT"), default=DEFAULT_FREE_TRIAL_LIMIT
        ),
        require_subscription=_to_bool(env_mapping.get("VOICE_REQUIRE_SUBSCRIPTION"), default=True),
        revenuecat_api_key=env_mapping.get("REVENUECAT_API_KEY") or None,
        revenuecat_project_id=env_mapping.get("REVENUECAT_PROJECT") or None,
        revenuecat_base_url=(
            env_mapping.get("REVENUECAT_API_BASE_URL") or REVENUECAT_API_BASE_URL
        ).rstrip("/"),
        elevenlabs_api_key=env_mapping.get("ELEVENLABS_API_KEY") or None,
        elevenlabs_base_url=(
            env_mapping.get("ELEVENLABS_API_BASE_URL") or ELEVENLABS_API_BASE_URL
        ).rstrip("/"),
        http_timeout_seconds=_to_float(
            env_mapping.get("VOICE_HTTP_TIMEOUT_SECONDS"), default=DEFAULT_HTTP_TIMEOUT_SECONDS
        ),
    )
