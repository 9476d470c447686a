"""Application wiring for the voice token gate."""
from __future__ import annotations

import logging
from functools import lru_cache

from ..accounts import PostgresAccountRepository
from ..voice import (
    ElevenLabsTokenIssuer,
    RevenueCatEntitlementChecker,
    VoiceGate,
    load_voice_config,
)

logger = logging.getLogger("voice")


@lru_cache(maxsize=1)
def get_voice_gate() -> VoiceGate:
    config = load_voice_config()
    logger.info(
        "Voice gate configured limit=%s require_subscription=%s revenuecat=%s elevenlabs=%s",
        config.free_trial_limit,
        config.require_subscription,
        config.revenuecat_configured,
        config.elevenlabs_configured,
    )
    return VoiceGate(
        account_store=PostgresAccountRepository(),
        entitlement_checker=RevenueCatEntitlementChecker.from_config(config),
        token_issuer=ElevenLabsTokenIssuer.from_config(config),
        config=config,
    )


__all__ = ["get_voice_gate"]
