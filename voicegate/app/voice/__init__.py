"""Voice conversation gating: free trials, subscription checks, and token issuance."""

from .clients import ElevenLabsTokenIssuer, ProviderResponseError, RevenueCatEntitlementChecker
from .config import DEFAULT_FREE_TRIAL_LIMIT, VoiceGateConfig, load_voice_config
from .exceptions import TokenIssuanceError, VoiceGateError, VoiceGateErrorCode
from .models import AccessPath, EntitlementStatus, FreeTrialEvaluation, VoiceTokenDecision
from .service import AccountStore, EntitlementChecker, TokenIssuer, VoiceGate
from .trial import evaluate_free_trial

__all__ = [
    "DEFAULT_FREE_TRIAL_LIMIT",
    "AccessPath",
    "AccountStore",
    "ElevenLabsTokenIssuer",
    "EntitlementChecker",
    "EntitlementStatus",
    "FreeTrialEvaluation",
    "ProviderResponseError",
    "RevenueCatEntitlementChecker",
    "TokenIssuanceError",
    "TokenIssuer",
    "VoiceGate",
    "VoiceGateConfig",
    "VoiceGateError",
    "VoiceGateErrorCode",
    "VoiceTokenDecision",
    "evaluate_free_trial",
    "load_voice_config",
]
