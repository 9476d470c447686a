"""Gate deciding whether an account may open a voice conversation."""
from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..accounts.models import Account
from .config import VoiceGateConfig
from .exceptions import TokenIssuanceError, VoiceGateError
from .models import AccessPath, EntitlementStatus, FreeTrialEvaluation, VoiceTokenDecision
from .trial import evaluate_free_trial

logger = logging.getLogger("voice")


class AccountStore(Protocol):
    """Data access layer for account usage counters."""

    def find_account(self, account_id: str) -> Optional[Account]:
        ...

    def increment_voice_conversation_count(self, account_id: str) -> None:
        ...


class EntitlementChecker(Protocol):
    """Looks up whether a user holds an active subscription."""

    def is_configured(self) -> bool:
        ...

    def check(self, user_id: str) -> EntitlementStatus:
        """Return the subscription status; outages are reported as ``UNAVAILABLE``."""


class TokenIssuer(Protocol):
    """Mints conversation tokens for a voice agent."""

    def is_configured(self) -> bool:
        ...

    def issue_token(self, agent_id: str) -> str:
        """Return a token or raise :class:`TokenIssuanceError`."""


class VoiceGate:
    """Applies free-trial and subscription policy before issuing voice tokens."""

    def __init__(
        self,
        account_store: AccountStore,
        entitlement_checker: EntitlementChecker,
        token_issuer: TokenIssuer,
        config: VoiceGateConfig,
    ) -> None:
        self._account_store = account_store
        self._entitlement_checker = entitlement_checker
        self._token_issuer = token_issuer
        self._config = config

    @property
    def config(self) -> VoiceGateConfig:
        return self._config

    def request_token(self, user_id: str, agent_id: str) -> VoiceTokenDecision:
        """Evaluate a token request and issue a token when the user is allowed.

        Raises :class:`VoiceGateError` for unknown users, missing provider
        credentials, and issuance failures. A missing or unreachable
        subscription yields a denied decision instead.
        """

        logger.info("Voice token request from user %s", user_id)

        account = self._account_store.find_account(user_id)
        if account is None:
            logger.info("User %s not found", user_id)
            raise VoiceGateError.user_not_found()

        trial = evaluate_free_trial(
            count=account.voice_conversation_count,
            default_limit=self._config.free_trial_limit,
            limit_override=account.voice_conversation_free_limit_override,
        )
        logger.info(
            "User %s voice usage: %s/%s, hasFreeTrial: %s",
            user_id,
            trial.count,
            trial.limit,
            trial.has_free_trial,
        )

        access_path = self._resolve_access_path(user_id, trial)
        if access_path is None:
            return VoiceTokenDecision.denied(agent_id)

        token = self._issue_token(user_id, agent_id)

        # Unconditional: concurrent requests under the limit may all succeed.
        self._account_store.increment_voice_conversation_count(user_id)

        logger.info("Voice token issued for user %s via %s", user_id, access_path.value)
        return VoiceTokenDecision(
            allowed=True,
            agent_id=agent_id,
            token=token,
            free_trials_remaining=trial.remaining_after_use,
            access_path=access_path,
        )

    def _resolve_access_path(self, user_id: str, trial: FreeTrialEvaluation) -> Optional[AccessPath]:
        if trial.has_free_trial:
            logger.info("User %s has free trial remaining (%s/%s)", user_id, trial.count, trial.limit)
            return AccessPath.FREE_TRIAL

        if not self._config.require_subscription:
            logger.info("Bypassing subscription check, enforcement disabled")
            return AccessPath.ENFORCEMENT_DISABLED

        if not self._entitlement_checker.is_configured():
            logger.error("Subscription check requested but RevenueCat credentials are missing")
            raise VoiceGateError.entitlement_provider_not_configured()

        entitlement = self._entitlement_checker.check(user_id)
        if entitlement is EntitlementStatus.UNAVAILABLE:
            logger.warning("Subscription check unavailable for user %s, denying", user_id)
            return None
        if not entitlement.is_entitled:
            logger.info("User %s does not have active subscription and no free trials left", user_id)
            return None

        logger.info("User %s has active subscription", user_id)
        return AccessPath.SUBSCRIPTION

    def _issue_token(self, user_id: str, agent_id: str) -> str:
        if not self._token_issuer.is_configured():
            logger.error("Missing 11Labs API key")
            raise VoiceGateError.issuer_not_configured()

        try:
            return self._token_issuer.issue_token(agent_id)
        except TokenIssuanceError as exc:
            logger.warning("Failed to get 11Labs token for user %s: %s", user_id, exc)
            raise VoiceGateError.issuance_failed(user_id) from exc


__all__ = [
    "AccountStore",
    "EntitlementChecker",
    "TokenIssuer",
    "VoiceGate",
]
