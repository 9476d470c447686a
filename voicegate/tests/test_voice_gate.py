"""Unit tests for the voice token gate decision logic."""
from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from voicegate.app.accounts import Account
from voicegate.app.voice import (
    AccessPath,
    AccountStore,
    EntitlementChecker,
    EntitlementStatus,
    TokenIssuanceError,
    TokenIssuer,
    VoiceGate,
    VoiceGateConfig,
    VoiceGateError,
    VoiceGateErrorCode,
)


class InMemoryAccountStore(AccountStore):
    def __init__(self) -> None:
        self.accounts: Dict[str, Account] = {}
        self.lookups: List[str] = []
        self.increments: List[str] = []

    def add(self, account: Account) -> None:
        self.accounts[account.id] = account

    def find_account(self, account_id: str) -> Optional[Account]:
        self.lookups.append(account_id)
        return self.accounts.get(account_id)

    def increment_voice_conversation_count(self, account_id: str) -> None:
        self.increments.append(account_id)
        account = self.accounts[account_id]
        self.accounts[account_id] = account.model_copy(
            update={"voice_conversation_count": account.voice_conversation_count + 1}
        )


class FakeEntitlementChecker(EntitlementChecker):
    def __init__(self, status: EntitlementStatus = EntitlementStatus.ACTIVE, *, configured: bool = True) -> None:
        self.status = status
        self.configured = configured
        self.checked: List[str] = []

    def is_configured(self) -> bool:
        return self.configured

    def check(self, user_id: str) -> EntitlementStatus:
        self.checked.append(user_id)
        return self.status


class FakeTokenIssuer(TokenIssuer):
    def __init__(self, token: str = "conv-token", *, configured: bool = True, fail: bool = False) -> None:
        self.token = token
        self.configured = configured
        self.fail = fail
        self.agent_ids: List[str] = []

    def is_configured(self) -> bool:
        return self.configured

    def issue_token(self, agent_id: str) -> str:
        self.agent_ids.append(agent_id)
        if self.fail:
            raise TokenIssuanceError("provider responded with status 500")
        return self.token


@pytest.fixture
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def checker() -> FakeEntitlementChecker:
    return FakeEntitlementChecker()


@pytest.fixture
def issuer() -> FakeTokenIssuer:
    return FakeTokenIssuer()


def _gate(store, checker, issuer, **config_overrides) -> VoiceGate:
    config = VoiceGateConfig(**{"free_trial_limit": 3, "require_subscription": True, **config_overrides})
    return VoiceGate(
        account_store=store,
        entitlement_checker=checker,
        token_issuer=issuer,
        config=config,
    )


@pytest.mark.parametrize("count,limit", [(0, 3), (1, 3), (2, 3), (0, 1), (4, 10)])
def test_free_trial_allows_without_entitlement_check(store, checker, issuer, count, limit):
    store.add(Account(id="user-1", voice_conversation_count=count))
    gate = _gate(store, checker, issuer, free_trial_limit=limit)

    decision = gate.request_token("user-1", "agent-1")

    assert decision.allowed is True
    assert decision.access_path == AccessPath.FREE_TRIAL
    assert decision.free_trials_remaining == limit - count - 1
    assert checker.checked == []


def test_last_free_trial_reports_zero_remaining_and_increments(store, checker, issuer):
    store.add(Account(id="user-1", voice_conversation_count=2))
    gate = _gate(store, checker, issuer)

    decision = gate.request_token("user-1", "agent-1")

    assert decision.allowed is True
    assert decision.token == "conv-token"
    assert decision.agent_id == "agent-1"
    assert decision.free_trials_remaining == 0
    assert store.accounts["user-1"].voice_conversation_count == 3
    assert store.increments == ["user-1"]


def test_active_subscription_allows_after_trials_exhausted(store, checker, issuer):
    store.add(Account(id="user-1", voice_conversation_count=3))
    gate = _gate(store, checker, issuer)

    decision = gate.request_token("user-1", "agent-xyz")

    assert decision.allowed is True
    assert decision.access_path == AccessPath.SUBSCRIPTION
    assert decision.free_trials_remaining is None
    assert checker.checked == ["user-1"]
    assert issuer.agent_ids == ["agent-xyz"]
    assert store.accounts["user-1"].voice_conversation_count == 4


@pytest.mark.parametrize("status", [EntitlementStatus.INACTIVE, EntitlementStatus.UNAVAILABLE])
def test_missing_or_unavailable_subscription_is_denied(store, issuer, status):
    store.add(Account(id="user-1", voice_conversation_count=5))
    checker = FakeEntitlementChecker(status)
    gate = _gate(store, checker, issuer)

    decision = gate.request_token("user-1", "agent-1")

    assert decision.allowed is False
    assert decision.agent_id == "agent-1"
    assert decision.token is None
    assert decision.free_trials_remaining is None
    assert issuer.agent_ids == []
    assert store.increments == []


def test_unknown_user_raises_without_side_effects(store, checker, issuer):
    gate = _gate(store, checker, issuer)

    with pytest.raises(VoiceGateError) as exc:
        gate.request_token("ghost", "agent-1")

    assert exc.value.code == VoiceGateErrorCode.USER_NOT_FOUND
    assert exc.value.payload == {"allowed": False, "error": "User not found", "code": "user_not_found"}
    assert checker.checked == []
    assert issuer.agent_ids == []
    assert store.increments == []


def test_issuer_failure_raises_and_keeps_counter(store, checker):
    store.add(Account(id="user-1", voice_conversation_count=0))
    issuer = FakeTokenIssuer(fail=True)
    gate = _gate(store, checker, issuer)

    with pytest.raises(VoiceGateError) as exc:
        gate.request_token("user-1", "agent-1")

    assert exc.value.code == VoiceGateErrorCode.ISSUANCE_FAILED
    assert "user-1" in exc.value.message
    assert isinstance(exc.value.__cause__, TokenIssuanceError)
    assert store.increments == []
    assert store.accounts["user-1"].voice_conversation_count == 0


def test_missing_issuer_credentials_raise_configuration_error(store, checker):
    store.add(Account(id="user-1"))
    issuer = FakeTokenIssuer(configured=False)
    gate = _gate(store, checker, issuer)

    with pytest.raises(VoiceGateError) as exc:
        gate.request_token("user-1", "agent-1")

    assert exc.value.code == VoiceGateErrorCode.ISSUER_NOT_CONFIGURED
    assert issuer.agent_ids == []
    assert store.increments == []


def test_missing_entitlement_credentials_raise_when_enforced(store, issuer):
    store.add(Account(id="user-1", voice_conversation_count=3))
    checker = FakeEntitlementChecker(configured=False)
    gate = _gate(store, checker, issuer)

    with pytest.raises(VoiceGateError) as exc:
        gate.request_token("user-1", "agent-1")

    assert exc.value.code == VoiceGateErrorCode.ENTITLEMENT_PROVIDER_NOT_CONFIGURED
    assert checker.checked == []
    assert issuer.agent_ids == []


def test_missing_entitlement_credentials_ignored_during_free_trial(store, issuer):
    store.add(Account(id="user-1", voice_conversation_count=0))
    checker = FakeEntitlementChecker(configured=False)
    gate = _gate(store, checker, issuer)

    decision = gate.request_token("user-1", "agent-1")

    assert decision.allowed is True


def test_enforcement_disabled_skips_entitlement_check(store, issuer):
    store.add(Account(id="user-1", voice_conversation_count=10))
    checker = FakeEntitlementChecker(EntitlementStatus.INACTIVE, configured=False)
    gate = _gate(store, checker, issuer, require_subscription=False)

    decision = gate.request_token("user-1", "agent-1")

    assert decision.allowed is True
    assert decision.access_path == AccessPath.ENFORCEMENT_DISABLED
    assert decision.free_trials_remaining is None
    assert checker.checked == []
    assert store.increments == ["user-1"]


def test_account_override_supersedes_default_limit(store, checker, issuer):
    store.add(Account(id="vip", voice_conversation_count=5, voice_conversation_free_limit_override=10))
    store.add(Account(id="blocked", voice_conversation_count=0, voice_conversation_free_limit_override=0))
    checker.status = EntitlementStatus.INACTIVE
    gate = _gate(store, checker, issuer)

    vip = gate.request_token("vip", "agent-1")
    blocked = gate.request_token("blocked", "agent-1")

    assert vip.allowed is True
    assert vip.free_trials_remaining == 4
    assert blocked.allowed is False
    assert checker.checked == ["blocked"]


def test_each_success_increments_exactly_once(store, checker, issuer):
    store.add(Account(id="user-1", voice_conversation_count=0))
    gate = _gate(store, checker, issuer)

    remaining = [gate.request_token("user-1", "agent-1").free_trials_remaining for _ in range(4)]

    assert remaining == [2, 1, 0, None]
    assert store.accounts["user-1"].voice_conversation_count == 4
    assert checker.checked == ["user-1"]
