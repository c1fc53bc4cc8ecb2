"""Tests for shared value types."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from relaygate.domain.types import (
    Classification,
    DecisionCategory,
    DerivedIdentity,
    MembershipResult,
    PolicyDecision,
    RosterSnapshot,
)


class TestMembershipResult:
    def test_master(self) -> None:
        result = MembershipResult.master()
        assert result.belongs is True
        assert result.index == 0
        assert result.classification == Classification.MASTER

    def test_descendant(self) -> None:
        result = MembershipResult.descendant(7)
        assert result.belongs is True
        assert result.index == 7
        assert result.classification == "descendant"

    def test_not_found(self) -> None:
        result = MembershipResult.not_found()
        assert result.belongs is False
        assert result.index is None
        assert result.classification == Classification.NONE


class TestPolicyDecision:
    def test_allowed(self) -> None:
        decision = PolicyDecision.allowed()
        assert decision.allow is True
        assert decision.category == DecisionCategory.ALLOWED
        assert decision.status is None

    def test_denied(self) -> None:
        decision = PolicyDecision.denied(
            "too big", DecisionCategory.TOO_LARGE, status=413
        )
        assert decision.allow is False
        assert decision.reason == "too big"
        assert decision.status == 413

    def test_frozen(self) -> None:
        decision = PolicyDecision.allowed()
        with pytest.raises(ValidationError):
            decision.allow = False  # type: ignore[misc]


class TestDerivedIdentity:
    def test_public_view_omits_private_material(self) -> None:
        identity = DerivedIdentity(
            index=3,
            path="m/44'/1237'/0'/0/3",
            private_key="aa" * 32,
            public_key="bb" * 32,
            nsec="nsec1secret",
            npub="npub1public",
        )
        view = identity.public_view()
        assert set(view) == {"index", "path", "public_key", "npub"}
        assert "aa" * 32 not in repr(identity)
        assert "nsec1secret" not in repr(identity)


class TestRosterSnapshot:
    def test_empty_default(self) -> None:
        snapshot = RosterSnapshot()
        assert snapshot.names == {}
        assert snapshot.fetched_at is None
        assert not snapshot.contains("aa" * 32)

    def test_contains_is_case_insensitive(self) -> None:
        snapshot = RosterSnapshot(
            names={"alice": "AB" * 32}, fetched_at=datetime.now(UTC)
        )
        assert snapshot.contains("ab" * 32)
        assert snapshot.contains("AB" * 32)
        assert snapshot.pubkeys == frozenset({"ab" * 32})
