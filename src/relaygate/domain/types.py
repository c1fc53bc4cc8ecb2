"""Value types shared by the derivation, membership, and policy layers.

All models are frozen. A :class:`RosterSnapshot` is replaced wholesale
by the roster cache, never mutated in place.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class Classification(StrEnum):
    """How a candidate key relates to the master identity."""

    MASTER = "master"
    DESCENDANT = "descendant"
    NONE = "none"


class DecisionCategory(StrEnum):
    """Machine-readable reason attached to every policy decision."""

    ALLOWED = "allowed"
    MALFORMED_KEY = "malformed_key"
    UNSUPPORTED_ENCODING = "unsupported_encoding"
    DERIVATION_ERROR = "derivation_error"
    NOT_IN_TEAM = "not_in_team"
    KIND_NOT_ALLOWED = "kind_not_allowed"
    AUTHOR_NOT_ALLOWED = "author_not_allowed"
    AUTHORS_REQUIRED = "authors_required"
    ORACLE_UNCONFIGURED = "oracle_unconfigured"
    TOO_LARGE = "too_large"


class DerivedIdentity(BaseModel):
    """A key pair at one position of the derivation tree."""

    model_config = {"frozen": True}

    index: int
    path: str
    private_key: str = Field(repr=False)
    public_key: str
    nsec: str = Field(repr=False)
    npub: str

    def public_view(self) -> dict[str, object]:
        """Serializable fields without private material."""
        return {
            "index": self.index,
            "path": self.path,
            "public_key": self.public_key,
            "npub": self.npub,
        }


class MembershipResult(BaseModel):
    """Outcome of a membership search."""

    model_config = {"frozen": True}

    belongs: bool
    index: int | None = None
    classification: Classification = Classification.NONE

    @classmethod
    def master(cls) -> MembershipResult:
        return cls(belongs=True, index=0, classification=Classification.MASTER)

    @classmethod
    def descendant(cls, index: int) -> MembershipResult:
        return cls(belongs=True, index=index, classification=Classification.DESCENDANT)

    @classmethod
    def not_found(cls) -> MembershipResult:
        return cls(belongs=False)


class PolicyDecision(BaseModel):
    """Allow/deny answer returned to the relay layer.

    ``status`` is only populated for upload decisions (HTTP-style codes).
    """

    model_config = {"frozen": True}

    allow: bool
    reason: str = ""
    category: DecisionCategory = DecisionCategory.ALLOWED
    status: int | None = None

    @classmethod
    def allowed(cls, reason: str = "") -> PolicyDecision:
        return cls(allow=True, reason=reason)

    @classmethod
    def denied(
        cls,
        reason: str,
        category: DecisionCategory,
        *,
        status: int | None = None,
    ) -> PolicyDecision:
        return cls(allow=False, reason=reason, category=category, status=status)


class RosterSnapshot(BaseModel):
    """The team roster as of one successful fetch.

    ``fetched_at`` is None for the initial empty snapshot, before any
    fetch has succeeded.
    """

    model_config = {"frozen": True}

    names: dict[str, str] = Field(default_factory=dict)
    relays: dict[str, list[str]] = Field(default_factory=dict)
    fetched_at: datetime | None = None

    @property
    def pubkeys(self) -> frozenset[str]:
        return frozenset(pk.lower() for pk in self.names.values())

    def contains(self, pubkey_hex: str) -> bool:
        return pubkey_hex.lower() in self.pubkeys
