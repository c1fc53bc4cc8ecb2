"""AccessPolicyEngine: write, read, and upload decisions.

All three policies share one membership routine; each adds its own rule
on top:

- write:  roster (team mode only, non-descendants only), then kind allow-list
- read:   every requested author must descend from the master
- upload: size ceiling first, then roster (team mode only, non-descendants)

Policies are total: a malformed key, an unsupported encoding, or a failed
derivation produces a deny decision with its own category rather than an
exception.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from relaygate.domain.encoding import parse_public_key
from relaygate.domain.errors import DerivationError, MalformedKey, UnsupportedEncoding
from relaygate.domain.types import DecisionCategory, PolicyDecision
from relaygate.services.result import ServiceResult

if TYPE_CHECKING:
    from relaygate.services.membership import MembershipOracle
    from relaygate.services.roster import RosterCache

logger = logging.getLogger(__name__)

STATUS_BAD_REQUEST = 400
STATUS_FORBIDDEN = 403
STATUS_TOO_LARGE = 413
STATUS_SERVER_ERROR = 500

BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class AccessRules:
    """Static rules from operator configuration."""

    max_derivation_index: int = 100
    allowed_kinds: frozenset[int] = frozenset()
    team_mode: bool = False
    reads_restricted: bool = False
    max_upload_bytes: int = 200 * BYTES_PER_MB


@dataclass(frozen=True)
class _Membership:
    """Membership outcome, or the deny decision explaining why there is none."""

    belongs: bool
    pubkey: str | None = None
    denial: PolicyDecision | None = None


class AccessPolicyEngine:
    """Composes the membership oracle, the roster, and static rules."""

    def __init__(
        self,
        oracle: MembershipOracle | None,
        roster: RosterCache,
        rules: AccessRules | None = None,
    ) -> None:
        self._oracle = oracle
        self._roster = roster
        self._rules = rules or AccessRules()

    @property
    def rules(self) -> AccessRules:
        return self._rules

    # --- Shared layers ---

    def _membership(self, pubkey: str, *, upload: bool = False) -> _Membership:
        """Decode *pubkey* and search the derivation tree."""
        try:
            normalized = parse_public_key(pubkey)
        except MalformedKey as exc:
            status = STATUS_BAD_REQUEST if upload else None
            return _Membership(
                belongs=False,
                denial=PolicyDecision.denied(
                    f"malformed key: {exc}", DecisionCategory.MALFORMED_KEY, status=status
                ),
            )
        except UnsupportedEncoding as exc:
            status = STATUS_BAD_REQUEST if upload else None
            return _Membership(
                belongs=False,
                denial=PolicyDecision.denied(
                    str(exc), DecisionCategory.UNSUPPORTED_ENCODING, status=status
                ),
            )

        if self._oracle is None:
            return _Membership(belongs=False, pubkey=normalized)

        try:
            result = self._oracle.check(normalized, self._rules.max_derivation_index)
        except DerivationError as exc:
            logger.error("Error checking key against master: %s", exc)
            status = STATUS_SERVER_ERROR if upload else None
            return _Membership(
                belongs=False,
                pubkey=normalized,
                denial=PolicyDecision.denied(
                    f"derivation failed: {exc}", DecisionCategory.DERIVATION_ERROR, status=status
                ),
            )
        return _Membership(belongs=result.belongs, pubkey=normalized)

    def _on_team(self, pubkey_hex: str) -> bool:
        return self._roster.contains(pubkey_hex)

    def _kind_allowed(self, kind: int) -> bool:
        kinds = self._rules.allowed_kinds
        return not kinds or kind in kinds

    # --- Policies ---

    def write(self, pubkey: str, kind: int) -> PolicyDecision:
        """Decide whether an event of *kind* signed by *pubkey* may be stored.

        Master descent skips the roster check, never the kind check.
        """
        member = self._membership(pubkey)
        if member.denial is not None:
            return member.denial

        if not member.belongs and self._rules.team_mode:
            assert member.pubkey is not None
            if not self._on_team(member.pubkey):
                return PolicyDecision.denied(
                    "you are not part of the team", DecisionCategory.NOT_IN_TEAM
                )

        if not self._kind_allowed(kind):
            return PolicyDecision.denied(
                f"event kind {kind} is not allowed", DecisionCategory.KIND_NOT_ALLOWED
            )

        return PolicyDecision.allowed()

    def read(self, authors: Sequence[str]) -> PolicyDecision:
        """Decide whether a query filtered to *authors* may run."""
        if not self._rules.reads_restricted:
            return PolicyDecision.allowed()

        if self._oracle is None:
            return PolicyDecision.denied(
                "reads are restricted but key deriver is not configured",
                DecisionCategory.ORACLE_UNCONFIGURED,
            )

        if not authors:
            return PolicyDecision.denied(
                "reads restricted: specify allowed authors", DecisionCategory.AUTHORS_REQUIRED
            )

        for author in authors:
            member = self._membership(author)
            if member.denial is not None:
                return member.denial
            if not member.belongs:
                return PolicyDecision.denied(
                    "author not allowed by read restrictions",
                    DecisionCategory.AUTHOR_NOT_ALLOWED,
                )

        return PolicyDecision.allowed()

    def upload(
        self,
        pubkey: str,
        size_bytes: int,
        size_limit_bytes: int | None = None,
    ) -> PolicyDecision:
        """Decide whether a blob of *size_bytes* from *pubkey* may be stored.

        The size ceiling is checked before identity.
        """
        limit = self._rules.max_upload_bytes if size_limit_bytes is None else size_limit_bytes
        if size_bytes > limit:
            return PolicyDecision.denied(
                f"file size exceeds {_format_limit(limit)} limit",
                DecisionCategory.TOO_LARGE,
                status=STATUS_TOO_LARGE,
            )

        member = self._membership(pubkey, upload=True)
        if member.denial is not None:
            return member.denial
        if member.belongs:
            return PolicyDecision.allowed()

        if self._rules.team_mode:
            assert member.pubkey is not None
            if not self._on_team(member.pubkey):
                return PolicyDecision.denied(
                    "you are not part of the team",
                    DecisionCategory.NOT_IN_TEAM,
                    status=STATUS_FORBIDDEN,
                )

        return PolicyDecision.allowed()


def _format_limit(limit: int) -> str:
    if limit >= BYTES_PER_MB and limit % BYTES_PER_MB == 0:
        return f"{limit // BYTES_PER_MB}MB"
    return f"{limit} bytes"


def decision_result(op: str, decision: PolicyDecision, **data: object) -> ServiceResult:
    """Wrap a decision for CLI output. A deny is still a successful evaluation."""
    return ServiceResult(
        ok=True,
        op=op,
        data={**data, **decision.model_dump(mode="json")},
    )
