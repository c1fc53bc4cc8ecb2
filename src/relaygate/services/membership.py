"""MembershipOracle: is this public key the master or one of its descendants?

Cost is one derivation per index searched. At the default bound of 100
that is fine for policy checks; callers on a hot path can front this with
their own cache keyed by (seed identity, index) without changing the
contract.

INVARIANT (monotonicity): a match at index *i* for some bound is the same
match for every bound >= *i*. The search always runs upward from 0 and
stops at the first hit.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from relaygate.domain.encoding import parse_public_key
from relaygate.domain.types import MembershipResult
from relaygate.services.telemetry import trace_span

if TYPE_CHECKING:
    from relaygate.services.derivation import KeyDerivationService

logger = logging.getLogger(__name__)


class MembershipOracle:
    """Read-only membership test over a :class:`KeyDerivationService`."""

    def __init__(self, deriver: KeyDerivationService) -> None:
        self._deriver = deriver

    @property
    def deriver(self) -> KeyDerivationService:
        return self._deriver

    def check(self, candidate: str, bound: int) -> MembershipResult:
        """Search the master and descendants ``0..bound`` (inclusive).

        Args:
            candidate: Hex or ``npub`` public key.
            bound: Highest descendant index to try.

        Raises:
            MalformedKey: *candidate* does not decode.
            UnsupportedEncoding: *candidate* is NIP-19 but not ``npub``.
            DerivationError: a derivation step failed mid-search.
            ValueError: *bound* is negative.
        """
        if bound < 0:
            msg = f"bound must be non-negative, got {bound}"
            raise ValueError(msg)

        target = parse_public_key(candidate)

        if target == self._deriver.master_public_key:
            logger.debug("Key %s… is the master identity", target[:16])
            return MembershipResult.master()

        with trace_span("membership.search") as span:
            for index in range(bound + 1):
                if self._deriver.public_key(index) == target:
                    if span is not None:
                        span.annotate("derivations", index + 1)
                    logger.debug("Key %s… found at index %d", target[:16], index)
                    return MembershipResult.descendant(index)
            if span is not None:
                span.annotate("derivations", bound + 1)

        logger.debug("Key %s… not found within bound %d", target[:16], bound)
        return MembershipResult.not_found()
