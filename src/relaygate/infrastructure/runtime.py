"""Runtime: the one object injected into every request-handling context.

Built once from :class:`RelaygateSettings`. Construction is fail-fast:
credential and configuration errors raise before anything starts, so
there is never a partially configured relay. After construction the
deriver, oracle, and engine are read-only; only the roster cache changes,
and only through its background refresher.

Usage::

    runtime = Runtime(settings)
    runtime.start()            # first roster fetch + background refresh
    decision = runtime.policy.write(event_pubkey, event_kind)
    ...
    runtime.close()
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING

from relaygate.infrastructure.well_known import fetch_roster
from relaygate.services.derivation import KeyDerivationService
from relaygate.services.membership import MembershipOracle
from relaygate.services.policy import BYTES_PER_MB, AccessPolicyEngine, AccessRules
from relaygate.services.roster import RosterCache, RosterRefresher

if TYPE_CHECKING:
    from relaygate.config.settings import RelaygateSettings

logger = logging.getLogger(__name__)


def build_deriver(settings: RelaygateSettings) -> KeyDerivationService:
    """Construct the deriver from exactly one configured credential.

    Raises:
        ConfigurationError: both or neither credential set.
        InvalidCredential: bad mnemonic checksum or seed.
    """
    cred = settings.require_single_credential()
    if cred.has_mnemonic:
        assert cred.mnemonic is not None
        return KeyDerivationService.from_mnemonic(cred.mnemonic)
    assert cred.seed_hex is not None
    return KeyDerivationService.from_seed_hex(cred.seed_hex)


def build_rules(settings: RelaygateSettings) -> AccessRules:
    access = settings.access
    return AccessRules(
        max_derivation_index=access.max_derivation_index,
        allowed_kinds=access.kinds,
        team_mode=settings.roster.team_mode,
        reads_restricted=access.reads_restricted,
        max_upload_bytes=access.max_upload_size_mb * BYTES_PER_MB,
    )


class Runtime:
    """Deriver, oracle, roster, and policy engine for one process."""

    def __init__(
        self,
        settings: RelaygateSettings,
        *,
        deriver: KeyDerivationService | None = None,
        roster: RosterCache | None = None,
    ) -> None:
        self._settings = settings
        self._deriver = deriver or build_deriver(settings)
        self._oracle = MembershipOracle(self._deriver)

        roster_cfg = settings.roster
        if roster is None:
            fetcher = None
            if roster_cfg.team_mode:
                fetcher = functools.partial(
                    fetch_roster, roster_cfg.team_domain, timeout=roster_cfg.timeout_seconds
                )
            roster = RosterCache(fetcher)
        self._roster = roster

        self._rules = build_rules(settings)
        self._policy = AccessPolicyEngine(self._oracle, self._roster, self._rules)
        self._refresher: RosterRefresher | None = None
        self._log_startup()

    @property
    def settings(self) -> RelaygateSettings:
        return self._settings

    @property
    def deriver(self) -> KeyDerivationService:
        return self._deriver

    @property
    def oracle(self) -> MembershipOracle:
        return self._oracle

    @property
    def roster(self) -> RosterCache:
        return self._roster

    @property
    def policy(self) -> AccessPolicyEngine:
        return self._policy

    def start(self) -> None:
        """Fetch the roster and start periodic refresh (team mode only)."""
        if not self._rules.team_mode or self._refresher is not None:
            return
        self._refresher = RosterRefresher(
            self._roster, interval=self._settings.roster.refresh_interval_seconds
        )
        self._refresher.start()

    def refresh_roster(self) -> bool:
        """One synchronous refresh, for short-lived CLI commands."""
        if not self._rules.team_mode:
            return False
        return self._roster.refresh()

    def close(self) -> None:
        if self._refresher is not None:
            self._refresher.stop()
            self._refresher = None

    def _log_startup(self) -> None:
        rules = self._rules
        logger.info(
            "Access control: deriver ACTIVE (BIP32), max_derivation_index=%d",
            rules.max_derivation_index,
        )
        if rules.reads_restricted:
            logger.info("Reads restriction: ENABLED (queries must specify derived authors)")
        else:
            logger.info("Reads restriction: DISABLED")
        if rules.allowed_kinds:
            logger.info("Relay configured to only allow kinds: %s", sorted(rules.allowed_kinds))
        else:
            logger.info("Relay configured to allow all kinds")
        if rules.team_mode:
            logger.info("Team mode: roster from %s", self._settings.roster.team_domain)
