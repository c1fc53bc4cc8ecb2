"""Shared pytest fixtures and test helpers for relaygate tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from relaygate.domain.types import RosterSnapshot
from relaygate.services.derivation import KeyDerivationService
from relaygate.services.membership import MembershipOracle
from relaygate.services.policy import AccessPolicyEngine, AccessRules
from relaygate.services.roster import RosterCache
from relaygate.services.telemetry import disable_telemetry

# NIP-06 test vector: m/44'/1237'/0'/0/0 of this phrase.
NIP06_MNEMONIC = (
    "leader monkey parrot ring guide accident before fence cannon height naive bean"
)
NIP06_PRIVATE_KEY = "7f7ff03d123792d6ac594bfa67bf6d0c0ab55b6b1fdb6249303fe861f1ccba9a"
NIP06_PUBLIC_KEY = "17162c921dc4d2518f9a101db33695df1afb56ab82f5ff3e5da6eec3ca5cd917"

# A second, unrelated 32-byte seed.
OTHER_SEED_HEX = "ff" * 16 + "00" * 16


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Strip RELAYGATE_* env vars and run from an empty temp directory."""
    import os

    for name in list(os.environ):
        if name.startswith("RELAYGATE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _reset_cli_state() -> Generator[None]:
    """CLI invocations reconfigure logging and may enable telemetry; undo both."""
    import logging

    root = logging.getLogger()
    handlers = root.handlers[:]
    yield
    disable_telemetry()
    root.handlers = handlers


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(scope="session")
def deriver() -> KeyDerivationService:
    return KeyDerivationService.from_mnemonic(NIP06_MNEMONIC)


@pytest.fixture(scope="session")
def other_deriver() -> KeyDerivationService:
    return KeyDerivationService.from_seed_hex(OTHER_SEED_HEX)


@pytest.fixture
def oracle(deriver: KeyDerivationService) -> MembershipOracle:
    return MembershipOracle(deriver)


@pytest.fixture
def roster() -> RosterCache:
    """A roster cache that has never fetched (empty)."""
    return RosterCache()


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Write a relaygate.toml into the temp directory and return its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "relaygate.toml"
        path.write_text(content, encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Shared test helpers (used across service and command test modules)
# ---------------------------------------------------------------------------


def make_engine(
    oracle: MembershipOracle | None,
    *,
    names: dict[str, str] | None = None,
    **rules: object,
) -> AccessPolicyEngine:
    """Build an engine with an optional pre-loaded roster."""
    from datetime import UTC, datetime

    initial = None
    if names is not None:
        initial = RosterSnapshot(names=names, fetched_at=datetime.now(UTC))
    cache = RosterCache(initial=initial)
    return AccessPolicyEngine(oracle, cache, AccessRules(**rules))  # type: ignore[arg-type]
