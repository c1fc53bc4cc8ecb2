"""Tests for the policy command group."""

from __future__ import annotations

import json
from typing import Any

import pytest
import requests
from click.testing import CliRunner

from relaygate.cli import cli
from relaygate.infrastructure import well_known
from relaygate.services.derivation import KeyDerivationService
from tests.conftest import NIP06_MNEMONIC, NIP06_PUBLIC_KEY

OUTSIDER = "cc" * 32


class _Response:
    def __init__(self, payload: Any) -> None:
        self._payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self) -> Any:
        return self._payload


@pytest.fixture(autouse=True)
def _mnemonic_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RELAYGATE_CREDENTIAL__MNEMONIC", NIP06_MNEMONIC)


@pytest.fixture
def team_roster(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Enable team mode and serve a roster containing OUTSIDER; returns fetched URLs."""
    urls: list[str] = []

    def _get(url: str, timeout: float) -> _Response:
        urls.append(url)
        return _Response({"names": {"carol": OUTSIDER}})

    monkeypatch.setattr(well_known.requests, "get", _get)
    monkeypatch.setenv("RELAYGATE_ROSTER__TEAM_DOMAIN", "team.example")
    return urls


class TestWriteCommand:
    def test_descendant_allowed(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "policy", "write", NIP06_PUBLIC_KEY, "--kind", "1"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["op"] == "write_policy"
        assert data["data"]["allow"] is True
        assert data["data"]["kind"] == 1

    def test_kind_not_allowed(
        self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RELAYGATE_ACCESS__ALLOWED_KINDS", "[1]")
        result = cli_runner.invoke(cli, ["policy", "write", NIP06_PUBLIC_KEY, "--kind", "2"])
        assert result.exit_code == 0
        assert "DENY" in result.output
        assert "event kind 2 is not allowed" in result.output

    def test_deny_quiet(self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RELAYGATE_ACCESS__ALLOWED_KINDS", "[1]")
        result = cli_runner.invoke(cli, ["-q", "policy", "write", NIP06_PUBLIC_KEY, "--kind", "7"])
        assert result.output.strip() == "deny"

    def test_outsider_allowed_without_team(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "policy", "write", OUTSIDER, "--kind", "1"])
        assert result.output.strip() == "allow"

    def test_team_roster_fetched(self, cli_runner: CliRunner, team_roster: list[str]) -> None:
        result = cli_runner.invoke(cli, ["--json", "policy", "write", OUTSIDER, "--kind", "1"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["data"]["allow"] is True
        assert data["data"]["roster_size"] == 1
        assert team_roster == ["https://team.example/.well-known/nostr.json"]

    def test_team_outsider_denied(self, cli_runner: CliRunner, team_roster: list[str]) -> None:
        stranger = KeyDerivationService.from_seed_hex("11" * 32).public_key(0)
        result = cli_runner.invoke(cli, ["--json", "policy", "write", stranger, "--kind", "1"])
        data = json.loads(result.output)
        assert data["data"]["allow"] is False
        assert data["data"]["category"] == "not_in_team"

    def test_malformed_key(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "policy", "write", "nope", "--kind", "1"])
        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["category"] == "malformed_key"

    def test_missing_credential(
        self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("RELAYGATE_CREDENTIAL__MNEMONIC")
        result = cli_runner.invoke(cli, ["policy", "write", OUTSIDER, "--kind", "1"])
        assert result.exit_code == 1
        assert "CONFIGURATION_ERROR" in result.output


class TestReadCommand:
    def test_unrestricted(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "policy", "read"])
        assert result.output.strip() == "allow"

    def test_restricted_requires_authors(
        self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RELAYGATE_ACCESS__READS_RESTRICTED", "true")
        result = cli_runner.invoke(cli, ["--json", "policy", "read"])
        data = json.loads(result.output)
        assert data["data"]["allow"] is False
        assert data["data"]["reason"] == "reads restricted: specify allowed authors"

    def test_restricted_descendants(
        self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RELAYGATE_ACCESS__READS_RESTRICTED", "true")
        result = cli_runner.invoke(cli, ["--json", "policy", "read", NIP06_PUBLIC_KEY])
        data = json.loads(result.output)
        assert data["data"]["allow"] is True
        assert data["data"]["authors"] == [NIP06_PUBLIC_KEY]

    def test_restricted_outsider(
        self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RELAYGATE_ACCESS__READS_RESTRICTED", "true")
        result = cli_runner.invoke(cli, ["-q", "policy", "read", NIP06_PUBLIC_KEY, OUTSIDER])
        assert result.output.strip() == "deny"


class TestUploadCommand:
    def test_allowed(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "policy", "upload", NIP06_PUBLIC_KEY, "--size", "1024"]
        )
        data = json.loads(result.output)
        assert data["data"]["allow"] is True
        assert data["data"]["status"] is None

    def test_too_large(self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RELAYGATE_ACCESS__MAX_UPLOAD_SIZE_MB", "1")
        result = cli_runner.invoke(
            cli, ["--json", "policy", "upload", NIP06_PUBLIC_KEY, "--size", str(2 * 1024 * 1024)]
        )
        data = json.loads(result.output)
        assert data["data"]["allow"] is False
        assert data["data"]["status"] == 413
        assert data["data"]["reason"] == "file size exceeds 1MB limit"

    def test_explicit_limit(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["policy", "upload", NIP06_PUBLIC_KEY, "--size", "200", "--limit", "100"]
        )
        assert "DENY" in result.output
        assert "413" in result.output

    def test_negative_size_rejected(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["policy", "upload", NIP06_PUBLIC_KEY, "--size", "-1"])
        assert result.exit_code == 2

    def test_team_outsider_forbidden(
        self, cli_runner: CliRunner, team_roster: list[str]
    ) -> None:
        stranger = "dd" * 32
        result = cli_runner.invoke(cli, ["--json", "policy", "upload", stranger, "--size", "10"])
        data = json.loads(result.output)
        assert data["data"]["status"] == 403


class TestRosterFailure:
    def test_failed_fetch_denies_outsiders(
        self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _get(url: str, timeout: float) -> _Response:
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(well_known.requests, "get", _get)
        monkeypatch.setenv("RELAYGATE_ROSTER__TEAM_DOMAIN", "team.example")
        result = cli_runner.invoke(cli, ["-q", "policy", "write", OUTSIDER, "--kind", "1"])
        assert result.exit_code == 0
        assert "deny" in result.output
