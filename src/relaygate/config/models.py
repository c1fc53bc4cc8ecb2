"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, relaygate.toml only contains
overrides. A working relay needs only one of ``[credential] mnemonic``
or ``[credential] seed_hex``.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


def parse_allowed_kinds(value: Any) -> tuple[int, ...]:
    """Accept a list of ints or a comma-separated string like ``"1, 7, 30023"``.

    Invalid entries are skipped with a warning; an empty result means
    every kind is allowed.
    """
    if value is None:
        return ()
    if isinstance(value, int):
        return (value,)
    items = value.split(",") if isinstance(value, str) else list(value)

    kinds: list[int] = []
    for item in items:
        raw = item.strip() if isinstance(item, str) else item
        if raw == "":
            continue
        try:
            kinds.append(int(raw))
        except (TypeError, ValueError):
            logger.warning("Invalid kind %r in allowed_kinds, skipping", raw)
    return tuple(kinds)


class CredentialConfig(BaseModel):
    """[credential] section — exactly one field must be set."""

    model_config = {"frozen": True}

    mnemonic: str | None = Field(default=None, repr=False)
    seed_hex: str | None = Field(default=None, repr=False)

    @property
    def has_mnemonic(self) -> bool:
        return bool(self.mnemonic and self.mnemonic.strip())

    @property
    def has_seed(self) -> bool:
        return bool(self.seed_hex and self.seed_hex.strip())


class AccessConfig(BaseModel):
    """[access] section."""

    model_config = {"frozen": True}

    max_derivation_index: int = Field(default=100, ge=0)
    reads_restricted: bool = False
    # ``str`` lets env vars carry "1,7" instead of JSON.
    allowed_kinds: tuple[int, ...] | str = ()
    max_upload_size_mb: int = Field(default=200, ge=0)

    @field_validator("allowed_kinds", mode="before")
    @classmethod
    def _coerce_kinds(cls, value: Any) -> tuple[int, ...]:
        return parse_allowed_kinds(value)

    @property
    def kinds(self) -> frozenset[int]:
        return frozenset(parse_allowed_kinds(self.allowed_kinds))


class RosterConfig(BaseModel):
    """[roster] section. A non-empty ``team_domain`` enables team mode."""

    model_config = {"frozen": True}

    team_domain: str = ""
    refresh_interval_seconds: float = Field(default=3600.0, gt=0)
    timeout_seconds: float = Field(default=10.0, gt=0)

    @property
    def team_mode(self) -> bool:
        return bool(self.team_domain.strip())


class RelaygateConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    credential: CredentialConfig = Field(default_factory=CredentialConfig)
    access: AccessConfig = Field(default_factory=AccessConfig)
    roster: RosterConfig = Field(default_factory=RosterConfig)
