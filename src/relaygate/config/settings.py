"""RelaygateSettings — every startup knob in one frozen object.

Sources, strongest first:

1. keyword arguments (the global CLI flags)
2. ``RELAYGATE_*`` environment variables; ``__`` separates section and
   key, e.g. ``RELAYGATE_CREDENTIAL__MNEMONIC``
3. ``relaygate.toml`` (see :mod:`relaygate.config.discovery`)
4. defaults baked into :mod:`relaygate.config.models`

The TOML file is plugged in as a custom pydantic-settings source.
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from relaygate.config.discovery import find_config, read_toml
from relaygate.config.models import AccessConfig, CredentialConfig, RosterConfig
from relaygate.domain.errors import ConfigurationError

# File chosen by from_cli() for the settings object currently being built.
_pending_toml: ContextVar[Path | None] = ContextVar("_pending_toml", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by one parsed ``relaygate.toml``, or nothing."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path is not None and toml_path.is_file():
            self._data = read_toml(toml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return dict(self._data)


def _resolve_toml_path(config_path: str | None, search_root: Path | None) -> Path | None:
    if not config_path:
        return find_config(search_root)
    explicit = Path(config_path)
    if not explicit.is_file():
        msg = f"Config file not found: {config_path}"
        raise ConfigurationError(msg)
    return explicit


class RelaygateSettings(BaseSettings):
    """Merged CLI, environment, file, and default settings.

    Attributes:
        config_path: The TOML file that was loaded, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "RELAYGATE_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    credential: CredentialConfig = Field(default_factory=CredentialConfig)
    access: AccessConfig = Field(default_factory=AccessConfig)
    roster: RosterConfig = Field(default_factory=RosterConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Kwargs, then env, then the TOML file. No dotenv, no secrets dir."""
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, _pending_toml.get()),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        search_root: Path | None = None,
        **cli_flags: Any,
    ) -> RelaygateSettings:
        """Build settings for one CLI invocation.

        Args:
            config_path: Explicit ``--config`` file; must exist.
            search_root: Where the walk-up starts (default: cwd).
            **cli_flags: Highest-priority field overrides.

        Raises:
            ConfigurationError: *config_path* is missing or a TOML file
                does not parse.
        """
        toml_path = _resolve_toml_path(config_path, search_root)
        token = _pending_toml.set(toml_path)
        try:
            return cls(config_path=toml_path, **cli_flags)
        finally:
            _pending_toml.reset(token)

    def require_single_credential(self) -> CredentialConfig:
        """The credential section, provided exactly one source is set.

        Raises:
            ConfigurationError: both or neither of mnemonic / seed_hex set.
        """
        cred = self.credential
        if cred.has_mnemonic == cred.has_seed:
            raise ConfigurationError(
                "you must set exactly one of credential.mnemonic or credential.seed_hex"
            )
        return cred
