"""Locate and read ``relaygate.toml``.

Lookup order: the ``RELAYGATE_CONFIG`` environment variable, then the
first ``relaygate.toml`` in the start directory or any of its parents
(the way git finds ``.git/``). The ``--config`` flag bypasses both; see
:meth:`relaygate.config.settings.RelaygateSettings.from_cli`.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from relaygate.config.models import RelaygateConfig
from relaygate.domain.errors import ConfigurationError

CONFIG_FILENAME = "relaygate.toml"
CONFIG_ENV_VAR = "RELAYGATE_CONFIG"


def _search_dirs(start: Path) -> Iterator[Path]:
    resolved = start.resolve()
    yield resolved
    yield from resolved.parents


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies to *start* (default: cwd), if any.

    A ``RELAYGATE_CONFIG`` pointing at a missing file disables discovery
    instead of falling back to the walk-up.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        return path if path.is_file() else None

    for directory in _search_dirs(start or Path.cwd()):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML.

    Raises:
        ConfigurationError: the file is not valid TOML.
    """
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigurationError(msg) from exc


def load_config(path: Path | None = None, cwd: Path | None = None) -> RelaygateConfig:
    """Validate the given (or discovered) file into section models.

    No file means an all-defaults :class:`RelaygateConfig`.
    """
    source = path or find_config(cwd)
    if source is None:
        return RelaygateConfig()
    return RelaygateConfig.model_validate(read_toml(source))
