"""Logging setup: structlog rendering over the stdlib logging tree.

Modules log with ``logging.getLogger(__name__)``; telemetry uses
``structlog.get_logger``. Both reach one stderr handler whose formatter
runs the structlog processor chain, so a record looks the same whichever
API produced it. Output is a colored console format, or JSON lines with
``--log-json``.

Values logged under secret-bearing keys are masked before rendering.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

SECRET_KEYS = frozenset({"mnemonic", "seed_hex", "private_key", "nsec"})
REDACTED = "<redacted>"

# Chatty at DEBUG; relaygate's own verbosity should not turn them on.
QUIET_LIBRARIES = ("urllib3", "requests")


def redact_secrets(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor: mask values stored under :data:`SECRET_KEYS`."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        redact_secrets,
    ]


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route all logging to a single stderr handler.

    Safe to call repeatedly; each call replaces the previous handler.

    Args:
        verbose: DEBUG for the ``relaygate`` logger tree, WARNING otherwise.
        log_json: JSON renderer instead of the console renderer.
    """
    shared = _shared_processors()
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger("relaygate").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
