"""Fetch the team roster from a domain's NIP-05 well-known document.

``GET https://{domain}/.well-known/nostr.json`` returns::

    {"names": {"alice": "<hex pubkey>", ...},
     "relays": {"<hex pubkey>": ["wss://...", ...]}}

Only ``names`` is required. Any failure raises :class:`RosterFetchError`;
the roster cache decides what to do about it.
"""

from __future__ import annotations

from datetime import UTC, datetime

import requests
from pydantic import BaseModel, Field, ValidationError

from relaygate.domain.types import RosterSnapshot

WELL_KNOWN_PATH = "/.well-known/nostr.json"
DEFAULT_TIMEOUT = 10.0


class RosterFetchError(Exception):
    """The roster document could not be fetched or parsed."""


class NostrJson(BaseModel):
    """Shape of ``nostr.json``."""

    names: dict[str, str]
    relays: dict[str, list[str]] = Field(default_factory=dict)


def roster_url(domain: str) -> str:
    return f"https://{domain.strip().rstrip('/')}{WELL_KNOWN_PATH}"


def parse_roster(payload: object) -> RosterSnapshot:
    """Validate a decoded JSON payload into a fresh snapshot."""
    try:
        doc = NostrJson.model_validate(payload)
    except ValidationError as exc:
        raise RosterFetchError(f"invalid nostr.json: {exc.error_count()} error(s)") from exc
    return RosterSnapshot(names=doc.names, relays=doc.relays, fetched_at=datetime.now(UTC))


def fetch_roster(
    domain: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    session: requests.Session | None = None,
) -> RosterSnapshot:
    """Download and parse the roster for *domain*.

    Raises:
        RosterFetchError: network failure, non-2xx status, or bad JSON.
    """
    if not domain.strip():
        raise RosterFetchError("no team domain configured")

    url = roster_url(domain)
    getter = session.get if session is not None else requests.get
    try:
        resp = getter(url, timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except requests.RequestException as exc:
        raise RosterFetchError(f"error fetching {url}: {exc}") from exc
    except ValueError as exc:
        raise RosterFetchError(f"error decoding {url}: {exc}") from exc

    return parse_roster(payload)
