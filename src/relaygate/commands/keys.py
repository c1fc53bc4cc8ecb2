"""Command group: key derivation, membership checks, and NIP-19 encoding."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from relaygate.commands._base import RgGroup

if TYPE_CHECKING:
    from relaygate.commands._context import AppContext


@click.group(
    cls=RgGroup,
    examples="""\
  relaygate keys master
  relaygate keys derive --start 0 --count 5
  relaygate keys check npub1... --max-index 100
  relaygate keys generate --words 24
  relaygate keys encode 7e7e9c42...df4e""",
)
def keys() -> None:
    """Derive and inspect identities under the master key."""


@keys.command(
    examples="""\
  relaygate keys master
  relaygate keys master --show-private""",
)
@click.option("--show-private", is_flag=True, help="Include private key and nsec.")
@click.pass_obj
def master(app: AppContext, show_private: bool) -> None:
    """Show the master (root) identity."""
    from relaygate.services.keys import KeyService

    runtime = app.runtime("master_key")
    app.emit(KeyService(runtime.deriver).master(show_private=show_private))


@keys.command(
    examples="""\
  relaygate keys derive
  relaygate keys derive --start 10 --count 3 --show-private
  relaygate --json keys derive --count 20""",
)
@click.option("--start", default=0, type=click.IntRange(min=0), help="First index.")
@click.option("--count", default=5, type=click.IntRange(min=0), help="Number of keys.")
@click.option("--show-private", is_flag=True, help="Include private keys and nsec.")
@click.pass_obj
def derive(app: AppContext, start: int, count: int, show_private: bool) -> None:
    """Derive identities at m/44'/1237'/0'/0/<index>."""
    from relaygate.services.keys import KeyService

    runtime = app.runtime("derive_keys")
    app.emit(KeyService(runtime.deriver).derive(start, count, show_private=show_private))


@keys.command(
    examples="""\
  relaygate keys check 17162c921dc4d2518f9a101db33695df1afb56ab82f5ff3e5da6eec3ca5cd917
  relaygate keys check npub1... --max-index 500""",
)
@click.argument("key")
@click.option(
    "--max-index",
    default=None,
    type=click.IntRange(min=0),
    help="Search bound (default: access.max_derivation_index).",
)
@click.pass_obj
def check(app: AppContext, key: str, max_index: int | None) -> None:
    """Check whether KEY is the master or one of its descendants."""
    from relaygate.services.keys import KeyService

    runtime = app.runtime("check_key")
    bound = app.settings.access.max_derivation_index if max_index is None else max_index
    app.emit(KeyService(runtime.deriver).check(key, bound))


@keys.command(
    examples="""\
  relaygate keys generate
  relaygate keys generate --words 24 --count 5""",
)
@click.option(
    "--words",
    default="12",
    type=click.Choice(["12", "24"]),
    help="Mnemonic length.",
)
@click.option("--count", default=3, type=click.IntRange(min=0), help="Identities to preview.")
@click.pass_obj
def generate(app: AppContext, words: str, count: int) -> None:
    """Generate a fresh mnemonic (does not touch configuration)."""
    from relaygate.services.keys import KeyService

    strength = 128 if words == "12" else 256
    app.emit(KeyService.generate(strength=strength, count=count))


@keys.command(
    examples="""\
  relaygate keys encode 7e7e9c42a91bfef19fa929e5fda1b72e0ebc1a4c1141673e2794234d86addf4e
  relaygate keys encode <private hex> --private""",
)
@click.argument("key_hex")
@click.option("--private", "private", is_flag=True, help="Encode as nsec instead of npub.")
@click.pass_obj
def encode(app: AppContext, key_hex: str, private: bool) -> None:
    """Encode a 64-char hex key as NIP-19."""
    from relaygate.services.keys import KeyService

    app.emit(KeyService.encode(key_hex, private=private))


@keys.command(
    examples="""\
  relaygate keys decode npub10elfcs4fr0l0r8af98jlmgdh9c8tcxjvz9qkw038js35mp4dma8qzvjptg""",
)
@click.argument("text")
@click.pass_obj
def decode(app: AppContext, text: str) -> None:
    """Decode a NIP-19 key (npub/nsec) to hex."""
    from relaygate.services.keys import KeyService

    app.emit(KeyService.decode(text))
