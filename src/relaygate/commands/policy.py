"""Command group: evaluate write, read, and upload decisions offline.

Runs the same engine the relay uses, against the configured credential,
rules, and (in team mode) a freshly fetched roster.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from relaygate.commands._base import RgGroup

if TYPE_CHECKING:
    from relaygate.commands._context import AppContext
    from relaygate.infrastructure.runtime import Runtime


def _prepared_runtime(app: AppContext, op: str) -> Runtime:
    runtime = app.runtime(op)
    runtime.refresh_roster()
    return runtime


@click.group(
    cls=RgGroup,
    examples="""\
  relaygate policy write <pubkey> --kind 1
  relaygate policy read <author> <author>
  relaygate policy upload <pubkey> --size 1048576""",
)
def policy() -> None:
    """Evaluate access decisions for a key."""


@policy.command(
    examples="""\
  relaygate policy write 17162c92...d917 --kind 1
  relaygate --json policy write npub1... --kind 30023""",
)
@click.argument("pubkey")
@click.option("--kind", required=True, type=int, help="Event kind.")
@click.pass_obj
def write(app: AppContext, pubkey: str, kind: int) -> None:
    """Would an event of KIND from PUBKEY be accepted?"""
    from relaygate.services.policy import decision_result

    runtime = _prepared_runtime(app, "write_policy")
    decision = runtime.policy.write(pubkey, kind)
    app.emit(
        decision_result(
            "write_policy",
            decision,
            pubkey=pubkey,
            kind=kind,
            roster_size=len(runtime.roster.snapshot.names),
        )
    )


@policy.command(
    examples="""\
  relaygate policy read <author-hex>
  relaygate policy read npub1... npub1...""",
)
@click.argument("authors", nargs=-1)
@click.pass_obj
def read(app: AppContext, authors: tuple[str, ...]) -> None:
    """Would a query filtered to AUTHORS be allowed?"""
    from relaygate.services.policy import decision_result

    runtime = _prepared_runtime(app, "read_policy")
    decision = runtime.policy.read(list(authors))
    app.emit(decision_result("read_policy", decision, authors=list(authors)))


@policy.command(
    examples="""\
  relaygate policy upload <pubkey> --size 1048576
  relaygate policy upload <pubkey> --size 5000000 --limit 4194304""",
)
@click.argument("pubkey")
@click.option("--size", required=True, type=click.IntRange(min=0), help="Blob size in bytes.")
@click.option(
    "--limit",
    default=None,
    type=click.IntRange(min=0),
    help="Size ceiling in bytes (default: access.max_upload_size_mb).",
)
@click.pass_obj
def upload(app: AppContext, pubkey: str, size: int, limit: int | None) -> None:
    """Would a blob of SIZE bytes from PUBKEY be accepted?"""
    from relaygate.services.policy import decision_result

    runtime = _prepared_runtime(app, "upload_policy")
    decision = runtime.policy.upload(pubkey, size, limit)
    app.emit(
        decision_result(
            "upload_policy",
            decision,
            pubkey=pubkey,
            size=size,
            roster_size=len(runtime.roster.snapshot.names),
        )
    )
