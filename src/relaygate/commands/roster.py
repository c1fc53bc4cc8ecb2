"""Command group: inspect the team roster."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from relaygate.commands._base import RgGroup

if TYPE_CHECKING:
    from relaygate.commands._context import AppContext


@click.group(
    cls=RgGroup,
    examples="""\
  relaygate roster show
  relaygate --json roster show --domain example.com""",
)
def roster() -> None:
    """Team roster published at the team domain."""


@roster.command(
    examples="""\
  relaygate roster show
  relaygate roster show --domain example.com""",
)
@click.option("--domain", default=None, help="Override roster.team_domain.")
@click.pass_obj
def show(app: AppContext, domain: str | None) -> None:
    """Fetch and list the roster from /.well-known/nostr.json."""
    from relaygate.infrastructure.well_known import RosterFetchError, fetch_roster
    from relaygate.services.result import ServiceError, ServiceResult

    team_domain = domain or app.settings.roster.team_domain
    if not team_domain.strip():
        app.emit(
            ServiceResult(
                ok=False,
                op="roster",
                error=ServiceError(
                    code="NO_TEAM_DOMAIN",
                    message="roster.team_domain is not set (use --domain)",
                ),
            )
        )
        return

    try:
        snapshot = fetch_roster(team_domain, timeout=app.settings.roster.timeout_seconds)
    except RosterFetchError as exc:
        app.emit(
            ServiceResult(
                ok=False,
                op="roster",
                error=ServiceError(code="ROSTER_FETCH_FAILED", message=str(exc)),
            )
        )
        return

    app.emit(
        ServiceResult(
            ok=True,
            op="roster",
            data={
                "team_domain": team_domain,
                "fetched_at": snapshot.fetched_at.isoformat() if snapshot.fetched_at else None,
                "count": len(snapshot.names),
                "names": snapshot.names,
            },
        )
    )
