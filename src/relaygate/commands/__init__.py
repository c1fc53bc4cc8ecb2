"""Subcommand modules for relaygate.

Provides register_commands() which uses deferred imports to keep
``relaygate --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups on the root CLI group."""
    from relaygate.commands.keys import keys
    from relaygate.commands.policy import policy
    from relaygate.commands.roster import roster

    cli.add_command(keys)
    cli.add_command(policy)
    cli.add_command(roster)
