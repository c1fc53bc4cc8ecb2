"""Click base classes that add an eager ``--examples`` flag.

``--help`` stays short; ``--examples`` prints ready-to-paste invocations
for the command and exits.
"""

from __future__ import annotations

from typing import Any

import click


def _examples_option(examples: str) -> click.Option:
    def _print(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n\n{examples}")
        ctx.exit(0)

    return click.Option(
        ["--examples"],
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=_print,
        help="Show usage examples.",
    )


class _ExamplesMixin:
    """Accepts ``examples=`` and registers the matching option."""

    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(examples))


class RgCommand(_ExamplesMixin, click.Command):
    """Command with optional ``--examples``."""


class RgGroup(_ExamplesMixin, click.Group):
    """Group with optional ``--examples``.

    Subcommands created through the group decorator default to
    :class:`RgCommand`, so they take ``examples=`` without ``cls=``.
    """

    command_class = RgCommand
