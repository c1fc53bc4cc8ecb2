"""AppContext: the object every command receives via ``@click.pass_obj``.

It owns the settings for the invocation, builds the :class:`Runtime` on
demand, and turns ServiceResults into output and exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from relaygate.domain.errors import RelaygateError
from relaygate.output.formatters import OutputSettings, format_result
from relaygate.services.result import ServiceResult

if TYPE_CHECKING:
    from relaygate.config.settings import RelaygateSettings
    from relaygate.infrastructure.runtime import Runtime


class AppContext:
    """Per-invocation state shared by all subcommands.

    ``keys generate``, ``keys encode``, ``roster show`` and ``--help`` run
    without a credential because nothing builds the runtime for them.
    """

    def __init__(self, settings: RelaygateSettings) -> None:
        self.settings = settings
        self._runtime: Runtime | None = None
        self._output = OutputSettings(
            json_output=settings.json_output,
            quiet=settings.quiet,
            verbose=settings.verbose,
        )

        from relaygate.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            from relaygate.services.telemetry import enable_telemetry

            enable_telemetry()

    def runtime(self, op: str) -> Runtime:
        """Build the runtime on first call and reuse it afterwards.

        A configuration or credential problem ends the command: it is
        emitted as a failed *op* result and the exit code is 1.
        """
        if self._runtime is not None:
            return self._runtime

        from relaygate.infrastructure.runtime import Runtime

        try:
            self._runtime = Runtime(self.settings)
        except RelaygateError as exc:
            self.emit(ServiceResult.failure(op, exc))
        assert self._runtime is not None
        return self._runtime

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; exit 1 if it failed.

        Successful output goes to stdout. Failures and, outside JSON mode,
        warnings go to stderr.
        """
        text = format_result(result, settings=self._output)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)

        click.echo(text)
        if self._output.json_output:
            return
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)
