"""Root CLI group for tripcheck with global flags and command registration."""

from __future__ import annotations

import click

from tripcheck import __version__
from tripcheck.commands import register_commands
from tripcheck.commands._base import TripcheckGroup
from tripcheck.commands._context import AppContext
from tripcheck.config.settings import TripcheckSettings


@click.group(
    cls=TripcheckGroup,
    invoke_without_command=True,
    examples="""\
  tripcheck record on_search on_search.json
  tripcheck record select select.json
  tripcheck validate on_select.json
  tripcheck --json state show 6743e9e2-4fb5-487c-92b7-13ba8018f176""",
)
@click.version_option(version=__version__, prog_name="tripcheck")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """tripcheck — ride-hailing protocol message validator."""
    settings = TripcheckSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
