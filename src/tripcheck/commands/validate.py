"""Command: validate an on_select message."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tripcheck.commands._base import TripcheckCommand

if TYPE_CHECKING:
    from tripcheck.commands._context import AppContext


@click.command(
    cls=TripcheckCommand,
    examples="""\
  tripcheck validate on_select.json
  tripcheck validate on_select.json --seen-id 8926b747-0362-4fcc-b795-0994a6287700
  tripcheck validate on_select.json --version 2.0.1
  cat on_select.json | tripcheck --json validate -""",
)
@click.argument("file", type=click.Path(allow_dash=True))
@click.option(
    "--seen-id",
    "seen_ids",
    multiple=True,
    help="Message id already seen in the transaction (repeatable).",
)
@click.option("--version", "version", default=None, help="Protocol version for extension rules.")
@click.pass_obj
def validate(app: AppContext, file: str, seen_ids: tuple[str, ...], version: str | None) -> None:
    """Validate an on_select payload against recorded transaction state."""
    from tripcheck.services.select import OnSelectService

    payload = app.load_payload(file)
    svc = OnSelectService(
        app.store,
        config=app.settings.validation,
        extensions=app.extensions,
    )
    app.emit(svc.validate(payload, seen_ids or None, version=version))
