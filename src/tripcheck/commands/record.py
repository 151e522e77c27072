"""Command: record state published by an earlier step."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tripcheck.commands._base import TripcheckCommand
from tripcheck.services.record import RECORDABLE_STEPS

if TYPE_CHECKING:
    from tripcheck.commands._context import AppContext


@click.command(
    cls=TripcheckCommand,
    examples="""\
  tripcheck record on_search on_search.json
  tripcheck record select select.json""",
)
@click.argument("step", type=click.Choice([str(s) for s in RECORDABLE_STEPS]))
@click.argument("file", type=click.Path(allow_dash=True))
@click.pass_obj
def record(app: AppContext, step: str, file: str) -> None:
    """Record the identifiers and context of an on_search or select message."""
    from tripcheck.services.record import RecordService

    payload = app.load_payload(file)
    app.emit(RecordService(app.store).record(step, payload))
