"""Command group: inspect and clear recorded transaction state."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tripcheck.commands._base import TripcheckGroup

if TYPE_CHECKING:
    from tripcheck.commands._context import AppContext


@click.group(
    cls=TripcheckGroup,
    examples="""\
  tripcheck state list
  tripcheck state show 6743e9e2-4fb5-487c-92b7-13ba8018f176
  tripcheck state clear 6743e9e2-4fb5-487c-92b7-13ba8018f176""",
)
def state() -> None:
    """Inspect recorded transaction state."""


@state.command("list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List transactions with recorded state."""
    from tripcheck.services.state import StateService

    app.emit(StateService(app.store).list_transactions())


@state.command()
@click.argument("transaction_id")
@click.pass_obj
def show(app: AppContext, transaction_id: str) -> None:
    """Show everything recorded for a transaction."""
    from tripcheck.services.state import StateService

    app.emit(StateService(app.store).show(transaction_id))


@state.command()
@click.argument("transaction_id")
@click.pass_obj
def clear(app: AppContext, transaction_id: str) -> None:
    """Delete everything recorded for a transaction."""
    from tripcheck.services.state import StateService

    app.emit(StateService(app.store).clear(transaction_id))
