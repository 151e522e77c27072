"""Subcommand modules for tripcheck.

Provides register_commands() which uses deferred imports to keep
``tripcheck --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from tripcheck.commands.state import state

    cli.add_command(state)

    # --- Standalone commands ---
    from tripcheck.commands.record import record
    from tripcheck.commands.validate import validate

    cli.add_command(record)
    cli.add_command(validate)
