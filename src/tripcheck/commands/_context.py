"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy store and rule-registry
initialization, payload loading, and centralized result emission
(stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from tripcheck.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from tripcheck.config.settings import TripcheckSettings
    from tripcheck.domain.extensions import ExtensionRegistry
    from tripcheck.infrastructure.store import StateStore
    from tripcheck.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The store is lazily
    initialized on first use so ``--help`` and ``--version`` never
    trigger database access.
    """

    def __init__(self, settings: TripcheckSettings) -> None:
        self.settings = settings
        self._store: StateStore | None = None
        self._extensions: ExtensionRegistry | None = None

        # Configure structured logging
        from tripcheck.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        # Enable telemetry context var when verbose
        if settings.verbose:
            from tripcheck.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> StateStore:
        """The state store (created lazily on first access)."""
        if self._store is None:
            from tripcheck.infrastructure.store import MemoryStateStore, SqliteStateStore

            if self.settings.store.backend == "memory":
                self._store = MemoryStateStore()
            else:
                self._store = SqliteStateStore(self.settings.state_db_path)
        return self._store

    @property
    def extensions(self) -> ExtensionRegistry:
        """Version-keyed constraint documents, built-ins plus plugin contributions."""
        if self._extensions is None:
            from tripcheck.infrastructure.rules import build_extension_registry

            plugins = None
            if self.settings.plugins.enabled:
                from tripcheck.plugins.manager import PluginManager

                plugins = PluginManager()
                plugins.discover_and_load()
            self._extensions = build_extension_registry(plugins)
        return self._extensions

    def load_payload(self, path: str) -> Any:
        """Read a JSON message from *path* (``-`` for stdin)."""
        try:
            if path == "-":
                raw = click.get_text_stream("stdin").read()
            else:
                raw = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Cannot read {path}: {exc}"
            raise click.ClickException(msg) from exc
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON in {path}: {exc}"
            raise click.ClickException(msg) from exc

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None
