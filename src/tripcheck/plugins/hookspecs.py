"""Pluggy hook specifications for tripcheck rule extensions.

Plugins contribute version-specific constraint documents so a new
protocol version can be supported without a code change here.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("tripcheck")
hookimpl = pluggy.HookimplMarker("tripcheck")


class TripcheckHookSpec:
    """Hook specifications for the tripcheck plugin system."""

    @hookspec
    def tripcheck_extension_documents(self) -> dict[str, dict[str, dict[str, Any]]] | None:
        """Return ``{version: {step: json_schema}}`` constraint documents."""
