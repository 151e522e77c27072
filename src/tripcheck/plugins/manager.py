"""Plugin discovery and loading.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints
in the ``tripcheck.plugins`` group.
Capabilities: contributing version-specific constraint documents.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

import pluggy

from tripcheck.plugins.hookspecs import TripcheckHookSpec

PROJECT_NAME = "tripcheck"
ENTRY_POINT_GROUP = "tripcheck.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(TripcheckHookSpec)
        self._loaded: bool = False

    def discover_and_load(self) -> list[str]:
        """Discover plugins from the ``tripcheck.plugins`` entry point group.

        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def collect_extension_documents(self) -> list[tuple[str, dict[str, Any]]]:
        """Gather constraint documents from every plugin.

        Returns ``(plugin_name, {version: {step: schema}})`` pairs. A plugin
        whose hook raises or returns a non-dict is skipped with a warning.
        """
        collected: list[tuple[str, dict[str, Any]]] = []
        for plugin in self._pm.get_plugins():
            plugin_name = self._pm.get_name(plugin) or plugin.__class__.__name__
            hook = getattr(plugin, "tripcheck_extension_documents", None)
            if hook is None:
                continue
            try:
                documents = hook()
            except Exception:
                logger.warning(
                    "Failed to collect extension documents from plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue
            if documents is None:
                continue
            if not isinstance(documents, dict):
                logger.warning("Plugin %s returned non-dict extension documents", plugin_name)
                continue
            collected.append((plugin_name, documents))
        return collected

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            if not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("tripcheck")`` sets a ``tripcheck_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "tripcheck_impl", None):
                return True
        return False
