"""Loading of version-specific constraint documents.

Built-in documents ship as JSON inside :mod:`tripcheck.rules`; plugins
may add documents for further versions or override a built-in one.
"""

from __future__ import annotations

import json
import logging
from importlib.resources import files
from typing import TYPE_CHECKING, Any

from jsonschema.exceptions import SchemaError

from tripcheck.domain.extensions import ExtensionRegistry

if TYPE_CHECKING:
    from tripcheck.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

RULES_PACKAGE = "tripcheck.rules"


def load_builtin_documents() -> dict[str, dict[str, dict[str, Any]]]:
    """Read every packaged ``*.json`` document as ``{version: {step: schema}}``."""
    documents: dict[str, dict[str, dict[str, Any]]] = {}
    for resource in sorted(files(RULES_PACKAGE).iterdir(), key=lambda r: r.name):
        if not resource.name.endswith(".json"):
            continue
        data = json.loads(resource.read_text(encoding="utf-8"))
        version = str(data["version"])
        documents.setdefault(version, {}).update(data.get("steps", {}))
    return documents


def build_extension_registry(plugins: PluginManager | None = None) -> ExtensionRegistry:
    """Registry of built-in documents, extended by plugin contributions.

    A plugin document that is not a valid JSON Schema is skipped with a
    warning; built-ins are trusted and fail loudly.
    """
    registry = ExtensionRegistry(load_builtin_documents())
    if plugins is None:
        return registry

    for plugin_name, documents in plugins.collect_extension_documents():
        for version, steps in documents.items():
            if not isinstance(steps, dict):
                logger.warning("Plugin %s: version %s is not a step mapping", plugin_name, version)
                continue
            for step, document in steps.items():
                try:
                    registry.register(str(version), str(step), document)
                except SchemaError:
                    logger.warning(
                        "Plugin %s: invalid constraint document for %s/%s",
                        plugin_name,
                        version,
                        step,
                        exc_info=True,
                    )
                    continue
                logger.debug("Plugin %s registered rules for %s/%s", plugin_name, version, step)
    return registry
