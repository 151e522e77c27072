"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

from tripcheck.plugins.hookspecs import hookimpl
from tripcheck.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
