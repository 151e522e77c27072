"""Config file discovery and loading.

Settings live in ``tripcheck.toml`` or, for projects that keep tool
settings together, in the ``[tool.tripcheck]`` table of ``pyproject.toml``.
Discovery walks up from the working directory, the way git finds
``.git/``; at each level ``tripcheck.toml`` wins over ``pyproject.toml``.
The TRIPCHECK_CONFIG env var and the --config flag bypass the walk.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from tripcheck.config.models import TripcheckConfig

CONFIG_FILENAME = "tripcheck.toml"
PYPROJECT_FILENAME = "pyproject.toml"
CONFIG_ENV_VAR = "TRIPCHECK_CONFIG"


def _tool_table(data: dict[str, Any]) -> dict[str, Any] | None:
    tool = data.get("tool")
    if not isinstance(tool, dict):
        return None
    table = tool.get("tripcheck")
    return table if isinstance(table, dict) else None


def _declares_tool_table(pyproject: Path) -> bool:
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        # Someone else's pyproject; not a tripcheck config either way.
        return False
    return _tool_table(data) is not None


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for a config file.

    Returns the path to the config file, or None if not found.
    Checks TRIPCHECK_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        pyproject = directory / PYPROJECT_FILENAME
        if pyproject.is_file() and _declares_tool_table(pyproject):
            return pyproject
    return None


def read_config_table(path: Path) -> dict[str, Any]:
    """Parse *path* and return its tripcheck settings.

    For ``pyproject.toml`` that is the ``[tool.tripcheck]`` table; any
    other file is read whole. Raises :class:`tomllib.TOMLDecodeError` on
    malformed TOML.
    """
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    if path.name == PYPROJECT_FILENAME:
        return _tool_table(data) or {}
    return data


def load_config(path: Path | None = None, cwd: Path | None = None) -> TripcheckConfig:
    """Load and validate config from a TOML file.

    If *path* is None, uses find_config(*cwd*) to discover the file.
    Returns default TripcheckConfig if no file is found.
    """
    if path is None:
        path = find_config(cwd)

    if path is None:
        return TripcheckConfig()

    return TripcheckConfig.model_validate(read_config_table(path))
