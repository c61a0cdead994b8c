"""
Project metadata helpers used by the logging formatters (service name and version in every JSON line).

Installed distribution metadata is preferred; in a source checkout the nearest pyproject.toml is read.
"""

import tomllib
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any

DISTRIBUTION_NAME = "crudkit"


def find_pyproject(start: Path, max_up: int = 5) -> Path | None:
    p = start
    for _ in range(max_up):
        candidate = p / "pyproject.toml"
        if candidate.exists():
            return candidate
        if p.parent == p:
            break
        p = p.parent
    return None


def load_pyproject_data(pyproject_path: Path) -> dict:
    # tomllib expects a binary file object
    with pyproject_path.open("rb") as f:
        return tomllib.load(f)


def get_pyproject_value(
    key: str,
    start: str | Path | None = None,
    max_up: int = 5,
    default: Any = None,
) -> Any:
    """
    Return the value for a dot-separated `key` ("project.version") from the nearest pyproject.toml,
    searching upwards from `start` (defaults to this module's folder).

    Returns `default` if the file isn't found, can't be parsed, or the key is missing.
    """
    start_path = Path(start).resolve() if start is not None else Path(__file__).resolve().parent

    pyproject = find_pyproject(start=start_path, max_up=max_up)
    if not pyproject or not key:
        return default

    try:
        data = load_pyproject_data(pyproject)
    except (OSError, tomllib.TOMLDecodeError):
        return default

    cur: Any = data
    for part in key.split("."):
        if isinstance(cur, dict) and part in cur:
            cur = cur[part]
        else:
            return default
    return cur


def get_project_name(start: Path | str | None = None, max_up: int = 5) -> str:
    try:
        return importlib_metadata.metadata(DISTRIBUTION_NAME)["Name"]
    except importlib_metadata.PackageNotFoundError:
        return get_pyproject_value("project.name", start=start, max_up=max_up, default=DISTRIBUTION_NAME)


def get_project_version(start: Path | str | None = None, max_up: int = 5, default: str = "unknown") -> str:
    try:
        return importlib_metadata.version(DISTRIBUTION_NAME)
    except importlib_metadata.PackageNotFoundError:
        value = get_pyproject_value("project.version", start=start, max_up=max_up, default=None)
        return value if value is not None else default


__all__ = [
    "find_pyproject",
    "load_pyproject_data",
    "get_pyproject_value",
    "get_project_name",
    "get_project_version",
]
