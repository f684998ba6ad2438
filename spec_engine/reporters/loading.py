"""Loading of reporters from entry points."""

from importlib.metadata import entry_points
from typing import Any

from spec_engine.reporters.manifest import ReporterManifest

ENTRY_POINT_GROUP = "spec_engine.reporters"


class ReporterNotFoundError(Exception):
    """Raised when a reporter is not found."""


def load_reporter_manifest(key: str) -> ReporterManifest[Any]:
    """Load a reporter manifest by key.

    Args:
        key: The reporter key as registered in pyproject.toml
             (e.g., "logging", "null")

    Returns:
        The reporter manifest instance

    Raises:
        ReporterNotFoundError: If no reporter with the given key is found

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == key:
            manifest: ReporterManifest[Any] = entry.load()
            return manifest

    available = sorted(e.name for e in entries)
    raise ReporterNotFoundError(
        f"Reporter '{key}' not found. Available reporters: {available}"
    )
