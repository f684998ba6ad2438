"""Models for collected example results."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, kw_only=True)
class ExampleResult:
    """Result of a single example, flattened for reporting.

    Examples that never ran (their spec's setup aborted) are reported as
    skipped.
    """

    spec: str
    example: str
    status: Literal["success", "failure", "error", "skipped"]
    duration: float
    message: str | None = None
    location: str | None = None
