"""Per-run execution context threaded through the executor tree."""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from spec_engine.locations import ExceptionCarriesLocation, LocationStrategy

if TYPE_CHECKING:
    from spec_engine.assertions import AssertionFailure

_current: ContextVar["ExecutionContext | None"] = ContextVar(
    "spec_engine_context", default=None
)


@dataclass(kw_only=True)
class ExecutionContext:
    """Classification state for the single task currently in flight.

    ``pending_failure`` is set by a matcher right before it raises, and
    ``second_pass_in_progress`` marks a replayed execution. Both are cleared
    as soon as the executor has classified the task's outcome.
    """

    location_strategy: LocationStrategy = field(
        default_factory=ExceptionCarriesLocation
    )
    pending_failure: "AssertionFailure | None" = None
    second_pass_in_progress: bool = False

    def clear(self) -> None:
        self.pending_failure = None
        self.second_pass_in_progress = False


def current_context() -> ExecutionContext | None:
    """Return the context of the task being executed, if any."""
    return _current.get()


@contextmanager
def activate(context: ExecutionContext) -> Iterator[ExecutionContext]:
    """Publish ``context`` to matchers called from within a task."""
    token = _current.set(context)
    try:
        yield context
    finally:
        _current.reset(token)
