"""Units of work executed by the engine."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, kw_only=True)
class Task:
    """A zero-argument unit of work supplied by a suite author.

    The function either returns normally or raises. It may also return an
    awaitable, which is awaited as part of the same unit of work.

    ``replayable`` is the contract required by
    :class:`~spec_engine.locations.RecoverLocationByReplay`: a replayable task
    can be executed a second time and reaches the same failing assertion
    again, so nothing it does before that assertion may depend on having run
    once already. Plain callables handed to the engine are assumed to honour
    this. Tasks built with ``replayable=False`` are never re-executed; their
    failures are reported without a source location under that strategy.
    """

    func: Callable[[], Any]
    name: str = ""
    replayable: bool = True

    def __call__(self) -> Any:
        return self.func()

    @classmethod
    def wrap(cls, target: "Task | Callable[[], Any]", name: str = "") -> "Task":
        """Return ``target`` unchanged if it is a Task, else wrap the callable."""
        if isinstance(target, Task):
            return target
        return cls(func=target, name=name or getattr(target, "__name__", ""))


def _noop() -> None:
    return None


NOOP = Task(func=_noop, name="noop")
