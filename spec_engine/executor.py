"""Executors running tasks one at a time on the asyncio event loop."""

import asyncio
import inspect
import logging
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from spec_engine.assertions import AssertionFailure
from spec_engine.context import ExecutionContext, activate
from spec_engine.models.outcome import ClassifiedException, SourceLocation
from spec_engine.task import Task

log = logging.getLogger(__name__)

SuccessCallback = Callable[[Any, Any], None]
ExceptionCallback = Callable[[Any, ClassifiedException], None]


class Runnable(Protocol):
    """Anything a CompositeExecutor can chain."""

    async def run(
        self, context: ExecutionContext | None = None
    ) -> ClassifiedException | None:
        """Run to completion and return the exception that ended it, if any."""


def _ignore(*_args: Any) -> None:
    return None


def classify_error(
    exc: BaseException, location: SourceLocation | None = None
) -> ClassifiedException:
    """Classify an exception that no matcher flagged."""
    return ClassifiedException(
        type="error",
        message=f"{type(exc).__name__}: {exc}",
        location=location,
    )


def merge_exceptions(
    assertion_failure: AssertionFailure, location: SourceLocation | None
) -> ClassifiedException:
    """Combine the first pass message with the replayed pass location."""
    return ClassifiedException(
        type="failure",
        message=assertion_failure.message,
        location=location,
    )


class Executor:
    """Runs one task and reports its outcome through exactly one callback.

    The task is never invoked inline: :meth:`run` first yields to the event
    loop, then executes the task. On a normal return ``on_success(executor,
    result)`` fires; on an exception the exception is classified and
    ``on_exception(executor, classified)`` fires.
    """

    def __init__(
        self,
        task: Task | Callable[[], Any],
        on_success: SuccessCallback | None = None,
        on_exception: ExceptionCallback | None = None,
    ) -> None:
        self.task = Task.wrap(task)
        self.on_success = on_success or _ignore
        self.on_exception = on_exception or _ignore

    def __repr__(self) -> str:
        return f"Executor(task={self.task.name!r})"

    async def run(
        self, context: ExecutionContext | None = None
    ) -> ClassifiedException | None:
        """Execute the task at the next scheduling boundary.

        Returns the classified exception passed to ``on_exception``, or None
        after ``on_success`` has returned. Exceptions raised by the callbacks
        themselves propagate to the caller.
        """
        if context is None:
            context = ExecutionContext()

        while True:
            await asyncio.sleep(0)
            try:
                result = await self._invoke(context)
            except Exception as exc:
                if self._should_replay(context):
                    log.debug(
                        "Replaying %r to recover the failure location", self.task.name
                    )
                    context.second_pass_in_progress = True
                    continue

                classified = self._classify(context, exc)
                self.on_exception(self, classified)
                return classified

            pending = context.pending_failure
            if context.second_pass_in_progress and pending is not None:
                return self._report_unreproduced_failure(context, pending)

            if pending is not None:
                log.debug("Task %r swallowed an assertion failure", self.task.name)
                context.clear()

            self.on_success(self, result)
            return None

    async def _invoke(self, context: ExecutionContext) -> Any:
        with activate(context):
            result = self.task()
            if inspect.isawaitable(result):
                result = await result
        return result

    def _should_replay(self, context: ExecutionContext) -> bool:
        return (
            context.location_strategy.replays_failures
            and self.task.replayable
            and context.pending_failure is not None
            and not context.second_pass_in_progress
        )

    def _classify(
        self, context: ExecutionContext, exc: Exception
    ) -> ClassifiedException:
        strategy = context.location_strategy
        pending = context.pending_failure

        if context.second_pass_in_progress and pending is not None:
            classified = merge_exceptions(pending, strategy.locate_replayed(exc))
        elif pending is not None:
            classified = ClassifiedException(
                type="failure",
                message=pending.message,
                location=strategy.locate(exc),
            )
        elif isinstance(exc, AssertionFailure):
            classified = ClassifiedException(
                type="failure",
                message=exc.message,
                location=strategy.locate(exc),
            )
        else:
            classified = classify_error(exc, strategy.locate(exc))

        context.clear()
        return classified

    def _report_unreproduced_failure(
        self, context: ExecutionContext, pending: AssertionFailure
    ) -> ClassifiedException:
        """Replay returned normally: report the first pass without a location."""
        log.warning(
            "Task %r did not fail again when replayed; it is not idempotent",
            self.task.name,
        )
        classified = merge_exceptions(pending, None)
        context.clear()
        self.on_exception(self, classified)
        return classified


class CompositeExecutor:
    """Runs a queue of executors strictly one after another.

    Unit N+1 starts only after unit N's own callback has returned. With
    ``continue_on_exception`` an exception is recorded by the failing unit
    and the queue advances; without it the composite's ``on_exception``
    fires with the failing unit and its exception, and the rest of the
    queue never runs. ``on_success`` fires once the queue is exhausted.
    """

    def __init__(
        self,
        on_success: SuccessCallback | None = None,
        on_exception: ExceptionCallback | None = None,
        continue_on_exception: bool = False,
    ) -> None:
        self.on_success = on_success or _ignore
        self.on_exception = on_exception or _ignore
        self.continue_on_exception = continue_on_exception
        self._queue: list[Runnable] = []

    def __repr__(self) -> str:
        return (
            f"CompositeExecutor(size={len(self._queue)}, "
            f"continue_on_exception={self.continue_on_exception})"
        )

    @property
    def queue(self) -> Sequence[Runnable]:
        return tuple(self._queue)

    def add_function(self, task: Task | Callable[[], Any]) -> None:
        """Append a task wrapped in an executor without callbacks."""
        self.add_executor(Executor(task))

    def add_executor(self, executor: Runnable) -> None:
        """Append an executor or a nested composite to the queue."""
        self._queue.append(executor)

    async def run(
        self, context: ExecutionContext | None = None
    ) -> ClassifiedException | None:
        """Run the queue; a composite with an empty queue does nothing.

        Returns the exception that aborted the queue, or None when every unit
        ran (including units that failed under continue-on-exception).
        """
        if not self._queue:
            return None

        if context is None:
            context = ExecutionContext()

        for unit in self._queue:
            exception = await unit.run(context)
            if exception is None or self.continue_on_exception:
                continue

            log.debug("Aborting %r after %r raised: %s", self, unit, exception.message)
            self.on_exception(unit, exception)
            return exception

        self.on_success(self, None)
        return None
