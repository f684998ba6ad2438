"""Suite hierarchy: runner, specs and examples assembled into executor trees."""

import itertools
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Literal

from spec_engine.context import ExecutionContext
from spec_engine.executor import CompositeExecutor, Executor, classify_error
from spec_engine.locations import (
    ExceptionCarriesLocation,
    LocationStrategy,
    traceback_location,
)
from spec_engine.models.outcome import ClassifiedException, Outcome
from spec_engine.reporters.base import NullReporter, Reporter
from spec_engine.task import NOOP, Task

log = logging.getLogger(__name__)

State = Literal["waiting", "running", "finished"]
TaskLike = Task | Callable[[], Any]

BEFORE_EACH_KEYS = ("before", "before each")
BEFORE_ALL_KEYS = ("before all",)
AFTER_EACH_KEYS = ("after", "after each")
AFTER_ALL_KEYS = ("after all",)
RESERVED_KEYS = frozenset(
    BEFORE_EACH_KEYS + BEFORE_ALL_KEYS + AFTER_EACH_KEYS + AFTER_ALL_KEYS
)


class _Recorded:
    """Run state shared by specs and examples."""

    def __init__(self) -> None:
        self.state: State = "waiting"
        self.exception: ClassifiedException | None = None
        self.superseded_exceptions: list[ClassifiedException] = []

    def record_exception(self, exception: ClassifiedException) -> None:
        """Record ``exception``; the latest one wins, earlier ones are kept aside."""
        if self.exception is not None:
            self.superseded_exceptions.append(self.exception)
        self.exception = exception

    def _notify(self, hook: Callable[[], None]) -> None:
        """Call a reporter hook, recording an exception it raises on ``self``."""
        try:
            hook()
        except Exception as exc:
            log.warning("Reporter hook failed for %r: %s", self, exc)
            self.record_exception(classify_error(exc, traceback_location(exc)))

    @property
    def outcome(self) -> Outcome | None:
        """The recorded outcome, or None until the run finished."""
        if self.state != "finished":
            return None
        return Outcome.from_exception(self.exception)


class Example(_Recorded):
    """One test case: a body task plus the before/after hooks of its spec."""

    _ids = itertools.count()

    def __init__(
        self,
        name: str,
        target: TaskLike,
        before: TaskLike = NOOP,
        after: TaskLike = NOOP,
    ) -> None:
        super().__init__()
        self.id = next(Example._ids)
        self.name = name
        self.target = Task.wrap(target, name)
        self.before = Task.wrap(before, "before each")
        self.after = Task.wrap(after, "after each")
        self.duration = 0.0
        self._started_at: float | None = None

    def __repr__(self) -> str:
        return f"Example(id={self.id}, name={self.name!r}, state={self.state!r})"

    def is_failure(self) -> bool:
        return self.exception is not None and self.exception.is_failure

    def is_error(self) -> bool:
        return self.exception is not None and self.exception.is_error

    def get_executor(self, reporter: Reporter) -> CompositeExecutor:
        """Build ``start -> before -> [target, after, end]``.

        A failing start notification or ``before`` aborts the rest of the
        example; the exception callback records the exception and reports
        the end of the example itself. Target and after always both run, and
        the later exception is the one recorded.
        """

        def record(_executor: Executor, exception: ClassifiedException) -> None:
            self.record_exception(exception)

        def abort(_executor: Executor, exception: ClassifiedException) -> None:
            self.record_exception(exception)
            self._finish(reporter)

        start = Task(
            func=lambda: self._start(reporter),
            name=f"start {self.name}",
            replayable=False,
        )
        composite = CompositeExecutor()
        composite.add_executor(Executor(start, on_exception=abort))
        composite.add_executor(Executor(self.before, on_exception=abort))

        target_and_after = CompositeExecutor(continue_on_exception=True)
        target_and_after.add_executor(Executor(self.target, on_exception=record))
        target_and_after.add_executor(Executor(self.after, on_exception=record))
        target_and_after.add_function(
            Task(
                func=lambda: self._finish(reporter),
                name=f"end {self.name}",
                replayable=False,
            )
        )
        composite.add_executor(target_and_after)

        return composite

    def _start(self, reporter: Reporter) -> None:
        self.state = "running"
        self._started_at = time.monotonic()
        reporter.on_example_start(self)

    def _finish(self, reporter: Reporter) -> None:
        self.state = "finished"
        if self._started_at is not None:
            self.duration = time.monotonic() - self._started_at
        self._notify(lambda: reporter.on_example_end(self))


class Spec(_Recorded):
    """A named group of examples sharing setup and teardown hooks.

    ``entries`` maps names to tasks in declaration order. The reserved names
    ``before``/``before each``, ``before all``, ``after``/``after each`` and
    ``after all`` become hooks; every other entry becomes an example.
    """

    _ids = itertools.count()

    def __init__(self, context: str, entries: Mapping[str, TaskLike]) -> None:
        super().__init__()
        self.id = next(Spec._ids)
        self.context = context

        self.before_each = self._hook(entries, BEFORE_EACH_KEYS, "before each")
        self.before_all = self._hook(entries, BEFORE_ALL_KEYS, "before all")
        self.after_each = self._hook(entries, AFTER_EACH_KEYS, "after each")
        self.after_all = self._hook(entries, AFTER_ALL_KEYS, "after all")

        self.examples = [
            Example(name, target, self.before_each, self.after_each)
            for name, target in entries.items()
            if name not in RESERVED_KEYS
        ]

    def __repr__(self) -> str:
        return f"Spec(id={self.id}, context={self.context!r}, state={self.state!r})"

    @staticmethod
    def _hook(
        entries: Mapping[str, TaskLike], keys: Sequence[str], name: str
    ) -> Task:
        # The last matching entry wins when aliases are both declared.
        hook: TaskLike = NOOP
        for key, task in entries.items():
            if key in keys:
                hook = task
        return Task.wrap(hook, name)

    def get_examples(self) -> Sequence[Example]:
        return self.examples

    def has_exception(self) -> bool:
        return (
            self.exception is not None
            or self.get_total_failures() > 0
            or self.get_total_errors() > 0
        )

    def get_total_failures(self) -> int:
        return sum(1 for example in self.examples if example.is_failure())

    def get_total_errors(self) -> int:
        return sum(1 for example in self.examples if example.is_error())

    def get_executor(self, reporter: Reporter) -> CompositeExecutor:
        """Build ``start -> before all -> [examples..., after all, end]``.

        A failing start notification or ``before all`` skips every example
        and ``after all``; the exception callback records the exception and
        reports the end of the spec. Once past setup, examples and
        ``after all`` all run regardless of failures.
        """

        def record(_executor: Executor, exception: ClassifiedException) -> None:
            self.record_exception(exception)

        def abort(_executor: Executor, exception: ClassifiedException) -> None:
            log.debug("Spec %r aborted, skipping its examples", self.context)
            self.record_exception(exception)
            self._finish(reporter)

        start = Task(
            func=lambda: self._start(reporter),
            name=f"start {self.context}",
            replayable=False,
        )
        composite = CompositeExecutor()
        composite.add_executor(Executor(start, on_exception=abort))
        composite.add_executor(Executor(self.before_all, on_exception=abort))

        examples_and_after = CompositeExecutor(continue_on_exception=True)
        for example in self.examples:
            examples_and_after.add_executor(example.get_executor(reporter))
        examples_and_after.add_executor(Executor(self.after_all, on_exception=record))
        examples_and_after.add_function(
            Task(
                func=lambda: self._finish(reporter),
                name=f"end {self.context}",
                replayable=False,
            )
        )
        composite.add_executor(examples_and_after)

        return composite

    def _start(self, reporter: Reporter) -> None:
        self.state = "running"
        reporter.on_spec_start(self)

    def _finish(self, reporter: Reporter) -> None:
        self.state = "finished"
        self._notify(lambda: reporter.on_spec_end(self))


class Runner:
    """Root of a run: every spec in order, each isolated from the others."""

    def __init__(
        self,
        specs: Sequence[Spec],
        reporter: Reporter | None = None,
        location_strategy: LocationStrategy | None = None,
    ) -> None:
        self.specs = list(specs)
        self.reporter = reporter or NullReporter()
        self.location_strategy = location_strategy or ExceptionCarriesLocation()

    def get_specs(self) -> Sequence[Spec]:
        return self.specs

    def has_exception(self) -> bool:
        return any(spec.has_exception() for spec in self.specs)

    def get_total_failures(self) -> int:
        return sum(spec.get_total_failures() for spec in self.specs)

    def get_total_errors(self) -> int:
        return sum(spec.get_total_errors() for spec in self.specs)

    def get_executor(self) -> CompositeExecutor:
        """Chain every spec with continue-on-exception, ending the run last."""
        executor = CompositeExecutor(
            on_success=lambda *_: self.reporter.on_runner_end(),
            continue_on_exception=True,
        )
        for spec in self.specs:
            executor.add_executor(spec.get_executor(self.reporter))
        return executor

    async def run(self) -> None:
        """Run every spec to completion and notify the reporter."""
        log.info("Running %d spec(s)", len(self.specs))
        context = ExecutionContext(location_strategy=self.location_strategy)

        self.reporter.on_runner_start()
        executor = self.get_executor()
        if not executor.queue:
            self.reporter.on_runner_end()
            return

        await executor.run(context)
        log.info(
            "Run finished: %d failure(s), %d error(s)",
            self.get_total_failures(),
            self.get_total_errors(),
        )
