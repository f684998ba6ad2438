"""Base class for reporting collaborators."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from spec_engine.reporters.config import NullReporterConfig

if TYPE_CHECKING:
    from spec_engine.suite import Example, Spec


class Reporter:
    """Observer of a run. Every hook defaults to doing nothing.

    Hooks are called synchronously at each transition and their return
    values are ignored.
    """

    def on_runner_start(self) -> None:
        """Called once before the first spec starts."""

    def on_runner_end(self) -> None:
        """Called once after every spec has finished or aborted."""

    def on_spec_start(self, spec: "Spec") -> None:
        """Called before the spec's ``before all`` hook."""

    def on_spec_end(self, spec: "Spec") -> None:
        """Called when the spec finished, including after a failed setup."""

    def on_example_start(self, example: "Example") -> None:
        """Called before the example's ``before`` hook."""

    def on_example_end(self, example: "Example") -> None:
        """Called when the example finished, including after a failed setup."""


class NullReporter(Reporter):
    """Reporter that ignores every transition."""

    @classmethod
    def from_config(cls, config: NullReporterConfig) -> "NullReporter":
        return cls()


@dataclass(frozen=True, kw_only=True)
class CompositeReporter(Reporter):
    """Forwards every hook to several reporters in order."""

    reporters: Sequence[Reporter] = field(default_factory=tuple)

    def on_runner_start(self) -> None:
        for reporter in self.reporters:
            reporter.on_runner_start()

    def on_runner_end(self) -> None:
        for reporter in self.reporters:
            reporter.on_runner_end()

    def on_spec_start(self, spec: "Spec") -> None:
        for reporter in self.reporters:
            reporter.on_spec_start(spec)

    def on_spec_end(self, spec: "Spec") -> None:
        for reporter in self.reporters:
            reporter.on_spec_end(spec)

    def on_example_start(self, example: "Example") -> None:
        for reporter in self.reporters:
            reporter.on_example_start(example)

    def on_example_end(self, example: "Example") -> None:
        for reporter in self.reporters:
            reporter.on_example_end(example)
