"""Reporter writing run progress to a standard logger."""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from spec_engine.reporters.base import Reporter
from spec_engine.reporters.config import LoggingReporterConfig

if TYPE_CHECKING:
    from spec_engine.suite import Example, Spec


@dataclass(kw_only=True)
class LoggingReporter(Reporter):
    """Logs every transition; exceptions are logged as warnings.

    Totals at the end of the run are computed from the specs seen so far,
    so they always reflect the latest recorded outcomes.
    """

    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("spec_engine.report")
    )
    level: int = logging.INFO
    _specs: list["Spec"] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def from_config(cls, config: LoggingReporterConfig) -> "LoggingReporter":
        return cls(
            logger=logging.getLogger(config.logger_name),
            level=logging.getLevelNamesMapping()[config.level],
        )

    def on_runner_start(self) -> None:
        self._specs.clear()
        self.logger.log(self.level, "Runner started")

    def on_runner_end(self) -> None:
        self.logger.log(
            self.level,
            "Runner finished: %d spec(s), %d failure(s), %d error(s)",
            len(self._specs),
            sum(spec.get_total_failures() for spec in self._specs),
            sum(spec.get_total_errors() for spec in self._specs),
        )

    def on_spec_start(self, spec: "Spec") -> None:
        self._specs.append(spec)
        self.logger.log(self.level, "Spec started: %s", spec.context)

    def on_spec_end(self, spec: "Spec") -> None:
        if spec.exception is not None:
            self.logger.warning(
                "Spec %s aborted: %s (%s)",
                spec.context,
                spec.exception.message,
                spec.exception.location or "unknown location",
            )
            return
        self.logger.log(
            self.level,
            "Spec finished: %s (%d failure(s), %d error(s))",
            spec.context,
            spec.get_total_failures(),
            spec.get_total_errors(),
        )

    def on_example_start(self, example: "Example") -> None:
        self.logger.debug("Example started: %s", example.name)

    def on_example_end(self, example: "Example") -> None:
        if example.exception is None:
            self.logger.log(
                self.level, "  ok %s (%.3fs)", example.name, example.duration
            )
            return
        self.logger.warning(
            "  %s %s: %s at %s",
            example.exception.type,
            example.name,
            example.exception.message,
            example.exception.location or "unknown location",
        )
