"""Reporting collaborators notified of runner, spec and example transitions."""

from spec_engine.reporters.base import CompositeReporter, NullReporter, Reporter
from spec_engine.reporters.log_reporter import LoggingReporter

__all__ = ["CompositeReporter", "LoggingReporter", "NullReporter", "Reporter"]
