"""Hierarchical asynchronous execution engine for nested test suites."""

from spec_engine.assertions import AssertionFailure, report_mismatch
from spec_engine.context import ExecutionContext, current_context
from spec_engine.executor import CompositeExecutor, Executor
from spec_engine.locations import ExceptionCarriesLocation, RecoverLocationByReplay
from spec_engine.models.outcome import ClassifiedException, Outcome, SourceLocation
from spec_engine.suite import Example, Runner, Spec
from spec_engine.task import Task

__all__ = [
    "AssertionFailure",
    "ClassifiedException",
    "CompositeExecutor",
    "Example",
    "ExceptionCarriesLocation",
    "ExecutionContext",
    "Executor",
    "Outcome",
    "RecoverLocationByReplay",
    "Runner",
    "SourceLocation",
    "Spec",
    "Task",
    "current_context",
    "report_mismatch",
]
