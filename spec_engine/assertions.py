"""Interface between matchers and the exception classifier."""

from typing import NoReturn

from spec_engine.context import current_context


class AssertionFailure(Exception):
    """Raised by a matcher when an expectation does not hold."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def report_mismatch(message: str) -> NoReturn:
    """Flag an assertion failure on the active context and raise it.

    On a replayed execution the failure from the first pass is already
    pending and is kept as is.
    """
    failure = AssertionFailure(message)
    context = current_context()
    if context is not None and context.pending_failure is None:
        context.pending_failure = failure
    raise failure
