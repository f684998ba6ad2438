"""Models for classified exceptions and task outcomes."""

from dataclasses import dataclass
from typing import Literal

ExceptionType = Literal["failure", "error"]
OutcomeStatus = Literal["success", "failure", "error"]


@dataclass(frozen=True, kw_only=True)
class SourceLocation:
    """Where an exception was raised."""

    file_name: str
    line_number: int

    def __str__(self) -> str:
        return f"{self.file_name}, line {self.line_number}"


@dataclass(frozen=True, kw_only=True)
class ClassifiedException:
    """An exception raised by a task, classified as failure or error.

    A failure means an expectation was not met and the message is the
    matcher's explanation. An error is any other exception.
    """

    type: ExceptionType
    message: str
    location: SourceLocation | None = None

    @property
    def is_failure(self) -> bool:
        return self.type == "failure"

    @property
    def is_error(self) -> bool:
        return self.type == "error"


@dataclass(frozen=True, kw_only=True)
class Outcome:
    """Final result of a unit of work."""

    status: OutcomeStatus
    message: str | None = None
    location: SourceLocation | None = None

    @classmethod
    def from_exception(cls, exception: ClassifiedException | None) -> "Outcome":
        """Build the outcome for a recorded exception, or success when None."""
        if exception is None:
            return cls(status="success")
        return cls(
            status=exception.type,
            message=exception.message,
            location=exception.location,
        )
