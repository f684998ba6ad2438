"""Strategies for recovering where a task raised."""

import traceback
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from spec_engine.models.outcome import SourceLocation

_ENGINE_ROOT = Path(__file__).resolve().parent


def traceback_location(exception: BaseException) -> SourceLocation | None:
    """Return the innermost frame of the traceback outside the engine itself.

    Frames inside the package (matchers raising on behalf of the caller) are
    skipped so the location points at the suite author's code. Falls back to
    the innermost frame when every frame belongs to the engine.
    """
    frames = traceback.extract_tb(exception.__traceback__)
    if not frames:
        return None

    frame = frames[-1]
    for candidate in reversed(frames):
        if not Path(candidate.filename).resolve().is_relative_to(_ENGINE_ROOT):
            frame = candidate
            break

    return SourceLocation(file_name=frame.filename, line_number=frame.lineno or 0)


@dataclass(frozen=True)
class LocationStrategy(ABC):
    """Host capability describing how exception locations are obtained."""

    replays_failures: ClassVar[bool] = False

    @abstractmethod
    def locate(self, exception: BaseException) -> SourceLocation | None:
        """Location available when the exception is first caught."""

    def locate_replayed(self, exception: BaseException) -> SourceLocation | None:
        """Location reported by the second, replayed execution."""
        return traceback_location(exception)


@dataclass(frozen=True)
class ExceptionCarriesLocation(LocationStrategy):
    """Caught exceptions carry a full traceback; classify on first throw."""

    def locate(self, exception: BaseException) -> SourceLocation | None:
        return traceback_location(exception)


@dataclass(frozen=True)
class RecoverLocationByReplay(LocationStrategy):
    """Recover assertion failure locations by executing the task twice.

    For hosts where a caught exception carries no location. The first pass
    keeps only the matcher's message; the task is then executed again and
    the second throw supplies the location. Tasks must be idempotent up to
    the failing assertion (see :attr:`spec_engine.task.Task.replayable`).
    """

    replays_failures: ClassVar[bool] = True

    def locate(self, exception: BaseException) -> SourceLocation | None:
        return None
