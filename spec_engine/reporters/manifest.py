"""Reporter manifest definition for the plugin system."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from spec_engine.reporters.base import Reporter

ConfigT = TypeVar("ConfigT", bound=BaseModel)


@dataclass(frozen=True, kw_only=True)
class ReporterManifest(Generic[ConfigT]):
    """Manifest describing a reporter plugin.

    Holds the configuration class and the factory building the reporter from
    a validated configuration, so reporters can be selected by key.
    """

    config_cls: type[ConfigT]
    reporter_factory: Callable[[ConfigT], Reporter]

    def build(self, raw_config: dict[str, object]) -> Reporter:
        """Validate ``raw_config`` and build the reporter."""
        return self.reporter_factory(self.config_cls(**raw_config))
