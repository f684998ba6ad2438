"""Configuration for the built-in reporters."""

from typing import Literal

from spec_engine.models.base import Model


class NullReporterConfig(Model):
    """The null reporter takes no settings."""


class LoggingReporterConfig(Model):
    """Configuration for the logging reporter."""

    logger_name: str = "spec_engine.report"
    level: Literal["DEBUG", "INFO", "WARNING"] = "INFO"
