"""Manifests of the built-in reporters, registered as entry points."""

from spec_engine.reporters.base import NullReporter
from spec_engine.reporters.config import LoggingReporterConfig, NullReporterConfig
from spec_engine.reporters.log_reporter import LoggingReporter
from spec_engine.reporters.manifest import ReporterManifest

null_manifest = ReporterManifest(
    config_cls=NullReporterConfig,
    reporter_factory=NullReporter.from_config,
)

logging_manifest = ReporterManifest(
    config_cls=LoggingReporterConfig,
    reporter_factory=LoggingReporter.from_config,
)
