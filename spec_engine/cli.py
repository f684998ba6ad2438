"""CLI entry point for running spec suites."""

import argparse
import asyncio
import importlib
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from spec_engine.models.config import EngineConfig
from spec_engine.models.result import ExampleResult
from spec_engine.reporters.loading import load_reporter_manifest
from spec_engine.suite import Runner, Spec

STATUS_SYMBOLS = {
    "success": "✓",
    "failure": "✗",
    "error": "!",
    "skipped": "-",
}


class SuiteLoadError(Exception):
    """Raised when a suite reference cannot be resolved to specs."""


def load_suite(reference: str) -> Sequence[Spec]:
    """Resolve a ``module:attribute`` reference to a list of specs.

    The attribute may be a Spec, a sequence of Specs, or a zero-argument
    callable returning either.
    """
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise SuiteLoadError(
            f"Suite reference '{reference}' must look like 'module:attribute'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise SuiteLoadError(
            f"Cannot import suite module '{module_name}': {e}"
        ) from e

    try:
        suite = getattr(module, attribute)
    except AttributeError as e:
        raise SuiteLoadError(
            f"Module '{module_name}' has no attribute '{attribute}'"
        ) from e

    if callable(suite):
        suite = suite()

    if isinstance(suite, Spec):
        return [suite]
    if isinstance(suite, Sequence) and all(isinstance(s, Spec) for s in suite):
        return list(suite)

    raise SuiteLoadError(
        f"Suite '{reference}' is a {type(suite).__name__}, expected Spec objects"
    )


def collect_results(runner: Runner) -> Sequence[ExampleResult]:
    """Flatten the runner's specs and examples into one result per example."""
    results: list[ExampleResult] = []
    for spec in runner.get_specs():
        for example in spec.get_examples():
            outcome = example.outcome
            results.append(
                ExampleResult(
                    spec=spec.context,
                    example=example.name,
                    status=outcome.status if outcome is not None else "skipped",
                    duration=example.duration,
                    message=outcome.message if outcome is not None else None,
                    location=(
                        str(outcome.location)
                        if outcome is not None and outcome.location is not None
                        else None
                    ),
                )
            )
    return results


def log_results_summary(log: logging.Logger, results: Sequence[ExampleResult]) -> None:
    """Log a formatted summary of example results."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for result in results:
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        log.info(
            "%s %s > %s: %s (%.2fs)",
            symbol,
            result.spec,
            result.example,
            result.status,
            result.duration,
        )
        if result.message:
            log.info("  Message: %s", result.message)
        if result.location:
            log.info("  At: %s", result.location)


def format_output(
    runner: Runner, results: Sequence[ExampleResult]
) -> dict[str, Any]:
    """Format example results and spec-level exceptions for JSON output."""
    all_results = [
        {
            "spec": result.spec,
            "example": result.example,
            "status": result.status,
            "duration": result.duration,
            "message": result.message,
            "location": result.location,
        }
        for result in results
    ]

    spec_errors = [
        {
            "spec": spec.context,
            "type": spec.exception.type,
            "message": spec.exception.message,
            "location": (
                str(spec.exception.location) if spec.exception.location else None
            ),
        }
        for spec in runner.get_specs()
        if spec.exception is not None
    ]

    return {
        "total": len(all_results),
        "passed": sum(1 for r in all_results if r["status"] == "success"),
        "failed": runner.get_total_failures(),
        "errors": runner.get_total_errors(),
        "skipped": sum(1 for r in all_results if r["status"] == "skipped"),
        "results": all_results,
        "spec_errors": spec_errors,
    }


async def run(suite_references: Sequence[str], config: EngineConfig) -> int:
    """Run the referenced suites and return exit code."""
    log = logging.getLogger("spec_engine")

    specs = [spec for reference in suite_references for spec in load_suite(reference)]
    log.info("Loaded %d spec(s) from %d suite(s)", len(specs), len(suite_references))

    log.info("Loading reporter: %s", config.reporter)
    manifest = load_reporter_manifest(config.reporter)
    reporter = manifest.build(config.reporter_config)

    runner = Runner(
        specs,
        reporter=reporter,
        location_strategy=config.build_location_strategy(),
    )
    await runner.run()

    results = collect_results(runner)
    log_results_summary(log, results)

    output = format_output(runner, results)
    print(json.dumps(output, indent=2))

    return 1 if runner.has_exception() else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Run nested spec suites")
    parser.add_argument(
        "--suite",
        action="append",
        required=True,
        help="Suite reference as module:attribute (repeatable)",
    )
    parser.add_argument(
        "--config",
        default="{}",
        help="JSON engine configuration",
    )
    parser.add_argument(
        "--reporter",
        default=None,
        help="Reporter key overriding the configured one (logging, null)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for progress output on stderr",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = EngineConfig.model_validate_json(args.config)
    if args.reporter:
        config = config.model_copy(update={"reporter": args.reporter})

    exit_code = asyncio.run(run(suite_references=args.suite, config=config))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
