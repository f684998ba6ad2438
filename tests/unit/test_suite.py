"""Tests for the runner, spec and example hierarchy."""

from collections.abc import Callable

import pytest

from spec_engine.models.outcome import Outcome
from spec_engine.suite import Example, Runner, Spec
from spec_engine.task import NOOP, Task
from spec_engine.testing.matchers import expect
from spec_engine.testing.reporters import RecordingReporter


def raiser(message: str) -> Callable[[], None]:
    def body() -> None:
        raise RuntimeError(message)

    return body


@pytest.fixture
def reporter() -> RecordingReporter:
    """Create a reporter recording every transition."""
    return RecordingReporter()


class TestSpecDefinition:
    """Tests for building specs from entry mappings."""

    def test_reserved_entries_become_hooks(self) -> None:
        """Reserved names are hooks, everything else is an example."""
        before_all = Task(func=lambda: None, name="setup")
        spec = Spec(
            "stack",
            {
                "before all": before_all,
                "before": lambda: None,
                "pushes": lambda: None,
                "after each": lambda: None,
                "pops": lambda: None,
                "after all": lambda: None,
            },
        )

        assert [example.name for example in spec.get_examples()] == [
            "pushes",
            "pops",
        ]
        assert spec.before_all is before_all
        assert spec.before_each.name == "before each"
        assert spec.after_each.name == "after each"
        assert spec.after_all.name == "after all"

    def test_hooks_default_to_no_ops(self) -> None:
        """Undeclared hooks do nothing."""
        spec = Spec("empty", {})

        assert spec.before_all is NOOP
        assert spec.before_each is NOOP
        assert spec.after_each is NOOP
        assert spec.after_all is NOOP
        assert spec.examples == []

    def test_examples_inherit_each_hooks(self) -> None:
        """Every example carries the spec's before and after each hooks."""
        spec = Spec(
            "hooks",
            {"before each": lambda: None, "one": lambda: None, "two": lambda: None},
        )

        assert all(example.before is spec.before_each for example in spec.examples)
        assert all(example.after is spec.after_each for example in spec.examples)

    def test_later_alias_wins(self) -> None:
        """When both aliases are declared the later entry is used."""
        first = Task(func=lambda: None, name="first")
        second = Task(func=lambda: None, name="second")

        spec = Spec("aliases", {"after each": first, "after": second})

        assert spec.after_each is second

    def test_ids_increase_monotonically(self) -> None:
        """Specs and examples get increasing ids."""
        first = Spec("first", {"a": lambda: None, "b": lambda: None})
        second = Spec("second", {"c": lambda: None})

        assert second.id > first.id
        assert first.examples[0].id < first.examples[1].id < second.examples[0].id

    def test_examples_start_waiting(self) -> None:
        """Nothing is recorded before the run."""
        example = Example("idle", lambda: None)

        assert example.state == "waiting"
        assert example.outcome is None
        assert example.exception is None


class TestScenarios:
    """End-to-end runs through the runner."""

    async def test_passing_example(self, reporter: RecordingReporter) -> None:
        """A body that never raises is a success."""
        spec = Spec("math", {"adds": lambda: expect(1 + 2).to_be(3)})
        runner = Runner([spec], reporter=reporter)

        await runner.run()

        assert runner.get_total_failures() == 0
        assert runner.get_total_errors() == 0
        assert runner.has_exception() is False
        assert spec.examples[0].outcome == Outcome(status="success")
        assert reporter.events == [
            ("runner_start", None),
            ("spec_start", "math"),
            ("example_start", "adds"),
            ("example_end", "adds"),
            ("spec_end", "math"),
            ("runner_end", None),
        ]

    async def test_before_all_error_skips_examples(
        self, reporter: RecordingReporter
    ) -> None:
        """A failing before all skips examples and still ends the spec once."""
        calls: list[str] = []
        spec = Spec(
            "broken setup",
            {
                "before all": raiser("no database"),
                "first": lambda: calls.append("first"),
                "second": lambda: calls.append("second"),
                "after all": lambda: calls.append("after all"),
            },
        )

        await Runner([spec], reporter=reporter).run()

        assert calls == []
        assert reporter.subjects("example_start") == []
        assert reporter.subjects("spec_end") == ["broken setup"]
        assert spec.exception is not None
        assert spec.exception.type == "error"
        assert spec.exception.message == "RuntimeError: no database"
        assert spec.outcome is not None
        assert spec.outcome.status == "error"
        assert [example.state for example in spec.examples] == ["waiting", "waiting"]
        assert all(example.outcome is None for example in spec.examples)
        assert reporter.events[-1] == ("runner_end", None)

    async def test_assertion_mismatch(self, reporter: RecordingReporter) -> None:
        """A matcher mismatch is a failure carrying both values."""
        spec = Spec("math", {"adds wrong": lambda: expect(4).to_be(3)})
        runner = Runner([spec], reporter=reporter)

        await runner.run()

        example = spec.examples[0]
        assert example.outcome is not None
        assert example.outcome.status == "failure"
        assert example.outcome.message is not None
        assert "3" in example.outcome.message
        assert "4" in example.outcome.message
        assert runner.get_total_failures() == 1
        assert runner.get_total_errors() == 0

    async def test_after_hook_exception_is_recorded(self) -> None:
        """When the body passes but after fails, after's exception is recorded."""
        spec = Spec(
            "teardown",
            {"after": raiser("cleanup failed"), "works": lambda: None},
        )

        await Runner([spec]).run()

        example = spec.examples[0]
        assert example.exception is not None
        assert example.exception.message == "RuntimeError: cleanup failed"
        assert example.is_error()

    async def test_later_exception_wins_and_earlier_is_kept(self) -> None:
        """Body and after both fail: after's exception wins, body's is kept aside."""
        spec = Spec(
            "both fail",
            {"after": raiser("cleanup failed"), "breaks": lambda: expect(1).to_be(2)},
        )

        await Runner([spec]).run()

        example = spec.examples[0]
        assert example.exception is not None
        assert example.exception.type == "error"
        assert [e.message for e in example.superseded_exceptions] == [
            "expected 2, actual 1"
        ]
        assert spec.get_total_failures() == 0
        assert spec.get_total_errors() == 1


class TestExampleLifecycle:
    """Tests for hooks around a single example."""

    async def test_before_each_failure_skips_body_and_after(
        self, reporter: RecordingReporter
    ) -> None:
        """A failing before skips target and after but still ends the example."""
        calls: list[str] = []
        spec = Spec(
            "fixtures",
            {
                "before": raiser("fixture missing"),
                "after": lambda: calls.append("after"),
                "first": lambda: calls.append("first"),
                "second": lambda: calls.append("second"),
            },
        )

        await Runner([spec], reporter=reporter).run()

        assert calls == []
        assert reporter.subjects("example_start") == ["first", "second"]
        assert reporter.subjects("example_end") == ["first", "second"]
        assert spec.get_total_errors() == 2
        assert all(example.state == "finished" for example in spec.examples)

    async def test_hooks_run_in_fixture_order(self) -> None:
        """Hooks wrap every example in declaration order."""
        calls: list[str] = []

        def record(name: str) -> Callable[[], None]:
            return lambda: calls.append(name)

        spec = Spec(
            "order",
            {
                "before all": record("before all"),
                "before each": record("before"),
                "after each": record("after"),
                "after all": record("after all"),
                "one": record("one"),
                "two": record("two"),
            },
        )

        await Runner([spec]).run()

        assert calls == [
            "before all",
            "before",
            "one",
            "after",
            "before",
            "two",
            "after",
            "after all",
        ]

    async def test_duration_is_measured(self) -> None:
        """Finished examples carry a non-negative duration."""
        spec = Spec("timing", {"quick": lambda: None})

        await Runner([spec]).run()

        assert spec.examples[0].duration >= 0.0
        assert spec.examples[0].state == "finished"


class TestRunner:
    """Tests for runner-level behaviour."""

    async def test_spec_setup_failure_does_not_block_other_specs(
        self, reporter: RecordingReporter
    ) -> None:
        """Later specs still run after an earlier spec aborted."""
        broken = Spec("broken", {"before all": raiser("down"), "a": lambda: None})
        healthy = Spec("healthy", {"b": lambda: None})
        runner = Runner([broken, healthy], reporter=reporter)

        await runner.run()

        assert reporter.subjects("spec_start") == ["broken", "healthy"]
        assert reporter.subjects("spec_end") == ["broken", "healthy"]
        assert reporter.subjects("example_start") == ["b"]
        assert healthy.examples[0].outcome == Outcome(status="success")
        assert runner.has_exception() is True
        assert runner.get_total_errors() == 0

    async def test_hooks_run_once_without_examples(self) -> None:
        """before all and after all run once even for a spec with no examples."""
        calls: list[str] = []
        spec = Spec(
            "empty",
            {
                "before all": lambda: calls.append("before all"),
                "after all": lambda: calls.append("after all"),
            },
        )

        await Runner([spec]).run()

        assert calls == ["before all", "after all"]
        assert spec.state == "finished"

    async def test_after_all_failure_is_recorded_on_spec(
        self, reporter: RecordingReporter
    ) -> None:
        """A failing after all is recorded after every example ran."""
        spec = Spec(
            "teardown",
            {"a": lambda: None, "b": lambda: None, "after all": raiser("leak")},
        )

        await Runner([spec], reporter=reporter).run()

        assert reporter.subjects("example_end") == ["a", "b"]
        assert reporter.subjects("spec_end") == ["teardown"]
        assert spec.exception is not None
        assert spec.exception.message == "RuntimeError: leak"
        assert spec.has_exception() is True

    async def test_empty_runner_reports_start_and_end(
        self, reporter: RecordingReporter
    ) -> None:
        """A runner without specs still starts and ends."""
        await Runner([], reporter=reporter).run()

        assert reporter.events == [("runner_start", None), ("runner_end", None)]

    async def test_counts_follow_latest_recorded_state(self) -> None:
        """Totals are recomputed from examples on every query."""
        spec = Spec(
            "mixed",
            {
                "passes": lambda: None,
                "fails": lambda: expect(True).to_be(False),
                "errors": raiser("boom"),
            },
        )
        runner = Runner([spec])

        assert runner.get_total_failures() == 0

        await runner.run()

        assert runner.get_total_failures() == 1
        assert runner.get_total_errors() == 1
        assert runner.get_specs() == [spec]

    async def test_example_starts_match_example_count(
        self, reporter: RecordingReporter
    ) -> None:
        """One example start per example, except in specs whose setup aborted."""
        specs = [
            Spec("a", {"1": lambda: None, "2": raiser("x")}),
            Spec("b", {"before all": raiser("y"), "3": lambda: None}),
            Spec("c", {"4": lambda: expect(0).to_be(1)}),
        ]

        await Runner(specs, reporter=reporter).run()

        assert reporter.subjects("example_start") == ["1", "2", "4"]


class TestReporterFailures:
    """Exceptions raised by reporter hooks are recorded on their owner."""

    async def test_spec_start_failure_finishes_the_spec(self) -> None:
        """The spec records the error, skips its examples and still ends."""

        class BrokenReporter(RecordingReporter):
            def on_spec_start(self, spec: Spec) -> None:
                if spec.context == "first":
                    raise RuntimeError("display gone")
                super().on_spec_start(spec)

        reporter = BrokenReporter()
        first = Spec("first", {"a": lambda: None})
        second = Spec("second", {"b": lambda: None})
        runner = Runner([first, second], reporter=reporter)

        await runner.run()

        assert reporter.subjects("spec_start") == ["second"]
        assert reporter.subjects("spec_end") == ["first", "second"]
        assert first.state == "finished"
        assert first.exception is not None
        assert first.exception.type == "error"
        assert first.exception.message == "RuntimeError: display gone"
        assert first.examples[0].outcome is None
        assert second.examples[0].outcome == Outcome(status="success")
        assert runner.has_exception() is True

    async def test_example_start_failure_is_an_example_error(self) -> None:
        """The example ends as an error without running its body."""
        calls: list[str] = []

        class BrokenReporter(RecordingReporter):
            def on_example_start(self, example: Example) -> None:
                if example.name == "first":
                    raise RuntimeError("display gone")
                super().on_example_start(example)

        reporter = BrokenReporter()
        spec = Spec(
            "display",
            {
                "before": lambda: calls.append("before"),
                "first": lambda: calls.append("first"),
                "second": lambda: calls.append("second"),
            },
        )
        runner = Runner([spec], reporter=reporter)

        await runner.run()

        first, second = spec.examples
        assert calls == ["before", "second"]
        assert first.state == "finished"
        assert first.is_error()
        assert first.exception is not None
        assert first.exception.message == "RuntimeError: display gone"
        assert second.outcome == Outcome(status="success")
        assert reporter.subjects("example_end") == ["first", "second"]
        assert runner.get_total_errors() == 1
        assert runner.has_exception() is True

    async def test_example_end_failure_after_before_failure(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """An end hook raising on the abort path never stops the run."""

        class BrokenReporter(RecordingReporter):
            def on_example_end(self, example: Example) -> None:
                raise RuntimeError("display gone")

        reporter = BrokenReporter()
        broken = Spec(
            "broken", {"before": raiser("fixture missing"), "a": lambda: None}
        )
        healthy = Spec("healthy", {"b": lambda: None})
        runner = Runner([broken, healthy], reporter=reporter)

        await runner.run()

        example = broken.examples[0]
        assert example.state == "finished"
        assert example.exception is not None
        assert example.exception.message == "RuntimeError: display gone"
        assert [e.message for e in example.superseded_exceptions] == [
            "RuntimeError: fixture missing"
        ]
        assert reporter.subjects("spec_end") == ["broken", "healthy"]
        assert reporter.events[-1] == ("runner_end", None)
        assert healthy.examples[0].is_error()
        assert "Reporter hook failed" in caplog.text

    async def test_spec_end_failure_after_before_all_failure(self) -> None:
        """Later specs still run when the end hook of an aborted spec raises."""

        class BrokenReporter(RecordingReporter):
            def on_spec_end(self, spec: Spec) -> None:
                if spec.context == "broken":
                    raise RuntimeError("display gone")
                super().on_spec_end(spec)

        reporter = BrokenReporter()
        broken = Spec("broken", {"before all": raiser("down"), "a": lambda: None})
        healthy = Spec("healthy", {"b": lambda: None})

        await Runner([broken, healthy], reporter=reporter).run()

        assert broken.exception is not None
        assert broken.exception.message == "RuntimeError: display gone"
        assert [e.message for e in broken.superseded_exceptions] == [
            "RuntimeError: down"
        ]
        assert reporter.subjects("spec_end") == ["healthy"]
        assert healthy.examples[0].outcome == Outcome(status="success")
        assert reporter.events[-1] == ("runner_end", None)
