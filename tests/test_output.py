"""Tests for the console reporter and results collector."""

import io
import json

import pytest
from rich.console import Console

from cukes.core.models import OutcomeStatus, Scenario, StepOutcome
from cukes.core.observer import CompositeObserver
from cukes.core.registry import StepRegistry
from cukes.core.suite import FeatureSuite
from cukes.output.console import ConsoleReporter
from cukes.output.results import ResultsCollector

from tests.conftest import RecordingObserver, make_feature, make_scenario, make_step


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=100, color_system=None)


def output_of(console):
    return console.file.getvalue()


def test_console_report(feature_dir, registry, console):
    """Test the rendered run of the calculator feature."""
    FeatureSuite(registry, ConsoleReporter(console, cwd=feature_dir.parent)).run(feature_dir)

    text = output_of(console)

    assert "[Cukes v" in text
    assert "Feature: Calculator" in text
    assert "Scenario: Adding" in text
    assert "✔ When I add 2" in text
    assert "✔ When I add 3" in text
    assert "✘ When it breaks" in text
    assert "- Then the total is 0" in text
    assert "🚨 Step failed:" in text
    assert "ValueError: boom" in text
    assert "features/calc.yaml:" in text
    assert "2 scenarios (1 failed)" in text
    assert "7 steps (1 failed, 1 skipped, 5 passed)" in text


def test_console_unimplemented_note(registry, console):
    """Test the note printed for undefined steps."""
    feature = make_feature("F", make_scenario("S", ("given", "nothing defined")))

    FeatureSuite(registry, ConsoleReporter(console)).run([feature])

    text = output_of(console)
    assert "Not yet implemented (skipped)" in text
    assert "1 scenarios (1 skipped)" in text
    assert "1 steps (1 skipped, 0 passed)" in text


def test_console_docstring(console):
    """Test that docstrings are printed under their step."""
    step = make_step("given", "a document", docstring="first line\nsecond line\n")
    reporter = ConsoleReporter(console)
    reporter.on_feature_enter(make_feature("F", Scenario(name="S", steps=(step,))))
    reporter.on_step_result(step, StepOutcome.passed())

    text = output_of(console)
    assert '"""' in text
    assert "first line" in text
    assert "second line" in text


def test_results_collector(feature_dir, registry, tmp_path):
    """Test collected results and the JSON file."""
    collector = ResultsCollector()
    FeatureSuite(registry, collector).run(feature_dir)

    data = collector.to_dict()

    assert data["started_at"] is not None
    assert data["summary"]["scenarios"] == {"total": 2, "failed": 1, "skipped": 0}
    assert data["summary"]["steps"]["passed"] == 5

    feature = data["features"][0]
    assert feature["name"] == "Calculator"
    assert [s["status"] for s in feature["scenarios"]] == ["passed", "failed"]

    breaking = feature["scenarios"][1]["steps"]
    assert [s["status"] for s in breaking] == ["passed", "failed", "skipped"]
    assert breaking[1]["step"] == "When it breaks"
    assert breaking[1]["message"] == "ValueError: boom"

    path = collector.save(tmp_path / "out" / "results.json")
    assert json.loads(path.read_text(encoding="utf-8")) == data


def test_results_collector_skipped_scenario(registry):
    """Test the skipped status for scenarios without failures."""
    collector = ResultsCollector()
    feature = make_feature("F", make_scenario("S", ("given", "nothing defined")))

    FeatureSuite(registry, collector).run([feature])

    scenario = collector.features[0].scenarios[0]
    assert scenario.status == "skipped"
    assert scenario.steps[0].outcome.status == OutcomeStatus.UNIMPLEMENTED


def test_composite_observer_forwards_in_order(registry):
    """Test that every observer sees the same events."""
    a, b = RecordingObserver(), RecordingObserver()
    feature = make_feature("F", make_scenario("S", ("given", "a calculator")))

    FeatureSuite(registry, CompositeObserver([a, b])).run([feature])

    assert a.events == b.events
    assert a.events[0] == ("start",)
    assert a.events[-1] == ("finish",)


def test_console_setup_failure_without_steps(console):
    """Test that a broken world is shown even when the scenario has no steps."""
    def broken_world():
        raise RuntimeError("no database")

    feature = make_feature("F", Scenario(name="Empty"))
    FeatureSuite(
        StepRegistry(), ConsoleReporter(console), world_factory=broken_world
    ).run([feature])

    text = output_of(console)
    assert "🚨 Step failed:" in text
    assert "RuntimeError: no database" in text
    assert "1 scenarios (1 failed)" in text


def test_console_returned_failure_without_origin(console):
    """Test the failure banner for an outcome built without an origin."""
    step = make_step("then", "the widgets are counted")
    reporter = ConsoleReporter(console)
    reporter.on_feature_enter(make_feature("F", Scenario(name="S", steps=(step,))))
    reporter.on_step_result(step, StepOutcome(OutcomeStatus.FAILED, "widget count was 2"))

    text = output_of(console)
    assert "Step failed: unknown" in text
    assert "None" not in text
