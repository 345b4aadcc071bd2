"""Tests for running whole feature collections."""

import sys
import io

import pytest

from cukes.core.errors import ConfigurationError
from cukes.core.models import SuiteTally
from cukes.core.suite import FeatureSuite

from tests.conftest import make_feature, make_scenario


def test_event_interleaving(registry, observer):
    """Test the full lifecycle event order for two features."""
    first = make_feature(
        "First",
        make_scenario("Adds", ("when", "I add 1"), ("then", "the total is 1")),
        background=[("given", "a calculator")],
    )
    second = make_feature(
        "Second",
        make_scenario("Undefined", ("given", "something odd"), ("then", "the total is 1")),
    )

    FeatureSuite(registry, observer).run([first, second])

    assert observer.events == [
        ("start",),
        ("feature_enter", "First"),
        ("scenario_enter", "Adds"),
        ("step_enter", "a calculator"),
        ("step_result", "a calculator", "passed"),
        ("step_enter", "I add 1"),
        ("step_result", "I add 1", "passed"),
        ("step_enter", "the total is 1"),
        ("step_result", "the total is 1", "passed"),
        ("scenario_exit", "Adds"),
        ("feature_exit", "First"),
        ("feature_enter", "Second"),
        ("scenario_enter", "Undefined"),
        ("step_enter", "something odd"),
        ("step_result", "something odd", "unimplemented"),
        ("scenario_skipped", "Undefined"),
        ("step_enter", "the total is 1"),
        ("step_result", "the total is 1", "skipped"),
        ("scenario_exit", "Undefined"),
        ("feature_exit", "Second"),
        ("finish",),
    ]


def test_tally_counts_each_scenario_once(registry):
    """Test scenario and step counters."""
    feature = make_feature(
        "Calc",
        make_scenario("Passes", ("when", "I add 2"), ("then", "the total is 2")),
        make_scenario("Fails", ("when", "it breaks"), ("then", "the total is 0"), ("then", "the total is 0")),
        make_scenario("Undefined", ("when", "I divide"), ("then", "the total is 0")),
        make_scenario("Wrong", ("when", "I add 1"), ("then", "the total is 5")),
        background=[("given", "a calculator")],
    )

    tally = FeatureSuite(registry).run([feature])

    assert tally.scenarios == 4
    assert tally.scenarios_failed == 2
    assert tally.scenarios_skipped == 1
    assert tally.steps == 13
    assert tally.steps_failed == 2
    assert tally.steps_skipped == 4
    assert tally.steps_passed == tally.steps - tally.steps_skipped - tally.steps_failed
    assert tally.steps_passed == 7
    assert not tally.ok


def test_empty_suite(observer, registry):
    """Test that a run without features still starts and finishes."""
    tally = FeatureSuite(registry, observer).run([])

    assert tally == SuiteTally()
    assert tally.steps_passed == 0
    assert observer.events == [("start",), ("finish",)]


def test_feature_without_scenarios(observer, registry):
    """Test a feature with no scenarios."""
    FeatureSuite(registry, observer).run([make_feature("Empty")])

    assert observer.events == [
        ("start",),
        ("feature_enter", "Empty"),
        ("feature_exit", "Empty"),
        ("finish",),
    ]


def test_missing_feature_directory_fails_before_events(tmp_path, observer, registry):
    """Test that an unavailable source is a configuration error, not an outcome."""
    with pytest.raises(ConfigurationError):
        FeatureSuite(registry, observer).run(tmp_path / "does-not-exist")

    assert observer.events == []


def test_runs_feature_directory(feature_dir, registry, observer):
    """Test loading features from YAML documents."""
    tally = FeatureSuite(registry, observer).run(feature_dir)

    assert tally.scenarios == 2
    assert tally.scenarios_failed == 1
    assert tally.steps == 7
    assert tally.steps_passed == 5
    assert observer.of("feature_enter") == [("feature_enter", "Calculator")]


def test_before_hook_runs_first(registry, observer):
    """Test that the before callable runs ahead of the start event."""
    def before():
        observer.events.append(("before",))

    FeatureSuite(registry, observer).run([], before=before)

    assert observer.events == [("before",), ("start",), ("finish",)]


def test_corrupted_capture_counts_as_failure(registry):
    """Test tallying of corrupted outcomes."""
    stdout = sys.stdout

    @registry.when("the output is hijacked")
    def hijack(world, captures, step):
        sys.stdout = io.StringIO()

    feature = make_feature(
        "Hijack",
        make_scenario("Hijacks", ("when", "the output is hijacked"), ("then", "the total is 0")),
        make_scenario("After", ("given", "a calculator")),
    )

    tally = FeatureSuite(registry).run([feature])

    assert sys.stdout is stdout
    assert tally.scenarios_failed == 2
    assert tally.steps_failed == 2
    assert tally.steps_skipped == 1
