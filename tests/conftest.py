"""Pytest configuration and fixtures."""

import pytest

from cukes.core.models import Background, Feature, Position, Scenario, Step, StepKind
from cukes.core.observer import Observer
from cukes.core.registry import StepRegistry


class RecordingObserver(Observer):
    """Records every lifecycle event as a tuple."""

    def __init__(self):
        self.events = []

    def on_start(self):
        self.events.append(("start",))

    def on_feature_enter(self, feature):
        self.events.append(("feature_enter", feature.name))

    def on_scenario_enter(self, scenario):
        self.events.append(("scenario_enter", scenario.name))

    def on_step_enter(self, step):
        self.events.append(("step_enter", step.text))

    def on_step_result(self, step, outcome):
        self.events.append(("step_result", step.text, outcome.status.value))

    def on_scenario_setup_failed(self, scenario, outcome):
        self.events.append(("scenario_setup_failed", scenario.name))

    def on_scenario_skipped(self, scenario):
        self.events.append(("scenario_skipped", scenario.name))

    def on_scenario_exit(self, scenario):
        self.events.append(("scenario_exit", scenario.name))

    def on_feature_exit(self, feature):
        self.events.append(("feature_exit", feature.name))

    def on_finish(self, tally):
        self.events.append(("finish",))

    def of(self, name):
        return [e for e in self.events if e[0] == name]


def make_step(kind, text, line=0, docstring=None):
    return Step(kind=StepKind(kind), text=text, docstring=docstring, position=Position(line, 5))


def make_scenario(name, *steps):
    return Scenario(name=name, steps=tuple(make_step(k, t) for k, t in steps))


def make_feature(name, *scenarios, background=None):
    bg = None
    if background:
        bg = Background(steps=tuple(make_step(k, t) for k, t in background))
    return Feature(name=name, scenarios=tuple(scenarios), background=bg)


@pytest.fixture
def observer():
    """Observer that records events."""
    return RecordingObserver()


@pytest.fixture
def registry():
    """Registry with a few calculator-style steps."""
    steps = StepRegistry()

    @steps.given("a calculator")
    def a_calculator(world, captures, step):
        world.total = 0

    @steps.when(r"^I add (\d+)$", regex=True)
    def add(world, captures, step):
        world.total += int(captures[1])

    @steps.then(r"^the total is (\d+)$", regex=True)
    def total_is(world, captures, step):
        assert world.total == int(captures[1])

    @steps.when("it breaks")
    def it_breaks(world, captures, step):
        raise ValueError("boom")

    return steps


@pytest.fixture
def feature_dir(tmp_path):
    """Directory holding one YAML feature document."""
    features = tmp_path / "features"
    features.mkdir()
    (features / "calc.yaml").write_text(
        "feature: Calculator\n"
        "background:\n"
        "  - given: a calculator\n"
        "scenarios:\n"
        "  - name: Adding\n"
        "    steps:\n"
        "      - when: I add 2\n"
        "      - and: I add 3\n"
        "      - then: the total is 5\n"
        "  - name: Breaking\n"
        "    steps:\n"
        "      - when: it breaks\n"
        "      - then: the total is 0\n",
        encoding="utf-8",
    )
    return features
