"""Lifecycle event contract for a run.

Events arrive in this order: start; per feature: feature enter, then per
scenario: scenario enter, step enter/step result pairs, at most one
scenario skipped (right after the result that started skipping), scenario
exit; feature exit; finish. When the world cannot be built, scenario setup
failed follows scenario enter, ahead of any step events.
"""

from __future__ import annotations

from typing import Iterable

from cukes.core.models import Feature, Scenario, Step, StepOutcome, SuiteTally


class Observer:
    """Receives lifecycle events. Every method is a no-op by default."""

    def on_start(self) -> None:
        pass

    def on_feature_enter(self, feature: Feature) -> None:
        pass

    def on_scenario_enter(self, scenario: Scenario) -> None:
        pass

    def on_step_enter(self, step: Step) -> None:
        pass

    def on_step_result(self, step: Step, outcome: StepOutcome) -> None:
        pass

    def on_scenario_setup_failed(self, scenario: Scenario, outcome: StepOutcome) -> None:
        pass

    def on_scenario_skipped(self, scenario: Scenario) -> None:
        pass

    def on_scenario_exit(self, scenario: Scenario) -> None:
        pass

    def on_feature_exit(self, feature: Feature) -> None:
        pass

    def on_finish(self, tally: SuiteTally) -> None:
        pass


class CompositeObserver(Observer):
    """Forwards every event to each observer in order."""

    def __init__(self, observers: Iterable[Observer]):
        self.observers = list(observers)

    def on_start(self) -> None:
        for o in self.observers:
            o.on_start()

    def on_feature_enter(self, feature: Feature) -> None:
        for o in self.observers:
            o.on_feature_enter(feature)

    def on_scenario_enter(self, scenario: Scenario) -> None:
        for o in self.observers:
            o.on_scenario_enter(scenario)

    def on_step_enter(self, step: Step) -> None:
        for o in self.observers:
            o.on_step_enter(step)

    def on_step_result(self, step: Step, outcome: StepOutcome) -> None:
        for o in self.observers:
            o.on_step_result(step, outcome)

    def on_scenario_setup_failed(self, scenario: Scenario, outcome: StepOutcome) -> None:
        for o in self.observers:
            o.on_scenario_setup_failed(scenario, outcome)

    def on_scenario_skipped(self, scenario: Scenario) -> None:
        for o in self.observers:
            o.on_scenario_skipped(scenario)

    def on_scenario_exit(self, scenario: Scenario) -> None:
        for o in self.observers:
            o.on_scenario_exit(scenario)

    def on_feature_exit(self, feature: Feature) -> None:
        for o in self.observers:
            o.on_feature_exit(feature)

    def on_finish(self, tally: SuiteTally) -> None:
        for o in self.observers:
            o.on_finish(tally)
