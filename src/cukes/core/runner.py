"""Scenario runner - executes background and scenario steps against a fresh world."""

from __future__ import annotations

import logging
from types import SimpleNamespace
from typing import Any, Callable, Literal, Optional

from cukes.core.capture import CaptureEngine
from cukes.core.errors import StateConstructionError
from cukes.core.models import (
    Feature,
    OutcomeStatus,
    Scenario,
    ScenarioReport,
    Step,
    StepOutcome,
)
from cukes.core.observer import Observer
from cukes.core.registry import StepRegistry

logger = logging.getLogger(__name__)

StateFailurePolicy = Literal["scenario", "abort"]


class ScenarioRunner:
    """Runs one scenario at a time.

    Handles:
    - Fresh world construction per scenario
    - Background steps ahead of scenario steps
    - Skipping every step after the first one that doesn't pass
    - Step and scenario events for the observer
    """

    def __init__(
        self,
        registry: StepRegistry,
        observer: Optional[Observer] = None,
        world_factory: Callable[[], Any] = SimpleNamespace,
        capture: Optional[CaptureEngine] = None,
        state_failure: StateFailurePolicy = "scenario",
    ):
        if state_failure not in ("scenario", "abort"):
            raise ValueError(f"Unknown state failure policy: {state_failure}")

        self.registry = registry
        self.observer = observer or Observer()
        self.world_factory = world_factory
        self.capture = capture or CaptureEngine()
        self.state_failure = state_failure

    def run(self, feature: Feature, scenario: Scenario) -> ScenarioReport:
        """Run a scenario of ``feature``.

        Args:
            feature: Feature owning the scenario (supplies the background)
            scenario: Scenario to execute

        Returns:
            ScenarioReport

        Raises:
            StateConstructionError: If the world factory fails and the
                policy is "abort"
        """
        logger.info(f"Running scenario: {scenario.name}")
        self.observer.on_scenario_enter(scenario)

        report = ScenarioReport(scenario=scenario)
        steps = feature.steps_for(scenario)

        world, setup = self.capture.construct(self.world_factory)
        if not setup.is_pass:
            if self.state_failure == "abort":
                raise StateConstructionError(scenario.name, setup.message or setup.status.value)
            logger.error(f"World construction failed for {scenario.name}: {setup.message}")
            report.setup_failure = setup
            self.observer.on_scenario_setup_failed(scenario, setup)
            self._fail_setup(report, steps, setup)
        else:
            for step in steps:
                self._run_step(report, world, step)

        self.observer.on_scenario_exit(scenario)
        return report

    def _run_step(self, report: ScenarioReport, world: Any, step: Step) -> None:
        self.observer.on_step_enter(step)

        if report.skipping:
            self._emit(report, step, StepOutcome.skipped())
            return

        resolution = self.registry.resolve_step(step)
        if resolution is None:
            logger.info(f"No step definition for: {step}")
            self._emit(report, step, StepOutcome.unimplemented())
            self._start_skipping(report)
            return

        outcome = self.capture.invoke(resolution.handler, world, step, resolution.captures)
        self._emit(report, step, outcome)

        if not outcome.is_pass:
            if outcome.is_failure:
                logger.info(f"Step failed: {step} ({outcome.origin or outcome.status.value})")
            self._start_skipping(report)

    def _fail_setup(self, report: ScenarioReport, steps: list[Step], setup: StepOutcome) -> None:
        # The failure is reported against the first step; the rest are skipped.
        if not steps:
            return
        first, rest = steps[0], steps[1:]
        self.observer.on_step_enter(first)
        message = f"World construction failed: {setup.message}"
        if setup.status == OutcomeStatus.CORRUPTED:
            outcome = StepOutcome.corrupted(message)
        else:
            outcome = StepOutcome.failed(message, setup.origin)
        self._emit(report, first, outcome)
        self._start_skipping(report)

        for step in rest:
            self.observer.on_step_enter(step)
            self._emit(report, step, StepOutcome.skipped())

    def _emit(self, report: ScenarioReport, step: Step, outcome: StepOutcome) -> None:
        report.results.append((step, outcome))
        self.observer.on_step_result(step, outcome)

    def _start_skipping(self, report: ScenarioReport) -> None:
        if not report.skipping:
            report.skipping = True
            self.observer.on_scenario_skipped(report.scenario)
