"""Collects a run into result records and saves them as JSON."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from cukes.core.models import Feature, Scenario, Step, StepOutcome, SuiteTally
from cukes.core.observer import Observer

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Result of a single step."""
    step: Step
    outcome: StepOutcome

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "step": str(self.step),
            "line": self.step.position.line,
            **self.outcome.to_dict(),
        }


@dataclass
class ScenarioResult:
    """Result of a scenario execution."""
    name: str
    line: int
    steps: list[StepResult] = field(default_factory=list)
    skipped: bool = False
    setup_failure: Optional[StepOutcome] = None

    @property
    def status(self) -> str:
        if self.setup_failure is not None:
            return "failed"
        if any(s.outcome.is_failure for s in self.steps):
            return "failed"
        if self.skipped:
            return "skipped"
        return "passed"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "line": self.line,
            "status": self.status,
            "setup_failure": self.setup_failure.to_dict() if self.setup_failure else None,
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass
class FeatureResult:
    """Result of a feature execution."""
    name: str
    path: Optional[Path] = None
    scenarios: list[ScenarioResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "path": str(self.path) if self.path else None,
            "scenarios": [s.to_dict() for s in self.scenarios],
        }


class ResultsCollector(Observer):
    """Observer that records every feature, scenario and step outcome."""

    def __init__(self):
        self.features: list[FeatureResult] = []
        self.tally: Optional[SuiteTally] = None
        self.started_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None
        self._scenario: Optional[ScenarioResult] = None

    def on_start(self) -> None:
        self.started_at = datetime.now()

    def on_feature_enter(self, feature: Feature) -> None:
        self.features.append(FeatureResult(name=feature.name, path=feature.path))

    def on_scenario_enter(self, scenario: Scenario) -> None:
        self._scenario = ScenarioResult(name=scenario.name, line=scenario.position.line)
        self.features[-1].scenarios.append(self._scenario)

    def on_step_result(self, step: Step, outcome: StepOutcome) -> None:
        if self._scenario is not None:
            self._scenario.steps.append(StepResult(step=step, outcome=outcome))

    def on_scenario_setup_failed(self, scenario: Scenario, outcome: StepOutcome) -> None:
        if self._scenario is not None:
            self._scenario.setup_failure = outcome

    def on_scenario_skipped(self, scenario: Scenario) -> None:
        if self._scenario is not None:
            self._scenario.skipped = True

    def on_scenario_exit(self, scenario: Scenario) -> None:
        self._scenario = None

    def on_finish(self, tally: SuiteTally) -> None:
        self.tally = tally
        self.completed_at = datetime.now()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "features": [f.to_dict() for f in self.features],
            "summary": self.tally.to_dict() if self.tally else None,
        }

    def save(self, path: Path) -> Path:
        """Save results to a JSON file.

        Returns:
            Path to results file
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)

        logger.info(f"Results saved to {path}")
        return path
