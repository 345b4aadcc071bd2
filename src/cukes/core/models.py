"""Data models for feature trees, step outcomes and tallies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


UNKNOWN_ORIGIN = "unknown"


class StepKind(str, Enum):
    """Gherkin step keyword."""
    GIVEN = "given"
    WHEN = "when"
    THEN = "then"

    @property
    def keyword(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class Position:
    """1-based line and column of a node in its source document."""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Step:
    """Single Given/When/Then line."""
    kind: StepKind
    text: str
    docstring: Optional[str] = None
    table: Optional[tuple[tuple[str, ...], ...]] = None
    position: Position = field(default_factory=Position)

    def __str__(self) -> str:
        return f"{self.kind.keyword} {self.text}"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "text": self.text,
            "docstring": self.docstring,
            "table": [list(row) for row in self.table] if self.table else None,
            "line": self.position.line,
            "column": self.position.column,
        }


@dataclass(frozen=True)
class Background:
    """Steps shared by every scenario of a feature."""
    steps: tuple[Step, ...] = ()
    position: Position = field(default_factory=Position)


@dataclass(frozen=True)
class Scenario:
    """Ordered steps executed against one fresh world."""
    name: str
    steps: tuple[Step, ...] = ()
    tags: tuple[str, ...] = ()
    position: Position = field(default_factory=Position)


@dataclass(frozen=True)
class Feature:
    """Named group of scenarios, optionally sharing a background."""
    name: str
    scenarios: tuple[Scenario, ...] = ()
    background: Optional[Background] = None
    description: str = ""
    tags: tuple[str, ...] = ()
    position: Position = field(default_factory=Position)
    path: Optional[Path] = None

    @property
    def total_steps(self) -> int:
        background = len(self.background.steps) if self.background else 0
        return sum(background + len(s.steps) for s in self.scenarios)

    def steps_for(self, scenario: Scenario) -> list[Step]:
        """Background steps followed by the scenario's own steps."""
        steps: list[Step] = []
        if self.background is not None:
            steps.extend(self.background.steps)
        steps.extend(scenario.steps)
        return steps


class OutcomeStatus(str, Enum):
    """Classified result of executing or skipping one step."""
    PASSED = "passed"
    FAILED = "failed"
    UNIMPLEMENTED = "unimplemented"
    SKIPPED = "skipped"
    CORRUPTED = "corrupted"


@dataclass(frozen=True)
class StepOutcome:
    """Outcome of one step.

    ``message`` and ``origin`` are only set for failed steps; corrupted
    outcomes carry a message describing the capture inconsistency.
    """
    status: OutcomeStatus
    message: Optional[str] = None
    origin: Optional[str] = None

    @classmethod
    def passed(cls) -> "StepOutcome":
        return cls(OutcomeStatus.PASSED)

    @classmethod
    def failed(cls, message: str, origin: Optional[str] = None) -> "StepOutcome":
        return cls(OutcomeStatus.FAILED, message, origin or UNKNOWN_ORIGIN)

    @classmethod
    def unimplemented(cls) -> "StepOutcome":
        return cls(OutcomeStatus.UNIMPLEMENTED)

    @classmethod
    def skipped(cls) -> "StepOutcome":
        return cls(OutcomeStatus.SKIPPED)

    @classmethod
    def corrupted(cls, message: str) -> "StepOutcome":
        return cls(OutcomeStatus.CORRUPTED, message)

    @property
    def is_pass(self) -> bool:
        return self.status == OutcomeStatus.PASSED

    @property
    def is_failure(self) -> bool:
        return self.status in (OutcomeStatus.FAILED, OutcomeStatus.CORRUPTED)

    @property
    def is_skip(self) -> bool:
        return self.status in (OutcomeStatus.SKIPPED, OutcomeStatus.UNIMPLEMENTED)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status.value,
            "message": self.message,
            "origin": self.origin,
        }


@dataclass
class ScenarioReport:
    """What happened to a single scenario."""
    scenario: Scenario
    results: list[tuple[Step, StepOutcome]] = field(default_factory=list)
    skipping: bool = False
    # Set when the world factory itself failed
    setup_failure: Optional[StepOutcome] = None

    @property
    def failed(self) -> bool:
        if self.setup_failure is not None:
            return True
        return any(outcome.is_failure for _, outcome in self.results)

    @property
    def skipped(self) -> bool:
        return self.skipping and not self.failed

    @property
    def outcomes(self) -> list[StepOutcome]:
        return [outcome for _, outcome in self.results]


@dataclass
class SuiteTally:
    """Counters accumulated over a run."""
    scenarios: int = 0
    scenarios_skipped: int = 0
    scenarios_failed: int = 0
    steps: int = 0
    steps_skipped: int = 0
    steps_failed: int = 0

    @property
    def steps_passed(self) -> int:
        return self.steps - self.steps_skipped - self.steps_failed

    @property
    def ok(self) -> bool:
        return self.scenarios_failed == 0

    def add(self, report: ScenarioReport) -> None:
        """Fold one scenario report into the counters."""
        self.scenarios += 1
        if report.failed:
            self.scenarios_failed += 1
        elif report.skipped:
            self.scenarios_skipped += 1

        for _, outcome in report.results:
            self.steps += 1
            if outcome.is_failure:
                self.steps_failed += 1
            elif outcome.is_skip:
                self.steps_skipped += 1

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "scenarios": {
                "total": self.scenarios,
                "failed": self.scenarios_failed,
                "skipped": self.scenarios_skipped,
            },
            "steps": {
                "total": self.steps,
                "passed": self.steps_passed,
                "failed": self.steps_failed,
                "skipped": self.steps_skipped,
            },
        }
