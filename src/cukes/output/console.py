"""Terminal rendering of a run with rich."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.padding import Padding
from rich.table import Table
from rich.text import Text

from cukes import __version__
from cukes.core.models import (
    UNKNOWN_ORIGIN,
    Feature,
    OutcomeStatus,
    Position,
    Scenario,
    Step,
    StepOutcome,
    SuiteTally,
)
from cukes.core.observer import Observer

STEP_STYLES = {
    OutcomeStatus.PASSED: ("✔", "green"),
    OutcomeStatus.FAILED: ("✘", "red"),
    OutcomeStatus.UNIMPLEMENTED: ("-", "cyan"),
    OutcomeStatus.SKIPPED: ("-", "cyan"),
    OutcomeStatus.CORRUPTED: ("-", "cyan"),
}

STEP_NOTES = {
    OutcomeStatus.UNIMPLEMENTED: "⚡ Not yet implemented (skipped)",
    OutcomeStatus.CORRUPTED: "⚡ Skipped due to previous error (capture corrupted)",
}


def relpath(path: Path, start: Optional[Path] = None) -> str:
    """Path relative to ``start`` (the working directory by default)."""
    try:
        return os.path.relpath(path, start or Path.cwd())
    except ValueError:
        return str(path)


class ConsoleReporter(Observer):
    """Prints features, scenarios and step results as they happen."""

    def __init__(self, console: Optional[Console] = None, cwd: Optional[Path] = None):
        self.console = console or Console()
        self.cwd = cwd
        self._feature_path = ""
        self._setup_failure: Optional[StepOutcome] = None
        self._steps_shown = 0

    def _location(self, position: Position) -> str:
        return f"{self._feature_path}:{position.line}:{position.column}"

    def _line(self, text: str, comment: str, style: str, indent: str = "") -> None:
        grid = Table.grid(expand=True)
        grid.add_column()
        grid.add_column(justify="right", style="white", no_wrap=True)
        grid.add_row(Text(indent + text, style=style), Text(comment))
        self.console.print(grid)

    def on_start(self) -> None:
        self.console.print(Text(f"[Cukes v{__version__}]", style="bold green"))
        self.console.print()

    def on_feature_enter(self, feature: Feature) -> None:
        self._feature_path = relpath(feature.path, self.cwd) if feature.path else feature.name
        self._line(
            f"Feature: {feature.name}",
            self._location(feature.position),
            "bold white",
        )
        self.console.print()

    def on_scenario_enter(self, scenario: Scenario) -> None:
        self._line(
            f"Scenario: {scenario.name}",
            self._location(scenario.position),
            "bold white",
            indent=" ",
        )
        self._setup_failure = None
        self._steps_shown = 0

    def on_scenario_setup_failed(self, scenario: Scenario, outcome: StepOutcome) -> None:
        self._setup_failure = outcome

    def on_scenario_exit(self, scenario: Scenario) -> None:
        # Without steps the failure has no step line to hang off
        if self._setup_failure is not None and not self._steps_shown:
            self._failure(self._setup_failure)
        self.console.print()

    def on_step_result(self, step: Step, outcome: StepOutcome) -> None:
        self._steps_shown += 1
        icon, color = STEP_STYLES[outcome.status]
        self._line(f"{icon} {step}", self._location(step.position), color, indent="  ")

        if step.docstring:
            self._docstring(step.docstring)

        if outcome.status == OutcomeStatus.FAILED:
            self._failure(outcome)

        note = STEP_NOTES.get(outcome.status)
        if note:
            self.console.print(Text(f"      {note}"))

    def _docstring(self, docstring: str) -> None:
        self.console.print(Text('    """'))
        for line in docstring.rstrip("\n").splitlines():
            self.console.print(Text(f"    {line}"))
        self.console.print(Text('    """'))

    def _failure(self, outcome: StepOutcome) -> None:
        self.console.rule(
            Text(f"🚨 Step failed: {outcome.origin or UNKNOWN_ORIGIN}", style="bold red"),
            characters="-",
            style="red",
            align="left",
        )
        message = (outcome.message or "").rstrip()
        if message:
            self.console.print(Padding(Text(message, style="red"), (0, 0, 0, 2)))
        self.console.rule(characters="-", style="bold red")

    def on_finish(self, tally: SuiteTally) -> None:
        parts = []
        if tally.scenarios_failed:
            parts.append(f"{tally.scenarios_failed} failed")
        if tally.scenarios_skipped:
            parts.append(f"{tally.scenarios_skipped} skipped")
        summary = f"{tally.scenarios} scenarios"
        if parts:
            summary += f" ({', '.join(parts)})"
        self.console.print(Text(summary, style="bold green"))

        parts = []
        if tally.steps_failed:
            parts.append(f"{tally.steps_failed} failed")
        if tally.steps_skipped:
            parts.append(f"{tally.steps_skipped} skipped")
        parts.append(f"{tally.steps_passed} passed")
        self.console.print(Text(f"{tally.steps} steps ({', '.join(parts)})", style="bold green"))
        self.console.print()
