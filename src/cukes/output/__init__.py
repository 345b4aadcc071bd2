"""Concrete observers: terminal rendering and JSON results."""

from cukes.output.console import ConsoleReporter
from cukes.output.results import FeatureResult, ResultsCollector, ScenarioResult, StepResult

__all__ = [
    "ConsoleReporter",
    "ResultsCollector",
    "FeatureResult",
    "ScenarioResult",
    "StepResult",
]
