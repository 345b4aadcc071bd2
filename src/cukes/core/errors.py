"""Exceptions raised outside of step outcomes."""

from __future__ import annotations


class CukesError(Exception):
    """Base class for errors that abort a run."""


class ConfigurationError(CukesError, ValueError):
    """Setup is unusable: missing feature source, bad pattern, bad config."""


class AmbiguousStepError(ConfigurationError):
    """Two definitions claim the same exact step text for the same kind."""

    def __init__(self, kind: str, text: str):
        self.kind = kind
        self.text = text
        super().__init__(f"Ambiguous {kind} step: {text!r} is defined more than once")


class StateConstructionError(CukesError):
    """The world factory failed while the run is configured to abort on it."""

    def __init__(self, scenario: str, message: str):
        self.scenario = scenario
        self.message = message
        super().__init__(f"World construction failed for scenario {scenario!r}: {message}")
