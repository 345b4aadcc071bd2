"""Cukes - behavior-driven step runner."""

__version__ = "0.1.0"

from cukes.core import (  # noqa: E402
    ConfigurationError,
    Feature,
    FeatureSuite,
    Observer,
    Scenario,
    Step,
    StepKind,
    StepOutcome,
    StepRegistry,
    unimplemented,
)

__all__ = [
    "__version__",
    "ConfigurationError",
    "Feature",
    "FeatureSuite",
    "Observer",
    "Scenario",
    "Step",
    "StepKind",
    "StepOutcome",
    "StepRegistry",
    "unimplemented",
]
