"""Execution core for Cukes."""

from cukes.core.capture import CaptureEngine, CaptureHandle, StepUnimplemented, unimplemented
from cukes.core.errors import (
    AmbiguousStepError,
    ConfigurationError,
    CukesError,
    StateConstructionError,
)
from cukes.core.loader import FeatureLoader, load_features
from cukes.core.models import (
    Background,
    Feature,
    OutcomeStatus,
    Position,
    Scenario,
    ScenarioReport,
    Step,
    StepKind,
    StepOutcome,
    SuiteTally,
)
from cukes.core.observer import CompositeObserver, Observer
from cukes.core.registry import (
    DuplicatePolicy,
    ExactText,
    Pattern,
    Resolution,
    StepDefinition,
    StepRegistry,
)
from cukes.core.runner import ScenarioRunner
from cukes.core.suite import FeatureSuite

__all__ = [
    # Models
    "Background",
    "Feature",
    "OutcomeStatus",
    "Position",
    "Scenario",
    "ScenarioReport",
    "Step",
    "StepKind",
    "StepOutcome",
    "SuiteTally",
    # Errors
    "AmbiguousStepError",
    "ConfigurationError",
    "CukesError",
    "StateConstructionError",
    # Registry
    "DuplicatePolicy",
    "ExactText",
    "Pattern",
    "Resolution",
    "StepDefinition",
    "StepRegistry",
    # Execution
    "CaptureEngine",
    "CaptureHandle",
    "StepUnimplemented",
    "unimplemented",
    "ScenarioRunner",
    "FeatureSuite",
    "FeatureLoader",
    "load_features",
    # Events
    "Observer",
    "CompositeObserver",
]
