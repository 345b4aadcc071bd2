"""Feature suite - runs every scenario of every feature in order."""

from __future__ import annotations

import logging
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Iterable, Optional, Union

from cukes.core.capture import CaptureEngine
from cukes.core.loader import FeatureLoader
from cukes.core.models import Feature, SuiteTally
from cukes.core.observer import Observer
from cukes.core.registry import StepRegistry
from cukes.core.runner import ScenarioRunner, StateFailurePolicy

logger = logging.getLogger(__name__)

FeatureSource = Union[Path, str, Iterable[Feature]]


class FeatureSuite:
    """Drives a whole run and accumulates its tally."""

    def __init__(
        self,
        registry: StepRegistry,
        observer: Optional[Observer] = None,
        world_factory: Callable[[], Any] = SimpleNamespace,
        capture: Optional[CaptureEngine] = None,
        state_failure: StateFailurePolicy = "scenario",
        loader: Optional[FeatureLoader] = None,
    ):
        self.observer = observer or Observer()
        self.loader = loader or FeatureLoader()
        self.runner = ScenarioRunner(
            registry=registry,
            observer=self.observer,
            world_factory=world_factory,
            capture=capture,
            state_failure=state_failure,
        )

    def collect(self, source: FeatureSource) -> list[Feature]:
        """Materialize the feature collection.

        Raises:
            ConfigurationError: If the source location cannot be read
        """
        if isinstance(source, (str, Path)):
            return self.loader.load(source)
        return list(source)

    def run(
        self,
        source: FeatureSource,
        before: Optional[Callable[[], None]] = None,
    ) -> SuiteTally:
        """Run all features.

        Args:
            source: Feature trees, or a file/directory of feature documents
            before: Called once before the first event

        Returns:
            SuiteTally for the run
        """
        features = self.collect(source)
        logger.info(f"Collected {len(features)} features")

        if before is not None:
            before()

        tally = SuiteTally()
        self.observer.on_start()

        for feature in features:
            logger.info(f"Running feature: {feature.name}")
            self.observer.on_feature_enter(feature)

            for scenario in feature.scenarios:
                report = self.runner.run(feature, scenario)
                tally.add(report)

            self.observer.on_feature_exit(feature)

        self.observer.on_finish(tally)
        return tally
