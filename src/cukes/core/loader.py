"""YAML feature source loader.

Feature documents are already structured; this module only maps them onto
the read-only Feature tree. Example::

    feature: Addition
    background:
      - given: a calculator
    scenarios:
      - name: Add two numbers
        steps:
          - given: the number 2
          - and: the number 3
          - when: I add them
          - then: the result is 5
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from cukes.core.errors import ConfigurationError
from cukes.core.models import Background, Feature, Position, Scenario, Step, StepKind

logger = logging.getLogger(__name__)

FEATURE_SUFFIXES = (".yaml", ".yml")
STEP_KEYWORDS = ("given", "when", "then", "and", "but")

_POSITION = "__position__"


class _PositionLoader(yaml.SafeLoader):
    """SafeLoader that records where each mapping starts."""

    def construct_mapping(self, node, deep=False):
        mapping = super().construct_mapping(node, deep=deep)
        mapping[_POSITION] = Position(node.start_mark.line + 1, node.start_mark.column + 1)
        return mapping


class FeatureLoader:
    """Maps YAML feature documents onto Feature trees."""

    def load(self, path: Union[Path, str]) -> list[Feature]:
        """Load one feature file, or every feature file of a directory.

        Args:
            path: File or directory

        Returns:
            Features, directory entries sorted by file name

        Raises:
            ConfigurationError: If the path is missing or a document is invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Feature path does not exist: {path}")

        if path.is_file():
            return [self.parse(path)]

        files = sorted(
            p for p in path.iterdir()
            if p.is_file() and p.suffix in FEATURE_SUFFIXES
        )
        logger.debug(f"Found {len(files)} feature files in {path}")
        return [self.parse(f) for f in files]

    def parse(self, path: Path) -> Feature:
        """Parse a feature from a YAML file."""
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read feature file {path}: {e}") from e
        return self.parse_string(content, path)

    def parse_string(self, content: str, path: Optional[Path] = None) -> Feature:
        """Parse a feature from YAML content."""
        where = str(path) if path else "<string>"
        try:
            data = yaml.load(content, Loader=_PositionLoader)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {where}: {e}") from e

        if not data:
            raise ConfigurationError(f"Empty feature document: {where}")
        if not isinstance(data, dict) or "feature" not in data:
            raise ConfigurationError(f"Missing 'feature' key in {where}")

        return self._parse_feature(data, path, where)

    def _parse_feature(self, data: dict, path: Optional[Path], where: str) -> Feature:
        background = None
        if data.get("background"):
            steps = self._parse_steps(data["background"], where)
            position = steps[0].position if steps else Position()
            background = Background(steps=tuple(steps), position=position)

        scenarios = [
            self._parse_scenario(s, where) for s in data.get("scenarios") or []
        ]

        return Feature(
            name=str(data["feature"]),
            scenarios=tuple(scenarios),
            background=background,
            description=str(data.get("description") or "").strip(),
            tags=_tags(data.get("tags")),
            position=data.get(_POSITION, Position()),
            path=path,
        )

    def _parse_scenario(self, data: Any, where: str) -> Scenario:
        if not isinstance(data, dict):
            raise ConfigurationError(f"Scenario must be a mapping in {where}: {data!r}")

        return Scenario(
            name=str(data.get("name", "")),
            steps=tuple(self._parse_steps(data.get("steps") or [], where)),
            tags=_tags(data.get("tags")),
            position=data.get(_POSITION, Position()),
        )

    def _parse_steps(self, items: Any, where: str) -> list[Step]:
        if not isinstance(items, list):
            raise ConfigurationError(f"Steps must be a list in {where}")

        steps: list[Step] = []
        previous: Optional[StepKind] = None
        for item in items:
            step = self._parse_step(item, previous, where)
            steps.append(step)
            previous = step.kind
        return steps

    def _parse_step(self, data: Any, previous: Optional[StepKind], where: str) -> Step:
        if not isinstance(data, dict):
            raise ConfigurationError(f"Step must be a mapping in {where}: {data!r}")

        position = data.get(_POSITION, Position())
        keywords = [k for k in data if isinstance(k, str) and k.lower() in STEP_KEYWORDS]
        if len(keywords) != 1:
            raise ConfigurationError(
                f"Step at {where}:{position} needs exactly one of {', '.join(STEP_KEYWORDS)}"
            )

        keyword = keywords[0]
        if keyword.lower() in ("and", "but"):
            if previous is None:
                raise ConfigurationError(
                    f"Step at {where}:{position} starts with '{keyword}' but has no preceding step"
                )
            kind = previous
        else:
            kind = StepKind(keyword.lower())

        table = data.get("table")
        return Step(
            kind=kind,
            text=str(data[keyword]),
            docstring=data.get("docstring"),
            table=tuple(tuple(str(c) for c in row) for row in table) if table else None,
            position=position,
        )


def _tags(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return tuple(value.split())
    return tuple(str(t) for t in value)


def load_features(path: Union[Path, str]) -> list[Feature]:
    """Load features from a file or directory."""
    return FeatureLoader().load(path)
