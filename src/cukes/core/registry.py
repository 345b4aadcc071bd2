"""Step definition registry.

Exact-text definitions live in a dict per step kind and always take
priority. Pattern definitions are kept in a list per kind and scanned in
registration order, so the first registered pattern that matches wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional, Union

from cukes.core.errors import AmbiguousStepError, ConfigurationError
from cukes.core.models import Step, StepKind, StepOutcome

logger = logging.getLogger(__name__)

# handler(world, captures, step) -> None | StepOutcome
StepHandler = Callable[[Any, list[str], Step], Optional[StepOutcome]]


class DuplicatePolicy(str, Enum):
    """What to do when the same exact step text is defined twice."""
    REPLACE = "replace"
    KEEP = "keep"
    ERROR = "error"


@dataclass(frozen=True)
class ExactText:
    """Matches a step whose text is exactly ``text``."""
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Pattern:
    """Matches a step whose text is found by a compiled regex."""
    regex: re.Pattern

    @classmethod
    def compile(cls, source: str) -> "Pattern":
        try:
            return cls(re.compile(source))
        except re.error as e:
            raise ConfigurationError(f"Invalid step pattern {source!r}: {e}") from e

    def captures(self, text: str) -> Optional[list[str]]:
        """Whole match followed by every group, or None when it doesn't match."""
        match = self.regex.search(text)
        if match is None:
            return None
        return [match.group(0)] + [g if g is not None else "" for g in match.groups()]

    def __str__(self) -> str:
        return self.regex.pattern


Matcher = Union[ExactText, Pattern]


@dataclass(frozen=True)
class StepDefinition:
    """A handler bound to a step kind and matcher."""
    kind: StepKind
    matcher: Matcher
    handler: StepHandler

    @property
    def location(self) -> str:
        code = getattr(self.handler, "__code__", None)
        if code is None:
            return repr(self.handler)
        return f"{code.co_filename}:{code.co_firstlineno}"


@dataclass(frozen=True)
class Resolution:
    """A resolved step: which definition matched and what it captured."""
    definition: StepDefinition
    captures: list[str] = field(default_factory=list)

    @property
    def handler(self) -> StepHandler:
        return self.definition.handler

    def __iter__(self):
        # Allows ``handler, captures = registry.resolve(...)``
        return iter((self.handler, self.captures))


def _as_kind(kind: Union[StepKind, str]) -> StepKind:
    try:
        return StepKind(kind.lower() if isinstance(kind, str) else kind)
    except ValueError:
        raise ConfigurationError(f"Unknown step kind: {kind!r}") from None


def _as_matcher(matcher: Union[Matcher, re.Pattern, str], regex: bool) -> Matcher:
    if isinstance(matcher, (ExactText, Pattern)):
        return matcher
    if isinstance(matcher, re.Pattern):
        return Pattern(matcher)
    if isinstance(matcher, str):
        return Pattern.compile(matcher) if regex else ExactText(matcher)
    raise ConfigurationError(f"Unsupported step matcher: {matcher!r}")


class StepRegistry:
    """Holds step definitions and resolves steps to handlers."""

    def __init__(self, policy: Union[DuplicatePolicy, str] = DuplicatePolicy.REPLACE):
        self.policy = DuplicatePolicy(policy)
        self._exact: dict[StepKind, dict[str, StepDefinition]] = {k: {} for k in StepKind}
        self._patterns: dict[StepKind, list[StepDefinition]] = {k: [] for k in StepKind}

    def register(
        self,
        kind: Union[StepKind, str],
        matcher: Union[Matcher, re.Pattern, str],
        handler: StepHandler,
        regex: bool = False,
    ) -> StepDefinition:
        """Add a step definition.

        Args:
            kind: given, when or then
            matcher: ExactText, Pattern, compiled regex, or a string
            handler: Callable taking (world, captures, step)
            regex: Treat a string matcher as a regular expression

        Returns:
            The registered StepDefinition

        Raises:
            ConfigurationError: If the pattern does not compile
        """
        definition = StepDefinition(_as_kind(kind), _as_matcher(matcher, regex), handler)
        self._add(definition)
        return definition

    def _add(self, definition: StepDefinition) -> None:
        if isinstance(definition.matcher, Pattern):
            self._patterns[definition.kind].append(definition)
            return

        bag = self._exact[definition.kind]
        text = definition.matcher.text
        existing = bag.get(text)
        if existing is not None:
            if self.policy == DuplicatePolicy.ERROR:
                raise AmbiguousStepError(definition.kind.value, text)
            if self.policy == DuplicatePolicy.KEEP:
                logger.warning(
                    f"Duplicate {definition.kind.value} step {text!r}: "
                    f"keeping {existing.location}, ignoring {definition.location}"
                )
                return
            logger.warning(
                f"Duplicate {definition.kind.value} step {text!r}: "
                f"{definition.location} replaces {existing.location}"
            )
        bag[text] = definition

    def merge(self, other: "StepRegistry") -> "StepRegistry":
        """Fold ``other``'s definitions into this registry.

        Exact collisions follow this registry's duplicate policy; pattern
        definitions are appended after the existing ones in their original
        order. Merging a registry into itself duplicates its patterns.
        """
        for definition in list(other.definitions()):
            self._add(definition)
        return self

    @classmethod
    def combine(
        cls,
        *registries: "StepRegistry",
        policy: Union[DuplicatePolicy, str] = DuplicatePolicy.REPLACE,
    ) -> "StepRegistry":
        """Build a new registry holding all of ``registries`` in order."""
        combined = cls(policy)
        for registry in registries:
            combined.merge(registry)
        return combined

    def resolve(self, kind: Union[StepKind, str], text: str) -> Optional[Resolution]:
        """Find the handler for a step.

        Exact text is tried first, then patterns in registration order.

        Returns:
            Resolution or None if nothing matches
        """
        kind = _as_kind(kind)
        definition = self._exact[kind].get(text)
        if definition is not None:
            return Resolution(definition, [])

        for definition in self._patterns[kind]:
            captures = definition.matcher.captures(text)
            if captures is not None:
                return Resolution(definition, captures)

        return None

    def resolve_step(self, step: Step) -> Optional[Resolution]:
        return self.resolve(step.kind, step.text)

    def definitions(self) -> Iterator[StepDefinition]:
        """Exact definitions then pattern definitions, per kind, in insertion order."""
        for kind in StepKind:
            yield from self._exact[kind].values()
            yield from self._patterns[kind]

    def __len__(self) -> int:
        return sum(len(self._exact[k]) + len(self._patterns[k]) for k in StepKind)

    # Decorator sugar over register()

    def step(self, kind: Union[StepKind, str], matcher, regex: bool = False):
        def decorator(handler: StepHandler) -> StepHandler:
            self.register(kind, matcher, handler, regex=regex)
            return handler
        return decorator

    def given(self, matcher, regex: bool = False):
        return self.step(StepKind.GIVEN, matcher, regex)

    def when(self, matcher, regex: bool = False):
        return self.step(StepKind.WHEN, matcher, regex)

    def then(self, matcher, regex: bool = False):
        return self.step(StepKind.THEN, matcher, regex)
