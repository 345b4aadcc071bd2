"""Resolve ``module:attr`` references from the command line and config."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Iterable

from cukes.core.errors import ConfigurationError
from cukes.core.registry import DuplicatePolicy, StepRegistry


def ensure_importable(directory: Path) -> None:
    """Make step modules next to the features importable."""
    entry = str(directory.resolve())
    if entry not in sys.path:
        sys.path.insert(0, entry)


def load_object(reference: str) -> Any:
    """Import ``package.module`` or ``package.module:attr.path``."""
    module_name, _, attr = reference.partition(":")
    try:
        obj = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import {module_name!r}: {e}") from e

    for part in filter(None, attr.split(".")):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise ConfigurationError(f"{reference!r}: no attribute {part!r}") from None
    return obj


def load_registry(reference: str) -> StepRegistry:
    """Load a step registry.

    A module reference uses its ``steps`` attribute. Callables are called
    and must return a registry.
    """
    obj = load_object(reference)
    if isinstance(obj, ModuleType):
        if not hasattr(obj, "steps"):
            raise ConfigurationError(f"Module {reference!r} has no 'steps' registry")
        obj = obj.steps

    if not isinstance(obj, StepRegistry) and callable(obj):
        obj = obj()

    if not isinstance(obj, StepRegistry):
        raise ConfigurationError(f"{reference!r} is not a StepRegistry")
    return obj


def build_registry(references: Iterable[str], policy: str = "replace") -> StepRegistry:
    """Merge the registries of every reference, in order."""
    return StepRegistry.combine(
        *(load_registry(ref) for ref in references),
        policy=DuplicatePolicy(policy),
    )
