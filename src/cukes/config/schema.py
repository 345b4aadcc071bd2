"""Configuration schema for Cukes using Pydantic."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class FeaturesConfig(BaseModel):
    """Where feature documents live."""

    path: str = "features"


class RunConfig(BaseModel):
    """Execution policies."""

    state_failure: Literal["scenario", "abort"] = "scenario"  # World factory errors
    duplicate_steps: Literal["replace", "keep", "error"] = "replace"
    capture_output: bool = True


class OutputConfig(BaseModel):
    """Reporting configuration."""

    color: bool = True
    results_file: Optional[str] = None  # Write JSON results when set


class CukesConfig(BaseModel):
    """Root configuration model for Cukes."""

    version: int = 1
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)
    steps: List[str] = Field(default_factory=list)  # "package.module" or "package.module:registry"
    world: Optional[str] = None  # "package.module:Factory"
    before: Optional[str] = None  # "package.module:function"
    run: RunConfig = Field(default_factory=RunConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def get_default(cls) -> "CukesConfig":
        """Return default configuration."""
        return cls()
