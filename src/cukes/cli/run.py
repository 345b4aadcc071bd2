"""Feature CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from types import SimpleNamespace
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from cukes.cli.loading import build_registry, ensure_importable, load_object
from cukes.config.loader import load_config, save_config
from cukes.config.schema import CukesConfig
from cukes.core.errors import ConfigurationError, StateConstructionError
from cukes.core.loader import FeatureLoader
from cukes.core.capture import CaptureEngine
from cukes.core.observer import CompositeObserver
from cukes.core.registry import StepRegistry
from cukes.core.suite import FeatureSuite
from cukes.output.console import ConsoleReporter
from cukes.output.results import ResultsCollector

logger = logging.getLogger(__name__)
console = Console()

EXIT_FAILED = 1
EXIT_CONFIG = 2


def _config(ctx: typer.Context) -> CukesConfig:
    config_file = (ctx.obj or {}).get("config_file")
    return load_config(config_file)


def run_features(
    ctx: typer.Context,
    features: Optional[Path] = typer.Argument(
        None, help="Feature file or directory (default: features.path from config)"
    ),
    steps: Optional[List[str]] = typer.Option(
        None, "--steps", "-s", help="Step registry reference, e.g. 'steps.calc' (repeatable)"
    ),
    world: Optional[str] = typer.Option(
        None, "--world", "-w", help="World factory reference, e.g. 'steps.calc:World'"
    ),
    before: Optional[str] = typer.Option(
        None, "--before", help="Callable run once before the features"
    ),
    results: Optional[Path] = typer.Option(
        None, "--results", "-r", help="Write JSON results to this file"
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
    strict_steps: bool = typer.Option(
        False, "--strict-steps", help="Treat duplicate step definitions as an error"
    ),
):
    """Run features against the registered steps."""
    try:
        config = _config(ctx)
        path = features or Path(config.features.path)
        ensure_importable(Path.cwd())

        policy = "error" if strict_steps else config.run.duplicate_steps
        registry = build_registry(steps or config.steps, policy)
        if not len(registry):
            logger.warning("No step definitions registered; every step will be unimplemented")

        world_ref = world or config.world
        world_factory = load_object(world_ref) if world_ref else SimpleNamespace
        before_ref = before or config.before
        before_fn = load_object(before_ref) if before_ref else None

        reporter = ConsoleReporter(Console(no_color=no_color or not config.output.color))
        collector = ResultsCollector()
        suite = FeatureSuite(
            registry=registry,
            observer=CompositeObserver([reporter, collector]),
            capture=CaptureEngine(capture_output=config.run.capture_output),
            world_factory=world_factory,
            state_failure=config.run.state_failure,
        )

        tally = suite.run(path, before=before_fn)

    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG)
    except StateConstructionError as e:
        console.print(f"[red]Run aborted:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_FAILED)

    results_file = results or (
        Path(config.output.results_file) if config.output.results_file else None
    )
    if results_file:
        collector.save(results_file)
        console.print(f"[dim]Results: {results_file}[/dim]")

    if not tally.ok:
        raise typer.Exit(EXIT_FAILED)


def list_features(
    ctx: typer.Context,
    features: Optional[Path] = typer.Argument(
        None, help="Feature file or directory (default: features.path from config)"
    ),
    steps: Optional[List[str]] = typer.Option(
        None, "--steps", "-s", help="Mark steps without a definition in these registries"
    ),
):
    """List features, scenarios and steps."""
    try:
        config = _config(ctx)
        loaded = FeatureLoader().load(features or Path(config.features.path))
        registry: Optional[StepRegistry] = None
        if steps or config.steps:
            ensure_importable(Path.cwd())
            registry = build_registry(steps or config.steps, config.run.duplicate_steps)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG)

    total_steps = 0
    undefined = 0

    for feature in loaded:
        tree = Tree(f"[bold blue]Feature:[/bold blue] {escape(feature.name)}")
        if feature.background:
            bg = tree.add("[dim]Background[/dim]")
            for step in feature.background.steps:
                bg.add(escape(str(step)))

        for scenario in feature.scenarios:
            branch = tree.add(f"[bold]Scenario:[/bold] {escape(scenario.name)}")
            for step in scenario.steps:
                label = escape(str(step))
                if registry is not None and registry.resolve_step(step) is None:
                    label += " [yellow](undefined)[/yellow]"
                    undefined += 1
                branch.add(label)
            total_steps += len(feature.steps_for(scenario))

        console.print(tree)

    console.print()
    summary = f"Total: {len(loaded)} features, {total_steps} steps"
    if registry is not None:
        summary += f", {undefined} undefined"
    console.print(f"[dim]{summary}[/dim]")


def init_config(
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file path"
    ),
    features: str = typer.Option("features", "--features", help="Feature directory"),
    steps: Optional[List[str]] = typer.Option(
        None, "--steps", "-s", help="Step registry reference (repeatable)"
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing config"
    ),
):
    """Create a new .cukes.yaml configuration file."""
    if output is None:
        output = Path.cwd() / ".cukes.yaml"

    if output.exists() and not force:
        console.print(f"[yellow]Warning:[/yellow] {output} already exists. Use --force to overwrite.")
        raise typer.Exit(1)

    config = CukesConfig(features={"path": features}, steps=steps or [])
    save_config(config, output)
    console.print(f"[green]✓[/green] Created: {output}")
