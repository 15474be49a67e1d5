"""CLI for multibuild."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .backends import BuildError, get_backend_for_config
from .config import DEFAULT_CONFIG_NAME, ProjectConfig, load_config
from .errors import InvalidSelection, InvalidTarget, MultiBuildError, UnsupportedTarget
from .events import LoggingSink, Phase, ProgressEvent, fan_out
from .host import ProjectHost
from .logging_config import setup_logging
from .orchestrator import BuildOrchestrator, OrchestrationRun, RunStatus
from .progress import RichProgressSink
from .selection import SelectionStore
from .targets import TargetCatalog, TargetId, group_of, output_path_for

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_INVALID_SELECTION = 3
EXIT_UNSUPPORTED_TARGET = 4
EXIT_CANCELLED = 130

console = Console()


def _parse_targets(ctx, param, values) -> list[TargetId]:
    targets = []
    for value in values:
        try:
            targets.append(TargetId.parse(value))
        except ValueError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param)
    return targets


def _load(config_path: str) -> tuple[ProjectConfig, ProjectHost]:
    try:
        config = load_config(config_path)
    except MultiBuildError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(EXIT_CONFIG_ERROR)
    return config, ProjectHost(config)


def _refreshed_selection(host: ProjectHost) -> tuple[TargetCatalog, SelectionStore]:
    """Load the saved selection and reconcile it with what the host supports."""
    catalog = TargetCatalog(host)
    store = host.load_selection()
    store.reconcile(catalog.refresh())
    host.save_selection(store)
    return catalog, store


def build_prompt(count: int) -> str:
    return "Building 1 platform" if count == 1 else f"Building {count} platforms"


def _print_event(event: ProgressEvent) -> None:
    if event.phase == Phase.START_ALL:
        console.print(f"[bold]Build All[/bold] ({event.total} targets)")
    elif event.phase == Phase.START_TARGET and event.target is not None:
        console.print(f"  [{event.index + 1}] Building {event.target.value}...")
    elif event.phase == Phase.TARGET_SUCCEEDED:
        console.print(f"      [green]✓ done in {event.elapsed_seconds or 0:.0f}s[/green]")
    elif event.phase == Phase.TARGET_FAILED:
        detail = f": {event.message}" if event.message else ""
        console.print(f"      [red]✗ failed{detail}[/red]")
    elif event.phase == Phase.ALL_SUCCEEDED:
        console.print("[green]All builds succeeded[/green]")
    elif event.phase == Phase.ALL_FAILED:
        console.print("[red]Build All failed[/red]")
    elif event.phase == Phase.ALL_CANCELLED:
        console.print("[yellow]Build All cancelled[/yellow]")


def _print_summary(run: OrchestrationRun) -> None:
    table = Table(title="Build summary")
    table.add_column("Target")
    table.add_column("Result")
    table.add_column("Time", justify="right")

    for i, target in enumerate(run.targets):
        if i < len(run.outcomes):
            outcome = run.outcomes[i]
            result = "[green]succeeded[/green]" if outcome.succeeded else "[red]failed[/red]"
            table.add_row(target.value, result, f"{outcome.elapsed_seconds:.1f}s")
        else:
            table.add_row(target.value, "[dim]not built[/dim]", "-")

    console.print(table)
    if run.restore_error is not None:
        console.print(f"[yellow]⚠ {run.restore_error}[/yellow]")


@click.group()
@click.version_option(version=__version__, prog_name="multibuild")
@click.option("--log-level", default=None, help="Log level (default: MULTIBUILD_LOG_LEVEL or WARNING)")
@click.option("--log-dir", default=None, type=click.Path(file_okay=False),
              help="Directory for the persistent log store (default: MULTIBUILD_LOG_DIR)")
def cli(log_level: Optional[str], log_dir: Optional[str]):
    """Multibuild – build a game project for several platforms in one go."""
    setup_logging(level=log_level, log_dir=log_dir)


@cli.command()
@click.option("--product-name", "-p", default="MyGame", help="Product name used for artifact names")
@click.option("--scene", "scenes", multiple=True, help="Scene to include (repeatable)")
@click.option("--target", "supported", multiple=True, callback=_parse_targets,
              help="Restrict supported targets (repeatable)")
@click.option("--output", "-o", default=DEFAULT_CONFIG_NAME, help="Output file")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file")
def init(product_name: str, scenes: tuple, supported: list, output: str, force: bool):
    """Initialize a new multibuild project configuration."""
    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(f"[red]Error: {output_path} already exists (use --force)[/red]")
        sys.exit(EXIT_CONFIG_ERROR)

    config = ProjectConfig(
        product_name=product_name,
        scenes=list(scenes) or ["Assets/Scenes/Main.unity"],
        supported_targets=list(supported) or None,
        base_path=output_path.parent,
    )
    config.to_yaml(output_path)

    console.print(f"[green]Created {output_path}[/green]")
    console.print("\nNext steps:")
    console.print(f"  1. Run: multibuild targets {output}")
    console.print(f"  2. Run: multibuild select {output} <Target>...")
    console.print(f"  3. Run: multibuild build {output}")


@cli.command()
@click.argument("config_path", type=click.Path(exists=True))
def targets(config_path: str):
    """List the targets this host can build."""
    config, host = _load(config_path)
    catalog, store = _refreshed_selection(host)

    table = Table(title="Platforms to Build")
    table.add_column("Target")
    table.add_column("Group")
    table.add_column("Selected", justify="center")
    table.add_column("Output")
    for target in catalog.available():
        mark = "[green]✓[/green]" if store.is_selected(target) else ""
        output = output_path_for(
            target,
            config.product_name,
            builds_root=config.builds_root,
            extensions=config.output_extensions,
        )
        table.add_row(target.value, group_of(target).value, mark, output)
    console.print(table)

    count = store.count()
    if count:
        console.print(f"\n{count} selected. Run: multibuild build {config_path}")


def _toggle(config_path: str, names: list[TargetId], on: bool, all_targets: bool) -> None:
    _, host = _load(config_path)
    _, store = _refreshed_selection(host)

    chosen = store.targets() if all_targets else names
    if not chosen:
        console.print("[red]Error: no targets given (pass names or --all)[/red]")
        sys.exit(EXIT_INVALID_SELECTION)

    try:
        for target in chosen:
            store.toggle(target, on)
    except InvalidTarget as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(EXIT_UNSUPPORTED_TARGET)

    host.save_selection(store)
    verb = "Selected" if on else "Deselected"
    console.print(f"[green]{verb}: {', '.join(t.value for t in chosen)}[/green]")


@cli.command()
@click.argument("config_path", type=click.Path(exists=True))
@click.argument("names", nargs=-1, callback=_parse_targets)
@click.option("--all", "all_targets", is_flag=True, help="Select every available target")
def select(config_path: str, names: list, all_targets: bool):
    """Mark targets for the next build."""
    _toggle(config_path, names, True, all_targets)


@cli.command()
@click.argument("config_path", type=click.Path(exists=True))
@click.argument("names", nargs=-1, callback=_parse_targets)
@click.option("--all", "all_targets", is_flag=True, help="Deselect every target")
def deselect(config_path: str, names: list, all_targets: bool):
    """Unmark targets for the next build."""
    _toggle(config_path, names, False, all_targets)


@cli.command()
@click.argument("config_path", type=click.Path(exists=True))
@click.argument("names", nargs=-1, callback=_parse_targets)
@click.option("--dry-run", "-n", is_flag=True, help="Show what would be built")
@click.option("--no-progress", is_flag=True, help="Plain line output instead of progress bars")
def build(config_path: str, names: list, dry_run: bool, no_progress: bool):
    """Build the given targets, or the saved selection when none are given."""
    config, host = _load(config_path)
    _, store = _refreshed_selection(host)

    chosen = list(names) or store.selected()
    sink = fan_out(LoggingSink(), _print_event if no_progress else RichProgressSink(console))

    try:
        backend = get_backend_for_config(host, config, dry_run=dry_run)
    except BuildError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(EXIT_CONFIG_ERROR)

    orch = BuildOrchestrator.from_config(config, host, backend, on_progress=sink)

    try:
        future = orch.submit(chosen)
    except InvalidSelection:
        console.print("[yellow]No platforms selected.[/yellow]")
        console.print(f"Run: multibuild select {config_path} <Target>...")
        sys.exit(EXIT_INVALID_SELECTION)
    except UnsupportedTarget as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(EXIT_UNSUPPORTED_TARGET)

    console.print(f"[bold]{build_prompt(len(chosen))}{' (dry run)' if dry_run else ''}[/bold]\n")

    try:
        try:
            run = future.result()
        except KeyboardInterrupt:
            console.print("\n[yellow]Cancelling after the current target...[/yellow]")
            orch.cancel()
            run = future.result()
    finally:
        orch.shutdown()

    console.print()
    _print_summary(run)

    if run.status == RunStatus.SUCCEEDED:
        sys.exit(EXIT_OK)
    if run.status == RunStatus.CANCELLED:
        sys.exit(EXIT_CANCELLED)
    if run.error is not None:
        console.print(f"[red]{run.error}[/red]")
    sys.exit(EXIT_FAILED)


@cli.command()
@click.argument("config_path", type=click.Path(exists=True))
def status(config_path: str):
    """Show the active target, selection and product settings."""
    config, host = _load(config_path)
    _, store = _refreshed_selection(host)

    active = host.active_target()
    console.print(f"[bold]{config.product_name}[/bold]")
    console.print(f"  Active target: {active.value} ({group_of(active).value})")
    console.print(f"  Scenes: {len(config.scenes)}")
    for scene in config.scenes:
        console.print(f"    • {scene}")
    selected = store.selected()
    console.print(f"  Selected: {', '.join(t.value for t in selected) if selected else '(none)'}")
    console.print(f"  Backend: {config.backend.name}")


def main(argv=None):
    """Main entry point."""
    cli(argv)


if __name__ == "__main__":
    main()
