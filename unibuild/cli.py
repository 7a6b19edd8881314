"""Thin CLI wrapper for unibuild.

This module provides the command-line interface using Typer.
All business logic is delegated to the Builder service.
"""

import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from unibuild import __version__
from unibuild.assets.asset import ConfigurationError
from unibuild.builds.models import BuildSummary, CheckSummary
from unibuild.builds.service import Builder, CleanError, ReleaseError
from unibuild.commands import CommandError
from unibuild.config import get_settings, print_settings_json
from unibuild.project.io import ProjectFileNotFoundError, ProjectLoadError, load_project
from unibuild.types import BuildOptions

app = typer.Typer(
    name="unibuild",
    help="unibuild - the simplest build tool in the universe",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"unibuild version {__version__}")
        raise typer.Exit()


def setup_logging(level: str) -> None:
    """Route log records through Rich at the given level."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    directory: Annotated[
        Path | None,
        typer.Option(
            "--directory",
            "-C",
            help="Run as if started in this directory",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", "-l", help="Logging level (overrides settings)"),
    ] = None,
) -> None:
    """unibuild - build assets, run linters and testers, and release."""
    if directory is not None:
        try:
            os.chdir(directory)
        except OSError as e:
            err_console.print(f"[red]Error: cannot change to {directory}: {e.strerror}[/red]")
            raise typer.Exit(code=1) from None

    settings = get_settings()
    setup_logging((log_level or settings.log_level).upper())
    ctx.obj = {"settings": settings}


def _get_builder(ctx: typer.Context) -> Builder:
    """Load the project and create a Builder, exiting on load errors."""
    obj = ctx.obj or {}
    settings = obj.get("settings") or get_settings()
    try:
        project = load_project(filenames=settings.project_files)
    except (ProjectFileNotFoundError, ProjectLoadError, ConfigurationError) as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None
    return Builder(project, settings=settings)


def _print_build_summary(summary: BuildSummary) -> None:
    if summary.dry_run:
        if not summary.stages:
            console.print("[green]Nothing to build[/green]")
            return
        console.print(f"[bold]Would build {summary.total} asset(s):[/bold]")
        for index, stage in enumerate(summary.stages):
            console.print(f"  Stage {index + 1}: {', '.join(stage)}")
        return

    if not summary.stages:
        console.print("[green]Everything is up to date[/green]")
        return

    console.print()
    console.print("[bold]Build Results:[/bold]")
    console.print(f"  Total assets: {summary.total}")
    console.print(f"  [green]Succeeded: {summary.succeeded}[/green]")
    if summary.failed > 0:
        console.print(f"  [red]Failed: {summary.failed}[/red]")
        for r in summary.failures():
            console.print(f"    - {r.name}: {r.error_message}")


def _print_check_summary(summary: CheckSummary) -> None:
    label = "Linter" if summary.kind.value == "lint" else "Tester"
    for r in summary.results:
        if r.success:
            console.print(f"  [green]✓ {label} {r.name}[/green]")
        else:
            console.print(f"  [red]✗ {label} {r.name}[/red]")
            if r.error_message:
                console.print(f"      Error: {r.error_message}")


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        typer.echo(print_settings_json(settings))
    else:
        timeout_display = (
            str(settings.command_timeout) if settings.command_timeout else "(none)"
        )
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Project:[/bold]")
        console.print(f"  Project files:       {', '.join(settings.project_files)}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Log level:           {settings.log_level}")
        console.print(f"  Parallel builds:     {settings.parallel}")
        console.print(f"  Max workers:         {settings.max_workers}")
        console.print()
        console.print("[bold]Commands:[/bold]")
        console.print(f"  Shell:               {settings.shell or '(system default)'}")
        console.print(f"  Command timeout:     {timeout_display}")
        console.print(f"  Fail on stderr:      {settings.fail_on_stderr}")
        console.print()
        console.print("[bold]Release:[/bold]")
        console.print(f"  Bump command:        {settings.bump_command}")
        console.print(f"  Push command:        {settings.push_command}")
        console.print(f"  Publish command:     {settings.publish_command}")


@app.command()
def build(
    ctx: typer.Context,
    assets: Annotated[
        list[str] | None,
        typer.Argument(help="Asset(s) to build (all assets if omitted)"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Rebuild even if outputs are up to date"),
    ] = False,
    release: Annotated[
        bool,
        typer.Option("--release", "-r", help="Build for release"),
    ] = False,
    parallel: Annotated[
        bool | None,
        typer.Option(
            "--parallel/--sequential",
            "-p/-s",
            help="Build the assets of a stage concurrently",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show the build stages without building"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Build assets and their outdated dependencies."""
    builder = _get_builder(ctx)
    if parallel is None:
        parallel = builder.settings.parallel
    options = BuildOptions(force=force, release=release, parallel=parallel)

    try:
        summary = builder.build(assets or [], options, dry_run=dry_run)
    except ConfigurationError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        typer.echo(summary.model_dump_json(indent=2))
    else:
        _print_build_summary(summary)

    if not summary.success:
        raise typer.Exit(code=1)


@app.command()
def lint(
    ctx: typer.Context,
    fix: Annotated[
        bool,
        typer.Option("--fix", "-f", help="Run autofix commands where available"),
    ] = False,
) -> None:
    """Run the configured linters."""
    builder = _get_builder(ctx)
    try:
        summary = builder.lint(fix=fix)
    except ConfigurationError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None

    _print_check_summary(summary)
    if not summary.success:
        raise typer.Exit(code=1)


@app.command()
def test(ctx: typer.Context) -> None:
    """Run the configured testers."""
    builder = _get_builder(ctx)
    try:
        summary = builder.test()
    except ConfigurationError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None

    _print_check_summary(summary)
    if not summary.success:
        raise typer.Exit(code=1)


@app.command()
def clean(
    ctx: typer.Context,
    assets: Annotated[
        list[str] | None,
        typer.Argument(help="Asset(s) to clean (all assets if omitted)"),
    ] = None,
) -> None:
    """Remove built asset outputs."""
    builder = _get_builder(ctx)
    try:
        removed = builder.clean(assets or [])
    except (ConfigurationError, CleanError) as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None

    if removed:
        console.print(f"[green]Removed {len(removed)} output(s):[/green]")
        for name in removed:
            console.print(f"  - {name}")
    else:
        console.print("[yellow]Nothing to clean[/yellow]")


@app.command()
def ci(ctx: typer.Context) -> None:
    """Build, lint, test, and build for release."""
    builder = _get_builder(ctx)
    try:
        success = builder.ci()
    except ConfigurationError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None

    if success:
        console.print("[green]CI passed[/green]")
    else:
        console.print("[red]CI failed[/red]")
        raise typer.Exit(code=1)


@app.command()
def bump(
    ctx: typer.Context,
    version: Annotated[str, typer.Argument(help="New version (or major/minor/patch)")],
) -> None:
    """Bump the project version."""
    builder = _get_builder(ctx)
    try:
        builder.bump(version)
    except CommandError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None
    console.print(f"[green]Bumped version to {version}[/green]")


@app.command()
def publish(ctx: typer.Context) -> None:
    """Publish the package."""
    builder = _get_builder(ctx)
    try:
        builder.publish()
    except CommandError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None
    console.print("[green]Published[/green]")


@app.command("release")
def release_cmd(
    ctx: typer.Context,
    version: Annotated[str, typer.Argument(help="New version (or major/minor/patch)")],
) -> None:
    """Bump the version, build for release, push, and publish."""
    builder = _get_builder(ctx)
    try:
        builder.release(version)
    except (ConfigurationError, CommandError, ReleaseError) as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None
    console.print(f"[green]Released {version}[/green]")


if __name__ == "__main__":
    app()
