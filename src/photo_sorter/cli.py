"""Command-line interface for photo-sorter."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.table import Table

from photo_sorter import __version__
from photo_sorter.core.animator import TransitionAnimator, fly_out_pose
from photo_sorter.core.copier import PhotoCopier
from photo_sorter.core.engine import Direction, ReviewEngine, ReviewSnapshot
from photo_sorter.core.scanner import PhotoSource
from photo_sorter.errors import LoadFailure
from photo_sorter.ui.app import ReviewApp
from photo_sorter.ui.input import KeyMap
from photo_sorter.ui.review import ReviewUI, format_file_size
from photo_sorter.utils.config import Config
from photo_sorter.utils.logger import set_level, setup_logger

console = Console()
logger = setup_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="photo-sorter")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ~/.photo-sorter/config.json)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_file: Optional[Path]) -> None:
    """
    Photo Sorter - step through a folder of photos and keep the ones you want.

    Each photo is shown as a card: save it (→ or D) to copy it into the
    destination folder, or discard it (← or A) to move on.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_file"] = config_file

    if verbose:
        set_level(logging.DEBUG)


def _load_config(ctx: click.Context) -> Config:
    return Config(ctx.obj.get("config_file"))


@cli.command()
@click.option(
    "--source",
    "-s",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Directory with the photos to review",
)
@click.option(
    "--dest",
    "-d",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    help="Directory saved photos are copied to (default: last one used)",
)
@click.option(
    "--recursive/--no-recursive",
    "-r/-R",
    default=None,
    help="Include photos in subdirectories (default: from config)",
)
@click.pass_context
def sort(
    ctx: click.Context,
    source: Path,
    dest: Optional[Path],
    recursive: Optional[bool],
) -> None:
    """
    Review the photos of a directory one at a time.

    Example:
        photo-sorter sort --source ~/Pictures/import --dest ~/Pictures/keep
    """
    config = _load_config(ctx)

    destination = dest or config.get_destination()
    if destination is None:
        console.print("[red]✗ No destination directory given.[/red] Use --dest.")
        sys.exit(1)
    if not destination.is_dir():
        console.print(f"[red]✗ Destination directory not found:[/red] {destination}")
        sys.exit(1)
    config.remember_destination(destination)

    # Log lines would tear the live screen
    if not ctx.obj.get("verbose"):
        set_level(logging.WARNING)

    snapshot = asyncio.run(_run_review(config, source, destination, recursive))
    if snapshot is None:
        sys.exit(1)


async def _run_review(
    config: Config,
    source_dir: Path,
    destination: Path,
    recursive: Optional[bool] = None,
) -> Optional[ReviewSnapshot]:
    """Load the source directory (offering retries) and run the review app."""
    source = PhotoSource(config)
    if recursive is not None:
        source.recursive = recursive

    # Cards fly out by one screen width
    engine = ReviewEngine(
        executor=PhotoCopier(config),
        destination=destination,
        animator=TransitionAnimator.from_config(config),
        targets={
            Direction.FORWARD: fly_out_pose(console.width, 1),
            Direction.BACKWARD: fly_out_pose(console.width, -1),
        },
        source=source,
        stack_depth=int(config.get("display.stack_depth", 3)),
    )

    while not await engine.load_directory(source_dir):
        console.print(f"[red]✗ Failed to load photos:[/red] {engine.load_error}")
        if not click.confirm("Retry?", default=True):
            return None

    if engine.is_exhausted():
        console.print("[yellow]No photos found in the selected directory.[/yellow]")
        return engine.snapshot()

    ui = ReviewUI(console)
    app = ReviewApp(engine, ui, KeyMap.from_config(config))
    snapshot = await app.run()
    ui.show_summary(snapshot)
    return snapshot


@cli.command()
@click.option(
    "--source",
    "-s",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Directory to list photos from",
)
@click.option(
    "--recursive/--no-recursive",
    "-r/-R",
    default=None,
    help="Include photos in subdirectories (default: from config)",
)
@click.option(
    "--show-progress/--no-progress",
    default=False,
    help="Show progress bars",
)
@click.pass_context
def scan(
    ctx: click.Context,
    source: Path,
    recursive: Optional[bool],
    show_progress: bool,
) -> None:
    """
    List the photos a review of SOURCE would go through, in review order.
    """
    config = _load_config(ctx)
    photo_source = PhotoSource(config, show_progress=show_progress)
    if recursive is not None:
        photo_source.recursive = recursive

    try:
        items = photo_source.list_items(source)
    except LoadFailure as e:
        console.print(f"[red]✗ Failed to load photos:[/red] {e}")
        sys.exit(1)

    if not items:
        console.print("[yellow]No photos found in the selected directory.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Photo")
    table.add_column("Size", justify="right")

    for index, item in enumerate(items, 1):
        table.add_row(str(index), item.payload.name, format_file_size(item.payload.size))

    console.print(table)
    total = sum(item.payload.size for item in items)
    console.print(
        f"\n[green]Photos found:[/green] {len(items)} ({format_file_size(total)})"
    )


@cli.group(name="config")
def config_group() -> None:
    """Read or change settings."""


@config_group.command(name="get")
@click.argument("key")
@click.pass_context
def config_get(ctx: click.Context, key: str) -> None:
    """Print the value of KEY (dot notation, e.g. animation.tension)."""
    config = _load_config(ctx)
    value = config.get(key)
    if value is None:
        console.print(f"[yellow]{key} is not set[/yellow]")
        sys.exit(1)
    click.echo(json.dumps(value))


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set KEY to VALUE (parsed as JSON when possible, else a string)."""
    config = _load_config(ctx)
    config.set(key, _parse_value(value))
    console.print(f"[green]✓ {key} = {json.dumps(config.get(key))}[/green]")


def _parse_value(value: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def main() -> None:
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
