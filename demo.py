"""
End-to-end demo script to showcase a review session without a keyboard.

Creates sample photos, then saves and discards them through the review
engine, printing each state change. The destination directory ends up with
exactly the saved photos.
"""

import asyncio
from pathlib import Path
from tempfile import TemporaryDirectory

from PIL import Image
from rich.console import Console

from photo_sorter.core.animator import TransitionAnimator
from photo_sorter.core.copier import PhotoCopier
from photo_sorter.core.engine import Direction, ReviewEngine, ReviewSnapshot
from photo_sorter.core.scanner import PhotoSource

console = Console()


def create_demo_photos(demo_dir: Path) -> None:
    """
    Create sample photos for demonstration.

    Args:
        demo_dir: Directory to create photos in
    """
    console.print(f"Creating demo photos in: {demo_dir}")

    samples = [
        ("01_landscape.jpg", (1920, 1080), (70, 130, 180)),
        ("02_portrait.jpg", (800, 1200), (220, 20, 60)),
        ("03_small.png", (640, 480), (50, 205, 50)),
        ("04_square.jpg", (1024, 1024), (255, 215, 0)),
    ]
    for name, size, color in samples:
        Image.new("RGB", size, color=color).save(demo_dir / name)


_last_printed = {}


def print_change(snapshot: ReviewSnapshot) -> None:
    """Print phase changes (animation frames are skipped)."""
    key = (snapshot.phase, snapshot.position)
    if _last_printed.get("key") == key:
        return
    _last_printed["key"] = key

    item = snapshot.deciding_item or snapshot.current_item
    name = item.payload.name if item is not None else "-"
    line = f"  [{snapshot.position}/{snapshot.total}] {str(snapshot.phase):<24} {name}"
    if snapshot.last_error is not None:
        line += f"  [red]{snapshot.last_error}[/red]"
    console.print(line)


async def run_demo(source_dir: Path, dest_dir: Path) -> None:
    engine = ReviewEngine(
        executor=PhotoCopier(),
        destination=dest_dir,
        animator=TransitionAnimator(),
        source=PhotoSource(),
        frame_delay=0.005,
    )
    engine.add_listener(print_change)

    await engine.load_directory(source_dir)

    decisions = [
        Direction.BACKWARD,  # nothing before the first photo: ignored
        Direction.FORWARD,
        Direction.BACKWARD,
        Direction.FORWARD,
        Direction.BACKWARD,
        Direction.FORWARD,  # queue exhausted: ignored
    ]
    for direction in decisions:
        accepted = engine.submit_intent(direction)
        if not accepted:
            console.print(f"  [dim]{direction.value} ignored[/dim]")
            continue
        if direction is Direction.FORWARD and not engine.is_exhausted():
            # Simulate a double press while the card is still flying
            if not engine.submit_intent(Direction.FORWARD):
                console.print("  [dim]second press ignored while in flight[/dim]")
        await engine.wait_settled()


def main() -> None:
    console.print("\n[bold cyan]Photo Sorter demo[/bold cyan]\n")

    with TemporaryDirectory() as tmp:
        source_dir = Path(tmp) / "import"
        dest_dir = Path(tmp) / "keep"
        source_dir.mkdir()
        dest_dir.mkdir()

        create_demo_photos(source_dir)
        console.print()
        asyncio.run(run_demo(source_dir, dest_dir))

        saved = sorted(p.name for p in dest_dir.iterdir())
        console.print(f"\n[green]Saved to destination:[/green] {', '.join(saved)}")


if __name__ == "__main__":
    main()
