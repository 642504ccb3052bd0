"""
Terminal rendering of the review card stack.

Draws the active photo as a card displaced by the animator's pose, the next
few photos stacked underneath, and the engine's progress and errors.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from rich import box
from rich.console import Console, Group, RenderableType
from rich.padding import Padding
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from PIL import Image

from photo_sorter.core.animator import Pose, REST_POSE
from photo_sorter.core.engine import PhaseKind, ReviewSnapshot
from photo_sorter.core.item import Item, PhotoInfo

logger = logging.getLogger(__name__)

CARD_WIDTH = 44
# Upcoming cards fade out with depth
STACK_STYLES = ["grey82", "grey62", "grey46", "grey35"]


def format_file_size(size_bytes: int) -> str:
    """Human readable size: one decimal, B/KB/MB/GB."""
    units = ["B", "KB", "MB", "GB"]
    size = float(size_bytes)
    unit_index = 0

    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1

    return f"{size:.1f} {units[unit_index]}"


class PhotoMetadata:
    """Photo metadata shown on a card."""

    def __init__(self, path: Path):
        """
        Initialize metadata for a photo.

        Args:
            path: Path to the photo file
        """
        self.path = path
        self.size_bytes = path.stat().st_size if path.exists() else 0
        self.modified = datetime.fromtimestamp(path.stat().st_mtime) if path.exists() else None

        self.width: Optional[int] = None
        self.height: Optional[int] = None
        self.format: Optional[str] = None

        try:
            with Image.open(path) as img:
                self.width, self.height = img.size
                self.format = img.format
        except Exception as e:
            logger.debug(f"Could not read image metadata for {path}: {e}")

    @property
    def resolution(self) -> Optional[str]:
        """Resolution as 'WIDTHxHEIGHT' or None."""
        if self.width and self.height:
            return f"{self.width}x{self.height}"
        return None

    @property
    def megapixels(self) -> Optional[float]:
        """Resolution in megapixels."""
        if self.width and self.height:
            return (self.width * self.height) / 1_000_000
        return None


class ReviewUI:
    """Renders engine snapshots with Rich."""

    def __init__(self, console: Optional[Console] = None, key_hint: Optional[str] = None):
        """
        Initialize review UI.

        Args:
            console: Rich console instance (creates new one if None)
            key_hint: Controls line shown under the stack
        """
        self.console = console or Console()
        self.key_hint = key_hint or "[→/D] Save   [←/A] Discard   [Q] Quit"
        self._metadata: Dict[str, PhotoMetadata] = {}

    def metadata_for(self, item: Item) -> Optional[PhotoMetadata]:
        """Metadata of the item's photo, read once per item."""
        photo = item.payload
        if not isinstance(photo, PhotoInfo):
            return None
        if item.key not in self._metadata:
            self._metadata[item.key] = PhotoMetadata(photo.path)
        return self._metadata[item.key]

    def render(self, snapshot: ReviewSnapshot) -> RenderableType:
        """Build the full review screen for a snapshot."""
        parts: List[RenderableType] = [self._header(snapshot)]

        if snapshot.load_error is not None:
            parts.append(Text(f"Failed to load photos: {snapshot.load_error}", style="bold red"))

        # While a card flies out, it is the one being decided and it moves
        flying = snapshot.deciding_item if snapshot.phase.kind is PhaseKind.TRANSITIONING else None
        top = flying or snapshot.current_item

        if top is not None:
            pose = snapshot.pose if flying is not None else REST_POSE
            parts.append(self._card(top, pose))
            for depth, item in enumerate(snapshot.upcoming, 1):
                parts.append(self._stacked(item, depth))
        elif snapshot.exhausted:
            parts.append(Text("No more photos to sort!", style="bold", justify="center"))
            if snapshot.phase.kind is PhaseKind.COMMITTING:
                parts.append(Text("Finishing last copy...", style="dim", justify="center"))
            else:
                parts.append(Text("Press any key to exit.", style="dim", justify="center"))

        if snapshot.last_error is not None:
            parts.append(Text(f"✗ Copy failed: {snapshot.last_error}", style="red"))

        parts.append(Text(self.key_hint, style="dim", justify="center"))
        return Group(*parts)

    def _header(self, snapshot: ReviewSnapshot) -> RenderableType:
        shown = min(snapshot.position + 1, snapshot.total)
        destination = str(snapshot.destination) if snapshot.destination else "(none)"
        header = Text()
        header.append("Photo Sorter", style="bold cyan")
        header.append(f"   {shown}/{snapshot.total}", style="green")
        header.append(f"   saved {snapshot.committed}, discarded {snapshot.discarded}", style="dim")
        header.append(f"\nDestination: {destination}", style="dim")
        return header

    def _card(self, item: Item, pose: Pose) -> RenderableType:
        width = max(12, int(CARD_WIDTH * pose.scale))
        centre = max(0, (self.console.width - width) // 2)
        left = max(0, min(self.console.width - width, centre + int(round(pose.x))))

        body = Table.grid(padding=(0, 1))
        body.add_column(style="cyan")
        body.add_column()

        photo = item.payload if isinstance(item.payload, PhotoInfo) else None
        metadata = self.metadata_for(item)
        if photo is not None:
            body.add_row("Size", format_file_size(photo.size))
        if metadata is not None:
            body.add_row("Resolution", metadata.resolution or "N/A")
            body.add_row(
                "Modified",
                metadata.modified.strftime("%Y-%m-%d") if metadata.modified else "N/A",
            )
        title = photo.name if photo is not None else item.key

        tilt = ""
        if pose.rotation > 5:
            tilt = " ↗"
        elif pose.rotation < -5:
            tilt = " ↖"

        card = Panel(
            body,
            title=Text.assemble((title, "bold"), tilt),
            box=box.ROUNDED,
            width=width,
            border_style="bold white",
        )
        return Padding(card, (0, 0, 0, left))

    def _stacked(self, item: Item, depth: int) -> RenderableType:
        style = STACK_STYLES[min(depth, len(STACK_STYLES)) - 1]
        width = max(12, int(CARD_WIDTH * (1 - depth * 0.05)))
        left = max(0, (self.console.width - width) // 2)
        name = item.payload.name if isinstance(item.payload, PhotoInfo) else item.key
        line = Text(name[: width - 4].center(width - 2), style=style)
        return Padding(Panel(line, box=box.HORIZONTALS, width=width, style=style), (0, 0, 0, left))

    def show_summary(self, snapshot: ReviewSnapshot) -> None:
        """Print the end-of-session summary."""
        summary = Table(title="Review Summary", box=box.ROUNDED)
        summary.add_column("Metric", style="cyan")
        summary.add_column("Value", style="green")

        summary.add_row("Photos reviewed", f"{snapshot.position}/{snapshot.total}")
        summary.add_row("Saved", str(snapshot.committed))
        summary.add_row("Discarded", str(snapshot.discarded))
        if snapshot.failed:
            summary.add_row("Failed copies", f"[red]{snapshot.failed}[/red]")
        if snapshot.destination:
            summary.add_row("Destination", str(snapshot.destination))

        self.console.print(summary)
        if snapshot.last_error is not None:
            self.console.print(f"[red]Last copy failed:[/red] {snapshot.last_error}")
