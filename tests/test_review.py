"""Tests for the review UI module."""

import io
from pathlib import Path

import pytest
from PIL import Image
from rich.console import Console

from photo_sorter.core.animator import REST_POSE, Pose
from photo_sorter.core.engine import IDLE, Direction, Phase, PhaseKind, ReviewSnapshot
from photo_sorter.core.item import Item, PhotoInfo
from photo_sorter.errors import CommitFailure, ErrorKind, LoadFailure
from photo_sorter.ui.review import PhotoMetadata, ReviewUI, format_file_size


def make_photo(path: Path, size=(800, 600)) -> Item:
    img = Image.new("RGB", size, color="red")
    img.save(path, "JPEG")
    return Item.from_photo(PhotoInfo(name=path.name, path=path, size=path.stat().st_size))


def make_snapshot(**overrides) -> ReviewSnapshot:
    values = dict(
        current_item=None,
        deciding_item=None,
        upcoming=(),
        phase=IDLE,
        position=0,
        total=0,
        pose=REST_POSE,
        exhausted=True,
    )
    values.update(overrides)
    return ReviewSnapshot(**values)


def render_text(ui: ReviewUI, snapshot: ReviewSnapshot) -> str:
    ui.console.print(ui.render(snapshot))
    return ui.console.export_text()


@pytest.fixture
def ui():
    console = Console(file=io.StringIO(), width=100, record=True, color_system=None)
    return ReviewUI(console)


class TestPhotoMetadata:
    """Test PhotoMetadata class."""

    def test_metadata_from_image(self, tmp_path):
        """Test metadata extraction from an actual image."""
        image_path = tmp_path / "test.jpg"
        img = Image.new("RGB", (800, 600), color="red")
        img.save(image_path, "JPEG")

        metadata = PhotoMetadata(image_path)

        assert metadata.path == image_path
        assert metadata.width == 800
        assert metadata.height == 600
        assert metadata.resolution == "800x600"
        assert metadata.megapixels == pytest.approx(0.48, abs=0.01)
        assert metadata.size_bytes > 0
        assert metadata.format == "JPEG"
        assert metadata.modified is not None

    def test_metadata_from_unreadable_file(self, tmp_path):
        """A file Pillow cannot open still yields size, without resolution."""
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"not an image")

        metadata = PhotoMetadata(path)

        assert metadata.size_bytes == len(b"not an image")
        assert metadata.resolution is None
        assert metadata.megapixels is None


def test_format_file_size():
    assert format_file_size(0) == "0.0 B"
    assert format_file_size(1023) == "1023.0 B"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(5 * 1024 * 1024) == "5.0 MB"
    assert format_file_size(3 * 1024 ** 4) == "3072.0 GB"


class TestReviewUI:
    """Test ReviewUI rendering."""

    def test_review_ui_initialization(self):
        ui = ReviewUI()
        assert ui.console is not None

    def test_renders_active_card_and_stack(self, ui, tmp_path):
        first = make_photo(tmp_path / "first.jpg")
        second = make_photo(tmp_path / "second.jpg", size=(640, 480))
        snapshot = make_snapshot(
            current_item=first,
            upcoming=(second,),
            position=0,
            total=2,
            exhausted=False,
            destination=tmp_path,
        )

        text = render_text(ui, snapshot)

        assert "first.jpg" in text
        assert "800x600" in text
        assert "second.jpg" in text
        assert "1/2" in text
        assert "No more photos" not in text

    def test_metadata_is_cached(self, ui, tmp_path):
        item = make_photo(tmp_path / "a.jpg")
        assert ui.metadata_for(item) is ui.metadata_for(item)
        assert ui.metadata_for(Item(key="plain")) is None

    def test_renders_flying_card(self, ui, tmp_path):
        """During a transition the decided card is drawn at its pose."""
        item = make_photo(tmp_path / "moving.jpg")
        snapshot = make_snapshot(
            current_item=item,
            deciding_item=item,
            phase=Phase(PhaseKind.TRANSITIONING, Direction.FORWARD),
            pose=Pose(x=30.0, rotation=20.0, scale=0.9),
            total=1,
            exhausted=False,
        )

        text = render_text(ui, snapshot)

        assert "moving.jpg ↗" in text

    def test_renders_exhausted(self, ui):
        text = render_text(ui, make_snapshot(position=2, total=2, committed=1, discarded=1))

        assert "No more photos to sort!" in text
        assert "Press any key to exit." in text

    def test_renders_last_copy_in_progress(self, ui, tmp_path):
        item = make_photo(tmp_path / "last.jpg")
        snapshot = make_snapshot(
            deciding_item=item,
            phase=Phase(PhaseKind.COMMITTING, Direction.FORWARD),
            position=1,
            total=1,
        )

        assert "Finishing last copy..." in render_text(ui, snapshot)

    def test_renders_errors(self, ui):
        snapshot = make_snapshot(
            last_error=CommitFailure(ErrorKind.DISK_FULL, "No space left on device"),
            load_error=LoadFailure(ErrorKind.NOT_FOUND, "Directory not found: /x"),
        )

        text = render_text(ui, snapshot)

        assert "Copy failed: DiskFull: No space left on device" in text
        assert "Failed to load photos: NotFound: Directory not found: /x" in text

    def test_show_summary(self, ui, tmp_path):
        snapshot = make_snapshot(position=3, total=3, committed=2, discarded=1, destination=tmp_path)

        ui.show_summary(snapshot)
        text = ui.console.export_text()

        assert "Review Summary" in text
        assert "3/3" in text
        assert "Saved" in text

    def test_summary_shows_failed_copies(self, ui):
        snapshot = make_snapshot(position=2, total=2, committed=1, failed=1)

        ui.show_summary(snapshot)
        text = ui.console.export_text()

        assert "Failed copies" in text

    def test_summary_hides_failed_row_when_none_failed(self, ui):
        ui.show_summary(make_snapshot(position=1, total=1, committed=1))
        assert "Failed copies" not in ui.console.export_text()
