"""Tests for the photo copier (commit side effect)."""

import errno
import json
import shutil

import pytest

from photo_sorter.core.copier import PhotoCopier
from photo_sorter.core.item import Item, PhotoInfo
from photo_sorter.errors import CommitFailure, ErrorKind
from photo_sorter.utils.config import Config


@pytest.fixture
def config(tmp_path):
    return Config(tmp_path / "settings" / "config.json")


@pytest.fixture
def photo_item(tmp_path):
    source_dir = tmp_path / "source"
    source_dir.mkdir()
    path = source_dir / "beach.jpg"
    path.write_bytes(b"jpeg-bytes")
    return Item.from_photo(PhotoInfo(name=path.name, path=path, size=path.stat().st_size))


@pytest.fixture
def destination(tmp_path):
    dest = tmp_path / "keep"
    dest.mkdir()
    return dest


class TestPhotoCopier:
    """Test PhotoCopier class."""

    @pytest.mark.asyncio
    async def test_copies_photo(self, config, photo_item, destination):
        copier = PhotoCopier(config)

        copied = await copier.commit(photo_item, destination)

        assert copied == destination / "beach.jpg"
        assert copied.read_bytes() == b"jpeg-bytes"
        # Source is left in place
        assert photo_item.payload.path.exists()

    @pytest.mark.asyncio
    async def test_name_conflict_gets_suffix(self, config, photo_item, destination):
        (destination / "beach.jpg").write_bytes(b"other")
        (destination / "beach_1.jpg").write_bytes(b"other")

        copied = await PhotoCopier(config).commit(photo_item, destination)

        assert copied == destination / "beach_2.jpg"
        assert (destination / "beach.jpg").read_bytes() == b"other"

    @pytest.mark.asyncio
    async def test_overwrite_when_configured(self, config, photo_item, destination):
        config.set("copy.overwrite", True)
        (destination / "beach.jpg").write_bytes(b"other")

        copied = await PhotoCopier(config).commit(photo_item, destination)

        assert copied == destination / "beach.jpg"
        assert copied.read_bytes() == b"jpeg-bytes"

    @pytest.mark.asyncio
    async def test_missing_destination(self, config, photo_item, tmp_path):
        with pytest.raises(CommitFailure) as exc_info:
            await PhotoCopier(config).commit(photo_item, tmp_path / "nowhere")

        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_disk_full(self, config, photo_item, destination, monkeypatch):
        def full(src, dst):
            raise OSError(errno.ENOSPC, "No space left on device")

        monkeypatch.setattr(shutil, "copy2", full)

        with pytest.raises(CommitFailure) as exc_info:
            await PhotoCopier(config).commit(photo_item, destination)

        assert exc_info.value.kind is ErrorKind.DISK_FULL

    @pytest.mark.asyncio
    async def test_permission_denied(self, config, photo_item, destination, monkeypatch):
        def denied(src, dst):
            raise PermissionError(errno.EACCES, "Permission denied")

        monkeypatch.setattr(shutil, "copy2", denied)

        with pytest.raises(CommitFailure) as exc_info:
            await PhotoCopier(config).commit(photo_item, destination)

        assert exc_info.value.kind is ErrorKind.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_item_without_photo(self, config, destination):
        with pytest.raises(CommitFailure) as exc_info:
            await PhotoCopier(config).commit(Item(key="x", payload=None), destination)

        assert exc_info.value.kind is ErrorKind.IO_ERROR

    @pytest.mark.asyncio
    async def test_callable_as_executor(self, photo_item, destination):
        copier = PhotoCopier()
        copied = await copier(photo_item, destination)
        assert copied.exists()


class TestOperationsLog:
    """Every commit attempt is appended to the operations log."""

    @pytest.mark.asyncio
    async def test_success_and_failure_logged(self, config, photo_item, destination, tmp_path):
        copier = PhotoCopier(config)

        await copier.commit(photo_item, destination)
        with pytest.raises(CommitFailure):
            await copier.commit(photo_item, tmp_path / "nowhere")

        lines = config.get_operations_log().read_text(encoding="utf-8").splitlines()
        entries = [json.loads(line) for line in lines]

        assert [e["status"] for e in entries] == ["copied", "failed"]
        assert entries[0]["source"] == photo_item.key
        assert entries[0]["destination"] == str(destination / "beach.jpg")
        assert entries[0]["error"] is None
        assert entries[1]["error"] == "NotFound"

    @pytest.mark.asyncio
    async def test_explicit_log_path(self, photo_item, destination, tmp_path):
        log_path = tmp_path / "logs" / "ops.log"

        await PhotoCopier(operations_log=log_path).commit(photo_item, destination)

        assert len(log_path.read_text(encoding="utf-8").splitlines()) == 1

    @pytest.mark.asyncio
    async def test_no_log_without_config(self, photo_item, destination):
        copier = PhotoCopier()
        assert copier.operations_log is None
        await copier.commit(photo_item, destination)
