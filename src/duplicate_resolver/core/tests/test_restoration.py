"""Tests for safe deletion and restoration."""

import json
import os
import stat
import threading
from pathlib import Path

import pytest

from ..exceptions import (
    RestorableRecordNotFoundError,
    RestorationOriginalMissingError,
    RestorationTargetOccupiedError,
)
from ..models import FileRecord, RestorableRecord
from ..restoration import (
    InMemoryRestorationStore,
    JsonRestorationStore,
    SafeResolutionManager,
    capture_file_attributes,
)


def create_file(path: Path, content: bytes = b"duplicate bytes") -> FileRecord:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return FileRecord(file_path=path, size_bytes=len(content))


class TestSafeResolutionManager:
    """Test cases for SafeResolutionManager."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.store = InMemoryRestorationStore()
        self.manager = SafeResolutionManager(self.store)

    def test_delete_and_restore(self, tmp_path: Path) -> None:
        """Test that restoring recreates the deleted path with the kept content."""
        kept = create_file(tmp_path / "keep" / "photo.jpg")
        copy = create_file(tmp_path / "copies" / "photo (1).jpg")

        records = self.manager.delete_safely([copy], kept)

        assert not copy.file_path.exists()
        assert len(records) == 1
        assert records[0].original_path == kept.file_path
        assert records[0].deleted_path == copy.file_path
        assert self.manager.pending_records == records

        self.manager.restore(records[0])

        assert copy.file_path.read_bytes() == kept.file_path.read_bytes()
        assert kept.file_path.exists()
        assert self.manager.pending_records == []
        assert self.store.load() == []

    def test_restore_rolled_back_when_history_cannot_be_saved(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a failed history write leaves the target free and the record pending."""
        kept = create_file(tmp_path / "keep" / "photo.jpg")
        copy = create_file(tmp_path / "copies" / "photo.jpg")
        record = self.manager.delete_safely([copy], kept)[0]

        def fail_save(records: list[RestorableRecord]) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(self.store, "save", fail_save)

        with pytest.raises(OSError):
            self.manager.restore(record)

        assert not copy.file_path.exists()
        assert self.manager.pending_records == [record]

        monkeypatch.undo()
        self.manager.restore(record)

        assert copy.file_path.exists()
        assert self.manager.pending_records == []

    def test_restore_twice_fails(self, tmp_path: Path) -> None:
        """Test that a record can only be used once."""
        kept = create_file(tmp_path / "a.jpg")
        copy = create_file(tmp_path / "b.jpg")
        record = self.manager.delete_safely([copy], kept)[0]

        self.manager.restore(record)

        with pytest.raises(RestorableRecordNotFoundError):
            self.manager.restore(record)

    def test_restore_without_kept_copy(self, tmp_path: Path) -> None:
        """Test restoration when the kept file has gone."""
        kept = create_file(tmp_path / "a.jpg")
        copy = create_file(tmp_path / "b.jpg")
        record = self.manager.delete_safely([copy], kept)[0]
        kept.file_path.unlink()

        with pytest.raises(RestorationOriginalMissingError):
            self.manager.restore(record)

        assert not copy.file_path.exists()
        assert self.manager.pending_records == [record]

    def test_restore_onto_existing_file(self, tmp_path: Path) -> None:
        """Test that restoration never overwrites."""
        kept = create_file(tmp_path / "a.jpg", b"kept")
        copy = create_file(tmp_path / "b.jpg", b"kept")
        record = self.manager.delete_safely([copy], kept)[0]
        copy.file_path.write_bytes(b"something new")

        with pytest.raises(RestorationTargetOccupiedError):
            self.manager.restore(record)

        assert copy.file_path.read_bytes() == b"something new"
        assert self.manager.pending_records == [record]

    def test_restore_recreates_missing_directory(self, tmp_path: Path) -> None:
        """Test restoring into a directory that was removed meanwhile."""
        kept = create_file(tmp_path / "a.jpg")
        copy = create_file(tmp_path / "sub" / "b.jpg")
        record = self.manager.delete_safely([copy], kept)[0]
        copy.file_path.parent.rmdir()

        self.manager.restore(record)

        assert copy.file_path.exists()

    def test_restore_reapplies_permissions(self, tmp_path: Path) -> None:
        """Test that captured permissions are restored."""
        kept = create_file(tmp_path / "a.txt")
        copy = create_file(tmp_path / "b.txt")
        os.chmod(copy.file_path, 0o600)
        os.chmod(kept.file_path, 0o644)
        record = self.manager.delete_safely([copy], kept)[0]

        self.manager.restore(record)

        assert stat.S_IMODE(os.stat(copy.file_path).st_mode) == 0o600

    def test_restore_by_id(self, tmp_path: Path) -> None:
        """Test restoring through the record identifier."""
        kept = create_file(tmp_path / "a.jpg")
        copy = create_file(tmp_path / "b.jpg")
        record = self.manager.delete_safely([copy], kept)[0]

        assert self.manager.get_record(record.id) == record
        assert self.manager.restore_by_id(record.id) == record
        assert copy.file_path.exists()

        with pytest.raises(RestorableRecordNotFoundError):
            self.manager.restore_by_id("unknown")

    def test_kept_file_cannot_be_removed(self, tmp_path: Path) -> None:
        """Test that deleting the kept copy is refused."""
        kept = create_file(tmp_path / "a.jpg")

        with pytest.raises(ValueError):
            self.manager.delete_safely([kept], kept)

        assert kept.file_path.exists()

    def test_vanished_file_skipped(self, tmp_path: Path) -> None:
        """Test that files already gone produce no record."""
        kept = create_file(tmp_path / "a.jpg")
        gone = create_file(tmp_path / "b.jpg")
        gone.file_path.unlink()

        assert self.manager.delete_safely([gone], kept) == []
        assert self.manager.pending_records == []

    def test_cancelled_batch_stops_early(self, tmp_path: Path) -> None:
        """Test that a set cancel event stops before the next file."""
        kept = create_file(tmp_path / "a.jpg")
        copies = [create_file(tmp_path / f"copy{i}.jpg") for i in range(3)]
        cancel = threading.Event()
        cancel.set()

        assert self.manager.delete_safely(copies, kept, cancel_event=cancel) == []
        assert all(c.file_path.exists() for c in copies)

    def test_clear_all_data(self, tmp_path: Path) -> None:
        """Test that clearing forgets records but keeps files."""
        kept = create_file(tmp_path / "a.jpg")
        copy = create_file(tmp_path / "b.jpg")
        self.manager.delete_safely([copy], kept)

        self.manager.clear_all_data()

        assert self.manager.pending_records == []
        assert self.store.load() == []
        assert kept.file_path.exists()

    def test_trash_mode_uses_send2trash(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that trash mode hands files to send2trash."""
        trashed = []
        monkeypatch.setattr(
            "duplicate_resolver.core.restoration.send2trash",
            lambda path: (trashed.append(path), Path(path).unlink()),
        )
        manager = SafeResolutionManager(InMemoryRestorationStore(), use_trash=True)
        kept = create_file(tmp_path / "a.jpg")
        copy = create_file(tmp_path / "b.jpg")

        manager.delete_safely([copy], kept)

        assert trashed == [str(copy.file_path)]
        assert not copy.file_path.exists()


class TestJsonRestorationStore:
    """Test cases for the JSON-backed store."""

    def test_records_survive_restart(self, tmp_path: Path) -> None:
        """Test that a new manager sees records made by an earlier one."""
        store_path = tmp_path / "state" / "restorable.json"
        kept = create_file(tmp_path / "a.jpg")
        copy = create_file(tmp_path / "b.jpg")

        first = SafeResolutionManager(JsonRestorationStore(store_path))
        record = first.delete_safely([copy], kept)[0]

        second = SafeResolutionManager(JsonRestorationStore(store_path))
        assert second.pending_records == [record]

        second.restore(record)
        assert SafeResolutionManager(JsonRestorationStore(store_path)).pending_records == []

    def test_stored_with_camel_case_keys(self, tmp_path: Path) -> None:
        """Test the on-disk format."""
        store = JsonRestorationStore(tmp_path / "restorable.json")
        store.save(
            [RestorableRecord(original_path=Path("/kept/a.jpg"), deleted_path=Path("/gone/a.jpg"))]
        )

        data = json.loads((tmp_path / "restorable.json").read_text())

        assert isinstance(data, list)
        assert set(data[0]) == {"id", "originalPath", "deletedPath", "metadata", "deletedAt"}

    def test_missing_file_loads_empty(self, tmp_path: Path) -> None:
        """Test loading before anything was saved."""
        assert JsonRestorationStore(tmp_path / "none.json").load() == []

    def test_corrupt_file_loads_empty(self, tmp_path: Path) -> None:
        """Test that an unreadable history is ignored."""
        path = tmp_path / "restorable.json"
        path.write_text("{not json")

        assert JsonRestorationStore(path).load() == []

    def test_clear_removes_file(self, tmp_path: Path) -> None:
        """Test clearing the store."""
        store = JsonRestorationStore(tmp_path / "restorable.json")
        store.save([])
        store.clear()

        assert not (tmp_path / "restorable.json").exists()
        store.clear()


class TestCaptureFileAttributes:
    """Test cases for metadata capture."""

    def test_captures_permissions_and_mtime(self, tmp_path: Path) -> None:
        """Test capturing basic attributes."""
        path = tmp_path / "a.txt"
        path.write_text("x")
        os.chmod(path, 0o640)

        attributes = capture_file_attributes(path)

        assert attributes.permissions == 0o640
        assert attributes.modification_date is not None

    def test_missing_file_gives_empty_attributes(self, tmp_path: Path) -> None:
        """Test best-effort capture."""
        attributes = capture_file_attributes(tmp_path / "missing")

        assert attributes.permissions is None
        assert attributes.modification_date is None
