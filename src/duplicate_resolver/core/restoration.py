"""Safe deletion of redundant copies, with restoration from the kept file."""

import logging
import os
import shutil
import stat
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError
from send2trash import send2trash

from .exceptions import (
    RestorableRecordNotFoundError,
    RestorationOriginalMissingError,
    RestorationTargetOccupiedError,
)
from .models import FileAttributes, FileRecord, RestorableRecord

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(list[RestorableRecord])


class RestorationStore(Protocol):
    """Durable home for pending restorable records."""

    def load(self) -> list[RestorableRecord]:
        ...

    def save(self, records: list[RestorableRecord]) -> None:
        ...

    def clear(self) -> None:
        ...


class InMemoryRestorationStore:
    """Keeps records for the lifetime of the object only."""

    def __init__(self, records: list[RestorableRecord] | None = None):
        self._records = list(records or [])

    def load(self) -> list[RestorableRecord]:
        return list(self._records)

    def save(self, records: list[RestorableRecord]) -> None:
        self._records = list(records)

    def clear(self) -> None:
        self._records = []


class JsonRestorationStore:
    """Persists records as a JSON list in an application-local file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[RestorableRecord]:
        if not self.path.exists():
            return []

        try:
            return _records_adapter.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable restoration history at {self.path}: {e}")
            return []

    def save(self, records: list[RestorableRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = _records_adapter.dump_json(records, by_alias=True, indent=2)

        # Write beside the target and swap in, so a crash never leaves half a file
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def capture_file_attributes(path: Path) -> FileAttributes:
    """
    Read the metadata needed to recreate a file later.

    Capture is best-effort: an unreadable file yields empty attributes
    rather than an error.
    """
    try:
        st = os.stat(path)
    except OSError as e:
        logger.warning(f"Could not capture metadata for {path}: {e}")
        return FileAttributes()

    birthtime = getattr(st, "st_birthtime", None)
    return FileAttributes(
        creation_date=datetime.fromtimestamp(birthtime) if birthtime else None,
        modification_date=datetime.fromtimestamp(st.st_mtime),
        permissions=stat.S_IMODE(st.st_mode),
        owner_id=getattr(st, "st_uid", None),
        group_id=getattr(st, "st_gid", None),
    )


def apply_file_attributes(path: Path, attributes: FileAttributes) -> None:
    """Reapply captured metadata field by field, logging whatever can't be set."""
    if attributes.owner_id is not None or attributes.group_id is not None:
        if hasattr(os, "chown"):
            try:
                os.chown(
                    path,
                    attributes.owner_id if attributes.owner_id is not None else -1,
                    attributes.group_id if attributes.group_id is not None else -1,
                )
            except OSError as e:
                logger.debug(f"Could not restore ownership of {path}: {e}")

    if attributes.permissions is not None:
        try:
            os.chmod(path, attributes.permissions)
        except OSError as e:
            logger.warning(f"Could not restore permissions of {path}: {e}")

    if attributes.modification_date is not None:
        try:
            st = os.stat(path)
            os.utime(path, (st.st_atime, attributes.modification_date.timestamp()))
        except OSError as e:
            logger.warning(f"Could not restore modification time of {path}: {e}")

    if attributes.creation_date is not None:
        # No portable way to set a creation time
        logger.debug(f"Creation date of {path} left as restored")


class SafeResolutionManager:
    """
    Deletes redundant copies and remembers enough to recreate them.

    A deleted file is restored by copying the file that was kept back to
    the deleted path. For exact duplicates that reproduces the original bytes;
    for near-duplicates it yields the kept file's content instead.
    """

    def __init__(self, store: RestorationStore, use_trash: bool = False):
        """
        Initialize the manager and load pending records.

        Args:
            store: Where pending records are persisted
            use_trash: Move files to the system trash instead of unlinking them
        """
        self.store = store
        self.use_trash = use_trash
        self._lock = threading.RLock()
        self._records: list[RestorableRecord] = store.load()
        logger.debug(f"Loaded {len(self._records)} pending restorable records")

    @property
    def pending_records(self) -> list[RestorableRecord]:
        with self._lock:
            return list(self._records)

    def get_record(self, record_id: str) -> RestorableRecord | None:
        with self._lock:
            return next((r for r in self._records if r.id == record_id), None)

    def delete_safely(
        self,
        files_to_remove: list[FileRecord],
        kept_file: FileRecord,
        cancel_event: threading.Event | None = None,
    ) -> list[RestorableRecord]:
        """
        Remove redundant files, recording how to restore each one.

        Args:
            files_to_remove: Copies to delete
            kept_file: The copy that stays; becomes the restoration source
            cancel_event: When set, stops the batch before the next file

        Returns:
            Records for the files that were actually removed

        Raises:
            ValueError: If the kept file is also listed for removal
            OSError: If removing a file fails; records for earlier files are kept
        """
        kept_path = kept_file.file_path
        if any(f.id == kept_file.id or f.file_path == kept_path for f in files_to_remove):
            raise ValueError("The kept file cannot also be removed")

        created: list[RestorableRecord] = []
        with self._lock:
            try:
                for file in files_to_remove:
                    if cancel_event is not None and cancel_event.is_set():
                        logger.info(f"Safe deletion cancelled after {len(created)} files")
                        break

                    record = self._delete_one(file.file_path, kept_path)
                    if record is not None:
                        self._records.append(record)
                        created.append(record)
            finally:
                if created:
                    self.store.save(self._records)

        logger.info(f"Safely deleted {len(created)} files, keeping {kept_file.filename}")
        return created

    def _delete_one(self, path: Path, kept_path: Path) -> RestorableRecord | None:
        if not path.exists():
            logger.warning(f"Skipping {path}: file no longer exists")
            return None

        metadata = capture_file_attributes(path)

        if self.use_trash:
            send2trash(str(path))
            logger.debug(f"Moved to trash: {path}")
        else:
            path.unlink()
            logger.debug(f"Deleted: {path}")

        return RestorableRecord(original_path=kept_path, deleted_path=path, metadata=metadata)

    def restore(self, record: RestorableRecord) -> None:
        """
        Recreate a deleted file from the kept copy.

        Args:
            record: Pending record returned by delete_safely

        Raises:
            RestorableRecordNotFoundError: If the record is not pending
            RestorationOriginalMissingError: If the kept copy is gone
            RestorationTargetOccupiedError: If something exists at the deleted path
        """
        with self._lock:
            if not any(r.id == record.id for r in self._records):
                raise RestorableRecordNotFoundError(record.id)

            if not record.original_path.is_file():
                raise RestorationOriginalMissingError(record.original_path)

            target = record.deleted_path
            if target.exists() or target.is_symlink():
                raise RestorationTargetOccupiedError(target)

            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                shutil.copyfile(record.original_path, target)
            except OSError:
                target.unlink(missing_ok=True)
                raise

            apply_file_attributes(target, record.metadata)

            remaining = [r for r in self._records if r.id != record.id]
            try:
                self.store.save(remaining)
            except Exception:
                # Record stays pending, so the target must be free again
                target.unlink(missing_ok=True)
                raise
            self._records = remaining

        logger.info(f"Restored {target} from {record.original_path}")

    def restore_by_id(self, record_id: str) -> RestorableRecord:
        """Restore the pending record with the given id and return it."""
        record = self.get_record(record_id)
        if record is None:
            raise RestorableRecordNotFoundError(record_id)
        self.restore(record)
        return record

    def clear_all_data(self) -> None:
        """Forget every pending record. Files on disk are left alone."""
        with self._lock:
            self._records = []
            self.store.clear()
        logger.info("Cleared restoration history")
