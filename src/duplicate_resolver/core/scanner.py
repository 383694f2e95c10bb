"""File scanning module for building file records."""

import logging
import time
from collections.abc import Generator
from datetime import datetime
from pathlib import Path
from typing import Protocol

from .models import ApplicationConfig, FileRecord
from .similarity import ImageFingerprinter

logger = logging.getLogger(__name__)


class ProgressCallback(Protocol):
    """Protocol for progress callback functions."""

    def __call__(self, current: int, total: int | None = None, message: str = "") -> None:
        """Called to report progress during scanning."""
        ...


class FileRecordScanner:
    """Scans directories for images and documents and snapshots their metadata."""

    def __init__(
        self,
        config: ApplicationConfig | None = None,
        image_analyzer: ImageFingerprinter | None = None,
    ):
        """
        Initialize the scanner with configuration.

        Args:
            config: Application configuration, defaults to ApplicationConfig()
            image_analyzer: Optional analyzer used to record pixel dimensions
        """
        self.config = config or ApplicationConfig()
        self.image_analyzer = image_analyzer
        self._supported = set(self.config.image_extensions) | set(self.config.document_extensions)

    def is_supported_file(self, file_path: Path) -> bool:
        """
        Check if a file is an image or document by extension.

        Args:
            file_path: Path to the file to check

        Returns:
            True if the file takes part in duplicate detection
        """
        return file_path.suffix.lower() in self._supported

    def get_file_record(self, file_path: Path) -> FileRecord | None:
        """
        Snapshot a single file.

        Args:
            file_path: Path to the file

        Returns:
            FileRecord if successful, None if the file vanished or can't be read
        """
        try:
            if not file_path.is_file():
                logger.warning(f"Not a regular file or no longer exists: {file_path}")
                return None

            stat = file_path.stat()
        except OSError as e:
            logger.error(f"Error accessing file {file_path}: {e}")
            return None

        # Birth time where the platform records it, otherwise inode change time
        created = getattr(stat, "st_birthtime", None) or stat.st_ctime

        width = height = None
        if self.image_analyzer is not None and file_path.suffix.lower() in self.config.image_extensions:
            try:
                size = self.image_analyzer.dimensions(file_path)
            except Exception as e:
                logger.warning(f"Could not read dimensions of {file_path}: {e}")
                size = None
            if size:
                width, height = size

        return FileRecord(
            file_path=file_path,
            size_bytes=stat.st_size,
            created_at=datetime.fromtimestamp(created),
            width=width,
            height=height,
        )

    def discover_files(
        self,
        directory: Path,
        recursive: bool = True,
        progress_callback: ProgressCallback | None = None,
    ) -> Generator[Path, None, None]:
        """
        Discover all files in a directory, optionally recursively.

        Args:
            directory: Directory to scan
            recursive: Whether to scan subdirectories recursively
            progress_callback: Optional callback for progress updates

        Yields:
            Path objects for discovered files

        Raises:
            OSError: If directory cannot be accessed
        """
        if not directory.exists():
            raise OSError(f"Directory does not exist: {directory}")

        if not directory.is_dir():
            raise OSError(f"Path is not a directory: {directory}")

        logger.info(f"Starting file discovery in: {directory}")
        files_found = 0

        file_iterator = directory.rglob("*") if recursive else directory.glob("*")

        for file_path in file_iterator:
            if file_path.is_file() and not file_path.is_symlink():
                files_found += 1
                if progress_callback:
                    progress_callback(files_found, None, f"Discovered {files_found} files...")
                yield file_path

        logger.info(f"File discovery complete. Found {files_found} total files.")

    def scan_directory(
        self,
        directory: Path,
        recursive: bool = True,
        progress_callback: ProgressCallback | None = None,
    ) -> list[FileRecord]:
        """
        Scan a directory for images and documents.

        Args:
            directory: Directory to scan
            recursive: Whether to scan subdirectories recursively
            progress_callback: Optional callback for progress updates

        Returns:
            FileRecords for every supported file that could be read

        Raises:
            OSError: If directory cannot be accessed
        """
        start_time = time.time()

        all_files = list(self.discover_files(directory, recursive, progress_callback))
        total_files = len(all_files)

        records = []
        for i, file_path in enumerate(all_files):
            if progress_callback:
                progress_callback(i + 1, total_files, f"Processing {file_path.name}...")

            if self.is_supported_file(file_path):
                record = self.get_file_record(file_path)
                if record:
                    records.append(record)

        scan_duration = time.time() - start_time
        logger.info(
            f"Scan complete: {len(records)} supported files found "
            f"out of {total_files} total files in {scan_duration:.2f} seconds"
        )

        return records
