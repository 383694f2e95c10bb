"""Exact duplicate detection by content hash."""

import asyncio
import hashlib
import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Protocol

from .exceptions import (
    FileUnavailableError,
    HashComputeError,
    ScanAlreadyInProgressError,
)
from .models import ApplicationConfig, ExactDuplicateGroup, FileRecord
from .recommendations import RecommendationEngine

logger = logging.getLogger(__name__)


class ProgressCallback(Protocol):
    """Protocol for progress callback functions during hashing."""

    def __call__(self, current: int, total: int | None = None, message: str = "") -> None:
        """Called after each file is hashed."""
        ...


def hash_file(path: Path, chunk_size: int = 65536) -> str:
    """
    Compute the SHA-256 of a file's full contents.

    Args:
        path: File to hash
        chunk_size: Bytes read per chunk

    Returns:
        Lower-case hex digest

    Raises:
        FileUnavailableError: If the file no longer exists
        HashComputeError: If the file can't be read
    """
    sha256 = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            while chunk := f.read(chunk_size):
                sha256.update(chunk)
    except FileNotFoundError as e:
        raise FileUnavailableError(path) from e
    except OSError as e:
        raise HashComputeError(path, str(e)) from e
    return sha256.hexdigest()


class ExactDuplicateDetector:
    """Groups files with byte-identical content."""

    def __init__(
        self,
        config: ApplicationConfig | None = None,
        recommender: RecommendationEngine | None = None,
    ):
        self.config = config or ApplicationConfig()
        self.recommender = recommender or RecommendationEngine()
        self.duplicate_groups: list[ExactDuplicateGroup] = []
        self.last_scan_at: datetime | None = None
        self._scan_lock = asyncio.Lock()

    @property
    def is_scanning(self) -> bool:
        return self._scan_lock.locked()

    def find_duplicates(self, files: list[FileRecord]) -> list[ExactDuplicateGroup]:
        """
        Group files sharing a content hash.

        Args:
            files: Records to group; those without a content hash are skipped

        Returns:
            Groups of two or more files, largest potential savings first

        Example:
            >>> detector = ExactDuplicateDetector()
            >>> groups = detector.find_duplicates([a, b, c])  # a and b share a hash
            >>> groups[0].duplicate_count
            1
        """
        hash_groups: dict[str, list[FileRecord]] = defaultdict(list)
        for file in files:
            if not file.content_hash:
                continue
            hash_groups[file.content_hash].append(file)

        strategy = self.config.exact_keeper_strategy
        groups = []
        for content_hash, members in hash_groups.items():
            if len(members) < 2:
                continue
            keeper = self.recommender.select_keeper(members, strategy)
            groups.append(
                ExactDuplicateGroup(
                    content_hash=content_hash,
                    files=members,
                    keeper_id=keeper.id,
                    keeper_strategy=strategy,
                )
            )

        groups.sort(key=lambda g: g.potential_savings, reverse=True)

        logger.info(f"Found {len(groups)} exact duplicate groups among {len(files)} files")
        return groups

    async def compute_hashes(
        self, files: list[FileRecord], progress_callback: ProgressCallback | None = None
    ) -> list[FileRecord]:
        """
        Fill in content hashes for records that don't have one.

        Unreadable or vanished files are logged and passed through without a hash,
        so they simply don't take part in exact grouping.

        Args:
            files: Records to hash; not mutated
            progress_callback: Optional callback for progress updates

        Returns:
            New list of records, hashed where possible
        """
        total = len(files)
        hashed = []
        skipped = 0

        for i, file in enumerate(files):
            if file.content_hash is None:
                try:
                    digest = await asyncio.to_thread(
                        hash_file, file.file_path, self.config.hash_chunk_size
                    )
                    file = file.model_copy(update={"content_hash": digest})
                except FileUnavailableError as e:
                    skipped += 1
                    logger.warning(str(e))
                except HashComputeError as e:
                    skipped += 1
                    logger.warning(str(e))

            hashed.append(file)

            if progress_callback:
                progress_callback(i + 1, total, f"Hashing {file.filename}...")

            # Yield periodically so the event loop stays responsive
            if (i + 1) % self.config.yield_every == 0:
                await asyncio.sleep(0)

        if skipped:
            logger.info(f"Skipped {skipped} of {total} files that could not be hashed")
        return hashed

    async def scan_for_duplicates(
        self, files: list[FileRecord], progress_callback: ProgressCallback | None = None
    ) -> list[ExactDuplicateGroup]:
        """
        Hash files as needed and group exact duplicates.

        Raises:
            ScanAlreadyInProgressError: If this detector is already scanning
        """
        if self._scan_lock.locked():
            raise ScanAlreadyInProgressError()

        async with self._scan_lock:
            hashed = await self.compute_hashes(files, progress_callback)
            self.duplicate_groups = self.find_duplicates(hashed)
            self.last_scan_at = datetime.now()
            return self.duplicate_groups

    @staticmethod
    def total_potential_savings(groups: list[ExactDuplicateGroup]) -> int:
        return sum(g.potential_savings for g in groups)

    def clear_results(self) -> None:
        self.duplicate_groups = []
        self.last_scan_at = None
