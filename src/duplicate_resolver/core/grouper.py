"""Near-duplicate detection across all strategies."""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from .exceptions import ScanAlreadyInProgressError, ScanCancelledError
from .models import ApplicationConfig, DuplicateType, FileRecord, SemanticDuplicateGroup
from .parser import FilenameParser
from .recommendations import RecommendationEngine
from .similarity import ImageFingerprinter, TextExtractor
from .strategies import (
    BurstPhotoStrategy,
    DocumentVersionStrategy,
    NearIdenticalImageStrategy,
    ResolutionVariantStrategy,
)

logger = logging.getLogger(__name__)


class StageCallback(Protocol):
    """Protocol for progress callbacks reporting detection stages."""

    def __call__(self, current: int, total: int, stage: str) -> None:
        """Called before each strategy runs."""
        ...


def merge_overlapping_groups(groups: list[SemanticDuplicateGroup]) -> list[SemanticDuplicateGroup]:
    """
    Keep only groups whose members are not already claimed by an earlier group.

    Args:
        groups: Proposed groups in strategy priority order

    Returns:
        Pairwise disjoint groups; overlapping later groups are dropped whole
    """
    accepted = []
    used_ids: set[str] = set()

    for group in groups:
        member_ids = group.member_ids
        if member_ids.isdisjoint(used_ids):
            accepted.append(group)
            used_ids |= member_ids
        else:
            logger.debug(f"Dropping overlapping {group.group_type.label} group ({group.file_count} files)")

    return accepted


def sort_by_potential_savings(groups: list[SemanticDuplicateGroup]) -> list[SemanticDuplicateGroup]:
    return sorted(groups, key=lambda g: g.potential_savings, reverse=True)


class SemanticDuplicateDetector:
    """Finds burst photos, near-identical images, resolution variants and document versions."""

    TOTAL_STEPS = 4

    def __init__(
        self,
        config: ApplicationConfig | None = None,
        fingerprinter: ImageFingerprinter | None = None,
        text_extractor: TextExtractor | None = None,
    ):
        """
        Initialize the detector.

        Args:
            config: Application configuration, defaults to ApplicationConfig()
            fingerprinter: Computes fingerprints and dimensions for images that lack them
            text_extractor: Extracts text for documents that lack it
        """
        self.config = config or ApplicationConfig()
        self.fingerprinter = fingerprinter
        self.text_extractor = text_extractor
        self.parser = FilenameParser(self.config)
        self.recommender = RecommendationEngine()

        self.burst_strategy = BurstPhotoStrategy(self.config, self.recommender)
        self.image_strategy = NearIdenticalImageStrategy(self.config, self.recommender)
        self.resolution_strategy = ResolutionVariantStrategy(self.config, self.parser)
        self.document_strategy = DocumentVersionStrategy(self.config, self.parser, self.recommender)

        self.duplicate_groups: list[SemanticDuplicateGroup] = []
        self.current_stage = ""
        self.last_scan_at: datetime | None = None
        self._scan_lock = asyncio.Lock()
        self._cancel_requested = False

    @property
    def is_scanning(self) -> bool:
        return self._scan_lock.locked()

    @property
    def total_duplicates(self) -> int:
        return sum(g.file_count - 1 for g in self.duplicate_groups)

    @property
    def potential_savings(self) -> int:
        return sum(g.potential_savings for g in self.duplicate_groups)

    def groups_by_type(self) -> dict[DuplicateType, list[SemanticDuplicateGroup]]:
        by_type: dict[DuplicateType, list[SemanticDuplicateGroup]] = defaultdict(list)
        for group in self.duplicate_groups:
            by_type[group.group_type].append(group)
        return dict(by_type)

    def cancel(self) -> None:
        """Ask the running scan to stop at its next checkpoint."""
        if self.is_scanning:
            logger.info("Cancellation requested for semantic scan")
            self._cancel_requested = True

    def clear_results(self) -> None:
        self.duplicate_groups = []
        self.last_scan_at = None

    async def find_semantic_duplicates(
        self, files: list[FileRecord], progress_callback: StageCallback | None = None
    ) -> list[SemanticDuplicateGroup]:
        """
        Run every strategy and merge their proposals.

        Args:
            files: Records to analyze; not mutated
            progress_callback: Optional callback receiving (step, total_steps, stage)

        Returns:
            Disjoint groups sorted by potential savings, largest first

        Raises:
            ScanAlreadyInProgressError: If this detector is already scanning
            ScanCancelledError: If cancel() was called before the scan finished
        """
        if self._scan_lock.locked():
            raise ScanAlreadyInProgressError()

        async with self._scan_lock:
            self._cancel_requested = False
            try:
                groups = await self._run_strategies(files, progress_callback)
            finally:
                self.current_stage = ""

            self.duplicate_groups = groups
            self.last_scan_at = datetime.now()
            return groups

    async def _run_strategies(
        self, files: list[FileRecord], progress_callback: StageCallback | None
    ) -> list[SemanticDuplicateGroup]:
        images = [f for f in files if self.parser.is_image(f)]
        documents = [f for f in files if self.parser.is_document(f)]
        logger.info(
            f"Starting semantic scan: {len(images)} images, {len(documents)} documents"
        )

        images = await self._ensure_fingerprints(images)
        documents = await self._ensure_text(documents)

        stages = [
            ("Analyzing burst photos...", self.burst_strategy.find_groups, images),
            ("Comparing images...", self.image_strategy.find_groups, images),
            ("Finding resolution variants...", self.resolution_strategy.find_groups, images),
            ("Analyzing documents...", self.document_strategy.find_groups, documents),
        ]

        proposed: list[SemanticDuplicateGroup] = []
        for step, (stage, find_groups, records) in enumerate(stages):
            self._check_cancelled()
            self.current_stage = stage
            if progress_callback:
                progress_callback(step, self.TOTAL_STEPS, stage)

            proposed.extend(find_groups(records))
            await asyncio.sleep(0)

        self._check_cancelled()
        merged = sort_by_potential_savings(merge_overlapping_groups(proposed))

        if progress_callback:
            progress_callback(self.TOTAL_STEPS, self.TOTAL_STEPS, "Scan complete")

        logger.info(
            f"Semantic scan complete: {len(merged)} groups kept "
            f"({len(proposed) - len(merged)} overlapping proposals dropped)"
        )
        return merged

    async def _ensure_fingerprints(self, images: list[FileRecord]) -> list[FileRecord]:
        """Fill in missing fingerprints and dimensions using the injected fingerprinter."""
        if self.fingerprinter is None:
            return images

        completed = []
        for i, image in enumerate(images):
            self._check_cancelled()
            updates = {}

            if not image.perceptual_hash:
                fingerprint = await self._call_capability(self.fingerprinter.fingerprint, image)
                if fingerprint:
                    updates["perceptual_hash"] = fingerprint
                else:
                    logger.debug(f"No fingerprint for {image.filename}; skipping visual comparison")

            if image.pixel_count is None:
                size = await self._call_capability(self.fingerprinter.dimensions, image)
                if size:
                    updates["width"], updates["height"] = size

            completed.append(image.model_copy(update=updates) if updates else image)

            if (i + 1) % self.config.yield_every == 0:
                await asyncio.sleep(0)

        return completed

    async def _ensure_text(self, documents: list[FileRecord]) -> list[FileRecord]:
        """Fill in missing text using the injected extractor."""
        if self.text_extractor is None:
            return documents

        completed = []
        for i, document in enumerate(documents):
            self._check_cancelled()

            if document.text_content is None:
                text = await self._call_capability(self.text_extractor.extract_text, document)
                if text:
                    document = document.model_copy(update={"text_content": text})

            completed.append(document)

            if (i + 1) % self.config.yield_every == 0:
                await asyncio.sleep(0)

        return completed

    async def _call_capability(self, capability: Callable[[Path], Any], record: FileRecord) -> Any:
        """Run a capability off the event loop; a failure leaves the file without that data."""
        try:
            return await asyncio.to_thread(capability, record.file_path)
        except Exception as e:
            logger.warning(f"Could not analyze {record.filename}: {e}")
            return None

    def _check_cancelled(self) -> None:
        if self._cancel_requested:
            logger.info("Semantic scan cancelled; discarding partial results")
            raise ScanCancelledError()
