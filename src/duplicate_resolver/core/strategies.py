"""Near-duplicate clustering strategies.

Each strategy takes file records and proposes SemanticDuplicateGroups. The
strategies are independent; overlaps between their proposals are resolved by
the detector in grouper.py.
"""

import logging
from collections import defaultdict
from datetime import datetime

from .clustering import cluster
from .models import (
    ApplicationConfig,
    DuplicateType,
    FileRecord,
    Recommendation,
    SemanticDuplicateGroup,
)
from .parser import FilenameParser
from .recommendations import RecommendationEngine
from .similarity import FINGERPRINT_BITS, are_fingerprints_similar, jaccard_similarity

logger = logging.getLogger(__name__)

BURST_SIMILARITY = 0.95
RESOLUTION_VARIANT_SIMILARITY = 0.98
DOCUMENT_VERSION_SIMILARITY = 0.90
SIMILAR_DOCUMENT_SIMILARITY = 0.85


class BurstPhotoStrategy:
    """Groups photos captured within a short window of each other."""

    def __init__(
        self,
        config: ApplicationConfig | None = None,
        recommender: RecommendationEngine | None = None,
    ):
        self.config = config or ApplicationConfig()
        self.recommender = recommender or RecommendationEngine()

    def find_groups(self, images: list[FileRecord]) -> list[SemanticDuplicateGroup]:
        """
        Cluster images whose consecutive capture times are within the burst window.

        Args:
            images: Image records; those without a creation time are ignored

        Returns:
            One group per burst of two or more photos, in time order
        """
        window = self.config.burst_window_seconds
        dated = sorted((f for f in images if f.created_at is not None), key=lambda f: f.created_at)

        groups = []
        current: list[FileRecord] = []
        last_time: datetime | None = None

        for image in dated:
            if last_time is not None and (image.created_at - last_time).total_seconds() <= window:
                current.append(image)
            else:
                self._close_burst(current, groups)
                current = [image]
            last_time = image.created_at

        self._close_burst(current, groups)

        logger.debug(f"Found {len(groups)} burst groups among {len(dated)} dated images")
        return groups

    def _close_burst(self, burst: list[FileRecord], groups: list[SemanticDuplicateGroup]) -> None:
        if len(burst) < 2:
            return
        groups.append(
            SemanticDuplicateGroup(
                group_type=DuplicateType.BURST_PHOTOS,
                files=list(burst),
                similarity=BURST_SIMILARITY,
                recommendation=self.recommender.for_images(burst),
            )
        )


class NearIdenticalImageStrategy:
    """Groups images whose perceptual fingerprints are within the Hamming threshold."""

    def __init__(
        self,
        config: ApplicationConfig | None = None,
        recommender: RecommendationEngine | None = None,
    ):
        self.config = config or ApplicationConfig()
        self.recommender = recommender or RecommendationEngine()

    @property
    def group_similarity(self) -> float:
        """Confidence derived from the threshold rather than measured distances."""
        return 1.0 - (self.config.hamming_threshold / FINGERPRINT_BITS)

    def find_groups(self, images: list[FileRecord]) -> list[SemanticDuplicateGroup]:
        """
        Cluster fingerprinted images.

        Args:
            images: Image records; those without a fingerprint are ignored

        Returns:
            Groups of visually near-identical images
        """
        threshold = self.config.hamming_threshold
        fingerprinted = [f for f in images if f.perceptual_hash]

        clusters = cluster(
            fingerprinted,
            lambda a, b: are_fingerprints_similar(a.perceptual_hash, b.perceptual_hash, threshold),
            self.config.clustering_mode,
        )

        groups = [
            SemanticDuplicateGroup(
                group_type=DuplicateType.NEAR_IDENTICAL_IMAGES,
                files=members,
                similarity=self.group_similarity,
                recommendation=self.recommender.for_images(members),
            )
            for members in clusters
        ]

        logger.debug(
            f"Found {len(groups)} near-identical groups among {len(fingerprinted)} fingerprinted images"
        )
        return groups


class ResolutionVariantStrategy:
    """Groups the same image exported at different sizes."""

    def __init__(
        self,
        config: ApplicationConfig | None = None,
        parser: FilenameParser | None = None,
    ):
        self.config = config or ApplicationConfig()
        self.parser = parser or FilenameParser(self.config)

    def find_groups(self, images: list[FileRecord]) -> list[SemanticDuplicateGroup]:
        families: dict[str, list[FileRecord]] = defaultdict(list)
        for image in images:
            families[self.parser.resolution_base_name(image.filename)].append(image)

        groups = []
        for base_name, members in families.items():
            with_dimensions = [f for f in members if f.pixel_count is not None]
            if len(with_dimensions) < 2:
                continue

            by_area = sorted(with_dimensions, key=lambda f: f.pixel_count, reverse=True)
            if by_area[0].pixel_count == by_area[-1].pixel_count:
                logger.debug(f"Skipping '{base_name}': all copies share one resolution")
                continue

            groups.append(
                SemanticDuplicateGroup(
                    group_type=DuplicateType.RESOLUTION_VARIANTS,
                    files=by_area,
                    similarity=RESOLUTION_VARIANT_SIMILARITY,
                    recommendation=Recommendation.keep_highest_resolution(by_area[0].id),
                )
            )

        logger.debug(f"Found {len(groups)} resolution variant groups")
        return groups


class DocumentVersionStrategy:
    """Groups drafts and versions of a document, then documents with near-identical text."""

    def __init__(
        self,
        config: ApplicationConfig | None = None,
        parser: FilenameParser | None = None,
        recommender: RecommendationEngine | None = None,
    ):
        self.config = config or ApplicationConfig()
        self.parser = parser or FilenameParser(self.config)
        self.recommender = recommender or RecommendationEngine()

    def find_groups(self, documents: list[FileRecord]) -> list[SemanticDuplicateGroup]:
        version_groups = self.find_version_groups(documents)

        claimed = {file_id for group in version_groups for file_id in group.member_ids}
        content_groups = self.find_content_groups(
            [d for d in documents if d.id not in claimed]
        )

        return version_groups + content_groups

    def find_version_groups(self, documents: list[FileRecord]) -> list[SemanticDuplicateGroup]:
        """
        Group documents whose names differ only by version tokens.

        Returns:
            Groups with members ordered newest first
        """
        families: dict[str, list[FileRecord]] = defaultdict(list)
        for document in documents:
            families[self.parser.document_version_key(document.filename)].append(document)

        groups = []
        for key, members in families.items():
            if len(members) < 2:
                continue

            # Undated documents sort last
            newest_first = sorted(
                members, key=lambda f: f.created_at or datetime.min, reverse=True
            )
            groups.append(
                SemanticDuplicateGroup(
                    group_type=DuplicateType.DOCUMENT_VERSIONS,
                    files=newest_first,
                    similarity=DOCUMENT_VERSION_SIMILARITY,
                    recommendation=self.recommender.for_document_versions(newest_first),
                )
            )
            logger.debug(f"Document family '{key}': {len(members)} versions")

        return groups

    def find_content_groups(self, documents: list[FileRecord]) -> list[SemanticDuplicateGroup]:
        """Group documents whose word sets overlap at or above the text threshold."""
        threshold = self.config.text_similarity_threshold
        with_text = [d for d in documents if d.has_text_content]

        clusters = cluster(
            with_text,
            lambda a, b: jaccard_similarity(a.text_content, b.text_content) >= threshold,
            self.config.clustering_mode,
        )

        # Text overlap alone doesn't say which copy is authoritative
        return [
            SemanticDuplicateGroup(
                group_type=DuplicateType.SIMILAR_DOCUMENTS,
                files=members,
                similarity=SIMILAR_DOCUMENT_SIMILARITY,
                recommendation=Recommendation.manual_review(),
            )
            for members in clusters
        ]
