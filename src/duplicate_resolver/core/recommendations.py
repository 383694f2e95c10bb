"""Keep/remove recommendations for duplicate groups."""

import logging
from dataclasses import dataclass, field

from .models import (
    ExactDuplicateGroup,
    FileRecord,
    KeeperStrategy,
    Recommendation,
    RecommendationKind,
    SemanticDuplicateGroup,
)

logger = logging.getLogger(__name__)


@dataclass
class ResolutionPlan:
    """Files to keep and files to remove for one group."""

    group: SemanticDuplicateGroup
    keep: list[FileRecord]
    remove: list[FileRecord] = field(default_factory=list)

    @property
    def is_automatic(self) -> bool:
        return self.group.recommendation.kind is not RecommendationKind.MANUAL_REVIEW

    @property
    def kept_file(self) -> FileRecord | None:
        """The single file kept when the plan is automatic."""
        return self.keep[0] if self.is_automatic and self.keep else None

    @property
    def bytes_recovered(self) -> int:
        return sum(f.size_bytes for f in self.remove)


class RecommendationEngine:
    """Maps duplicate groups to keep/remove decisions."""

    def for_images(self, files: list[FileRecord]) -> Recommendation:
        """
        Recommend which image to keep.

        Prefers the greatest pixel area, then the greatest byte size.

        Args:
            files: Images in the group

        Returns:
            keep-highest-resolution, keep-largest, or manual review for an empty list
        """
        with_dimensions = [f for f in files if f.pixel_count is not None]
        if with_dimensions:
            best = max(with_dimensions, key=lambda f: f.pixel_count)
            return Recommendation.keep_highest_resolution(best.id)

        if files:
            largest = max(files, key=lambda f: f.size_bytes)
            return Recommendation.keep_largest(largest.id)

        return Recommendation.manual_review()

    def for_document_versions(self, files_newest_first: list[FileRecord]) -> Recommendation:
        """Keep the newest version; with more than two versions, archive the rest."""
        if not files_newest_first:
            return Recommendation.manual_review()

        newest = files_newest_first[0]
        if len(files_newest_first) > 2:
            return Recommendation.archive_older_versions(
                keep_id=newest.id, archive_ids=[f.id for f in files_newest_first[1:]]
            )
        return Recommendation.keep_newest(newest.id)

    def select_keeper(self, files: list[FileRecord], strategy: KeeperStrategy) -> FileRecord:
        """
        Pick the exact duplicate to keep.

        Ties resolve to the earliest file in encounter order.
        """
        if not files:
            raise ValueError("Cannot select a keeper from an empty group")

        if strategy is KeeperStrategy.FIRST:
            return files[0]
        if strategy is KeeperStrategy.LARGEST:
            return max(files, key=lambda f: f.size_bytes)
        if strategy is KeeperStrategy.SMALLEST:
            return min(files, key=lambda f: f.size_bytes)
        if strategy is KeeperStrategy.SHORTEST_PATH:
            return min(files, key=lambda f: len(str(f.file_path)))
        if strategy is KeeperStrategy.NEWEST:
            dated = [f for f in files if f.created_at is not None]
            return max(dated, key=lambda f: f.created_at) if dated else files[0]
        # Oldest: undated files are treated as newest so a known original wins
        dated = [f for f in files if f.created_at is not None]
        return min(dated, key=lambda f: f.created_at) if dated else files[0]

    def for_exact_group(self, group: ExactDuplicateGroup) -> Recommendation:
        """Express an exact group's keeper as a recommendation."""
        if group.keeper_strategy is KeeperStrategy.NEWEST:
            return Recommendation.keep_newest(group.keeper_id)
        if group.keeper_strategy is KeeperStrategy.LARGEST:
            return Recommendation.keep_largest(group.keeper_id)
        if group.keeper_strategy is KeeperStrategy.SMALLEST:
            return Recommendation.keep_smallest(group.keeper_id)
        if group.keeper_strategy is KeeperStrategy.SHORTEST_PATH:
            return Recommendation.keep_shortest_path(group.keeper_id)
        return Recommendation.keep_oldest(group.keeper_id)

    def apply(self, group: SemanticDuplicateGroup) -> ResolutionPlan:
        """
        Split a group into files to keep and files to remove.

        Args:
            group: Group whose recommendation should be applied

        Returns:
            ResolutionPlan; manual review keeps every file
        """
        recommendation = group.recommendation

        if recommendation.kind is RecommendationKind.MANUAL_REVIEW:
            return ResolutionPlan(group=group, keep=list(group.files))

        keep = [f for f in group.files if f.id == recommendation.keep_id]
        if recommendation.kind is RecommendationKind.ARCHIVE_OLDER_VERSIONS:
            archive_ids = set(recommendation.archive_ids)
            remove = [f for f in group.files if f.id in archive_ids]
        else:
            remove = [f for f in group.files if f.id != recommendation.keep_id]

        logger.debug(
            f"{group.group_type.label}: keep {[f.filename for f in keep]}, "
            f"remove {[f.filename for f in remove]}"
        )
        return ResolutionPlan(group=group, keep=keep, remove=remove)

    def plan_all(self, groups: list[SemanticDuplicateGroup]) -> list[ResolutionPlan]:
        plans = [self.apply(group) for group in groups]
        logger.info(
            f"Planned {len(plans)} groups: "
            f"{sum(1 for p in plans if p.is_automatic)} automatic, "
            f"{sum(1 for p in plans if not p.is_automatic)} for manual review"
        )
        return plans

    def summarize(self, plans: list[ResolutionPlan]) -> str:
        """
        Generate a summary string of resolution plans.

        Args:
            plans: Plans from plan_all

        Returns:
            Human-readable summary string
        """
        automatic = [p for p in plans if p.is_automatic]
        manual = len(plans) - len(automatic)
        files_to_remove = sum(len(p.remove) for p in automatic)
        recovered_mb = sum(p.bytes_recovered for p in automatic) / (1024 * 1024)

        summary_parts = []

        if automatic:
            summary_parts.append(
                f"{len(automatic)} groups with a recommendation "
                f"({files_to_remove} files to remove, {recovered_mb:.1f} MB)"
            )

        if manual:
            summary_parts.append(f"{manual} groups need manual review")

        if not summary_parts:
            return "No groups processed"

        return ". ".join(summary_parts) + "."
