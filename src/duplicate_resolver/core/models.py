"""Pydantic models for duplicate resolver."""

import json
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _new_id() -> str:
    return uuid.uuid4().hex


class FileRecord(BaseModel):
    """Immutable snapshot of a scanned file and whatever content analysis produced for it."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id, description="Stable identifier for this record")
    file_path: Path = Field(..., description="Full path to the file")
    size_bytes: int = Field(..., ge=0, description="File size in bytes")
    created_at: datetime | None = Field(None, description="File creation timestamp")
    content_hash: str | None = Field(None, description="Full-content hash used for exact matching")
    perceptual_hash: str | None = Field(None, description="Average-hash fingerprint as hex")
    width: int | None = Field(None, ge=0, description="Pixel width for images")
    height: int | None = Field(None, ge=0, description="Pixel height for images")
    text_content: str | None = Field(None, description="Extracted text for documents")

    @field_validator("file_path")
    @classmethod
    def validate_file_path(cls, v: Path) -> Path:
        """Ensure path is absolute."""
        return v.resolve()

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime | None) -> datetime | None:
        """Store timestamps as naive local time so any two records compare."""
        if v is not None and v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @property
    def filename(self) -> str:
        """Just the filename."""
        return self.file_path.name

    @property
    def stem(self) -> str:
        """Filename without extension."""
        return self.file_path.stem

    @property
    def extension(self) -> str:
        """File extension."""
        return self.file_path.suffix.lower()

    @property
    def size_mb(self) -> float:
        """File size in megabytes."""
        return self.size_bytes / (1024 * 1024)

    @property
    def pixel_count(self) -> int | None:
        """Total pixel area, or None when dimensions are unknown."""
        if self.width is None or self.height is None:
            return None
        return self.width * self.height

    @property
    def has_text_content(self) -> bool:
        return bool(self.text_content and self.text_content.strip())

    def __str__(self) -> str:
        return f"{self.filename} ({self.size_mb:.1f} MB)"


class DuplicateType(str, Enum):
    """Kind of relationship that ties a duplicate group together."""

    BURST_PHOTOS = "burst-photos"
    NEAR_IDENTICAL_IMAGES = "near-identical-images"
    RESOLUTION_VARIANTS = "resolution-variants"
    DOCUMENT_VERSIONS = "document-versions"
    SIMILAR_DOCUMENTS = "similar-documents"
    EXACT_DUPLICATES = "exact-duplicates"

    @property
    def label(self) -> str:
        return {
            DuplicateType.BURST_PHOTOS: "Burst Photos",
            DuplicateType.NEAR_IDENTICAL_IMAGES: "Near-Identical Images",
            DuplicateType.RESOLUTION_VARIANTS: "Resolution Variants",
            DuplicateType.DOCUMENT_VERSIONS: "Document Versions",
            DuplicateType.SIMILAR_DOCUMENTS: "Similar Documents",
            DuplicateType.EXACT_DUPLICATES: "Exact Duplicates",
        }[self]


class RecommendationKind(str, Enum):
    """What to do with a duplicate group."""

    KEEP_HIGHEST_RESOLUTION = "keep-highest-resolution"
    KEEP_NEWEST = "keep-newest"
    KEEP_OLDEST = "keep-oldest"
    KEEP_LARGEST = "keep-largest"
    KEEP_SMALLEST = "keep-smallest"
    KEEP_SHORTEST_PATH = "keep-shortest-path"
    ARCHIVE_OLDER_VERSIONS = "archive-older-versions"
    MANUAL_REVIEW = "manual-review"


class Recommendation(BaseModel):
    """Keep/remove decision for a group.

    ``file_id`` names the member to keep; it is None only for manual review.
    ``archive_ids`` is populated for archive-older-versions.
    """

    model_config = ConfigDict(frozen=True)

    kind: RecommendationKind
    file_id: str | None = None
    archive_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_target(self) -> "Recommendation":
        """Every kind except manual review must name a file to keep."""
        if self.kind is RecommendationKind.MANUAL_REVIEW:
            if self.file_id is not None or self.archive_ids:
                raise ValueError("manual review does not name any files")
        elif self.file_id is None:
            raise ValueError(f"{self.kind.value} requires a file id")
        return self

    @classmethod
    def keep_highest_resolution(cls, file_id: str) -> "Recommendation":
        return cls(kind=RecommendationKind.KEEP_HIGHEST_RESOLUTION, file_id=file_id)

    @classmethod
    def keep_newest(cls, file_id: str) -> "Recommendation":
        return cls(kind=RecommendationKind.KEEP_NEWEST, file_id=file_id)

    @classmethod
    def keep_oldest(cls, file_id: str) -> "Recommendation":
        return cls(kind=RecommendationKind.KEEP_OLDEST, file_id=file_id)

    @classmethod
    def keep_largest(cls, file_id: str) -> "Recommendation":
        return cls(kind=RecommendationKind.KEEP_LARGEST, file_id=file_id)

    @classmethod
    def keep_smallest(cls, file_id: str) -> "Recommendation":
        return cls(kind=RecommendationKind.KEEP_SMALLEST, file_id=file_id)

    @classmethod
    def keep_shortest_path(cls, file_id: str) -> "Recommendation":
        return cls(kind=RecommendationKind.KEEP_SHORTEST_PATH, file_id=file_id)

    @classmethod
    def archive_older_versions(cls, keep_id: str, archive_ids: list[str]) -> "Recommendation":
        return cls(
            kind=RecommendationKind.ARCHIVE_OLDER_VERSIONS,
            file_id=keep_id,
            archive_ids=list(archive_ids),
        )

    @classmethod
    def manual_review(cls) -> "Recommendation":
        return cls(kind=RecommendationKind.MANUAL_REVIEW)

    @property
    def keep_id(self) -> str | None:
        """Identifier of the file this recommendation keeps."""
        return self.file_id

    @property
    def referenced_ids(self) -> set[str]:
        ids = set(self.archive_ids)
        if self.file_id is not None:
            ids.add(self.file_id)
        return ids

    @property
    def description(self) -> str:
        return {
            RecommendationKind.KEEP_HIGHEST_RESOLUTION: "Keep the highest resolution version",
            RecommendationKind.KEEP_NEWEST: "Keep the most recent version",
            RecommendationKind.KEEP_OLDEST: "Keep the original version",
            RecommendationKind.KEEP_LARGEST: "Keep the largest file",
            RecommendationKind.KEEP_SMALLEST: "Keep the smallest file",
            RecommendationKind.KEEP_SHORTEST_PATH: "Keep the file with the shortest path",
            RecommendationKind.ARCHIVE_OLDER_VERSIONS: "Archive older drafts",
            RecommendationKind.MANUAL_REVIEW: "Review manually",
        }[self.kind]


class KeeperStrategy(str, Enum):
    """How the file to keep is chosen inside an exact duplicate group."""

    OLDEST = "oldest"
    NEWEST = "newest"
    LARGEST = "largest"
    SMALLEST = "smallest"
    SHORTEST_PATH = "shortest-path"
    FIRST = "first"


class ClusteringMode(str, Enum):
    """How pairwise similarity is turned into clusters."""

    GREEDY = "greedy"
    CONNECTED = "connected"


class ExactDuplicateGroup(BaseModel):
    """Files sharing an identical content hash."""

    content_hash: str = Field(..., description="Hash shared by every member")
    files: list[FileRecord] = Field(..., description="Members in encounter order")
    keeper_id: str = Field(..., description="Member chosen to be kept")
    keeper_strategy: KeeperStrategy = Field(default=KeeperStrategy.OLDEST)

    @model_validator(mode="after")
    def validate_members(self) -> "ExactDuplicateGroup":
        """Reject singleton groups, mixed hashes and foreign keepers."""
        if len(self.files) < 2:
            raise ValueError("an exact duplicate group needs at least two files")
        if any(f.content_hash != self.content_hash for f in self.files):
            raise ValueError("all members must share the group's content hash")
        if self.keeper_id not in {f.id for f in self.files}:
            raise ValueError("keeper must be a member of the group")
        return self

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def duplicate_count(self) -> int:
        """Number of redundant copies (members minus one)."""
        return max(0, len(self.files) - 1)

    @property
    def total_size(self) -> int:
        return sum(f.size_bytes for f in self.files)

    @property
    def potential_savings(self) -> int:
        """Bytes recovered by deleting every member except the first encountered."""
        return sum(f.size_bytes for f in self.files[1:])

    @property
    def keeper(self) -> FileRecord:
        return next(f for f in self.files if f.id == self.keeper_id)

    @property
    def redundant_files(self) -> list[FileRecord]:
        return [f for f in self.files if f.id != self.keeper_id]

    def to_semantic_group(self, recommendation: "Recommendation") -> "SemanticDuplicateGroup":
        """Present this group alongside semantic groups."""
        return SemanticDuplicateGroup(
            group_type=DuplicateType.EXACT_DUPLICATES,
            files=list(self.files),
            similarity=1.0,
            recommendation=recommendation,
        )

    def __str__(self) -> str:
        return (
            f"Exact duplicates {self.content_hash[:12]} "
            f"({self.file_count} files, {self.potential_savings} bytes recoverable)"
        )


class SemanticDuplicateGroup(BaseModel):
    """Files judged similar by one of the near-duplicate strategies."""

    id: str = Field(default_factory=_new_id)
    group_type: DuplicateType
    files: list[FileRecord]
    similarity: float = Field(..., ge=0.0, le=1.0, description="Confidence of the producing strategy")
    recommendation: Recommendation = Field(default_factory=Recommendation.manual_review)

    @model_validator(mode="after")
    def validate_members(self) -> "SemanticDuplicateGroup":
        """Reject singleton groups and recommendations naming non-members."""
        if len(self.files) < 2:
            raise ValueError("a duplicate group needs at least two files")
        if not self.recommendation.referenced_ids <= self.member_ids:
            raise ValueError("recommendation references a file outside the group")
        return self

    @property
    def member_ids(self) -> set[str]:
        return {f.id for f in self.files}

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def total_size(self) -> int:
        return sum(f.size_bytes for f in self.files)

    @property
    def potential_savings(self) -> int:
        """Bytes recovered by keeping only the largest member."""
        return self.total_size - max(f.size_bytes for f in self.files)

    @property
    def similarity_percentage(self) -> str:
        return f"{self.similarity * 100:.0f}%"

    def get_file(self, file_id: str) -> FileRecord | None:
        return next((f for f in self.files if f.id == file_id), None)

    def __str__(self) -> str:
        return (
            f"{self.group_type.label} ({self.file_count} files, "
            f"{self.similarity_percentage} similar)"
        )


class FileAttributes(BaseModel):
    """Filesystem metadata captured before a file is deleted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    creation_date: datetime | None = None
    modification_date: datetime | None = None
    permissions: int | None = None
    owner_id: int | None = None
    group_id: int | None = None


class RestorableRecord(BaseModel):
    """A safely deleted file that can be recreated from the copy that was kept."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    original_path: Path = Field(..., description="Kept file used as the restoration source")
    deleted_path: Path = Field(..., description="Where the removed file used to live")
    metadata: FileAttributes = Field(default_factory=FileAttributes)
    deleted_at: datetime = Field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.deleted_path} (kept: {self.original_path})"


class ScanResult(BaseModel):
    """Results from a duplicate scan."""

    scan_path: Path = Field(..., description="Directory that was scanned")
    total_files_found: int = Field(..., ge=0, description="Files considered")
    exact_groups: list[ExactDuplicateGroup] = Field(default_factory=list)
    semantic_groups: list[SemanticDuplicateGroup] = Field(default_factory=list)
    scan_duration_seconds: float = Field(..., ge=0, description="Time taken to scan")
    scan_timestamp: datetime = Field(
        default_factory=datetime.now, description="When the scan was performed"
    )

    @property
    def duplicate_file_count(self) -> int:
        """Redundant copies across all groups."""
        return sum(g.duplicate_count for g in self.exact_groups) + sum(
            g.file_count - 1 for g in self.semantic_groups
        )

    @property
    def potential_space_savings(self) -> int:
        return sum(g.potential_savings for g in self.exact_groups) + sum(
            g.potential_savings for g in self.semantic_groups
        )

    @property
    def potential_space_savings_mb(self) -> float:
        return self.potential_space_savings / (1024 * 1024)

    def __str__(self) -> str:
        return (
            f"Scan of {self.scan_path}: {self.total_files_found} files, "
            f"{len(self.exact_groups)} exact groups, "
            f"{len(self.semantic_groups)} similar groups"
        )


def _default_store_path() -> Path:
    return Path.home() / ".local" / "share" / "duplicate-resolver" / "restorable.json"


class ApplicationConfig(BaseModel):
    """Configuration settings for the application."""

    image_extensions: list[str] = Field(
        default=[
            ".jpg",
            ".jpeg",
            ".png",
            ".heic",
            ".heif",
            ".tiff",
            ".tif",
            ".bmp",
            ".gif",
            ".webp",
            ".raw",
            ".cr2",
            ".nef",
            ".arw",
        ],
        description="File extensions treated as images",
    )
    document_extensions: list[str] = Field(
        default=[
            ".pdf",
            ".doc",
            ".docx",
            ".txt",
            ".rtf",
            ".md",
            ".pages",
            ".odt",
            ".xls",
            ".xlsx",
            ".ppt",
            ".pptx",
        ],
        description="File extensions treated as documents",
    )
    enable_logging: bool = Field(default=True, description="Enable application logging")
    log_level: str = Field(default="INFO", description="Logging level")

    # Near-duplicate detection
    burst_window_seconds: float = Field(
        default=2.0, gt=0, description="Maximum gap between consecutive burst shots"
    )
    hamming_threshold: int = Field(
        default=10, ge=0, le=64, description="Maximum fingerprint distance for similar images"
    )
    text_similarity_threshold: float = Field(
        default=0.85, ge=0.0, le=1.0, description="Minimum Jaccard score for similar documents"
    )
    clustering_mode: ClusteringMode = Field(
        default=ClusteringMode.GREEDY, description="Greedy seeding or connected components"
    )

    # Exact duplicates
    exact_keeper_strategy: KeeperStrategy = Field(
        default=KeeperStrategy.OLDEST, description="Which exact duplicate to keep"
    )
    hash_chunk_size: int = Field(default=65536, gt=0, description="Bytes read per hashing chunk")

    # Scheduling
    yield_every: int = Field(
        default=10, gt=0, description="Files processed between event loop yields"
    )

    # Safe resolution
    restoration_store_path: Path = Field(
        default_factory=_default_store_path, description="Where restorable records are kept"
    )
    use_trash: bool = Field(
        default=False, description="Move removed files to the system trash instead of unlinking"
    )

    @field_validator("image_extensions", "document_extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        """Ensure all extensions start with a dot and are lowercase."""
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def load(cls, path: Path | None) -> "ApplicationConfig":
        """Load settings from a JSON file, falling back to defaults when it is absent."""
        if path is None or not path.exists():
            return cls()
        return cls.model_validate(json.loads(path.read_text(encoding="utf-8")))
