"""Tests for Pydantic models."""

from datetime import datetime, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from ..models import (
    ApplicationConfig,
    ClusteringMode,
    DuplicateType,
    ExactDuplicateGroup,
    FileAttributes,
    FileRecord,
    KeeperStrategy,
    Recommendation,
    RecommendationKind,
    RestorableRecord,
    ScanResult,
    SemanticDuplicateGroup,
)


def make_record(name: str, size: int = 1000, **kwargs) -> FileRecord:
    return FileRecord(file_path=Path(f"/test/{name}"), size_bytes=size, **kwargs)


class TestFileRecord:
    """Test cases for FileRecord model."""

    def test_create_file_record(self) -> None:
        """Test creating a FileRecord object."""
        created = datetime(2023, 1, 1, 12, 0, 0)
        record = FileRecord(
            file_path=Path("/test/path/IMG_1234.HEIC"),
            size_bytes=1048576,
            created_at=created,
            content_hash="abc",
            width=4032,
            height=3024,
        )

        assert record.file_path == Path("/test/path/IMG_1234.HEIC").resolve()
        assert record.filename == "IMG_1234.HEIC"
        assert record.stem == "IMG_1234"
        assert record.extension == ".heic"
        assert record.size_mb == 1.0
        assert record.pixel_count == 4032 * 3024
        assert record.created_at == created
        assert record.id

    def test_ids_are_unique(self) -> None:
        """Test that each record gets its own identifier."""
        assert make_record("a.jpg").id != make_record("a.jpg").id

    def test_pixel_count_requires_both_dimensions(self) -> None:
        """Test that a missing dimension means unknown pixel area."""
        assert make_record("a.jpg", width=100).pixel_count is None
        assert make_record("a.jpg").pixel_count is None

    def test_has_text_content(self) -> None:
        """Test detection of usable extracted text."""
        assert make_record("a.txt", text_content="hello world").has_text_content
        assert not make_record("a.txt", text_content="   ").has_text_content
        assert not make_record("a.txt").has_text_content

    def test_record_is_immutable(self) -> None:
        """Test that records can't be changed after a scan."""
        record = make_record("a.jpg")
        with pytest.raises(ValidationError):
            record.size_bytes = 5

    def test_negative_size_rejected(self) -> None:
        """Test that sizes must be non-negative."""
        with pytest.raises(ValidationError):
            make_record("a.jpg", size=-1)

    def test_file_path_validation(self) -> None:
        """Test that file paths are resolved to absolute paths."""
        record = FileRecord(file_path=Path("relative/path/file.jpg"), size_bytes=1)
        assert record.file_path.is_absolute()

    def test_str_representation(self) -> None:
        """Test string representation."""
        assert str(make_record("file.jpg", size=1048576)) == "file.jpg (1.0 MB)"

    def test_aware_created_at_stored_as_local_time(self) -> None:
        """Test that aware timestamps become naive local time and compare with naive ones."""
        aware = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

        record = make_record("a.docx", created_at=aware)
        naive = make_record("b.docx", created_at=datetime(2024, 3, 5))

        assert record.created_at.tzinfo is None
        assert record.created_at == aware.astimezone().replace(tzinfo=None)
        assert record.created_at < naive.created_at


class TestRecommendation:
    """Test cases for Recommendation model."""

    def test_constructors(self) -> None:
        """Test each constructor sets kind and target."""
        assert Recommendation.keep_highest_resolution("a").kind is RecommendationKind.KEEP_HIGHEST_RESOLUTION
        assert Recommendation.keep_newest("a").keep_id == "a"
        assert Recommendation.keep_oldest("a").kind is RecommendationKind.KEEP_OLDEST
        assert Recommendation.keep_largest("a").kind is RecommendationKind.KEEP_LARGEST
        assert Recommendation.keep_smallest("a").kind is RecommendationKind.KEEP_SMALLEST
        assert Recommendation.keep_shortest_path("a").kind is RecommendationKind.KEEP_SHORTEST_PATH

        archive = Recommendation.archive_older_versions("a", ["b", "c"])
        assert archive.keep_id == "a"
        assert archive.archive_ids == ["b", "c"]
        assert archive.referenced_ids == {"a", "b", "c"}

        manual = Recommendation.manual_review()
        assert manual.keep_id is None
        assert manual.referenced_ids == set()

    def test_descriptions(self) -> None:
        """Test user-facing descriptions."""
        assert "highest resolution" in Recommendation.keep_highest_resolution("a").description
        assert "most recent" in Recommendation.keep_newest("a").description
        assert Recommendation.keep_smallest("a").description == "Keep the smallest file"
        assert "shortest path" in Recommendation.keep_shortest_path("a").description
        assert "Archive" in Recommendation.archive_older_versions("a", []).description
        assert "manually" in Recommendation.manual_review().description

    def test_keep_kinds_require_file_id(self) -> None:
        """Test that keep recommendations must name a file."""
        with pytest.raises(ValidationError):
            Recommendation(kind=RecommendationKind.KEEP_NEWEST)

    def test_manual_review_names_no_files(self) -> None:
        """Test that manual review cannot carry a target."""
        with pytest.raises(ValidationError):
            Recommendation(kind=RecommendationKind.MANUAL_REVIEW, file_id="a")


class TestExactDuplicateGroup:
    """Test cases for ExactDuplicateGroup model."""

    def create_group(self, sizes: list[int]) -> ExactDuplicateGroup:
        files = [make_record(f"f{i}.jpg", size=s, content_hash="h") for i, s in enumerate(sizes)]
        return ExactDuplicateGroup(content_hash="h", files=files, keeper_id=files[0].id)

    def test_derived_sizes(self) -> None:
        """Test totals and savings (all but the first member)."""
        group = self.create_group([100, 200, 300])

        assert group.file_count == 3
        assert group.duplicate_count == 2
        assert group.total_size == 600
        assert group.potential_savings == 500

    def test_keeper_and_redundant_files(self) -> None:
        """Test keeper lookup."""
        group = self.create_group([100, 100])

        assert group.keeper is group.files[0]
        assert group.redundant_files == [group.files[1]]

    def test_rejects_single_file(self) -> None:
        """Test that a group needs two members."""
        record = make_record("a.jpg", content_hash="h")
        with pytest.raises(ValidationError):
            ExactDuplicateGroup(content_hash="h", files=[record], keeper_id=record.id)

    def test_rejects_mixed_hashes(self) -> None:
        """Test that every member shares the group hash."""
        a = make_record("a.jpg", content_hash="h")
        b = make_record("b.jpg", content_hash="other")
        with pytest.raises(ValidationError):
            ExactDuplicateGroup(content_hash="h", files=[a, b], keeper_id=a.id)

    def test_rejects_foreign_keeper(self) -> None:
        """Test that the keeper must be a member."""
        a = make_record("a.jpg", content_hash="h")
        b = make_record("b.jpg", content_hash="h")
        with pytest.raises(ValidationError):
            ExactDuplicateGroup(content_hash="h", files=[a, b], keeper_id="missing")

    def test_to_semantic_group(self) -> None:
        """Test conversion for combined presentation."""
        group = self.create_group([10, 10])
        semantic = group.to_semantic_group(Recommendation.keep_oldest(group.keeper_id))

        assert semantic.group_type is DuplicateType.EXACT_DUPLICATES
        assert semantic.similarity == 1.0
        assert semantic.member_ids == {f.id for f in group.files}


class TestSemanticDuplicateGroup:
    """Test cases for SemanticDuplicateGroup model."""

    def test_potential_savings_excludes_largest(self) -> None:
        """Test that savings keep the single largest member."""
        files = [
            make_record("a.jpg", size=1_000_000),
            make_record("b.jpg", size=800_000),
            make_record("c.jpg", size=600_000),
        ]
        group = SemanticDuplicateGroup(
            group_type=DuplicateType.BURST_PHOTOS, files=files, similarity=0.95
        )

        assert group.total_size == 2_400_000
        assert group.potential_savings == 1_400_000

    def test_similarity_percentage(self) -> None:
        """Test percentage formatting."""
        files = [make_record("a.jpg"), make_record("b.jpg")]
        group = SemanticDuplicateGroup(
            group_type=DuplicateType.NEAR_IDENTICAL_IMAGES, files=files, similarity=0.857
        )

        assert group.similarity_percentage == "86%"

    def test_default_recommendation_is_manual_review(self) -> None:
        """Test the default recommendation."""
        files = [make_record("a.txt"), make_record("b.txt")]
        group = SemanticDuplicateGroup(
            group_type=DuplicateType.SIMILAR_DOCUMENTS, files=files, similarity=0.85
        )

        assert group.recommendation.kind is RecommendationKind.MANUAL_REVIEW

    def test_rejects_single_file(self) -> None:
        """Test that a group needs two members."""
        with pytest.raises(ValidationError):
            SemanticDuplicateGroup(
                group_type=DuplicateType.BURST_PHOTOS, files=[make_record("a.jpg")], similarity=0.95
            )

    def test_rejects_similarity_out_of_range(self) -> None:
        """Test the similarity bounds."""
        files = [make_record("a.jpg"), make_record("b.jpg")]
        with pytest.raises(ValidationError):
            SemanticDuplicateGroup(
                group_type=DuplicateType.BURST_PHOTOS, files=files, similarity=1.2
            )

    def test_rejects_recommendation_for_non_member(self) -> None:
        """Test that recommendations must point at members."""
        files = [make_record("a.jpg"), make_record("b.jpg")]
        with pytest.raises(ValidationError):
            SemanticDuplicateGroup(
                group_type=DuplicateType.BURST_PHOTOS,
                files=files,
                similarity=0.95,
                recommendation=Recommendation.keep_largest("outsider"),
            )

    def test_get_file(self) -> None:
        """Test member lookup by id."""
        files = [make_record("a.jpg"), make_record("b.jpg")]
        group = SemanticDuplicateGroup(
            group_type=DuplicateType.BURST_PHOTOS, files=files, similarity=0.95
        )

        assert group.get_file(files[1].id) is files[1]
        assert group.get_file("nope") is None


class TestRestorableRecord:
    """Test cases for RestorableRecord serialization."""

    def test_serializes_with_camel_case_keys(self) -> None:
        """Test the persisted field names."""
        record = RestorableRecord(
            original_path=Path("/kept/a.jpg"),
            deleted_path=Path("/removed/a.jpg"),
            metadata=FileAttributes(permissions=0o644, owner_id=501, group_id=20),
        )

        data = record.model_dump(mode="json", by_alias=True)

        assert data["originalPath"] == "/kept/a.jpg"
        assert data["deletedPath"] == "/removed/a.jpg"
        assert data["metadata"]["permissions"] == 0o644
        assert data["metadata"]["ownerId"] == 501
        assert data["metadata"]["groupId"] == 20
        assert data["metadata"]["creationDate"] is None

    def test_round_trip_from_stored_json(self) -> None:
        """Test loading the stored representation."""
        record = RestorableRecord(
            original_path=Path("/kept/a.jpg"),
            deleted_path=Path("/removed/a.jpg"),
            metadata=FileAttributes(modification_date=datetime(2024, 5, 1, 8, 30)),
        )

        loaded = RestorableRecord.model_validate_json(record.model_dump_json(by_alias=True))

        assert loaded == record


class TestScanResult:
    """Test cases for ScanResult model."""

    def test_totals(self) -> None:
        """Test aggregate counts and savings."""
        exact_files = [make_record(f"e{i}.jpg", size=100, content_hash="h") for i in range(3)]
        exact = ExactDuplicateGroup(content_hash="h", files=exact_files, keeper_id=exact_files[0].id)
        semantic = SemanticDuplicateGroup(
            group_type=DuplicateType.BURST_PHOTOS,
            files=[make_record("a.jpg", size=300), make_record("b.jpg", size=200)],
            similarity=0.95,
        )

        result = ScanResult(
            scan_path=Path("/test"),
            total_files_found=5,
            exact_groups=[exact],
            semantic_groups=[semantic],
            scan_duration_seconds=1.0,
        )

        assert result.duplicate_file_count == 3
        assert result.potential_space_savings == 400


class TestApplicationConfig:
    """Test cases for ApplicationConfig model."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = ApplicationConfig()

        assert ".jpg" in config.image_extensions
        assert ".docx" in config.document_extensions
        assert config.burst_window_seconds == 2.0
        assert config.hamming_threshold == 10
        assert config.text_similarity_threshold == 0.85
        assert config.clustering_mode is ClusteringMode.GREEDY
        assert config.exact_keeper_strategy is KeeperStrategy.OLDEST
        assert config.log_level == "INFO"

    def test_extension_validation(self) -> None:
        """Test that extensions are normalized."""
        config = ApplicationConfig(image_extensions=["JPG", ".PNG"])
        assert config.image_extensions == [".jpg", ".png"]

    def test_log_level_validation(self) -> None:
        """Test log level normalization and rejection."""
        assert ApplicationConfig(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            ApplicationConfig(log_level="chatty")

    def test_load_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """Test loading from a path that does not exist."""
        config = ApplicationConfig.load(tmp_path / "missing.json")
        assert config.hamming_threshold == 10
        assert config.clustering_mode is ClusteringMode.GREEDY

    def test_load_from_json(self, tmp_path: Path) -> None:
        """Test loading overrides from a JSON file."""
        config_file = tmp_path / "config.json"
        config_file.write_text(
            '{"hamming_threshold": 6, "clustering_mode": "connected", "use_trash": true}'
        )

        config = ApplicationConfig.load(config_file)

        assert config.hamming_threshold == 6
        assert config.clustering_mode is ClusteringMode.CONNECTED
        assert config.use_trash is True
