"""Tests for filename parser module."""

from pathlib import Path

from ..models import ApplicationConfig, FileRecord
from ..parser import FilenameParser


class TestResolutionBaseName:
    """Test cases for resolution marker stripping."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.parser = FilenameParser()

    def test_strips_dimension_suffix(self) -> None:
        """Test removing explicit pixel dimensions."""
        assert self.parser.resolution_base_name("hero_1920x1080.png") == "hero.png"

    def test_strips_density_marker(self) -> None:
        """Test removing @2x / @3x markers."""
        assert self.parser.resolution_base_name("icon@2x.png") == "icon.png"
        assert self.parser.resolution_base_name("icon@3x.png") == "icon.png"

    def test_strips_word_markers(self) -> None:
        """Test removing size and quality words."""
        for name in [
            "photo-small.jpg",
            "photo-medium.jpg",
            "photo-large.jpg",
            "photo-thumbnail.jpg",
            "photo-thumb.jpg",
            "photo_hd.jpg",
            "photo_sd.jpg",
            "photo_4k.jpg",
            "photo_1080p.jpg",
            "photo_720p.jpg",
        ]:
            assert self.parser.resolution_base_name(name) == "photo.jpg", name

    def test_case_insensitive(self) -> None:
        """Test that markers and names are matched regardless of case."""
        assert self.parser.resolution_base_name("Banner_HD.PNG") == "banner.png"
        assert self.parser.resolution_base_name("Banner-Thumb.png") == "banner.png"

    def test_plain_name_unchanged(self) -> None:
        """Test that names without markers are only lower-cased."""
        assert self.parser.resolution_base_name("Vacation.JPG") == "vacation.jpg"


class TestDocumentVersionKey:
    """Test cases for document version canonicalization."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.parser = FilenameParser()

    def test_version_family_shares_key(self) -> None:
        """Test the report_v1 / report_v2 / report_final family."""
        keys = {
            self.parser.document_version_key("report_v1.docx"),
            self.parser.document_version_key("report_v2.docx"),
            self.parser.document_version_key("report_final.docx"),
        }

        assert keys == {"report.docx"}

    def test_strips_draft_markers(self) -> None:
        """Test removing draft, copy and backup markers with separators."""
        assert self.parser.document_version_key("Thesis - draft.pdf") == "thesis.pdf"
        assert self.parser.document_version_key("thesis copy.pdf") == "thesis.pdf"
        assert self.parser.document_version_key("thesis_backup.pdf") == "thesis.pdf"
        assert self.parser.document_version_key("thesis-rev3.pdf") == "thesis.pdf"
        assert self.parser.document_version_key("thesis v1.2.pdf") == "thesis.pdf"

    def test_extension_is_part_of_key(self) -> None:
        """Test that different formats stay in different families."""
        assert self.parser.document_version_key("notes_v1.txt") == "notes.txt"
        assert self.parser.document_version_key("notes_v2.md") == "notes.md"

    def test_extension_lower_cased(self) -> None:
        """Test extension normalization."""
        assert self.parser.document_version_key("Budget_FINAL.XLSX") == "budget.xlsx"


class TestFileTypes:
    """Test cases for image and document classification."""

    def test_default_extensions(self) -> None:
        """Test classification with default configuration."""
        parser = FilenameParser()

        image = FileRecord(file_path=Path("/test/a.HEIC"), size_bytes=1)
        document = FileRecord(file_path=Path("/test/a.docx"), size_bytes=1)
        other = FileRecord(file_path=Path("/test/a.mp4"), size_bytes=1)

        assert parser.is_image(image)
        assert not parser.is_document(image)
        assert parser.is_document(document)
        assert not parser.is_image(other)
        assert not parser.is_document(other)

    def test_custom_extensions(self) -> None:
        """Test classification follows the configuration."""
        parser = FilenameParser(ApplicationConfig(image_extensions=["svg"]))

        assert parser.is_image(FileRecord(file_path=Path("/test/a.svg"), size_bytes=1))
        assert not parser.is_image(FileRecord(file_path=Path("/test/a.jpg"), size_bytes=1))
