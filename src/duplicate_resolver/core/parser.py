"""Filename canonicalization for resolution variants and document versions."""

import re
from pathlib import Path

from .models import ApplicationConfig, FileRecord


class FilenameParser:
    """Derives shared "family" keys from filenames."""

    # Applied in order; each match is removed from the lower-cased filename
    RESOLUTION_PATTERNS = [
        re.compile(r"_\d+x\d+", re.IGNORECASE),  # _1920x1080
        re.compile(r"@\d+x", re.IGNORECASE),  # @2x, @3x
        re.compile(r"-small", re.IGNORECASE),
        re.compile(r"-medium", re.IGNORECASE),
        re.compile(r"-large", re.IGNORECASE),
        re.compile(r"-thumbnail", re.IGNORECASE),
        re.compile(r"-thumb", re.IGNORECASE),
        re.compile(r"_hd", re.IGNORECASE),
        re.compile(r"_sd", re.IGNORECASE),
        re.compile(r"_4k", re.IGNORECASE),
        re.compile(r"_1080p", re.IGNORECASE),
        re.compile(r"_720p", re.IGNORECASE),
    ]

    # Version numbers and draft markers, with their surrounding separators
    VERSION_PATTERN = re.compile(
        r"[\s_-]*(v?\d+\.?\d*|draft|final|rev\d*|copy|old|new|backup)[\s_-]*",
        re.IGNORECASE,
    )

    def __init__(self, config: ApplicationConfig | None = None):
        self.config = config or ApplicationConfig()
        self._image_extensions = set(self.config.image_extensions)
        self._document_extensions = set(self.config.document_extensions)

    def resolution_base_name(self, filename: str) -> str:
        """
        Strip resolution and quality markers from a filename.

        Args:
            filename: Full filename including extension

        Returns:
            Lower-cased filename with every known marker removed

        Example:
            >>> FilenameParser().resolution_base_name("Hero_1920x1080.PNG")
            'hero.png'
        """
        base_name = filename.lower()
        for pattern in self.RESOLUTION_PATTERNS:
            base_name = pattern.sub("", base_name)
        return base_name

    def document_version_key(self, filename: str) -> str:
        """
        Build the grouping key for a document's version family.

        Args:
            filename: Full filename including extension

        Returns:
            Stem without version tokens, followed by the lower-cased extension

        Example:
            >>> FilenameParser().document_version_key("Report_v2.docx")
            'report.docx'
        """
        path = Path(filename)
        stem = self.VERSION_PATTERN.sub("", path.stem.lower())
        extension = path.suffix.lower().lstrip(".")
        return f"{stem}.{extension}"

    def is_image(self, record: FileRecord) -> bool:
        return record.extension in self._image_extensions

    def is_document(self, record: FileRecord) -> bool:
        return record.extension in self._document_extensions
