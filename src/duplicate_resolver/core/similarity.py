"""Fingerprint and text similarity for near-duplicate detection."""

import logging
from enum import Enum
from pathlib import Path
from typing import Protocol

import imagehash
from PIL import Image

try:
    import pillow_heif
    pillow_heif.register_heif_opener()
    HEIF_SUPPORTED = True
except ImportError:
    HEIF_SUPPORTED = False

from .exceptions import FingerprintMismatchError

logger = logging.getLogger(__name__)

FINGERPRINT_BITS = 64
DEFAULT_HAMMING_THRESHOLD = 10


def hamming_distance(fingerprint1: str, fingerprint2: str) -> int:
    """
    Count differing bits between two hex fingerprints.

    Args:
        fingerprint1: First fingerprint as a hex string
        fingerprint2: Second fingerprint as a hex string

    Returns:
        Number of bit positions that differ

    Raises:
        FingerprintMismatchError: If lengths differ or a fingerprint is not valid hex

    Example:
        >>> hamming_distance("ff00", "ff01")
        1
    """
    if len(fingerprint1) != len(fingerprint2):
        raise FingerprintMismatchError(
            f"Fingerprints differ in length ({len(fingerprint1)} vs {len(fingerprint2)})"
        )

    distance = 0
    for digit1, digit2 in zip(fingerprint1, fingerprint2):
        try:
            nibble1 = int(digit1, 16)
            nibble2 = int(digit2, 16)
        except ValueError as e:
            raise FingerprintMismatchError(f"Fingerprint is not hexadecimal: {e}") from e
        distance += bin(nibble1 ^ nibble2).count("1")
    return distance


def are_fingerprints_similar(
    fingerprint1: str, fingerprint2: str, threshold: int = DEFAULT_HAMMING_THRESHOLD
) -> bool:
    """Check whether two fingerprints are within the duplicate-candidate threshold."""
    try:
        return hamming_distance(fingerprint1, fingerprint2) <= threshold
    except FingerprintMismatchError as e:
        logger.debug(f"Fingerprints not comparable: {e}")
        return False


class ImageSimilarity(str, Enum):
    """User-facing band for a fingerprint distance."""

    IDENTICAL = "identical"
    NEAR_IDENTICAL = "near-identical"
    SIMILAR = "similar"
    DIFFERENT = "different"

    @classmethod
    def from_hamming_distance(cls, distance: int) -> "ImageSimilarity":
        if distance < 0:
            raise ValueError("Hamming distance cannot be negative")
        if distance == 0:
            return cls.IDENTICAL
        if distance <= 5:
            return cls.NEAR_IDENTICAL
        if distance <= 10:
            return cls.SIMILAR
        return cls.DIFFERENT

    @property
    def label(self) -> str:
        return {
            ImageSimilarity.IDENTICAL: "Identical",
            ImageSimilarity.NEAR_IDENTICAL: "Near-Identical",
            ImageSimilarity.SIMILAR: "Similar",
            ImageSimilarity.DIFFERENT: "Different",
        }[self]


def tokenize(text: str) -> set[str]:
    """Lower-cased set of whitespace-separated words."""
    return set(text.lower().split())


def jaccard_similarity(text1: str, text2: str) -> float:
    """
    Jaccard index between the word sets of two texts.

    Returns:
        Score between 0.0 (no shared words, or an empty text) and 1.0 (same word set)
    """
    words1 = tokenize(text1)
    words2 = tokenize(text2)

    if not words1 or not words2:
        return 0.0

    return len(words1 & words2) / len(words1 | words2)


class ImageFingerprinter(Protocol):
    """Capability that derives perceptual fingerprints and dimensions from image files."""

    def fingerprint(self, image_path: Path) -> str | None:
        """Return a hex average-hash fingerprint, or None if the image can't be read."""
        ...

    def dimensions(self, image_path: Path) -> tuple[int, int] | None:
        """Return (width, height), or None if the image can't be read."""
        ...


class TextExtractor(Protocol):
    """Capability that extracts plain text from documents."""

    def extract_text(self, document_path: Path) -> str | None:
        """Return the document's text, or None if it has none or can't be read."""
        ...


class PillowImageAnalyzer:
    """Computes average-hash fingerprints and pixel dimensions with Pillow and imagehash."""

    def __init__(self, hash_size: int = 8):
        """
        Initialize the analyzer.

        Args:
            hash_size: Side of the downsampled grid; 8 gives a 64-bit (16 hex digit) hash
        """
        self.hash_size = hash_size

    def fingerprint(self, image_path: Path) -> str | None:
        try:
            with Image.open(image_path) as img:
                # Convert to RGB if necessary
                if img.mode not in ("RGB", "L"):
                    img = img.convert("RGB")

                # Grayscale, downsample, threshold on the mean intensity
                return str(imagehash.average_hash(img, hash_size=self.hash_size))

        except Exception as e:
            logger.debug(f"Could not generate fingerprint for {image_path}: {e}")
            return None

    def dimensions(self, image_path: Path) -> tuple[int, int] | None:
        try:
            with Image.open(image_path) as img:
                return img.size
        except Exception as e:
            logger.debug(f"Could not read dimensions of {image_path}: {e}")
            return None


class PlainTextExtractor:
    """Reads text straight from plain-text documents."""

    TEXT_EXTENSIONS = {".txt", ".md", ".csv", ".rtf"}

    def __init__(self, max_bytes: int = 1024 * 1024):
        self.max_bytes = max_bytes

    def extract_text(self, document_path: Path) -> str | None:
        if document_path.suffix.lower() not in self.TEXT_EXTENSIONS:
            return None

        try:
            with open(document_path, "rb") as f:
                data = f.read(self.max_bytes)
        except OSError as e:
            logger.debug(f"Could not read text from {document_path}: {e}")
            return None

        text = data.decode("utf-8", errors="replace")
        return text if text.strip() else None
