"""Core functionality for duplicate resolver."""

from .exact import ExactDuplicateDetector, hash_file
from .exceptions import (
    DuplicateResolverError,
    FileUnavailableError,
    FingerprintMismatchError,
    HashComputeError,
    RestorableRecordNotFoundError,
    RestorationError,
    RestorationOriginalMissingError,
    RestorationTargetOccupiedError,
    ScanAlreadyInProgressError,
    ScanCancelledError,
)
from .grouper import SemanticDuplicateDetector, merge_overlapping_groups
from .models import (
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
from .parser import FilenameParser
from .recommendations import RecommendationEngine, ResolutionPlan
from .restoration import InMemoryRestorationStore, JsonRestorationStore, SafeResolutionManager
from .scanner import FileRecordScanner
from .similarity import (
    ImageFingerprinter,
    ImageSimilarity,
    PillowImageAnalyzer,
    PlainTextExtractor,
    TextExtractor,
    hamming_distance,
    jaccard_similarity,
)

__all__ = [
    "ApplicationConfig",
    "ClusteringMode",
    "DuplicateResolverError",
    "DuplicateType",
    "ExactDuplicateDetector",
    "ExactDuplicateGroup",
    "FileAttributes",
    "FileRecord",
    "FileRecordScanner",
    "FileUnavailableError",
    "FilenameParser",
    "FingerprintMismatchError",
    "HashComputeError",
    "ImageFingerprinter",
    "ImageSimilarity",
    "InMemoryRestorationStore",
    "JsonRestorationStore",
    "KeeperStrategy",
    "PillowImageAnalyzer",
    "PlainTextExtractor",
    "Recommendation",
    "RecommendationEngine",
    "RecommendationKind",
    "ResolutionPlan",
    "RestorableRecord",
    "RestorableRecordNotFoundError",
    "RestorationError",
    "RestorationOriginalMissingError",
    "RestorationTargetOccupiedError",
    "SafeResolutionManager",
    "ScanAlreadyInProgressError",
    "ScanCancelledError",
    "ScanResult",
    "SemanticDuplicateDetector",
    "SemanticDuplicateGroup",
    "TextExtractor",
    "hamming_distance",
    "hash_file",
    "jaccard_similarity",
    "merge_overlapping_groups",
]
