"""Find exact and near-duplicate files and resolve them reversibly."""

__version__ = "0.1.0"
