"""Command-line interface for duplicate resolver."""
