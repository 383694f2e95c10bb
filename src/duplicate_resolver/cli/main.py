"""CLI entry point for duplicate resolver."""

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import TextIO

from .. import __version__
from ..core import (
    ApplicationConfig,
    ExactDuplicateDetector,
    FileRecordScanner,
    JsonRestorationStore,
    PillowImageAnalyzer,
    PlainTextExtractor,
    RecommendationEngine,
    RestorationError,
    SafeResolutionManager,
    ScanResult,
    SemanticDuplicateDetector,
)

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """
    Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _print_progress(current: int, total: int | None = None, message: str = "") -> None:
    if message:
        print(f"\r{message}", end="", flush=True)
    elif total:
        percent = (current / total) * 100
        print(f"\rProgress: {current}/{total} ({percent:.1f}%)", end="", flush=True)
    else:
        print(f"\rProcessed: {current} files", end="", flush=True)


async def run_scan(
    directory: Path,
    config: ApplicationConfig,
    recursive: bool = True,
    semantic: bool = False,
    show_progress: bool = True,
) -> ScanResult:
    """
    Scan a directory, hash its files and group duplicates.

    Args:
        directory: Directory to scan
        config: Application configuration
        recursive: Whether to scan recursively
        semantic: Also look for near-duplicates
        show_progress: Print progress to stdout

    Returns:
        ScanResult object with scan results
    """
    if not directory.exists():
        raise FileNotFoundError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {directory}")

    progress = _print_progress if show_progress else None
    start_time = time.time()

    analyzer = PillowImageAnalyzer()
    scanner = FileRecordScanner(config, image_analyzer=analyzer)
    records = scanner.scan_directory(directory, recursive=recursive, progress_callback=progress)
    if show_progress:
        print()

    exact_detector = ExactDuplicateDetector(config)
    exact_groups = await exact_detector.scan_for_duplicates(records, progress_callback=progress)
    if show_progress:
        print()

    semantic_groups = []
    if semantic:
        # Redundant exact copies are already accounted for
        redundant_ids = {f.id for g in exact_groups for f in g.redundant_files}
        candidates = [r for r in records if r.id not in redundant_ids]

        semantic_detector = SemanticDuplicateDetector(
            config, fingerprinter=analyzer, text_extractor=PlainTextExtractor()
        )

        def stage_progress(current: int, total: int, stage: str) -> None:
            if show_progress:
                print(f"\r[{current}/{total}] {stage}", end="", flush=True)

        semantic_groups = await semantic_detector.find_semantic_duplicates(
            candidates, progress_callback=stage_progress
        )
        if show_progress:
            print()

    scan_result = ScanResult(
        scan_path=directory,
        total_files_found=len(records),
        exact_groups=exact_groups,
        semantic_groups=semantic_groups,
        scan_duration_seconds=time.time() - start_time,
    )
    logger.info(str(scan_result))
    return scan_result


def print_scan_results(scan_result: ScanResult, detailed: bool = False) -> None:
    """
    Print scan results to console.

    Args:
        scan_result: Results from the scan operation
        detailed: Whether to show detailed file information
    """
    recommender = RecommendationEngine()

    print("\n" + "=" * 60)
    print("SCAN RESULTS")
    print("=" * 60)

    print(f"Directory scanned: {scan_result.scan_path}")
    print(f"Files considered: {scan_result.total_files_found}")
    print(f"Exact duplicate groups: {len(scan_result.exact_groups)}")
    print(f"Similar file groups: {len(scan_result.semantic_groups)}")
    print(f"Redundant copies: {scan_result.duplicate_file_count}")
    print(f"Potential space savings: {scan_result.potential_space_savings_mb:.1f} MB")

    if not scan_result.exact_groups and not scan_result.semantic_groups:
        print("\nNo duplicates found!")
        return

    if scan_result.exact_groups:
        print("\n" + "-" * 60)
        print("EXACT DUPLICATES")
        print("-" * 60)

        for i, group in enumerate(scan_result.exact_groups, 1):
            print(f"\nGroup {i}: {group.content_hash[:16]}")
            print(f"  Copies: {group.file_count} ({group.duplicate_count} redundant)")
            print(f"  Recoverable: {group.potential_savings / (1024 * 1024):.1f} MB")
            print(f"  Keep: {group.keeper.file_path}")

            if detailed:
                for file in group.redundant_files:
                    print(f"    - {file.file_path}")

    if scan_result.semantic_groups:
        print("\n" + "-" * 60)
        print("SIMILAR FILES")
        print("-" * 60)

        plans = recommender.plan_all(scan_result.semantic_groups)
        for i, plan in enumerate(plans, 1):
            group = plan.group
            print(f"\nGroup {i}: {group.group_type.label} ({group.similarity_percentage} similar)")
            print(f"  Files: {group.file_count}")
            print(f"  Recommendation: {group.recommendation.description}")
            if plan.kept_file:
                print(f"  Keep: {plan.kept_file.filename}")

            if detailed:
                for file in group.files:
                    created = file.created_at.strftime("%Y-%m-%d %H:%M:%S") if file.created_at else "?"
                    print(f"    - {file.filename} ({file.size_mb:.1f} MB, created {created})")
                    print(f"      Path: {file.file_path}")

        print(f"\n{recommender.summarize(plans)}")


def scan_result_to_json(scan_result: ScanResult) -> str:
    return json.dumps(
        {
            "scan_path": str(scan_result.scan_path),
            "files_considered": scan_result.total_files_found,
            "potential_savings_bytes": scan_result.potential_space_savings,
            "exact_groups": [
                {
                    "content_hash": g.content_hash,
                    "keep": str(g.keeper.file_path),
                    "files": [str(f.file_path) for f in g.files],
                    "potential_savings_bytes": g.potential_savings,
                }
                for g in scan_result.exact_groups
            ],
            "semantic_groups": [
                {
                    "type": g.group_type.value,
                    "similarity": g.similarity,
                    "recommendation": g.recommendation.kind.value,
                    "keep": str(g.get_file(g.recommendation.keep_id).file_path)
                    if g.recommendation.keep_id
                    else None,
                    "files": [str(f.file_path) for f in g.files],
                    "potential_savings_bytes": g.potential_savings,
                }
                for g in scan_result.semantic_groups
            ],
        },
        indent=2,
    )


def resolve_exact_duplicates(
    scan_result: ScanResult,
    manager: SafeResolutionManager,
    confirmed: bool,
    stream: TextIO | None = None,
) -> int:
    """
    Safely delete every redundant exact copy, keeping each group's keeper.

    Args:
        scan_result: Results holding the exact groups
        manager: Manager that records deletions for restoration
        confirmed: Delete for real; otherwise only report the plan
        stream: Where to report progress, defaults to stdout

    Returns:
        Number of files removed (0 for a dry run)
    """
    stream = stream or sys.stdout
    recommender = RecommendationEngine()

    removed = 0
    for group in scan_result.exact_groups:
        plan = recommender.apply(group.to_semantic_group(recommender.for_exact_group(group)))
        if not confirmed:
            for file in plan.remove:
                print(f"Would remove {file.file_path} (keeping {plan.kept_file.file_path})", file=stream)
            continue

        records = manager.delete_safely(plan.remove, plan.kept_file)
        removed += len(records)

    if not confirmed:
        print("\nDry run only. Re-run with --yes to delete.", file=stream)
    else:
        print(
            f"\nRemoved {removed} redundant copies. Use --list-restorable to review them.",
            file=stream,
        )
    return removed


def print_restorable(manager: SafeResolutionManager) -> None:
    records = manager.pending_records
    if not records:
        print("No restorable files.")
        return

    for record in records:
        deleted_at = record.deleted_at.strftime("%Y-%m-%d %H:%M")
        print(f"{record.id}  {deleted_at}  {record.deleted_path}")
        print(f"    restores from: {record.original_path}")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Duplicate Resolver - Find exact and near-duplicate files and remove them reversibly",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Find exact duplicates
  duplicate-resolver --scan /path/to/files

  # Include burst photos, resized images and document versions
  duplicate-resolver --scan /path/to/files --semantic --detailed

  # Delete redundant exact copies (restorable)
  duplicate-resolver --scan /path/to/files --resolve-exact --yes

  # Review and undo deletions
  duplicate-resolver --list-restorable
  duplicate-resolver --restore <record-id>
        """,
    )

    # Main actions
    parser.add_argument(
        "--scan",
        type=Path,
        metavar="DIRECTORY",
        help="Scan directory for duplicates",
    )
    parser.add_argument(
        "--list-restorable", action="store_true", help="List safely deleted files"
    )
    parser.add_argument(
        "--restore", metavar="RECORD_ID", help="Restore a safely deleted file"
    )
    parser.add_argument(
        "--clear-history",
        action="store_true",
        help="Forget all restorable records (files are not touched)",
    )

    # Scan options
    parser.add_argument(
        "--no-recursive", action="store_true", help="Don't scan subdirectories recursively"
    )
    parser.add_argument(
        "--semantic", action="store_true", help="Also detect near-duplicates"
    )
    parser.add_argument(
        "--detailed", action="store_true", help="Show detailed file information in results"
    )
    parser.add_argument(
        "--resolve-exact",
        action="store_true",
        help="Safely delete redundant exact duplicates after scanning",
    )
    parser.add_argument(
        "--yes", action="store_true", help="Confirm deletions (otherwise a dry run)"
    )

    # Output options
    parser.add_argument(
        "--output-format",
        choices=["text", "json"],
        default="text",
        help="Output format for results (default: text)",
    )

    # Configuration
    parser.add_argument("--config", type=Path, metavar="FILE", help="JSON configuration file")
    parser.add_argument(
        "--store", type=Path, metavar="FILE", help="Restoration history file (overrides config)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (default: from config, INFO)",
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = ApplicationConfig.load(args.config)
    except (OSError, ValueError) as e:
        print(f"Error: invalid configuration: {e}")
        return 1

    if config.enable_logging:
        setup_logging(args.log_level or config.log_level)

    store_path = args.store or config.restoration_store_path
    manager = SafeResolutionManager(JsonRestorationStore(store_path), use_trash=config.use_trash)

    try:
        if args.clear_history:
            manager.clear_all_data()
            print("Restoration history cleared.")

        elif args.list_restorable:
            print_restorable(manager)

        elif args.restore:
            record = manager.restore_by_id(args.restore)
            print(f"Restored {record.deleted_path}")

        elif args.scan:
            show_progress = args.output_format == "text"
            scan_result = asyncio.run(
                run_scan(
                    args.scan,
                    config,
                    recursive=not args.no_recursive,
                    semantic=args.semantic,
                    show_progress=show_progress,
                )
            )

            if args.output_format == "json":
                print(scan_result_to_json(scan_result))
            else:
                print_scan_results(scan_result, detailed=args.detailed)

            if args.resolve_exact:
                # Keep stdout parseable when it carries JSON
                stream = sys.stderr if args.output_format == "json" else sys.stdout
                resolve_exact_duplicates(scan_result, manager, confirmed=args.yes, stream=stream)

        else:
            parser.print_help()
            return 1

        return 0

    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        return 1
    except RestorationError as e:
        print(f"Error: {e}")
        return 1
    except (FileNotFoundError, NotADirectoryError) as e:
        print(f"Error: {e}")
        return 1
    except Exception as e:
        logger.exception("Unexpected error occurred")
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
