"""Main module for the frameo-miniatures CLI."""

import sys
import argparse
from typing import List, Optional

from . import __version__
from .core.exceptions import ConfigurationError, PruneError
from .core.factories import LoggerFactory
from .core.models import SUPPORTED_FORMATS, RunConfig
from .core.progress import TqdmProgress
from .process_images import run_processing, run_prune


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-i", "--input", default=".", help="Source directory path")
    parser.add_argument(
        "-o", "--output", default="./output", help="Destination directory path"
    )
    parser.add_argument(
        "-f",
        "--format",
        default="webp",
        choices=SUPPORTED_FORMATS,
        help="Output format (default: webp)",
    )
    parser.add_argument(
        "--ignore-file", default=None, help="Path to .frameoignore file"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Simulate without writing files"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="frameo-miniatures",
        description="Prepare and optimize photos for Frameo digital photo frames",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Resize a photo library for a 1280x800 frame as WebP
  frameo-miniatures process -i ~/Pictures -o /media/frame

  # Incremental rerun that also removes outputs of deleted photos
  frameo-miniatures process -i ~/Pictures -o /media/frame --skip-existing --prune

  # Show what pruning would remove
  frameo-miniatures prune -i ~/Pictures -o /media/frame --dry-run
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    process_parser = subparsers.add_parser(
        "process", help="Resize photos from the input tree into the output tree"
    )
    _add_common_arguments(process_parser)
    process_parser.add_argument(
        "-r",
        "--resolution",
        default="1280x800",
        help="Target frame resolution as <width>x<height> (default: 1280x800)",
    )
    process_parser.add_argument(
        "-q", "--quality", type=int, default=80, help="Compression quality (0-100)"
    )
    process_parser.add_argument(
        "-j",
        "--workers",
        type=int,
        default=0,
        help="Number of concurrent workers (0 = one per CPU)",
    )
    process_parser.add_argument(
        "--prune",
        action="store_true",
        help="Delete files in output that are not in input",
    )
    process_parser.add_argument(
        "--skip-existing",
        action="store_true",
        help="Leave output files that already exist untouched",
    )

    prune_parser = subparsers.add_parser(
        "prune", help="Only delete output files that no longer have a source"
    )
    _add_common_arguments(prune_parser)

    subparsers.add_parser("version", help="Show version information")

    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """Translate parsed arguments into a RunConfig."""
    options = {
        "input_dir": args.input,
        "output_dir": args.output,
        "output_format": args.format,
        "ignore_file": args.ignore_file,
        "dry_run": args.dry_run,
        "debug": args.debug,
    }
    if args.command == "process":
        options.update(
            resolution=args.resolution,
            quality=args.quality,
            workers=args.workers,
            prune=args.prune,
            skip_existing=args.skip_existing,
        )
    return RunConfig(**options)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the frameo-miniatures command-line interface.

    Exits with status 1 on configuration errors or unexpected failures;
    per-file errors only show up in the logs and the summary.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        print("Frameo Miniatures")
        print(f"Version {__version__}")
        sys.exit(0)

    if args.command not in ("process", "prune"):
        parser.print_help()
        sys.exit(1)

    logger = LoggerFactory.create_logger(debug=args.debug)

    try:
        config = config_from_args(args)

        if args.command == "prune":
            removed = run_prune(config, logger)
            print(f"Removed: {removed}")
            return

        summary = run_processing(config, logger, TqdmProgress())
        print(
            f"Processed: {summary.processed_count}, "
            f"skipped: {summary.skipped_count}, "
            f"errors: {summary.error_count}"
        )
        if config.prune:
            print(f"Removed: {summary.removed_count}")

    except KeyboardInterrupt:
        logger.warning("Processing interrupted by user.")
    except (ConfigurationError, PruneError, ValueError) as e:
        # pydantic's ValidationError is a ValueError
        logger.error("Invalid configuration or failed run", error=str(e))
        sys.exit(1)
    except Exception as e:  # noqa: BLE001
        logger.error("Processing failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
