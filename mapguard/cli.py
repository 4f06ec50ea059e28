"""Command-line interface for mapguard."""

import argparse
import logging
import sys
from typing import List, Optional

from .analysis.resolver import resolve_position
from .config import VerifierConfig
from .core.document import load_source_map
from .core.errors import BuildFailed, SourceMapCheckError
from .service import TargetReport, VerificationService


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
    )

logger = logging.getLogger(__name__)


def print_target_failure(report: TargetReport) -> None:
    """Print a failed target with actual/expected values and guidance."""
    failure = report.failure
    details = failure.details
    print(f"✗ {report.target.display_name} ({report.target.map_path}): "
          f"{failure.kind}: {failure.message}", file=sys.stderr)

    invalid_sources = details.get("invalid_sources")
    if invalid_sources:
        print("  Invalid paths in sources:", file=sys.stderr)
        for source in invalid_sources:
            print(f"    {source}", file=sys.stderr)

    if "actual" in details or "expected" in details:
        print(f"  Actual:   {details.get('actual')}", file=sys.stderr)
        print(f"  Expected: {details.get('expected')}", file=sys.stderr)

    if details.get("help"):
        print(f"  {details['help']}", file=sys.stderr)


def check_sourcemaps(config: VerifierConfig) -> int:
    """Build (unless skipped) and check every configured sourcemap."""
    logger.debug(f"Checking {len(config.targets)} target(s) in {config.root}")
    service = VerificationService(
        root=config.root,
        keep_going=config.keep_going,
        check_remote=config.check_remote,
    )

    try:
        report = service.run(config.targets, skip_build=config.skip_build)
    except BuildFailed as e:
        print(f"✗ Build failed: {e}", file=sys.stderr)
        output = e.details.get("output")
        if output:
            print(output, file=sys.stderr)
        return 1

    for target_report in report.targets:
        if target_report.ok:
            print(f"✓ {target_report.target.display_name} ({target_report.target.map_path}): all checks passed")
        else:
            print_target_failure(target_report)

    for target in report.skipped:
        print(f"- {target.display_name} ({target.map_path}): not checked after earlier failure", file=sys.stderr)

    if report.ok:
        print("SUCCESS: All sourcemaps checks passed.")
        return 0
    return 1


def resolve_location(location: str, root: Optional[str] = None) -> int:
    """Map MAP:LINE:COLUMN (1-based, as in stack traces) to its original position."""
    try:
        map_path, line, column = location.rsplit(":", 2)
        line_number, column_number = int(line), int(column)
    except ValueError:
        print(f"Invalid location {location!r}, expected MAP:LINE:COLUMN", file=sys.stderr)
        return 1

    if line_number < 1 or column_number < 1:
        print("LINE and COLUMN are 1-based", file=sys.stderr)
        return 1

    try:
        doc = load_source_map(map_path, root)
        position = resolve_position(doc, line_number - 1, column_number - 1)
    except SourceMapCheckError as e:
        print(f"✗ {e.kind}: {e}", file=sys.stderr)
        return 1

    if position is None:
        print(f"No mapping for {map_path}:{line_number}:{column_number}", file=sys.stderr)
        return 1

    print(str(position))
    if position.url:
        print(position.url)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapguard",
        description="Checks sourcemaps generated during minified compilation for correctness."
    )

    parser.add_argument(
        "--nobuild",
        action="store_true",
        help="Skips building the runtime (checks previously built code)"
    )

    parser.add_argument(
        "--targets",
        type=str,
        default='all',
        help="Targets to check: all, classic, module, or comma-separated list"
    )

    parser.add_argument(
        "--root",
        type=str,
        help="Working tree containing dist/ and the original sources (default: MAPGUARD_ROOT env or cwd)"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="JSON file overriding targets, origin pattern and sentinel constants"
    )

    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Check every target even after one fails"
    )

    parser.add_argument(
        "--check-remote",
        action="store_true",
        help="Also verify that sources are reachable under sourceRoot over HTTP"
    )

    parser.add_argument(
        "--resolve",
        type=str,
        metavar="MAP:LINE:COLUMN",
        help="Print the original position of a generated position (1-based) and exit"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.resolve:
        return resolve_location(args.resolve, args.root)

    try:
        config = VerifierConfig(
            root=args.root,
            targets=args.targets,
            config_file=args.config,
            skip_build=args.nobuild,
            keep_going=args.keep_going,
            check_remote=args.check_remote,
        )
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    return check_sourcemaps(config)


def cli_entry_point():
    """Entry point for pip-installed command."""
    sys.exit(main())


if __name__ == "__main__":
    sys.exit(main())
