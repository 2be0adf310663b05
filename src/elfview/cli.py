"""Command-line interface for elfview."""

import argparse
import json
import logging
import sys
from typing import List, Optional, Tuple

from . import __version__
from .exceptions import ElfViewError
from .models import InfoRow, ParseResult
from .parser import parse_file
from .ranges import RangeType, describe

log = logging.getLogger(__name__)


def format_info_row(row: InfoRow) -> str:
    """Format a single info row for display."""
    label = row.label + ("(!)" if row.anomalous else "")
    return f"{label + ':':<36} {row.value}"


def walk_spans(result: ParseResult) -> List[Tuple[int, int, int, RangeType]]:
    """
    Walk the file by offset, opening and closing spans the way a renderer does.

    Returns:
        List of (start, end, depth, range_type), ``end`` inclusive, ordered
        by start offset and then nesting depth.
    """
    spans = []
    open_spans: List[Tuple[int, RangeType]] = []

    for offset in range(len(result.raw_bytes)):
        for marker in result.ranges.markers(offset):
            if not marker.is_end:
                open_spans.append((offset, marker))
        for _ in range(result.ranges.lookup_range_ends(offset)):
            start, range_type = open_spans.pop()
            spans.append((start, offset, len(open_spans), range_type))

    spans.sort(key=lambda span: (span[0], span[2]))
    return spans


def format_span_line(start: int, end: int, depth: int, range_type: RangeType) -> str:
    """Format a single annotated span for display."""
    descriptor = describe(range_type)
    classes = descriptor.css_classes()
    return (
        f"{start:08x}-{end:08x} {'  ' * depth}{descriptor.identifier}"
        + (f" [{classes}]" if classes else "")
    )


def print_result(result: ParseResult, show_spans: bool = False) -> None:
    """Print parse result in human-readable format."""
    print(f"Processing {result.source_name}")

    for row in result.info_rows:
        print(format_info_row(row))

    if show_spans:
        print("offset            field")
        for span in walk_spans(result):
            print(format_span_line(*span))


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="elfview",
        description="Describe the headers of ELF files byte by byte.",
        epilog=(
            "Anomalous values, such as an uncommon ABI version, are marked "
            "with (!)."
        ),
    )

    parser.add_argument(
        "files",
        nargs="*",
        metavar="FILE",
        help="ELF file(s) to analyze",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON",
    )

    parser.add_argument(
        "--spans", "-s",
        action="store_true",
        help="List annotated byte spans after the summary",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    if not args.files:
        print(
            "ELF header viewer. Usage:\n\n"
            "  elfview file ...\n\n"
            "Describes the identity block, file header and program headers\n"
            "of executables, shared objects and other ELF files."
        )
        return 0

    output = []
    failed = False
    for filename in args.files:
        try:
            result = parse_file(filename)
        except ElfViewError as e:
            log.debug("%s: %s", filename, type(e).__name__)
            failed = True
            if args.json:
                output.append({"source_name": filename, "error": str(e)})
            else:
                print(f"Processing {filename}")
                print(e, file=sys.stderr)
            continue

        if args.json:
            output.append(result.to_dict())
        else:
            print_result(result, show_spans=args.spans)

    if args.json:
        print(json.dumps(output, indent=2))

    # Return non-zero if any file failed
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
