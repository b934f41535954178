#!/usr/bin/env python3
"""Command-line interface for time-series extraction."""

import argparse
import sys
from pathlib import Path

from . import __version__
from .config import config
from .errors import ErrorKind
from .exporter import RecordExporter
from .extractor import PAIRING_MODES
from .pipeline import ExtractionResult, TextExtractor, process_text
from .selection import format_timestamp


def print_banner():
    """Print application banner."""
    print("""
=============================================================
  TS-EXTRACT v{version}
  Recover time-series data from OCR'd JSON reports
=============================================================
""".format(version=__version__))


def print_extracted_json(result: ExtractionResult):
    """Print the extracted JSON (or the parse error shown in its place)."""
    print("\n" + "=" * 60)
    print("EXTRACTED JSON DATA")
    print("=" * 60)
    print(result.extracted_json or "(empty)")


def print_record_sample(result: ExtractionResult):
    """Print sample of decoded records."""
    records = result.records

    print("\n" + "=" * 60)
    print("TIME SERIES (first 10 and last 5 points)")
    print("=" * 60)

    if not records:
        print("  No data extracted")
        return

    for r in records[:10]:
        print(f"  {format_timestamp(r.timestamp)}  Value: {r.value:.2f}")
    if len(records) > 15:
        print("  ...")
        for r in records[-5:]:
            print(f"  {format_timestamp(r.timestamp)}  Value: {r.value:.2f}")

    if result.dropped:
        print(f"\n  Dropped {result.dropped} entries with invalid timestamps")


def read_text_source(source: str) -> str:
    """Read saved OCR text from a file, or stdin for '-'."""
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='ts-extract',
        description='Extract a time series from the bundled report image and chart it',
        epilog='Example: ts-extract --no-chart --csv series.csv'
    )

    parser.add_argument(
        '--text',
        metavar='FILE',
        help="Run on saved OCR text instead of the bundled image ('-' for stdin)",
        default=None
    )

    parser.add_argument(
        '--pairing',
        choices=PAIRING_MODES,
        default='positional',
        help='How timestamps and values are paired (default: positional)'
    )

    parser.add_argument(
        '--csv',
        metavar='PATH',
        help='Also export the decoded records to a CSV file',
        default=None
    )

    parser.add_argument(
        '--no-chart',
        action='store_true',
        help='Do not open the chart window'
    )

    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Suppress progress messages'
    )

    parser.add_argument(
        '-v', '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    args = parser.parse_args()

    if not args.quiet:
        print_banner()

    view = None
    try:
        if args.text is not None:
            result = process_text(
                read_text_source(args.text), pairing=args.pairing, quiet=args.quiet
            )
            if not args.no_chart:
                from .chart import ChartView
                view = ChartView(pairing=args.pairing, quiet=args.quiet)
                view.extractor.apply_result(result)
                view.process_pending()
        elif args.no_chart:
            with TextExtractor(pairing=args.pairing, quiet=args.quiet) as extractor:
                result = extractor.extract_text().result()
        else:
            from .chart import ChartView
            view = ChartView(pairing=args.pairing, quiet=args.quiet)
            result = view.extractor.extract_text().result()
            view.process_pending()

        if result.error_kind == ErrorKind.IMAGE_LOAD:
            print(f"Error: {result.error} (looked in {config.ASSETS_DIR})", file=sys.stderr)
            sys.exit(1)

        if not args.quiet:
            print_extracted_json(result)
            print_record_sample(result)

        if args.csv and result.records:
            path = RecordExporter(result.records).to_csv(args.csv)
            if not args.quiet:
                print(f"\n  CSV: {path}")

        if view is not None:
            view.show()

        sys.exit(0 if result.succeeded else 1)

    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        if view is not None:
            view.close()


if __name__ == '__main__':
    main()
