#!/usr/bin/env python3
"""
Voltcraft Log to CSV Converter

Converts a binary Voltcraft log file to CSV (or text/JSON) for analysis
in spreadsheet applications or other tools.

Usage:
    python convert_to_csv.py <input.bin> [output.csv]
    python convert_to_csv.py <input.bin> --json  # Output as JSON
    python convert_to_csv.py <input.bin> --text  # Parameter history
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from voltcraft_parser import DecodeError, DecoderConfig, LogFile, to_csv, to_json, to_text


def progress(rows: int):
    """Print running row count"""
    sys.stdout.write(f'\r  {rows:,} rows')
    sys.stdout.flush()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Convert Voltcraft binary log files to CSV/JSON/text',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Convert to CSV (auto-named)
    python convert_to_csv.py data/A0000001.bin

    # Convert to specific output file
    python convert_to_csv.py data/A0000001.bin output/data.csv

    # Export as JSON with metadata and all samples
    python convert_to_csv.py data/A0000001.bin --json --include-data

    # Skip over damaged regions instead of failing
    python convert_to_csv.py data/A0000001.bin --resync
"""
    )

    parser.add_argument('input', help='Input binary log file')
    parser.add_argument('output', nargs='?', help='Output file path')
    fmt = parser.add_mutually_exclusive_group()
    fmt.add_argument('--json', '-j', action='store_true',
                     help='Export as JSON instead of CSV')
    fmt.add_argument('--text', '-t', action='store_true',
                     help='Export as plain-text parameter history')
    parser.add_argument('--include-data', action='store_true',
                        help='Include all sample data in JSON output')
    parser.add_argument('--resync', action='store_true',
                        help='Scan for the next block after a framing error')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Suppress progress output')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Show decoder debug logging')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1

    # Determine output path
    if args.output:
        output_path = Path(args.output)
    else:
        ext = '.json' if args.json else '.txt' if args.text else '.csv'
        output_path = input_path.with_suffix(ext)

    log = LogFile(input_path, DecoderConfig(resync=args.resync))

    if not args.quiet:
        print(f"Reading: {input_path}")
        print(f"Writing: {output_path}")

    try:
        if args.json:
            to_json(log, str(output_path), include_data=args.include_data)
        elif args.text:
            rows = to_text(log.iter_samples(), str(output_path))
            if not args.quiet:
                print(f"  Wrote {rows:,} lines")
        else:
            callback = None if args.quiet else progress
            rows = to_csv(log.iter_samples(), str(output_path),
                          progress_callback=callback)
            if not args.quiet:
                print(f"\r  Wrote {rows:,} rows")
    except DecodeError as e:
        print(f"\nError decoding file: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"\nError writing output: {e}", file=sys.stderr)
        return 1

    if not log.is_complete:
        print("Warning: file contains a truncated block", file=sys.stderr)

    if not args.quiet:
        print("Done!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
