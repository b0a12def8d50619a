#!/usr/bin/env python3
"""
Voltcraft Log File Validation Tool

Validates binary log files for integrity, checking:
- Block framing and termination
- Header dates and voltage plausibility
- Power outages (gaps in the recording)

Usage:
    python validate_log.py <logfile.bin> [--strict-calendar] [--json]
    python validate_log.py --batch <directory> [--json]
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from voltcraft_parser import DecoderConfig, validate_file


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Validate Voltcraft binary log files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Validate a single file
    python validate_log.py data/A0000001.bin

    # Validate all files in a directory
    python validate_log.py --batch data/

    # Output as JSON
    python validate_log.py data/A0000001.bin --json

    # Treat impossible header dates as errors
    python validate_log.py data/A0000001.bin --strict-calendar
"""
    )

    parser.add_argument('filepath', nargs='?', help='Path to log file')
    parser.add_argument('--batch', '-b', metavar='DIR',
                        help='Validate all files in directory')
    parser.add_argument('--pattern', default='*',
                        help='Glob used with --batch (default: *)')
    parser.add_argument('--strict-calendar', action='store_true',
                        help='Fail blocks whose header is not a valid date')
    parser.add_argument('--no-voltage-check', action='store_true',
                        help='Skip the plausible voltage window check')
    parser.add_argument('--no-blackouts', action='store_true',
                        help='Skip power outage detection')
    parser.add_argument('--json', '-j', action='store_true',
                        help='Output results as JSON')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Show detailed output')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.ERROR,
                        format='%(levelname)s %(name)s: %(message)s')

    if not args.filepath and not args.batch:
        parser.print_help()
        return 1

    # Collect files to validate
    if args.batch:
        batch_dir = Path(args.batch)
        if not batch_dir.is_dir():
            print(f"Error: {args.batch} is not a directory", file=sys.stderr)
            return 1
        files = sorted(p for p in batch_dir.glob(args.pattern) if p.is_file())
        if not files:
            print(f"No files found in {args.batch}", file=sys.stderr)
            return 1
    else:
        files = [Path(args.filepath)]

    config = DecoderConfig(strict_calendar=args.strict_calendar)
    if args.no_voltage_check:
        config = replace(config, voltage_range=None)

    results = []
    all_valid = True

    for filepath in files:
        report = validate_file(str(filepath), config=config,
                               check_blackouts=not args.no_blackouts)
        results.append(report)
        if not report.is_valid:
            all_valid = False

    # Output results
    if args.json:
        output = [r.to_dict() for r in results]
        print(json.dumps(output if len(output) > 1 else output[0], indent=2))
    else:
        for report in results:
            print(report.summary())
            print()

    return 0 if all_valid else 1


if __name__ == '__main__':
    sys.exit(main())
