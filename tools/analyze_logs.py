#!/usr/bin/env python3
"""
Voltcraft Energy Logger Folder Analyzer

Decodes every log file in a folder, merges the samples into a single
chronological history and writes:
- voltcraft_history.txt  (parameter history)
- voltcraft_history.csv  (parameter history)
- voltcraft_stats.txt    (overall, daily and power outage statistics)

Usage:
    python analyze_logs.py [input_dir] [output_dir]
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from voltcraft_parser import (DecodeError, DecoderConfig, LogFile, merge_samples,
                              save_statistics, to_csv, to_text)

HISTORY_TEXT_FILE = 'voltcraft_history.txt'
HISTORY_CSV_FILE = 'voltcraft_history.csv'
STATS_FILE = 'voltcraft_stats.txt'

log = logging.getLogger('analyze_logs')


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Decode a folder of Voltcraft Energy Logger files and write statistics',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Read and write in the current folder
    python analyze_logs.py

    # Read from the SD card, write next to it
    python analyze_logs.py /media/sdcard reports/
"""
    )
    parser.add_argument('input_dir', nargs='?', default='.',
                        help='Folder holding the log files (default: .)')
    parser.add_argument('output_dir', nargs='?', default='.',
                        help='Folder receiving the reports (default: .)')
    parser.add_argument('--pattern', default='*',
                        help='Glob selecting log files (default: *)')
    parser.add_argument('--resync', action='store_true',
                        help='Scan for the next block after a framing error')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Show decoder debug logging')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    input_dir = Path(args.input_dir)
    output_dir = Path(args.output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Error: failed to create folder {output_dir}: {e}", file=sys.stderr)
        return 1

    print(f"Reading data files from folder '{input_dir}'.")
    print(f"Writing statistics to folder '{output_dir}'.")
    started = time.monotonic()

    config = DecoderConfig(resync=args.resync)
    report_names = {HISTORY_TEXT_FILE, HISTORY_CSV_FILE, STATS_FILE}
    sources = []
    for path in sorted(input_dir.glob(args.pattern)):
        if not path.is_file() or path.name in report_names:
            continue
        print(f"Processing file: {path}...", end='')
        try:
            samples = LogFile(path, config).samples
        except DecodeError as e:
            log.debug("Skipping %s: %s", path, e)
            print(" Invalid")
            continue
        except OSError:
            print(" Failed to open")
            continue
        sources.append(samples)
        print(" Ok")

    if not sources:
        print("No valid Voltcraft data files found.")
        return 1

    print("Sorting and removing duplicates from power data...", end='')
    samples = merge_samples(*sources)
    print(" Done")

    if not samples:
        print("No timestamped samples found.")
        return 1

    outputs = [
        (HISTORY_TEXT_FILE, to_text),
        (HISTORY_CSV_FILE, to_csv),
        (STATS_FILE, save_statistics),
    ]
    status = 0
    for name, writer in outputs:
        print(f"Saving {name}...", end='')
        try:
            writer(samples, str(output_dir / name))
            print(" Ok")
        except OSError as e:
            log.error("Failed to write %s: %s", name, e)
            print(" Failed")
            status = 1

    print(f"Processed {len(sources)} files in {time.monotonic() - started:.2f}s.")
    print("Finished.")
    return status


if __name__ == '__main__':
    sys.exit(main())
