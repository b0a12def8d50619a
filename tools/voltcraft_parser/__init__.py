"""
Voltcraft Energy Logger Binary File Parser

A Python library for decoding, validating, and analyzing the binary log
files written by the Voltcraft Energy Logger 4000.

Example usage:
    from voltcraft_parser import LogFile

    log = LogFile('A0000001.bin')
    for sample in log.iter_samples():
        print(f"{sample.timestamp}: {sample.voltage:.1f}V {sample.power:.3f}kW")

    # Validate file integrity
    report = validate_file('A0000001.bin')
    if report.is_valid:
        print("All blocks terminated cleanly!")

    # Export to CSV
    to_csv(log.iter_samples(), 'history.csv')
"""

from .config import DecoderConfig
from .cursor import ByteCursor, StreamCursor
from .errors import (DecodeError, InsufficientData, FramingError,
                     TruncatedStream, CalendarError, SemanticWarning)
from .fields import BlockStartTime, RawPowerSample
from .parser import (LogFile, RecordParser, SampleStream, PowerSample,
                     BlockStatus, FrameState, BlockSummary, iter_blocks,
                     START_MARKER, END_MARKER)
from .validator import ValidationReport, validate_file
from .analysis import (merge_samples, compute_power_stats, daily_stats,
                       overall_stats, find_blackouts, format_duration)
from .export import to_csv, to_text, save_statistics, to_json, to_dataframe

__version__ = '1.0.0'
__all__ = [
    'DecoderConfig',
    'ByteCursor',
    'StreamCursor',
    'DecodeError',
    'InsufficientData',
    'FramingError',
    'TruncatedStream',
    'CalendarError',
    'SemanticWarning',
    'BlockStartTime',
    'RawPowerSample',
    'LogFile',
    'RecordParser',
    'SampleStream',
    'PowerSample',
    'BlockStatus',
    'FrameState',
    'BlockSummary',
    'iter_blocks',
    'START_MARKER',
    'END_MARKER',
    'ValidationReport',
    'validate_file',
    'merge_samples',
    'compute_power_stats',
    'daily_stats',
    'overall_stats',
    'find_blackouts',
    'format_duration',
    'to_csv',
    'to_text',
    'save_statistics',
    'to_json',
    'to_dataframe',
]
