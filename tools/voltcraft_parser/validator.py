"""
Binary Log File Validator

Validates Voltcraft log files by decoding every block and checking:
- Block framing (start marker at every block boundary)
- Clean termination (no truncated blocks)
- Header dates and voltage plausibility
- Recording continuity (power outages)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .analysis import Blackout, find_blackouts, format_duration
from .config import DecoderConfig
from .errors import DecodeError
from .parser import BlockStatus, LogFile, PowerSample

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """Results of file validation"""
    filepath: str
    is_valid: bool = True

    block_count: int = 0
    completed_blocks: int = 0
    truncated_blocks: int = 0
    sample_count: int = 0
    semantic_warnings: int = 0

    blackouts: List[Blackout] = field(default_factory=list)

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, msg: str):
        """Add an error and mark as invalid"""
        self.errors.append(msg)
        self.is_valid = False

    def add_warning(self, msg: str):
        """Add a warning (doesn't affect validity)"""
        self.warnings.append(msg)

    def summary(self) -> str:
        """Generate human-readable summary"""
        lines = [
            f"Validation Report: {self.filepath}",
            "=" * 50,
            f"Status: {'VALID' if self.is_valid else 'INVALID'}",
            "",
            f"Blocks:    {self.block_count} "
            f"({self.completed_blocks} complete, {self.truncated_blocks} truncated)",
            f"Samples:   {self.sample_count:,}",
            f"Warnings:  {self.semantic_warnings:,} implausible values",
        ]

        if self.blackouts:
            lines.extend(["", f"Power outages: {len(self.blackouts)}"])
            for b in self.blackouts[:5]:
                lines.append(f"  - {b.start:%Y-%m-%d %H:%M} "
                             f"for {format_duration(b.duration)}")
            if len(self.blackouts) > 5:
                lines.append(f"  ... and {len(self.blackouts) - 5} more outages")

        if self.errors:
            lines.extend(["", "Errors:"])
            for err in self.errors:
                lines.append(f"  - {err}")

        if self.warnings:
            lines.extend(["", "Warnings:"])
            for warn in self.warnings:
                lines.append(f"  - {warn}")

        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            'filepath': self.filepath,
            'is_valid': self.is_valid,
            'block_count': self.block_count,
            'completed_blocks': self.completed_blocks,
            'truncated_blocks': self.truncated_blocks,
            'sample_count': self.sample_count,
            'semantic_warnings': self.semantic_warnings,
            'blackouts': len(self.blackouts),
            'errors': self.errors,
            'warnings': self.warnings,
        }


def validate_file(filepath: str, config: Optional[DecoderConfig] = None,
                  check_blackouts: bool = True) -> ValidationReport:
    """
    Validate a Voltcraft log file.

    Args:
        filepath: Path to the log file
        config: Decoder policy (strict_calendar turns bad dates into errors)
        check_blackouts: Whether to look for gaps in the recording

    Returns:
        ValidationReport with detailed results
    """
    report = ValidationReport(filepath=str(filepath))
    path = Path(filepath)

    if not path.exists():
        report.add_error(f"File not found: {filepath}")
        return report

    log = LogFile(path, config)
    previous: Optional[PowerSample] = None

    try:
        for block in log.iter_blocks():
            report.block_count += 1
            for sample in block:
                if check_blackouts and sample.timestamp is not None:
                    if previous is not None:
                        report.blackouts.extend(find_blackouts([previous, sample]).blackouts)
                    previous = sample

            report.sample_count += block.count
            report.semantic_warnings += block.warning_count
            for w in block.warnings:
                report.add_warning(str(w))
            if block.warning_count > len(block.warnings):
                report.add_warning(f"... {block.warning_count - len(block.warnings)} "
                                   f"more warnings in block at offset {block.offset}")

            if block.status is BlockStatus.COMPLETED:
                report.completed_blocks += 1
            else:
                report.truncated_blocks += 1
                report.add_error(f"Block at offset {block.offset} truncated: {block.error}")
    except DecodeError as e:
        report.add_error(str(e))
    except OSError as e:
        report.add_error(f"Failed to read file: {e}")

    if report.is_valid and report.block_count == 0:
        report.add_error("No data blocks found")

    if report.blackouts:
        report.add_warning(f"Found {len(report.blackouts)} power outages")

    logger.debug("Validated %s: %s", filepath, 'valid' if report.is_valid else 'invalid')
    return report
