"""
Decoder Configuration
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class DecoderConfig:
    """
    Decoding policy knobs.

    strict_calendar: fail the block on an impossible header date instead
        of warning and emitting samples without timestamps
    voltage_range: plausible mains window in volts, None disables the check
    split_on_start_marker: a start marker inside the sample area closes
        the current block and opens the next one
    resync: after a framing failure between blocks, scan forward for the
        next start marker instead of raising
    max_warnings: warnings kept per block (all of them are still counted)
    """
    strict_calendar: bool = False
    voltage_range: Optional[Tuple[float, float]] = (150.0, 250.0)
    split_on_start_marker: bool = True
    resync: bool = False
    max_warnings: int = 100


DEFAULT_CONFIG = DecoderConfig()
