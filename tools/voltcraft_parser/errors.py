"""
Decoder Errors

Exception taxonomy shared by the cursor, the framer and the tools.
"""

from typing import Optional


class DecodeError(Exception):
    """Base for every failure to decode a Voltcraft log."""


class InsufficientData(DecodeError):
    """Cursor ran out of bytes. Translated by the framer, never leaked."""

    def __init__(self, requested: int, available: Optional[int], position: int):
        super().__init__(f"Need {requested} bytes at offset {position}, "
                         f"only {available} available")
        self.requested = requested
        self.available = available
        self.position = position


class FramingError(DecodeError):
    """Start marker not found where a block must begin."""

    def __init__(self, position: int, found: bytes):
        super().__init__(f"No block start marker at offset {position} "
                         f"(found {found.hex(' ').upper() or 'EOF'})")
        self.position = position
        self.found = found


class TruncatedStream(DecodeError):
    """Byte source exhausted before the block terminator."""

    def __init__(self, position: int, samples_decoded: int = 0):
        super().__init__(f"Stream ended at offset {position} without end marker "
                         f"({samples_decoded} samples decoded)")
        self.position = position
        self.samples_decoded = samples_decoded


class CalendarError(DecodeError):
    """Block header does not describe a real date (strict mode only)."""


class SemanticWarning(UserWarning):
    """Plausibility problem in otherwise well-formed data. Collected, not raised."""

    def __init__(self, position: int, message: str):
        super().__init__(f"offset {position}: {message}")
        self.position = position
        self.message = message
