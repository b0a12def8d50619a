"""
Voltcraft Log Parser

Frames and decodes the binary logs written by the Voltcraft Energy
Logger 4000. A log is one or more blocks:

    E0 C5 EA | month day year hour minute | (V V I I PF)* | FF FF FF FF

Samples are one minute apart, starting at the block header time.
Decoding is lazy: samples are produced one 5-byte record at a time, so
arbitrarily long logs are processed in constant memory.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from .config import DEFAULT_CONFIG, DecoderConfig
from .cursor import ByteCursor, StreamCursor
from .errors import (CalendarError, FramingError, InsufficientData,
                     SemanticWarning, TruncatedStream)
from .fields import (HEADER_SIZE, SAMPLE_SIZE, BlockStartTime, decode_date,
                     decode_sample, scale_current, scale_power_factor,
                     scale_voltage)

logger = logging.getLogger(__name__)

START_MARKER = b'\xE0\xC5\xEA'
END_MARKER = b'\xFF\xFF\xFF\xFF'
PADDING_BYTE = b'\xFF'
SAMPLE_INTERVAL = timedelta(minutes=1)

Cursor = Union[ByteCursor, StreamCursor]


class FrameState(Enum):
    AWAITING_START = 'awaiting_start'
    READING_HEADER = 'reading_header'
    READING_SAMPLES = 'reading_samples'
    TERMINATED = 'terminated'
    FAILED = 'failed'


class BlockStatus(Enum):
    COMPLETED = 'completed'
    TRUNCATED = 'truncated'


@dataclass(frozen=True)
class PowerSample:
    """One decoded per-minute measurement"""
    index: int
    timestamp: Optional[datetime]
    voltage: float          # V
    current: float          # A
    power_factor: float     # cos(phi)

    @property
    def power(self) -> float:
        """Active power in kW"""
        return self.voltage * self.current * self.power_factor / 1000

    @property
    def apparent_power(self) -> float:
        """Apparent power in kVA"""
        return self.voltage * self.current / 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'voltage': self.voltage,
            'current': self.current,
            'power_factor': self.power_factor,
            'power': self.power,
            'apparent_power': self.apparent_power,
        }


class SampleStream:
    """
    Lazy, single-pass sequence of the samples of one block.

    start_time is known as soon as the stream exists. status and count
    only become available once the block has been read to its end.
    """

    def __init__(self, parser: 'RecordParser', offset: int,
                 start_time: Optional[BlockStartTime]):
        self.offset = offset
        self.start_time = start_time
        self.status: Optional[BlockStatus] = None
        self.error: Optional[TruncatedStream] = None
        self.warnings: List[SemanticWarning] = []
        self.warning_count = 0
        self._decoded = 0
        self._max_warnings = parser.config.max_warnings
        self._samples: Iterator[PowerSample] = iter(())
        if start_time is not None:
            self._samples = parser._iter_samples(self)

    def __iter__(self) -> 'SampleStream':
        return self

    def __next__(self) -> PowerSample:
        return next(self._samples)

    @property
    def finished(self) -> bool:
        return self.status is not None

    @property
    def truncated(self) -> bool:
        return self.status is BlockStatus.TRUNCATED

    @property
    def decoded(self) -> int:
        """Samples produced so far"""
        return self._decoded

    @property
    def count(self) -> int:
        """Total samples in the block (only once the block is finished)"""
        if not self.finished:
            raise RuntimeError("Sample count unavailable before the block end")
        return self._decoded

    def drain(self) -> int:
        """Consume the rest of the block, returns the total count"""
        for _ in self:
            pass
        return self.count

    def _warn(self, position: int, message: str) -> None:
        self.warning_count += 1
        if len(self.warnings) < self._max_warnings:
            warning = SemanticWarning(position, message)
            self.warnings.append(warning)
            logger.warning("Block at offset %d: %s", self.offset, warning)

    def _finish(self, status: BlockStatus,
                error: Optional[TruncatedStream] = None) -> None:
        self.status = status
        self.error = error

    def __repr__(self) -> str:
        status = self.status.value if self.status else 'open'
        return (f"SampleStream(offset={self.offset}, start={self.start_time}, "
                f"decoded={self._decoded}, status={status})")


class RecordParser:
    """
    Block framer over a cursor.

    begin_block() consumes the start marker and the header and returns
    the SampleStream of the block. Once that stream is finished the
    parser may be re-driven on the same cursor for the next block.
    """

    def __init__(self, cursor: Cursor, config: Optional[DecoderConfig] = None):
        self.cursor = cursor
        self.config = config or DEFAULT_CONFIG
        self.state = FrameState.AWAITING_START

    def begin_block(self) -> SampleStream:
        if self.state in (FrameState.READING_HEADER, FrameState.READING_SAMPLES):
            raise RuntimeError("Previous block has not been read to its end")

        self.state = FrameState.AWAITING_START
        offset = self.cursor.position
        if not self._peek_is(START_MARKER):
            self.state = FrameState.FAILED
            raise FramingError(offset, self._peek_available(len(START_MARKER)))
        self.cursor.read_bytes(len(START_MARKER))

        self.state = FrameState.READING_HEADER
        try:
            header = self.cursor.read_bytes(HEADER_SIZE)
        except InsufficientData:
            self.state = FrameState.FAILED
            stream = SampleStream(self, offset, None)
            stream._finish(BlockStatus.TRUNCATED,
                           TruncatedStream(self.cursor.position, 0))
            logger.warning("Block at offset %d truncated inside its header", offset)
            return stream

        start_time = decode_date(header)
        stream = SampleStream(self, offset, start_time)
        if not start_time.is_valid_calendar:
            message = f"Header is not a valid date: {start_time}"
            if self.config.strict_calendar:
                self.state = FrameState.FAILED
                raise CalendarError(f"Block at offset {offset}: {message}")
            stream._warn(offset + len(START_MARKER), message)

        logger.debug("Block at offset %d starts %s", offset, start_time)
        self.state = FrameState.READING_SAMPLES
        return stream

    def _iter_samples(self, stream: SampleStream) -> Iterator[PowerSample]:
        cursor = self.cursor
        base = stream.start_time.datetime if stream.start_time.is_valid_calendar else None
        v_range = self.config.voltage_range

        while True:
            position = cursor.position
            if self.config.split_on_start_marker and self._peek_is(START_MARKER):
                # Next block begins without a terminator on this one
                self._terminate(stream)
                return
            if self._peek_is(END_MARKER):
                cursor.read_bytes(len(END_MARKER))
                self._terminate(stream)
                return

            try:
                data = cursor.read_bytes(SAMPLE_SIZE)
            except InsufficientData:
                self.state = FrameState.FAILED
                error = TruncatedStream(position, stream.decoded)
                stream._finish(BlockStatus.TRUNCATED, error)
                logger.warning("%s", error)
                return

            raw = decode_sample(data)
            index = stream.decoded
            sample = PowerSample(
                index=index,
                timestamp=base + index * SAMPLE_INTERVAL if base is not None else None,
                voltage=scale_voltage(raw.voltage_raw),
                current=scale_current(raw.current_raw),
                power_factor=scale_power_factor(raw.power_factor_raw),
            )
            if v_range and not v_range[0] <= sample.voltage <= v_range[1]:
                stream._warn(position, f"Implausible voltage {sample.voltage:.1f}V "
                                       f"in sample {index}")
            stream._decoded += 1
            yield sample

    def _terminate(self, stream: SampleStream) -> None:
        self.state = FrameState.TERMINATED
        stream._finish(BlockStatus.COMPLETED)
        logger.debug("Block at offset %d complete: %d samples",
                     stream.offset, stream.decoded)

    def _peek_is(self, marker: bytes) -> bool:
        try:
            return self.cursor.peek_bytes(len(marker)) == marker
        except InsufficientData:
            return False

    def _peek_available(self, n: int) -> bytes:
        while n > 0:
            try:
                return self.cursor.peek_bytes(n)
            except InsufficientData:
                n -= 1
        return b''


def _skip_padding(cursor: Cursor) -> int:
    skipped = 0
    try:
        while cursor.peek_bytes(1) == PADDING_BYTE:
            cursor.read_bytes(1)
            skipped += 1
    except InsufficientData:
        pass
    return skipped


def _resync(cursor: Cursor) -> int:
    """Advance to the next start marker (or the end), returns bytes skipped"""
    skipped = 0
    while not cursor.at_end():
        try:
            if cursor.peek_bytes(len(START_MARKER)) == START_MARKER:
                break
        except InsufficientData:
            pass
        cursor.read_bytes(1)
        skipped += 1
    return skipped


def iter_blocks(cursor: Cursor,
                config: Optional[DecoderConfig] = None) -> Iterator[SampleStream]:
    """
    Iterate over every block in a byte source.

    The source must begin with a block. A block the caller did not read
    to its end is drained before the next one is framed. Iteration stops
    at the end of input, after 0xFF padding, or after a truncated block.

    Only a first block that cannot be framed raises FramingError.
    Unframed bytes after a block end iteration with a logged warning
    (or are skipped when config.resync is set).
    """
    config = config or DEFAULT_CONFIG
    parser = RecordParser(cursor, config)
    first = True

    while True:
        if not first:
            _skip_padding(cursor)
            if cursor.at_end():
                return

        try:
            stream = parser.begin_block()
        except FramingError as e:
            if not config.resync:
                if first:
                    raise
                # Blocks already yielded stay valid; the rest is unframed
                logger.warning("%s; ignoring the rest of the input", e)
                return
            skipped = _resync(cursor)
            logger.warning("%s; skipped %d bytes looking for the next block", e, skipped)
            if cursor.at_end():
                return
            first = False
            continue

        first = False
        yield stream
        stream.drain()
        if stream.truncated:
            return


@dataclass
class BlockSummary:
    """Per-block outcome of a full scan"""
    index: int
    offset: int
    start_time: Optional[BlockStartTime]
    status: BlockStatus
    sample_count: int
    warning_count: int
    warnings: List[SemanticWarning]


class LogFile:
    """
    Voltcraft Energy Logger binary file.

    Nothing is read on construction; iteration is lazy and the file is
    reopened for each pass.

    Example:
        log = LogFile('A0000001.bin')
        for sample in log.iter_samples():
            print(f"{sample.timestamp}: {sample.power:.3f} kW")
    """

    def __init__(self, filepath: Union[str, Path],
                 config: Optional[DecoderConfig] = None):
        self.filepath = Path(filepath)
        self.config = config or DEFAULT_CONFIG
        self._data: Optional[bytes] = None
        self._samples: Optional[List[PowerSample]] = None
        self._blocks: Optional[List[BlockSummary]] = None

    @classmethod
    def from_bytes(cls, data: bytes, config: Optional[DecoderConfig] = None,
                   name: str = '<memory>') -> 'LogFile':
        log = cls(name, config)
        log._data = bytes(data)
        return log

    @contextmanager
    def _cursor(self) -> Iterator[Cursor]:
        if self._data is not None:
            yield ByteCursor(self._data)
            return
        with open(self.filepath, 'rb') as f:
            yield StreamCursor(f)

    def iter_blocks(self) -> Iterator[SampleStream]:
        """Iterate blocks; each must be consumed before advancing"""
        with self._cursor() as cursor:
            yield from iter_blocks(cursor, self.config)

    def iter_samples(self) -> Iterator[PowerSample]:
        """Iterate samples of every block without loading them into memory"""
        for block in self.iter_blocks():
            yield from block

    @property
    def samples(self) -> List[PowerSample]:
        """All samples (loads into memory)"""
        if self._samples is None:
            self._samples = list(self.iter_samples())
        return self._samples

    @property
    def blocks(self) -> List[BlockSummary]:
        """Per-block summaries from one pass over the file"""
        if self._blocks is None:
            summaries = []
            for i, block in enumerate(self.iter_blocks()):
                block.drain()
                summaries.append(BlockSummary(
                    index=i,
                    offset=block.offset,
                    start_time=block.start_time,
                    status=block.status,
                    sample_count=block.count,
                    warning_count=block.warning_count,
                    warnings=list(block.warnings),
                ))
            self._blocks = summaries
        return self._blocks

    @property
    def block_count(self) -> int:
        return len(self.blocks)

    @property
    def sample_count(self) -> int:
        return sum(b.sample_count for b in self.blocks)

    @property
    def is_complete(self) -> bool:
        """True if every block ended cleanly"""
        return all(b.status is BlockStatus.COMPLETED for b in self.blocks)

    @property
    def start_time(self) -> Optional[datetime]:
        for sample in self.iter_samples():
            if sample.timestamp is not None:
                return sample.timestamp
        return None

    @property
    def end_time(self) -> Optional[datetime]:
        last = None
        for sample in self.iter_samples():
            if sample.timestamp is not None:
                last = sample.timestamp
        return last

    @property
    def duration_minutes(self) -> int:
        """Minutes covered by the samples (each sample spans one minute)"""
        return self.sample_count

    def __repr__(self) -> str:
        return f"LogFile('{self.filepath.name}')"
