"""
Framer and Sample Stream Tests

Decoding of complete, empty, truncated, unframed and concatenated blocks.
"""

import io
import logging
from datetime import datetime, timedelta

import pytest

from conftest import START
from voltcraft_parser import (BlockStatus, ByteCursor, CalendarError, DecoderConfig,
                              FrameState, FramingError, LogFile, PowerSample,
                              RecordParser, StreamCursor, iter_blocks)


def decode_one(data, config=None):
    parser = RecordParser(ByteCursor(data), config)
    stream = parser.begin_block()
    return parser, stream, list(stream)


class TestSingleBlock:
    """One block, start to end marker."""

    def test_reference_scenario(self, make_block):
        data = make_block((6, 15, 23, 14, 30), [(0x09C4, 0x03E8, 0x64)])
        parser, stream, samples = decode_one(data)

        assert str(stream.start_time) == "2023-06-15 14:30"
        assert len(samples) == 1
        s = samples[0]
        assert s.index == 0
        assert s.timestamp == datetime(2023, 6, 15, 14, 30)
        assert s.voltage == 250.0
        assert s.current == 1.0
        assert s.power_factor == 1.0
        assert s.power == pytest.approx(0.250)
        assert s.apparent_power == pytest.approx(0.250)
        assert stream.status is BlockStatus.COMPLETED
        assert parser.state is FrameState.TERMINATED

    def test_device_record(self, device_block):
        _, stream, samples = decode_one(device_block)
        assert stream.start_time.datetime == datetime(2014, 9, 11, 18, 43)
        s = samples[0]
        assert (s.voltage, s.current, s.power_factor) == (224.6, 0.446, 0.87)
        assert s.power == pytest.approx(224.6 * 0.446 * 0.87 / 1000)

    def test_derived_values_recompute_from_fields(self, make_block):
        data = make_block(samples=[(2301, 12345, 93), (1987, 7, 1), (65535, 65535, 255)])
        _, _, samples = decode_one(data)
        for s in samples:
            assert s.power == s.voltage * s.current * s.power_factor / 1000
            assert s.apparent_power == s.voltage * s.current / 1000

    def test_empty_block_is_completed(self, make_block):
        parser, stream, samples = decode_one(make_block(samples=[]))
        assert samples == []
        assert stream.status is BlockStatus.COMPLETED
        assert stream.count == 0
        assert parser.cursor.at_end()

    def test_timestamps_are_one_minute_apart(self, make_block):
        data = make_block((6, 15, 23, 14, 30), [(2300, 100, 90)] * 5)
        _, stream, samples = decode_one(data)
        base = stream.start_time.datetime
        for i, s in enumerate(samples):
            assert s.index == i
            assert s.timestamp == base + timedelta(minutes=i)

    def test_timestamp_rolls_over_day_and_year(self, make_block):
        data = make_block((12, 31, 22, 23, 59), [(2300, 100, 90)] * 2)
        _, _, samples = decode_one(data)
        assert samples[0].timestamp == datetime(2022, 12, 31, 23, 59)
        assert samples[1].timestamp == datetime(2023, 1, 1, 0, 0)

    def test_count_unavailable_until_finished(self, make_block):
        parser = RecordParser(ByteCursor(make_block(samples=[(2300, 1, 1)] * 2)))
        stream = parser.begin_block()
        next(stream)
        with pytest.raises(RuntimeError):
            stream.count
        assert stream.decoded == 1
        assert stream.drain() == 2
        assert stream.count == 2

    def test_stream_is_single_pass(self, make_block):
        _, stream, samples = decode_one(make_block(samples=[(2300, 1, 1)]))
        assert len(samples) == 1
        assert list(stream) == []

    def test_samples_are_immutable(self, device_block):
        _, _, samples = decode_one(device_block)
        with pytest.raises(AttributeError):
            samples[0].voltage = 0.0


class TestFraming:
    """Start marker recognition."""

    def test_bad_start_marker(self, make_block):
        data = b"\x00\x01\x02" + make_block()[3:]
        parser = RecordParser(ByteCursor(data))
        with pytest.raises(FramingError) as exc:
            parser.begin_block()
        assert exc.value.position == 0
        assert exc.value.found == b"\x00\x01\x02"
        assert parser.state is FrameState.FAILED

    def test_empty_input(self):
        with pytest.raises(FramingError):
            RecordParser(ByteCursor(b"")).begin_block()

    def test_short_input(self):
        with pytest.raises(FramingError) as exc:
            RecordParser(ByteCursor(b"\xE0\xC5")).begin_block()
        assert exc.value.found == b"\xE0\xC5"

    def test_cannot_begin_while_block_open(self, make_block):
        parser = RecordParser(ByteCursor(make_block(samples=[(2300, 1, 1)])))
        parser.begin_block()
        with pytest.raises(RuntimeError):
            parser.begin_block()


class TestTruncation:
    """Streams that end without a terminator keep what was decoded."""

    def test_missing_end_marker(self, make_block):
        data = make_block(samples=[(2300, 100, 90)] * 3, end=False)
        parser, stream, samples = decode_one(data)
        assert len(samples) == 3
        assert stream.status is BlockStatus.TRUNCATED
        assert stream.truncated
        assert stream.error.samples_decoded == 3
        assert parser.state is FrameState.FAILED

    def test_partial_record(self, make_block):
        data = make_block(samples=[(2300, 100, 90)] * 2, end=False) + b"\x08\xC6"
        _, stream, samples = decode_one(data)
        assert len(samples) == 2
        assert stream.status is BlockStatus.TRUNCATED
        assert stream.error.position == 8 + 2 * 5

    def test_partial_end_marker(self, make_block):
        data = make_block(samples=[(2300, 100, 90)], end=False) + b"\xFF\xFF"
        _, stream, samples = decode_one(data)
        assert len(samples) == 1
        assert stream.status is BlockStatus.TRUNCATED

    def test_truncated_header(self):
        parser = RecordParser(ByteCursor(START + b"\x06\x0F"))
        stream = parser.begin_block()
        assert stream.start_time is None
        assert stream.status is BlockStatus.TRUNCATED
        assert list(stream) == []
        assert stream.count == 0


class TestCalendar:
    """Header dates that do not exist."""

    def test_invalid_date_warns_and_keeps_samples(self, make_block):
        data = make_block((13, 1, 23, 0, 0), [(2300, 100, 90)])
        _, stream, samples = decode_one(data)
        assert len(samples) == 1
        assert samples[0].timestamp is None
        assert samples[0].voltage == 230.0
        assert stream.warning_count == 1
        assert "not a valid date" in stream.warnings[0].message
        assert stream.status is BlockStatus.COMPLETED

    def test_strict_calendar_fails_block(self, make_block):
        data = make_block((2, 30, 23, 0, 0), [(2300, 100, 90)])
        parser = RecordParser(ByteCursor(data), DecoderConfig(strict_calendar=True))
        with pytest.raises(CalendarError):
            parser.begin_block()
        assert parser.state is FrameState.FAILED


class TestVoltageWindow:

    def test_implausible_voltage_warns(self, make_block):
        data = make_block(samples=[(2300, 1, 1), (100, 1, 1), (2600, 1, 1)])
        _, stream, samples = decode_one(data)
        assert len(samples) == 3
        assert stream.warning_count == 2
        assert [w.position for w in stream.warnings] == [13, 18]

    def test_window_disabled(self, make_block):
        data = make_block(samples=[(100, 1, 1)])
        _, stream, _ = decode_one(data, DecoderConfig(voltage_range=None))
        assert stream.warning_count == 0

    def test_warning_cap(self, make_block):
        data = make_block(samples=[(0, 1, 1)] * 10)
        _, stream, _ = decode_one(data, DecoderConfig(max_warnings=3))
        assert stream.warning_count == 10
        assert len(stream.warnings) == 3


class TestMultipleBlocks:
    """Concatenated blocks and re-driving the framer."""

    def test_terminated_blocks_back_to_back(self, make_block):
        data = (make_block((1, 1, 24, 0, 0), [(2300, 1, 1)] * 2)
                + make_block((1, 2, 24, 0, 0), [(2310, 1, 1)]))
        blocks = [(b.start_time.day, list(b), b.status)
                  for b in iter_blocks(ByteCursor(data))]
        assert [day for day, _, _ in blocks] == [1, 2]
        assert [len(s) for _, s, _ in blocks] == [2, 1]
        assert all(status is BlockStatus.COMPLETED for _, _, status in blocks)

    def test_start_marker_splits_blocks(self, make_block):
        # device style: only the last block carries the end marker
        data = (make_block((1, 1, 24, 10, 0), [(2300, 1, 1)] * 2, end=False)
                + make_block((1, 1, 24, 12, 0), [(2300, 1, 1)]))
        blocks = [(b.start_time.hour, len(list(b)), b.status)
                  for b in iter_blocks(ByteCursor(data))]
        assert blocks == [(10, 2, BlockStatus.COMPLETED),
                          (12, 1, BlockStatus.COMPLETED)]

    def test_split_disabled_reads_marker_as_sample(self, make_block):
        data = (make_block(samples=[(2300, 1, 1)], end=False)
                + make_block(samples=[]))
        config = DecoderConfig(split_on_start_marker=False, voltage_range=None)
        _, stream, samples = decode_one(data, config)
        # the second block is read as records until the bytes run out
        assert len(samples) == 3
        assert samples[1].voltage == 0xE0C5 / 10
        assert stream.status is BlockStatus.TRUNCATED

    def test_unread_block_is_drained(self, make_block):
        data = (make_block((1, 1, 24, 0, 0), [(2300, 1, 1)] * 4)
                + make_block((1, 2, 24, 0, 0), [(2300, 1, 1)]))
        days = [b.start_time.day for b in iter_blocks(ByteCursor(data))]
        assert days == [1, 2]

    def test_padding_after_end_is_ignored(self, make_block):
        data = make_block(samples=[(2300, 1, 1)]) + b"\xFF" * 64
        blocks = list(iter_blocks(ByteCursor(data)))
        assert len(blocks) == 1

    def test_garbage_after_block_ends_iteration(self, make_block, caplog):
        data = make_block(samples=[(2300, 1, 1)]) + b"\x00\x00\x00\x00"
        with caplog.at_level(logging.WARNING, logger="voltcraft_parser.parser"):
            blocks = [(len(list(b)), b.status) for b in iter_blocks(ByteCursor(data))]
        assert blocks == [(1, BlockStatus.COMPLETED)]
        assert "offset 17" in caplog.text

    def test_garbage_before_first_block_raises(self, make_block):
        data = b"\x00" + make_block(samples=[(2300, 1, 1)])
        with pytest.raises(FramingError) as exc:
            list(iter_blocks(ByteCursor(data)))
        assert exc.value.position == 0

    def test_resync_skips_garbage(self, make_block):
        data = (make_block((1, 1, 24, 0, 0), [(2300, 1, 1)])
                + b"\x12\x34\x56"
                + make_block((1, 3, 24, 0, 0), [(2300, 1, 1)]))
        config = DecoderConfig(resync=True)
        days = [b.start_time.day for b in iter_blocks(ByteCursor(data), config)]
        assert days == [1, 3]

    def test_resync_on_leading_garbage(self, make_block):
        data = b"\x00" * 7 + make_block(samples=[(2300, 1, 1)])
        blocks = list(iter_blocks(ByteCursor(data), DecoderConfig(resync=True)))
        assert len(blocks) == 1
        assert blocks[0].offset == 7

    def test_stop_after_truncated_block(self, make_block):
        data = make_block(samples=[(2300, 1, 1)], end=False) + b"\x01"
        blocks = [(list(b), b.status) for b in iter_blocks(ByteCursor(data))]
        assert len(blocks) == 1
        assert blocks[0][1] is BlockStatus.TRUNCATED

    def test_parser_redrive(self, make_block):
        data = make_block(samples=[(2300, 1, 1)]) + make_block(samples=[])
        parser = RecordParser(ByteCursor(data))
        assert len(list(parser.begin_block())) == 1
        second = parser.begin_block()
        assert list(second) == []
        assert second.status is BlockStatus.COMPLETED

    def test_stream_cursor_matches_buffer(self, make_block):
        data = (make_block((3, 4, 24, 5, 6), [(2300 + i, i, 90) for i in range(50)])
                + make_block((3, 5, 24, 5, 6), [(2200, 10, 80)]))
        from_buffer = [s for b in iter_blocks(ByteCursor(data)) for s in b]
        from_stream = [s for b in iter_blocks(StreamCursor(io.BytesIO(data), 7))
                       for s in b]
        assert from_buffer == from_stream
        assert len(from_stream) == 51


class TestLogFile:
    """File-level convenience wrapper."""

    def test_from_file(self, write_log, make_block):
        path = write_log(make_block((6, 15, 23, 14, 30), [(2300, 500, 90)] * 3))
        log = LogFile(path)
        samples = log.samples
        assert len(samples) == 3
        assert all(isinstance(s, PowerSample) for s in samples)
        assert log.block_count == 1
        assert log.sample_count == 3
        assert log.is_complete
        assert log.start_time == datetime(2023, 6, 15, 14, 30)
        assert log.end_time == datetime(2023, 6, 15, 14, 32)
        assert log.duration_minutes == 3

    def test_from_bytes_truncated(self, make_block):
        log = LogFile.from_bytes(make_block(samples=[(2300, 1, 1)], end=False))
        assert not log.is_complete
        assert log.blocks[0].status is BlockStatus.TRUNCATED
        assert log.sample_count == 1

    def test_trailing_byte_keeps_completed_block(self, write_log, make_block):
        log = LogFile(write_log(make_block(samples=[(2300, 100, 90)] * 3) + b"\x00"))
        assert len(log.samples) == 3
        assert log.block_count == 1
        assert log.is_complete

    def test_not_a_voltcraft_file(self, write_log):
        log = LogFile(write_log(b"PK\x03\x04 not a log"))
        with pytest.raises(FramingError):
            log.samples

    def test_block_summaries(self, make_block):
        data = (make_block((1, 1, 24, 0, 0), [(2300, 1, 1)])
                + make_block((1, 1, 24, 6, 0), [(100, 1, 1)] * 2))
        blocks = LogFile.from_bytes(data).blocks
        assert [b.offset for b in blocks] == [0, 17]
        assert [b.sample_count for b in blocks] == [1, 2]
        assert [b.warning_count for b in blocks] == [0, 2]

    def test_to_dict(self, device_block):
        d = LogFile.from_bytes(device_block).samples[0].to_dict()
        assert d['timestamp'] == '2014-09-11T18:43:00'
        assert d['voltage'] == 224.6
        assert set(d) == {'index', 'timestamp', 'voltage', 'current',
                          'power_factor', 'power', 'apparent_power'}
