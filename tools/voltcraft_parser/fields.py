"""
Field Decoders

Pure conversions from raw byte groups to typed values. Every byte value
is accepted; whether the result makes sense is the framer's business.

Multi-byte fields are big-endian.
"""

import struct
from dataclasses import dataclass
from datetime import datetime

HEADER_SIZE = 5
SAMPLE_SIZE = 5

VOLTAGE_DIVISOR = 10.0       # 0.1 V per LSB
CURRENT_DIVISOR = 1000.0     # 1 mA per LSB
POWER_FACTOR_DIVISOR = 100.0
YEAR_OFFSET = 2000


@dataclass(frozen=True)
class BlockStartTime:
    """Block header: recording start, one raw byte per field"""
    month: int
    day: int
    year: int
    hour: int
    minute: int

    @property
    def datetime(self) -> datetime:
        """Start as datetime (ValueError if not a real calendar date)"""
        return datetime(self.year, self.month, self.day, self.hour, self.minute)

    @property
    def is_valid_calendar(self) -> bool:
        try:
            self.datetime
        except ValueError:
            return False
        return True

    def __str__(self) -> str:
        return (f"{self.year:04d}-{self.month:02d}-{self.day:02d} "
                f"{self.hour:02d}:{self.minute:02d}")


@dataclass(frozen=True)
class RawPowerSample:
    """One 5-byte sample record before scaling"""
    voltage_raw: int
    current_raw: int
    power_factor_raw: int


def decode_u8(data: bytes) -> int:
    return struct.unpack('>B', data)[0]


def decode_u16(data: bytes) -> int:
    return struct.unpack('>H', data)[0]


def decode_date(data: bytes) -> BlockStartTime:
    """Decode the 5-byte header: month, day, year-2000, hour, minute"""
    if len(data) != HEADER_SIZE:
        raise ValueError(f"Header must be {HEADER_SIZE} bytes, got {len(data)}")

    month, day, year, hour, minute = struct.unpack('>5B', data)
    return BlockStartTime(month=month, day=day, year=YEAR_OFFSET + year,
                          hour=hour, minute=minute)


def decode_sample(data: bytes) -> RawPowerSample:
    """Decode voltage(2), current(2), power factor(1)"""
    if len(data) != SAMPLE_SIZE:
        raise ValueError(f"Sample must be {SAMPLE_SIZE} bytes, got {len(data)}")

    return RawPowerSample(voltage_raw=decode_u16(data[0:2]),
                          current_raw=decode_u16(data[2:4]),
                          power_factor_raw=decode_u8(data[4:5]))


def scale_voltage(raw: int) -> float:
    return raw / VOLTAGE_DIVISOR


def scale_current(raw: int) -> float:
    return raw / CURRENT_DIVISOR


def scale_power_factor(raw: int) -> float:
    return raw / POWER_FACTOR_DIVISOR
