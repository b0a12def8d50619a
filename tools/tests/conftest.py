"""
pytest configuration and fixtures for the Voltcraft parser tests.

Checks against real device files are optional; point them at a folder
of logs copied from the logger's SD card:
    VOLTCRAFT_SAMPLE_DIR=~/voltcraft pytest
    pytest --sample-dir=~/voltcraft
"""

import os
import sys
import struct
from pathlib import Path

import pytest

# Add tools directory to path for voltcraft_parser and the scripts
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

START = bytes([0xE0, 0xC5, 0xEA])
END = bytes([0xFF, 0xFF, 0xFF, 0xFF])

# Block recorded 2014-09-11 18:43, one sample: 224.6 V, 0.446 A, cosPHI 0.87
DEVICE_BLOCK = bytes([
    0xE0, 0xC5, 0xEA,
    0x09, 0x0B, 0x0E, 0x12, 0x2B,
    0x08, 0xC6, 0x01, 0xBE, 0x57,
    0xFF, 0xFF, 0xFF, 0xFF,
])


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--sample-dir",
        action="store",
        default=os.environ.get("VOLTCRAFT_SAMPLE_DIR"),
        help="Folder with real Voltcraft log files (optional)"
    )


def encode_sample(voltage_raw, current_raw, pf_raw):
    return struct.pack('>HHB', voltage_raw, current_raw, pf_raw)


def build_block(header=(6, 15, 23, 14, 30), samples=(), end=True):
    """Start marker + header + samples (+ end marker)"""
    data = START + bytes(header)
    for s in samples:
        data += encode_sample(*s)
    if end:
        data += END
    return data


@pytest.fixture
def make_block():
    """Builder for raw block bytes."""
    return build_block


@pytest.fixture
def device_block():
    return DEVICE_BLOCK


@pytest.fixture
def write_log(tmp_path):
    """Write raw bytes to a file in tmp_path and return its path."""
    def _write(data, name="A0000001.bin"):
        path = tmp_path / name
        path.write_bytes(data)
        return path
    return _write


@pytest.fixture(scope="session")
def sample_dir(request):
    """Folder with real device logs, skips when not configured."""
    value = request.config.getoption("--sample-dir")
    if not value:
        pytest.skip("No sample directory configured (--sample-dir)")
    path = Path(value).expanduser()
    if not path.is_dir():
        pytest.skip(f"Sample directory not found: {path}")
    return path
