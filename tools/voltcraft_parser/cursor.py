"""
Byte Cursors

Bounds-checked readers the framer pulls fixed-size fields from.
ByteCursor wraps an in-memory buffer; StreamCursor wraps a binary file
object and keeps only a small look-ahead so long logs are read in
constant memory.
"""

from typing import BinaryIO, Optional

from .errors import InsufficientData


class ByteCursor:
    """Read position over an immutable byte buffer."""

    def __init__(self, data: bytes, position: int = 0):
        self._data = bytes(data)
        self._pos = position

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def peek_bytes(self, n: int) -> bytes:
        """Next n bytes without advancing"""
        if self.remaining < n:
            raise InsufficientData(n, self.remaining, self._pos)
        return self._data[self._pos:self._pos + n]

    def read_bytes(self, n: int) -> bytes:
        """Next n bytes, advancing the position"""
        chunk = self.peek_bytes(n)
        self._pos += n
        return chunk

    def at_end(self) -> bool:
        return self._pos == len(self._data)

    def seek(self, position: int) -> None:
        if not 0 <= position <= len(self._data):
            raise ValueError(f"Position out of range: {position}")
        self._pos = position

    def __repr__(self) -> str:
        return f"ByteCursor(position={self._pos}, size={len(self._data)})"


class StreamCursor:
    """
    Same contract as ByteCursor over a readable binary file object.

    The file is read in chunks of chunk_size; peeked bytes stay buffered
    until consumed. Reads advance an offset into the buffer, which is
    compacted only when more data is pulled in.
    """

    def __init__(self, fileobj: BinaryIO, chunk_size: int = 4096):
        self._f = fileobj
        self._chunk_size = chunk_size
        self._buf = bytearray()
        self._off = 0
        self._pos = 0
        self._eof = False

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> Optional[int]:
        # Unknown for a pull source
        return None

    def _buffered(self) -> int:
        return len(self._buf) - self._off

    def _fill(self, n: int) -> None:
        while self._buffered() < n and not self._eof:
            chunk = self._f.read(max(self._chunk_size, n - self._buffered()))
            if not chunk:
                self._eof = True
                break
            del self._buf[:self._off]
            self._off = 0
            self._buf += chunk

    def peek_bytes(self, n: int) -> bytes:
        self._fill(n)
        if self._buffered() < n:
            raise InsufficientData(n, self._buffered(), self._pos)
        return bytes(self._buf[self._off:self._off + n])

    def read_bytes(self, n: int) -> bytes:
        chunk = self.peek_bytes(n)
        self._off += n
        self._pos += n
        return chunk

    def at_end(self) -> bool:
        self._fill(1)
        return self._buffered() == 0

    def seek(self, position: int) -> None:
        self._f.seek(position)
        self._buf = bytearray()
        self._off = 0
        self._pos = position
        self._eof = False

    def __repr__(self) -> str:
        return f"StreamCursor(position={self._pos}, buffered={self._buffered()})"
