from typing import Optional

from .reader import Reader

DEFAULT_BUFFER_SIZE = 16 * 1024


class ShortWriteError(OSError):
    """Raised when a destination accepts fewer bytes than it was given."""

    def __init__(self, bytes_written: int):
        super().__init__(f'Short write after {bytes_written} bytes')
        self.bytes_written = bytes_written


def copy(dst, src, bandwidth: int) -> int:
    """Copy src to dst until end of stream, limited to bandwidth bytes per second.

    Uses a buffer of DEFAULT_BUFFER_SIZE bytes and returns the number of bytes
    written.
    """
    return copy_buffer(dst, src, bandwidth, None)


def copy_buffer(dst, src, bandwidth: int, buf: Optional[bytearray] = None) -> int:
    """Like copy, but stages the data through buf.

    A missing or empty buf is replaced with one of DEFAULT_BUFFER_SIZE bytes.
    Only the reads from src are throttled, which in turn bounds the rate at
    which dst receives data. Errors from either side propagate unchanged.
    """
    if buf is None or len(buf) == 0:
        buf = bytearray(DEFAULT_BUFFER_SIZE)

    reader = Reader(src, bandwidth)
    written = 0

    with memoryview(buf) as view:
        while True:
            n = reader.readinto(view)
            if not n:
                break

            # Destinations returning None are assumed to take the whole chunk
            accepted = dst.write(view[:n])
            if accepted is None:
                accepted = n

            written += accepted
            if accepted < n:
                raise ShortWriteError(written)

    return written
