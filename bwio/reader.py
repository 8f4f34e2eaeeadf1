import io

from typing import Optional

from .limiter import Limiter


class Reader(io.RawIOBase):
    """Wraps a binary source and keeps reads from it at a given bandwidth.

    Usable anywhere a raw binary stream is accepted: read(), readall(),
    iteration and io.BufferedReader all go through readinto(). Closing the
    reader does not close the wrapped source.
    """

    def __init__(self, source, bandwidth: int):
        super().__init__()
        self._source = source
        self._limiter = Limiter(bandwidth)

    @property
    def bandwidth(self) -> int:
        return self._limiter.bandwidth

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> Optional[int]:
        """Read into buffer, then sleep if the bandwidth has been exceeded.

        End of stream only shows up as a later read of 0 bytes, so the final
        short read of a stream is still charged to the limiter.
        """
        if self.closed:
            raise ValueError('I/O operation on closed reader.')

        self._limiter.ensure_initialized()

        size = memoryview(buffer).nbytes
        n = self._read_source(buffer, size)
        if n is None:
            return None

        # End of stream is passed on without delay
        if n == 0 and size > 0:
            return 0

        self._limiter.limit(n, size)
        return n

    def _read_source(self, buffer, size: int) -> Optional[int]:
        if hasattr(self._source, 'readinto'):
            return self._source.readinto(buffer)

        data = self._source.read(size)
        if data is None:
            return None

        n = len(data)
        with memoryview(buffer) as view, view.cast('B') as target:
            target[:n] = data
        return n


def new_reader(source, bandwidth: int) -> Reader:
    return Reader(source, bandwidth)
