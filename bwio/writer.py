import io

from typing import Optional

from .limiter import Limiter


class Writer(io.RawIOBase):
    """Wraps a binary destination and keeps writes to it at a given bandwidth.

    Closing the writer does not close the wrapped destination.
    """

    def __init__(self, destination, bandwidth: int):
        super().__init__()
        self._destination = destination
        self._limiter = Limiter(bandwidth)

    @property
    def bandwidth(self) -> int:
        return self._limiter.bandwidth

    def writable(self) -> bool:
        return True

    def write(self, buffer) -> Optional[int]:
        if self.closed:
            raise ValueError('I/O operation on closed writer.')

        self._limiter.ensure_initialized()

        size = memoryview(buffer).nbytes
        n = self._destination.write(buffer)

        # Destinations returning None are assumed to take the whole buffer
        self._limiter.limit(size if n is None else n, size)
        return n

    def flush(self):
        super().flush()
        if hasattr(self._destination, 'flush') and not getattr(self._destination, 'closed', False):
            self._destination.flush()


def new_writer(destination, bandwidth: int) -> Writer:
    return Writer(destination, bandwidth)
