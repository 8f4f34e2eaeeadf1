import logging
import time

from typing import Callable, Optional

NANOSECONDS_PER_SECOND = 1_000_000_000


def _truncated_div(numerator: int, denominator: int) -> int:
    # Rounds toward zero, unlike //, which floors negative quotients
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator < 0) == (denominator < 0) else -quotient


class Limiter:
    """Keeps a single stream at or below a given bandwidth.

    The limiter counts the bytes transferred since the start of the current
    window. Whenever the count runs ahead of the time the window has been
    open, the caller is put to sleep for the difference and a new window is
    started. Long stalls also start a new window, so that data arriving after
    a stall is not released as one burst. The stall threshold grows with the
    buffer size to bandwidth ratio; this compensation is only lightly tested.

    A bandwidth of zero or less disables limiting. Not thread-safe.
    """

    def __init__(self, bandwidth: int,
                 clock: Optional[Callable[[], int]] = None,
                 sleep: Optional[Callable[[float], None]] = None):
        self._bandwidth = bandwidth
        self._clock = clock or time.monotonic_ns
        self._sleep = sleep or time.sleep
        self._window_start = 0
        self._bucket = 0
        self._initialized = False

    @property
    def bandwidth(self) -> int:
        return self._bandwidth

    @property
    def bucket(self) -> int:
        return self._bucket

    @property
    def window_start(self) -> int:
        return self._window_start

    @property
    def initialized(self) -> bool:
        return self._initialized

    def ensure_initialized(self):
        if not self._initialized:
            self.reset()
            self._initialized = True

    def reset(self):
        self._bucket = 0
        self._window_start = self._clock()

    def limit(self, n: int, buf_size: int):
        """Account for n transferred bytes and sleep if running too fast.

        buf_size is the size of the buffer the caller offered, which scales
        the stall threshold.
        """
        if self._bandwidth <= 0:
            return

        self.ensure_initialized()

        self._bucket += n
        window_age = self._clock() - self._window_start
        penalty = self._bucket * NANOSECONDS_PER_SECOND // self._bandwidth - window_age

        if penalty > 0:
            logging.debug(f'Transferred {self._bucket} bytes in {window_age}ns, sleeping {penalty}ns')
            self._sleep(penalty / NANOSECONDS_PER_SECOND)
            self.reset()
            return

        # Prevent a peak after a stall, compensating for large buffers at low bandwidths
        compensation = _truncated_div(buf_size, self._bandwidth) * NANOSECONDS_PER_SECOND
        stall_threshold = NANOSECONDS_PER_SECOND + compensation
        if window_age > stall_threshold:
            logging.debug(f'Stall detected after {window_age}ns, resetting bucket of {self._bucket} bytes')
            self.reset()
