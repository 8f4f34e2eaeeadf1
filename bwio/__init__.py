"""
Wrappers for binary streams and stream copies that limit throughput to a
given bandwidth in bytes per second.

The limiter sleeps after each I/O operation whenever the configured bandwidth
has been exceeded. It tries to detect longer stalls and resets itself so that
a stall does not cause a burst afterwards. Prefer small buffers for low
bandwidths and vice versa.
"""

from .limiter import Limiter
from .reader import Reader, new_reader
from .writer import Writer, new_writer
from .copying import DEFAULT_BUFFER_SIZE, ShortWriteError, copy, copy_buffer
from .config import CopyConfig, load_config, parse_bandwidth, validate_configuration
from .download import download

__version__ = "0.1.0"

__all__ = (
    "Limiter",
    "Reader",
    "Writer",
    "new_reader",
    "new_writer",
    "copy",
    "copy_buffer",
    "ShortWriteError",
    "DEFAULT_BUFFER_SIZE",
    "CopyConfig",
    "load_config",
    "parse_bandwidth",
    "validate_configuration",
    "download",
)
