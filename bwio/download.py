import logging
import requests

from datetime import datetime
from typing import Optional

from .copying import copy_buffer


def download(url: str, dst, bandwidth: int, buf: Optional[bytearray] = None, timeout: float = 60) -> int:
    """Stream url into the writable dst at no more than bandwidth bytes per second."""
    logging.info(f'Downloading {url}')
    start_time = datetime.now()

    with requests.get(url, stream=True, timeout=timeout) as r:
        r.raise_for_status()
        r.raw.decode_content = True
        written = copy_buffer(dst, r.raw, bandwidth, buf)

    duration = datetime.now() - start_time
    logging.debug(f'Spent {duration.total_seconds()}s downloading {written} bytes from {url}')
    return written
