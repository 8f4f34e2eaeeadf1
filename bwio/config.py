import re
import yaml

from pathlib import Path
from typing import Any, Dict, NamedTuple, Union

from .copying import DEFAULT_BUFFER_SIZE

UNLIMITED_KEYWORDS = ('unlimited', 'none')

UNIT_MULTIPLIERS = {
    '': 1,
    'k': 1000,
    'm': 1000 ** 2,
    'g': 1000 ** 3,
    'ki': 1024,
    'mi': 1024 ** 2,
    'gi': 1024 ** 3,
}

BANDWIDTH_PATTERN = re.compile(r'^(?P<value>\d+(\.\d*)?|\.\d+)\s*(?P<unit>[kmg]i?)?b?(/s)?$', re.IGNORECASE)


class CopyConfig(NamedTuple):
    bandwidth: int = 0
    buffer_size: int = DEFAULT_BUFFER_SIZE


def parse_bandwidth(value: Union[int, float, str]) -> int:
    """Parse a bandwidth such as 512000, "500KiB", "1.5M" or "2MB/s" into bytes per second.

    Decimal units (k, M, G) are powers of 1000, binary units (Ki, Mi, Gi) powers
    of 1024. "unlimited" and "none" map to 0, which disables limiting.
    """
    if isinstance(value, bool):
        raise ValueError(f'Invalid bandwidth: {value!r}')

    if isinstance(value, (int, float)):
        return int(value)

    text = str(value).strip()
    if text.lower() in UNLIMITED_KEYWORDS:
        return 0

    sign = 1
    if text.startswith('-'):
        sign = -1
        text = text[1:]

    match = BANDWIDTH_PATTERN.match(text)
    if not match:
        raise ValueError(f'Invalid bandwidth: {value!r}')

    unit = (match.group('unit') or '').lower()
    return sign * int(float(match.group('value')) * UNIT_MULTIPLIERS[unit])


def validate_configuration(config: Dict[str, Any]) -> CopyConfig:
    unknown = set(config.keys()) - set(CopyConfig._fields)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    if not 'bandwidth' in config or config['bandwidth'] is None:
        config['bandwidth'] = 0

    if not 'buffer_size' in config or config['buffer_size'] is None:
        config['buffer_size'] = DEFAULT_BUFFER_SIZE

    buffer_size = config['buffer_size']
    if isinstance(buffer_size, bool) or not isinstance(buffer_size, int) or buffer_size <= 0:
        raise ValueError(f'Buffer size must be a positive integer, got {buffer_size!r}')

    return CopyConfig(bandwidth=parse_bandwidth(config['bandwidth']), buffer_size=buffer_size)


def load_config(path: Union[str, Path]) -> CopyConfig:
    with open(path, 'r') as config_file:
        document = yaml.safe_load(config_file) or {}

    if not isinstance(document, dict) or not isinstance(document.get('bwio', {}), dict):
        raise ValueError(f'{path}: expected a mapping under the "bwio" key')

    return validate_configuration(dict(document.get('bwio') or {}))
