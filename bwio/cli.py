import argparse
import contextlib
import logging
import sys
import time
import requests
import urllib3
import yaml

from pathlib import Path
from typing import List, Optional

from .config import CopyConfig, load_config, parse_bandwidth, validate_configuration
from .copying import copy_buffer
from .download import download


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='bwio',
        description='Copy a byte stream while limiting its bandwidth')

    source = parser.add_mutually_exclusive_group()
    source.add_argument('-i', '--input_file', type=Path, help='Input file (default: stdin)')
    source.add_argument('-u', '--url', type=str, help='HTTP(S) URL to download instead of reading input')

    parser.add_argument('-o', '--output_file', type=Path, help='Output file (default: stdout)')
    parser.add_argument('-b', '--bandwidth', type=str,
                        help='Bandwidth limit in bytes per second, optionally with a unit suffix, such as "512000", "500KiB", "1.5M" or "2MB/s". '
                             'Zero, "none" or "unlimited" disables limiting')
    parser.add_argument('--buffer_size', type=int, help='Size of the copy buffer in bytes')
    parser.add_argument('-c', '--config_file', type=Path, help='Configuration file (YAML)')
    parser.add_argument('-v', '--verbose', action="store_const", const=logging.INFO)
    parser.add_argument('-d', '--debug', action="store_const", const=logging.DEBUG)
    return parser


def resolve_configuration(args: argparse.Namespace) -> CopyConfig:
    config = load_config(args.config_file) if args.config_file else CopyConfig()

    overrides = {}
    if args.bandwidth is not None:
        overrides['bandwidth'] = parse_bandwidth(args.bandwidth)
    if args.buffer_size is not None:
        overrides['buffer_size'] = args.buffer_size

    return validate_configuration({**config._asdict(), **overrides})


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO

    logging.basicConfig(level=level)

    try:
        config = resolve_configuration(args)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        parser.error(str(exc))

    buf = bytearray(config.buffer_size)
    start = time.monotonic()

    try:
        with contextlib.ExitStack() as stack:
            if not args.url:
                src = stack.enter_context(open(args.input_file, 'rb')) if args.input_file else sys.stdin.buffer

            if args.output_file:
                dst = stack.enter_context(open(args.output_file, 'wb'))
            else:
                dst = sys.stdout.buffer

            if args.url:
                count = download(args.url, dst, config.bandwidth, buf)
            else:
                count = copy_buffer(dst, src, config.bandwidth, buf)

            dst.flush()
    except (OSError, requests.RequestException, urllib3.exceptions.HTTPError) as exc:
        logging.error(f'Copy failed: {exc!s}')
        return 1

    duration = time.monotonic() - start
    logging.info(f'Finished! Wrote {count} bytes in {duration:.3f}s')
    return 0


if __name__ == '__main__':
    sys.exit(main())
