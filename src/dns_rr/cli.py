"""CLI for inspecting and encoding configured records."""
from __future__ import annotations

import argparse
import logging
import sys

from dnslib import DNSHeader
from dnslib.label import DNSBuffer

from .config import Config
from .enums import type_name
from .errors import FormatError
from .names import DomainNameOffsetTable
from .wire import encode_records


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Arguments to parse; `sys.argv[1:]` if None.

    Returns:
        argparse.Namespace: Parsed CLI options:
            - config (str): Path to YAML config file.
            - format (str): Output format, "hex" or "summary".
            - cache (bool): Attach serve-stale expiry before output.
            - log_level (str): Logging level.
    """
    parser = argparse.ArgumentParser(
        description="Encode YAML-configured DNS resource records",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", default="config.yaml", help="Path to YAML config")
    parser.add_argument(
        "--format",
        default="hex",
        choices=["hex", "summary"],
        help="Print a DNS response message holding the records as answers, or one line per name/type",
    )
    parser.add_argument(
        "--cache",
        action="store_true",
        help="Treat records as cache entries using the configured serve-stale policy",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI entry point.

    Loads the configuration and writes either a hex-encoded response message
    carrying every record in its answer section, or a per-group summary, to
    stdout.

    Returns:
        Process exit status.
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    try:
        config = Config(args.config)
    except (OSError, ValueError) as exc:
        logger.error("cannot load %s: %s", args.config, exc)
        return 1

    if args.cache:
        for rec in config.records:
            rec.set_expiry(config.policy)

    if args.format == "summary":
        for name, by_type in config.index.items():
            for rtype, recs in by_type.items():
                values = ", ".join(str(rec.data) for rec in recs)
                ttl = min(rec.ttl_value for rec in recs)
                print(f"{name or '.'}\t{type_name(rtype)}\t{ttl}\t{values}")
        return 0

    buffer = DNSBuffer()
    DNSHeader(id=0, bitmap=0, qr=1, aa=1, a=len(config.records)).pack(buffer)
    try:
        encode_records(config.records, buffer, DomainNameOffsetTable())
    except FormatError as exc:
        logger.error("encoding failed: %s", exc)
        return 1
    print(bytes(buffer.data).hex())
    return 0


if __name__ == "__main__":
    sys.exit(main())
