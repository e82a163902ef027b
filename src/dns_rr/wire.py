"""Encoding of record sections sharing one compression table."""
from __future__ import annotations

import logging
from typing import Iterable

from dnslib.label import DNSBuffer

from .names import DomainNameOffsetTable
from .records import ResourceRecord

logger = logging.getLogger(__name__)


def encode_records(
    records: Iterable[ResourceRecord],
    buffer: DNSBuffer | None = None,
    offsets: DomainNameOffsetTable | None = None,
) -> bytes:
    """Write records back to back into a message buffer.

    Pass the `buffer` and `offsets` of a message under construction to append
    a section to it; offsets are relative to the start of `buffer`.

    Args:
        records: Records in the order they should appear.
        buffer: Buffer to append to; a new one if omitted.
        offsets: Compression table for `buffer`; a new one if omitted.

    Returns:
        The bytes written by this call.

    Raises:
        FormatError: If a record cannot be encoded. Records written before it
            stay in `buffer`.
    """
    if buffer is None:
        buffer = DNSBuffer()
    if offsets is None:
        offsets = DomainNameOffsetTable()

    start = buffer.offset
    count = 0
    for rec in records:
        rec.write_to(buffer, offsets)
        count += 1
    logger.debug("encoded %d records (%d bytes)", count, buffer.offset - start)
    return bytes(buffer.data[start:buffer.offset])
