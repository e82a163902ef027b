"""Domain name encoding with message compression."""
from __future__ import annotations

import logging

from dnslib.label import DNSBuffer, DNSLabel, DNSLabelError

from .errors import FormatError

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 63
MAX_NAME_LENGTH = 255
# Compression pointers carry a 14-bit offset.
MAX_POINTER_OFFSET = 0x3FFF


def name_labels(name: str) -> tuple[bytes, ...]:
    """Split a presentation-format name into wire labels.

    Args:
        name: Domain name, with or without the trailing root dot.

    Returns:
        Labels in order, the root label excluded.

    Raises:
        FormatError: If a label is empty or too long, or the name is too long.
    """
    try:
        labels = DNSLabel(name.rstrip(".")).label
    except (DNSLabelError, UnicodeError) as exc:
        raise FormatError(f"invalid domain name {name!r}: {exc}") from exc

    for label in labels:
        if not label:
            raise FormatError(f"empty label in domain name {name!r}")
        if len(label) > MAX_LABEL_LENGTH:
            raise FormatError(f"label too long in domain name {name!r}")
    if sum(len(label) + 1 for label in labels) + 1 > MAX_NAME_LENGTH:
        raise FormatError(f"domain name too long: {name!r}")
    return labels


class DomainNameOffsetTable:
    """Offsets of names already written to the message being built.

    Keys are lower-cased label tuples, so any suffix of a written name can be
    reused regardless of case. A table is only meaningful for the buffer it
    was filled from and must not be shared between messages.
    """

    def __init__(self) -> None:
        self._offsets: dict[tuple[bytes, ...], int] = {}

    def __len__(self) -> int:
        return len(self._offsets)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.offset_of(name) is not None

    def offset_of(self, name: str) -> int | None:
        """Return the offset `name` was written at, if known."""
        key = tuple(label.lower() for label in name_labels(name))
        return self._offsets.get(key)

    def write_name(self, buffer: DNSBuffer, name: str) -> None:
        """Write `name` to `buffer`, pointing back at the longest known suffix.

        Every suffix written in full is registered at its offset so later
        names can point at it.

        Args:
            buffer: Message buffer positioned at the end of the data.
            name: Domain name to write.

        Raises:
            FormatError: If `name` is not a valid domain name.
        """
        labels = name_labels(name)
        key = tuple(label.lower() for label in labels)
        while labels:
            pointer = self._offsets.get(key)
            if pointer is not None:
                buffer.pack("!H", 0xC000 | pointer)
                return
            if buffer.offset <= MAX_POINTER_OFFSET:
                self._offsets[key] = buffer.offset
            buffer.pack("!B", len(labels[0]))
            buffer.append(labels[0])
            labels = labels[1:]
            key = key[1:]
        buffer.append(b"\x00")

    def checkpoint(self) -> int:
        return len(self._offsets)

    def rollback(self, checkpoint: int) -> None:
        """Forget every entry registered after `checkpoint`."""
        stale = list(self._offsets)[checkpoint:]
        for key in stale:
            del self._offsets[key]
        if stale:
            logger.debug("dropped %d compression entries", len(stale))
