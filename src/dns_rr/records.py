"""DNS resource records: construction, identity, TTL and wire encoding."""
from __future__ import annotations

import logging
import struct
import time
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from dnslib.buffer import BufferError as DNSBufferError
from dnslib.dns import DNSError
from dnslib.label import DNSBuffer

from .enums import RecordClass, ResourceRecordType, type_name
from .errors import FormatError
from .names import DomainNameOffsetTable, name_labels
from .rdata import RecordData, UnknownData, decode_data
from .ttl import DEFAULT_POLICY, MAX_TTL, Clock, ExpiryState, ServeStalePolicy

logger = logging.getLogger(__name__)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class RecordDescription:
    """Validated view of a JSON answer record.

    Attributes:
        name: Owner name as received (may end with a dot).
        type: TYPE code.
        ttl: TTL in seconds.
        data: Presentation-format RDATA, or None if absent.
    """

    name: str
    type: int
    ttl: int
    data: str | None = None

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any]) -> RecordDescription:
        """Validate the fields of a JSON answer record.

        Args:
            obj: Mapping with ``name``, ``type``, ``TTL`` and usually ``data``.

        Raises:
            FormatError: If a required field is missing or malformed.
        """
        if not isinstance(obj, Mapping):
            raise FormatError(f"record must be a mapping, got {type(obj).__name__}")

        name = obj.get("name")
        if not isinstance(name, str):
            raise FormatError(f"record name must be a string, got {name!r}")

        rtype = obj.get("type")
        if not _is_int(rtype) or not 0 <= rtype <= 0xFFFF:
            raise FormatError(f"record type must be an integer in 0..65535, got {rtype!r}")

        ttl = obj.get("TTL")
        if not _is_int(ttl) or not 0 <= ttl <= MAX_TTL:
            raise FormatError(f"record TTL must be a non-negative 32-bit integer, got {ttl!r}")

        data = obj.get("data")
        if data is not None and not isinstance(data, str):
            raise FormatError(f"record data must be a string, got {data!r}")

        return cls(name=name, type=rtype, ttl=ttl, data=data)


class ResourceRecord:
    """A single resource record.

    Name, type, class and payload never change after construction. The TTL
    is either static or, once `set_expiry` has been called, derived from the
    clock on every read of `ttl_value`.

    Equality and hashing cover the name (case-insensitively), type, class,
    stored TTL and payload. Ordering covers the name, type code and stored
    TTL only.
    """

    __slots__ = ("_name", "_type", "_class", "_ttl", "_data", "_expiry")

    def __init__(self, name: str, rtype: int, rclass: int, ttl: int, data: RecordData) -> None:
        """Initialize a record.

        Args:
            name: Owner name; a trailing root dot is dropped.
            rtype: TYPE code.
            rclass: CLASS code.
            ttl: TTL in seconds.
            data: Payload matching `rtype`, or `UnknownData`.

        Raises:
            FormatError: If any field is invalid.
        """
        if not isinstance(name, str):
            raise FormatError(f"record name must be a string, got {name!r}")
        if not _is_int(rtype):
            raise FormatError(f"record type must be an integer, got {rtype!r}")
        if not _is_int(rclass) or not 0 <= rclass <= 0xFFFF:
            raise FormatError(f"record class must be an integer in 0..65535, got {rclass!r}")
        if not _is_int(ttl) or not 0 <= ttl <= MAX_TTL:
            raise FormatError(f"record TTL must be a non-negative 32-bit integer, got {ttl!r}")

        name = name.rstrip(".")
        name_labels(name)

        try:
            rtype = ResourceRecordType.coerce(rtype)
        except ValueError as exc:
            raise FormatError(str(exc)) from exc

        expected = getattr(data, "rtype", None)
        if expected is None and not isinstance(data, UnknownData):
            raise FormatError(f"unsupported record data: {data!r}")
        if expected is not None and expected != rtype:
            raise FormatError(f"{type(data).__name__} cannot be used for a {type_name(rtype)} record")

        try:
            rclass = RecordClass(rclass)
        except ValueError:
            pass

        self._name = name
        self._type = rtype
        self._class = rclass
        self._ttl = ttl
        self._data = data
        self._expiry: ExpiryState | None = None

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> ResourceRecord:
        """Build an IN-class record from a JSON answer object.

        Args:
            obj: Mapping with ``name``, ``type``, ``TTL`` and ``data``.

        Raises:
            FormatError: If the object or its type-specific data is malformed.
        """
        description = RecordDescription.from_mapping(obj)
        if description.data is None:
            raise FormatError(f"record {description.name!r} has no data")
        data = decode_data(description.type, description.data)
        record = cls(description.name, description.type, RecordClass.IN, description.ttl, data)
        logger.debug("decoded %r", record)
        return record

    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> ResourceRecordType | int:
        return self._type

    @property
    def rclass(self) -> RecordClass | int:
        return self._class

    @property
    def ttl(self) -> int:
        """Stored TTL, unaffected by the passage of time."""
        return self._ttl

    @property
    def data(self) -> RecordData:
        return self._data

    @property
    def expiry(self) -> ExpiryState | None:
        return self._expiry

    @property
    def ttl_value(self) -> int:
        """TTL to present right now; this is what gets written to the wire."""
        if self._expiry is None:
            return self._ttl
        return self._expiry.ttl_value()

    @property
    def is_stale(self) -> bool:
        """True for a cached record past its freshness deadline."""
        return self._expiry is not None and self._expiry.is_stale()

    def set_expiry(self, policy: ServeStalePolicy = DEFAULT_POLICY, clock: Clock = time.monotonic) -> None:
        """Turn this record into a cache entry whose TTL counts down.

        The stored TTL is clamped to the policy's minimum and maximum, then the
        freshness and serve-stale deadlines are fixed relative to `clock`.
        A clamped TTL takes part in equality and hashing like any stored TTL,
        so a record clamped here no longer equals an uncached copy.

        Args:
            policy: TTL clamps and serve-stale tunables.
            clock: Seconds source; monotonic by default.

        Raises:
            RuntimeError: If expiry was already set.
        """
        if self._expiry is not None:
            raise RuntimeError(f"expiry already set for {self!r}")
        self._ttl = policy.clamp(self._ttl)
        self._expiry = ExpiryState.start(self._ttl, policy, clock)
        logger.debug("expiry set for %r", self)

    def write_to(self, buffer: DNSBuffer, offsets: DomainNameOffsetTable) -> None:
        """Append this record to a message buffer.

        Writes NAME, TYPE, CLASS, the current TTL, RDLENGTH and RDATA. Names
        are compressed against `offsets`, which is extended with the names
        written. On failure nothing written by this call remains in `buffer`
        or `offsets`.

        Args:
            buffer: Message buffer, positioned at its end.
            offsets: Compression table of the message being built.

        Raises:
            FormatError: If the record cannot be encoded.
        """
        start = buffer.offset
        checkpoint = offsets.checkpoint()
        try:
            offsets.write_name(buffer, self._name)
            buffer.pack("!HHI", self._type, self._class, self.ttl_value)
            rdlength_ptr = buffer.offset
            buffer.pack("!H", 0)
            self._data.pack(buffer, offsets)
            rdlength = buffer.offset - rdlength_ptr - 2
            if rdlength > 0xFFFF:
                raise FormatError(f"RDATA too long ({rdlength} bytes)")
            buffer.update(rdlength_ptr, "!H", rdlength)
        except Exception as exc:
            del buffer.data[start:]
            buffer.offset = start
            offsets.rollback(checkpoint)
            logger.debug("failed to encode %r: %s", self, exc)
            if isinstance(exc, FormatError):
                raise
            if not isinstance(exc, (DNSError, DNSBufferError, struct.error, ValueError)):
                raise
            raise FormatError(f"cannot encode {self!r}: {exc}") from exc

    def _sort_key(self) -> tuple[str, int, int]:
        return (self._name.lower(), int(self._type), self._ttl)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, ResourceRecord):
            return NotImplemented
        return (
            self._name.lower() == other._name.lower()
            and self._type == other._type
            and self._class == other._class
            and self._ttl == other._ttl
            and self._data == other._data
        )

    def __hash__(self) -> int:
        return hash((self._name.lower(), int(self._type), int(self._class), self._ttl, self._data))

    def __lt__(self, other: ResourceRecord) -> bool:
        if not isinstance(other, ResourceRecord):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __le__(self, other: ResourceRecord) -> bool:
        if not isinstance(other, ResourceRecord):
            return NotImplemented
        return self._sort_key() <= other._sort_key()

    def __gt__(self, other: ResourceRecord) -> bool:
        if not isinstance(other, ResourceRecord):
            return NotImplemented
        return self._sort_key() > other._sort_key()

    def __ge__(self, other: ResourceRecord) -> bool:
        if not isinstance(other, ResourceRecord):
            return NotImplemented
        return self._sort_key() >= other._sort_key()

    def __repr__(self) -> str:
        rclass = self._class.name if isinstance(self._class, RecordClass) else f"CLASS{self._class}"
        return "<ResourceRecord: '%s' rtype=%s rclass=%s ttl=%d rdata='%s'>" % (
            self._name,
            type_name(self._type),
            rclass,
            self._ttl,
            self._data,
        )


def group_records(
    records: Iterable[ResourceRecord],
) -> dict[str, dict[ResourceRecordType | int, list[ResourceRecord]]]:
    """Index records by lower-cased name, then by type.

    Records keep their input order within each (name, type) bucket and are
    not de-duplicated.

    Args:
        records: Records in any order.

    Returns:
        ``{name: {type: [record, ...]}}``.
    """
    grouped: dict[str, dict[ResourceRecordType | int, list[ResourceRecord]]] = {}
    for rec in records:
        grouped.setdefault(rec.name.lower(), {}).setdefault(rec.type, []).append(rec)
    return grouped
