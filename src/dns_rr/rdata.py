"""Typed record payloads (RDATA) and their text decoders.

Each payload is an immutable value with a `pack(buffer, offsets)` method
writing its RDATA. Payloads that hold domain names compress them against the
message's offset table.
"""
from __future__ import annotations

import binascii
import ipaddress
import re
from dataclasses import dataclass
from typing import Callable, ClassVar, Union

from dnslib import A, AAAA, TXT
from dnslib.label import DNSBuffer

from .enums import ResourceRecordType
from .errors import FormatError
from .names import DomainNameOffsetTable, name_labels

MAX_CHARACTER_STRING = 255

_QUOTED = re.compile(r'\s*"((?:[^"\\]|\\.)*)"\s*')
_ESCAPE = re.compile(r"\\(.)")
_GENERIC = re.compile(r"^\\#\s+(\d+)\s*(.*)$", re.DOTALL)


def _target(text: str) -> str:
    text = text.strip()
    if not text:
        raise FormatError("missing domain name")
    name = text.rstrip(".") if text != "." else ""
    name_labels(name)
    return name


@dataclass(frozen=True, slots=True)
class AData:
    """IPv4 host address."""

    address: ipaddress.IPv4Address

    rtype: ClassVar[ResourceRecordType] = ResourceRecordType.A

    @classmethod
    def from_text(cls, text: str) -> AData:
        try:
            return cls(ipaddress.IPv4Address(text.strip()))
        except ipaddress.AddressValueError as exc:
            raise FormatError(f"invalid IPv4 address {text!r}: {exc}") from exc

    def pack(self, buffer: DNSBuffer, offsets: DomainNameOffsetTable) -> None:
        A(str(self.address)).pack(buffer)

    def __str__(self) -> str:
        return str(self.address)


@dataclass(frozen=True, slots=True)
class AAAAData:
    """IPv6 host address."""

    address: ipaddress.IPv6Address

    rtype: ClassVar[ResourceRecordType] = ResourceRecordType.AAAA

    def __post_init__(self) -> None:
        if self.address.scope_id is not None:
            raise FormatError(f"scoped IPv6 address not allowed in RDATA: {self.address}")

    @classmethod
    def from_text(cls, text: str) -> AAAAData:
        try:
            return cls(ipaddress.IPv6Address(text.strip()))
        except ipaddress.AddressValueError as exc:
            raise FormatError(f"invalid IPv6 address {text!r}: {exc}") from exc

    def pack(self, buffer: DNSBuffer, offsets: DomainNameOffsetTable) -> None:
        AAAA(str(self.address)).pack(buffer)

    def __str__(self) -> str:
        return self.address.compressed


@dataclass(frozen=True, slots=True, eq=False)
class _NameData:
    """Payload made of a single domain name."""

    target: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "target", _target(self.target))

    @classmethod
    def from_text(cls, text: str) -> _NameData:
        return cls(text)

    def pack(self, buffer: DNSBuffer, offsets: DomainNameOffsetTable) -> None:
        offsets.write_name(buffer, self.target)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.target.lower() == other.target.lower()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.target.lower()))

    def __str__(self) -> str:
        return f"{self.target}."


class NSData(_NameData):
    __slots__ = ()
    rtype = ResourceRecordType.NS


class CNAMEData(_NameData):
    __slots__ = ()
    rtype = ResourceRecordType.CNAME


class PTRData(_NameData):
    __slots__ = ()
    rtype = ResourceRecordType.PTR


@dataclass(frozen=True, slots=True, eq=False)
class MXData:
    """Mail exchange: preference and exchange host."""

    preference: int
    exchange: str

    rtype: ClassVar[ResourceRecordType] = ResourceRecordType.MX

    def __post_init__(self) -> None:
        object.__setattr__(self, "exchange", _target(self.exchange))

    @classmethod
    def from_text(cls, text: str) -> MXData:
        parts = text.split()
        if len(parts) != 2:
            raise FormatError(f"MX data must be '<preference> <exchange>', got {text!r}")
        try:
            preference = int(parts[0])
        except ValueError as exc:
            raise FormatError(f"invalid MX preference {parts[0]!r}") from exc
        if not 0 <= preference <= 0xFFFF:
            raise FormatError(f"MX preference out of range: {preference}")
        return cls(preference, parts[1])

    def pack(self, buffer: DNSBuffer, offsets: DomainNameOffsetTable) -> None:
        buffer.pack("!H", self.preference)
        offsets.write_name(buffer, self.exchange)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MXData):
            return NotImplemented
        return (self.preference, self.exchange.lower()) == (other.preference, other.exchange.lower())

    def __hash__(self) -> int:
        return hash((self.preference, self.exchange.lower()))

    def __str__(self) -> str:
        return f"{self.preference} {self.exchange}."


@dataclass(frozen=True, slots=True)
class TXTData:
    """Text record as a sequence of character-strings."""

    texts: tuple[bytes, ...]

    rtype: ClassVar[ResourceRecordType] = ResourceRecordType.TXT

    @classmethod
    def from_text(cls, text: str) -> TXTData:
        """Decode JSON TXT data.

        Quoted segments (``"a" "b"``) become separate character-strings and
        must make up the whole value; unquoted text is taken whole. Strings
        longer than 255 bytes are split.
        """
        stripped = text.strip()
        if stripped.startswith('"'):
            segments = []
            pos = 0
            while pos < len(stripped):
                match = _QUOTED.match(stripped, pos)
                if match is None:
                    raise FormatError(f"malformed TXT data at offset {pos}: {text!r}")
                segments.append(_ESCAPE.sub(r"\1", match.group(1)))
                pos = match.end()
        else:
            segments = [text]

        texts: list[bytes] = []
        for segment in segments:
            raw = segment.encode("utf-8")
            texts.extend(raw[i:i + MAX_CHARACTER_STRING]
                         for i in range(0, len(raw), MAX_CHARACTER_STRING))
            if not raw:
                texts.append(b"")
        return cls(tuple(texts))

    def pack(self, buffer: DNSBuffer, offsets: DomainNameOffsetTable) -> None:
        TXT(list(self.texts)).pack(buffer)

    def __str__(self) -> str:
        return " ".join('"%s"' % t.decode("utf-8", "replace").replace('"', '\\"') for t in self.texts)


@dataclass(frozen=True, slots=True)
class UnknownData:
    """Opaque RDATA for types without a dedicated payload."""

    data: bytes

    @classmethod
    def from_text(cls, text: str) -> UnknownData:
        r"""Decode RFC 3597 ``\# <length> <hex>`` data, or keep the text's bytes."""
        match = _GENERIC.match(text.strip())
        if match is None:
            return cls(text.encode("utf-8"))
        length = int(match.group(1))
        try:
            data = binascii.unhexlify("".join(match.group(2).split()))
        except (binascii.Error, ValueError) as exc:
            raise FormatError(f"invalid generic RDATA {text!r}: {exc}") from exc
        if len(data) != length:
            raise FormatError(f"generic RDATA length {length} does not match {len(data)} bytes")
        return cls(data)

    def pack(self, buffer: DNSBuffer, offsets: DomainNameOffsetTable) -> None:
        buffer.append(self.data)

    def __str__(self) -> str:
        return f"\\# {len(self.data)} {self.data.hex()}".rstrip()


RecordData = Union[AData, NSData, CNAMEData, PTRData, MXData, TXTData, AAAAData, UnknownData]

DECODERS: dict[ResourceRecordType, Callable[[str], RecordData]] = {
    ResourceRecordType.A: AData.from_text,
    ResourceRecordType.NS: NSData.from_text,
    ResourceRecordType.CNAME: CNAMEData.from_text,
    ResourceRecordType.PTR: PTRData.from_text,
    ResourceRecordType.MX: MXData.from_text,
    ResourceRecordType.TXT: TXTData.from_text,
    ResourceRecordType.AAAA: AAAAData.from_text,
}


def decode_data(rtype: int, text: str) -> RecordData:
    """Decode the JSON `data` field for `rtype`, opaque for unhandled types."""
    return DECODERS.get(rtype, UnknownData.from_text)(text)
