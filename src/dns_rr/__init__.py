"""DNS resource records with serve-stale TTLs and wire encoding."""
from __future__ import annotations

from .enums import RecordClass, ResourceRecordType
from .errors import FormatError
from .names import DomainNameOffsetTable
from .rdata import (
    AAAAData,
    AData,
    CNAMEData,
    MXData,
    NSData,
    PTRData,
    RecordData,
    TXTData,
    UnknownData,
)
from .records import RecordDescription, ResourceRecord, group_records
from .ttl import ExpiryState, ServeStalePolicy
from .wire import encode_records

__all__ = [
    "AAAAData",
    "AData",
    "CNAMEData",
    "DomainNameOffsetTable",
    "ExpiryState",
    "FormatError",
    "MXData",
    "NSData",
    "PTRData",
    "RecordClass",
    "RecordData",
    "RecordDescription",
    "ResourceRecord",
    "ResourceRecordType",
    "ServeStalePolicy",
    "TXTData",
    "UnknownData",
    "encode_records",
    "group_records",
]
