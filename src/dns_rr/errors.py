"""Exceptions raised while building or encoding records."""
from __future__ import annotations


class FormatError(ValueError):
    """Malformed record input, or record data that cannot be encoded."""
