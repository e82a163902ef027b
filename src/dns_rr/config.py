"""Configuration loading and record indexing."""
from __future__ import annotations

import logging
import os

import yaml

from .errors import FormatError
from .records import ResourceRecord, group_records
from .ttl import ServeStalePolicy

logger = logging.getLogger(__name__)


class Config:
    """Parsed configuration: serve-stale policy and indexed records.

    Args:
        path: Filesystem path to the YAML configuration.

    Attributes:
        path: Path to the YAML config file.
        policy: Serve-stale policy applied to cached records.
        records: Parsed records, in file order.
        index: Records grouped by lower-cased name, then type.
    """

    def __init__(self, path: str) -> None:
        """Initialize and load configuration.

        Args:
            path: Path to YAML file.
        """
        self.path = path
        self._mtime = 0.0
        self.policy = ServeStalePolicy()
        self.records: list[ResourceRecord] = []
        self.index: dict[str, dict[int, list[ResourceRecord]]] = {}
        self.load(force=True)

    def load(self, force: bool = False) -> None:
        """Load or reload YAML configuration.

        Records use the JSON answer layout (``name``, ``type``, ``TTL``,
        ``data``); ``TTL`` may be omitted to use ``default_ttl``.

        Args:
            force: Reload regardless of file mtime.

        Raises:
            ValueError: On invalid YAML structure, policy or record data.
            FileNotFoundError: If the config is missing and `force=True`.
        """
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            if force:
                raise
            return

        if not force and st.st_mtime <= self._mtime:
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML parsing error: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("configuration must be a mapping")

        section = data.get("serve_stale") or {}
        if not isinstance(section, dict):
            raise ValueError("'serve_stale' must be a mapping")
        try:
            policy = ServeStalePolicy.from_mapping(section)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid serve_stale section: {exc}") from exc

        default_ttl = data.get("default_ttl", 300)
        if isinstance(default_ttl, bool) or not isinstance(default_ttl, int):
            raise ValueError(f"invalid default_ttl: {default_ttl!r}")

        raw = data.get("records", [])
        if not isinstance(raw, list):
            raise ValueError("'records' must be a list")

        recs: list[ResourceRecord] = []
        for i, item in enumerate(raw, 1):
            if not isinstance(item, dict):
                raise ValueError(f"record #{i}: mapping required, got {type(item).__name__}")
            item = {"TTL": default_ttl, **item}
            if item.get("data") is not None and not isinstance(item["data"], str):
                # YAML turns bare numbers and booleans into non-strings.
                item["data"] = str(item["data"])
            try:
                recs.append(ResourceRecord.from_json(item))
            except FormatError as exc:
                raise ValueError(f"malformed record #{i}: {exc}") from exc

        self.policy = policy
        self.records = recs
        self.index = group_records(recs)
        self._mtime = st.st_mtime
        logger.info("configuration loaded: %d records, %d names", len(self.records), len(self.index))

    def maybe_reload(self) -> None:
        """Reload on mtime change; keep last good config on errors.

        Returns:
            None
        """
        try:
            self.load(force=False)
        except (ValueError, yaml.YAMLError, OSError) as exc:
            logger.error("failed to reload configuration: %s", exc)

    def lookup(self, name: str, rtype: int) -> list[ResourceRecord]:
        """Return the records for a name and type, in file order.

        Args:
            name: Domain name, any case, with or without trailing dot.
            rtype: TYPE code.

        Returns:
            Matching records; empty if there are none.
        """
        key = name.rstrip(".").lower()
        return list(self.index.get(key, {}).get(rtype, []))
