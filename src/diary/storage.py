"""Durable key-value storage for serialized diary records.

The tracker only needs ``get``/``set`` of opaque byte payloads by string key.
Every backend subclasses ``KeyValueStore``.

Backends:
    InMemoryKeyValueStore — process-local dict, used in tests and when no
                            data file is configured
    JsonFileKeyValueStore — single JSON file on disk, values base64-encoded
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger("cycle_diary.diary.storage")


class KeyValueStore(ABC):
    """Abstract byte-payload store keyed by string."""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the payload stored under ``key``, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key``, replacing any previous payload.

        Raises:
            OSError: If the backend cannot persist the payload.
        """

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store.  Contents are lost on exit.

    Usage::

        store = InMemoryKeyValueStore()
        store.set("cycles_storage_v1", b"[]")
        store.get("cycles_storage_v1")   # b"[]"
    """

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """Store backed by one JSON file: ``{key: base64(payload)}``.

    The whole file is rewritten on every ``set`` through a temp file in the
    same directory followed by ``os.replace``, so a crash mid-write leaves the
    previous file intact.  An unreadable or corrupt file reads as empty; the
    next successful ``set`` overwrites it.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read store file %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store file %s is not a JSON object; ignoring", self._path)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> bytes | None:
        encoded = self._read_all().get(key)
        if encoded is None:
            return None
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("Corrupt payload for key %r in %s", key, self._path)
            return None

    def set(self, key: str, value: bytes) -> None:
        data = self._read_all()
        data[key] = base64.b64encode(value).decode("ascii")

        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote key %r (%d bytes) to %s", key, len(value), self._path)
