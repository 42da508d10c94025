"""
Storage tiers local to this host: the in-memory cache and the disk tier.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Protocol

from linkstore.errors import DecodeCorruption, TierUnavailable
from linkstore.ids import is_valid_id

logger = logging.getLogger(__name__)

WRITE_PROBE_NAME = ".write-test"


@dataclass
class Record:
    id: str
    payload: Any
    # Only the durable tier stamps records.
    created_at: Optional[datetime] = None


class Tier(Protocol):
    """Defines the operations the coordinator needs from a storage tier."""

    name: str

    def get(self, record_id: str) -> Optional[Record]:
        ...

    def put(self, record_id: str, payload: Any) -> None:
        ...


class MemoryTier:
    """Process-local cache. Safe to share across request threads."""

    name = "memory"

    def __init__(self):
        self._records: Dict[str, Record] = {}
        self._lock = threading.Lock()

    def get(self, record_id: str) -> Optional[Record]:
        with self._lock:
            return self._records.get(record_id)

    def put(self, record_id: str, payload: Any) -> None:
        with self._lock:
            self._records[record_id] = Record(id=record_id, payload=payload)

    def put_if_absent(self, record: Record) -> Record:
        """
        Cache ``record`` unless this process already holds a value for its id.
        Returns whichever record is cached afterwards.
        """
        with self._lock:
            return self._records.setdefault(record.id, record)

    def clear(self) -> None:
        """Drop everything (useful in tests to simulate a restart)."""
        with self._lock:
            self._records.clear()

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class LocalTier:
    """
    Disk tier with one JSON document per record.

    Each write lands in a temporary file that is renamed over the target,
    so readers never see a half-written document and writers for different
    ids never touch the same file.
    """

    name = "local"

    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_candidates(cls, candidates: Iterable[str]) -> "LocalTier":
        """
        Use the first candidate directory that can be created and written to.
        Falls back to a fresh directory under the system temp dir.
        """
        for candidate in candidates:
            path = Path(candidate).expanduser().absolute()
            try:
                path.mkdir(parents=True, exist_ok=True)
                probe = path / WRITE_PROBE_NAME
                probe.write_text("test", encoding="utf-8")
                probe.unlink()
            except OSError as exc:
                logger.warning("Path %s not writable (%s), trying next", path, exc)
                continue
            logger.info("Using writable local storage at %s", path)
            return cls(path)

        fallback = Path(tempfile.mkdtemp(prefix="linkstore-"))
        logger.warning("No candidate storage dir writable, using %s", fallback)
        return cls(fallback)

    def _path_for(self, record_id: str) -> Optional[Path]:
        if not is_valid_id(record_id):
            return None
        return self.directory / f"{record_id}.json"

    def get(self, record_id: str) -> Optional[Record]:
        path = self._path_for(record_id)
        if path is None:
            return None
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise TierUnavailable(self.name, str(exc)) from exc
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise DecodeCorruption(self.name, record_id) from exc
        return Record(id=record_id, payload=payload)

    def put(self, record_id: str, payload: Any) -> None:
        path = self._path_for(record_id)
        if path is None:
            raise TierUnavailable(self.name, f"invalid record id {record_id!r}")
        try:
            body = json.dumps(payload)
        except (TypeError, ValueError) as exc:
            raise TierUnavailable(self.name, f"unserializable payload: {exc}") from exc

        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=self.directory, prefix=f".{record_id}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(body)
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as exc:
            raise TierUnavailable(self.name, str(exc)) from exc
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.debug("Could not remove temp file %s", tmp_path)

    def clear(self) -> None:
        """Remove every stored record (simulates moving to a fresh host)."""
        for path in self.directory.glob("*.json"):
            path.unlink(missing_ok=True)
