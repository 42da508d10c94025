"""
Routes reads and writes across the memory, local and durable tiers.

Reads cascade memory -> durable -> local and stop at the first hit, which
is copied into memory. Writes go to memory and local disk synchronously;
the durable write is handed off and never awaited, so a slow or broken
database only shows up in the logs.

Memory hits are never revalidated against the durable tier. A record
overwritten by another process stays stale here until this process
restarts.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from linkstore.bootstrap import SchemaBootstrap
from linkstore.errors import DecodeCorruption, RecordNotFound, TierUnavailable
from linkstore.ids import generate_id
from linkstore.queues import DurableWrite, WriteQueue
from linkstore.storage import MemoryTier, Record, Tier

logger = logging.getLogger(__name__)


class StorageCoordinator:
    def __init__(
        self,
        memory: MemoryTier,
        local: Optional[Tier] = None,
        durable: Optional[Tier] = None,
        *,
        bootstrap: Optional[SchemaBootstrap] = None,
        write_queue: Optional[WriteQueue] = None,
        id_factory: Callable[[], str] = generate_id,
    ):
        self.memory = memory
        self.local = local
        self.durable = durable
        self.bootstrap = bootstrap
        self.write_queue = write_queue
        self.id_factory = id_factory

    @property
    def durable_usable(self) -> bool:
        """
        False when no durable tier is configured, and also while its schema
        bootstrap is pending or after it failed.
        """
        if self.durable is None:
            return False
        return self.bootstrap is None or self.bootstrap.usable

    def fetch(self, record_id: str) -> Optional[Record]:
        record = self.memory.get(record_id)
        if record is not None:
            return record

        fallbacks = []
        if self.durable_usable:
            fallbacks.append(self.durable)
        if self.local is not None:
            fallbacks.append(self.local)

        for tier in fallbacks:
            record = self._read(tier, record_id)
            if record is not None:
                # A write that landed during the read must not be undone.
                return self.memory.put_if_absent(record)
        return None

    def require(self, record_id: str) -> Record:
        record = self.fetch(record_id)
        if record is None:
            raise RecordNotFound(record_id)
        return record

    def store(self, payload: Any) -> str:
        record_id = self.id_factory()
        self.put(record_id, payload)
        return record_id

    def put(self, record_id: str, payload: Any) -> None:
        """
        Overwrite ``record_id`` everywhere it can be written. Only the memory
        write is guaranteed once this returns.
        """
        self.memory.put(record_id, payload)

        if self.local is not None:
            try:
                self.local.put(record_id, payload)
            except TierUnavailable as exc:
                logger.error("Local write error for %s: %s", record_id, exc)

        if self.durable_usable:
            self._submit_durable(record_id, payload)

    def _read(self, tier: Tier, record_id: str) -> Optional[Record]:
        try:
            return tier.get(record_id)
        except TierUnavailable as exc:
            logger.error("%s read error for %s: %s", tier.name, record_id, exc)
        except DecodeCorruption as exc:
            logger.warning("%s; treating as missing", exc)
        return None

    def _submit_durable(self, record_id: str, payload: Any) -> None:
        if self.write_queue is None:
            threading.Thread(
                target=self._write_durable,
                args=(record_id, payload),
                name=f"durable-write-{record_id}",
                daemon=True,
            ).start()
            return
        try:
            self.write_queue.enqueue(DurableWrite(record_id=record_id, payload=payload))
        except Exception:
            logger.exception("Could not queue durable write for %s", record_id)

    def _write_durable(self, record_id: str, payload: Any) -> None:
        try:
            self.durable.put(record_id, payload)
        except TierUnavailable as exc:
            logger.error("Durable async write error for %s: %s", record_id, exc)
        except Exception:
            logger.exception("Unexpected durable write failure for %s", record_id)
