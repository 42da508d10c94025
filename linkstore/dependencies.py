"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from linkstore.bootstrap import SchemaBootstrap
from linkstore.config import Settings
from linkstore.coordinator import StorageCoordinator
from linkstore.db import DurableTier
from linkstore.ids import generate_id
from linkstore.queues import InMemoryWriteQueue, RedisWriteQueue, WriteQueue
from linkstore.storage import LocalTier, MemoryTier
from linkstore.worker import DurableWriteWorker

logger = logging.getLogger(__name__)


@dataclass
class StorageServices:
    """The coordinator plus the background pieces whose lifetime the app owns."""

    coordinator: StorageCoordinator
    worker: Optional[DurableWriteWorker] = None

    def start(self) -> None:
        bootstrap = self.coordinator.bootstrap
        if bootstrap is not None:
            bootstrap.start()
        if self.worker is not None:
            self.worker.start()

    def shutdown(self, timeout: float = 5.0) -> None:
        if self.worker is not None:
            self.worker.stop(timeout)
        if isinstance(self.coordinator.durable, DurableTier):
            self.coordinator.durable.dispose()


def _build_durable(settings: Settings) -> Optional[DurableTier]:
    if settings.use_in_memory_backends or not settings.postgres_url:
        logger.info("No POSTGRES_URL configured; running on memory and local storage")
        return None
    try:
        return DurableTier(
            settings.postgres_url, timeout_seconds=settings.durable_timeout_seconds
        )
    except Exception:
        logger.exception("Could not create durable tier; running without it")
        return None


def _build_write_queue(settings: Settings) -> WriteQueue:
    if settings.redis_url and not settings.use_in_memory_backends:
        return RedisWriteQueue(url=settings.redis_url, queue_key=settings.redis_queue_key)
    return InMemoryWriteQueue()


def _build_local(settings: Settings) -> Optional[LocalTier]:
    try:
        return LocalTier.from_candidates(settings.local_storage_dirs)
    except OSError:
        logger.exception("No usable local storage directory; running on memory only")
        return None


def build_services(settings: Settings) -> StorageServices:
    durable = _build_durable(settings)
    bootstrap = None
    write_queue = None
    worker = None
    if durable is not None:
        bootstrap = SchemaBootstrap(
            durable, timeout_seconds=settings.durable_timeout_seconds
        )
        write_queue = _build_write_queue(settings)
        worker = DurableWriteWorker(
            durable, write_queue, poll_interval=settings.worker_poll_interval_seconds
        )

    coordinator = StorageCoordinator(
        MemoryTier(),
        _build_local(settings),
        durable,
        bootstrap=bootstrap,
        write_queue=write_queue,
        id_factory=lambda: generate_id(length=settings.id_length),
    )
    return StorageServices(coordinator=coordinator, worker=worker)


def get_coordinator(request: Request) -> StorageCoordinator:
    """Return the coordinator owned by the running app."""
    return request.app.state.services.coordinator
