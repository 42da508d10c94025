"""
Background writer that drains queued durable writes into Postgres.

Runs as a daemon thread inside the API process, or standalone against the
Redis queue (``python -m linkstore.worker``) so several processes can share
the work.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from linkstore.bootstrap import SchemaBootstrap
from linkstore.config import get_settings
from linkstore.db import DurableTier
from linkstore.errors import TierUnavailable
from linkstore.queues import RedisWriteQueue, WriteQueue
from linkstore.storage import Tier

logger = logging.getLogger(__name__)


def process_next(
    durable: Tier,
    queue: WriteQueue,
    *,
    block: bool = True,
    timeout: Optional[float] = None,
) -> bool:
    """
    Fetch and apply one durable write. Returns True if an item was consumed.
    Failed writes are logged and dropped.
    """
    write = queue.dequeue(block=block, timeout=timeout)
    if write is None:
        return False

    try:
        durable.put(write.record_id, write.payload)
        logger.debug("Durable write for %s complete", write.record_id)
    except TierUnavailable as exc:
        logger.error("Durable async write error for %s: %s", write.record_id, exc)
    except Exception:
        logger.exception("Unexpected durable write failure for %s", write.record_id)
    finally:
        queue.task_done()
    return True


class DurableWriteWorker:
    """Daemon thread applying queued writes until stopped."""

    def __init__(
        self, durable: Tier, queue: WriteQueue, poll_interval: float = 1.0
    ):
        self.durable = durable
        self.queue = queue
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name="durable-writer", daemon=True
        )
        self._thread.start()

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                process_next(
                    self.durable,
                    self.queue,
                    block=True,
                    timeout=self.poll_interval,
                )
            except Exception:
                logger.exception("Durable writer loop error")
                time.sleep(self.poll_interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Ask the loop to exit after its current item. An in-flight write is
        left to finish on its own.
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


def run_loop() -> None:
    """
    Standalone worker draining the Redis write queue. Intended to be run
    under systemd/supervisor alongside the API processes.
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    if not settings.postgres_url or not settings.redis_url:
        raise SystemExit("POSTGRES_URL and REDIS_URL are required for the worker")

    durable = DurableTier(
        settings.postgres_url, timeout_seconds=settings.durable_timeout_seconds
    )
    bootstrap = SchemaBootstrap(
        durable, timeout_seconds=settings.durable_timeout_seconds
    )
    if not bootstrap.run():
        raise SystemExit("Durable tier unavailable; worker not started")

    queue = RedisWriteQueue(url=settings.redis_url, queue_key=settings.redis_queue_key)
    logger.info("Draining durable writes from %s", settings.redis_queue_key)
    while True:
        try:
            process_next(
                durable,
                queue,
                block=True,
                timeout=settings.worker_poll_interval_seconds,
            )
        except Exception:
            logger.exception("Durable writer loop error")
            time.sleep(settings.worker_poll_interval_seconds)


if __name__ == "__main__":
    run_loop()
