"""
Queue abstraction for detached durable writes.

Supports an in-process queue for single-instance deployments and tests and
a Redis-backed implementation so separate worker processes can drain writes.
"""

from __future__ import annotations

import json
import queue
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import redis
from redis import exceptions as redis_exceptions


@dataclass
class DurableWrite:
    record_id: str
    payload: Any

    def to_json(self) -> str:
        return json.dumps({"id": self.record_id, "payload": self.payload})

    @classmethod
    def from_json(cls, raw: str | bytes) -> "DurableWrite":
        data = json.loads(raw)
        return cls(record_id=data["id"], payload=data["payload"])


class WriteQueue(Protocol):
    """Minimal queue interface for handing durable writes to a worker."""

    def enqueue(self, write: DurableWrite) -> None:
        ...

    def dequeue(
        self, *, block: bool = True, timeout: float | None = None
    ) -> Optional[DurableWrite]:
        ...

    def task_done(self) -> None:
        ...


class InMemoryWriteQueue:
    """Thread-safe FIFO shared by request threads and the writer thread."""

    def __init__(self):
        self._items: "queue.Queue[DurableWrite]" = queue.Queue()

    def enqueue(self, write: DurableWrite) -> None:
        self._items.put(write)

    def dequeue(
        self, *, block: bool = True, timeout: float | None = None
    ) -> Optional[DurableWrite]:
        try:
            return self._items.get(block=block, timeout=timeout)
        except queue.Empty:
            return None

    def task_done(self) -> None:
        self._items.task_done()

    def wait_until_drained(self, timeout: float = 5.0) -> bool:
        """
        Wait for every enqueued write to be processed. Returns False if the
        timeout elapsed first.
        """
        with self._items.all_tasks_done:
            if self._items.unfinished_tasks == 0:
                return True
            return self._items.all_tasks_done.wait_for(
                lambda: self._items.unfinished_tasks == 0, timeout=timeout
            )

    def __len__(self) -> int:
        return self._items.qsize()


@dataclass
class RedisWriteQueue:
    """Redis-backed queue using list push/pop operations."""

    url: str
    queue_key: str = "linkstore:durable_writes"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def enqueue(self, write: DurableWrite) -> None:
        self.client.rpush(self.queue_key, write.to_json())

    def dequeue(
        self, *, block: bool = True, timeout: float | None = None
    ) -> Optional[DurableWrite]:
        try:
            if block:
                result = self.client.blpop(self.queue_key, timeout=timeout or 0)
                if result is None:
                    return None
                _, raw = result
            else:
                raw = self.client.lpop(self.queue_key)
                if raw is None:
                    return None
            return DurableWrite.from_json(raw)
        except redis_exceptions.ConnectionError:
            # Connection resets can happen on managed Redis. Treat as empty queue
            # and allow the worker loop to retry.
            self.client = redis.Redis.from_url(self.url)
            return None

    def task_done(self) -> None:
        # Popped items are already gone from the list.
        pass
