"""
One-shot, time-bounded schema setup for the durable tier.
"""

from __future__ import annotations

import enum
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional, Protocol

from linkstore.errors import InitializationTimeout

logger = logging.getLogger(__name__)


class SchemaTarget(Protocol):
    def ensure_schema(self) -> None:
        ...


class BootstrapState(enum.Enum):
    PENDING = "PENDING"
    READY = "READY"
    UNAVAILABLE = "UNAVAILABLE"


class SchemaBootstrap:
    """
    Runs ``ensure_schema`` once with a timeout. A failure or timeout leaves
    the durable tier unusable until the process restarts; there is no retry.
    """

    def __init__(self, tier: SchemaTarget, timeout_seconds: float = 5.0):
        self.tier = tier
        self.timeout_seconds = timeout_seconds
        self.state = BootstrapState.PENDING
        self._lock = threading.Lock()
        self._settled = threading.Event()

    @property
    def usable(self) -> bool:
        return self.state is BootstrapState.READY

    def run(self) -> bool:
        with self._lock:
            if self._settled.is_set():
                return self.usable
            self.state = self._attempt()
            self._settled.set()
            return self.usable

    def _attempt(self) -> BootstrapState:
        executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="schema-bootstrap"
        )
        future = executor.submit(self.tier.ensure_schema)
        try:
            future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            err = InitializationTimeout(self.timeout_seconds)
            logger.warning("%s; falling back to local storage", err)
            return BootstrapState.UNAVAILABLE
        except Exception as exc:
            logger.warning(
                "Durable schema bootstrap failed (%s); falling back to local storage",
                exc,
            )
            return BootstrapState.UNAVAILABLE
        finally:
            # A hung schema call is abandoned, not cancelled.
            executor.shutdown(wait=False)
        logger.info("Durable tier initialized successfully")
        return BootstrapState.READY

    def start(self) -> threading.Thread:
        """Run the bootstrap on a daemon thread so startup is not delayed."""
        thread = threading.Thread(
            target=self.run, name="durable-bootstrap", daemon=True
        )
        thread.start()
        return thread

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the bootstrap has settled. Returns whether it has."""
        return self._settled.wait(timeout)
