"""
Exceptions raised by the storage tiers and the HTTP boundary.

Only ``RecordNotFound`` and ``InvalidPayload`` ever reach a client, as a
404 and a 400 respectively. Everything else is caught by the coordinator
and turned into a fallback to the next tier.
"""

from __future__ import annotations


class LinkStoreError(Exception):
    """Base class for all link storage errors."""


class TierUnavailable(LinkStoreError):
    """A tier could not be reached (disk fault, network fault, timeout)."""

    def __init__(self, tier: str, message: str):
        self.tier = tier
        super().__init__(f"{tier} tier unavailable: {message}")


class DecodeCorruption(LinkStoreError):
    """Stored bytes for a record could not be parsed back into a document."""

    def __init__(self, tier: str, record_id: str):
        self.tier = tier
        self.record_id = record_id
        super().__init__(f"corrupted record {record_id!r} in {tier} tier")


class RecordNotFound(LinkStoreError):
    """No configured tier holds the requested record."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"record {record_id!r} not found")


class InitializationTimeout(LinkStoreError):
    """Durable schema bootstrap did not finish within its time budget."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"durable schema bootstrap timed out after {timeout:g}s")


class InvalidPayload(LinkStoreError):
    """Request body is empty or cannot be decoded."""
