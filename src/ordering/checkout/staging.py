"""Staging slot: holds each shopper's pending order while the payment is open.

One slot per user. Staging again replaces the slot. ``consume`` takes the
pending order out atomically, so when the same success callback arrives
twice only one caller gets it. ``discard`` empties the slot on failure or
cancellation so a stale draft can never be paid for later.

The store behind the slot is a port; the in-memory store serves a single
process and tests. A shared store (e.g. Redis) can be plugged in with
``set_staging_store``.
"""

import threading
from abc import ABC, abstractmethod

import structlog

from ordering.checkout.pending_order import PendingOrder

logger = structlog.get_logger(__name__)


class StagingStore(ABC):
    """Key/value storage with an atomic take."""

    @abstractmethod
    def put(self, key: str, payload: str) -> None: ...

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def pop(self, key: str) -> str | None:
        """Remove and return the value in one step."""
        ...


class InMemoryStagingStore(StagingStore):
    def __init__(self) -> None:
        self._slots: dict[str, str] = {}
        self._lock = threading.Lock()

    def put(self, key: str, payload: str) -> None:
        with self._lock:
            self._slots[key] = payload

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._slots.get(key)

    def pop(self, key: str) -> str | None:
        with self._lock:
            return self._slots.pop(key, None)

    def __len__(self) -> int:
        return len(self._slots)


_current_store: StagingStore | None = None


def get_staging_store() -> StagingStore:
    """Return the current staging store. Defaults to InMemoryStagingStore."""
    global _current_store
    if _current_store is None:
        _current_store = InMemoryStagingStore()
    return _current_store


def set_staging_store(store: StagingStore) -> None:
    global _current_store
    _current_store = store


def reset_staging_store() -> None:
    global _current_store
    _current_store = None


class CheckoutStaging:
    """The typed API over the staging store."""

    def __init__(self, store: StagingStore | None = None) -> None:
        self.store = store if store is not None else get_staging_store()

    @staticmethod
    def _key(user_id) -> str:
        return f"checkout:{user_id}"

    def stage(self, pending: PendingOrder) -> None:
        self.store.put(self._key(pending.user_id), pending.to_json())
        logger.info(
            "Checkout staged",
            user_id=pending.user_id,
            reference=pending.reference,
            gateway_order_id=pending.gateway_order_id,
            total_amount=pending.total_amount,
        )

    def peek(self, user_id) -> PendingOrder | None:
        payload = self.store.get(self._key(user_id))
        return PendingOrder.from_json(payload) if payload else None

    def consume(self, user_id) -> PendingOrder | None:
        payload = self.store.pop(self._key(user_id))
        if payload is None:
            return None
        pending = PendingOrder.from_json(payload)
        logger.info("Checkout consumed", user_id=str(user_id), reference=pending.reference)
        return pending

    def discard(self, user_id) -> bool:
        """Empty the slot. Returns whether anything was there."""
        discarded = self.store.pop(self._key(user_id)) is not None
        if discarded:
            logger.info("Checkout discarded", user_id=str(user_id))
        return discarded
