from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import MutableMapping

from shared.observability import payment_pending_orders

from .exceptions import OrderExistsError
from .models import Order


class ConflictPolicy(str, Enum):
    REPLACE = "replace"
    REJECT = "reject"


class OrderStore:
    """
    In-memory order table, one slot per owner.

    Every method is synchronous and never awaits, so callers on the event loop
    can use it without a lock. Nothing is persisted.
    """

    def __init__(
        self,
        backing: MutableMapping[str, Order] | None = None,
        policy: ConflictPolicy = ConflictPolicy.REPLACE,
    ):
        self._orders = backing if backing is not None else {}
        self.policy = policy

    def __len__(self) -> int:
        return len(self._orders)

    def put(self, owner_id: str, order: Order) -> Order | None:
        """
        Upsert the owner's order. Under REPLACE the previous order is dropped
        without telling the requester; it is returned so the caller can count it.
        Under REJECT an existing order raises OrderExistsError.
        """
        previous = self._orders.get(owner_id)
        if previous is not None and self.policy is ConflictPolicy.REJECT:
            raise OrderExistsError(owner_id)
        self._orders[owner_id] = order
        payment_pending_orders.set(len(self._orders))
        return previous

    def get(self, owner_id: str) -> Order | None:
        return self._orders.get(owner_id)

    def remove(self, owner_id: str) -> None:
        self._orders.pop(owner_id, None)
        payment_pending_orders.set(len(self._orders))

    def evict_older_than(self, max_age: timedelta, now: datetime | None = None) -> list[Order]:
        cutoff = (now or datetime.now(timezone.utc)) - max_age
        stale_keys = [key for key, order in self._orders.items() if order.created_at < cutoff]
        stale = [self._orders.pop(key) for key in stale_keys]
        payment_pending_orders.set(len(self._orders))
        return stale
