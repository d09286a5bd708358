import asyncio
from datetime import timedelta

import structlog

from shared.observability import payment_orders_evicted_total

from .repository import OrderStore

logger = structlog.get_logger(__name__)


def sweep_once(store: OrderStore, max_age: timedelta) -> int:
    evicted = store.evict_older_than(max_age)
    for order in evicted:
        logger.info("order_expired", owner_id=order.owner_id, order_id=order.order_id)
    payment_orders_evicted_total.inc(len(evicted))
    return len(evicted)


async def sweep_forever(store: OrderStore, max_age: timedelta, interval: float) -> None:
    """Only started when ORDER_TTL_SECONDS is set; by default orders never expire."""
    while True:
        await asyncio.sleep(interval)
        try:
            sweep_once(store, max_age)
        except Exception:
            logger.exception("order_sweep_failed")
