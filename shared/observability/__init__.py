from .setup import setup_observability, configure_logging
from .metrics import (
    payment_orders_created_total,
    payment_orders_replaced_total,
    payment_confirmations_total,
    payment_orders_evicted_total,
    payment_pending_orders
)
