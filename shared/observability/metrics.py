from prometheus_client import Counter, Gauge

# Business Metrics
payment_orders_created_total = Counter(
    "payment_orders_created_total",
    "Total orders opened from submitted payment forms",
    ["method"] # Labels: 'paypal', 'revolut', 'link'
)

payment_orders_replaced_total = Counter(
    "payment_orders_replaced_total",
    "Pending orders overwritten by a newer submission from the same user"
)

payment_confirmations_total = Counter(
    "payment_confirmations_total",
    "Payment screenshots processed",
    ["status"] # Labels: 'notified', 'channel_missing', 'send_failed'
)

payment_orders_evicted_total = Counter(
    "payment_orders_evicted_total",
    "Pending orders dropped by the age-based sweep"
)

payment_pending_orders = Gauge(
    "payment_pending_orders",
    "Number of orders currently awaiting a payment screenshot"
)
