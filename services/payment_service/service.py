import structlog

from shared.observability import payment_orders_created_total, payment_orders_replaced_total

from .exceptions import InvalidSubmissionError, MissingDestinationError
from .identifiers import IdentifierGenerator
from .models import Order, OrderState, PaymentMethod
from .repository import OrderStore
from .schemas import (
    PRICE_FIELD_ID,
    PRODUCT_FIELD_ID,
    Embed,
    EmbedField,
    FormField,
    MethodOption,
    MethodPrompt,
    OrderForm,
    Reply,
    form_id_for,
)

logger = structlog.get_logger(__name__)

METHOD_DESCRIPTIONS = {
    PaymentMethod.PAYPAL: "Pay via PayPal (send screenshot to confirm)",
    PaymentMethod.REVOLUT: "Pay via Revolut (send screenshot to confirm)",
    PaymentMethod.LINK: "Pay through a payment link (send screenshot to confirm)",
}


class PaymentService:
    def __init__(
        self,
        store: OrderStore,
        methods: list[PaymentMethod],
        destinations: dict[PaymentMethod, str],
        identifiers: IdentifierGenerator | None = None,
    ):
        self.store = store
        self.methods = list(methods)
        self.destinations = dict(destinations)
        self.identifiers = identifiers or IdentifierGenerator()

    @property
    def single_method(self) -> PaymentMethod | None:
        return self.methods[0] if len(self.methods) == 1 else None

    def method_prompt(self) -> MethodPrompt:
        return MethodPrompt(
            content="Select a payment method.\n✅ After payment, **send a screenshot to confirm**.",
            options=[
                MethodOption(label=m.label, value=m.value, description=METHOD_DESCRIPTIONS[m])
                for m in self.methods
            ],
        )

    def order_form(self, method: PaymentMethod) -> OrderForm:
        return OrderForm(
            custom_id=form_id_for(method),
            fields=[
                FormField(
                    custom_id=PRODUCT_FIELD_ID,
                    label="What product are you buying?",
                    placeholder="Example: VIP 1 month",
                ),
                FormField(
                    custom_id=PRICE_FIELD_ID,
                    label="Price (include currency)",
                    placeholder="Example: 9.99 EUR",
                ),
            ],
        )

    def parse_method(self, value: str) -> PaymentMethod:
        try:
            method = PaymentMethod(value)
        except ValueError:
            raise InvalidSubmissionError(f"Unknown payment method '{value}'")
        if method not in self.methods:
            raise InvalidSubmissionError(f"Payment method '{value}' is not enabled")
        return method

    def open_order(self, owner_id: str, method: PaymentMethod, product: str, price: str) -> tuple[Order, Reply]:
        """
        Creates the owner's order and builds the instructions reply.
        The destination is checked first so a misconfigured method never leaves
        an order behind.
        """
        product, price = product.strip(), price.strip()
        if not product or not price:
            raise InvalidSubmissionError("Product and price are required")

        destination = self.destinations.get(method)
        if not destination:
            raise MissingDestinationError(method.value)

        order = Order(
            owner_id=owner_id,
            order_id=self.identifiers.next(),
            method=method,
            product=product,
            price=price,
            state=OrderState.OPEN,
        )
        previous = self.store.put(owner_id, order)

        payment_orders_created_total.labels(method=method.value).inc()
        if previous is not None:
            payment_orders_replaced_total.inc()
            logger.info("order_replaced", owner_id=owner_id, previous_order_id=previous.order_id, order_id=order.order_id)
        logger.info("order_created", owner_id=owner_id, order_id=order.order_id, method=method.value)

        return order, Reply(
            content=f"✅ Order created! Follow the {method.label} instructions below.",
            embed=self.instructions(order, destination),
        )

    @staticmethod
    def instructions(order: Order, destination: str) -> Embed:
        reference = f"`{order.order_id} | {order.product} | {order.price}`"

        if order.method is PaymentMethod.LINK:
            steps = [
                f"**1) Open the payment link:** {destination}",
                f"**2) Pay** **{order.price}**",
                "",
                "**3) In the payment reference/note, paste this exactly:**",
                reference,
            ]
        else:
            steps = [
                f"**1) Open {order.method.label} → Send**",
                f"**2) Send to:** **{destination}**",
                "",
                f"**3) In {order.method.label} note/message, paste this exactly:**",
                reference,
            ]
        steps += ["", "✅ **After payment, send a screenshot to confirm.**"]

        return Embed(
            title=f"{order.method.label} Payment Instructions",
            description="\n".join(steps),
            fields=[
                EmbedField(name="Order ID", value=order.order_id, inline=True),
                EmbedField(name="Product", value=order.product),
                EmbedField(name="Price", value=order.price),
            ],
        )
