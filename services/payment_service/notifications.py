from datetime import datetime, timezone
from typing import Protocol

import structlog

from .models import Order
from .schemas import Attachment, Embed, EmbedField, MethodPrompt, OrderForm, Reply, StaffNotification

logger = structlog.get_logger(__name__)


class OperatorChannel(Protocol):
    async def send(self, notification: StaffNotification) -> None: ...


class Responder(Protocol):
    """Outbound side of one inbound event, implemented by the gateway adapter."""

    async def prompt_method(self, prompt: MethodPrompt) -> None: ...

    async def open_form(self, form: OrderForm) -> None: ...

    async def reply(self, reply: Reply) -> None: ...

    async def fetch_channel(self, channel_id: int) -> OperatorChannel | None: ...


class NotificationDispatcher:
    def __init__(self, ack_message: str):
        self.ack_message = ack_message

    @staticmethod
    def compose(order: Order, requester: str, attachment: Attachment) -> StaffNotification:
        return StaffNotification(
            order_id=order.order_id,
            embed=Embed(
                title=f"New {order.method.label} Payment Screenshot",
                fields=[
                    EmbedField(name="User", value=requester),
                    EmbedField(name="Order ID", value=order.order_id, inline=True),
                    EmbedField(name="Method", value=order.method.label, inline=True),
                    EmbedField(name="Product", value=order.product),
                    EmbedField(name="Price", value=order.price),
                    EmbedField(name="Screenshot URL", value=attachment.url or "(no url)"),
                ],
                timestamp=datetime.now(timezone.utc),
            ),
        )

    async def notify(
        self, channel: OperatorChannel, order: Order, requester: str, attachment: Attachment
    ) -> bool:
        """Sends the staff notification. Returns False (after logging) if the send failed."""
        notification = self.compose(order, requester, attachment)
        try:
            await channel.send(notification)
        except Exception:
            logger.exception("staff_notification_failed", order_id=order.order_id)
            return False
        logger.info("staff_notified", order_id=order.order_id, owner_id=order.owner_id)
        return True

    async def acknowledge(self, responder: Responder) -> None:
        try:
            await responder.reply(Reply(content=self.ack_message, ephemeral=False))
        except Exception:
            logger.exception("acknowledgement_failed")
