from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class PaymentMethod(str, Enum):
    PAYPAL = "paypal"
    REVOLUT = "revolut"
    LINK = "link"

    @property
    def label(self) -> str:
        return {
            PaymentMethod.PAYPAL: "PayPal",
            PaymentMethod.REVOLUT: "Revolut",
            PaymentMethod.LINK: "Payment link",
        }[self]


class OrderState(str, Enum):
    # No row in the store means "no order"; only the open state is stored
    OPEN = "open"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(BaseModel):
    owner_id: str
    order_id: str
    method: PaymentMethod
    product: str
    price: str
    created_at: datetime = Field(default_factory=_utcnow)
    state: OrderState = OrderState.OPEN

    class Config:
        frozen = True
