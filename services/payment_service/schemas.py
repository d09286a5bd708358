from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .models import PaymentMethod

PAYMENT_COMMAND = "payment"
METHOD_SELECT_ID = "payment_method_select"
FORM_ID_PREFIX = "payment_modal:"
PRODUCT_FIELD_ID = "product_name"
PRICE_FIELD_ID = "product_price"


# --- INBOUND EVENTS ---

class Attachment(BaseModel):
    name: Optional[str] = None
    url: str = ""


class CommandInvoked(BaseModel):
    kind: Literal["command"] = "command"
    owner_id: str
    command_name: str


class SelectionMade(BaseModel):
    kind: Literal["selection"] = "selection"
    owner_id: str
    correlation_id: str
    chosen_value: str


class FormFields(BaseModel):
    product_name: str = ""
    product_price: str = ""


class FormSubmitted(BaseModel):
    kind: Literal["form"] = "form"
    owner_id: str
    correlation_id: str
    fields: FormFields


class MessagePosted(BaseModel):
    kind: Literal["message"] = "message"
    owner_id: str
    author_tag: str = ""
    has_guild_context: bool
    is_bot_author: bool
    attachments: List[Attachment] = []


InboundEvent = Annotated[
    Union[CommandInvoked, SelectionMade, FormSubmitted, MessagePosted],
    Field(discriminator="kind"),
]


# --- OUTBOUND PAYLOADS ---

class MethodOption(BaseModel):
    label: str
    value: str
    description: str


class MethodPrompt(BaseModel):
    custom_id: str = METHOD_SELECT_ID
    content: str
    placeholder: str = "Choose a payment method..."
    options: List[MethodOption]


class FormField(BaseModel):
    custom_id: str
    label: str
    placeholder: str
    required: bool = True


class OrderForm(BaseModel):
    custom_id: str
    title: str = "Order details"
    fields: List[FormField]


class EmbedField(BaseModel):
    name: str
    value: str
    inline: bool = False


class Embed(BaseModel):
    title: str
    description: Optional[str] = None
    fields: List[EmbedField] = []
    timestamp: Optional[datetime] = None


class Reply(BaseModel):
    content: str
    embed: Optional[Embed] = None
    ephemeral: bool = True


class StaffNotification(BaseModel):
    content: str = "🧾 Payment proof submitted:"
    embed: Embed
    order_id: str


def form_id_for(method: PaymentMethod) -> str:
    return f"{FORM_ID_PREFIX}{method.value}"
