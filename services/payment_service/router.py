"""
Routes chat-platform events through the payment flow.

    /payment  ->  method select (skipped with one method)  ->  order form
    form submit  ->  order stored, instructions sent
    screenshot in the server  ->  staff notified, order removed, user acknowledged

Every event is keyed only by the user's id. Nothing raised while handling an
event escapes handle(); interactive events get a generic failure reply instead.
"""
import structlog
from opentelemetry import trace
from pydantic import TypeAdapter

from shared.observability import payment_confirmations_total

from .attachments import AttachmentClassifier
from .exceptions import MissingDestinationError, OrderExistsError, PaymentFlowError
from .notifications import NotificationDispatcher, Responder
from .repository import OrderStore
from .schemas import (
    FORM_ID_PREFIX,
    METHOD_SELECT_ID,
    PAYMENT_COMMAND,
    CommandInvoked,
    FormSubmitted,
    InboundEvent,
    MessagePosted,
    Reply,
    SelectionMade,
)
from .service import PaymentService

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

GENERIC_FAILURE = "❌ Something went wrong."

inbound_event = TypeAdapter(InboundEvent)


class InteractionRouter:
    def __init__(
        self,
        service: PaymentService,
        dispatcher: NotificationDispatcher,
        staff_channel_id: int,
        classifier: AttachmentClassifier | None = None,
    ):
        self.service = service
        self.dispatcher = dispatcher
        self.staff_channel_id = staff_channel_id
        self.classifier = classifier or AttachmentClassifier()

    @property
    def store(self) -> OrderStore:
        return self.service.store

    async def handle(self, event: InboundEvent, responder: Responder) -> None:
        with tracer.start_as_current_span(f"payment.{event.kind}"), structlog.contextvars.bound_contextvars(
            event_kind=event.kind, owner_id=event.owner_id
        ):
            try:
                match event:
                    case CommandInvoked():
                        await self._on_command(event, responder)
                    case SelectionMade():
                        await self._on_selection(event, responder)
                    case FormSubmitted():
                        await self._on_form(event, responder)
                    case MessagePosted():
                        await self._on_message(event, responder)
            except PaymentFlowError as e:
                logger.warning("payment_flow_rejected", error=str(e))
                if not isinstance(event, MessagePosted):
                    await self._reply_failure(responder)
            except Exception:
                logger.exception("event_handling_failed")
                if not isinstance(event, MessagePosted):
                    await self._reply_failure(responder)

    async def _reply_failure(self, responder: Responder, content: str = GENERIC_FAILURE) -> None:
        try:
            await responder.reply(Reply(content=content))
        except Exception:
            logger.exception("failure_reply_failed")

    # --- INTERACTIONS ---

    async def _on_command(self, event: CommandInvoked, responder: Responder) -> None:
        if event.command_name != PAYMENT_COMMAND:
            logger.debug("command_ignored", command_name=event.command_name)
            return

        method = self.service.single_method
        if method is None:
            await responder.prompt_method(self.service.method_prompt())
        else:
            await responder.open_form(self.service.order_form(method))

    async def _on_selection(self, event: SelectionMade, responder: Responder) -> None:
        if event.correlation_id != METHOD_SELECT_ID:
            logger.debug("selection_ignored", correlation_id=event.correlation_id)
            return

        method = self.service.parse_method(event.chosen_value)
        await responder.open_form(self.service.order_form(method))

    async def _on_form(self, event: FormSubmitted, responder: Responder) -> None:
        if not event.correlation_id.startswith(FORM_ID_PREFIX):
            logger.debug("form_ignored", correlation_id=event.correlation_id)
            return

        method = self.service.parse_method(event.correlation_id.removeprefix(FORM_ID_PREFIX))
        try:
            _, reply = self.service.open_order(
                event.owner_id, method, event.fields.product_name, event.fields.product_price
            )
        except MissingDestinationError as e:
            logger.error("payment_destination_missing", method=e.method)
            await self._reply_failure(
                responder, f"❌ {method.label} payments are not configured yet. Please contact staff."
            )
            return
        except OrderExistsError:
            await self._reply_failure(
                responder, "❌ You already have a pending order. Send your payment screenshot first."
            )
            return

        await responder.reply(reply)

    # --- SCREENSHOTS ---

    async def _on_message(self, event: MessagePosted, responder: Responder) -> None:
        if not event.has_guild_context or event.is_bot_author:
            return

        order = self.store.get(event.owner_id)
        if order is None:
            return

        proof = self.classifier.classify(event.attachments)
        if proof is None:
            return

        try:
            channel = await responder.fetch_channel(self.staff_channel_id)
        except Exception:
            logger.exception("staff_channel_fetch_failed", channel_id=self.staff_channel_id)
            channel = None
        if channel is None:
            logger.error("staff_channel_not_found", channel_id=self.staff_channel_id)
            payment_confirmations_total.labels(status="channel_missing").inc()
            return

        requester = f"{event.author_tag} ({event.owner_id})" if event.author_tag else event.owner_id
        if not await self.dispatcher.notify(channel, order, requester, proof):
            # Order stays pending; the user can post the screenshot again
            payment_confirmations_total.labels(status="send_failed").inc()
            return

        self.store.remove(event.owner_id)
        payment_confirmations_total.labels(status="notified").inc()
        await self.dispatcher.acknowledge(responder)


def parse_event(payload: dict) -> InboundEvent:
    return inbound_event.validate_python(payload)
