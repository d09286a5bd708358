import pytest

from conftest import ACK, STAFF_CHANNEL_ID, FakeChannel, FakeResponder, make_router
from services.payment_service.models import OrderState, PaymentMethod
from services.payment_service.repository import ConflictPolicy
from services.payment_service.router import GENERIC_FAILURE, parse_event
from services.payment_service.schemas import (
    METHOD_SELECT_ID,
    Attachment,
    CommandInvoked,
    FormFields,
    FormSubmitted,
    MessagePosted,
    SelectionMade,
    form_id_for,
)


def command(owner="U1", name="payment"):
    return CommandInvoked(owner_id=owner, command_name=name)


def submit(owner="U1", product="VIP 1 month", price="9.99 EUR", method=PaymentMethod.PAYPAL):
    return FormSubmitted(
        owner_id=owner,
        correlation_id=form_id_for(method),
        fields=FormFields(product_name=product, product_price=price),
    )


def screenshot(owner="U1", names=("pay.png",), guild=True, bot=False):
    return MessagePosted(
        owner_id=owner,
        author_tag="buyer#0001",
        has_guild_context=guild,
        is_bot_author=bot,
        attachments=[Attachment(name=n, url=f"https://cdn.example/{n}") for n in names],
    )


# --- COMMAND / SELECTION ---

async def test_single_method_skips_selection(router):
    responder = FakeResponder()
    await router.handle(command(), responder)

    assert responder.prompts == []
    assert [f.custom_id for f in responder.forms] == ["payment_modal:paypal"]
    assert router.store.get("U1") is None


async def test_multiple_methods_prompt_for_selection():
    router = make_router(
        methods=[PaymentMethod.PAYPAL, PaymentMethod.REVOLUT],
        destinations={PaymentMethod.PAYPAL: "shop@example.com", PaymentMethod.REVOLUT: "@shop"},
    )
    responder = FakeResponder()
    await router.handle(command(), responder)

    assert responder.forms == []
    (prompt,) = responder.prompts
    assert prompt.custom_id == METHOD_SELECT_ID
    assert [o.value for o in prompt.options] == ["paypal", "revolut"]


async def test_other_commands_are_ignored(router):
    responder = FakeResponder()
    await router.handle(command(name="ping"), responder)
    assert (responder.prompts, responder.forms, responder.replies) == ([], [], [])


async def test_no_order_before_form_submission():
    router = make_router(
        methods=[PaymentMethod.PAYPAL, PaymentMethod.LINK],
        destinations={PaymentMethod.PAYPAL: "shop@example.com", PaymentMethod.LINK: "https://pay.example/x"},
    )
    responder = FakeResponder()
    await router.handle(command(), responder)
    await router.handle(SelectionMade(owner_id="U1", correlation_id=METHOD_SELECT_ID, chosen_value="link"), responder)

    assert [f.custom_id for f in responder.forms] == ["payment_modal:link"]
    assert router.store.get("U1") is None


async def test_selection_with_foreign_tag_is_ignored(router):
    responder = FakeResponder()
    await router.handle(SelectionMade(owner_id="U1", correlation_id="colour_picker", chosen_value="paypal"), responder)
    assert responder.forms == [] and responder.replies == []


async def test_selection_of_disabled_method_replies_generic_failure(router):
    responder = FakeResponder()
    await router.handle(SelectionMade(owner_id="U1", correlation_id=METHOD_SELECT_ID, chosen_value="revolut"), responder)

    assert responder.forms == []
    assert [r.content for r in responder.replies] == [GENERIC_FAILURE]


# --- FORM SUBMISSION ---

async def test_form_submission_opens_order_and_sends_instructions(router):
    responder = FakeResponder()
    await router.handle(submit(), responder)

    order = router.store.get("U1")
    assert order.state is OrderState.OPEN
    assert (order.product, order.price, order.method) == ("VIP 1 month", "9.99 EUR", PaymentMethod.PAYPAL)

    (reply,) = responder.replies
    assert reply.ephemeral
    assert "shop@example.com" in reply.embed.description
    assert f"{order.order_id} | VIP 1 month | 9.99 EUR" in reply.embed.description
    assert {f.name: f.value for f in reply.embed.fields}["Order ID"] == order.order_id


async def test_payment_link_instructions_include_the_link():
    router = make_router(methods=[PaymentMethod.LINK], destinations={PaymentMethod.LINK: "https://pay.example/shop"})
    responder = FakeResponder()
    await router.handle(submit(method=PaymentMethod.LINK), responder)

    assert "https://pay.example/shop" in responder.replies[0].embed.description


async def test_latest_submission_replaces_previous_order(router):
    await router.handle(submit(product="First"), FakeResponder())
    first = router.store.get("U1")
    await router.handle(submit(product="Second"), FakeResponder())

    latest = router.store.get("U1")
    assert latest.product == "Second"
    assert latest is not first
    assert len(router.store) == 1


async def test_reject_policy_refuses_second_submission():
    router = make_router(policy=ConflictPolicy.REJECT)
    await router.handle(submit(product="First"), FakeResponder())
    responder = FakeResponder()
    await router.handle(submit(product="Second"), responder)

    assert router.store.get("U1").product == "First"
    assert "pending order" in responder.replies[0].content


async def test_missing_destination_is_reported_and_creates_no_order():
    router = make_router(
        methods=[PaymentMethod.PAYPAL, PaymentMethod.REVOLUT],
        destinations={PaymentMethod.PAYPAL: "shop@example.com"},
    )
    responder = FakeResponder()
    await router.handle(SelectionMade(owner_id="U1", correlation_id=METHOD_SELECT_ID, chosen_value="revolut"), responder)
    await router.handle(submit(method=PaymentMethod.REVOLUT), responder)

    assert router.store.get("U1") is None
    (reply,) = responder.replies
    assert reply.ephemeral
    assert "not configured" in reply.content


@pytest.mark.parametrize("product,price", [("", "9.99 EUR"), ("VIP", "   ")])
async def test_blank_fields_create_no_order(router, product, price):
    responder = FakeResponder()
    await router.handle(submit(product=product, price=price), responder)

    assert router.store.get("U1") is None
    assert [r.content for r in responder.replies] == [GENERIC_FAILURE]


async def test_form_with_foreign_tag_is_ignored(router):
    responder = FakeResponder()
    event = FormSubmitted(owner_id="U1", correlation_id="feedback_modal", fields=FormFields(product_name="x", product_price="y"))
    await router.handle(event, responder)
    assert router.store.get("U1") is None and responder.replies == []


# --- SCREENSHOTS ---

async def test_screenshot_notifies_staff_and_clears_order(router, channel):
    await router.handle(submit(), FakeResponder())
    order_id = router.store.get("U1").order_id

    responder = FakeResponder(channel=channel)
    await router.handle(screenshot(), responder)

    assert router.store.get("U1") is None
    assert responder.fetched == [STAFF_CHANNEL_ID]
    (notification,) = channel.sent
    assert notification.order_id == order_id
    fields = {f.name: f.value for f in notification.embed.fields}
    assert fields["Screenshot URL"] == "https://cdn.example/pay.png"
    assert fields["User"] == "buyer#0001 (U1)"
    assert [r.content for r in responder.replies] == [ACK]


async def test_message_without_pending_order_is_inert(router, channel):
    responder = FakeResponder(channel=channel)
    await router.handle(screenshot(), responder)

    assert channel.sent == [] and responder.replies == [] and responder.fetched == []
    assert len(router.store) == 0


async def test_chat_without_image_keeps_order_pending(router, channel):
    await router.handle(submit(), FakeResponder())
    responder = FakeResponder(channel=channel)
    await router.handle(screenshot(names=("notes.txt",)), responder)
    await router.handle(screenshot(names=()), responder)

    assert router.store.get("U1") is not None
    assert channel.sent == [] and responder.replies == []


@pytest.mark.parametrize("guild,bot", [(False, False), (True, True)])
async def test_dm_and_bot_messages_are_ignored(router, channel, guild, bot):
    await router.handle(submit(), FakeResponder())
    await router.handle(screenshot(guild=guild, bot=bot), FakeResponder(channel=channel))

    assert router.store.get("U1") is not None
    assert channel.sent == []


async def test_missing_staff_channel_keeps_order_for_retry(router, channel):
    await router.handle(submit(), FakeResponder())

    first = FakeResponder(channel=None)
    await router.handle(screenshot(), first)
    assert router.store.get("U1") is not None
    assert first.replies == []

    await router.handle(screenshot(), FakeResponder(channel=channel))
    assert router.store.get("U1") is None
    assert len(channel.sent) == 1


async def test_failed_staff_send_keeps_order(router):
    await router.handle(submit(), FakeResponder())
    responder = FakeResponder(channel=FakeChannel(fail=True))
    await router.handle(screenshot(), responder)

    assert router.store.get("U1") is not None
    assert responder.replies == []


async def test_failed_acknowledgement_still_clears_order(router, channel):
    await router.handle(submit(), FakeResponder())
    await router.handle(screenshot(), FakeResponder(channel=channel, fail_replies=True))

    assert router.store.get("U1") is None
    assert len(channel.sent) == 1


# --- ERROR BOUNDARY ---

async def test_unexpected_errors_become_generic_reply(router, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(router.service, "order_form", boom)
    responder = FakeResponder()
    await router.handle(command(), responder)

    assert [r.content for r in responder.replies] == [GENERIC_FAILURE]


async def test_failing_failure_reply_does_not_escape(router, monkeypatch):
    monkeypatch.setattr(router.service, "order_form", lambda method: 1 / 0)
    await router.handle(command(), FakeResponder(fail_replies=True))


# --- END TO END ---

async def test_payment_flow_end_to_end(router, channel):
    await router.handle(parse_event({"kind": "command", "owner_id": "U1", "command_name": "payment"}), FakeResponder())
    await router.handle(
        parse_event({
            "kind": "form",
            "owner_id": "U1",
            "correlation_id": "payment_modal:paypal",
            "fields": {"product_name": "VIP 1 month", "product_price": "9.99 EUR"},
        }),
        FakeResponder(),
    )
    order = router.store.get("U1")
    assert (order.owner_id, order.product, order.price, order.state) == ("U1", "VIP 1 month", "9.99 EUR", OrderState.OPEN)

    await router.handle(
        parse_event({
            "kind": "message",
            "owner_id": "U1",
            "has_guild_context": True,
            "is_bot_author": False,
            "attachments": [{"name": "pay.png", "url": "https://cdn.example/pay.png"}],
        }),
        FakeResponder(channel=channel),
    )

    (notification,) = channel.sent
    values = [f.value for f in notification.embed.fields]
    assert order.order_id in values
    assert "VIP 1 month" in values and "9.99 EUR" in values
    assert router.store.get("U1") is None
