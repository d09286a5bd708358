import random

import pytest

from services.payment_service.identifiers import IdentifierGenerator
from services.payment_service.models import PaymentMethod
from services.payment_service.notifications import NotificationDispatcher
from services.payment_service.repository import OrderStore
from services.payment_service.router import InteractionRouter
from services.payment_service.service import PaymentService

STAFF_CHANNEL_ID = 424242
ACK = "✅ Screenshot received. Our staff will verify your payment shortly."


class FakeChannel:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send(self, notification):
        if self.fail:
            raise ConnectionError("channel unavailable")
        self.sent.append(notification)


class FakeResponder:
    """Records everything the router sends back for one event."""

    def __init__(self, channel=None, fail_replies: bool = False):
        self.channel = channel
        self.fail_replies = fail_replies
        self.prompts = []
        self.forms = []
        self.replies = []
        self.fetched = []

    async def prompt_method(self, prompt):
        self.prompts.append(prompt)

    async def open_form(self, form):
        self.forms.append(form)

    async def reply(self, reply):
        if self.fail_replies:
            raise ConnectionError("reply failed")
        self.replies.append(reply)

    async def fetch_channel(self, channel_id):
        self.fetched.append(channel_id)
        return self.channel


def make_router(methods=None, destinations=None, policy=None, seed=7):
    store = OrderStore(policy=policy) if policy else OrderStore()
    service = PaymentService(
        store,
        methods or [PaymentMethod.PAYPAL],
        destinations if destinations is not None else {PaymentMethod.PAYPAL: "shop@example.com"},
        IdentifierGenerator(random.Random(seed)),
    )
    return InteractionRouter(service, NotificationDispatcher(ACK), STAFF_CHANNEL_ID)


@pytest.fixture
def store():
    return OrderStore()


@pytest.fixture
def router():
    return make_router()


@pytest.fixture
def channel():
    return FakeChannel()
