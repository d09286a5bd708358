import asyncio
import sys
from datetime import timedelta

import structlog
import uvicorn

from shared.config.settings import load_settings
from shared.observability import configure_logging, setup_observability

from services.payment_service.exceptions import ConfigurationError
from services.payment_service.main import payment_app
from services.payment_service.notifications import NotificationDispatcher
from services.payment_service.repository import OrderStore
from services.payment_service.router import InteractionRouter
from services.payment_service.service import PaymentService
from services.payment_service.sweeper import sweep_forever
from services.discord_gateway.client import PaymentBot

logger = structlog.get_logger(__name__)

# Exposed so `uvicorn main:app` can serve the liveness endpoints on their own
app = payment_app


def build_router(settings) -> InteractionRouter:
    # One store for the whole process, handed to the router by reference
    store = OrderStore(policy=settings.conflict_policy)
    service = PaymentService(store, settings.methods, settings.destinations)
    dispatcher = NotificationDispatcher(settings.ack_message)
    return InteractionRouter(service, dispatcher, settings.staff_channel_id)


async def run(settings):
    setup_observability(payment_app, "payment_bot")

    router = build_router(settings)
    bot = PaymentBot(router, guild_id=settings.guild_id)
    server = uvicorn.Server(uvicorn.Config(payment_app, host="0.0.0.0", port=settings.port, log_config=None))

    tasks = [server.serve(), bot.start(settings.discord_token)]
    if settings.order_ttl_seconds:
        tasks.append(
            sweep_forever(router.store, timedelta(seconds=settings.order_ttl_seconds), settings.sweep_interval_seconds)
        )

    logger.info(
        "bot_starting",
        methods=[m.value for m in settings.methods],
        staff_channel_id=settings.staff_channel_id,
        port=settings.port,
    )
    try:
        await asyncio.gather(*tasks)
    finally:
        await bot.close()


def main():
    configure_logging()
    try:
        settings = load_settings()
        if not settings.discord_token:
            raise ConfigurationError("DISCORD_TOKEN missing in env")
    except ConfigurationError as e:
        logger.error("startup_failed", error=str(e))
        sys.exit(1)

    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
