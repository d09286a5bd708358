import discord
import structlog
from discord import app_commands

from services.payment_service.router import InteractionRouter
from services.payment_service.schemas import (
    PAYMENT_COMMAND,
    Attachment,
    CommandInvoked,
    FormFields,
    FormSubmitted,
    MessagePosted,
    SelectionMade,
)

from .responders import InteractionResponder, MessageResponder

logger = structlog.get_logger(__name__)

STRING_SELECT = discord.ComponentType.string_select.value


def modal_values(data: dict) -> dict[str, str]:
    """Flattens the action rows of a modal submission into {custom_id: value}."""
    values = {}
    for row in data.get("components", []):
        for component in row.get("components", []):
            values[component["custom_id"]] = component.get("value", "")
    return values


class PaymentBot(discord.Client):
    def __init__(self, router: InteractionRouter, guild_id: int | None = None):
        intents = discord.Intents.default()
        intents.guild_messages = True
        # Attachments on ordinary guild messages are only delivered with this intent
        intents.message_content = True
        super().__init__(intents=intents)

        self.router = router
        self.guild_id = guild_id
        self.tree = app_commands.CommandTree(self)

        @self.tree.command(name=PAYMENT_COMMAND, description="Start a payment flow")
        async def payment(interaction: discord.Interaction):
            event = CommandInvoked(owner_id=str(interaction.user.id), command_name=PAYMENT_COMMAND)
            await self.router.handle(event, InteractionResponder(interaction))

    async def setup_hook(self):
        # Registers /payment; a guild sync shows up immediately, a global one can take an hour
        if self.guild_id:
            guild = discord.Object(id=self.guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
        else:
            synced = await self.tree.sync()
        logger.info("commands_synced", count=len(synced), guild_id=self.guild_id)

    async def on_ready(self):
        logger.info("gateway_ready", user=str(self.user))

    async def on_error(self, event_method: str, *args, **kwargs):
        logger.exception("gateway_error", event_method=event_method)

    async def on_interaction(self, interaction: discord.Interaction):
        # Slash commands are dispatched by the command tree; this covers the select menu and modal
        data = interaction.data or {}
        owner_id = str(interaction.user.id)

        if interaction.type is discord.InteractionType.component:
            if data.get("component_type") != STRING_SELECT:
                return
            values = data.get("values") or [""]
            event = SelectionMade(owner_id=owner_id, correlation_id=data.get("custom_id", ""), chosen_value=values[0])
        elif interaction.type is discord.InteractionType.modal_submit:
            event = FormSubmitted(
                owner_id=owner_id,
                correlation_id=data.get("custom_id", ""),
                fields=FormFields(**modal_values(data)),
            )
        else:
            return

        await self.router.handle(event, InteractionResponder(interaction))

    async def on_message(self, message: discord.Message):
        event = MessagePosted(
            owner_id=str(message.author.id),
            author_tag=str(message.author),
            has_guild_context=message.guild is not None,
            is_bot_author=message.author.bot,
            attachments=[Attachment(name=a.filename, url=a.url) for a in message.attachments],
        )
        await self.router.handle(event, MessageResponder(message))
