"""
discord.py implementations of the Responder / OperatorChannel protocols used by
the payment router. Everything here is translation: payment schemas in,
Discord API calls out.
"""
import discord
import structlog

from services.payment_service.schemas import Embed, MethodPrompt, OrderForm, Reply, StaffNotification

logger = structlog.get_logger(__name__)


def to_discord_embed(embed: Embed | None) -> discord.Embed | None:
    if embed is None:
        return None
    result = discord.Embed(title=embed.title, description=embed.description, timestamp=embed.timestamp)
    for field in embed.fields:
        result.add_field(name=field.name, value=field.value, inline=field.inline)
    return result


def build_select_view(prompt: MethodPrompt) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Select(
            custom_id=prompt.custom_id,
            placeholder=prompt.placeholder,
            options=[
                discord.SelectOption(label=o.label, value=o.value, description=o.description)
                for o in prompt.options
            ],
        )
    )
    return view


def build_modal(form: OrderForm) -> discord.ui.Modal:
    modal = discord.ui.Modal(title=form.title, custom_id=form.custom_id)
    for field in form.fields:
        modal.add_item(
            discord.ui.TextInput(
                custom_id=field.custom_id,
                label=field.label,
                placeholder=field.placeholder,
                required=field.required,
                style=discord.TextStyle.short,
            )
        )
    return modal


class DiscordChannel:
    def __init__(self, channel: discord.abc.Messageable):
        self.channel = channel

    async def send(self, notification: StaffNotification) -> None:
        await self.channel.send(content=notification.content, embed=to_discord_embed(notification.embed))


async def resolve_channel(guild: discord.Guild | None, channel_id: int) -> DiscordChannel | None:
    if guild is None:
        return None
    channel = guild.get_channel(channel_id)
    if channel is None:
        try:
            channel = await guild.fetch_channel(channel_id)
        except discord.HTTPException as e:
            logger.warning("channel_fetch_failed", channel_id=channel_id, error=str(e))
            return None
    return DiscordChannel(channel)


class InteractionResponder:
    """Replies to a slash command, select menu or modal submission."""

    def __init__(self, interaction: discord.Interaction):
        self.interaction = interaction

    async def prompt_method(self, prompt: MethodPrompt) -> None:
        await self.interaction.response.send_message(
            content=prompt.content, view=build_select_view(prompt), ephemeral=True
        )

    async def open_form(self, form: OrderForm) -> None:
        await self.interaction.response.send_modal(build_modal(form))

    async def reply(self, reply: Reply) -> None:
        embed = to_discord_embed(reply.embed)
        if self.interaction.response.is_done():
            await self.interaction.followup.send(content=reply.content, embed=embed, ephemeral=reply.ephemeral)
        else:
            await self.interaction.response.send_message(content=reply.content, embed=embed, ephemeral=reply.ephemeral)

    async def fetch_channel(self, channel_id: int) -> DiscordChannel | None:
        return await resolve_channel(self.interaction.guild, channel_id)


class MessageResponder:
    """Replies to an ordinary message posted in a server channel."""

    def __init__(self, message: discord.Message):
        self.message = message

    async def prompt_method(self, prompt: MethodPrompt) -> None:
        raise NotImplementedError("Messages cannot open a select menu")

    async def open_form(self, form: OrderForm) -> None:
        raise NotImplementedError("Messages cannot open a modal")

    async def reply(self, reply: Reply) -> None:
        await self.message.reply(content=reply.content, embed=to_discord_embed(reply.embed))

    async def fetch_channel(self, channel_id: int) -> DiscordChannel | None:
        return await resolve_channel(self.message.guild, channel_id)
