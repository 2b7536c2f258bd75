"""Message transports for reminder notifications.

Fire-and-forget: send() reports whether the message was accepted, with no
read receipts.
"""

from abc import ABC, abstractmethod

import discord
import httpx

from logger import logger
from . import config


class TransportError(RuntimeError):
    """A notification could not be handed to the transport."""


class Transport(ABC):
    """Delivers a rendered message to the user."""

    name = "transport"

    @abstractmethod
    async def send(self, message: str) -> bool:
        """Send a message. Returns True if accepted."""


class LogTransport(Transport):
    """Writes notifications to the log (no transport configured)."""

    name = "log"

    async def send(self, message: str) -> bool:
        logger.info(f"Notification: {message}")
        return True


class TelegramTransport(Transport):
    """Telegram Bot API sendMessage to a single chat/channel."""

    name = "telegram"

    def __init__(self, bot_token: str, chat_id: str, timeout: float = config.TELEGRAM_TIMEOUT):
        if not bot_token or not chat_id:
            raise ValueError("Telegram transport needs a bot token and a chat id")
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout

    async def send(self, message: str) -> bool:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{config.TELEGRAM_API_URL}/bot{self.bot_token}/sendMessage",
                    json={"chat_id": self.chat_id, "text": message},
                    timeout=self.timeout,
                )
                response.raise_for_status()
                return bool(response.json().get("ok", False))
        except httpx.HTTPError as e:
            raise TransportError(f"Telegram send failed: {e}") from e


class DiscordTransport(Transport):
    """Posts notifications to a Discord channel through a running client."""

    name = "discord"

    def __init__(self, client: discord.Client, channel_id: int):
        self.client = client
        self.channel_id = channel_id

    async def send(self, message: str) -> bool:
        try:
            channel = self.client.get_channel(self.channel_id)
            if not channel:
                channel = await self.client.fetch_channel(self.channel_id)

            limit = config.DISCORD_MESSAGE_LIMIT
            for i in range(0, len(message), limit):
                await channel.send(message[i:i + limit])
            return True
        except discord.DiscordException as e:
            raise TransportError(f"Discord send failed: {e}") from e
