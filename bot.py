"""Task Master assistant - reminder notification service.

Runs the reminder poller for one session and delivers due reminders through
the configured transport (Telegram, Discord or the log). The agent layer
calls the tools in domains.taskmaster.tools against the same state store.
"""

import asyncio
import signal
import sys

import discord
from discord.ext import commands
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from logger import logger
from config import (
    DISCORD_CHANNEL_ID,
    DISCORD_TOKEN,
    NOTIFY_TRANSPORT,
    REMINDER_POLLING_MS,
    SESSION_KEY,
    STATE_DB_PATH,
    TELEGRAM_BOT_TOKEN,
    TELEGRAM_CHANNEL_ID,
)
from domains.taskmaster import (
    DiscordTransport,
    LogTransport,
    SqliteStateStore,
    TelegramTransport,
    ToolName,
    build_tools,
    dispatch_tool,
)
from domains.taskmaster.reminders import ReminderPoller


def build_store() -> SqliteStateStore:
    store = SqliteStateStore(STATE_DB_PATH)
    store.create_session(SESSION_KEY)
    return store


async def run_standalone(transport) -> None:
    """Run the poller until SIGINT/SIGTERM."""
    store = build_store()
    scheduler = AsyncIOScheduler()
    poller = ReminderPoller(store, SESSION_KEY, transport, REMINDER_POLLING_MS, scheduler=scheduler)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows: fall back to KeyboardInterrupt
            pass

    scheduler.start()
    poller.start()
    logger.info(f"Task Master running (transport: {transport.name}, session: {SESSION_KEY})")

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down gracefully...")
        poller.stop()
        scheduler.shutdown(wait=False)
        store.close()


def run_discord() -> None:
    """Run inside a Discord client; notifications go to DISCORD_CHANNEL_ID."""
    intents = discord.Intents.default()
    bot = commands.Bot(command_prefix="/", intents=intents)
    scheduler = AsyncIOScheduler()
    store = build_store()
    tools = build_tools(store, SESSION_KEY)
    poller = ReminderPoller(
        store, SESSION_KEY, DiscordTransport(bot, DISCORD_CHANNEL_ID), REMINDER_POLLING_MS, scheduler=scheduler
    )

    @bot.event
    async def on_ready():
        """Called when bot is connected and ready."""
        logger.info(f"Logged in as {bot.user}")

        try:
            synced = await bot.tree.sync()
            logger.info(f"Synced {len(synced)} slash commands")
        except Exception as e:
            logger.error(f"Failed to sync slash commands: {e}")

        # on_ready fires again after reconnects
        if not scheduler.running:
            scheduler.start()
        poller.start()

    @bot.tree.command(name="reminders", description="List your reminders")
    async def cmd_reminders(interaction: discord.Interaction):
        result = dispatch_tool(tools, ToolName.VIEW_REMINDERS.value)
        lines = [f"**{result['message']}**"]
        for i, r in enumerate(result.get("reminders", []), start=1):
            when = r["scheduled_time"] or "no time"
            lines.append(f"{i}. {r['text']} ({when})")
        await interaction.response.send_message("\n".join(lines))

    @bot.event
    async def on_error(event, *args, **kwargs):
        """Handle errors."""
        logger.error(f"Bot error in {event}: {args}")

    try:
        bot.run(DISCORD_TOKEN)
    finally:
        poller.stop()
        if scheduler.running:
            scheduler.shutdown(wait=False)
        store.close()


def main():
    """Entry point."""
    logger.info(f"Starting Task Master (transport: {NOTIFY_TRANSPORT})...")

    if NOTIFY_TRANSPORT == "discord":
        if not DISCORD_TOKEN or not DISCORD_CHANNEL_ID:
            logger.error("DISCORD_TOKEN and DISCORD_CHANNEL_ID are required for the discord transport")
            sys.exit(1)
        run_discord()
        return

    if NOTIFY_TRANSPORT == "telegram":
        if not TELEGRAM_BOT_TOKEN or not TELEGRAM_CHANNEL_ID:
            logger.error("TELEGRAM_BOT_TOKEN and TELEGRAM_CHANNEL_ID are required for the telegram transport")
            sys.exit(1)
        transport = TelegramTransport(TELEGRAM_BOT_TOKEN, TELEGRAM_CHANNEL_ID)
    elif NOTIFY_TRANSPORT == "log":
        logger.warning("No notification transport configured, reminders will only be logged")
        transport = LogTransport()
    else:
        logger.error(f"Unknown NOTIFY_TRANSPORT: {NOTIFY_TRANSPORT}")
        sys.exit(1)

    try:
        asyncio.run(run_standalone(transport))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
