"""Global configuration for the Task Master assistant."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Telegram
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_CHANNEL_ID = os.getenv("TELEGRAM_CHANNEL_ID")

# Discord
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
DISCORD_CHANNEL_ID = int(os.getenv("DISCORD_CHANNEL_ID", 0))

# Where reminder notifications go: telegram, discord or log
NOTIFY_TRANSPORT = os.getenv("NOTIFY_TRANSPORT", "log").lower()

# Reminder polling interval (ms)
REMINDER_POLLING_MS = int(os.getenv("REMINDER_POLLING_MS", 30_000))

# Timezone used to resolve "3pm", "tomorrow" etc.
ASSISTANT_TIMEZONE = os.getenv("ASSISTANT_TIMEZONE", "UTC")

# Session whose state the poller watches
SESSION_KEY = os.getenv("SESSION_KEY", "default")

# State store
DATA_DIR = Path(os.getenv("LOCALAPPDATA", ".")) / "taskmaster"
STATE_DB_PATH = os.getenv("STATE_DB_PATH", str(DATA_DIR / "state.db"))

# Logging (DEBUG, INFO, WARNING, ERROR)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = Path(os.getenv("LOG_DIR", str(DATA_DIR / "logs")))
LOG_DIR.mkdir(parents=True, exist_ok=True)
