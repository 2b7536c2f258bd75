"""Task Master domain configuration - reminders and shopping list."""

# State store field names (one session holds both collections)
REMINDERS_FIELD = "reminders"
SHOPPING_FIELD = "shopping_list"

# Time expressions without an explicit time ("tomorrow", "next Friday") resolve to this hour
DEFAULT_HOUR = 9

# Default look-ahead for get_upcoming_reminders
DEFAULT_UPCOMING_HOURS = 24

# Display format for instants in messages and notifications
DISPLAY_FORMAT = "%a %d %b %Y %H:%M"

# Reminder / shopping item id prefixes
REMINDER_ID_PREFIX = "remind_"
SHOPPING_ID_PREFIX = "item_"

# Telegram Bot API
TELEGRAM_API_URL = "https://api.telegram.org"
TELEGRAM_TIMEOUT = 10

# Discord message length limit
DISCORD_MESSAGE_LIMIT = 2000
