"""
bot/commands.py
---------------
Handles /start and /help. Both replies are static; the remaining commands
listed in the help text are not wired to any handler yet.

A command is recognised anywhere in the message text ("hi /start" counts),
and a message mentioning both commands gets both replies.
"""
import logging

from telegram import BotCommand, Update
from telegram.ext import ContextTypes

logger = logging.getLogger(__name__)

WELCOME_TEXT = "Welcome to Courtside Booking! 🎾\n\nUse /help to see available commands."

HELP_TEXT = """
Available commands:
/start - Start the bot
/help - Show this help message
/booking - Make a booking
/mybookings - View your bookings
/cancel - Cancel a booking
"""

START_PATTERN = r"/start"
HELP_PATTERN = r"/help"

# Menu shown by Telegram; only commands that actually answer.
BOT_COMMANDS = [
    BotCommand("start", "Start the bot"),
    BotCommand("help", "Show this help message"),
]


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start - send the welcome message."""
    chat_id = update.effective_chat.id
    logger.info(f"/start from chat {chat_id}")
    await context.bot.send_message(chat_id=chat_id, text=WELCOME_TEXT)


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help - list the commands."""
    await context.bot.send_message(chat_id=update.effective_chat.id, text=HELP_TEXT)


async def log_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Failed sends are only logged; the sender gets no feedback."""
    logger.error(f"Error while handling update {update}: {context.error}", exc_info=context.error)
