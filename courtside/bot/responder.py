"""Chat Command Responder: baut die Telegram-Application und steuert ihren
Lebenszyklus zusammen mit der gewählten Zustellstrategie."""
import logging
from typing import Optional

from fastapi import APIRouter
from telegram.error import TelegramError
from telegram.ext import Application, ApplicationBuilder, MessageHandler, filters

from courtside.bot.commands import (
    BOT_COMMANDS,
    HELP_PATTERN,
    START_PATTERN,
    help_command,
    log_error,
    start_command,
)
from courtside.bot.delivery import DeliveryStrategy, build_delivery
from courtside.core.config import Settings

logger = logging.getLogger(__name__)


def build_application(
    token: str, builder: Optional[ApplicationBuilder] = None, with_updater: bool = True
) -> Application:
    """Registriert die Befehls-Handler. Ohne Updater nur für Webhook-Betrieb."""
    builder = (builder or Application.builder()).token(token)
    if not with_updater:
        builder = builder.updater(None)
    application = builder.build()

    # Eigene Gruppen: enthält eine Nachricht beide Befehle, antworten beide.
    application.add_handler(MessageHandler(filters.Regex(START_PATTERN), start_command), group=0)
    application.add_handler(MessageHandler(filters.Regex(HELP_PATTERN), help_command), group=1)
    application.add_error_handler(log_error)
    return application


class ChatCommandResponder:
    """Verbindet Application und Zustellstrategie; wird von außen gestartet
    und gestoppt (Lifespan des Gateways)."""

    def __init__(self, application: Application, delivery: DeliveryStrategy):
        self.application = application
        self.delivery = delivery

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChatCommandResponder":
        delivery = build_delivery(settings)
        application = build_application(settings.telegram_bot_token, with_updater=delivery.needs_updater)
        return cls(application, delivery)

    def router(self) -> Optional[APIRouter]:
        return self.delivery.router(self.application)

    async def start(self) -> None:
        await self.application.initialize()
        try:
            await self.application.bot.set_my_commands(BOT_COMMANDS)
        except TelegramError as e:
            logger.warning(f"Could not register bot commands menu: {e}")
        await self.application.start()
        await self.delivery.start(self.application)
        logger.info(f"Telegram bot started ({self.delivery.name})")

    async def stop(self) -> None:
        await self.delivery.stop(self.application)
        if self.application.running:
            await self.application.stop()
        await self.application.shutdown()
        logger.info("Telegram bot stopped")
