"""Zustellstrategien für Telegram-Updates: Long-Polling oder Webhook.

Welche Strategie läuft, entscheidet allein die Konfiguration
(``BOT_DELIVERY``), nicht der Code im Responder.
"""
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, Response
from telegram import Update
from telegram.ext import Application

from courtside.core.config import Settings

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"
ALLOWED_UPDATES = ["message"]


class DeliveryStrategy(ABC):
    """Bringt Updates von Telegram in die Application."""

    name: str = ""
    needs_updater: bool = False

    @abstractmethod
    async def start(self, application: Application) -> None:
        ...

    @abstractmethod
    async def stop(self, application: Application) -> None:
        ...

    def router(self, application: Application) -> Optional[APIRouter]:
        """Optionale Route, die das Gateway zusätzlich einhängt."""
        return None


class PollingDelivery(DeliveryStrategy):
    """Long-Polling über den Updater von python-telegram-bot."""

    name = "polling"
    needs_updater = True

    def __init__(self, drop_pending_updates: bool = True):
        self.drop_pending_updates = drop_pending_updates

    async def start(self, application: Application) -> None:
        await application.updater.start_polling(
            drop_pending_updates=self.drop_pending_updates,
            allowed_updates=ALLOWED_UPDATES,
        )
        logger.info("Telegram bot polling started")

    async def stop(self, application: Application) -> None:
        if application.updater and application.updater.running:
            await application.updater.stop()
            logger.info("Telegram bot polling stopped")


class WebhookDelivery(DeliveryStrategy):
    """Telegram schickt Updates per POST an eine Route des Gateways."""

    name = "webhook"

    def __init__(self, url: str, path: str = "/telegram/webhook", secret: str = ""):
        self.url = url
        self.path = path
        self.secret = secret

    async def start(self, application: Application) -> None:
        await application.bot.set_webhook(
            url=self.url,
            secret_token=self.secret or None,
            allowed_updates=ALLOWED_UPDATES,
        )
        logger.info(f"Telegram webhook registered at {self.url}")

    async def stop(self, application: Application) -> None:
        # Webhook bleibt registriert, Telegram puffert Updates bis zum nächsten Start.
        logger.info("Telegram webhook receiver stopped")

    def _secret_matches(self, request: Request) -> bool:
        if not self.secret:
            return True
        received = request.headers.get(SECRET_HEADER, "")
        return secrets.compare_digest(received.encode(), self.secret.encode())

    def router(self, application: Application) -> APIRouter:
        router = APIRouter(tags=["Telegram"])

        @router.post(self.path, include_in_schema=False)
        async def telegram_webhook(request: Request) -> Response:
            """Endpunkt für Updates vom Telegram Bot API Server."""
            if not self._secret_matches(request):
                logger.warning(f"Rejected webhook call from {request.client.host if request.client else 'unknown'}")
                raise HTTPException(status_code=403, detail="Forbidden")

            if "application/json" not in request.headers.get("content-type", ""):
                return Response(status_code=415)

            data = getattr(request.state, "body", None)
            if data is None:
                data = await request.json()

            update = Update.de_json(data, application.bot)
            await application.update_queue.put(update)
            return Response(status_code=200)

        return router


def build_delivery(settings: Settings) -> DeliveryStrategy:
    if settings.delivery_mode == "webhook":
        if not settings.telegram_webhook_url:
            raise ValueError("TELEGRAM_WEBHOOK_URL must be set for webhook delivery")
        return WebhookDelivery(
            url=settings.telegram_webhook_url,
            path=settings.telegram_webhook_path,
            secret=settings.telegram_webhook_secret,
        )
    return PollingDelivery()
