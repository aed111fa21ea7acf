"""FastAPI-Einstiegspunkt für das Courtside Booking Gateway."""
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from slowapi import Limiter
from starlette.exceptions import HTTPException as StarletteHTTPException
from telegram.error import TelegramError

from courtside.bot.responder import ChatCommandResponder
from courtside.core.config import Settings
from courtside.core.errors import http_exception_handler
from courtside.core.models import SERVICE_INFO
from courtside.core.pipeline import build_pipeline
from courtside.core.rate_limiter import ClientRateLimit, build_limiter, window_limit
from courtside.routers import api as api_router
from courtside.routers import health as health_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    responder: Optional[ChatCommandResponder] = None,
    limiter: Optional[Limiter] = None,
) -> FastAPI:
    """Baut das Gateway aus expliziten Abhängigkeiten.

    - ``responder`` ist optional; ohne ihn läuft nur die HTTP-Seite.
    - Scheitert der Bot-Start (Token, Netzwerk), läuft das Gateway trotzdem.
    - Der Bot wird erst gestoppt, nachdem der Server keine Verbindungen
      mehr annimmt und laufende abgeschlossen sind.
    """
    settings = settings or Settings()
    limiter = limiter or build_limiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)
    rate = ClientRateLimit(
        limiter, window_limit(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)
    )

    bot_router = responder.router() if responder else None
    # Telegram-Pushes zählen nicht gegen das Rate-Limit.
    exempt_paths = [route.path for route in bot_router.routes] if bot_router else []

    async def stop_bot() -> None:
        try:
            await responder.stop()
        except TelegramError as e:
            logger.error(f"Telegram bot did not stop cleanly: {e}")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        bot_running = False
        if responder:
            try:
                await responder.start()
                bot_running = True
            except TelegramError as e:
                logger.error(f"Telegram bot failed to start, serving HTTP only: {e}")
                await stop_bot()
        yield
        logger.info("HTTP server closed")
        if bot_running:
            await stop_bot()

    app = FastAPI(
        title=SERVICE_INFO.name,
        version=SERVICE_INFO.version,
        description=SERVICE_INFO.description,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
        lifespan=lifespan,
        middleware=[middleware for _, middleware in build_pipeline(rate, exempt_paths)],
        exception_handlers={StarletteHTTPException: http_exception_handler},
    )
    app.state.settings = settings
    app.state.limiter = limiter
    app.state.started_at = time.monotonic()

    app.include_router(health_router.router)
    app.include_router(api_router.router)
    if bot_router:
        app.include_router(bot_router)

    return app
