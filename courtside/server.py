"""
server.py
---------
Entry point: loads settings, wires gateway and Telegram bot, runs uvicorn.

Shutdown on SIGTERM/SIGINT: uvicorn stops accepting connections and waits for
in-flight requests, then the app lifespan stops the bot.
"""
import logging
import signal

import uvicorn

from courtside.bot.responder import ChatCommandResponder
from courtside.core.config import Settings
from courtside.core.logging_setup import setup_logging
from courtside.main import create_app

logger = logging.getLogger(__name__)


class GatewayServer(uvicorn.Server):
    """uvicorn server that logs the bind and the received shutdown signal."""

    def __init__(self, config: uvicorn.Config, app_env: str = "development"):
        super().__init__(config)
        self.app_env = app_env

    @property
    def bound_port(self) -> int:
        """Port actually bound, also when configured with port 0."""
        for server in getattr(self, "servers", []):
            for sock in server.sockets:
                return sock.getsockname()[1]
        return self.config.port

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            logger.info(f"Server is running on port {self.bound_port}")
            logger.info(f"Environment: {self.app_env}")

    def handle_exit(self, sig: int, frame) -> None:
        if not self.should_exit:
            logger.info(f"{signal.Signals(sig).name} signal received: closing HTTP server")
        super().handle_exit(sig, frame)


def main() -> None:
    settings = Settings()
    setup_logging(settings.log_level, settings.log_file)

    responder = None
    if settings.telegram_bot_token:
        responder = ChatCommandResponder.from_settings(settings)
    else:
        logger.warning("TELEGRAM_BOT_TOKEN is not set, running without Telegram bot")

    app = create_app(settings, responder)
    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_config=None)
    GatewayServer(config, app_env=settings.app_env).run()


if __name__ == "__main__":
    main()
