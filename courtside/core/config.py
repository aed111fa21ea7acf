"""Konfigurationsmodul für das Courtside Booking Gateway: lädt Port, Umgebung,
Bot-Token und Rate-Limit-Werte via Pydantic-Settings (inkl. .env-Datei)."""
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DeliveryMode = Literal["polling", "webhook"]


class Settings(BaseSettings):
    """Hält alle konfigurierbaren Werte, die Gateway und Bot zur Laufzeit
    benötigen (Port, Umgebung, Telegram-Zugang, Rate-Limit)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    host: str = "0.0.0.0"
    port: int = 3000
    app_env: str = Field("development", alias="APP_ENV")

    telegram_bot_token: str = Field("", alias="TELEGRAM_BOT_TOKEN")  # Von BotFather.
    # Leer lassen: polling außerhalb von Production, sonst webhook.
    bot_delivery: Optional[DeliveryMode] = Field(None, alias="BOT_DELIVERY")
    telegram_webhook_url: str = Field("", alias="TELEGRAM_WEBHOOK_URL")
    telegram_webhook_path: str = Field("/telegram/webhook", alias="TELEGRAM_WEBHOOK_PATH")
    telegram_webhook_secret: str = Field("", alias="TELEGRAM_WEBHOOK_SECRET")

    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60

    log_level: str = "INFO"
    log_file: str = ""

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def delivery_mode(self) -> DeliveryMode:
        """Explizit gesetzter Modus, sonst aus der Umgebung abgeleitet."""
        if self.bot_delivery:
            return self.bot_delivery
        return "webhook" if self.is_production else "polling"
