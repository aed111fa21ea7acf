"""API-Modelle des Courtside Gateways: Health-, Status-, Info- und
Fehler-Antworten."""
from datetime import datetime, timezone

from pydantic import BaseModel


def utc_timestamp() -> str:
    """ISO-8601 in UTC mit Millisekunden und 'Z'-Suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: str


class StatusResponse(BaseModel):
    """Ausführlicher Status inkl. Laufzeit des Prozesses in Sekunden."""

    status: str = "healthy"
    timestamp: str
    uptime: float


class ServiceInfo(BaseModel):
    """Statische Metadaten des Dienstes."""

    name: str
    version: str
    description: str


class ErrorResponse(BaseModel):
    error: str


SERVICE_INFO = ServiceInfo(
    name="Courtside Booking API",
    version="1.0.0",
    description="Telegram-based court booking system",
)
