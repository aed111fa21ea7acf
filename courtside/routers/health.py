"""Health-Router: Lebenszeichen des Gateways ohne Fehlerpfad."""
from fastapi import APIRouter

from courtside.core.models import HealthResponse, utc_timestamp

router = APIRouter(tags=["Health"])

# GET-Routen beantworten auch HEAD und den Pfad mit abschließendem Slash.
READ_METHODS = ["GET", "HEAD"]


@router.api_route("/health/", methods=READ_METHODS, include_in_schema=False)
@router.api_route("/health", methods=READ_METHODS, response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=utc_timestamp())
