"""API-Router mit Status- und Info-Endpunkten unter /api."""
import time

from fastapi import APIRouter, Request

from courtside.core.models import SERVICE_INFO, ServiceInfo, StatusResponse, utc_timestamp
from courtside.routers.health import READ_METHODS

router = APIRouter(prefix="/api", tags=["API"])


@router.api_route("/status/", methods=READ_METHODS, include_in_schema=False)
@router.api_route("/status", methods=READ_METHODS, response_model=StatusResponse)
async def status(request: Request) -> StatusResponse:
    """Status inkl. Laufzeit seit Aufbau der App."""
    uptime = time.monotonic() - request.app.state.started_at
    return StatusResponse(status="healthy", timestamp=utc_timestamp(), uptime=uptime)


@router.api_route("/info/", methods=READ_METHODS, include_in_schema=False)
@router.api_route("/info", methods=READ_METHODS, response_model=ServiceInfo)
async def info() -> ServiceInfo:
    return SERVICE_INFO
