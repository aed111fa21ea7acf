"""Fehlerbehandlung des Gateways: einheitliche JSON-Umschläge ohne interne Details."""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

NOT_FOUND = {"error": "Not found"}
INTERNAL_ERROR = {"error": "Internal server error"}


class BodyParsingError(Exception):
    """Request-Body ließ sich nicht lesen (ungültiges JSON, zu groß, falsches Encoding)."""


def internal_error_response() -> JSONResponse:
    return JSONResponse(status_code=500, content=INTERNAL_ERROR)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unbekannte Methode auf bekanntem Pfad gilt ebenfalls als "nicht gefunden".
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content=NOT_FOUND)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
