"""Geordnete Request-Pipeline des Gateways.

Jede Stufe ist entweder eine schlichte async-Funktion ``(request, call_next)``
oder eine benannte Starlette-Middleware. ``build_pipeline`` liefert die Liste
in Ausführungsreihenfolge (erste Stufe = äußerste), damit Reihenfolge und
Seiteneffekte an genau einer Stelle nachvollziehbar sind.
"""
import json
import logging
import math
import time
from typing import Iterable, List, Tuple
from urllib.parse import parse_qs

from fastapi import Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import PlainTextResponse
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from courtside.core.errors import BodyParsingError, internal_error_response
from courtside.core.rate_limiter import THROTTLE_MESSAGE, ClientRateLimit

logger = logging.getLogger(__name__)

# Defaults wie bei helmet; ein vom Handler gesetzter Header gewinnt.
SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

GZIP_MINIMUM_SIZE = 1024
MAX_BODY_BYTES = 100 * 1024

JSON_TYPE = "application/json"
FORM_TYPE = "application/x-www-form-urlencoded"


async def security_headers(request: Request, call_next: RequestResponseEndpoint) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


async def error_envelope(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Fängt alles, was weiter innen geworfen wird, und antwortet generisch mit 500."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception(f"Error while handling {request.method} {request.url.path}")
        return internal_error_response()


def _decode_body(raw: bytes, content_type: str):
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise BodyParsingError("body is not valid UTF-8") from e

    if content_type == JSON_TYPE:
        if not text.strip():
            return {}
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise BodyParsingError(f"malformed JSON: {e.msg}") from e

    parsed = parse_qs(text, keep_blank_values=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}


async def body_parsing(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Legt JSON- und Formular-Bodies geparst unter ``request.state.body`` ab."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in (JSON_TYPE, FORM_TYPE):
        raw = await _read_limited(request)
        request.state.body = _decode_body(raw, content_type)
    return await call_next(request)


async def _read_limited(request: Request) -> bytes:
    """Liest den Body, bricht aber ab, sobald MAX_BODY_BYTES überschritten sind."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > MAX_BODY_BYTES:
        raise BodyParsingError(f"body exceeds {MAX_BODY_BYTES} bytes")

    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > MAX_BODY_BYTES:
            raise BodyParsingError(f"body exceeds {MAX_BODY_BYTES} bytes")
        chunks.append(chunk)

    raw = b"".join(chunks)
    # Same cache Request.body() fills, so handlers further in still see the body.
    request._body = raw
    return raw


def rate_limit(rate: ClientRateLimit, exempt_paths: Iterable[str] = ()):
    """Erzeugt die Rate-Limit-Stufe für ein konkretes Limit."""
    exempt = frozenset(exempt_paths)

    async def dispatch(request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in exempt:
            return await call_next(request)

        key = rate.key(request)
        decision = rate.hit(key)
        headers = {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
            "X-RateLimit-Reset": str(math.ceil(time.time() + decision.reset_after)),
        }

        if not decision.allowed:
            logger.warning(f"Rate limit hit for client {key}")
            headers["Retry-After"] = str(max(1, math.ceil(decision.reset_after)))
            return PlainTextResponse(THROTTLE_MESSAGE, status_code=429, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response

    return dispatch


def build_pipeline(
    rate: ClientRateLimit, exempt_paths: Iterable[str] = ()
) -> List[Tuple[str, Middleware]]:
    """Alle Stufen in Ausführungsreihenfolge, jeweils mit Namen."""
    return [
        ("security_headers", Middleware(BaseHTTPMiddleware, dispatch=security_headers)),
        ("cors", Middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])),
        ("compression", Middleware(GZipMiddleware, minimum_size=GZIP_MINIMUM_SIZE)),
        ("error_envelope", Middleware(BaseHTTPMiddleware, dispatch=error_envelope)),
        ("body_parsing", Middleware(BaseHTTPMiddleware, dispatch=body_parsing)),
        ("rate_limit", Middleware(BaseHTTPMiddleware, dispatch=rate_limit(rate, exempt_paths))),
    ]
