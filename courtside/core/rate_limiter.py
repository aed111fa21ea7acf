"""Rate-Limit pro Client-Adresse über slowapi (gleitendes Fenster, In-Memory).

Der Limiter wird pro App gebaut und als ``app.state.limiter`` abgelegt; die
Pipeline-Stufe fragt ihn für jede Anfrage ab."""
import time
from dataclasses import dataclass

from limits import RateLimitItem, parse
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

THROTTLE_MESSAGE = "Too many requests from this IP, please try again later."


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: float  # Sekunden, bis der älteste Treffer aus dem Fenster fällt


def window_limit(max_requests: int = 100, window_seconds: int = 15 * 60) -> str:
    return f"{max_requests}/{window_seconds} seconds"


def build_limiter(max_requests: int = 100, window_seconds: int = 15 * 60) -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        default_limits=[window_limit(max_requests, window_seconds)],
        strategy="moving-window",
        storage_uri="memory://",
    )


class ClientRateLimit:
    """Ein konkretes Limit auf einem slowapi-Limiter. Abgelehnte Anfragen
    zählen nicht mit."""

    def __init__(self, limiter: Limiter, limit: str):
        self.limiter = limiter
        self.item: RateLimitItem = parse(limit)

    def key(self, request: Request) -> str:
        return get_remote_address(request)

    def hit(self, key: str) -> RateLimitDecision:
        backend = self.limiter.limiter
        allowed = backend.hit(self.item, key)
        reset_time, remaining = backend.get_window_stats(self.item, key)
        return RateLimitDecision(allowed, self.item.amount, remaining, max(0.0, reset_time - time.time()))

    def reset(self) -> None:
        self.limiter.reset()
