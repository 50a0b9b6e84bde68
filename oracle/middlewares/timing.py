"""Middleware Starlette pour mesurer le temps de traitement des requêtes.

Ajoute l'en-tête X-Process-Time-ms (durée en millisecondes) et journalise les requêtes lentes.
"""

import time
from collections.abc import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

log = structlog.get_logger(__name__).bind(component="timing")

SLOW_REQUEST_MS = 1000


class TimingMiddleware(BaseHTTPMiddleware):
    """Mesure la durée de traitement de chaque requête HTTP."""

    def __init__(self, app: ASGIApp, header_name: str = "X-Process-Time-ms") -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next: Callable):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers[self.header_name] = str(duration_ms)
        if duration_ms >= SLOW_REQUEST_MS:
            log.info("slow_request", path=request.url.path, duration_ms=duration_ms)
        return response
