"""
Métriques Prometheus pour l'application.

Ce module définit les métriques HTTP et métier (enrichissement, synthèse vocale, transitions de
phase, redirections, achats) et expose `/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

ENHANCE_REQUESTS = Counter(
    "oracle_enhance_requests_total",
    "Enhancement gateway calls by mode and outcome",
    ["mode", "outcome"],
)
SPEECH_REQUESTS = Counter(
    "oracle_speech_requests_total",
    "Speech gateway calls by outcome",
    ["outcome"],
)
PHASE_TRANSITIONS = Counter(
    "oracle_phase_transitions_total",
    "Conversation phase transitions",
    ["from_phase", "to_phase"],
)
VALIDATION_REDIRECTS = Counter(
    "oracle_validation_redirects_total",
    "Redirects emitted after an invalid input",
    ["error_code", "expected"],
)
PURCHASES = Counter(
    "oracle_purchases_total",
    "Simulated purchases by tier",
    ["tier"],
)


def normalize_route(request: Request) -> str:
    """Route déclarée (`/api/sessions/{session_id}`) plutôt que le chemin brut."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte le comptage des requêtes et la latence par route déclarée (cardinalité bornée
    malgré les identifiants de session dans les chemins).
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = normalize_route(request)
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response


@metrics_router.get("/metrics")
def metrics() -> Response:
    """Exposition au format Prometheus."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
