"""
Application principale FastAPI.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (request id, métriques, timing)
- Enregistrer les gestionnaires d'erreurs (enveloppe standard)
- Monter les routers (santé, enrichissement, voix, sessions, métriques)
- Fermer le client HTTP de la passerelle vocale à l'arrêt (lifespan)
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException

from oracle.api.routes_health import router as health_router
from oracle.api.routes_oracle import router as oracle_router
from oracle.api.routes_sessions import router as sessions_router
from oracle.api.routes_speech import router as speech_router
from oracle.apigw.errors import (
    APIError,
    handle_api_error,
    handle_generic_exception,
    handle_http_exception,
    handle_oracle_error,
)
from oracle.app.metrics import PrometheusMiddleware, metrics_router
from oracle.core.container import container
from oracle.core.logging import setup_logging
from oracle.domain.entities import OracleError
from oracle.middlewares.request_id import RequestIDMiddleware
from oracle.middlewares.timing import TimingMiddleware

log = structlog.get_logger(__name__).bind(component="app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await container.speech.aclose()
    log.info("app_shutdown", sessions=len(container.sessions))


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog)
    - Lit les paramètres d'exécution
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes
    """
    settings = container.settings
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG, lifespan=lifespan)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(OracleError, handle_oracle_error)
    app.add_exception_handler(Exception, handle_generic_exception)
    app.include_router(health_router)
    app.include_router(oracle_router)
    app.include_router(speech_router)
    app.include_router(sessions_router)
    app.include_router(metrics_router)
    return app


app = create_app()
