"""Appels HTTP sortants bornés dans le temps.

`fetch_with_timeout` impose un délai par requête; `fetch_with_retry` ne relance que sur
dépassement de délai, avec un nombre d'essais borné et un backoff linéaire ou exponentiel.
Les erreurs HTTP (statuts non-2xx) ne sont jamais relancées ici: l'appelant décide.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any

import httpx
import structlog

from oracle.core.http_constants import (
    DEFAULT_TIMEOUT_S,
    GENERIC_FETCH_MAX_RETRIES,
    RETRY_BASE_DELAY_S,
)

log = structlog.get_logger(__name__).bind(component="http_clients")


class RetryStrategy(Enum):
    """Stratégies de backoff disponibles."""

    EXPONENTIAL = "exponential"
    LINEAR = "linear"


def calculate_retry_delay(
    attempt: int,
    strategy: RetryStrategy = RetryStrategy.LINEAR,
    base_delay: float = RETRY_BASE_DELAY_S,
) -> float:
    """Délai avant l'essai `attempt + 1` (attempt commence à 0)."""
    if strategy == RetryStrategy.EXPONENTIAL:
        return base_delay * (2**attempt)
    return base_delay * (attempt + 1)


async def fetch_with_timeout(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    **kwargs: Any,
) -> httpx.Response:
    """
    Envoie une requête avec un délai global.

    Raises:
        httpx.TimeoutException: délai dépassé.
        httpx.HTTPError: autre erreur de transport.
    """
    return await client.request(method, url, timeout=httpx.Timeout(timeout_s), **kwargs)


async def fetch_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    max_retries: int = GENERIC_FETCH_MAX_RETRIES,
    strategy: RetryStrategy = RetryStrategy.LINEAR,
    base_delay: float = RETRY_BASE_DELAY_S,
    **kwargs: Any,
) -> httpx.Response:
    """
    Comme `fetch_with_timeout`, avec au plus `max_retries` essais de plus sur délai dépassé.

    Raises:
        httpx.TimeoutException: dernier essai hors délai.
    """
    attempt = 0
    while True:
        try:
            return await fetch_with_timeout(client, method, url, timeout_s=timeout_s, **kwargs)
        except httpx.TimeoutException:
            if attempt >= max_retries:
                log.warning("fetch_timeout", url=url, attempts=attempt + 1)
                raise
            delay = calculate_retry_delay(attempt, strategy, base_delay)
            log.debug("fetch_retry", url=url, attempt=attempt + 1, delay_s=delay)
            await asyncio.sleep(delay)
            attempt += 1
