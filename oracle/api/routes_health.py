"""
Endpoint de santé.

Expose `/health` avec l'état de l'application et la disponibilité des passerelles amont.
"""

from fastapi import APIRouter

from oracle.core.container import container

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Vérifie la disponibilité de l'API (les passerelles absentes ne la dégradent pas)."""
    return {
        "status": "ok",
        "sessions": len(container.sessions),
        "enhancement": container.enhancer.available,
        "speech": container.speech.available,
    }
