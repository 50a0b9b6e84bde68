"""
Dépôt des sessions de conversation.

Les sessions vivent en mémoire du processus, indexées par un identifiant aléatoire; aucune
persistance ni partage entre sessions. Une session inactive depuis plus de `ttl_s` secondes est
évincée (et sa narration annulée) au prochain accès au dépôt.
"""

import time
from collections.abc import Callable

import structlog

from oracle.domain.session import ConversationService

log = structlog.get_logger(__name__).bind(component="session_store")

DEFAULT_SESSION_TTL_S = 3600.0


class InMemorySessionRepo:
    """
    Dépôt de sessions en mémoire.

    Stocke les services de conversation dans un dict local, non persistant.
    """

    def __init__(
        self,
        ttl_s: float = DEFAULT_SESSION_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            ttl_s: Inactivité maximale d'une session, en secondes.
            clock: Horloge monotone (injectée par les tests).
        """
        self.ttl_s = ttl_s
        self._clock = clock
        self._db: dict[str, ConversationService] = {}
        self._last_seen: dict[str, float] = {}

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [sid for sid, seen in self._last_seen.items() if now - seen > self.ttl_s]
        for sid in expired:
            self._last_seen.pop(sid)
            self._db.pop(sid).cancel()
            log.info("session_evicted", session_id=sid, ttl_s=self.ttl_s)

    def save(self, session: ConversationService) -> ConversationService:
        """Enregistre/écrase une session et la renvoie."""
        self._evict_expired()
        self._db[session.id] = session
        self._last_seen[session.id] = self._clock()
        return session

    def get(self, session_id: str) -> ConversationService | None:
        """Retourne une session par id (et la marque active), ou None si absente ou expirée."""
        self._evict_expired()
        session = self._db.get(session_id)
        if session is not None:
            self._last_seen[session_id] = self._clock()
        return session

    def delete(self, session_id: str) -> ConversationService | None:
        """Retire une session (sa narration est annulée) et la renvoie."""
        self._last_seen.pop(session_id, None)
        session = self._db.pop(session_id, None)
        if session is not None:
            session.cancel()
        return session

    def __len__(self) -> int:
        return len(self._db)
