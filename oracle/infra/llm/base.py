"""Interface de base pour les modèles de langage."""

from __future__ import annotations

from abc import ABC, abstractmethod


class LLMUnavailableError(RuntimeError):
    """Aucun client configuré (clé API absente)."""


class LLM(ABC):
    """Interface abstraite pour les modèles de langage (chat-completion)."""

    model: str = "unknown"

    @property
    def available(self) -> bool:
        """Vrai si un appel amont peut être tenté."""
        return True

    @abstractmethod
    async def generate(
        self,
        messages: list[dict[str, str]],
        *,
        max_tokens: int = 1024,
    ) -> str:
        """Génère une réponse à partir d'une liste de messages.

        Lève une exception en cas d'échec amont; l'appelant décide du repli.
        """
        ...
