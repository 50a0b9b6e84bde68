"""
Client LLM basé sur l'API OpenAI (chat.completions, SDK asynchrone).

Sans clé API le client est marqué indisponible: la passerelle d'enrichissement renvoie alors
les messages de base sans tenter d'appel.
"""

from __future__ import annotations

from typing import Any

import structlog
from openai import AsyncOpenAI

from oracle.infra.llm.base import LLM, LLMUnavailableError

log = structlog.get_logger(__name__).bind(component="openai_llm")


class OpenAILLM(LLM):
    """LLM basé sur OpenAI; lève en cas d'échec (pas de repli local)."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        client: Any | None = None,
    ) -> None:
        """Initialise le client; `client` permet d'injecter un double en test."""
        self.model = model
        if client is not None:
            self.client = client
        elif api_key:
            self.client = AsyncOpenAI(api_key=api_key, max_retries=0)
        else:
            self.client = None

    @property
    def available(self) -> bool:
        return self.client is not None

    async def generate(
        self,
        messages: list[dict[str, str]],
        *,
        max_tokens: int = 1024,
    ) -> str:
        """Appelle chat.completions et renvoie le texte du premier choix ("" si vide)."""
        if self.client is None:
            raise LLMUnavailableError("OPENAI_API_KEY not configured")
        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
        )
        choice = resp.choices[0]
        content = getattr(getattr(choice, "message", None), "content", None)
        usage = self._extract_usage_dict(resp)
        if usage:
            log.debug("llm_usage", model=self.model, **usage)
        return str(content or "")

    def _extract_usage_dict(self, resp: Any) -> dict[str, int]:
        """Extrait les infos d'usage depuis la réponse OpenAI. Toujours un dict."""
        usage = getattr(resp, "usage", None)
        if not usage:
            return {}
        try:
            return {
                "prompt_tokens": int(getattr(usage, "prompt_tokens", 0)),
                "completion_tokens": int(getattr(usage, "completion_tokens", 0)),
                "total_tokens": int(getattr(usage, "total_tokens", 0)),
            }
        except (TypeError, ValueError):
            return {}
