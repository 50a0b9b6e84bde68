"""
Passerelle d'enrichissement (réécriture de textes par chat-completion).

Contrat: `enhance(...)`, `suggest(...)` et `personalize(...)` ne lèvent jamais. Toute défaillance
amont (clé absente, délai dépassé, erreur réseau, réponse inexploitable) renvoie les messages de
base inchangés (ou une liste vide de suggestions, ou le texte fixe de la lecture). Aucun nouvel
essai n'est tenté.
"""

from __future__ import annotations

import asyncio
import re
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict

from oracle.app.metrics import ENHANCE_REQUESTS
from oracle.core.http_constants import DEFAULT_TIMEOUT_S
from oracle.domain.entities import (
    CriticalDateRequest,
    ExpectedInput,
    InterpretRequest,
    OracleContext,
    PersonalizeRequest,
    RelationshipAdviceRequest,
    YearAheadRequest,
)
from oracle.infra import prompts
from oracle.infra.llm.base import LLM

log = structlog.get_logger(__name__).bind(component="enhancement")

EnhanceMode = Literal[
    "enhance",
    "validation",
    "suggestions",
    "interpret",
    "criticalDate",
    "yearAhead",
    "relationshipAdvice",
]

_NUMBERED_LINE = re.compile(r"^\d+\.\s*(.+)$")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_QUOTES = re.compile(r"^[\"']|[\"']$")
MAX_SUGGESTIONS = 4
SUGGESTIONS_MAX_TOKENS = 256
MESSAGES_MAX_TOKENS = 1024


class ValidationInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    error_code: str
    original_input: str
    expected_input: ExpectedInput


class SuggestionInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    oracle_question: str
    count: int = 3


def parse_numbered_messages(response: str, base_messages: list[str]) -> list[str]:
    """
    Extrait les messages d'une réponse en liste numérotée.

    - au moins autant de lignes numérotées que de messages de base: tronque au même nombre
    - aucune ligne numérotée: découpage naïf en phrases
    - sinon: messages de base inchangés
    """
    lines = [line.strip() for line in response.splitlines() if line.strip()]
    parsed = [m.group(1).strip() for m in map(_NUMBERED_LINE.match, lines) if m]
    expected = len(base_messages)
    if parsed and len(parsed) >= expected:
        return parsed[:expected]
    if not parsed:
        sentences = [s for s in _SENTENCE_SPLIT.split(response.strip()) if s.strip()]
        if sentences and len(sentences) >= expected:
            return sentences[:expected]
    return list(base_messages)


def parse_suggestions(response: str) -> list[str]:
    """Lignes numérotées sans guillemets, au plus quatre."""
    out: list[str] = []
    for line in response.splitlines():
        m = _NUMBERED_LINE.match(line.strip())
        if m:
            out.append(_QUOTES.sub("", m.group(1).strip()))
    return out[:MAX_SUGGESTIONS]


class Interpretation(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    short_description: str
    core_description: str

    def lines(self) -> list[str]:
        return [s for s in (self.title, self.short_description, self.core_description) if s]


class YearAheadPrediction(BaseModel):
    model_config = ConfigDict(frozen=True)

    theme: str
    opportunities: str
    challenges: str
    full: str

    def lines(self) -> list[str]:
        return [s for s in (self.theme, self.opportunities, self.challenges) if s]


def parse_interpretation(response: str) -> Interpretation | None:
    """Titre, description courte, puis le reste en une description profonde."""
    lines = [line.strip() for line in response.splitlines() if line.strip()]
    if not lines:
        return None
    interp = Interpretation(
        title=lines[0],
        short_description=lines[1] if len(lines) > 1 else "",
        core_description=" ".join(lines[2:]),
    )
    if not interp.core_description:
        return None
    return interp


def split_paragraphs(response: str) -> list[str]:
    return [p.strip() for p in re.split(r"\n\s*\n", response.strip()) if p.strip()]


def parse_year_ahead(response: str) -> YearAheadPrediction | None:
    sections = split_paragraphs(response)
    if not sections:
        return None
    padded = sections + [""] * 2
    return YearAheadPrediction(
        theme=padded[0],
        opportunities=padded[1],
        challenges=padded[2],
        full=response.strip(),
    )


class EnhancementGateway:
    """Proxy étroit vers un LLM avec repli déterministe."""

    def __init__(
        self,
        llm: LLM | None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        life_path_name=None,
    ) -> None:
        """
        Args:
            llm: Client LLM (None ou indisponible: repli systématique).
            timeout_s: Délai maximal d'un appel amont.
            life_path_name: Fonction nombre -> nom court, citée dans les prompts.
        """
        self.llm = llm
        self.timeout_s = timeout_s
        self.life_path_name = life_path_name

    @property
    def available(self) -> bool:
        return self.llm is not None and self.llm.available

    async def _complete(self, mode: EnhanceMode, user_prompt: str, max_tokens: int) -> str | None:
        """Appel amont borné dans le temps; None sur toute défaillance (déjà journalisée)."""
        if not self.available:
            ENHANCE_REQUESTS.labels(mode=mode, outcome="no_credentials").inc()
            return None
        messages = [
            {"role": "system", "content": prompts.SYSTEM_PROMPTS[mode]},
            {"role": "user", "content": user_prompt},
        ]
        try:
            text = await asyncio.wait_for(
                self.llm.generate(messages, max_tokens=max_tokens), timeout=self.timeout_s
            )
        except asyncio.TimeoutError:
            log.warning("enhance_timeout", mode=mode, timeout_s=self.timeout_s)
            ENHANCE_REQUESTS.labels(mode=mode, outcome="timeout").inc()
            return None
        except Exception as exc:  # toute erreur amont bascule sur le repli
            log.warning("enhance_failed", mode=mode, error=type(exc).__name__)
            ENHANCE_REQUESTS.labels(mode=mode, outcome="error").inc()
            return None
        ENHANCE_REQUESTS.labels(mode=mode, outcome="ok").inc()
        return text

    async def enhance(
        self,
        mode: EnhanceMode,
        context: OracleContext,
        phase: str,
        base_messages: list[str],
        *,
        user_input: str | None = None,
        validation: ValidationInfo | None = None,
    ) -> list[str]:
        """
        Réécrit `base_messages` dans la voix de l'Oracle.

        Returns:
            list[str]: messages enrichis, ou `base_messages` inchangés en cas d'échec.
        """
        if validation is not None and mode == "validation":
            user_prompt = prompts.build_validation_prompt(
                context,
                phase,
                validation.error_code,
                validation.original_input,
                validation.expected_input,
                base_messages,
            )
        else:
            # Sans contexte d'échec, le prompt système suit le prompt utilisateur: réécriture
            mode = "enhance"
            user_prompt = prompts.build_enhance_prompt(context, phase, base_messages, user_input)
        text = await self._complete(mode, user_prompt, MESSAGES_MAX_TOKENS)
        if not text:
            return list(base_messages)
        return parse_numbered_messages(text, base_messages)

    async def suggest(
        self, context: OracleContext, phase: str, info: SuggestionInfo
    ) -> list[str]:
        """Réponses suggérées à la dernière question de l'Oracle ([] en cas d'échec)."""
        user_prompt = prompts.build_suggestions_prompt(
            context, info.oracle_question, info.count, self._name(context.life_path)
        )
        text = await self._complete("suggestions", user_prompt, SUGGESTIONS_MAX_TOKENS)
        if not text:
            return []
        log.debug("suggestions_generated", phase=phase)
        return parse_suggestions(text)

    def _name(self, life_path: int | None) -> str | None:
        if self.life_path_name is None or not life_path:
            return None
        return self.life_path_name(life_path)

    async def interpret(
        self, context: OracleContext, req: InterpretRequest
    ) -> Interpretation | None:
        """Interprétation personnelle d'un nombre (None en cas d'échec)."""
        user_prompt = prompts.build_interpret_prompt(context, req, self._name(context.life_path))
        text = await self._complete("interpret", user_prompt, MESSAGES_MAX_TOKENS)
        return parse_interpretation(text) if text else None

    async def explain_critical_date(
        self, context: OracleContext, req: CriticalDateRequest
    ) -> str | None:
        user_prompt = prompts.build_critical_date_prompt(
            context, req, self._name(context.life_path)
        )
        text = await self._complete("criticalDate", user_prompt, MESSAGES_MAX_TOKENS)
        return text.strip() if text and text.strip() else None

    async def year_ahead(
        self, context: OracleContext, req: YearAheadRequest
    ) -> YearAheadPrediction | None:
        user_prompt = prompts.build_year_ahead_prompt(context, req, self._name(context.life_path))
        text = await self._complete("yearAhead", user_prompt, MESSAGES_MAX_TOKENS)
        return parse_year_ahead(text) if text else None

    async def relationship_advice(
        self, context: OracleContext, req: RelationshipAdviceRequest
    ) -> str | None:
        user_prompt = prompts.build_relationship_advice_prompt(
            context, req, self._name(context.life_path), self._name(req.other_life_path)
        )
        text = await self._complete("relationshipAdvice", user_prompt, MESSAGES_MAX_TOKENS)
        return text.strip() if text and text.strip() else None

    async def personalize(
        self, context: OracleContext, req: PersonalizeRequest, fallback: list[str]
    ) -> list[str]:
        """
        Personnalise un passage de la lecture payante.

        Returns:
            list[str]: lignes générées, ou `fallback` inchangé en cas d'échec.
        """
        lines: list[str] = []
        if isinstance(req, InterpretRequest):
            interp = await self.interpret(context, req)
            lines = interp.lines() if interp else []
        elif isinstance(req, CriticalDateRequest):
            explanation = await self.explain_critical_date(context, req)
            lines = [explanation] if explanation else []
        elif isinstance(req, YearAheadRequest):
            prediction = await self.year_ahead(context, req)
            lines = prediction.lines() if prediction else []
        elif isinstance(req, RelationshipAdviceRequest):
            advice = await self.relationship_advice(context, req)
            lines = split_paragraphs(advice) if advice else []
        return lines or list(fallback)
