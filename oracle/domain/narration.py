"""Pilote de narration.

Les effets produits par `transition` sont placés dans une file et consommés un à un par une
seule boucle asynchrone. Chaque ligne de l'Oracle suit la même cadence: indicateur de frappe,
durée de parole (synthèse vocale ou estimation), ajout du message, attente du plus long entre
parole et frappe, pause fixe entre deux messages.

En mode non temps réel (HTTP) rien n'est dormi: les délais sont consignés dans les métadonnées
des messages (`pause_before_ms`, `typing_duration`) pour que le client les rejoue.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from typing import Protocol

import structlog

from oracle.domain.entities import Message, OracleContext, PersonalizeRequest
from oracle.domain.orchestrator import (
    EnterPhase,
    Effect,
    Pause,
    Personalize,
    ProcessPayment,
    Redirect,
    Reveal,
    Say,
    UserMessage,
)
from oracle.domain.phases import ConversationPhase
from oracle.domain.redirects import RedirectEnhancer, generate_redirect

log = structlog.get_logger(__name__).bind(component="narration")

TYPING_INDICATOR_MS = 500
INTER_MESSAGE_MS = 400
TYPING_MS_PER_CHAR = 60


class SpeechTimer(Protocol):
    """Sous-ensemble de la passerelle vocale utilisé par le pilote."""

    async def duration_ms(self, text: str) -> int: ...


class NarrationEnhancer(RedirectEnhancer, Protocol):
    """Passerelle d'enrichissement vue du pilote (redirections, lignes, lecture payante)."""

    async def personalize(
        self, context: OracleContext, req: PersonalizeRequest, fallback: list[str]
    ) -> list[str]: ...


def typing_duration_ms(text: str) -> int:
    return len(text) * TYPING_MS_PER_CHAR


class NarrationDriver:
    """Consomme une file d'effets pour une session, un pas à la fois."""

    def __init__(
        self,
        append: Callable[[Message], None],
        *,
        on_phase: Callable[[ConversationPhase], None] | None = None,
        realtime: bool = False,
        enhancer: NarrationEnhancer | None = None,
        enhance_narration: bool = False,
        speech: SpeechTimer | None = None,
    ) -> None:
        """
        Args:
            append: Reçoit chaque message prêt à être affiché.
            on_phase: Notifié à chaque phase traversée pendant la narration.
            realtime: Dort réellement entre les pas (console) ou consigne les délais (HTTP).
            enhancer: Passerelle d'enrichissement (redirections, lignes marquées `enhance`).
            enhance_narration: Enrichit aussi les lignes scriptées.
            speech: Source des durées de parole (voix off activée).
        """
        self._append = append
        self._on_phase = on_phase
        self.realtime = realtime
        self.enhancer = enhancer
        self.enhance_narration = enhance_narration
        self.speech = speech
        self._queue: deque[Effect] = deque()
        self._cancelled = asyncio.Event()
        self._pending_pause_ms = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def pending(self) -> int:
        return len(self._queue)

    def cancel(self) -> None:
        """Abandonne les pas en attente et interrompt la pause en cours."""
        dropped = len(self._queue)
        self._queue.clear()
        self._cancelled.set()
        log.debug("narration_cancelled", dropped=dropped)

    async def run(
        self,
        effects: list[Effect],
        context: OracleContext | None = None,
        phase: ConversationPhase | None = None,
    ) -> None:
        """Exécute les effets dans l'ordre; s'arrête net si la narration est annulée."""
        if self.cancelled:
            return
        self._queue.extend(effects)
        self._pending_pause_ms = 0
        context = context or OracleContext()
        while self._queue and not self.cancelled:
            effect = self._queue.popleft()
            if isinstance(effect, EnterPhase):
                phase = effect.phase
            await self._step(effect, context, phase)

    async def _step(
        self, effect: Effect, context: OracleContext, phase: ConversationPhase | None
    ) -> None:
        if isinstance(effect, UserMessage):
            self._emit(Message(type="user", content=effect.text))
        elif isinstance(effect, Pause):
            await self._pause(effect.ms)
        elif isinstance(effect, ProcessPayment):
            await self._pause(effect.delay_ms)
        elif isinstance(effect, EnterPhase):
            if self._on_phase is not None:
                self._on_phase(effect.phase)
        elif isinstance(effect, Reveal):
            self._emit(
                Message(
                    type=effect.kind,
                    content=str(effect.number),
                    metadata={"number": effect.number, **effect.metadata},
                )
            )
        elif isinstance(effect, Redirect):
            lines = await generate_redirect(effect.context, self.enhancer)
            await self._speak(lines)
        elif isinstance(effect, Personalize):
            lines = effect.lines
            if self.enhancer is not None:
                lines = await self.enhancer.personalize(context, effect.request, effect.lines)
            await self._speak(lines)
        elif isinstance(effect, Say):
            lines = effect.lines
            if self.enhancer is not None and (effect.enhance or self.enhance_narration):
                lines = await self.enhancer.enhance(
                    effect.mode,
                    context,
                    phase.value if phase else "",
                    lines,
                    user_input=effect.user_input,
                )
            await self._speak(lines)

    async def _speak(self, lines: list[str]) -> None:
        for line in lines:
            if self.cancelled:
                return
            await self._pause(TYPING_INDICATOR_MS)
            typing = typing_duration_ms(line)
            speech = await self.speech.duration_ms(line) if self.speech is not None else 0
            if self.cancelled:
                return
            self._emit(
                Message(type="oracle", content=line, metadata={"typing_duration": typing}),
                speech_ms=speech,
            )
            await self._pause(max(speech, typing))
            await self._pause(INTER_MESSAGE_MS)

    def _emit(self, message: Message, speech_ms: int = 0) -> None:
        if self.cancelled:
            return
        if not self.realtime:
            extra = {"pause_before_ms": self._pending_pause_ms}
            if speech_ms:
                extra["speech_duration"] = speech_ms
            message = message.model_copy(update={"metadata": {**message.metadata, **extra}})
            self._pending_pause_ms = 0
        self._append(message)

    async def _pause(self, ms: int) -> None:
        if ms <= 0:
            return
        if not self.realtime:
            self._pending_pause_ms += ms
            return
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=ms / 1000)
        except asyncio.TimeoutError:
            pass
