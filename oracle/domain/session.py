"""
Service de conversation: une session, un état, une narration à la fois.

Le service applique un événement via `transition`, conserve le nouvel état puis fait exécuter
les effets par le pilote de narration. Les tours d'une même session sont sérialisés.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import date
from uuid import uuid4

import structlog

from oracle.app.metrics import PHASE_TRANSITIONS, PURCHASES, VALIDATION_REDIRECTS
from oracle.domain.entities import Message, OracleContext
from oracle.domain.interpretations import ContentRepository
from oracle.domain.narration import NarrationDriver, SpeechTimer
from oracle.domain.orchestrator import (
    ConversationState,
    Event,
    FlowOptions,
    PAYWALL_PHASES,
    ProcessPayment,
    Redirect,
    transition,
)
from oracle.domain.phases import ConversationPhase, get_phase_config
from oracle.infra.enhancement import MAX_SUGGESTIONS, EnhancementGateway, SuggestionInfo

log = structlog.get_logger(__name__).bind(component="session")


def _new_session_id() -> str:
    return uuid4().hex


class ConversationService:
    """Possède une session de conversation (état, messages, narration)."""

    def __init__(
        self,
        content: ContentRepository,
        *,
        options: FlowOptions | None = None,
        enhancer: EnhancementGateway | None = None,
        speech: SpeechTimer | None = None,
        realtime: bool = False,
        enhance_narration: bool = False,
        today: Callable[[], date] = date.today,
        session_id: str | None = None,
        on_message: Callable[[Message], None] | None = None,
    ) -> None:
        self.id = session_id or _new_session_id()
        self.content = content
        self.options = options or FlowOptions()
        self.enhancer = enhancer
        self.today = today
        self.state = ConversationState()
        # Phase affichée: suit les EnterPhase au fil de la narration
        self.phase = self.state.phase
        # Dernière phase traversée pendant le tour (ses cartes restent proposées)
        self._visited: ConversationPhase | None = None
        self.messages: list[Message] = []
        self._on_message = on_message
        self._lock = asyncio.Lock()
        self.driver = NarrationDriver(
            self._append,
            on_phase=self._enter_phase,
            realtime=realtime,
            enhancer=enhancer,
            enhance_narration=enhance_narration,
            speech=speech,
        )

    def _append(self, message: Message) -> None:
        self.messages.append(message)
        if self._on_message is not None:
            self._on_message(message)

    def _enter_phase(self, phase: ConversationPhase) -> None:
        if phase != self.phase:
            PHASE_TRANSITIONS.labels(from_phase=self.phase.value, to_phase=phase.value).inc()
            log.info(
                "phase_entered",
                session_id=self.id,
                from_phase=self.phase.value,
                to_phase=phase.value,
            )
        self.phase = phase
        if get_phase_config(phase).oracle_speaking:
            self._visited = phase

    def oracle_context(self) -> OracleContext:
        """Nombres connus de la session, pour la passerelle d'enrichissement."""
        profile = self.state.profile
        other = self.state.other_person
        compat = self.state.compatibility
        return OracleContext(
            life_path=profile.life_path,
            expression=profile.expression,
            soul_urge=profile.soul_urge,
            personality=profile.personality,
            birthday_number=profile.birthday_number,
            user_name=profile.first_name,
            other_person_name=other.name if other else None,
            other_life_path=other.life_path if other else None,
            compatibility_score=compat.score if compat else None,
            compatibility_level=compat.level if compat else None,
        )

    async def dispatch(self, event: Event) -> ConversationState:
        """
        Applique un événement puis narre ses effets.

        Raises:
            InvalidEventError: événement refusé (l'état n'est pas modifié).
        """
        async with self._lock:
            new_state, effects = transition(
                self.state,
                event,
                today=self.today(),
                content=self.content,
                options=self.options,
            )
            for effect in effects:
                if isinstance(effect, Redirect):
                    ctx = effect.context
                    VALIDATION_REDIRECTS.labels(
                        error_code=ctx.error_code, expected=ctx.expected_input
                    ).inc()
                    log.debug("input_rejected", session_id=self.id, error_code=ctx.error_code)
                elif isinstance(effect, ProcessPayment):
                    PURCHASES.labels(tier=str(effect.tier)).inc()
            self.state = new_state
            self._visited = None
            await self.driver.run(effects, self.oracle_context(), self.phase)
            if not self.driver.cancelled:
                self._enter_phase(new_state.phase)
            return self.state

    def cancel(self) -> None:
        """Arrête la narration en cours; plus aucun message n'est ajouté."""
        self.driver.cancel()

    def static_suggestions(self) -> list[str]:
        """Cartes de la phase parlante traversée, puis celles de la phase courante."""
        other = self.state.other_person
        names = (self.state.profile.first_name, other.name if other else None)
        cards: list[str] = []
        if self._visited is not None:
            cards += self.content.suggestions_for(self._visited, *names)
        if get_phase_config(self.phase).show_suggestions:
            cards += self.content.suggestions_for(self.phase, *names)
        return cards[:MAX_SUGGESTIONS]

    async def suggestions(self) -> list[str]:
        """Cartes de la phase; générées par la passerelle quand elle est disponible."""
        static = self.static_suggestions()
        if self.phase in PAYWALL_PHASES or not static:
            return static
        if self.enhancer is None or not self.enhancer.available:
            return static
        question = next((m.content for m in reversed(self.messages) if m.type == "oracle"), None)
        if question is None:
            return static
        generated = await self.enhancer.suggest(
            self.oracle_context(), self.phase.value, SuggestionInfo(oracle_question=question)
        )
        return generated or static
