"""Tests pour le service de conversation (état, narration, métriques, suggestions)."""

from __future__ import annotations

from datetime import date

import pytest
from prometheus_client import REGISTRY

from oracle.domain.entities import InvalidEventError
from oracle.domain.orchestrator import (
    SKIP_RELATIONSHIP,
    FlowOptions,
    Purchase,
    Start,
    SuggestionSelected,
    UserInput,
)
from oracle.domain.phases import ConversationPhase
from oracle.domain.session import ConversationService
from oracle.infra.enhancement import EnhancementGateway
from oracle.infra.session_store import InMemorySessionRepo
from tests.fakes import FakeLLM

TODAY = date(2025, 6, 1)
FIRST_REVEAL_CARDS = [
    "Tell me more about this number",
    "What does this mean for my life?",
    "I want to understand myself better",
]
SESSION_TTL_S = 60.0
COMPATIBILITY_TEASE_CARDS = [
    "Tell me about our connection with Michelle",
    "What challenges do we face?",
    "Is this meant to be?",
]


def _sample(name: str, labels: dict[str, str]) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def _service(content, **kwargs):
    kwargs.setdefault("options", FlowOptions(jitter_mode="none"))
    return ConversationService(content, today=lambda: TODAY, **kwargs)


@pytest.mark.asyncio
async def test_start_appends_opening_messages(content) -> None:
    service = _service(content)
    state = await service.dispatch(Start())
    assert state.phase == ConversationPhase.COLLECTING_DOB
    assert service.phase == ConversationPhase.COLLECTING_DOB
    assert all(m.type == "oracle" for m in service.messages)
    assert service.messages[-1].content == "Tell me... when were you born?"


@pytest.mark.asyncio
async def test_phase_transitions_counted(content) -> None:
    labels = {"from_phase": "opening", "to_phase": "collecting_dob"}
    before = _sample("oracle_phase_transitions_total", labels)
    await _service(content).dispatch(Start())
    assert _sample("oracle_phase_transitions_total", labels) == before + 1


@pytest.mark.asyncio
async def test_invalid_input_counted_and_redirected(content) -> None:
    """Teste la redirection d'une saisie invalide et son compteur."""
    labels = {"error_code": "OFF_TOPIC", "expected": "date"}
    before = _sample("oracle_validation_redirects_total", labels)
    service = _service(content)
    await service.dispatch(Start())
    count = len(service.messages)
    await service.dispatch(UserInput(text="hello"))
    assert _sample("oracle_validation_redirects_total", labels) == before + 1
    assert service.phase == ConversationPhase.COLLECTING_DOB
    new = service.messages[count:]
    assert new[0].type == "user"
    assert len(new) > 1


@pytest.mark.asyncio
async def test_reveal_cards_survive_the_turn(content) -> None:
    """Teste que les cartes de la phase de révélation traversée restent proposées."""
    service = _service(content)
    await service.dispatch(Start())
    await service.dispatch(UserInput(text="March 15, 1990"))
    assert service.phase == ConversationPhase.COLLECTING_NAME
    assert service.static_suggestions() == FIRST_REVEAL_CARDS
    assert await service.suggestions() == FIRST_REVEAL_CARDS
    types = [m.type for m in service.messages]
    assert "calculation" in types
    assert "number-reveal" in types


@pytest.mark.asyncio
async def test_tease_cards_offered_while_collecting_email(content) -> None:
    """Teste les cartes du teaser de compatibilité alors que l'email n'affiche pas les siennes."""
    service = _service(content)
    for event in (
        Start(),
        UserInput(text="March 15, 1990"),
        UserInput(text="Barack Obama"),
        UserInput(text="Michelle"),
        UserInput(text="July 4, 1992"),
    ):
        await service.dispatch(event)
    assert service.phase == ConversationPhase.COLLECTING_EMAIL
    assert service.static_suggestions() == COMPATIBILITY_TEASE_CARDS
    assert await service.suggestions() == COMPATIBILITY_TEASE_CARDS


@pytest.mark.asyncio
async def test_generated_suggestions_when_enhancer_available(content) -> None:
    llm = FakeLLM(response="1. Ana Lima\n2. Ana Maria Lima")
    service = _service(content, enhancer=EnhancementGateway(llm))
    await service.dispatch(Start())
    await service.dispatch(UserInput(text="March 15, 1990"))
    assert await service.suggestions() == ["Ana Lima", "Ana Maria Lima"]
    assert "What is your full birth name?" in llm.calls[-1][1]["content"]


@pytest.mark.asyncio
async def test_paywall_cards_are_static_and_purchase(content) -> None:
    """Teste les cartes fixes du paywall puis l'achat et son compteur."""
    service = _service(content, enhancer=EnhancementGateway(FakeLLM()))
    for event in (
        Start(),
        UserInput(text="March 15, 1990"),
        UserInput(text="Ana Lima"),
        SuggestionSelected(text=SKIP_RELATIONSHIP),
        UserInput(text="ana@example.com"),
    ):
        await service.dispatch(event)
    assert service.phase == ConversationPhase.PERSONAL_PAYWALL
    assert await service.suggestions() == ["Unlock My Complete Reading", "Maybe later"]

    before = _sample("oracle_purchases_total", {"tier": "3"})
    state = await service.dispatch(Purchase(tier=3))
    assert state.has_paid
    assert service.phase == ConversationPhase.PAID_READING
    assert _sample("oracle_purchases_total", {"tier": "3"}) == before + 1


@pytest.mark.asyncio
async def test_rejected_event_leaves_state(content) -> None:
    service = _service(content)
    await service.dispatch(Start())
    state = service.state
    with pytest.raises(InvalidEventError):
        await service.dispatch(Purchase(tier=1))
    assert service.state == state


@pytest.mark.asyncio
async def test_cancelled_session_appends_nothing(content) -> None:
    service = _service(content)
    service.cancel()
    await service.dispatch(Start())
    assert service.messages == []
    assert service.phase == ConversationPhase.OPENING


def test_oracle_context_from_profile(content) -> None:
    service = _service(content)
    assert service.oracle_context().life_path is None


def test_session_repo_delete_cancels(content) -> None:
    repo = InMemorySessionRepo()
    service = repo.save(_service(content))
    assert repo.get(service.id) is service
    assert len(repo) == 1
    assert repo.delete(service.id) is service
    assert service.driver.cancelled
    assert repo.get(service.id) is None
    assert repo.delete(service.id) is None


class _Clock:
    """Horloge manuelle pour le dépôt de sessions."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_session_repo_evicts_idle_sessions(content) -> None:
    """Teste l'éviction des sessions inactives, et le rafraîchissement à l'accès."""
    clock = _Clock()
    repo = InMemorySessionRepo(ttl_s=SESSION_TTL_S, clock=clock)
    idle = repo.save(_service(content))
    active = repo.save(_service(content))
    clock.now = SESSION_TTL_S - 1
    assert repo.get(active.id) is active
    clock.now = SESSION_TTL_S + 1
    assert repo.get(idle.id) is None
    assert idle.driver.cancelled
    assert repo.get(active.id) is active
    assert len(repo) == 1


def test_session_repo_save_sweeps_expired(content) -> None:
    clock = _Clock()
    repo = InMemorySessionRepo(ttl_s=SESSION_TTL_S, clock=clock)
    repo.save(_service(content))
    clock.now = SESSION_TTL_S * 2
    fresh = repo.save(_service(content))
    assert len(repo) == 1
    assert repo.get(fresh.id) is fresh
