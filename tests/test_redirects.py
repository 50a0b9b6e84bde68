"""Tests pour le générateur de redirections."""

from __future__ import annotations

import pytest

from oracle.domain.entities import ValidationContext
from oracle.domain.phases import ConversationPhase
from oracle.domain.redirects import (
    fallback_messages,
    generate_redirect,
    phase_redirect_messages,
)
from oracle.infra.enhancement import EnhancementGateway
from tests.fakes import FakeLLM


def _ctx(code="OFF_TOPIC", expected="date", text="pizza") -> ValidationContext:
    return ValidationContext(
        phase=ConversationPhase.COLLECTING_DOB,
        error_code=code,
        original_input=text,
        expected_input=expected,
        user_name="Ana",
        life_path=7,
    )


def test_fallback_table_entry() -> None:
    messages = fallback_messages("FUTURE_DATE", "date")
    assert messages[0].startswith("Ah, a time traveler?")
    assert len(messages) == 2


def test_fallback_generic_for_unknown_pair() -> None:
    """Teste le repli générique: deux lignes terminées par la question attendue."""
    messages = fallback_messages("TOO_SHORT", "email")
    assert messages == [
        "Something in your words doesn't quite align with what I'm seeking...",
        "Where should I send your complete reading?",
    ]


def test_fallback_is_a_copy() -> None:
    fallback_messages("OFF_TOPIC", "date").append("mutated")
    assert "mutated" not in fallback_messages("OFF_TOPIC", "date")


def test_phase_redirect_messages_default() -> None:
    assert phase_redirect_messages(ConversationPhase.PAID_READING) == [
        "I hear you.",
        "Let us continue with the reading.",
    ]
    assert phase_redirect_messages(ConversationPhase.COLLECTING_EMAIL)[1].startswith("But first")


@pytest.mark.asyncio
async def test_generate_redirect_without_enhancer() -> None:
    assert await generate_redirect(_ctx()) == fallback_messages("OFF_TOPIC", "date")


@pytest.mark.asyncio
async def test_generate_redirect_enhanced() -> None:
    """Teste le chemin principal: réécriture en mode validation."""
    llm = FakeLLM()
    out = await generate_redirect(_ctx(), EnhancementGateway(llm))
    assert out == ["FAKE_ONE", "FAKE_TWO"]
    assert "pizza" in llm.calls[0][1]["content"]


@pytest.mark.asyncio
async def test_generate_redirect_enhancer_failure_uses_table() -> None:
    gateway = EnhancementGateway(FakeLLM(error=RuntimeError("down")))
    out = await generate_redirect(_ctx("INVALID_MONTH"), gateway)
    assert out == fallback_messages("INVALID_MONTH", "date")
