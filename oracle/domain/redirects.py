"""
Générateur de redirections "dans la voix de l'Oracle".

Un échec de saisie produit une courte séquence de messages qui ramène l'utilisateur vers la
donnée attendue. Le chemin principal passe par la passerelle d'enrichissement (mode
`validation`); la table statique ci-dessous sert de messages de base et de repli.
"""

from __future__ import annotations

from typing import Protocol

import structlog

from oracle.domain.entities import (
    ExpectedInput,
    OracleContext,
    ValidationContext,
    ValidationErrorCode,
)
from oracle.domain.phases import ConversationPhase
from oracle.infra.enhancement import ValidationInfo

log = structlog.get_logger(__name__).bind(component="redirects")

_FALLBACKS: dict[ValidationErrorCode, dict[ExpectedInput, list[str]]] = {
    "OFF_TOPIC": {
        "date": [
            "Ah, your spirit is playful today... "
            "I sense something beyond the ordinary in your words.",
            "But to unlock your cosmic truth, I need the moment you entered this world. "
            "When were you born?",
        ],
        "name": [
            "I sense energy in what you've shared...",
            "But to truly see you, I need the name given to you at birth. "
            "What is your full birth name?",
        ],
        "email": [
            "Your thoughts drift to other places...",
            "To preserve your reading, I need a way to reach you. What is your email?",
        ],
        "freeform": [
            "I feel the wandering of your mind...",
            "Let us return to the path. Tell me what weighs on your heart.",
        ],
    },
    "EMPTY_INPUT": {
        "date": [
            "The silence speaks... but I cannot read what is not given.",
            "Share with me your birth date, and the numbers shall reveal their secrets.",
        ],
        "name": [
            "Without your name, I am looking into mist...",
            "Tell me the name you were given at birth.",
        ],
        "email": ["I await your answer...", "Where shall I send your complete reading?"],
        "freeform": ["The silence stretches between us...", "What would you like to know?"],
    },
    "UNRECOGNIZED_FORMAT": {
        "date": [
            "The numbers in your message shimmer, but their pattern eludes me...",
            "Try sharing your birthday like this: March 15, 1990",
        ],
    },
    "INVALID_MONTH": {
        "date": [
            "I see the numbers, but the month doesn't align with the celestial calendar...",
            "Please share a month between January and December.",
        ],
    },
    "INVALID_DAY": {
        "date": [
            "The day you've shared doesn't exist in our earthly realm...",
            "Please share a day between 1 and 31.",
        ],
    },
    "INVALID_YEAR": {
        "date": [
            "That year lies beyond the boundaries I can see...",
            "Please share a year between 1900 and now.",
        ],
    },
    "IMPOSSIBLE_DATE": {
        "date": [
            "That date... it exists in no calendar I know.",
            "Perhaps February 30th in your universe? Here, I need a date that truly exists.",
        ],
    },
    "FUTURE_DATE": {
        "date": [
            "Ah, a time traveler? That date hasn't happened yet in this realm...",
            "I need the date of your past arrival, not a future journey.",
        ],
    },
    "INVALID_FORMAT": {
        "date": [
            "I see fragments, but they don't form a complete date...",
            "Try something like 'March 15, 1990' or '3/15/1990'.",
        ],
        "name": [
            "Names hold power, but this one seems incomplete...",
            "Please share your full birth name.",
        ],
        "email": [
            "I need a proper channel to reach you...",
            "Please enter a valid email address.",
        ],
    },
    "TOO_SHORT": {
        "name": [
            "A name with such brevity? Surely there's more...",
            "Please share your complete birth name.",
        ],
    },
    "INVALID_CHARACTERS": {
        "name": [
            "I see symbols that don't belong in a name...",
            "Please use only letters in your birth name.",
        ],
    },
}

_ASK_AGAIN: dict[ExpectedInput, str] = {
    "date": "When were you born? Share your birthday with me.",
    "name": "What is your full birth name?",
    "email": "Where should I send your complete reading?",
    "freeform": "What would you like to explore?",
}

# Réponses aux saisies hors script dans les phases sans validation
_PHASE_REDIRECTS: dict[ConversationPhase, list[str]] = {
    ConversationPhase.COLLECTING_DOB: [
        "I sense your curiosity...",
        "But first, I need your birth date to begin the reading.",
    ],
    ConversationPhase.COLLECTING_NAME: [
        "Your question reveals much about you already.",
        "To answer fully, I need to know your complete birth name.",
    ],
    ConversationPhase.FIRST_REVEAL: [
        "Patience... the numbers are still revealing themselves.",
        "Let me complete what I see before we explore further.",
    ],
    ConversationPhase.DEEPER_REVEAL: [
        "Your eagerness speaks to your Life Path.",
        "Let me finish painting this picture for you.",
    ],
    ConversationPhase.RELATIONSHIP_HOOK: [
        "That touches on what I wish to explore next.",
        "First, tell me - is there someone whose connection to you feels... significant?",
    ],
    ConversationPhase.COLLECTING_OTHER_DOB: [
        "All will be revealed in time.",
        "For now, I need their birth date to see the full pattern.",
    ],
    ConversationPhase.COLLECTING_EMAIL: [
        "I hear you.",
        "But first, where should I send your reading?",
    ],
}
_DEFAULT_PHASE_REDIRECT = ["I hear you.", "Let us continue with the reading."]


class RedirectEnhancer(Protocol):
    """Sous-ensemble de la passerelle d'enrichissement utilisé ici."""

    async def enhance(self, mode, context, phase, base_messages, **kwargs) -> list[str]: ...


def fallback_messages(error_code: ValidationErrorCode, expected_input: ExpectedInput) -> list[str]:
    """Séquence statique pour `(code, saisie attendue)`, ou repli générique en deux lignes."""
    messages = _FALLBACKS.get(error_code, {}).get(expected_input)
    if messages:
        return list(messages)
    return [
        "Something in your words doesn't quite align with what I'm seeking...",
        _ASK_AGAIN[expected_input],
    ]


def phase_redirect_messages(phase: ConversationPhase) -> list[str]:
    """Accusé de réception + retour au fil pour une saisie libre hors collecte."""
    return list(_PHASE_REDIRECTS.get(ConversationPhase(phase), _DEFAULT_PHASE_REDIRECT))


async def generate_redirect(
    ctx: ValidationContext, enhancer: RedirectEnhancer | None = None
) -> list[str]:
    """
    Produit la séquence de redirection pour un échec de saisie.

    Args:
        ctx: Contexte de l'échec.
        enhancer: Passerelle d'enrichissement; absente, la table statique est utilisée.

    Returns:
        list[str]: au moins un message, jamais de texte technique.
    """
    base = fallback_messages(ctx.error_code, ctx.expected_input)
    log.debug(
        "redirect_requested",
        phase=ctx.phase.value,
        error_code=ctx.error_code,
        expected=ctx.expected_input,
    )
    if enhancer is None:
        return base
    messages = await enhancer.enhance(
        "validation",
        OracleContext(user_name=ctx.user_name, life_path=ctx.life_path),
        ctx.phase.value,
        base,
        validation=ValidationInfo(
            error_code=ctx.error_code,
            original_input=ctx.original_input,
            expected_input=ctx.expected_input,
        ),
    )
    return messages or base
