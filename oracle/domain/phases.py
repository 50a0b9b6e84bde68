"""
Registre des phases de conversation.

Chaque phase possède exactement une configuration d'interface (saisie visible, suggestions,
type de validation...). L'ordre linéaire `PHASE_ORDER` est indicatif: les transitions réelles
sont décidées par l'orchestrateur.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

InputType = Literal["text", "email", "date", "name", "none"]
ValidationType = Literal["date", "email", "name", "freeform", "none"]


class ConversationPhase(str, Enum):
    """Étapes nommées du parcours scripté."""

    OPENING = "opening"
    COLLECTING_DOB = "collecting_dob"
    FIRST_REVEAL = "first_reveal"
    REVEALING_BIRTH_NUMBERS = "revealing_birth_numbers"
    FILLER_BIRTH = "filler_birth"
    REVEALING_LIFE_PATH = "revealing_life_path"
    ORACLE_QUESTION_1 = "oracle_question_1"
    FILLER_TO_EXPRESSION = "filler_to_expression"
    COLLECTING_NAME = "collecting_name"
    DEEPER_REVEAL = "deeper_reveal"
    REVEALING_EXPRESSION = "revealing_expression"
    ORACLE_QUESTION_2 = "oracle_question_2"
    FILLER_TO_SOUL_URGE = "filler_to_soul_urge"
    REVEALING_SOUL_URGE = "revealing_soul_urge"
    ORACLE_QUESTION_OTHER_PERSON = "oracle_question_other_person"
    RELATIONSHIP_HOOK = "relationship_hook"
    COLLECTING_OTHER_INFO = "collecting_other_info"
    FILLER_RELATIONSHIP = "filler_relationship"
    ORACLE_QUESTION_RELATIONSHIP = "oracle_question_relationship"
    COLLECTING_OTHER_DOB = "collecting_other_dob"
    COMPATIBILITY_TEASE = "compatibility_tease"
    FILLER_COMPATIBILITY = "filler_compatibility"
    REVEALING_COMPATIBILITY = "revealing_compatibility"
    COLLECTING_EMAIL = "collecting_email"
    PREPARING_REPORT = "preparing_report"
    ORACLE_FINAL_QUESTION = "oracle_final_question"
    PERSONAL_PAYWALL = "personal_paywall"
    PAYWALL = "paywall"
    PAID_READING = "paid_reading"


@dataclass(frozen=True)
class PhaseConfig:
    """Configuration immuable d'une phase (visibilité de la saisie, validation, etc.)."""

    show_input: bool
    show_suggestions: bool
    input_type: InputType
    placeholder: str
    validation: ValidationType
    oracle_speaking: bool
    expects_response: bool
    description: str
    helper_text: str | None = None


_DATE_HELPER = 'e.g., "March 15, 1990" or "3/15/1990"'
_RESPONSE_PLACEHOLDER = "Type your response..."


def _speaking(description: str) -> PhaseConfig:
    """Phase de narration: aucune saisie, l'Oracle parle."""
    return PhaseConfig(
        show_input=False,
        show_suggestions=False,
        input_type="none",
        placeholder="",
        validation="none",
        oracle_speaking=True,
        expects_response=False,
        description=description,
    )


def _question(description: str) -> PhaseConfig:
    """Question ouverte de l'Oracle: réponse libre avec suggestions."""
    return PhaseConfig(
        show_input=True,
        show_suggestions=True,
        input_type="text",
        placeholder=_RESPONSE_PLACEHOLDER,
        validation="freeform",
        oracle_speaking=False,
        expects_response=True,
        description=description,
    )


P = ConversationPhase

PHASE_CONFIGS: dict[ConversationPhase, PhaseConfig] = {
    P.OPENING: _speaking("Oracle opens with mystical hook"),
    P.COLLECTING_DOB: PhaseConfig(
        show_input=True,
        show_suggestions=True,
        input_type="date",
        placeholder="Type your birthday (e.g., March 15, 1990)...",
        helper_text=_DATE_HELPER,
        validation="date",
        oracle_speaking=False,
        expects_response=True,
        description="Collecting user birth date",
    ),
    P.FIRST_REVEAL: _speaking("Life Path delivery right after the birth date"),
    P.REVEALING_BIRTH_NUMBERS: _speaking("Calculation animation for birth numbers"),
    P.FILLER_BIRTH: _speaking("Oracle builds anticipation after birth number reveal"),
    P.REVEALING_LIFE_PATH: _speaking("Life Path number reveal with visualization"),
    P.ORACLE_QUESTION_1: _question("Oracle asks engaging question about life path"),
    P.FILLER_TO_EXPRESSION: _speaking("Oracle transitions to Expression number"),
    P.COLLECTING_NAME: PhaseConfig(
        show_input=True,
        show_suggestions=True,
        input_type="name",
        placeholder="Enter your full birth name...",
        helper_text="Use the name on your birth certificate",
        validation="name",
        oracle_speaking=False,
        expects_response=True,
        description="Collecting user full birth name",
    ),
    P.DEEPER_REVEAL: _speaking("Expression and Soul Urge delivery after the name"),
    P.REVEALING_EXPRESSION: _speaking("Expression number reveal with letter visualization"),
    P.ORACLE_QUESTION_2: _question("Oracle asks about talents and expression"),
    P.FILLER_TO_SOUL_URGE: _speaking("Oracle transitions to Soul Urge number"),
    P.REVEALING_SOUL_URGE: _speaking("Soul Urge number reveal"),
    P.ORACLE_QUESTION_OTHER_PERSON: _question("Oracle asks about someone on their mind"),
    P.RELATIONSHIP_HOOK: PhaseConfig(
        show_input=True,
        show_suggestions=True,
        input_type="text",
        placeholder="Type their name, or skip...",
        validation="freeform",
        oracle_speaking=False,
        expects_response=True,
        description="Oracle invites the user to name someone on their mind",
    ),
    P.COLLECTING_OTHER_INFO: PhaseConfig(
        show_input=True,
        show_suggestions=True,
        input_type="name",
        placeholder="Enter their name...",
        validation="name",
        oracle_speaking=False,
        expects_response=True,
        description="Collecting other person name",
    ),
    P.FILLER_RELATIONSHIP: _speaking("Oracle builds intrigue about the connection"),
    P.ORACLE_QUESTION_RELATIONSHIP: _question("Oracle asks about the relationship"),
    P.COLLECTING_OTHER_DOB: PhaseConfig(
        show_input=True,
        show_suggestions=True,
        input_type="date",
        placeholder="Type their birthday...",
        helper_text=_DATE_HELPER,
        validation="date",
        oracle_speaking=False,
        expects_response=True,
        description="Collecting other person birth date",
    ),
    P.COMPATIBILITY_TEASE: _speaking("Compatibility score teased before the email"),
    P.FILLER_COMPATIBILITY: _speaking("Oracle builds anticipation for compatibility reveal"),
    P.REVEALING_COMPATIBILITY: _speaking("Compatibility reveal with dual orb visualization"),
    P.COLLECTING_EMAIL: PhaseConfig(
        show_input=True,
        show_suggestions=False,
        input_type="email",
        placeholder="Enter your email address...",
        helper_text="Your reading will be saved and sent to this address",
        validation="email",
        oracle_speaking=False,
        expects_response=True,
        description="Collecting user email",
    ),
    P.PREPARING_REPORT: _speaking("Oracle prepares the full report"),
    P.ORACLE_FINAL_QUESTION: _question("Oracle asks final engaging question before paywall"),
    P.PERSONAL_PAYWALL: PhaseConfig(
        show_input=False,
        show_suggestions=True,
        input_type="none",
        placeholder="",
        validation="none",
        oracle_speaking=False,
        expects_response=False,
        description="Paywall for a personal-only reading",
    ),
    P.PAYWALL: PhaseConfig(
        show_input=False,
        show_suggestions=True,
        input_type="none",
        placeholder="",
        validation="none",
        oracle_speaking=False,
        expects_response=False,
        description="Paywall with unlock options",
    ),
    P.PAID_READING: PhaseConfig(
        show_input=True,
        show_suggestions=True,
        input_type="text",
        placeholder="Ask the Oracle anything...",
        validation="freeform",
        oracle_speaking=False,
        expects_response=True,
        description="Full paid reading experience",
    ),
}

PHASE_ORDER: tuple[ConversationPhase, ...] = tuple(ConversationPhase)

_missing = set(ConversationPhase) - set(PHASE_CONFIGS)
if _missing:  # pragma: no cover - garde-fou au chargement du module
    raise RuntimeError(f"phases without config: {sorted(p.value for p in _missing)}")


def get_phase_config(phase: ConversationPhase) -> PhaseConfig:
    return PHASE_CONFIGS[ConversationPhase(phase)]


def should_show_input(phase: ConversationPhase) -> bool:
    return get_phase_config(phase).show_input


def should_show_suggestions(phase: ConversationPhase) -> bool:
    return get_phase_config(phase).show_suggestions


def get_validation_type(phase: ConversationPhase) -> ValidationType:
    return get_phase_config(phase).validation


def is_oracle_speaking(phase: ConversationPhase) -> bool:
    """Vrai si l'Oracle parle (aucune interruption acceptée)."""
    return get_phase_config(phase).oracle_speaking


def get_next_phase(phase: ConversationPhase) -> ConversationPhase | None:
    """Phase suivante dans `PHASE_ORDER`, ou None pour la dernière (indicatif)."""
    index = PHASE_ORDER.index(ConversationPhase(phase))
    if index == len(PHASE_ORDER) - 1:
        return None
    return PHASE_ORDER[index + 1]
