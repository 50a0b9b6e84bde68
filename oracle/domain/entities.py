"""
Entités du domaine métier.

Ce module définit les modèles de données principaux de la conversation: profils, messages,
contexte de validation et erreurs de contrat.
"""

from __future__ import annotations

import time
from datetime import date
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from oracle.domain.numerology import CompatibilityAreas
from oracle.domain.phases import ConversationPhase

MessageType = Literal[
    "oracle", "user", "system", "number-reveal", "calculation", "letter-transform"
]
ExpectedInput = Literal["date", "name", "email", "freeform"]
ValidationErrorCode = Literal[
    "EMPTY_INPUT",
    "UNRECOGNIZED_FORMAT",
    "INVALID_MONTH",
    "INVALID_DAY",
    "INVALID_YEAR",
    "IMPOSSIBLE_DATE",
    "FUTURE_DATE",
    "INVALID_FORMAT",
    "TOO_SHORT",
    "INVALID_CHARACTERS",
    "OFF_TOPIC",
]


class OracleError(Exception):
    """Erreur de base du domaine."""


class ProfileIncompleteError(OracleError):
    """Un nombre dérivé est demandé avant que sa donnée source ne soit connue."""

    def __init__(self, missing: str) -> None:
        super().__init__(f"profile field required: {missing}")
        self.missing = missing


class InvalidEventError(OracleError):
    """Événement impossible à appliquer (palier d'achat inconnu, etc.)."""


def _new_message_id() -> str:
    return f"msg-{uuid4().hex[:12]}"


class Message(BaseModel):
    """Message affiché; jamais modifié une fois ajouté à la conversation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_message_id)
    type: MessageType
    content: str
    timestamp: float = Field(default_factory=time.time)
    metadata: dict[str, Any] = Field(default_factory=dict)


class UserProfile(BaseModel):
    """Profil du visiteur; `dob` et `full_name` ne changent plus une fois posés."""

    model_config = ConfigDict(frozen=True)

    dob: date | None = None
    full_name: str | None = None
    email: str | None = None
    life_path: int | None = None
    expression: int | None = None
    soul_urge: int | None = None
    personality: int | None = None
    birthday_number: int | None = None

    @property
    def first_name(self) -> str | None:
        if not self.full_name:
            return None
        return self.full_name.split(" ")[0]

    def require_life_path(self) -> int:
        if self.life_path is None:
            raise ProfileIncompleteError("life_path")
        return self.life_path

    def require_dob(self) -> date:
        if self.dob is None:
            raise ProfileIncompleteError("dob")
        return self.dob


class OtherPerson(BaseModel):
    """Seconde personne introduite en cours de parcours."""

    model_config = ConfigDict(frozen=True)

    name: str
    dob: date | None = None
    life_path: int | None = None


class ValidationContext(BaseModel):
    """Contexte transitoire d'un échec de saisie (consommé dans le même tour)."""

    model_config = ConfigDict(frozen=True)

    phase: ConversationPhase
    error_code: ValidationErrorCode
    original_input: str
    expected_input: ExpectedInput
    user_name: str | None = None
    life_path: int | None = None


class OracleContext(BaseModel):
    """Nombres et noms transmis à la passerelle d'enrichissement."""

    model_config = ConfigDict(frozen=True)

    life_path: int | None = None
    expression: int | None = None
    soul_urge: int | None = None
    personality: int | None = None
    birthday_number: int | None = None
    user_name: str | None = None
    other_person_name: str | None = None
    other_life_path: int | None = None
    compatibility_score: int | None = None
    compatibility_level: str | None = None


# Demandes de personnalisation de la lecture payante (un mode de la passerelle chacune)
NumberType = Literal["lifePath", "expression", "soulUrge", "compatibility"]


class InterpretRequest(BaseModel):
    """Interprétation personnelle d'un nombre, à partir de l'archétype fixe."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["interpret"] = "interpret"
    number_type: NumberType = "lifePath"
    number: int
    name: str
    short_description: str
    core_description: str


class CriticalDateRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["criticalDate"] = "criticalDate"
    date: str
    type: str
    base_description: str


class YearAheadRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["yearAhead"] = "yearAhead"
    personal_year: int
    theme: str | None = None
    months: int | None = None


class RelationshipAdviceRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["relationshipAdvice"] = "relationshipAdvice"
    other_name: str
    other_life_path: int
    compatibility_score: int
    compatibility_level: str
    areas: CompatibilityAreas


PersonalizeRequest = (
    InterpretRequest | CriticalDateRequest | YearAheadRequest | RelationshipAdviceRequest
)
