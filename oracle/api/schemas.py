# Schémas Pydantic exposés par l'API (requêtes et réponses).

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from oracle.domain.entities import (
    CriticalDateRequest,
    ExpectedInput,
    InterpretRequest,
    Message,
    NumberType,
    OracleContext,
    OtherPerson,
    RelationshipAdviceRequest,
    UserProfile,
    YearAheadRequest,
)
from oracle.domain.numerology import CompatibilityAreas, CompatibilityResult


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OracleContextIn(_Camel):
    """Contexte numérique transmis par le client (clés camelCase)."""

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

    def to_domain(self) -> OracleContext:
        return OracleContext(**self.model_dump())


class ValidationIn(_Camel):
    error_code: str
    original_input: str
    expected_input: ExpectedInput


class SuggestionsIn(_Camel):
    oracle_question: str
    count: int = Field(default=3, ge=1, le=4)


class BaseInterpretationIn(_Camel):
    name: str
    short_description: str
    core_description: str


class InterpretIn(_Camel):
    number_type: NumberType = "lifePath"
    number: int
    base_interpretation: BaseInterpretationIn

    def to_domain(self) -> InterpretRequest:
        base = self.base_interpretation
        return InterpretRequest(
            number_type=self.number_type,
            number=self.number,
            name=base.name,
            short_description=base.short_description,
            core_description=base.core_description,
        )


class CriticalDateIn(_Camel):
    date: str
    type: str
    base_description: str

    def to_domain(self) -> CriticalDateRequest:
        return CriticalDateRequest(
            date=self.date, type=self.type, base_description=self.base_description
        )


class YearAheadIn(_Camel):
    personal_year: int
    months: int | None = None

    def to_domain(self) -> YearAheadRequest:
        return YearAheadRequest(personal_year=self.personal_year, months=self.months)


class AreasIn(_Camel):
    communication: int
    emotional: int
    physical: int
    long_term: int


class RelationshipAdviceIn(_Camel):
    other_name: str
    other_life_path: int
    compatibility_score: int
    compatibility_level: str
    areas: AreasIn

    def to_domain(self) -> RelationshipAdviceRequest:
        return RelationshipAdviceRequest(
            other_name=self.other_name,
            other_life_path=self.other_life_path,
            compatibility_score=self.compatibility_score,
            compatibility_level=self.compatibility_level,
            areas=CompatibilityAreas(**self.areas.model_dump()),
        )


PersonalizeMode = Literal["interpret", "criticalDate", "yearAhead", "relationshipAdvice"]
# Champ de la requête portant la demande de chaque mode de personnalisation
PAYLOAD_FIELDS: dict[str, str] = {
    "interpret": "interpret",
    "criticalDate": "critical_date",
    "yearAhead": "year_ahead",
    "relationshipAdvice": "relationship_advice",
}


class OracleRequest(_Camel):
    """Requête d'enrichissement.

    Champs:
    - mode: enhance | validation | suggestions | interpret | criticalDate | yearAhead |
      relationshipAdvice
    - context: nombres et noms connus
    - phase: phase courante
    - base_messages (`baseMessages`): messages de repli, renvoyés tels quels en cas d'échec
    - user_input, validation, suggestions, interpret, critical_date, year_ahead,
      relationship_advice: compléments selon le mode (obligatoires pour la personnalisation)
    """

    mode: Literal["enhance", "validation", "suggestions"] | PersonalizeMode = "enhance"
    context: OracleContextIn = Field(default_factory=OracleContextIn)
    phase: str = ""
    base_messages: list[str] = Field(default_factory=list)
    user_input: str | None = None
    validation: ValidationIn | None = None
    suggestions: SuggestionsIn | None = None
    interpret: InterpretIn | None = None
    critical_date: CriticalDateIn | None = None
    year_ahead: YearAheadIn | None = None
    relationship_advice: RelationshipAdviceIn | None = None

    @model_validator(mode="after")
    def _payload_for_mode(self) -> "OracleRequest":
        field = PAYLOAD_FIELDS.get(self.mode)
        if field is not None and getattr(self, field) is None:
            raise ValueError(f"mode {self.mode} requires {to_camel(field)}")
        return self

    def personalize_request(self):
        field = PAYLOAD_FIELDS.get(self.mode)
        return getattr(self, field).to_domain() if field else None


class InterpretationOut(_Camel):
    title: str
    short_description: str
    core_description: str


class PredictionOut(BaseModel):
    theme: str
    opportunities: str
    challenges: str
    full: str


class AdviceOut(BaseModel):
    full: str


class OracleResponse(BaseModel):
    messages: list[str] | None = None
    suggestions: list[str] | None = None
    interpretation: InterpretationOut | None = None
    explanation: str | None = None
    prediction: PredictionOut | None = None
    advice: AdviceOut | None = None


class SpeechRequest(BaseModel):
    # Validé par la route: un texte absent ou vide donne 400, pas 422
    text: Any = None


class TextIn(BaseModel):
    text: str


class PurchaseIn(BaseModel):
    tier: int


class PhaseInput(BaseModel):
    """Configuration d'interface de la phase courante."""

    show_input: bool
    show_suggestions: bool
    input_type: str
    placeholder: str
    helper_text: str | None = None
    validation: str
    oracle_speaking: bool
    expects_response: bool


class SessionSnapshot(BaseModel):
    """État d'une session tel que présenté au client."""

    id: str
    phase: str
    input: PhaseInput
    messages: list[Message]
    profile: UserProfile
    other_person: OtherPerson | None = None
    compatibility: CompatibilityResult | None = None
    has_paid: bool = False
    paid_tier: int | None = None
    suggestions: list[str] = Field(default_factory=list)
