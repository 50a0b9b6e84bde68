"""
Interprétations et textes de lecture.

Les archétypes (Chemins de vie), thèmes d'année personnelle et cartes de suggestions
proviennent d'un dépôt de contenus JSON; ce module définit leurs modèles et les textes
fixes de la lecture payante (repli des passages personnalisés).
"""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict

from oracle.domain.numerology import CompatibilityLevel, CompatibilityResult
from oracle.domain.phases import ConversationPhase


class LifePathInterpretation(BaseModel):
    """Archétype d'un Chemin de vie."""

    model_config = ConfigDict(frozen=True)

    number: int
    name: str
    short_description: str
    core_description: str
    strengths: list[str]
    challenges: list[str]
    love_overview: str
    careers: list[str]
    famous_people: list[str]


class PurchaseTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    price: int
    description: str


class ContentRepository(Protocol):
    """Source des contenus éditoriaux utilisés par l'orchestrateur."""

    def get_life_path(self, number: int) -> LifePathInterpretation | None: ...

    def personal_year_theme(self, year: int) -> str: ...

    def life_path_name(self, number: int) -> str: ...

    def suggestions_for(
        self,
        phase: ConversationPhase,
        user_name: str | None = None,
        other_name: str | None = None,
    ) -> list[str]: ...


PURCHASE_TIERS: dict[int, PurchaseTier] = {
    1: PurchaseTier(
        id=1,
        name="Personal Deep Dive",
        price=9,
        description="Your complete numerology profile",
    ),
    2: PurchaseTier(
        id=2,
        name="Relationship Matrix",
        price=19,
        description="Unlock your compatibility secrets",
    ),
    3: PurchaseTier(
        id=3,
        name="Inner Circle",
        price=29,
        description="Understand all your relationships",
    ),
}

_LEVEL_ADVICE: dict[CompatibilityLevel, str] = {
    "high": (
        "This connection has powerful potential. The numbers suggest a deep, lasting bond "
        "if nurtured with intention."
    ),
    "moderate": (
        "This pairing offers growth through both harmony and healthy friction. "
        "Communication will be your greatest tool."
    ),
    "challenging": (
        "This connection challenges you both to evolve. The friction you feel can become "
        "the fire that forges strength."
    ),
}


def area_descriptor(score: int) -> str:
    if score >= 80:
        return "Exceptional alignment"
    if score >= 60:
        return "Strong potential"
    if score >= 40:
        return "Requires awareness"
    return "Challenging but growthful"


def compatibility_advice(level: CompatibilityLevel) -> str:
    return _LEVEL_ADVICE[level]


def score_reaction(score: int) -> str:
    """Réaction de l'Oracle au score global annoncé."""
    if score >= 70:
        return "That's not low. There's real potential here."
    if score >= 50:
        return "That's not low. But it's not simple either."
    return "That's challenging. But not impossible."


def compatibility_breakdown(other_name: str, result: CompatibilityResult) -> list[str]:
    """Scores détaillés livrés après achat (le conseil de niveau suit à part)."""
    areas = result.areas
    return [
        "The veil is lifted...",
        f"Your compatibility with {other_name} reveals itself.",
        f"Overall Harmony: {result.score}%",
        f"Communication: {areas.communication}% - {area_descriptor(areas.communication)}",
        f"Emotional Connection: {areas.emotional}% - {area_descriptor(areas.emotional)}",
        f"Physical Chemistry: {areas.physical}% - {area_descriptor(areas.physical)}",
        f"Long-term Potential: {areas.long_term}% - {area_descriptor(areas.long_term)}",
    ]


def interpretation_lines(interp: LifePathInterpretation) -> list[str]:
    """Titre, description courte et description profonde de l'archétype."""
    return [
        f"Life Path {interp.number}. {interp.name}.",
        interp.short_description,
        interp.core_description,
    ]


def personal_reading(interp: LifePathInterpretation) -> list[str]:
    """Dons, ombres et voies de la lecture personnelle."""
    return [
        f"Your gifts: {', '.join(interp.strengths[:3])}.",
        f"Your shadows: {' and '.join(interp.challenges[:2])}.",
        f"Paths that honor your nature: {', '.join(interp.careers[:3])}.",
    ]


def year_ahead_lines(personal_year: int, theme: str) -> list[str]:
    return [
        f"Your Personal Year {personal_year} brings a time of {theme}.",
        "New opportunities aligned with your life path will emerge.",
        "Stay aware of your tendencies and navigate challenges with wisdom.",
    ]


def critical_date_description(kind: str, personal_year: int | None, theme: str | None) -> str:
    """Sens fixe d'une date clé (anniversaire, bascule d'année, croisement de deux chemins)."""
    if kind == "birthday":
        return f"Your birthday opens a Personal Year {personal_year}, a cycle of {theme}."
    if kind == "personal year shift":
        return f"Your Personal Year {personal_year} begins, bringing {theme}."
    return "Your paths cross on this day. What you begin together carries weight."
