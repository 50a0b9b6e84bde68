"""
Moteur de numérologie (fonctions pures, sans I/O).

Calcule les nombres classiques (Chemin de vie, Expression, Élan spirituel, Personnalité,
Anniversaire, Année personnelle) et un score de compatibilité entre deux Chemins de vie.

Les nombres maîtres (11, 22, 33) ne sont jamais réduits davantage.
"""

from __future__ import annotations

import hashlib
import random
import unicodedata
from collections.abc import Callable
from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MASTER_NUMBERS = frozenset({11, 22, 33})

LETTER_VALUES: dict[str, int] = {
    **dict.fromkeys("AJS", 1),
    **dict.fromkeys("BKT", 2),
    **dict.fromkeys("CLU", 3),
    **dict.fromkeys("DMV", 4),
    **dict.fromkeys("ENW", 5),
    **dict.fromkeys("FOX", 6),
    **dict.fromkeys("GPY", 7),
    **dict.fromkeys("HQZ", 8),
    **dict.fromkeys("IR", 9),
}

VOWELS = frozenset("AEIOU")

# Partenaires naturels / relations difficiles (lus dans les deux sens)
NATURAL_PARTNERS: dict[int, tuple[int, ...]] = {
    1: (3, 5, 6),
    2: (4, 6, 8),
    3: (1, 5, 9),
    4: (2, 6, 8),
    5: (1, 3, 7),
    6: (1, 2, 4, 9),
    7: (5, 7, 9),
    8: (2, 4, 8),
    9: (3, 6, 7, 9),
    11: (2, 4, 6),
    22: (4, 6, 8),
    33: (6, 9, 11),
}

CHALLENGING_PAIRS: dict[int, tuple[int, ...]] = {
    1: (1, 8),
    2: (5, 9),
    3: (4, 8),
    4: (3, 5),
    5: (2, 4),
    6: (3, 7),
    7: (6, 8),
    8: (1, 3, 7),
    9: (2, 4),
    11: (1, 5),
    22: (1, 3),
    33: (1, 4),
}

BASE_SCORE = 60
PARTNER_SCORE = 85
CHALLENGING_SCORE = 45
SAME_SEEKER_SCORE = 75
SAME_NUMBER_SCORE = 55
JITTER_SPAN = 10
PHYSICAL_BIAS = 5
AREA_MIN = 20
AREA_MAX = 100
HIGH_THRESHOLD = 70
MODERATE_THRESHOLD = 50

CompatibilityLevel = Literal["high", "moderate", "challenging"]
JitterSource = Callable[[], int]


class CompatibilityAreas(BaseModel):
    """Scores par domaine (0..100)."""

    model_config = ConfigDict(frozen=True)

    communication: int
    emotional: int
    physical: int
    long_term: int = Field(serialization_alias="longTerm")


class CompatibilityResult(BaseModel):
    """Résultat de compatibilité entre deux Chemins de vie."""

    model_config = ConfigDict(frozen=True)

    score: int
    level: CompatibilityLevel
    areas: CompatibilityAreas


class ReductionStep(BaseModel):
    """Valeur brute d'une composante et sa réduction."""

    model_config = ConfigDict(frozen=True)

    original: int
    reduced: int


class LifePathSteps(BaseModel):
    """Détail du calcul du Chemin de vie, affiché dans le message de calcul."""

    model_config = ConfigDict(frozen=True)

    month: ReductionStep
    day: ReductionStep
    year: ReductionStep
    sum: int
    final: int


class NumerologyProfile(BaseModel):
    """Nombres principaux d'une personne."""

    model_config = ConfigDict(frozen=True)

    life_path: int
    expression: int | None = None
    soul_urge: int | None = None
    personality: int | None = None
    birthday_number: int


def _digit_sum(n: int) -> int:
    return sum(int(d) for d in str(n))


def reduce_to_single_digit(n: int, preserve_master: bool = True) -> int:
    """Réduit `n` par somme de chiffres jusqu'à 1..9 (11/22/33 conservés si demandé)."""
    while n > 9:
        if preserve_master and n in MASTER_NUMBERS:
            return n
        n = _digit_sum(n)
    return n


def _clean_letters(full_name: str) -> str:
    # Décomposition NFKD: les lettres accentuées comptent comme leur lettre de base
    folded = unicodedata.normalize("NFKD", full_name.upper())
    return "".join(ch for ch in folded if ch in LETTER_VALUES)


def _letters_total(full_name: str, keep: Callable[[str], bool]) -> int:
    return sum(LETTER_VALUES[ch] for ch in _clean_letters(full_name) if keep(ch))


def life_path_steps(dob: date) -> LifePathSteps:
    """Calcule chaque étape du Chemin de vie (réduction par composante puis globale)."""
    month_reduced = reduce_to_single_digit(dob.month)
    day_reduced = reduce_to_single_digit(dob.day)
    year_reduced = reduce_to_single_digit(_digit_sum(dob.year))
    total = month_reduced + day_reduced + year_reduced
    return LifePathSteps(
        month=ReductionStep(original=dob.month, reduced=month_reduced),
        day=ReductionStep(original=dob.day, reduced=day_reduced),
        year=ReductionStep(original=dob.year, reduced=year_reduced),
        sum=total,
        final=reduce_to_single_digit(total),
    )


def calculate_life_path(dob: date) -> int:
    """Chemin de vie: mois, jour et année réduits séparément, puis leur somme réduite."""
    return life_path_steps(dob).final


def calculate_expression(full_name: str) -> int:
    """Nombre d'Expression: toutes les lettres du nom."""
    return reduce_to_single_digit(_letters_total(full_name, lambda _ch: True))


def calculate_soul_urge(full_name: str) -> int:
    """Élan spirituel: voyelles uniquement."""
    return reduce_to_single_digit(_letters_total(full_name, lambda ch: ch in VOWELS))


def calculate_personality(full_name: str) -> int:
    """Nombre de Personnalité: consonnes uniquement."""
    return reduce_to_single_digit(_letters_total(full_name, lambda ch: ch not in VOWELS))


def calculate_birthday_number(dob: date) -> int:
    return reduce_to_single_digit(dob.day)


def calculate_personal_year(dob: date, year: int) -> int:
    """Année personnelle: mois et jour de naissance combinés à l'année donnée."""
    total = (
        reduce_to_single_digit(dob.month)
        + reduce_to_single_digit(dob.day)
        + reduce_to_single_digit(_digit_sum(year))
    )
    return reduce_to_single_digit(total)


def calculate_full_profile(dob: date, full_name: str | None = None) -> NumerologyProfile:
    return NumerologyProfile(
        life_path=calculate_life_path(dob),
        expression=calculate_expression(full_name) if full_name else None,
        soul_urge=calculate_soul_urge(full_name) if full_name else None,
        personality=calculate_personality(full_name) if full_name else None,
        birthday_number=calculate_birthday_number(dob),
    )


# ---------------------------------------------------------------------------
# Sources d'aléa pour la compatibilité
# ---------------------------------------------------------------------------


def random_jitter(seed: int | None = None) -> JitterSource:
    """Aléa uniforme dans [-10, +10]; reproductible si une graine est fournie."""
    rng = random.Random(seed)
    return lambda: rng.randint(-JITTER_SPAN, JITTER_SPAN)


def hash_jitter(life_path_1: int, life_path_2: int) -> JitterSource:
    """Aléa déterministe dérivé de la paire (ordre indifférent)."""
    low, high = sorted((life_path_1, life_path_2))
    digest = hashlib.sha256(f"{low}:{high}".encode()).digest()
    cursor = iter(digest)

    def _next() -> int:
        return next(cursor) % (2 * JITTER_SPAN + 1) - JITTER_SPAN

    return _next


def zero_jitter() -> int:
    return 0


def jitter_source(
    mode: str, life_path_1: int, life_path_2: int, seed: int | None = None
) -> JitterSource:
    """Source d'aléa correspondant au mode configuré (`random`, `seeded`, `hash`, `none`)."""
    if mode == "none":
        return zero_jitter
    if mode == "hash":
        return hash_jitter(life_path_1, life_path_2)
    if mode == "seeded":
        return random_jitter(seed)
    return random_jitter()


def _base_score(life_path_1: int, life_path_2: int) -> int:
    if life_path_1 == life_path_2:
        return SAME_SEEKER_SCORE if life_path_1 in (7, 9) else SAME_NUMBER_SCORE
    if life_path_2 in NATURAL_PARTNERS.get(life_path_1, ()) or life_path_1 in NATURAL_PARTNERS.get(
        life_path_2, ()
    ):
        return PARTNER_SCORE
    if life_path_2 in CHALLENGING_PAIRS.get(
        life_path_1, ()
    ) or life_path_1 in CHALLENGING_PAIRS.get(life_path_2, ()):
        return CHALLENGING_SCORE
    return BASE_SCORE


def _clamp_area(value: int) -> int:
    return min(AREA_MAX, max(AREA_MIN, value))


def compatibility_level(score: int) -> CompatibilityLevel:
    if score >= HIGH_THRESHOLD:
        return "high"
    if score >= MODERATE_THRESHOLD:
        return "moderate"
    return "challenging"


def calculate_compatibility(
    life_path_1: int,
    life_path_2: int,
    jitter: JitterSource | None = None,
) -> CompatibilityResult:
    """
    Calcule la compatibilité entre deux Chemins de vie.

    Args:
        life_path_1: Chemin de vie de l'utilisateur.
        life_path_2: Chemin de vie de l'autre personne.
        jitter: Source d'aléa par domaine (défaut: tirage non reproductible, comme à chaque
            nouveau calcul). Utiliser `zero_jitter`, `random_jitter(seed)` ou `hash_jitter`
            pour un résultat reproductible.

    Returns:
        CompatibilityResult: score global (moyenne arrondie des domaines), niveau et domaines.
    """
    jitter = jitter or random_jitter()
    base = _base_score(life_path_1, life_path_2)
    areas = CompatibilityAreas(
        communication=_clamp_area(base + jitter()),
        emotional=_clamp_area(base + jitter()),
        physical=_clamp_area(base + jitter() + PHYSICAL_BIAS),
        long_term=_clamp_area(base + jitter()),
    )
    mean = (areas.communication + areas.emotional + areas.physical + areas.long_term) / 4
    # Arrondi "demi vers le haut" (les moyennes de quatre entiers tombent sur .25/.5/.75)
    score = int(mean + 0.5)
    return CompatibilityResult(score=score, level=compatibility_level(score), areas=areas)


# ---------------------------------------------------------------------------
# Dates clés à venir
# ---------------------------------------------------------------------------

CriticalDateType = Literal["birthday", "personal year shift"]


class CriticalDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    type: CriticalDateType
    personal_year: int


class CriticalDates(BaseModel):
    """Année personnelle courante et prochaines dates clés, triées."""

    model_config = ConfigDict(frozen=True)

    personal_year: int
    dates: list[CriticalDate]


def next_birthday(dob: date, today: date) -> date:
    """Prochain anniversaire strictement après `today` (29 février: 1er mars hors bissextile)."""
    for year in (today.year, today.year + 1):
        try:
            candidate = dob.replace(year=year)
        except ValueError:
            candidate = date(year, 3, 1)
        if candidate > today:
            return candidate
    raise AssertionError("unreachable")  # pragma: no cover


def calculate_critical_dates(dob: date, today: date) -> CriticalDates:
    """Anniversaire suivant et bascule d'année personnelle (1er janvier suivant)."""
    birthday = next_birthday(dob, today)
    shift = date(today.year + 1, 1, 1)
    dates = [
        CriticalDate(
            date=birthday,
            type="birthday",
            personal_year=calculate_personal_year(dob, birthday.year),
        ),
        CriticalDate(
            date=shift,
            type="personal year shift",
            personal_year=calculate_personal_year(dob, shift.year),
        ),
    ]
    return CriticalDates(
        personal_year=calculate_personal_year(dob, today.year),
        dates=sorted(dates, key=lambda d: d.date),
    )


def calculate_compatibility_critical_dates(dob_1: date, dob_2: date, today: date) -> list[date]:
    """Prochains anniversaires des deux personnes, triés (dates où les chemins se croisent)."""
    return sorted({next_birthday(dob_1, today), next_birthday(dob_2, today)})
