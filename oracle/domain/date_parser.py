"""
Analyse de dates en texte libre et validation des saisies (nom, email).

Formats reconnus, dans cet ordre (la première correspondance gagne):
1. "March 15, 1990" / "march 15th 1990"
2. "15 March 1990" / "15th march, 1990"
3. "3/15/1990", "03-15-90" (format US MM/JJ/AAAA)
4. "1990-03-15" (ISO AAAA-MM-JJ)

Les échecs ne lèvent jamais d'exception: ils renvoient un `ParseError` portant un code
exploité par le générateur de redirections.
"""

from __future__ import annotations

import calendar
import re
from datetime import date
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict

log = structlog.get_logger(__name__).bind(component="date_parser")

DateParseErrorCode = Literal[
    "EMPTY_INPUT",
    "UNRECOGNIZED_FORMAT",
    "INVALID_MONTH",
    "INVALID_DAY",
    "INVALID_YEAR",
    "IMPOSSIBLE_DATE",
    "FUTURE_DATE",
    "OFF_TOPIC",
]

MIN_YEAR = 1900
TWO_DIGIT_PIVOT = 30
LONG_MONTH_NAME = 5
OFF_TOPIC_LENGTH = 30

MONTHS: dict[str, int] = {
    "january": 1,
    "jan": 1,
    "february": 2,
    "feb": 2,
    "march": 3,
    "mar": 3,
    "april": 4,
    "apr": 4,
    "may": 5,
    "june": 6,
    "jun": 6,
    "july": 7,
    "jul": 7,
    "august": 8,
    "aug": 8,
    "september": 9,
    "sep": 9,
    "sept": 9,
    "october": 10,
    "oct": 10,
    "november": 11,
    "nov": 11,
    "december": 12,
    "dec": 12,
}

_FULL_MONTHS = tuple(calendar.month_name[i].lower() for i in range(1, 13))

_MONTH_FIRST = re.compile(r"([a-z]+)\s+(\d{1,2})(?:st|nd|rd|th)?[,\s]+(\d{2,4})(?!\d)")
_DAY_FIRST = re.compile(r"(?<!\d)(\d{1,2})(?:st|nd|rd|th)?\s+([a-z]+)[,\s]+(\d{2,4})(?!\d)")
_US_NUMERIC = re.compile(r"(?<!\d)(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})(?!\d)")
_ISO_NUMERIC = re.compile(r"(?<!\d)(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})(?!\d)")

_GENERIC_OFF_TOPIC = (
    re.compile(r"^(hi|hello|hey|sup|yo|what'?s? up)\b"),
    re.compile(r"^(thanks|thank you|thx)\b"),
    re.compile(r"^(how are you|how's it going)\b"),
    re.compile(r"^(what|who|where|why|when|how)\s"),
    re.compile(r"^(can you|could you|will you|would you)\b"),
    re.compile(r"^(i think|i feel|i want|i need|i am|i'm)\b"),
    re.compile(r"[!?]{2,}"),
)
_DATE_OFF_TOPIC = (
    re.compile(r"^(yes|no|maybe|sure|ok|okay|nope|nah)\b"),
    re.compile(r"^[a-z]+\s+and\s+[a-z]+$"),
)
# Un nom ne contient jamais de point d'interrogation
_NAME_OFF_TOPIC = (re.compile(r"^\d+$"), re.compile(r"\?"))

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Lettres Unicode, espaces, tirets, apostrophes et points (José García, Martin Luther King Jr.)
_NAME_RE = re.compile(r"^[^\W\d_](?:[^\W\d_]|[\s\-'.’])*$")
_YEAR_ONLY_RE = re.compile(r"^(\d{4})$")
_PREV_MONTH_DAY = re.compile(r"([a-z]+)\s+(\d{1,2})")
_PREV_DAY_MONTH = re.compile(r"(\d{1,2})\s+([a-z]+)")
_EMAIL_ATTEMPT_MAX = 50
_NAME_MIN_LENGTH = 2

# Messages lisibles par code (le générateur de redirections les remplace par la voix de l'Oracle)
_MESSAGES: dict[str, tuple[str, str]] = {
    "EMPTY_INPUT": (
        "I didn't receive a date.",
        'Share your birthday, for example "March 15, 1990".',
    ),
    "OFF_TOPIC": (
        "That doesn't look like a birth date.",
        'Share your birthday, for example "March 15, 1990".',
    ),
    "UNRECOGNIZED_FORMAT": (
        "I couldn't read that date.",
        'Try "March 15, 1990" or "3/15/1990".',
    ),
    "INVALID_MONTH": ("That month doesn't exist.", "Use a month between 1 and 12."),
    "INVALID_DAY": ("That day doesn't exist.", "Use a day between 1 and 31."),
    "INVALID_YEAR": ("That year is out of range.", f"Use a year between {MIN_YEAR} and today."),
    "IMPOSSIBLE_DATE": (
        "That date doesn't exist in the calendar.",
        "Check the day for that month.",
    ),
    "FUTURE_DATE": ("That date is in the future.", "Share the day you were born."),
}


class ParsedDate(BaseModel):
    """Date reconnue et sa forme longue ("March 15, 1990")."""

    model_config = ConfigDict(frozen=True)

    date: date
    formatted: str


class ParseError(BaseModel):
    """Échec d'analyse typé."""

    model_config = ConfigDict(frozen=True)

    error_code: DateParseErrorCode
    original_input: str
    message: str
    suggestion: str
    details: str | None = None


ParseResult = ParsedDate | ParseError
InputErrorCode = Literal[
    "EMPTY_INPUT", "INVALID_FORMAT", "TOO_SHORT", "INVALID_CHARACTERS", "OFF_TOPIC"
]


class InputCheck(BaseModel):
    """Résultat de validation d'un nom ou d'un email."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    error_code: InputErrorCode | None = None


def is_parse_error(result: ParseResult) -> bool:
    return isinstance(result, ParseError)


def _error(code: DateParseErrorCode, original: str, details: str | None = None) -> ParseError:
    message, suggestion = _MESSAGES[code]
    return ParseError(
        error_code=code,
        original_input=original,
        message=message,
        suggestion=suggestion,
        details=details,
    )


def _levenshtein(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def fuzzy_match_month(word: str) -> int | None:
    """Retourne le numéro de mois (1..12), en tolérant les fautes de frappe ("febuary")."""
    cleaned = word.lower().strip()
    if cleaned in MONTHS:
        return MONTHS[cleaned]
    best: str | None = None
    best_distance = None
    for month in _FULL_MONTHS:
        threshold = 2 if len(month) > LONG_MONTH_NAME else 1
        distance = _levenshtein(cleaned, month)
        if distance <= threshold and (best_distance is None or distance < best_distance):
            best, best_distance = month, distance
    if best is None:
        return None
    log.debug("fuzzy_month_matched", raw=cleaned, month=best)
    return MONTHS[best]


def _is_off_topic(cleaned: str) -> bool:
    has_digits = any(ch.isdigit() for ch in cleaned)
    has_month = any(fuzzy_match_month(w) is not None for w in cleaned.split())
    if not has_digits and not has_month:
        return True
    return any(p.search(cleaned) for p in (*_GENERIC_OFF_TOPIC, *_DATE_OFF_TOPIC))


def normalize_year(year: int) -> int:
    """Années sur deux chiffres: 00-29 -> 2000+, 30-99 -> 1900+."""
    if year < 100:
        return 2000 + year if year < TWO_DIGIT_PIVOT else 1900 + year
    return year


def _extract(cleaned: str) -> tuple[int, int, int] | None:
    """Applique la cascade de motifs; renvoie (mois, jour, année) ou None."""
    m = _MONTH_FIRST.search(cleaned)
    if m:
        month = fuzzy_match_month(m.group(1))
        if month is not None:
            return month, int(m.group(2)), normalize_year(int(m.group(3)))

    m = _DAY_FIRST.search(cleaned)
    if m:
        month = fuzzy_match_month(m.group(2))
        if month is not None:
            return month, int(m.group(1)), normalize_year(int(m.group(3)))

    m = _US_NUMERIC.search(cleaned)
    if m:
        return int(m.group(1)), int(m.group(2)), normalize_year(int(m.group(3)))

    m = _ISO_NUMERIC.search(cleaned)
    if m:
        return int(m.group(2)), int(m.group(3)), int(m.group(1))
    return None


def format_long(d: date) -> str:
    return f"{calendar.month_name[d.month]} {d.day}, {d.year}"


def parse_date_string(text: str, today: date | None = None) -> ParseResult:
    """
    Convertit une saisie libre en date de naissance validée.

    Args:
        text: Saisie de l'utilisateur.
        today: Date de référence pour les contrôles d'année/futur (défaut: aujourd'hui).

    Returns:
        ParsedDate | ParseError: jamais d'exception pour une saisie invalide.
    """
    today = today or date.today()
    original = (text or "").strip()
    cleaned = original.lower()
    if not cleaned:
        return _error("EMPTY_INPUT", original)
    if _is_off_topic(cleaned):
        return _error("OFF_TOPIC", original, "Input does not appear to be a date attempt")

    parts = _extract(cleaned)
    if parts is None:
        return _error(
            "UNRECOGNIZED_FORMAT", original, "Could not extract month, day, and year from input"
        )
    month, day, year = parts

    if not 1 <= month <= 12:
        return _error("INVALID_MONTH", original, f"Parsed month value: {month}")
    if not 1 <= day <= 31:
        return _error("INVALID_DAY", original, f"Parsed day value: {day}")
    if year < MIN_YEAR:
        return _error("INVALID_YEAR", original, f"Parsed year value: {year}")
    if year > today.year:
        # L'année entière est à venir: c'est une date future avant d'être une année hors bornes
        return _error("FUTURE_DATE", original, f"Parsed year value: {year}")
    try:
        parsed = date(year, month, day)
    except ValueError:
        return _error(
            "IMPOSSIBLE_DATE", original, f"Date validation failed: expected {month}/{day}/{year}"
        )
    if parsed > today:
        return _error("FUTURE_DATE", original)
    return ParsedDate(date=parsed, formatted=format_long(parsed))


def try_parse_as_correction(
    new_text: str, previous_text: str, today: date | None = None
) -> ParsedDate | None:
    """
    Tente de lire une nouvelle saisie comme correction d'une tentative précédente.

    Exemples: "march 15 209" puis "2009"; "march" puis "15 1990".
    """
    new_cleaned = new_text.strip().lower()
    prev_cleaned = previous_text.strip().lower()

    year_only = _YEAR_ONLY_RE.match(new_cleaned)
    if year_only:
        month = day = None
        m = _PREV_MONTH_DAY.search(prev_cleaned)
        d = _PREV_DAY_MONTH.search(prev_cleaned)
        if m and m.group(1) in MONTHS:
            month, day = MONTHS[m.group(1)], int(m.group(2))
        elif d and d.group(2) in MONTHS:
            month, day = MONTHS[d.group(2)], int(d.group(1))
        if month is not None and day is not None:
            result = parse_date_string(f"{month}/{day}/{year_only.group(1)}", today=today)
            if isinstance(result, ParsedDate):
                log.debug("date_correction_applied", kind="year")
                return result

    has_month = any(word in MONTHS for word in re.findall(r"[a-z]+", prev_cleaned))
    if has_month and any(ch.isdigit() for ch in new_cleaned):
        result = parse_date_string(f"{prev_cleaned} {new_cleaned}", today=today)
        if isinstance(result, ParsedDate):
            log.debug("date_correction_applied", kind="combined")
            return result
    return None


def validate_email(text: str) -> InputCheck:
    cleaned = (text or "").strip()
    if not cleaned:
        return InputCheck(valid=False, error_code="EMPTY_INPUT")
    if "@" not in cleaned:
        if re.search(r"[a-z0-9]", cleaned, re.IGNORECASE) and len(cleaned) < _EMAIL_ATTEMPT_MAX:
            return InputCheck(valid=False, error_code="INVALID_FORMAT")
        return InputCheck(valid=False, error_code="OFF_TOPIC")
    if not _EMAIL_RE.match(cleaned):
        return InputCheck(valid=False, error_code="INVALID_FORMAT")
    return InputCheck(valid=True)


def validate_name(text: str) -> InputCheck:
    """
    Valide un nom complet, au moins deux caractères.

    Lettres de toute écriture, espaces, tirets, apostrophes et points. Les salutations ne sont
    pas cherchées ici: "Yo-Yo Ma" est un nom.
    """
    cleaned = (text or "").strip()
    if not cleaned:
        return InputCheck(valid=False, error_code="EMPTY_INPUT")
    if any(p.search(cleaned) for p in _NAME_OFF_TOPIC):
        return InputCheck(valid=False, error_code="OFF_TOPIC")
    if len(cleaned) < _NAME_MIN_LENGTH:
        return InputCheck(valid=False, error_code="TOO_SHORT")
    if not _NAME_RE.match(cleaned):
        return InputCheck(valid=False, error_code="INVALID_CHARACTERS")
    return InputCheck(valid=True)
