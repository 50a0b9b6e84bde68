"""Orchestrateur de conversation (machine à états pure).

`transition(state, event)` renvoie le nouvel état et la liste ordonnée des effets à exécuter
(messages à dire, pauses, révélations, redirections...). Aucune I/O ici: la narration et les
appels aux passerelles sont l'affaire du pilote (`oracle.domain.narration`).

Règles principales:
- collecting_dob -> (date valide) first_reveal -> collecting_name; date invalide: redirection
- collecting_name -> deeper_reveal -> relationship_hook
- relationship_hook -> collecting_other_dob
- collecting_other_dob -> compatibility_tease -> collecting_email; date invalide: redirection
- collecting_email -> paywall (seconde personne connue) ou personal_paywall
- paywall / personal_paywall -> (achat) paid_reading, état absorbant
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from oracle.domain.date_parser import (
    ParsedDate,
    ParseError,
    format_long,
    parse_date_string,
    try_parse_as_correction,
    validate_email,
    validate_name,
)
from oracle.domain.entities import (
    CriticalDateRequest,
    ExpectedInput,
    InterpretRequest,
    InvalidEventError,
    OtherPerson,
    PersonalizeRequest,
    ProfileIncompleteError,
    RelationshipAdviceRequest,
    UserProfile,
    ValidationContext,
    ValidationErrorCode,
    YearAheadRequest,
)
from oracle.domain.interpretations import (
    PURCHASE_TIERS,
    ContentRepository,
    LifePathInterpretation,
    compatibility_advice,
    compatibility_breakdown,
    critical_date_description,
    interpretation_lines,
    personal_reading,
    score_reaction,
    year_ahead_lines,
)
from oracle.domain.numerology import (
    CompatibilityResult,
    JitterSource,
    calculate_birthday_number,
    calculate_compatibility,
    calculate_compatibility_critical_dates,
    calculate_critical_dates,
    calculate_expression,
    calculate_life_path,
    calculate_personality,
    calculate_soul_urge,
    jitter_source,
    life_path_steps,
)
from oracle.domain.phases import ConversationPhase
from oracle.domain.redirects import phase_redirect_messages
from oracle.infra.content_repo import default_content_repository

P = ConversationPhase

SKIP_RELATIONSHIP = "Skip for now - show me my full reading"
MAYBE_LATER = "Maybe later"
PAYWALL_PHASES = frozenset({P.PAYWALL, P.PERSONAL_PAYWALL})
# Phases où la seconde personne peut encore être écartée
_SKIPPABLE = frozenset(
    {
        P.RELATIONSHIP_HOOK,
        P.ORACLE_QUESTION_OTHER_PERSON,
        P.COLLECTING_OTHER_INFO,
        P.COLLECTING_OTHER_DOB,
    }
)

CALCULATION_PAUSE_MS = 4500


# ---------------------------------------------------------------------------
# État, événements, effets
# ---------------------------------------------------------------------------


class ConversationState(BaseModel):
    """Contexte de session explicite, remplacé (jamais muté) à chaque tour."""

    model_config = ConfigDict(frozen=True)

    phase: ConversationPhase = P.OPENING
    profile: UserProfile = Field(default_factory=UserProfile)
    other_person: OtherPerson | None = None
    compatibility: CompatibilityResult | None = None
    has_paid: bool = False
    paid_tier: int | None = None
    last_invalid_input: str | None = None


class Start(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["start"] = "start"


class UserInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["input"] = "input"
    text: str


class SuggestionSelected(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["suggestion"] = "suggestion"
    text: str


class Purchase(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["purchase"] = "purchase"
    tier: int


Event = Start | UserInput | SuggestionSelected | Purchase


class UserMessage(BaseModel):
    """Ajoute la saisie de l'utilisateur à la conversation."""

    model_config = ConfigDict(frozen=True)

    text: str


class Say(BaseModel):
    """Lignes de l'Oracle, dites une à une."""

    model_config = ConfigDict(frozen=True)

    lines: list[str]
    enhance: bool = False
    mode: Literal["enhance", "validation"] = "enhance"
    user_input: str | None = None


class Pause(BaseModel):
    model_config = ConfigDict(frozen=True)

    ms: int


class EnterPhase(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: ConversationPhase


class Reveal(BaseModel):
    """Message visuel (révélation de nombre, calcul, transformation des lettres)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["number-reveal", "calculation", "letter-transform"]
    number: int
    metadata: dict[str, Any] = Field(default_factory=dict)


class Redirect(BaseModel):
    """Saisie invalide: séquence de redirection à résoudre par le générateur."""

    model_config = ConfigDict(frozen=True)

    context: ValidationContext


class Personalize(BaseModel):
    """Passage de la lecture payante, personnalisé par la passerelle; `lines` en repli."""

    model_config = ConfigDict(frozen=True)

    lines: list[str]
    request: PersonalizeRequest


class ProcessPayment(BaseModel):
    model_config = ConfigDict(frozen=True)

    delay_ms: int
    tier: int


Effect = (
    UserMessage | Say | Pause | EnterPhase | Reveal | Redirect | Personalize | ProcessPayment
)
Outcome = tuple[ConversationState, list[Effect]]


@dataclass(frozen=True)
class FlowOptions:
    """Réglages du parcours (issus de la configuration)."""

    strict_validation: bool = True
    payment_delay_ms: int = 2000
    jitter_mode: str = "random"
    jitter_seed: int | None = None


class _Script:
    """Accumulateur d'effets pour un tour."""

    def __init__(self) -> None:
        self.effects: list[Effect] = []

    def user(self, text: str) -> _Script:
        self.effects.append(UserMessage(text=text))
        return self

    def say(self, *lines: str, enhance: bool = False, user_input: str | None = None) -> _Script:
        self.effects.append(Say(lines=list(lines), enhance=enhance, user_input=user_input))
        return self

    def pause(self, ms: int) -> _Script:
        self.effects.append(Pause(ms=ms))
        return self

    def enter(self, phase: ConversationPhase) -> _Script:
        self.effects.append(EnterPhase(phase=phase))
        return self

    def personalize(self, request: PersonalizeRequest, *lines: str) -> _Script:
        self.effects.append(Personalize(lines=list(lines), request=request))
        return self

    def reveal(self, kind, number: int, **metadata: Any) -> _Script:
        self.effects.append(Reveal(kind=kind, number=number, metadata=metadata))
        return self


# ---------------------------------------------------------------------------
# Transition
# ---------------------------------------------------------------------------


def transition(
    state: ConversationState,
    event: Event,
    *,
    today: date | None = None,
    jitter: JitterSource | None = None,
    content: ContentRepository | None = None,
    options: FlowOptions | None = None,
) -> Outcome:
    """
    Applique un événement à l'état de conversation.

    Args:
        state: État courant.
        event: Start, UserInput, SuggestionSelected ou Purchase.
        today: Date de référence (contrôle des dates futures, année personnelle).
        jitter: Source d'aléa de la compatibilité (défaut: selon `options.jitter_mode`).
        content: Dépôt des interprétations (défaut: contenu embarqué).
        options: Réglages du parcours.

    Returns:
        tuple: (nouvel état, effets ordonnés). Les saisies invalides ne lèvent jamais.

    Raises:
        InvalidEventError: achat hors paywall ou palier inconnu.
        ProfileIncompleteError: donnée prérequise absente (graphe de phases violé).
    """
    if content is None:
        content = default_content_repository()
    turn = _Turn(
        today=today or date.today(),
        jitter=jitter,
        content=content,
        options=options or FlowOptions(),
    )
    if isinstance(event, Start):
        return turn.start(state)
    if isinstance(event, UserInput):
        return turn.user_input(state, event.text)
    if isinstance(event, SuggestionSelected):
        return turn.suggestion(state, event.text)
    if isinstance(event, Purchase):
        return turn.purchase(state, event.tier)
    raise InvalidEventError(f"unknown event: {type(event).__name__}")


@dataclass
class _Turn:
    today: date
    jitter: JitterSource | None
    content: ContentRepository
    options: FlowOptions

    # -- helpers ------------------------------------------------------------

    def _interp(self, life_path: int) -> LifePathInterpretation:
        interp = self.content.get_life_path(life_path)
        if interp is None:
            raise ProfileIncompleteError(f"interpretation for life path {life_path}")
        return interp

    def _redirect(
        self,
        state: ConversationState,
        script: _Script,
        code: ValidationErrorCode,
        text: str,
        expected: ExpectedInput,
        remember: bool = False,
    ) -> Outcome:
        ctx = ValidationContext(
            phase=state.phase,
            error_code=code,
            original_input=text,
            expected_input=expected,
            user_name=state.profile.first_name,
            life_path=state.profile.life_path,
        )
        script.effects.append(Redirect(context=ctx))
        new_state = state.model_copy(update={"last_invalid_input": text}) if remember else state
        return new_state, script.effects

    def _parse_dob(self, state: ConversationState, text: str) -> ParsedDate | ParseError:
        result = parse_date_string(text, today=self.today)
        if isinstance(result, ParseError) and state.last_invalid_input:
            corrected = try_parse_as_correction(text, state.last_invalid_input, today=self.today)
            if corrected is not None:
                return corrected
        return result

    # -- Start --------------------------------------------------------------

    def start(self, state: ConversationState) -> Outcome:
        if state.phase != P.OPENING:
            return state, []
        script = (
            _Script()
            .say("You felt it, didn't you?")
            .pause(800)
            .say("That pull. That sense that something in your life is slightly... off.")
            .say("Like you're following a script you didn't write.")
            .pause(600)
            .say("There's a reason for that.")
            .say("And it's hidden in the exact moment you took your first breath.")
            .pause(500)
            .say("Tell me... when were you born?")
            .enter(P.COLLECTING_DOB)
        )
        return state.model_copy(update={"phase": P.COLLECTING_DOB}), script.effects

    # -- UserInput ----------------------------------------------------------

    def user_input(
        self, state: ConversationState, raw: str
    ) -> Outcome:
        text = (raw or "").strip()
        if not text:
            return state, []
        handler = {
            P.COLLECTING_DOB: self._on_dob,
            P.COLLECTING_NAME: self._on_name,
            P.RELATIONSHIP_HOOK: self._on_other_name,
            P.COLLECTING_OTHER_DOB: self._on_other_dob,
            P.COLLECTING_EMAIL: self._on_email,
        }.get(state.phase)
        if handler is not None:
            return handler(state, text)
        script = _Script().user(text).say(
            *phase_redirect_messages(state.phase), enhance=True, user_input=text
        )
        return state, script.effects

    def _on_dob(self, state: ConversationState, text: str) -> Outcome:
        script = _Script().user(text)
        parsed = self._parse_dob(state, text)
        if isinstance(parsed, ParseError):
            return self._redirect(state, script, parsed.error_code, text, "date", remember=True)

        dob = parsed.date
        life_path = calculate_life_path(dob)
        profile = state.profile.model_copy(
            update={
                "dob": dob,
                "life_path": life_path,
                "birthday_number": calculate_birthday_number(dob),
            }
        )
        interp = self._interp(life_path)
        (
            script.enter(P.FIRST_REVEAL)
            .say("I see it now...", "Let me calculate the vibrations hidden in your birth date...")
            .reveal("calculation", life_path, calculation_steps=life_path_steps(dob).model_dump())
            .pause(CALCULATION_PAUSE_MS)
            .say(f"Life Path {life_path}.", f"{interp.name}.")
            .reveal("number-reveal", life_path)
            .pause(1000)
            .say(interp.short_description, interp.core_description)
            .pause(800)
            .say(
                "But this is only your surface number.",
                "Your TRUE nature lies deeper... hidden in the name you were given at birth.",
                "What is your full birth name?",
            )
            .enter(P.COLLECTING_NAME)
        )
        new_state = state.model_copy(
            update={"phase": P.COLLECTING_NAME, "profile": profile, "last_invalid_input": None}
        )
        return new_state, script.effects

    def _on_name(self, state: ConversationState, text: str) -> Outcome:
        script = _Script().user(text)
        if self.options.strict_validation:
            check = validate_name(text)
            if not check.valid:
                return self._redirect(state, script, check.error_code, text, "name")

        dob = state.profile.require_dob()
        expression = calculate_expression(text)
        soul_urge = calculate_soul_urge(text)
        profile = state.profile.model_copy(
            update={
                "full_name": text,
                "expression": expression,
                "soul_urge": soul_urge,
                "personality": calculate_personality(text),
            }
        )
        first = profile.first_name
        critical = calculate_critical_dates(dob, self.today)
        theme = self.content.personal_year_theme(critical.personal_year)
        (
            script.say(f"{first}...")
            .pause(1200)
            .say("The letters of your name carry vibrations I can now read clearly.")
            .pause(800)
            .reveal(
                "letter-transform",
                expression,
                letter_transform={
                    "name": text,
                    "number": expression,
                    "label": "Expression",
                    "number_type": "expression",
                },
            )
            .say(
                f"Your Expression Number is {expression}.",
                "This reveals your natural talents, the abilities you were born with, "
                "whether you've developed them yet or not.",
            )
            .pause(1000)
            .reveal(
                "letter-transform",
                soul_urge,
                letter_transform={
                    "name": text,
                    "number": soul_urge,
                    "label": "Soul Urge",
                    "number_type": "soul-urge",
                },
            )
            .say(
                f"Your Soul Urge is {soul_urge}.",
                "This is your deepest desire. The secret longing that drives you, "
                "even when you don't consciously recognize it.",
            )
            .enter(P.DEEPER_REVEAL)
            .pause(1200)
            .say(
                f"I see much about you now, {first}.",
                f"You are in a Personal Year {critical.personal_year}, a year of {theme}.",
            )
            .pause(1500)
            .say(
                "But there is something else I sense...",
                "Something I almost didn't want to tell you.",
            )
            .pause(1000)
            .say(
                "There's someone in your life right now...",
                "Someone whose energy is affecting yours more than you realize.",
                "For better... or for worse.",
            )
            .pause(800)
            .say("Do you know who I'm sensing?", "Who keeps appearing in your thoughts?")
            .enter(P.RELATIONSHIP_HOOK)
        )
        new_state = state.model_copy(update={"phase": P.RELATIONSHIP_HOOK, "profile": profile})
        return new_state, script.effects

    def _on_other_name(
        self, state: ConversationState, text: str
    ) -> Outcome:
        script = (
            _Script()
            .user(text)
            .say(
                f"{text}...",
                "The universe is aligning to reveal this connection.",
                f"Do you know when {text} was born? "
                "This will unlock the compatibility between you.",
            )
            .enter(P.COLLECTING_OTHER_DOB)
        )
        new_state = state.model_copy(
            update={"phase": P.COLLECTING_OTHER_DOB, "other_person": OtherPerson(name=text)}
        )
        return new_state, script.effects

    def _on_other_dob(
        self, state: ConversationState, text: str
    ) -> Outcome:
        script = _Script().user(text)
        parsed = self._parse_dob(state, text)
        if isinstance(parsed, ParseError):
            return self._redirect(state, script, parsed.error_code, text, "date", remember=True)
        if state.other_person is None:
            raise ProfileIncompleteError("other_person")

        user_lp = state.profile.require_life_path()
        user_dob = state.profile.require_dob()
        other_lp = calculate_life_path(parsed.date)
        other = state.other_person.model_copy(update={"dob": parsed.date, "life_path": other_lp})
        jitter = self.jitter or jitter_source(
            self.options.jitter_mode, user_lp, other_lp, self.options.jitter_seed
        )
        compat = calculate_compatibility(user_lp, other_lp, jitter)
        user_name = state.profile.first_name or "you"
        crossings = calculate_compatibility_critical_dates(user_dob, parsed.date, self.today)

        script.enter(P.COMPATIBILITY_TEASE).say(
            f"I've seen your numbers alongside {other.name}'s now."
        ).pause(1200).say(f"{user_name}, I need you to understand something...").pause(1500).say(
            f"Your compatibility score is {compat.score}%.", score_reaction(compat.score)
        ).pause(1000).say(
            "I see THREE areas of harmony between you.",
            "Connection points that could sustain you both through anything.",
        ).pause(1200).say(
            "But I also see TWO friction patterns.",
            "Places where your numbers clash in ways that could slowly erode what you've built...",
        ).pause(1000)
        if crossings:
            script.say(
                "And I see critical dates approaching, moments when your paths "
                "will intersect in meaningful ways..."
            ).pause(800)
        (
            script.say("I can see the complete picture now.", "The harmony... and the warnings.")
            .pause(1000)
            .say(
                "Before I reveal everything, I need a way to preserve this reading for you.",
                "Where should I send your complete numerology profile?",
            )
            .enter(P.COLLECTING_EMAIL)
        )
        new_state = state.model_copy(
            update={
                "phase": P.COLLECTING_EMAIL,
                "other_person": other,
                "compatibility": compat,
                "last_invalid_input": None,
            }
        )
        return new_state, script.effects

    def _on_email(self, state: ConversationState, text: str) -> Outcome:
        script = _Script().user(text)
        if self.options.strict_validation:
            check = validate_email(text)
            if not check.valid:
                return self._redirect(state, script, check.error_code, text, "email")
        other = state.other_person
        target = P.PAYWALL if other is not None else P.PERSONAL_PAYWALL
        question = (
            f"Do you wish to see what the numbers reveal about you and {other.name}?"
            if other is not None
            else "Do you wish to see your complete numerology profile?"
        )
        script.say("Your reading is being prepared...", question).enter(target)
        profile = state.profile.model_copy(update={"email": text})
        return state.model_copy(update={"phase": target, "profile": profile}), script.effects

    # -- SuggestionSelected -------------------------------------------------

    def suggestion(
        self, state: ConversationState, raw: str
    ) -> Outcome:
        text = (raw or "").strip()
        if not text:
            return state, []
        if text == SKIP_RELATIONSHIP and state.phase in _SKIPPABLE:
            return self._skip_relationship(state, text)
        if text == MAYBE_LATER and state.phase in PAYWALL_PHASES:
            script = _Script().say(
                "The numbers will wait for you...",
                "When you are ready to see the full truth, I will be here.",
            )
            return state, script.effects
        if "Unlock" in text or "Reveal" in text:
            # L'achat passe par l'événement Purchase
            return state, []
        answer = self._card_answer(state, text)
        if answer:
            return state, _Script().user(text).say(*answer).effects
        return self.user_input(state, text)

    def _skip_relationship(
        self, state: ConversationState, text: str
    ) -> Outcome:
        life_path = state.profile.require_life_path()
        critical = calculate_critical_dates(state.profile.require_dob(), self.today)
        script = _Script().user(text).say(
            "I understand. Some journeys are meant to be walked alone first.",
            "Your personal numerology profile holds profound insights.",
        )
        if critical.dates:
            upcoming = critical.dates[0]
            script.say(
                f"I see a significant date approaching: "
                f"{upcoming.date.strftime('%B')} {upcoming.date.day}...",
                f"This {upcoming.type} holds special meaning for your Life Path {life_path}.",
            )
        script.say(
            "Before I reveal your complete reading, I need a way to preserve it for you.",
            "Where should I send your full numerology profile?",
        ).enter(P.COLLECTING_EMAIL)
        new_state = state.model_copy(
            update={"phase": P.COLLECTING_EMAIL, "other_person": None, "compatibility": None}
        )
        return new_state, script.effects

    def _card_answer(self, state: ConversationState, text: str) -> list[str] | None:
        """Réponse de l'Oracle à une carte de suggestion connue, sinon None."""
        lowered = text.lower()
        profile = state.profile
        compat = state.compatibility
        if compat is not None and state.other_person is not None:
            name = state.other_person.name
            if "connection" in lowered:
                return [
                    f"Between you and {name}, the numbers settle at {compat.score}%.",
                    score_reaction(compat.score),
                ]
            if "challenges do we face" in lowered:
                return [
                    "I see TWO friction patterns between you.",
                    "The complete reading reveals where they lie, and how to soften them.",
                ]
            if "meant to be" in lowered:
                return [compatibility_advice(compat.level)]
        if profile.life_path is None:
            return None
        lp = profile.life_path
        interp = self._interp(lp)
        if "more about" in lowered:
            return [
                f"As a Life Path {lp}, you possess remarkable qualities...",
                f"Your strengths include: {', '.join(interp.strengths[:3])}.",
                f"But you must be mindful of: {' and '.join(interp.challenges[:2])}.",
            ]
        if "mean for my life" in lowered:
            return [
                f"The Life Path {lp} shapes everything about your journey.",
                interp.love_overview,
                f"In career, you thrive as: {', '.join(interp.careers[:3])}.",
            ]
        if "understand myself" in lowered:
            return [interp.short_description, interp.core_description]
        if "love life" in lowered:
            return [
                "Ah, matters of the heart...",
                interp.love_overview,
                "But to truly understand your romantic destiny, "
                "I would need to see who you are drawn to.",
            ]
        if "career" in lowered:
            return [
                "Your numbers point clearly to certain paths...",
                f"You would excel as: {', '.join(interp.careers)}.",
                f"People like {interp.famous_people[0]} and {interp.famous_people[1]} "
                "share your Life Path.",
            ]
        if "blocking" in lowered:
            return [
                "I sense resistance in your path...",
                f"Your challenges include: {'. '.join(interp.challenges)}.",
                "Understanding these shadow aspects is key to your growth.",
            ]
        if "year ahead" in lowered and profile.dob is not None:
            critical = calculate_critical_dates(profile.dob, self.today)
            theme = self.content.personal_year_theme(critical.personal_year)
            return [
                f"This is a Personal Year {critical.personal_year} for you.",
                f"A year of {theme}.",
            ]
        if "soul urge" in lowered and profile.soul_urge is not None:
            return [
                f"Your Soul Urge is {profile.soul_urge}.",
                "It is the quiet longing beneath every choice you make.",
            ]
        return None

    # -- Purchase -----------------------------------------------------------

    def purchase(self, state: ConversationState, tier: int) -> Outcome:
        if tier not in PURCHASE_TIERS:
            raise InvalidEventError(f"unknown tier: {tier}")
        if state.phase not in PAYWALL_PHASES or state.has_paid:
            raise InvalidEventError(f"purchase not available in phase {state.phase.value}")
        script = _Script()
        script.effects.append(ProcessPayment(delay_ms=self.options.payment_delay_ms, tier=tier))
        script.enter(P.PAID_READING)
        if state.compatibility is not None and state.other_person is not None:
            self._compatibility_reading(state, script)
        else:
            self._personal_reading(state, script)
        new_state = state.model_copy(
            update={"phase": P.PAID_READING, "has_paid": True, "paid_tier": tier}
        )
        return new_state, script.effects

    def _critical_date(
        self,
        script: _Script,
        when: date,
        kind: str,
        personal_year: int | None = None,
    ) -> None:
        theme = self.content.personal_year_theme(personal_year) if personal_year else None
        base = critical_date_description(kind, personal_year, theme)
        formatted = format_long(when)
        request = CriticalDateRequest(date=formatted, type=kind, base_description=base)
        script.personalize(request, f"{formatted}. {base}")

    def _personal_reading(self, state: ConversationState, script: _Script) -> None:
        life_path = state.profile.require_life_path()
        critical = calculate_critical_dates(state.profile.require_dob(), self.today)
        interp = self._interp(life_path)
        theme = self.content.personal_year_theme(critical.personal_year)
        script.say("The veil is lifted...")
        script.personalize(
            InterpretRequest(
                number=life_path,
                name=interp.name,
                short_description=interp.short_description,
                core_description=interp.core_description,
            ),
            *interpretation_lines(interp),
        )
        script.say(*personal_reading(interp))
        script.personalize(
            YearAheadRequest(personal_year=critical.personal_year, theme=theme),
            *year_ahead_lines(critical.personal_year, theme),
        )
        if critical.dates:
            upcoming = critical.dates[0]
            self._critical_date(script, upcoming.date, upcoming.type, upcoming.personal_year)

    def _compatibility_reading(self, state: ConversationState, script: _Script) -> None:
        other = state.other_person
        compat = state.compatibility
        if other.life_path is None:
            raise ProfileIncompleteError("other_person.life_path")
        script.say(*compatibility_breakdown(other.name, compat))
        script.personalize(
            RelationshipAdviceRequest(
                other_name=other.name,
                other_life_path=other.life_path,
                compatibility_score=compat.score,
                compatibility_level=compat.level,
                areas=compat.areas,
            ),
            compatibility_advice(compat.level),
        )
        if other.dob is not None:
            crossings = calculate_compatibility_critical_dates(
                state.profile.require_dob(), other.dob, self.today
            )
            if crossings:
                self._critical_date(script, crossings[0], "paths crossing")
