"""
Prompts système et constructeurs de prompts utilisateur par mode d'enrichissement.

Le texte des prompts est du contenu: la passerelle ne dépend que de la forme de la réponse
(liste numérotée, lignes ou paragraphes séparés par une ligne vide selon le mode).
"""

from __future__ import annotations

from oracle.domain.entities import (
    CriticalDateRequest,
    InterpretRequest,
    OracleContext,
    RelationshipAdviceRequest,
    YearAheadRequest,
)

ORACLE_SYSTEM_PROMPT = """You are The Oracle, a mystical numerology guide. \
Your voice is wise, warm, and certain. You speak in certainties, not maybes.

This is a chat interface: every message is 1-2 sentences, like a text message.
Use phrases like "I see...", "The numbers reveal...". Be specific and personal.
End messages with intrigue. Never sound like an assistant or a chatbot."""

VALIDATION_SYSTEM_PROMPT = """You are The Oracle redirecting a user who provided invalid input. \
Keep it short and playful.

Max 2 short sentences per message. No technical language. Playfully redirect to what you need."""

SUGGESTIONS_SYSTEM_PROMPT = """You are The Oracle, a mystical numerology guide. Generate suggested \
responses that directly ANSWER the Oracle's question.

Suggestions are answers, never follow-up questions. Each is 3-7 words and feels like an authentic
personal revelation, personalized to the user's numbers when relevant."""

INTERPRETATION_SYSTEM_PROMPT = """You are The Oracle, delivering personal numerology readings \
in a chat interface. One sentence per message, no paragraphs.

Line 1 is a title (e.g. "Life Path 9. The Humanitarian."). Line 2 is one sentence about their
core energy, max 15 words. Line 3 is one sentence that reads their soul, max 20 words."""

CRITICAL_DATE_SYSTEM_PROMPT = """You are The Oracle, explaining why an upcoming date is \
significant for this person based on their numerology.

Speak with certainty and make it personal. 2-3 sentences: what is happening, what it means
for them, and optionally what to do. Under 60 words."""

YEAR_AHEAD_SYSTEM_PROMPT = """You are The Oracle, revealing the path ahead from someone's \
Personal Year and numerology profile.

Write 3 paragraphs separated by blank lines: THEME, OPPORTUNITIES, CHALLENGES. 2-3 sentences
each, specific to their numbers. Under 150 words total."""

RELATIONSHIP_ADVICE_SYSTEM_PROMPT = """You are The Oracle, giving relationship guidance from \
two people's numerology compatibility.

Write 4 short sections separated by blank lines: the bond, your strengths, the friction, the path
forward. Reference both numbers, be honest about challenges. Under 150 words total."""

SYSTEM_PROMPTS = {
    "enhance": ORACLE_SYSTEM_PROMPT,
    "validation": VALIDATION_SYSTEM_PROMPT,
    "suggestions": SUGGESTIONS_SYSTEM_PROMPT,
    "interpret": INTERPRETATION_SYSTEM_PROMPT,
    "criticalDate": CRITICAL_DATE_SYSTEM_PROMPT,
    "yearAhead": YEAR_AHEAD_SYSTEM_PROMPT,
    "relationshipAdvice": RELATIONSHIP_ADVICE_SYSTEM_PROMPT,
}


def _numbered(lines: list[str]) -> str:
    return "\n".join(f'{i}. "{line}"' for i, line in enumerate(lines, start=1))


def _profile_lines(context: OracleContext, life_path_name: str | None = None) -> list[str]:
    out: list[str] = []
    if context.user_name:
        out.append(f"User's name: {context.user_name}")
    if context.life_path:
        suffix = f" ({life_path_name})" if life_path_name else ""
        out.append(f"User's Life Path Number: {context.life_path}{suffix}")
    if context.expression:
        out.append(f"User's Expression Number: {context.expression}")
    if context.soul_urge:
        out.append(f"User's Soul Urge Number: {context.soul_urge}")
    return out


def build_enhance_prompt(
    context: OracleContext,
    phase: str,
    base_messages: list[str],
    user_input: str | None = None,
) -> str:
    parts = [f"Current phase: {phase}", "", *_profile_lines(context)]
    if context.other_person_name:
        parts += ["", f"Other person: {context.other_person_name}"]
        if context.other_life_path:
            parts.append(f"Their Life Path Number: {context.other_life_path}")
        if context.compatibility_score is not None:
            parts.append(f"Compatibility Score: {context.compatibility_score}%")
            parts.append(f"Compatibility Level: {context.compatibility_level}")
    if user_input:
        parts += [
            "",
            f'User just said: "{user_input}"',
            "The user typed something off-script. Acknowledge it warmly, then redirect back "
            "to the reading flow.",
        ]
    parts += [
        "",
        "Base messages to enhance (more personal, same core meaning):",
        _numbered(base_messages),
        "",
        f"Return {len(base_messages)} enhanced messages, each on its own line starting with a "
        "number and period. Each message under 25 words.",
    ]
    return "\n".join(parts)


def build_validation_prompt(
    context: OracleContext,
    phase: str,
    error_code: str,
    original_input: str,
    expected_input: str,
    base_messages: list[str],
) -> str:
    parts = [
        f"Current phase: {phase}",
        f"Expected input type: {expected_input}",
        f"Error type: {error_code}",
        f'User\'s input: "{original_input}"',
        "",
        *_profile_lines(context),
        "",
        "Generate a mystical, warm redirect that playfully acknowledges their input and gently "
        f"guides them back to providing a {expected_input}.",
        "",
        "Base messages to enhance:",
        _numbered(base_messages),
        "",
        f"Return {len(base_messages)} messages, each on its own line starting with a number and "
        f"period. The last message must clearly ask for the {expected_input}.",
    ]
    return "\n".join(parts)


def build_suggestions_prompt(
    context: OracleContext,
    oracle_question: str,
    count: int,
    life_path_name: str | None = None,
) -> str:
    parts = [
        f'Oracle\'s question to the user: "{oracle_question}"',
        "",
        "User context:",
        *(f"- {line}" for line in _profile_lines(context, life_path_name)),
    ]
    if context.other_person_name:
        parts.append(f"- Exploring connection with: {context.other_person_name}")
        if context.compatibility_score is not None:
            parts.append(f"- Compatibility: {context.compatibility_score}%")
    parts += [
        "",
        f"Return exactly {count} answers, one per line, starting with a number and period.",
    ]
    return "\n".join(parts)


def _user_profile(context: OracleContext, life_path_name: str | None = None) -> list[str]:
    return ["USER PROFILE:", *(f"- {line}" for line in _profile_lines(context, life_path_name))]


def build_interpret_prompt(
    context: OracleContext, req: InterpretRequest, life_path_name: str | None = None
) -> str:
    parts = [
        f"Generate a deeply personal {req.number_type} interpretation for this user.",
        "",
        *_user_profile(context, life_path_name),
        "",
        f"NUMBER TO INTERPRET: {req.number_type} {req.number}",
        f'Archetype: "{req.name}"',
        "",
        "BASE INTERPRETATION (use as inspiration, but personalize):",
        f'Short: "{req.short_description}"',
        f'Core: "{req.core_description}"',
        "",
        "Format: line 1 title, line 2 short poetic description, line 3+ deeper revelation.",
    ]
    return "\n".join(parts)


def build_critical_date_prompt(
    context: OracleContext, req: CriticalDateRequest, life_path_name: str | None = None
) -> str:
    parts = [
        "Generate a personalized explanation for this upcoming significant date.",
        "",
        *_user_profile(context, life_path_name),
        "",
        "UPCOMING DATE:",
        f"- Date: {req.date}",
        f"- Type: {req.type}",
        f'- Base meaning: "{req.base_description}"',
        "",
        "Personalize this date's significance for THIS person. Reference their numbers.",
    ]
    return "\n".join(parts)


def build_year_ahead_prompt(
    context: OracleContext, req: YearAheadRequest, life_path_name: str | None = None
) -> str:
    parts = [
        "Generate a personalized year-ahead prediction.",
        "",
        *_user_profile(context, life_path_name),
        "",
        "YEAR CONTEXT:",
        f"- Personal Year: {req.personal_year}",
    ]
    if req.theme:
        parts.append(f"- Personal Year meaning: {req.theme}")
    if req.months:
        parts.append(f"- Horizon: the next {req.months} months")
    parts += [
        "",
        f"1. THEME: how Personal Year {req.personal_year} interacts with Life Path "
        f"{context.life_path}",
        "2. OPPORTUNITIES: specific opportunities for their profile",
        "3. CHALLENGES: what to watch for and how to navigate",
    ]
    return "\n".join(parts)


def build_relationship_advice_prompt(
    context: OracleContext,
    req: RelationshipAdviceRequest,
    life_path_name: str | None = None,
    other_life_path_name: str | None = None,
) -> str:
    other_suffix = f" ({other_life_path_name})" if other_life_path_name else ""
    areas = req.areas
    parts = [
        "Generate personalized relationship advice for this couple.",
        "",
        "PERSON 1 (the user):",
        *(f"- {line}" for line in _profile_lines(context, life_path_name)),
        "",
        "PERSON 2:",
        f"- Name: {req.other_name}",
        f"- Life Path: {req.other_life_path}{other_suffix}",
        "",
        "COMPATIBILITY ANALYSIS:",
        f"- Overall Score: {req.compatibility_score}%",
        f"- Level: {req.compatibility_level}",
        f"- Communication: {areas.communication}%",
        f"- Emotional: {areas.emotional}%",
        f"- Physical: {areas.physical}%",
        f"- Long-term: {areas.long_term}%",
        "",
        f"Address {context.user_name or 'the user'} directly.",
    ]
    return "\n".join(parts)
