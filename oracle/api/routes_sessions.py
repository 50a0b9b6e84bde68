"""
Routes des sessions de conversation.

Une session est créée par `POST /api/sessions` (la narration d'ouverture est jouée), puis
pilotée par des événements: saisie libre, carte de suggestion, achat. Chaque réponse renvoie
l'instantané complet de la session.
"""

from dataclasses import asdict

import structlog
from fastapi import APIRouter, Request

from oracle.api.schemas import PhaseInput, PurchaseIn, SessionSnapshot, TextIn
from oracle.apigw.errors import not_found
from oracle.core.container import container
from oracle.core.http_constants import HTTP_CREATED, HTTP_NO_CONTENT
from oracle.domain.orchestrator import Purchase, Start, SuggestionSelected, UserInput
from oracle.domain.phases import get_phase_config
from oracle.domain.session import ConversationService

router = APIRouter(prefix="/api/sessions", tags=["sessions"])
log = structlog.get_logger(__name__).bind(component="routes_sessions")


def _get_session(session_id: str, request: Request) -> ConversationService:
    session = container.sessions.get(session_id)
    if session is None:
        raise not_found(f"session {session_id} not found", getattr(request.state, "trace_id", None))
    return session


async def _snapshot(session: ConversationService) -> SessionSnapshot:
    state = session.state
    cfg = asdict(get_phase_config(session.phase))
    cfg.pop("description")
    return SessionSnapshot(
        id=session.id,
        phase=session.phase.value,
        input=PhaseInput(**cfg),
        messages=list(session.messages),
        profile=state.profile,
        other_person=state.other_person,
        compatibility=state.compatibility,
        has_paid=state.has_paid,
        paid_tier=state.paid_tier,
        suggestions=await session.suggestions(),
    )


@router.post("", response_model=SessionSnapshot, status_code=HTTP_CREATED)
async def create_session() -> SessionSnapshot:
    session = container.sessions.save(container.new_session(realtime=False))
    log.info("session_created", session_id=session.id)
    await session.dispatch(Start())
    return await _snapshot(session)


@router.get("/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str, request: Request) -> SessionSnapshot:
    return await _snapshot(_get_session(session_id, request))


@router.post("/{session_id}/input", response_model=SessionSnapshot)
async def send_input(session_id: str, body: TextIn, request: Request) -> SessionSnapshot:
    session = _get_session(session_id, request)
    await session.dispatch(UserInput(text=body.text))
    return await _snapshot(session)


@router.post("/{session_id}/suggestion", response_model=SessionSnapshot)
async def select_suggestion(session_id: str, body: TextIn, request: Request) -> SessionSnapshot:
    session = _get_session(session_id, request)
    await session.dispatch(SuggestionSelected(text=body.text))
    return await _snapshot(session)


@router.post("/{session_id}/purchase", response_model=SessionSnapshot)
async def purchase(session_id: str, body: PurchaseIn, request: Request) -> SessionSnapshot:
    session = _get_session(session_id, request)
    await session.dispatch(Purchase(tier=body.tier))
    return await _snapshot(session)


@router.delete("/{session_id}", status_code=HTTP_NO_CONTENT)
def delete_session(session_id: str, request: Request) -> None:
    _get_session(session_id, request)
    container.sessions.delete(session_id)
    log.info("session_deleted", session_id=session_id)
