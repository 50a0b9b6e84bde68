"""
Endpoint d'enrichissement `/api/oracle`.

Proxy étroit vers la passerelle d'enrichissement: quelle que soit la défaillance amont (clé
absente, délai, erreur), la réponse est un 200 qui renvoie `baseMessages` inchangés.
"""

from fastapi import APIRouter

from oracle.api.schemas import (
    AdviceOut,
    InterpretationOut,
    OracleRequest,
    OracleResponse,
    PredictionOut,
)
from oracle.core.container import container
from oracle.domain.entities import (
    CriticalDateRequest,
    InterpretRequest,
    OracleContext,
    RelationshipAdviceRequest,
    YearAheadRequest,
)
from oracle.infra.enhancement import EnhancementGateway, SuggestionInfo, ValidationInfo

router = APIRouter(prefix="/api", tags=["oracle"])


async def _personalize(
    gateway: EnhancementGateway, context: OracleContext, req: OracleRequest
) -> OracleResponse:
    """Modes de personnalisation; repli sur `baseMessages` quand la passerelle échoue."""
    request = req.personalize_request()
    fallback = OracleResponse(messages=list(req.base_messages))
    if isinstance(request, InterpretRequest):
        interp = await gateway.interpret(context, request)
        if interp is None:
            return fallback
        return OracleResponse(interpretation=InterpretationOut(**interp.model_dump()))
    if isinstance(request, CriticalDateRequest):
        explanation = await gateway.explain_critical_date(context, request)
        return OracleResponse(explanation=explanation) if explanation else fallback
    if isinstance(request, YearAheadRequest):
        prediction = await gateway.year_ahead(context, request)
        if prediction is None:
            return fallback
        return OracleResponse(prediction=PredictionOut(**prediction.model_dump()))
    if isinstance(request, RelationshipAdviceRequest):
        advice = await gateway.relationship_advice(context, request)
        return OracleResponse(advice=AdviceOut(full=advice)) if advice else fallback
    return fallback


@router.post("/oracle", response_model=OracleResponse, response_model_exclude_none=True)
async def enhance(req: OracleRequest) -> OracleResponse:
    gateway = container.enhancer
    context = req.context.to_domain()
    if not gateway.available:
        return OracleResponse(messages=list(req.base_messages), suggestions=[])

    if req.mode == "suggestions":
        if req.suggestions is not None:
            info = SuggestionInfo(
                oracle_question=req.suggestions.oracle_question, count=req.suggestions.count
            )
        else:
            question = req.base_messages[-1] if req.base_messages else ""
            info = SuggestionInfo(oracle_question=question)
        suggestions = await gateway.suggest(context, req.phase, info)
        return OracleResponse(messages=list(req.base_messages), suggestions=suggestions)

    if req.personalize_request() is not None:
        return await _personalize(gateway, context, req)

    validation = None
    if req.mode == "validation" and req.validation is not None:
        validation = ValidationInfo(
            error_code=req.validation.error_code,
            original_input=req.validation.original_input,
            expected_input=req.validation.expected_input,
        )
    messages = await gateway.enhance(
        req.mode,
        context,
        req.phase,
        req.base_messages,
        user_input=req.user_input,
        validation=validation,
    )
    return OracleResponse(messages=messages)
