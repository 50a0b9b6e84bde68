"""
Endpoints de synthèse vocale.

- `POST /api/speech`: MP3 (`audio/mpeg`) ou `{error}` (400 texte absent, 500 clé absente,
  statut amont sinon)
- `POST /api/speech/ws-auth`: paramètres de streaming WebSocket
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response

from oracle.api.schemas import SpeechRequest
from oracle.core.container import container
from oracle.infra.speech import SpeechError

router = APIRouter(prefix="/api/speech", tags=["speech"])


@router.post("")
async def speech(req: SpeechRequest):
    try:
        audio = await container.speech.synthesize(req.text)
    except SpeechError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Content-Length": str(len(audio))},
    )


@router.post("/ws-auth")
def ws_auth():
    try:
        return container.speech.ws_auth()
    except SpeechError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
