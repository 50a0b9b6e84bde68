"""
Passerelle de synthèse vocale (API text-to-speech ElevenLabs).

- `synthesize(text)` renvoie l'audio MP3 ou lève `SpeechError` (statut à relayer au client)
- `duration_ms(text)` ne lève jamais: durée de l'audio synthétisé, sinon estimation
- `ws_auth()` décrit la connexion WebSocket de streaming (clé comprise)

Aucun nouvel essai; l'audio est mis en cache par texte (LRU borné à `cache_max` entrées).
"""

from __future__ import annotations

import re
from collections import OrderedDict
from typing import Any

import httpx
import structlog

from oracle.app.metrics import SPEECH_REQUESTS
from oracle.core.http_constants import (
    DEFAULT_TIMEOUT_S,
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_CLIENT_ERROR_MIN,
)
from oracle.infra.http_clients import fetch_with_timeout

log = structlog.get_logger(__name__).bind(component="speech")

VOICE_SETTINGS: dict[str, Any] = {
    "stability": 0.6,
    "similarity_boost": 0.8,
    "style": 0.4,
    "use_speaker_boost": True,
}
DEFAULT_BITRATE_KBPS = 128
MIN_SPEECH_MS = 1200
MS_PER_CHAR = 95
MS_PER_PAUSE_MARK = 200
TRAILING_MS = 800
DEFAULT_CACHE_MAX = 256
_PAUSE_MARKS = re.compile(r"[.,!?;:…]")
_BITRATE = re.compile(r"_(\d+)_(\d+)$")


class SpeechError(Exception):
    """Échec de synthèse, avec le statut HTTP à renvoyer au client."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def estimate_speech_ms(text: str) -> int:
    """Estimation de la durée de lecture: 95 ms par caractère, 200 ms par ponctuation."""
    punct = len(_PAUSE_MARKS.findall(text))
    return max(MIN_SPEECH_MS, len(text) * MS_PER_CHAR + punct * MS_PER_PAUSE_MARK + TRAILING_MS)


def audio_duration_ms(nbytes: int, bitrate_kbps: int = DEFAULT_BITRATE_KBPS) -> int:
    """Durée d'un MP3 à débit constant (octets * 8 / kbps)."""
    return int(nbytes * 8 / bitrate_kbps)


def bitrate_from_format(output_format: str) -> int:
    """`mp3_44100_128` -> 128."""
    m = _BITRATE.search(output_format)
    return int(m.group(2)) if m else DEFAULT_BITRATE_KBPS


class SpeechGateway:
    """Client ElevenLabs minimal avec cache audio."""

    def __init__(
        self,
        api_key: str | None,
        voice_id: str,
        model_id: str,
        *,
        base_url: str = "https://api.elevenlabs.io",
        ws_base_url: str = "wss://api.elevenlabs.io",
        output_format: str = "mp3_44100_128",
        timeout_s: float = DEFAULT_TIMEOUT_S,
        cache_max: int = DEFAULT_CACHE_MAX,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.base_url = base_url.rstrip("/")
        self.ws_base_url = ws_base_url.rstrip("/")
        self.output_format = output_format
        self.timeout_s = timeout_s
        self._client = client
        self.cache_max = cache_max
        self._cache: OrderedDict[str, bytes] = OrderedDict()

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        """Ferme le client HTTP (recréé au prochain appel)."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.debug("speech_client_closed")

    async def synthesize(self, text: str) -> bytes:
        """
        Synthétise `text` en MP3.

        Raises:
            SpeechError: clé absente (500), texte vide (400), statut amont non-2xx (relayé),
                erreur de transport (500).
        """
        if not self.api_key:
            SPEECH_REQUESTS.labels(outcome="no_credentials").inc()
            log.warning("speech_unconfigured")
            raise SpeechError(HTTP_INTERNAL_SERVER_ERROR, "ElevenLabs API key not configured")
        if not text or not isinstance(text, str):
            raise SpeechError(HTTP_BAD_REQUEST, "Text is required")
        if text in self._cache:
            SPEECH_REQUESTS.labels(outcome="cache_hit").inc()
            self._cache.move_to_end(text)
            return self._cache[text]

        url = f"{self.base_url}/v1/text-to-speech/{self.voice_id}"
        try:
            resp = await fetch_with_timeout(
                self._http(),
                "POST",
                url,
                timeout_s=self.timeout_s,
                params={"output_format": self.output_format},
                headers={"Accept": "audio/mpeg", "xi-api-key": self.api_key},
                json={"text": text, "model_id": self.model_id, "voice_settings": VOICE_SETTINGS},
            )
        except httpx.TimeoutException as exc:
            SPEECH_REQUESTS.labels(outcome="timeout").inc()
            log.warning("speech_timeout", timeout_s=self.timeout_s)
            raise SpeechError(HTTP_INTERNAL_SERVER_ERROR, "Internal server error") from exc
        except httpx.HTTPError as exc:
            SPEECH_REQUESTS.labels(outcome="error").inc()
            log.warning("speech_transport_error", error=type(exc).__name__)
            raise SpeechError(HTTP_INTERNAL_SERVER_ERROR, "Internal server error") from exc

        if resp.status_code >= HTTP_STATUS_CLIENT_ERROR_MIN:
            SPEECH_REQUESTS.labels(outcome="upstream_error").inc()
            log.warning("speech_upstream_error", status=resp.status_code, body=resp.text[:200])
            raise SpeechError(resp.status_code, "Failed to generate speech")

        SPEECH_REQUESTS.labels(outcome="ok").inc()
        self._remember(text, resp.content)
        return resp.content

    def _remember(self, text: str, audio: bytes) -> None:
        self._cache[text] = audio
        while len(self._cache) > self.cache_max:
            self._cache.popitem(last=False)

    async def duration_ms(self, text: str) -> int:
        """Durée de parole de `text`; estimation si la synthèse est impossible."""
        if not self.available:
            return estimate_speech_ms(text)
        try:
            audio = await self.synthesize(text)
        except SpeechError:
            return estimate_speech_ms(text)
        return audio_duration_ms(len(audio), bitrate_from_format(self.output_format))

    def ws_auth(self) -> dict[str, Any]:
        """
        Paramètres de connexion au streaming WebSocket.

        Raises:
            SpeechError: clé absente (500).
        """
        if not self.api_key:
            log.warning("speech_unconfigured")
            raise SpeechError(HTTP_INTERNAL_SERVER_ERROR, "ElevenLabs API key not configured")
        ws_url = (
            f"{self.ws_base_url}/v1/text-to-speech/{self.voice_id}/stream-input"
            f"?model_id={self.model_id}"
        )
        return {
            "wsUrl": ws_url,
            "apiKey": self.api_key,
            "voiceSettings": dict(VOICE_SETTINGS),
            "voiceId": self.voice_id,
            "modelId": self.model_id,
        }
