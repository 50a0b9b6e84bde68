"""Tests pour la passerelle de synthèse vocale (transport httpx simulé)."""

from __future__ import annotations

import json

import httpx
import pytest

from oracle.core.http_constants import HTTP_BAD_REQUEST, HTTP_INTERNAL_SERVER_ERROR, HTTP_OK
from oracle.infra.speech import (
    VOICE_SETTINGS,
    SpeechError,
    SpeechGateway,
    audio_duration_ms,
    bitrate_from_format,
    estimate_speech_ms,
)

AUDIO = b"\xff\xfb" * 800
AUDIO_MS = 100
HTTP_UNAUTHORIZED = 401
CACHE_MAX = 2


def _gateway(handler, api_key: str | None = "xi-test", **kwargs) -> tuple[SpeechGateway, list]:
    seen: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(record))
    gateway = SpeechGateway(
        api_key, "voice-1", "model-1", base_url="https://tts.test", client=client, **kwargs
    )
    return gateway, seen


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(HTTP_OK, content=AUDIO, headers={"content-type": "audio/mpeg"})


@pytest.mark.asyncio
async def test_synthesize_request_shape() -> None:
    """Teste l'appel amont: URL, format de sortie, clé et corps JSON."""
    gateway, seen = _gateway(_ok)
    audio = await gateway.synthesize("I see it now...")
    assert audio == AUDIO
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/text-to-speech/voice-1"
    assert request.url.params["output_format"] == "mp3_44100_128"
    assert request.headers["xi-api-key"] == "xi-test"
    assert request.headers["accept"] == "audio/mpeg"
    body = json.loads(request.content)
    assert body["text"] == "I see it now..."
    assert body["model_id"] == "model-1"
    assert body["voice_settings"] == VOICE_SETTINGS


@pytest.mark.asyncio
async def test_synthesize_cached_by_text() -> None:
    gateway, seen = _gateway(_ok)
    await gateway.synthesize("hello")
    await gateway.synthesize("hello")
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_cache_evicts_least_recently_used() -> None:
    """Teste le plafond du cache: l'entrée la moins récemment lue est évincée."""
    gateway, seen = _gateway(_ok, cache_max=CACHE_MAX)
    for text in ("a", "b", "a", "c"):
        await gateway.synthesize(text)
    assert len(seen) == 3
    assert list(gateway._cache) == ["a", "c"]
    await gateway.synthesize("a")
    assert len(seen) == 3
    await gateway.synthesize("b")
    assert len(seen) == 4
    assert len(gateway._cache) == CACHE_MAX


@pytest.mark.asyncio
async def test_aclose_closes_http_client() -> None:
    gateway, _ = _gateway(_ok)
    client = gateway._http()
    await gateway.aclose()
    assert client.is_closed
    assert gateway._client is None
    await gateway.aclose()


@pytest.mark.asyncio
async def test_upstream_status_is_relayed() -> None:
    gateway, _ = _gateway(lambda r: httpx.Response(HTTP_UNAUTHORIZED, text="bad key"))
    with pytest.raises(SpeechError) as exc:
        await gateway.synthesize("hello")
    assert exc.value.status_code == HTTP_UNAUTHORIZED
    assert exc.value.message == "Failed to generate speech"


@pytest.mark.asyncio
async def test_transport_error_is_internal() -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    gateway, _ = _gateway(boom)
    with pytest.raises(SpeechError) as exc:
        await gateway.synthesize("hello")
    assert exc.value.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert exc.value.message == "Internal server error"


@pytest.mark.asyncio
async def test_timeout_is_internal_and_not_retried() -> None:
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    gateway, seen = _gateway(slow)
    with pytest.raises(SpeechError) as exc:
        await gateway.synthesize("hello")
    assert exc.value.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_missing_key_checked_before_text() -> None:
    """Teste l'ordre des contrôles: clé absente (500) avant texte vide (400)."""
    gateway, seen = _gateway(_ok, api_key=None)
    with pytest.raises(SpeechError) as exc:
        await gateway.synthesize("")
    assert exc.value.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert exc.value.message == "ElevenLabs API key not configured"
    assert seen == []


@pytest.mark.asyncio
async def test_empty_text_rejected() -> None:
    gateway, seen = _gateway(_ok)
    with pytest.raises(SpeechError) as exc:
        await gateway.synthesize("")
    assert exc.value.status_code == HTTP_BAD_REQUEST
    assert exc.value.message == "Text is required"
    assert seen == []


@pytest.mark.asyncio
async def test_duration_from_audio_or_estimate() -> None:
    """Teste la durée de parole: audio réel si possible, estimation sinon."""
    gateway, _ = _gateway(_ok)
    assert await gateway.duration_ms("hello") == AUDIO_MS

    failing, _ = _gateway(lambda r: httpx.Response(500))
    assert await failing.duration_ms("hello") == estimate_speech_ms("hello")

    unconfigured, seen = _gateway(_ok, api_key=None)
    assert await unconfigured.duration_ms("hello") == estimate_speech_ms("hello")
    assert seen == []


def test_ws_auth() -> None:
    gateway, _ = _gateway(_ok)
    auth = gateway.ws_auth()
    assert auth["wsUrl"] == (
        "wss://api.elevenlabs.io/v1/text-to-speech/voice-1/stream-input?model_id=model-1"
    )
    assert auth["apiKey"] == "xi-test"
    assert auth["voiceSettings"] == VOICE_SETTINGS
    assert (auth["voiceId"], auth["modelId"]) == ("voice-1", "model-1")


def test_ws_auth_without_key() -> None:
    gateway, _ = _gateway(_ok, api_key=None)
    with pytest.raises(SpeechError) as exc:
        gateway.ws_auth()
    assert exc.value.status_code == HTTP_INTERNAL_SERVER_ERROR


def test_estimates_and_bitrate() -> None:
    assert estimate_speech_ms("") == 1200
    # 3 * 95 + 1 * 200 + 800
    assert estimate_speech_ms("Hi.") == 1285
    assert audio_duration_ms(16_000) == 1000
    assert bitrate_from_format("mp3_22050_32") == 32
    assert bitrate_from_format("pcm") == 128
