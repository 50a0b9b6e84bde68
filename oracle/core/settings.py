"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import os
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default

JitterMode = Literal["random", "seeded", "hash", "none"]


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "oracle-backend"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Enhancement gateway (chat-completion)
    OPENAI_API_KEY: str | None = None
    LLM_MODEL: str = "gpt-4o-mini"
    ENHANCE_TIMEOUT_S: float = 8.0
    ENHANCE_NARRATION: bool = False

    # Speech gateway (TTS)
    ELEVEN_LABS_API_KEY: str | None = None
    TTS_BASE_URL: str = "https://api.elevenlabs.io"
    TTS_WS_BASE_URL: str = "wss://api.elevenlabs.io"
    TTS_VOICE_ID: str = "L1aJrPa7pLJEyYlh3Ilq"
    TTS_MODEL_ID: str = "eleven_multilingual_v2"
    TTS_OUTPUT_FORMAT: str = "mp3_44100_128"
    SPEECH_TIMEOUT_S: float = 8.0
    VOICEOVER_ENABLED: bool = False

    # Conversation
    NARRATION_REALTIME: bool = False
    COMPATIBILITY_JITTER: JitterMode = "random"
    COMPATIBILITY_SEED: int | None = None
    STRICT_INPUT_VALIDATION: bool = True
    PAYMENT_DELAY_MS: int = 2000
    SESSION_TTL_S: float = 3600.0
    SPEECH_CACHE_MAX: int = 256


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
