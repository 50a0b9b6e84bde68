"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, contenus, passerelles, dépôt de sessions) et expose
un singleton `container` utilisé par le reste de l'application.
"""

import os

from oracle.core.settings import get_settings
from oracle.domain.orchestrator import FlowOptions
from oracle.domain.session import ConversationService
from oracle.infra.content_repo import JSONContentRepository
from oracle.infra.enhancement import EnhancementGateway
from oracle.infra.llm.openai_client import OpenAILLM
from oracle.infra.session_store import InMemorySessionRepo
from oracle.infra.speech import SpeechGateway


class Container:
    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        base_dir = os.path.dirname(__file__)
        content_path = os.path.normpath(
            os.path.join(base_dir, "..", "infra", "content", "life_paths.json")
        )
        self.content_repo = JSONContentRepository(path=content_path)
        self.llm = OpenAILLM(
            api_key=self.resolve_secret("OPENAI_API_KEY") or None,
            model=self.settings.LLM_MODEL,
        )
        self.enhancer = EnhancementGateway(
            self.llm,
            timeout_s=self.settings.ENHANCE_TIMEOUT_S,
            life_path_name=self.content_repo.life_path_name,
        )
        self.speech = SpeechGateway(
            self.resolve_secret("ELEVEN_LABS_API_KEY") or None,
            self.settings.TTS_VOICE_ID,
            self.settings.TTS_MODEL_ID,
            base_url=self.settings.TTS_BASE_URL,
            ws_base_url=self.settings.TTS_WS_BASE_URL,
            output_format=self.settings.TTS_OUTPUT_FORMAT,
            timeout_s=self.settings.SPEECH_TIMEOUT_S,
            cache_max=self.settings.SPEECH_CACHE_MAX,
        )
        self.sessions = InMemorySessionRepo(ttl_s=self.settings.SESSION_TTL_S)

    def flow_options(self) -> FlowOptions:
        return FlowOptions(
            strict_validation=self.settings.STRICT_INPUT_VALIDATION,
            payment_delay_ms=self.settings.PAYMENT_DELAY_MS,
            jitter_mode=self.settings.COMPATIBILITY_JITTER,
            jitter_seed=self.settings.COMPATIBILITY_SEED,
        )

    def new_session(self, realtime: bool | None = None, on_message=None) -> ConversationService:
        """Crée une session câblée sur les passerelles configurées (non enregistrée)."""
        return ConversationService(
            self.content_repo,
            options=self.flow_options(),
            enhancer=self.enhancer,
            speech=self.speech if self.settings.VOICEOVER_ENABLED else None,
            realtime=self.settings.NARRATION_REALTIME if realtime is None else realtime,
            enhance_narration=self.settings.ENHANCE_NARRATION,
            on_message=on_message,
        )

    def resolve_secret(self, key: str) -> str:
        """Résolution d'un secret: env → settings.

        Ne journalise jamais la valeur du secret.
        """
        env_val = os.getenv(key)
        if env_val:
            return env_val
        return getattr(self.settings, key, "") or ""


container = Container()
