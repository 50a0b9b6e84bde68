"""Configuration de test pour pytest avec gestion des chemins.

Ajoute la racine du projet au sys.path et neutralise les clés amont (LLM, TTS) pour que
les tests n'appellent jamais de service réel.
"""

import os
import sys
from datetime import date

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Avant tout import de `oracle.core.container`
os.environ["OPENAI_API_KEY"] = ""
os.environ["ELEVEN_LABS_API_KEY"] = ""
os.environ.setdefault("VOICEOVER_ENABLED", "false")
os.environ.setdefault("NARRATION_REALTIME", "false")

TODAY = date(2025, 6, 1)


@pytest.fixture
def today() -> date:
    """Date de référence fixe pour les calculs dépendant du jour."""
    return TODAY


@pytest.fixture
def content():
    from oracle.infra.content_repo import default_content_repository

    return default_content_repository()
