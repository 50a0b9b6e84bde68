"""Dépôt de contenus basé sur fichiers JSON.

Ce module implémente un dépôt de contenus simple chargeant depuis un fichier JSON les archétypes
de Chemin de vie, les thèmes d'année personnelle et les cartes de suggestions par phase.
"""

import json
import os
from functools import lru_cache

import structlog

from oracle.domain.interpretations import LifePathInterpretation
from oracle.domain.phases import ConversationPhase

log = structlog.get_logger(__name__).bind(component="content_repo")

DEFAULT_CONTENT_PATH = os.path.join(os.path.dirname(__file__), "content", "life_paths.json")


class JSONContentRepository:
    """Dépôt de contenus basé sur un fichier JSON.

    Le fichier est lu une fois à la construction; les clés numériques sont des chaînes
    ("1".."9", "11", "22", "33").
    """

    def __init__(self, path: str = DEFAULT_CONTENT_PATH):
        """Charge le fichier de contenus.

        Paramètres:
        - path: chemin du fichier JSON.
        """
        self.path = path
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        self._life_paths = {
            int(k): LifePathInterpretation(number=int(k), **v)
            for k, v in data.get("life_paths", {}).items()
        }
        self._names = {int(k): v for k, v in data.get("life_path_names", {}).items()}
        self._themes = {int(k): v for k, v in data.get("personal_year_themes", {}).items()}
        self._suggestions: dict[str, list[str]] = data.get("suggestions", {})
        log.debug("content_loaded", path=self.path, life_paths=len(self._life_paths))

    def get_life_path(self, number: int) -> LifePathInterpretation | None:
        """Retourne l'archétype d'un Chemin de vie, ou None s'il est inconnu."""
        return self._life_paths.get(number)

    def personal_year_theme(self, year: int) -> str:
        return self._themes.get(year, "transformation")

    def life_path_name(self, number: int) -> str:
        return self._names.get(number, "Path")

    def suggestions_for(
        self,
        phase: ConversationPhase,
        user_name: str | None = None,
        other_name: str | None = None,
    ) -> list[str]:
        """Cartes statiques d'une phase, avec `[Name]` / `[OtherName]` remplacés."""
        cards = self._suggestions.get(ConversationPhase(phase).value, [])
        return [
            c.replace("[Name]", user_name or "them").replace("[OtherName]", other_name or "them")
            for c in cards
        ]


@lru_cache(maxsize=1)
def default_content_repository() -> JSONContentRepository:
    """Dépôt partagé adossé au fichier embarqué dans le paquet."""
    return JSONContentRepository()
