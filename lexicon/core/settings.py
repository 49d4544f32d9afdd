"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import os
from pathlib import Path

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


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
    )
    APP_NAME: str = "lexicon-backend"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Triple store
    STORE_BACKEND: str = "memory"  # "memory" | "sparql"
    STORE_QUERY_URL: str | None = None
    STORE_UPDATE_URL: str | None = None
    STORE_DATA_FILE: str | None = None
    STORE_TIMEOUT_S: int = 30

    # Langue des libellés affichés (tag BCP 47)
    LANGUAGE: str = "en"
    # Gabarit de recherche plein texte (défaut: ressource embarquée)
    FTS_QUERY_FILE: str | None = None

    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    # Taille du pool pour l'interrogation des trois sources d'activité (1 = séquentiel)
    FANOUT_WORKERS: int = 3


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
