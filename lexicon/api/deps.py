"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Fournir aux endpoints les services du conteneur (surchargeables en test via
  `app.dependency_overrides`).
- Extraire l'identité de l'utilisateur courant, posée par l'authentificateur amont dans
  l'en-tête `X-User`.
"""

from __future__ import annotations

from fastapi import Header

from lexicon.apigw.errors import unauthorized
from lexicon.core.container import container
from lexicon.core.http_constants import USER_HEADER
from lexicon.core.settings import Settings
from lexicon.domain.errors import ValidationError
from lexicon.infra.store.base import iri
from lexicon.services.activity_service import ActivityService
from lexicon.services.search_service import SearchService


def get_settings() -> Settings:
    return container.settings


def get_activity_service() -> ActivityService:
    return container.activity


def get_search_service() -> SearchService:
    return container.search


def get_optional_user(x_user: str | None = Header(None, alias=USER_HEADER)) -> str | None:
    """IRI de l'utilisateur courant, ou None si l'en-tête est absent."""
    if not x_user or not x_user.strip():
        return None
    return str(iri(x_user.strip()))


def get_current_user(x_user: str | None = Header(None, alias=USER_HEADER)) -> str:
    """IRI de l'utilisateur courant; 401 si l'identité est absente."""
    user = get_optional_user(x_user)
    if user is None:
        raise unauthorized("Missing user identity")
    return user


def bounded_limit(limit: int, settings: Settings) -> int:
    """Refuse une taille de résultat hors de ]0, MAX_PAGE_SIZE]."""
    if limit > settings.MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must not exceed {settings.MAX_PAGE_SIZE}, got {limit}")
    return limit
