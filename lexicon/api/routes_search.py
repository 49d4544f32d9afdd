# ============================================================
# Module : lexicon/api/routes_search.py
# Objet  : Recherche plein texte et à facettes (/search/*).
# Notes  : La chaîne recherchée n'est journalisée qu'en debug.
# ============================================================
"""Routes de recherche."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Query

from lexicon.api.deps import get_search_service, get_settings
from lexicon.core.settings import Settings
from lexicon.domain.errors import ValidationError
from lexicon.domain.models import FacetedSearchResult, FullTextSearchResult, PageSpec, SearchParam
from lexicon.services.search_service import SearchService

router = APIRouter(prefix="/search", tags=["search"])

_search_dep = Depends(get_search_service)
_settings_dep = Depends(get_settings)


@router.get("/fts", response_model=list[FullTextSearchResult])
def full_text_search(
    search_string: str = Query("", alias="searchString"),
    include_snapshots: bool = Query(False, alias="includeSnapshots"),
    language: str | None = Query(None),
    search: SearchService = _search_dep,
):
    """Recherche plein texte; une chaîne vide retourne une liste vide."""
    return search.full_text_search(
        search_string, language=language or None, include_snapshots=include_snapshots
    )


@router.post("/faceted", response_model=list[FacetedSearchResult])
def faceted_search(
    params: list[SearchParam] = Body(...),
    page: int = Query(0),
    size: int | None = Query(None),
    search: SearchService = _search_dep,
    settings: Settings = _settings_dep,
):
    """Termes satisfaisant toutes les facettes fournies, paginés et triés par libellé."""
    size = settings.DEFAULT_PAGE_SIZE if size is None else size
    if size > settings.MAX_PAGE_SIZE:
        raise ValidationError(f"Page size must not exceed {settings.MAX_PAGE_SIZE}, got {size}")
    return search.faceted_search(params, PageSpec.of(page, size))
