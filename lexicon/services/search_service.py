# ============================================================
# Module : lexicon/services/search_service.py
# Objet  : Recherche plein texte et à facettes.
# Invariants :
#  - Les facettes sont validées avant tout accès au store.
# ============================================================
"""Service de recherche (validation et journalisation autour de `SearchDao`)."""

from __future__ import annotations

import time
from collections.abc import Sequence

import structlog

from lexicon.domain.models import (
    FacetedSearchResult,
    FullTextSearchResult,
    PageSpec,
    SearchParam,
)
from lexicon.infra.dao.search_dao import SearchDao

log = structlog.get_logger(__name__)


class SearchService:
    def __init__(self, dao: SearchDao) -> None:
        self.dao = dao

    def full_text_search(
        self,
        search_string: str,
        language: str | None = None,
        include_snapshots: bool = False,
    ) -> list[FullTextSearchResult]:
        start = time.perf_counter()
        results = self.dao.full_text_search(
            search_string, language=language, include_snapshots=include_snapshots
        )
        log.info(
            "fts_done",
            results=len(results),
            language=language,
            include_snapshots=include_snapshots,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return results

    def faceted_search(
        self, params: Sequence[SearchParam], page: PageSpec
    ) -> list[FacetedSearchResult]:
        """Termes satisfaisant toutes les facettes, triés par libellé."""
        for param in params:
            param.ensure_valid()
        results = self.dao.faceted_term_search(params, page)
        log.info(
            "faceted_search_done",
            facets=len(params),
            offset=page.offset,
            size=page.size,
            results=len(results),
        )
        return results
