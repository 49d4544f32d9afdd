# ============================================================
# Module : lexicon/services/activity_service.py
# Objet  : Fil d'activité (actifs récemment modifiés ou commentés).
# Contexte : Interroge les trois sources d'actifs et fusionne.
# Invariants :
#  - Chaque source est interrogée pour `count` éléments au plus.
#  - Le résultat est trié par date décroissante puis tronqué à `count`.
# ============================================================
"""Agrégation du fil d'activité.

Aucune source ne peut fournir plus de `count` éléments au résultat final: demander `count`
éléments à chacune puis fusionner suffit, sans qu'une source connaisse les autres. Les sources sont
interrogées en parallèle (`FANOUT_WORKERS`), ou séquentiellement avec un seul worker.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import TypeVar

import structlog

from lexicon.domain.errors import ValidationError
from lexicon.domain.models import (
    Comment,
    PageSpec,
    RecentlyCommentedAsset,
    RecentlyModifiedAsset,
)
from lexicon.infra.dao.asset_dao import AssetDao
from lexicon.infra.dao.comment_dao import CommentDao

log = structlog.get_logger(__name__)

T = TypeVar("T")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _require_positive(count: int) -> None:
    if count <= 0:
        raise ValidationError(f"Count must be positive, got {count}")


def _sort_key(moment: datetime | None) -> datetime:
    """Clé de tri comparable entre dates naïves et dates avec fuseau (naïf = UTC)."""
    if moment is None:
        return _EPOCH
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class ActivityService:
    """Fil d'activité agrégé sur les ressources, termes et vocabulaires."""

    def __init__(
        self, sources: Sequence[AssetDao], comments: CommentDao, workers: int = 1
    ) -> None:
        self.sources = list(sources)
        self.comments = comments
        self.workers = max(1, workers)

    def _gather(self, fetch: Callable[[AssetDao], list[T]]) -> list[T]:
        """Interroge chaque source et concatène les résultats dans l'ordre des sources.

        La première erreur d'une source est propagée telle quelle.
        """
        if self.workers == 1 or len(self.sources) <= 1:
            batches = [fetch(source) for source in self.sources]
        else:
            with ThreadPoolExecutor(
                max_workers=min(self.workers, len(self.sources)),
                thread_name_prefix="activity",
            ) as pool:
                batches = list(pool.map(fetch, self.sources))
        merged: list[T] = []
        for source, batch in zip(self.sources, batches, strict=True):
            log.debug("activity_source_done", source=source.name, items=len(batch))
            merged.extend(batch)
        return merged

    def _merge_modified(
        self, fetch: Callable[[AssetDao], list[RecentlyModifiedAsset]], count: int
    ) -> list[RecentlyModifiedAsset]:
        merged = self._gather(fetch)
        merged.sort(key=lambda asset: _sort_key(asset.modified), reverse=True)
        return merged[:count]

    def _merge_commented(
        self, fetch: Callable[[AssetDao], list[RecentlyCommentedAsset]], count: int
    ) -> list[RecentlyCommentedAsset]:
        merged = self._gather(fetch)
        merged.sort(key=lambda asset: _sort_key(asset.last_commented), reverse=True)
        return merged[:count]

    def find_last_edited(self, count: int) -> list[RecentlyModifiedAsset]:
        """Derniers actifs créés ou modifiés, toutes sources confondues."""
        _require_positive(count)
        return self._merge_modified(lambda source: source.find_last_edited(count), count)

    def find_last_edited_by(self, author: str, count: int) -> list[RecentlyModifiedAsset]:
        """Derniers actifs créés ou modifiés par `author`."""
        _require_positive(count)
        return self._merge_modified(
            lambda source: source.find_last_edited_by(author, count), count
        )

    def find_last_commented(self, count: int) -> list[RecentlyCommentedAsset]:
        _require_positive(count)
        page = PageSpec.first(count)
        return self._merge_commented(lambda source: source.find_last_commented(page), count)

    def find_my_last_commented(self, author: str, count: int) -> list[RecentlyCommentedAsset]:
        """Derniers commentaires sur les actifs que `author` a modifiés."""
        _require_positive(count)
        page = PageSpec.first(count)
        return self._merge_commented(
            lambda source: source.find_my_last_commented(author, page), count
        )

    def find_last_commented_in_reaction(
        self, author: str, count: int
    ) -> list[RecentlyCommentedAsset]:
        """Actifs où quelqu'un a répondu après le dernier commentaire de `author`."""
        _require_positive(count)
        page = PageSpec.first(count)
        return self._merge_commented(
            lambda source: source.find_last_commented_in_reaction(author, page), count
        )

    def find_my_last_edited_comments(self, author: str, count: int) -> list[Comment]:
        _require_positive(count)
        return self.comments.find_last_edited_by(author, count)

    def last_modified(self) -> int:
        """Horodatage (ms epoch) de la dernière modification, toutes sources confondues."""
        return max((source.get_last_modified() for source in self.sources), default=0)
