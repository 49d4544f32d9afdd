"""Sources d'actifs du fil d'activité (termes, vocabulaires, ressources).

Chaque source combine:
- `ChangeDeduplicator`: page d'entités distinctes récemment modifiées;
- `AssetHydrator`: description complète de chaque entité (libellé, auteur, nature du changement);
- `CommentAggregator`: dernier commentaire par entité (global, sur mes actifs, en réponse à moi).
"""

from __future__ import annotations

import structlog

from lexicon.core import vocabulary as lx
from lexicon.core.last_modified import LastModifiedCache
from lexicon.domain.errors import store_access
from lexicon.domain.models import (
    ChangeKind,
    PageSpec,
    RecentlyCommentedAsset,
    RecentlyModifiedAsset,
)
from lexicon.infra.dao.change_record_dao import (
    RESOURCE_KIND,
    TERM_KIND,
    VOCABULARY_KIND,
    AssetKind,
    ChangeDeduplicator,
)
from lexicon.infra.dao.comment_dao import CommentDao
from lexicon.infra.dao.user_dao import UserDao
from lexicon.infra.query.patterns import (
    comment_time_bindings,
    latest_per_group,
    vocabulary_bindings,
    vocabulary_pattern,
)
from lexicon.infra.store.base import Row, StoreClient, iri

log = structlog.get_logger(__name__)


def _label_pattern(entity: str = "entity") -> str:
    return (
        f"OPTIONAL {{ ?{entity} ?hasLabel ?entityLabel . "
        f"FILTER (?hasLabel IN (?labelProperties) && lang(?entityLabel) = ?language) }}"
    )


class AssetHydrator:
    """Décrit une entité à partir de sa dernière entrée du journal."""

    def __init__(self, store: StoreClient, kind: AssetKind, users: UserDao, language: str) -> None:
        self.store = store
        self.kind = kind
        self.users = users
        self.language = language

    def _query(self) -> str:
        return (
            "SELECT ?label ?modified ?modifiedBy ?vocabulary ?type ?changeKind WHERE {\n"
            "  ?change a ?changeClass , ?chType ;\n"
            "    ?hasChangedEntity ?entity ;\n"
            "    ?hasModificationDate ?modified ;\n"
            "    ?hasEditor ?author .\n"
            "  FILTER (?chType != ?changeClass)\n"
            "  ?entity a ?type ;\n"
            "    ?hasLabel ?label .\n"
            "  FILTER (?type IN (?assetTypes))\n"
            "  FILTER (?hasLabel IN (?labelProperties))\n"
            "  FILTER (lang(?label) = ?language)\n"
            f"  {self.kind.type_pattern()}\n"
            f"  {vocabulary_pattern(self.kind.primary_type)}\n"
            "  BIND (?author AS ?modifiedBy)\n"
            '  BIND (IF(?chType = ?persist, "create", "update") AS ?changeKind)\n'
            "}\n"
            "ORDER BY DESC(?modified) ?change ?type\n"
            "LIMIT 1"
        )

    def resolve(self, entity: str, author: str | None = None) -> RecentlyModifiedAsset | None:
        """Retourne l'actif décrit par sa modification la plus récente (de `author` si fourni).

        Une entité sans entrée exploitable (libellé absent dans la langue, type hors source)
        n'est pas une erreur: l'actif est ignoré et None est retourné.
        """
        bindings: dict[str, object] = {
            "changeClass": lx.CHANGE,
            "persist": lx.PERSIST_CHANGE,
            "hasChangedEntity": lx.HAS_CHANGED_ENTITY,
            "hasModificationDate": lx.HAS_MODIFICATION_DATE,
            "hasEditor": lx.HAS_EDITOR,
            "entity": iri(entity),
            "labelProperties": list(lx.LABEL_PROPERTIES),
            "language": self.language,
            **self.kind.type_bindings(),
            **vocabulary_bindings(),
        }
        if author is not None:
            bindings["author"] = iri(author)
        with store_access(f"{self.kind.name} asset read"):
            rows = self.store.select(self._query(), bindings)
            if not rows:
                log.warning("asset_skipped_missing", source=self.kind.name, entity=entity)
                return None
            row = rows[0]
            modified_by = str(row["modifiedBy"])
            editor = self.users.find(modified_by)
        vocabulary = row.get("vocabulary")
        return RecentlyModifiedAsset(
            uri=entity,
            label=str(row["label"]),
            modified=row["modified"].toPython(),
            modified_by=modified_by,
            editor=editor,
            vocabulary=str(vocabulary) if vocabulary is not None else None,
            asset_type=str(row["type"]),
            change_kind=ChangeKind(str(row["changeKind"])),
        )


class CommentAggregator:
    """Dernier commentaire par entité de la source, sans fonction de fenêtrage.

    Le dernier commentaire d'une entité est celui dont la date effective (modification, sinon
    création) égale le maximum calculé par une sous-requête groupée par entité. En cas d'égalité,
    le commentaire d'IRI le plus petit est retenu.
    """

    def __init__(
        self, store: StoreClient, kind: AssetKind, comments: CommentDao, language: str
    ) -> None:
        self.store = store
        self.kind = kind
        self.comments = comments
        self.language = language

    def _query(self, restriction: str, page: PageSpec, mine: bool = False) -> str:
        projection = "?entity ?lastComment ?lastCommentTime"
        if mine:
            projection += " ?myLastComment"
        return (
            f"SELECT {projection} (SAMPLE(?entityType) AS ?type) "
            "(SAMPLE(?entityLabel) AS ?label) (SAMPLE(?entityVocabulary) AS ?vocabulary) WHERE {\n"
            f"  {restriction}\n"
            "  ?lastComment a ?commentType ; ?hasTopic ?entity .\n"
            f"  {latest_per_group('lastComment', 'entity', 'lastCommentTime', 'all')}\n"
            "  ?entity a ?entityType .\n"
            "  FILTER (?entityType IN (?assetTypes))\n"
            f"  {self.kind.type_pattern()}\n"
            f"  {_label_pattern()}\n"
            f"  {vocabulary_pattern(self.kind.primary_type, target='entityVocabulary')}\n"
            "}\n"
            f"GROUP BY {projection}\n"
            "ORDER BY DESC(?lastCommentTime) ?lastComment\n"
            f"OFFSET {int(page.offset)}\n"
            f"LIMIT {int(page.size)}"
        )

    def _bindings(self, author: str | None = None) -> dict[str, object]:
        bindings: dict[str, object] = {
            **comment_time_bindings(),
            **self.kind.type_bindings(),
            **vocabulary_bindings(),
            "labelProperties": list(lx.LABEL_PROPERTIES),
            "language": self.language,
        }
        if author is not None:
            bindings.update(
                {
                    "author": iri(author),
                    "hasChangedEntity": lx.HAS_CHANGED_ENTITY,
                    "hasEditor": lx.HAS_EDITOR,
                }
            )
        return bindings

    def _run(
        self, operation: str, query: str, bindings: dict[str, object]
    ) -> list[RecentlyCommentedAsset]:
        with store_access(f"{self.kind.name} {operation}"):
            rows = self.store.select(query, bindings)
            # Deux commentaires de même date effective produisent deux lignes: la première gagne.
            # Sans correspondance, l'agrégat implicite renvoie une ligne vide: elle est ignorée.
            first: dict[str, Row] = {}
            for row in rows:
                entity = row.get("entity")
                if entity is not None:
                    first.setdefault(str(entity), row)
            return [self._hydrate(entity, row) for entity, row in first.items()]

    def _hydrate(self, entity: str, row: Row) -> RecentlyCommentedAsset:
        last_uri = str(row["lastComment"])
        mine = row.get("myLastComment")
        label = row.get("label")
        vocabulary = row.get("vocabulary")
        return RecentlyCommentedAsset(
            uri=entity,
            label=str(label) if label is not None else None,
            last_comment_uri=last_uri,
            my_last_comment_uri=str(mine) if mine is not None else None,
            vocabulary=str(vocabulary) if vocabulary is not None else None,
            asset_type=str(row.get("type") or self.kind.primary_type),
            last_comment=self.comments.get(last_uri),
            my_last_comment=self.comments.get(str(mine)) if mine is not None else None,
        )

    def latest(self, page: PageSpec) -> list[RecentlyCommentedAsset]:
        """Dernier commentaire de chaque entité commentée."""
        return self._run("last commented read", self._query("", page), self._bindings())

    def latest_on_mine(self, author: str, page: PageSpec) -> list[RecentlyCommentedAsset]:
        """Dernier commentaire des entités que `author` a modifiées."""
        restriction = "FILTER EXISTS { ?myChange ?hasChangedEntity ?entity ; ?hasEditor ?author . }"
        return self._run(
            "my last commented read", self._query(restriction, page), self._bindings(author)
        )

    def in_reaction(self, author: str, page: PageSpec) -> list[RecentlyCommentedAsset]:
        """Entités où quelqu'un a commenté après le dernier commentaire de `author`.

        Retourne, par entité, le dernier commentaire global et le dernier commentaire de `author`.
        """
        restriction = (
            "?myLastComment a ?commentType ; ?hasTopic ?entity ; ?hasCreator ?author .\n"
            + "  "
            + latest_per_group(
                "myLastComment",
                "entity",
                "myLastCommentTime",
                "mine",
                scope="?mineItem ?hasCreator ?author .",
            )
            + "\n  FILTER (?myLastComment != ?lastComment)"
        )
        return self._run(
            "commented in reaction read",
            self._query(restriction, page, mine=True),
            self._bindings(author),
        )


class AssetDao:
    """Source d'actifs d'un type donné pour le fil d'activité."""

    kind: AssetKind

    def __init__(
        self,
        store: StoreClient,
        users: UserDao,
        comments: CommentDao,
        last_modified: LastModifiedCache,
        language: str = "en",
    ) -> None:
        self.deduplicator = ChangeDeduplicator(store, self.kind)
        self.hydrator = AssetHydrator(store, self.kind, users, language)
        self.commented = CommentAggregator(store, self.kind, comments, language)
        self.last_modified = last_modified

    @property
    def name(self) -> str:
        return self.kind.name

    def _recent(self, limit: int, author: str | None) -> list[RecentlyModifiedAsset]:
        entities = self.deduplicator.find_unique_page(PageSpec.first(limit), author=author)
        assets = (self.hydrator.resolve(entity, author=author) for entity in entities)
        return [asset for asset in assets if asset is not None]

    def find_last_edited(self, limit: int) -> list[RecentlyModifiedAsset]:
        return self._recent(limit, None)

    def find_last_edited_by(self, author: str, limit: int) -> list[RecentlyModifiedAsset]:
        return self._recent(limit, author)

    def find_last_commented(self, page: PageSpec) -> list[RecentlyCommentedAsset]:
        return self.commented.latest(page)

    def find_my_last_commented(self, author: str, page: PageSpec) -> list[RecentlyCommentedAsset]:
        return self.commented.latest_on_mine(author, page)

    def find_last_commented_in_reaction(
        self, author: str, page: PageSpec
    ) -> list[RecentlyCommentedAsset]:
        return self.commented.in_reaction(author, page)

    def get_last_modified(self) -> int:
        return self.last_modified.get()


class TermDao(AssetDao):
    kind = TERM_KIND


class VocabularyDao(AssetDao):
    kind = VOCABULARY_KIND


class ResourceDao(AssetDao):
    """Ressources, documents et fichiers; les vocabulaires ont leur propre source."""

    kind = RESOURCE_KIND
