"""Journal des modifications: écriture, lecture et déduplication paginée.

Le journal contient une entrée par modification; une même entité peut donc apparaître sur de
nombreuses lignes. `ChangeDeduplicator` reconstitue une page d'entités distinctes, triées de la plus
récemment modifiée à la plus ancienne, en relisant le journal par pages successives.

Les lectures successives ne sont pas isolées: une écriture concurrente entre deux tours peut décaler
le journal et produire un doublon évité par l'ensemble ordonné ou une entité manquée. Ce
comportement de cohérence faible est accepté.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import structlog
from rdflib import URIRef

from lexicon.app.metrics import DEDUP_ROUNDS
from lexicon.core import vocabulary as lx
from lexicon.core.events import AssetChanged, EventBus
from lexicon.domain.errors import store_access
from lexicon.domain.models import ChangeKind, ChangeRecord, PageSpec
from lexicon.infra.store.base import StoreClient, iri

log = structlog.get_logger(__name__)

_CHANGE_BINDINGS = {
    "changeClass": lx.CHANGE,
    "persist": lx.PERSIST_CHANGE,
    "hasChangedEntity": lx.HAS_CHANGED_ENTITY,
    "hasModificationDate": lx.HAS_MODIFICATION_DATE,
    "hasEditor": lx.HAS_EDITOR,
}

_KIND_CLASSES = {
    ChangeKind.CREATE: lx.PERSIST_CHANGE,
    ChangeKind.UPDATE: lx.UPDATE_CHANGE,
}


@dataclass(frozen=True)
class AssetKind:
    """Source d'actifs du fil d'activité.

    Attributes:
        name: Nom court de la source (ex. "term").
        types: Classes dont les instances appartiennent à la source.
        label_property: Prédicat de libellé principal.
        excluded: Classes dont les instances sont écartées même si elles ont l'un des `types`.
    """

    name: str
    types: tuple[URIRef, ...]
    label_property: URIRef
    excluded: tuple[URIRef, ...] = ()

    @property
    def primary_type(self) -> URIRef:
        return self.types[0]

    def type_pattern(self, entity: str = "entity") -> str:
        """Motif restreignant `?entity` aux types de la source (paramètres `assetTypes`,
        `excludedTypes`)."""
        pattern = (
            f"FILTER EXISTS {{ ?{entity} a ?assetTypeMember . "
            f"FILTER (?assetTypeMember IN (?assetTypes)) }}"
        )
        if self.excluded:
            pattern += (
                f"\n  FILTER NOT EXISTS {{ ?{entity} a ?excludedTypeMember . "
                f"FILTER (?excludedTypeMember IN (?excludedTypes)) }}"
            )
        return pattern

    def type_bindings(self) -> dict[str, object]:
        bindings: dict[str, object] = {"assetTypes": list(self.types)}
        if self.excluded:
            bindings["excludedTypes"] = list(self.excluded)
        return bindings


TERM_KIND = AssetKind("term", (lx.TERM,), lx.PREF_LABEL)
VOCABULARY_KIND = AssetKind("vocabulary", (lx.VOCABULARY,), lx.TITLE)
# Un vocabulaire est techniquement une ressource mais a sa propre source.
RESOURCE_KIND = AssetKind(
    "resource", (lx.RESOURCE, lx.DOCUMENT, lx.FILE), lx.TITLE, excluded=(lx.VOCABULARY,)
)


class ChangeDeduplicator:
    """Page d'entités distinctes issue du journal des modifications."""

    def __init__(self, store: StoreClient, kind: AssetKind) -> None:
        self.store = store
        self.kind = kind

    def _query(self, offset: int, limit: int) -> str:
        return (
            "SELECT ?entity WHERE {\n"
            "  ?change a ?changeClass ;\n"
            "    ?hasChangedEntity ?entity ;\n"
            "    ?hasModificationDate ?modified ;\n"
            "    ?hasEditor ?author .\n"
            f"  {self.kind.type_pattern()}\n"
            "}\n"
            "ORDER BY DESC(?modified) ?change\n"
            f"OFFSET {int(offset)}\n"
            f"LIMIT {int(limit)}"
        )

    def find_unique_page(self, page: PageSpec, author: str | None = None) -> list[str]:
        """Retourne au plus `page.size` entités distinctes, de la plus récente à la plus ancienne.

        Le tour `r` lit le journal à partir de `page.offset + r * page.size`; la lecture s'arrête
        dès que la page est pleine ou qu'un tour ne renvoie plus aucune ligne.
        """
        bindings: dict[str, object] = {**_CHANGE_BINDINGS, **self.kind.type_bindings()}
        if author is not None:
            bindings["author"] = iri(author)

        unique: dict[str, None] = {}
        rounds = 0
        with store_access(f"{self.kind.name} change log read"):
            while True:
                offset = page.offset + rounds * page.size
                batch = self.store.select(self._query(offset, page.size), bindings)
                rounds += 1
                for row in batch:
                    unique.setdefault(str(row["entity"]), None)
                log.debug(
                    "dedup_round",
                    source=self.kind.name,
                    round=rounds,
                    offset=offset,
                    rows=len(batch),
                    unique=len(unique),
                )
                if len(unique) >= page.size or not batch:
                    break
        DEDUP_ROUNDS.observe(rounds)
        return list(unique)[: page.size]


class ChangeRecordDao:
    """Accès en écriture et en lecture au journal des modifications."""

    def __init__(self, store: StoreClient, bus: EventBus | None = None) -> None:
        self.store = store
        self.bus = bus

    def persist(self, record: ChangeRecord) -> ChangeRecord:
        """Ajoute une entrée au journal et notifie les caches de dernière modification."""
        uri = record.uri or f"{lx.LX}change/{uuid.uuid4()}"
        bindings = {
            **_CHANGE_BINDINGS,
            "change": iri(uri),
            "kindClass": _KIND_CLASSES[record.kind],
            "entity": iri(record.changed_entity),
            "timestamp": record.timestamp,
            "author": iri(record.author),
        }
        query = (
            "INSERT DATA {\n"
            "  ?change a ?changeClass , ?kindClass ;\n"
            "    ?hasChangedEntity ?entity ;\n"
            "    ?hasModificationDate ?timestamp ;\n"
            "    ?hasEditor ?author .\n"
            "}"
        )
        with store_access("change record persist"):
            self.store.update(query, bindings)
            types = self.store.select(
                "SELECT DISTINCT ?type WHERE { ?entity a ?type . }",
                {"entity": iri(record.changed_entity)},
            )
        log.info("change_recorded", entity=record.changed_entity, kind=record.kind.value)
        if self.bus is not None:
            for row in types:
                self.bus.publish(AssetChanged(str(row["type"]), record.changed_entity))
        return record.model_copy(update={"uri": uri})

    def find_all(self, asset: str) -> list[ChangeRecord]:
        """Toutes les entrées du journal concernant `asset`, de la plus récente à la plus ancienne."""
        query = (
            "SELECT ?change ?modified ?author ?changeKind WHERE {\n"
            "  ?change a ?changeClass , ?chType ;\n"
            "    ?hasChangedEntity ?entity ;\n"
            "    ?hasModificationDate ?modified ;\n"
            "    ?hasEditor ?author .\n"
            "  FILTER (?chType != ?changeClass)\n"
            '  BIND (IF(?chType = ?persist, "create", "update") AS ?changeKind)\n'
            "}\n"
            "ORDER BY DESC(?modified) ?change"
        )
        with store_access("change record read"):
            rows = self.store.select(query, {**_CHANGE_BINDINGS, "entity": iri(asset)})
            return [
                ChangeRecord(
                    uri=str(row["change"]),
                    changed_entity=asset,
                    kind=ChangeKind(str(row["changeKind"])),
                    timestamp=row["modified"].toPython(),
                    author=str(row["author"]),
                )
                for row in rows
            ]

    def get_authors(self, asset: str) -> set[str]:
        """Auteurs des entrées de création de `asset`."""
        query = (
            "SELECT DISTINCT ?author WHERE {\n"
            "  ?change a ?persist ;\n"
            "    ?hasChangedEntity ?entity ;\n"
            "    ?hasEditor ?author .\n"
            "}"
        )
        with store_access("change author read"):
            rows = self.store.select(query, {**_CHANGE_BINDINGS, "entity": iri(asset)})
        return {str(row["author"]) for row in rows}
