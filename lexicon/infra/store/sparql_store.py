"""Client SPARQL 1.1 distant via `SPARQLWrapper`.

Les requêtes de lecture utilisent le format de résultats JSON; les mises à jour passent en POST sur
l'endpoint de mise à jour (par défaut, l'endpoint de requête).
"""

from __future__ import annotations

from typing import Any

import structlog
from rdflib import BNode, Literal, URIRef
from rdflib.term import Node
from SPARQLWrapper import JSON, POST, SPARQLWrapper

from lexicon.infra.store.base import Row, StoreClient

log = structlog.get_logger(__name__)


def _to_node(cell: dict[str, Any]) -> Node:
    """Convertit une cellule de résultat SPARQL JSON en terme rdflib."""
    kind = cell.get("type")
    value = cell.get("value", "")
    if kind == "uri":
        return URIRef(value)
    if kind == "bnode":
        return BNode(value)
    datatype = cell.get("datatype")
    return Literal(
        value,
        lang=cell.get("xml:lang"),
        datatype=URIRef(datatype) if datatype else None,
    )


class SparqlStoreClient(StoreClient):
    """Store distant; un `SPARQLWrapper` est créé par requête (pas d'état partagé)."""

    backend = "sparql"

    def __init__(self, query_url: str, update_url: str | None = None, timeout_s: int = 30) -> None:
        """Initialise le client.

        Args:
            query_url: Endpoint SPARQL de requête.
            update_url: Endpoint de mise à jour (défaut: `query_url`).
            timeout_s: Délai maximal d'une requête, en secondes.
        """
        if not query_url:
            raise ValueError("query_url ne doit pas être vide")
        self.query_url = query_url
        self.update_url = update_url or query_url
        self.timeout_s = timeout_s

    def _wrapper(self, url: str, query: str) -> SPARQLWrapper:
        sparql = SPARQLWrapper(url)
        sparql.setTimeout(self.timeout_s)
        sparql.setQuery(query)
        return sparql

    def _select(self, query: str) -> list[Row]:
        sparql = self._wrapper(self.query_url, query)
        sparql.setReturnFormat(JSON)
        payload = sparql.query().convert()
        return [
            {name: _to_node(cell) for name, cell in binding.items()}
            for binding in payload.get("results", {}).get("bindings", [])
        ]

    def _ask(self, query: str) -> bool:
        sparql = self._wrapper(self.query_url, query)
        sparql.setReturnFormat(JSON)
        payload = sparql.query().convert()
        return bool(payload.get("boolean", False))

    def _update(self, query: str) -> None:
        sparql = self._wrapper(self.update_url, query)
        sparql.setMethod(POST)
        sparql.query()
        log.debug("sparql_update_sent", endpoint=self.update_url)
