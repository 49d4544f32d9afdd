"""Client de triple store en mémoire adossé à `rdflib`.

Utilisé en développement, en test et pour les déploiements mono-nœud. Le graphe peut être
pré-chargé depuis un fichier RDF (format déduit de l'extension).
"""

from __future__ import annotations

import threading

import structlog
from rdflib import Graph

from lexicon.infra.store.base import Row, StoreClient

log = structlog.get_logger(__name__)


class RdflibStoreClient(StoreClient):
    """Store en mémoire; l'exécution des requêtes est sérialisée par un verrou."""

    backend = "memory"

    def __init__(self, graph: Graph | None = None, data_file: str | None = None) -> None:
        """Initialise le store.

        Args:
            graph: Graphe existant à interroger (nouveau graphe vide sinon).
            data_file: Fichier RDF optionnel chargé au démarrage.
        """
        self.graph = graph if graph is not None else Graph()
        self._lock = threading.Lock()
        if data_file:
            self.graph.parse(data_file)
            log.info("store_data_loaded", file=data_file, triples=len(self.graph))

    def _select(self, query: str) -> list[Row]:
        with self._lock:
            result = self.graph.query(query)
            return [
                {str(var): value for var, value in binding.items() if value is not None}
                for binding in result.bindings
            ]

    def _ask(self, query: str) -> bool:
        with self._lock:
            return bool(self.graph.query(query).askAnswer)

    def _update(self, query: str) -> None:
        with self._lock:
            self.graph.update(query)
