"""Interface de base pour les clients du triple store.

Ce module définit l'interface abstraite des clients (SELECT, ASK, UPDATE) et la substitution des
paramètres liés. Les valeurs sont insérées sous forme de termes RDF échappés, en une seule passe sur
le texte de la requête: une valeur liée ne peut donc jamais introduire de syntaxe.
"""

from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

import structlog
from rdflib import Literal, URIRef
from rdflib.term import Identifier, Node

from lexicon.app.metrics import STORE_QUERIES, STORE_QUERY_LATENCY
from lexicon.domain.errors import ValidationError

log = structlog.get_logger(__name__)

Row = dict[str, Node]

_VARIABLE = re.compile(r"[?$]([A-Za-z_][A-Za-z0-9_]*)")
_FORBIDDEN_IRI_CHARS = re.compile(r'[\s<>"{}|^`\\]')


def _quote(value: str) -> str:
    """Littéral chaîne sur une seule ligne, caractères spéciaux échappés."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'


def iri(value: str) -> URIRef:
    """Construit un IRI après vérification qu'il ne contient aucun caractère interdit."""
    if not value or _FORBIDDEN_IRI_CHARS.search(value):
        raise ValidationError(f"Invalid IRI: {value!r}")
    return URIRef(value)


def to_term(value: Any) -> str:
    """Rend une valeur liée en syntaxe de terme (N3/SPARQL)."""
    if isinstance(value, URIRef):
        return iri(str(value)).n3()
    if isinstance(value, Identifier):
        return value.n3()
    if isinstance(value, bool | int | float | datetime):
        return Literal(value).n3()
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, Iterable):
        terms = [to_term(v) for v in value]
        if not terms:
            raise ValidationError("Cannot bind an empty collection")
        return ", ".join(terms)
    raise ValidationError(f"Unsupported parameter value: {value!r}")


def bind_parameters(query: str, bindings: Mapping[str, Any] | None) -> str:
    """Substitue les variables liées par leurs valeurs rendues.

    Les variables absentes de `bindings` restent libres.
    """
    if not bindings:
        return query
    rendered = {name: to_term(value) for name, value in bindings.items()}

    def _replace(match: re.Match[str]) -> str:
        return rendered.get(match.group(1), match.group(0))

    return _VARIABLE.sub(_replace, query)


class StoreClient(ABC):
    """Interface abstraite d'accès au triple store."""

    backend = "abstract"

    def select(self, query: str, bindings: Mapping[str, Any] | None = None) -> list[Row]:
        """Exécute une requête SELECT et retourne les lignes (variable -> terme)."""
        return self._timed("select", self._select, bind_parameters(query, bindings))

    def ask(self, query: str, bindings: Mapping[str, Any] | None = None) -> bool:
        """Exécute une requête ASK."""
        return self._timed("ask", self._ask, bind_parameters(query, bindings))

    def update(self, query: str, bindings: Mapping[str, Any] | None = None) -> None:
        """Exécute une requête de mise à jour (INSERT/DELETE)."""
        self._timed("update", self._update, bind_parameters(query, bindings))

    def _timed(self, kind: str, fn, query: str):
        start = time.perf_counter()
        try:
            result = fn(query)
        except Exception as exc:
            STORE_QUERIES.labels(self.backend, kind, "error").inc()
            log.warning("store_query_failed", backend=self.backend, kind=kind, error=str(exc))
            raise
        finally:
            STORE_QUERY_LATENCY.labels(self.backend, kind).observe(time.perf_counter() - start)
        STORE_QUERIES.labels(self.backend, kind, "ok").inc()
        log.debug(
            "store_query",
            backend=self.backend,
            kind=kind,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    @abstractmethod
    def _select(self, query: str) -> list[Row]:
        raise NotImplementedError

    @abstractmethod
    def _ask(self, query: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def _update(self, query: str) -> None:
        raise NotImplementedError
