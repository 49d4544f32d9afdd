"""Recherche plein texte et recherche à facettes.

Recherche plein texte
---------------------
Le gabarit de requête est chargé une seule fois. Deux clauses en sont retirées textuellement selon
les options: l'exclusion des instantanés (`include_snapshots`) et la fixation de la langue (aucune
langue demandée). Le gabarit doit donc contenir ces deux lignes sous leur forme exacte.

Recherche à facettes
--------------------
La requête est un arbre de clauses typées (`lexicon.infra.query.ast`): chaque facette ajoute un
motif reliant le terme à une variable fraîche, puis un filtre selon le type de correspondance. Les
valeurs fournies ne sont jamais concaténées au texte de la requête.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from importlib import resources
from pathlib import Path

import structlog
from rdflib.namespace import RDF

from lexicon.core import vocabulary as lx
from lexicon.domain.errors import store_access
from lexicon.domain.models import (
    FacetedSearchResult,
    FullTextSearchResult,
    MatchKind,
    PageSpec,
    SearchParam,
)
from lexicon.infra.query.ast import (
    Clause,
    ExactMatchFilter,
    InFilter,
    NotExists,
    OrderByLabel,
    Param,
    SelectQuery,
    SubstringFilter,
    TriplePattern,
    Var,
)
from lexicon.infra.store.base import StoreClient, iri

log = structlog.get_logger(__name__)

SNAPSHOT_EXCLUSION = "FILTER NOT EXISTS { ?entity a ?snapshot . }"
LANGUAGE_BINDING = "BIND (?requestedLanguageVal AS ?requestedLanguage)"

_TERM_DETAILS = """
SELECT ?label ?vocabulary ?type WHERE {
  ?term ?prefLabel ?label .
  OPTIONAL { ?term ?inVocabulary ?vocabulary . }
  OPTIONAL { ?term a ?type . }
}
"""


def load_fts_template(path: str | None = None) -> str:
    """Charge le gabarit plein texte (fichier fourni ou ressource embarquée)."""
    if path:
        text = Path(path).read_text(encoding="utf-8")
    else:
        text = resources.files("lexicon.resources").joinpath("fulltextsearch.rq").read_text(
            encoding="utf-8"
        )
    for clause in (SNAPSHOT_EXCLUSION, LANGUAGE_BINDING):
        if clause not in text:
            log.warning("fts_template_clause_missing", clause=clause, path=path)
    return text


def wildcard_variant(search_string: str) -> str:
    """Suffixe le dernier mot d'un joker `*`, sauf s'il en porte déjà un."""
    trimmed = search_string.strip()
    return trimmed if trimmed.endswith("*") else f"{trimmed}*"


def exact_match_variant(search_string: str) -> str:
    """Balise chaque mot: `<em>mot</em>`, séparés par des espaces."""
    return " ".join(f"<em>{token}</em>" for token in search_string.split())


# Variantes destinées aux index plein texte, calculées seulement si le gabarit les référence.
_VARIANTS = {
    "wildCardSearchString": wildcard_variant,
    "splitExactMatch": exact_match_variant,
}


class SearchDao:
    """Exécution des recherches sur le store."""

    def __init__(self, store: StoreClient, fts_template: str, language: str = "en") -> None:
        self.store = store
        self.language = language
        self._fts = fts_template
        self._fts_with_snapshots = fts_template.replace(SNAPSHOT_EXCLUSION, "")
        self._variants = {
            name: build
            for name, build in _VARIANTS.items()
            if re.search(rf"[?$]{name}\b", fts_template)
        }

    def full_text_search(
        self,
        search_string: str,
        language: str | None = None,
        include_snapshots: bool = False,
    ) -> list[FullTextSearchResult]:
        """Recherche plein texte sur les termes et vocabulaires.

        Une chaîne vide ou blanche retourne une liste vide sans interroger le store.
        """
        if not search_string or not search_string.strip():
            return []
        query = self._fts_with_snapshots if include_snapshots else self._fts
        bindings: dict[str, object] = {
            "searchString": search_string.strip(),
            "termType": lx.TERM,
            "vocabularyType": lx.VOCABULARY,
            "snapshot": lx.SNAPSHOT,
            "prefLabel": lx.PREF_LABEL,
            "title": lx.TITLE,
            "definitionProperty": lx.DEFINITION,
            "descriptionProperty": lx.DESCRIPTION,
            "inVocabulary": lx.IN_VOCABULARY,
            "hasTermState": lx.HAS_TERM_STATE,
        }
        for name, build in self._variants.items():
            bindings[name] = build(search_string)
        if language:
            bindings["requestedLanguageVal"] = language
        else:
            query = query.replace(LANGUAGE_BINDING, "")
        log.debug("fts_query", search_string=search_string, language=language)
        with store_access("full text search"):
            rows = self.store.select(query, bindings)
        results: dict[str, FullTextSearchResult] = {}
        for row in rows:
            uri = str(row["entity"])
            if uri in results:
                continue
            score = row.get("score")
            results[uri] = FullTextSearchResult(
                uri=uri,
                label=str(row["label"]),
                description=_text(row.get("description")),
                vocabulary=_text(row.get("vocabulary")),
                state=_text(row.get("state")),
                asset_type=str(row["type"]),
                snippet_field=_text(row.get("snippetField")),
                snippet_text=_text(row.get("snippetText")),
                score=float(score.toPython()) if score is not None else None,
            )
        return list(results.values())

    def build_faceted_query(self, params: Sequence[SearchParam], page: PageSpec) -> SelectQuery:
        """Construit la requête à facettes (termes hors instantanés, triés par libellé)."""
        term, label = Var("t"), Var("label")
        rdf_type = Param(RDF.type)
        where: list[Clause] = [
            TriplePattern(term, rdf_type, Param(lx.TERM)),
            TriplePattern(term, Param(lx.PREF_LABEL), label),
        ]
        for index, param in enumerate(params):
            value = Var(f"v{index}")
            where.append(TriplePattern(term, Param(iri(param.predicate)), value))
            if param.match_kind == MatchKind.IRI:
                where.append(InFilter(value, tuple(iri(v) for v in param.values)))
            elif param.match_kind == MatchKind.EXACT_MATCH:
                where.append(ExactMatchFilter(value, param.values[0]))
            else:
                where.append(SubstringFilter(value, param.values[0]))
        where.append(NotExists((TriplePattern(term, rdf_type, Param(lx.SNAPSHOT)),)))
        return SelectQuery(
            projection=[term],
            where=where,
            order_by=[OrderByLabel(label), OrderByLabel(term)],
            offset=page.offset,
            limit=page.size,
        )

    def faceted_term_search(
        self, params: Sequence[SearchParam], page: PageSpec
    ) -> list[FacetedSearchResult]:
        rendered = self.build_faceted_query(params, page).render()
        with store_access("faceted search"):
            rows = self.store.select(rendered.text, rendered.bindings)
            return [self._describe(str(row["t"])) for row in rows]

    def _describe(self, uri: str) -> FacetedSearchResult:
        rows = self.store.select(
            _TERM_DETAILS,
            {"term": iri(uri), "prefLabel": lx.PREF_LABEL, "inVocabulary": lx.IN_VOCABULARY},
        )
        labels: dict[str, str] = {}
        types: set[str] = set()
        vocabulary = None
        for row in rows:
            label = row["label"]
            labels.setdefault(getattr(label, "language", None) or "", str(label))
            if "type" in row:
                types.add(str(row["type"]))
            if vocabulary is None and "vocabulary" in row:
                vocabulary = str(row["vocabulary"])
        return FacetedSearchResult(
            uri=uri, label=labels, vocabulary=vocabulary, types=sorted(types)
        )


def _text(node) -> str | None:
    return str(node) if node is not None else None
