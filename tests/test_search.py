"""Tests de la recherche à facettes et de la recherche plein texte."""

from __future__ import annotations

import pytest

from rdflib import Literal

from lexicon.core import vocabulary as lx
from lexicon.domain.errors import ValidationError
from lexicon.domain.models import MatchKind, PageSpec, SearchParam
from lexicon.infra.dao.search_dao import (
    LANGUAGE_BINDING,
    SNAPSHOT_EXCLUSION,
    SearchDao,
    exact_match_variant,
    load_fts_template,
    wildcard_variant,
)
from lexicon.services.search_service import SearchService
from tests.fakes import ScriptedStore, u

LABEL = str(lx.PREF_LABEL)


def facet(kind: MatchKind, *values: str, predicate: str = LABEL) -> SearchParam:
    return SearchParam(predicate=predicate, match_kind=kind, values=list(values))


@pytest.fixture
def fruits(builder):
    builder.vocabulary(u("v1"), "Fruits")
    builder.term(u("apple"), "Apple", vocabulary=u("v1"), definition="A red fruit")
    builder.term(u("apple-lc"), "apple")
    builder.term(u("pineapple"), "Pineapple")
    builder.term(u("pear"), "Pear")
    builder.add(u("apple"), lx.PREF_LABEL, Literal("Pomme", lang="fr"))
    builder.term(u("apple-old"), "Apple", snapshot=True)
    return builder


@pytest.fixture
def search_dao(store):
    return SearchDao(store, load_fts_template(), language="en")


def test_exact_match_is_case_sensitive(fruits, search_dao):
    results = search_dao.faceted_term_search(
        [facet(MatchKind.EXACT_MATCH, "Apple")], PageSpec.first(10)
    )
    assert [r.uri for r in results] == [u("apple")]
    assert results[0].label == {"en": "Apple", "fr": "Pomme"}
    assert results[0].vocabulary == u("v1")
    assert str(lx.TERM) in results[0].types


def test_substring_is_case_insensitive_and_sorted_by_label(fruits, search_dao):
    results = search_dao.faceted_term_search(
        [facet(MatchKind.SUBSTRING, "app")], PageSpec.first(10)
    )
    uris = {r.uri for r in results}
    assert uris == {u("apple"), u("apple-lc"), u("pineapple")}
    assert results[-1].uri == u("pineapple")


def test_iri_facet_matches_any_listed_value(fruits, search_dao):
    results = search_dao.faceted_term_search(
        [facet(MatchKind.IRI, u("v1"), u("v2"), predicate=str(lx.IN_VOCABULARY))],
        PageSpec.first(10),
    )
    assert [r.uri for r in results] == [u("apple")]


def test_facets_are_conjunctive(fruits, search_dao):
    results = search_dao.faceted_term_search(
        [
            facet(MatchKind.SUBSTRING, "app"),
            facet(MatchKind.IRI, u("v1"), predicate=str(lx.IN_VOCABULARY)),
        ],
        PageSpec.first(10),
    )
    assert [r.uri for r in results] == [u("apple")]


def test_snapshots_are_never_returned(fruits, search_dao):
    results = search_dao.faceted_term_search([], PageSpec.first(50))
    assert u("apple-old") not in {r.uri for r in results}


def test_faceted_pagination(fruits, search_dao):
    first = search_dao.faceted_term_search([facet(MatchKind.SUBSTRING, "p")], PageSpec(0, 2))
    second = search_dao.faceted_term_search([facet(MatchKind.SUBSTRING, "p")], PageSpec(2, 2))
    assert len(first) == 2
    assert not {r.uri for r in first} & {r.uri for r in second}


def test_faceted_values_are_never_inlined():
    dao = SearchDao(ScriptedStore(), "")
    hostile = '" ) } DROP ALL ; #'
    rendered = dao.build_faceted_query(
        [facet(MatchKind.EXACT_MATCH, hostile)], PageSpec.first(5)
    ).render()
    assert hostile not in rendered.text
    assert hostile in rendered.bindings.values()
    assert "FILTER NOT EXISTS" in rendered.text
    assert "ORDER BY ASC(LCASE(STR(?label)))" in rendered.text


def test_invalid_facets_are_rejected_before_store_access():
    store = ScriptedStore()
    service = SearchService(SearchDao(store, ""))
    with pytest.raises(ValidationError):
        service.faceted_search([facet(MatchKind.SUBSTRING, "a", "b")], PageSpec.first(5))
    with pytest.raises(ValidationError):
        service.faceted_search([facet(MatchKind.EXACT_MATCH)], PageSpec.first(5))
    with pytest.raises(ValidationError):
        service.faceted_search(
            [facet(MatchKind.IRI, "not an iri", predicate=str(lx.IN_VOCABULARY))],
            PageSpec.first(5),
        )
    assert store.calls == []


def test_search_param_accepts_wire_aliases():
    param = SearchParam.model_validate(
        {"property": LABEL, "matchType": "SUBSTRING", "value": ["app"]}
    )
    assert param.predicate == LABEL
    assert param.match_kind == MatchKind.SUBSTRING
    assert param.values == ["app"]


@pytest.mark.parametrize("blank", ["", "   ", "\t\n"])
def test_blank_full_text_search_skips_store(blank):
    store = ScriptedStore()
    assert SearchDao(store, load_fts_template()).full_text_search(blank) == []
    assert store.calls == []


def test_full_text_search_finds_terms_and_vocabularies(fruits, search_dao):
    results = search_dao.full_text_search("fruit", language="en")
    by_uri = {r.uri: r for r in results}
    assert set(by_uri) == {u("v1"), u("apple")}
    assert by_uri[u("v1")].snippet_field == "label"
    assert by_uri[u("apple")].snippet_field == "definition"
    assert by_uri[u("apple")].vocabulary == u("v1")
    # une correspondance dans le libellé passe avant une correspondance dans la définition
    assert results[0].uri == u("v1")


def test_full_text_search_excludes_snapshots_unless_requested(fruits, search_dao):
    default = {r.uri for r in search_dao.full_text_search("apple", language="en")}
    assert u("apple-old") not in default
    assert {u("apple"), u("apple-lc"), u("pineapple")} <= default

    included = {
        r.uri for r in search_dao.full_text_search("apple", "en", include_snapshots=True)
    }
    assert u("apple-old") in included


def test_full_text_search_language(fruits, search_dao):
    assert search_dao.full_text_search("pomme", language="en") == []
    assert [r.uri for r in search_dao.full_text_search("pomme", language="fr")] == [u("apple")]
    assert [r.uri for r in search_dao.full_text_search("pomme")] == [u("apple")]


def test_full_text_query_variants():
    store = ScriptedStore()
    dao = SearchDao(store, load_fts_template())
    dao.full_text_search("red app")
    query, bindings = store.calls[0]
    assert LANGUAGE_BINDING not in query
    assert SNAPSHOT_EXCLUSION in query
    # le gabarit embarqué n'utilise pas les variantes d'index plein texte
    assert "wildCardSearchString" not in bindings
    assert "splitExactMatch" not in bindings
    assert "requestedLanguageVal" not in bindings

    dao.full_text_search("red", language="en", include_snapshots=True)
    query, bindings = store.calls[1]
    assert LANGUAGE_BINDING in query
    assert SNAPSHOT_EXCLUSION not in query
    assert bindings["requestedLanguageVal"] == "en"


def test_wildcard_and_exact_match_variants():
    assert wildcard_variant("apple") == "apple*"
    assert wildcard_variant("apple*") == "apple*"
    assert exact_match_variant("green  apple") == "<em>green</em> <em>apple</em>"


def test_template_loaded_from_file(tmp_path):
    path = tmp_path / "custom.rq"
    path.write_text("SELECT ?entity WHERE { ?entity ?p ?o }", encoding="utf-8")
    assert load_fts_template(str(path)).startswith("SELECT ?entity")


def test_index_variants_are_bound_when_template_uses_them():
    store = ScriptedStore()
    template = (
        "SELECT ?entity ?label WHERE {\n"
        "  ?entity ?fts ?wildCardSearchString , ?splitExactMatch .\n"
        f"  {SNAPSHOT_EXCLUSION}\n"
        "}"
    )
    SearchDao(store, template).full_text_search("red app")

    _, bindings = store.calls[0]
    assert bindings["wildCardSearchString"] == "red app*"
    assert bindings["splitExactMatch"] == "<em>red</em> <em>app</em>"
