"""Tests de la déduplication paginée du journal des modifications."""

from __future__ import annotations

import pytest
from rdflib import URIRef

from lexicon.domain.errors import PersistenceError, ValidationError
from lexicon.domain.models import PageSpec
from lexicon.infra.dao.change_record_dao import (
    RESOURCE_KIND,
    TERM_KIND,
    ChangeDeduplicator,
)
from tests.fakes import ChangeLogStore, ScriptedStore, at, u


def test_single_round_when_first_batch_is_unique_enough():
    """Journal [E1, E2, E1, E3], taille 2: un seul tour, [E1, E2]."""
    store = ChangeLogStore([u("E1"), u("E2"), u("E1"), u("E3")])
    page = ChangeDeduplicator(store, TERM_KIND).find_unique_page(PageSpec.first(2))
    assert page == [u("E1"), u("E2")]
    assert len(store.calls) == 1


def test_duplicates_trigger_additional_rounds_with_shifted_offsets():
    store = ChangeLogStore([u("E1"), u("E1"), u("E1"), u("E2"), u("E1"), u("E3")])
    page = ChangeDeduplicator(store, TERM_KIND).find_unique_page(PageSpec(offset=0, size=2))
    assert page == [u("E1"), u("E2")]
    assert store.offsets() == [0, 2]


def test_rounds_start_from_page_offset():
    store = ChangeLogStore([u(f"E{i}") for i in range(10)])
    page = ChangeDeduplicator(store, TERM_KIND).find_unique_page(PageSpec(offset=4, size=3))
    assert page == [u("E4"), u("E5"), u("E6")]
    assert store.offsets() == [4]


def test_exhausted_log_returns_what_exists():
    store = ChangeLogStore([u("E1"), u("E2"), u("E1"), u("E2"), u("E1")])
    page = ChangeDeduplicator(store, TERM_KIND).find_unique_page(PageSpec.first(5))
    assert page == [u("E1"), u("E2")]
    # 5 lignes lues au premier tour, puis un tour vide qui termine la boucle
    assert store.offsets() == [0, 5]


def test_empty_log_returns_empty_page():
    store = ChangeLogStore([])
    assert ChangeDeduplicator(store, TERM_KIND).find_unique_page(PageSpec.first(3)) == []
    assert len(store.calls) == 1


def test_result_never_exceeds_page_size_and_is_distinct():
    log = [u(f"E{i % 7}") for i in range(40)]
    store = ChangeLogStore(log)
    page = ChangeDeduplicator(store, TERM_KIND).find_unique_page(PageSpec.first(4))
    assert len(page) == 4
    assert len(set(page)) == 4
    assert page == [u("E0"), u("E1"), u("E2"), u("E3")]


def test_author_filter_is_bound_as_parameter():
    store = ChangeLogStore([u("E1")])
    ChangeDeduplicator(store, TERM_KIND).find_unique_page(PageSpec.first(1), author=u("alice"))
    query, bindings = store.calls[0]
    assert bindings["author"] == URIRef(u("alice"))
    assert u("alice") not in query


def test_resource_source_excludes_vocabularies():
    store = ChangeLogStore([])
    ChangeDeduplicator(store, RESOURCE_KIND).find_unique_page(PageSpec.first(1))
    query, bindings = store.calls[0]
    assert "FILTER NOT EXISTS" in query
    assert "excludedTypes" in bindings


def test_store_failure_is_wrapped_without_retry():
    boom = RuntimeError("connection refused")
    store = ScriptedStore(error=boom)
    with pytest.raises(PersistenceError) as info:
        ChangeDeduplicator(store, TERM_KIND).find_unique_page(PageSpec.first(2))
    assert info.value.__cause__ is boom
    assert len(store.calls) == 1


def test_invalid_page_is_rejected_before_store_access():
    with pytest.raises(ValidationError):
        PageSpec(offset=0, size=0)
    with pytest.raises(ValidationError):
        PageSpec(offset=-1, size=3)


def test_dedup_against_rdflib_graph(builder, store):
    alice, bob = u("alice"), u("bob")
    builder.term(u("t1"), "One").term(u("t2"), "Two").term(u("t3"), "Three")
    builder.vocabulary(u("v1"), "Vocabulary")
    builder.change(u("t1"), alice, at(5)).change(u("t2"), bob, at(4))
    builder.change(u("t1"), alice, at(3)).change(u("t3"), alice, at(2))
    builder.change(u("v1"), alice, at(10))

    dedup = ChangeDeduplicator(store, TERM_KIND)
    assert dedup.find_unique_page(PageSpec.first(2)) == [u("t1"), u("t2")]
    assert dedup.find_unique_page(PageSpec.first(5)) == [u("t1"), u("t2"), u("t3")]
    assert dedup.find_unique_page(PageSpec.first(5), author=alice) == [u("t1"), u("t3")]
