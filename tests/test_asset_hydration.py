"""Tests de la description des actifs récemment modifiés (AssetHydrator / AssetDao)."""

from __future__ import annotations

from lexicon.core import vocabulary as lx
from lexicon.domain.models import ChangeKind
from lexicon.infra.dao.asset_dao import ResourceDao, TermDao, VocabularyDao
from tests.fakes import at, u

ALICE, BOB = u("alice"), u("bob")


def _users(builder):
    builder.user(ALICE, "Alice", "Martin", "alice").user(BOB, "Bob", "Durand")


def test_resolve_uses_most_recent_change(builder, make_dao):
    _users(builder)
    builder.vocabulary(u("v1"), "Glossary")
    builder.term(u("t1"), "Apple", vocabulary=u("v1"))
    builder.change(u("t1"), ALICE, at(1), create=True).change(u("t1"), BOB, at(5))

    asset = make_dao(TermDao).hydrator.resolve(u("t1"))

    assert asset is not None
    assert asset.label == "Apple"
    assert asset.change_kind == ChangeKind.UPDATE
    assert asset.modified_by == BOB
    assert asset.editor is not None and asset.editor.full_name == "Bob Durand"
    assert asset.vocabulary == u("v1")
    assert asset.asset_type == str(lx.TERM)
    assert asset.modified == at(5)


def test_resolve_with_author_reports_that_authors_change(builder, make_dao):
    _users(builder)
    builder.term(u("t1"), "Apple")
    builder.change(u("t1"), ALICE, at(1), create=True).change(u("t1"), BOB, at(5))

    asset = make_dao(TermDao).hydrator.resolve(u("t1"), author=ALICE)

    assert asset.change_kind == ChangeKind.CREATE
    assert asset.modified_by == ALICE
    assert asset.editor.username == "alice"


def test_label_in_other_language_skips_asset(builder, make_dao):
    builder.term(u("t1"), "Pomme", lang="fr")
    builder.change(u("t1"), ALICE, at(1), create=True)

    assert make_dao(TermDao).hydrator.resolve(u("t1")) is None
    assert make_dao(TermDao, language="fr").hydrator.resolve(u("t1")).label == "Pomme"


def test_unknown_editor_leaves_editor_empty(builder, make_dao):
    builder.term(u("t1"), "Apple")
    builder.change(u("t1"), u("ghost"), at(1), create=True)

    asset = make_dao(TermDao).hydrator.resolve(u("t1"))
    assert asset.modified_by == u("ghost")
    assert asset.editor is None


def test_vocabulary_is_its_own_vocabulary(builder, make_dao):
    builder.vocabulary(u("v1"), "Glossary")
    builder.change(u("v1"), ALICE, at(1), create=True)

    asset = make_dao(VocabularyDao).hydrator.resolve(u("v1"))
    assert asset.label == "Glossary"
    assert asset.vocabulary == u("v1")


def test_file_vocabulary_comes_from_its_document(builder, make_dao):
    builder.vocabulary(u("v1"), "Glossary")
    builder.document(u("d1"), "Spec document", vocabulary=u("v1"))
    builder.file(u("f1"), "chapter.html", document=u("d1"))
    builder.change(u("f1"), ALICE, at(1), create=True)

    asset = make_dao(ResourceDao).hydrator.resolve(u("f1"))
    assert asset.vocabulary == u("v1")
    assert asset.asset_type == str(lx.FILE)


def test_last_edited_skips_dangling_changes_and_keeps_order(builder, make_dao):
    builder.term(u("t1"), "Apple").term(u("t2"), "Banana")
    builder.change(u("t1"), ALICE, at(1), create=True)
    builder.change(u("t2"), ALICE, at(2), create=True)
    # entité supprimée: le journal la référence encore mais elle n'a plus de libellé
    builder.add(u("gone"), lx.TYPE, lx.TERM)
    builder.change(u("gone"), ALICE, at(3))

    assets = make_dao(TermDao).find_last_edited(3)
    assert [a.uri for a in assets] == [u("t2"), u("t1")]


def test_resource_source_ignores_vocabularies(builder, make_dao):
    builder.vocabulary(u("v1"), "Glossary")
    builder.add(u("v1"), lx.TYPE, lx.RESOURCE)
    builder.document(u("d1"), "Report")
    builder.change(u("v1"), ALICE, at(2)).change(u("d1"), ALICE, at(1))

    assets = make_dao(ResourceDao).find_last_edited(5)
    assert [a.uri for a in assets] == [u("d1")]
