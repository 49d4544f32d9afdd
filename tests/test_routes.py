"""Tests des routes HTTP (fil d'activité, commentaires, recherche) et de l'enveloppe d'erreur."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from lexicon.api.deps import get_activity_service, get_search_service
from lexicon.app.main import app
from lexicon.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_OK,
    HTTP_UNAUTHORIZED,
)
from lexicon.domain.errors import PersistenceError
from lexicon.domain.models import (
    ChangeKind,
    Comment,
    FullTextSearchResult,
    MatchKind,
    PageSpec,
    RecentlyModifiedAsset,
)
from lexicon.services.activity_service import ActivityService
from tests.fakes import at, u

ALICE = u("alice")


def _asset(name: str) -> RecentlyModifiedAsset:
    return RecentlyModifiedAsset(
        uri=u(name),
        label=name,
        modified=at(1),
        modified_by=ALICE,
        asset_type="term",
        change_kind=ChangeKind.CREATE,
    )


@pytest.fixture
def activity():
    service = Mock()
    service.find_last_edited.return_value = [_asset("t1")]
    service.find_last_edited_by.return_value = [_asset("t2")]
    service.find_last_commented.return_value = []
    service.find_my_last_commented.return_value = []
    service.find_last_commented_in_reaction.return_value = []
    service.find_my_last_edited_comments.return_value = [
        Comment(uri=u("c1"), topic=u("t1"), author=ALICE, created=at(2))
    ]
    service.last_modified.return_value = 1_700_000_000_000
    return service


@pytest.fixture
def search():
    return Mock()


@pytest.fixture
def client(activity, search):
    app.dependency_overrides[get_activity_service] = lambda: activity
    app.dependency_overrides[get_search_service] = lambda: search
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_last_edited_defaults(client, activity):
    r = client.get("/assets/last-edited")
    assert r.status_code == HTTP_OK
    assert [a["uri"] for a in r.json()] == [u("t1")]
    assert r.json()[0]["change_kind"] == "create"
    assert r.headers["Last-Modified"].endswith("GMT")
    assert "X-Request-ID" in r.headers
    activity.find_last_edited.assert_called_once_with(10)


def test_last_edited_for_current_user(client, activity):
    r = client.get(
        "/assets/last-edited",
        params={"limit": 3, "forCurrentUserOnly": "true"},
        headers={"X-User": ALICE},
    )
    assert r.status_code == HTTP_OK
    assert [a["uri"] for a in r.json()] == [u("t2")]
    activity.find_last_edited_by.assert_called_once_with(ALICE, 3)


def test_current_user_only_requires_identity(client, activity):
    r = client.get("/assets/last-edited", params={"forCurrentUserOnly": "true"})
    assert r.status_code == HTTP_UNAUTHORIZED
    assert r.json()["code"] == "UNAUTHORIZED"
    activity.find_last_edited_by.assert_not_called()


def test_mine_endpoints_require_identity(client):
    for path in (
        "/assets/my-last-commented",
        "/assets/last-commented-in-reaction-to-mine",
        "/comments/last-edited-by-me",
    ):
        assert client.get(path).status_code == HTTP_UNAUTHORIZED


def test_commented_endpoints(client, activity):
    headers = {"X-User": ALICE}
    assert client.get("/assets/last-commented", params={"limit": 4}).status_code == HTTP_OK
    activity.find_last_commented.assert_called_once_with(4)
    assert client.get("/assets/my-last-commented", headers=headers).status_code == HTTP_OK
    activity.find_my_last_commented.assert_called_once_with(ALICE, 10)
    r = client.get("/assets/last-commented-in-reaction-to-mine", headers=headers)
    assert r.status_code == HTTP_OK
    activity.find_last_commented_in_reaction.assert_called_once_with(ALICE, 10)


def test_comments_last_edited_by_me(client, activity):
    r = client.get("/comments/last-edited-by-me", params={"limit": 5}, headers={"X-User": ALICE})
    assert r.status_code == HTTP_OK
    assert r.json()[0]["uri"] == u("c1")
    activity.find_my_last_edited_comments.assert_called_once_with(ALICE, 5)


def test_invalid_limit_is_a_validation_error():
    app.dependency_overrides[get_activity_service] = lambda: ActivityService([], Mock())
    try:
        r = TestClient(app).get("/assets/last-edited", params={"limit": 0})
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == HTTP_BAD_REQUEST
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert "trace_id" in body


def test_limit_above_maximum_is_rejected(client, activity):
    r = client.get("/assets/last-edited", params={"limit": 10_000})
    assert r.status_code == HTTP_BAD_REQUEST
    activity.find_last_edited.assert_not_called()


def test_persistence_error_uses_standard_envelope(client, activity):
    activity.find_last_edited.side_effect = PersistenceError("term change log read failed")
    r = client.get("/assets/last-edited", headers={"X-Request-ID": "req-42"})
    assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
    body = r.json()
    assert body["code"] == "PERSISTENCE_ERROR"
    assert body["trace_id"] == "req-42"
    assert "change log" not in body["message"]


def test_full_text_search_route(client, search):
    search.full_text_search.return_value = [
        FullTextSearchResult(uri=u("t1"), label="Apple", asset_type="term", score=1.0)
    ]
    r = client.get("/search/fts", params={"searchString": "app", "includeSnapshots": "true"})
    assert r.status_code == HTTP_OK
    assert r.json()[0]["label"] == "Apple"
    search.full_text_search.assert_called_once_with("app", language=None, include_snapshots=True)


def test_faceted_search_route(client, search):
    search.faceted_search.return_value = []
    body = [{"property": u("p"), "matchType": "SUBSTRING", "value": ["app"]}]
    r = client.post("/search/faceted", params={"page": 1, "size": 5}, json=body)
    assert r.status_code == HTTP_OK
    params, page = search.faceted_search.call_args.args
    assert params[0].match_kind == MatchKind.SUBSTRING
    assert params[0].predicate == u("p")
    assert page == PageSpec(offset=5, size=5)


def test_faceted_search_rejects_negative_page(client, search):
    r = client.post("/search/faceted", params={"page": -1}, json=[])
    assert r.status_code == HTTP_BAD_REQUEST
    search.faceted_search.assert_not_called()
