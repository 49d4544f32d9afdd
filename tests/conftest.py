"""Configuration de test pour pytest.

Ajoute la racine du projet au sys.path et fournit les fixtures communes: graphe de test, store
rdflib et DAO branchés dessus.
"""

import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from lexicon.core.last_modified import LastModifiedCache  # noqa: E402
from lexicon.infra.dao.comment_dao import CommentDao  # noqa: E402
from lexicon.infra.dao.user_dao import UserDao  # noqa: E402
from lexicon.infra.store.rdflib_store import RdflibStoreClient  # noqa: E402
from tests.fakes import GraphBuilder  # noqa: E402


@pytest.fixture
def builder() -> GraphBuilder:
    return GraphBuilder()


@pytest.fixture
def store(builder: GraphBuilder) -> RdflibStoreClient:
    return RdflibStoreClient(graph=builder.graph)


@pytest.fixture
def make_dao(store):
    """Fabrique un DAO d'actifs (TermDao, ResourceDao, ...) branché sur le store de test."""

    def _make(dao_cls, language: str = "en"):
        return dao_cls(
            store,
            UserDao(store),
            CommentDao(store),
            LastModifiedCache(dao_cls.kind.name),
            language,
        )

    return _make
