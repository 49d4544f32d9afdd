"""Lecture des utilisateurs (auteurs de modifications et de commentaires)."""

from __future__ import annotations

from lexicon.core import vocabulary as lx
from lexicon.domain.errors import store_access
from lexicon.domain.models import User
from lexicon.infra.store.base import StoreClient, iri

_QUERY = """
SELECT ?firstName ?lastName ?username WHERE {
  ?user a ?userType .
  OPTIONAL { ?user ?hasFirstName ?firstName . }
  OPTIONAL { ?user ?hasLastName ?lastName . }
  OPTIONAL { ?user ?hasUsername ?username . }
}
LIMIT 1
"""


class UserDao:
    def __init__(self, store: StoreClient) -> None:
        self.store = store

    def find(self, uri: str) -> User | None:
        """Retourne l'utilisateur identifié par `uri`, ou None s'il est inconnu."""
        bindings = {
            "user": iri(uri),
            "userType": lx.USER,
            "hasFirstName": lx.HAS_FIRST_NAME,
            "hasLastName": lx.HAS_LAST_NAME,
            "hasUsername": lx.HAS_USERNAME,
        }
        with store_access("user read"):
            rows = self.store.select(_QUERY, bindings)
        if not rows:
            return None
        row = rows[0]
        return User(
            uri=uri,
            first_name=_text(row.get("firstName")),
            last_name=_text(row.get("lastName")),
            username=_text(row.get("username")),
        )


def _text(node) -> str | None:
    return str(node) if node is not None else None
