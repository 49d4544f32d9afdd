"""Lecture des commentaires."""

from __future__ import annotations

from lexicon.core import vocabulary as lx
from lexicon.domain.errors import PersistenceError, store_access
from lexicon.domain.models import Comment
from lexicon.infra.query.patterns import comment_time_bindings, effective_time
from lexicon.infra.store.base import Row, StoreClient, iri

_FIND = """
SELECT ?topic ?author ?content ?created ?modified WHERE {
  ?comment a ?commentType ;
    ?hasTopic ?topic ;
    ?hasCreated ?created .
  OPTIONAL { ?comment ?hasCreator ?author . }
  OPTIONAL { ?comment ?hasContent ?content . }
  OPTIONAL { ?comment ?hasLastModified ?modified . }
}
LIMIT 1
"""

# Commentaires de l'auteur, plus les réactions: commentaires postérieurs à l'un des siens sur
# le même actif.
_LAST_EDITED_BY = f"""
SELECT ?comment ?topic ?creator ?content ?created (?commentModified AS ?modified) WHERE {{
  ?comment a ?commentType ;
    ?hasTopic ?topic ;
    ?hasCreator ?creator ;
    ?hasCreated ?created .
  OPTIONAL {{ ?comment ?hasContent ?content . }}
  {effective_time("comment", "time")}
  FILTER (?creator = ?author || EXISTS {{
    ?mine a ?commentType ; ?hasTopic ?topic ; ?hasCreator ?author .
    OPTIONAL {{ ?mine ?hasLastModified ?mineModified . }}
    OPTIONAL {{ ?mine ?hasCreated ?mineCreated . }}
    FILTER (COALESCE(?mineModified, ?mineCreated) < ?time)
  }})
}}
ORDER BY DESC(?time) ?comment
"""


def _bindings() -> dict[str, object]:
    return {**comment_time_bindings(), "hasContent": lx.HAS_CONTENT}


def _to_comment(uri: str, row: Row, author: str | None = None) -> Comment:
    modified = row.get("modified")
    content = row.get("content")
    creator = row.get("author")
    return Comment(
        uri=uri,
        topic=str(row["topic"]),
        author=str(creator) if creator is not None else author,
        content=str(content) if content is not None else None,
        created=row["created"].toPython(),
        modified=modified.toPython() if modified is not None else None,
    )


class CommentDao:
    def __init__(self, store: StoreClient) -> None:
        self.store = store

    def find(self, uri: str) -> Comment | None:
        with store_access("comment read"):
            rows = self.store.select(_FIND, {**_bindings(), "comment": iri(uri)})
        return _to_comment(uri, rows[0]) if rows else None

    def get(self, uri: str) -> Comment:
        """Comme `find`, mais un commentaire absent est une incohérence du store."""
        comment = self.find(uri)
        if comment is None:
            raise PersistenceError(f"Comment {uri} not found")
        return comment

    def find_last_edited_by(self, author: str, limit: int) -> list[Comment]:
        """Derniers commentaires créés ou modifiés par `author` et réactions des autres
        utilisateurs sur les mêmes actifs, du plus récent au plus ancien."""
        query = f"{_LAST_EDITED_BY}LIMIT {int(limit)}"
        with store_access("comment read"):
            rows = self.store.select(query, {**_bindings(), "author": iri(author)})
        return [
            _to_comment(str(row["comment"]), row, author=str(row["creator"])) for row in rows
        ]
