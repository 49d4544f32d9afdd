"""Modèles de domaine (cœur métier) indépendants de l'API.

Objectif du module
------------------
- Définir les entrées (pagination, facettes) et les DTO dérivés (activité, recherche).
- Les DTO sont recalculés à chaque requête et ne sont jamais persistés.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from lexicon.domain.errors import ValidationError


@dataclass(frozen=True)
class PageSpec:
    """Spécification d'une page: décalage (>= 0) et taille (> 0)."""

    offset: int
    size: int

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValidationError(f"Page offset must not be negative, got {self.offset}")
        if self.size <= 0:
            raise ValidationError(f"Page size must be positive, got {self.size}")

    @classmethod
    def of(cls, page: int, size: int) -> PageSpec:
        """Construit la page numéro `page` (base 0) de taille `size`."""
        if page < 0:
            raise ValidationError(f"Page number must not be negative, got {page}")
        return cls(offset=page * size, size=size)

    @classmethod
    def first(cls, size: int) -> PageSpec:
        return cls(offset=0, size=size)


class ChangeKind(str, Enum):
    """Nature d'une modification enregistrée dans le journal."""

    CREATE = "create"
    UPDATE = "update"


class MatchKind(str, Enum):
    """Sémantique de comparaison d'une facette."""

    IRI = "IRI"
    EXACT_MATCH = "EXACT_MATCH"
    SUBSTRING = "SUBSTRING"


class SearchParam(BaseModel):
    """Facette de recherche: propriété filtrée, type de correspondance et valeurs."""

    model_config = ConfigDict(populate_by_name=True)

    predicate: str = Field(alias="property")
    match_kind: MatchKind = Field(default=MatchKind.EXACT_MATCH, alias="matchType")
    values: list[str] = Field(default_factory=list, alias="value")

    def ensure_valid(self) -> None:
        """Vérifie la cohérence entre type de correspondance et valeurs.

        Une propriété et au moins une valeur sont requises; les correspondances textuelles
        n'acceptent qu'une seule valeur.
        """
        if not self.predicate or not self.values:
            raise ValidationError("Must provide a property and value to search by!")
        if self.match_kind != MatchKind.IRI and len(self.values) != 1:
            raise ValidationError(
                f"Exactly one value must be provided for match type {self.match_kind.value}"
            )


class User(BaseModel):
    """Utilisateur (auteur de modifications ou de commentaires)."""

    uri: str
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


class ChangeRecord(BaseModel):
    """Entrée du journal des modifications (ajout seul, immuable)."""

    uri: str | None = None
    changed_entity: str
    kind: ChangeKind
    timestamp: datetime
    author: str


class Comment(BaseModel):
    """Commentaire attaché à une entité."""

    uri: str
    topic: str
    author: str | None = None
    content: str | None = None
    created: datetime
    modified: datetime | None = None

    @property
    def effective_time(self) -> datetime:
        """Date de modification si présente, sinon date de création."""
        return self.modified or self.created


class RecentlyModifiedAsset(BaseModel):
    """Actif récemment créé ou modifié, avec l'auteur de la modification."""

    uri: str
    label: str
    modified: datetime
    modified_by: str
    editor: User | None = None
    vocabulary: str | None = None
    asset_type: str
    change_kind: ChangeKind


class RecentlyCommentedAsset(BaseModel):
    """Actif récemment commenté avec son dernier commentaire (et le mien, le cas échéant)."""

    uri: str
    label: str | None = None
    last_comment_uri: str
    my_last_comment_uri: str | None = None
    vocabulary: str | None = None
    asset_type: str
    last_comment: Comment | None = None
    my_last_comment: Comment | None = None

    @property
    def last_commented(self) -> datetime | None:
        return self.last_comment.effective_time if self.last_comment else None


class FacetedSearchResult(BaseModel):
    """Terme retourné par la recherche à facettes (libellés par langue)."""

    uri: str
    label: dict[str, str] = Field(default_factory=dict)
    vocabulary: str | None = None
    types: list[str] = Field(default_factory=list)


class FullTextSearchResult(BaseModel):
    """Résultat de la recherche plein texte."""

    uri: str
    label: str
    description: str | None = None
    vocabulary: str | None = None
    state: str | None = None
    asset_type: str
    snippet_field: str | None = None
    snippet_text: str | None = None
    score: float | None = None
