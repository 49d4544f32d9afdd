"""Arbre de requête typé et rendu paramétré.

Les clauses (motifs de triplets, filtres par type de correspondance, non-existence) sont rendues en
texte SPARQL dont toutes les valeurs fournies par l'appelant sont des paramètres nommés. Les
paramètres sont substitués ensuite par le client du store (`bind_parameters`), jamais concaténés.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


class RenderContext:
    """Collecte les paramètres rencontrés pendant le rendu."""

    def __init__(self) -> None:
        self.bindings: dict[str, Any] = {}

    def param(self, value: Any) -> str:
        name = f"param{len(self.bindings)}"
        self.bindings[name] = value
        return f"?{name}"


class Term(Protocol):
    def render(self, ctx: RenderContext) -> str: ...


class Clause(Protocol):
    def render(self, ctx: RenderContext) -> str: ...


@dataclass(frozen=True)
class Var:
    name: str

    def render(self, ctx: RenderContext) -> str:
        return f"?{self.name}"


@dataclass(frozen=True)
class Param:
    """Valeur liée (IRI, littéral ou liste de termes)."""

    value: Any

    def render(self, ctx: RenderContext) -> str:
        return ctx.param(self.value)


@dataclass(frozen=True)
class TriplePattern:
    subject: Term
    predicate: Term
    obj: Term

    def render(self, ctx: RenderContext) -> str:
        return f"{self.subject.render(ctx)} {self.predicate.render(ctx)} {self.obj.render(ctx)} ."


@dataclass(frozen=True)
class InFilter:
    """La valeur de `var` appartient à l'ensemble d'identifiants donné."""

    var: Var
    values: tuple[Any, ...]

    def render(self, ctx: RenderContext) -> str:
        return f"FILTER ({self.var.render(ctx)} IN ({ctx.param(list(self.values))}))"


@dataclass(frozen=True)
class ExactMatchFilter:
    """La forme texte de `var` est égale au littéral (sensible à la casse)."""

    var: Var
    value: str

    def render(self, ctx: RenderContext) -> str:
        return f"FILTER (STR({self.var.render(ctx)}) = {ctx.param(self.value)})"


@dataclass(frozen=True)
class SubstringFilter:
    """La forme texte de `var` contient le littéral, sans tenir compte de la casse."""

    var: Var
    value: str

    def render(self, ctx: RenderContext) -> str:
        return (
            f"FILTER (CONTAINS(LCASE(STR({self.var.render(ctx)})), LCASE({ctx.param(self.value)})))"
        )


@dataclass(frozen=True)
class NotExists:
    patterns: tuple[Clause, ...]

    def render(self, ctx: RenderContext) -> str:
        inner = " ".join(p.render(ctx) for p in self.patterns)
        return f"FILTER NOT EXISTS {{ {inner} }}"


@dataclass(frozen=True)
class OrderByLabel:
    """Tri insensible à la casse sur la forme texte d'une variable."""

    var: Var
    descending: bool = False

    def render(self, ctx: RenderContext) -> str:
        direction = "DESC" if self.descending else "ASC"
        return f"{direction}(LCASE(STR({self.var.render(ctx)})))"


@dataclass(frozen=True)
class RenderedQuery:
    text: str
    bindings: dict[str, Any]


@dataclass
class SelectQuery:
    projection: list[Var]
    where: list[Clause] = field(default_factory=list)
    distinct: bool = True
    order_by: list[OrderByLabel] = field(default_factory=list)
    offset: int | None = None
    limit: int | None = None

    def render(self) -> RenderedQuery:
        ctx = RenderContext()
        head = "SELECT DISTINCT" if self.distinct else "SELECT"
        projection = " ".join(v.render(ctx) for v in self.projection)
        body = "\n  ".join(c.render(ctx) for c in self.where)
        parts = [f"{head} {projection} WHERE {{\n  {body}\n}}"]
        if self.order_by:
            parts.append("ORDER BY " + " ".join(o.render(ctx) for o in self.order_by))
        if self.offset:
            parts.append(f"OFFSET {int(self.offset)}")
        if self.limit is not None:
            parts.append(f"LIMIT {int(self.limit)}")
        return RenderedQuery(text="\n".join(parts), bindings=ctx.bindings)
