"""Fragments SPARQL réutilisables.

- `latest_per_group`: sélection de la ligne la plus récente par groupe, via une sous-requête
  corrélée `MAX(...) GROUP BY` (le store n'offre ni fenêtrage ni `DISTINCT ON`).
- `vocabulary_pattern`: rattachement d'un actif à son vocabulaire selon son type.

Les variables `?hasTopic`, `?hasCreated`, `?hasLastModified`, `?inVocabulary`, etc. sont des
paramètres liés par l'appelant (voir `comment_time_bindings` et `vocabulary_bindings`).
"""

from __future__ import annotations

from rdflib import URIRef

from lexicon.core import vocabulary as lx


def comment_time_bindings() -> dict[str, URIRef]:
    return {
        "commentType": lx.COMMENT,
        "hasTopic": lx.HAS_TOPIC,
        "hasCreator": lx.HAS_CREATOR,
        "hasCreated": lx.HAS_CREATED,
        "hasLastModified": lx.HAS_LAST_MODIFIED,
    }


def effective_time(item: str, target: str) -> str:
    """Lie `?target` à la date de modification de `?item`, à défaut à sa date de création."""
    return (
        f"OPTIONAL {{ ?{item} ?hasLastModified ?{item}Modified . }}\n"
        f"  OPTIONAL {{ ?{item} ?hasCreated ?{item}Created . }}\n"
        f"  BIND (COALESCE(?{item}Modified, ?{item}Created) AS ?{target})"
    )


def latest_per_group(item: str, group: str, time: str, prefix: str, scope: str = "") -> str:
    """Restreint `?item` à l'élément le plus récent de son groupe `?group`.

    Args:
        item: variable de l'élément (ex. un commentaire) déjà reliée à `?group` par `?hasTopic`.
        group: variable de regroupement (l'entité commentée).
        time: variable recevant la date effective de `?item`.
        prefix: préfixe des variables internes de la sous-requête (unique dans la requête).
        scope: motifs supplémentaires restreignant les candidats de la sous-requête; la variable
            candidate s'y nomme `?{prefix}Item`.
    """
    candidate = f"{prefix}Item"
    maximum = f"{prefix}Max"
    return (
        f"{effective_time(item, time)}\n"
        f"  {{ SELECT ?{group} (MAX(?{prefix}Time) AS ?{maximum}) WHERE {{\n"
        f"      ?{candidate} a ?commentType ; ?hasTopic ?{group} .\n"
        f"      {scope}\n"
        f"      {effective_time(candidate, prefix + 'Time')}\n"
        f"    }} GROUP BY ?{group}\n"
        f"  }}\n"
        f"  FILTER (?{time} = ?{maximum})"
    )


def vocabulary_bindings() -> dict[str, URIRef]:
    return {
        "inVocabulary": lx.IN_VOCABULARY,
        "hasDocumentVocabulary": lx.HAS_DOCUMENT_VOCABULARY,
        "inDocument": lx.IN_DOCUMENT,
    }


def vocabulary_pattern(
    asset_type: URIRef, entity: str = "entity", target: str = "vocabulary"
) -> str:
    """Lie `?{target}` au vocabulaire de l'actif `?{entity}`, selon le type de l'actif."""
    if asset_type == lx.TERM:
        return f"OPTIONAL {{ ?{entity} ?inVocabulary ?{target} . }}"
    if asset_type == lx.DOCUMENT:
        return f"OPTIONAL {{ ?{entity} ?hasDocumentVocabulary ?{target} . }}"
    if asset_type == lx.FILE:
        return f"OPTIONAL {{ ?{entity} ?inDocument/?hasDocumentVocabulary ?{target} . }}"
    if asset_type == lx.VOCABULARY:
        return f"BIND (?{entity} AS ?{target})"
    return (
        f"OPTIONAL {{ {{ ?{entity} ?hasDocumentVocabulary ?{target} . }} UNION "
        f"{{ ?{entity} ?inDocument/?hasDocumentVocabulary ?{target} . }} }}"
    )
