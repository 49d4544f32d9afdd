"""Erreurs du domaine et garde d'accès au store.

Deux familles seulement remontent aux appelants:
- `ValidationError`: argument invalide, levée avant tout accès au store.
- `PersistenceError`: échec d'accès au store, porte la cause d'origine (`__cause__`).
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog

log = structlog.get_logger(__name__)


class LexiconError(Exception):
    """Racine des erreurs applicatives."""


class ValidationError(LexiconError, ValueError):
    """Argument invalide fourni par l'appelant."""


class PersistenceError(LexiconError):
    """Échec d'accès au store (requête, réseau, résultat incohérent)."""


@contextmanager
def store_access(operation: str) -> Iterator[None]:
    """Convertit toute erreur du store en `PersistenceError`.

    Les erreurs déjà converties et les erreurs de validation traversent sans modification.
    """
    try:
        yield
    except (PersistenceError, ValidationError):
        raise
    except Exception as exc:
        log.error("store_access_failed", operation=operation, error=str(exc))
        raise PersistenceError(f"{operation} failed: {exc}") from exc
