"""Bus d'évènements en processus.

Les abonnés sont enregistrés par type d'évènement et appelés de façon synchrone, dans l'ordre
d'abonnement, par le thread qui publie.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AssetChanged:
    """Un actif du type donné a été créé ou modifié."""

    asset_type: str
    asset: str | None = None


@dataclass(frozen=True)
class RefreshLastModified:
    """Demande de rafraîchissement de tous les horodatages de dernière modification."""


class EventBus:
    """Publication/abonnement minimal, sûr vis-à-vis des threads."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: type, handler: Callable[[Any], None]) -> None:
        with self._lock:
            self._handlers[event_type].append(handler)

    def publish(self, event: Any) -> None:
        with self._lock:
            handlers = list(self._handlers.get(type(event), ()))
        log.debug("event_published", event_type=type(event).__name__, handlers=len(handlers))
        for handler in handlers:
            handler(event)
