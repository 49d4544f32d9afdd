"""Horodatage de dernière modification par source d'actifs.

Chaque source (ressources, termes, vocabulaires) possède son propre cache, injecté dans son DAO et
rafraîchi par le bus d'évènements. La valeur est un temps epoch en millisecondes.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable

from lexicon.core.events import AssetChanged, EventBus, RefreshLastModified


def _now_millis() -> int:
    return int(time.time() * 1000)


class LastModifiedCache:
    """Valeur de dernière modification protégée par un verrou."""

    def __init__(self, name: str, clock: Callable[[], int] = _now_millis) -> None:
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._value = clock()

    def get(self) -> int:
        with self._lock:
            return self._value

    def refresh(self) -> int:
        """Positionne la valeur à l'instant courant (jamais en arrière) et la retourne."""
        with self._lock:
            self._value = max(self._value, self._clock())
            return self._value

    def subscribe(self, bus: EventBus, asset_types: Iterable[str]) -> None:
        """Rafraîchit le cache sur `RefreshLastModified` et sur tout `AssetChanged` concerné."""
        watched = {str(t) for t in asset_types}

        def _on_asset_changed(event: AssetChanged) -> None:
            if event.asset_type in watched:
                self.refresh()

        bus.subscribe(AssetChanged, _on_asset_changed)
        bus.subscribe(RefreshLastModified, lambda _event: self.refresh())
