"""
Endpoint de santé pour vérifier la disponibilité de l'API et du store.

Expose `/health` pour signaler l'état général de l'application et le backend du triple store.
"""

from fastapi import APIRouter

from lexicon.core.container import container

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Vérifie la disponibilité de l'API et indique le backend de stockage."""
    return {
        "status": "ok",
        "storage": getattr(container, "storage_backend", "unknown"),
        "language": container.settings.LANGUAGE,
    }
