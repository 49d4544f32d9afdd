"""
Application principale FastAPI.

Ce module assemble tous les composants de l'application : middlewares, gestion des erreurs,
routes et métriques du service de vocabulaire contrôlé.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (request id, timing, Prometheus)
- Monter les routers (santé, activité, commentaires, recherche, métriques)
"""

from __future__ import annotations

from fastapi import FastAPI

from lexicon.api.routes_assets import router as assets_router
from lexicon.api.routes_comments import router as comments_router
from lexicon.api.routes_health import router as health_router
from lexicon.api.routes_search import router as search_router
from lexicon.apigw.errors import register_error_handlers
from lexicon.app.metrics import PrometheusMiddleware, metrics_router
from lexicon.core.container import container
from lexicon.core.logging import setup_logging
from lexicon.middlewares.request_id import RequestIDMiddleware
from lexicon.middlewares.timing import TimingMiddleware


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog) au niveau `LOG_LEVEL`
    - Enregistre les gestionnaires d'erreurs (enveloppe standard)
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes
    """
    settings = container.settings
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    register_error_handlers(app)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.include_router(health_router)
    app.include_router(assets_router)
    app.include_router(comments_router)
    app.include_router(search_router)
    app.include_router(metrics_router)
    return app


app = create_app()
