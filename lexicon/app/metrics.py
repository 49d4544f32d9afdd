"""
Métriques Prometheus pour l'application.

Ce module définit les métriques HTTP, les métriques d'accès au triple store et l'endpoint
`/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Store-specific metrics
STORE_QUERIES = Counter(
    "store_queries_total",
    "Total queries sent to the triple store",
    ["backend", "kind", "outcome"],
)
STORE_QUERY_LATENCY = Histogram(
    "store_query_latency_seconds",
    "Latency of triple store queries",
    ["backend", "kind"],
)
DEDUP_ROUNDS = Histogram(
    "change_dedup_rounds",
    "Number of change log pages read to fill one page of unique entities",
    buckets=[1, 2, 3, 5, 8, 13, 21],
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte les métriques de comptage des requêtes et de latence par route pour l'exposition
    Prometheus.
    """

    async def dispatch(self, request: Request, call_next):
        """
        Traite une requête HTTP et collecte les métriques.

        Args:
            request: Requête HTTP entrante.
            call_next: Fonction pour appeler le middleware suivant.

        Returns:
            Response: Réponse HTTP avec métriques collectées.
        """
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = request.scope.get("path", "unknown")
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response


@metrics_router.get("/metrics")
def metrics() -> Response:
    """Expose les métriques au format texte Prometheus."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
