"""Index and health check routes."""

import logging
import time

from fastapi import APIRouter, Request, Response

from api.base import success_response, error_response, json_response, request_id_of, ErrorCodes
from clients.postgres_client import PostgresClient

logger = logging.getLogger(__name__)

ENDPOINTS = ["/healthz", "/db/healthz", "/auth/register", "/auth/login", "/auth/me"]


def create_health_router(postgres: PostgresClient, service_name: str = "api") -> APIRouter:
    router = APIRouter(tags=["health"])
    started_at = time.monotonic()

    @router.get("/")
    async def index(request: Request):
        return json_response(
            200,
            success_response(
                {"ok": True, "service": service_name, "endpoints": ENDPOINTS},
                request_id_of(request),
            ),
        )

    @router.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    @router.get("/healthz")
    async def healthz(request: Request):
        return json_response(
            200,
            success_response(
                {
                    "ok": True,
                    "service": service_name,
                    "uptime": round(time.monotonic() - started_at, 3),
                },
                request_id_of(request),
            ),
        )

    @router.get("/db/healthz")
    def db_healthz(request: Request):
        """Ping the database. Sync handler: FastAPI runs it in the threadpool."""
        request_id = request_id_of(request)
        try:
            postgres.ping()
        except Exception as e:
            logger.error(f"Database health check failed: {type(e).__name__}: {e}")
            # Drop the pool so the next probe reconnects from scratch
            postgres.close()
            return json_response(
                503,
                error_response(ErrorCodes.SERVICE_UNAVAILABLE, "Database unavailable", request_id),
            )

        return json_response(200, success_response({"ok": True, "db": "postgres"}, request_id))

    return router
