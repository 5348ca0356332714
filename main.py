"""Application factory and server entry point."""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from api.errors import register_error_handlers
from api.health import create_health_router
from api.middleware import RequestIDMiddleware
from auth.api import create_auth_router
from auth.database import AuthDatabase
from auth.passwords import PasswordHasher
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger
from auth.security_middleware import RateLimitMiddleware
from auth.service import AuthService
from auth.tokens import TokenService
from clients.postgres_client import PostgresClient
from config import AppSettings, load_settings

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings,
    postgres: PostgresClient | None = None,
    auth_db: AuthDatabase | None = None,
    security_logger: SecurityLogger | None = None,
    hasher: PasswordHasher | None = None,
    rate_limiter: RateLimiter | None = None,
    token_service: TokenService | None = None,
    init_schema: bool = True,
) -> FastAPI:
    """Wire clients, services and routes.

    Collaborators can be injected (tests pass fakes); anything omitted is
    built from settings. The rate limiter is created here, once per app.
    """
    if postgres is None:
        postgres = PostgresClient(settings.database_url, settings.database_name)
    if auth_db is None:
        auth_db = AuthDatabase(postgres)
    if security_logger is None:
        security_logger = SecurityLogger(postgres)
    if hasher is None:
        hasher = PasswordHasher()
    if rate_limiter is None:
        rate_limiter = RateLimiter.from_config(settings.auth)
    if token_service is None:
        token_service = TokenService(settings.jwt_secret, expiry=settings.auth.token_expiry)

    auth_service = AuthService(
        config=settings.auth,
        auth_db=auth_db,
        hasher=hasher,
        tokens=token_service,
        security_logger=security_logger,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if init_schema:
            auth_db.ensure_schema()
        yield
        postgres.close()

    app = FastAPI(title="Auth API", lifespan=lifespan)

    # Last added runs first: request IDs are assigned before rate limiting
    app.add_middleware(RateLimitMiddleware, rate_limiter=rate_limiter)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_health_router(postgres, settings.service_name))
    app.include_router(create_auth_router(auth_service), prefix="/auth")

    return app


def main() -> None:
    import uvicorn

    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings()
    app = create_app(settings)

    port = int(os.getenv("PORT", "3000"))
    logger.info(f"API server listening on port {port}")
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=port)


if __name__ == "__main__":
    main()
