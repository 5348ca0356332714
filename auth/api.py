"""HTTP routes for authentication.

Rate limiting is applied by RateLimitMiddleware before these handlers run.
Service calls are blocking (scrypt, database) and run in the threadpool.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from auth.service import AuthService
from auth.security_middleware import request_client_key
from auth.types import Credentials
from auth.exceptions import (
    EmailTakenError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    UserNotFoundError,
)
from api.base import success_response, error_response, json_response, request_id_of, ErrorCodes

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return json_response(status_code, error_response(code, message, request_id_of(request)))


def _internal_error(request: Request, message: str) -> JSONResponse:
    """Log the current exception and return a generic 500."""
    logger.exception(message)
    return _error(request, 500, ErrorCodes.INTERNAL_ERROR, message)


def bearer_token(request: Request) -> str | None:
    """Extract the token from 'Authorization: Bearer <token>', or None."""
    header = request.headers.get("Authorization")
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def create_auth_router(auth_service: AuthService) -> APIRouter:
    """Create auth router with injected service."""
    router = APIRouter(tags=["auth"])

    @router.post("/register", status_code=201)
    async def register(request: Request, body: Credentials):
        """Create an account.

        Returns token and user (201). 400 on invalid input, 409 if the
        email is taken.
        """
        try:
            result = await run_in_threadpool(
                auth_service.register,
                body.email,
                body.password,
                request_client_key(request),
            )
        except InvalidInputError as e:
            return _error(request, 400, ErrorCodes.INVALID_REQUEST, str(e))
        except EmailTakenError:
            return _error(request, 409, ErrorCodes.ALREADY_EXISTS, "Email is already registered")
        except Exception:
            return _internal_error(request, "Registration failed")

        return json_response(
            201,
            success_response(result.model_dump(mode="json"), request_id_of(request)),
        )

    @router.post("/login")
    async def login(request: Request, body: Credentials):
        """Exchange email and password for a token.

        Unknown email and wrong password get the same 401.
        """
        try:
            result = await run_in_threadpool(
                auth_service.login,
                body.email,
                body.password,
                request_client_key(request),
            )
        except InvalidInputError as e:
            return _error(request, 400, ErrorCodes.INVALID_REQUEST, str(e))
        except InvalidCredentialsError:
            return _error(request, 401, ErrorCodes.INVALID_CREDENTIALS, "Invalid credentials")
        except Exception:
            return _internal_error(request, "Login failed")

        return json_response(
            200,
            success_response(result.model_dump(mode="json"), request_id_of(request)),
        )

    @router.get("/me")
    async def get_current_user(request: Request):
        """Get the user named by the bearer token."""
        token = bearer_token(request)
        if token is None:
            return _error(request, 401, ErrorCodes.NOT_AUTHENTICATED, "Missing bearer token")

        try:
            user = await run_in_threadpool(
                auth_service.current_user,
                token,
                request_client_key(request),
            )
        except InvalidTokenError:
            return _error(request, 401, ErrorCodes.INVALID_TOKEN, "Invalid or expired token")
        except UserNotFoundError:
            return _error(request, 404, ErrorCodes.NOT_FOUND, "User not found")
        except Exception:
            return _internal_error(request, "Failed to load user")

        return json_response(
            200,
            success_response({"user": user.model_dump(mode="json")}, request_id_of(request)),
        )

    return router
