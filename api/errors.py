"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from api.base import error_response, json_response, request_id_of, ErrorCodes

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        # Missing fields, wrong types and unparseable JSON all map to 400
        return json_response(
            400,
            error_response(
                ErrorCodes.INVALID_REQUEST,
                "Email and password are required",
                request_id_of(request),
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return json_response(
            500,
            error_response(
                ErrorCodes.INTERNAL_ERROR,
                "An internal error occurred",
                request_id_of(request),
            ),
        )
