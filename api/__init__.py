"""API modules for HTTP interface."""

from api.base import (
    APIError,
    APIMeta,
    APIResponse,
    success_response,
    error_response,
    json_response,
    request_id_of,
    ErrorCodes,
)
