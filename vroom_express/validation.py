"""
vroom-express - Request Validation
==================================
Rejects malformed or oversized problems before any solver is spawned.
"""

import json
import logging
from typing import Any, Optional

from fastapi import status
from pydantic import ValidationError

from .config import AppConfig
from .models import RoutingRequest

logger = logging.getLogger(__name__)


INVALID_JSON_MESSAGE = "Invalid JSON object in request, please add vehicles and jobs or shipments to query"


class RoutingRequestError(Exception):
    """
    A request that must not reach the solver.

    Attributes:
        status_code: HTTP status to answer with.
        code: vroom error code for the body.
        message: Human readable reason.
    """

    def __init__(self, status_code: int, code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


def _body_too_large(size: int, config: AppConfig) -> RoutingRequestError:
    limit = config.server.max_body_bytes
    return RoutingRequestError(
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        config.error_codes.too_large,
        f"Request body too large ({size} bytes), maximum is set to {limit}",
    )


def check_content_length(header: Optional[str], config: AppConfig) -> None:
    """Reject a body announced as oversized before reading it."""
    if header is None or not header.strip().isdigit():
        return
    size = int(header)
    if size > config.server.max_body_bytes:
        raise _body_too_large(size, config)


def parse_body(raw: bytes, config: AppConfig) -> Any:
    """Decode the raw HTTP body, enforcing the configured size limit."""
    codes = config.error_codes

    if len(raw) > config.server.max_body_bytes:
        raise _body_too_large(len(raw), config)

    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Rejecting unparsable body: {e}")
        raise RoutingRequestError(status.HTTP_400_BAD_REQUEST, codes.input, INVALID_JSON_MESSAGE)


def validate_request(payload: Any, config: AppConfig) -> RoutingRequest:
    """
    Check shape and size of a decoded routing problem.

    Args:
        payload: The decoded JSON body.
        config: Application configuration holding the limits.

    Returns:
        The parsed ``RoutingRequest``.

    Raises:
        RoutingRequestError: 400 for malformed input, 413 for oversized input.
    """
    codes = config.error_codes
    limits = config.solver

    if not isinstance(payload, dict):
        raise RoutingRequestError(status.HTTP_400_BAD_REQUEST, codes.input, INVALID_JSON_MESSAGE)

    try:
        request = RoutingRequest.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Rejecting malformed request: {e.error_count()} validation error(s)")
        raise RoutingRequestError(status.HTTP_400_BAD_REQUEST, codes.input, INVALID_JSON_MESSAGE)

    if request.vehicles is None:
        raise RoutingRequestError(
            status.HTTP_400_BAD_REQUEST,
            codes.input,
            "Invalid JSON object in request, please add vehicles object to query",
        )

    if request.jobs is None and request.shipments is None:
        raise RoutingRequestError(
            status.HTTP_400_BAD_REQUEST,
            codes.input,
            "Invalid JSON object in request, please add jobs or shipments object to query",
        )

    nb_locations = request.location_count
    if nb_locations > limits.max_locations:
        raise RoutingRequestError(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            codes.too_large,
            f"Too many locations ({nb_locations}) in query, maximum is set to {limits.max_locations}",
        )

    nb_vehicles = len(request.vehicles)
    if nb_vehicles > limits.max_vehicles:
        raise RoutingRequestError(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            codes.too_large,
            f"Too many vehicles ({nb_vehicles}) in query, maximum is set to {limits.max_vehicles}",
        )

    return request
